from .loader import load_config
from .models import (
    EmailCheckRules,
    FailurePolicy,
    RegistrationConfig,
    RegistrationRules,
    SecurityQuestionRules,
)

__all__ = [
    "load_config",
    "EmailCheckRules",
    "FailurePolicy",
    "RegistrationConfig",
    "RegistrationRules",
    "SecurityQuestionRules",
]
