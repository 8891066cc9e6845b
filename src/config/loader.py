import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.config.models import RegistrationConfig

TOKEN_ENV = "REG_EMAIL_CHECK_TOKEN"


def load_config(path: Path) -> RegistrationConfig:
    """
    Load and validate the registration config file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML or the schema is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in config file: {e}") from e

    try:
        config = RegistrationConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Config validation failed:\n{e}") from e

    # Secrets stay out of the YAML file
    token = os.environ.get(TOKEN_ENV)
    if token:
        config.email_check.api_token = token

    return config
