# Ports (Protocol Interfaces) shared across components
# Abstract interfaces for adapters; no implementations here

from src.core.ports.email import (
    EmailPort,
    EmailResult,
    EmailStatus,
    render_validation_email,
)

__all__ = [
    # Email
    "EmailPort",
    "EmailResult",
    "EmailStatus",
    "render_validation_email",
]
