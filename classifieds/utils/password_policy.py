"""Password strength policy shared by the account forms, services and CLI."""

from __future__ import annotations

import os
from typing import List, Optional, Union

DEFAULT_MIN_PASSWORD_LENGTH: int = 8
MIN_ALLOWED_PASSWORD_LENGTH: int = 6
MAX_ALLOWED_PASSWORD_LENGTH: int = 128
PASSWORD_MIN_LENGTH_KEY: str = "PASSWORD_MIN_LENGTH"


def _parse_length(value: Union[str, int, None]) -> Optional[int]:
    """Turn raw env/config input into a length clamped to the allowed range."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        length = int(value)
    except (TypeError, ValueError):
        return None
    return max(MIN_ALLOWED_PASSWORD_LENGTH, min(MAX_ALLOWED_PASSWORD_LENGTH, length))


def resolve_min_password_length() -> int:
    """Minimum password length: environment, then app config, then the default."""
    env_value = _parse_length(os.getenv(PASSWORD_MIN_LENGTH_KEY))
    if env_value is not None:
        return env_value

    from flask import current_app, has_app_context
    if has_app_context():
        config_value = _parse_length(current_app.config.get(PASSWORD_MIN_LENGTH_KEY))
        if config_value is not None:
            return config_value

    return DEFAULT_MIN_PASSWORD_LENGTH


def get_password_requirements() -> List[str]:
    """Return a human-readable list of password requirements."""
    return [
        f"At least {resolve_min_password_length()} characters long",
        "Contains at least one letter (A-Z or a-z)",
        "Contains at least one number (0-9) OR one special character (!@#$%^&*()_+-=[]{};':\"\\|,.<>/?)",
        "Not a commonly used password"
    ]
