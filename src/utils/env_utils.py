"""Environment variable parsing helpers."""

import os


def parse_bool_env(key: str, default: bool = False) -> bool:
    """Parse a boolean environment variable.

    Only the value 'true' (any case) is truthy; unset returns `default`.

    Examples:
        >>> os.environ["API_KEY_REQUIRED"] = "TRUE"
        >>> parse_bool_env("API_KEY_REQUIRED")
        True
    """
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() == "true"


def parse_int_env(key: str, default: int) -> int:
    """Parse an integer environment variable, falling back to `default` when unset or invalid."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default
