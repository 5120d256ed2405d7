from os import environ
from typing import Optional

REGION_VARIABLE_NAME = "KMSPATCH_REGION"
MAX_WORKERS_VARIABLE_NAME = "KMSPATCH_MAX_WORKERS"
DEADLINE_SECONDS_VARIABLE_NAME = "KMSPATCH_DEADLINE_SECONDS"

DEFAULT_REGION = "us-east-1"
DEFAULT_MAX_WORKERS = 8
DEFAULT_DEADLINE_SECONDS = 900


class ConfigurationError(Exception):
    pass


def region_name() -> Optional[str]:
    return environ.get(REGION_VARIABLE_NAME) or None


def max_workers() -> int:
    return _positive_int(MAX_WORKERS_VARIABLE_NAME, DEFAULT_MAX_WORKERS)


def deadline_seconds() -> int:
    return _positive_int(DEADLINE_SECONDS_VARIABLE_NAME, DEFAULT_DEADLINE_SECONDS)


def _positive_int(variable_name: str, default: int) -> int:
    raw_value = environ.get(variable_name)
    if not raw_value:
        return default

    try:
        value = int(raw_value)
    except ValueError as error:
        raise ConfigurationError(
            f"${variable_name} must be an integer, got '{raw_value}'"
        ) from error

    if value < 1:
        raise ConfigurationError(f"${variable_name} must be positive, got {value}")

    return value
