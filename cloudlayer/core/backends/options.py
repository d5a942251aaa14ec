"""Helpers for turning string query parameters into typed options."""
from typing import Iterable, Mapping, Optional

from ..exceptions import ConfigurationError

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off", ""}


def require(params: Mapping[str, str], key: str) -> str:
    """Return a mandatory option or raise ConfigurationError."""
    value = params.get(key)
    if not value:
        raise ConfigurationError(f"Missing {key}")
    return value


def parse_bool(key: str, value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {value!r}")


def parse_int(
    key: str,
    value: Optional[str],
    default: int,
    minimum: Optional[int] = None
) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e
    if minimum is not None and number < minimum:
        raise ConfigurationError(f"{key} must be at least {minimum}, got {number}")
    return number


def parse_choice(
    key: str,
    value: Optional[str],
    default: str,
    choices: Iterable[str]
) -> str:
    if not value:
        return default
    choices = tuple(choices)
    if value not in choices:
        raise ConfigurationError(f"{key} must be one of {', '.join(choices)}, got {value!r}")
    return value


_SIZE_SUFFIXES = {"b": 1, "k": 1024, "m": 1024 ** 2, "g": 1024 ** 3, "t": 1024 ** 4}


def parse_size(
    key: str,
    value: Optional[str],
    default: int,
    minimum: Optional[int] = None
) -> int:
    """
    Parse a byte size such as ``4096``, ``64k`` or ``2G`` (binary multiples).
    """
    if value is None or value == "":
        return default
    text = value.strip().lower()
    if text.endswith("ib"):
        text = text[:-2]
    multiplier = 1
    if text and text[-1] in _SIZE_SUFFIXES:
        multiplier = _SIZE_SUFFIXES[text[-1]]
        text = text[:-1]
    try:
        number = int(float(text) * multiplier)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a size, got {value!r}") from e
    if minimum is not None and number < minimum:
        raise ConfigurationError(f"{key} must be at least {minimum}, got {number}")
    return number
