"""Typed access to HEATRANK_* environment variables.

Usage:
    from heatrank.utils.env import get_env, read_env_settings

    interval = get_env("HEATRANK_INTERVAL", default=10.0, as_type=float)

    # Only variables that are actually set end up in the result
    settings = read_env_settings({"top_n": ("HEATRANK_TOP_N", int)})
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import Any, TypeVar, cast, overload

T = TypeVar("T")

# Case-insensitive, surrounding whitespace ignored
FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})


class EnvVarError(Exception):
    """Base exception for environment variable errors."""

    pass


class EnvVarTypeError(EnvVarError):
    """Raised when an environment variable cannot be converted to the expected type."""

    def __init__(self, name: str, value: str, expected_type: type) -> None:
        self.name = name
        self.value = value
        self.expected_type = expected_type
        super().__init__(
            f"{name}={value!r} is not a valid {expected_type.__name__}"
        )


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in FALSE_STRINGS


_PARSERS: dict[type, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: lambda value: int(value.strip()),
    float: lambda value: float(value.strip()),
    str: lambda value: value,
}


def _coerce(name: str, value: str, as_type: type) -> Any:
    """Convert ``value`` with the parser registered for ``as_type``.

    Raises:
        EnvVarTypeError: If conversion fails.
    """
    parser = _PARSERS.get(as_type, as_type)
    try:
        return parser(value)
    except (ValueError, TypeError) as e:
        raise EnvVarTypeError(name, value, as_type) from e


def _debug(name: str, value: str | None) -> None:
    from heatrank.utils.logger import Logger

    if Logger.is_configured():
        Logger.get("env").debug(f"ENV GET {name}={value}")


@overload
def get_env(name: str, *, default: T, as_type: type[T], log: bool = ...) -> T:
    ...


@overload
def get_env(name: str, *, as_type: type[T], log: bool = ...) -> T | None:
    ...


@overload
def get_env(name: str, *, default: str, log: bool = ...) -> str:
    ...


@overload
def get_env(name: str, *, log: bool = ...) -> str | None:
    ...


def get_env(
    name: str,
    *,
    default: T | None = None,
    as_type: type[T] | None = None,
    log: bool = False,
) -> T | str | None:
    """Get an environment variable with optional type coercion.

    Args:
        name: Environment variable name.
        default: Returned unchanged when the variable is not set.
        as_type: bool, int, float or str. Booleans are False for "", "0",
            "false", "no" and "off" (any case), True otherwise.
        log: Log the lookup at DEBUG.

    Raises:
        EnvVarTypeError: If the value cannot be converted.

    Examples:
        >>> get_env("HEATRANK_TOP_N", default=5, as_type=int)
        5
    """
    value = os.environ.get(name)
    if log:
        _debug(name, value)

    if value is None:
        return default
    if as_type is None:
        return value
    return cast(T, _coerce(name, value, as_type))


def read_env_settings(
    variables: Mapping[str, tuple[str, type]], log: bool = True
) -> dict[str, Any]:
    """Read a group of typed variables, skipping the ones that are unset.

    Args:
        variables: Setting name -> (environment variable, type).
        log: Log each lookup at DEBUG.

    Returns:
        Setting name -> converted value, for set variables only.

    Raises:
        EnvVarTypeError: If any set variable cannot be converted.
    """
    settings: dict[str, Any] = {}
    for key, (env_name, as_type) in variables.items():
        value = get_env(env_name, as_type=as_type, log=log)
        if value is not None:
            settings[key] = value
    return settings
