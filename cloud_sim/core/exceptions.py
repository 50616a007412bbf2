"""Exceptions raised by simulation entities."""

import numbers


class InvalidConfigurationError(ValueError):
    """Raised when an entity is built with a non-positive capacity, length or count."""


def require_positive(name: str, value) -> None:
    """Fail fast on non-positive configuration values.

    Any real number is accepted, numpy scalars included.
    """
    if not isinstance(value, numbers.Real) or isinstance(value, bool) or value <= 0:
        raise InvalidConfigurationError(f"{name} must be a positive number, got {value!r}")
