"""Shared precondition checks for identities and amounts."""

from __future__ import annotations

from typing import Any

from tokenmarket.core.errors import InvalidAmount, InvalidIdentity, Unauthorized


def require_caller(caller: Any) -> str:
    """A caller must be a non-empty string identity."""
    if not isinstance(caller, str) or not caller.strip():
        raise Unauthorized(f"Invalid caller identity: {caller!r}")
    return caller


def require_identity(value: Any, role: str) -> str:
    """A recipient or subject must be a non-empty string identity."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentity(f"Invalid {role} identity: {value!r}")
    return value


def is_amount(value: Any) -> bool:
    """Amounts are plain integers in the smallest currency unit.

    ``bool`` is rejected even though it subclasses ``int``.
    """
    return isinstance(value, int) and not isinstance(value, bool)


def require_amount(value: Any, *, positive: bool = True) -> int:
    if not is_amount(value):
        raise InvalidAmount(f"Amount must be an integer, got {value!r}")
    if positive and value <= 0:
        raise InvalidAmount(f"Amount must be positive, got {value}")
    if value < 0:
        raise InvalidAmount(f"Amount must not be negative, got {value}")
    return value
