"""Precondition and assertion checks used at the table's contract points."""

from __future__ import annotations

from .error import EnvelopeError


def precondition(condition: bool, exc_type: type[EnvelopeError], message: str) -> None:
    """Raise ``exc_type(message)`` when a caller-side precondition does not hold."""

    if not condition:
        raise exc_type(message)


def assertion(condition: bool, exc_type: type[EnvelopeError], message: str) -> None:
    """Raise ``exc_type(message)`` when an internal invariant does not hold."""

    if not condition:
        raise exc_type(message)


__all__ = ["assertion", "precondition"]
