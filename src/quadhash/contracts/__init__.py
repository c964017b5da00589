"""Contract helpers for the quadratic-probing hash table."""

from .checks import assertion, precondition
from .error import (
    BadInputError,
    DuplicateKeyError,
    EmptyStatisticsError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvariantError,
    IOErrorEnvelope,
    KeyNotFoundError,
    PolicyError,
    ProbeExhaustedError,
    TableContractError,
    die,
    guard_cli,
)

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvariantError",
    "PolicyError",
    "IOErrorEnvelope",
    "TableContractError",
    "DuplicateKeyError",
    "KeyNotFoundError",
    "EmptyStatisticsError",
    "ProbeExhaustedError",
    "assertion",
    "precondition",
    "guard_cli",
    "die",
]
