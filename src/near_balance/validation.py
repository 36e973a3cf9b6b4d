"""NEAR account ID validation.

Three account ID shapes are accepted:

1. Implicit address: exactly 64 hexadecimal characters.
2. Named address: ``alice.near``, ``sub.account.testnet`` and so on.
3. Ethereum-like address: ``0x`` followed by 40 hexadecimal characters.

Validation is a pure regex match and is cheap enough to run on every keystroke.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .constants import ACCOUNT_SUFFIXES

IMPLICIT_ADDRESS_RE = re.compile(r"^[0-9a-f]{64}$", re.IGNORECASE | re.ASCII)
NAMED_ADDRESS_RE = re.compile(
    r"^[a-z0-9_-]+(\.[a-z0-9_-]+)*\.(" + "|".join(ACCOUNT_SUFFIXES) + r")$",
    re.IGNORECASE | re.ASCII,
)
ETH_IMPLICIT_RE = re.compile(r"^0x[0-9a-f]{40}$", re.IGNORECASE | re.ASCII)

EMPTY_ACCOUNT_ID_MESSAGE = "Please enter a NEAR account ID."
INVALID_ACCOUNT_ID_MESSAGE = (
    "Please enter a valid NEAR account ID (implicit address, named address "
    "like alice.near, or Ethereum-like address like 0x...)."
)


class AccountIdKind(str, Enum):
    IMPLICIT = "implicit"
    NAMED = "named"
    ETH_IMPLICIT = "eth_implicit"


@dataclass(frozen=True)
class Valid:
    account_id: str
    kind: AccountIdKind

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    reason: str

    @property
    def is_valid(self) -> bool:
        return False


ValidationResult = Valid | Invalid

_PATTERNS: tuple[tuple[AccountIdKind, re.Pattern[str]], ...] = (
    (AccountIdKind.IMPLICIT, IMPLICIT_ADDRESS_RE),
    (AccountIdKind.NAMED, NAMED_ADDRESS_RE),
    (AccountIdKind.ETH_IMPLICIT, ETH_IMPLICIT_RE),
)


def classify_account_id(raw: str) -> AccountIdKind | None:
    """Return which account ID shape ``raw`` matches, if any."""
    trimmed = raw.strip()
    for kind, pattern in _PATTERNS:
        if pattern.match(trimmed):
            return kind
    return None


def validate_account_id(raw: str) -> ValidationResult:
    """Validate a raw account ID string.

    Args:
        raw: User input, possibly padded with whitespace.

    Returns:
        ``Valid`` with the trimmed account ID, or ``Invalid`` with a message
        suitable for display next to the input field.
    """
    trimmed = raw.strip()
    if not trimmed:
        return Invalid(EMPTY_ACCOUNT_ID_MESSAGE)

    kind = classify_account_id(trimmed)
    if kind is None:
        return Invalid(INVALID_ACCOUNT_ID_MESSAGE)
    return Valid(account_id=trimmed, kind=kind)
