"""
Local input checks run before any remote call is made.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from duck_login.settings import settings

EMPTY_INPUT = "EMPTY_INPUT"
INVALID_CHARACTERS = "INVALID_CHARACTERS"
EMPTY_OTP = "EMPTY_OTP"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[str] = None


OK = ValidationResult(ok=True)


def validate_identifier(identifier: str, pattern: Optional[str] = None) -> ValidationResult:
    """
    Check the local part of a Duck Address.
    The allowed character class comes from settings.IDENTIFIER_PATTERN unless given.
    """
    if identifier == "":
        return ValidationResult(ok=False, reason=EMPTY_INPUT)
    rx = pattern or settings.IDENTIFIER_PATTERN
    if not re.fullmatch(rx, identifier):
        return ValidationResult(ok=False, reason=INVALID_CHARACTERS)
    return OK


def validate_otp(otp: str) -> ValidationResult:
    # Only emptiness is checked; whitespace is trimmed later, right before the login call
    if otp == "":
        return ValidationResult(ok=False, reason=EMPTY_OTP)
    return OK
