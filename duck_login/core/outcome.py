"""
Outcome Router
--------------
Turns the result of each flow operation into the action a front end takes:
stay and show a message, advance to the next step, or navigate away.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from duck_login.client.transport import RequestError
from duck_login.core import state_machine as sm
from duck_login.core.validator import EMPTY_INPUT, EMPTY_OTP, INVALID_CHARACTERS
from duck_login.settings import settings

# Outcome kinds
VALIDATION_FAILED = "VALIDATION_FAILED"
OTP_SENT = "OTP_SENT"
REQUEST_FAILED = "REQUEST_FAILED"
LOGIN_SUCCEEDED = "LOGIN_SUCCEEDED"
BUSY = "BUSY"
WRONG_STEP = "WRONG_STEP"
CANCELLED = "CANCELLED"

VALIDATION_MESSAGES = {
    EMPTY_INPUT: "Duck Address cannot be empty",
    INVALID_CHARACTERS: "Duck Address can only contain letters and numbers",
    EMPTY_OTP: "One-time Passphrase cannot be empty",
}

UNAUTHORIZED_MESSAGE = "Unauthorized"
LOGIN_SUCCESS_MESSAGE = "Login Success"
BUSY_MESSAGE = "Request already in progress"


@dataclass(frozen=True)
class Outcome:
    kind: str
    state: str
    message: str = ""
    reason: Optional[str] = None
    status: Optional[int] = None
    destination: Optional[str] = None
    accountIndex: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.kind in (OTP_SENT, LOGIN_SUCCEEDED, CANCELLED)

    @property
    def is_error(self) -> bool:
        return self.kind in (VALIDATION_FAILED, REQUEST_FAILED, BUSY, WRONG_STEP)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _error_text(err: RequestError) -> str:
    if err.has_status:
        return f"{err.status} - {err.status_text}"
    return err.message


def validation_failed(reason: str, state: str) -> Outcome:
    return Outcome(kind=VALIDATION_FAILED, state=state, reason=reason,
                   message=VALIDATION_MESSAGES.get(reason, reason))


def otp_sent(state: str) -> Outcome:
    return Outcome(kind=OTP_SENT, state=state)


def otp_request_failed(err: RequestError, state: str) -> Outcome:
    return Outcome(kind=REQUEST_FAILED, state=state, status=err.status, message=_error_text(err))


def login_failed(err: RequestError, state: str) -> Outcome:
    if err.status == 401:
        message = UNAUTHORIZED_MESSAGE
    else:
        message = _error_text(err)
    return Outcome(kind=REQUEST_FAILED, state=state, status=err.status, message=message)


def destination_for(index: int) -> str:
    return settings.LOGIN_DESTINATION.format(index=index)


def login_succeeded(index: int, state: str) -> Outcome:
    return Outcome(kind=LOGIN_SUCCEEDED, state=state, message=LOGIN_SUCCESS_MESSAGE,
                   destination=destination_for(index), accountIndex=index)


def busy(state: str) -> Outcome:
    return Outcome(kind=BUSY, state=state, message=BUSY_MESSAGE)


def wrong_step(expected: str, state: str) -> Outcome:
    return Outcome(kind=WRONG_STEP, state=state, message=f"Not available outside {expected}")


def cancelled() -> Outcome:
    return Outcome(kind=CANCELLED, state=sm.ENTER_IDENTIFIER)
