"""
Login flow orchestrator
-----------------------
Drives the two-step passwordless login:

ENTER_IDENTIFIER --(OTP request ok)--> ENTER_OTP --(login ok)--> navigate away
        ^                                  |
        +------------- cancel_otp ---------+

Only one remote call sequence may be outstanding at a time (`busy`).
Login failures keep the flow in ENTER_OTP so the passphrase can be retried.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from duck_login.client.transport import RequestError
from duck_login.core import outcome as router
from duck_login.core import state_machine as sm
from duck_login.core.materializer import AccountStore, materialize
from duck_login.core.outcome import Outcome
from duck_login.core.validator import validate_identifier, validate_otp
from duck_login.observability.logging import log
from duck_login.settings import settings

Listener = Callable[[Dict[str, Any]], None]


class LoginOrchestrator:
    def __init__(self, api, accounts: AccountStore, *, flow_id: str = ""):
        self.api = api
        self.accounts = accounts
        self.flow_id = flow_id

        self.state: str = sm.INITIAL_STATE
        self.identifier: str = ""
        self.otp: str = ""
        self.busy: bool = False
        self._listeners: List[Listener] = []

    # ---- observation -------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "flowId": self.flow_id,
            "state": self.state,
            "identifier": self.identifier,
            "address": f"{self.identifier}@{settings.ADDRESS_DOMAIN}" if self.identifier else "",
            "busy": self.busy,
            "hasOtp": bool(self.otp),
            "signupUrl": settings.SIGNUP_URL,
        }

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a fresh snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    def _set_busy(self, value: bool) -> None:
        self.busy = value
        self._notify()

    def _transition(self, event: str) -> None:
        self.state = sm.next_state(self.state, event)
        self._notify()

    def _reject(self, outcome: Outcome, op: str) -> Outcome:
        log(event="submission_rejected", flowId=self.flow_id, op=op, kind=outcome.kind, state=self.state)
        return outcome

    # ---- step 1 ------------------------------------------------------------

    async def submit_identifier(self, identifier: str) -> Outcome:
        if self.busy:
            return self._reject(router.busy(self.state), "submit_identifier")
        if self.state != sm.ENTER_IDENTIFIER:
            return self._reject(router.wrong_step(sm.ENTER_IDENTIFIER, self.state), "submit_identifier")

        result = validate_identifier(identifier)
        if not result.ok:
            return router.validation_failed(result.reason, self.state)
        self.identifier = identifier

        self._set_busy(True)
        try:
            log(event="otp_request_sent", flowId=self.flow_id, username=identifier)
            await self.api.request_otp(identifier)
        except RequestError as e:
            log(event="otp_request_error", flowId=self.flow_id, status=e.status, error=e.message)
            return router.otp_request_failed(e, self.state)
        finally:
            self._set_busy(False)

        self._transition(sm.OTP_SENT)
        return router.otp_sent(self.state)

    # ---- step 2 ------------------------------------------------------------

    async def submit_otp(self, otp: str) -> Outcome:
        if self.busy:
            return self._reject(router.busy(self.state), "submit_otp")
        if self.state != sm.ENTER_OTP:
            return self._reject(router.wrong_step(sm.ENTER_OTP, self.state), "submit_otp")

        self.otp = otp
        result = validate_otp(otp)
        if not result.ok:
            return router.validation_failed(result.reason, self.state)

        self._set_busy(True)
        try:
            log(event="login_request_sent", flowId=self.flow_id, username=self.identifier)
            try:
                user = await self.api.login(self.identifier, otp.strip())
            except RequestError as e:
                log(event="login_error", flowId=self.flow_id, status=e.status, error=e.message)
                return router.login_failed(e, self.state)

            alias = await self._generate_alias(user.access_token)
            # Account store is blocking I/O
            record, index = await run_in_threadpool(materialize, user, alias, self.accounts)
            log(event="login_success", flowId=self.flow_id, username=record.username, index=index)
            return router.login_succeeded(index, self.state)
        finally:
            self._set_busy(False)

    async def _generate_alias(self, access_token: str) -> Optional[str]:
        # Best effort: a missing alias never blocks the login
        try:
            return await self.api.generate_alias(access_token)
        except RequestError as e:
            log(event="generate_alias_error", flowId=self.flow_id, status=e.status, error=e.message)
            return None
        except Exception as e:
            log(event="generate_alias_error", flowId=self.flow_id, errorType=type(e).__name__, error=str(e)[:500])
            return None

    def cancel_otp(self) -> Outcome:
        self.otp = ""
        self._transition(sm.CANCEL)
        log(event="otp_cancelled", flowId=self.flow_id)
        return router.cancelled()
