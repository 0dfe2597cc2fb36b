import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from duck_login.client.transport import RequestError
from duck_login.core import outcome as router
from duck_login.core import state_machine as sm
from duck_login.core.orchestrator import LoginOrchestrator
from duck_login.store.models import AuthenticatedUser

USER = AuthenticatedUser(access_token="tok", cohort="c1", email="alice1@duck.com", username="alice1")


def _make(index: int = 0):
    api = MagicMock()
    api.request_otp = AsyncMock(return_value=None)
    api.login = AsyncMock(return_value=USER)
    api.generate_alias = AsyncMock(return_value="xyz123@duck.com")
    accounts = MagicMock()
    accounts.add_account.return_value = index
    return LoginOrchestrator(api, accounts, flow_id="f1"), api, accounts


async def _at_otp_step(flow):
    out = await flow.submit_identifier("alice1")
    assert out.kind == router.OTP_SENT
    return out


def test_fresh_flow_starts_at_identifier_step():
    flow, _, _ = _make()
    snap = flow.snapshot()
    assert snap["state"] == sm.ENTER_IDENTIFIER
    assert snap["busy"] is False
    assert snap["identifier"] == ""
    assert snap["hasOtp"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("identifier,reason", [("", "EMPTY_INPUT"), ("alice.1", "INVALID_CHARACTERS")])
async def test_invalid_identifier_makes_no_call(identifier, reason):
    flow, api, _ = _make()
    out = await flow.submit_identifier(identifier)
    assert out.kind == router.VALIDATION_FAILED
    assert out.reason == reason
    assert api.request_otp.await_count == 0
    assert flow.state == sm.ENTER_IDENTIFIER
    assert flow.busy is False


@pytest.mark.asyncio
async def test_identifier_success_advances_to_otp_step():
    flow, api, _ = _make()
    out = await flow.submit_identifier("alice1")
    api.request_otp.assert_awaited_once_with("alice1")
    assert out.kind == router.OTP_SENT
    assert out.state == sm.ENTER_OTP
    assert flow.state == sm.ENTER_OTP
    assert flow.busy is False
    assert flow.snapshot()["address"] == "alice1@duck.com"


@pytest.mark.asyncio
async def test_identifier_request_failure_stays_and_reports_status():
    flow, api, _ = _make()
    api.request_otp.side_effect = RequestError(status=503, status_text="Service Unavailable")
    out = await flow.submit_identifier("alice1")
    assert out.kind == router.REQUEST_FAILED
    assert out.message == "503 - Service Unavailable"
    assert flow.state == sm.ENTER_IDENTIFIER
    assert flow.busy is False


@pytest.mark.asyncio
async def test_identifier_transport_failure_reports_message():
    flow, api, _ = _make()
    api.request_otp.side_effect = RequestError(message="Connection refused")
    out = await flow.submit_identifier("alice1")
    assert out.message == "Connection refused"
    assert out.status is None
    assert flow.busy is False


@pytest.mark.asyncio
async def test_otp_rejected_on_identifier_step():
    flow, api, _ = _make()
    out = await flow.submit_otp("123456")
    assert out.kind == router.WRONG_STEP
    assert api.login.await_count == 0


@pytest.mark.asyncio
async def test_identifier_rejected_on_otp_step():
    flow, api, _ = _make()
    await _at_otp_step(flow)
    out = await flow.submit_identifier("bob")
    assert out.kind == router.WRONG_STEP
    assert flow.identifier == "alice1"
    assert api.request_otp.await_count == 1


@pytest.mark.asyncio
async def test_empty_otp_makes_no_call():
    flow, api, _ = _make()
    await _at_otp_step(flow)
    out = await flow.submit_otp("")
    assert out.kind == router.VALIDATION_FAILED
    assert out.reason == "EMPTY_OTP"
    assert api.login.await_count == 0
    assert flow.busy is False


@pytest.mark.asyncio
async def test_full_login_scenario():
    flow, api, accounts = _make(index=0)
    await _at_otp_step(flow)

    out = await flow.submit_otp(" 123456 ")

    api.login.assert_awaited_once_with("alice1", "123456")
    api.generate_alias.assert_awaited_once_with("tok")
    accounts.add_account.assert_called_once()
    record = accounts.add_account.call_args.args[0]
    assert record.nextAlias == "xyz123@duck.com"
    assert record.remark == "a***1@duck.com"
    assert record.email == "alice1@duck.com"
    assert out.kind == router.LOGIN_SUCCEEDED
    assert out.accountIndex == 0
    assert "id=0" in out.destination
    assert out.message == "Login Success"
    assert flow.busy is False


@pytest.mark.asyncio
async def test_alias_failure_still_creates_account_and_navigates():
    flow, api, accounts = _make(index=4)
    api.generate_alias.side_effect = RequestError(status=500, status_text="Server Error")
    await _at_otp_step(flow)

    with patch("duck_login.core.orchestrator.log") as mock_log:
        out = await flow.submit_otp("123456")

    accounts.add_account.assert_called_once()
    assert accounts.add_account.call_args.args[0].nextAlias == ""
    assert out.kind == router.LOGIN_SUCCEEDED
    assert out.destination == "/email/?id=4"
    assert flow.busy is False
    events = [c.kwargs.get("event") for c in mock_log.call_args_list]
    assert "generate_alias_error" in events


@pytest.mark.asyncio
async def test_login_unauthorized_keeps_otp_step():
    flow, api, accounts = _make()
    api.login.side_effect = RequestError(status=401, status_text="Unauthorized")
    await _at_otp_step(flow)

    out = await flow.submit_otp("000000")

    assert out.kind == router.REQUEST_FAILED
    assert out.message == "Unauthorized"
    assert flow.state == sm.ENTER_OTP
    assert flow.busy is False
    assert api.generate_alias.await_count == 0
    assert accounts.add_account.call_count == 0


@pytest.mark.asyncio
async def test_login_server_error_message():
    flow, api, _ = _make()
    api.login.side_effect = RequestError(status=500, status_text="Server Error")
    await _at_otp_step(flow)
    out = await flow.submit_otp("123456")
    assert out.message == "500 - Server Error"
    assert flow.state == sm.ENTER_OTP


@pytest.mark.asyncio
async def test_login_can_be_retried_after_failure():
    flow, api, accounts = _make()
    api.login.side_effect = [RequestError(status=401, status_text="Unauthorized"), USER]
    await _at_otp_step(flow)

    first = await flow.submit_otp("111111")
    second = await flow.submit_otp("123456")

    assert first.kind == router.REQUEST_FAILED
    assert second.kind == router.LOGIN_SUCCEEDED
    assert api.login.await_count == 2
    accounts.add_account.assert_called_once()


@pytest.mark.asyncio
async def test_cancel_is_idempotent_and_clears_otp():
    flow, api, _ = _make()
    api.login.side_effect = RequestError(status=401, status_text="Unauthorized")
    await _at_otp_step(flow)
    await flow.submit_otp("123456")
    assert flow.snapshot()["hasOtp"] is True

    once = flow.cancel_otp()
    snap_once = flow.snapshot()
    twice = flow.cancel_otp()
    snap_twice = flow.snapshot()

    assert once.kind == twice.kind == router.CANCELLED
    assert snap_once == snap_twice
    assert flow.state == sm.ENTER_IDENTIFIER
    assert flow.otp == ""


@pytest.mark.asyncio
async def test_submission_while_busy_is_rejected():
    flow, api, _ = _make()
    gate = asyncio.Event()

    async def slow_request(identifier):
        await gate.wait()

    api.request_otp.side_effect = slow_request

    first = asyncio.ensure_future(flow.submit_identifier("alice1"))
    await asyncio.sleep(0)
    assert flow.busy is True

    second = await flow.submit_identifier("alice1")
    assert second.kind == router.BUSY
    assert api.request_otp.await_count == 1

    gate.set()
    out = await first
    assert out.kind == router.OTP_SENT
    assert flow.busy is False


@pytest.mark.asyncio
async def test_busy_cleared_only_after_alias_settles():
    flow, api, accounts = _make()
    seen = []

    async def alias(token):
        seen.append(flow.busy)
        return "xyz123@duck.com"

    api.generate_alias.side_effect = alias
    await _at_otp_step(flow)
    await flow.submit_otp("123456")

    assert seen == [True]
    assert flow.busy is False


@pytest.mark.asyncio
async def test_subscribers_see_busy_and_state_changes():
    flow, _, _ = _make()
    snaps = []
    unsubscribe = flow.subscribe(snaps.append)

    await flow.submit_identifier("alice1")

    assert [s["busy"] for s in snaps] == [True, False, False]
    assert snaps[-1]["state"] == sm.ENTER_OTP

    unsubscribe()
    flow.cancel_otp()
    assert len(snaps) == 3


@pytest.mark.asyncio
async def test_unexpected_alias_failure_still_creates_account():
    flow, api, accounts = _make(index=2)
    api.generate_alias.side_effect = UnicodeEncodeError("ascii", "t\xf6k", 1, 2, "ordinal not in range(128)")
    await _at_otp_step(flow)

    with patch("duck_login.core.orchestrator.log") as mock_log:
        out = await flow.submit_otp("123456")

    assert out.kind == router.LOGIN_SUCCEEDED
    assert out.destination == "/email/?id=2"
    accounts.add_account.assert_called_once()
    assert accounts.add_account.call_args.args[0].nextAlias == ""
    assert flow.busy is False
    alias_logs = [c for c in mock_log.call_args_list if c.kwargs.get("event") == "generate_alias_error"]
    assert alias_logs[0].kwargs["errorType"] == "UnicodeEncodeError"


@pytest.mark.asyncio
async def test_account_store_runs_off_the_event_loop():
    import threading

    flow, _, accounts = _make(index=0)
    loop_thread = threading.get_ident()
    store_threads = []

    def add_account(record):
        store_threads.append(threading.get_ident())
        return 0

    accounts.add_account.side_effect = add_account
    await _at_otp_step(flow)
    out = await flow.submit_otp("123456")

    assert out.kind == router.LOGIN_SUCCEEDED
    assert len(store_threads) == 1
    assert store_threads[0] != loop_thread


@pytest.mark.asyncio
async def test_store_failure_clears_busy_and_propagates():
    flow, _, accounts = _make()
    accounts.add_account.side_effect = RuntimeError("redis down")
    await _at_otp_step(flow)

    with pytest.raises(RuntimeError):
        await flow.submit_otp("123456")
    assert flow.busy is False
    assert flow.state == sm.ENTER_OTP


@pytest.mark.asyncio
async def test_rejected_identifier_is_not_kept():
    flow, _, _ = _make()
    await flow.submit_identifier("alice.1")
    snap = flow.snapshot()
    assert snap["identifier"] == ""
    assert snap["address"] == ""

    await flow.submit_identifier("alice1")
    assert flow.snapshot()["address"] == "alice1@duck.com"
