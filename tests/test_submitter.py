import asyncio
import logging
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from office_checkin.client import CheckInRequestError
from office_checkin.geofence import Allowed, GateError, OutOfRange
from office_checkin.roster import Identity
from office_checkin.submitter import (
    FAILURE_DESCRIPTION,
    FAILURE_TITLE,
    SUCCESS_TITLE,
    CheckInFailure,
    CheckInFailureKind,
    CheckInSubmitter,
    CheckInSuccess,
)

TARO = Identity(id="emp-1", display_name="Taro Yamada")
NOW = datetime(2024, 5, 1, 9, 5, 3)


def _client(**kwargs) -> MagicMock:
    client = MagicMock()
    client.submit = AsyncMock(**kwargs)
    return client


def _submitter(client: MagicMock, notifier: MagicMock, **kwargs) -> CheckInSubmitter:
    return CheckInSubmitter(client=client, notifier=notifier, clock=lambda: NOW, **kwargs)


def test_successful_check_in_notifies_with_timestamp() -> None:
    client = _client()
    notifier = MagicMock()
    submitter = _submitter(client, notifier)

    result = asyncio.run(submitter.submit_check_in(TARO, Allowed(12.0)))

    assert result == CheckInSuccess(identity=TARO, checked_in_at=NOW)
    assert result.timestamp == "2024/05/01 09:05:03"
    client.submit.assert_awaited_once_with("emp-1")
    notifier.success.assert_called_once_with(SUCCESS_TITLE, "2024/05/01 09:05:03")
    notifier.error.assert_not_called()
    assert submitter.is_submitting is False


def test_failed_call_notifies_logs_and_clears_flag(caplog: pytest.LogCaptureFixture) -> None:
    client = _client(side_effect=CheckInRequestError("HTTP 503", status=503))
    notifier = MagicMock()
    submitter = _submitter(client, notifier, logger=logging.getLogger("test.submitter"))

    with caplog.at_level(logging.ERROR):
        result = asyncio.run(submitter.submit_check_in(TARO, Allowed(12.0)))

    assert result == CheckInFailure(
        CheckInFailureKind.SUBMISSION_FAILED, FAILURE_TITLE, FAILURE_DESCRIPTION
    )
    notifier.error.assert_called_once_with(FAILURE_TITLE, FAILURE_DESCRIPTION)
    notifier.success.assert_not_called()
    assert submitter.is_submitting is False
    assert any("emp-1" in record.getMessage() for record in caplog.records)
    assert any(record.exc_info for record in caplog.records)


def test_flag_is_set_only_while_call_is_pending() -> None:
    seen = []

    async def record_flag(_employee_id):
        seen.append(submitter.is_submitting)

    submitter = _submitter(_client(side_effect=record_flag), MagicMock())

    assert submitter.is_submitting is False
    asyncio.run(submitter.submit_check_in(TARO, Allowed(0.0)))

    assert seen == [True]
    assert submitter.is_submitting is False


@pytest.mark.parametrize(
    "gate_result",
    [OutOfRange(48_500.0), GateError("Location access is not permitted.")],
)
def test_refuses_without_allowed_location(gate_result) -> None:
    client = _client()
    notifier = MagicMock()
    submitter = _submitter(client, notifier)

    result = asyncio.run(submitter.submit_check_in(TARO, gate_result))

    assert isinstance(result, CheckInFailure)
    assert result.kind is CheckInFailureKind.LOCATION_NOT_ALLOWED
    client.submit.assert_not_awaited()
    notifier.success.assert_not_called()
    notifier.error.assert_not_called()
    assert submitter.is_submitting is False


def test_second_submission_while_pending_is_rejected() -> None:
    async def scenario():
        release = asyncio.Event()

        async def slow_submit(_employee_id):
            await release.wait()

        client = _client(side_effect=slow_submit)
        notifier = MagicMock()
        submitter = _submitter(client, notifier)
        first = asyncio.create_task(submitter.submit_check_in(TARO, Allowed(0.0)))
        await asyncio.sleep(0)
        second = await submitter.submit_check_in(TARO, Allowed(0.0))
        release.set()
        return client, notifier, await first, second

    client, notifier, first, second = asyncio.run(scenario())

    assert isinstance(first, CheckInSuccess)
    assert second.kind is CheckInFailureKind.ALREADY_SUBMITTING
    assert client.submit.await_count == 1
    notifier.success.assert_called_once()


def test_cancelled_call_still_clears_flag() -> None:
    async def scenario():
        started = asyncio.Event()

        async def never_returns(_employee_id):
            started.set()
            await asyncio.sleep(10)

        submitter = _submitter(_client(side_effect=never_returns), MagicMock())
        task = asyncio.create_task(submitter.submit_check_in(TARO, Allowed(0.0)))
        await started.wait()
        busy = submitter.is_submitting
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return busy, submitter.is_submitting

    assert asyncio.run(scenario()) == (True, False)
