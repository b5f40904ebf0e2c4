"""Check-in submission: one remote call per confirmed, in-range check-in."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Union

from .client import CheckInClient
from .geofence import Allowed, GateResult
from .notifications import Notifier
from .roster import Identity
from .utils.logger import get_logger

SUCCESS_TITLE = "Check-in complete."
FAILURE_TITLE = "Check-in failed."
FAILURE_DESCRIPTION = "Please wait a moment and try again."
NOT_ALLOWED_MESSAGE = "Check-in requires a confirmed location inside the check-in area."
IN_PROGRESS_MESSAGE = "A check-in is already being submitted."

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"


class CheckInFailureKind(str, Enum):
    SUBMISSION_FAILED = "submission_failed"
    LOCATION_NOT_ALLOWED = "location_not_allowed"
    ALREADY_SUBMITTING = "already_submitting"


@dataclass(frozen=True)
class CheckInSuccess:
    identity: Identity
    checked_in_at: datetime

    @property
    def timestamp(self) -> str:
        return self.checked_in_at.strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class CheckInFailure:
    kind: CheckInFailureKind
    message: str
    description: str | None = None


CheckInResult = Union[CheckInSuccess, CheckInFailure]


class CheckInSubmitter:
    """Send a check-in for an identity whose location has been confirmed.

    The caller passes the gate result it just obtained; anything but
    ``Allowed`` is refused before the endpoint is touched. Only one submission
    runs at a time and ``is_submitting`` is cleared however the call ends.
    """

    def __init__(
        self,
        client: CheckInClient,
        notifier: Notifier,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._client = client
        self._notifier = notifier
        self._logger = logger or get_logger("submitter")
        self._clock = clock
        self._submitting = False

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    async def submit_check_in(self, identity: Identity, gate_result: GateResult) -> CheckInResult:
        if not isinstance(gate_result, Allowed):
            self._logger.warning(
                "Refusing check-in for %s: location state is %s",
                identity.id,
                gate_result.status.value,
            )
            return CheckInFailure(CheckInFailureKind.LOCATION_NOT_ALLOWED, NOT_ALLOWED_MESSAGE)
        if self._submitting:
            self._logger.debug("Ignoring check-in for %s: submission in flight", identity.id)
            return CheckInFailure(CheckInFailureKind.ALREADY_SUBMITTING, IN_PROGRESS_MESSAGE)

        self._submitting = True
        try:
            checked_in_at = self._clock()
            await self._client.submit(identity.id)
        except Exception:
            self._logger.exception("Check-in for %s failed", identity.id)
            self._notifier.error(FAILURE_TITLE, FAILURE_DESCRIPTION)
            return CheckInFailure(
                CheckInFailureKind.SUBMISSION_FAILED, FAILURE_TITLE, FAILURE_DESCRIPTION
            )
        finally:
            self._submitting = False

        result = CheckInSuccess(identity=identity, checked_in_at=checked_in_at)
        self._logger.info(
            "Checked in %s (%s) at %s (%.0f m from target)",
            identity.display_name,
            identity.id,
            result.timestamp,
            gate_result.distance_meters,
        )
        self._notifier.success(SUCCESS_TITLE, result.timestamp)
        return result
