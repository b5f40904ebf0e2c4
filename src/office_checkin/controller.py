"""Check-in form logic: selection, the check-in action and status text."""

from __future__ import annotations

import logging
from typing import Optional

from .gate import GeolocationGate
from .geofence import GateError, GateResult, GateStatus, OutOfRange
from .notifications import Notifier
from .roster import Identity, Roster
from .submitter import CheckInFailure, CheckInFailureKind, CheckInResult, CheckInSubmitter
from .utils.logger import get_logger

OUT_OF_RANGE_TITLE = "You are outside the check-in area."


class CheckInController:
    """Coordinate the roster selection, the gate and the submitter."""

    def __init__(
        self,
        roster: Roster,
        gate: GeolocationGate,
        submitter: CheckInSubmitter,
        notifier: Notifier,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self.roster = roster
        self.gate = gate
        self.submitter = submitter
        self._notifier = notifier
        self._logger = logger or get_logger("controller")
        self._selected: Optional[Identity] = None

    @property
    def selected(self) -> Optional[Identity]:
        return self._selected

    def select(self, identity_id: Optional[str]) -> Optional[Identity]:
        """Select a roster entry by id, or clear the selection with ``None``/``""``."""
        self._selected = self.roster.require(identity_id) if identity_id else None
        return self._selected

    @property
    def can_check_in(self) -> bool:
        return (
            self._selected is not None
            and not self.submitter.is_submitting
            and self.gate.status is GateStatus.ALLOWED
        )

    async def refresh_location(self) -> GateResult:
        return await self.gate.request_location()

    async def check_in(self) -> Optional[CheckInResult]:
        """Re-check the location and submit; ``None`` means nothing was attempted."""
        identity = self._selected
        if identity is None or self.submitter.is_submitting:
            return None

        self._logger.debug("Check-in requested for %s; re-checking location", identity.id)
        location = await self.gate.request_location()
        if isinstance(location, GateError):
            self._notifier.error(location.message)
            return CheckInFailure(CheckInFailureKind.LOCATION_NOT_ALLOWED, location.message)
        if isinstance(location, OutOfRange):
            description = f"About {round(location.distance_meters)} m from the target location."
            self._notifier.error(OUT_OF_RANGE_TITLE, description)
            return CheckInFailure(
                CheckInFailureKind.LOCATION_NOT_ALLOWED, OUT_OF_RANGE_TITLE, description
            )

        return await self.submitter.submit_check_in(identity, location)

    def status_text(self) -> Optional[str]:
        gate = self.gate
        if gate.status is GateStatus.LOADING:
            return "Getting your location..."
        if gate.status is GateStatus.ALLOWED:
            if gate.distance_meters is None:
                return "Location acquired."
            return (
                "You are inside the check-in area "
                f"(about {round(gate.distance_meters)} m from the target location)."
            )
        if gate.status is GateStatus.OUT_OF_RANGE and gate.distance_meters is not None:
            return (
                "You are outside the check-in area "
                f"(about {round(gate.distance_meters)} m from the target location). "
                "Move on site and get your location again."
            )
        if gate.status is GateStatus.ERROR:
            return gate.error_message
        return None
