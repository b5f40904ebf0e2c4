"""Geolocation gate: is the device close enough to the office to check in?"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .config import GateConfig
from .flight import SingleFlight
from .geofence import (
    Allowed,
    GateError,
    GateResult,
    GateStatus,
    LocationErrorKind,
    OutOfRange,
    classify,
    distance_meters,
)
from .location import (
    PERMISSION_DENIED,
    LocationProvider,
    LocationUnsupportedError,
    PositionError,
)
from .utils.logger import get_logger

UNSUPPORTED_MESSAGE = "This browser or device does not support location services."
PERMISSION_DENIED_MESSAGE = "Location access is not permitted. Please check your browser settings."
ACQUISITION_FAILED_MESSAGE = "Failed to get your location. Check your connection and try again."
OUT_OF_RANGE_MESSAGE = "You are outside the check-in area, so you cannot check in."

# Headroom over the fix timeout before the provider itself is considered hung.
PROVIDER_GRACE_SECONDS = 5.0

_FLIGHT_KEY = "location"


class GeolocationGate:
    """Acquire a fix, measure the distance to the target and classify it.

    The gate keeps the last status, distance and error message so a front-end
    can render them. Overlapping ``request_location`` calls share one
    provider request.
    """

    def __init__(
        self,
        provider: LocationProvider,
        config: GateConfig,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._provider = provider
        self._config = config
        self._logger = logger or get_logger("gate")
        self._flight = SingleFlight()
        self.status = GateStatus.IDLE
        self.distance_meters: Optional[float] = None
        self.error_message: Optional[str] = None
        self.last_result: Optional[GateResult] = None
        if config.use_mock_location:
            self._logger.warning("Mock location is enabled; real geolocation is bypassed")

    @property
    def config(self) -> GateConfig:
        return self._config

    @property
    def is_loading(self) -> bool:
        return self._flight.in_flight(_FLIGHT_KEY)

    async def request_location(self) -> GateResult:
        return await self._flight.run(_FLIGHT_KEY, self._evaluate)

    async def _evaluate(self) -> GateResult:
        if self._config.use_mock_location:
            return self._record(Allowed(distance_meters=0.0), distance=0.0)

        self.status = GateStatus.LOADING
        self.distance_meters = None
        self.error_message = None

        options = self._config.position_options
        try:
            position = await asyncio.wait_for(
                self._provider.current_position(options),
                timeout=options.timeout_ms / 1000 + PROVIDER_GRACE_SECONDS,
            )
        except LocationUnsupportedError:
            self._logger.warning("Location capability is unavailable")
            return self._record(GateError(UNSUPPORTED_MESSAGE, LocationErrorKind.UNAVAILABLE))
        except PositionError as exc:
            if exc.code == PERMISSION_DENIED:
                self._logger.warning("Location permission was denied")
                return self._record(
                    GateError(PERMISSION_DENIED_MESSAGE, LocationErrorKind.PERMISSION_DENIED)
                )
            self._logger.warning("Location request failed (code %s): %s", exc.code, exc)
            return self._record(GateError(ACQUISITION_FAILED_MESSAGE))
        except asyncio.CancelledError:
            self._logger.warning("Location request was cancelled")
            self._record(GateError(ACQUISITION_FAILED_MESSAGE))
            raise
        except Exception as exc:  # noqa: BLE001
            self._logger.warning("Location request failed: %r", exc)
            return self._record(GateError(ACQUISITION_FAILED_MESSAGE))

        distance = distance_meters(position, self._config.target)
        self._logger.debug(
            "Fix %.6f,%.6f is %.1f m from target (radius %.1f m)",
            position.latitude,
            position.longitude,
            distance,
            self._config.allowed_radius_meters,
        )
        return self._record(
            classify(distance, self._config.allowed_radius_meters), distance=distance
        )

    def _record(self, result: GateResult, *, distance: Optional[float] = None) -> GateResult:
        self.status = result.status
        self.distance_meters = distance
        if isinstance(result, GateError):
            self.error_message = result.message
        elif isinstance(result, OutOfRange):
            self.error_message = OUT_OF_RANGE_MESSAGE
        else:
            self.error_message = None
        self.last_result = result
        return result
