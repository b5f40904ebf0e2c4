"""Geofenced office check-in: confirm the device is on site, then submit."""

from .controller import CheckInController
from .gate import GeolocationGate
from .geofence import Allowed, Coordinate, GateError, GateStatus, OutOfRange, distance_meters
from .roster import Identity, Roster
from .submitter import CheckInFailure, CheckInSubmitter, CheckInSuccess

__all__ = [
    "Allowed",
    "CheckInController",
    "CheckInFailure",
    "CheckInSubmitter",
    "CheckInSuccess",
    "Coordinate",
    "GateError",
    "GateStatus",
    "GeolocationGate",
    "Identity",
    "OutOfRange",
    "Roster",
    "distance_meters",
]
