"""Environment-driven configuration for the check-in tool.

Values come from the process environment, optionally seeded from a ``.env``
file through python-dotenv (existing variables always win). Every default
below can be overridden by a variable of the same meaning.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .geofence import Coordinate
from .location import PositionOptions
from .utils.logger import get_logger

LOGGER = get_logger("config")

DEFAULT_TARGET = Coordinate(latitude=35.8115739, longitude=139.162354)
DEFAULT_RADIUS_METERS = 200.0
DEFAULT_LOCATION_PAGE_URL = "https://checkin.localhost/"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

ENV_TEMPLATE = """
# Office check-in configuration

# Target (office) coordinate and allowed radius in meters
OFFICE_LATITUDE=35.8115739
OFFICE_LONGITUDE=139.162354
ALLOWED_RADIUS_METERS=200

# Development only: skip real geolocation and always report "allowed"
USE_MOCK_LOCATION=0

# Location fix timeout in milliseconds
LOCATION_TIMEOUT_MS=10000

# Check-in API base URL; leave empty to use the built-in stub
CHECKIN_API_BASE_URL=""
CHECKIN_TIMEOUT_SECONDS=30

# Simulated latency of the built-in stub endpoint
STUB_DELAY_MS=600

# Optional JSON roster file: [{"id": "emp-1", "name": "..."}]
ROSTER_PATH=""

# Browser used for geolocation. HEADLESS: 1=true, 0=false
HEADLESS=1
BROWSER_CHANNEL=""
GRANT_GEOLOCATION=1

# Secure origin the location lookup runs on
LOCATION_PAGE_URL="https://checkin.localhost/"

# Optional "LAT,LON" override reported by the browser
SIMULATED_POSITION=""
""".lstrip()


class ConfigError(ValueError):
    """Raised when an environment value cannot be parsed."""


@dataclass(frozen=True)
class GateConfig:
    """Tuning for the geolocation gate."""

    target: Coordinate = DEFAULT_TARGET
    allowed_radius_meters: float = DEFAULT_RADIUS_METERS
    use_mock_location: bool = False
    position_options: PositionOptions = field(default_factory=PositionOptions)

    def __post_init__(self) -> None:
        if self.allowed_radius_meters < 0:
            raise ConfigError("allowed_radius_meters must not be negative")


@dataclass(frozen=True)
class CheckInConfig:
    """Everything the CLI needs to wire the gate, submitter and providers."""

    gate: GateConfig = field(default_factory=GateConfig)
    api_base_url: Optional[str] = None
    request_timeout_seconds: float = 30.0
    stub_delay_seconds: float = 0.6
    roster_path: Optional[Path] = None
    headless: bool = True
    browser_channel: Optional[str] = None
    location_page_url: str = DEFAULT_LOCATION_PAGE_URL
    grant_geolocation: bool = True
    simulated_position: Optional[Coordinate] = None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    value = (raw or "").strip().lower()
    if not value:
        return default
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got {raw!r}")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def _env_ms(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return max(int(raw), 0)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_str(env: Mapping[str, str], name: str) -> Optional[str]:
    value = (env.get(name) or "").strip()
    return value or None


def config_from_env(env: Mapping[str, str]) -> CheckInConfig:
    """Build a configuration from an environment mapping."""
    latitude = _env_float(env, "OFFICE_LATITUDE", DEFAULT_TARGET.latitude)
    longitude = _env_float(env, "OFFICE_LONGITUDE", DEFAULT_TARGET.longitude)
    try:
        target = Coordinate(latitude=latitude, longitude=longitude)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    simulated = _env_str(env, "SIMULATED_POSITION")
    try:
        simulated_position = Coordinate.parse(simulated) if simulated else None
    except ValueError as exc:
        raise ConfigError(f"SIMULATED_POSITION: {exc}") from exc

    gate = GateConfig(
        target=target,
        allowed_radius_meters=_env_float(env, "ALLOWED_RADIUS_METERS", DEFAULT_RADIUS_METERS),
        use_mock_location=_env_bool(env, "USE_MOCK_LOCATION", False),
        position_options=PositionOptions(
            timeout_ms=_env_ms(env, "LOCATION_TIMEOUT_MS", 10_000),
        ),
    )
    roster_path = _env_str(env, "ROSTER_PATH")
    base_url = _env_str(env, "CHECKIN_API_BASE_URL")
    return CheckInConfig(
        gate=gate,
        api_base_url=base_url.rstrip("/") if base_url else None,
        request_timeout_seconds=_env_float(env, "CHECKIN_TIMEOUT_SECONDS", 30.0),
        stub_delay_seconds=_env_ms(env, "STUB_DELAY_MS", 600) / 1000,
        roster_path=Path(roster_path) if roster_path else None,
        headless=_env_bool(env, "HEADLESS", True),
        browser_channel=_env_str(env, "BROWSER_CHANNEL"),
        location_page_url=_env_str(env, "LOCATION_PAGE_URL") or DEFAULT_LOCATION_PAGE_URL,
        grant_geolocation=_env_bool(env, "GRANT_GEOLOCATION", True),
        simulated_position=simulated_position,
    )


def load_config(env_file: Optional[str] = None) -> CheckInConfig:
    """Load ``env_file`` (default ``$ENV_FILE`` or ``.env``) and parse the environment."""
    path = env_file or os.getenv("ENV_FILE", ".env")
    if Path(path).exists():
        load_dotenv(path, override=False)
        LOGGER.debug("Loaded environment from %s", path)
    return config_from_env(os.environ)


def ensure_env_file(path: Path | str) -> bool:
    """Create a commented ``.env`` template if missing. Returns True when written."""
    env_path = Path(path)
    if env_path.exists():
        return False
    env_path.write_text(ENV_TEMPLATE, encoding="utf-8")
    LOGGER.info("Created default %s; please review it.", env_path)
    return True
