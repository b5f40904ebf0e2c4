"""Device location providers.

The browser Geolocation API is the source of truth for where the device is.
``PlaywrightLocationProvider`` drives a Chromium page and asks
``navigator.geolocation`` for a single fresh fix, surfacing the API's error
codes unchanged so the gate can tell a denied permission from a lost signal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from playwright.async_api import Page, Route, async_playwright

from .geofence import Coordinate
from .utils.logger import get_logger

LOGGER = get_logger("location")

# W3C GeolocationPositionError codes.
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

_BLANK_PAGE = "<!doctype html><html><head><title>check-in</title></head><body></body></html>"

_GET_POSITION_JS = """
(options) => new Promise((resolve) => {
  if (!("geolocation" in navigator)) {
    resolve({ kind: "unsupported" });
    return;
  }
  navigator.geolocation.getCurrentPosition(
    (position) => resolve({
      kind: "position",
      latitude: position.coords.latitude,
      longitude: position.coords.longitude,
      accuracy: position.coords.accuracy,
    }),
    (error) => resolve({ kind: "error", code: error.code, message: error.message }),
    options,
  );
})
"""


class LocationUnsupportedError(RuntimeError):
    """The environment has no location capability at all."""


class PositionError(RuntimeError):
    """A location request failed with a Geolocation API error code."""

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message or f"Geolocation error code {code}")
        self.code = code


@dataclass(frozen=True)
class PositionOptions:
    """Parameters for a single position request."""

    enable_high_accuracy: bool = True
    timeout_ms: int = 10_000
    maximum_age_ms: int = 0

    def to_js(self) -> dict[str, Any]:
        return {
            "enableHighAccuracy": self.enable_high_accuracy,
            "timeout": self.timeout_ms,
            "maximumAge": self.maximum_age_ms,
        }


class LocationProvider(Protocol):
    """Abstract source of the device's current coordinate."""

    async def current_position(self, options: PositionOptions) -> Coordinate:
        """Return one fresh fix or raise LocationUnsupportedError/PositionError."""


def position_from_payload(payload: Mapping[str, Any]) -> Coordinate:
    """Translate the page script's result into a coordinate or an exception."""
    kind = payload.get("kind")
    if kind == "position":
        return Coordinate(
            latitude=float(payload["latitude"]),
            longitude=float(payload["longitude"]),
        )
    if kind == "unsupported":
        raise LocationUnsupportedError("navigator.geolocation is not available")
    if kind == "error":
        try:
            code = int(payload.get("code", POSITION_UNAVAILABLE))
        except (TypeError, ValueError):
            code = POSITION_UNAVAILABLE
        raise PositionError(code, str(payload.get("message") or ""))
    raise ValueError(f"Unexpected geolocation payload: {dict(payload)!r}")


class PlaywrightLocationProvider:
    """Ask a Chromium page for the device position via navigator.geolocation."""

    def __init__(
        self,
        *,
        page_url: str = "https://checkin.localhost/",
        headless: bool = True,
        channel: Optional[str] = None,
        grant_permission: bool = True,
        simulated_position: Optional[Coordinate] = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._page_url = page_url
        self._headless = headless
        self._channel = channel
        self._grant_permission = grant_permission
        self._simulated_position = simulated_position
        self._logger = logger or LOGGER

    async def current_position(self, options: PositionOptions) -> Coordinate:
        async with async_playwright() as playwright:
            self._logger.debug(
                "Launching Chromium for a location fix (headless=%s, channel=%s)",
                self._headless,
                self._channel or "bundled",
            )
            launch_kwargs: dict[str, Any] = {"headless": self._headless}
            if self._channel:
                launch_kwargs["channel"] = self._channel
            browser = await playwright.chromium.launch(**launch_kwargs)
            try:
                context = await browser.new_context(**self._context_options())
                try:
                    page = await context.new_page()
                    await self._open_blank_origin(page)
                    payload = await page.evaluate(_GET_POSITION_JS, options.to_js())
                finally:
                    await context.close()
            finally:
                await browser.close()
        self._logger.debug("Geolocation payload: %s", payload)
        return position_from_payload(payload)

    def _context_options(self) -> dict[str, Any]:
        context_options: dict[str, Any] = {}
        if self._grant_permission:
            context_options["permissions"] = ["geolocation"]
        if self._simulated_position is not None:
            context_options["geolocation"] = {
                "latitude": self._simulated_position.latitude,
                "longitude": self._simulated_position.longitude,
            }
        return context_options

    async def _open_blank_origin(self, page: Page) -> None:
        # Geolocation needs a secure origin; serve one locally instead of hitting the network.
        async def _fulfill(route: Route) -> None:
            await route.fulfill(status=200, content_type="text/html", body=_BLANK_PAGE)

        await page.route(self._page_url, _fulfill)
        await page.goto(self._page_url)
