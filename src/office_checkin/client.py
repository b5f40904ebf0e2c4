"""Remote check-in endpoint clients."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol

import aiohttp

from .utils.logger import get_logger

LOGGER = get_logger("client")


class CheckInRequestError(RuntimeError):
    """The check-in endpoint rejected the request or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class CheckInClient(Protocol):
    """Submit one check-in event for an identity."""

    async def submit(self, employee_id: str) -> None:
        """Return on success; raise on any failure."""


class StubCheckInClient:
    """Stand-in endpoint that accepts every check-in after a fixed delay."""

    def __init__(self, delay_seconds: float = 0.6) -> None:
        self._delay_seconds = delay_seconds
        self.submitted: List[str] = []

    async def submit(self, employee_id: str) -> None:
        await asyncio.sleep(self._delay_seconds)
        self.submitted.append(employee_id)
        LOGGER.debug("Stub accepted check-in for %s", employee_id)


class HttpCheckInClient:
    """POST ``{"employeeId": ...}`` to ``{base_url}/checkins``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + "/checkins"
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._logger = logger or LOGGER

    @property
    def url(self) -> str:
        return self._url

    async def submit(self, employee_id: str) -> None:
        if self._session is not None:
            await self._post(self._session, employee_id)
            return
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            await self._post(session, employee_id)

    async def _post(self, session: aiohttp.ClientSession, employee_id: str) -> None:
        self._logger.debug("POST %s for %s", self._url, employee_id)
        try:
            async with session.post(
                self._url, json={"employeeId": employee_id}, timeout=self._timeout
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise CheckInRequestError(
                        f"Check-in endpoint returned HTTP {response.status}: {body[:200]}",
                        status=response.status,
                    )
                payload = await self._read_json(response)
        except aiohttp.ClientError as exc:
            raise CheckInRequestError(f"Check-in request failed: {exc}") from exc

        if isinstance(payload, dict) and payload.get("ok") is False:
            raise CheckInRequestError("Check-in endpoint reported failure", status=response.status)

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> object:
        if "json" not in (response.content_type or ""):
            return None
        try:
            return await response.json()
        except ValueError:
            return None
