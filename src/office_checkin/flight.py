"""Single-flight coalescing for async operations."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, TypeVar

T = TypeVar("T")


class SingleFlight:
    """Run at most one execution per key; later callers join the pending one.

    A cancelled caller only stops waiting; the shared execution keeps running
    for the others.
    """

    def __init__(self) -> None:
        self._calls: Dict[str, asyncio.Future[Any]] = {}

    def in_flight(self, key: str) -> bool:
        call = self._calls.get(key)
        return call is not None and not call.done()

    async def run(self, key: str, func: Callable[[], Awaitable[T]]) -> T:
        call = self._calls.get(key)
        if call is None or call.done():
            call = asyncio.ensure_future(func())
            self._calls[key] = call
            call.add_done_callback(lambda finished, key=key: self._forget(key, finished))
        return await asyncio.shield(call)

    def _forget(self, key: str, finished: asyncio.Future[Any]) -> None:
        if self._calls.get(key) is finished:
            del self._calls[key]
