"""Per-request orchestration: cache lookup, upstream fetch and deadline race.

A request either hits the cache and is answered right away, or starts an
asyncio task that fetches, transforms, caches and encodes the places. The
request then waits on that task and on its own deadline, whichever comes
first. A timed-out request gets a 504 while the task keeps running, so a
late upstream answer still lands in the cache for the next caller.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Protocol

from .cache import ResponseCache
from .errors import (
    INTERNAL_ERROR_BODY,
    EncodeError,
    GatewayError,
    GatewayTimeoutError,
    UpstreamError,
)
from .models import InputCollection, OutputCollection
from .transformer import encode_output, transform

# The upstream call outlives the client deadline so a late answer can still
# reach the cache after the request got its 504.
UPSTREAM_TIMEOUT_FACTOR = 3


class RequestOutcome(str, enum.Enum):
    CACHE_HIT = "cache_hit"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class GatewayResponse:
    """Fully rendered response, written to the client exactly once."""

    status_code: int
    body: bytes
    outcome: RequestOutcome


class PlacesFetcher(Protocol):
    async def fetch(self, path_and_query: str, timeout: float) -> InputCollection: ...


class PlacesOrchestrator:
    """
    Coordinates cache, upstream client and deadline for every request.

    Args:
        client: Upstream client with an async ``fetch(path_and_query, timeout)``.
        request_timeout: Deadline in seconds for every request.
        cache: Optional cache. Without one every request goes upstream.
        upstream_timeout: Timeout in seconds for the upstream call itself.
            Defaults to ``UPSTREAM_TIMEOUT_FACTOR`` times ``request_timeout``.
        single_flight: Let concurrent misses for one key share a single fetch.
    """

    def __init__(
        self,
        client: PlacesFetcher,
        *,
        request_timeout: float,
        cache: ResponseCache | None = None,
        upstream_timeout: float | None = None,
        single_flight: bool = True,
        logger: logging.Logger | None = None,
    ):
        self.logger = logger or logging.getLogger(self.__class__.__module__)
        self.client = client
        self.cache = cache
        self.request_timeout = request_timeout
        self.upstream_timeout = (
            upstream_timeout
            if upstream_timeout is not None
            else request_timeout * UPSTREAM_TIMEOUT_FACTOR
        )
        self.single_flight = single_flight
        # Strong references keep abandoned fetches alive until they finish.
        self._tasks: set[asyncio.Task[GatewayResponse]] = set()
        self._inflight: dict[str, asyncio.Task[GatewayResponse]] = {}

    @property
    def pending(self) -> int:
        """Number of fetch tasks still running, abandoned ones included."""
        return len(self._tasks)

    async def handle(self, key: str) -> GatewayResponse:
        """
        Produce the response for one request.

        Args:
            key: Request path plus query string.
        """
        if self.cache is not None:
            cached, found = await self.cache.get(key)
            if found:
                self.logger.debug("Cache hit for %s", key)
                return self._render(key, cached, RequestOutcome.CACHE_HIT)

        task = self._fetch_task(key)
        # asyncio.wait never cancels the task; losing the race only abandons it.
        done, _ = await asyncio.wait({task}, timeout=self.request_timeout)
        if task not in done:
            exc = GatewayTimeoutError(key, self.request_timeout)
            self.logger.warning("Timed out: %s", exc)
            return GatewayResponse(exc.status_code, INTERNAL_ERROR_BODY, RequestOutcome.TIMED_OUT)
        return task.result()

    async def aclose(self) -> None:
        """Cancel fetches that are still running, e.g. on shutdown."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _fetch_task(self, key: str) -> asyncio.Task[GatewayResponse]:
        if self.single_flight:
            task = self._inflight.get(key)
            if task is not None:
                self.logger.debug("Joining in-flight fetch for %s", key)
                return task

        task = asyncio.create_task(self._fetch_and_render(key), name=f"fetch {key}")
        self._tasks.add(task)
        if self.single_flight:
            self._inflight[key] = task
        task.add_done_callback(lambda t: self._forget(key, t))
        return task

    def _forget(self, key: str, task: asyncio.Task[GatewayResponse]) -> None:
        self._tasks.discard(task)
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error("Fetch task for %s crashed", key, exc_info=exc)

    async def _fetch_and_render(self, key: str) -> GatewayResponse:
        try:
            items = await self.client.fetch(key, self.upstream_timeout)
        except UpstreamError as exc:
            self.logger.error("Upstream fetch for %s failed: %s", key, exc)
            return self._error(exc)

        output = transform(items)
        if self.cache is not None:
            await self.cache.put(key, output)
        self.logger.debug("Fetched %s places for %s", len(output), key)
        return self._render(key, output, RequestOutcome.COMPLETED)

    def _render(
        self, key: str, output: OutputCollection, outcome: RequestOutcome
    ) -> GatewayResponse:
        try:
            body = encode_output(output)
        except EncodeError as exc:
            self.logger.error("Cannot encode response for %s: %s", key, exc)
            return self._error(exc)
        return GatewayResponse(200, body, outcome)

    @staticmethod
    def _error(exc: GatewayError) -> GatewayResponse:
        return GatewayResponse(exc.status_code, INTERNAL_ERROR_BODY, RequestOutcome.COMPLETED)


__all__ = [
    "PlacesOrchestrator",
    "GatewayResponse",
    "RequestOutcome",
    "PlacesFetcher",
    "UPSTREAM_TIMEOUT_FACTOR",
]
