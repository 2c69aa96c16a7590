"""Debounced search-as-you-type."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import inspect
import logging
from typing import TYPE_CHECKING, Any

from ..errors import IndexLoadError


if TYPE_CHECKING:
    from ..domain.search import NoQuery, SearchResponse
    from .query_engine import QueryEngine

logger = logging.getLogger(__name__)

ResultCallback = Callable[[str, "SearchResponse | NoQuery"], Awaitable[None] | None]
ErrorCallback = Callable[[str, IndexLoadError], Awaitable[None] | None]


class CancellableTimer:
    """Single-shot timer on the running event loop; rescheduling cancels the pending shot."""

    def __init__(self, delay: float):
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[..., Any], *args: Any) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, callback, args)

    def cancel(self) -> bool:
        """Cancel the pending shot. Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self._handle = None
        callback(*args)


class LiveSearch:
    """Runs at most one search per quiet period, always for the latest input.

    Each keystroke (``on_input``) cancels the pending search and schedules a
    new one ``delay`` seconds later. Results of a search that was overtaken
    by a newer one are dropped.
    """

    def __init__(
        self,
        engine: QueryEngine,
        on_result: ResultCallback,
        *,
        on_error: ErrorCallback | None = None,
        delay: float = 0.3,
    ):
        self.engine = engine
        self._on_result = on_result
        self._on_error = on_error
        self._timer = CancellableTimer(delay)
        self._latest = ""
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self.free_text_fields: frozenset[str] | None = None
        self.search_count = 0

    @property
    def pending(self) -> bool:
        return self._timer.pending

    @property
    def delay(self) -> float:
        return self._timer.delay

    def on_input(self, raw: str) -> None:
        self._latest = raw
        self._timer.schedule(self._start)

    def cancel(self) -> None:
        self._timer.cancel()

    async def flush(self) -> None:
        """Run a pending search immediately and wait for the latest one to finish."""
        if self._timer.cancel():
            self._start()
        if self._task is not None:
            await self._task

    def _start(self) -> None:
        self._generation += 1
        self.search_count += 1
        self._task = asyncio.ensure_future(self._run(self._latest, self._generation))

    async def _run(self, raw: str, generation: int) -> None:
        try:
            outcome = await self.engine.search(raw, free_text_fields=self.free_text_fields)
        except IndexLoadError as exc:
            if generation != self._generation:
                logger.debug("Dropping stale live search failure for %r", raw)
                return
            if self._on_error is None:
                logger.warning("Live search for %r failed: %s", raw, exc)
                return
            await _maybe_await(self._on_error(raw, exc))
            return
        if generation != self._generation:
            logger.debug("Dropping stale live search result for %r", raw)
            return
        await _maybe_await(self._on_result(raw, outcome))


async def _maybe_await(result: Awaitable[None] | None) -> None:
    if inspect.isawaitable(result):
        await result
