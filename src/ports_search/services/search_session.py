"""Page-level wiring of the search box.

A ``SearchSession`` stands in for one open search page: it owns the text of
the query input, the current location and its history, and the markup last
rendered into the results container. Browser events map to methods:

- page load           -> ``load()``
- input keystroke     -> ``on_input()``   (debounced)
- form submit         -> ``submit()``     (pushes a history entry)
- dropdown change     -> ``select()``
- field checkboxes    -> ``set_free_text_fields()``
"""

from __future__ import annotations

from collections.abc import Iterable
import logging

import httpx

from ..config import Settings, select_free_text_fields
from ..domain.search import NoQuery, SearchResponse
from ..errors import IndexLoadError
from ..presentation.results import ResultPresenter
from .live_search import LiveSearch
from .query_engine import QueryEngine
from .url_state import apply_field_selection, query_from_params, submit_url


logger = logging.getLogger(__name__)

DROPDOWN_FIELDS = ("category", "license")


class SearchSession:
    """State and event handlers of one search page."""

    def __init__(
        self,
        engine: QueryEngine,
        presenter: ResultPresenter,
        *,
        url: str | httpx.URL = "/",
        debounce_seconds: float = 0.3,
    ):
        self.engine = engine
        self.presenter = presenter
        self.location = httpx.URL(url)
        self.history: list[httpx.URL] = [self.location]
        self.query = ""
        self.output = ""
        self.outcome: SearchResponse | NoQuery | None = None
        self.error: IndexLoadError | None = None
        self.free_text_fields: frozenset[str] = engine.free_text_fields
        self.live = LiveSearch(engine, self._show, on_error=self._show_error, delay=debounce_seconds)

    @classmethod
    def from_settings(cls, settings: Settings, engine: QueryEngine, *, url: str | httpx.URL = "/") -> SearchSession:
        return cls(
            engine,
            ResultPresenter(settings.base_url),
            url=url,
            debounce_seconds=settings.search_debounce_ms / 1000,
        )

    async def load(self) -> None:
        """Run the deep-linked query, if the location carries one.

        Shortcut parameters are folded into the query text but the location
        is left untouched until the user submits.
        """
        raw = query_from_params(self.location.params)
        if not raw:
            return
        self.query = raw
        await self.run()

    def on_input(self, text: str) -> None:
        self.query = text
        self.live.on_input(text)

    async def submit(self) -> None:
        """Search now and record the query in the location (history push)."""
        self.live.cancel()
        await self.run()
        self.push_state(submit_url(self.location, self.query))

    async def select(self, field: str, value: str) -> None:
        """Handle a category/license dropdown change.

        The dropdown resets to its placeholder afterwards, so selecting the
        placeholder (empty value) is a no-op.
        """
        if field not in DROPDOWN_FIELDS:
            raise ValueError(f"Unsupported dropdown field: {field}")
        if not value:
            return
        self.query = apply_field_selection(self.query, field, value)
        self.live.cancel()
        await self.run()

    def set_free_text_fields(self, fields: Iterable[str]) -> None:
        """Apply the field checkboxes; unticking every box restores the engine default."""
        self.free_text_fields = select_free_text_fields(fields, self.engine.free_text_fields)
        self.live.free_text_fields = self.free_text_fields

    def push_state(self, url: httpx.URL) -> None:
        self.location = url
        self.history.append(url)

    async def run(self) -> None:
        try:
            outcome = await self.engine.search(self.query, free_text_fields=self.free_text_fields)
        except IndexLoadError as exc:
            self._show_error(self.query, exc)
            return
        self._show(self.query, outcome)

    def _show(self, raw: str, outcome: SearchResponse | NoQuery) -> None:
        self.outcome = outcome
        self.error = None
        self.output = self.presenter.render(outcome)

    def _show_error(self, raw: str, error: IndexLoadError) -> None:
        logger.warning("Search for %r unavailable: %s", raw, error.reason)
        self.outcome = None
        self.error = error
        self.output = self.presenter.render_error(error)
