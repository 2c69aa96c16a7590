"""Query engine: catalog + parser + evaluator -> capped, ordered results."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import logging
import time
from typing import TYPE_CHECKING

from ..domain.model import Catalog
from ..domain.search import NO_QUERY, NoQuery, SearchResponse
from ..observability.metrics import SEARCH_COUNT, SEARCH_LATENCY, track_latency
from ..observability.tracing import create_span
from ..query.evaluator import DEFAULT_FREE_TEXT_FIELDS, matches_expression
from ..query.parser import parse


if TYPE_CHECKING:
    from ..config import Settings
    from .index_loader import CatalogSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 100


class QueryEngine:
    """Runs queries against the catalog served by a loader.

    The engine holds no per-query state; every call parses the raw string
    afresh. The catalog order is preserved (stable filter, no ranking).
    """

    def __init__(
        self,
        loader: CatalogSource,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        free_text_fields: Iterable[str] = DEFAULT_FREE_TEXT_FIELDS,
        clock: Callable[[], float] = time.time,
    ):
        if max_results < 1:
            raise ValueError("max_results must be at least 1")
        self.loader = loader
        self.max_results = max_results
        self.free_text_fields = frozenset(free_text_fields)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, loader: CatalogSource) -> QueryEngine:
        return cls(
            loader,
            max_results=settings.max_results,
            free_text_fields=settings.get_free_text_fields(),
        )

    async def search(self, raw: str, *, free_text_fields: Iterable[str] | None = None) -> SearchResponse | NoQuery:
        """Search the catalog.

        Returns ``NO_QUERY`` for blank input without touching the loader.

        Raises:
            IndexLoadError: the catalog could not be loaded
        """
        if not raw or not raw.strip():
            SEARCH_COUNT.labels(outcome="no_query").inc()
            return NO_QUERY
        catalog = await self.loader.get()
        return self.filter_catalog(catalog, raw, free_text_fields=free_text_fields)

    def filter_catalog(
        self,
        catalog: Catalog,
        raw: str,
        *,
        free_text_fields: Iterable[str] | None = None,
    ) -> SearchResponse | NoQuery:
        """Synchronous core of ``search`` over an already loaded catalog."""
        query = raw.strip() if raw else ""
        if not query:
            SEARCH_COUNT.labels(outcome="no_query").inc()
            return NO_QUERY

        fields = self.free_text_fields if free_text_fields is None else frozenset(free_text_fields)
        start = time.perf_counter()
        with create_span("query.search", attributes={"query.length": len(query), "catalog.size": len(catalog)}):
            expression = parse(query, now=self._clock())
            kind = "wildcard" if expression.wildcard else "filter"
            with track_latency(SEARCH_LATENCY, kind=kind):
                if expression.wildcard:
                    matched = list(catalog)
                else:
                    matched = [port for port in catalog if matches_expression(port, expression, fields)]
        elapsed_ms = (time.perf_counter() - start) * 1000

        SEARCH_COUNT.labels(outcome="match" if matched else "empty").inc()
        logger.debug(
            "Query %r matched %d of %d ports in %.2f ms",
            query,
            len(matched),
            len(catalog),
            elapsed_ms,
        )
        return SearchResponse(
            query=query,
            ports=tuple(matched[: self.max_results]),
            total=len(matched),
            limit=self.max_results,
            elapsed_ms=elapsed_ms,
            highlight_terms=tuple(expression.free_text_terms()),
        )
