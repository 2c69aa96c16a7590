"""Catalog loading with request coalescing.

``IndexLoader.get()`` fetches ``ports.json`` once. Callers that arrive while
the fetch is in flight await the same task; once it resolves the catalog is
served from memory for the lifetime of the loader. A failed fetch is not
retried: the loader stays ``failed`` until ``reset()``.
"""

from __future__ import annotations

import asyncio
from enum import Enum
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from ..domain.model import Catalog
from ..errors import IndexLoadError
from ..observability.metrics import CATALOG_SIZE, INDEX_LOADS
from ..observability.tracing import create_span


if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


class LoaderState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@runtime_checkable
class CatalogSource(Protocol):
    """Surface the query engine needs from a loader."""

    @property
    def state(self) -> LoaderState:  # pragma: no cover - Protocol only
        """Current lifecycle state."""

    async def get(self) -> Catalog:  # pragma: no cover - Protocol only
        """Return the catalog, loading it on first use."""


class IndexLoader:
    """Fetches and memoizes the catalog from a URL (or a file in offline mode)."""

    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        offline: bool = False,
    ):
        """Initialize the loader.

        Args:
            url: Catalog URL, or a filesystem path when ``offline`` is True
            client: Shared HTTP client; a short-lived one is created per fetch when omitted
            timeout: Timeout in seconds for the short-lived client
            offline: Read the catalog from disk instead of over HTTP
        """
        self.url = url
        self.offline = offline
        self._client = client
        self._timeout = timeout
        self._catalog: Catalog | None = None
        self._error: IndexLoadError | None = None
        self._task: asyncio.Task[Catalog] | None = None
        self.fetch_count = 0

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        client: httpx.AsyncClient | None = None,
        url_override: str | None = None,
    ) -> IndexLoader:
        return cls(
            settings.resolve_ports_url(url_override),
            client=client,
            timeout=float(settings.http_timeout),
            offline=settings.is_offline_mode(),
        )

    @property
    def state(self) -> LoaderState:
        if self._catalog is not None:
            return LoaderState.READY
        if self._error is not None:
            return LoaderState.FAILED
        if self._task is not None and not self._task.done():
            return LoaderState.LOADING
        return LoaderState.UNINITIALIZED

    @property
    def catalog(self) -> Catalog | None:
        """The loaded catalog, or None before a successful load."""
        return self._catalog

    @property
    def error(self) -> IndexLoadError | None:
        return self._error

    async def get(self) -> Catalog:
        """Return the catalog, triggering (or joining) the fetch if needed.

        Raises:
            IndexLoadError: the fetch failed (now or on an earlier call)
        """
        if self._catalog is not None:
            return self._catalog
        if self._error is not None:
            raise self._error
        if self._task is None or self._task.done():
            # A finished task with neither catalog nor error was cancelled.
            self._task = asyncio.ensure_future(self._load())
        # Shielded so a cancelled caller does not cancel the shared fetch.
        return await asyncio.shield(self._task)

    def reset(self) -> None:
        """Forget a failed or completed load so the next ``get()`` fetches again."""
        if self.state is LoaderState.LOADING:
            raise RuntimeError("Cannot reset while the catalog is loading")
        self._catalog = None
        self._error = None
        self._task = None

    async def _load(self) -> Catalog:
        self.fetch_count += 1
        logger.info("Loading catalog from %s", self.url)
        with create_span("catalog.load", attributes={"catalog.url": self.url, "catalog.offline": self.offline}):
            try:
                payload = await self._read_payload()
                catalog = self._decode(payload)
            except IndexLoadError as exc:
                self._fail(exc)
                raise
            except Exception as exc:
                error = IndexLoadError(self.url, f"unexpected error: {exc.__class__.__name__}")
                logger.exception("Unexpected error while loading catalog from %s", self.url)
                self._fail(error)
                raise error from exc

        self._catalog = catalog
        INDEX_LOADS.labels(status="success").inc()
        CATALOG_SIZE.set(len(catalog))
        logger.info("Catalog loaded: %d ports", len(catalog))
        return catalog

    def _fail(self, error: IndexLoadError) -> None:
        self._error = error
        INDEX_LOADS.labels(status="failed").inc()
        logger.error("Catalog load failed: %s", error)

    async def _read_payload(self) -> bytes:
        if self.offline:
            path = Path(self.url.removeprefix("file://"))
            try:
                return await asyncio.to_thread(path.read_bytes)
            except OSError as exc:
                raise IndexLoadError(self.url, f"cannot read file: {exc.strerror or exc}") from exc

        try:
            if self._client is not None:
                return await self._fetch(self._client)
            timeout = httpx.Timeout(self._timeout, connect=min(self._timeout, 10.0))
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                return await self._fetch(client)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise IndexLoadError(self.url, f"HTTP {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            raise IndexLoadError(self.url, f"transport error: {exc.__class__.__name__}") from exc

    async def _fetch(self, client: httpx.AsyncClient) -> bytes:
        resp = await client.get(self.url, headers={"Accept": "application/json"})
        resp.raise_for_status()
        return resp.content

    def _decode(self, payload: bytes) -> Catalog:
        try:
            return Catalog.from_json(payload)
        except ValueError as exc:
            raise IndexLoadError(self.url, f"invalid catalog payload: {exc.__class__.__name__}") from exc


class StaticIndexLoader:
    """Loader over an already available catalog (embedding and tests)."""

    def __init__(self, catalog: Catalog):
        self._catalog = catalog
        self.calls = 0

    @property
    def state(self) -> LoaderState:
        return LoaderState.READY

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    async def get(self) -> Catalog:
        self.calls += 1
        return self._catalog
