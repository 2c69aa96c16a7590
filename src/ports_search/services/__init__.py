"""Service layer: catalog loading, query execution and page wiring."""

from .index_loader import CatalogSource, IndexLoader, LoaderState, StaticIndexLoader
from .live_search import CancellableTimer, LiveSearch
from .query_engine import QueryEngine
from .search_session import SearchSession


__all__ = [
    "CancellableTimer",
    "CatalogSource",
    "IndexLoader",
    "LiveSearch",
    "LoaderState",
    "QueryEngine",
    "SearchSession",
    "StaticIndexLoader",
]
