"""Domain layer: ports, catalog, parsed queries and search outcomes."""

from .model import BuildStatus, Catalog, Port
from .query import FieldKind, OrGroup, QueryExpression, Token
from .search import NO_QUERY, NoQuery, SearchResponse


__all__ = [
    "NO_QUERY",
    "BuildStatus",
    "Catalog",
    "FieldKind",
    "NoQuery",
    "OrGroup",
    "Port",
    "QueryExpression",
    "SearchResponse",
    "Token",
]
