"""Domain models for search outcomes.

A search produces either a ``SearchResponse`` (possibly with zero rows) or
the ``NO_QUERY`` signal when the input was blank, so the presenter can hide
its panel instead of reporting "0 results".
"""

from pydantic import BaseModel, ConfigDict, Field

from .model import Port


class NoQuery(BaseModel):
    """Signal returned for an empty or whitespace-only query."""

    model_config = ConfigDict(frozen=True)

    def __bool__(self) -> bool:
        return False


NO_QUERY = NoQuery()


class SearchResponse(BaseModel):
    """Value object for a completed search.

    ``ports`` is capped at ``limit``; ``total`` counts every match.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    ports: tuple[Port, ...] = ()
    total: int = 0
    limit: int
    elapsed_ms: float = 0.0
    highlight_terms: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def truncated(self) -> bool:
        return self.total > len(self.ports)

    def to_payload(self) -> dict:
        """JSON-ready payload using the compact index keys for ports."""
        return {
            "query": self.query,
            "total": self.total,
            "limit": self.limit,
            "truncated": self.truncated,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "highlight_terms": list(self.highlight_terms),
            "ports": [port.model_dump(mode="json", by_alias=True, exclude_none=True) for port in self.ports],
        }
