"""Exceptions raised across ports-search component boundaries."""


class PortsSearchError(Exception):
    """Base class for ports-search errors."""


class IndexLoadError(PortsSearchError):
    """The catalog index could not be fetched or decoded.

    This is the only failure that crosses the query engine boundary; it is
    never retried automatically.
    """

    def __init__(self, url: str, reason: str, *, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to load catalog from {url}: {reason}")
