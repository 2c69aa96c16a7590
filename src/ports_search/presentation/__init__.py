"""Rendering of search outcomes."""

from .results import ResultPresenter, highlight_terms, status_indicator


__all__ = [
    "ResultPresenter",
    "highlight_terms",
    "status_indicator",
]
