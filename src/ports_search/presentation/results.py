"""HTML rendering of search outcomes.

The presenter is a pure function of its input: the same outcome always
renders to the same markup. Every catalog string is HTML-escaped; matched
free-text words in descriptions are wrapped in ``<mark>``.
"""

from __future__ import annotations

from collections.abc import Sequence
from html import escape
import re
from urllib.parse import quote

from ..domain.model import BuildStatus, Port
from ..domain.search import NoQuery, SearchResponse
from ..errors import IndexLoadError


STATUS_OK = "ok"
STATUS_BROKEN = "broken"
STATUS_PENDING = "pending"

NO_MATCHES_HTML = '<div class="result-item">No matches found.</div>'


def status_indicator(port: Port) -> str:
    """Indicator class for a row: broken flag or failed build wins, then build success."""
    if port.is_broken or port.build_status is BuildStatus.FAILED:
        return STATUS_BROKEN
    if port.build_status is BuildStatus.SUCCESS:
        return STATUS_OK
    return STATUS_PENDING


def highlight_terms(text: str, terms: Sequence[str], *, min_length: int = 2) -> str:
    """Escape ``text`` and wrap case-insensitive occurrences of ``terms`` in ``<mark>``.

    Overlapping matches keep the earliest, longest one. Terms shorter than
    ``min_length`` are ignored so single letters do not light up everything.
    """
    if not text:
        return ""

    spans: list[tuple[int, int]] = []
    for term in terms:
        if not term or len(term) < min_length:
            continue
        pattern = re.compile(re.escape(term), re.IGNORECASE)
        spans.extend((match.start(), match.end()) for match in pattern.finditer(text))
    if not spans:
        return escape(text)

    spans.sort(key=lambda span: (span[0], -(span[1] - span[0])))
    parts: list[str] = []
    position = 0
    for start, end in spans:
        if start < position:
            continue
        parts.append(escape(text[position:start]))
        parts.append(f"<mark>{escape(text[start:end])}</mark>")
        position = end
    parts.append(escape(text[position:]))
    return "".join(parts)


class ResultPresenter:
    """Renders search outcomes for the results container."""

    def __init__(self, base_url: str = ""):
        self.base_url = base_url.rstrip("/")

    def port_url(self, port: Port) -> str:
        return f"{self.base_url}/ports/{quote(port.category)}/{quote(port.name)}/index.html"

    def category_url(self, category: str) -> str:
        return f"{self.base_url}/categories/{quote(category)}/index.html"

    def render(self, outcome: SearchResponse | NoQuery) -> str:
        """Render the container body.

        ``NoQuery`` renders nothing (the panel is hidden), an empty response
        renders the no-matches message, anything else renders the table.
        """
        if isinstance(outcome, NoQuery):
            return ""
        if not outcome.ports:
            return NO_MATCHES_HTML

        rows = "".join(self.render_row(port, outcome.highlight_terms) for port in outcome.ports)
        return (
            '<div class="search-results-container">'
            f'<div class="search-results-header">{self.render_summary(outcome)}</div>'
            '<table class="search-results-table">'
            "<thead><tr>"
            '<th class="col-port">Port</th>'
            '<th class="col-version">Version</th>'
            '<th class="col-category">Category</th>'
            "<th>Description</th>"
            "</tr></thead>"
            f"<tbody>{rows}</tbody>"
            "</table>"
            "</div>"
        )

    def render_summary(self, response: SearchResponse) -> str:
        noun = "result" if response.total == 1 else "results"
        summary = (
            f"Found {response.total} {noun} for "
            f'<span class="search-query">&quot;{escape(response.query)}&quot;</span> '
            f"in {response.elapsed_ms:.1f} ms"
        )
        if response.truncated:
            summary += f" (showing first {len(response.ports)})"
        return summary

    def render_row(self, port: Port, terms: Sequence[str] = ()) -> str:
        status = status_indicator(port)
        name_class = "res-name status-broken" if status == STATUS_BROKEN else "res-name"
        badge = '<span class="status-unmaintained ml-10">unmaintained</span>' if port.is_unmaintained else ""
        return (
            "<tr>"
            '<td><div class="flex-center">'
            f'<span class="status-indicator {status}"></span>'
            f'<a href="{escape(self.port_url(port))}" class="{name_class}">{escape(port.name)}</a>'
            "</div></td>"
            f'<td class="res-ver">{escape(port.version)}</td>'
            f'<td class="res-cat"><a href="{escape(self.category_url(port.category))}">/{escape(port.category)}</a></td>'
            f'<td class="res-desc">{highlight_terms(port.description, terms)}{badge}</td>'
            "</tr>"
        )

    def render_error(self, error: IndexLoadError) -> str:
        """Inline message shown when the catalog could not be loaded."""
        return (
            '<div class="result-item search-error" role="alert">'
            f"Search is unavailable: {escape(error.reason)}. Reload the page to try again."
            "</div>"
        )
