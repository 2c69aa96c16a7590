"""Keeping the query string and the page URL in step.

On load the free-form ``q`` parameter (legacy ``query``) is combined with the
``cat``/``lic`` shortcut parameters into one raw query. On submit the URL
gets the raw query in ``q`` and loses every other representation, so the two
never disagree.
"""

from __future__ import annotations

from collections.abc import Mapping
import re

import httpx

from ..query.parser import FIELD_ALIASES


QUERY_PARAM = "q"
LEGACY_QUERY_PARAM = "query"
SHORTCUT_PARAMS: dict[str, str] = {"cat": "category", "lic": "license"}

_DANGLING_AND = re.compile(r"^\s*&&\s*|\s*&&\s*$")
_REPEATED_AND = re.compile(r"&&(?:\s*&&)+")


def format_field_token(field: str, value: str) -> str:
    """Render ``field:value``, quoting values that contain whitespace."""
    value = value.strip()
    if any(ch.isspace() for ch in value):
        return f'{field}:"{value}"'
    return f"{field}:{value}"


def has_shortcut_params(params: Mapping[str, str]) -> bool:
    return any(params.get(name) for name in SHORTCUT_PARAMS)


def query_from_params(params: Mapping[str, str]) -> str:
    """Synthesize the raw query for a deep link.

    >>> query_from_params({"q": "vim", "cat": "editors"})
    'vim && category:editors'
    """
    raw = (params.get(QUERY_PARAM) or params.get(LEGACY_QUERY_PARAM) or "").strip()
    for param, field in SHORTCUT_PARAMS.items():
        value = (params.get(param) or "").strip()
        if not value:
            continue
        tag = format_field_token(field, value)
        if tag in raw:
            continue
        raw = f"{raw} && {tag}" if raw else tag
    return raw


def submit_url(url: str | httpx.URL, raw: str) -> httpx.URL:
    """URL to push onto the history for an explicitly submitted search."""
    url = httpx.URL(url)
    params = url.params.set(QUERY_PARAM, raw)
    for name in (LEGACY_QUERY_PARAM, *SHORTCUT_PARAMS):
        params = params.remove(name)
    return url.copy_with(params=params)


def _strip_conjunctions(raw: str) -> str:
    cleaned = _REPEATED_AND.sub("&&", raw)
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _DANGLING_AND.sub("", cleaned).strip()
    return cleaned


def apply_field_selection(raw: str, field: str, value: str) -> str:
    """Replace any ``field:`` token in ``raw`` with ``field:value``.

    Every alias of the field is removed (``cat:x`` as well as
    ``category:x``). When nothing else remains the result ends in ``" && "``
    so the user can keep typing the next condition.
    """
    aliases = [alias for alias, kind in FIELD_ALIASES.items() if kind.value == field] or [field]
    alternation = "|".join(re.escape(alias) for alias in sorted(aliases, key=len, reverse=True))
    # A token starts after whitespace or a glued operator and ends before one.
    pattern = re.compile(
        rf'(?<![^\s&|])!?(?:{alternation}):(?:"[^"]*"|(?:(?!&&|\|\|)\S)+)',
        re.IGNORECASE,
    )

    cleaned = _strip_conjunctions(pattern.sub("", raw or ""))
    tag = format_field_token(field, value)
    if not cleaned:
        return f"{tag} && "
    if cleaned.endswith("||"):
        rest = cleaned[:-2].rstrip()
        return f"{rest} || {tag}" if rest else f"{tag} && "
    return f"{cleaned} && {tag}"
