"""Predicate evaluation of parsed queries against ports.

Every ``FieldKind`` maps to one matcher in ``MATCHERS``. Matchers are pure,
compare case-insensitively and treat an absent port attribute as a
non-match; negation is applied afterwards, so a negated token on an absent
attribute matches.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from ..domain.model import Port
from ..domain.query import FieldKind, OrGroup, QueryExpression, Token


DEFAULT_FREE_TEXT_FIELDS: frozenset[str] = frozenset({"name", "description", "category"})

Matcher = Callable[[Port, Token, frozenset[str]], bool]


def _contains(haystack: str | None, needle: str) -> bool:
    return haystack is not None and needle in haystack.lower()


def _any_contains(values: Iterable[str], needle: str) -> bool:
    return any(needle in value.lower() for value in values)


def _newer_than(port: Port, cutoff: int | None) -> bool:
    return port.last_updated is not None and cutoff is not None and port.last_updated > cutoff


def _match_free_text(port: Port, token: Token, fields: frozenset[str]) -> bool:
    needle = token.needle
    if "name" in fields and _contains(port.name, needle):
        return True
    if "description" in fields and _contains(port.description, needle):
        return True
    if "category" in fields and _contains(port.category, needle):
        return True
    if "provides" in fields and _any_contains(port.provides, needle):
        return True
    return "depends" in fields and _any_contains(port.depends, needle)


MATCHERS: dict[FieldKind, Matcher] = {
    FieldKind.NAME: lambda port, token, _: _contains(port.name, token.needle),
    FieldKind.DESCRIPTION: lambda port, token, _: _contains(port.description, token.needle),
    FieldKind.CATEGORY: lambda port, token, _: port.category.lower() == token.needle,
    FieldKind.LICENSE: lambda port, token, _: _contains(port.license, token.needle),
    FieldKind.AUTHOR: lambda port, token, _: _contains(port.author, token.needle),
    FieldKind.PROVIDES: lambda port, token, _: _any_contains(port.provides, token.needle),
    FieldKind.DEPENDS: lambda port, token, _: _any_contains(port.depends, token.needle),
    FieldKind.BROKEN: lambda port, token, _: port.is_broken,
    FieldKind.UNMAINTAINED: lambda port, token, _: port.is_unmaintained,
    FieldKind.NEW: lambda port, token, _: _newer_than(port, token.cutoff),
    FieldKind.UPDATED: lambda port, token, _: _newer_than(port, token.cutoff),
    FieldKind.SINCE: lambda port, token, _: _newer_than(port, token.cutoff),
    FieldKind.FREE_TEXT: _match_free_text,
}


def matches(port: Port, token: Token, free_text_fields: frozenset[str] = DEFAULT_FREE_TEXT_FIELDS) -> bool:
    """Return True if ``port`` satisfies ``token`` (negation applied)."""
    matched = bool(MATCHERS[token.field](port, token, free_text_fields))
    return not matched if token.negated else matched


def matches_group(port: Port, group: OrGroup, free_text_fields: frozenset[str] = DEFAULT_FREE_TEXT_FIELDS) -> bool:
    """A port matches a group when it matches every token (stops at the first miss)."""
    return all(matches(port, token, free_text_fields) for token in group.tokens)


def matches_expression(
    port: Port,
    expression: QueryExpression,
    free_text_fields: frozenset[str] = DEFAULT_FREE_TEXT_FIELDS,
) -> bool:
    """A port matches an expression when it matches any group (stops at the first hit).

    The wildcard matches every port; an empty expression matches none.
    """
    if expression.wildcard:
        return True
    return any(matches_group(port, group, free_text_fields) for group in expression.groups)
