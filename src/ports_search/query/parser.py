"""Query parser: raw query string -> ``QueryExpression``.

Grammar (informal)::

    query   := group (OR group)*
    group   := term ((AND)? term)*
    term    := (NOT | "!")* word
    OR      := "||" | "OR"            (word form is case-insensitive)
    AND     := "&&" | "AND"

Words are whitespace-delimited; double quotes make a phrase atomic and may
appear inside a word (``name:"gnu tools"``). ``||`` and ``&&`` are operators
even when written without surrounding spaces.

The parser is total: anything it cannot classify becomes a free-text token,
so no input can make a search fail.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
import time

from ..domain.query import FieldKind, OrGroup, QueryExpression, Token


WILDCARD = "*"

DAY_SECONDS = 24 * 60 * 60
NEW_WINDOW_SECONDS = 30 * DAY_SECONDS
UPDATED_WINDOW_SECONDS = 7 * DAY_SECONDS

SINCE_UNIT_SECONDS = {
    "d": DAY_SECONDS,
    "w": 7 * DAY_SECONDS,
    "m": 30 * DAY_SECONDS,
    "y": 365 * DAY_SECONDS,
}

FIELD_ALIASES: dict[str, FieldKind] = {
    "name": FieldKind.NAME,
    "description": FieldKind.DESCRIPTION,
    "desc": FieldKind.DESCRIPTION,
    "category": FieldKind.CATEGORY,
    "cat": FieldKind.CATEGORY,
    "license": FieldKind.LICENSE,
    "lic": FieldKind.LICENSE,
    "author": FieldKind.AUTHOR,
    "maintainer": FieldKind.AUTHOR,
    "provides": FieldKind.PROVIDES,
    "prov": FieldKind.PROVIDES,
    "depends": FieldKind.DEPENDS,
    "dep": FieldKind.DEPENDS,
    "deps": FieldKind.DEPENDS,
}

STATUS_MARKERS: dict[str, FieldKind] = {
    "is:broken": FieldKind.BROKEN,
    "is:unmaintained": FieldKind.UNMAINTAINED,
    "is:new": FieldKind.NEW,
    "is:updated": FieldKind.UPDATED,
}

_SINCE_PATTERN = re.compile(r"(\d+)(\S*)")


class LexemeKind(Enum):
    WORD = "word"
    OR = "or"
    AND = "and"
    NOT = "not"


@dataclass(frozen=True)
class Lexeme:
    kind: LexemeKind
    text: str = ""
    bangs: int = 0
    literal: bool = False


_OR = Lexeme(LexemeKind.OR)
_AND = Lexeme(LexemeKind.AND)
_NOT = Lexeme(LexemeKind.NOT)

_KEYWORDS = {"OR": _OR, "AND": _AND, "NOT": _NOT}


def scan(raw: str) -> list[Lexeme]:
    """Split ``raw`` into lexemes, honouring double-quoted phrases.

    A word that starts with a quote is a literal phrase: it is never
    classified as a field or keyword. An unterminated quote runs to the end
    of the input.
    """
    lexemes: list[Lexeme] = []
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch.isspace():
            i += 1
            continue
        if raw.startswith("||", i):
            lexemes.append(_OR)
            i += 2
            continue
        if raw.startswith("&&", i):
            lexemes.append(_AND)
            i += 2
            continue

        bangs = 0
        while i < n and raw[i] == "!":
            bangs += 1
            i += 1

        literal = i < n and raw[i] == '"'
        quoted = False
        parts: list[str] = []
        while i < n:
            ch = raw[i]
            if ch == '"':
                quoted = True
                end = raw.find('"', i + 1)
                if end == -1:
                    parts.append(raw[i + 1 :])
                    i = n
                    break
                parts.append(raw[i + 1 : end])
                i = end + 1
                continue
            if ch.isspace() or raw.startswith("||", i) or raw.startswith("&&", i):
                break
            parts.append(ch)
            i += 1

        text = "".join(parts)
        if not quoted and bangs == 0 and text.upper() in _KEYWORDS:
            lexemes.append(_KEYWORDS[text.upper()])
        else:
            lexemes.append(Lexeme(LexemeKind.WORD, text=text, bangs=bangs, literal=literal))
    return lexemes


def _since_token(value: str, negated: bool, now: float) -> Token | None:
    match = _SINCE_PATTERN.fullmatch(value)
    if match is None:
        return None
    amount = int(match.group(1))
    unit = match.group(2).lower()
    unit_seconds = SINCE_UNIT_SECONDS.get(unit, DAY_SECONDS)
    return Token(
        field=FieldKind.SINCE,
        raw_value=value,
        negated=negated,
        cutoff=int(now - amount * unit_seconds),
    )


def classify(text: str, *, negated: bool = False, literal: bool = False, now: float | None = None) -> Token:
    """Classify one word into a field, status, since or free-text token."""
    if now is None:
        now = time.time()
    free_text = Token(field=FieldKind.FREE_TEXT, raw_value=text, negated=negated)
    if literal:
        return free_text

    lowered = text.lower()
    status = STATUS_MARKERS.get(lowered)
    if status is FieldKind.NEW:
        return Token(field=status, negated=negated, cutoff=int(now - NEW_WINDOW_SECONDS))
    if status is FieldKind.UPDATED:
        return Token(field=status, negated=negated, cutoff=int(now - UPDATED_WINDOW_SECONDS))
    if status is not None:
        return Token(field=status, negated=negated)

    prefix, sep, value = text.partition(":")
    if not sep or not value:
        return free_text

    prefix = prefix.lower()
    if prefix == "since":
        return _since_token(value, negated, now) or free_text

    field = FIELD_ALIASES.get(prefix)
    if field is None:
        return free_text
    return Token(field=field, raw_value=value, negated=negated)


def parse(raw: str, *, now: float | None = None) -> QueryExpression:
    """Parse a raw query string. Never raises.

    Args:
        raw: Query text as typed by the user.
        now: Reference Unix time for time-relative tokens (defaults to now).

    Returns:
        The parsed expression. Blank input yields an empty expression and the
        trimmed literal ``*`` yields a wildcard expression.
    """
    stripped = raw.strip() if raw else ""
    if not stripped:
        return QueryExpression()
    if stripped == WILDCARD:
        return QueryExpression(wildcard=True)
    if now is None:
        now = time.time()

    groups: list[OrGroup] = []
    current: list[Token] = []
    pending_nots = 0

    def flush_dangling_not() -> None:
        # A NOT with nothing left to negate is just a word.
        nonlocal pending_nots
        current.extend(Token(field=FieldKind.FREE_TEXT, raw_value="NOT") for _ in range(pending_nots))
        pending_nots = 0

    def close_group() -> None:
        flush_dangling_not()
        if current:
            groups.append(OrGroup(tokens=tuple(current)))
            current.clear()

    for lexeme in scan(stripped):
        if lexeme.kind is LexemeKind.OR:
            close_group()
        elif lexeme.kind is LexemeKind.AND:
            continue
        elif lexeme.kind is LexemeKind.NOT:
            pending_nots += 1
        else:
            negated = (lexeme.bangs + pending_nots) % 2 == 1
            pending_nots = 0
            if lexeme.text:
                current.append(classify(lexeme.text, negated=negated, literal=lexeme.literal, now=now))
    close_group()

    return QueryExpression(groups=tuple(groups))
