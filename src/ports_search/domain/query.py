"""Domain models for parsed queries.

A query is a disjunction of OR-groups; each group is a conjunction of tokens.
Expressions are built fresh for every search and never mutated.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FieldKind(str, Enum):
    """What a token is compared against."""

    NAME = "name"
    DESCRIPTION = "description"
    CATEGORY = "category"
    LICENSE = "license"
    AUTHOR = "author"
    PROVIDES = "provides"
    DEPENDS = "depends"
    BROKEN = "status:broken"
    UNMAINTAINED = "status:unmaintained"
    NEW = "status:new"
    UPDATED = "status:updated"
    SINCE = "since"
    FREE_TEXT = "free-text"

    @property
    def is_status(self) -> bool:
        return self.value.startswith("status:")

    @property
    def is_time_relative(self) -> bool:
        return self in (FieldKind.NEW, FieldKind.UPDATED, FieldKind.SINCE)


class Token(BaseModel):
    """One parsed query unit, optionally field-scoped and optionally negated.

    ``cutoff`` is the Unix timestamp a time-relative token compares
    ``last_updated`` against; it is computed when the query is parsed.
    """

    model_config = ConfigDict(frozen=True)

    field: FieldKind
    raw_value: str = ""
    negated: bool = False
    cutoff: int | None = None

    @property
    def needle(self) -> str:
        """Lower-cased value used for case-insensitive comparison."""
        return self.raw_value.lower()

    def inverted(self) -> "Token":
        return self.model_copy(update={"negated": not self.negated})


class OrGroup(BaseModel):
    """Conjunction of tokens. Never empty once produced by the parser."""

    model_config = ConfigDict(frozen=True)

    tokens: tuple[Token, ...] = Field(min_length=1)


class QueryExpression(BaseModel):
    """Disjunction of OR-groups, or the ``*`` wildcard."""

    model_config = ConfigDict(frozen=True)

    groups: tuple[OrGroup, ...] = ()
    wildcard: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.wildcard and not self.groups

    def free_text_terms(self) -> list[str]:
        """Positive free-text values, in query order, without duplicates."""
        terms: dict[str, None] = {}
        for group in self.groups:
            for token in group.tokens:
                if token.field is FieldKind.FREE_TEXT and not token.negated and token.raw_value:
                    terms.setdefault(token.raw_value, None)
        return list(terms)
