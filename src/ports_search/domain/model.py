"""Domain model - catalog entries and the catalog itself.

Ports are immutable value objects validated once when the index is decoded.
The JSON index uses the compact keys written by the site generator
(``n``, ``c``, ``d`` ...); Python code uses the descriptive attribute names.
Both spellings are accepted on input.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from enum import Enum
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class BuildStatus(str, Enum):
    """CI build outcome for a port."""

    SUCCESS = "success"
    FAILED = "failed"
    NONE = "none"


class Port(BaseModel):
    """Value object for a single catalog entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="n")
    category: str = Field(alias="c")
    version: str = Field(alias="v")
    description: str = Field(default="", alias="d")
    license: str | None = Field(default=None, alias="l")
    author: str | None = Field(default=None, alias="a")
    provides: tuple[str, ...] = Field(default=(), alias="pds")
    depends: tuple[str, ...] = Field(default=(), alias="dps")
    is_broken: bool = Field(default=False, alias="br")
    is_unmaintained: bool = Field(default=False, alias="un")
    last_updated: int | None = Field(default=None, alias="dt")
    build_status: BuildStatus = Field(default=BuildStatus.NONE, alias="st")

    @field_validator("license", "author", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("provides", "depends", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("last_updated", mode="before")
    @classmethod
    def _zero_to_none(cls, value: Any) -> Any:
        # The generator writes 0 (or omits the key) when a port has no commit.
        if value in (0, None, ""):
            return None
        return value

    @field_validator("build_status", mode="before")
    @classmethod
    def _coerce_build_status(cls, value: Any) -> BuildStatus:
        if isinstance(value, BuildStatus):
            return value
        try:
            return BuildStatus(str(value or "none").lower())
        except ValueError:
            return BuildStatus.NONE

    @property
    def key(self) -> tuple[str, str]:
        """Identity of the port; names are only unique within a category."""
        return (self.category, self.name)


_PORT_LIST = TypeAdapter(list[Port])


class Catalog(Sequence[Port]):
    """Immutable, ordered collection of ports shared by every query."""

    __slots__ = ("_ports",)

    def __init__(self, ports: Sequence[Port] = ()):
        self._ports: tuple[Port, ...] = tuple(ports)

    @classmethod
    def from_json(cls, payload: bytes | str) -> Catalog:
        """Decode a ``ports.json`` payload.

        Raises:
            ValueError: payload is not JSON, not an array, or an entry is invalid.
        """
        data = orjson.loads(payload)
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array of ports, got {type(data).__name__}")
        return cls(_PORT_LIST.validate_python(data))

    @classmethod
    def from_records(cls, records: Sequence[dict[str, Any]]) -> Catalog:
        return cls(_PORT_LIST.validate_python(list(records)))

    def __getitem__(self, index):  # type: ignore[override]
        return self._ports[index]

    def __len__(self) -> int:
        return len(self._ports)

    def __iter__(self) -> Iterator[Port]:
        return iter(self._ports)

    def __repr__(self) -> str:
        return f"Catalog({len(self._ports)} ports)"

    @property
    def ports(self) -> tuple[Port, ...]:
        return self._ports

    def categories(self) -> list[str]:
        """Distinct categories in first-seen order (dropdown source)."""
        return list(dict.fromkeys(port.category for port in self._ports))

    def licenses(self) -> list[str]:
        """Distinct licenses, sorted case-insensitively (dropdown source)."""
        return sorted({port.license for port in self._ports if port.license}, key=str.lower)
