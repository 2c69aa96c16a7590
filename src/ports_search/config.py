"""Centralized configuration for ports-search using Pydantic Settings."""

from collections.abc import Iterable
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


FREE_TEXT_FIELD_CHOICES = ("name", "description", "category", "provides", "depends")

# Free text always consults the category; the page offers no checkbox for it.
ALWAYS_SEARCHED_FIELDS = frozenset({"category"})

LOG_LEVEL_CHOICES = frozenset({"debug", "info", "warning", "error", "critical"})


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every value is validated at startup so a bad deployment fails fast instead
    of producing odd search results later.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Catalog location
    base_url: str = Field(default="", description="Site base path; the index lives at <base_url>/ports.json")
    ports_url: str = Field(
        default="",
        description="Explicit catalog URL overriding <base_url>/ports.json (page-specific override)",
    )
    http_timeout: int = Field(default=30, ge=1, description="HTTP timeout in seconds for the catalog fetch")
    preload_index: bool = Field(default=True, description="Fetch the catalog during application startup")

    # Search behaviour
    max_results: int = Field(default=100, ge=1, description="Maximum number of rows returned per search")
    search_debounce_ms: int = Field(default=300, ge=0, description="Quiet period before a live search runs")
    free_text_fields: str = Field(
        default="name,description,category",
        description="Comma-separated fields consulted by free-text tokens",
    )

    # Server settings
    host: str = Field(default="127.0.0.1", description="HTTP server host")
    port: int = Field(default=1313, ge=1, le=65535, description="HTTP server port")
    operation_mode: Literal["online", "offline"] = Field(
        default="online", description="online fetches the index over HTTP, offline reads ports_url as a file path"
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")
    logger_levels: dict[str, str] = Field(
        default_factory=dict,
        description="Per-logger level overrides as JSON (logger name -> level)",
        examples=[{"uvicorn.access": "info", "ports_search.query": "debug"}],
    )
    access_log: bool = Field(default=False, description="Enable uvicorn access logging")

    @field_validator("free_text_fields")
    @classmethod
    def _check_free_text_fields(cls, value: str) -> str:
        fields = [entry.strip().lower() for entry in value.split(",") if entry.strip()]
        if not fields:
            raise ValueError("FREE_TEXT_FIELDS must name at least one field")
        unknown = sorted(set(fields) - set(FREE_TEXT_FIELD_CHOICES))
        if unknown:
            raise ValueError(
                f"Unknown free-text field(s): {', '.join(unknown)}. "
                f"Allowed values: {', '.join(FREE_TEXT_FIELD_CHOICES)}"
            )
        return ",".join(fields)

    @field_validator("logger_levels")
    @classmethod
    def _check_logger_levels(cls, value: dict[str, str]) -> dict[str, str]:
        normalized = {name: level.lower() for name, level in value.items()}
        invalid = {name: level for name, level in normalized.items() if level not in LOG_LEVEL_CHOICES}
        if invalid:
            details = ", ".join(f"{name}={level}" for name, level in invalid.items())
            raise ValueError(
                f"Invalid log level(s) in LOGGER_LEVELS; allowed levels are {sorted(LOG_LEVEL_CHOICES)}; got: {details}"
            )
        return normalized

    def is_offline_mode(self) -> bool:
        """Check if running in offline mode."""
        return self.operation_mode == "offline"

    def resolve_ports_url(self, override: str | None = None) -> str:
        """Return the catalog URL.

        Precedence: explicit ``override`` argument, then ``ports_url``, then
        ``<base_url>/ports.json``.
        """
        if override:
            return override
        if self.ports_url:
            return self.ports_url
        return f"{self.base_url.rstrip('/')}/ports.json"

    def get_free_text_fields(self) -> frozenset[str]:
        """Get the configured free-text field names."""
        return frozenset(entry for entry in self.free_text_fields.split(",") if entry)


def select_free_text_fields(ticked: Iterable[str], default: frozenset[str]) -> frozenset[str]:
    """Resolve a checkbox selection into the fields free text is matched against.

    An empty selection means the configured default; any other selection is
    widened with ``ALWAYS_SEARCHED_FIELDS``.

    Raises:
        ValueError: a ticked name is not one of ``FREE_TEXT_FIELD_CHOICES``
    """
    selected = frozenset(field.strip().lower() for field in ticked if field.strip())
    unknown = selected - set(FREE_TEXT_FIELD_CHOICES)
    if unknown:
        raise ValueError(f"Unknown free-text field(s): {', '.join(sorted(unknown))}")
    if not selected:
        return default
    return selected | ALWAYS_SEARCHED_FIELDS
