"""Unit tests for the config module."""

import os
from unittest.mock import patch

from pydantic import ValidationError
import pytest

from ports_search.config import Settings, select_free_text_fields


pytestmark = pytest.mark.unit


class TestConfig:
    """Test configuration loading and validation."""

    def test_values_come_from_test_environment(self):
        settings = Settings()  # type: ignore[call-arg]
        assert settings.base_url == "https://ports.example.org"
        assert settings.preload_index is False
        assert settings.max_results == 100
        assert settings.http_timeout == 5

    def test_operation_mode_detection(self):
        """Should be "online" from conftest.py."""
        assert Settings().is_offline_mode() is False  # type: ignore[call-arg]

    @patch.dict(os.environ, {"OPERATION_MODE": "offline"}, clear=False)
    def test_offline_mode_from_environment(self):
        assert Settings().is_offline_mode() is True  # type: ignore[call-arg]

    def test_invalid_operation_mode_rejected(self):
        with pytest.raises(ValidationError):
            Settings(operation_mode="sideways")  # type: ignore[call-arg]

    def test_ports_url_defaults_to_base_url(self):
        settings = Settings(base_url="https://ports.example.org/")  # type: ignore[call-arg]
        assert settings.resolve_ports_url() == "https://ports.example.org/ports.json"

    def test_ports_url_relative_base(self):
        settings = Settings(base_url="")  # type: ignore[call-arg]
        assert settings.resolve_ports_url() == "/ports.json"

    def test_explicit_ports_url_wins(self):
        settings = Settings(ports_url="https://cdn.example.org/index.json")  # type: ignore[call-arg]
        assert settings.resolve_ports_url() == "https://cdn.example.org/index.json"

    def test_override_argument_wins_over_everything(self):
        settings = Settings(ports_url="https://cdn.example.org/index.json")  # type: ignore[call-arg]
        assert settings.resolve_ports_url("/page/ports.json") == "/page/ports.json"

    def test_free_text_fields_are_normalized(self):
        settings = Settings(free_text_fields=" Name , PROVIDES,,")  # type: ignore[call-arg]
        assert settings.free_text_fields == "name,provides"
        assert settings.get_free_text_fields() == frozenset({"name", "provides"})

    @pytest.mark.parametrize("value", ["", " , ", "name,author"])
    def test_invalid_free_text_fields_rejected(self, value):
        with pytest.raises(ValidationError):
            Settings(free_text_fields=value)  # type: ignore[call-arg]

    @pytest.mark.parametrize(("field", "value"), [("max_results", 0), ("port", 70000), ("http_timeout", 0)])
    def test_bounds_are_enforced(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})  # type: ignore[arg-type]

    @patch.dict(os.environ, {"MAX_RESULTS": "25", "SEARCH_DEBOUNCE_MS": "0"}, clear=False)
    def test_environment_overrides(self):
        settings = Settings()  # type: ignore[call-arg]
        assert settings.max_results == 25
        assert settings.search_debounce_ms == 0

    @patch.dict(os.environ, {"LOGGER_LEVELS": '{"uvicorn.access": "INFO"}', "ACCESS_LOG": "true"}, clear=False)
    def test_logging_overrides_from_environment(self):
        settings = Settings()  # type: ignore[call-arg]
        assert settings.logger_levels == {"uvicorn.access": "info"}
        assert settings.access_log is True

    def test_invalid_logger_level_rejected(self):
        with pytest.raises(ValidationError, match="LOGGER_LEVELS"):
            Settings(logger_levels={"ports_search": "loud"})  # type: ignore[call-arg]


class TestSelectFreeTextFields:
    """Checkbox selections keep category searchable."""

    DEFAULT = frozenset({"name", "description", "category"})

    def test_empty_selection_means_default(self):
        assert select_free_text_fields([], self.DEFAULT) == self.DEFAULT

    def test_category_is_always_added(self):
        assert select_free_text_fields(["name", "description"], self.DEFAULT) == self.DEFAULT

    def test_selection_is_normalized(self):
        assert select_free_text_fields([" Depends "], self.DEFAULT) == frozenset({"depends", "category"})

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="author"):
            select_free_text_fields(["name", "author"], self.DEFAULT)
