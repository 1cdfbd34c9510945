"""
Tests for settings, logging setup and the exception hierarchy.

Tests cover:
- FL_* environment parsing and the settings cache
- JSON and text log formatting
- Error codes and serialization of FormLogicError
"""
import json
import logging
from pathlib import Path

import pytest

from formlogic.config import Settings, get_settings, reset_settings_cache, resolve_settings
from formlogic.exceptions import (
    CascadeLimitError,
    ConfigurationError,
    FormLogicError,
    FormNotFoundError,
    FormPackError,
    InvariantViolation,
    UnknownFieldError,
)
from formlogic.logging_config import JSONFormatter, configure_logging
from formlogic.models import RunMode

from tests.conftest import make_settings


# =============================================================================
# Settings
# =============================================================================

class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("FL_MODE", "FL_STRICT_INVARIANTS", "FL_DEBOUNCE_MS", "FL_PACKS_DIR"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.mode == RunMode.PROD
        assert settings.strict_invariants is False
        assert settings.debounce_ms == 300
        assert settings.form_debounce_ms == 500
        assert settings.packs_dir == Path("packs")

    def test_dev_mode_enables_strict_invariants(self, monkeypatch):
        monkeypatch.setenv("FL_MODE", "DEV")
        monkeypatch.delenv("FL_STRICT_INVARIANTS", raising=False)
        settings = Settings.from_env()
        assert settings.is_dev
        assert settings.strict_invariants is True

    def test_explicit_overrides(self, monkeypatch):
        monkeypatch.setenv("FL_MODE", "dev")
        monkeypatch.setenv("FL_STRICT_INVARIANTS", "no")
        monkeypatch.setenv("FL_DEBOUNCE_MS", "120")
        monkeypatch.setenv("FL_LOG_FORMAT", "TEXT")
        monkeypatch.setenv("FL_MAX_CASCADE_PASSES", "3")
        settings = Settings.from_env()
        assert settings.strict_invariants is False
        assert settings.debounce_ms == 120
        assert settings.log_format == "text"
        assert settings.max_cascade_passes == 3

    def test_cache(self, monkeypatch):
        monkeypatch.setenv("FL_DEBOUNCE_MS", "10")
        assert get_settings().debounce_ms == 10
        monkeypatch.setenv("FL_DEBOUNCE_MS", "20")
        assert get_settings().debounce_ms == 10
        reset_settings_cache()
        assert get_settings().debounce_ms == 20

    def test_resolve_settings(self):
        explicit = make_settings(debounce_ms=5)
        assert resolve_settings(explicit) is explicit
        assert resolve_settings(None) is get_settings()


# =============================================================================
# Logging
# =============================================================================

class TestLogging:

    def test_json_formatter_includes_extras(self):
        record = logging.LogRecord("formlogic.api", logging.INFO, __file__, 1, "Loaded %s", ("x",), None)
        record.form_id = "family_intake"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "formlogic.api"
        assert entry["message"] == "Loaded x"
        assert entry["form_id"] == "family_intake"
        assert "field_name" not in entry

    def test_configure_logging_replaces_handler(self):
        logger = configure_logging(make_settings(log_level="DEBUG"))
        configure_logging(make_settings(log_level="WARNING", log_format="text"))
        handlers = [h for h in logger.handlers if getattr(h, "_formlogic_handler", False)]
        assert len(handlers) == 1
        assert not isinstance(handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.WARNING


# =============================================================================
# Exceptions
# =============================================================================

class TestExceptions:

    @pytest.mark.parametrize("error_class,code,family", [
        (CascadeLimitError, "FL_CONFIG_CASCADE_LIMIT", ConfigurationError),
        (FormNotFoundError, "FL_FORM_NOT_FOUND", FormPackError),
        (UnknownFieldError, "FL_INVARIANT_UNKNOWN_FIELD", InvariantViolation),
    ])
    def test_codes_and_families(self, error_class, code, family):
        error = error_class(message="boom")
        assert error.code == code
        assert isinstance(error, family)
        assert isinstance(error, FormLogicError)

    def test_str_and_to_dict(self):
        error = UnknownFieldError(message="Field 'x' is not part of this form", field_name="x")
        assert str(error) == "[FL_INVARIANT_UNKNOWN_FIELD] Field 'x' is not part of this form (field: x)"
        assert error.to_dict() == {
            "code": "FL_INVARIANT_UNKNOWN_FIELD",
            "message": "Field 'x' is not part of this form",
            "field": "x",
        }

    def test_to_dict_with_details(self):
        error = FormNotFoundError(message="Form not found: y", details={"available": []})
        assert error.to_dict()["details"] == {"available": []}
        assert "field" not in error.to_dict()

    def test_raisable(self):
        with pytest.raises(FormLogicError, match="broken"):
            raise ConfigurationError(message="broken")
