"""Tests for settings, exceptions and logging helpers."""

import structlog

from commentlens.core import (
    CommentLensError,
    ConfigurationError,
    LogContext,
    ProviderInvocationError,
    ResponseParseError,
    Settings,
    UnsupportedProviderError,
    redact_secrets,
)


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    monkeypatch.delenv("ANALYSIS_MAX_COMMENTS", raising=False)

    settings = Settings(_env_file=None)

    assert settings.moderation_config_domain == "moderation"
    assert settings.analysis_config_domain == "moderation"
    assert settings.analysis_max_comments == 100
    assert settings.log_format == "json"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_FORMAT", "Console")
    monkeypatch.setenv("ANALYSIS_MAX_COMMENTS", "25")

    settings = Settings(_env_file=None)

    assert settings.log_format == "console"
    assert settings.analysis_max_comments == 25


def test_unknown_log_format_falls_back_to_json(monkeypatch):
    monkeypatch.setenv("LOG_FORMAT", "xml")
    assert Settings(_env_file=None).log_format == "json"


def test_exception_hierarchy():
    for exc in (
        ConfigurationError("bad"),
        UnsupportedProviderError("X"),
        ProviderInvocationError("OpenAI", "timeout"),
        ResponseParseError("bad json"),
    ):
        assert isinstance(exc, CommentLensError)


def test_error_details_in_string():
    error = ProviderInvocationError("Gemini", "HTTP 429")

    assert error.provider == "Gemini"
    assert error.reason == "HTTP 429"
    assert "Gemini invocation failed: HTTP 429" in str(error)
    assert "'provider': 'Gemini'" in str(error)


def test_log_context_binds_and_restores():
    structlog.contextvars.clear_contextvars()

    with LogContext(client_id="c1"):
        assert structlog.contextvars.get_contextvars() == {"client_id": "c1"}

    assert structlog.contextvars.get_contextvars() == {}


def test_setup_logging_console(monkeypatch):
    from commentlens.core import get_logger, get_settings, setup_logging

    monkeypatch.setenv("LOG_FORMAT", "console")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    get_settings.cache_clear()
    try:
        setup_logging()
        logger = get_logger("commentlens.test", component="core")
        logger.info("Logging configured")
    finally:
        get_settings.cache_clear()
        structlog.reset_defaults()


def test_redact_secrets_masks_credentials():
    event = {"event": "Provider error", "api_key": "sk-1", "apiKey": "sk-2", "provider": "OpenAI"}

    redacted = redact_secrets(None, "error", event)

    assert redacted == {
        "event": "Provider error",
        "api_key": "[REDACTED]",
        "apiKey": "[REDACTED]",
        "provider": "OpenAI",
    }


def test_setup_logging_redacts_bound_secrets(monkeypatch, capsys):
    from commentlens.core import get_logger, get_settings, setup_logging

    monkeypatch.setenv("LOG_FORMAT", "json")
    get_settings.cache_clear()
    try:
        setup_logging()
        with LogContext(client_id="c1", apiKey="sk-secret"):
            get_logger("commentlens.test").warning("Client lookup", api_key="sk-other")
    finally:
        get_settings.cache_clear()
        structlog.reset_defaults()

    err = capsys.readouterr().err
    assert "sk-secret" not in err
    assert "sk-other" not in err
    assert '"client_id": "c1"' in err
