from __future__ import annotations

import logging

import pytest

from eds_bridge.config import DEFAULT_SETTINGS, BridgeSettings, ScanVariant, validate_setting


def _clear_env(monkeypatch) -> None:
    for name in (
        "EDS_BRIDGE_VARIANT",
        "EDS_BRIDGE_WINDOW_BEFORE",
        "EDS_BRIDGE_WINDOW_AFTER",
        "EDS_BRIDGE_SECTION_LINES",
        "EDS_BRIDGE_CALENDAR_NAME",
        "EDS_BRIDGE_CALENDAR_COLOR",
    ):
        monkeypatch.delenv(name, raising=False)


def test_from_env_defaults(monkeypatch) -> None:
    _clear_env(monkeypatch)

    settings = BridgeSettings.from_env()

    assert settings == DEFAULT_SETTINGS
    assert settings.variant is ScanVariant.WINDOW
    assert (settings.window_before, settings.window_after, settings.section_lines) == (2500, 5000, 50)


def test_from_env_reads_overrides(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("EDS_BRIDGE_VARIANT", "LINES")
    monkeypatch.setenv("EDS_BRIDGE_WINDOW_AFTER", "8000")
    monkeypatch.setenv("EDS_BRIDGE_CALENDAR_NAME", " Family ")
    monkeypatch.setenv("EDS_BRIDGE_CALENDAR_COLOR", "#abc")

    settings = BridgeSettings.from_env()

    assert settings.variant is ScanVariant.LINES
    assert settings.window_after == 8000
    assert settings.window_before == 2500
    assert settings.calendar_name == "Family"
    assert settings.calendar_color == "#abc"


def test_from_env_invalid_values_fall_back_to_defaults(monkeypatch, caplog) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("EDS_BRIDGE_VARIANT", "sections")
    monkeypatch.setenv("EDS_BRIDGE_WINDOW_BEFORE", "-5")
    monkeypatch.setenv("EDS_BRIDGE_SECTION_LINES", "bad-value")
    monkeypatch.setenv("EDS_BRIDGE_CALENDAR_COLOR", "blue")

    with caplog.at_level(logging.WARNING, logger="eds_bridge.config"):
        settings = BridgeSettings.from_env()

    assert settings == DEFAULT_SETTINGS
    assert "setting_ignored env=EDS_BRIDGE_VARIANT" in caplog.text
    assert "setting_ignored env=EDS_BRIDGE_SECTION_LINES" in caplog.text


@pytest.mark.parametrize(
    ("key", "value", "message"),
    [
        ("window", "10", "Unknown setting key"),
        ("window_before", "ten", "must be an integer"),
        ("window_after", "-1", ">= 0"),
        ("section_lines", "0", ">= 1"),
        ("variant", "grep", "must be one of window, lines"),
        ("calendar_color", "#12", "expected #RGB"),
        ("calendar_name", "   ", "must not be empty"),
    ],
)
def test_validate_setting_rejects_invalid_values(key: str, value: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        validate_setting(key, value)


def test_validate_setting_returns_typed_values() -> None:
    assert validate_setting("window_before", "0") == 0
    assert validate_setting("variant", " Window ") is ScanVariant.WINDOW
    assert validate_setting("calendar_color", "#1976D2") == "#1976D2"
