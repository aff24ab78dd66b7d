"""Tests for settings and startup validation."""

import pytest

from purchase_guard.core.config import Settings, settings, validate_settings_for_production


def test_api_key_list_parsing():
    s = Settings(cerebras_api_keys=" csk-a, ,csk-b ,")
    assert s.api_key_list == ["csk-a", "csk-b"]


def test_api_key_list_empty():
    assert Settings(cerebras_api_keys="").api_key_list == []


def test_validate_requires_keys(monkeypatch):
    monkeypatch.setattr(settings, "cerebras_api_keys", "")
    with pytest.raises(SystemExit) as exc:
        validate_settings_for_production()
    assert "CEREBRAS_API_KEYS" in str(exc.value)


def test_validate_production_rules(monkeypatch):
    monkeypatch.setattr(settings, "cerebras_api_keys", "csk-a")
    monkeypatch.setattr(settings, "app_env", "production")
    monkeypatch.setattr(settings, "allowed_origins", "*")
    monkeypatch.setattr(settings, "app_debug", True)
    with pytest.raises(SystemExit) as exc:
        validate_settings_for_production()
    assert "ALLOWED_ORIGINS" in str(exc.value)
    assert "APP_DEBUG" in str(exc.value)


def test_validate_ok(monkeypatch):
    monkeypatch.setattr(settings, "cerebras_api_keys", "csk-a,csk-b")
    monkeypatch.setattr(settings, "app_env", "development")
    validate_settings_for_production()


def test_only_used_settings_declared():
    assert "app_host" not in Settings.model_fields
    assert "app_port" not in Settings.model_fields
