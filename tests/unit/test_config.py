"""Tests for environment configuration loading."""

from __future__ import annotations

import pytest

from helmdrift.config import load_config, validate_driver


class TestLoadConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("HELM_DRIVER", raising=False)
        config = load_config()
        assert config.storage.driver == "secret"
        assert config.storage.page_size == 250
        assert config.diff.max_concurrency == 8
        assert config.kube.helmrelease_version == "v2"
        assert config.log.level == "warning"

    def test_helm_driver_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HELM_DRIVER", "configmap")
        assert load_config().storage.driver == "configmap"

    def test_own_driver_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HELM_DRIVER", "configmap")
        monkeypatch.setenv("HELMDRIFT_HELM_DRIVER", "secrets")
        assert load_config().storage.driver == "secret"

    def test_values_are_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HELMDRIFT_MAX_CONCURRENCY", "500")
        monkeypatch.setenv("HELMDRIFT_LIST_PAGE_SIZE", "0")
        config = load_config()
        assert config.diff.max_concurrency == 64
        assert config.storage.page_size == 1

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HELMDRIFT_LOG_LEVEL", "chatty")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()

    def test_log_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HELMDRIFT_LOG_FORMAT", "Console")
        assert load_config().log.format == "console"

    def test_invalid_log_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HELMDRIFT_LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid log format"):
            load_config()


class TestValidateDriver:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("", "secret"), ("Secret", "secret"), ("configmaps", "configmap")],
    )
    def test_accepted(self, value: str, expected: str) -> None:
        assert validate_driver(value) == expected

    @pytest.mark.parametrize("value", ["memory", "sql"])
    def test_rejected(self, value: str) -> None:
        with pytest.raises(ValueError, match="Unsupported Helm storage driver"):
            validate_driver(value)
