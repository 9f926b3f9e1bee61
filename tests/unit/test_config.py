"""Tests for client configuration."""

from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from hookfetch import UNSET, ClientConfig, ResponseType
from hookfetch.client.config import DEFAULT_TIMEOUT_MS


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_defaults(self) -> None:
        """Test default values."""
        config = ClientConfig()

        assert config.base_url == ""
        assert config.timeout == DEFAULT_TIMEOUT_MS
        assert config.timeout_seconds == 60.0
        assert config.response_type is None
        assert config.strict_hooks is False

    def test_frozen(self) -> None:
        """Test configs are immutable."""
        config = ClientConfig()

        with pytest.raises(ValidationError):
            config.timeout = 1

    def test_unknown_field_rejected(self) -> None:
        """Test unknown fields are rejected."""
        with pytest.raises(ValidationError):
            ClientConfig(retries=3)

    def test_callables_validated(self) -> None:
        """Test should_throw and transport must be callable."""
        with pytest.raises(ValidationError):
            ClientConfig(transport="not callable")

    def test_timeout_disabled(self) -> None:
        """Test 0 and None disable the timeout."""
        assert ClientConfig(timeout=0).timeout_seconds is None
        assert ClientConfig(timeout=None).timeout_seconds is None

    def test_response_type_coerced(self) -> None:
        """Test response_type accepts its string value."""
        assert ClientConfig(response_type="json").response_type is ResponseType.JSON


class TestMerged:
    """Tests for deriving configurations."""

    def test_query_and_headers_merge(self) -> None:
        """Test query and headers deep-merge with None/UNSET semantics."""
        base = ClientConfig(query={"a": "1", "b": "2"}, headers={"X-A": "1", "X-B": "2"})

        child = base.merged(query={"b": None, "c": 3}, headers={"x-b": None, "X-C": "3"})

        assert child.query == {"a": "1", "c": "3"}
        assert isinstance(child.headers, httpx.Headers)
        assert dict(child.headers) == {"x-a": "1", "x-c": "3"}
        assert base.query == {"a": "1", "b": "2"}

    def test_none_resets_and_unset_keeps(self) -> None:
        """Test None restores a default and UNSET keeps the value."""
        base = ClientConfig(base_url="https://e.com", timeout=5000)

        child = base.merged(timeout=None, base_url=UNSET)

        assert child.timeout == DEFAULT_TIMEOUT_MS
        assert child.base_url == "https://e.com"

    def test_unknown_override_rejected(self) -> None:
        """Test unknown override fields raise ValueError."""
        with pytest.raises(ValueError):
            ClientConfig().merged(nope=1)


class TestConfigSources:
    """Tests for file and environment loading."""

    def test_from_yaml_file(self, tmp_path) -> None:
        """Test loading a YAML file with overrides."""
        path = tmp_path / "client.yaml"
        path.write_text(
            "base_url: https://api.example.com\n"
            "timeout: 2500\n"
            "headers:\n"
            "  X-Team: core\n",
            encoding="utf-8",
        )

        config = ClientConfig.from_file(path, timeout=1000)

        assert config.base_url == "https://api.example.com"
        assert config.timeout == 1000
        assert config.headers == {"X-Team": "core"}

    def test_from_json_file(self, tmp_path) -> None:
        """Test loading a JSON file."""
        path = tmp_path / "client.json"
        path.write_text('{"query": {"lang": "en"}}', encoding="utf-8")

        assert ClientConfig.from_file(path).query == {"lang": "en"}

    def test_from_file_requires_mapping(self, tmp_path) -> None:
        """Test non-mapping files are rejected."""
        path = tmp_path / "client.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError):
            ClientConfig.from_file(path)

    def test_from_env(self, monkeypatch) -> None:
        """Test HOOKFETCH_* variables."""
        monkeypatch.setenv("HOOKFETCH_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("HOOKFETCH_TIMEOUT_MS", "1500")

        config = ClientConfig.from_env(strict_hooks=True)

        assert config.base_url == "https://env.example.com"
        assert config.timeout == 1500
        assert config.strict_hooks is True
