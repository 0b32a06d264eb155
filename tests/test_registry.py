"""
Tests for chat mode switching, provider lookup and config helpers.
"""

from unittest.mock import Mock

import pytest

from kbchat.agents.registry import ChatModeSetting, ProviderRegistry
from kbchat.core import config
from kbchat.util.logging import sanitize_payload, truncate_text
from kbchat.vector.embeddings import DeterministicHashEmbedding, OllamaEmbedding


class TestChatModeSetting:

    def test_set_and_get(self):
        mode = ChatModeSetting("local")
        assert mode.set(" Remote ") == "remote"
        assert mode.get() == "remote"

    @pytest.mark.parametrize("value", ["", "cloud", None])
    def test_rejects_invalid(self, value):
        mode = ChatModeSetting("local")
        with pytest.raises(ValueError):
            mode.set(value)
        assert mode.get() == "local"

    def test_invalid_initial_defaults_to_local(self):
        assert ChatModeSetting("bogus").get() == "local"


class TestProviderRegistry:

    def test_provider_for(self):
        local, remote = Mock(), Mock()
        registry = ProviderRegistry(local=local, remote=remote, mode=ChatModeSetting("remote"))

        assert registry.provider_for("local") is local
        assert registry.current_provider() is remote
        registry.mode.set("local")
        assert registry.current_provider() is local

    def test_unknown_mode(self):
        registry = ProviderRegistry(local=Mock(), remote=Mock())
        with pytest.raises(ValueError):
            registry.provider_for("other")

    def test_status(self):
        local, remote = Mock(), Mock()
        local.health.return_value = {"provider": "local"}
        remote.health.return_value = {"provider": "remote"}
        registry = ProviderRegistry(local=local, remote=remote, mode=ChatModeSetting("local"))

        assert registry.status() == {
            "chat_mode": "local",
            "providers": {"local": {"provider": "local"}, "remote": {"provider": "remote"}}
        }


class TestConfig:

    def test_embedding_provider_factory(self):
        assert isinstance(config.get_embedding_provider("hash"), DeterministicHashEmbedding)
        assert isinstance(config.get_embedding_provider("ollama"), OllamaEmbedding)

    def test_prompt_fragments_order(self):
        assert list(config.get_prompt_fragments()) == ["system", "prevent_hallucination", "citation", "format"]

    def test_validate_config_flags_bad_values(self, monkeypatch):
        monkeypatch.setattr(config, "CHAT_MODE", "cloud")
        monkeypatch.setattr(config, "MIN_SIMILARITY", 1.5)

        issues = config.validate_config()

        assert any("CHAT_MODE" in issue for issue in issues)
        assert any("MIN_SIMILARITY" in issue for issue in issues)


def test_sanitize_payload_redacts_secrets():
    payload = {"api_key": "sk-123", "nested": {"Authorization": "Bearer x"}, "text": "a" * 300}

    sanitized = sanitize_payload(payload)

    assert sanitized["api_key"] == "[REDACTED]"
    assert sanitized["nested"]["Authorization"] == "[REDACTED]"
    assert len(sanitized["text"]) == 100


def test_truncate_text():
    assert truncate_text("short") == "short"
    assert truncate_text("x" * 20, limit=10) == "xxxxxxx..."
    assert truncate_text(None) == ""
