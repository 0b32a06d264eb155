"""
Shared fixtures: a throwaway SQLite database and a scripted LLM provider.
"""

import pytest

from kbchat.agents.agent import BaseLLMProvider, GenerationResult
from kbchat.core import config
from kbchat.core.db import init_db


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """Point the persistence layer at a fresh database file."""
    db_path = str(tmp_path / "kbchat_test.db")
    monkeypatch.setattr(config, "DB_PATH", db_path)
    init_db()
    return db_path


class ScriptedProvider(BaseLLMProvider):
    """Provider returning fixed replies and recording every call."""

    name = "scripted"

    def __init__(self, intent_reply: str = "ACCEPT", answer: str = "Scripted answer", status: str = "ok"):
        super().__init__("scripted-model")
        self.intent_reply = intent_reply
        self.answer = answer
        self.status = status
        self.prompts = []
        self.context_calls = []

    def generate_response(self, prompt: str) -> GenerationResult:
        self.prompts.append(prompt)
        return GenerationResult(text=self.intent_reply, status=self.status)

    def generate_answer_with_context(self, question, contents, context_window=""):
        self.context_calls.append({
            "question": question,
            "contents": list(contents),
            "context_window": context_window
        })
        return GenerationResult(text=self.answer, status=self.status)


@pytest.fixture
def scripted_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider
