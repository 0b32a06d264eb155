"""
LLM Gateway - Base Provider Interface
Abstract provider interface and the tagged result every generation call returns.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List


STATUS_OK = "ok"
STATUS_DEGRADED = "degraded"
STATUS_ERROR = "error"


@dataclass
class GenerationResult:
    """Outcome of one generation call.

    `text` is always displayable: a real answer (ok), a canned fallback
    reply (degraded) or a human-readable error description (error).
    """
    text: str
    status: str = STATUS_OK
    reason: str = ""

    @classmethod
    def ok(cls, text: str) -> "GenerationResult":
        return cls(text=text, status=STATUS_OK)

    @classmethod
    def degraded(cls, text: str, reason: str) -> "GenerationResult":
        return cls(text=text, status=STATUS_DEGRADED, reason=reason)

    @classmethod
    def error(cls, text: str, reason: str) -> "GenerationResult":
        return cls(text=text, status=STATUS_ERROR, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == STATUS_OK


class BaseLLMProvider(ABC):
    """
    Abstract base class for generation backends.
    Implementations never raise from the generation methods; failures come
    back as degraded or error results.
    """

    name = "abstract"

    def __init__(self, model_name: str):
        self.model_name = model_name

    @abstractmethod
    def generate_response(self, prompt: str) -> GenerationResult:
        """Single-turn generation from a raw prompt."""
        pass

    @abstractmethod
    def generate_answer_with_context(self, question: str, contents: List[str],
                                     context_window: str = "") -> GenerationResult:
        """
        Generate an answer grounded on retrieved knowledge.

        Args:
            question: The current user question
            contents: Retrieved segment contents, best match first
            context_window: Labeled block of recent conversation lines, may be empty

        Returns:
            GenerationResult for the answer
        """
        pass

    def health(self) -> Dict[str, Any]:
        """Get current status of this provider."""
        return {
            "provider": self.name,
            "model_name": self.model_name,
            "provider_type": self.__class__.__name__,
            "status": "ready"
        }
