"""
LLM Gateway - Provider Registry
Holds the two generation backends and the runtime-switchable chat mode.
"""

import threading
from typing import Any, Dict, Optional

from .agent import BaseLLMProvider
from .ollama_agent import OllamaProvider
from .remote_agent import RemoteChatProvider
from ..core import config
from ..util.logging import logger


class ChatModeSetting:
    """Process-wide `local`/`remote` switch. Reads and writes are atomic."""

    def __init__(self, initial: str = None):
        initial = (initial or config.CHAT_MODE).lower()
        if initial not in config.VALID_CHAT_MODES:
            logger.warning(f"Unknown chat mode '{initial}', defaulting to local")
            initial = "local"
        self._mode = initial
        self._lock = threading.Lock()

    def get(self) -> str:
        with self._lock:
            return self._mode

    def set(self, mode: str) -> str:
        """Switch the active mode. Raises ValueError for anything but local/remote."""
        normalized = (mode or "").strip().lower()
        if normalized not in config.VALID_CHAT_MODES:
            raise ValueError(f"Invalid chat mode '{mode}', expected one of {list(config.VALID_CHAT_MODES)}")

        with self._lock:
            previous = self._mode
            self._mode = normalized

        if previous != normalized:
            logger.log_operation("config.chat_mode", "changed", {"from": previous, "to": normalized})
        return normalized


class ProviderRegistry:
    """
    Strategy lookup from chat mode to provider.
    Callers resolve the provider once per request with current_provider().
    """

    def __init__(self, local: Optional[BaseLLMProvider] = None, remote: Optional[BaseLLMProvider] = None,
                 mode: Optional[ChatModeSetting] = None):
        self.providers: Dict[str, BaseLLMProvider] = {
            "local": local or OllamaProvider(),
            "remote": remote or RemoteChatProvider(),
        }
        self.mode = mode or ChatModeSetting()

    def provider_for(self, mode: str) -> BaseLLMProvider:
        try:
            return self.providers[mode]
        except KeyError:
            raise ValueError(f"No provider registered for chat mode '{mode}'")

    def current_provider(self) -> BaseLLMProvider:
        """Provider for the mode active right now."""
        return self.provider_for(self.mode.get())

    def status(self) -> Dict[str, Any]:
        return {
            "chat_mode": self.mode.get(),
            "providers": {name: provider.health() for name, provider in self.providers.items()}
        }
