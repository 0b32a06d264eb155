"""
Hosted generation backend: OpenAI-compatible `/chat/completions` (DeepSeek by default).
"""

import time
from typing import Any, Dict, List

import requests

from .agent import BaseLLMProvider, GenerationResult
from .prompts import build_remote_messages
from ..core import config
from ..util.logging import logger


class RemoteChatProvider(BaseLLMProvider):
    """
    Provider for a hosted chat-completion API.
    No breaker and no canned replies: every failure comes back as an error
    result whose text describes what went wrong.
    """

    name = "remote"

    def __init__(self, model_name: str = None, api_base: str = None, api_key: str = None,
                 temperature: float = None, max_tokens: int = None, timeout: float = None,
                 session: requests.Session = None, fragments: Dict[str, str] = None):
        super().__init__(model_name or config.REMOTE_MODEL)
        self.api_base = (api_base or config.REMOTE_API_BASE).rstrip("/")
        self.api_key = api_key if api_key is not None else config.REMOTE_API_KEY
        self.temperature = temperature if temperature is not None else config.REMOTE_TEMPERATURE
        self.max_tokens = max_tokens if max_tokens is not None else config.REMOTE_MAX_TOKENS
        self.timeout = timeout if timeout is not None else config.LLM_TIMEOUT_SEC
        self.session = session or requests.Session()
        self.fragments = fragments

    def generate_response(self, prompt: str) -> GenerationResult:
        messages = []
        fragments = self.fragments if self.fragments is not None else config.get_prompt_fragments()
        if fragments.get("system"):
            messages.append({"role": "system", "content": fragments["system"]})
        messages.append({"role": "user", "content": prompt})
        return self.chat(messages)

    def generate_answer_with_context(self, question: str, contents: List[str],
                                     context_window: str = "") -> GenerationResult:
        messages = build_remote_messages(question, contents, context_window, self.fragments)
        logger.debug(f"Remote request assembled with {len(messages)} messages")
        return self.chat(messages)

    def chat(self, messages: List[Dict[str, str]]) -> GenerationResult:
        """Send a structured conversation and return the first choice's content."""
        payload = {
            "model": self.model_name,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens
        }
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        start_time = time.time()
        try:
            response = self.session.post(
                f"{self.api_base}/chat/completions",
                json=payload,
                headers=headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.JSONDecodeError as e:
            logger.log_llm_call(self.name, "error", start_time, time.time(), {"error": f"invalid JSON: {e}"})
            return GenerationResult.error("Could not parse the remote API response format", "malformed_response")
        except requests.exceptions.Timeout as e:
            logger.log_llm_call(self.name, "error", start_time, time.time(), {"error": str(e)})
            return GenerationResult.error(f"The remote API call timed out: {e}", "timeout")
        except requests.exceptions.RequestException as e:
            logger.log_llm_call(self.name, "error", start_time, time.time(), {"error": str(e)})
            return GenerationResult.error(f"Error calling the remote API: {e}", "request_failed")

        content = self._extract_content(body)
        if content is None:
            logger.log_llm_call(self.name, "error", start_time, time.time(), {
                "reason": "no choices[0].message.content",
                "body": str(body)[:200]
            })
            return GenerationResult.error("Could not parse the remote API response format", "malformed_response")

        logger.log_llm_call(self.name, "ok", start_time, time.time(), {
            "messages": len(messages),
            "response_length": len(content)
        })
        return GenerationResult.ok(content)

    @staticmethod
    def _extract_content(body: Any):
        if not isinstance(body, dict):
            return None
        choices = body.get("choices")
        if not choices or not isinstance(choices, list):
            return None
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        return content if isinstance(content, str) else None

    def health(self) -> Dict[str, Any]:
        status = super().health()
        status.update({
            "api_base": self.api_base,
            "api_key_configured": bool(self.api_key)
        })
        return status
