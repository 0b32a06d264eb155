"""
Local generation backend (Ollama `/api/generate`) guarded by the availability breaker.
"""

import time
from typing import Any, Dict, List

import httpx
import ollama

from .agent import BaseLLMProvider, GenerationResult
from .breaker import AvailabilityBreaker
from .fallback import get_fallback_response
from .prompts import build_local_prompt
from ..core import config
from ..util.logging import logger

# Raised by the ollama client when the server cannot be reached or times out
TRANSPORT_ERRORS = (ConnectionError, httpx.TransportError)


class OllamaProvider(BaseLLMProvider):
    """
    Provider for a local Ollama server.

    Transport failures open the breaker and are answered with a canned reply
    (degraded). While the breaker is open the network is skipped entirely.
    HTTP error statuses and malformed bodies are reported as errors and leave
    the breaker untouched.
    """

    name = "local"

    def __init__(self, model_name: str = None, host: str = None, timeout: float = None,
                 breaker: AvailabilityBreaker = None, client=None, fragments: Dict[str, str] = None):
        super().__init__(model_name or config.OLLAMA_MODEL)
        self.host = host or config.OLLAMA_HOST
        self.timeout = timeout if timeout is not None else config.LLM_TIMEOUT_SEC
        self.client = client or ollama.Client(host=self.host, timeout=self.timeout)
        self.breaker = breaker or AvailabilityBreaker("local", cooldown_sec=config.BREAKER_COOLDOWN_SEC)
        self.fragments = fragments

    def generate_response(self, prompt: str) -> GenerationResult:
        return self._generate(prompt, question=prompt)

    def generate_answer_with_context(self, question: str, contents: List[str],
                                     context_window: str = "") -> GenerationResult:
        prompt = build_local_prompt(question, contents, context_window, self.fragments)
        logger.debug(f"Local prompt assembled, length: {len(prompt)}")
        return self._generate(prompt, question=question)

    def _generate(self, prompt: str, question: str) -> GenerationResult:
        """Run one completion. `question` drives the canned reply when degraded."""
        if not self.breaker.allow_request():
            logger.info("Local backend unavailable, serving offline reply")
            return GenerationResult.degraded(get_fallback_response(question), "backend_unavailable")

        start_time = time.time()
        try:
            resp = self.client.generate(model=self.model_name, prompt=prompt, stream=False)

        except ollama.ResponseError as e:
            logger.log_llm_call(self.name, "error", start_time, time.time(), {
                "status_code": getattr(e, "status_code", None),
                "error": str(e)
            })
            return GenerationResult.error(f"Service call failed: {e}", "http_error")

        except TRANSPORT_ERRORS as e:
            self.breaker.record_failure(str(e))
            logger.log_llm_call(self.name, "degraded", start_time, time.time(), {"error": str(e)})
            return GenerationResult.degraded(get_fallback_response(question), "transport_failure")

        except Exception as e:
            logger.log_llm_call(self.name, "error", start_time, time.time(), {"error": str(e)})
            return GenerationResult.error(f"Service call failed: {e}", "unexpected_error")

        # The server answered, so it is reachable
        self.breaker.record_success()

        if resp is None:
            return GenerationResult.error("The LLM service returned no response", "empty_response")

        text = resp.get("response")
        if text is None:
            logger.log_llm_call(self.name, "error", start_time, time.time(), {"reason": "missing response field"})
            return GenerationResult.error("Could not parse the LLM response format", "malformed_response")

        logger.log_llm_call(self.name, "ok", start_time, time.time(), {"response_length": len(text)})
        return GenerationResult.ok(text)

    def health(self) -> Dict[str, Any]:
        status = super().health()
        status.update({
            "host": self.host,
            "reachable": check_ollama_health(client=self.client),
            "breaker": self.breaker.snapshot()
        })
        return status


def check_ollama_health(host: str = None, client=None) -> bool:
    """
    Check Ollama service connectivity by listing models.
    Used by provider health reporting; does not touch the breaker.
    """
    try:
        (client or ollama.Client(host=host or config.OLLAMA_HOST, timeout=5)).list()
        return True
    except Exception:
        return False
