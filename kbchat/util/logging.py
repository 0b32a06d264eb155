"""
Structured operation logging for the chat, retrieval and LLM gateway layers.
"""

import logging
import os
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for indexing, generation, breaker and chat-turn operations."""

    def __init__(self, name: str = "kbchat"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_vector_operation(self, operation: str, segment_id: Any, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector index operation."""
        log_details = {"segment_id": segment_id}
        if details:
            log_details.update(details)

        level = logging.INFO if status == "success" else logging.ERROR
        self.log_operation(f"vector.{operation}", status, log_details, level=level)

    def log_embedding_failure(self, provider: str, error: Exception, text_length: int):
        """Embedding failures degrade silently for callers, so they are logged loudly here."""
        self.log_operation("embedding.embed", "failed", {
            "provider": provider,
            "error": truncate_text(str(error)),
            "text_length": text_length
        }, level=logging.ERROR)

    def log_llm_call(self, provider: str, status: str, start_time: float, end_time: float, details: Dict[str, Any] = None):
        """Log a single LLM backend call with its duration."""
        log_details = {"provider": provider, "duration_ms": round((end_time - start_time) * 1000, 2)}
        if details:
            log_details.update(details)

        level = logging.INFO if status in ("ok", "degraded") else logging.ERROR
        self.log_operation("llm.generate", status, log_details, level=level)

    def log_breaker_transition(self, backend: str, from_state: str, to_state: str, reason: str = ""):
        """Log an availability breaker state change."""
        log_details = {"backend": backend, "from": from_state, "to": to_state}
        if reason:
            log_details["reason"] = truncate_text(reason)

        level = logging.WARNING if to_state == "UNAVAILABLE" else logging.INFO
        self.log_operation("breaker.transition", to_state.lower(), log_details, level=level)

    def log_intent(self, session_id: str, intent: str, raw_response: str):
        """Log the intent chosen for a question."""
        self.log_operation("intent.classify", intent, {
            "session_id": session_id,
            "raw_response": truncate_text(raw_response, 80)
        })

    def log_chat_turn(self, session_id: str, intent: str, payload: Dict[str, Any], status: str = "success"):
        """Log a completed chat turn with sanitized payload."""
        log_details = {"session_id": session_id, "intent": intent}
        log_details["payload"] = sanitize_payload(payload)

        self.log_operation("chat.turn", status, log_details)

    def log_persistence_failure(self, operation: str, error: Exception, identifiers: Dict[str, Any] = None):
        """Log a best-effort persistence write that did not complete."""
        log_details = dict(identifiers or {})
        log_details["error"] = truncate_text(str(error))
        self.log_operation(f"persistence.{operation}", "failed", log_details, level=logging.ERROR)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def exception(self, message: str) -> None:
        """Log an error message with the active traceback."""
        self.logger.exception(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def truncate_text(value: str, limit: int = 100) -> str:
    """Truncate long strings for log lines."""
    if value is None:
        return ""
    return value[:limit - 3] + "..." if len(value) > limit else value


def sanitize_payload(payload: Any, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for logging: redact sensitive keys, truncate long strings."""
    if sensitive_fields is None:
        sensitive_fields = ['api_key', 'authorization', 'password', 'secret']

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if k.lower() in sensitive_fields:
                sanitized[k] = "[REDACTED]"
            else:
                sanitized[k] = sanitize_payload(v, sensitive_fields)
        return sanitized
    elif isinstance(payload, str):
        return truncate_text(payload)
    elif isinstance(payload, list):
        return [sanitize_payload(item, sensitive_fields) for item in payload]
    else:
        return payload


# Global logger instance
logger = StructuredLogger()
