"""
Intent classification: one LLM call per question, mapped onto a closed label set.
"""

from enum import Enum

from .agent import BaseLLMProvider
from ..util.logging import logger


class Intent(str, Enum):
    ACCEPT = "ACCEPT"
    REFUSE = "REFUSE"
    OUT_OF_SCOPE = "OUT_OF_SCOPE"
    SWITCH = "SWITCH"


# First label found in the raw response wins
PARSE_PRIORITY = (Intent.ACCEPT, Intent.REFUSE, Intent.SWITCH, Intent.OUT_OF_SCOPE)
DEFAULT_INTENT = Intent.REFUSE

INTENT_PROMPT_TEMPLATE = (
    "You are an intent classifier. Analyse the user's question and assign it to exactly one of these intents:\n"
    "REFUSE: the question touches sensitive topics such as politics or pornography and must not be answered\n"
    "SWITCH: the user asks for a human agent, is very unhappy with the replies, or says the assistant is stupid\n"
    "ACCEPT: an ordinary question or small talk\n"
    "OUT_OF_SCOPE: beyond your capabilities, such as needing real-time data or performing actions\n\n"
    "User question: \"{question}\"\n\n"
    "Reply with the uppercase intent label only, with no other text."
)


def build_intent_prompt(question: str) -> str:
    return INTENT_PROMPT_TEMPLATE.format(question=question)


def parse_intent(raw_response: str) -> Intent:
    """Case-insensitive substring match in priority order; nothing found means REFUSE."""
    normalized = (raw_response or "").strip().upper()
    for intent in PARSE_PRIORITY:
        if intent.value in normalized:
            return intent

    logger.warning(f"No intent label in response '{normalized[:80]}', defaulting to {DEFAULT_INTENT.value}")
    return DEFAULT_INTENT


class IntentClassifier:
    """Asks a provider for a label and parses it. No retries."""

    def classify(self, question: str, provider: BaseLLMProvider, session_id: str = None) -> Intent:
        result = provider.generate_response(build_intent_prompt(question))
        intent = parse_intent(result.text)
        logger.log_intent(session_id, intent.value, result.text)
        return intent
