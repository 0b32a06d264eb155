"""
Canned replies served while the local backend is unavailable.
Keyword heuristics over the raw question text; no external dependencies.
"""

from typing import Dict, Tuple

# None of these texts may contain an intent label, so a classification
# prompt answered from here falls through to the default intent.
FALLBACK_RESPONSES: Dict[str, str] = {
    "greeting": "Hello! I'm an AI assistant. I'm running in offline mode right now, "
                "so some features may be limited.",
    "thanks": "You're welcome, glad I could help! I'm in offline mode at the moment; "
              "for anything more, please wait until the online service is back.",
    "farewell": "Goodbye! Come back any time you need help.",
    "help": "I'm an AI assistant that answers questions and provides information. "
            "I'm in offline mode right now with limited features; normally I can answer "
            "knowledge questions and give suggestions.",
    "default": "Sorry, the AI service is temporarily unavailable and cannot answer your question. "
               "Please check that the Ollama service is running (default port 11434), or try again later.",
}

# Checked in order; first hit wins
KEYWORD_PATTERNS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("greeting", ("你好", "嗨", "hi", "hello")),
    ("thanks", ("谢谢", "感谢", "thanks")),
    ("farewell", ("再见", "拜拜", "bye")),
    ("help", ("帮助", "help", "怎么用")),
)


def classify_fallback(question: str) -> str:
    """Pick the canned reply category for a question."""
    text = (question or "").lower()
    for category, keywords in KEYWORD_PATTERNS:
        if any(keyword in text for keyword in keywords):
            return category
    return "default"


def get_fallback_response(question: str) -> str:
    return FALLBACK_RESPONSES[classify_fallback(question)]
