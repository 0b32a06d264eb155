"""
Prompt and message assembly for the two generation backends.
"""

from typing import Dict, List

from ..core import config

NO_KNOWLEDGE_TEXT = "No relevant knowledge base content was found."
HISTORY_LABEL = "Conversation history:"
USER_PREFIX = "Q: "
ASSISTANT_PREFIX = "A: "


def build_system_prompt(fragments: Dict[str, str] = None) -> str:
    """Persona, anti-hallucination, citation and format instructions joined by blank lines."""
    fragments = fragments if fragments is not None else config.get_prompt_fragments()
    parts = [
        fragments.get("system", ""),
        fragments.get("prevent_hallucination", ""),
        fragments.get("citation", ""),
        fragments.get("format", ""),
    ]
    return "\n\n".join(part for part in parts if part)


def build_knowledge_block(contents: List[str]) -> str:
    cleaned = [content.strip() for content in contents or [] if content and content.strip()]
    if not cleaned:
        return NO_KNOWLEDGE_TEXT
    return "\n\n".join(cleaned)


def build_context_window(history: List[str], max_lines: int) -> str:
    """
    Labeled block of the history lines preceding the current question.

    The last history entry is the question being answered and is excluded;
    at most max_lines earlier lines are kept. Returns "" when there are none.
    """
    prior = history[:-1]
    window = prior[-max_lines:] if max_lines > 0 else []
    if not window:
        return ""
    return HISTORY_LABEL + "\n" + "\n".join(window) + "\n\n"


def build_local_prompt(question: str, contents: List[str], context_window: str = "",
                       fragments: Dict[str, str] = None) -> str:
    """Single prompt string for the local completion endpoint."""
    return (
        f"{build_system_prompt(fragments)}\n\n"
        f"{context_window or ''}"
        f"Knowledge base content:\n{build_knowledge_block(contents)}\n\n"
        f"Current question: {question}\n\n"
        "assistant:"
    )


def parse_history_messages(context_window: str) -> List[Dict[str, str]]:
    """
    Rebuild chat turns from a text history block.

    "Q: " lines open a user turn, "A: " lines open an assistant turn, and any
    other line is a continuation of the previous turn. Lines before the
    first turn (such as the block label) are dropped.
    """
    messages: List[Dict[str, str]] = []
    if not context_window:
        return messages

    for line in context_window.split("\n"):
        if line.startswith(USER_PREFIX):
            messages.append({"role": "user", "content": line[len(USER_PREFIX):]})
        elif line.startswith(ASSISTANT_PREFIX):
            messages.append({"role": "assistant", "content": line[len(ASSISTANT_PREFIX):]})
        elif messages and line:
            messages[-1]["content"] += "\n" + line

    return messages


def build_remote_messages(question: str, contents: List[str], context_window: str = "",
                          fragments: Dict[str, str] = None) -> List[Dict[str, str]]:
    """System message, reconstructed prior turns, then knowledge plus the current question."""
    messages = []
    system_prompt = build_system_prompt(fragments)
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})

    messages.extend(parse_history_messages(context_window))

    messages.append({
        "role": "user",
        "content": f"Knowledge base content:\n{build_knowledge_block(contents)}\n\nCurrent question: {question}"
    })
    return messages
