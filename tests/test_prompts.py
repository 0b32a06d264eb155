"""
Tests for prompt, context window and message assembly.
"""

from kbchat.agents.prompts import (
    NO_KNOWLEDGE_TEXT,
    build_context_window,
    build_knowledge_block,
    build_local_prompt,
    build_remote_messages,
    build_system_prompt,
    parse_history_messages,
)

FRAGMENTS = {"system": "S", "prevent_hallucination": "P", "citation": "C", "format": "F"}


def _history(pairs, current="Q: current"):
    lines = []
    for n in range(1, pairs + 1):
        lines += [f"Q: question {n}", f"A: answer {n}"]
    return lines + [current]


class TestContextWindow:

    def test_last_three_pairs_of_five(self):
        window = build_context_window(_history(5), 6)
        lines = window.strip().split("\n")

        assert lines[0] == "Conversation history:"
        assert lines[1:] == [
            "Q: question 3", "A: answer 3",
            "Q: question 4", "A: answer 4",
            "Q: question 5", "A: answer 5",
        ]

    def test_never_more_than_six_lines(self):
        for pairs in (3, 10, 50):
            lines = build_context_window(_history(pairs), 6).strip().split("\n")
            assert len(lines) == 7
            assert "Q: current" not in lines

    def test_short_history(self):
        lines = build_context_window(_history(1), 6).strip().split("\n")
        assert lines[1:] == ["Q: question 1", "A: answer 1"]

    def test_first_question_has_no_window(self):
        assert build_context_window(["Q: only"], 6) == ""
        assert build_context_window([], 6) == ""


class TestLocalPrompt:

    def test_layout(self):
        prompt = build_local_prompt("Why?", ["first", "second"], "Conversation history:\nQ: a\nA: b\n\n", FRAGMENTS)

        assert prompt == (
            "S\n\nP\n\nC\n\nF\n\n"
            "Conversation history:\nQ: a\nA: b\n\n"
            "Knowledge base content:\nfirst\n\nsecond\n\n"
            "Current question: Why?\n\n"
            "assistant:"
        )

    def test_empty_context_and_knowledge(self):
        prompt = build_local_prompt("Why?", [], "", FRAGMENTS)
        assert f"Knowledge base content:\n{NO_KNOWLEDGE_TEXT}" in prompt
        assert "Conversation history" not in prompt


def test_system_prompt_skips_empty_fragments():
    assert build_system_prompt({"system": "S", "prevent_hallucination": "", "citation": "C", "format": ""}) == "S\n\nC"


def test_knowledge_block_trims_contents():
    assert build_knowledge_block(["  a  ", "", "b\n"]) == "a\n\nb"
    assert build_knowledge_block([]) == NO_KNOWLEDGE_TEXT


def test_parse_history_ignores_label_and_blank_lines():
    messages = parse_history_messages("Conversation history:\nQ: hi\nA: hello\n\n")
    assert messages == [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]


def test_remote_messages_order():
    messages = build_remote_messages("Why?", ["k"], "Conversation history:\nQ: hi\nA: hello\n\n", FRAGMENTS)

    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[0]["content"] == "S\n\nP\n\nC\n\nF"
    assert messages[-1]["content"] == "Knowledge base content:\nk\n\nCurrent question: Why?"
