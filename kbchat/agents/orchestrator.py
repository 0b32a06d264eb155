"""
Conversation Orchestrator
Runs one question through session bookkeeping, intent routing, retrieval and
generation, then records the transcript.
"""

import random
import uuid
from dataclasses import dataclass
from typing import List, Optional

from .agent import STATUS_OK, GenerationResult
from .intent import Intent, IntentClassifier
from .prompts import ASSISTANT_PREFIX, USER_PREFIX, build_context_window
from .registry import ProviderRegistry
from ..core import config
from ..core.schema import ChatRecord
from ..core.session_store import ISessionStore, InMemorySessionStore
from ..vector.semantic_memory import SemanticMemoryService
from ..util.logging import logger

GENERIC_APOLOGY = "Sorry, something went wrong while processing your question."
HANDOFF_MESSAGE = "Transferring you to a human agent, please wait..."
NO_KNOWLEDGE_DISCLAIMER = "\n\n\nThis reply did not draw on the knowledge base; please verify it independently."
REFUSAL_MESSAGES = (
    "Sorry, your question does not meet the reply requirements. Please ask something else.",
    "This question violates the usage rules and cannot be answered.",
    "I can't reply to that.",
)


@dataclass
class ChatAnswer:
    """Result of one conversation turn."""
    answer: str
    session_id: str
    intent: Optional[str] = None
    status: str = STATUS_OK


class ConversationOrchestrator:
    """
    Answers questions turn by turn.

    The provider is resolved once per turn from the registry's mode, and the
    whole turn runs under the session lock, so turns on one session are
    serialized while different sessions proceed in parallel.
    """

    def __init__(self, registry: ProviderRegistry, semantic_memory: SemanticMemoryService,
                 sessions: ISessionStore = None, classifier: IntentClassifier = None,
                 repository=None, rng: random.Random = None,
                 top_k: int = None, min_similarity: float = None, context_pairs: int = None):
        self.registry = registry
        self.semantic_memory = semantic_memory
        self.sessions = sessions if sessions is not None else InMemorySessionStore()
        self.classifier = classifier or IntentClassifier()
        if repository is None:
            from ..core import dao as repository
        self.repository = repository
        self.rng = rng or random.Random()
        self.top_k = top_k if top_k is not None else config.SEARCH_TOP_K
        self.min_similarity = min_similarity if min_similarity is not None else config.MIN_SIMILARITY
        self.context_pairs = context_pairs if context_pairs is not None else config.CONTEXT_WINDOW_PAIRS

    def answer(self, question: str, session_id: Optional[str] = None, user_id: Optional[str] = None) -> ChatAnswer:
        """Answer a question within a session. Never raises."""
        if not session_id or not session_id.strip():
            session_id = str(uuid.uuid4())

        try:
            return self._answer(question, session_id, user_id)
        except Exception:
            logger.exception(f"Error while answering question for session {session_id}")
            return ChatAnswer(answer=GENERIC_APOLOGY, session_id=session_id, status="error")

    def _answer(self, question: str, session_id: str, user_id: Optional[str]) -> ChatAnswer:
        provider = self.registry.current_provider()
        state = self.sessions.get_or_create(session_id)

        with state.lock:
            state.in_use += 1
            try:
                answer, status, intent = self._run_turn(state, question, provider)
            finally:
                state.in_use -= 1

        self._save_transcript(question, answer, session_id, user_id)

        logger.log_chat_turn(session_id, intent.value, {
            "question": question,
            "answer": answer,
            "provider": provider.name
        }, status=status)
        return ChatAnswer(answer=answer, session_id=session_id, intent=intent.value, status=status)

    def _run_turn(self, state, question: str, provider):
        """Classify and answer one question. Caller holds the session lock."""
        session_id = state.session_id
        self.sessions.append(session_id, USER_PREFIX + question)
        self.sessions.touch(session_id)
        self.sessions.increment(session_id, "questions")

        intent = self.classifier.classify(question, provider, session_id=session_id)
        state.last_intent = intent.value

        if intent == Intent.ACCEPT:
            self.sessions.increment(session_id, "accepted")
            result = self._answer_from_knowledge(question, state.history, provider)
            answer, status = result.text, result.status
        elif intent == Intent.SWITCH:
            self.sessions.increment(session_id, "handoffs")
            answer, status = HANDOFF_MESSAGE, STATUS_OK
        else:
            self.sessions.increment(session_id, "refused")
            answer, status = self.rng.choice(REFUSAL_MESSAGES), STATUS_OK

        self.sessions.append(session_id, ASSISTANT_PREFIX + answer)
        return answer, status, intent

    def _answer_from_knowledge(self, question: str, history: List[str], provider) -> GenerationResult:
        query_vector = self.semantic_memory.embed(question)
        ids = self.semantic_memory.search(query_vector, self.top_k, self.min_similarity)
        contents = [segment.content for segment in self.repository.find_segments_by_ids(ids)] if ids else []

        context_window = build_context_window(history, self.context_pairs * 2)
        result = provider.generate_answer_with_context(question, contents, context_window)

        if not ids:
            result = GenerationResult(
                text=result.text + NO_KNOWLEDGE_DISCLAIMER,
                status=result.status,
                reason=result.reason or "no_knowledge_base_match"
            )
        return result

    def _save_transcript(self, question: str, answer: str, session_id: str, user_id: Optional[str]) -> None:
        record = ChatRecord(session_id=session_id, question=question, answer=answer, user_id=user_id)
        try:
            self.repository.save_chat_record(record)
        except Exception as e:
            logger.log_persistence_failure("save_chat_record", e, {"session_id": session_id})
