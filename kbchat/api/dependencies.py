"""
Service wiring for the HTTP layer.

build_services() assembles the full object graph from configuration;
get_services() is the FastAPI dependency and builds it once per process.
Tests replace it through app.dependency_overrides.
"""

import threading
from dataclasses import dataclass

from ..agents.orchestrator import ConversationOrchestrator
from ..agents.registry import ChatModeSetting, ProviderRegistry
from ..core import config
from ..core.db import init_db
from ..core.knowledge import KnowledgeService
from ..core.session_store import InMemorySessionStore
from ..util.logging import logger
from ..vector.embeddings import EmbeddingGateway
from ..vector.semantic_memory import SemanticMemoryService


@dataclass
class Services:
    registry: ProviderRegistry
    semantic_memory: SemanticMemoryService
    sessions: InMemorySessionStore
    orchestrator: ConversationOrchestrator
    knowledge: KnowledgeService


def build_services(load_index: bool = True) -> Services:
    """Create every service from config, initialising the database and loading persisted vectors."""
    for issue in config.validate_config():
        logger.warning(f"Configuration issue: {issue}")

    init_db()

    gateway = EmbeddingGateway(config.get_embedding_provider(), default_dimension=config.EMBED_DIM)
    semantic_memory = SemanticMemoryService(gateway)
    if load_index:
        semantic_memory.load_from_repository()

    registry = ProviderRegistry(mode=ChatModeSetting(config.CHAT_MODE))
    sessions = InMemorySessionStore()
    orchestrator = ConversationOrchestrator(registry, semantic_memory, sessions=sessions)
    knowledge = KnowledgeService(semantic_memory)

    logger.log_operation("services.build", "success", {
        "chat_mode": registry.mode.get(),
        "embedding_provider": gateway.provider.name,
        "indexed_vectors": len(semantic_memory.vector_store)
    })
    return Services(
        registry=registry,
        semantic_memory=semantic_memory,
        sessions=sessions,
        orchestrator=orchestrator,
        knowledge=knowledge
    )


_services = None
_services_lock = threading.Lock()


def get_services() -> Services:
    global _services
    if _services is None:
        with _services_lock:
            if _services is None:
                _services = build_services()
    return _services
