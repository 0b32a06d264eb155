"""
Runtime configuration - every setting is read from the environment (and an
optional .env file) once at import time.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/kbchat.db")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Generation backend selection: local|remote (initial value, switchable at runtime)
CHAT_MODE = os.getenv("CHAT_MODE", "local")
VALID_CHAT_MODES = ("local", "remote")

# Local backend (Ollama)
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "gemma3:4b")
OLLAMA_EMBED_MODEL = os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text")

# Remote backend (OpenAI-compatible chat completions, DeepSeek by default)
REMOTE_API_BASE = os.getenv("REMOTE_API_BASE", "https://api.deepseek.com")
REMOTE_API_KEY = os.getenv("REMOTE_API_KEY", "")
REMOTE_MODEL = os.getenv("REMOTE_MODEL", "deepseek-chat")
REMOTE_TEMPERATURE = float(os.getenv("REMOTE_TEMPERATURE", "0.7"))
REMOTE_MAX_TOKENS = int(os.getenv("REMOTE_MAX_TOKENS", "2048"))

# Call bounds; exceeding them counts as a transport failure
LLM_TIMEOUT_SEC = float(os.getenv("LLM_TIMEOUT_SEC", "60"))
EMBED_TIMEOUT_SEC = float(os.getenv("EMBED_TIMEOUT_SEC", "30"))
BREAKER_COOLDOWN_SEC = float(os.getenv("BREAKER_COOLDOWN_SEC", "30"))

# Embeddings and retrieval
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "ollama")  # ollama|sentence_transformers|hash
EMBED_DIM = int(os.getenv("EMBED_DIM", "768"))
SENTENCE_TRANSFORMER_MODEL = os.getenv("SENTENCE_TRANSFORMER_MODEL", "all-mpnet-base-v2")
SEARCH_TOP_K = int(os.getenv("SEARCH_TOP_K", "3"))
MIN_SIMILARITY = float(os.getenv("MIN_SIMILARITY", "0.7"))
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "500"))

# Conversation state
SESSION_TTL_SEC = int(os.getenv("SESSION_TTL_SEC", "1800"))
SESSION_SWEEP_INTERVAL_SEC = int(os.getenv("SESSION_SWEEP_INTERVAL_SEC", "60"))
CONTEXT_WINDOW_PAIRS = int(os.getenv("CONTEXT_WINDOW_PAIRS", "3"))

# Prompt fragments
PROMPT_SYSTEM = os.getenv(
    "PROMPT_SYSTEM",
    "You are an AI assistant. Prefer the knowledge base content when answering. "
    "Answer ordinary questions directly. When asked about legal or medical matters, "
    "stress that the answer is for reference only. You may receive earlier turns of the "
    "conversation; use them only when the current question depends on them."
)
PROMPT_PREVENT_HALLUCINATION = os.getenv(
    "PROMPT_PREVENT_HALLUCINATION",
    "Do not invent facts. If the knowledge base content does not contain the answer, say so plainly."
)
PROMPT_CITATION = os.getenv(
    "PROMPT_CITATION",
    "When you use knowledge base content, mention that the answer is based on the knowledge base."
)
PROMPT_FORMAT = os.getenv(
    "PROMPT_FORMAT",
    "Answer concisely in plain text."
)

VERSION = "1.0.0"


def get_embedding_provider(provider_name: str = None):
    """Get the configured embedding provider implementation."""
    name = (provider_name or EMBED_PROVIDER).lower()

    if name == "hash":
        from ..vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(dimension=EMBED_DIM)
    elif name == "sentence_transformers":
        from ..vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(SENTENCE_TRANSFORMER_MODEL)
    else:
        from ..vector.embeddings import OllamaEmbedding
        return OllamaEmbedding(
            model_name=OLLAMA_EMBED_MODEL,
            host=OLLAMA_HOST,
            timeout=EMBED_TIMEOUT_SEC
        )


def get_prompt_fragments() -> dict:
    """Prompt fragments in assembly order."""
    return {
        "system": PROMPT_SYSTEM,
        "prevent_hallucination": PROMPT_PREVENT_HALLUCINATION,
        "citation": PROMPT_CITATION,
        "format": PROMPT_FORMAT,
    }


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if CHAT_MODE not in VALID_CHAT_MODES:
        issues.append(f"Invalid CHAT_MODE: {CHAT_MODE}")

    if EMBED_PROVIDER not in ["ollama", "sentence_transformers", "hash"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if CHAT_MODE == "remote" and not REMOTE_API_KEY:
        issues.append("CHAT_MODE=remote requires REMOTE_API_KEY")

    if not 0.0 <= MIN_SIMILARITY <= 1.0:
        issues.append("MIN_SIMILARITY must be between 0 and 1")

    if SEARCH_TOP_K < 1:
        issues.append("SEARCH_TOP_K must be >= 1")

    if CHUNK_SIZE < 1:
        issues.append("CHUNK_SIZE must be >= 1")

    if SESSION_TTL_SEC < 1:
        issues.append("SESSION_TTL_SEC must be >= 1")

    return issues
