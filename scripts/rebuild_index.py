#!/usr/bin/env python3
"""
Index Rebuild Utility
Re-embeds every stored segment and overwrites its persisted vector. Run it
after switching embedding providers or models.
"""

import argparse
import sys

from kbchat.core import config
from kbchat.core.db import init_db
from kbchat.core.dao import get_segment_count
from kbchat.vector.embeddings import EmbeddingGateway
from kbchat.vector.semantic_memory import SemanticMemoryService


def main():
    parser = argparse.ArgumentParser(description="Rebuild segment vectors with the active embedding provider")
    parser.add_argument("--provider", choices=["ollama", "sentence_transformers", "hash"],
                        help="Embedding provider to use (default: EMBED_PROVIDER)")
    parser.add_argument("--verify", default="test",
                        help="Query text for the verification search after rebuilding")
    args = parser.parse_args()

    init_db()

    total = get_segment_count()
    if total == 0:
        print("No segments stored. Nothing to rebuild.")
        return

    provider = config.get_embedding_provider(args.provider)
    service = SemanticMemoryService(EmbeddingGateway(provider, default_dimension=config.EMBED_DIM))

    print(f"Re-embedding {total} segments with provider '{provider.name}'...")
    stats = service.reindex_all()
    print(f"✓ Indexed {stats['indexed']}/{stats['total']} segments ({stats['failed']} failed)")

    if stats["indexed"]:
        try:
            results = service.search_with_scores(service.embed(args.verify), k=3, min_similarity=-1.0)
            print(f"✓ Verification search returned {len(results)} results")
        except Exception as e:
            print(f"WARNING: Verification search failed: {e}")

    if stats["failed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
