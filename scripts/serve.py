#!/usr/bin/env python3
"""
Start the chat API with uvicorn.
"""

import argparse

import uvicorn

from kbchat.core.config import DEBUG


def main():
    parser = argparse.ArgumentParser(description="Serve the knowledge base chat API")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    uvicorn.run(
        "kbchat.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="debug" if DEBUG else "info"
    )


if __name__ == "__main__":
    main()
