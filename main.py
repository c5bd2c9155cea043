#!/usr/bin/env python3
"""
Command-line entry point for the unsubscribe link finder.

Usage:
    python main.py extract <message-file> [--json] [--show-anchors]
    python main.py batch <directory> [--pattern GLOB]
    python main.py senders <directory> [--concurrency N]

Set UNSUBSCRIBE_MODEL_PATH (or pass --model-path) to enable the
generative model fallback.
"""

from src.cli import cli


if __name__ == '__main__':
    cli()
