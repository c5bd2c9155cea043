"""
Common utilities for CLI commands.

Shared helper functions used across multiple command modules.
"""

from pathlib import Path
from typing import Optional

import click

from src.config import Config
from src.link_extraction import (
    UnsubscribeLinkEngine, TransformersModelAdapter, TimeoutModelAdapter
)


def build_engine(model_path: Optional[str], model_timeout: Optional[float]) -> UnsubscribeLinkEngine:
    """
    Create an extraction engine for a CLI run.

    Args:
        model_path: Model directory from the command line; falls back to
            UNSUBSCRIBE_MODEL_PATH
        model_timeout: Seconds allowed per model call; falls back to
            MODEL_TIMEOUT. Zero or less disables the limit.

    Returns:
        Engine running in heuristic+pattern-only mode when no model is set
    """
    path = Path(model_path).expanduser() if model_path else Config.get_model_path()
    if path is None:
        return UnsubscribeLinkEngine()

    adapter = TransformersModelAdapter(path, max_new_tokens=Config.MODEL_MAX_NEW_TOKENS)
    timeout = Config.MODEL_TIMEOUT if model_timeout is None else model_timeout
    if timeout and timeout > 0:
        adapter = TimeoutModelAdapter(adapter, timeout)
    return UnsubscribeLinkEngine(model_adapter=adapter)


def model_options(command):
    """Attach the shared --model-path/--model-timeout options to a command."""
    command = click.option(
        '--model-timeout', type=float, default=None,
        help='Seconds allowed per model call (default: MODEL_TIMEOUT)'
    )(command)
    command = click.option(
        '--model-path', type=click.Path(file_okay=False), default=None,
        help='Directory of a local generative model (default: UNSUBSCRIBE_MODEL_PATH)'
    )(command)
    return command
