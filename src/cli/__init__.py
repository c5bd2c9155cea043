"""
CLI module for the unsubscribe link finder.

Provides click-based command-line interface with subcommands.
"""

from .main import cli

__all__ = ['cli']
