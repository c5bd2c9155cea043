"""
Main CLI group for the unsubscribe link finder.

Integrates all commands into a single CLI application.
"""

import click

from src.config import Config, load_config_from_env_file
from src.link_extraction.logging import configure_extraction_logging
from .commands.extract import extract, batch
from .commands.senders import senders


@click.group()
@click.version_option(version='0.7.0', prog_name='Unsubscribe Link Finder')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (default: LOG_LEVEL or WARNING)')
@click.option('--env-file', default='.env', show_default=True, help='Environment file to load')
def cli(log_level, env_file):
    """
    Unsubscribe Link Finder - locate the unsubscribe URL in saved emails.

    Combines anchor heuristics, ordered text patterns and an optional local
    language model to pick the one link that stops a sender's mail.
    """
    load_config_from_env_file(env_file)
    configure_extraction_logging(
        level=log_level or Config.LOG_LEVEL,
        format=Config.LOG_FORMAT
    )


cli.add_command(extract, name='extract')
cli.add_command(batch, name='batch')
cli.add_command(senders, name='senders')


if __name__ == '__main__':
    cli()
