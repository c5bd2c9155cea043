"""
Sender aggregation command for the unsubscribe link finder.
"""

import asyncio
import json

import click

from src.config import Config
from src.link_extraction import SenderLinkAggregator
from src.link_extraction.messages import read_message_file, iter_message_files
from ..utils import build_engine, model_options


@click.command('senders')
@click.argument('directory', type=click.Path(exists=True, file_okay=False))
@click.option('--pattern', default='*.eml', show_default=True, help='Glob selecting .eml files')
@click.option('--concurrency', type=int, default=None,
              help='Senders resolved in parallel (default: MAX_CONCURRENCY)')
@model_options
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON')
def senders(directory, pattern, concurrency, model_path, model_timeout, as_json):
    """
    Report one unsubscribe link per sender.

    Reads saved .eml messages, groups them by the From address and tries
    each sender's messages until one yields a valid link.

    Example:
        python main.py senders ./inbox-export
        python main.py senders ./inbox-export --concurrency 8 --json
    """
    records = []
    for path in iter_message_files(directory, pattern):
        try:
            records.append(read_message_file(path))
        except OSError as e:
            click.secho(f"✗ Skipping {path.name}: {e}", fg='red')

    if not records:
        click.secho(f"No messages matching {pattern} in {directory}", fg='yellow')
        return

    engine = build_engine(model_path, model_timeout)
    aggregator = SenderLinkAggregator(engine, max_concurrency=concurrency or Config.MAX_CONCURRENCY)
    results = asyncio.run(aggregator.aggregate(records))

    if as_json:
        click.echo(json.dumps([info.to_dict() for info in results], indent=2))
        return

    if not results:
        click.secho("No messages with a valid sender address", fg='yellow')
        return

    click.echo(f"\n{'Sender':<40} {'Emails':>6}  Unsubscribe link")
    click.echo("-" * 90)
    for info in results:
        link = info.unsubscribe_link or '-'
        if info.unsubscribe_link and not info.is_valid:
            link = f"{link} (best effort)"
        click.echo(f"{info.sender_email:<40} {info.email_count:>6}  {link}")

    found = sum(1 for info in results if info.unsubscribe_link)
    click.echo(f"\nFound unsubscribe links for {found} of {len(results)} senders")
