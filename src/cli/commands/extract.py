"""
Extraction commands for the unsubscribe link finder.

Handles single-file extraction and batch runs over a directory of saved
messages.
"""

import asyncio
import json

import click

from src.link_extraction.messages import read_message_file, iter_message_files
from ..utils import build_engine, model_options


@click.command('extract')
@click.argument('message_file', type=click.Path(exists=True, dir_okay=False))
@model_options
@click.option('--json', 'as_json', is_flag=True, help='Print the full result as JSON')
@click.option('--show-anchors', is_flag=True, help='List every http(s) anchor found')
@click.option('--quoted-printable', is_flag=True,
              help='Undo quoted-printable soft line breaks in raw bodies')
@click.pass_context
def extract(ctx, message_file, model_path, model_timeout, as_json, show_anchors, quoted_printable):
    """
    Find the unsubscribe link in one saved message.

    MESSAGE_FILE may be an .eml file or a raw HTML/text body.
    Exits with status 1 when no link is found.

    Example:
        python main.py extract newsletter.eml
        python main.py extract body.html --show-anchors
    """
    try:
        record = read_message_file(message_file, unwrap_quoted_printable=quoted_printable)
    except OSError as e:
        click.secho(f"✗ Error reading {message_file}: {e}", fg='red')
        raise click.Abort()

    engine = build_engine(model_path, model_timeout)
    result = asyncio.run(engine.extract(record.body))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif result.link:
        click.echo(result.link)
        if result.is_best_effort:
            click.secho("⚠ Link failed validation; returned as best effort", fg='yellow', err=True)
    else:
        click.secho("✗ No unsubscribe link found", fg='red')

    if show_anchors and not as_json:
        click.echo(f"\nAnchors ({len(result.anchors)}):")
        for href in result.anchors:
            click.echo(f"  {href}")

    if not result.link:
        ctx.exit(1)


@click.command('batch')
@click.argument('directory', type=click.Path(exists=True, file_okay=False))
@click.option('--pattern', default='*', show_default=True, help='Glob selecting message files')
@model_options
@click.option('--quoted-printable', is_flag=True,
              help='Undo quoted-printable soft line breaks in raw bodies')
def batch(directory, pattern, model_path, model_timeout, quoted_printable):
    """
    Run extraction over every message file in a directory.

    Prints one line per file and a summary of found, best-effort and
    missing links.

    Example:
        python main.py batch ./failed-emails --pattern "*.eml"
    """
    files = iter_message_files(directory, pattern)
    if not files:
        click.secho(f"No files matching {pattern} in {directory}", fg='yellow')
        return

    engine = build_engine(model_path, model_timeout)
    counts = {'found': 0, 'best_effort': 0, 'missing': 0, 'unreadable': 0}

    async def run():
        for path in files:
            try:
                record = read_message_file(path, unwrap_quoted_printable=quoted_printable)
            except OSError as e:
                counts['unreadable'] += 1
                click.secho(f"✗ {path.name}: {e}", fg='red')
                continue

            result = await engine.extract(record.body)
            if result.link and result.is_valid:
                counts['found'] += 1
                click.secho(f"✓ {path.name}: {result.link} [{result.stage}]", fg='green')
            elif result.link:
                counts['best_effort'] += 1
                click.secho(f"⚠ {path.name}: {result.link} [best effort]", fg='yellow')
            else:
                counts['missing'] += 1
                click.secho(f"✗ {path.name}: no link", fg='red')

    asyncio.run(run())

    click.echo(f"\nProcessed {len(files)} files")
    click.echo(f"  Found: {counts['found']}")
    click.echo(f"  Best effort: {counts['best_effort']}")
    click.echo(f"  Missing: {counts['missing']}")
    if counts['unreadable']:
        click.echo(f"  Unreadable: {counts['unreadable']}")
