"""
Reading saved email messages from disk.

Supports ``.eml`` files (parsed with the standard ``email`` package) and
raw body dumps (``.html``, ``.txt`` or anything else), which are used
as-is.
"""

import email
import re
from email import policy
from email.message import Message
from pathlib import Path
from typing import List, Union

from .types import EmailRecord

EML_SUFFIXES = {'.eml'}


def unwrap_quoted_printable_lines(text: str) -> str:
    """
    Handle quoted-printable soft line breaks in raw body dumps.

    A line ending with '=' continues on the next line without a space,
    which splits long URLs. ``=3D`` is the encoded form of '='.

    Example:
        "https://example.com/unsubscribe?id=3D\\nabc123"
        becomes "https://example.com/unsubscribe?id=abc123"
    """
    text = re.sub(r'=\r?\n', '', text)
    return text.replace('=3D', '=')


def extract_message_body(message: Message) -> str:
    """Return the HTML part of a message, or its plain text when there is none."""
    html_body = ""
    text_body = ""

    parts = message.walk() if message.is_multipart() else [message]
    for part in parts:
        if part.is_multipart() or part.get_content_disposition() == 'attachment':
            continue
        content_type = part.get_content_type()
        if content_type not in ('text/html', 'text/plain'):
            continue

        payload = part.get_payload(decode=True)
        if payload is None:
            continue
        charset = part.get_content_charset() or 'utf-8'
        try:
            decoded = payload.decode(charset, errors='replace')
        except LookupError:
            decoded = payload.decode('utf-8', errors='replace')

        if content_type == 'text/html' and not html_body:
            html_body = decoded
        elif content_type == 'text/plain' and not text_body:
            text_body = decoded

    return html_body or text_body


def read_message_file(path: Union[str, Path], unwrap_quoted_printable: bool = False) -> EmailRecord:
    """
    Load one saved message.

    Args:
        path: File to read
        unwrap_quoted_printable: Undo soft line breaks in raw body dumps
            (``.eml`` payloads are already decoded by the email parser)

    Returns:
        EmailRecord with the sender taken from the From header when present
    """
    path = Path(path)
    data = path.read_bytes()

    if path.suffix.lower() in EML_SUFFIXES:
        message = email.message_from_bytes(data, policy=policy.default)
        return EmailRecord(
            sender=str(message.get('From', '') or ''),
            body=extract_message_body(message),
            subject=str(message.get('Subject', '') or '')
        )

    body = data.decode('utf-8', errors='replace')
    if unwrap_quoted_printable:
        body = unwrap_quoted_printable_lines(body)
    return EmailRecord(sender='', body=body)


def iter_message_files(directory: Union[str, Path], pattern: str = '*') -> List[Path]:
    """List regular files in ``directory`` matching ``pattern``, sorted by name."""
    directory = Path(directory)
    return sorted(p for p in directory.glob(pattern) if p.is_file())
