"""
Per-sender unsubscribe link aggregation.

Groups already-fetched messages by sender address and resolves one
unsubscribe link per sender with the extraction engine. Senders are
processed concurrently; each sender's messages are tried in order until
one yields a valid link.
"""

import asyncio
import logging
import re
from collections import OrderedDict
from email.utils import parseaddr
from typing import Dict, Iterable, List, Optional, Tuple

from .engine import UnsubscribeLinkEngine
from .types import EmailRecord, SenderUnsubscribeInfo

# Set up logging
logger = logging.getLogger(__name__)

SENDER_ADDRESS_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class SenderLinkAggregator:
    """Resolve one unsubscribe link per sender."""

    def __init__(self, engine: UnsubscribeLinkEngine, max_concurrency: int = 4):
        self.engine = engine
        self.max_concurrency = max(1, max_concurrency)

    async def aggregate(self, records: Iterable[EmailRecord]) -> List[SenderUnsubscribeInfo]:
        """
        Resolve unsubscribe links for every sender in ``records``.

        Args:
            records: Messages in the order they should be tried (most recent
                first if the caller wants "latest email wins")

        Returns:
            One SenderUnsubscribeInfo per sender, in first-seen order
        """
        groups, skipped = self._group_by_sender(records)
        if skipped:
            logger.warning(f"Skipped {skipped} messages without a valid sender address")

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def resolve(sender_email: str, sender_name: Optional[str],
                          bodies: List[str]) -> SenderUnsubscribeInfo:
            async with semaphore:
                return await self._resolve_sender(sender_email, sender_name, bodies)

        results = await asyncio.gather(*(
            resolve(sender_email, name, bodies)
            for sender_email, (name, bodies) in groups.items()
        ))

        found = sum(1 for info in results if info.unsubscribe_link)
        logger.info(f"Completed processing. Found unsubscribe links for {found} of {len(results)} senders")
        return list(results)

    async def _resolve_sender(self, sender_email: str, sender_name: Optional[str],
                              bodies: List[str]) -> SenderUnsubscribeInfo:
        best_effort = None

        for body in bodies:
            result = await self.engine.extract(body)
            if result.link and result.is_valid:
                return SenderUnsubscribeInfo(
                    sender_email=sender_email,
                    sender_name=sender_name,
                    unsubscribe_link=result.link,
                    email_count=len(bodies),
                    is_valid=True
                )
            if result.link and best_effort is None:
                best_effort = result.link

        return SenderUnsubscribeInfo(
            sender_email=sender_email,
            sender_name=sender_name,
            unsubscribe_link=best_effort,
            email_count=len(bodies),
            is_valid=False
        )

    def _group_by_sender(self, records: Iterable[EmailRecord]) -> Tuple[Dict[str, Tuple[Optional[str], List[str]]], int]:
        """
        Group message bodies by lower-cased sender address.

        Returns:
            Tuple of (sender -> (display name, bodies), skipped_count)
        """
        groups: "OrderedDict[str, Tuple[Optional[str], List[str]]]" = OrderedDict()
        skipped = 0

        for record in records:
            sender_name, sender_email = parse_sender(record.sender)
            if not sender_email:
                logger.debug(f"Skipping message with sender {record.sender!r}")
                skipped += 1
                continue

            if sender_email not in groups:
                groups[sender_email] = (sender_name, [])
            name, bodies = groups[sender_email]
            if name is None and sender_name:
                groups[sender_email] = (sender_name, bodies)
            bodies.append(record.body)

        return groups, skipped


def parse_sender(from_field: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a From value like ``"Name" <user@example.com>`` into its parts.

    Returns:
        (display name or None, lower-cased address or None when malformed)
    """
    if not from_field:
        return None, None

    sender_name, sender_email = parseaddr(from_field)
    sender_name = sender_name.strip().strip('"') or None
    sender_email = sender_email.strip().lower()

    if not SENDER_ADDRESS_PATTERN.match(sender_email):
        return sender_name, None
    return sender_name, sender_email
