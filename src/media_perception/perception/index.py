"""
Attachment lookup over a conversation's full message history.

The index is rebuilt from scratch on every call. Messages are supplied
wholesale by the host, so there is nothing to invalidate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from .model import Attachment, Message


@dataclass(slots=True, frozen=True)
class IndexedAttachment:
    """An attachment together with the message that carries it."""

    attachment: Attachment
    message: Message


def collect_attachments(messages: Iterable[Message]) -> List[Attachment]:
    """Return every attachment in ``messages``, in message order."""
    return [att for msg in messages for att in (msg.attachments or [])]


def build_attachment_index(messages: Iterable[Message]) -> Dict[str, IndexedAttachment]:
    """
    Map attachment id to its record and owning message.

    When two attachments share an id the first one seen wins.
    """
    index: Dict[str, IndexedAttachment] = {}
    for msg in messages:
        for att in msg.attachments or []:
            index.setdefault(att.id, IndexedAttachment(attachment=att, message=msg))
    return index


def resolve_attachment(messages: Iterable[Message], attachment_id: str) -> IndexedAttachment | None:
    """Return the attachment with ``attachment_id`` or ``None`` when it does not exist."""
    return build_attachment_index(messages).get(attachment_id)


__all__ = [
    "IndexedAttachment",
    "build_attachment_index",
    "collect_attachments",
    "resolve_attachment",
]
