from __future__ import annotations

from .index import IndexedAttachment, build_attachment_index, collect_attachments, resolve_attachment
from .model import (
    AnswerSet,
    Attachment,
    Message,
    PerceptionRequest,
    PerceptionSpec,
    Persona,
    QAPair,
)
from .router import TypeRouter, strip_type_params

__all__ = [
    "AnswerSet",
    "Attachment",
    "IndexedAttachment",
    "Message",
    "PerceptionRequest",
    "PerceptionSpec",
    "Persona",
    "QAPair",
    "TypeRouter",
    "build_attachment_index",
    "collect_attachments",
    "resolve_attachment",
    "strip_type_params",
]
