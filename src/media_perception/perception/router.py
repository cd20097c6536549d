"""MIME-type routing to description backends."""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Sequence, Tuple

from .index import collect_attachments
from .model import Attachment, Message, PerceptionSpec


def strip_type_params(mime_type: str) -> str:
    """Drop a ``+suffix`` from ``mime_type`` (``image/svg+xml`` -> ``image/svg``)."""
    return mime_type.split("+", 1)[0]


class TypeRouter:
    """
    Select the backend able to describe a given MIME type.

    The router is built once from an explicit sequence of specs and never
    changes afterwards; tests build their own with stub backends.
    """

    def __init__(self, specs: Sequence[PerceptionSpec]) -> None:
        self._specs: Tuple[PerceptionSpec, ...] = tuple(specs)
        self._supported: FrozenSet[str] = frozenset(t for spec in self._specs for t in spec.types)

    @property
    def specs(self) -> Tuple[PerceptionSpec, ...]:
        return self._specs

    @property
    def supported_types(self) -> FrozenSet[str]:
        return self._supported

    def route(self, mime_type: str) -> PerceptionSpec | None:
        """Return the first spec whose types contain ``mime_type`` exactly."""
        for spec in self._specs:
            if spec.supports(mime_type):
                return spec
        return None

    def is_available(self, attachment: Attachment) -> bool:
        """True when the attachment's base type is one the router can describe."""
        return strip_type_params(attachment.type) in self._supported

    def available_attachments(self, messages: Iterable[Message]) -> List[Attachment]:
        """Attachments worth advertising to the agent, in message order."""
        return [att for att in collect_attachments(messages) if self.is_available(att)]


__all__ = ["TypeRouter", "strip_type_params"]
