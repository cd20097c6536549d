from __future__ import annotations

"""Records exchanged between the conversation, the router and the backends.

Attachment schema (output of :meth:`Attachment.to_dict`):

```
{"id": "a1", "type": "image/png", "url": "https://cdn.example/1.png"}
```

QA pair schema (output of :meth:`QAPair.to_dict`), as written into the action
message's ``queries`` argument:

```
{"q": "Describe the image.", "a": "A cat on a mat."}
```
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict


def _drop_nones(d: Dict[str, Any]) -> Dict[str, Any]:
    """Return a shallow copy of ``d`` without keys mapped to ``None``."""
    return {k: v for k, v in d.items() if v is not None}


@dataclass(slots=True, frozen=True)
class Attachment:
    """Media attached to a conversation message."""

    id: str
    type: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_nones({"id": self.id, "type": self.type, "url": self.url})


@dataclass(slots=True)
class Message:
    """Conversation entry. Owns zero or more attachments."""

    id: str
    attachments: List[Attachment] = field(default_factory=list)
    role: str = "user"
    content: str = ""


@dataclass(slots=True, frozen=True)
class Persona:
    """Character the describing model should role play."""

    name: str
    bio: str = ""


@dataclass(slots=True)
class PerceptionRequest:
    """Question batch about a single attachment, as issued by the agent."""

    attachment_id: str
    questions: List[str]

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> "PerceptionRequest":
        """Build a request from the action payload ``{"id": ..., "questions": [...]}``."""
        return cls(attachment_id=args["id"], questions=list(args["questions"]))


@dataclass(slots=True)
class QAPair:
    q: str
    a: str

    def to_dict(self) -> Dict[str, str]:
        return {"q": self.q, "a": self.a}


class AnswerSet(BaseModel):
    """Reply shape required from a description backend: one answer per question."""

    model_config = ConfigDict(extra="forbid")

    answers: List[str]


DescribeFn = Callable[[str, List[str], Persona, Optional[str]], Awaitable[List[str]]]


@dataclass(slots=True, frozen=True)
class PerceptionSpec:
    """A description backend and the MIME types it accepts (parameters stripped)."""

    name: str
    types: FrozenSet[str]
    describe: DescribeFn

    def supports(self, mime_type: str) -> bool:
        return mime_type in self.types


__all__ = [
    "AnswerSet",
    "Attachment",
    "DescribeFn",
    "Message",
    "PerceptionRequest",
    "PerceptionSpec",
    "Persona",
    "QAPair",
]
