"""
Media perception action.

Lets the agent ask short questions about one attachment in the conversation.
A successful invocation writes the answers into the action message as
``queries``, commits it, and resumes the agent with the findings while hiding
this action for the next step. A request the workflow cannot serve (unknown
id, attachment without a url, or a type no backend handles) re-prompts the
agent instead; those requests never fail the invocation.
"""

from __future__ import annotations

import json
import logging
import textwrap
import uuid
from typing import List, Tuple

from pydantic import BaseModel

from media_perception.config import perception as perception_cfg
from media_perception.errors import BackendError, RequestResolutionError
from media_perception.perception.index import build_attachment_index
from media_perception.perception.model import Attachment, Message, PerceptionRequest, PerceptionSpec, QAPair
from media_perception.perception.router import TypeRouter

from . import Action, ActionOutcome, ActionSpec, AgentHandle, Conversation, PendingAction

logger = logging.getLogger(__name__)

_DESCRIPTION = textwrap.dedent(
    """\
    Query multimedia content using natural language questions + answers.
    The questions should be short and specific.
    Use this whenever you need to know more information about a piece of media, like an image attachment.

    The available media are:
    """
)

_FINDINGS_HEADER = "Your character looked at an attachment and discovered the following:"


class MediaPerceptionArgs(BaseModel):
    id: str
    questions: List[str]


def assemble(questions: List[str], answers: List[str]) -> List[QAPair]:
    """Pair each question with the answer at the same position."""
    return [QAPair(q=q, a=a) for q, a in zip(questions, answers, strict=True)]


def build_findings_message(attachment_id: str, queries: List[QAPair]) -> str:
    """Context message handed back to the agent after a successful query."""
    payload = {
        "attachmentId": attachment_id,
        "queries": [pair.to_dict() for pair in queries],
    }
    return f"{_FINDINGS_HEADER}\n{json.dumps(payload, indent=2, ensure_ascii=False)}"


class MediaPerceptionAction(Action):
    """Answer the agent's questions about a conversation attachment."""

    parameters_model = MediaPerceptionArgs

    def __init__(
        self,
        conversation: Conversation,
        router: TypeRouter,
        *,
        name: str | None = None,
    ) -> None:
        self.conversation = conversation
        self.router = router
        self.name = name or perception_cfg.ACTION_NAME
        # One id shared by all examples of this instance
        self._example_id = str(uuid.uuid4())
        self._consecutive_retries = 0

    @property
    def consecutive_retries(self) -> int:
        return self._consecutive_retries

    # ------------------------------------------------------------------ #
    # Descriptor
    # ------------------------------------------------------------------ #

    def render(self, messages: List[Message]) -> ActionSpec | None:
        attachments = self.router.available_attachments(messages)
        if not attachments:
            return None

        listing = json.dumps([att.to_dict() for att in attachments], indent=2, ensure_ascii=False)
        description = f"{_DESCRIPTION}```\n{listing}\n```"

        return ActionSpec(
            name=self.name,
            description=description,
            parameters=self.parameters_model.model_json_schema(),
            examples=[
                {"id": self._example_id, "questions": ["Describe the image."]},
                {"id": self._example_id, "questions": ["What are the dimensions of the subject, in meters?"]},
                {
                    "id": self._example_id,
                    "questions": ["Describe the people in the image.", "What's the mood/aesthetic?"],
                },
            ],
        )

    # ------------------------------------------------------------------ #
    # Handler
    # ------------------------------------------------------------------ #

    async def handle(self, event: PendingAction) -> ActionOutcome:
        request = PerceptionRequest.from_args(event.message.args)
        agent = event.agent

        try:
            attachment, spec = self._resolve(request.attachment_id)
        except RequestResolutionError as exc:
            return self._retry(agent, exc)

        # BackendError propagates to the host
        answers = await spec.describe(attachment.url, request.questions, agent.persona, event.auth)
        if len(answers) != len(request.questions):
            raise BackendError(
                f"Backend '{spec.name}' returned {len(answers)} answer(s) "
                f"for {len(request.questions)} question(s)"
            )

        queries = assemble(request.questions, answers)
        logger.info(
            "media perception qa for %s: %s",
            attachment.id,
            [pair.to_dict() for pair in queries],
        )

        event.message.args["queries"] = [pair.to_dict() for pair in queries]
        await event.commit()

        self._consecutive_retries = 0
        agent.act(
            build_findings_message(attachment.id, queries),
            exclude_actions=[self.name],
        )
        return ActionOutcome(
            status="answered",
            attachment_id=attachment.id,
            queries=queries,
        )

    def _resolve(self, attachment_id: str) -> Tuple[Attachment, PerceptionSpec]:
        """Find the attachment and its backend, or explain why that is impossible."""

        index = build_attachment_index(self.conversation.get_messages())
        entry = index.get(attachment_id)
        if entry is None:
            logger.warning(
                "model generated invalid attachment id %r; known ids: %s",
                attachment_id,
                list(index),
            )
            raise RequestResolutionError(
                "not_found", attachment_id, f"No attachment with id '{attachment_id}'"
            )

        attachment = entry.attachment
        if not attachment.url:
            logger.warning(
                "attachment %r (message %s) has no url",
                attachment_id,
                entry.message.id,
            )
            raise RequestResolutionError(
                "no_url", attachment_id, f"Attachment '{attachment_id}' has no url"
            )

        spec = self.router.route(attachment.type)
        if spec is None:
            logger.warning(
                "no media perception backend for type %r; supported: %s",
                attachment.type,
                sorted(self.router.supported_types),
            )
            raise RequestResolutionError(
                "unsupported_type",
                attachment_id,
                f"No backend handles type '{attachment.type}'",
            )

        return attachment, spec

    def _retry(self, agent: AgentHandle, exc: RequestResolutionError) -> ActionOutcome:
        """Let the agent reconsider from scratch. No context, no exclusions."""

        self._consecutive_retries += 1
        logger.info(
            "retrying agent after %s (consecutive retries: %d)",
            exc.reason,
            self._consecutive_retries,
        )
        agent.act()
        return ActionOutcome(
            status="retried",
            attachment_id=exc.attachment_id,
            reason=exc.reason,
            consecutive_retries=self._consecutive_retries,
        )


__all__ = [
    "MediaPerceptionAction",
    "MediaPerceptionArgs",
    "assemble",
    "build_findings_message",
]
