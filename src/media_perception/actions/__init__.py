"""
Registry & host contract for agent actions.

An action is something the agent's planner may choose to invoke. Each render
the host asks every registered action for its :class:`ActionSpec` (the
description the planner sees, regenerated from the live conversation) and,
when the planner picks one, hands the handler a :class:`PendingAction`::

    registry = ActionRegistry()
    registry.register(MediaPerceptionAction(conversation, build_default_router()))

    specs = registry.render(conversation.get_messages())
    ...
    outcome = await execute_action(registry, "mediaPerception", arguments, event)

The handler owns the rest of the turn: it either commits its result and
resumes the agent, or re-prompts the agent to try again.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Literal,
    Protocol,
    Sequence,
    Type,
)

from pydantic import BaseModel

from media_perception.errors import ResolutionReason
from media_perception.perception.model import Message, Persona, QAPair

__all__ = [
    "Action",
    "ActionMessage",
    "ActionOutcome",
    "ActionRegistry",
    "ActionSpec",
    "AgentHandle",
    "Conversation",
    "PendingAction",
]


@dataclass(slots=True)
class ActionSpec:
    """Description of an action as advertised to the agent's planner."""

    name: str
    description: str
    parameters: Dict[str, Any]
    examples: List[Dict[str, Any]] = field(default_factory=list)

    def to_openai(self) -> Dict[str, Any]:
        """Return this spec formatted for OpenAI function calling."""

        description = self.description
        if self.examples:
            rendered = "\n".join(json.dumps(example, ensure_ascii=False) for example in self.examples)
            description = f"{description}\n\nExamples:\n{rendered}"

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": description,
                "parameters": self.parameters,
            },
        }


class Conversation(Protocol):
    def get_messages(self) -> List[Message]: ...


class AgentHandle(Protocol):
    """The invoking agent: its persona and a way to resume its reasoning."""

    persona: Persona

    def act(
        self,
        context_message: str | None = None,
        *,
        exclude_actions: Sequence[str] = (),
    ) -> None: ...


@dataclass(slots=True)
class ActionMessage:
    """The agent-issued action message. ``args`` is mutated by handlers before commit."""

    type: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class PendingAction:
    """Everything a handler needs for one invocation."""

    message: ActionMessage
    agent: AgentHandle
    commit: Callable[[], Awaitable[None]]
    auth: str | None = None


@dataclass(slots=True)
class ActionOutcome:
    """
    What a handler did with an invocation.

    ``consecutive_retries`` counts re-prompts since the action last succeeded.
    Hosts may use it for circuit breaking; handlers never cap it.
    """

    status: Literal["answered", "retried"]
    attachment_id: str
    queries: List[QAPair] = field(default_factory=list)
    reason: ResolutionReason | None = None
    consecutive_retries: int = 0


class Action:
    """Base class for concrete action handlers."""

    name: str
    parameters_model: Type[BaseModel]

    def render(self, messages: List[Message]) -> ActionSpec | None:
        """Return the spec to advertise, or ``None`` to hide the action this turn."""

        raise NotImplementedError

    async def handle(self, event: PendingAction) -> ActionOutcome:
        """Run the action for ``event``."""

        raise NotImplementedError


class ActionRegistry:
    """Named collection of actions built by the host at startup."""

    def __init__(self, actions: Iterable[Action] = ()) -> None:
        self._actions: Dict[str, Action] = {}
        for action in actions:
            self.register(action)

    def register(self, action: Action) -> Action:
        if not isinstance(action, Action):
            raise TypeError("register expects an Action instance")
        if action.name in self._actions:
            raise ValueError(f"Action with name '{action.name}' already registered")
        self._actions[action.name] = action
        return action

    def get(self, name: str) -> Action | None:
        """Return the registered action called ``name``."""

        return self._actions.get(name)

    def render(self, messages: List[Message]) -> List[ActionSpec]:
        """Return the specs of every action that wants to be advertised now."""

        specs = (action.render(messages) for action in self._actions.values())
        return [spec for spec in specs if spec is not None]
