"""Action execution helpers."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from media_perception.errors import ActionExecutionError, BackendError

from . import ActionOutcome, ActionRegistry, PendingAction


async def execute_action(
    registry: ActionRegistry,
    name: str,
    arguments: str | dict[str, Any],
    event: PendingAction,
) -> ActionOutcome:
    """
    Execute the registered action ``name`` with ``arguments``.

    ``arguments`` may be a JSON string (as provided by OpenAI) or a parsed
    mapping. The helper normalises and validates the payload, stores it on
    ``event.message.args`` and awaits the handler.

    :class:`BackendError` propagates unchanged so the host can report the
    invocation as failed.
    """

    action = registry.get(name)
    if action is None:
        raise ActionExecutionError(f"Unknown action '{name}'")

    if isinstance(arguments, str):
        try:
            parsed_args = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as exc:
            raise ActionExecutionError(f"Invalid JSON arguments for action '{name}': {exc}") from exc
    else:
        parsed_args = arguments

    try:
        validated = action.parameters_model.model_validate(parsed_args)
    except ValidationError as exc:
        raise ActionExecutionError(f"Arguments for action '{name}' do not match its schema: {exc}") from exc

    event.message.args.update(validated.model_dump())

    try:
        return await action.handle(event)
    except (ActionExecutionError, BackendError):
        raise
    except (KeyError, TypeError) as exc:
        raise ActionExecutionError(f"Action '{name}' rejected its payload: {exc}") from exc
