"""
Image backend
=============
1. Input : attachment url, the agent's questions, the agent's persona.
2. Build one role-play prompt listing the questions as JSON.
3. await oai.describe_json(url, prompt, AnswerSet, auth=...)
4. Return ``answers`` in question order.

NOTE: Errors are not caught here; :class:`BackendError` reaches the action
handler and, from there, the host.
"""

from __future__ import annotations

import json
import textwrap
from typing import Iterable, List

from media_perception.clients import oai
from ..model import AnswerSet, PerceptionSpec, Persona

import logging
logger = logging.getLogger(__name__)

DEFAULT_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")


def build_describe_prompt(questions: List[str], persona: Persona) -> str:
    """Render the persona role-play instructions followed by the question list."""

    header = textwrap.dedent(
        f"""\
        Respond as if you are role playing the following character:
        Name: {persona.name}
        Bio: {persona.bio}

        Answer the following questions about the image, as JSON array.
        Each question string in the input array should be answered with a string in the output array.
        """
    )
    return header + json.dumps({"questions": questions}, indent=2, ensure_ascii=False)


async def describe_image(
    url: str,
    questions: List[str],
    persona: Persona,
    auth: str | None = None,
) -> List[str]:
    """Answer ``questions`` about the image at ``url`` in the voice of ``persona``."""

    prompt = build_describe_prompt(questions, persona)
    logger.debug("Describing %s with %d question(s)", url, len(questions))
    result = await oai.describe_json(url, prompt, AnswerSet, auth=auth)
    return list(result.answers)


def build_image_spec(types: Iterable[str] = DEFAULT_IMAGE_TYPES) -> PerceptionSpec:
    return PerceptionSpec(name="image", types=frozenset(types), describe=describe_image)
