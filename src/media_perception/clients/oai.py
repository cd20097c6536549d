"""Helpers for interacting with OpenAI API"""
from typing import Type, TypeVar

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from media_perception.config import core
from media_perception.errors import BackendError

import logging
logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# One global async-capable client
aoai = AsyncOpenAI(api_key=core.OPENAI_API_KEY, base_url=core.OPENAI_BASE_URL)


def _client_for(auth: str | None) -> AsyncOpenAI:
    """Return the shared client, or a copy carrying the caller's credential."""
    if not auth:
        return aoai
    return aoai.with_options(api_key=auth)


# ==============================================
# Vision utilities
# ==============================================

async def describe_json(
    url: str,
    prompt: str,
    response_model: Type[ModelT],
    *,
    model: str | None = None,
    auth: str | None = None,
) -> ModelT:
    """
    Ask the vision model about the media at ``url`` and return a validated reply.

    The reply is constrained with a strict JSON schema derived from
    ``response_model`` and parsed back into it. Transport failures, empty
    output and shape violations all surface as :class:`BackendError`.
    """
    use_model = model or core.VISION_MODEL_ID
    schema = response_model.model_json_schema()

    try:
        resp = await _client_for(auth).responses.create(
            model=use_model,
            input=[
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {"type": "input_image", "image_url": url},
                    ],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": response_model.__name__,
                    "schema": schema,
                    "strict": True,
                }
            },
        )
    except OpenAIError as exc:
        raise BackendError(f"Vision request failed for {url}: {exc}") from exc

    raw = (resp.output_text or "").strip()
    if not raw:
        raise BackendError(f"Vision model {use_model} returned no output for {url}")

    try:
        return response_model.model_validate_json(raw)
    except ValidationError as exc:
        raise BackendError(f"Vision reply did not match {response_model.__name__}: {exc}") from exc
