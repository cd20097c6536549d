"""
Description backends available to the perception action.

Backends are not discovered or registered globally. The host calls
:func:`build_default_specs` once at startup and hands the result to a
:class:`~media_perception.perception.router.TypeRouter`::

    router = build_default_router()
    action = MediaPerceptionAction(conversation, router)

Adding a backend means writing a ``describe(url, questions, persona, auth)``
coroutine in a sibling module and appending its spec here.
"""

from __future__ import annotations

from typing import List

from ..model import PerceptionSpec
from ..router import TypeRouter


def build_default_specs(image_types: List[str] | None = None) -> List[PerceptionSpec]:
    """Return the specs for every built-in backend."""
    from media_perception.config import perception as perception_cfg

    from .image import build_image_spec

    types = image_types if image_types is not None else perception_cfg.IMAGE_TYPES
    return [build_image_spec(types)]


def build_default_router(image_types: List[str] | None = None) -> TypeRouter:
    return TypeRouter(build_default_specs(image_types))


__all__ = ["build_default_specs", "build_default_router"]
