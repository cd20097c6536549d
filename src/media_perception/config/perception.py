import os
from typing import List

_DEFAULT_IMAGE_TYPES = "image/jpeg,image/png,image/webp"


def _split_types(raw: str) -> List[str]:
    return [token.strip().lower() for token in raw.split(",") if token.strip()]


class Perception:
    def __init__(self, config: dict | None = None) -> None:
        perception_cfg = (config or {}).get("mediaperception", {}).get("perception", {})
        self.ACTION_NAME: str = str(
            perception_cfg.get("action_name", os.getenv("PERCEPTION_ACTION_NAME", "mediaPerception"))
        )

        types_cfg = perception_cfg.get("image_types")
        if types_cfg:
            self.IMAGE_TYPES: List[str] = [str(t).strip().lower() for t in types_cfg]
        else:
            self.IMAGE_TYPES = _split_types(os.getenv("PERCEPTION_IMAGE_TYPES", _DEFAULT_IMAGE_TYPES))
