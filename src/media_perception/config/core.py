import os


class Core:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("mediaperception", {})
        openai_cfg = cfg.get("openai", {})
        models_cfg = cfg.get("models", {})

        openai_env = str(openai_cfg.get("openai_key_env", "OPENAI_API_KEY"))

        self.OPENAI_API_KEY: str | None = os.getenv(openai_env)
        self.OPENAI_BASE_URL: str | None = openai_cfg.get("base_url") or os.getenv("OPENAI_BASE_URL") or None
        self.VISION_MODEL_ID: str = str(
            models_cfg.get("vision_model") or os.getenv("VISION_MODEL_ID") or "gpt-4o-mini"
        )

        required = [
            ("OPENAI_API_KEY", self.OPENAI_API_KEY),
            ("VISION_MODEL_ID", self.VISION_MODEL_ID),
        ]
        missing = [name for name, val in required if not val]
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")
