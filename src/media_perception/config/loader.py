from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict


DEFAULT_CONFIG_PATH = Path("config.toml")
CONFIG_PATH_ENV = "MEDIAPERCEPTION_CONFIG"


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Explicit ``path`` first, then ``$MEDIAPERCEPTION_CONFIG``, then ./config.toml."""
    if path is not None:
        return Path(path)
    override = os.getenv(CONFIG_PATH_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Load the ``[mediaperception]`` config file.

    A missing file yields ``{}`` so every section falls back to environment
    variables. Tables outside ``mediaperception`` are dropped, which lets the
    host share one config.toml with other tools.
    """
    target = resolve_config_path(path)
    if not target.is_file():
        return {}

    with target.open("rb") as handle:
        raw = tomllib.load(handle)

    section = raw.get("mediaperception")
    return {"mediaperception": section} if isinstance(section, dict) else {}


__all__ = ["load_raw_config", "resolve_config_path", "DEFAULT_CONFIG_PATH", "CONFIG_PATH_ENV"]
