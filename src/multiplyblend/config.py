"""Configuration loader — engine resource locations from YAML.

Config schema (every key optional):
  paths:
    scratch: "/mnt/scratch"
  engine:
    ffmpeg: "/usr/local/bin/ffmpeg"          # default: imageio-ffmpeg binary
    work_dir: "${scratch}/multiplyblend"     # default: private temp dir

${name} variables in engine values are resolved from the paths block.
"""

import re
from pathlib import Path

import yaml


VALID_TOP_LEVEL_KEYS = {"paths", "engine"}

VALID_ENGINE_KEYS = {"ffmpeg", "work_dir"}


def default_config() -> dict:
    """Config with every engine resource left to its built-in default."""
    return {"engine": {"ffmpeg": None, "work_dir": None}}


def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def load_config(config_path: str | Path | None = None) -> dict:
    """Load, validate, and normalize an engine config file.

    Args:
        config_path: Path to the YAML config, or None for defaults.

    Returns:
        Dict with an "engine" key holding "ffmpeg" and "work_dir"
        (each a string or None).

    Raises:
        FileNotFoundError: Missing config file.
        ValueError: Unknown keys, wrong types, unknown path variables.
    """
    config = default_config()
    if config_path is None:
        return config

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    # An empty file parses to None.
    if raw is None:
        return config
    if not isinstance(raw, dict):
        raise ValueError("Config: top level must be a mapping")

    unknown = set(raw) - VALID_TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(
            f"Config: unknown keys {sorted(unknown)}. "
            f"Valid: {sorted(VALID_TOP_LEVEL_KEYS)}"
        )

    paths = raw.get("paths") or {}
    if not isinstance(paths, dict):
        raise ValueError("Config: 'paths' must be a mapping")

    engine = raw.get("engine") or {}
    if not isinstance(engine, dict):
        raise ValueError("Config: 'engine' must be a mapping")

    unknown = set(engine) - VALID_ENGINE_KEYS
    if unknown:
        raise ValueError(
            f"Config: unknown engine keys {sorted(unknown)}. "
            f"Valid: {sorted(VALID_ENGINE_KEYS)}"
        )

    for key in VALID_ENGINE_KEYS:
        value = engine.get(key)
        if value is None:
            continue
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Config: engine.{key} must be a non-empty string")
        config["engine"][key] = resolve_path_vars(value, paths)

    return config
