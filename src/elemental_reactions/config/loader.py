from __future__ import annotations

import logging
import os
from importlib.resources import files as resource_files
from pathlib import Path
from typing import Optional, Union

import yaml
from platformdirs import user_config_dir
from pydantic import ValidationError

from ..exceptions import ConfigError
from .models import ReactionConfig

logger = logging.getLogger(__name__)

APP_NAME = "elemental_reactions"
ENV_CONFIG_PATH = "ELEMENTAL_REACTIONS_CONFIG"
DEFAULT_RESOURCE = "defaults.yaml"
USER_CONFIG_NAME = "config.yaml"


def default_user_config_path() -> Path:
    """Per-user override location, e.g. ~/.config/elemental_reactions/config.yaml."""
    return Path(user_config_dir(APP_NAME)) / USER_CONFIG_NAME


def load_default_data() -> dict:
    text = resource_files("elemental_reactions.config").joinpath(DEFAULT_RESOURCE).read_text(encoding="utf-8")
    logger.debug("Loaded embedded default config resource")
    return yaml.safe_load(text) or {}


def _deep_merge(base: dict, overlay: dict) -> dict:
    merged = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            merged[k] = _deep_merge(base[k], v)
        else:
            merged[k] = v
    return merged


def _resolve_path(path: Optional[Union[str, Path]]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        return Path(env_path)
    candidate = default_user_config_path()
    if candidate.exists():
        return candidate
    return None


def _read_user_file(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"top-level YAML value must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Optional[Union[str, Path]] = None, *, strict: bool = False) -> ReactionConfig:
    """Load the engine configuration.

    Built-in defaults are always loaded; a user file (explicit ``path``, the
    ``ELEMENTAL_REACTIONS_CONFIG`` environment variable, or the per-user config
    file) is deep-merged on top. A missing or invalid user file is logged and
    ignored unless ``strict`` is set, in which case ConfigError is raised.
    """
    default_data = load_default_data()
    user_path = _resolve_path(path)
    user_data: dict = {}
    if user_path is not None:
        if not user_path.exists():
            if strict:
                raise ConfigError(f"Config file not found: {user_path}")
            logger.warning("Config file not found: %s; using defaults", user_path)
        else:
            try:
                user_data = _read_user_file(user_path)
                logger.info("Loaded user config from %s", user_path)
            except (OSError, yaml.YAMLError, ValueError) as exc:
                if strict:
                    raise ConfigError(f"Could not read config file {user_path}: {exc}") from exc
                logger.warning("Could not read config file %s (%s); using defaults", user_path, exc)

    merged = _deep_merge(default_data, user_data)
    try:
        config = ReactionConfig.model_validate(merged)
    except ValidationError as exc:
        if strict:
            raise ConfigError(f"Invalid config: {exc}") from exc
        logger.warning("Invalid config values (%s); falling back to built-in defaults", exc)
        config = ReactionConfig.model_validate(default_data)
    logger.debug("Config loaded: %s", config)
    return config
