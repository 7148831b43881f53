"""Configuration loading and management."""

import os
from pathlib import Path
from typing import Optional

import structlog
import yaml

from .config_models import FactpackConfig

logger = structlog.get_logger()

# Environment variable -> retrieval setting
ENV_OVERRIDES = {
    "RAG_TOP_K": "top_k",
    "RAG_MAX_TOKENS": "max_tokens",
    "RAG_MAX_BYTES": "max_bytes",
}


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / "factpack.yaml",
        Path.home() / ".factpack" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def _env_int(key: str) -> Optional[int]:
    raw = os.getenv(key)
    if not raw:
        return None
    try:
        return int(raw, 10)
    except ValueError:
        logger.warning("invalid_env_override", key=key, value=raw)
        return None


def apply_env_overrides(data: dict) -> dict:
    """Overlay RAG_* and KNOWLEDGE_DIR environment variables onto a config dict."""
    result = {**data}
    retrieval = dict(result.get("retrieval") or {})
    for env_key, field in ENV_OVERRIDES.items():
        value = _env_int(env_key)
        if value is not None:
            retrieval[field] = value
    if retrieval:
        result["retrieval"] = retrieval

    knowledge_dir = os.getenv("KNOWLEDGE_DIR")
    if knowledge_dir:
        knowledge = dict(result.get("knowledge") or {})
        knowledge.setdefault("knowledge_dir", knowledge_dir)
        result["knowledge"] = knowledge
    return result


def load_config_model(config_path: Optional[Path] = None) -> FactpackConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    try:
        return FactpackConfig.from_dict(apply_env_overrides(base_config))
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration as a plain dict."""
    return load_config_model(config_path).to_dict()
