"""Shared CLI utilities."""

from pathlib import Path
from typing import Optional

import structlog
from rich.console import Console

from cli.config_models import FactpackConfig
from retrieval import RetrievalService, resolve_knowledge_file
from retrieval.loader import DEFAULT_DISCLAIMERS_FILE, DEFAULT_FACTS_FILE

console = Console()
logger = structlog.get_logger()


def resolve_paths(config: FactpackConfig) -> tuple[Path, Optional[Path]]:
    """Facts and disclaimers paths: explicit config first, then knowledge dir search.

    Raises:
        LoadError: facts file cannot be located.
    """
    kc = config.knowledge
    facts_path = kc.facts_path or resolve_knowledge_file(DEFAULT_FACTS_FILE, kc.knowledge_dir)
    disclaimers_path = kc.disclaimers_path or resolve_knowledge_file(
        DEFAULT_DISCLAIMERS_FILE, kc.knowledge_dir, optional=True
    )
    return facts_path, disclaimers_path


def build_service(config: FactpackConfig, load: bool = True) -> RetrievalService:
    """Construct the retrieval service from config (one per process).

    Raises:
        LoadError: facts file missing or unreadable.
    """
    facts_path, disclaimers_path = resolve_paths(config)
    rc = config.retrieval
    service = RetrievalService(
        facts_path,
        disclaimers_path,
        top_k=rc.top_k,
        max_tokens=rc.max_tokens,
        max_bytes=rc.max_bytes,
        policy=config.disclaimers.to_policy(),
        require_disclaimers=config.knowledge.require_disclaimers,
        length_exponent=rc.length_exponent,
        default_topic=rc.default_topic,
    )
    if load:
        service.load()
    return service
