"""Shared test fixtures for factpack."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

SAMPLE_KNOWLEDGE_DIR = Path(__file__).parent.parent / "knowledge"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep RAG_* / KNOWLEDGE_DIR from the developer's shell out of tests."""
    for key in ("RAG_TOP_K", "RAG_MAX_TOKENS", "RAG_MAX_BYTES", "KNOWLEDGE_DIR"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def sample_knowledge_dir():
    return SAMPLE_KNOWLEDGE_DIR


@pytest.fixture
def sample_service(sample_knowledge_dir):
    """Service loaded with the bundled sample knowledge pack."""
    from retrieval import RetrievalService

    service = RetrievalService(
        sample_knowledge_dir / "nxtg_facts.jsonl",
        sample_knowledge_dir / "disclaimers.json",
        top_k=5,
        max_tokens=600,
        max_bytes=4000,
    )
    service.load()
    return service


@pytest.fixture
def write_pack(tmp_path):
    """Write a facts JSONL file (and optional disclaimers JSON) into tmp_path.

    Facts may be dicts (serialized) or raw strings (written verbatim).
    """

    def _write(facts, disclaimers=None, name="facts.jsonl"):
        facts_path = tmp_path / name
        lines = [f if isinstance(f, str) else json.dumps(f) for f in facts]
        facts_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

        disclaimers_path = None
        if disclaimers is not None:
            disclaimers_path = tmp_path / "disclaimers.json"
            disclaimers_path.write_text(json.dumps({"disclaimers": disclaimers}), encoding="utf-8")
        return facts_path, disclaimers_path

    return _write
