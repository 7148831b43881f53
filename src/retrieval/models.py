"""Data models for knowledge packs and retrieval results."""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class KnowledgeFact:
    id: str
    text: str
    source: str = ""
    timestamp: str = ""
    category: Optional[str] = None

    def to_pack_dict(self) -> dict:
        """Shape used inside a serialized facts pack (category omitted)."""
        return {
            "id": self.id,
            "text": self.text,
            "source": self.source,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class DisclaimerEntry:
    id: str
    text: str
    category: Optional[str] = None
    required_for: tuple[str, ...] = ()


@dataclass(frozen=True)
class LoadDiagnostic:
    """A record that was skipped during load."""

    path: Path
    line_no: int  # 0 for whole-file problems
    reason: str
    level: str = "warning"  # warning | debug


@dataclass(frozen=True)
class LoadResult:
    facts: tuple[KnowledgeFact, ...]
    disclaimers: tuple[DisclaimerEntry, ...]
    diagnostics: tuple[LoadDiagnostic, ...] = ()


@dataclass
class FactsPack:
    """Bounded retrieval result, ready for JSON serialization."""

    topic: str
    facts: list[KnowledgeFact] = field(default_factory=list)
    disclaimers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "facts": [f.to_pack_dict() for f in self.facts],
            "disclaimers": list(self.disclaimers),
        }

    def to_json(self) -> str:
        return serialize_pack(self.to_dict())


def serialize_pack(payload: dict) -> str:
    """Compact JSON, no whitespace between tokens, UTF-8 kept as-is."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def estimate_tokens(serialized: str) -> int:
    """Coarse token estimate: one token per 4 characters, rounded up."""
    return math.ceil(len(serialized) / 4)


def serialized_bytes(serialized: str) -> int:
    return len(serialized.encode("utf-8"))
