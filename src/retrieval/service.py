"""Retrieval service: ranks knowledge facts and packs a budgeted result."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import structlog

from .disclaimers import DisclaimerCatalog, DisclaimerLookup, DisclaimerPolicy
from .errors import BudgetError, NotReadyError
from .index import RetrievalIndex, query_terms
from .loader import load_knowledge_pack
from .models import (
    FactsPack,
    KnowledgeFact,
    LoadResult,
    estimate_tokens,
    serialize_pack,
    serialized_bytes,
)

logger = structlog.get_logger()

DEFAULT_TOP_K = 5
DEFAULT_MAX_TOKENS = 600
DEFAULT_MAX_BYTES = 4000
DEFAULT_TOPIC = "NextGen AI"
MAX_TOPIC_CHARS = 120


@dataclass(frozen=True)
class _Snapshot:
    """Everything a query reads. Replaced wholesale on reload, never mutated."""

    result: LoadResult
    index: RetrievalIndex
    catalog: DisclaimerCatalog


def fits_caps(payload: dict, max_tokens: int, max_bytes: int) -> bool:
    serialized = serialize_pack(payload)
    return serialized_bytes(serialized) <= max_bytes and estimate_tokens(serialized) <= max_tokens


class _PackBuilder:
    """Greedy budget fitting over ranked facts and selected disclaimers."""

    def __init__(self, topic: str, max_tokens: int, max_bytes: int):
        self.topic = topic
        self.max_tokens = max_tokens
        self.max_bytes = max_bytes
        self.facts: dict[int, KnowledgeFact] = {}  # rank -> fact
        self.disclaimers: list[str] = []

    def _payload(self, facts: dict[int, KnowledgeFact], disclaimers: list[str]) -> dict:
        return {
            "topic": self.topic,
            "facts": [facts[rank].to_pack_dict() for rank in sorted(facts)],
            "disclaimers": disclaimers,
        }

    def fit_topic(self) -> None:
        """Shorten the topic until an empty pack fits."""
        while not fits_caps(self._payload({}, []), self.max_tokens, self.max_bytes):
            if not self.topic:
                raise BudgetError(
                    f"max_tokens={self.max_tokens}, max_bytes={self.max_bytes} "
                    "cannot hold an empty facts pack"
                )
            self.topic = self.topic[:-1]

    def fits_with(self, rank: int, fact: KnowledgeFact, disclaimer_ids: list[str]) -> bool:
        trial = {**self.facts, rank: fact}
        payload = self._payload(trial, [*self.disclaimers, *disclaimer_ids])
        return fits_caps(payload, self.max_tokens, self.max_bytes)

    def reserve_fact(
        self, remaining: list[tuple[int, KnowledgeFact]], disclaimer_ids: list[str]
    ) -> bool:
        """Fill one reserved slot, preferring a fact that leaves room for the disclaimers.

        Falls back to the best fact that fits on its own. The chosen fact is
        removed from ``remaining``.
        """
        for wanted in (disclaimer_ids, []):
            for item in remaining:
                if self.fits_with(*item, wanted):
                    remaining.remove(item)
                    rank, fact = item
                    self.facts = {**self.facts, rank: fact}
                    return True
        return False

    def try_fact(self, rank: int, fact: KnowledgeFact) -> bool:
        trial = {**self.facts, rank: fact}
        if fits_caps(self._payload(trial, self.disclaimers), self.max_tokens, self.max_bytes):
            self.facts = trial
            return True
        return False

    def try_disclaimer(self, disclaimer_id: str) -> bool:
        trial = [*self.disclaimers, disclaimer_id]
        if fits_caps(self._payload(self.facts, trial), self.max_tokens, self.max_bytes):
            self.disclaimers = trial
            return True
        return False

    def build(self) -> FactsPack:
        return FactsPack(
            topic=self.topic,
            facts=[self.facts[rank] for rank in sorted(self.facts)],
            disclaimers=list(self.disclaimers),
        )


class RetrievalService:
    """Owns one loaded knowledge pack and answers bounded retrieval queries.

    Load once with ``load()``; after that every ``retrieve_facts_pack`` call
    is a pure read over an immutable snapshot and is safe to call from many
    threads at once.
    """

    def __init__(
        self,
        facts_path: Union[str, Path],
        disclaimers_path: Optional[Union[str, Path]] = None,
        top_k: int = DEFAULT_TOP_K,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        max_bytes: int = DEFAULT_MAX_BYTES,
        policy: Optional[DisclaimerPolicy] = None,
        require_disclaimers: bool = False,
        length_exponent: float = 0.5,
        default_topic: str = DEFAULT_TOPIC,
    ):
        self.facts_path = Path(facts_path)
        self.disclaimers_path = Path(disclaimers_path) if disclaimers_path else None
        self.top_k = top_k
        self.max_tokens = max_tokens
        self.max_bytes = max_bytes
        self.policy = policy or DisclaimerPolicy()
        self.require_disclaimers = require_disclaimers
        self.length_exponent = length_exponent
        self.default_topic = default_topic
        self._snapshot: Optional[_Snapshot] = None

    def load(self) -> LoadResult:
        """Load the pack, build the index, then swap the new snapshot in.

        Raises:
            LoadError: facts file unreadable (previous snapshot is kept).
        """
        result = load_knowledge_pack(
            self.facts_path,
            self.disclaimers_path,
            require_disclaimers=self.require_disclaimers,
        )
        snapshot = _Snapshot(
            result=result,
            index=RetrievalIndex(result.facts, length_exponent=self.length_exponent),
            catalog=DisclaimerCatalog(result.disclaimers),
        )
        self._snapshot = snapshot
        logger.info("retrieval_ready", facts=len(snapshot.index), disclaimers=len(snapshot.catalog))
        return result

    reload = load

    def is_ready(self) -> bool:
        return self._snapshot is not None

    def _require_snapshot(self) -> _Snapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise NotReadyError()
        return snapshot

    @property
    def load_result(self) -> LoadResult:
        return self._require_snapshot().result

    def get_defaults(self) -> dict[str, int]:
        return {"top_k": self.top_k, "max_tokens": self.max_tokens, "max_bytes": self.max_bytes}

    def rank(self, topic: str, top_k: Optional[int] = None) -> list[tuple[KnowledgeFact, float]]:
        """Top ``top_k`` facts with a non-zero score, best first, ties by id."""
        return self._rank(self._require_snapshot(), query_terms(topic), self._pick(top_k, self.top_k))

    @staticmethod
    def _rank(snapshot: _Snapshot, terms: list[str], top_k: int) -> list[tuple[KnowledgeFact, float]]:
        if not terms or top_k <= 0:
            return []
        index = snapshot.index
        scored = []
        for fact_id in index.candidates(terms):
            score = index.score(fact_id, terms)
            if score > 0:
                scored.append((index.get(fact_id), score))
        scored.sort(key=lambda item: (-item[1], item[0].id))
        return scored[:top_k]

    @staticmethod
    def _pick(override: Optional[int], default: int) -> int:
        return default if override is None else override

    def retrieve_facts_pack(
        self,
        topic: str,
        top_k: Optional[int] = None,
        max_tokens: Optional[int] = None,
        max_bytes: Optional[int] = None,
    ) -> FactsPack:
        """Build a relevance-ranked facts pack that fits the token and byte caps.

        Args:
            topic: Free-text query.
            top_k: Candidate cap before budget trimming.
            max_tokens: Cap on ceil(len(serialized) / 4).
            max_bytes: Cap on UTF-8 size of the serialized pack.

        Raises:
            NotReadyError: called before a successful load().
            BudgetError: caps too small for even an empty pack.
        """
        snapshot = self._require_snapshot()
        top_k = self._pick(top_k, self.top_k)
        max_tokens = self._pick(max_tokens, self.max_tokens)
        max_bytes = self._pick(max_bytes, self.max_bytes)
        if top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {top_k}")

        cleaned = topic.strip()
        terms = query_terms(cleaned)
        ranked = self._rank(snapshot, terms, top_k)
        candidates = [fact for fact, _ in ranked]

        # Category tags come from all top_k candidates, including facts that
        # budget fitting drops below.
        tags = self.policy.matched_tags(terms, candidates)
        disclaimer_ids = snapshot.catalog.select(self.policy, tags)

        builder = _PackBuilder((cleaned or self.default_topic)[:MAX_TOPIC_CHARS], max_tokens, max_bytes)
        builder.fit_topic()

        remaining = list(enumerate(candidates))
        for _ in range(self.policy.reserved_fact_slots):
            if not builder.reserve_fact(remaining, disclaimer_ids):
                break

        dropped_disclaimers = [d for d in disclaimer_ids if not builder.try_disclaimer(d)]
        for rank, fact in remaining:
            builder.try_fact(rank, fact)

        pack = builder.build()
        dropped_facts = [fact.id for rank, fact in enumerate(candidates) if rank not in builder.facts]
        logger.debug(
            "facts_pack_built",
            topic=pack.topic,
            candidates=len(candidates),
            facts=len(pack.facts),
            disclaimers=len(pack.disclaimers),
            dropped_facts=dropped_facts,
            dropped_disclaimers=dropped_disclaimers,
        )
        return pack

    def lookup_disclaimer(self, disclaimer_id: str) -> Optional[str]:
        return self._require_snapshot().catalog.lookup(disclaimer_id)

    def lookup_disclaimers(self, disclaimer_ids: list[str]) -> DisclaimerLookup:
        return self._require_snapshot().catalog.lookup_many(disclaimer_ids)

    def format_disclaimer_block(
        self, disclaimer_ids: list[str], separator: str = " "
    ) -> tuple[Optional[str], list[str]]:
        return self._require_snapshot().catalog.format_block(disclaimer_ids, separator=separator)
