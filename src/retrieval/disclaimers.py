"""Disclaimer selection policy and catalog lookups."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

import structlog

from .models import DisclaimerEntry, KnowledgeFact

logger = structlog.get_logger()


@dataclass(frozen=True)
class DisclaimerPolicy:
    """Construction-time rules deciding which disclaimers a query requires.

    Attributes:
        always_required_ids: Disclaimer ids included on every query.
        always_required_tags: Tags treated as matched on every query.
        topic_triggers: Query term -> tags it activates.
        category_tags: Fact category -> tags it activates. Unmapped
            categories activate a tag equal to the category name.
        reserved_fact_slots: Facts placed before any disclaimer during
            budget fitting, so a pack is never disclaimers-only when a
            fact could fit.
    """

    always_required_ids: tuple[str, ...] = ()
    always_required_tags: tuple[str, ...] = ("all_sessions",)
    topic_triggers: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: {
            "performance": ("performance_claims",),
            "latency": ("performance_claims",),
        }
    )
    category_tags: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: {"performance": ("performance_claims",)}
    )
    reserved_fact_slots: int = 1

    def matched_tags(self, terms: Iterable[str], facts: Iterable[KnowledgeFact]) -> set[str]:
        """Tags activated by the query terms and the candidate facts' categories."""
        tags = set(self.always_required_tags)
        for term in terms:
            tags.add(term)
            for trigger, trigger_tags in self.topic_triggers.items():
                if trigger in term:
                    tags.update(trigger_tags)
        for fact in facts:
            if fact.category:
                tags.update(self.category_tags.get(fact.category, (fact.category,)))
        return tags


@dataclass(frozen=True)
class DisclaimerLookup:
    texts: list[str]
    missing: list[str]


class DisclaimerCatalog:
    """Read-only view over loaded disclaimers, in file order."""

    def __init__(self, entries: Iterable[DisclaimerEntry]):
        self._entries: dict[str, DisclaimerEntry] = {}
        for entry in entries:
            self._entries.setdefault(entry.id, entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries.values())

    def get(self, disclaimer_id: str) -> Optional[DisclaimerEntry]:
        return self._entries.get(disclaimer_id)

    def select(self, policy: DisclaimerPolicy, tags: set[str]) -> list[str]:
        """Ids whose ``required_for`` intersects ``tags`` or that the policy always requires.

        Always-required ids come first, then tag matches in catalog order.
        """
        selected = [d for d in policy.always_required_ids if d in self._entries]
        for entry in self._entries.values():
            if entry.id in selected:
                continue
            if tags.intersection(entry.required_for):
                selected.append(entry.id)
        return selected

    def lookup(self, disclaimer_id: str) -> Optional[str]:
        """Return disclaimer text, or None for an empty or unknown id."""
        if not disclaimer_id:
            return None
        entry = self._entries.get(disclaimer_id)
        if entry is None:
            logger.warning("unknown_disclaimer_id", disclaimer_id=disclaimer_id)
            return None
        return entry.text

    def lookup_many(self, disclaimer_ids: Iterable[str]) -> DisclaimerLookup:
        texts: list[str] = []
        missing: list[str] = []
        for disclaimer_id in dict.fromkeys(d for d in disclaimer_ids if d):
            text = self.lookup(disclaimer_id)
            if text:
                texts.append(text)
            else:
                missing.append(disclaimer_id)
        return DisclaimerLookup(texts=texts, missing=missing)

    def format_block(
        self, disclaimer_ids: Iterable[str], separator: str = " "
    ) -> tuple[Optional[str], list[str]]:
        """Join disclaimer texts for appending to a response.

        Returns (text or None when nothing resolved, missing ids).
        """
        result = self.lookup_many(disclaimer_ids)
        if not result.texts:
            return None, result.missing
        return separator.join(result.texts), result.missing
