"""Term index over knowledge facts for candidate lookup and scoring."""

import re
from collections import defaultdict
from typing import Iterable

from .models import KnowledgeFact

_WORD_RE = re.compile(r"[^\W_]+")
_EDGE_PUNCT_RE = re.compile(r"^[\W_]+|[\W_]+$")

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "if", "then", "else", "with",
        "without", "for", "to", "of", "in", "on", "at", "by", "from", "is",
        "are", "was", "were", "be", "been", "being", "it", "this", "that",
        "these", "those", "as", "into", "about", "over", "under", "after",
        "before", "between", "across", "while", "during", "so", "than", "too",
        "very",
    }
)


def tokenize(text: str) -> list[str]:
    """Lower-cased alphanumeric runs."""
    return _WORD_RE.findall(text.lower())


def query_terms(topic: str) -> list[str]:
    """Normalize a free-text topic into de-duplicated query terms.

    Whitespace split, lower-cased, edge punctuation stripped. Stop words are
    dropped unless the topic consists only of stop words.
    """
    terms: list[str] = []
    for raw in topic.lower().split():
        term = _EDGE_PUNCT_RE.sub("", raw)
        if term and _WORD_RE.search(term) and term not in terms:
            terms.append(term)

    content = [t for t in terms if t not in STOP_WORDS]
    return content or terms


class RetrievalIndex:
    """Read-only mapping of normalized terms to the facts containing them.

    Built once per loaded pack. Queries never mutate it.
    """

    def __init__(self, facts: Iterable[KnowledgeFact], length_exponent: float = 0.5):
        self.length_exponent = length_exponent
        self._facts: dict[str, KnowledgeFact] = {}
        self._lowered: dict[str, str] = {}
        self._word_counts: dict[str, int] = {}

        postings: dict[str, list[str]] = defaultdict(list)
        for fact in facts:
            self._facts[fact.id] = fact
            self._lowered[fact.id] = fact.text.lower()
            words = tokenize(fact.text)
            self._word_counts[fact.id] = max(len(words), 1)
            for word in dict.fromkeys(words):
                postings[word].append(fact.id)

        self._postings: dict[str, tuple[str, ...]] = {
            term: tuple(ids) for term, ids in postings.items()
        }

    def __len__(self) -> int:
        return len(self._facts)

    @property
    def vocabulary(self) -> frozenset[str]:
        return frozenset(self._postings)

    def get(self, fact_id: str) -> KnowledgeFact | None:
        return self._facts.get(fact_id)

    def postings(self, term: str) -> tuple[str, ...]:
        return self._postings.get(term, ())

    def candidates(self, terms: list[str]) -> set[str]:
        """Superset of fact ids whose text may contain any of ``terms``.

        Each alphanumeric piece of a term is matched against the vocabulary
        by substring, so "perf" finds facts indexed under "performance".
        """
        pieces = {piece for term in terms for piece in _WORD_RE.findall(term)}
        found: set[str] = set()
        for word, ids in self._postings.items():
            if any(piece in word for piece in pieces):
                found.update(ids)
        return found

    def matched_terms(self, fact_id: str, terms: list[str]) -> list[str]:
        text = self._lowered.get(fact_id, "")
        return [t for t in terms if t in text]

    def score(self, fact_id: str, terms: list[str]) -> float:
        """Matched query terms normalized by fact length (word count ** exponent)."""
        matched = len(self.matched_terms(fact_id, terms))
        if not matched:
            return 0.0
        return matched / (self._word_counts[fact_id] ** self.length_exponent)
