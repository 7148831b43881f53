"""Tests for retrieval data models and pack serialization."""

import json

from retrieval.models import (
    FactsPack,
    KnowledgeFact,
    estimate_tokens,
    serialize_pack,
    serialized_bytes,
)


class TestEstimateTokens:
    def test_empty(self):
        assert estimate_tokens("") == 0

    def test_rounds_up(self):
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("a" * 200) == 50

    def test_counts_characters_not_bytes(self):
        assert estimate_tokens("éééé") == 1
        assert serialized_bytes("éééé") == 8


class TestSerializePack:
    def test_compact(self):
        out = serialize_pack({"topic": "x", "facts": [], "disclaimers": []})
        assert out == '{"topic":"x","facts":[],"disclaimers":[]}'

    def test_non_ascii_kept(self):
        out = serialize_pack({"topic": "café"})
        assert "café" in out
        assert "\\u" not in out


class TestFactsPack:
    def test_to_dict_omits_category(self):
        fact = KnowledgeFact(id="F1", text="Hello", source="s", timestamp="t", category="c")
        pack = FactsPack(topic="hello", facts=[fact], disclaimers=["D1"])
        assert pack.to_dict() == {
            "topic": "hello",
            "facts": [{"id": "F1", "text": "Hello", "source": "s", "timestamp": "t"}],
            "disclaimers": ["D1"],
        }

    def test_to_json_round_trips(self):
        pack = FactsPack(topic="t", facts=[KnowledgeFact(id="F1", text="x")])
        assert json.loads(pack.to_json())["facts"][0]["id"] == "F1"

    def test_defaults_empty(self):
        pack = FactsPack(topic="t")
        assert pack.facts == []
        assert pack.disclaimers == []


class TestKnowledgeFact:
    def test_defaults(self):
        f = KnowledgeFact(id="F1", text="Hello")
        assert f.source == ""
        assert f.timestamp == ""
        assert f.category is None
