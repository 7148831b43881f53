"""Pydantic configuration models for factpack."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from retrieval import DisclaimerPolicy


class KnowledgeConfig(BaseModel):
    """Knowledge pack file locations."""

    knowledge_dir: Optional[Path] = None
    facts_path: Optional[Path] = None
    disclaimers_path: Optional[Path] = None
    require_disclaimers: bool = False

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        if self.knowledge_dir:
            self.knowledge_dir = self.knowledge_dir.expanduser()
        if self.facts_path:
            self.facts_path = self.facts_path.expanduser()
        if self.disclaimers_path:
            self.disclaimers_path = self.disclaimers_path.expanduser()
        return self


class RetrievalConfig(BaseModel):
    """Query defaults; per-call values override these."""

    top_k: int = 5
    max_tokens: int = 600
    max_bytes: int = 4000
    length_exponent: float = 0.5
    default_topic: str = "NextGen AI"

    @field_validator("top_k")
    @classmethod
    def validate_top_k(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"top_k must be >= 0, got {v}")
        return v

    @field_validator("max_tokens", "max_bytes")
    @classmethod
    def validate_cap(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"caps must be positive, got {v}")
        return v

    @field_validator("length_exponent")
    @classmethod
    def validate_exponent(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"length_exponent must be >= 0, got {v}")
        return v


class DisclaimerPolicyConfig(BaseModel):
    """Which disclaimers a query requires."""

    always_required_ids: list[str] = Field(default_factory=list)
    always_required_tags: list[str] = Field(default_factory=lambda: ["all_sessions"])
    topic_triggers: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "performance": ["performance_claims"],
            "latency": ["performance_claims"],
        }
    )
    category_tags: dict[str, list[str]] = Field(
        default_factory=lambda: {"performance": ["performance_claims"]}
    )
    reserved_fact_slots: int = 1

    @field_validator("reserved_fact_slots")
    @classmethod
    def validate_slots(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"reserved_fact_slots must be >= 0, got {v}")
        return v

    def to_policy(self) -> DisclaimerPolicy:
        return DisclaimerPolicy(
            always_required_ids=tuple(self.always_required_ids),
            always_required_tags=tuple(self.always_required_tags),
            topic_triggers={k.lower(): tuple(v) for k, v in self.topic_triggers.items()},
            category_tags={k: tuple(v) for k, v in self.category_tags.items()},
            reserved_fact_slots=self.reserved_fact_slots,
        )


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class FactpackConfig(BaseModel):
    """Main configuration model."""

    knowledge: KnowledgeConfig = Field(default_factory=KnowledgeConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    disclaimers: DisclaimerPolicyConfig = Field(default_factory=DisclaimerPolicyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "FactpackConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
