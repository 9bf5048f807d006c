from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        extra="ignore",
    )


class Category(str, Enum):
    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    UTILITIES = "utilities"
    OTHER = "other"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class Recommendation(str, Enum):
    PROCEED = "proceed"
    CAUTION = "caution"
    STOP = "stop"


class SpendingHealth(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Source(str, Enum):
    RULE_ENGINE = "rule-engine"
    NARRATIVE_PROVIDER = "narrative-provider"


# Allowed severity -> recommendation pairs
_CONSISTENT = {
    Severity.LOW: {Recommendation.PROCEED},
    Severity.MEDIUM: {Recommendation.CAUTION},
    Severity.HIGH: {Recommendation.CAUTION},
    Severity.CRITICAL: {Recommendation.STOP},
}


def is_consistent(severity: Severity, recommendation: Recommendation) -> bool:
    return recommendation in _CONSISTENT[severity]
