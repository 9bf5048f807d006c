from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import ConfigDict, Field, field_validator, model_validator

from finguard.config import settings
from finguard.schemas.common import (
    Category,
    Recommendation,
    Severity,
    Source,
    WireModel,
    is_consistent,
)

MAX_DESCRIPTION_LEN = 200


class RecentExpense(WireModel):
    model_config = ConfigDict(frozen=True)

    amount: float = Field(..., gt=0, json_schema_extra={"examples": [250.0]})
    category: Category
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LEN)
    date: datetime


class ExpenseProposal(WireModel):
    """The purchase being considered; never persisted here."""

    model_config = ConfigDict(frozen=True)

    amount: float = Field(..., gt=0)
    category: Category
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LEN)
    timestamp: datetime


class SpendingSnapshot(WireModel):
    """Caller-supplied month state. recent_expenses is chronological, newest last."""

    model_config = ConfigDict(frozen=True)

    monthly_budget: float = Field(..., gt=0)
    monthly_spending: float = Field(..., ge=0)
    recent_expenses: Tuple[RecentExpense, ...] = ()


class ClassifyExpenseRequest(WireModel):
    amount: float = Field(..., gt=0, json_schema_extra={"examples": [500.0]})
    category: Category = Field(..., json_schema_extra={"examples": ["food"]})
    description: Optional[str] = Field(
        None, max_length=MAX_DESCRIPTION_LEN, json_schema_extra={"examples": ["lunch"]}
    )
    timestamp: Optional[datetime] = Field(
        None, description="When the purchase happens; defaults to request time"
    )
    monthly_budget: float = Field(..., gt=0, json_schema_extra={"examples": [30000.0]})
    monthly_spending: float = Field(..., ge=0, json_schema_extra={"examples": [27000.0]})
    recent_expenses: List[RecentExpense] = Field(
        default_factory=list,
        description="Chronological, newest last; at most the configured history window",
    )

    @field_validator("recent_expenses")
    @classmethod
    def _within_window(cls, v: List[RecentExpense]) -> List[RecentExpense]:
        window = settings.RECENT_EXPENSES_WINDOW
        if len(v) > window:
            raise ValueError(f"at most {window} entries, send the most recent ones")
        return v

    def to_proposal(self, now: datetime) -> ExpenseProposal:
        return ExpenseProposal(
            amount=self.amount,
            category=self.category,
            description=self.description,
            timestamp=self.timestamp or now,
        )

    def to_snapshot(self) -> SpendingSnapshot:
        return SpendingSnapshot(
            monthly_budget=self.monthly_budget,
            monthly_spending=self.monthly_spending,
            recent_expenses=tuple(self.recent_expenses),
        )


class Verdict(WireModel):
    severity: Severity
    message: str
    recommendation: Recommendation
    pattern: Optional[str] = None
    budget_after: str = Field(..., description="Budget consumed after purchase, whole %")
    source: Source = Source.RULE_ENGINE

    @model_validator(mode="after")
    def _severity_matches_recommendation(self) -> "Verdict":
        if not is_consistent(self.severity, self.recommendation):
            raise ValueError(
                f"{self.severity.value} severity cannot carry a {self.recommendation.value} recommendation"
            )
        return self


__all__ = [
    "RecentExpense",
    "ExpenseProposal",
    "SpendingSnapshot",
    "ClassifyExpenseRequest",
    "Verdict",
]
