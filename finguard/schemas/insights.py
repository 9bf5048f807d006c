from __future__ import annotations

from typing import Annotated, Dict, List

from pydantic import Field, ValidationInfo, field_validator

from finguard.schemas.common import Category, Source, SpendingHealth, WireModel

NonNegativeAmount = Annotated[float, Field(ge=0)]


class InsightsSnapshot(WireModel):
    """Month-to-date aggregates for one user, as computed by the persistence layer."""

    monthly_income: float = Field(..., gt=0, json_schema_extra={"examples": [50000.0]})
    monthly_budget: float = Field(..., gt=0, json_schema_extra={"examples": [30000.0]})
    month_total: float = Field(..., ge=0, json_schema_extra={"examples": [15000.0]})
    category_breakdown: Dict[Category, NonNegativeAmount] = Field(default_factory=dict)
    # days_in_month is declared first so the days_elapsed check can see it
    days_in_month: int = Field(..., ge=1, le=31, json_schema_extra={"examples": [30]})
    days_elapsed: int = Field(..., ge=1, json_schema_extra={"examples": [10]})
    savings_goal: str = Field(..., min_length=1, max_length=60, json_schema_extra={"examples": ["emergency"]})
    savings_target: float = Field(..., gt=0, json_schema_extra={"examples": [100000.0]})
    transaction_count: int = Field(..., ge=0)

    @field_validator("days_elapsed")
    @classmethod
    def _elapsed_within_month(cls, v: int, info: ValidationInfo) -> int:
        days_in_month = info.data.get("days_in_month")
        if days_in_month is not None and v > days_in_month:
            raise ValueError(f"must not exceed daysInMonth ({days_in_month})")
        return v


class InsightsResult(WireModel):
    insights: List[str] = Field(..., min_length=3, max_length=3)
    month_end_forecast: str
    savings_advice: str
    spending_health: SpendingHealth
    source: Source = Source.RULE_ENGINE


__all__ = ["InsightsSnapshot", "InsightsResult"]
