"""Prometheus counters for the decision engine and the narrative rewriter.

Label sets are small and bounded (enum values, fixed reason strings, route
paths) so series cardinality stays flat.
"""

from __future__ import annotations

from prometheus_client import Counter

intervention_verdicts_total = Counter(
    "finguard_intervention_verdicts_total",
    "Intervention verdicts returned",
    labelnames=("severity", "recommendation", "source"),
)
insights_results_total = Counter(
    "finguard_insights_results_total",
    "Period insights returned",
    labelnames=("health", "source"),
)
narrative_rewrites_total = Counter(
    "finguard_narrative_rewrites_total",
    "Narrative rewrite attempts by outcome (rewritten|fallback|skipped)",
    labelnames=("kind", "outcome"),
)
narrative_fallback_total = Counter(
    "finguard_narrative_fallback_total",
    "Narrative rewrites discarded in favour of the deterministic text",
    labelnames=("kind", "reason"),
)
validation_errors_total = Counter(
    "finguard_request_validation_errors_total",
    "Requests rejected by validation",
    labelnames=("route",),
)


__all__ = [
    "intervention_verdicts_total",
    "insights_results_total",
    "narrative_rewrites_total",
    "narrative_fallback_total",
    "validation_errors_total",
]
