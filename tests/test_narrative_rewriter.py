import datetime as dt
import json
import random

import pytest
from prometheus_client import REGISTRY

from finguard.config import Settings
from finguard.errors import ProviderError
from finguard.schemas.common import Recommendation, Severity, Source, SpendingHealth
from finguard.schemas.insights import InsightsSnapshot
from finguard.schemas.intervention import ExpenseProposal, RecentExpense, SpendingSnapshot
from finguard.services.insights import compute_period_facts, result_from_facts
from finguard.services.intervention import assess_expense, verdict_from_assessment
from finguard.services.narrative import NarrativeRewriter, extract_json_object

NOW = dt.datetime(2024, 1, 10, 12, 0, tzinfo=dt.timezone.utc)

pytestmark = pytest.mark.anyio


def _fallbacks(kind, reason):
    return REGISTRY.get_sample_value(
        "finguard_narrative_fallback_total", {"kind": kind, "reason": reason}
    ) or 0.0


def _pizza():
    proposal = ExpenseProposal(
        amount=5000, category="food", description="pizza", timestamp=NOW
    )
    snapshot = SpendingSnapshot(monthly_budget=10000, monthly_spending=3000)
    a = assess_expense(proposal, snapshot, now=NOW)
    return verdict_from_assessment(a), a


def _shopping_pattern():
    recent = tuple(
        RecentExpense(amount=800, category="shopping", date=NOW - dt.timedelta(days=3))
        for _ in range(3)
    )
    proposal = ExpenseProposal(amount=1000, category="shopping", description="shirt", timestamp=NOW)
    snapshot = SpendingSnapshot(monthly_budget=30000, monthly_spending=5000, recent_expenses=recent)
    a = assess_expense(proposal, snapshot, now=NOW)
    return verdict_from_assessment(a), a


def _insights():
    s = InsightsSnapshot(
        monthly_income=50000,
        monthly_budget=30000,
        month_total=15000,
        category_breakdown={"food": 9000, "transport": 6000},
        days_in_month=30,
        days_elapsed=10,
        savings_goal="emergency",
        savings_target=100000,
        transaction_count=12,
    )
    f = compute_period_facts(s)
    return result_from_facts(s, f), s, f


def _rewriter(provider, seed=7):
    return NarrativeRewriter.from_settings(Settings(), provider, rng=random.Random(seed))


async def test_rewrite_adopts_prose_only(fake_provider):
    verdict, a = _pizza()
    fake_provider.replies = [
        '```json\n{"severity":"low","message":"Rs.5,000 on one pizza? Its usual price is '
        'Rs.150-600. Please rethink.","recommendation":"proceed","pattern":"Pizza habit"}\n```'
    ]
    out = await _rewriter(fake_provider).rewrite_verdict(verdict, a)

    assert out.source == Source.NARRATIVE_PROVIDER
    assert out.message.startswith("Rs.5,000 on one pizza?")
    # decision fields never move
    assert out.severity == Severity.CRITICAL
    assert out.recommendation == Recommendation.STOP
    assert out.budget_after == verdict.budget_after
    # no deterministic pattern, so the provider cannot add one
    assert out.pattern is None


async def test_prompt_carries_computed_numbers_and_sampling(fake_provider):
    verdict, a = _pizza()
    fake_provider.replies = ['{"severity":"critical","message":"ok","recommendation":"stop","pattern":null}']
    await _rewriter(fake_provider).rewrite_verdict(verdict, a)

    prompt = fake_provider.prompts[0]
    assert "Rs.150-600" in prompt
    assert "Rs.5,000" in prompt
    assert "Budget used after this purchase: 80%" in prompt
    assert "Random seed for variety:" in prompt
    sampling = fake_provider.samplings[0]
    assert (sampling.temperature, sampling.top_k, sampling.max_output_tokens) == (0.95, 40, 300)


async def test_seed_does_not_change_decision(fake_provider):
    verdict, a = _pizza()
    reply = '{"severity":"critical","message":"Too much.","recommendation":"stop","pattern":null}'
    fake_provider.replies = [reply, reply]
    first = await _rewriter(fake_provider, seed=1).rewrite_verdict(verdict, a)
    second = await _rewriter(fake_provider, seed=2).rewrite_verdict(verdict, a)
    assert first == second


async def test_provider_pattern_replaces_deterministic_one(fake_provider):
    verdict, a = _shopping_pattern()
    fake_provider.replies = [
        '{"severity":"medium","message":"Third shopping run this week.",'
        '"recommendation":"caution","pattern":"Shopping streak"}'
    ]
    out = await _rewriter(fake_provider).rewrite_verdict(verdict, a)
    assert out.pattern == "Shopping streak"


async def test_textual_null_pattern_keeps_deterministic_one(fake_provider):
    verdict, a = _shopping_pattern()
    fake_provider.replies = [
        '{"severity":"medium","message":"Watch it.","recommendation":"caution","pattern":"null"}'
    ]
    out = await _rewriter(fake_provider).rewrite_verdict(verdict, a)
    assert out.pattern == "Frequent shopping spending detected"
    assert out.source == Source.NARRATIVE_PROVIDER


@pytest.mark.parametrize(
    "reply,reason",
    [
        (ProviderError("timeout", "ReadTimeout"), "timeout"),
        (ProviderError("http_status", "503"), "http_status"),
        ("Sorry, I cannot help with that.", "no_json"),
        ("{severity: critical}", "bad_json"),
        pytest.param('{"message": ' + "[" * 100000 + "]" * 100000 + "}", "bad_json", id="deep-nesting"),
        ('{"severity":"extreme","message":"x","recommendation":"stop"}', "invalid_enum"),
        ('{"severity":"critical","message":"x","recommendation":"halt"}', "invalid_enum"),
        ('{"severity":"critical","message":"   ","recommendation":"stop"}', "incomplete"),
        ('{"severity":"critical","recommendation":"stop"}', "incomplete"),
        ('{"severity":"critical","message":"' + "x" * 700 + '","recommendation":"stop"}', "incomplete"),
    ],
)
async def test_failures_fall_back_to_deterministic_verdict(fake_provider, reply, reason):
    verdict, a = _pizza()
    fake_provider.replies = [reply]
    before = _fallbacks("intervention", reason)

    out = await _rewriter(fake_provider).rewrite_verdict(verdict, a)

    assert out == verdict
    assert out.source == Source.RULE_ENGINE
    assert _fallbacks("intervention", reason) == before + 1


async def test_unexpected_provider_error_falls_back(fake_provider):
    verdict, a = _pizza()
    fake_provider.replies = [RuntimeError("connection pool exploded")]
    before = _fallbacks("intervention", "unexpected")

    out = await _rewriter(fake_provider).rewrite_verdict(verdict, a)

    assert out == verdict
    assert out.source == Source.RULE_ENGINE
    assert _fallbacks("intervention", "unexpected") == before + 1


async def test_unexpected_error_in_insights_rewrite_falls_back(fake_provider):
    result, s, f = _insights()
    fake_provider.replies = [KeyError("candidates")]
    before = _fallbacks("insights", "unexpected")

    out = await _rewriter(fake_provider).rewrite_insights(result, s, f)

    assert out == result
    assert _fallbacks("insights", "unexpected") == before + 1


async def test_without_client_rewriter_is_skipped():
    verdict, a = _pizza()
    before = _fallbacks("intervention", "disabled")
    rewriter = _rewriter(None)
    assert rewriter.enabled is False
    out = await rewriter.rewrite_verdict(verdict, a)
    assert out is verdict
    assert _fallbacks("intervention", "disabled") == before + 1


async def test_insights_rewrite(fake_provider):
    result, s, f = _insights()
    fake_provider.replies = [
        json.dumps(
            {
                "insights": ["Food leads at Rs.9,000.", "Half the budget is gone.", "Cap food at Rs.300/day."],
                "monthEndForecast": "You'll end near Rs.45,000.",
                "savingsAdvice": "Rs.5,000 a month gets you there in 20 months.",
                "spendingHealth": "poor",
            }
        )
    ]
    out = await _rewriter(fake_provider).rewrite_insights(result, s, f)

    assert out.source == Source.NARRATIVE_PROVIDER
    assert out.insights[0] == "Food leads at Rs.9,000."
    assert out.month_end_forecast == "You'll end near Rs.45,000."
    assert out.spending_health == SpendingHealth.GOOD

    prompt = fake_provider.prompts[0]
    assert "food: Rs.9.0K, transport: Rs.6.0K" in prompt
    assert "Daily budget remaining: Rs.750/day" in prompt
    assert fake_provider.samplings[0].temperature == 0.85


@pytest.mark.parametrize(
    "payload,reason",
    [
        ({"insights": ["a", "b"], "monthEndForecast": "f", "savingsAdvice": "s", "spendingHealth": "good"}, "incomplete"),
        ({"insights": ["a", "b", ""], "monthEndForecast": "f", "savingsAdvice": "s", "spendingHealth": "good"}, "incomplete"),
        ({"insights": ["a", "b", "c"], "savingsAdvice": "s", "spendingHealth": "good"}, "incomplete"),
        ({"insights": ["a", "b", "c"], "monthEndForecast": "f", "savingsAdvice": "s", "spendingHealth": "great"}, "invalid_enum"),
    ],
)
async def test_insights_failures_fall_back(fake_provider, payload, reason):
    result, s, f = _insights()
    fake_provider.replies = [json.dumps(payload)]
    before = _fallbacks("insights", reason)

    out = await _rewriter(fake_provider).rewrite_insights(result, s, f)

    assert out == result
    assert _fallbacks("insights", reason) == before + 1


def test_extract_json_object_tolerates_chatter():
    assert extract_json_object('Sure! {"a": 1} Hope that helps.') == {"a": 1}
    with pytest.raises(ProviderError) as exc:
        extract_json_object("[1, 2]")
    assert exc.value.reason == "no_json"


def test_extract_json_object_rejects_deep_nesting():
    with pytest.raises(ProviderError) as exc:
        extract_json_object('{"a": ' + "[" * 100000 + "]" * 100000 + "}")
    assert exc.value.reason == "bad_json"
