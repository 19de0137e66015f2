from __future__ import annotations

import asyncio
from datetime import date

import pytest

from connection_coach.ml.insights.calculator import (
    calculate_insights,
    days_since_last_completion,
    is_overrepresented,
    is_underrepresented,
    summarize_completions,
)
from connection_coach.schemas.insights import CategoryShare, ConnectionInsights
from factories import NOW, TODAY, FakeStore, make_completion, make_prompt


def _history():
    talk = make_prompt("talk", category="connection")
    bed = make_prompt("bed", category="bedtime")
    thanks = make_prompt("thanks", category="gratitude")
    art = make_prompt("art", category="creative_expression")
    return [
        make_completion(talk, days_ago=1, id="1", duration_seconds=600),
        make_completion(talk, days_ago=3, id="2"),
        make_completion(bed, days_ago=10, id="3", duration_seconds=120),
        make_completion(talk, days_ago=20, id="4", duration_seconds=60),
        make_completion(thanks, days_ago=40, id="5"),
        make_completion(art, days_ago=45, id="6"),
    ]


def test_summarize_completions():
    insights = summarize_completions(_history(), TODAY)

    assert insights.total_completions == 6
    assert [f.category for f in insights.favorite_categories][0] == "connection"
    assert insights.favorite_categories[0].count == 3
    assert len(insights.favorite_categories) == 3
    assert insights.category_distribution[0].percentage == pytest.approx(50.0)
    assert sum(s.percentage for s in insights.category_distribution) == pytest.approx(100.0)
    # 600 + 300 (default) within a week; plus 120 + 60 within thirty days
    assert insights.weekly_minutes == 15
    assert insights.monthly_minutes == 18
    assert insights.last_completion_date == _history()[0].completion_date


def test_summarize_empty():
    insights = summarize_completions([], TODAY)
    assert insights == ConnectionInsights()


def test_calculate_insights_merges_store_aggregates():
    store = FakeStore(completions=_history(), streak=4, time_stats={"week": 42, "month": 120})
    insights = asyncio.run(calculate_insights("child-1", "user-1", store, now=NOW))

    assert insights.current_streak == 4
    assert insights.user_weekly_minutes == 42
    assert insights.user_monthly_minutes == 120
    assert insights.total_completions == 6


def test_calculate_insights_never_raises(telemetry):
    store = FakeStore(completions=_history(), failing={"get_current_streak"})
    insights = asyncio.run(calculate_insights("child-1", "user-1", store, telemetry=telemetry, now=NOW))

    assert insights == ConnectionInsights()
    exc, tags, extra = telemetry.errors[0]
    assert tags == {"component": "insights-calculator", "operation": "calculate-insights"}
    assert extra == {"child_id": "child-1", "user_id": "user-1"}


def test_days_since_last_completion():
    assert days_since_last_completion(None, TODAY) is None
    assert days_since_last_completion(date(2024, 6, 5), TODAY) == 10
    assert days_since_last_completion(date(2024, 6, 20), TODAY) == 0


def test_representation_helpers():
    dist = [CategoryShare(category="a", percentage=45.0), CategoryShare(category="b", percentage=5.0)]
    assert is_overrepresented("a", dist)
    assert not is_overrepresented("b", dist)
    assert not is_overrepresented("missing", dist)
    assert is_underrepresented("b", dist, 12)
    assert is_underrepresented("missing", dist, 12)
    assert not is_underrepresented("b", dist, 9)
