from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence

from connection_coach.schemas.insights import CategoryShare, ConnectionInsights, FavoriteCategory
from connection_coach.schemas.recommendations import Completion
from connection_coach.services.store import DEFAULT_DURATION_SECONDS, RecommendationStore
from connection_coach.services.telemetry import LoggingTelemetry, Telemetry, emit_safely


logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "unknown"
TOP_FAVORITES_N = 3


def _category(c: Completion) -> str:
    return c.prompt.category if c.prompt is not None and c.prompt.category else UNKNOWN_CATEGORY


def summarize_completions(
    completions: Sequence[Completion],
    today: date,
) -> ConnectionInsights:
    """Per-child figures derived from the completion list alone (newest first)."""
    total = len(completions)
    counts = Counter(_category(c) for c in completions)

    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    favorites = [FavoriteCategory(category=cat, count=n) for cat, n in ranked[:TOP_FAVORITES_N]]
    shares = [
        CategoryShare(category=cat, percentage=(n / total) * 100.0 if total else 0.0)
        for cat, n in ranked
    ]

    week_ago = today - timedelta(days=7)
    month_ago = today - timedelta(days=30)
    weekly = monthly = 0
    for c in completions:
        seconds = c.duration_seconds or DEFAULT_DURATION_SECONDS
        if c.completion_date >= week_ago:
            weekly += seconds
        if c.completion_date >= month_ago:
            monthly += seconds

    return ConnectionInsights(
        weekly_minutes=weekly // 60,
        monthly_minutes=monthly // 60,
        total_completions=total,
        favorite_categories=favorites,
        category_distribution=shares,
        last_completion_date=completions[0].completion_date if completions else None,
    )


async def calculate_insights(
    child_id: str,
    user_id: str,
    store: RecommendationStore,
    telemetry: Optional[Telemetry] = None,
    now: Optional[datetime] = None,
) -> ConnectionInsights:
    """Connection insights for one child. Never raises; failures yield an empty struct."""
    telemetry = telemetry or LoggingTelemetry()
    today = (now or datetime.now(timezone.utc)).date()
    try:
        weekly, monthly, completions, streak = await asyncio.gather(
            store.get_time_stats(user_id, "week"),
            store.get_time_stats(user_id, "month"),
            store.list_child_completions(child_id),
            store.get_current_streak(user_id),
        )
        insights = summarize_completions(completions, today)
        return insights.model_copy(
            update={
                "user_weekly_minutes": int(weekly or 0),
                "user_monthly_minutes": int(monthly or 0),
                "current_streak": int(streak or 0),
            }
        )
    except Exception as e:
        logger.warning("Insights failed for child %s: %s", child_id, e)
        emit_safely(
            telemetry.error,
            e,
            tags={"component": "insights-calculator", "operation": "calculate-insights"},
            extra={"child_id": child_id, "user_id": user_id},
        )
        return ConnectionInsights()


def days_since_last_completion(last_completion_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole days since the last completion; None when there has never been one."""
    if last_completion_date is None:
        return None
    today = today or datetime.now(timezone.utc).date()
    return max(0, (today - last_completion_date).days)


def is_underrepresented(category: str, distribution: List[CategoryShare], total_completions: int) -> bool:
    """Below 10% of completions once there are at least 10; an untried category counts."""
    if total_completions < 10:
        return False
    for d in distribution:
        if d.category == category:
            return d.percentage < 10
    return True


def is_overrepresented(category: str, distribution: List[CategoryShare]) -> bool:
    """Above 40% of completions. Deliberately looser than the scorer's 30% threshold."""
    for d in distribution:
        if d.category == category:
            return d.percentage > 40
    return False
