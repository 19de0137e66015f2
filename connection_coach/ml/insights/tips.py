from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional, Sequence, Tuple

from connection_coach.ml.insights.calculator import days_since_last_completion
from connection_coach.ml.insights.catalog import CATEGORY_NAMES, DEVELOPMENTAL_TIPS, ICONS, STREAK_TIPS
from connection_coach.schemas.insights import CategoryShare, ConnectionInsights, PersonalizedTip
from connection_coach.schemas.recommendations import Child, Completion

MAX_TIPS = 5

# (type, message, priority, icon)
TipDraft = Tuple[str, str, int, str]


def category_display_name(category: str) -> str:
    return CATEGORY_NAMES.get(category, category.replace("_", " "))


def re_engagement_tip(child: Child, insights: ConnectionInsights, today: date) -> Optional[TipDraft]:
    days = days_since_last_completion(insights.last_completion_date, today)
    if days is not None and days > 7:
        return (
            "re_engagement",
            f"It's been {days} days since your last activity with {child.name}. They'd love some connection time!",
            100,
            ICONS["re_engagement"],
        )
    if days is None and insights.total_completions == 0:
        return (
            "re_engagement",
            f"Start your connection journey with {child.name}! Try your first 5-minute activity today.",
            100,
            ICONS["first_activity"],
        )
    return None


def developmental_tip(child: Child) -> Optional[TipDraft]:
    for lo, hi, message in DEVELOPMENTAL_TIPS:
        if lo <= child.age < hi:
            return ("developmental", message(child.age, child.name), 90, ICONS["developmental"])
    return None


def category_balance_tip(
    child: Child,
    distribution: Sequence[CategoryShare],
    total_completions: int,
) -> Optional[TipDraft]:
    if total_completions < 5:
        return (
            "category_balance",
            f"You're just getting started! Try activities from different categories to discover what {child.name} loves most.",
            75,
            ICONS["explore"],
        )

    heavy = [d for d in distribution if d.percentage > 40]
    if heavy:
        return (
            "category_balance",
            f"You've been doing lots of {category_display_name(heavy[0].category)} activities! "
            "Try mixing in some variety for well-rounded growth.",
            80,
            ICONS["mix_it_up"],
        )

    if total_completions >= 10:
        light = [d for d in distribution if 0 < d.percentage < 10]
        if light:
            return (
                "category_balance",
                f"{child.name} might enjoy exploring more {category_display_name(light[0].category)} activities - "
                "they haven't tried many yet!",
                75,
                ICONS["underused"],
            )
    return None


def streak_tip(child: Child, streak: int) -> Optional[TipDraft]:
    for minimum, message in STREAK_TIPS:
        if streak >= minimum:
            return ("streak", message(streak, child.name), 70, ICONS["streak"])
    return None


def engagement_tips(
    child: Child,
    completions: Sequence[Completion],
    insights: ConnectionInsights,
) -> List[TipDraft]:
    if not completions:
        return []

    tips: List[TipDraft] = []
    reflection_rate = sum(1 for c in completions if c.has_reflection) / len(completions)
    if reflection_rate > 0.5:
        tips.append(
            (
                "engagement",
                f"You're great at reflecting on moments with {child.name}! These notes become precious memories.",
                60,
                ICONS["reflection"],
            )
        )

    timed = [c.duration_seconds for c in completions if c.duration_seconds]
    if len(timed) >= 3:
        avg_minutes = round(sum(timed) / len(timed) / 60)
        if avg_minutes > 7:
            tips.append(
                (
                    "engagement",
                    f"{child.name} really takes their time with activities (avg {avg_minutes} min). "
                    "This deep engagement is wonderful!",
                    60,
                    ICONS["duration"],
                )
            )

    if insights.favorite_categories and insights.favorite_categories[0].count >= 3:
        tips.append(
            (
                "engagement",
                f"{child.name} loves {category_display_name(insights.favorite_categories[0].category)} activities! "
                "You've found something that really resonates with them.",
                60,
                ICONS["favorite"],
            )
        )
    return tips


def generate_personalized_tips(
    child: Child,
    insights: ConnectionInsights,
    completions: Sequence[Completion],
    today: Optional[date] = None,
) -> List[PersonalizedTip]:
    """Up to five coaching tips for a parent, highest priority first. Pure; no I/O."""
    today = today or datetime.now(timezone.utc).date()

    drafts: List[Optional[TipDraft]] = [
        re_engagement_tip(child, insights, today),
        developmental_tip(child),
        category_balance_tip(child, insights.category_distribution, insights.total_completions),
        streak_tip(child, insights.current_streak),
    ]
    drafts.extend(engagement_tips(child, completions, insights))

    tips = [
        PersonalizedTip(id=f"tip-{i}", type=t, message=m, priority=p, icon=icon)
        for i, (t, m, p, icon) in enumerate(d for d in drafts if d is not None)
    ]
    tips.sort(key=lambda tip: tip.priority, reverse=True)
    return tips[:MAX_TIPS]
