from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import numpy as np

from connection_coach.ml.recommendations.config import (
    NEGLECTED_AFTER_DAYS,
    NEGLECTED_BOOST,
    OVERREPRESENTED_BOOST,
    OVERREPRESENTED_SHARE,
    UNCATEGORIZED,
    UNDERREPRESENTED_BOOST,
    UNDERREPRESENTED_MIN_COMPLETIONS,
    UNDERREPRESENTED_SHARE,
)
from connection_coach.schemas.recommendations import Completion
from connection_coach.services.time_utils import days_since, parse_to_utc_aware


@dataclass(frozen=True)
class CategoryStats:
    category: str
    count: int
    percentage: float  # 0..1
    last_completed: Optional[datetime]
    avg_duration: Optional[float]
    has_reflection_notes: bool


@dataclass(frozen=True)
class CategoryDistribution:
    stats: List[CategoryStats] = field(default_factory=list)
    total_completions: int = 0
    underrepresented: List[str] = field(default_factory=list)
    overrepresented: List[str] = field(default_factory=list)
    neglected: List[str] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {s.category: s.count for s in self.stats}

    def get(self, category: str) -> Optional[CategoryStats]:
        for s in self.stats:
            if s.category == category:
                return s
        return None


def _category_of(c: Completion) -> str:
    if c.prompt is None or not c.prompt.category:
        return UNCATEGORIZED
    return c.prompt.category


def _build_stats(category: str, group: List[Completion], total: int) -> CategoryStats:
    last = max((parse_to_utc_aware(c.completed_at) for c in group), default=None)
    durations = [c.duration_seconds for c in group if c.duration_seconds is not None]
    avg = float(np.mean(durations)) if durations else None
    return CategoryStats(
        category=category,
        count=len(group),
        percentage=len(group) / total,
        last_completed=last,
        avg_duration=avg,
        has_reflection_notes=any(c.has_reflection for c in group),
    )


def analyze_category_distribution(
    child_id: str,
    completions: Sequence[Completion],
    now: Optional[datetime] = None,
) -> CategoryDistribution:
    """Per-category statistics for a child's completion history.

    child_id is informational only. With no completions the result is empty,
    so nothing downstream divides by zero.
    """
    total = len(completions)
    if total == 0:
        return CategoryDistribution()

    now = now or datetime.now(timezone.utc)

    groups: Dict[str, List[Completion]] = {}
    for c in completions:
        groups.setdefault(_category_of(c), []).append(c)

    stats = [_build_stats(cat, group, total) for cat, group in groups.items()]
    stats.sort(key=lambda s: s.count, reverse=True)

    underrepresented: List[str] = []
    overrepresented: List[str] = []
    neglected: List[str] = []
    for s in stats:
        if s.percentage < UNDERREPRESENTED_SHARE and total >= UNDERREPRESENTED_MIN_COMPLETIONS:
            underrepresented.append(s.category)
        if s.percentage > OVERREPRESENTED_SHARE:
            overrepresented.append(s.category)
        if s.last_completed is not None and days_since(s.last_completed, now) > NEGLECTED_AFTER_DAYS:
            neglected.append(s.category)

    return CategoryDistribution(
        stats=stats,
        total_completions=total,
        underrepresented=underrepresented,
        overrepresented=overrepresented,
        neglected=neglected,
    )


def _is_untried(category: str, distribution: CategoryDistribution) -> bool:
    # A category the child never did counts as underrepresented once history is large enough.
    flagged = (
        category in distribution.underrepresented
        or category in distribution.overrepresented
        or category in distribution.neglected
    )
    return (
        not flagged
        and distribution.total_completions >= UNDERREPRESENTED_MIN_COMPLETIONS
        and distribution.get(category) is None
    )


def get_balance_boost(category: str, distribution: CategoryDistribution) -> float:
    """Multiplier for a category's balance score.

    Underrepresented wins over neglected, which wins over overrepresented.
    """
    if category in distribution.underrepresented or _is_untried(category, distribution):
        return UNDERREPRESENTED_BOOST
    if category in distribution.neglected:
        return NEGLECTED_BOOST
    if category in distribution.overrepresented:
        return OVERREPRESENTED_BOOST
    return 1.0


def get_category_balance_reason(
    category: str,
    distribution: CategoryDistribution,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Human-readable text for a boosted category; None for neutral or penalized ones."""
    if category in distribution.underrepresented or _is_untried(category, distribution):
        return f"Great for exploring {category} - you haven't tried this much yet"

    if category in distribution.neglected:
        stat = distribution.get(category)
        if stat is not None and stat.last_completed is not None:
            days = int(days_since(stat.last_completed, now))
            return f"Time to revisit {category} - it's been {days} days"

    return None
