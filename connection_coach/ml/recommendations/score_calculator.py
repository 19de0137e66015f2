from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Sequence

import numpy as np

from connection_coach.ml.recommendations.category_analyzer import (
    CategoryDistribution,
    get_balance_boost,
    get_category_balance_reason,
)
from connection_coach.ml.recommendations.config import (
    BASE_CATEGORY_SCORE,
    DEFAULT_WEIGHTS,
    DURATION_BANDS,
    DURATION_FLOOR,
    NEUTRAL_SCORE,
    RECENCY_DECAY_DAYS,
    RECENCY_EXCLUDE_DAYS,
    RECENCY_MIN_MULTIPLIER,
    REFLECTION_BANDS,
    REFLECTION_FLOOR,
)
from connection_coach.schemas.recommendations import (
    Child,
    Completion,
    Favorite,
    Prompt,
    RecommendationReason,
)
from connection_coach.services.time_utils import days_since, parse_to_utc_aware


@dataclass(frozen=True)
class ScoreWeights:
    category_balance: float = DEFAULT_WEIGHTS["category_balance"]
    engagement: float = DEFAULT_WEIGHTS["engagement"]
    filters: float = DEFAULT_WEIGHTS["filters"]

    def __post_init__(self) -> None:
        total = self.category_balance + self.engagement + self.filters
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Score weights must sum to 1.0 (got {total:.4f})")

    @classmethod
    def from_mapping(cls, m: Optional[Mapping[str, float]]) -> "ScoreWeights":
        merged = {**DEFAULT_WEIGHTS, **(m or {})}
        return cls(
            category_balance=float(merged["category_balance"]),
            engagement=float(merged["engagement"]),
            filters=float(merged["filters"]),
        )


@dataclass
class ScoreComponents:
    category_score: float
    engagement_score: float
    filter_score: float
    total_score: float
    reasons: List[RecommendationReason] = field(default_factory=list)


def get_age_category(age: int) -> str:
    if age < 2:
        return "infant"
    if age < 5:
        return "toddler"
    if age < 12:
        return "elementary"
    if age < 18:
        return "teen"
    return "young_adult"


def apply_age_filter(prompt: Prompt, child_age: int) -> bool:
    bracket = get_age_category(child_age)
    return bracket in prompt.age_categories or "all" in prompt.age_categories


def _completions_for(prompt: Prompt, history: Iterable[Completion]) -> List[Completion]:
    return [c for c in history if c.prompt_id == prompt.id]


def _most_recent(completions: List[Completion]) -> Completion:
    return max(completions, key=lambda c: parse_to_utc_aware(c.completed_at))


def apply_recency_filter(
    prompt: Prompt,
    history: Sequence[Completion],
    days: int = RECENCY_EXCLUDE_DAYS,
    now: Optional[datetime] = None,
) -> bool:
    """False when the prompt was completed within the last `days` days."""
    done = _completions_for(prompt, history)
    if not done:
        return True
    return days_since(_most_recent(done).completed_at, now) >= days


def calculate_recency_multiplier(
    prompt: Prompt,
    history: Sequence[Completion],
    now: Optional[datetime] = None,
) -> float:
    """Score dampening in [0.5, 1.0]; 1.0 for a prompt never completed."""
    done = _completions_for(prompt, history)
    if not done:
        return 1.0
    elapsed = days_since(_most_recent(done).completed_at, now)
    return max(RECENCY_MIN_MULTIPLIER, 1.0 - elapsed / RECENCY_DECAY_DAYS)


# ----------------------------
# Category balance
# ----------------------------

def calculate_category_score(
    prompt: Prompt,
    distribution: CategoryDistribution,
    reasons: List[RecommendationReason],
    now: Optional[datetime] = None,
) -> float:
    boost = get_balance_boost(prompt.category, distribution)
    message = get_category_balance_reason(prompt.category, distribution, now)
    if message:
        reasons.append(RecommendationReason(type="category_balance", message=message, weight=boost))
    return min(100.0, max(0.0, BASE_CATEGORY_SCORE * boost))


# ----------------------------
# Engagement
# ----------------------------

def duration_engagement(prompt: Prompt, completions: List[Completion]) -> float:
    durations = [c.duration_seconds for c in completions if c.duration_seconds is not None]
    if not durations:
        return NEUTRAL_SCORE
    estimated = prompt.estimated_minutes * 60
    if estimated <= 0:
        return NEUTRAL_SCORE
    ratio = float(np.mean(durations)) / estimated
    for threshold, score in DURATION_BANDS:
        if ratio >= threshold:
            return score
    return DURATION_FLOOR


def reflection_engagement(completions: List[Completion]) -> float:
    with_notes = sum(1 for c in completions if c.has_reflection)
    if with_notes == 0:
        return NEUTRAL_SCORE
    share = with_notes / len(completions)
    for threshold, score in REFLECTION_BANDS:
        if share >= threshold:
            return score
    return REFLECTION_FLOOR


def favorite_engagement(prompt: Prompt, favorites: Sequence[Favorite]) -> float:
    return 100.0 if any(f.prompt_id == prompt.id for f in favorites) else 50.0


def calculate_engagement_score(
    prompt: Prompt,
    history: Sequence[Completion],
    favorites: Sequence[Favorite],
    reasons: List[RecommendationReason],
) -> float:
    done = _completions_for(prompt, history)
    if not done:
        return NEUTRAL_SCORE

    parts = [
        (duration_engagement(prompt, done), 0.4, "You spent quality time on this activity before"),
        (reflection_engagement(done), 0.4, "This activity inspired meaningful reflections"),
        (favorite_engagement(prompt, favorites), 0.2, "You favorited this activity"),
    ]
    score = 0.0
    for value, weight, message in parts:
        if value > NEUTRAL_SCORE:
            reasons.append(RecommendationReason(type="engagement", message=message, weight=weight))
        score += value * weight
    return score


# ----------------------------
# Filters (age, challenges, interests)
# ----------------------------

def _tag_matches(item: str, tags: Sequence[str]) -> bool:
    needle = item.lower()
    return any(needle in t.lower() or t.lower() in needle for t in tags)


def _match_band(items: Sequence[str], tags: Sequence[str]) -> float:
    matched = sum(1 for i in items if _tag_matches(i, tags))
    if matched == 0:
        return 50.0
    if matched == 1:
        return 75.0
    return 100.0


def calculate_filter_score(
    prompt: Prompt,
    child: Child,
    reasons: List[RecommendationReason],
) -> float:
    age_score = 100.0 if apply_age_filter(prompt, child.age) else 0.0

    challenge_score = _match_band(child.current_challenges, prompt.tags)
    if challenge_score > 50:
        hit = next(c for c in child.current_challenges if _tag_matches(c, prompt.tags))
        reasons.append(RecommendationReason(type="challenge_match", message=f"Helpful for: {hit}", weight=0.3))

    interest_score = _match_band(child.interests, prompt.tags)
    if interest_score > 50:
        hit = next(i for i in child.interests if _tag_matches(i, prompt.tags))
        reasons.append(
            RecommendationReason(
                type="interest_match",
                message=f"Perfect for {child.name}'s interest in {hit}",
                weight=0.2,
            )
        )

    return age_score * 0.5 + challenge_score * 0.3 + interest_score * 0.2


def calculate_prompt_score(
    prompt: Prompt,
    child: Child,
    history: Sequence[Completion],
    favorites: Sequence[Favorite],
    distribution: CategoryDistribution,
    weights: ScoreWeights = ScoreWeights(),
    now: Optional[datetime] = None,
) -> ScoreComponents:
    """Weighted score (0-100) of one candidate prompt for one child.

    The recency multiplier is not applied here; callers combine it with
    total_score when ranking.
    """
    reasons: List[RecommendationReason] = []
    category_score = calculate_category_score(prompt, distribution, reasons, now)
    engagement_score = calculate_engagement_score(prompt, history, favorites, reasons)
    filter_score = calculate_filter_score(prompt, child, reasons)

    total = (
        category_score * weights.category_balance
        + engagement_score * weights.engagement
        + filter_score * weights.filters
    )
    return ScoreComponents(
        category_score=category_score,
        engagement_score=engagement_score,
        filter_score=filter_score,
        total_score=total,
        reasons=reasons,
    )
