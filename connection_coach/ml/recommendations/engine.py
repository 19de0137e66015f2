"""Strategy dispatcher for personalized prompt recommendations.

A call moves through a small state machine:

    NEW_USER          fewer than 3 completions -> starter prompts
    GREATEST_HITS     nothing eligible after filtering -> favorites and high-engagement repeats
    FORCED_DIVERSITY  one category holds >50% of history and >=3 alternatives exist
    STANDARD          scored, rotated and diversity-selected
    FALLBACK          any error above -> age-matched prompts, no personalization

Every state returns a RecommendationResult. The only error that escapes is
FallbackExhaustionError, raised when the fallback cannot find the child.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence

from connection_coach.config import RecommendationSettings
from connection_coach.ml.recommendations.category_analyzer import (
    CategoryDistribution,
    analyze_category_distribution,
)
from connection_coach.ml.recommendations.config import (
    CACHE_KEY_VERSION,
    DOMINANT_CATEGORY_SHARE,
    FAITH_TAGS,
    FALLBACK_SCORE,
    GREATEST_HITS_SCORE,
    HIGH_ENGAGEMENT_SECONDS,
    LDS_TAGS,
    MIN_RESULTS,
    NEW_USER_MAX_COMPLETIONS,
    QUICK_WIN_MINUTES,
    RECENCY_EXCLUDE_DAYS,
    STARTER_SCORE,
)
from connection_coach.ml.recommendations.diversity import rotate, rotation_offset, select_diverse_recommendations
from connection_coach.ml.recommendations.score_calculator import (
    apply_age_filter,
    apply_recency_filter,
    calculate_prompt_score,
    calculate_recency_multiplier,
    get_age_category,
)
from connection_coach.schemas.recommendations import (
    Child,
    Completion,
    Favorite,
    Prompt,
    RecommendationMetadata,
    RecommendationReason,
    RecommendationRequest,
    RecommendationResult,
    ScoredPrompt,
)
from connection_coach.services.errors import FallbackExhaustionError, NotFoundError
from connection_coach.services.store import RecommendationStore
from connection_coach.services.telemetry import LoggingTelemetry, Telemetry, emit_safely
from connection_coach.utils.time import now_utc_iso


logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    NEW_USER = "new_user"
    STANDARD = "standard"
    FORCED_DIVERSITY = "forced_diversity"
    GREATEST_HITS = "greatest_hits"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class RecommendationContext:
    request: RecommendationRequest
    child: Child
    history: List[Completion]
    prompts: List[Prompt]
    favorites: List[Favorite]
    distribution: CategoryDistribution
    settings: RecommendationSettings
    now: datetime


def build_cache_key(user_id: str, child_id: str, faith_mode: bool) -> str:
    return f"recommendations:{user_id}:{child_id}:{str(faith_mode).lower()}:{CACHE_KEY_VERSION}"


def _reason(type_: str, message: str) -> List[RecommendationReason]:
    return [RecommendationReason(type=type_, message=message, weight=1.0)]


# ----------------------------
# Candidate filters
# ----------------------------

def is_faith_prompt(prompt: Prompt) -> bool:
    return any(t in FAITH_TAGS for t in prompt.tags)


def is_lds_prompt(prompt: Prompt) -> bool:
    return any(t in LDS_TAGS for t in prompt.tags)


def apply_faith_mode(prompts: Sequence[Prompt], faith_mode: bool) -> List[Prompt]:
    """Keep faith-tagged prompts (faith mode) or drop them (otherwise).

    If filtering leaves nothing, the unfiltered pool is used. In faith mode
    LDS-tagged prompts move to the front, keeping their relative order.
    """
    filtered = [p for p in prompts if is_faith_prompt(p) == faith_mode]
    if not filtered:
        filtered = list(prompts)
    if faith_mode:
        filtered.sort(key=lambda p: 0 if is_lds_prompt(p) else 1)
    return filtered


def eligible_prompts(ctx: RecommendationContext) -> List[Prompt]:
    pool = [
        p
        for p in ctx.prompts
        if apply_age_filter(p, ctx.child.age)
        and apply_recency_filter(p, ctx.history, RECENCY_EXCLUDE_DAYS, ctx.now)
    ]
    return apply_faith_mode(pool, ctx.request.faith_mode)


def dominant_category(distribution: CategoryDistribution) -> Optional[str]:
    if not distribution.stats:
        return None
    top = distribution.stats[0]
    return top.category if top.percentage > DOMINANT_CATEGORY_SHARE else None


# ----------------------------
# Strategies
# ----------------------------

def starter_recommendations(ctx: RecommendationContext) -> List[ScoredPrompt]:
    """One quick, age-appropriate prompt per category, rotated per child and day."""
    pool = apply_faith_mode(
        [p for p in ctx.prompts if apply_age_filter(p, ctx.child.age)],
        ctx.request.faith_mode,
    )
    quick = [p for p in pool if p.estimated_minutes == QUICK_WIN_MINUTES]

    by_category: Dict[str, List[Prompt]] = {}
    for p in quick or pool:
        by_category.setdefault(p.category, []).append(p)

    categories = list(by_category)
    categories = rotate(categories, rotation_offset(ctx.child.id, len(categories), ctx.now))

    picked: List[Prompt] = []
    i = 0
    limit = ctx.request.limit
    while len(picked) < limit and categories:
        i %= len(categories)
        bucket = by_category[categories[i]]
        picked.append(bucket.pop(0))
        if not bucket:
            categories.pop(i)
        else:
            i += 1

    return [
        ScoredPrompt(prompt=p, score=STARTER_SCORE, reasons=_reason("starter", "Perfect for getting started!"))
        for p in picked
    ]


def greatest_hits(ctx: RecommendationContext) -> List[ScoredPrompt]:
    """Favorites plus prompts that held attention before, when everything was done recently."""
    favorite_ids = {f.prompt_id for f in ctx.favorites}
    engaged_ids = {
        c.prompt_id
        for c in ctx.history
        if (c.duration_seconds or 0) > HIGH_ENGAGEMENT_SECONDS or c.has_reflection
    }

    hits: List[Prompt] = [p for p in ctx.prompts if p.id in favorite_ids]
    seen = {p.id for p in hits}
    for p in ctx.prompts:
        if p.id in engaged_ids and p.id not in seen:
            hits.append(p)
            seen.add(p.id)

    return [
        ScoredPrompt(
            prompt=p,
            score=GREATEST_HITS_SCORE,
            reasons=_reason("popular", "You're doing amazing! Here's a favorite to revisit"),
        )
        for p in hits[: ctx.request.limit]
    ]


def score_candidates(ctx: RecommendationContext, candidates: Sequence[Prompt]) -> List[ScoredPrompt]:
    scored: List[ScoredPrompt] = []
    for p in candidates:
        parts = calculate_prompt_score(
            p,
            ctx.child,
            ctx.history,
            ctx.favorites,
            ctx.distribution,
            weights=ctx.settings.weights,
            now=ctx.now,
        )
        multiplier = calculate_recency_multiplier(p, ctx.history, ctx.now)
        scored.append(ScoredPrompt(prompt=p, score=parts.total_score * multiplier, reasons=parts.reasons))
    scored.sort(key=lambda sp: sp.score, reverse=True)
    return scored


def choose_strategy(ctx: RecommendationContext, eligible: Sequence[Prompt]) -> Strategy:
    if ctx.distribution.total_completions < NEW_USER_MAX_COMPLETIONS:
        return Strategy.NEW_USER
    if not eligible:
        return Strategy.GREATEST_HITS
    dominant = dominant_category(ctx.distribution)
    if dominant is not None:
        alternatives = sum(1 for p in eligible if p.category != dominant)
        if alternatives >= MIN_RESULTS:
            return Strategy.FORCED_DIVERSITY
    return Strategy.STANDARD


def resolve(ctx: RecommendationContext) -> tuple[Strategy, List[ScoredPrompt]]:
    """Pick a strategy for an already-fetched context and run it."""
    eligible = eligible_prompts(ctx)
    strategy = choose_strategy(ctx, eligible)
    if strategy is Strategy.NEW_USER:
        return strategy, starter_recommendations(ctx)
    if strategy is Strategy.GREATEST_HITS:
        return strategy, greatest_hits(ctx)

    scored = score_candidates(ctx, eligible)
    pool = scored
    if strategy is Strategy.FORCED_DIVERSITY:
        dominant = dominant_category(ctx.distribution)
        pool = [sp for sp in scored if sp.prompt.category != dominant]

    return strategy, select_diverse_recommendations(pool, ctx.request.limit, ctx.child.id, ctx.now)


# ----------------------------
# Entry point
# ----------------------------

def _result(
    request: RecommendationRequest,
    strategy: Strategy,
    recs: List[ScoredPrompt],
    distribution: CategoryDistribution,
    now: datetime,
) -> RecommendationResult:
    return RecommendationResult(
        child_id=request.child_id,
        recommendations=recs,
        metadata=RecommendationMetadata(
            total_completions=distribution.total_completions,
            category_distribution=distribution.counts(),
            timestamp=now_utc_iso(now),
            cache_key=build_cache_key(request.user_id, request.child_id, request.faith_mode),
            strategy=strategy.value,
        ),
    )


async def fetch_context(
    request: RecommendationRequest,
    store: RecommendationStore,
    settings: RecommendationSettings,
    now: datetime,
) -> RecommendationContext:
    child, history, prompts, favorites = await asyncio.gather(
        store.get_child(request.child_id),
        store.list_recent_completions(request.child_id, limit=settings.history_limit),
        store.list_prompts(),
        store.list_favorites(request.user_id),
    )
    if child is None:
        raise NotFoundError(f"Child {request.child_id} not found")

    return RecommendationContext(
        request=request,
        child=child,
        history=history,
        prompts=prompts,
        favorites=favorites,
        distribution=analyze_category_distribution(child.id, history, now),
        settings=settings,
        now=now,
    )


async def fallback_recommendations(
    request: RecommendationRequest,
    store: RecommendationStore,
    now: datetime,
) -> RecommendationResult:
    """Age-matched prompts with a flat score; raises FallbackExhaustionError without a child."""
    try:
        child = await store.get_child(request.child_id)
        if child is None:
            raise FallbackExhaustionError(f"Child {request.child_id} not found for fallback")
        prompts = await store.list_prompts_for_age_category(get_age_category(child.age), request.limit)
    except FallbackExhaustionError:
        raise
    except Exception as e:
        raise FallbackExhaustionError(f"Fallback lookup failed for child {request.child_id}: {e}") from e

    recs = [
        ScoredPrompt(prompt=p, score=FALLBACK_SCORE, reasons=_reason("popular", "Age-appropriate activity"))
        for p in prompts
    ]
    return _result(request, Strategy.FALLBACK, recs, CategoryDistribution(), now)


async def generate_recommendations(
    request: RecommendationRequest,
    store: RecommendationStore,
    telemetry: Optional[Telemetry] = None,
    settings: Optional[RecommendationSettings] = None,
    now: Optional[datetime] = None,
) -> RecommendationResult:
    """Recommend up to `request.limit` prompts for a child.

    Never raises except FallbackExhaustionError (see module docstring).
    """
    telemetry = telemetry or LoggingTelemetry()
    settings = settings or RecommendationSettings()
    now = now or datetime.now(timezone.utc)
    if request.limit is None:
        request = request.model_copy(update={"limit": settings.default_limit})
    started = time.perf_counter()
    ids = {"user_id": request.user_id, "child_id": request.child_id}

    emit_safely(telemetry.breadcrumb, "Generating recommendations", "recommendations", ids)
    try:
        ctx = await fetch_context(request, store, settings, now)
        strategy, recs = resolve(ctx)
        distribution = ctx.distribution
    except Exception as e:
        duration_ms = (time.perf_counter() - started) * 1000.0
        logger.warning("Recommendations failed for child %s, using fallback: %s", request.child_id, e)
        emit_safely(
            telemetry.error,
            e,
            tags={"component": "recommendations", "operation": "generate"},
            extra={**ids, "duration_ms": round(duration_ms, 1), "faith_mode": request.faith_mode},
        )
        return await fallback_recommendations(request, store, now)

    duration_ms = (time.perf_counter() - started) * 1000.0
    emit_safely(
        telemetry.breadcrumb,
        f"Strategy {strategy.value} returned {len(recs)} prompts",
        "recommendations",
        {**ids, "strategy": strategy.value, "total_completions": distribution.total_completions},
    )
    emit_safely(
        telemetry.message,
        f"Recommendations generated in {duration_ms:.0f}ms",
        "info",
        tags={"strategy": strategy.value},
        extra=ids,
    )
    if duration_ms > settings.slow_call_ms:
        emit_safely(
            telemetry.message,
            f"Slow recommendations call ({duration_ms:.0f}ms)",
            "warning",
            tags={"strategy": strategy.value},
            extra={**ids, "duration_ms": round(duration_ms, 1)},
        )

    return _result(request, strategy, recs, distribution, now)
