from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence, TypeVar

from connection_coach.ml.recommendations.config import (
    MAX_PER_CATEGORY,
    MAX_PER_PRIMARY_TAG,
    MIN_RESULTS,
    ROTATION_TIER_SIZE,
)
from connection_coach.schemas.recommendations import ScoredPrompt
from connection_coach.utils.time import date_number

T = TypeVar("T")


def string_hash(s: str) -> int:
    """32-bit polynomial string hash (h * 31 + code point), wrapped to a signed int."""
    h = 0
    for ch in s:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def rotation_offset(child_id: str, size: int, now: Optional[datetime] = None) -> int:
    """Deterministic offset in [0, size) for a child on a calendar date."""
    if size <= 0:
        return 0
    return (date_number(now) + abs(string_hash(child_id))) % size


def rotate(items: Sequence[T], offset: int) -> List[T]:
    if not items:
        return []
    offset %= len(items)
    return list(items[offset:]) + list(items[:offset])


def rotate_top_tier(
    candidates: Sequence[ScoredPrompt],
    child_id: str,
    now: Optional[datetime] = None,
) -> List[ScoredPrompt]:
    """Rotate the first ROTATION_TIER_SIZE candidates; leave the rest in place."""
    tier = list(candidates[:ROTATION_TIER_SIZE])
    rest = list(candidates[ROTATION_TIER_SIZE:])
    return rotate(tier, rotation_offset(child_id, len(tier), now)) + rest


def select_diverse_recommendations(
    candidates: Sequence[ScoredPrompt],
    limit: int,
    child_id: str,
    now: Optional[datetime] = None,
) -> List[ScoredPrompt]:
    """Pick up to `limit` candidates, at most two per category and two per primary tag.

    `candidates` must already be sorted by score. Output depends only on the
    child id, the calendar date and the candidate order, so it is safe to cache.
    """
    selected: List[ScoredPrompt] = []
    per_category: Dict[str, int] = {}
    per_tag: Dict[str, int] = {}

    for sp in rotate_top_tier(candidates, child_id, now):
        if len(selected) >= limit:
            break
        category = sp.prompt.category
        tag = sp.prompt.primary_tag
        if per_category.get(category, 0) >= MAX_PER_CATEGORY:
            continue
        if per_tag.get(tag, 0) >= MAX_PER_PRIMARY_TAG:
            continue
        selected.append(sp)
        per_category[category] = per_category.get(category, 0) + 1
        per_tag[tag] = per_tag.get(tag, 0) + 1

    if len(selected) < MIN_RESULTS and len(candidates) >= MIN_RESULTS:
        chosen = {id(sp) for sp in selected}
        for sp in candidates:
            if len(selected) >= limit:
                break
            if id(sp) not in chosen:
                selected.append(sp)
                chosen.add(id(sp))

    return selected
