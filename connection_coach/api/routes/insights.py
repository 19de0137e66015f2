from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from connection_coach.api.deps import get_store, get_telemetry
from connection_coach.ml.insights.calculator import calculate_insights
from connection_coach.ml.insights.tips import generate_personalized_tips
from connection_coach.schemas.insights import ConnectionInsights, PersonalizedTip
from connection_coach.services.store import RecommendationStore
from connection_coach.services.telemetry import Telemetry


router = APIRouter(prefix="/children", tags=["insights"])

RECENT_COMPLETIONS_FOR_TIPS = 50


@router.get("/{child_id}/insights", response_model=ConnectionInsights)
async def insights(
    child_id: str,
    user_id: str = Query(..., min_length=1),
    store: RecommendationStore = Depends(get_store),
    telemetry: Telemetry = Depends(get_telemetry),
) -> ConnectionInsights:
    return await calculate_insights(child_id, user_id, store, telemetry=telemetry)


@router.get("/{child_id}/tips", response_model=List[PersonalizedTip])
async def tips(
    child_id: str,
    user_id: str = Query(..., min_length=1),
    store: RecommendationStore = Depends(get_store),
    telemetry: Telemetry = Depends(get_telemetry),
) -> List[PersonalizedTip]:
    """Coaching tips built from the child's insights and most recent completions."""
    try:
        child = await store.get_child(child_id)
    except Exception as ex:
        raise HTTPException(status_code=500, detail=f"Failed to load child: {ex}")
    if child is None or child.user_id != user_id:
        raise HTTPException(status_code=404, detail="Child not found")

    summary = await calculate_insights(child_id, user_id, store, telemetry=telemetry)
    try:
        recent = await store.list_recent_completions(child_id, limit=RECENT_COMPLETIONS_FOR_TIPS)
    except Exception as ex:
        raise HTTPException(status_code=500, detail=f"Failed to load completions: {ex}")
    return generate_personalized_tips(child, summary, recent)
