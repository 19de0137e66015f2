from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from connection_coach.api.deps import get_settings, get_store, get_telemetry
from connection_coach.config import RecommendationSettings
from connection_coach.ml.recommendations.engine import generate_recommendations
from connection_coach.schemas.recommendations import RecommendationRequest, RecommendationResult
from connection_coach.services.errors import FallbackExhaustionError
from connection_coach.services.store import RecommendationStore
from connection_coach.services.telemetry import Telemetry


router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.post("", response_model=RecommendationResult)
async def recommend(
    req: RecommendationRequest,
    store: RecommendationStore = Depends(get_store),
    telemetry: Telemetry = Depends(get_telemetry),
    settings: RecommendationSettings = Depends(get_settings),
) -> RecommendationResult:
    try:
        return await generate_recommendations(req, store, telemetry=telemetry, settings=settings)
    except FallbackExhaustionError as ex:
        raise HTTPException(status_code=404, detail=f"No recommendations available: {ex}")
    except Exception as ex:
        raise HTTPException(status_code=500, detail=f"Recommendation failed: {ex}")
