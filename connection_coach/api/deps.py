from __future__ import annotations

from functools import lru_cache

from connection_coach.config import RecommendationSettings, load_config
from connection_coach.services.store import RecommendationStore, SqlRecommendationStore
from connection_coach.services.telemetry import LoggingTelemetry, Telemetry


@lru_cache(maxsize=1)
def get_settings() -> RecommendationSettings:
    return RecommendationSettings.from_config(load_config())


def get_store() -> RecommendationStore:
    from connection_coach.db.session import SessionLocal

    return SqlRecommendationStore(SessionLocal)


def get_telemetry() -> Telemetry:
    return LoggingTelemetry()
