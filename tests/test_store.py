from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from connection_coach.db.models import Base, ChildProfile, DailyPrompt, PromptCompletion, PromptFavorite
from connection_coach.services.errors import UpstreamReadError
from connection_coach.services.store import SqlRecommendationStore, streak_from_dates
from connection_coach.services.time_utils import age_from_birth_date

TODAY = date(2024, 6, 15)


def _engine():
    return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


@pytest.fixture
def store():
    engine = _engine()
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    db = Session()
    db.add(
        ChildProfile(
            id="child-1",
            user_id="user-1",
            name="Emma",
            birth_date=date(2017, 6, 16),
            interests=["art"],
            personality_traits=[],
            current_challenges=["sharing"],
        )
    )
    db.add_all(
        [
            DailyPrompt(id="p1", title="One", category="connection", age_categories=["elementary"],
                        tags=["talk"], estimated_minutes=5, created_at=datetime(2024, 1, 1)),
            DailyPrompt(id="p2", title="Two", category="bedtime", age_categories=["all"],
                        tags=["story"], estimated_minutes=10, created_at=datetime(2024, 2, 1)),
        ]
    )
    db.add_all(
        [
            PromptCompletion(id="c1", user_id="user-1", prompt_id="p1", child_id="child-1",
                             completed_at=datetime(2024, 6, 14, 19), completion_date=date(2024, 6, 14),
                             duration_seconds=600),
            PromptCompletion(id="c2", user_id="user-1", prompt_id="p2", child_id="child-1",
                             completed_at=datetime(2024, 6, 13, 19), completion_date=date(2024, 6, 13),
                             reflection_note="sweet"),
            PromptCompletion(id="c3", user_id="user-1", prompt_id="p1", child_id="child-1",
                             completed_at=datetime(2024, 5, 1, 19), completion_date=date(2024, 5, 1)),
        ]
    )
    db.add(PromptFavorite(user_id="user-1", prompt_id="p2"))
    db.commit()
    db.close()

    return SqlRecommendationStore(Session, today=lambda: TODAY)


def test_child_age_is_derived_from_birth_date(store):
    child = asyncio.run(store.get_child("child-1"))
    # birthday is tomorrow
    assert child.age == 6
    assert child.current_challenges == ["sharing"]
    assert asyncio.run(store.get_child("nope")) is None


def test_recent_completions_newest_first_with_prompt(store):
    rows = asyncio.run(store.list_recent_completions("child-1", limit=2))
    assert [c.id for c in rows] == ["c1", "c2"]
    assert rows[0].prompt.category == "connection"
    assert rows[1].has_reflection


def test_catalog_and_favorites(store):
    prompts = asyncio.run(store.list_prompts())
    assert [p.id for p in prompts] == ["p2", "p1"]
    favorites = asyncio.run(store.list_favorites("user-1"))
    assert [f.prompt_id for f in favorites] == ["p2"]
    elementary = asyncio.run(store.list_prompts_for_age_category("elementary", 5))
    assert [p.id for p in elementary] == ["p1"]


def test_time_stats_and_streak(store):
    assert asyncio.run(store.get_time_stats("user-1", "week")) == (600 + 300) // 60
    assert asyncio.run(store.get_time_stats("user-1", "month")) == (600 + 300) // 60
    assert asyncio.run(store.get_current_streak("user-1")) == 2
    with pytest.raises(ValueError):
        asyncio.run(store.get_time_stats("user-1", "year"))


def test_streak_from_dates():
    today = TODAY
    assert streak_from_dates([], today) == 0
    assert streak_from_dates([today, today - timedelta(days=1), today - timedelta(days=3)], today) == 2
    assert streak_from_dates([today - timedelta(days=1), today - timedelta(days=2)], today) == 2
    assert streak_from_dates([today - timedelta(days=2)], today) == 0


def test_age_from_birth_date():
    assert age_from_birth_date(date(2017, 6, 15), TODAY) == 7
    assert age_from_birth_date(date(2017, 6, 16), TODAY) == 6


def test_storage_errors_are_wrapped():
    Session = sessionmaker(bind=_engine())  # no tables
    broken = SqlRecommendationStore(Session, today=lambda: TODAY)
    with pytest.raises(UpstreamReadError):
        asyncio.run(broken.list_prompts())
