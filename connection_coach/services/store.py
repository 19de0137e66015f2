"""Read-only storage contracts used by the recommendation and insights cores.

``RecommendationStore`` is what the engines depend on. ``SqlRecommendationStore``
implements it on the SQLAlchemy models; every read opens its own session and
runs in a worker thread so independent reads can be awaited concurrently.
"""
from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from connection_coach.db.models import ChildProfile, DailyPrompt, PromptCompletion, PromptFavorite
from connection_coach.schemas.recommendations import Child, Completion, Favorite, Prompt
from connection_coach.services.errors import UpstreamReadError
from connection_coach.services.time_utils import age_from_birth_date

T = TypeVar("T")

DEFAULT_DURATION_SECONDS = 300
PERIOD_DAYS = {"week": 7, "month": 30}


class RecommendationStore(Protocol):
    async def get_child(self, child_id: str) -> Optional[Child]:
        ...

    async def list_recent_completions(self, child_id: str, limit: int = 100) -> List[Completion]:
        ...

    async def list_prompts(self) -> List[Prompt]:
        ...

    async def list_favorites(self, user_id: str) -> List[Favorite]:
        ...

    async def list_prompts_for_age_category(self, age_category: str, limit: int) -> List[Prompt]:
        ...

    async def list_child_completions(self, child_id: str) -> List[Completion]:
        ...

    async def get_time_stats(self, user_id: str, period: str) -> int:
        ...

    async def get_current_streak(self, user_id: str) -> int:
        ...


def child_from_row(row: ChildProfile, today: Optional[date] = None) -> Child:
    """Map a child row, deriving age from birth_date at read time."""
    return Child(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        birth_date=row.birth_date,
        age=age_from_birth_date(row.birth_date, today),
        interests=list(row.interests or []),
        personality_traits=list(row.personality_traits or []),
        current_challenges=list(row.current_challenges or []),
    )


def completion_from_row(row: PromptCompletion) -> Completion:
    return Completion(
        id=row.id,
        user_id=row.user_id,
        prompt_id=row.prompt_id,
        child_id=row.child_id,
        completed_at=row.completed_at,
        completion_date=row.completion_date,
        reflection_note=row.reflection_note,
        duration_seconds=row.duration_seconds,
        prompt=Prompt.model_validate(row.prompt) if row.prompt is not None else None,
    )


def streak_from_dates(days: List[date], today: date) -> int:
    """Consecutive days with a completion, ending today (or yesterday if today is still open)."""
    seen = set(days)
    cursor = today if today in seen else today - timedelta(days=1)
    streak = 0
    while cursor in seen:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


class SqlRecommendationStore:
    def __init__(self, session_factory: Callable[[], Session], today: Optional[Callable[[], date]] = None) -> None:
        self._session_factory = session_factory
        self._today = today or (lambda: datetime.now(timezone.utc).date())

    def _read(self, fn: Callable[[Session], T]) -> T:
        db = self._session_factory()
        try:
            return fn(db)
        except SQLAlchemyError as e:
            raise UpstreamReadError(f"Storage read failed: {e}") from e
        finally:
            db.close()

    async def _run(self, fn: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._read, fn)

    async def get_child(self, child_id: str) -> Optional[Child]:
        def q(db: Session) -> Optional[Child]:
            row = db.get(ChildProfile, child_id)
            return child_from_row(row, self._today()) if row is not None else None

        return await self._run(q)

    async def list_recent_completions(self, child_id: str, limit: int = 100) -> List[Completion]:
        def q(db: Session) -> List[Completion]:
            rows = (
                db.query(PromptCompletion)
                .filter(PromptCompletion.child_id == child_id)
                .order_by(PromptCompletion.completed_at.desc())
                .limit(limit)
                .all()
            )
            return [completion_from_row(r) for r in rows]

        return await self._run(q)

    async def list_prompts(self) -> List[Prompt]:
        def q(db: Session) -> List[Prompt]:
            rows = db.query(DailyPrompt).order_by(DailyPrompt.created_at.desc()).all()
            return [Prompt.model_validate(r) for r in rows]

        return await self._run(q)

    async def list_favorites(self, user_id: str) -> List[Favorite]:
        def q(db: Session) -> List[Favorite]:
            rows = db.query(PromptFavorite).filter(PromptFavorite.user_id == user_id).all()
            return [Favorite.model_validate(r) for r in rows]

        return await self._run(q)

    async def list_prompts_for_age_category(self, age_category: str, limit: int) -> List[Prompt]:
        # JSON containment differs per backend; filter the catalog here instead.
        prompts = await self.list_prompts()
        return [p for p in prompts if age_category in p.age_categories][:limit]

    async def list_child_completions(self, child_id: str) -> List[Completion]:
        def q(db: Session) -> List[Completion]:
            rows = (
                db.query(PromptCompletion)
                .filter(PromptCompletion.child_id == child_id)
                .order_by(PromptCompletion.completion_date.desc(), PromptCompletion.completed_at.desc())
                .all()
            )
            return [completion_from_row(r) for r in rows]

        return await self._run(q)

    async def get_time_stats(self, user_id: str, period: str) -> int:
        """Minutes the user logged across all children in the last week or month."""
        if period not in PERIOD_DAYS:
            raise ValueError(f"Unknown period '{period}'")
        since = self._today() - timedelta(days=PERIOD_DAYS[period])

        def q(db: Session) -> int:
            rows = (
                db.query(PromptCompletion.duration_seconds)
                .filter(PromptCompletion.user_id == user_id)
                .filter(PromptCompletion.completion_date >= since)
                .all()
            )
            return sum((r[0] or DEFAULT_DURATION_SECONDS) for r in rows) // 60

        return await self._run(q)

    async def get_current_streak(self, user_id: str) -> int:
        def q(db: Session) -> int:
            rows = (
                db.query(PromptCompletion.completion_date)
                .filter(PromptCompletion.user_id == user_id)
                .distinct()
                .all()
            )
            return streak_from_dates([r[0] for r in rows], self._today())

        return await self._run(q)
