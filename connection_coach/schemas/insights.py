from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


TipType = Literal["developmental", "category_balance", "engagement", "streak", "re_engagement"]


class FavoriteCategory(BaseModel):
    category: str
    count: int


class CategoryShare(BaseModel):
    category: str
    percentage: float  # 0-100


class ConnectionInsights(BaseModel):
    weekly_minutes: int = 0
    monthly_minutes: int = 0
    user_weekly_minutes: int = 0
    user_monthly_minutes: int = 0
    total_completions: int = 0
    current_streak: int = 0
    favorite_categories: List[FavoriteCategory] = Field(default_factory=list)
    category_distribution: List[CategoryShare] = Field(default_factory=list)
    last_completion_date: Optional[date] = None


class PersonalizedTip(BaseModel):
    id: str
    type: TipType
    message: str
    priority: int
    icon: str
