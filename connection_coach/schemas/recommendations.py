from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


ReasonType = Literal[
    "category_balance",
    "engagement",
    "challenge_match",
    "interest_match",
    "popular",
    "starter",
]

Strategy = Literal["new_user", "standard", "forced_diversity", "greatest_hits", "fallback"]


class Prompt(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    title: str
    description: str = ""
    activity: str = ""
    category: str
    age_categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    estimated_minutes: int = 5
    created_at: Optional[datetime] = None

    @property
    def primary_tag(self) -> str:
        return self.tags[0] if self.tags else "none"


class Child(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    user_id: str
    name: str
    birth_date: date
    age: int
    interests: List[str] = Field(default_factory=list)
    personality_traits: List[str] = Field(default_factory=list)
    current_challenges: List[str] = Field(default_factory=list)


class Completion(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    user_id: str
    prompt_id: str
    child_id: Optional[str] = None
    completed_at: datetime
    completion_date: date
    reflection_note: Optional[str] = None
    duration_seconds: Optional[int] = None
    prompt: Optional[Prompt] = None

    @property
    def has_reflection(self) -> bool:
        return bool(self.reflection_note and self.reflection_note.strip())


class Favorite(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    user_id: str
    prompt_id: str


class RecommendationReason(BaseModel):
    type: ReasonType
    message: str
    weight: float


class ScoredPrompt(BaseModel):
    prompt: Prompt
    score: float
    reasons: List[RecommendationReason] = Field(default_factory=list)


class RecommendationMetadata(BaseModel):
    total_completions: int
    category_distribution: Dict[str, int]
    timestamp: str
    cache_key: str
    strategy: Strategy


class RecommendationResult(BaseModel):
    child_id: str
    recommendations: List[ScoredPrompt]
    metadata: RecommendationMetadata


class RecommendationRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    child_id: str = Field(..., min_length=1)
    faith_mode: bool = False
    limit: Optional[int] = Field(None, ge=1, le=20)
