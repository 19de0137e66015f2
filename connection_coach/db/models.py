from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class ChildProfile(Base):
    __tablename__ = "child_profiles"

    id = Column(String, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    birth_date = Column(Date, nullable=False)

    # lists of free-text labels
    interests = Column(JSON, nullable=False, default=list)
    personality_traits = Column(JSON, nullable=False, default=list)
    current_challenges = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class DailyPrompt(Base):
    __tablename__ = "daily_prompts"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    activity = Column(Text, nullable=False, default="")
    category = Column(String, index=True, nullable=False)
    age_categories = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)  # first tag is the primary tag
    estimated_minutes = Column(Integer, nullable=False, default=5)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PromptCompletion(Base):
    __tablename__ = "prompt_completions"

    id = Column(String, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    prompt_id = Column(String, ForeignKey("daily_prompts.id"), index=True, nullable=False)
    child_id = Column(String, ForeignKey("child_profiles.id"), index=True, nullable=True)
    completed_at = Column(DateTime, nullable=False)
    completion_date = Column(Date, index=True, nullable=False)
    reflection_note = Column(Text, nullable=True)
    duration_seconds = Column(Integer, nullable=True)

    prompt = relationship(DailyPrompt, lazy="joined")


class PromptFavorite(Base):
    __tablename__ = "prompt_favorites"
    __table_args__ = (UniqueConstraint("user_id", "prompt_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, index=True, nullable=False)
    prompt_id = Column(String, ForeignKey("daily_prompts.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
