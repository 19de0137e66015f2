from __future__ import annotations

"""One-off script that loads a starter prompt catalog into an empty database.

Run manually:

    python -m scripts.seed_catalog

Existing prompt ids are left untouched, so the script is safe to re-run.
"""

from typing import Any, Dict, List

from connection_coach.db.models import DailyPrompt
from connection_coach.db.session import SessionLocal, init_db


STARTER_CATALOG: List[Dict[str, Any]] = [
    {
        "id": "high-low-buffalo",
        "title": "High, Low, Buffalo",
        "description": "Share the best, hardest and silliest parts of the day.",
        "activity": "Take turns naming a high, a low and a 'buffalo' (something random) from today.",
        "category": "connection",
        "age_categories": ["elementary", "teen"],
        "tags": ["conversation", "daily-ritual"],
        "estimated_minutes": 5,
    },
    {
        "id": "feelings-faces",
        "title": "Feelings Faces",
        "description": "Name feelings together using silly faces.",
        "activity": "Make a face for happy, sad, mad and scared; let your child guess each one, then switch.",
        "category": "emotional_connection",
        "age_categories": ["toddler", "elementary"],
        "tags": ["emotions", "play"],
        "estimated_minutes": 5,
    },
    {
        "id": "gratitude-jar",
        "title": "Gratitude Jar",
        "description": "Write down three small things you're thankful for.",
        "activity": "Each of you writes or draws three good things from the week and drops them in a jar.",
        "category": "gratitude",
        "age_categories": ["all"],
        "tags": ["gratitude", "reflection"],
        "estimated_minutes": 5,
    },
    {
        "id": "kitchen-helper",
        "title": "Kitchen Helper",
        "description": "Let your child lead one step of dinner.",
        "activity": "Pick one task your child can own tonight, like washing vegetables or setting the table.",
        "category": "mealtime",
        "age_categories": ["toddler", "elementary", "teen"],
        "tags": ["cooking", "responsibility"],
        "estimated_minutes": 10,
    },
    {
        "id": "story-swap",
        "title": "Story Swap",
        "description": "Build a bedtime story one sentence at a time.",
        "activity": "Alternate sentences to tell a story about an animal who goes on an adventure.",
        "category": "bedtime",
        "age_categories": ["toddler", "elementary"],
        "tags": ["storytelling", "creativity"],
        "estimated_minutes": 5,
    },
    {
        "id": "doodle-duel",
        "title": "Doodle Duel",
        "description": "Turn each other's scribbles into pictures.",
        "activity": "Draw a random squiggle, swap papers and turn the squiggle into something.",
        "category": "creative_expression",
        "age_categories": ["elementary", "teen"],
        "tags": ["art", "play"],
        "estimated_minutes": 5,
    },
    {
        "id": "kindness-mission",
        "title": "Kindness Mission",
        "description": "Plan one small act of kindness for someone else.",
        "activity": "Choose a neighbor, friend or family member and decide together how to brighten their day.",
        "category": "service",
        "age_categories": ["elementary", "teen"],
        "tags": ["kindness", "empathy"],
        "estimated_minutes": 10,
    },
    {
        "id": "family-prayer",
        "title": "Family Prayer Moment",
        "description": "Share one thing you'd like to pray about together.",
        "activity": "Sit together, each name one person or worry, and close with a short prayer.",
        "category": "spiritual_growth",
        "age_categories": ["all"],
        "tags": ["faith-based", "prayer"],
        "estimated_minutes": 5,
    },
]


def seed() -> None:
    init_db()
    db = SessionLocal()
    try:
        existing = {row[0] for row in db.query(DailyPrompt.id).all()}
        added = 0
        for item in STARTER_CATALOG:
            if item["id"] in existing:
                continue
            db.add(DailyPrompt(**item))
            added += 1
        db.commit()
        print(f"✅ Seeded {added} prompts ({len(existing)} already present)")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
