from __future__ import annotations

from typing import Callable, List, Tuple

# (min_age inclusive, max_age exclusive, message(age, name))
DEVELOPMENTAL_TIPS: List[Tuple[int, int, Callable[[int, str], str]]] = [
    (
        0,
        2,
        lambda age, name: (
            f"{'In their first year' if age < 1 else 'At 1 year old'}, {name} thrives on sensory experiences. "
            "Try activities with textures, sounds, and gentle movement."
        ),
    ),
    (
        2,
        5,
        lambda age, name: (
            f"At age {age}, {name} is learning emotional regulation. "
            "Activities that name and validate feelings build lifelong skills."
        ),
    ),
    (
        5,
        8,
        lambda age, name: (
            f"At age {age}, {name} is developing empathy. "
            "Activities that help notice others' feelings are especially valuable now."
        ),
    ),
    (
        8,
        12,
        lambda age, name: (
            f"At age {age}, {name} values growing independence. "
            "Activities that give them choices and leadership build confidence."
        ),
    ),
    (
        12,
        15,
        lambda age, name: (
            f"At age {age}, {name} needs connection without pressure. "
            "Side-by-side activities (like cooking or projects) work wonderfully."
        ),
    ),
    (
        15,
        19,
        lambda age, name: (
            f"At age {age}, {name} values authenticity. "
            "Asking their opinion and really listening builds deep connection."
        ),
    ),
]

STREAK_TIPS: List[Tuple[int, Callable[[int, str], str]]] = [
    (7, lambda streak, name: f"Amazing! A full week of daily connection with {name}! You're building a powerful habit."),
    (5, lambda streak, name: f"You're on a {streak}-day streak with {name}! Just 2 more days to make it a full week!"),
    (3, lambda streak, name: f"You're on a {streak}-day streak with {name}! Consistency is building a beautiful routine."),
]

CATEGORY_NAMES = {
    "connection": "Connection",
    "behavior": "Behavior",
    "learning": "Learning",
    "mealtime": "Mealtime",
    "bedtime": "Bedtime",
    "creative_expression": "Creative Expression",
    "emotional_connection": "Emotional Connection",
    "spiritual_growth": "Spiritual Growth",
    "service": "Service",
    "gratitude": "Gratitude",
}

ICONS = {
    "re_engagement": "💜",
    "first_activity": "🌟",
    "developmental": "🧠",
    "explore": "🎯",
    "mix_it_up": "⚖️",
    "underused": "🌈",
    "streak": "🔥",
    "reflection": "📝",
    "duration": "⏰",
    "favorite": "❤️",
}
