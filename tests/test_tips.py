from __future__ import annotations

from datetime import timedelta

from connection_coach.ml.insights.tips import category_display_name, generate_personalized_tips
from connection_coach.schemas.insights import CategoryShare, ConnectionInsights, FavoriteCategory
from factories import TODAY, make_child, make_completion, make_prompt


def _insights(**overrides):
    data = {
        "total_completions": 20,
        "current_streak": 0,
        "favorite_categories": [FavoriteCategory(category="connection", count=2)],
        "category_distribution": [
            CategoryShare(category="connection", percentage=35.0),
            CategoryShare(category="bedtime", percentage=35.0),
            CategoryShare(category="learning", percentage=30.0),
        ],
        "last_completion_date": TODAY,
    }
    data.update(overrides)
    return ConnectionInsights(**data)


def _types(tips):
    return [t.type for t in tips]


def test_developmental_tip_for_six_year_old():
    tips = generate_personalized_tips(make_child(age=6), _insights(), [], TODAY)
    dev = [t for t in tips if t.type == "developmental"][0]
    assert "empathy" in dev.message
    assert "Emma" in dev.message
    assert dev.priority == 90
    assert dev.icon == "🧠"


def test_no_developmental_tip_outside_brackets():
    tips = generate_personalized_tips(make_child(age=19), _insights(), [], TODAY)
    assert "developmental" not in _types(tips)


def test_re_engagement_after_a_week():
    insights = _insights(last_completion_date=TODAY - timedelta(days=9))
    tips = generate_personalized_tips(make_child(), insights, [], TODAY)
    assert tips[0].type == "re_engagement"
    assert "9 days" in tips[0].message
    assert tips[0].priority == 100


def test_first_activity_prompt_for_new_family():
    insights = _insights(total_completions=0, last_completion_date=None, category_distribution=[])
    tips = generate_personalized_tips(make_child(), insights, [], TODAY)
    assert tips[0].type == "re_engagement"
    assert "first 5-minute activity" in tips[0].message
    balance = [t for t in tips if t.type == "category_balance"][0]
    assert balance.priority == 75
    assert "just getting started" in balance.message


def test_mix_it_up_above_forty_percent():
    insights = _insights(
        category_distribution=[
            CategoryShare(category="creative_expression", percentage=45.0),
            CategoryShare(category="bedtime", percentage=50.0),
            CategoryShare(category="learning", percentage=5.0),
        ]
    )
    tips = generate_personalized_tips(make_child(), insights, [], TODAY)
    balance = [t for t in tips if t.type == "category_balance"]
    assert len(balance) == 1
    assert balance[0].priority == 80
    assert "Creative Expression" in balance[0].message


def test_explore_underused_category():
    insights = _insights(
        category_distribution=[
            CategoryShare(category="connection", percentage=35.0),
            CategoryShare(category="bedtime", percentage=35.0),
            CategoryShare(category="gratitude", percentage=25.0),
            CategoryShare(category="service", percentage=5.0),
        ]
    )
    tips = generate_personalized_tips(make_child(), insights, [], TODAY)
    balance = [t for t in tips if t.type == "category_balance"][0]
    assert balance.priority == 75
    assert "Service" in balance.message


def test_streak_tiers():
    child = make_child()
    week = generate_personalized_tips(child, _insights(current_streak=8), [], TODAY)
    five = generate_personalized_tips(child, _insights(current_streak=5), [], TODAY)
    two = generate_personalized_tips(child, _insights(current_streak=2), [], TODAY)
    assert "full week" in [t for t in week if t.type == "streak"][0].message
    assert "Just 2 more days" in [t for t in five if t.type == "streak"][0].message
    assert "streak" not in _types(two)


def test_engagement_tips():
    p = make_prompt()
    completions = [
        make_completion(p, days_ago=i, id=str(i), duration_seconds=540, reflection_note="great")
        for i in range(1, 4)
    ]
    insights = _insights(favorite_categories=[FavoriteCategory(category="creative_expression", count=4)])
    tips = generate_personalized_tips(make_child(age=30), insights, completions, TODAY)

    messages = [t.message for t in tips if t.type == "engagement"]
    assert len(messages) == 3
    assert any("avg 9 min" in m for m in messages)
    assert any("loves Creative Expression" in m for m in messages)


def test_at_most_five_tips_sorted_by_priority():
    p = make_prompt()
    completions = [
        make_completion(p, days_ago=i, id=str(i), duration_seconds=600, reflection_note="yes") for i in range(1, 5)
    ]
    insights = _insights(
        last_completion_date=TODAY - timedelta(days=10),
        current_streak=7,
        favorite_categories=[FavoriteCategory(category="connection", count=5)],
        category_distribution=[CategoryShare(category="connection", percentage=60.0)],
    )
    tips = generate_personalized_tips(make_child(), insights, completions, TODAY)
    assert len(tips) == 5
    priorities = [t.priority for t in tips]
    assert priorities == sorted(priorities, reverse=True)
    assert priorities[:4] == [100, 90, 80, 70]
    assert len({t.id for t in tips}) == 5


def test_category_display_name():
    assert category_display_name("emotional_connection") == "Emotional Connection"
    assert category_display_name("outdoor_play") == "outdoor play"
