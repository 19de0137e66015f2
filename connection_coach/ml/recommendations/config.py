HISTORY_LIMIT = 100
DEFAULT_LIMIT = 5

# Category distribution thresholds (share of total completions, 0..1)
UNDERREPRESENTED_SHARE = 0.10
UNDERREPRESENTED_MIN_COMPLETIONS = 10
OVERREPRESENTED_SHARE = 0.30
NEGLECTED_AFTER_DAYS = 14
UNCATEGORIZED = "uncategorized"

# Balance boosts, checked in this order
UNDERREPRESENTED_BOOST = 1.5
NEGLECTED_BOOST = 1.3
OVERREPRESENTED_BOOST = 0.7

BASE_CATEGORY_SCORE = 50.0
NEUTRAL_SCORE = 50.0

DEFAULT_WEIGHTS = {
    "category_balance": 0.70,
    "engagement": 0.20,
    "filters": 0.10,
}

# (min ratio of mean duration to estimate, score)
DURATION_BANDS = [
    (1.5, 100.0),
    (1.0, 75.0),
    (0.75, 50.0),
]
DURATION_FLOOR = 25.0

# (min share of completions with a reflection note, score)
REFLECTION_BANDS = [
    (0.75, 100.0),
    (0.50, 85.0),
    (0.25, 70.0),
]
REFLECTION_FLOOR = 60.0

RECENCY_EXCLUDE_DAYS = 14
RECENCY_DECAY_DAYS = 30
RECENCY_MIN_MULTIPLIER = 0.5

# Diversity selection
ROTATION_TIER_SIZE = 10
MAX_PER_CATEGORY = 2
MAX_PER_PRIMARY_TAG = 2
MIN_RESULTS = 3

DOMINANT_CATEGORY_SHARE = 0.5
NEW_USER_MAX_COMPLETIONS = 3
QUICK_WIN_MINUTES = 5

FAITH_TAGS = {"faith-based", "christian", "lds"}
LDS_TAGS = {"lds"}

STARTER_SCORE = 75.0
GREATEST_HITS_SCORE = 80.0
FALLBACK_SCORE = 50.0
HIGH_ENGAGEMENT_SECONDS = 300

CACHE_KEY_VERSION = "v1"
