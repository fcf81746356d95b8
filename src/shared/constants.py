"""Shared constants across the application."""

# Score contributions for the personalized strategy
PERSONALIZED_WEIGHTS = {
    "category": 3.0,
    "brand": 2.0,
    "material": 1.0,
    "price_range": 2.0,
    "vip": 1.0,
    "featured": 1.0,
    "new_arrival": 0.5,
}

# Behavior actions that count toward trending
TRENDING_ACTIONS = ("view", "add_to_cart", "purchase")

# Default limits
DEFAULT_RECOMMENDATION_LIMIT = 8
MAX_RECOMMENDATION_LIMIT = 50
DEFAULT_BEHAVIOR_HISTORY_LIMIT = 50
MAX_BEHAVIOR_HISTORY_LIMIT = 500
DEFAULT_SIMILARITY_LIMIT = 10
MAX_SIMILARITY_LIMIT = 100

# Similar and category_based tuning
DEFAULT_SIMILARITY_TYPE = "co-purchase"
SIMILAR_SEED_VIEW_LIMIT = 20
SIMILAR_NEIGHBOR_LIMIT = 20
CATEGORY_HISTORY_LIMIT = 50
CATEGORY_TOP_N = 3

# Time windows
TRENDING_WINDOW_DAYS = 7
NEW_ARRIVAL_WINDOW_DAYS = 30
RECOMMENDATION_CACHE_TTL_HOURS = 24

# Retention
BEHAVIOR_EVENTS_PER_USER = 500
BEHAVIOR_EVENTS_TOTAL = 100_000
