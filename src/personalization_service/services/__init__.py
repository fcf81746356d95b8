"""Business logic services."""

from personalization_service.services.behavior_tracker import BehaviorTracker
from personalization_service.services.personalization import PersonalizationEngine
from personalization_service.services.recommendation_cache import RecommendationCache
from personalization_service.services.recommendation_engine import Recommender
from personalization_service.services.similarity import SimilarityIndex
from personalization_service.services.user_preference import PreferenceEngine

__all__ = [
    "BehaviorTracker",
    "PersonalizationEngine",
    "PreferenceEngine",
    "RecommendationCache",
    "Recommender",
    "SimilarityIndex",
]
