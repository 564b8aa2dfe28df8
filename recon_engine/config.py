# recon_engine/config.py

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

from recon_engine.models.preferences import MatchingPreferences


class Settings(BaseSettings):
    """Engine defaults loaded from environment variables (RECON_ prefix)."""

    # Weights (must sum to 1.0)
    weight_merchant: float = 0.4
    weight_amount: float = 0.4
    weight_date: float = 0.2
    weight_category: float = 0.0
    weight_payment_method: float = 0.0
    weight_location: float = 0.0

    # Tolerances
    amount_tolerance_ratio: float = 0.10
    date_window_days: int = 5

    # Thresholds
    merchant_match_threshold: float = 0.8
    minimum_confidence: float = 0.7
    review_ratio: float = 0.7

    # Policies
    merchant_strategy: Literal["levenshtein", "hybrid"] = "levenshtein"
    cluster_strategy: Literal["connected", "clique"] = "connected"

    class Config:
        env_prefix = "RECON_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def weights(self) -> dict[str, float]:
        return {
            "merchant": self.weight_merchant,
            "amount": self.weight_amount,
            "date": self.weight_date,
            "category": self.weight_category,
            "payment_method": self.weight_payment_method,
            "location": self.weight_location,
        }


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


def default_preferences() -> MatchingPreferences:
    """
    Build validated MatchingPreferences from the cached settings.

    Raises ConfigurationError if the environment holds invalid values.
    """
    settings = get_settings()
    return MatchingPreferences.from_mapping({
        "weights": {k: v for k, v in settings.weights.items() if v > 0},
        "amount_tolerance_ratio": settings.amount_tolerance_ratio,
        "date_window_days": settings.date_window_days,
        "merchant_match_threshold": settings.merchant_match_threshold,
        "minimum_confidence": settings.minimum_confidence,
        "review_ratio": settings.review_ratio,
        "merchant_strategy": settings.merchant_strategy,
        "cluster_strategy": settings.cluster_strategy,
    })
