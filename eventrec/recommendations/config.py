from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class ScoringConfig:
    """
    Weights and thresholds shared by the scorers and the hybrid merge.
    """

    # Similarity
    attended_weight: float = 0.7
    category_weight: float = 0.3

    # Collaborative
    similarity_threshold: float = 0.3
    similar_user_limit: int = 10
    collaborative_weight: float = 0.8

    # Content
    category_match_bonus: float = 0.4
    tag_overlap_bonus: float = 0.1
    location_match_bonus: float = 0.2
    time_match_bonus: float = 0.1
    high_rating_bonus: float = 0.1
    high_rating_threshold: float = 4.5
    content_min_score: float = 0.2

    # Popularity
    demand_threshold: float = 0.7
    demand_bonus: float = 0.3
    popularity_weight: float = 0.4
    trending_bonus: float = 0.2
    reviewed_bonus: float = 0.1
    reviewed_min_rating: float = 4.0
    reviewed_min_count: int = 10
    popularity_min_score: float = 0.1

    # Trend signal
    trend_lookback_hours: float = float(os.getenv("EVENTREC_TREND_LOOKBACK_HOURS", "168"))
    trend_half_life_hours: float = float(os.getenv("EVENTREC_TREND_HALF_LIFE_HOURS", "48"))
    trend_threshold: float = float(os.getenv("EVENTREC_TREND_THRESHOLD", "2.0"))

    # Hybrid merge
    collaborative_share: float = 0.4
    content_share: float = 0.4
    popularity_share: float = 0.2
    collaborative_boost: float = 1.2
    content_boost: float = 1.0
    popularity_boost: float = 0.8

    # Upper bound on catalog events scored per request
    max_candidates: int = int(os.getenv("EVENTREC_MAX_CANDIDATES", "5000"))


DEFAULT_SCORING_CONFIG = ScoringConfig()
