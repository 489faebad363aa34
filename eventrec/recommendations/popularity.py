"""
Popularity scoring: registration pressure, the catalog's popularity field,
recent engagement across all users, and review quality.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

import numpy as np

from ..catalog.snapshot import CatalogSnapshot
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import (
    EventFeatures,
    Recommendation,
    RecommendationSource,
    UserEventProfile,
    confidence_for,
)

logger = logging.getLogger(__name__)

TRENDING_REASON = "Trending right now"
REVIEWED_REASON = "Well-reviewed by attendees"


def compute_trend_scores(
    profiles: Iterable[UserEventProfile],
    now: datetime | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> dict[str, float]:
    """
    Exponentially decayed engagement count per event.

    Each engagement inside the lookback window contributes
    ``0.5 ** (age_hours / half_life_hours)``; engagements older than the
    window, or stamped in the future, contribute nothing.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    lookback = config.trend_lookback_hours

    event_ids: list[str] = []
    ages: list[float] = []
    for profile in profiles:
        for record in profile.engagement_history:
            age_hours = (now - record.timestamp).total_seconds() / 3600.0
            if age_hours < 0 or age_hours > lookback:
                continue
            event_ids.append(record.event_id)
            ages.append(age_hours)

    if not event_ids:
        return {}

    weights = np.power(0.5, np.asarray(ages) / config.trend_half_life_hours)
    unique_ids, inverse = np.unique(np.asarray(event_ids), return_inverse=True)
    totals = np.bincount(inverse, weights=weights)
    return {str(eid): float(total) for eid, total in zip(unique_ids, totals)}


def _score_event(
    event: EventFeatures,
    trend_scores: dict[str, float],
    config: ScoringConfig,
) -> tuple[float, list[str]]:
    score = 0.0
    reasons: list[str] = []

    pressure = event.registration_pressure
    if pressure > config.demand_threshold:
        score += config.demand_bonus
        reasons.append(f"High demand - {round(pressure * 100)}% full")

    score += event.popularity * config.popularity_weight

    if trend_scores.get(event.id, 0.0) >= config.trend_threshold:
        score += config.trending_bonus
        reasons.append(TRENDING_REASON)

    if event.rating >= config.reviewed_min_rating and event.review_count >= config.reviewed_min_count:
        score += config.reviewed_bonus
        reasons.append(REVIEWED_REASON)

    return score, reasons


def score_popularity(
    profile: UserEventProfile | None,
    catalog: CatalogSnapshot,
    trend_scores: dict[str, float],
    limit: int,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[Recommendation]:
    attended = set(profile.attended_events) if profile is not None else set()
    candidates = [e for e in catalog if e.id not in attended][: config.max_candidates]

    results: list[Recommendation] = []
    for event in candidates:
        score, reasons = _score_event(event, trend_scores, config)
        if score > config.popularity_min_score:
            results.append(Recommendation(
                event_id=event.id,
                score=score,
                reasons=tuple(reasons),
                source=RecommendationSource.popularity,
                confidence=confidence_for(score),
            ))

    logger.debug("[POP] %d of %d candidates scored above threshold", len(results), len(candidates))

    results.sort(key=lambda r: (-r.score, r.event_id))
    return results[:limit]
