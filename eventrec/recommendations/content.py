"""
Content-based filtering: match event features against a user's stated
interests, past tags, places and times.
"""
from __future__ import annotations

import logging

from ..catalog.snapshot import CatalogSnapshot
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import (
    EventFeatures,
    Recommendation,
    RecommendationSource,
    UserEventProfile,
    confidence_for,
    time_of_day_contains,
)

logger = logging.getLogger(__name__)


def extract_user_tags(profile: UserEventProfile, catalog: CatalogSnapshot) -> set[str]:
    """Collect the tags of every attended event the catalog knows about."""
    tags: set[str] = set()
    for event_id in profile.attended_events:
        event = catalog.get(event_id)
        if event is not None:
            tags.update(event.tags)
    return tags


def _matches_time_preference(profile: UserEventProfile, event: EventFeatures) -> bool:
    hour = event.starts_at.hour
    return any(time_of_day_contains(bucket, hour) for bucket in profile.preferred_times)


def _score_event(
    event: EventFeatures,
    profile: UserEventProfile,
    user_tags: set[str],
    config: ScoringConfig,
) -> tuple[float, list[str]]:
    score = 0.0
    reasons: list[str] = []

    if event.category in profile.interested_categories:
        score += config.category_match_bonus
        reasons.append(f"Matches your interest in {event.category}")

    common_tags = sorted(event.tags & user_tags)
    if common_tags:
        score += len(common_tags) * config.tag_overlap_bonus
        reasons.append(f"Related to your interests: {', '.join(common_tags)}")

    if event.location.city and event.location.city in profile.preferred_locations:
        score += config.location_match_bonus
        reasons.append(f"In your preferred location: {event.location.city}")

    if _matches_time_preference(profile, event):
        score += config.time_match_bonus
        reasons.append("Scheduled at your preferred time")

    if event.rating >= config.high_rating_threshold:
        score += config.high_rating_bonus
        reasons.append(f"Highly rated event ({event.rating:g}/5)")

    return score, reasons


def score_content(
    profile: UserEventProfile | None,
    catalog: CatalogSnapshot,
    limit: int,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[Recommendation]:
    if profile is None:
        return []

    attended = set(profile.attended_events)
    user_tags = extract_user_tags(profile, catalog)
    candidates = [e for e in catalog if e.id not in attended][: config.max_candidates]

    results: list[Recommendation] = []
    for event in candidates:
        score, reasons = _score_event(event, profile, user_tags, config)
        if score > config.content_min_score:
            results.append(Recommendation(
                event_id=event.id,
                score=score,
                reasons=tuple(reasons),
                source=RecommendationSource.content,
                confidence=confidence_for(score),
            ))

    logger.debug("[CB] %d of %d candidates matched for %s", len(results), len(candidates), profile.user_id)

    results.sort(key=lambda r: (-r.score, r.event_id))
    return results[:limit]
