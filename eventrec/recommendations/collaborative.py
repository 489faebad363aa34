"""
Collaborative filtering: recommend events that similar users attended.
"""
from __future__ import annotations

import logging
from typing import Iterable

from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import (
    Recommendation,
    RecommendationSource,
    UserEventProfile,
    confidence_for,
    dedupe_reasons,
)
from .similarity import find_similar_users

logger = logging.getLogger(__name__)

SIMILAR_USERS_REASON = "Users with similar interests attended this event"


def score_collaborative(
    profile: UserEventProfile | None,
    profiles: Iterable[UserEventProfile],
    limit: int,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[Recommendation]:
    if profile is None:
        return []

    similar_users = find_similar_users(profile, profiles, config)
    if not similar_users:
        logger.debug("[CF] No similar users for %s", profile.user_id)
        return []

    attended = set(profile.attended_events)
    scores: dict[str, float] = {}
    reasons: dict[str, list[str]] = {}

    for other, similarity in similar_users:
        for event_id in other.attended_events:
            if event_id in attended:
                continue
            scores[event_id] = scores.get(event_id, 0.0) + similarity * config.collaborative_weight
            reasons.setdefault(event_id, []).append(SIMILAR_USERS_REASON)

    logger.debug(
        "[CF] %d similar users contributed %d events for %s",
        len(similar_users), len(scores), profile.user_id,
    )

    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))[:limit]
    return [
        Recommendation(
            event_id=event_id,
            score=score,
            reasons=dedupe_reasons(reasons[event_id]),
            source=RecommendationSource.collaborative,
            confidence=confidence_for(score),
        )
        for event_id, score in ranked
    ]
