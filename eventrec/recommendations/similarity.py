from __future__ import annotations

from typing import AbstractSet, Iterable

from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import UserEventProfile


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """Size of the intersection over size of the union; 0 for two empty sets."""
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def user_similarity(
    a: UserEventProfile,
    b: UserEventProfile,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """
    Weighted Jaccard similarity of attended events and interested categories.

    A component whose two sets are both empty is left out and the remaining
    weights are rescaled, so any non-empty profile has similarity 1 with
    itself. Two empty profiles have similarity 0.
    """
    components = (
        (config.attended_weight, set(a.attended_events), set(b.attended_events)),
        (config.category_weight, a.interested_categories, b.interested_categories),
    )
    total_weight = 0.0
    weighted = 0.0
    for weight, left, right in components:
        if not (left or right):
            continue
        total_weight += weight
        weighted += weight * jaccard(left, right)

    if total_weight == 0:
        return 0.0
    return weighted / total_weight


def find_similar_users(
    target: UserEventProfile,
    profiles: Iterable[UserEventProfile],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[tuple[UserEventProfile, float]]:
    """Return up to ``similar_user_limit`` profiles above the similarity threshold.

    Ordered by descending similarity, then by user id so equal similarities
    always resolve the same way.
    """
    scored: list[tuple[UserEventProfile, float]] = []
    for other in profiles:
        if other.user_id == target.user_id:
            continue
        similarity = user_similarity(target, other, config)
        if similarity > config.similarity_threshold:
            scored.append((other, similarity))

    scored.sort(key=lambda pair: (-pair[1], pair[0].user_id))
    return scored[: config.similar_user_limit]
