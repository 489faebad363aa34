"""
Hybrid merge of collaborative, content and popularity results.

Each scorer's output is read, never modified: the merge accumulates into its
own per-event entries and emits new ``Recommendation`` values at the end.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field

from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import (
    Recommendation,
    RecommendationSource,
    confidence_for,
    dedupe_reasons,
)


@dataclass
class _Entry:
    score: float
    source: RecommendationSource
    reasons: list[str] = field(default_factory=list)


def sub_limits(limit: int, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> tuple[int, int, int]:
    """Per-scorer result caps for a final list of ``limit`` items."""
    # Float noise is rounded off before ceil
    return (
        math.ceil(round(limit * config.collaborative_share, 9)),
        math.ceil(round(limit * config.content_share, 9)),
        math.ceil(round(limit * config.popularity_share, 9)),
    )


def _merge_into(
    entries: dict[str, _Entry],
    recommendations: list[Recommendation],
    boost: float,
) -> None:
    for rec in recommendations:
        weighted = rec.score * boost
        entry = entries.get(rec.event_id)
        if entry is None:
            entries[rec.event_id] = _Entry(score=weighted, source=rec.source, reasons=list(rec.reasons))
            continue
        entry.score += weighted
        entry.reasons.extend(rec.reasons)
        entry.source = RecommendationSource.hybrid


def merge_recommendations(
    collaborative: list[Recommendation],
    content: list[Recommendation],
    popularity: list[Recommendation],
    limit: int,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[Recommendation]:
    entries: dict[str, _Entry] = {}
    _merge_into(entries, collaborative, config.collaborative_boost)
    _merge_into(entries, content, config.content_boost)
    _merge_into(entries, popularity, config.popularity_boost)

    # Equal scores fall back to event id for a stable order
    ranked = sorted(entries.items(), key=lambda item: (-item[1].score, item[0]))[:limit]
    return [
        Recommendation(
            event_id=event_id,
            score=entry.score,
            reasons=dedupe_reasons(entry.reasons),
            source=entry.source,
            confidence=confidence_for(entry.score),
        )
        for event_id, entry in ranked
    ]
