from __future__ import annotations

import pytest

from eventrec.recommendations.hybrid import merge_recommendations, sub_limits
from eventrec.recommendations.models import Recommendation, RecommendationSource


def _rec(event_id, score, source, reasons=()):
    return Recommendation(
        event_id=event_id,
        score=score,
        reasons=tuple(reasons),
        source=source,
        confidence=min(score, 1.0),
    )


COLLAB = RecommendationSource.collaborative
CONTENT = RecommendationSource.content
POPULAR = RecommendationSource.popularity


def test_sub_limits_round_up():
    assert sub_limits(20) == (8, 8, 4)
    assert sub_limits(1) == (1, 1, 1)
    assert sub_limits(3) == (2, 2, 1)


def test_collaborative_scores_are_boosted():
    merged = merge_recommendations([_rec("E1", 0.5, COLLAB)], [], [], limit=5)
    assert merged[0].score == pytest.approx(0.6)
    assert merged[0].source is COLLAB


def test_popularity_scores_are_damped():
    merged = merge_recommendations([], [], [_rec("E1", 0.5, POPULAR)], limit=5)
    assert merged[0].score == pytest.approx(0.4)
    assert merged[0].source is POPULAR


def test_overlapping_events_become_hybrid_with_additive_score():
    collab = [_rec("E1", 0.5, COLLAB, ["similar users"])]
    content = [_rec("E1", 0.4, CONTENT, ["category", "similar users"])]
    popular = [_rec("E1", 0.5, POPULAR, ["trending"])]

    merged = merge_recommendations(collab, content, popular, limit=5)

    assert len(merged) == 1
    assert merged[0].source is RecommendationSource.hybrid
    assert merged[0].score == pytest.approx(0.5 * 1.2 + 0.4 + 0.5 * 0.8)
    assert merged[0].reasons == ("similar users", "category", "trending")
    assert merged[0].confidence == 1.0


def test_hybrid_score_is_at_least_the_larger_component():
    collab = [_rec("E1", 0.3, COLLAB)]
    content = [_rec("E1", 0.7, CONTENT)]
    merged = merge_recommendations(collab, content, [], limit=5)
    assert merged[0].score >= max(0.3 * 1.2, 0.7)


def test_inputs_are_not_modified():
    collab = [_rec("E1", 0.5, COLLAB, ["a"])]
    content = [_rec("E1", 0.4, CONTENT, ["b"])]
    snapshot = [r.model_copy() for r in collab + content]

    merge_recommendations(collab, content, [], limit=5)

    assert collab + content == snapshot


def test_scenario_e_ties_are_ordered_by_event_id():
    content = [_rec("E2", 0.5, CONTENT), _rec("E10", 0.5, CONTENT), _rec("E1", 0.5, CONTENT)]

    first = merge_recommendations([], content, [], limit=5)
    second = merge_recommendations([], list(reversed(content)), [], limit=5)

    assert [r.event_id for r in first] == ["E1", "E10", "E2"]
    assert [r.event_id for r in second] == [r.event_id for r in first]


def test_truncates_to_limit_in_descending_order():
    content = [_rec(f"E{i}", 0.1 * i, CONTENT) for i in range(1, 8)]
    merged = merge_recommendations([], content, [], limit=3)
    assert [r.event_id for r in merged] == ["E7", "E6", "E5"]


def test_empty_inputs_give_empty_output():
    assert merge_recommendations([], [], [], limit=10) == []
