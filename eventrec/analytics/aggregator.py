from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] == "recommendation"]
    engagements = [e for e in events if e["type"] == "engagement"]
    total = len(requests)

    # Average response time
    times = [r["response_time_ms"] for r in requests if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Result sizes
    returned = [r.get("results_returned", 0) for r in requests]
    avg_results = round(sum(returned) / total, 1) if total else 0.0
    empty = sum(1 for n in returned if n == 0)

    # Which signal produced the recommendations that were served
    source_counter: Counter[str] = Counter()
    for r in requests:
        source_counter.update(r.get("sources", {}))

    # Most recommended events
    event_counter: Counter[str] = Counter()
    for r in requests:
        event_counter.update(r.get("event_ids", []) or [])
    top_events = [{"event_id": e, "count": c} for e, c in event_counter.most_common(10)]

    action_counter: Counter[str] = Counter(e.get("action", "unknown") for e in engagements)

    return {
        "total_requests": total,
        "avg_response_time_ms": avg_time,
        "avg_results_returned": avg_results,
        "empty_result_rate": round(empty / total * 100, 1) if total else 0.0,
        "source_mix": dict(source_counter),
        "top_recommended_events": top_events,
        "engagement_summary": {
            "total": len(engagements),
            "by_action": dict(action_counter),
            "unique_users": len({e.get("user_id") for e in engagements}),
        },
    }
