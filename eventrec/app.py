from __future__ import annotations

import logging
import os
import time
from collections import Counter

from fastapi import FastAPI, HTTPException

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .recommendations.data_store import get_engine, reload_catalog
from .recommendations.models import (
    EngagementRequest,
    EngagementResponse,
    ProfileUpdateRequest,
    RecommendationRequest,
    RecommendationResponse,
    UserEventProfile,
)

logging.basicConfig(
    level=os.environ.get("EVENTREC_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="Event Recommendation API", version="1.0.0")


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    catalog = get_engine().catalog
    return {
        "categories": catalog.categories(),
        "cities": catalog.cities(),
        "total_events": len(catalog),
    }


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(body: RecommendationRequest) -> RecommendationResponse:
    start_time = time.time()
    recs = get_engine().get_recommendations(body.user_id, body.limit)
    elapsed_ms = round((time.time() - start_time) * 1000, 1)

    record_event("recommendation", {
        "user_id": body.user_id,
        "limit": body.limit,
        "results_returned": len(recs),
        "response_time_ms": elapsed_ms,
        "sources": dict(Counter(r.source.value for r in recs)),
        "event_ids": [r.event_id for r in recs],
    })
    return RecommendationResponse(user_id=body.user_id, recommendations=recs)


@app.post("/engagement", response_model=EngagementResponse)
def engagement(body: EngagementRequest) -> EngagementResponse:
    profile = get_engine().record_engagement(
        body.user_id,
        body.event_id,
        body.action,
        body.rating,
    )
    record_event("engagement", {
        "user_id": body.user_id,
        "event_id": body.event_id,
        "action": body.action.value,
    })
    return EngagementResponse(
        status="recorded",
        total_engagements=len(profile.engagement_history),
    )


# ── Profile endpoints ────────────────────────────────────────────────────


@app.get("/profiles/{user_id}", response_model=UserEventProfile)
def get_profile(user_id: str) -> UserEventProfile:
    profile = get_engine().profile_store.get(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@app.put("/profiles/{user_id}", response_model=UserEventProfile)
def update_profile(user_id: str, body: ProfileUpdateRequest) -> UserEventProfile:
    return get_engine().update_profile(
        user_id,
        interested_categories=body.interested_categories,
        preferred_times=body.preferred_times,
        preferred_locations=body.preferred_locations,
        social_connections=body.social_connections,
    )


# ── Operations endpoints ─────────────────────────────────────────────────


@app.post("/catalog/refresh")
def catalog_refresh() -> dict:
    snapshot = reload_catalog()
    return {"status": "refreshed", "total_events": len(snapshot)}


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
