"""
Hybrid event recommendation engine.

Responsibilities:
- Hold the current catalog snapshot and the injected profile store.
- Run the collaborative, content and popularity scorers concurrently
  against one consistent snapshot of both.
- Merge their results into a single ranked, explainable list.
- Record user engagement, the only operation that mutates state.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Callable, Iterable

from ..catalog.snapshot import EMPTY_CATALOG, CatalogSnapshot
from ..profiles.store import InMemoryProfileStore, ProfileStore
from .collaborative import score_collaborative
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .content import score_content
from .hybrid import merge_recommendations, sub_limits
from .models import (
    EngagementAction,
    EngagementRecord,
    Recommendation,
    TimeOfDay,
    UserEventProfile,
)
from .popularity import compute_trend_scores, score_popularity

logger = logging.getLogger(__name__)


class EventRecommendationEngine:
    def __init__(
        self,
        catalog: CatalogSnapshot = EMPTY_CATALOG,
        profile_store: ProfileStore | None = None,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._catalog = catalog
        self.profile_store = profile_store if profile_store is not None else InMemoryProfileStore()
        self.config = config
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ── Catalog ─────────────────────────────────────────────────────────

    @property
    def catalog(self) -> CatalogSnapshot:
        return self._catalog

    def refresh_catalog(self, catalog: CatalogSnapshot) -> None:
        """Swap in a new snapshot; calls already running keep the old one."""
        self._catalog = catalog
        logger.info("Catalog refreshed with %d events", len(catalog))

    # ── Reads ───────────────────────────────────────────────────────────

    def get_recommendations(
        self,
        user_id: str,
        limit: int = 20,
        timeout: float | None = None,
    ) -> list[Recommendation]:
        """
        Rank events for ``user_id``.

        When ``timeout`` (seconds) elapses before every scorer finishes, the
        unfinished scorers contribute nothing and the rest are still merged.
        """
        if limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit}")

        start_time = time.time()
        catalog = self._catalog
        profiles = self.profile_store.profiles()
        profile = next((p for p in profiles if p.user_id == user_id), None)
        if profile is None:
            logger.debug("No profile for %s, returning no recommendations", user_id)
            return []
        now = self._clock()

        collab_limit, content_limit, popularity_limit = sub_limits(limit, self.config)

        # One pool per call: a stuck scorer only ever holds its own call's worker
        executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="eventrec-scorer")
        try:
            futures: dict[str, Future[list[Recommendation]]] = {
                "collaborative": executor.submit(
                    score_collaborative, profile, profiles, collab_limit, self.config,
                ),
                "content": executor.submit(
                    score_content, profile, catalog, content_limit, self.config,
                ),
                "popularity": executor.submit(
                    self._score_popularity, profile, profiles, catalog, now, popularity_limit,
                ),
            }
            _, not_done = wait(futures.values(), timeout=timeout)

            results: dict[str, list[Recommendation]] = {}
            for name, future in futures.items():
                if future in not_done:
                    logger.warning("%s scorer timed out for %s; continuing without it", name, user_id)
                    results[name] = []
                else:
                    results[name] = future.result()
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        merged = merge_recommendations(
            results["collaborative"],
            results["content"],
            results["popularity"],
            limit,
            self.config,
        )

        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        logger.debug(
            "Recommendations for %s: collaborative=%d content=%d popularity=%d merged=%d (%.1f ms)",
            user_id,
            len(results["collaborative"]),
            len(results["content"]),
            len(results["popularity"]),
            len(merged),
            elapsed_ms,
        )
        return merged

    def _score_popularity(
        self,
        profile: UserEventProfile,
        profiles: list[UserEventProfile],
        catalog: CatalogSnapshot,
        now: datetime,
        limit: int,
    ) -> list[Recommendation]:
        trend_scores = compute_trend_scores(profiles, now, self.config)
        return score_popularity(profile, catalog, trend_scores, limit, self.config)

    # ── Writes ──────────────────────────────────────────────────────────

    def record_engagement(
        self,
        user_id: str,
        event_id: str,
        action: EngagementAction | str,
        rating: float | None = None,
        timestamp: datetime | None = None,
    ) -> UserEventProfile:
        """
        Append an engagement to the user's profile, creating it if needed.

        Raises ``pydantic.ValidationError`` for a ``rated`` action without a
        rating. Ratings sent with any other action are dropped.
        """
        action = EngagementAction(action)
        record = EngagementRecord(
            event_id=event_id,
            action=action,
            timestamp=timestamp or self._clock(),
            rating=rating if action is EngagementAction.rated else None,
        )
        profile = self.profile_store.append_engagement(user_id, record)
        logger.debug("Recorded %s of %s by %s", action.value, event_id, user_id)
        return profile

    def update_profile(
        self,
        user_id: str,
        *,
        interested_categories: Iterable[str] | None = None,
        preferred_times: Iterable[TimeOfDay | str] | None = None,
        preferred_locations: Iterable[str] | None = None,
        social_connections: Iterable[str] | None = None,
    ) -> UserEventProfile:
        """Replace the given preference sets; attendance and history are untouched."""
        return self.profile_store.update_preferences(
            user_id,
            interested_categories=interested_categories,
            preferred_times=preferred_times,
            preferred_locations=preferred_locations,
            social_connections=social_connections,
        )
