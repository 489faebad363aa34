from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterable

from ..recommendations.models import EngagementRecord, TimeOfDay, UserEventProfile

logger = logging.getLogger(__name__)


class ProfileStore(ABC):
    """Mapping from user id to that user's event profile.

    Implementations must serialise writes per user and must return
    immutable profile values, so a recommendation call can read a consistent
    snapshot while engagement is being recorded.
    """

    @abstractmethod
    def get(self, user_id: str) -> UserEventProfile | None:
        ...

    @abstractmethod
    def profiles(self) -> list[UserEventProfile]:
        """Return a point-in-time list of every stored profile."""

    @abstractmethod
    def append_engagement(self, user_id: str, record: EngagementRecord) -> UserEventProfile:
        ...

    @abstractmethod
    def update_preferences(
        self,
        user_id: str,
        *,
        interested_categories: Iterable[str] | None = None,
        preferred_times: Iterable[TimeOfDay | str] | None = None,
        preferred_locations: Iterable[str] | None = None,
        social_connections: Iterable[str] | None = None,
    ) -> UserEventProfile:
        ...


class InMemoryProfileStore(ProfileStore):
    """Process-local store with one lock per user."""

    def __init__(self, profiles: Iterable[UserEventProfile] = ()) -> None:
        self._profiles: dict[str, UserEventProfile] = {p.user_id: p for p in profiles}
        self._locks: dict[str, threading.Lock] = {}
        # Guards the two dicts themselves, held only for single lookups/assignments
        self._registry_lock = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def _mutate(
        self,
        user_id: str,
        change: Callable[[UserEventProfile], UserEventProfile],
    ) -> UserEventProfile:
        with self._lock_for(user_id):
            current = self.get(user_id)
            if current is None:
                logger.debug("Creating profile for %s", user_id)
                current = UserEventProfile(user_id=user_id)
            updated = change(current)
            with self._registry_lock:
                self._profiles[user_id] = updated
            return updated

    def get(self, user_id: str) -> UserEventProfile | None:
        with self._registry_lock:
            return self._profiles.get(user_id)

    def profiles(self) -> list[UserEventProfile]:
        with self._registry_lock:
            return list(self._profiles.values())

    def append_engagement(self, user_id: str, record: EngagementRecord) -> UserEventProfile:
        return self._mutate(user_id, lambda profile: profile.with_engagement(record))

    def update_preferences(
        self,
        user_id: str,
        *,
        interested_categories: Iterable[str] | None = None,
        preferred_times: Iterable[TimeOfDay | str] | None = None,
        preferred_locations: Iterable[str] | None = None,
        social_connections: Iterable[str] | None = None,
    ) -> UserEventProfile:
        return self._mutate(user_id, lambda profile: profile.with_preferences(
            interested_categories=interested_categories,
            preferred_times=preferred_times,
            preferred_locations=preferred_locations,
            social_connections=social_connections,
        ))

    def clear(self) -> None:
        # Per-user locks are kept so a writer still inside _mutate stays serialised
        with self._registry_lock:
            self._profiles.clear()
