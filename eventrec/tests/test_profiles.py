from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from eventrec.profiles.store import InMemoryProfileStore
from eventrec.recommendations.models import (
    EngagementAction,
    EngagementRecord,
    TimeOfDay,
    UserEventProfile,
)


def _record(event_id, action=EngagementAction.viewed, **kwargs):
    return EngagementRecord(event_id=event_id, action=action, **kwargs)


def test_rated_record_requires_rating():
    with pytest.raises(ValidationError):
        _record("E1", EngagementAction.rated)
    assert _record("E1", EngagementAction.rated, rating=3.5).rating == 3.5


def test_rating_must_be_within_bounds():
    with pytest.raises(ValidationError):
        _record("E1", EngagementAction.rated, rating=6)


def test_timestamps_are_normalised_to_utc():
    naive = _record("E1", timestamp=datetime(2026, 1, 1, 10, 0))
    offset = _record("E1", timestamp=datetime(2026, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))))
    assert naive.timestamp == datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert offset.timestamp.utcoffset() == timedelta(0)
    assert offset.timestamp.hour == 10


class TestUserEventProfile:
    def test_with_engagement_returns_new_value(self):
        profile = UserEventProfile(user_id="u")
        updated = profile.with_engagement(_record("E1", EngagementAction.attended))

        assert profile.attended_events == ()
        assert profile.engagement_history == ()
        assert updated.attended_events == ("E1",)
        assert len(updated.engagement_history) == 1

    def test_attendance_is_not_duplicated(self):
        profile = UserEventProfile(user_id="u")
        for action in (EngagementAction.registered, EngagementAction.attended, EngagementAction.attended):
            profile = profile.with_engagement(_record("E1", action))
        assert profile.attended_events == ("E1",)
        assert len(profile.engagement_history) == 3

    @pytest.mark.parametrize("action", [EngagementAction.viewed, EngagementAction.saved])
    def test_browsing_actions_do_not_mark_attendance(self, action):
        profile = UserEventProfile(user_id="u").with_engagement(_record("E1", action))
        assert profile.attended_events == ()

    def test_with_preferences_replaces_only_given_sets(self):
        profile = UserEventProfile(
            user_id="u",
            interested_categories=frozenset({"Tech"}),
            preferred_locations=frozenset({"Berlin"}),
        )
        updated = profile.with_preferences(preferred_times=["evening"], interested_categories=[])

        assert updated.interested_categories == frozenset()
        assert updated.preferred_locations == frozenset({"Berlin"})
        assert updated.preferred_times == frozenset({TimeOfDay.evening})

    def test_profiles_are_frozen(self):
        profile = UserEventProfile(user_id="u")
        with pytest.raises(ValidationError):
            profile.user_id = "other"


class TestInMemoryProfileStore:
    def test_missing_profile_is_none(self):
        assert InMemoryProfileStore().get("nobody") is None

    def test_append_creates_profile(self):
        store = InMemoryProfileStore()
        profile = store.append_engagement("u", _record("E1"))
        assert store.get("u") == profile
        assert [p.user_id for p in store.profiles()] == ["u"]

    def test_seeded_profiles_are_available(self):
        store = InMemoryProfileStore([UserEventProfile(user_id="a"), UserEventProfile(user_id="b")])
        assert {p.user_id for p in store.profiles()} == {"a", "b"}

    def test_snapshot_is_unaffected_by_later_writes(self):
        store = InMemoryProfileStore()
        store.append_engagement("u", _record("E1", EngagementAction.attended))
        snapshot = store.profiles()

        store.append_engagement("u", _record("E2", EngagementAction.attended))
        store.append_engagement("v", _record("E3"))

        assert len(snapshot) == 1
        assert snapshot[0].attended_events == ("E1",)

    def test_update_preferences_keeps_history(self):
        store = InMemoryProfileStore()
        store.append_engagement("u", _record("E1", EngagementAction.attended))
        profile = store.update_preferences("u", preferred_locations=["Munich"])

        assert profile.attended_events == ("E1",)
        assert profile.preferred_locations == frozenset({"Munich"})

    def test_concurrent_appends_for_one_user_are_all_kept(self):
        store = InMemoryProfileStore()
        per_thread = 50

        def worker(offset):
            for i in range(per_thread):
                store.append_engagement("u", _record(f"E{offset}-{i}", EngagementAction.attended))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        profile = store.get("u")
        assert len(profile.engagement_history) == 8 * per_thread
        assert len(profile.attended_events) == 8 * per_thread
        assert len(set(profile.attended_events)) == 8 * per_thread

    def test_writes_for_different_users_do_not_block_each_other(self):
        store = InMemoryProfileStore()
        inside = threading.Event()
        release = threading.Event()

        def held_change(profile):
            inside.set()
            release.wait(timeout=5)
            return profile.with_engagement(_record("E1"))

        writer = threading.Thread(target=store._mutate, args=("a", held_change))
        writer.start()
        assert inside.wait(timeout=5)

        other = threading.Thread(target=store.append_engagement, args=("b", _record("E2")))
        other.start()
        other.join(timeout=2)
        finished_while_a_was_held = not other.is_alive()

        release.set()
        writer.join(timeout=5)

        assert finished_while_a_was_held
        assert store.get("b").engagement_history[0].event_id == "E2"
        assert store.get("a").engagement_history[0].event_id == "E1"

    def test_clear_drops_profiles(self):
        store = InMemoryProfileStore()
        store.append_engagement("u", _record("E1"))
        store.clear()
        assert store.profiles() == []
        assert store.get("u") is None

    def test_clear_keeps_per_user_locks(self):
        store = InMemoryProfileStore()
        lock = store._lock_for("u")
        store.append_engagement("u", _record("E1"))

        store.clear()

        assert store._lock_for("u") is lock
