from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class EngagementAction(str, Enum):
    viewed = "viewed"
    saved = "saved"
    registered = "registered"
    attended = "attended"
    rated = "rated"


# Actions that count as taking part in an event.
_MARKS_ATTENDANCE: dict[EngagementAction, bool] = {
    EngagementAction.viewed: False,
    EngagementAction.saved: False,
    EngagementAction.registered: True,
    EngagementAction.attended: True,
    EngagementAction.rated: False,
}


def marks_attendance(action: EngagementAction) -> bool:
    return _MARKS_ATTENDANCE[action]


class RecommendationSource(str, Enum):
    collaborative = "collaborative"
    content = "content"
    popularity = "popularity"
    hybrid = "hybrid"


class TimeOfDay(str, Enum):
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"


# Half-open hour ranges [start, end).
_TIME_OF_DAY_HOURS: dict[TimeOfDay, range] = {
    TimeOfDay.morning: range(6, 12),
    TimeOfDay.afternoon: range(12, 18),
    TimeOfDay.evening: range(18, 24),
}


def time_of_day_contains(bucket: TimeOfDay, hour: int) -> bool:
    return hour in _TIME_OF_DAY_HOURS[bucket]


# ── Catalog ──────────────────────────────────────────────────────────────


class EventLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str = ""
    venue: str = ""
    coordinates: tuple[float, float] = (0.0, 0.0)


class EventFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    category: str
    tags: frozenset[str] = Field(default_factory=frozenset)
    location: EventLocation = Field(default_factory=EventLocation)
    starts_at: datetime
    price: float = 0.0
    capacity: int = 0
    registered: int = 0
    organizer: str = ""
    description: str = ""
    popularity: float = Field(default=0.0, ge=0.0, le=1.0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    review_count: int = 0

    @property
    def registration_pressure(self) -> float:
        """Fraction of capacity already taken; 0 when capacity is unknown."""
        if self.capacity <= 0:
            return 0.0
        return self.registered / self.capacity


# ── Profiles ─────────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EngagementRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str = Field(..., min_length=1)
    action: EngagementAction
    timestamp: datetime = Field(default_factory=_utcnow)
    rating: float | None = Field(default=None, ge=0.0, le=5.0)

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _rated_requires_rating(self) -> EngagementRecord:
        if self.action is EngagementAction.rated and self.rating is None:
            raise ValueError("a 'rated' engagement requires a rating")
        return self


class UserEventProfile(BaseModel):
    """Immutable snapshot of one user's event history and preferences.

    Every change produces a new value, so a reader holding a profile never
    sees a partially applied engagement.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    attended_events: tuple[str, ...] = ()
    interested_categories: frozenset[str] = Field(default_factory=frozenset)
    preferred_times: frozenset[TimeOfDay] = Field(default_factory=frozenset)
    preferred_locations: frozenset[str] = Field(default_factory=frozenset)
    social_connections: frozenset[str] = Field(default_factory=frozenset)
    engagement_history: tuple[EngagementRecord, ...] = ()

    def with_engagement(self, record: EngagementRecord) -> UserEventProfile:
        attended = self.attended_events
        if marks_attendance(record.action) and record.event_id not in attended:
            attended = attended + (record.event_id,)
        return self.model_copy(update={
            "attended_events": attended,
            "engagement_history": self.engagement_history + (record,),
        })

    def with_preferences(
        self,
        interested_categories: Iterable[str] | None = None,
        preferred_times: Iterable[TimeOfDay | str] | None = None,
        preferred_locations: Iterable[str] | None = None,
        social_connections: Iterable[str] | None = None,
    ) -> UserEventProfile:
        update: dict[str, frozenset] = {}
        if interested_categories is not None:
            update["interested_categories"] = frozenset(interested_categories)
        if preferred_times is not None:
            update["preferred_times"] = frozenset(TimeOfDay(t) for t in preferred_times)
        if preferred_locations is not None:
            update["preferred_locations"] = frozenset(preferred_locations)
        if social_connections is not None:
            update["social_connections"] = frozenset(social_connections)
        return self.model_copy(update=update)


# ── Engine output ────────────────────────────────────────────────────────


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str
    score: float = Field(..., ge=0.0)
    reasons: tuple[str, ...] = ()
    source: RecommendationSource
    confidence: float = Field(..., ge=0.0, le=1.0)


def confidence_for(score: float) -> float:
    return max(0.0, min(score, 1.0))


def dedupe_reasons(reasons: Iterable[str]) -> tuple[str, ...]:
    """Drop repeated reasons, keeping the first occurrence of each."""
    return tuple(dict.fromkeys(reasons))


# ── HTTP schemas ─────────────────────────────────────────────────────────


class RecommendationRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    limit: int = Field(default=20, ge=1, le=100)


class RecommendationResponse(BaseModel):
    user_id: str
    recommendations: list[Recommendation]


class EngagementRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    event_id: str = Field(..., min_length=1)
    action: EngagementAction
    rating: float | None = Field(default=None, ge=0.0, le=5.0)

    @model_validator(mode="after")
    def _rated_requires_rating(self) -> EngagementRequest:
        if self.action is EngagementAction.rated and self.rating is None:
            raise ValueError("a 'rated' engagement requires a rating")
        return self


class EngagementResponse(BaseModel):
    status: str
    total_engagements: int


class ProfileUpdateRequest(BaseModel):
    interested_categories: list[str] | None = None
    preferred_times: list[TimeOfDay] | None = None
    preferred_locations: list[str] | None = None
    social_connections: list[str] | None = None
