from __future__ import annotations

import logging
from typing import Any, List

import pandas as pd
from pydantic import ValidationError

from ..recommendations.models import EventFeatures, EventLocation
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .snapshot import CatalogSnapshot

logger = logging.getLogger(__name__)


CANONICAL_COLUMNS: List[str] = [
    "id",
    "title",
    "category",
    "tags",
    "city",
    "venue",
    "lat",
    "lng",
    "date",
    "time",
    "price",
    "capacity",
    "registered",
    "organizer",
    "description",
    "popularity",
    "rating",
    "review_count",
]

_TEXT_COLUMNS = ["id", "title", "category", "tags", "city", "venue", "date", "time", "organizer", "description"]
_FLOAT_COLUMNS = ["lat", "lng", "price", "popularity", "rating"]
_INT_COLUMNS = ["capacity", "registered", "review_count"]

_START_FORMAT = "%Y-%m-%d %H:%M"


def _split_tags(raw: str, separator: str) -> frozenset[str]:
    return frozenset(t.strip() for t in raw.split(separator) if t.strip())


def _normalize(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce feed columns into the types the engine expects."""
    frame = df.copy()

    # Missing columns get neutral defaults so a sparse feed still loads
    for col in CANONICAL_COLUMNS:
        if col not in frame.columns:
            frame[col] = None

    for col in _TEXT_COLUMNS:
        frame[col] = frame[col].fillna("").astype(str).str.strip()
    frame.loc[frame["time"] == "", "time"] = "00:00"

    for col in _FLOAT_COLUMNS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce").fillna(0.0)
    for col in _INT_COLUMNS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce").fillna(0).clip(lower=0).astype(int)

    frame["popularity"] = frame["popularity"].clip(0.0, 1.0)
    frame["rating"] = frame["rating"].clip(0.0, 5.0)

    frame["starts_at"] = pd.to_datetime(
        frame["date"] + " " + frame["time"], format=_START_FORMAT, errors="coerce",
    )
    return frame


def events_from_frame(
    df: pd.DataFrame,
    config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> list[EventFeatures]:
    """
    Convert a raw catalog frame into validated ``EventFeatures``.

    Rows without an id, a category or a parsable start time are dropped.
    """
    frame = _normalize(df)
    valid = (frame["id"] != "") & (frame["category"] != "") & frame["starts_at"].notna()
    dropped = int((~valid).sum())

    events: list[EventFeatures] = []
    for row in frame.loc[valid].to_dict("records"):
        try:
            events.append(_build_event(row, config))
        except ValidationError:
            dropped += 1
            logger.debug("Dropping invalid catalog row %s", row.get("id"), exc_info=True)

    if dropped:
        logger.warning("Dropped %d malformed catalog rows", dropped)
    return events


def _build_event(row: dict[str, Any], config: CatalogConfig) -> EventFeatures:
    return EventFeatures(
        id=row["id"],
        title=row["title"],
        category=row["category"],
        tags=_split_tags(row["tags"], config.tag_separator),
        location=EventLocation(
            city=row["city"],
            venue=row["venue"],
            coordinates=(float(row["lat"]), float(row["lng"])),
        ),
        starts_at=row["starts_at"].to_pydatetime(),
        price=float(row["price"]),
        capacity=int(row["capacity"]),
        registered=int(row["registered"]),
        organizer=row["organizer"],
        description=row["description"],
        popularity=float(row["popularity"]),
        rating=float(row["rating"]),
        review_count=int(row["review_count"]),
    )


def load_catalog(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> CatalogSnapshot:
    """Read the catalog feed from disk and build an immutable snapshot."""
    df = pd.read_csv(config.catalog_path, dtype={"id": str, "date": str, "time": str})
    snapshot = CatalogSnapshot(events_from_frame(df, config))
    logger.info("Loaded %d events from %s", len(snapshot), config.catalog_path)
    return snapshot
