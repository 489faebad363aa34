from __future__ import annotations

import logging
from typing import Iterable, Iterator

from ..recommendations.models import EventFeatures

logger = logging.getLogger(__name__)


class CatalogSnapshot:
    """Immutable, id-indexed view of the event catalog.

    A snapshot is never modified after construction; refreshing the catalog
    means building a new snapshot and swapping the reference.
    """

    __slots__ = ("_events", "_by_id")

    def __init__(self, events: Iterable[EventFeatures] = ()) -> None:
        by_id: dict[str, EventFeatures] = {}
        duplicates = 0
        for event in events:
            if event.id in by_id:
                duplicates += 1
                continue
            by_id[event.id] = event
        if duplicates:
            logger.warning("Ignored %d duplicate event ids in catalog", duplicates)
        self._by_id = by_id
        self._events = tuple(by_id.values())

    @property
    def events(self) -> tuple[EventFeatures, ...]:
        return self._events

    def get(self, event_id: str) -> EventFeatures | None:
        return self._by_id.get(event_id)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._by_id

    def __iter__(self) -> Iterator[EventFeatures]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def categories(self) -> list[str]:
        return sorted({e.category for e in self._events if e.category})

    def cities(self) -> list[str]:
        return sorted({e.location.city for e in self._events if e.location.city})


EMPTY_CATALOG = CatalogSnapshot()
