from __future__ import annotations

import threading

from ..catalog.config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from ..catalog.loader import load_catalog
from ..catalog.snapshot import CatalogSnapshot
from .engine import EventRecommendationEngine

_engine: EventRecommendationEngine | None = None
_engine_lock = threading.Lock()


def get_engine(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> EventRecommendationEngine:
    """Return the process-wide engine, loading the catalog on first call."""
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = EventRecommendationEngine(catalog=load_catalog(config))
        return _engine


def reload_catalog(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> CatalogSnapshot:
    """Re-read the catalog feed and swap it into the running engine."""
    snapshot = load_catalog(config)
    get_engine(config).refresh_catalog(snapshot)
    return snapshot


def reset_engine() -> None:
    """Drop the process-wide engine; the next ``get_engine`` starts fresh."""
    global _engine
    with _engine_lock:
        _engine = None
