"""Service wiring shared by the API routes.

The store, the engine and the rating service are built once from
``Settings.from_env()`` and kept in a module-level cache, so the CSV data is
only read on the first request (or on an explicit reload).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from commercerec.config import Settings
from commercerec.exceptions import StorageUnavailableError
from commercerec.recommender.engine import RecommendationEngine
from commercerec.recommender.memory_store import InMemoryStore, load_store_from_csv
from commercerec.recommender.ratings import RatingService

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class ServiceState:
    """Everything a request handler needs."""

    settings: Settings
    store: InMemoryStore
    engine: RecommendationEngine
    ratings: RatingService
    loaded_at: datetime = field(default_factory=datetime.now)


def build_state(settings: Settings, store: InMemoryStore) -> ServiceState:
    """Wire an engine and a rating service around one store and one cache."""
    engine = RecommendationEngine(ratings=store, catalog=store, settings=settings)
    return ServiceState(
        settings=settings,
        store=store,
        engine=engine,
        ratings=RatingService(writer=store, cache=engine.cache),
    )


# Cache for the loaded service state
_state_cache: Optional[ServiceState] = None


def load_state_if_needed(settings: Optional[Settings] = None) -> ServiceState:
    """Load the store from CSV on first use and return the cached state.

    Raises:
        StorageUnavailableError: If the data files cannot be loaded.
    """
    global _state_cache

    if _state_cache is not None:
        return _state_cache

    settings = settings or Settings.from_env()
    logger.info(
        "Loading store",
        extra={"ratings_csv": settings.ratings_csv, "products_csv": settings.products_csv},
    )
    store = load_store_from_csv(settings.ratings_csv, settings.products_csv)
    _state_cache = build_state(settings, store)
    logger.info("Store loaded successfully")
    return _state_cache


def reset_state() -> None:
    """Forget the cached state so the next request reloads it."""
    global _state_cache
    _state_cache = None


def get_state() -> ServiceState:
    """FastAPI dependency returning the loaded service state."""
    return load_state_if_needed()


def get_optional_state() -> Optional[ServiceState]:
    """FastAPI dependency returning the state, or None when storage is down."""
    try:
        return load_state_if_needed()
    except StorageUnavailableError as e:
        logger.warning(f"Store not available: {e.message}")
        return None
