"""Recommendation result cache.

Results are keyed by ``(user_id, limit)``. Whoever mutates a user's ratings
must call ``evict(user_id)`` so that the next read recomputes every entry
belonging to that user.

Each user also has a generation number that moves forward on every
``evict`` and ``clear``. A reader takes the generation before computing and
hands it back to ``put``; if the user was evicted in between, the result was
built from outdated ratings and is not stored.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from commercerec.recommender.models import Item

# Configure module logger
logger = logging.getLogger(__name__)


class RecommendationCache(ABC):
    """Injectable cache for per-user recommendation lists."""

    @abstractmethod
    def get(self, user_id: int, limit: int) -> Optional[List[Item]]:
        """Return the cached list, or None on a miss."""

    @abstractmethod
    def generation(self, user_id: int) -> int:
        """Return the user's current generation number."""

    @abstractmethod
    def put(
        self,
        user_id: int,
        limit: int,
        items: List[Item],
        generation: Optional[int] = None,
    ) -> bool:
        """Store a list for (user_id, limit).

        When ``generation`` is given and the user has been evicted since it
        was read, nothing is stored. Returns whether the list was stored.
        """

    @abstractmethod
    def evict(self, user_id: int) -> int:
        """Drop every entry of one user. Returns how many were dropped."""

    @abstractmethod
    def clear(self) -> None:
        """Drop everything."""


class InMemoryRecommendationCache(RecommendationCache):
    """Thread-safe dict-backed cache, indexed by user for cheap eviction."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[int, Dict[int, List[Item]]] = {}
        self._evictions: Dict[int, int] = {}
        self._clears = 0

    def _generation(self, user_id: int) -> int:
        return self._clears + self._evictions.get(user_id, 0)

    def get(self, user_id: int, limit: int) -> Optional[List[Item]]:
        with self._lock:
            items = self._entries.get(user_id, {}).get(limit)
            return list(items) if items is not None else None

    def generation(self, user_id: int) -> int:
        with self._lock:
            return self._generation(user_id)

    def put(
        self,
        user_id: int,
        limit: int,
        items: List[Item],
        generation: Optional[int] = None,
    ) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation(user_id):
                logger.debug(f"Discarding outdated recommendations for user {user_id}")
                return False
            self._entries.setdefault(user_id, {})[limit] = list(items)
            return True

    def evict(self, user_id: int) -> int:
        with self._lock:
            self._evictions[user_id] = self._evictions.get(user_id, 0) + 1
            dropped = len(self._entries.pop(user_id, {}))
        if dropped:
            logger.debug(f"Evicted {dropped} cached recommendation lists for user {user_id}")
        return dropped

    def clear(self) -> None:
        with self._lock:
            self._clears += 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(per_user) for per_user in self._entries.values())


class NullRecommendationCache(RecommendationCache):
    """Cache that never stores anything."""

    def get(self, user_id: int, limit: int) -> Optional[List[Item]]:
        return None

    def generation(self, user_id: int) -> int:
        return 0

    def put(
        self,
        user_id: int,
        limit: int,
        items: List[Item],
        generation: Optional[int] = None,
    ) -> bool:
        return False

    def evict(self, user_id: int) -> int:
        return 0

    def clear(self) -> None:
        pass
