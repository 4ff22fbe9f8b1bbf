"""Recommendation engine.

Turns a user's rating history into a ranked list of catalog items with
user-based collaborative filtering, and falls back to the globally
best-rated items whenever the collaborative path has nothing to say.

The pipeline is a chain of stages. Each stage returns a list of items or
``None`` for "no signal", and the next stage runs only on ``None``:

    collaborative  ->  popular

A stage that fails for any reason other than the store being unreachable is
logged and treated as "no signal". ``StorageUnavailableError`` always
propagates.

Only collaborative answers are cached. The popular list does not depend on
the user, and other users' ratings move it without evicting anyone.
"""

import logging
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

from commercerec.config import Settings
from commercerec.exceptions import InvalidArgumentError, StorageUnavailableError
from commercerec.recommender.cache import (
    InMemoryRecommendationCache,
    NullRecommendationCache,
    RecommendationCache,
)
from commercerec.recommender.models import Item
from commercerec.recommender.scoring import rank_candidates, score_candidates
from commercerec.recommender.similarity import find_similar_users
from commercerec.recommender.store import Catalog, RatingStore

# Configure module logger
logger = logging.getLogger(__name__)

# Minimum average rating for an item to count as popular
POPULARITY_THRESHOLD = 4.0


class RecommendationSource(str, Enum):
    """Where a recommendation list came from."""

    COLLABORATIVE = "collaborative"
    POPULAR = "popular"
    CACHE = "cache"
    DEGRADED = "degraded"
    NONE = "none"


Stage = Callable[[int, int], Optional[List[Item]]]


class RecommendationEngine:
    """User-based collaborative filtering with a popularity fallback.

    Args:
        ratings: Read access to ratings.
        catalog: Read access to items.
        settings: Limit range and caching switch. Defaults to ``Settings()``.
        cache: Result cache. Defaults to an in-memory cache when caching is
            enabled in ``settings``, else a no-op cache.
    """

    def __init__(
        self,
        ratings: RatingStore,
        catalog: Catalog,
        settings: Optional[Settings] = None,
        cache: Optional[RecommendationCache] = None,
    ):
        self.ratings = ratings
        self.catalog = catalog
        self.settings = settings or Settings()
        if cache is None:
            cache = (
                InMemoryRecommendationCache()
                if self.settings.cache_enabled
                else NullRecommendationCache()
            )
        self.cache = cache
        self._stages: List[Tuple[RecommendationSource, Stage]] = [
            (RecommendationSource.COLLABORATIVE, self._collaborative_stage),
            (RecommendationSource.POPULAR, self._popular_stage),
        ]

    def recommend(self, user_id: int, limit: Optional[int] = None) -> List[Item]:
        """Recommend up to ``limit`` items the user has not rated yet.

        Args:
            user_id: Positive id of an already authenticated user.
            limit: Requested result size, clamped into the configured range.

        Returns:
            Items ordered best first. Popular items when the user has no
            usable rating history.

        Raises:
            InvalidArgumentError: If ``user_id`` is not a positive integer.
            StorageUnavailableError: If the store cannot be reached.
        """
        items, _ = self.recommend_with_source(user_id, limit)
        return items

    def recommend_with_source(
        self,
        user_id: int,
        limit: Optional[int] = None,
    ) -> Tuple[List[Item], RecommendationSource]:
        """Same as ``recommend`` but also reports which stage answered."""
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
            logger.error("Rejected recommendation request", extra={"user_id": user_id})
            raise InvalidArgumentError("user_id", user_id, "must be a positive integer")

        requested_limit = limit
        limit = self.settings.clamp_limit(limit)
        if requested_limit is not None and requested_limit != limit:
            logger.warning(
                "Limit out of range, clamped",
                extra={"requested_limit": requested_limit, "limit": limit},
            )

        generation = self.cache.generation(user_id)
        cached = self.cache.get(user_id, limit)
        if cached is not None:
            logger.debug(f"Serving cached recommendations for user {user_id}, limit={limit}")
            return cached, RecommendationSource.CACHE

        start_time = time.time()
        logger.info(
            "Starting recommendation generation",
            extra={"user_id": user_id, "limit": limit},
        )

        degraded = False
        for source, stage in self._stages:
            try:
                items = stage(user_id, limit)
            except StorageUnavailableError:
                raise
            except Exception as e:
                logger.error(
                    "Recommendation stage failed, falling through",
                    extra={
                        "user_id": user_id,
                        "stage": source.value,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                degraded = True
                continue

            if items is None:
                continue

            if degraded:
                source = RecommendationSource.DEGRADED
            elif source == RecommendationSource.COLLABORATIVE:
                self.cache.put(user_id, limit, items, generation=generation)

            logger.info(
                "Recommendations generated",
                extra={
                    "user_id": user_id,
                    "source": source.value,
                    "num_recommendations": len(items),
                    "total_time_ms": round((time.time() - start_time) * 1000, 2),
                },
            )
            return items, source

        logger.warning("No stage produced recommendations", extra={"user_id": user_id})
        return [], RecommendationSource.NONE

    def _collaborative_stage(self, user_id: int, limit: int) -> Optional[List[Item]]:
        rated_item_ids = self.ratings.rated_item_ids(user_id)
        if not rated_item_ids:
            logger.info(
                "User has no ratings, using cold-start",
                extra={"user_id": user_id, "strategy": "cold_start"},
            )
            return None

        neighbours = find_similar_users(self.ratings, user_id, rated_item_ids)
        if not neighbours:
            logger.info(
                "No similar users, using popular items",
                extra={"user_id": user_id, "num_rated": len(rated_item_ids)},
            )
            return None

        scores = score_candidates(self.ratings, neighbours, rated_item_ids)
        ranked_item_ids = rank_candidates(scores, limit)
        if not ranked_item_ids:
            logger.info(
                "Neighbours rated nothing new, using popular items",
                extra={"user_id": user_id, "num_neighbours": len(neighbours)},
            )
            return None

        items = self._fetch_in_rank_order(ranked_item_ids)
        if not items:
            logger.warning(
                "Candidate items missing from catalog, using popular items",
                extra={"user_id": user_id, "item_ids": ranked_item_ids},
            )
            return None

        for rank, item in enumerate(items, start=1):
            logger.debug(
                f"  {rank}. [ID:{item.id}] {item.name} "
                f"(predicted {scores[item.id]:.2f}, average {item.average_rating:.2f})"
            )
        return items

    def _popular_stage(self, user_id: int, limit: int) -> Optional[List[Item]]:
        return self.popular_products(limit)

    def _fetch_in_rank_order(self, item_ids: List[int]) -> List[Item]:
        by_id = {item.id: item for item in self.catalog.items_by_ids(item_ids)}
        return [by_id[item_id] for item_id in item_ids if item_id in by_id]

    def popular_products(self, limit: Optional[int] = None) -> List[Item]:
        """Return items rated at least 4.0 on average, best rated first.

        Raises:
            StorageUnavailableError: If the catalog cannot be reached.
        """
        limit = self.settings.clamp_limit(limit)
        start_time = time.time()
        try:
            items = self.catalog.items_rated_at_least(POPULARITY_THRESHOLD)[:limit]
        except StorageUnavailableError:
            raise
        except Exception as e:
            logger.error(
                "Popular item lookup failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return []

        logger.info(
            "Popular items fetched",
            extra={
                "limit": limit,
                "num_items": len(items),
                "lookup_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return items

    def recommend_by_category(self, category: Optional[str], limit: Optional[int] = None) -> List[Item]:
        """Return the best rated items of one category.

        A missing or blank category is logged and answered with an empty list
        rather than an error.

        Raises:
            StorageUnavailableError: If the catalog cannot be reached.
        """
        if category is None or not category.strip():
            logger.error("Invalid category", extra={"category": category})
            return []

        limit = self.settings.clamp_limit(limit)
        start_time = time.time()
        try:
            items = self.catalog.items_by_category(category)
        except StorageUnavailableError:
            raise
        except Exception as e:
            logger.error(
                "Category lookup failed",
                extra={"category": category, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return []

        items = sorted(items, key=lambda item: (-item.average_rating, item.id))[:limit]
        logger.info(
            "Category recommendations generated",
            extra={
                "category": category,
                "num_items": len(items),
                "lookup_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return items
