"""Rating mutations.

Creating, updating and deleting ratings changes both the item's derived
aggregates (handled by the store) and the rating user's recommendations,
so every successful write evicts that user's cached results.
"""

import logging
from typing import Optional

from commercerec.exceptions import InvalidArgumentError, NotFoundError, RatingOwnershipError
from commercerec.recommender.cache import RecommendationCache
from commercerec.recommender.models import MAX_SCORE, MIN_SCORE, Rating
from commercerec.recommender.store import RatingWriter

# Configure module logger
logger = logging.getLogger(__name__)


def _require_positive(argument: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidArgumentError(argument, value, "must be a positive integer")


class RatingService:
    """Writes ratings and keeps the recommendation cache honest."""

    def __init__(self, writer: RatingWriter, cache: RecommendationCache):
        self.writer = writer
        self.cache = cache

    def rate_product(
        self,
        user_id: int,
        item_id: int,
        score: int,
        review: Optional[str] = None,
    ) -> Rating:
        """Create or update ``user_id``'s rating of ``item_id``.

        Raises:
            InvalidArgumentError: If an id is not positive or the score is outside 1-5.
            NotFoundError: If the item does not exist.
        """
        _require_positive("user_id", user_id)
        _require_positive("item_id", item_id)
        if isinstance(score, bool) or not isinstance(score, int) or not MIN_SCORE <= score <= MAX_SCORE:
            raise InvalidArgumentError("score", score, f"must be an integer from {MIN_SCORE} to {MAX_SCORE}")

        logger.info(
            "Rating product",
            extra={"user_id": user_id, "item_id": item_id, "score": score},
        )
        rating = self.writer.upsert_rating(user_id, item_id, score, review)
        self.cache.evict(user_id)
        return rating

    def delete_rating(self, user_id: int, rating_id: int) -> Rating:
        """Delete one of ``user_id``'s ratings.

        Raises:
            NotFoundError: If the rating does not exist.
            RatingOwnershipError: If the rating belongs to another user.
        """
        _require_positive("user_id", user_id)
        rating = self.writer.get_rating(rating_id)
        if rating is None:
            raise NotFoundError("rating", rating_id)
        if rating.user_id != user_id:
            logger.warning(
                "Refused to delete another user's rating",
                extra={"user_id": user_id, "rating_id": rating_id, "owner_id": rating.user_id},
            )
            raise RatingOwnershipError(user_id, rating_id)

        deleted = self.writer.delete_rating(rating_id)
        self.cache.evict(user_id)
        return deleted
