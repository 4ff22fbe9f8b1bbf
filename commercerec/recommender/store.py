"""Storage contracts consumed by the recommender.

The engine only ever reads through ``RatingStore`` and ``Catalog``. Rating
mutations go through ``RatingWriter``, which is used by the rating service
and never by the engine itself.

Implementations raise ``StorageUnavailableError`` when the backing store
cannot be reached; every other method is free of side effects unless its
name says otherwise.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set

from commercerec.recommender.models import Item, Rating, SimilarUser


class RatingStore(ABC):
    """Read-only view over who rated what, and how much."""

    @abstractmethod
    def rated_item_ids(self, user_id: int) -> Set[int]:
        """Return all item ids the user has rated. Empty for new users."""

    @abstractmethod
    def ratings_of(self, user_id: int) -> List[Rating]:
        """Return all ratings by one user, ordered by rating id."""

    @abstractmethod
    def similar_users(self, user_id: int, item_ids: Iterable[int]) -> List[SimilarUser]:
        """Return other users who rated at least one of ``item_ids``.

        Ordered by shared item count descending, then user id ascending.
        """


class RatingWriter(ABC):
    """Write side of the rating store."""

    @abstractmethod
    def get_rating(self, rating_id: int) -> Optional[Rating]:
        """Return a rating by id, or None."""

    @abstractmethod
    def ratings_for_item(self, item_id: int) -> List[Rating]:
        """Return all ratings of one item, ordered by rating id."""

    @abstractmethod
    def upsert_rating(
        self,
        user_id: int,
        item_id: int,
        score: int,
        review: Optional[str] = None,
    ) -> Rating:
        """Create the (user, item) rating, or update it if it already exists.

        The item's average rating and rating count are recomputed in the
        same critical section.
        """

    @abstractmethod
    def delete_rating(self, rating_id: int) -> Rating:
        """Delete a rating and recompute its item's aggregates."""


class Catalog(ABC):
    """Read access to catalog items."""

    @abstractmethod
    def get_item(self, item_id: int) -> Optional[Item]:
        """Return one item, or None."""

    @abstractmethod
    def items_by_ids(self, item_ids: Iterable[int]) -> List[Item]:
        """Return the items that exist among ``item_ids``, in no particular order."""

    @abstractmethod
    def items_by_category(self, category: str) -> List[Item]:
        """Return all items in a category."""

    @abstractmethod
    def items_rated_at_least(self, threshold: float) -> List[Item]:
        """Return items with average rating >= threshold, best rated first."""
