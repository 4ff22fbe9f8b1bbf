"""In-memory rating store and catalog backed by pandas DataFrames.

``InMemoryStore`` implements ``RatingStore``, ``RatingWriter`` and ``Catalog``
over two DataFrames. Every read and write runs under one re-entrant lock, so
concurrent rating writes on the same item always leave its average rating
and rating count consistent with the ratings table.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

import numpy as np
import pandas as pd

from commercerec.exceptions import NotFoundError, StorageUnavailableError
from commercerec.recommender.models import Item, Rating, SimilarUser
from commercerec.recommender.store import Catalog, RatingStore, RatingWriter
from commercerec.recommender.utils import (
    RATING_COLUMNS,
    build_interaction_matrix,
    empty_ratings_frame,
    load_products_csv,
    load_ratings_csv,
)

# Configure module logger
logger = logging.getLogger(__name__)


def _clean(value: Any) -> Any:
    """Turn pandas/numpy scalars into plain Python values for pydantic."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    return value


def _record(row: Dict[str, Any]) -> Dict[str, Any]:
    return {key: _clean(value) for key, value in row.items()}


class InMemoryStore(RatingStore, RatingWriter, Catalog):
    """Rating store and catalog held in process memory.

    Args:
        products: One row per item. ``id`` and ``name`` are required.
            When ``average_rating`` or ``rating_count`` is missing, both are
            derived from ``ratings``.
        ratings: One row per rating with the columns in ``RATING_COLUMNS``.
    """

    def __init__(
        self,
        products: pd.DataFrame,
        ratings: Optional[pd.DataFrame] = None,
    ):
        self._lock = threading.RLock()
        self._products = products.copy().reset_index(drop=True)
        if ratings is None or ratings.empty:
            self._ratings = empty_ratings_frame()
        else:
            self._ratings = ratings.copy().reset_index(drop=True)
            for column in RATING_COLUMNS:
                if column not in self._ratings.columns:
                    self._ratings[column] = None
            self._ratings = self._ratings[RATING_COLUMNS]
        self._matrix_cache = None
        self.loaded_at = datetime.now()
        # Ids of deleted ratings are never handed out again
        self._next_rating_id = 1
        if len(self._ratings):
            self._next_rating_id = int(self._ratings["rating_id"].max()) + 1

        self._ratings["review"] = self._ratings["review"].astype(object)

        if {"average_rating", "rating_count"}.issubset(self._products.columns):
            self._products["average_rating"] = self._products["average_rating"].fillna(0.0).astype(float)
            self._products["rating_count"] = self._products["rating_count"].fillna(0).astype("int64")
        else:
            self.recompute_all_aggregates()

        logger.info(
            "In-memory store ready",
            extra={"num_items": self.num_items, "num_ratings": len(self._ratings)},
        )

    @property
    def num_items(self) -> int:
        return len(self._products)

    @property
    def num_users(self) -> int:
        with self._lock:
            return int(self._ratings["user_id"].nunique())

    def _to_items(self, frame: pd.DataFrame) -> List[Item]:
        return [Item(**_record(row)) for row in frame.to_dict("records")]

    def _to_ratings(self, frame: pd.DataFrame) -> List[Rating]:
        return [Rating(**_record(row)) for row in frame.to_dict("records")]

    # ----- RatingStore -------------------------------------------------

    def rated_item_ids(self, user_id: int) -> Set[int]:
        with self._lock:
            items = self._ratings.loc[self._ratings["user_id"] == user_id, "item_id"]
            return {int(item_id) for item_id in items}

    def ratings_of(self, user_id: int) -> List[Rating]:
        with self._lock:
            frame = self._ratings[self._ratings["user_id"] == user_id]
            return self._to_ratings(frame.sort_values("rating_id"))

    def _interaction_matrix(self):
        if self._matrix_cache is None:
            self._matrix_cache = build_interaction_matrix(self._ratings)
        return self._matrix_cache

    def similar_users(self, user_id: int, item_ids: Iterable[int]) -> List[SimilarUser]:
        item_ids = set(item_ids)
        with self._lock:
            matrix, user_id_to_idx, item_id_to_idx = self._interaction_matrix()

        columns = [item_id_to_idx[item_id] for item_id in item_ids if item_id in item_id_to_idx]
        if not columns:
            return []

        target = np.zeros(matrix.shape[1], dtype=np.float32)
        target[columns] = 1.0
        shared_counts = matrix @ target

        idx_to_user_id = {idx: uid for uid, idx in user_id_to_idx.items()}
        similar = [
            SimilarUser(user_id=idx_to_user_id[int(idx)], shared_count=int(round(shared_counts[idx])))
            for idx in np.nonzero(shared_counts)[0]
            if idx_to_user_id[int(idx)] != user_id
        ]
        similar.sort(key=lambda s: (-s.shared_count, s.user_id))
        return similar

    # ----- RatingWriter ------------------------------------------------

    def get_rating(self, rating_id: int) -> Optional[Rating]:
        with self._lock:
            frame = self._ratings[self._ratings["rating_id"] == rating_id]
            ratings = self._to_ratings(frame)
            return ratings[0] if ratings else None

    def ratings_for_item(self, item_id: int) -> List[Rating]:
        with self._lock:
            frame = self._ratings[self._ratings["item_id"] == item_id]
            return self._to_ratings(frame.sort_values("rating_id"))

    def upsert_rating(
        self,
        user_id: int,
        item_id: int,
        score: int,
        review: Optional[str] = None,
    ) -> Rating:
        with self._lock:
            if not (self._products["id"] == item_id).any():
                raise NotFoundError("item", item_id)

            now = pd.Timestamp(datetime.now())
            mask = (self._ratings["user_id"] == user_id) & (self._ratings["item_id"] == item_id)

            if mask.any():
                self._ratings.loc[mask, "score"] = score
                self._ratings.loc[mask, "review"] = review
                self._ratings.loc[mask, "updated_at"] = now
                rating_id = int(self._ratings.loc[mask, "rating_id"].iloc[0])
                logger.info(
                    "Rating updated",
                    extra={"rating_id": rating_id, "user_id": user_id, "item_id": item_id},
                )
            else:
                rating_id = self._next_rating_id
                self._next_rating_id += 1
                row = pd.DataFrame(
                    [
                        {
                            "rating_id": rating_id,
                            "user_id": user_id,
                            "item_id": item_id,
                            "score": score,
                            "review": review,
                            "created_at": now,
                            "updated_at": now,
                        }
                    ]
                )
                if self._ratings.empty:
                    self._ratings = row[RATING_COLUMNS]
                else:
                    self._ratings = pd.concat([self._ratings, row[RATING_COLUMNS]], ignore_index=True)
                logger.info(
                    "Rating created",
                    extra={"rating_id": rating_id, "user_id": user_id, "item_id": item_id},
                )

            self._matrix_cache = None
            self._recompute_item(item_id)
            return self.get_rating(rating_id)

    def delete_rating(self, rating_id: int) -> Rating:
        with self._lock:
            rating = self.get_rating(rating_id)
            if rating is None:
                raise NotFoundError("rating", rating_id)

            self._ratings = self._ratings[self._ratings["rating_id"] != rating_id].reset_index(drop=True)
            self._matrix_cache = None
            self._recompute_item(rating.item_id)
            logger.info(
                "Rating deleted",
                extra={"rating_id": rating_id, "user_id": rating.user_id, "item_id": rating.item_id},
            )
            return rating

    def _recompute_item(self, item_id: int) -> None:
        scores = [rating.score for rating in self.ratings_for_item(item_id)]
        mask = self._products["id"] == item_id
        if not scores:
            self._products.loc[mask, "average_rating"] = 0.0
            self._products.loc[mask, "rating_count"] = 0
        else:
            self._products.loc[mask, "average_rating"] = sum(scores) / len(scores)
            self._products.loc[mask, "rating_count"] = len(scores)

    def recompute_all_aggregates(self) -> None:
        """Derive every item's average rating and rating count from the ratings."""
        with self._lock:
            stats = self._ratings.groupby("item_id")["score"].agg(["mean", "count"])
            self._products["average_rating"] = (
                self._products["id"].map(stats["mean"]).fillna(0.0).astype(float)
            )
            self._products["rating_count"] = (
                self._products["id"].map(stats["count"]).fillna(0).astype("int64")
            )

    # ----- Catalog -----------------------------------------------------

    def get_item(self, item_id: int) -> Optional[Item]:
        with self._lock:
            items = self._to_items(self._products[self._products["id"] == item_id])
            return items[0] if items else None

    def items_by_ids(self, item_ids: Iterable[int]) -> List[Item]:
        item_ids = list(item_ids)
        with self._lock:
            return self._to_items(self._products[self._products["id"].isin(item_ids)])

    def items_by_category(self, category: str) -> List[Item]:
        with self._lock:
            return self._to_items(self._products[self._products["category"] == category])

    def items_rated_at_least(self, threshold: float) -> List[Item]:
        with self._lock:
            frame = self._products[self._products["average_rating"] >= threshold]
            frame = frame.sort_values(["average_rating", "id"], ascending=[False, True])
            return self._to_items(frame)


def load_store_from_csv(ratings_csv: str, products_csv: str) -> InMemoryStore:
    """Build an ``InMemoryStore`` from a ratings CSV and a products CSV.

    Raises:
        StorageUnavailableError: If either file is missing or unreadable.
    """
    try:
        products = load_products_csv(products_csv)
        ratings = load_ratings_csv(ratings_csv)
    except (OSError, ValueError, pd.errors.ParserError) as e:
        logger.error(
            "Failed to load store",
            extra={
                "ratings_csv": ratings_csv,
                "products_csv": products_csv,
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        raise StorageUnavailableError(source="csv", error=e) from e

    return InMemoryStore(products=products, ratings=ratings)
