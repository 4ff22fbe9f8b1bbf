"""Shared fixtures for CommerceRec tests."""

from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
import pytest

from commercerec.recommender.memory_store import InMemoryStore

# (id, name, category, average_rating)
CATALOG = [
    (1, "Laptop", "electronics", 4.7),
    (2, "Mouse", "electronics", 4.3),
    (3, "Cable", "electronics", 3.9),
    (4, "Jacket", "clothing", 4.9),
    (5, "Scarf", "clothing", 4.2),
    (6, "Novel", "books", 3.8),
]

RatingRow = Tuple[int, int, int]  # (user_id, item_id, score)


def products_frame(items: Iterable[Tuple[int, str, Optional[str], float]]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "id": item_id,
                "name": name,
                "category": category,
                "price": 10.0 * item_id,
                "average_rating": average,
                "rating_count": 1 if average else 0,
            }
            for item_id, name, category, average in items
        ]
    )


def ratings_frame(ratings: Sequence[RatingRow]) -> Optional[pd.DataFrame]:
    if not ratings:
        return None
    return pd.DataFrame(
        [
            {"rating_id": idx, "user_id": user_id, "item_id": item_id, "score": score}
            for idx, (user_id, item_id, score) in enumerate(ratings, start=1)
        ]
    )


class FlakyStore(InMemoryStore):
    """In-memory store that counts calls, raises on demand and runs one-shot hooks."""

    def __init__(self, *args, failures: Optional[Dict[str, Exception]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.failures = failures or {}
        self.calls: Counter = Counter()
        self.hooks: Dict[str, Callable[[], None]] = {}

    def _touch(self, name: str) -> None:
        self.calls[name] += 1
        hook = self.hooks.pop(name, None)
        if hook is not None:
            hook()
        if name in self.failures:
            raise self.failures[name]

    def rated_item_ids(self, user_id):
        self._touch("rated_item_ids")
        return super().rated_item_ids(user_id)

    def ratings_of(self, user_id):
        self._touch("ratings_of")
        return super().ratings_of(user_id)

    def similar_users(self, user_id, item_ids):
        self._touch("similar_users")
        return super().similar_users(user_id, item_ids)

    def items_by_ids(self, item_ids):
        self._touch("items_by_ids")
        return super().items_by_ids(item_ids)

    def items_rated_at_least(self, threshold):
        self._touch("items_rated_at_least")
        return super().items_rated_at_least(threshold)

    def items_by_category(self, category):
        self._touch("items_by_category")
        return super().items_by_category(category)


@pytest.fixture
def make_store():
    """Factory building an InMemoryStore from item tuples and rating triples."""

    def _make(
        items: Iterable[Tuple[int, str, Optional[str], float]] = CATALOG,
        ratings: Sequence[RatingRow] = (),
        failures: Optional[Dict[str, Exception]] = None,
    ) -> FlakyStore:
        return FlakyStore(products_frame(items), ratings_frame(list(ratings)), failures=failures)

    return _make


@pytest.fixture
def catalog() -> List[Tuple[int, str, Optional[str], float]]:
    return list(CATALOG)
