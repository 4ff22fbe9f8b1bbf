"""Tests for the in-memory rating store, catalog and CSV loading."""

import threading

import pandas as pd
import pytest

from commercerec.exceptions import NotFoundError, StorageUnavailableError
from commercerec.recommender.memory_store import InMemoryStore, load_store_from_csv
from commercerec.recommender.models import SimilarUser
from commercerec.recommender.utils import build_interaction_matrix, load_ratings_csv


@pytest.fixture
def store(make_store):
    return make_store(
        ratings=[
            (1, 1, 5), (1, 2, 4), (1, 3, 3),
            (2, 1, 5), (2, 4, 4), (2, 5, 5),
            (3, 1, 2), (3, 2, 2), (3, 6, 1),
            (4, 2, 4), (4, 3, 5),
            (5, 6, 3),
        ]
    )


def test_rated_item_ids(store):
    """Test the rated item ids of known and unknown users."""
    assert store.rated_item_ids(1) == {1, 2, 3}
    assert store.rated_item_ids(999) == set()


def test_ratings_of_is_ordered_by_rating_id(store):
    """Test that a user's ratings come back oldest first."""
    ratings = store.ratings_of(2)

    assert [r.item_id for r in ratings] == [1, 4, 5]
    assert [r.score for r in ratings] == [5, 4, 5]
    assert all(r.user_id == 2 for r in ratings)


def test_similar_users_ordered_by_shared_count_then_user_id(store):
    """Test similar-user ordering by shared count, then user id."""
    similar = store.similar_users(1, store.rated_item_ids(1))

    assert similar == [
        SimilarUser(user_id=3, shared_count=2),
        SimilarUser(user_id=4, shared_count=2),
        SimilarUser(user_id=2, shared_count=1),
    ]


def test_similar_users_excludes_target_and_non_overlapping_users(store):
    """Test that the target and unrelated users are left out."""
    similar_ids = [s.user_id for s in store.similar_users(1, {1, 2, 3})]

    assert 1 not in similar_ids
    assert 5 not in similar_ids


def test_similar_users_for_unknown_items(store):
    """Test that unknown items give no similar users."""
    assert store.similar_users(1, {404}) == []


def test_upsert_creates_rating_and_updates_aggregates(store):
    """Test that a new rating updates the item aggregates."""
    rating = store.upsert_rating(6, 4, 2, review="Too small")

    assert rating.user_id == 6
    assert rating.item_id == 4
    assert rating.score == 2
    assert rating.review == "Too small"
    assert rating.created_at is not None

    item = store.get_item(4)
    assert item.rating_count == 2
    assert item.average_rating == pytest.approx(3.0)


def test_upsert_updates_existing_rating_instead_of_duplicating(store):
    """Test that rating an item again updates in place."""
    original = store.ratings_of(1)[0]

    updated = store.upsert_rating(1, 1, 2, review="Changed my mind")

    assert updated.rating_id == original.rating_id
    assert updated.score == 2
    assert updated.review == "Changed my mind"
    assert len(store.ratings_for_item(1)) == 3
    assert store.get_item(1).average_rating == pytest.approx((2 + 5 + 2) / 3)


def test_upsert_unknown_item_raises(store):
    """Test that rating an unknown item raises NotFoundError."""
    with pytest.raises(NotFoundError):
        store.upsert_rating(1, 999, 4)


def test_upsert_invalidates_similarity(store):
    """Test that new ratings show up in similar-user queries."""
    assert 6 not in [s.user_id for s in store.similar_users(1, {1, 2, 3})]

    store.upsert_rating(6, 3, 4)

    assert SimilarUser(user_id=6, shared_count=1) in store.similar_users(1, {1, 2, 3})


def test_delete_rating_recomputes_aggregates(store):
    """Test that deleting a rating recomputes item aggregates."""
    rating = store.ratings_of(5)[0]

    deleted = store.delete_rating(rating.rating_id)

    assert deleted == rating
    assert store.get_rating(rating.rating_id) is None
    item = store.get_item(6)
    assert item.rating_count == 1
    assert item.average_rating == pytest.approx(1.0)


def test_delete_last_rating_resets_aggregates(make_store):
    """Test that an item without ratings resets to zero."""
    store = make_store(ratings=[(1, 3, 4)])
    rating = store.ratings_of(1)[0]

    store.delete_rating(rating.rating_id)

    item = store.get_item(3)
    assert item.average_rating == 0.0
    assert item.rating_count == 0


def test_delete_unknown_rating_raises(store):
    """Test that deleting an unknown rating raises NotFoundError."""
    with pytest.raises(NotFoundError):
        store.delete_rating(12345)


def test_deleted_highest_rating_id_is_not_reused(store):
    """Test that new ratings never take over the id of a deleted one."""
    highest = store.ratings_of(5)[0]
    store.delete_rating(highest.rating_id)

    created = store.upsert_rating(2, 3, 4)

    assert created.rating_id == highest.rating_id + 1
    assert store.get_rating(highest.rating_id) is None


def test_ratings_for_item_is_ordered_by_rating_id(store):
    """Test that an item's ratings come back oldest first."""
    ratings = store.ratings_for_item(2)

    assert [r.user_id for r in ratings] == [1, 3, 4]
    assert [r.score for r in ratings] == [4, 2, 4]


def test_first_rating_in_empty_store(make_store):
    """Test the first rating written to an empty store."""
    store = make_store()

    rating = store.upsert_rating(1, 2, 5)

    assert rating.rating_id == 1
    assert store.rated_item_ids(1) == {2}
    assert store.get_item(2).rating_count == 1


def test_concurrent_writes_keep_aggregates_consistent(make_store):
    """Test that concurrent writes leave aggregates consistent."""
    store = make_store()

    def rate(user_id):
        store.upsert_rating(user_id, 1, user_id % 5 + 1)

    threads = [threading.Thread(target=rate, args=(user_id,)) for user_id in range(1, 41)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    scores = [r.score for r in store.ratings_for_item(1)]
    item = store.get_item(1)
    assert item.rating_count == len(scores) == 40
    assert item.average_rating == pytest.approx(sum(scores) / len(scores))


def test_items_by_ids_skips_missing(store):
    """Test that unknown ids are skipped."""
    assert sorted(item.id for item in store.items_by_ids([1, 4, 404])) == [1, 4]


def test_items_rated_at_least(store):
    """Test threshold filtering and best-first order."""
    items = store.items_rated_at_least(4.0)

    assert [item.id for item in items] == [4, 1, 2, 5]


def test_items_by_category(store):
    """Test filtering the catalog by category."""
    assert sorted(item.id for item in store.items_by_category("clothing")) == [4, 5]


def test_aggregates_derived_when_products_lack_them():
    """Test that missing aggregates are derived from ratings."""
    products = pd.DataFrame([{"id": 1, "name": "A"}, {"id": 2, "name": "B"}])
    ratings = pd.DataFrame(
        [
            {"rating_id": 1, "user_id": 1, "item_id": 1, "score": 4},
            {"rating_id": 2, "user_id": 2, "item_id": 1, "score": 5},
        ]
    )

    store = InMemoryStore(products, ratings)

    assert store.get_item(1).average_rating == pytest.approx(4.5)
    assert store.get_item(1).rating_count == 2
    assert store.get_item(2).average_rating == 0.0
    assert store.num_users == 2
    assert store.num_items == 2


def test_build_interaction_matrix_is_binary():
    """Test that the interaction matrix marks who rated what."""
    ratings = pd.DataFrame(
        [
            {"user_id": 10, "item_id": 7, "score": 5},
            {"user_id": 10, "item_id": 8, "score": 1},
            {"user_id": 20, "item_id": 8, "score": 3},
        ]
    )

    matrix, user_map, item_map = build_interaction_matrix(ratings)

    assert matrix.shape == (2, 2)
    assert user_map == {10: 0, 20: 1}
    assert item_map == {7: 0, 8: 1}
    assert matrix.toarray().tolist() == [[1.0, 1.0], [0.0, 1.0]]


@pytest.fixture
def csv_files(tmp_path):
    products_csv = tmp_path / "products.csv"
    ratings_csv = tmp_path / "ratings.csv"
    pd.DataFrame(
        [
            {"id": 1, "name": "Laptop", "category": "electronics", "price": 999.0},
            {"id": 2, "name": "Mouse", "category": "electronics", "price": 19.5},
            {"id": 3, "name": "Jacket", "category": "clothing", "price": 80.0},
        ]
    ).to_csv(products_csv, index=False)
    pd.DataFrame(
        [
            {"user_id": 1, "item_id": 1, "score": 3},
            {"user_id": 2, "item_id": 1, "score": 5},
            {"user_id": 1, "item_id": 1, "score": 4},
            {"user_id": 2, "item_id": 3, "score": 5},
        ]
    ).to_csv(ratings_csv, index=False)
    return ratings_csv, products_csv


def test_load_store_from_csv(csv_files):
    """Test building a store from CSV files."""
    ratings_csv, products_csv = csv_files

    store = load_store_from_csv(str(ratings_csv), str(products_csv))

    # The repeated (1, 1) row replaces the earlier one
    assert [r.score for r in store.ratings_of(1)] == [4]
    assert store.get_item(1).average_rating == pytest.approx(4.5)
    assert store.get_item(1).rating_count == 2
    assert store.get_item(2).rating_count == 0
    assert [item.id for item in store.items_rated_at_least(4.0)] == [3, 1]


def test_load_store_missing_file_is_storage_unavailable(tmp_path, csv_files):
    """Test that a missing CSV raises StorageUnavailableError."""
    _, products_csv = csv_files

    with pytest.raises(StorageUnavailableError):
        load_store_from_csv(str(tmp_path / "missing.csv"), str(products_csv))


def test_load_ratings_rejects_out_of_range_scores(tmp_path):
    """Test that scores outside 1-5 fail the load."""
    ratings_csv = tmp_path / "ratings.csv"
    pd.DataFrame([{"user_id": 1, "item_id": 1, "score": 9}]).to_csv(ratings_csv, index=False)

    with pytest.raises(ValueError, match="outside 1-5"):
        load_ratings_csv(str(ratings_csv))
