"""Tests for rating writes and their effect on cached recommendations."""

import pytest

from commercerec.exceptions import InvalidArgumentError, NotFoundError, RatingOwnershipError
from commercerec.recommender.engine import RecommendationEngine, RecommendationSource
from commercerec.recommender.ratings import RatingService


@pytest.fixture
def wired(make_store):
    store = make_store(ratings=[(1, 1, 5), (2, 1, 4), (2, 4, 5), (2, 5, 3)])
    engine = RecommendationEngine(store, store)
    service = RatingService(writer=store, cache=engine.cache)
    return store, engine, service


def test_rate_product_creates_then_updates(wired):
    """Test that rating the same item twice updates the one rating."""
    store, _, service = wired

    created = service.rate_product(3, 2, 4, review="Solid")
    updated = service.rate_product(3, 2, 1)

    assert updated.rating_id == created.rating_id
    assert updated.score == 1
    assert updated.review is None
    assert len(store.ratings_of(3)) == 1


def test_rating_evicts_users_cached_recommendations(wired):
    """Test that a new rating makes the next read recompute the user's list."""
    _, engine, service = wired
    first = engine.recommend(1, 5)
    assert [item.id for item in first] == [4, 5]
    assert engine.recommend_with_source(1, 5)[1] == RecommendationSource.CACHE

    service.rate_product(1, 4, 2)

    items, source = engine.recommend_with_source(1, 5)
    assert source == RecommendationSource.COLLABORATIVE
    assert [item.id for item in items] == [5]


def test_rating_during_recommendation_is_not_hidden_by_cache(wired):
    """Test that a list computed before a concurrent rating is never cached."""
    store, engine, service = wired
    store.hooks["ratings_of"] = lambda: service.rate_product(1, 4, 2)

    first, _ = engine.recommend_with_source(1, 5)
    second, source = engine.recommend_with_source(1, 5)

    assert [item.id for item in first] == [4, 5]
    assert source == RecommendationSource.COLLABORATIVE
    assert [item.id for item in second] == [5]
    assert store.rated_item_ids(1) == {1, 4}


def test_rating_leaves_other_users_cache_alone(wired):
    """Test that one user's rating does not evict another user's entries."""
    _, engine, service = wired
    engine.recommend(1, 5)

    service.rate_product(3, 2, 4)

    assert engine.recommend_with_source(1, 5)[1] == RecommendationSource.CACHE


def test_delete_rating_evicts_cache(wired):
    """Test that deleting a rating drops the owner's cached recommendations."""
    store, engine, service = wired
    engine.recommend(1, 5)
    rating = store.ratings_of(1)[0]

    service.delete_rating(1, rating.rating_id)

    assert store.get_rating(rating.rating_id) is None
    items, source = engine.recommend_with_source(1, 5)
    assert source == RecommendationSource.POPULAR
    assert items == engine.popular_products(5)


def test_deleted_rating_id_is_not_reused(wired):
    """Test that a deleted rating id keeps answering not found for its owner."""
    store, _, service = wired
    last = store.ratings_of(2)[-1]
    service.delete_rating(2, last.rating_id)

    created = service.rate_product(3, 5, 4)

    assert created.rating_id > last.rating_id
    with pytest.raises(NotFoundError):
        service.delete_rating(2, last.rating_id)


@pytest.mark.parametrize("score", [0, 6, -1, True])
def test_score_out_of_range_is_rejected(wired, score):
    """Test that scores outside 1-5, and booleans, are refused."""
    _, _, service = wired

    with pytest.raises(InvalidArgumentError):
        service.rate_product(1, 2, score)


@pytest.mark.parametrize("user_id, item_id", [(0, 1), (1, 0), (-2, 3)])
def test_non_positive_ids_are_rejected(wired, user_id, item_id):
    """Test that zero and negative ids are refused."""
    _, _, service = wired

    with pytest.raises(InvalidArgumentError):
        service.rate_product(user_id, item_id, 3)


def test_rating_unknown_item_raises_not_found(wired):
    """Test that rating an item missing from the catalog raises NotFoundError."""
    _, _, service = wired

    with pytest.raises(NotFoundError):
        service.rate_product(1, 404, 3)


def test_delete_unknown_rating_raises_not_found(wired):
    """Test that deleting a rating id that never existed raises NotFoundError."""
    _, _, service = wired

    with pytest.raises(NotFoundError):
        service.delete_rating(1, 999)


def test_delete_someone_elses_rating_is_refused(wired):
    """Test that a user cannot delete another user's rating."""
    store, _, service = wired
    rating = store.ratings_of(2)[0]

    with pytest.raises(RatingOwnershipError):
        service.delete_rating(1, rating.rating_id)

    assert store.get_rating(rating.rating_id) is not None
