"""Recommendation endpoints for the CommerceRec API.

This module provides API endpoints for personalised recommendations,
category recommendations and the popular-items list.
"""

import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends

from commercerec.api.dependencies import ServiceState, get_state
from commercerec.api.metrics import metrics_service
from commercerec.api.schemas import ItemSummary, RecommendationResponse

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)


@router.get("/popular", response_model=List[ItemSummary])
def get_popular_products(
    limit: Optional[int] = None,
    state: ServiceState = Depends(get_state),
) -> List[ItemSummary]:
    """Get the best rated items overall.

    Only items averaging at least 4.0 are listed.

    Example:
        GET /recommend/popular?limit=10
    """
    items = state.engine.popular_products(limit)
    return [ItemSummary.from_item(item) for item in items]


@router.get("/category/{category}", response_model=List[ItemSummary])
def get_category_recommendations(
    category: str,
    limit: Optional[int] = None,
    state: ServiceState = Depends(get_state),
) -> List[ItemSummary]:
    """Get the best rated items of one category.

    A blank category yields an empty list.

    Example:
        GET /recommend/category/electronics?limit=2
    """
    items = state.engine.recommend_by_category(category, limit)
    return [ItemSummary.from_item(item) for item in items]


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: int,
    top_n: Optional[int] = None,
    state: ServiceState = Depends(get_state),
) -> RecommendationResponse:
    """Get product recommendations for a user.

    Items are ranked by what the user's most similar raters scored them.
    Users without a usable rating history get popular items instead.

    Args:
        user_id: Positive user ID; 400 otherwise.
        top_n: Number of recommendations, clamped into the configured range.

    Example:
        GET /recommend/42?top_n=5
        Returns top 5 product recommendations for user 42.
    """
    start_time = time.time()
    items, source = state.engine.recommend_with_source(user_id, top_n)
    latency_ms = (time.time() - start_time) * 1000
    metrics_service.record_recommendation(source.value, latency_ms)

    return RecommendationResponse(
        user_id=user_id,
        recommendations=[ItemSummary.from_item(item) for item in items],
        source=source.value,
    )
