"""Request and response models for the CommerceRec API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from commercerec.recommender.models import Item


class ItemSummary(BaseModel):
    """Catalog item as returned to API clients."""

    id: int
    name: str
    price: float
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    view_count: int = 0
    average_rating: float = Field(..., description="Mean score of all ratings")
    rating_count: int = Field(..., description="Number of ratings")

    @classmethod
    def from_item(cls, item: Item) -> "ItemSummary":
        return cls(
            id=item.id,
            name=item.name,
            price=item.price,
            description=item.description,
            image_url=item.image_url,
            category=item.category,
            view_count=item.view_count,
            average_rating=item.average_rating,
            rating_count=item.rating_count,
        )


class RecommendationResponse(BaseModel):
    """Response model for personalised recommendation requests.

    Attributes:
        user_id: The user ID for which recommendations were generated.
        recommendations: Recommended items, best first.
        source: Stage that produced the list.
    """

    user_id: int = Field(..., description="User ID for recommendations")
    recommendations: List[ItemSummary] = Field(
        ..., description="Recommended items, best first"
    )
    source: str = Field(
        ..., description="collaborative, popular, cache, degraded or none"
    )


class RatingRequest(BaseModel):
    """Body of a create-or-update rating request."""

    user_id: int
    item_id: int
    score: int = Field(..., description="Integer score from 1 to 5")
    review: Optional[str] = None


class RatingResponse(BaseModel):
    """A stored rating."""

    rating_id: int
    user_id: int
    item_id: int
    score: int
    review: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StatusResponse(BaseModel):
    """Store status."""

    store_loaded: bool
    timestamp_last_loaded: Optional[str] = None
    num_users: int = 0
    num_items: int = 0
