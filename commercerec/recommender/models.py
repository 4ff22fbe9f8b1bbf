"""Domain records used by the recommender.

Ratings and items are pydantic models so that score bounds and field types
are checked wherever a record is built, whether from a CSV row or an API
payload.
"""

from datetime import datetime
from typing import Dict, NamedTuple, Optional

from pydantic import BaseModel, Field

MIN_SCORE = 1
MAX_SCORE = 5


class Rating(BaseModel):
    """One user's score for one item. At most one exists per (user, item)."""

    rating_id: int
    user_id: int
    item_id: int
    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    review: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Item(BaseModel):
    """A catalog product with its derived rating aggregates."""

    id: int
    name: str
    category: Optional[str] = None
    price: float = 0.0
    description: Optional[str] = None
    image_url: Optional[str] = None
    view_count: int = 0
    average_rating: float = 0.0
    rating_count: int = 0
    created_at: Optional[datetime] = None


class SimilarUser(NamedTuple):
    """A user who co-rated at least one item with the target user."""

    user_id: int
    shared_count: int


# item_id -> aggregated predicted score, alive for one computation only
CandidateScores = Dict[int, float]
