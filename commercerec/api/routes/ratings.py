"""Rating endpoints for the CommerceRec API.

Writing a rating recomputes the item's average and count and drops the
user's cached recommendations.
"""

from fastapi import APIRouter, Depends, Response, status

from commercerec.api.dependencies import ServiceState, get_state
from commercerec.api.schemas import RatingRequest, RatingResponse

router = APIRouter(
    prefix="/ratings",
    tags=["ratings"],
)


@router.put("", response_model=RatingResponse)
def rate_product(
    request: RatingRequest,
    state: ServiceState = Depends(get_state),
) -> RatingResponse:
    """Create the user's rating of an item, or replace the existing one."""
    rating = state.ratings.rate_product(
        user_id=request.user_id,
        item_id=request.item_id,
        score=request.score,
        review=request.review,
    )
    return RatingResponse(**rating.model_dump())


@router.delete("/{rating_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rating(
    rating_id: int,
    user_id: int,
    state: ServiceState = Depends(get_state),
) -> Response:
    """Delete one of the user's ratings."""
    state.ratings.delete_rating(user_id=user_id, rating_id=rating_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
