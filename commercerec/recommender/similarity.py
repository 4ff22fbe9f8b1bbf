"""Similar-user search.

A user is similar to the target when they rated at least one item the target
rated; similarity strength is the number of such shared items.
"""

import logging
import time
from typing import Iterable, List

from commercerec.recommender.models import SimilarUser
from commercerec.recommender.store import RatingStore

# Configure module logger
logger = logging.getLogger(__name__)

# Number of neighbours whose ratings are scanned per request
SIMILAR_USER_LIMIT = 5


def find_similar_users(
    store: RatingStore,
    user_id: int,
    rated_item_ids: Iterable[int],
    k: int = SIMILAR_USER_LIMIT,
) -> List[SimilarUser]:
    """Return the ``k`` users sharing the most rated items with ``user_id``.

    The store already orders neighbours by shared count descending and user
    id ascending, so this keeps the head of that list. Fewer than ``k`` users
    are returned when fewer exist, and an empty list means no signal.
    """
    start_time = time.time()
    similar = store.similar_users(user_id, rated_item_ids)
    selected = similar[:k]

    logger.info(
        "Similar users found",
        extra={
            "user_id": user_id,
            "num_similar_users": len(similar),
            "num_selected": len(selected),
            "lookup_time_ms": round((time.time() - start_time) * 1000, 2),
        },
    )
    for neighbour in selected:
        logger.debug(
            f"Neighbour {neighbour.user_id} shares {neighbour.shared_count} items "
            f"with user {user_id}"
        )

    return selected
