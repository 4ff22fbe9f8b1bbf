"""Candidate scoring for collaborative recommendations.

Each neighbour's ratings are folded into a per-item score with a running
pairwise average: the first rating seen for an item becomes its score, and
every later one moves the score halfway towards it. The result therefore
depends on the order neighbours are scanned in (strongest first), and later
neighbours weigh more than a true mean would give them.
"""

import logging
from typing import Iterable, List, Optional, Set

from commercerec.recommender.models import CandidateScores, Rating, SimilarUser
from commercerec.recommender.store import RatingStore

# Configure module logger
logger = logging.getLogger(__name__)


def fold_score(previous: Optional[float], score: float) -> float:
    """Fold one rating into an item's running score."""
    if previous is None:
        return float(score)
    return (previous + score) / 2


def aggregate_ratings(
    ratings: Iterable[Rating],
    excluded_item_ids: Set[int],
    scores: CandidateScores,
) -> int:
    """Fold one neighbour's ratings into ``scores`` in place.

    Items in ``excluded_item_ids`` (the target user's own ratings) are skipped.

    Returns:
        Number of ratings folded in.
    """
    folded = 0
    for rating in ratings:
        if rating.item_id in excluded_item_ids:
            continue
        scores[rating.item_id] = fold_score(scores.get(rating.item_id), rating.score)
        folded += 1
    return folded


def score_candidates(
    store: RatingStore,
    neighbours: List[SimilarUser],
    excluded_item_ids: Set[int],
) -> CandidateScores:
    """Scan every neighbour's ratings, in the given order, into candidate scores."""
    scores: CandidateScores = {}
    for position, neighbour in enumerate(neighbours, start=1):
        ratings = store.ratings_of(neighbour.user_id)
        folded = aggregate_ratings(ratings, excluded_item_ids, scores)
        logger.debug(
            f"Neighbour {position}/{len(neighbours)} (user {neighbour.user_id}): "
            f"{len(ratings)} ratings, {folded} folded into candidates"
        )

    logger.info(
        "Candidate scores computed",
        extra={"num_neighbours": len(neighbours), "num_candidates": len(scores)},
    )
    return scores


def rank_candidates(scores: CandidateScores, limit: int) -> List[int]:
    """Return the ``limit`` best candidate item ids.

    Higher scores come first; equal scores are ordered by item id.
    """
    ranked = sorted(scores.items(), key=lambda entry: (-entry[1], entry[0]))
    return [item_id for item_id, _ in ranked[:limit]]
