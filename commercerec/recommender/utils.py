"""Utility functions for the recommendation system.

This module provides helper functions for loading rating and catalog data
from CSV files and for building the sparse user-item matrix that the
similar-user search runs on.
"""

import logging
from pathlib import Path
from typing import Dict, Tuple

import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix

# Configure module logger
logger = logging.getLogger(__name__)

RATING_COLUMNS = [
    "rating_id",
    "user_id",
    "item_id",
    "score",
    "review",
    "created_at",
    "updated_at",
]

PRODUCT_COLUMNS = [
    "id",
    "name",
    "category",
    "price",
    "description",
    "image_url",
    "view_count",
    "average_rating",
    "rating_count",
    "created_at",
]

# Columns a products CSV may omit, with the value they default to
PRODUCT_DEFAULTS = {
    "category": None,
    "price": 0.0,
    "description": None,
    "image_url": None,
    "view_count": 0,
    "created_at": pd.NaT,
}


def empty_ratings_frame() -> pd.DataFrame:
    """Return an empty ratings DataFrame with the expected dtypes."""
    return pd.DataFrame(
        {
            "rating_id": pd.Series(dtype="int64"),
            "user_id": pd.Series(dtype="int64"),
            "item_id": pd.Series(dtype="int64"),
            "score": pd.Series(dtype="int64"),
            "review": pd.Series(dtype="object"),
            "created_at": pd.Series(dtype="datetime64[ns]"),
            "updated_at": pd.Series(dtype="datetime64[ns]"),
        }
    )


def _read_csv(csv_path: str, required_columns: set) -> pd.DataFrame:
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading CSV from {csv_path}")
    df = pd.read_csv(csv_path)

    if not required_columns.issubset(df.columns):
        missing = required_columns - set(df.columns)
        raise ValueError(f"CSV {csv_path} missing required columns: {sorted(missing)}")

    return df


def load_ratings_csv(csv_path: str) -> pd.DataFrame:
    """Load ratings from a CSV file.

    The file needs ``user_id``, ``item_id`` and ``score`` columns; ``rating_id``,
    ``review``, ``created_at`` and ``updated_at`` are optional. Rows are kept
    one per (user, item) pair, the last one winning, since a re-rate replaces
    the earlier rating.

    Args:
        csv_path: Path to the ratings CSV.

    Returns:
        DataFrame with the columns in ``RATING_COLUMNS``.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If required columns are missing or a score is outside 1-5.
    """
    df = _read_csv(csv_path, {"user_id", "item_id", "score"})

    if df.empty:
        logger.info("Ratings CSV is empty")
        return empty_ratings_frame()

    df = df.drop_duplicates(subset=["user_id", "item_id"], keep="last")

    if "rating_id" not in df.columns:
        df["rating_id"] = np.arange(1, len(df) + 1)
    if "review" not in df.columns:
        df["review"] = None
    for column in ("created_at", "updated_at"):
        if column in df.columns:
            df[column] = pd.to_datetime(df[column], errors="coerce")
        else:
            df[column] = pd.NaT

    df = df.astype({"rating_id": "int64", "user_id": "int64", "item_id": "int64", "score": "int64"})

    out_of_range = df[(df["score"] < 1) | (df["score"] > 5)]
    if not out_of_range.empty:
        raise ValueError(
            f"{len(out_of_range)} ratings have a score outside 1-5 "
            f"(first rating_id={int(out_of_range['rating_id'].iloc[0])})"
        )

    df = df.sort_values("rating_id").reset_index(drop=True)
    logger.info(
        f"Loaded {len(df)} ratings from {df['user_id'].nunique()} users "
        f"on {df['item_id'].nunique()} items"
    )
    return df[RATING_COLUMNS]


def load_products_csv(csv_path: str) -> pd.DataFrame:
    """Load catalog items from a CSV file.

    Only ``id`` and ``name`` are required. ``average_rating`` and
    ``rating_count`` are left out of the result when the file does not
    provide them, so the caller can derive them from ratings.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If required columns are missing or ids repeat.
    """
    df = _read_csv(csv_path, {"id", "name"})

    if df["id"].duplicated().any():
        duplicates = sorted(df.loc[df["id"].duplicated(), "id"].unique().tolist())
        raise ValueError(f"Duplicate product ids in {csv_path}: {duplicates}")

    for column, default in PRODUCT_DEFAULTS.items():
        if column not in df.columns:
            df[column] = default
    df["created_at"] = pd.to_datetime(df["created_at"], errors="coerce")
    df["price"] = df["price"].fillna(0.0).astype(float)
    df["view_count"] = df["view_count"].fillna(0).astype("int64")
    df["id"] = df["id"].astype("int64")

    logger.info(f"Loaded {len(df)} products")
    columns = [column for column in PRODUCT_COLUMNS if column in df.columns]
    return df[columns].reset_index(drop=True)


def build_interaction_matrix(
    ratings: pd.DataFrame,
) -> Tuple[csr_matrix, Dict[int, int], Dict[int, int]]:
    """Build a binary sparse user-item matrix from ratings.

    Rows are users and columns are items, both in ascending id order; a cell
    is 1 when the user rated the item, whatever the score.

    Returns:
        A tuple containing:
            - Sparse CSR matrix of shape (n_users, n_items)
            - Dictionary mapping user_id to matrix row index
            - Dictionary mapping item_id to matrix column index
    """
    if ratings.empty:
        return csr_matrix((0, 0), dtype=np.float32), {}, {}

    unique_users = sorted(ratings["user_id"].unique().tolist())
    unique_items = sorted(ratings["item_id"].unique().tolist())

    user_id_to_idx = {int(user_id): idx for idx, user_id in enumerate(unique_users)}
    item_id_to_idx = {int(item_id): idx for idx, item_id in enumerate(unique_items)}

    row_indices = ratings["user_id"].map(user_id_to_idx).to_numpy()
    col_indices = ratings["item_id"].map(item_id_to_idx).to_numpy()
    data = np.ones(len(ratings), dtype=np.float32)

    matrix = csr_matrix(
        (data, (row_indices, col_indices)),
        shape=(len(unique_users), len(unique_items)),
        dtype=np.float32,
    )
    # Repeated pairs would be summed; keep the matrix binary
    matrix.data[:] = 1.0

    logger.debug(
        "Built interaction matrix",
        extra={"shape": list(matrix.shape), "non_zero": int(matrix.nnz)},
    )
    return matrix, user_id_to_idx, item_id_to_idx


def check_data_exists(ratings_csv: str, products_csv: str) -> bool:
    """Check that both data files exist."""
    return Path(ratings_csv).exists() and Path(products_csv).exists()
