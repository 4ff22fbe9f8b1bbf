"""Generate fake catalog and rating data for testing and development.

This module creates a synthetic product catalog and a set of user ratings
with timestamps, written as the two CSV files the service loads.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_ratings
        df = generate_fake_ratings(num_users=100, num_products=200)
"""

import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import pandas as pd

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_RATINGS = 1000
DEFAULT_DAYS_BACK = 90
SECONDS_PER_DAY = 86400

CATEGORIES = ["electronics", "clothing", "books", "home", "sports", "beauty"]
ADJECTIVES = ["Classic", "Smart", "Compact", "Premium", "Eco", "Ultra"]
NOUNS = {
    "electronics": ["Headphones", "Keyboard", "Monitor", "Speaker"],
    "clothing": ["Jacket", "Sneakers", "T-Shirt", "Scarf"],
    "books": ["Novel", "Cookbook", "Atlas", "Guide"],
    "home": ["Lamp", "Kettle", "Blanket", "Vase"],
    "sports": ["Racket", "Yoga Mat", "Dumbbell", "Helmet"],
    "beauty": ["Serum", "Lotion", "Perfume", "Brush"],
}


def generate_fake_products(num_products: int = DEFAULT_NUM_PRODUCTS) -> pd.DataFrame:
    """Generate a synthetic product catalog.

    Returns:
        DataFrame with columns id, name, category, price, description,
        image_url and view_count. Rating aggregates are left out so the
        service derives them from the ratings.

    Raises:
        ValueError: If num_products is not positive.
    """
    if num_products <= 0:
        raise ValueError("num_products must be positive")

    products = []
    for product_id in range(1, num_products + 1):
        category = random.choice(CATEGORIES)
        name = f"{random.choice(ADJECTIVES)} {random.choice(NOUNS[category])}"
        products.append({
            "id": product_id,
            "name": name,
            "category": category,
            "price": round(random.uniform(5, 500), 2),
            "description": f"{name} from the {category} range",
            "image_url": f"https://example.com/images/{product_id}.jpg",
            "view_count": random.randint(0, 5000),
        })

    return pd.DataFrame(products)


def generate_fake_ratings(
    num_users: int = DEFAULT_NUM_USERS,
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_ratings: int = DEFAULT_NUM_RATINGS,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> pd.DataFrame:
    """Generate synthetic ratings for recommendation testing.

    Each product gets a hidden quality level so that scores cluster per
    product, which gives the popularity list something to find. Repeated
    (user, product) draws are collapsed to the latest one.

    Args:
        num_users: Number of unique users to simulate. Must be positive.
        num_products: Number of products available. Must be positive.
        num_ratings: Number of rating draws. Must be positive.
        start_date: Earliest timestamp. Defaults to 90 days before end_date.
        end_date: Latest timestamp. Defaults to now.

    Returns:
        DataFrame with columns rating_id, user_id, item_id, score, review,
        created_at and updated_at, sorted by created_at.

    Raises:
        ValueError: If any numeric parameter is non-positive or if
            start_date is not before end_date.
    """
    if num_users <= 0 or num_products <= 0 or num_ratings <= 0:
        raise ValueError("num_users, num_products, and num_ratings must be positive")

    if end_date is None:
        end_date = datetime.now()
    if start_date is None:
        start_date = end_date - timedelta(days=DEFAULT_DAYS_BACK)
    if start_date >= end_date:
        raise ValueError("start_date must be before end_date")

    quality = {pid: random.uniform(1.5, 5.0) for pid in range(1, num_products + 1)}
    total_seconds = int((end_date - start_date).total_seconds())

    ratings = []
    for _ in range(num_ratings):
        user_id = random.randint(1, num_users)
        item_id = random.randint(1, num_products)
        score = min(5, max(1, round(random.gauss(quality[item_id], 0.8))))
        timestamp = start_date + timedelta(seconds=random.randrange(total_seconds))
        ratings.append({
            "user_id": user_id,
            "item_id": item_id,
            "score": score,
            "review": random.choice([None, "Great value", "As described", "Not for me"]),
            "created_at": timestamp,
            "updated_at": timestamp,
        })

    df = pd.DataFrame(ratings).sort_values("created_at")
    df = df.drop_duplicates(subset=["user_id", "item_id"], keep="last").reset_index(drop=True)
    df.insert(0, "rating_id", range(1, len(df) + 1))
    return df


def main() -> None:
    """Write data/products.csv and data/ratings.csv with default sizes."""
    print(f"Generating {DEFAULT_NUM_PRODUCTS} products and {DEFAULT_NUM_RATINGS} ratings...")
    print(f"Users: {DEFAULT_NUM_USERS}")

    try:
        products = generate_fake_products(DEFAULT_NUM_PRODUCTS)
        ratings = generate_fake_ratings(
            num_users=DEFAULT_NUM_USERS,
            num_products=DEFAULT_NUM_PRODUCTS,
            num_ratings=DEFAULT_NUM_RATINGS,
        )
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    data_dir = Path(__file__).parent.parent / "data"
    data_dir.mkdir(exist_ok=True)

    products_path = data_dir / "products.csv"
    ratings_path = data_dir / "ratings.csv"
    products.to_csv(products_path, index=False)
    ratings.to_csv(ratings_path, index=False)

    print(f"\nData generated successfully!")
    print(f"Saved to: {products_path} and {ratings_path}")
    print(f"\nData summary:")
    print(f"  Ratings: {len(ratings)}")
    print(f"  Users who rated: {ratings['user_id'].nunique()}")
    print(f"  Products rated: {ratings['item_id'].nunique()}")
    print(f"  Mean score: {ratings['score'].mean():.2f}")


if __name__ == "__main__":
    main()
