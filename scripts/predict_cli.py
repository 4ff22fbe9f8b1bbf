"""CLI script for getting product recommendations.

Useful for testing and evaluation. Loads the CSV data, asks the engine for
recommendations and prints them to the console.
"""

import argparse
import logging
import sys
from typing import List

from commercerec.config import Settings
from commercerec.exceptions import CommerceRecException
from commercerec.recommender.engine import RecommendationEngine
from commercerec.recommender.memory_store import load_store_from_csv
from commercerec.recommender.utils import check_data_exists
from commercerec.recommender.models import Item

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def print_items(title: str, items: List[Item]) -> None:
    print(f"\n{title}")
    if not items:
        print("  (no items)")
    for rank, item in enumerate(items, start=1):
        print(
            f"  {rank}. [ID:{item.id}] {item.name} ({item.category}) "
            f"- average {item.average_rating:.2f} from {item.rating_count} ratings"
        )


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations from the CSV data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py user 42
  python scripts/predict_cli.py user 42 --limit 10
  python scripts/predict_cli.py popular
  python scripts/predict_cli.py category electronics --limit 3
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    user_parser = subparsers.add_parser("user", help="Personalised recommendations")
    user_parser.add_argument("user_id", type=int, help="User ID to get recommendations for")

    subparsers.add_parser("popular", help="Best rated items overall")

    category_parser = subparsers.add_parser("category", help="Best rated items of a category")
    category_parser.add_argument("category", help="Category name")

    for sub in (user_parser, category_parser, subparsers.choices["popular"]):
        sub.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Number of items to return (default: from settings)"
        )

    parser.add_argument("--ratings-csv", type=str, default=None, help="Ratings CSV file")
    parser.add_argument("--products-csv", type=str, default=None, help="Products CSV file")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    settings = Settings.from_env()
    ratings_csv = args.ratings_csv or settings.ratings_csv
    products_csv = args.products_csv or settings.products_csv

    if not check_data_exists(ratings_csv, products_csv):
        print(f"Error: data files not found ({ratings_csv}, {products_csv})", file=sys.stderr)
        print("Generate them with: python scripts/generate_fake_data.py", file=sys.stderr)
        sys.exit(1)

    try:
        store = load_store_from_csv(ratings_csv, products_csv)
        engine = RecommendationEngine(ratings=store, catalog=store, settings=settings)

        if args.command == "user":
            items, source = engine.recommend_with_source(args.user_id, args.limit)
            print_items(f"Recommendations for user {args.user_id} (source: {source.value}):", items)
        elif args.command == "popular":
            print_items("Popular products:", engine.popular_products(args.limit))
        else:
            print_items(
                f"Top products in '{args.category}':",
                engine.recommend_by_category(args.category, args.limit),
            )
    except CommerceRecException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    print()


if __name__ == "__main__":
    main()
