"""CommerceRec: rating-driven product recommendations for an e-commerce backend.

This package provides a user-based collaborative filtering recommender with a
popularity fallback, plus the service layer that keeps it fed with ratings.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: rating store, similarity search, scoring and the engine
"""

__version__ = "0.1.0"
