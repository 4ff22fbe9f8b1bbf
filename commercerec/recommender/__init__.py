"""Recommendation module for CommerceRec.

Holds the rating store contracts and their in-memory implementation, the
similar-user search, the score aggregator, the result cache and the engine
that ties them together behind a popularity fallback.
"""
