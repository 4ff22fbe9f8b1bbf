"""FastAPI application module for CommerceRec.

This module contains the FastAPI application, route handlers and the
logging and metrics plumbing around the recommendation engine.
"""
