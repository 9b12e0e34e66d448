"""API routes for the delivery pooling engine."""

from . import pools, fares

__all__ = ["pools", "fares"]
