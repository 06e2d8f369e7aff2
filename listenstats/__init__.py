"""Listening analytics: aggregates, diversity, temporal patterns, obsessions and reports."""

__version__ = "1.0.0"
