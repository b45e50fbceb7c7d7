"""Route Coverage Domain Layer.

This package contains the core business logic organized by bounded contexts:
- geo: Coordinates, great-circle distance, uniform-grid spatial index
- coverage: Observation filtering, scoring, segment caching, route analysis
"""

# Imports alphabetized per project style (isort)
from domain import coverage, geo

__all__ = ["coverage", "geo"]
