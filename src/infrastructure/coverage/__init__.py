"""Infrastructure adapters for the coverage bounded context.

This module provides the infrastructure layer implementations for coverage
operations, including loading observations from GeoJSON files.
"""

from .geojson_adapter import GeoJsonCoverageAdapter

__all__ = ["GeoJsonCoverageAdapter"]
