"""Coverage Bounded Context - Error Hierarchy.

Custom exceptions for coverage scoring and point loading.
"""

from __future__ import annotations


class CoverageError(Exception):
    """Base error for coverage operations."""


class InvalidScoreError(CoverageError, ValueError):
    """Coverage score is NaN and cannot be placed on the color scale."""


class InvalidRouteError(CoverageError, ValueError):
    """Route or segment parameters are invalid."""


class InvalidCoverageDataError(CoverageError):
    """Coverage point source is not a valid FeatureCollection or is corrupted.

    Attributes:
        feature_index: Position of the offending feature, if known
    """

    def __init__(self, message: str, feature_index: int | None = None) -> None:
        self.feature_index = feature_index
        if feature_index is not None:
            message = f"Feature {feature_index}: {message}"
        super().__init__(message)
