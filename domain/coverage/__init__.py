"""Coverage Bounded Context.

Responsible for scoring network coverage along a route:
- Value Objects: CoveragePoint, FilterState, CoverageBreakdown, RouteSegment,
  CoverageStats
- Services: CoverageScorer, RouteCoverageEngine
- Ports: CoveragePointRepository, RouteProvider, SegmentCache
"""
