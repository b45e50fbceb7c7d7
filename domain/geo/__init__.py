"""Geo Bounded Context.

Responsible for geographic primitives shared by the other contexts:
- Value Objects: GeoPoint
- Services: haversine distance, geodesic polyline length
- Index: GeoGrid (uniform-cell broad-phase spatial index)
"""
