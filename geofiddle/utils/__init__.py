"""Helpers shared across codecs and callers.

- helpers: Compact number rendering for text formats
- measurements: Geodesic area/length and display labels
"""
