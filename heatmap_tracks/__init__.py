"""Utilities for gaze dwell heatmaps and movement trails.

This package provides modular building blocks to load tracked-session logs,
cull them by index range or bounding volume, classify points by local
neighbour density, and build gated trail polylines.
"""
