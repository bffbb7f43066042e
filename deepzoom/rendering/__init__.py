"""Gradient coloring and raster output."""
