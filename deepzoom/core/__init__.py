"""Precision planning, viewport mapping and escape-time evaluation."""
