"""Operational scripts for ShouldCost functions."""
