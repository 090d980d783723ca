"""Data and model services for ShouldCost functions."""
