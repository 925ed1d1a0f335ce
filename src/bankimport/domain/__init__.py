"""Domain layer for bankimport."""
