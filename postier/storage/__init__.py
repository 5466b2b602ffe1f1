"""Local mail storage."""
