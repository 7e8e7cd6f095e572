"""Internal helpers for the index package."""
