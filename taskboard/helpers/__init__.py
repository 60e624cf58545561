"""Date/time helpers."""
