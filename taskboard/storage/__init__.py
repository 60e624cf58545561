"""Persistence port and adapters."""
