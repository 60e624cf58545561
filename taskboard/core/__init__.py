"""Configuration, logging and priority helpers."""
