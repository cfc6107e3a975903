"""Service helpers."""
