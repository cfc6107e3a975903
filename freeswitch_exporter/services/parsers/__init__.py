"""Parsers turning raw switch replies into domain models."""
