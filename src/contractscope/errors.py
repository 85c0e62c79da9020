"""Exceptions raised to callers for input that cannot be analyzed."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Malformed or empty contract text, unknown token symbol, bad amounts."""
