"""Integrity-checked source retrieval."""

from fatlib.fetch.http import fetch, unpack

__all__ = ["fetch", "unpack"]
