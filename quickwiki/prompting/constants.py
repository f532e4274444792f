"""Shared constants for prompt rendering."""

from __future__ import annotations

# Page-count guidance handed to the model; never enforced on the reply.
MIN_PAGES = 5
MAX_PAGES = 20

MIN_PAGE_LINES = 100
MAX_PAGE_LINES = 250


__all__ = ["MAX_PAGES", "MAX_PAGE_LINES", "MIN_PAGES", "MIN_PAGE_LINES"]
