"""Metadata utilities for game information formatting.

Provides helpers for:
- Stripping markup from store descriptions
- Formatting playtime for display
"""

import html
import re

# Line breaks become spaces, every other tag is dropped
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def strip_html_tags(text: str) -> str:
    """Remove HTML tags from a store description and normalize whitespace.

    Args:
        text: Raw description text from the store API

    Returns:
        Plain text, stripped
    """
    if not text:
        return ""

    text = _BREAK_RE.sub(" ", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def format_playtime(minutes: int) -> str:
    """Format playtime minutes for display (e.g. "2.0 hours", "45 minutes")."""
    if not minutes or minutes <= 0:
        return "Never played"
    if minutes < 60:
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{minutes / 60:.1f} hours"
