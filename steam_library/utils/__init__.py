"""Utility helpers."""

from .metadata import strip_html_tags, format_playtime
from .paths import get_data_dir, get_settings_path

__all__ = [
    "strip_html_tags",
    "format_playtime",
    "get_data_dir",
    "get_settings_path",
]
