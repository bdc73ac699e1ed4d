"""Deterministic profile README rendering: badges and Markdown sections."""

from .badges import build_badges, organize_badges_by_category, to_logo_slug, badge_image_url
from .markdown import build_markdown

__all__ = [
    "build_badges",
    "organize_badges_by_category",
    "to_logo_slug",
    "badge_image_url",
    "build_markdown",
]
