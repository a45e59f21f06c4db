"""Scraper utility functions."""

from .normalize import (
    DEFAULT_BASE_URL,
    clean_text,
    clean_practice_area,
    coerce_url,
    fix_image_url,
    join_text_values,
    normalize_candidate,
    to_absolute_url,
    to_float,
    to_int,
    to_rating,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "clean_text",
    "clean_practice_area",
    "coerce_url",
    "fix_image_url",
    "join_text_values",
    "normalize_candidate",
    "to_absolute_url",
    "to_float",
    "to_int",
    "to_rating",
]
