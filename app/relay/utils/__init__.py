"""Utility helpers for page relay."""

from .urls import ALLOWED_SCHEMES, is_valid_target_url, validate_target_url

__all__ = [
    'ALLOWED_SCHEMES',
    'is_valid_target_url',
    'validate_target_url',
]
