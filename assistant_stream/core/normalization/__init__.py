"""Normalization of upstream payloads."""

from .usage import normalize_usage, usage_to_dict

__all__ = ["normalize_usage", "usage_to_dict"]
