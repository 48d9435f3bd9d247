"""Core usage normalization and pricing."""

from .normalization import normalize_usage, usage_to_dict
from .pricing import CatalogCache, ModelCatalog, UsageEnricher, default_catalog

__all__ = [
    "normalize_usage",
    "usage_to_dict",
    "CatalogCache",
    "ModelCatalog",
    "UsageEnricher",
    "default_catalog"
]
