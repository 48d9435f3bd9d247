"""Model catalog, pricing and usage enrichment."""

from .catalog import (
    CatalogCache,
    ModelCatalog,
    ModelPricing,
    UsageEnricher,
    default_catalog,
    fetch_remote_catalog,
    parse_remote_catalog,
    price_usage
)

__all__ = [
    "CatalogCache",
    "ModelCatalog",
    "ModelPricing",
    "UsageEnricher",
    "default_catalog",
    "fetch_remote_catalog",
    "parse_remote_catalog",
    "price_usage"
]
