"""
Model catalog and usage cost enrichment.

The catalog maps upstream model ids to per-token pricing. It is held by an
explicit CatalogCache with a time-to-live: the first request (or the first
request after expiry) loads it, and a failed refresh keeps serving the last
good catalog.
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ...config.constants import DEFAULT_CATALOG_TTL_SECONDS
from ...config.models import MODEL_CONFIGS
from ...models.usage import UsageSummary
from ...observability.logging import StreamLogger

logger = StreamLogger("catalog")

_SNAPSHOT_SUFFIX = re.compile(r"-\d{4}-\d{2}-\d{2}$")

CatalogLoader = Callable[[], Awaitable["ModelCatalog"]]


@dataclass(frozen=True)
class ModelPricing:
    """Pricing for one model, in USD per 1M tokens."""
    model_id: str
    input_cost_per_1m_tokens: float
    output_cost_per_1m_tokens: float
    cached_input_cost_per_1m_tokens: Optional[float] = None
    context_window: Optional[int] = None


class ModelCatalog:
    """Lookup table of model pricing."""

    def __init__(self, entries: Optional[Dict[str, ModelPricing]] = None, source: str = "default"):
        self._entries: Dict[str, ModelPricing] = dict(entries or {})
        self.source = source

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, model_id: str) -> bool:
        return self.lookup(model_id) is not None

    def models(self) -> Dict[str, ModelPricing]:
        return dict(self._entries)

    def lookup(self, model_id: str) -> Optional[ModelPricing]:
        """Find pricing for a model id, resolving dated snapshot ids to their base model."""
        if not model_id:
            return None
        pricing = self._entries.get(model_id)
        if pricing is None:
            base = _SNAPSHOT_SUFFIX.sub("", model_id)
            pricing = self._entries.get(base)
        return pricing


def default_catalog() -> ModelCatalog:
    """Catalog built from the bundled model configurations."""
    entries = {
        model_id: ModelPricing(
            model_id=model_id,
            input_cost_per_1m_tokens=config["input_cost_per_1m_tokens"],
            output_cost_per_1m_tokens=config["output_cost_per_1m_tokens"],
            cached_input_cost_per_1m_tokens=config.get("cached_input_cost_per_1m_tokens"),
            context_window=config.get("context_window"),
        )
        for model_id, config in MODEL_CONFIGS.items()
    }
    return ModelCatalog(entries, source="default")


def parse_remote_catalog(payload: Dict[str, Any]) -> ModelCatalog:
    """
    Parse a models.dev style catalog.

    Shape: ``{provider: {"models": {model_id: {"cost": {"input", "output",
    "cache_read"}, "limit": {"context"}}}}}``. Models without input/output
    cost are skipped.
    """
    entries: Dict[str, ModelPricing] = {}
    for provider in payload.values():
        if not isinstance(provider, dict):
            continue
        for model_id, model in (provider.get("models") or {}).items():
            cost = model.get("cost") or {}
            if cost.get("input") is None or cost.get("output") is None:
                continue
            limit = model.get("limit") or {}
            entries.setdefault(model_id, ModelPricing(
                model_id=model_id,
                input_cost_per_1m_tokens=float(cost["input"]),
                output_cost_per_1m_tokens=float(cost["output"]),
                cached_input_cost_per_1m_tokens=(
                    float(cost["cache_read"]) if cost.get("cache_read") is not None else None
                ),
                context_window=limit.get("context"),
            ))
    return ModelCatalog(entries, source="remote")


async def fetch_remote_catalog(url: str, timeout: float = 10.0) -> ModelCatalog:
    """Fetch and parse a remote catalog."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(url)
        response.raise_for_status()
        return parse_remote_catalog(response.json())


class CatalogCache:
    """
    Time-bounded holder for a ModelCatalog.

    Owned by whoever builds the stream pipeline; nothing here is global.
    """

    def __init__(
        self,
        loader: Optional[CatalogLoader] = None,
        ttl_seconds: float = DEFAULT_CATALOG_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._catalog: Optional[ModelCatalog] = None
        self._loaded_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_url(cls, url: Optional[str], ttl_seconds: float = DEFAULT_CATALOG_TTL_SECONDS) -> "CatalogCache":
        """Cache backed by a remote catalog, or by the bundled one when no URL is set."""
        if not url:
            return cls(ttl_seconds=ttl_seconds)

        async def load() -> ModelCatalog:
            return await fetch_remote_catalog(url)

        return cls(load, ttl_seconds=ttl_seconds)

    def is_stale(self) -> bool:
        if self._catalog is None or self._loaded_at is None:
            return True
        return self._clock() - self._loaded_at >= self.ttl_seconds

    def invalidate(self) -> None:
        self._loaded_at = None

    async def get(self) -> ModelCatalog:
        """Return the cached catalog, refreshing it first when missing or expired."""
        if not self.is_stale():
            return self._catalog

        async with self._lock:
            if not self.is_stale():
                return self._catalog
            try:
                catalog = await self._loader() if self._loader else default_catalog()
            except Exception as e:
                fallback = self._catalog or default_catalog()
                logger.warning(
                    "Catalog fetch failed, using fallback catalog",
                    error=e,
                    fallback=fallback.source
                )
                catalog = fallback
            self._catalog = catalog
            self._loaded_at = self._clock()
            logger.debug("Catalog loaded", source=catalog.source, models=len(catalog))
            return catalog


def price_usage(usage: UsageSummary, pricing: ModelPricing) -> UsageSummary:
    """Attach costs to a usage summary. Cached input tokens bill at the cached rate when known."""
    cached = usage.cached_input_tokens or 0
    uncached = max(usage.input_tokens - cached, 0)
    cached_rate = pricing.cached_input_cost_per_1m_tokens
    if cached_rate is None:
        cached_rate = pricing.input_cost_per_1m_tokens

    input_cost = (uncached * pricing.input_cost_per_1m_tokens + cached * cached_rate) / 1_000_000
    output_cost = usage.output_tokens * pricing.output_cost_per_1m_tokens / 1_000_000

    return usage.model_copy(update={
        "input_cost_usd": input_cost,
        "output_cost_usd": output_cost,
        "total_cost_usd": input_cost + output_cost,
        "context_window": pricing.context_window,
    })


class UsageEnricher:
    """Maps token usage to a cost summary using the cached catalog."""

    def __init__(self, cache: CatalogCache):
        self.cache = cache

    async def __call__(self, usage: UsageSummary, model_id: Optional[str]) -> UsageSummary:
        if not model_id:
            return usage

        tagged = usage.model_copy(update={"model_id": model_id})
        if usage.total_tokens <= 0:
            return tagged

        catalog = await self.cache.get()
        pricing = catalog.lookup(model_id)
        if pricing is None:
            logger.debug("No pricing for model", model=model_id)
            return tagged
        return price_usage(tagged, pricing)
