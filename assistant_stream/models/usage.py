from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UsageSummary(BaseModel):
    """
    Token accounting for one assistant turn.

    Counts are always present (zero-filled when the upstream reports nothing);
    model and cost fields are filled in by enrichment when a catalog entry is
    available. Serialized in camelCase for the ``data-usage`` event.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)
    cached_input_tokens: Optional[int] = None
    reasoning_tokens: Optional[int] = None

    # Enrichment
    model_id: Optional[str] = None
    input_cost_usd: Optional[float] = None
    output_cost_usd: Optional[float] = None
    total_cost_usd: Optional[float] = None
    context_window: Optional[int] = None

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the outward protocol (camelCase, no empty fields)."""
        return self.model_dump(by_alias=True, exclude_none=True)
