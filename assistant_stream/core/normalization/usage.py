"""
Usage normalization module.

Upstream usage payloads come in two shapes: the Responses API reports
``input_tokens``/``output_tokens`` while chat-completions style payloads
report ``prompt_tokens``/``completion_tokens``. Both are folded into a single
UsageSummary here so the rest of the pipeline never looks at raw usage.
"""

from typing import Any, Dict, Optional

from ...models.usage import UsageSummary


def usage_to_dict(usage: Any) -> Dict[str, Any]:
    """
    Convert an upstream usage object into a plain dict.

    Accepts SDK models (anything with ``model_dump``), mappings and None.
    """
    if usage is None:
        return {}
    if isinstance(usage, dict):
        return usage
    if hasattr(usage, "model_dump"):
        return usage.model_dump()
    return {key: value for key, value in vars(usage).items() if not key.startswith("_")}


def _first(usage: Dict[str, Any], *fields: str) -> Optional[int]:
    """Return the first field that is reported (not missing and not None)."""
    for name in fields:
        value = usage.get(name)
        if value is not None:
            return int(value)
    return None


def _detail(usage: Dict[str, Any], detail_fields: tuple, key: str) -> Optional[int]:
    for name in detail_fields:
        details = usage.get(name)
        if isinstance(details, dict) and details.get(key) is not None:
            return int(details[key])
    return None


def normalize_usage(usage: Any) -> UsageSummary:
    """
    Derive a UsageSummary from an upstream usage payload.

    Precedence:
        input  = input_tokens, else prompt_tokens, else total_tokens, else 0
        output = output_tokens, else completion_tokens,
                 else max(total - input, 0) when a total is reported, else 0
        total  = total_tokens, else reported input + reported output

    Args:
        usage: Raw usage payload (dict, SDK object or None)

    Returns:
        UsageSummary with zero-filled counts when nothing was reported
    """
    data = usage_to_dict(usage)

    reported_input = _first(data, "input_tokens", "prompt_tokens")
    reported_output = _first(data, "output_tokens", "completion_tokens")
    reported_total = _first(data, "total_tokens")

    if reported_input is not None:
        input_tokens = reported_input
    elif reported_total is not None:
        input_tokens = reported_total
    else:
        input_tokens = 0

    if reported_output is not None:
        output_tokens = reported_output
    elif reported_total:
        output_tokens = max(reported_total - input_tokens, 0)
    else:
        output_tokens = 0

    if reported_total is not None:
        total_tokens = reported_total
    else:
        total_tokens = (reported_input or 0) + (reported_output or 0)

    return UsageSummary(
        input_tokens=max(input_tokens, 0),
        output_tokens=output_tokens,
        total_tokens=max(total_tokens, 0),
        cached_input_tokens=_detail(
            data, ("input_tokens_details", "prompt_tokens_details"), "cached_tokens"
        ),
        reasoning_tokens=_detail(
            data, ("output_tokens_details", "completion_tokens_details"), "reasoning_tokens"
        ),
    )
