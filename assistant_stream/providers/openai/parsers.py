from __future__ import annotations

from typing import Any


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_text_from_response(response: Any) -> str:
    """Extract the assistant text from a Responses API response.

    Prefers the SDK's ``output_text`` aggregate and otherwise concatenates the
    ``output_text`` parts of every ``message`` output item. Returns an empty
    string if nothing is found.
    """
    output_text = _field(response, "output_text")
    if isinstance(output_text, str) and output_text:
        return output_text

    chunks = []
    for item in _field(response, "output") or []:
        if _field(item, "type") != "message":
            continue
        for content in _field(item, "content") or []:
            text = _field(content, "text")
            if _field(content, "type") == "output_text" and isinstance(text, str):
                chunks.append(text)
    return "".join(chunks)
