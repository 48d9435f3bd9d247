from typing import Any, Dict, Iterable, List, Optional

from ...config.constants import ATTACHED_DOCUMENTS_HEADER
from ...models.chat import MessageRecord


def build_user_content(
    text: str,
    image_urls: Iterable[str] = (),
    documents: Iterable[str] = (),
) -> List[Dict[str, Any]]:
    """Build the content parts of a new user turn.

    Extracted document text is appended to the typed text under an
    ``[Attached documents]`` header; images are passed by URL.
    """
    base_text = text or ""
    docs_text = "\n\n".join(chunk.strip() for chunk in documents if chunk and chunk.strip())
    if docs_text:
        if base_text:
            base_text = f"{base_text}\n\n{ATTACHED_DOCUMENTS_HEADER}\n{docs_text}"
        else:
            base_text = f"{ATTACHED_DOCUMENTS_HEADER}\n{docs_text}"

    content: List[Dict[str, Any]] = []
    if base_text.strip():
        content.append({"type": "input_text", "text": base_text})
    for url in image_urls:
        content.append({"type": "input_image", "image_url": url, "detail": "auto"})
    return content


def history_to_input(history: Iterable[MessageRecord]) -> List[Dict[str, Any]]:
    """Convert stored messages to Responses API input items.

    Messages without text are skipped.
    """
    items: List[Dict[str, Any]] = []
    for message in history:
        text = message.text().strip()
        if not text:
            continue
        part_type = "output_text" if message.role == "assistant" else "input_text"
        items.append({
            "role": message.role,
            "content": [{"type": part_type, "text": text}],
        })
    return items


def build_turn_input(
    history: Iterable[MessageRecord],
    user_content: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Assemble the full stateless input for one turn: prior messages plus the new user turn."""
    items = history_to_input(history)
    if user_content:
        items.append({"role": "user", "content": user_content})
    return items


def build_responses_request(
    model: str,
    input: Any,
    instructions: Optional[str] = None,
    prompt_id: Optional[str] = None,
    temperature: Optional[float] = None,
    max_output_tokens: Optional[int] = None,
    metadata: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build a Responses API request payload, leaving out unset parameters."""
    payload: Dict[str, Any] = {
        "model": model,
        "input": input,
    }
    if instructions:
        payload["instructions"] = instructions
    if prompt_id:
        payload["prompt"] = {"id": prompt_id}
    if temperature is not None:
        payload["temperature"] = temperature
    if max_output_tokens is not None:
        payload["max_output_tokens"] = max_output_tokens
    if metadata:
        payload["metadata"] = metadata
    return payload
