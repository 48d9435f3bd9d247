"""Text extraction for documents attached to a chat message."""

import csv
import io
from typing import Callable, Dict, Optional

import httpx
from docx import Document
from openpyxl import load_workbook
from pypdf import PdfReader

from ..config.constants import MAX_DOCUMENT_CHARS
from ..observability.logging import StreamLogger

logger = StreamLogger("documents")

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def truncate_document_text(text: str, name: str) -> str:
    trimmed = text.strip()
    if len(trimmed) <= MAX_DOCUMENT_CHARS:
        return f"[Document {name}]\n{trimmed}"
    return f"[Document {name}] (truncated)\n{trimmed[:MAX_DOCUMENT_CHARS]}"


def csv_to_text(text: str) -> str:
    rows = [row for row in csv.reader(io.StringIO(text)) if row]
    return "\n".join(", ".join(row) for row in rows)


def pdf_to_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(page for page in pages if page)


def docx_to_text(data: bytes) -> str:
    document = Document(io.BytesIO(data))
    return "\n".join(paragraph.text for paragraph in document.paragraphs if paragraph.text.strip())


def xlsx_to_text(data: bytes) -> str:
    """Every sheet rendered as CSV, sheets separated by a newline."""
    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        sheets = []
        for sheet in workbook.worksheets:
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            for row in sheet.iter_rows(values_only=True):
                writer.writerow(["" if value is None else value for value in row])
            sheets.append(buffer.getvalue().rstrip("\n"))
        return "\n".join(sheets)
    finally:
        workbook.close()


_TEXT_EXTRACTORS: Dict[str, Callable[[str], str]] = {
    "text/plain": lambda text: text,
    "text/markdown": lambda text: text,
    "text/csv": csv_to_text,
}

_BINARY_EXTRACTORS: Dict[str, Callable[[bytes], str]] = {
    PDF_TYPE: pdf_to_text,
    DOCX_TYPE: docx_to_text,
    XLSX_TYPE: xlsx_to_text,
}


async def extract_text_from_document(
    url: str,
    media_type: str,
    name: str,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Fetch a document and return its text with a ``[Document name]`` header.

    Plain text, markdown, CSV, PDF, DOCX and XLSX are extracted. Fetch and
    parse failures and unsupported media types produce a bracketed
    placeholder instead of raising, so one bad attachment never blocks a turn.

    Args:
        url: Where the uploaded document can be fetched
        media_type: MIME type declared by the client
        name: Original file name
        client: Optional shared HTTP client
    """
    if media_type not in _TEXT_EXTRACTORS and media_type not in _BINARY_EXTRACTORS:
        return f"[Document {name}] (unsupported media type {media_type})"

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=30.0)
    try:
        response = await http.get(url)
    except httpx.HTTPError as e:
        logger.warning("Document fetch failed", document=name, error=e)
        return f"[Document {name}] (failed to fetch)"
    finally:
        if owns_client:
            await http.aclose()

    if response.status_code >= 400:
        return f"[Document {name}] (failed to fetch: {response.status_code})"

    if media_type in _TEXT_EXTRACTORS:
        return truncate_document_text(_TEXT_EXTRACTORS[media_type](response.text), name)

    try:
        text = _BINARY_EXTRACTORS[media_type](response.content)
    except Exception as e:
        logger.warning("Document parse failed", document=name, media_type=media_type, error=e)
        return f"[Document {name}] (failed to parse)"
    return truncate_document_text(text, name)
