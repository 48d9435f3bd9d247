"""Unit tests for attached document extraction."""

import io

import httpx
import pytest
from docx import Document
from openpyxl import Workbook
from pypdf import PdfWriter

from assistant_stream.chat import documents
from assistant_stream.chat.documents import (
    DOCX_TYPE,
    PDF_TYPE,
    XLSX_TYPE,
    csv_to_text,
    extract_text_from_document,
    truncate_document_text
)
from assistant_stream.config.constants import MAX_DOCUMENT_CHARS


def client_for(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def serve_bytes(content):
    return client_for(lambda request: httpx.Response(200, content=content))


def docx_bytes(*paragraphs):
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def xlsx_bytes(sheets):
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        sheet = workbook.create_sheet(title)
        for row in rows:
            sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def blank_pdf_bytes():
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestDocumentExtraction:
    """Test fetching and formatting of text documents."""

    @pytest.mark.asyncio
    async def test_plain_text(self):
        async with client_for(lambda request: httpx.Response(200, text="  hello notes \n")) as client:
            text = await extract_text_from_document("https://files.example.com/a.txt", "text/plain", "a.txt", client=client)

        assert text == "[Document a.txt]\nhello notes"

    @pytest.mark.asyncio
    async def test_csv(self):
        body = "name,qty\napple,3\n\npear,5\n"
        async with client_for(lambda request: httpx.Response(200, text=body)) as client:
            text = await extract_text_from_document("https://files.example.com/a.csv", "text/csv", "a.csv", client=client)

        assert text == "[Document a.csv]\nname, qty\napple, 3\npear, 5"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        async with client_for(lambda request: httpx.Response(404)) as client:
            text = await extract_text_from_document("https://files.example.com/a.md", "text/markdown", "a.md", client=client)

        assert text == "[Document a.md] (failed to fetch: 404)"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with client_for(handler) as client:
            text = await extract_text_from_document("https://files.example.com/a.txt", "text/plain", "a.txt", client=client)

        assert text == "[Document a.txt] (failed to fetch)"

    @pytest.mark.asyncio
    async def test_unsupported_type_is_not_fetched(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        async with client_for(handler) as client:
            text = await extract_text_from_document(
                "https://files.example.com/a.zip", "application/zip", "a.zip", client=client
            )

        assert text == "[Document a.zip] (unsupported media type application/zip)"
        assert requests == []

    def test_truncation(self):
        text = truncate_document_text("x" * (MAX_DOCUMENT_CHARS + 10), "big.txt")

        assert text.startswith("[Document big.txt] (truncated)\n")
        assert len(text.split("\n", 1)[1]) == MAX_DOCUMENT_CHARS

    def test_csv_quoted_fields(self):
        assert csv_to_text('a,"b, c"\n') == "a, b, c"


class TestBinaryDocuments:
    """Test PDF, DOCX and XLSX extraction."""

    @pytest.mark.asyncio
    async def test_docx_paragraphs(self):
        content = docx_bytes("Quarterly report", "", "Revenue grew")
        async with serve_bytes(content) as client:
            text = await extract_text_from_document("https://files.example.com/r.docx", DOCX_TYPE, "r.docx",
                                                    client=client)

        assert text == "[Document r.docx]\nQuarterly report\nRevenue grew"

    @pytest.mark.asyncio
    async def test_xlsx_sheets_as_csv(self):
        content = xlsx_bytes({
            "Stock": [["name", "qty"], ["apple", 3], ["pear", None]],
            "Notes": [["restock friday"]],
        })
        async with serve_bytes(content) as client:
            text = await extract_text_from_document("https://files.example.com/s.xlsx", XLSX_TYPE, "s.xlsx",
                                                    client=client)

        assert text == "[Document s.xlsx]\nname,qty\napple,3\npear,\nrestock friday"

    @pytest.mark.asyncio
    async def test_pdf_pages(self, monkeypatch):
        class FakePage:
            def __init__(self, text):
                self.text = text

            def extract_text(self):
                return self.text

        class FakeReader:
            def __init__(self, stream):
                assert stream.read() == b"%PDF-fake"
                self.pages = [FakePage("Page one"), FakePage(""), FakePage("Page three")]

        monkeypatch.setattr(documents, "PdfReader", FakeReader)

        async with serve_bytes(b"%PDF-fake") as client:
            text = await extract_text_from_document("https://files.example.com/a.pdf", PDF_TYPE, "a.pdf",
                                                    client=client)

        assert text == "[Document a.pdf]\nPage one\nPage three"

    @pytest.mark.asyncio
    async def test_pdf_without_text(self):
        async with serve_bytes(blank_pdf_bytes()) as client:
            text = await extract_text_from_document("https://files.example.com/a.pdf", PDF_TYPE, "a.pdf",
                                                    client=client)

        assert text == "[Document a.pdf]\n"

    @pytest.mark.asyncio
    async def test_corrupt_document(self):
        async with serve_bytes(b"not a pdf") as client:
            text = await extract_text_from_document("https://files.example.com/a.pdf", PDF_TYPE, "a.pdf",
                                                    client=client)

        assert text == "[Document a.pdf] (failed to parse)"
