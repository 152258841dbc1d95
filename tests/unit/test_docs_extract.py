"""Unit tests for upload classification and text extraction."""

import io

import pytest
from docx import Document as DocxDocument
from pypdf import PdfWriter

from backend.tenderwriter.docs.extract import (
    DOCX_MIME,
    PDF_MIME,
    TXT_MIME,
    classify,
    extract,
)
from backend.tenderwriter.errors import UnsupportedFormatError


def make_docx(paragraphs: list[str], table: list[list[str]] | None = None) -> bytes:
    doc = DocxDocument()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        t = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                t.cell(r, c).text = value
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def make_blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


class TestClassify:
    """Extension first, then declared MIME."""

    @pytest.mark.parametrize(
        ("filename", "expected_type", "expected_mime"),
        [
            ("rfp.pdf", "pdf", PDF_MIME),
            ("RFP.PDF", "pdf", PDF_MIME),
            ("profile.docx", "docx", DOCX_MIME),
            ("notes.txt", "txt", TXT_MIME),
        ],
    )
    def test_known_extensions(self, filename: str, expected_type: str, expected_mime: str) -> None:
        assert classify(filename, "application/octet-stream") == (expected_type, expected_mime)

    def test_image_extension_keeps_declared_image_mime(self) -> None:
        assert classify("scan.png", "image/png") == ("image", "image/png")

    def test_image_extension_without_mime(self) -> None:
        assert classify("scan.jpg", None) == ("image", "image/jpeg")

    def test_no_extension_uses_mime(self) -> None:
        assert classify("upload", "application/pdf") == ("pdf", PDF_MIME)
        assert classify("upload", "image/webp") == ("image", "image/webp")

    def test_mime_parameters_are_ignored(self) -> None:
        assert classify("upload", "text/plain; charset=utf-8") == ("txt", TXT_MIME)

    def test_executable_is_rejected(self) -> None:
        with pytest.raises(UnsupportedFormatError, match=r"\.exe"):
            classify("setup.exe", "application/octet-stream")

    def test_unknown_extension_is_not_rescued_by_mime(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            classify("payload.exe", "application/pdf")


class TestExtract:
    def test_txt_decodes_utf8_with_replacement(self) -> None:
        result = extract("txt", "Café ".encode() + b"\xff")

        assert result.text.startswith("Café ")
        assert "�" in result.text

    def test_docx_includes_paragraphs_and_tables(self) -> None:
        data = make_docx(
            ["Must support 99.9% uptime"],
            table=[["Item", "Target"], ["Response time", "4 hours"]],
        )

        result = extract("docx", data)

        assert "Must support 99.9% uptime" in result.text
        assert "Response time | 4 hours" in result.text
        assert result.metadata["table_count"] == 1

    def test_corrupt_docx_is_unsupported(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            extract("docx", b"not a zip archive")

    def test_pdf_without_text_yields_empty_text(self) -> None:
        result = extract("pdf", make_blank_pdf())

        assert result.text.strip() == ""
        assert result.metadata["page_count"] == 1

    def test_unparseable_pdf_yields_empty_text(self) -> None:
        result = extract("pdf", b"%PDF-garbage")

        assert result.text == ""
        assert "extraction_error" in result.metadata

    def test_images_are_never_extracted(self) -> None:
        assert extract("image", b"\x89PNG\r\n").text == ""
