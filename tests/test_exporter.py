"""Tests for document export"""

import pytest

from legal_contract_ai.services.exporter import (
    ExportFormat,
    default_filename,
    export_document,
    export_html,
    export_pdf,
    export_text,
)

DOCUMENT = "NON-DISCLOSURE AGREEMENT\n\nBetween **PT Maju** & <CV Jaya>\nArticle 1"


def test_default_filename():
    assert default_filename("pdf", now_ms=1700000000000) == "contract-1700000000000.pdf"
    assert default_filename(ExportFormat.TEXT, now_ms=5) == "contract-5.txt"


def test_default_filename_uses_clock():
    name = default_filename("html")
    assert name.startswith("contract-")
    assert name.endswith(".html")


def test_text_is_raw_utf8():
    assert export_text("Pasal 1 – Definisi") == "Pasal 1 – Definisi".encode("utf-8")


def test_html_escapes_and_breaks_lines():
    page = export_html(DOCUMENT, title="NDA")
    assert "<title>NDA</title>" in page
    assert "&lt;CV Jaya&gt;" in page
    assert "&amp;" in page
    assert "<strong>PT Maju</strong>" in page
    assert "NON-DISCLOSURE AGREEMENT<br/><br/>Between" in page
    assert "<CV Jaya>" not in page


def test_pdf_bytes():
    data = export_pdf(DOCUMENT, title="NDA")
    assert data.startswith(b"%PDF")


def test_pdf_of_empty_document():
    assert export_pdf("").startswith(b"%PDF")


@pytest.mark.parametrize("fmt,prefix", [("txt", b"NON-DISCLOSURE"), ("html", b"<!DOCTYPE html>"), ("pdf", b"%PDF")])
def test_export_document_dispatch(fmt, prefix):
    assert export_document(DOCUMENT, fmt).startswith(prefix)


def test_unknown_format():
    with pytest.raises(ValueError):
        export_document(DOCUMENT, "docx")
