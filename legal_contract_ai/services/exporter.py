"""Document export: plain text, print-ready HTML and PDF"""

import html
import io
import re
import time
from enum import Enum
from typing import Optional
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

_BOLD = re.compile(r"\*\*(.+?)\*\*")


class ExportFormat(str, Enum):
    TEXT = "txt"
    HTML = "html"
    PDF = "pdf"


MEDIA_TYPES = {
    ExportFormat.TEXT: "text/plain; charset=utf-8",
    ExportFormat.HTML: "text/html; charset=utf-8",
    ExportFormat.PDF: "application/pdf",
}

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 1cm; line-height: 1.5; }}
    h1 {{ text-align: center; }}
    .content {{ white-space: pre-wrap; }}
    @media print {{
      body {{ margin: 0.5cm; }}
    }}
  </style>
</head>
<body>
  <div class="content">{body}</div>
</body>
</html>
"""


def default_filename(fmt: ExportFormat | str, now_ms: Optional[int] = None) -> str:
    """``contract-<epoch ms>.<ext>``"""
    fmt = ExportFormat(fmt)
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"contract-{now_ms}.{fmt.value}"


def export_text(document: str) -> bytes:
    return document.encode("utf-8")


def export_html(document: str, title: str = "Contract") -> str:
    """HTML page that Word can open and browsers can print to PDF."""
    body = _BOLD.sub(r"<strong>\1</strong>", html.escape(document, quote=False))
    body = body.replace("\n", "<br/>")
    return HTML_TEMPLATE.format(title=html.escape(title), body=body)


def _pdf_styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ContractTitle",
            parent=base["Heading1"],
            fontName="Times-Bold",
            fontSize=16,
            alignment=TA_CENTER,
            spaceAfter=16,
        ),
        "body": ParagraphStyle(
            "ContractBody",
            parent=base["Normal"],
            fontName="Times-Roman",
            fontSize=11,
            leading=16,
            alignment=TA_JUSTIFY,
        ),
    }


def _to_markup(block: str) -> str:
    """Escape for ReportLab's mini-markup, keep **bold** and line breaks."""
    markup = _BOLD.sub(r"<b>\1</b>", xml_escape(block))
    return markup.replace("\n", "<br/>")


def export_pdf(document: str, title: Optional[str] = None) -> bytes:
    """Render the document to an A4 PDF and return its bytes."""
    styles = _pdf_styles()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=2 * cm,
        leftMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
        title=title or "Contract",
    )

    blocks = [b.strip("\n") for b in re.split(r"\n\s*\n", document) if b.strip()]
    story = []
    for index, block in enumerate(blocks):
        # A leading all-caps line is the contract heading
        style = styles["title"] if index == 0 and block.isupper() else styles["body"]
        story.append(Paragraph(_to_markup(block), style))
        story.append(Spacer(1, 8))

    if not story:
        story.append(Paragraph("", styles["body"]))
    doc.build(story)
    return buffer.getvalue()


def export_document(document: str, fmt: ExportFormat | str, title: str = "Contract") -> bytes:
    """Dispatch to the exporter for fmt."""
    fmt = ExportFormat(fmt)
    if fmt is ExportFormat.TEXT:
        return export_text(document)
    if fmt is ExportFormat.HTML:
        return export_html(document, title).encode("utf-8")
    return export_pdf(document, title)
