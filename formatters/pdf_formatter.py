"""Paginated PDF rendering of the numbered outline."""

import io

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from models import OutputFormat, WorkspaceDocumentation
from .base import BaseFormatter
from .document_layout import (
    SUBTITLE_STYLE,
    SUMMARY_STYLE,
    TITLE_STYLE,
    LineStyle,
    build_header,
    style_outline,
    truncate
)
from .numbered_formatter import NumberedFormatter

MARGIN = 20 * mm
LINE_GAP = 0.35


class PdfFormatter(BaseFormatter):
    """Writes the styled outline to A4 pages with the standard Helvetica fonts."""

    format_id = OutputFormat.PDF
    file_extension = 'pdf'

    def __init__(self, config=None, logger=None):
        super().__init__(config, logger)
        export = self.config.get('export', {})
        self.compress = export.get('pdf_compression', True)
        self.max_line_length = export.get('pdf_max_line_length', 120)

    def render(self, documentation: WorkspaceDocumentation) -> bytes:
        outline = NumberedFormatter(self.config).outline_lines(documentation)
        header = build_header(documentation)

        buffer = io.BytesIO()
        pdf = canvas.Canvas(
            buffer,
            pagesize=A4,
            pageCompression=1 if self.compress else 0,
            invariant=1,
        )
        pdf.setTitle(header.title)
        pdf.setAuthor('notion-workspace-mapper')

        writer = _PageWriter(pdf)
        writer.draw(header.title, TITLE_STYLE)
        writer.draw(header.generated_on, SUBTITLE_STYLE)
        writer.draw(header.summary, SUMMARY_STYLE)

        for line in style_outline(outline):
            writer.draw(truncate(line.display_text, self.max_line_length), line.style)

        pdf.save()
        self.logger.debug(f"Rendered PDF with {writer.pages} page(s)")
        return buffer.getvalue()


class _PageWriter:
    """Tracks the vertical cursor and starts a new page when the bottom margin is reached."""

    def __init__(self, pdf: canvas.Canvas):
        self.pdf = pdf
        self.page_height = A4[1]
        self.y = self.page_height - MARGIN
        self.pages = 1

    def draw(self, text: str, style: LineStyle) -> None:
        self.y -= style.space_before
        if self.y - style.size < MARGIN:
            self.pdf.showPage()
            self.pages += 1
            self.y = self.page_height - MARGIN

        self.y -= style.size
        self.pdf.setFont('Helvetica-Bold' if style.bold else 'Helvetica', style.size)
        self.pdf.drawString(MARGIN, self.y, to_pdf_text(text))
        self.y -= style.size * LINE_GAP + style.space_after


def to_pdf_text(text: str) -> str:
    """Map text onto the cp1252 repertoire of the standard PDF fonts."""
    text = text.replace('→', '->')
    return text.encode('cp1252', errors='replace').decode('cp1252')
