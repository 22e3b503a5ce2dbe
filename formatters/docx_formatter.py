"""Word (DOCX) rendering of the numbered outline."""

import io
import zipfile
from datetime import datetime, timezone

from dateutil.parser import isoparse
from docx import Document
from docx.shared import Pt

from models import OutputFormat, WorkspaceDocumentation
from .base import BaseFormatter
from .document_layout import (
    SUBTITLE_STYLE,
    SUMMARY_STYLE,
    TITLE_STYLE,
    LineStyle,
    build_header,
    style_outline
)
from .numbered_formatter import NumberedFormatter

# Earliest date a zip entry header can hold
ZIP_EPOCH = datetime(1980, 1, 1, tzinfo=timezone.utc)


def document_time(timestamp: str) -> datetime:
    """Parse the aggregate timestamp as an aware UTC datetime, clamped to the zip epoch."""
    try:
        value = isoparse(timestamp)
    except (ValueError, TypeError, OverflowError):
        return ZIP_EPOCH
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return max(value.astimezone(timezone.utc), ZIP_EPOCH)


def repack_archive(content: bytes, stamp: datetime) -> bytes:
    """Rewrite every zip entry with a fixed timestamp, keeping entry order."""
    date_time = stamp.timetuple()[:6]
    output = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(content)) as source, \
            zipfile.ZipFile(output, 'w', zipfile.ZIP_DEFLATED) as target:
        for entry in source.infolist():
            info = zipfile.ZipInfo(entry.filename, date_time=date_time)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o600 << 16
            target.writestr(info, source.read(entry.filename))
    return output.getvalue()


class DocxFormatter(BaseFormatter):
    """Writes the styled outline as flowing paragraphs in a Word document."""

    format_id = OutputFormat.DOCX
    file_extension = 'docx'

    def render(self, documentation: WorkspaceDocumentation) -> bytes:
        outline = NumberedFormatter(self.config).outline_lines(documentation)
        header = build_header(documentation)
        stamp = document_time(documentation.timestamp)

        document = Document()
        properties = document.core_properties
        properties.title = header.title
        properties.author = 'notion-workspace-mapper'
        properties.last_modified_by = 'notion-workspace-mapper'
        properties.revision = 1
        properties.created = stamp
        properties.modified = stamp

        self._add_paragraph(document, header.title, TITLE_STYLE)
        self._add_paragraph(document, header.generated_on, SUBTITLE_STYLE, italic=True)
        self._add_paragraph(document, header.summary, SUMMARY_STYLE)

        for line in style_outline(outline):
            paragraph = self._add_paragraph(document, None, line.style)
            if line.number:
                self._add_run(paragraph, f"{line.number} ", line.style)
            self._add_run(paragraph, line.text, line.style)

        buffer = io.BytesIO()
        document.save(buffer)
        return repack_archive(buffer.getvalue(), stamp)

    def _add_paragraph(self, document, text, style: LineStyle, italic: bool = False):
        paragraph = document.add_paragraph()
        paragraph.paragraph_format.space_before = Pt(style.space_before)
        paragraph.paragraph_format.space_after = Pt(style.space_after)
        if text is not None:
            run = self._add_run(paragraph, text, style)
            run.italic = italic
        return paragraph

    @staticmethod
    def _add_run(paragraph, text: str, style: LineStyle):
        run = paragraph.add_run(text)
        run.bold = style.bold
        run.font.size = Pt(style.size)
        return run
