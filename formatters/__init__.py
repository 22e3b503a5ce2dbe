"""Formatters package: one renderer per output format plus the shared tree builder."""

from typing import Dict, List, Optional, Type, Union

from models import OutputFormat
from .base import BaseFormatter, RenderError, NO_CONTENT_MESSAGE
from .csv_formatter import CsvFormatter
from .docx_formatter import DocxFormatter
from .json_formatter import JsonFormatter
from .markdown_formatter import MarkdownFormatter
from .numbered_formatter import NumberedFormatter
from .pdf_formatter import PdfFormatter
from .tree_builder import HEADING_SECTIONS, OUTLINE_SECTIONS, build_tree
from .tree_formatter import TreeFormatter


class FormatterFactory:
    """Lookup table from output format to renderer class."""

    FORMATTERS: Dict[OutputFormat, Type[BaseFormatter]] = {
        OutputFormat.JSON: JsonFormatter,
        OutputFormat.MARKDOWN: MarkdownFormatter,
        OutputFormat.CSV: CsvFormatter,
        OutputFormat.TREE: TreeFormatter,
        OutputFormat.NUMBERED: NumberedFormatter,
        OutputFormat.DOCX: DocxFormatter,
        OutputFormat.PDF: PdfFormatter,
    }

    @classmethod
    def create(cls, output_format: Union[OutputFormat, str], config: Optional[dict] = None, logger=None) -> BaseFormatter:
        """Create the renderer for a format or format identifier.

        Args:
            output_format: OutputFormat or identifier (aliases accepted)
            config: Configuration dictionary
            logger: Logger instance

        Returns:
            BaseFormatter instance

        Raises:
            ValueError: If the format is unknown
        """
        if not isinstance(output_format, OutputFormat):
            output_format = OutputFormat.parse(output_format)
        return cls.FORMATTERS[output_format](config, logger)

    @classmethod
    def create_all(cls, formats: List[OutputFormat], config: Optional[dict] = None) -> List[BaseFormatter]:
        return [cls.create(output_format, config) for output_format in formats]


__all__ = [
    'BaseFormatter',
    'CsvFormatter',
    'DocxFormatter',
    'FormatterFactory',
    'HEADING_SECTIONS',
    'JsonFormatter',
    'MarkdownFormatter',
    'NO_CONTENT_MESSAGE',
    'NumberedFormatter',
    'OUTLINE_SECTIONS',
    'PdfFormatter',
    'RenderError',
    'TreeFormatter',
    'build_tree',
]
