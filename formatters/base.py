"""Base formatter contract and helpers shared by every renderer."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from dateutil.parser import isoparse

from models import OutputFormat, TreeNode, WorkspaceDocumentation
from .tree_builder import OUTLINE_SECTIONS, SectionTitles, build_tree

NO_CONTENT_MESSAGE = "No accessible content found."
NO_CONTENT_HINT = "Make sure your pages and databases are shared with the integration."


class RenderError(Exception):
    """Raised when a renderer fails to produce its output."""

    def __init__(self, format_id: str, message: str):
        self.format_id = format_id
        self.message = message
        super().__init__(f"Failed to render {format_id}: {message}")


class BaseFormatter(ABC):
    """
    Abstract renderer for one output format.

    Subclasses set `format_id`, `file_extension` and optionally
    `file_suffix`, and implement `render()`.
    """

    format_id: OutputFormat
    file_extension: str = 'txt'
    file_suffix: str = ''

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger=None):
        """
        Initialize formatter.

        Args:
            config: Configuration dictionary (display and export sections are read)
            logger: Logger instance (optional)
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger(
            f'notion_workspace_mapper.formatters.{self.format_id.value}'
        )
        display = self.config.get('display', {})
        self.reverse_roots = display.get('reverse_root_order', True)
        self.sort_siblings = display.get('sort_tree_siblings', True)

    @abstractmethod
    def render(self, documentation: WorkspaceDocumentation) -> Union[str, bytes]:
        """
        Render the documentation.

        Args:
            documentation: Immutable workspace aggregate

        Returns:
            Text or binary content of the output file
        """
        pass

    def render_bytes(self, documentation: WorkspaceDocumentation) -> bytes:
        """
        Render and encode the output, wrapping any failure in RenderError.

        Raises:
            RenderError: If the renderer fails
        """
        try:
            content = self.render(documentation)
        except RenderError:
            raise
        except Exception as e:
            self.logger.error(f"Renderer {self.format_id.value} failed: {e}", exc_info=True)
            raise RenderError(self.format_id.value, str(e)) from e

        if isinstance(content, str):
            return content.encode('utf-8')
        return content

    def build_filename(self, base_filename: str) -> str:
        """Return `<base><suffix>.<ext>` for this format."""
        return f"{base_filename}{self.file_suffix}.{self.file_extension}"

    def build_forest(
        self,
        documentation: WorkspaceDocumentation,
        section_titles: SectionTitles = OUTLINE_SECTIONS
    ) -> List[TreeNode]:
        """Build a fresh forest for this render call."""
        return build_tree(documentation, section_titles=section_titles, reverse_roots=self.reverse_roots)


def format_timestamp(value: Optional[str]) -> str:
    """
    Format an ISO 8601 timestamp as `YYYY-MM-DD HH:MM:SS`.

    Unparseable values are returned unchanged.
    """
    if not value:
        return ''
    try:
        return isoparse(value).strftime('%Y-%m-%d %H:%M:%S')
    except (ValueError, TypeError, OverflowError):
        return str(value)


def single_line(text: str) -> str:
    """Collapse embedded newlines so a label fits on one output line."""
    return ' '.join(part.strip() for part in str(text).splitlines() if part.strip())


__all__ = [
    'BaseFormatter',
    'NO_CONTENT_HINT',
    'NO_CONTENT_MESSAGE',
    'RenderError',
    'format_timestamp',
    'single_line',
]
