"""
Styled intermediate for the page-layout outputs (PDF and DOCX).

Both backends consume the numbered outline, re-parse each line's dotted
index to recover its depth and pick a style from the line's content.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from models import WorkspaceDocumentation
from .base import format_timestamp


@dataclass(frozen=True)
class LineStyle:
    """Font size and paragraph spacing, all in points."""

    size: float
    bold: bool = False
    space_before: float = 0
    space_after: float = 0


@dataclass
class StyledLine:
    """One outline line with its resolved style."""

    number: str
    text: str
    level: int
    style: LineStyle

    @property
    def display_text(self) -> str:
        return f"{self.number} {self.text}" if self.number else self.text


PAGE_STYLES = {
    1: LineStyle(20, True, 10, 5),
    2: LineStyle(14, True, 10, 5),
    3: LineStyle(12, True, 5, 2),
}
DEEP_PAGE_STYLE = LineStyle(10, True, 2, 1)
SECTION_PAGE_STYLE = LineStyle(9, True, 1, 0)
CONTAINER_STYLE = LineStyle(12, True, 5, 2)
SECTION_STYLE = LineStyle(10, True, 2, 0)
DEFAULT_STYLE = LineStyle(8)

TITLE_STYLE = LineStyle(16, True, 0, 8)
SUBTITLE_STYLE = LineStyle(10, False, 0, 4)
SUMMARY_STYLE = LineStyle(10, True, 0, 10)

# Display forms of the literal section titles
SECTION_TITLES: Dict[str, str] = {
    'properties:': 'Properties',
    'items:': 'Items',
    'Properties': 'Properties',
    'Database pages': 'Database pages',
    'Data source pages': 'Data source pages',
    'Pages': 'Pages',
}
ITEM_SECTION_TITLES = {'items:', 'Database pages', 'Data source pages', 'Pages'}

OUTLINE_LINE_PATTERN = re.compile(r'^(\d+(?:\.\d+)*)\s+(.*)$')


@dataclass
class DocumentHeader:
    title: str
    generated_on: str
    summary: str


def build_header(documentation: WorkspaceDocumentation) -> DocumentHeader:
    """Title, generation time and summary shown above the outline."""
    summary = documentation.summary
    return DocumentHeader(
        title=f"{documentation.workspace_name or 'Notion Workspace'} Workspace - Mapping",
        generated_on=f"Generated on: {format_timestamp(documentation.timestamp)}",
        summary=(
            f"Pages: {summary.total_pages} | Databases: {summary.total_databases} | "
            f"Properties: {documentation.properties_display()}"
        ),
    )


def style_outline(lines: List[str]) -> List[StyledLine]:
    """
    Parse numbered outline lines into styled lines.

    Lines without a dotted index (such as the no-content message) get the
    default style. Blank lines are dropped.
    """
    styled: List[StyledLine] = []
    # level -> raw text of the most recent line at that level
    ancestors: Dict[int, str] = {}

    for line in lines:
        if not line.strip():
            continue

        match = OUTLINE_LINE_PATTERN.match(line)
        if not match:
            styled.append(StyledLine('', line.strip(), 0, DEFAULT_STYLE))
            continue

        number, text = match.group(1), match.group(2)
        level = number.count('.') + 1
        ancestors[level] = text
        for deeper in [key for key in ancestors if key > level]:
            del ancestors[deeper]

        in_item_section = any(
            ancestors[depth] in ITEM_SECTION_TITLES
            for depth in ancestors if depth < level
        )
        style, display = _style_for(text, level, in_item_section)
        styled.append(StyledLine(number, display, level, style))

    return styled


def _style_for(text: str, level: int, in_item_section: bool):
    if text.endswith(' page'):
        if in_item_section:
            return SECTION_PAGE_STYLE, text
        return PAGE_STYLES.get(level, DEEP_PAGE_STYLE), text
    if text.endswith(' database') or text.endswith(' data source'):
        return CONTAINER_STYLE, text
    if text in SECTION_TITLES:
        return SECTION_STYLE, SECTION_TITLES[text]
    return DEFAULT_STYLE, text


def truncate(text: str, max_length: Optional[int]) -> str:
    """Cut text longer than max_length, ending it with an ellipsis."""
    if max_length and len(text) > max_length:
        return text[:max_length - 3] + '...'
    return text


__all__ = [
    'DocumentHeader',
    'LineStyle',
    'StyledLine',
    'build_header',
    'style_outline',
    'truncate',
]
