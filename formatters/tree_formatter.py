"""ASCII tree renderer with box-drawing connectors and per-kind icons."""

from typing import List

from models import NodeKind, OutputFormat, TreeNode, WorkspaceDocumentation
from .base import NO_CONTENT_HINT, NO_CONTENT_MESSAGE, BaseFormatter, format_timestamp, single_line

ICONS = {
    NodeKind.PAGE: '📄',
    NodeKind.DATABASE: '🗄️',
    NodeKind.DATA_SOURCE: '🗃️',
    NodeKind.PROPERTY: '🔧',
    NodeKind.PROPERTIES_SECTION: '📋',
    NodeKind.ITEMS_SECTION: '📁',
    NodeKind.PAGES_SECTION: '📚',
}
DEFAULT_ICON = '📝'

SECTION_RANK = {
    NodeKind.PROPERTIES_SECTION: 0,
    NodeKind.ITEMS_SECTION: 1,
    NodeKind.PAGES_SECTION: 1,
}
KIND_RANK = {
    NodeKind.PAGE: 0,
    NodeKind.DATABASE: 1,
}


def sibling_sort_key(node: TreeNode):
    """Properties section first, then item sections, pages before databases, then title."""
    return (
        SECTION_RANK.get(node.kind, 2),
        KIND_RANK.get(node.kind, 0),
        node.title.casefold(),
        node.title,
    )


class TreeFormatter(BaseFormatter):
    """Renders the forest as an indented ASCII tree."""

    format_id = OutputFormat.TREE
    file_extension = 'txt'
    file_suffix = '_tree'

    def render(self, documentation: WorkspaceDocumentation) -> str:
        lines: List[str] = [
            '# Notion Workspace Tree Structure',
            '',
            f"Generated on: {format_timestamp(documentation.timestamp)}",
            '',
            '## Summary',
            f"Pages: {documentation.summary.total_pages}",
            f"Databases: {documentation.summary.total_databases}",
            f"Properties: {documentation.properties_display()}",
            '',
            '## Workspace Structure',
            '',
        ]

        forest = self._ordered(self.build_forest(documentation))
        if not forest:
            lines.append(NO_CONTENT_MESSAGE)
            lines.append(NO_CONTENT_HINT)
        else:
            for index, root in enumerate(forest):
                self._render_node(root, '', index == len(forest) - 1, lines)

        return '\n'.join(lines) + '\n'

    def _ordered(self, nodes: List[TreeNode]) -> List[TreeNode]:
        if not self.sort_siblings:
            return list(nodes)
        return sorted(nodes, key=sibling_sort_key)

    def _render_node(self, node: TreeNode, prefix: str, is_last: bool, lines: List[str]) -> None:
        connector = '└── ' if is_last else '├── '
        icon = ICONS.get(node.kind, DEFAULT_ICON)
        lines.append(f"{prefix}{connector}{icon} {single_line(node.title)}")

        children = self._ordered(node.children)
        child_prefix = prefix + ('    ' if is_last else '│   ')
        for index, child in enumerate(children):
            self._render_node(child, child_prefix, index == len(children) - 1, lines)
