"""Markdown renderer: one heading per node, depth-first over the forest."""

from typing import List

from models import Database, DataSource, NodeKind, OutputFormat, TreeNode, WorkspaceDocumentation
from .base import NO_CONTENT_HINT, NO_CONTENT_MESSAGE, BaseFormatter, format_timestamp, single_line
from .property_formatter import describe_property
from .tree_builder import HEADING_SECTIONS


class MarkdownFormatter(BaseFormatter):
    """
    Renders the workspace as a Markdown document.

    Heading level equals node depth. Page, database and data source nodes get
    a metadata bullet list; section nodes only a heading; property nodes a
    single bullet.
    """

    format_id = OutputFormat.MARKDOWN
    file_extension = 'md'

    def render(self, documentation: WorkspaceDocumentation) -> str:
        lines: List[str] = [
            '# Notion Workspace Mapping',
            '',
            f"Generated on: {format_timestamp(documentation.timestamp)}",
            '',
            '## Summary',
            '',
            f"- **Workspace:** {documentation.workspace_name}",
            f"- **Total Pages:** {documentation.summary.total_pages}",
            f"- **Total Databases:** {documentation.summary.total_databases}",
            f"- **Total Properties:** {documentation.properties_display()}",
            '',
            '---',
            '',
        ]

        forest = self.build_forest(documentation, HEADING_SECTIONS)
        if not forest:
            lines.extend([NO_CONTENT_MESSAGE, '', NO_CONTENT_HINT, ''])
            return '\n'.join(lines)

        for root in forest:
            self._render_node(root, 1, documentation, lines)

        return '\n'.join(lines)

    def _render_node(self, node: TreeNode, depth: int, documentation: WorkspaceDocumentation, lines: List[str]) -> None:
        if node.kind == NodeKind.PROPERTY:
            lines.append(self._property_bullet(node, documentation))
            return

        lines.append(f"{'#' * depth} {single_line(node.title)}")
        lines.append('')

        if node.kind == NodeKind.PAGE:
            lines.extend(self._page_metadata(node))
        elif node.kind == NodeKind.DATABASE:
            lines.extend(self._database_metadata(node.source))
        elif node.kind == NodeKind.DATA_SOURCE:
            lines.extend(self._data_source_metadata(node.source))

        for child in node.children:
            self._render_node(child, depth + 1, documentation, lines)

        if node.kind == NodeKind.PROPERTIES_SECTION and node.children:
            lines.append('')

    def _page_metadata(self, node: TreeNode) -> List[str]:
        page = node.source
        bullets = [f"- **ID:** `{page.id}`"]
        if page.url:
            bullets.append(f"- **URL:** [Open in Notion]({page.url})")
        bullets.append(f"- **Created:** {format_timestamp(page.created_time)}")
        bullets.append(f"- **Last Edited:** {format_timestamp(page.last_edited_time)}")
        bullets.append(f"- **Parent Type:** {page.parent.type}")
        if page.parent.id:
            bullets.append(f"- **Parent ID:** `{page.parent.id}`")
        bullets.append('')
        return bullets

    def _database_metadata(self, database: Database) -> List[str]:
        bullets = [f"- **ID:** `{database.id}`"]
        if database.url:
            bullets.append(f"- **URL:** [Open in Notion]({database.url})")
        if database.description:
            bullets.append(f"- **Description:** {database.description}")
        bullets.append(f"- **Created:** {format_timestamp(database.created_time)}")
        bullets.append(f"- **Last Edited:** {format_timestamp(database.last_edited_time)}")
        bullets.append(f"- **Parent Type:** {database.parent.type}")
        if database.parent.id:
            bullets.append(f"- **Parent ID:** `{database.parent.id}`")
        bullets.append('')
        return bullets

    def _data_source_metadata(self, data_source: DataSource) -> List[str]:
        bullets = [f"- **ID:** `{data_source.id}`"]
        if data_source.name and data_source.name != data_source.title:
            bullets.append(f"- **Name:** {data_source.name}")
        if data_source.description:
            bullets.append(f"- **Description:** {data_source.description}")
        bullets.append(f"- **Created:** {format_timestamp(data_source.created_time)}")
        bullets.append(f"- **Last Edited:** {format_timestamp(data_source.last_edited_time)}")
        bullets.append(f"- **Database ID:** `{data_source.database_id}`")
        bullets.append('')
        return bullets

    @staticmethod
    def _property_bullet(node: TreeNode, documentation: WorkspaceDocumentation) -> str:
        fields = describe_property(node.source, documentation.databases)
        parts = [fields.type]
        if fields.detail:
            parts.append(fields.detail)
        if fields.description:
            parts.append(fields.description)
        return f"- **{fields.name}** (`{fields.id}`): {', '.join(parts)}"
