"""Numbered outline renderer (`1`, `1.1`, `1.2.3` ...)."""

from typing import List

from models import OutputFormat, TreeNode, WorkspaceDocumentation
from .base import NO_CONTENT_MESSAGE, BaseFormatter, single_line


class NumberedFormatter(BaseFormatter):
    """
    Renders the forest as a dotted-index outline.

    The text is also the input of the page-layout renderers.
    """

    format_id = OutputFormat.NUMBERED
    file_extension = 'txt'
    file_suffix = '_numbered'

    def render(self, documentation: WorkspaceDocumentation) -> str:
        return '\n'.join(self.outline_lines(documentation)) + '\n'

    def outline_lines(self, documentation: WorkspaceDocumentation) -> List[str]:
        """Return the outline as a list of `<index> <label>` lines."""
        forest = self.build_forest(documentation)
        if not forest:
            return [NO_CONTENT_MESSAGE]

        lines: List[str] = []
        for index, root in enumerate(forest, start=1):
            self._number_node(root, [index], lines)
        return lines

    def _number_node(self, node: TreeNode, path: List[int], lines: List[str]) -> None:
        lines.append(f"{'.'.join(str(part) for part in path)} {single_line(node.title)}")
        for index, child in enumerate(node.children, start=1):
            self._number_node(child, path + [index], lines)
