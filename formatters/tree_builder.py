"""
Reconstructs the workspace forest from flat page and database lists.

Handles both API shapes: the legacy one, where schema and item pages hang
directly off a database, and the current one, where each database owns data
sources that carry their own schema and items.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from models import (
    DatabaseProperty,
    NodeKind,
    Page,
    ParentType,
    TreeNode,
    WorkspaceDocumentation
)
from .property_formatter import format_property

logger = logging.getLogger('notion_workspace_mapper.formatters.tree_builder')


@dataclass(frozen=True)
class SectionTitles:
    """Titles of the synthetic section nodes."""

    properties: str
    items: str
    data_source_properties: str = "Properties"
    data_source_pages: str = "Data source pages"


# Tree, numbered and page-layout outputs
OUTLINE_SECTIONS = SectionTitles(properties="properties:", items="items:")

# Markdown headings
HEADING_SECTIONS = SectionTitles(properties="Properties", items="Database pages")


def page_label(page: Page) -> str:
    return f"{page.title or 'Untitled Page'} page"


def build_tree(
    documentation: WorkspaceDocumentation,
    section_titles: SectionTitles = OUTLINE_SECTIONS,
    reverse_roots: bool = True
) -> List[TreeNode]:
    """
    Build the forest of typed nodes for a documentation aggregate.

    Never raises. Unresolvable, self-referencing or cycle-closing parents
    turn the node into a root; duplicate ids keep the first node.

    Args:
        documentation: Workspace aggregate (not modified)
        section_titles: Titles for the synthetic section nodes
        reverse_roots: Emit roots last-discovered first

    Returns:
        Ordered list of root nodes
    """
    nodes: Dict[str, TreeNode] = {}
    linkable: List[TreeNode] = []
    # child id -> parent entity id, used for cycle detection
    attached: Dict[str, str] = {}
    legacy_items: Dict[str, TreeNode] = {}

    def register(node: TreeNode) -> bool:
        if node.id in nodes:
            logger.warning(f"Duplicate id {node.id} ('{node.title}') ignored; keeping '{nodes[node.id].title}'")
            return False
        nodes[node.id] = node
        return True

    uses_data_sources = documentation.uses_data_sources
    skip_item_pages = uses_data_sources or not documentation.include_items

    for page in documentation.pages:
        if skip_item_pages and page.parent.is_database_item:
            continue
        node = TreeNode(page.id, page_label(page), NodeKind.PAGE, parent_id=page.parent.id, source=page)
        if register(node):
            linkable.append(node)

    for database in documentation.databases:
        db_node = TreeNode(
            database.id,
            f"{database.title or 'Untitled Database'} database",
            NodeKind.DATABASE,
            parent_id=database.parent.id,
            source=database,
        )
        if not register(db_node):
            continue
        linkable.append(db_node)

        if database.data_sources:
            for data_source in database.data_sources:
                ds_node = TreeNode(
                    data_source.id,
                    f"{data_source.display_title} data source",
                    NodeKind.DATA_SOURCE,
                    parent_id=database.id,
                    source=data_source,
                )
                if not register(ds_node):
                    continue
                db_node.add_child(ds_node)
                attached[ds_node.id] = database.id

                if documentation.include_schema and data_source.properties:
                    ds_node.add_child(_properties_section(
                        data_source.id,
                        section_titles.data_source_properties,
                        data_source.properties,
                        documentation,
                    ))

                if documentation.include_items and data_source.pages:
                    pages_node = TreeNode(
                        f"{data_source.id}-pages",
                        section_titles.data_source_pages,
                        NodeKind.PAGES_SECTION,
                        parent_id=data_source.id,
                    )
                    for item in data_source.pages:
                        item_node = TreeNode(
                            item.id, page_label(item), NodeKind.PAGE,
                            parent_id=pages_node.id, source=item,
                        )
                        if register(item_node):
                            pages_node.add_child(item_node)
                            attached[item_node.id] = data_source.id
                    ds_node.add_child(pages_node)
        else:
            if database.properties:
                db_node.add_child(_properties_section(
                    database.id,
                    section_titles.properties,
                    database.properties,
                    documentation,
                ))

            if documentation.include_items and not uses_data_sources:
                items_node = TreeNode(
                    f"{database.id}-items",
                    section_titles.items,
                    NodeKind.ITEMS_SECTION,
                    parent_id=database.id,
                )
                db_node.add_child(items_node)
                legacy_items[database.id] = items_node

    roots: List[TreeNode] = []
    for node in linkable:
        target, owner_id = _resolve_parent(node, nodes, legacy_items)

        if target is None:
            roots.append(node)
            continue

        if _closes_cycle(node.id, owner_id, attached):
            logger.warning(
                f"Parent cycle detected at '{node.title}' ({node.id}); placing it at the root"
            )
            roots.append(node)
            continue

        target.add_child(node)
        attached[node.id] = owner_id

    if reverse_roots:
        roots.reverse()

    logger.debug(f"Built forest with {len(roots)} roots from {len(nodes)} entity nodes")
    return roots


def _properties_section(
    owner_id: str,
    title: str,
    properties: List[DatabaseProperty],
    documentation: WorkspaceDocumentation
) -> TreeNode:
    """Section of property nodes, last-defined property first."""
    section = TreeNode(
        f"{owner_id}-properties",
        title,
        NodeKind.PROPERTIES_SECTION,
        parent_id=owner_id,
    )
    # reversed() leaves the entity's own list untouched
    for prop in reversed(properties):
        section.add_child(TreeNode(
            f"{owner_id}:{prop.id}",
            format_property(prop, documentation.databases),
            NodeKind.PROPERTY,
            parent_id=section.id,
            source=prop,
        ))
    return section


def _resolve_parent(
    node: TreeNode,
    nodes: Dict[str, TreeNode],
    legacy_items: Dict[str, TreeNode]
):
    """
    Find the node a page or database attaches to.

    Returns:
        Tuple of (target node or None, id of the entity that owns the target)
    """
    parent_id = node.parent_id
    if not parent_id or parent_id == node.id:
        return None, None

    source = node.source
    if (
        node.kind == NodeKind.PAGE
        and parent_id in legacy_items
        and source.parent.type == ParentType.DATABASE.value
    ):
        return legacy_items[parent_id], parent_id

    target = nodes.get(parent_id)
    if target is None:
        return None, None
    return target, target.id


def _closes_cycle(child_id: str, owner_id: Optional[str], attached: Dict[str, str]) -> bool:
    seen = set()
    current = owner_id
    while current is not None and current not in seen:
        if current == child_id:
            return True
        seen.add(current)
        current = attached.get(current)
    return False


__all__ = [
    'HEADING_SECTIONS',
    'OUTLINE_SECTIONS',
    'SectionTitles',
    'build_tree',
    'page_label',
]
