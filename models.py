"""Data models for the Notion workspace mapping pipeline."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger('notion_workspace_mapper')


class ParentType(Enum):
    """Parent reference kinds as reported by the Notion API."""
    WORKSPACE = "workspace"
    PAGE = "page_id"
    DATABASE = "database_id"
    DATA_SOURCE = "data_source_id"
    BLOCK = "block_id"
    UNKNOWN = "unknown"


class NodeKind(Enum):
    """Kinds of node in the reconstructed workspace forest."""
    PAGE = "page"
    DATABASE = "database"
    DATA_SOURCE = "data-source"
    PROPERTY = "property"
    PROPERTIES_SECTION = "properties-section"
    ITEMS_SECTION = "items-section"
    PAGES_SECTION = "pages-section"
    VIEWS_SECTION = "views-section"

    @property
    def is_section(self) -> bool:
        """Whether this kind is a synthetic grouping node."""
        return self in (
            NodeKind.PROPERTIES_SECTION,
            NodeKind.ITEMS_SECTION,
            NodeKind.PAGES_SECTION,
            NodeKind.VIEWS_SECTION,
        )


class OutputFormat(Enum):
    """Output formats the generator can produce."""
    JSON = "json"
    MARKDOWN = "markdown"
    CSV = "csv"
    TREE = "tree"
    NUMBERED = "numbered"
    DOCX = "docx"
    PDF = "pdf"

    @classmethod
    def parse(cls, value: str) -> 'OutputFormat':
        """
        Resolve a format identifier, accepting the CLI aliases.

        Args:
            value: Format identifier (e.g. "markdown", "md", "numbered-txt")

        Returns:
            Matching OutputFormat

        Raises:
            ValueError: If the identifier is unknown
        """
        key = (value or '').strip().lower()
        key = FORMAT_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unsupported format: {value}. Must be one of: "
                f"{', '.join(f.value for f in cls)} or all"
            )

    @classmethod
    def expand(cls, values: Iterable[str]) -> List['OutputFormat']:
        """
        Expand a list of identifiers (comma lists and "all" allowed) into formats.

        Duplicates are dropped, first occurrence wins.
        """
        formats: List[OutputFormat] = []
        for value in values:
            for part in str(value).split(','):
                part = part.strip()
                if not part:
                    continue
                if part.lower() == 'all':
                    candidates = list(cls)
                else:
                    candidates = [cls.parse(part)]
                for candidate in candidates:
                    if candidate not in formats:
                        formats.append(candidate)
        return formats


FORMAT_ALIASES = {
    'md': 'markdown',
    'numbered-txt': 'numbered',
    'doc': 'docx',
}

DATABASE_ITEM_PARENTS = (ParentType.DATABASE.value, ParentType.DATA_SOURCE.value)


@dataclass
class ParentRef:
    """Parent reference of a page or database: `{type, id}`."""

    type: str = ParentType.WORKSPACE.value
    id: Optional[str] = None

    @property
    def is_database_item(self) -> bool:
        """True when the owner is a database or a data source."""
        return self.type in DATABASE_ITEM_PARENTS

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'id': self.id}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ParentRef':
        data = data or {}
        return cls(type=data.get('type') or ParentType.UNKNOWN.value, id=data.get('id'))


@dataclass
class Page:
    """A Notion page with the metadata the mapper renders."""

    id: str
    title: str = "Untitled"
    url: str = ""
    created_time: str = ""
    last_edited_time: str = ""
    parent: ParentRef = field(default_factory=ParentRef)
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize page to dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'url': self.url,
            'createdTime': self.created_time,
            'lastEditedTime': self.last_edited_time,
            'parent': self.parent.to_dict(),
            'properties': self.properties,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Page':
        """Deserialize page from dictionary."""
        return cls(
            id=data['id'],
            title=data.get('title') or "Untitled",
            url=data.get('url') or "",
            created_time=data.get('createdTime') or "",
            last_edited_time=data.get('lastEditedTime') or "",
            parent=ParentRef.from_dict(data.get('parent')),
            properties=data.get('properties') or {},
        )


@dataclass
class DatabaseProperty:
    """
    A schema property of a database or data source.

    `options` is the type-specific blob kept as fetched: a list of option
    dicts for select/multi_select/status, a dict for relation, formula,
    rollup and number, None otherwise.
    """

    id: str
    name: str
    type: str
    description: Optional[str] = None
    options: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'description': self.description,
            'options': self.options,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DatabaseProperty':
        return cls(
            id=data.get('id') or data.get('name') or '',
            name=data.get('name') or '',
            type=data.get('type') or 'unknown',
            description=data.get('description'),
            options=data.get('options'),
        )


@dataclass
class DataSource:
    """A data source owned by a database (2025-09-03 API shape)."""

    id: str
    name: str
    title: str
    database_id: str = ""
    description: Optional[str] = None
    properties: List[DatabaseProperty] = field(default_factory=list)
    pages: Optional[List[Page]] = None
    created_time: str = ""
    last_edited_time: str = ""

    @property
    def display_title(self) -> str:
        """Title, falling back to the reference name."""
        return self.title or self.name or "Untitled"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'title': self.title,
            'description': self.description,
            'properties': [prop.to_dict() for prop in self.properties],
            'pages': None if self.pages is None else [page.to_dict() for page in self.pages],
            'parent': {'type': ParentType.DATABASE.value, 'database_id': self.database_id},
            'createdTime': self.created_time,
            'lastEditedTime': self.last_edited_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DataSource':
        pages = data.get('pages')
        return cls(
            id=data['id'],
            name=data.get('name') or '',
            title=data.get('title') or '',
            database_id=(data.get('parent') or {}).get('database_id') or '',
            description=data.get('description'),
            properties=[DatabaseProperty.from_dict(p) for p in data.get('properties') or []],
            pages=None if pages is None else [Page.from_dict(p) for p in pages],
            created_time=data.get('createdTime') or '',
            last_edited_time=data.get('lastEditedTime') or '',
        )


@dataclass
class Database:
    """
    A Notion database.

    In the legacy shape the schema lives in `properties`; in the current
    shape it lives in the data sources and `properties` stays empty.
    """

    id: str
    title: str = "Untitled Database"
    url: str = ""
    description: Optional[str] = None
    created_time: str = ""
    last_edited_time: str = ""
    properties: List[DatabaseProperty] = field(default_factory=list)
    data_sources: List[DataSource] = field(default_factory=list)
    parent: ParentRef = field(default_factory=ParentRef)

    def property_count(self) -> int:
        """
        Count schema properties, treating the two shapes as exclusive.

        When both are populated the data-source schema wins and a
        data-integrity warning is logged.
        """
        data_source_count = sum(len(ds.properties) for ds in self.data_sources)
        if self.properties and data_source_count:
            logger.warning(
                f"Database '{self.title}' ({self.id}) carries both database-level and "
                f"data-source properties; counting only the {data_source_count} data-source properties"
            )
            return data_source_count
        return len(self.properties) + data_source_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'url': self.url,
            'description': self.description,
            'createdTime': self.created_time,
            'lastEditedTime': self.last_edited_time,
            'properties': [prop.to_dict() for prop in self.properties],
            'dataSources': [ds.to_dict() for ds in self.data_sources],
            'parent': self.parent.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Database':
        return cls(
            id=data['id'],
            title=data.get('title') or "Untitled Database",
            url=data.get('url') or '',
            description=data.get('description'),
            created_time=data.get('createdTime') or '',
            last_edited_time=data.get('lastEditedTime') or '',
            properties=[DatabaseProperty.from_dict(p) for p in data.get('properties') or []],
            data_sources=[DataSource.from_dict(ds) for ds in data.get('dataSources') or []],
            parent=ParentRef.from_dict(data.get('parent')),
        )


@dataclass
class WorkspaceSummary:
    """Summary counts reported at the top of every rendering."""

    total_pages: int = 0
    total_databases: int = 0
    total_properties: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalPages': self.total_pages,
            'totalDatabases': self.total_databases,
            'totalProperties': self.total_properties,
        }


@dataclass
class WorkspaceDocumentation:
    """
    Aggregate root for one generation request.

    Built once from freshly fetched entity lists and never mutated
    afterwards; every renderer reads the same instance.
    """

    timestamp: str
    workspace_name: str
    pages: List[Page] = field(default_factory=list)
    databases: List[Database] = field(default_factory=list)
    summary: WorkspaceSummary = field(default_factory=WorkspaceSummary)
    include_schema: bool = True
    include_items: bool = False

    @property
    def uses_data_sources(self) -> bool:
        """True when any database carries data sources (current API shape)."""
        return any(db.data_sources for db in self.databases)

    @property
    def is_empty(self) -> bool:
        return not self.pages and not self.databases

    def properties_display(self) -> str:
        """Total properties for summaries, or the not-included placeholder."""
        if not self.include_schema:
            return "not included"
        return str(self.summary.total_properties)

    def get_database(self, database_id: Optional[str]) -> Optional[Database]:
        """Find a database by ID."""
        for database in self.databases:
            if database.id == database_id:
                return database
        return None

    def get_data_source(self, data_source_id: Optional[str]) -> Optional[DataSource]:
        """Find a data source by ID across all databases."""
        for database in self.databases:
            for data_source in database.data_sources:
                if data_source.id == data_source_id:
                    return data_source
        return None

    def get_all_item_pages(self) -> List[Page]:
        """Item pages carried by data sources, in database order."""
        item_pages = []
        for database in self.databases:
            for data_source in database.data_sources:
                item_pages.extend(data_source.pages or [])
        return item_pages

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the aggregate with keys in model field order."""
        return {
            'timestamp': self.timestamp,
            'workspaceName': self.workspace_name,
            'pages': [page.to_dict() for page in self.pages],
            'databases': [db.to_dict() for db in self.databases],
            'summary': self.summary.to_dict(),
            'includeSchema': self.include_schema,
            'includeItems': self.include_items,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkspaceDocumentation':
        """Deserialize from a previous JSON export."""
        summary = data.get('summary') or {}
        return cls(
            timestamp=data.get('timestamp') or utc_timestamp(),
            workspace_name=data.get('workspaceName') or 'Notion Workspace',
            pages=[Page.from_dict(p) for p in data.get('pages') or []],
            databases=[Database.from_dict(db) for db in data.get('databases') or []],
            summary=WorkspaceSummary(
                total_pages=summary.get('totalPages', 0),
                total_databases=summary.get('totalDatabases', 0),
                total_properties=summary.get('totalProperties', 0),
            ),
            include_schema=bool(data.get('includeSchema', True)),
            include_items=bool(data.get('includeItems', False)),
        )


@dataclass
class TreeNode:
    """
    A node of the reconstructed workspace forest.

    `source` points at the entity the node was built from (Page, Database,
    DataSource or DatabaseProperty); section nodes have none.
    """

    id: str
    title: str
    kind: NodeKind
    children: List['TreeNode'] = field(default_factory=list)
    parent_id: Optional[str] = None
    source: Any = None

    def add_child(self, child: 'TreeNode') -> None:
        self.children.append(child)

    def iter_nodes(self):
        """Yield this node and all descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()


def utc_timestamp() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def assemble_documentation(
    workspace_name: str,
    pages: List[Page],
    databases: List[Database],
    include_schema: bool = True,
    include_items: bool = False,
    timestamp: Optional[str] = None
) -> WorkspaceDocumentation:
    """
    Build the immutable aggregate from fetched entity lists.

    Args:
        workspace_name: Display name of the workspace
        pages: All fetched pages (may include database item pages)
        databases: All fetched databases
        include_schema: Keep properties and data sources
        include_items: Keep database/data-source item pages
        timestamp: Optional generation timestamp (defaults to now)

    Returns:
        WorkspaceDocumentation with summary counts computed
    """
    if not include_schema:
        databases = [replace(db, properties=[], data_sources=[]) for db in databases]
    elif not include_items:
        databases = [
            replace(db, data_sources=[replace(ds, pages=None) for ds in db.data_sources])
            for db in databases
        ]
    else:
        databases = list(databases)

    uses_data_sources = any(db.data_sources for db in databases)

    if include_items and not uses_data_sources:
        # Legacy shape: item pages stay in the page list for re-homing
        filtered_pages = list(pages)
    else:
        filtered_pages = [page for page in pages if not page.parent.is_database_item]

    total_properties = sum(db.property_count() for db in databases)

    documentation = WorkspaceDocumentation(
        timestamp=timestamp or utc_timestamp(),
        workspace_name=workspace_name,
        pages=filtered_pages,
        databases=databases,
        summary=WorkspaceSummary(
            total_pages=len(filtered_pages),
            total_databases=len(databases),
            total_properties=total_properties,
        ),
        include_schema=include_schema,
        include_items=include_items,
    )

    logger.info(
        f"Assembled documentation for '{workspace_name}': {len(filtered_pages)} pages, "
        f"{len(databases)} databases, {total_properties} properties"
    )
    return documentation


__all__ = [
    'DataSource',
    'Database',
    'DatabaseProperty',
    'NodeKind',
    'OutputFormat',
    'Page',
    'ParentRef',
    'ParentType',
    'TreeNode',
    'WorkspaceDocumentation',
    'WorkspaceSummary',
    'assemble_documentation',
    'utc_timestamp',
]
