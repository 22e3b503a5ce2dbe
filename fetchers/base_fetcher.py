"""Abstract base fetcher interface and common functionality."""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from models import Database, Page, WorkspaceDocumentation, assemble_documentation

DEFAULT_WORKSPACE_NAME = 'Notion Workspace'


class FetchError(Exception):
    """Raised when a workspace entity cannot be listed or retrieved."""

    def __init__(self, entity_type: str, entity_id: Optional[str], message: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.message = message
        target = f"{entity_type} {entity_id}" if entity_id else entity_type
        super().__init__(f"Failed to fetch {target}: {message}")


@dataclass
class FetchIssue:
    """A skipped entity recorded during a fetch."""

    entity_type: str
    entity_id: Optional[str]
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'error': self.error,
        }


class BaseFetcher(ABC):
    """Abstract base class for workspace fetchers."""

    def __init__(self, config: Dict[str, Any], logger=None):
        """
        Initialize base fetcher with configuration and logger.

        Args:
            config: Configuration dictionary
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config
        self.logger = logger or logging.getLogger('notion_workspace_mapper.fetcher')
        self.skipped: List[FetchIssue] = []
        self._skipped_lock = threading.Lock()

    def test_connection(self) -> bool:
        """Check that the source is reachable. Offline sources always are."""
        return True

    @abstractmethod
    def fetch_all_pages(self) -> List[Page]:
        """
        Fetch every page visible to the integration.

        Returns:
            List of Page objects, item pages included
        """
        pass

    @abstractmethod
    def fetch_all_databases(
        self,
        include_schema: bool = True,
        include_items: bool = False,
        database_ids: Optional[List[str]] = None
    ) -> List[Database]:
        """
        Fetch databases with their schema and data sources.

        Args:
            include_schema: Fetch properties and data sources
            include_items: Query data sources for their item pages
            database_ids: Optional explicit database IDs

        Returns:
            List of Database objects
        """
        pass

    def build_documentation(
        self,
        workspace_name: Optional[str],
        include_schema: bool = True,
        include_items: bool = False,
        database_ids: Optional[List[str]] = None
    ) -> WorkspaceDocumentation:
        """
        Fetch pages and databases and assemble the documentation aggregate.

        Args:
            workspace_name: Display name of the workspace (defaults to "Notion Workspace")
            include_schema: Include properties and data sources
            include_items: Include database item pages
            database_ids: Optional explicit database IDs

        Returns:
            Populated WorkspaceDocumentation
        """
        pages = self.fetch_all_pages()
        databases = self.fetch_all_databases(include_schema, include_items, database_ids)

        if self.skipped:
            self.logger.warning(f"{len(self.skipped)} entities were skipped during fetch")

        return assemble_documentation(
            workspace_name or DEFAULT_WORKSPACE_NAME,
            pages,
            databases,
            include_schema=include_schema,
            include_items=include_items,
        )

    def _record_issue(self, error: FetchError) -> None:
        """Log a per-entity failure and remember it for the report."""
        self.logger.warning(str(error))
        with self._skipped_lock:
            self.skipped.append(FetchIssue(error.entity_type, error.entity_id, error.message))


__all__ = ['BaseFetcher', 'DEFAULT_WORKSPACE_NAME', 'FetchError', 'FetchIssue']
