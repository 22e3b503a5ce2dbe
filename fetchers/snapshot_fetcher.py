"""Fetcher that re-loads a previous JSON export for offline re-rendering."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from models import Database, Page, WorkspaceDocumentation, assemble_documentation
from .base_fetcher import BaseFetcher, FetchError


class SnapshotFetcher(BaseFetcher):
    """Reads workspace documentation from a JSON file written by the json formatter."""

    def __init__(self, config: Dict[str, Any], logger=None):
        """
        Initialize snapshot fetcher with configuration.

        Args:
            config: Configuration dictionary with source.snapshot_path
            logger: Logger instance (optional)
        """
        super().__init__(config, logger or logging.getLogger('notion_workspace_mapper.fetcher.snapshot'))

        snapshot_path = config.get('source', {}).get('snapshot_path')
        if not snapshot_path:
            raise ValueError("source.snapshot_path is required for snapshot mode")

        self.snapshot_path = Path(snapshot_path)
        if not self.snapshot_path.is_file():
            raise FileNotFoundError(f"Snapshot file not found: {self.snapshot_path}")

        self._snapshot: Optional[WorkspaceDocumentation] = None

    def load(self) -> WorkspaceDocumentation:
        """
        Parse the snapshot file once and cache the result.

        Raises:
            FetchError: If the file is not a valid export
        """
        if self._snapshot is None:
            try:
                with open(self.snapshot_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self._snapshot = WorkspaceDocumentation.from_dict(data)
            except (ValueError, KeyError, TypeError) as e:
                raise FetchError('snapshot', str(self.snapshot_path), f"Invalid snapshot file: {e}")

            self.logger.info(
                f"Loaded snapshot '{self._snapshot.workspace_name}' from {self.snapshot_path} "
                f"({len(self._snapshot.pages)} pages, {len(self._snapshot.databases)} databases)"
            )
        return self._snapshot

    def fetch_all_pages(self) -> List[Page]:
        return list(self.load().pages)

    def fetch_all_databases(
        self,
        include_schema: bool = True,
        include_items: bool = False,
        database_ids: Optional[List[str]] = None
    ) -> List[Database]:
        databases = self.load().databases
        if database_ids:
            databases = [db for db in databases if db.id in database_ids]
        return list(databases)

    def build_documentation(
        self,
        workspace_name: Optional[str],
        include_schema: bool = True,
        include_items: bool = False,
        database_ids: Optional[List[str]] = None
    ) -> WorkspaceDocumentation:
        """
        Re-assemble the snapshot, narrowing it by the requested flags.

        A snapshot taken without schema or items cannot gain them back, and
        the original generation timestamp is kept.
        """
        snapshot = self.load()
        effective_schema = include_schema and snapshot.include_schema
        effective_items = include_items and snapshot.include_items

        if include_schema and not snapshot.include_schema:
            self.logger.warning("Snapshot was exported without schema; properties are unavailable")
        if include_items and not snapshot.include_items:
            self.logger.warning("Snapshot was exported without items; item pages are unavailable")

        return assemble_documentation(
            workspace_name or snapshot.workspace_name,
            self.fetch_all_pages(),
            self.fetch_all_databases(effective_schema, effective_items, database_ids),
            include_schema=effective_schema,
            include_items=effective_items,
            timestamp=snapshot.timestamp,
        )


__all__ = ['SnapshotFetcher']
