"""Fetcher that reads pages, databases and data sources from the Notion API."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional

from tqdm import tqdm

from models import (
    Database,
    DatabaseProperty,
    DataSource,
    Page,
    ParentRef,
    ParentType
)
from notion_api import AuthError, NotionApiError, NotionClient
from .base_fetcher import BaseFetcher, FetchError


PARENT_ID_KEYS = ('database_id', 'page_id', 'block_id', 'data_source_id', 'workspace')

# Guards against malformed block chains that never reach a page
MAX_BLOCK_DEPTH = 50


class NotionFetcher(BaseFetcher):
    """Fetches workspace structure through the Notion REST API."""

    def __init__(self, config: Dict[str, Any], logger=None, client: Optional[NotionClient] = None):
        """
        Initialize the fetcher.

        Args:
            config: Configuration dictionary with notion and advanced settings
            logger: Logger instance (optional)
            client: Pre-built client, mainly for tests
        """
        super().__init__(config, logger or logging.getLogger('notion_workspace_mapper.fetcher.notion'))

        notion_config = config.get('notion', {})
        advanced_config = config.get('advanced', {})

        self.client = client or NotionClient.from_config(config)
        self.api_version = notion_config.get('api_version', '2025-09-03')
        self.include_data_sources = notion_config.get('include_data_sources', True)
        self.max_workers = int(advanced_config.get('max_workers', 4))
        self.show_progress = advanced_config.get('show_progress', True)

        self._block_cache: Dict[str, Optional[str]] = {}
        self._block_cache_lock = threading.Lock()

    @property
    def uses_data_sources(self) -> bool:
        return self.api_version == '2025-09-03' and self.include_data_sources

    def test_connection(self) -> bool:
        return self.client.test_connection()

    def fetch_all_pages(self) -> List[Page]:
        """
        Fetch every page shared with the integration.

        Raises:
            AuthError: If the token is rejected
            FetchError: If the page search fails
        """
        self.logger.info("Fetching pages...")
        try:
            results = self.client.search('page')
        except AuthError:
            raise
        except NotionApiError as e:
            raise FetchError('pages', None, e.message)

        pages = [self._extract_page(raw) for raw in results if 'properties' in raw]
        self.logger.info(f"Fetched {len(pages)} pages")
        return pages

    def fetch_all_databases(
        self,
        include_schema: bool = True,
        include_items: bool = False,
        database_ids: Optional[List[str]] = None
    ) -> List[Database]:
        """
        Fetch databases, discovering them when no explicit IDs are given.

        Args:
            include_schema: Fetch properties and data sources
            include_items: Query data sources for their item pages
            database_ids: Optional explicit database IDs

        Returns:
            Databases in discovery order; unreachable ones are skipped

        Raises:
            AuthError: If the token is rejected
            FetchError: If database discovery fails
        """
        self.logger.info("Fetching databases...")

        def load(database_id: str) -> Optional[Database]:
            return self._fetch_database(database_id, include_schema, include_items)

        if database_ids:
            databases = []
            for database_id in database_ids:
                database = load(database_id)
                if database is not None:
                    databases.append(database)
        elif self.api_version == '2025-09-03':
            discovered = self._discover_database_ids()
            databases = [
                db for db in self._run_parallel(discovered, load, "Fetching databases")
                if db is not None
            ]
        else:
            try:
                results = self.client.search('database')
            except AuthError:
                raise
            except NotionApiError as e:
                raise FetchError('databases', None, e.message)
            databases = [
                self._extract_database(raw, include_schema, include_items)
                for raw in results if 'properties' in raw
            ]

        self.logger.info(f"Fetched {len(databases)} databases")
        return databases

    def _discover_database_ids(self) -> List[str]:
        """Collect parent database IDs from a data-source search, in result order."""
        try:
            results = self.client.search('data_source')
        except AuthError:
            raise
        except NotionApiError as e:
            raise FetchError('data sources', None, e.message)

        database_ids: List[str] = []
        for data_source in results:
            parent = data_source.get('parent') or {}
            database_id = parent.get('database_id')
            if parent.get('type') == 'database_id' and database_id and database_id not in database_ids:
                database_ids.append(database_id)

        self.logger.debug(f"Discovered {len(database_ids)} databases through data sources")
        return database_ids

    def _fetch_database(self, database_id: str, include_schema: bool, include_items: bool) -> Optional[Database]:
        try:
            raw = self.client.retrieve_database(database_id)
        except AuthError:
            raise
        except NotionApiError as e:
            self._record_issue(FetchError('database', database_id, e.message))
            return None
        return self._extract_database(raw, include_schema, include_items)

    def _extract_database(self, raw: Dict[str, Any], include_schema: bool, include_items: bool) -> Database:
        """Convert a raw database object into a Database."""
        properties = self._extract_properties(raw.get('properties')) if include_schema else []

        data_sources: List[DataSource] = []
        if include_schema and self.uses_data_sources:
            refs = raw.get('data_sources') or []
            loaded = self._run_parallel(
                refs,
                lambda ref: self._fetch_data_source(ref, raw['id'], include_items),
                f"Data sources of {raw['id'][:8]}",
                show_progress=False
            )
            data_sources = [ds for ds in loaded if ds is not None]

        return Database(
            id=raw['id'],
            title=extract_title(raw.get('title')) or "Untitled Database",
            url=raw.get('url') or '',
            description=extract_plain_text(raw.get('description')) or None,
            created_time=raw.get('created_time') or '',
            last_edited_time=raw.get('last_edited_time') or '',
            properties=properties,
            data_sources=data_sources,
            parent=self._extract_parent(raw.get('parent')),
        )

    def _fetch_data_source(self, ref: Dict[str, Any], database_id: str, include_items: bool) -> Optional[DataSource]:
        data_source_id = ref.get('id')
        try:
            raw = self.client.retrieve_data_source(data_source_id)
        except AuthError:
            raise
        except NotionApiError as e:
            self._record_issue(FetchError('data source', data_source_id, e.message))
            return None

        pages = None
        if include_items:
            try:
                pages = [
                    self._extract_page(item)
                    for item in self.client.query_data_source(data_source_id)
                    if 'properties' in item
                ]
            except AuthError:
                raise
            except NotionApiError as e:
                self._record_issue(FetchError('data source items', data_source_id, e.message))
                pages = []

        ref_name = ref.get('name') or ''
        parent = raw.get('parent') or {}
        return DataSource(
            id=raw.get('id') or data_source_id,
            name=ref_name,
            title=extract_title(raw.get('title')) or ref_name,
            database_id=parent.get('database_id') or database_id,
            description=extract_plain_text(raw.get('description')) or None,
            properties=self._extract_properties(raw.get('properties')),
            pages=pages,
            created_time=raw.get('created_time') or '',
            last_edited_time=raw.get('last_edited_time') or '',
        )

    def _extract_page(self, raw: Dict[str, Any]) -> Page:
        return Page(
            id=raw['id'],
            title=extract_title(raw.get('properties')) or "Untitled",
            url=raw.get('url') or '',
            created_time=raw.get('created_time') or '',
            last_edited_time=raw.get('last_edited_time') or '',
            parent=self._extract_parent(raw.get('parent')),
            properties=raw.get('properties') or {},
        )

    def _extract_parent(self, raw_parent: Optional[Dict[str, Any]]) -> ParentRef:
        """
        Build a ParentRef, resolving block parents to their containing page.

        Unresolvable block parents stay as block_id references.
        """
        raw_parent = raw_parent or {}
        parent_type = raw_parent.get('type') or ParentType.UNKNOWN.value

        parent_id = None
        for key in PARENT_ID_KEYS:
            value = raw_parent.get(key)
            if value:
                parent_id = value if isinstance(value, str) else None
                break

        if parent_type == ParentType.BLOCK.value and parent_id:
            page_id = self._resolve_block_to_page(parent_id)
            if page_id:
                return ParentRef(type=ParentType.PAGE.value, id=page_id)

        return ParentRef(type=parent_type, id=parent_id)

    def _resolve_block_to_page(self, block_id: str) -> Optional[str]:
        """Walk block parents up to the containing page, memoising every hop."""
        with self._block_cache_lock:
            if block_id in self._block_cache:
                return self._block_cache[block_id]

        visited: List[str] = []
        current = block_id
        page_id = None

        for _ in range(MAX_BLOCK_DEPTH):
            with self._block_cache_lock:
                if current in self._block_cache:
                    page_id = self._block_cache[current]
                    break
            visited.append(current)

            try:
                block = self.client.retrieve_block(current)
            except AuthError:
                raise
            except NotionApiError as e:
                self._record_issue(FetchError('block', current, e.message))
                break

            parent = block.get('parent') or {}
            if parent.get('type') == 'page_id' and parent.get('page_id'):
                page_id = parent['page_id']
                break
            if parent.get('type') == 'block_id' and parent.get('block_id'):
                current = parent['block_id']
                continue
            break

        with self._block_cache_lock:
            for visited_id in visited:
                self._block_cache[visited_id] = page_id

        if page_id is None:
            self.logger.debug(f"Block {block_id} could not be resolved to a page")
        return page_id

    def _extract_properties(self, raw_properties: Optional[Dict[str, Any]]) -> List[DatabaseProperty]:
        properties = []
        for name, prop in (raw_properties or {}).items():
            properties.append(DatabaseProperty(
                id=prop.get('id') or name,
                name=name,
                type=prop.get('type') or 'unknown',
                description=prop.get('description') or None,
                options=extract_property_options(prop),
            ))
        return properties

    def _run_parallel(
        self,
        items: List[Any],
        task: Callable[[Any], Any],
        description: str,
        show_progress: Optional[bool] = None
    ) -> List[Any]:
        """
        Run task over items on a thread pool, keeping input order in the results.

        AuthError from any task is re-raised once all tasks have finished.
        """
        if not items:
            return []

        if show_progress is None:
            show_progress = self.show_progress

        results: List[Any] = [None] * len(items)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(task, item): index
                for index, item in enumerate(items)
            }

            completed = as_completed(future_to_index)
            if show_progress:
                completed = tqdm(completed, desc=description, total=len(items), unit="item")

            auth_error = None
            for future in completed:
                try:
                    results[future_to_index[future]] = future.result()
                except AuthError as e:
                    auth_error = e

        if auth_error is not None:
            raise auth_error
        return results


def extract_plain_text(rich_text: Any) -> str:
    """Join the plain_text of a rich-text array."""
    if not isinstance(rich_text, list):
        return ''
    return ''.join(item.get('plain_text') or '' for item in rich_text if isinstance(item, dict)).strip()


def extract_title(title_source: Any) -> str:
    """
    Extract a title from a rich-text array or from a page's properties map.

    Returns an empty string when no title is found.
    """
    if isinstance(title_source, list):
        return extract_plain_text(title_source)

    if isinstance(title_source, dict):
        for prop in title_source.values():
            if isinstance(prop, dict) and prop.get('type') == 'title':
                return extract_plain_text(prop.get('title'))

    return ''


def extract_property_options(prop: Dict[str, Any]) -> Any:
    """Keep only the type-specific configuration each property type needs."""
    prop_type = prop.get('type')
    config = prop.get(prop_type) or {}

    if prop_type in ('select', 'multi_select', 'status'):
        return config.get('options') or []
    if prop_type == 'number':
        return {'format': config.get('format')}
    if prop_type == 'formula':
        return {'expression': config.get('expression')}
    if prop_type == 'rollup':
        return {
            'relation_property_name': config.get('relation_property_name'),
            'relation_property_id': config.get('relation_property_id'),
            'rollup_property_name': config.get('rollup_property_name'),
            'rollup_property_id': config.get('rollup_property_id'),
            'function': config.get('function'),
        }
    if prop_type == 'relation':
        return {
            'database_id': config.get('database_id'),
            'data_source_id': config.get('data_source_id'),
            'type': config.get('type'),
            'single_property': config.get('single_property'),
            'dual_property': config.get('dual_property'),
        }
    return None


__all__ = ['NotionFetcher', 'extract_property_options', 'extract_title']
