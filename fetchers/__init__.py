"""Fetchers package for retrieving Notion workspace structure via API or a JSON snapshot."""

from .base_fetcher import BaseFetcher, FetchError, FetchIssue
from .notion_fetcher import NotionFetcher
from .snapshot_fetcher import SnapshotFetcher


class FetcherFactory:
    """Factory for creating fetcher instances based on configuration."""

    @staticmethod
    def create_fetcher(config: dict, logger=None) -> BaseFetcher:
        """Create appropriate fetcher based on config mode.

        Args:
            config: Configuration dictionary
            logger: Logger instance

        Returns:
            BaseFetcher instance (NotionFetcher or SnapshotFetcher)

        Raises:
            ValueError: If mode is invalid
        """
        mode = config.get('source', {}).get('mode', 'api')

        if mode == 'api':
            return NotionFetcher(config, logger)
        elif mode == 'snapshot':
            return SnapshotFetcher(config, logger)
        else:
            raise ValueError(f"Invalid source mode: {mode}. Must be 'api' or 'snapshot'.")


__all__ = [
    'BaseFetcher',
    'FetchError',
    'FetchIssue',
    'NotionFetcher',
    'SnapshotFetcher',
    'FetcherFactory'
]
