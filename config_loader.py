"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict, List, Optional

import yaml

from models import OutputFormat


DEFAULT_CONFIG: Dict[str, Any] = {
    'notion': {
        'api_key': None,
        'api_version': '2025-09-03',
        'base_url': 'https://api.notion.com/v1',
        'database_ids': [],
        'include_data_sources': True,
        'verify_ssl': True,
    },
    'source': {
        'mode': 'api',
        'snapshot_path': None,
    },
    'generation': {
        'workspace_name': None,
        'formats': ['json', 'markdown'],
        'include_schema': True,
        'include_items': False,
    },
    'export': {
        'output_directory': './output',
        'marker': 'NWS',
        'pdf_compression': True,
        'pdf_max_line_length': 120,
    },
    'display': {
        'reverse_root_order': True,
        'sort_tree_siblings': True,
    },
    'advanced': {
        'request_timeout': 30,
        'max_retries': 3,
        'retry_backoff_factor': 2.0,
        'max_workers': 4,
        'page_size': 100,
        'show_progress': True,
    },
    'logging': {
        'level': None,
        'file': None,
    },
}


SUPPORTED_API_VERSIONS = ('2025-09-03', '2022-06-28')

PLACEHOLDER_TOKENS = {'your_notion_api_key_here', 'secret_xxx', 'ntn_xxx'}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')
    TOKEN_ENV_VAR = 'NOTION_API_KEY'

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values missing from the file fall back to DEFAULT_CONFIG. Without a
        path only the defaults (plus the token from the environment) apply.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        config_data: Dict[str, Any] = {}

        if config_path:
            if not os.path.exists(config_path):
                raise FileNotFoundError(f"Configuration file not found: {config_path}")

            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

            if not isinstance(config_data, dict):
                raise ValueError("Configuration file must contain a dictionary")

            config_data = cls._substitute_env_vars_recursive(config_data)

        merged = cls._deep_merge(DEFAULT_CONFIG, config_data)

        api_key = get_nested(merged, 'notion.api_key')
        if not api_key or (isinstance(api_key, str) and '${' in api_key):
            env_token = os.getenv(cls.TOKEN_ENV_VAR)
            if env_token:
                merged['notion']['api_key'] = env_token

        return merged

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        mode = get_nested(config, 'source.mode', 'api')
        if mode not in ['api', 'snapshot']:
            raise ValueError("source.mode must be 'api' or 'snapshot'")

        api_version = get_nested(config, 'notion.api_version')
        if api_version not in SUPPORTED_API_VERSIONS:
            raise ValueError(
                f"notion.api_version must be one of: {', '.join(SUPPORTED_API_VERSIONS)}"
            )

        if mode == 'api':
            cls._validate_required_field(config, 'notion.api_key')
            if get_nested(config, 'notion.api_key') in PLACEHOLDER_TOKENS:
                raise ValueError(
                    "notion.api_key still holds the example placeholder. "
                    f"Set the {cls.TOKEN_ENV_VAR} environment variable or provide a real token."
                )
            if api_version == '2025-09-03' and get_nested(config, 'notion.include_data_sources') is not True:
                raise ValueError(
                    "notion.include_data_sources must be true for API version 2025-09-03"
                )
        else:
            cls._validate_required_field(config, 'source.snapshot_path')
            snapshot_path = get_nested(config, 'source.snapshot_path')
            if not os.path.isfile(snapshot_path):
                raise ValueError(f"source.snapshot_path '{snapshot_path}' is not a file")

        formats = get_nested(config, 'generation.formats', [])
        if isinstance(formats, str):
            formats = [formats]
        if not isinstance(formats, list) or not formats:
            raise ValueError("generation.formats must be a non-empty list")
        OutputFormat.expand(formats)

        database_ids = get_nested(config, 'notion.database_ids', [])
        if not isinstance(database_ids, list):
            raise ValueError("notion.database_ids must be a list of database IDs")

        for bool_field in (
            'generation.include_schema',
            'generation.include_items',
            'notion.include_data_sources',
            'display.reverse_root_order',
            'display.sort_tree_siblings',
            'export.pdf_compression',
        ):
            if not isinstance(get_nested(config, bool_field), bool):
                raise ValueError(f"{bool_field} must be a boolean")

        output_dir = get_nested(config, 'export.output_directory')
        if not output_dir:
            raise ValueError("Missing required configuration: export.output_directory")
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        max_line = get_nested(config, 'export.pdf_max_line_length', 120)
        if not isinstance(max_line, int) or max_line < 10:
            raise ValueError("export.pdf_max_line_length must be an integer of at least 10")

        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        for int_field in ('advanced.max_workers', 'advanced.page_size'):
            value = get_nested(config, int_field)
            if not isinstance(value, int) or value < 1:
                raise ValueError(f"{int_field} must be a positive integer")

        page_size = get_nested(config, 'advanced.page_size')
        if page_size > 100:
            raise ValueError("advanced.page_size must not exceed 100")

        retries = get_nested(config, 'advanced.max_retries', 3)
        if not isinstance(retries, int) or retries < 0:
            raise ValueError("advanced.max_retries must be a non-negative integer")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: Parsed CLI arguments

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)
        for section in ('notion', 'source', 'generation', 'export', 'display', 'logging'):
            merged.setdefault(section, {})

        if getattr(args, 'api_key', None):
            merged['notion']['api_key'] = args.api_key

        if getattr(args, 'api_version', None):
            merged['notion']['api_version'] = args.api_version

        if getattr(args, 'database_ids', None):
            merged['notion']['database_ids'] = list(args.database_ids)

        if getattr(args, 'from_json', None):
            merged['source']['mode'] = 'snapshot'
            merged['source']['snapshot_path'] = args.from_json

        if getattr(args, 'workspace_name', None):
            merged['generation']['workspace_name'] = args.workspace_name

        if getattr(args, 'formats', None):
            merged['generation']['formats'] = list(args.formats)

        if getattr(args, 'include_schema', None) is not None:
            merged['generation']['include_schema'] = args.include_schema

        if getattr(args, 'include_items', None) is not None:
            merged['generation']['include_items'] = args.include_items

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        verbose = getattr(args, 'verbose', 0) or 0
        if verbose >= 2:
            merged['logging']['level'] = 'DEBUG'
        elif verbose == 1:
            merged['logging']['level'] = 'INFO'

        return merged

    @classmethod
    def resolve_formats(cls, config: Dict[str, Any]) -> List[OutputFormat]:
        """Expand `generation.formats` into concrete output formats."""
        formats = get_nested(config, 'generation.formats', ['json'])
        if isinstance(formats, str):
            formats = [formats]
        return OutputFormat.expand(formats)

    @classmethod
    def _deep_merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge override into a copy of base, recursing into nested dicts."""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = cls._deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
        return result

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "notion.api_key")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    value = config
    for key in path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
