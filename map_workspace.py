#!/usr/bin/env python3
"""
Notion Workspace Mapper - Main CLI Entry Point

Fetches the structure of a Notion workspace (pages, databases, data sources
and their schema) and writes it as JSON, Markdown, CSV, an ASCII tree, a
numbered outline, PDF or DOCX.
"""

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

from config_loader import ConfigLoader, get_nested
from fetchers import FetcherFactory, FetchError
from logger import log_config, log_section, setup_logging
from notion_api import INVALID_TOKEN_MESSAGE, AuthError
from orchestrator import GenerationOrchestrator, GenerationReport

__version__ = "1.0.0"

DEFAULT_CONFIG_PATH = 'config.yaml'
REPORT_FILENAME = 'generation_report.json'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Map the structure of a Notion workspace into documentation files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Markdown and JSON with the token from NOTION_API_KEY
  python map_workspace.py -f markdown -f json

  # Every format, including database schema and items
  python map_workspace.py -f all --include-items

  # Tree and numbered outline only, without schema
  python map_workspace.py -f tree,numbered-txt --no-include-schema

  # Re-render a previous JSON export as PDF and DOCX
  python map_workspace.py --from-json output/Team_NWS_2025-01-01-10-00-00.json -f pdf,docx

  # Check the token
  python map_workspace.py --test-connection
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH} if present)'
    )

    parser.add_argument(
        '--workspace-name',
        type=str,
        help='Workspace display name used in titles and file names'
    )

    parser.add_argument(
        '--api-key',
        type=str,
        help='Notion integration token (default: NOTION_API_KEY environment variable)'
    )

    parser.add_argument(
        '--api-version',
        choices=['2025-09-03', '2022-06-28'],
        help='Notion API version (default: 2025-09-03)'
    )

    parser.add_argument(
        '-f', '--format',
        dest='formats',
        action='append',
        help='Output format: json, markdown (md), csv, tree, numbered (numbered-txt), docx, pdf or all. '
             'Repeat or comma-separate for several.'
    )

    parser.add_argument(
        '-o', '--output',
        dest='output_dir',
        type=str,
        help='Output directory (default: ./output)'
    )

    parser.add_argument(
        '--include-schema',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Include database properties and data sources'
    )

    parser.add_argument(
        '--include-items',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Include database item pages'
    )

    parser.add_argument(
        '--database-ids',
        type=lambda value: [part.strip() for part in value.split(',') if part.strip()],
        help='Comma-separated database IDs to map instead of discovering all databases'
    )

    parser.add_argument(
        '--from-json',
        type=str,
        help='Re-render a previous JSON export instead of calling the API'
    )

    parser.add_argument(
        '--test-connection',
        action='store_true',
        help='Only check that the API token is valid'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """Load, merge and validate configuration. Raises ValueError or FileNotFoundError."""
    config_path = args.config
    if config_path is None and Path(DEFAULT_CONFIG_PATH).exists():
        config_path = DEFAULT_CONFIG_PATH

    config = ConfigLoader.load(config_path)
    config = ConfigLoader.merge_with_args(config, args)
    ConfigLoader.validate(config)
    return config


def run_generation(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute fetch, assembly, generation and reporting."""
    start_time = time.time()
    fetcher = FetcherFactory.create_fetcher(config)
    mode = get_nested(config, 'source.mode', 'api')

    if args.test_connection:
        if fetcher.test_connection():
            print("Connection successful.")
            return 0
        print("Connection failed. See the log for details.", file=sys.stderr)
        return 1

    if mode == 'api':
        logger.info("Testing Notion connectivity")
        if not fetcher.test_connection():
            logger.error("Notion connectivity test failed")
            return 1

    log_section("Fetching workspace")
    documentation = fetcher.build_documentation(
        get_nested(config, 'generation.workspace_name'),
        include_schema=get_nested(config, 'generation.include_schema', True),
        include_items=get_nested(config, 'generation.include_items', False),
        database_ids=get_nested(config, 'notion.database_ids') or None,
    )

    formats = ConfigLoader.resolve_formats(config)
    output_dir = get_nested(config, 'export.output_directory', './output')

    orchestrator = GenerationOrchestrator(config, logger)
    result = orchestrator.generate(documentation, formats, output_dir)

    report_generator = GenerationReport(logger)
    report = report_generator.generate_report(
        documentation,
        result,
        [output_format.value for output_format in formats],
        time.time() - start_time,
        skipped=fetcher.skipped,
    )
    print("\n" + report_generator.format_console_report(report))
    report_generator.export_json_report(report, os.path.join(output_dir, REPORT_FILENAME))

    if not result.all_succeeded:
        logger.warning(f"{len(result.failures)} of {len(formats)} formats failed")
        return 1

    logger.info("Generation completed successfully")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('notion_workspace_mapper')

        log_section("Notion Workspace Mapper")
        logger.info(f"Version: {__version__}")

        config = load_configuration(args)

        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level'),
        )
        log_config(config)

        return run_generation(config, args, logger)

    except AuthError:
        print(f"ERROR: {INVALID_TOKEN_MESSAGE}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except FetchError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nGeneration interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        logging.getLogger('notion_workspace_mapper').error(f"Unexpected error: {e}", exc_info=True)
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
