"""
Generation report for summarizing a mapping run.

Collects written files, failed formats and entities skipped during fetch,
and formats them for console display and JSON export.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fetchers import FetchIssue
from models import WorkspaceDocumentation
from .generation_orchestrator import GenerationResult


class GenerationReport:
    """Builds and formats the report of one generation run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('notion_workspace_mapper.orchestrator.report')

    def generate_report(
        self,
        documentation: WorkspaceDocumentation,
        result: GenerationResult,
        requested_formats: List[str],
        duration: float,
        skipped: Optional[List[FetchIssue]] = None
    ) -> Dict[str, Any]:
        """
        Generate the report dictionary.

        Args:
            documentation: The rendered aggregate
            result: Outcome of the orchestrator run
            requested_formats: Format identifiers that were requested
            duration: Run duration in seconds
            skipped: Entities skipped during fetch

        Returns:
            Report dictionary
        """
        skipped = skipped or []
        summary = documentation.summary

        report = {
            'summary': {
                'workspace': documentation.workspace_name,
                'pages': summary.total_pages,
                'databases': summary.total_databases,
                'properties': documentation.properties_display(),
                'include_schema': documentation.include_schema,
                'include_items': documentation.include_items,
                'formats_requested': list(requested_formats),
                'formats_succeeded': [f.format for f in result.files],
                'formats_failed': [f.format for f in result.failures],
                'skipped_entities': len(skipped),
                'duration_seconds': duration,
                'duration_formatted': self._format_duration(duration),
            },
            'files': [f.to_dict() for f in result.files],
            'failures': [f.to_dict() for f in result.failures],
            'skipped_entities': [issue.to_dict() for issue in skipped],
            'timestamp': datetime.now().isoformat(),
        }

        self.logger.info(
            f"Report generated: {len(result.files)} files written, "
            f"{len(result.failures)} formats failed, {len(skipped)} entities skipped"
        )
        return report

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            return f"{int(seconds // 60)}m {int(seconds % 60)}s"
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m {int(seconds % 60)}s"

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Report dictionary

        Returns:
            Formatted console string
        """
        summary = report.get('summary', {})
        sections = [
            "=" * 60,
            "GENERATION REPORT",
            "=" * 60,
            "",
            "Summary:",
            f"  Workspace:   {summary.get('workspace', '')}",
            f"  Pages:       {summary.get('pages', 0)}",
            f"  Databases:   {summary.get('databases', 0)}",
            f"  Properties:  {summary.get('properties', 0)}",
            f"  Duration:    {summary.get('duration_formatted', '0s')}",
            "",
        ]

        files = report.get('files', [])
        if files:
            sections.append("Files written:")
            sections.append("-" * 60)
            for entry in files:
                sections.append(f"  [{entry['format']}] {entry['path']} ({entry['byte_size']} bytes)")
            sections.append("")

        failures = report.get('failures', [])
        if failures:
            sections.append("Failed formats:")
            sections.append("-" * 60)
            for entry in failures:
                sections.append(f"  [{entry['format']}] {entry['error']}")
            sections.append("")

        skipped = report.get('skipped_entities', [])
        if skipped:
            sections.append("Skipped entities:")
            sections.append("-" * 60)
            for entry in skipped:
                target = entry['entity_type']
                if entry.get('entity_id'):
                    target += f" {entry['entity_id']}"
                sections.append(f"  {target}: {entry['error']}")
            sections.append("")

        sections.append("=" * 60)
        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)
            self.logger.info(f"JSON report exported to {filepath}")
        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")


__all__ = ['GenerationReport']
