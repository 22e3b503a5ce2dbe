"""
Generation orchestrator for writing every requested output format.

Sequences the per-format renderers over one immutable documentation
aggregate and writes each artifact atomically. A failing format is
recorded and the remaining formats still run.
"""

import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from formatters import FormatterFactory, RenderError
from logger import ProgressTracker, log_section
from models import OutputFormat, WorkspaceDocumentation

DEFAULT_MARKER = 'NWS'


@dataclass
class GeneratedFile:
    """An artifact written for one format."""

    format: str
    path: str
    byte_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {'format': self.format, 'path': self.path, 'byte_size': self.byte_size}


@dataclass
class FormatFailure:
    """A format that could not be rendered or written."""

    format: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {'format': self.format, 'error': self.error}


@dataclass
class GenerationResult:
    files: List[GeneratedFile] = field(default_factory=list)
    failures: List[FormatFailure] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failures


def sanitize_workspace_name(workspace_name: str) -> str:
    """Strip everything but ASCII letters, digits and spaces, then join words with underscores."""
    cleaned = re.sub(r'[^A-Za-z0-9 ]', '', workspace_name or '')
    return re.sub(r' +', '_', cleaned.strip()) or 'Workspace'


def build_base_filename(
    workspace_name: str,
    marker: str = DEFAULT_MARKER,
    now: Optional[datetime] = None
) -> str:
    """
    Build `<SanitizedName>_<Marker>_<YYYY-MM-DD>-<HH-MM-SS>`.

    Args:
        workspace_name: Workspace display name
        marker: Fixed marker between name and timestamp
        now: Timestamp to use (defaults to the current local time)
    """
    now = now or datetime.now()
    return f"{sanitize_workspace_name(workspace_name)}_{marker}_{now.strftime('%Y-%m-%d-%H-%M-%S')}"


class GenerationOrchestrator:
    """Runs the requested renderers and writes one file per format."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize generation orchestrator.

        Args:
            config: Configuration dictionary (export and display sections are read)
            logger: Optional logger instance
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger('notion_workspace_mapper.orchestrator')

        export_config = self.config.get('export', {})
        self.output_directory = export_config.get('output_directory', './output')
        self.marker = export_config.get('marker', DEFAULT_MARKER)

    def generate(
        self,
        documentation: WorkspaceDocumentation,
        formats: List[OutputFormat],
        output_dir: Optional[str] = None,
        base_filename: Optional[str] = None
    ) -> GenerationResult:
        """
        Render and write every requested format.

        Args:
            documentation: Immutable workspace aggregate
            formats: Formats to produce, in order
            output_dir: Target directory (defaults to export.output_directory)
            base_filename: Base name without suffix or extension

        Returns:
            GenerationResult listing written files and per-format failures
        """
        output_path = Path(output_dir or self.output_directory)
        output_path.mkdir(parents=True, exist_ok=True)
        base_filename = base_filename or build_base_filename(documentation.workspace_name, self.marker)

        log_section("Generating outputs")
        self.logger.info(f"Writing {len(formats)} format(s) to {output_path} as {base_filename}")

        result = GenerationResult()
        with ProgressTracker(len(formats), "formats") as tracker:
            for output_format in formats:
                formatter = FormatterFactory.create(output_format, self.config)
                target = output_path / formatter.build_filename(base_filename)

                try:
                    content = formatter.render_bytes(documentation)
                    self._write_atomic(target, content)
                except (RenderError, OSError) as e:
                    self.logger.error(f"Format {output_format.value} failed: {e}")
                    result.failures.append(FormatFailure(output_format.value, str(e)))
                    tracker.increment(success=False)
                    continue

                self.logger.info(f"Wrote {output_format.value}: {target} ({len(content)} bytes)")
                result.files.append(GeneratedFile(output_format.value, str(target), len(content)))
                tracker.increment(success=True)

        return result

    @staticmethod
    def _write_atomic(target: Path, content: bytes) -> None:
        """Write to a temporary file in the target directory, then rename over the target."""
        fd, temp_path = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(content)
            os.replace(temp_path, target)
        except OSError:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise


__all__ = [
    'FormatFailure',
    'GeneratedFile',
    'GenerationOrchestrator',
    'GenerationResult',
    'build_base_filename',
    'sanitize_workspace_name',
]
