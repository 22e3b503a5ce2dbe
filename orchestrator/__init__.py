"""
Orchestration package for coordinating the generation pipeline.

Sequences Fetch → Assemble → Render → Report: one immutable documentation
aggregate is rendered into every requested format and the outcome of each
format is reported.
"""

from .generation_orchestrator import (
    FormatFailure,
    GeneratedFile,
    GenerationOrchestrator,
    GenerationResult,
    build_base_filename
)
from .generation_report import GenerationReport

__all__ = [
    'FormatFailure',
    'GeneratedFile',
    'GenerationOrchestrator',
    'GenerationReport',
    'GenerationResult',
    'build_base_filename'
]
