"""Renders a single schema property into display text for every output format."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from models import Database, DatabaseProperty

logger = logging.getLogger('notion_workspace_mapper.formatters.property')

PROPERTY_TOKEN_PATTERN = re.compile(r'\{\{notion:block_property:[^}]+\}\}')
WHITESPACE_PATTERN = re.compile(r'\s+')

OPTION_TYPES = ('select', 'multi_select', 'status')


@dataclass
class PropertyFields:
    """Display fields of a property, used directly by the Markdown bullets."""

    name: str
    id: str
    type: str
    detail: Optional[str] = None
    description: Optional[str] = None


def describe_property(prop: DatabaseProperty, databases: List[Database]) -> PropertyFields:
    """
    Split a property into its display fields.

    Never raises: an options blob of an unexpected shape simply yields no detail.

    Args:
        prop: Property to describe
        databases: All databases, used to resolve relation targets

    Returns:
        PropertyFields with the type-specific detail and a one-line description
    """
    try:
        detail = _format_detail(prop, databases)
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        logger.debug(f"Could not format options of property '{prop.name}' ({prop.type}): {e}")
        detail = None

    description = collapse_whitespace(prop.description) if prop.description else None

    return PropertyFields(
        name=prop.name,
        id=prop.id,
        type=prop.type,
        detail=detail,
        description=description or None,
    )


def format_property(prop: DatabaseProperty, databases: List[Database]) -> str:
    """
    Render a property as one line, e.g. `Status (status) [Todo, Done]`.

    Args:
        prop: Property to format
        databases: All databases, used to resolve relation targets

    Returns:
        Display string
    """
    fields = describe_property(prop, databases)
    text = f"{fields.name} ({fields.type})"
    if fields.detail:
        text += f" {fields.detail}"
    if fields.description:
        text += f", {fields.description}"
    return text


def clean_formula_expression(expression: Any) -> str:
    """Replace internal property references with `[Property]` and collapse whitespace."""
    cleaned = PROPERTY_TOKEN_PATTERN.sub('[Property]', str(expression))
    return collapse_whitespace(cleaned)


def collapse_whitespace(text: Any) -> str:
    return WHITESPACE_PATTERN.sub(' ', str(text)).strip()


def resolve_relation_target(target_id: str, databases: List[Database], data_source_id: Optional[str] = None) -> str:
    """
    Resolve a relation target to a human name, falling back to the raw id.

    Args:
        target_id: Related database id
        databases: All databases
        data_source_id: Related data source id (2025-09-03 shape)
    """
    for database in databases:
        if target_id and database.id == target_id:
            return database.title
    for database in databases:
        for data_source in database.data_sources:
            if data_source_id and data_source.id == data_source_id:
                return data_source.display_title
    return target_id or data_source_id


def _format_detail(prop: DatabaseProperty, databases: List[Database]) -> Optional[str]:
    options = prop.options

    if prop.type in OPTION_TYPES:
        names = []
        if isinstance(options, list):
            for option in options:
                if isinstance(option, dict):
                    names.append(str(option.get('name', '')))
                else:
                    names.append(str(option))
        return f"[{', '.join(names)}]"

    if not options:
        return None

    if prop.type == 'relation':
        target_id = options.get('database_id')
        data_source_id = options.get('data_source_id')
        if not target_id and not data_source_id:
            return None
        target = resolve_relation_target(target_id, databases, data_source_id)
        cardinality = 'two-way' if options.get('dual_property') else 'one-way'
        limit = 'limit: 1 page' if options.get('single_property') is not None else 'no limit'
        return f"→ {target} ({cardinality}, {limit})"

    if prop.type == 'formula':
        expression = options.get('expression')
        if not expression:
            return None
        return f"[{clean_formula_expression(expression)}]"

    if prop.type == 'rollup':
        function = options.get('function')
        rollup_name = options.get('rollup_property_name')
        relation_name = options.get('relation_property_name')
        if not (function or rollup_name or relation_name):
            return None
        return f"[{function or 'show_original'} of {rollup_name or '?'} via {relation_name or '?'}]"

    if prop.type == 'number':
        number_format = options.get('format')
        return f"[{number_format}]" if number_format else None

    return f"[{json.dumps(options, sort_keys=True, ensure_ascii=False, default=str)}]"


__all__ = [
    'PropertyFields',
    'clean_formula_expression',
    'describe_property',
    'format_property',
    'resolve_relation_target',
]
