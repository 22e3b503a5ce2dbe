"""Builders for workspace entities used across the test suite."""

from models import (
    Database,
    DatabaseProperty,
    DataSource,
    Page,
    ParentRef,
    assemble_documentation
)

FIXED_TIMESTAMP = '2025-01-15T10:30:00.000Z'


def make_page(page_id, title, parent_type='workspace', parent_id=None):
    return Page(
        id=page_id,
        title=title,
        url=f'https://www.notion.so/{page_id}',
        created_time='2025-01-01T09:00:00.000Z',
        last_edited_time='2025-01-02T09:00:00.000Z',
        parent=ParentRef(parent_type, parent_id),
    )


def make_property(name, prop_type, options=None, prop_id=None, description=None):
    return DatabaseProperty(
        id=prop_id or name.lower().replace(' ', '_'),
        name=name,
        type=prop_type,
        description=description,
        options=options,
    )


def make_database(database_id, title, properties=None, data_sources=None,
                  parent_type='workspace', parent_id=None):
    return Database(
        id=database_id,
        title=title,
        url=f'https://www.notion.so/{database_id}',
        created_time='2025-01-01T09:00:00.000Z',
        last_edited_time='2025-01-03T09:00:00.000Z',
        properties=properties or [],
        data_sources=data_sources or [],
        parent=ParentRef(parent_type, parent_id),
    )


def make_data_source(data_source_id, title, database_id, properties=None, pages=None):
    return DataSource(
        id=data_source_id,
        name=title,
        title=title,
        database_id=database_id,
        properties=properties or [],
        pages=pages,
    )


def build_doc(pages=(), databases=(), include_schema=True, include_items=False, name='Acme Team'):
    return assemble_documentation(
        name,
        list(pages),
        list(databases),
        include_schema=include_schema,
        include_items=include_items,
        timestamp=FIXED_TIMESTAMP,
    )
