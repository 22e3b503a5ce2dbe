"""Shared fixtures: small workspaces in both API shapes."""

import copy

import pytest

from config_loader import DEFAULT_CONFIG
from factories import (
    build_doc,
    make_data_source,
    make_database,
    make_page,
    make_property
)


@pytest.fixture
def config():
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def empty_doc():
    return build_doc()


@pytest.fixture
def home_doc():
    """A root page with one child page."""
    return build_doc(pages=[
        make_page('home', 'Home'),
        make_page('sub', 'Sub', 'page_id', 'home'),
    ])


@pytest.fixture
def tasks_properties():
    return [
        make_property('Name', 'title'),
        make_property('Status', 'status', [{'name': 'Done'}]),
    ]


@pytest.fixture
def legacy_doc(tasks_properties):
    """Legacy shape: schema lives on the database itself."""
    return build_doc(databases=[make_database('db-tasks', 'Tasks', properties=tasks_properties)])


@pytest.fixture
def data_source_doc():
    """Current shape: one database, one data source with three items and a relation."""
    items = [
        make_page('item-1', 'Write report', 'data_source_id', 'ds-tasks'),
        make_page('item-2', 'Review budget', 'data_source_id', 'ds-tasks'),
        make_page('item-3', 'Plan offsite', 'data_source_id', 'ds-tasks'),
    ]
    properties = [
        make_property('Name', 'title'),
        make_property('Priority', 'select', [{'name': 'High'}, {'name': 'Low'}]),
        make_property('Project', 'relation', {
            'database_id': 'db-projects',
            'data_source_id': None,
            'type': 'dual_property',
            'single_property': None,
            'dual_property': {'synced_property_name': 'Tasks'},
        }),
    ]
    data_source = make_data_source('ds-tasks', 'Task list', 'db-tasks', properties, pages=items)
    return build_doc(
        pages=[make_page('wiki', 'Wiki')] + items,
        databases=[
            make_database('db-tasks', 'Tasks', data_sources=[data_source], parent_type='page_id', parent_id='wiki'),
            make_database('db-projects', 'Projects'),
        ],
        include_items=True,
    )
