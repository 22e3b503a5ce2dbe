"""Tests for the data models and aggregate assembly."""

import pytest

from factories import build_doc, make_data_source, make_database, make_page, make_property
from models import OutputFormat, WorkspaceDocumentation, utc_timestamp


class TestOutputFormat:
    def test_parse_accepts_aliases(self):
        assert OutputFormat.parse('md') is OutputFormat.MARKDOWN
        assert OutputFormat.parse('numbered-txt') is OutputFormat.NUMBERED
        assert OutputFormat.parse(' PDF ') is OutputFormat.PDF

    def test_parse_rejects_unknown_format(self):
        with pytest.raises(ValueError, match='Unsupported format: xml'):
            OutputFormat.parse('xml')

    def test_expand_handles_comma_lists_and_duplicates(self):
        formats = OutputFormat.expand(['tree,md', 'markdown', 'json'])
        assert formats == [OutputFormat.TREE, OutputFormat.MARKDOWN, OutputFormat.JSON]

    def test_expand_all(self):
        assert OutputFormat.expand(['all']) == list(OutputFormat)


class TestAssembleDocumentation:
    def test_summary_counts(self, legacy_doc):
        assert legacy_doc.summary.total_pages == 0
        assert legacy_doc.summary.total_databases == 1
        assert legacy_doc.summary.total_properties == 2
        assert legacy_doc.properties_display() == '2'

    def test_without_schema_drops_properties_and_data_sources(self, tasks_properties):
        data_source = make_data_source('ds-1', 'Main', 'db-1', tasks_properties)
        doc = build_doc(
            databases=[make_database('db-1', 'Tasks', data_sources=[data_source])],
            include_schema=False,
        )

        assert doc.databases[0].properties == []
        assert doc.databases[0].data_sources == []
        assert doc.properties_display() == 'not included'

    def test_without_items_drops_item_pages(self):
        pages = [
            make_page('p1', 'Home'),
            make_page('p2', 'Row', 'database_id', 'db-1'),
            make_page('p3', 'Entry', 'data_source_id', 'ds-1'),
        ]
        data_source = make_data_source('ds-1', 'Main', 'db-1', pages=[pages[2]])
        doc = build_doc(pages=pages, databases=[make_database('db-1', 'Tasks', data_sources=[data_source])])

        assert [page.id for page in doc.pages] == ['p1']
        assert doc.databases[0].data_sources[0].pages is None

    def test_legacy_items_stay_in_page_list(self):
        pages = [make_page('p1', 'Row', 'database_id', 'db-1')]
        doc = build_doc(
            pages=pages,
            databases=[make_database('db-1', 'Tasks', [make_property('Name', 'title')])],
            include_items=True,
        )
        assert [page.id for page in doc.pages] == ['p1']

    def test_data_source_items_leave_page_list(self, data_source_doc):
        assert [page.id for page in data_source_doc.pages] == ['wiki']
        assert [page.id for page in data_source_doc.get_all_item_pages()] == ['item-1', 'item-2', 'item-3']

    def test_inputs_are_not_mutated(self, tasks_properties):
        data_source = make_data_source('ds-1', 'Main', 'db-1', tasks_properties, pages=[])
        database = make_database('db-1', 'Tasks', data_sources=[data_source])

        build_doc(databases=[database], include_schema=False)
        build_doc(databases=[database])

        assert database.data_sources == [data_source]
        assert data_source.pages == []

    def test_both_shapes_count_only_data_source_properties(self, tasks_properties):
        data_source = make_data_source('ds-1', 'Main', 'db-1', [make_property('Name', 'title')])
        database = make_database('db-1', 'Tasks', properties=tasks_properties, data_sources=[data_source])

        doc = build_doc(databases=[database])

        assert doc.summary.total_properties == 1


class TestSerialization:
    def test_round_trip_through_dict(self, data_source_doc):
        restored = WorkspaceDocumentation.from_dict(data_source_doc.to_dict())

        assert restored.workspace_name == 'Acme Team'
        assert restored.include_items is True
        assert restored.get_data_source('ds-tasks').database_id == 'db-tasks'
        assert [page.title for page in restored.get_all_item_pages()] == [
            'Write report', 'Review budget', 'Plan offsite'
        ]

    def test_keys_use_camel_case(self, legacy_doc):
        data = legacy_doc.to_dict()
        assert list(data) == [
            'timestamp', 'workspaceName', 'pages', 'databases', 'summary',
            'includeSchema', 'includeItems',
        ]
        assert data['summary'] == {'totalPages': 0, 'totalDatabases': 1, 'totalProperties': 2}

    def test_utc_timestamp_format(self):
        value = utc_timestamp()
        assert value.endswith('Z')
        assert len(value) == len('2025-01-15T10:30:00.000Z')
