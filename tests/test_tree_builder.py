"""Tests for forest reconstruction from flat page and database lists."""

from factories import build_doc, make_data_source, make_database, make_page, make_property
from formatters.tree_builder import HEADING_SECTIONS, OUTLINE_SECTIONS, build_tree
from models import NodeKind


def all_nodes(forest):
    for root in forest:
        yield from root.iter_nodes()


def node_ids(forest):
    return [node.id for node in all_nodes(forest)]


class TestPageHierarchy:
    def test_child_page_nests_under_parent(self, home_doc):
        forest = build_tree(home_doc)

        assert [root.title for root in forest] == ['Home page']
        assert [child.title for child in forest[0].children] == ['Sub page']

    def test_roots_are_reversed_by_default(self):
        doc = build_doc(pages=[make_page('a', 'Alpha'), make_page('b', 'Beta')])

        assert [root.id for root in build_tree(doc)] == ['b', 'a']
        assert [root.id for root in build_tree(doc, reverse_roots=False)] == ['a', 'b']

    def test_missing_parent_becomes_root(self):
        doc = build_doc(pages=[make_page('orphan', 'Orphan', 'page_id', 'not-shared')])

        forest = build_tree(doc)

        assert [root.id for root in forest] == ['orphan']

    def test_self_parent_becomes_root(self):
        doc = build_doc(pages=[make_page('loop', 'Loop', 'page_id', 'loop')])

        assert [root.id for root in build_tree(doc)] == ['loop']

    def test_parent_cycle_is_broken(self):
        doc = build_doc(pages=[
            make_page('a', 'A', 'page_id', 'b'),
            make_page('b', 'B', 'page_id', 'a'),
        ])

        forest = build_tree(doc)

        ids = node_ids(forest)
        assert sorted(ids) == ['a', 'b']
        assert len(forest) == 1

    def test_empty_input_yields_empty_forest(self, empty_doc):
        assert build_tree(empty_doc) == []

    def test_duplicate_ids_keep_first(self):
        doc = build_doc(pages=[make_page('dup', 'First'), make_page('dup', 'Second')])

        forest = build_tree(doc)

        assert [root.title for root in forest] == ['First page']

    def test_untitled_page_label(self):
        doc = build_doc(pages=[make_page('blank', '')])

        assert build_tree(doc)[0].title == 'Untitled Page page'


class TestLegacyShape:
    def test_properties_section_lists_properties_last_first(self, legacy_doc):
        database = build_tree(legacy_doc)[0]

        assert database.title == 'Tasks database'
        assert [child.title for child in database.children] == ['properties:']
        section = database.children[0]
        assert section.kind is NodeKind.PROPERTIES_SECTION
        assert [child.title for child in section.children] == ['Status (status) [Done]', 'Name (title)']

    def test_heading_titles(self, legacy_doc):
        section = build_tree(legacy_doc, HEADING_SECTIONS)[0].children[0]
        assert section.title == 'Properties'

    def test_properties_not_reordered_in_place(self, legacy_doc):
        build_tree(legacy_doc)
        build_tree(legacy_doc)

        assert [prop.name for prop in legacy_doc.databases[0].properties] == ['Name', 'Status']

    def test_items_are_rehomed_under_items_section(self, tasks_properties):
        doc = build_doc(
            pages=[make_page('row-1', 'First row', 'database_id', 'db-tasks'), make_page('home', 'Home')],
            databases=[make_database('db-tasks', 'Tasks', properties=tasks_properties)],
            include_items=True,
        )

        forest = build_tree(doc, OUTLINE_SECTIONS)

        assert [root.id for root in forest] == ['db-tasks', 'home']
        database = forest[0]
        assert [child.title for child in database.children] == ['properties:', 'items:']
        items = database.children[1]
        assert items.kind is NodeKind.ITEMS_SECTION
        assert [child.title for child in items.children] == ['First row page']

    def test_items_excluded_without_include_items(self, tasks_properties):
        doc = build_doc(
            pages=[make_page('row-1', 'First row', 'database_id', 'db-tasks')],
            databases=[make_database('db-tasks', 'Tasks', properties=tasks_properties)],
        )

        forest = build_tree(doc)

        assert 'row-1' not in node_ids(forest)
        assert all(node.kind is not NodeKind.ITEMS_SECTION for node in all_nodes(forest))

    def test_database_nests_under_page(self, tasks_properties):
        doc = build_doc(
            pages=[make_page('wiki', 'Wiki')],
            databases=[make_database('db', 'Tasks', tasks_properties, parent_type='page_id', parent_id='wiki')],
        )

        forest = build_tree(doc)

        assert [root.id for root in forest] == ['wiki']
        assert forest[0].children[0].title == 'Tasks database'


class TestDataSourceShape:
    def test_items_nest_under_data_source_pages(self, data_source_doc):
        forest = build_tree(data_source_doc)

        assert [root.id for root in forest] == ['db-projects', 'wiki']
        database = forest[1].children[0]
        assert database.title == 'Tasks database'

        data_source = database.children[0]
        assert data_source.kind is NodeKind.DATA_SOURCE
        assert data_source.title == 'Task list data source'
        assert [child.title for child in data_source.children] == ['Properties', 'Data source pages']

        pages_section = data_source.children[1]
        assert pages_section.kind is NodeKind.PAGES_SECTION
        assert [child.title for child in pages_section.children] == [
            'Write report page', 'Review budget page', 'Plan offsite page'
        ]

    def test_every_item_appears_exactly_once(self, data_source_doc):
        ids = node_ids(build_tree(data_source_doc))

        for item_id in ('item-1', 'item-2', 'item-3', 'wiki', 'db-tasks', 'db-projects'):
            assert ids.count(item_id) == 1

    def test_relation_label_resolves_target(self, data_source_doc):
        data_source = build_tree(data_source_doc)[1].children[0].children[0]
        labels = [child.title for child in data_source.children[0].children]

        assert labels[0] == 'Project (relation) → Projects (two-way, no limit)'
        assert labels[-1] == 'Name (title)'

    def test_no_schema_sections_without_schema(self, tasks_properties):
        data_source = make_data_source('ds-1', 'Main', 'db-1', tasks_properties)
        doc = build_doc(
            databases=[make_database('db-1', 'Tasks', data_sources=[data_source])],
            include_schema=False,
        )

        forest = build_tree(doc)

        kinds = {node.kind for node in all_nodes(forest)}
        assert kinds == {NodeKind.DATABASE}

    def test_item_pages_absent_without_include_items(self):
        items = [make_page('item', 'Entry', 'data_source_id', 'ds-1')]
        data_source = make_data_source('ds-1', 'Main', 'db-1', [make_property('Name', 'title')], pages=items)
        doc = build_doc(pages=items, databases=[make_database('db-1', 'Tasks', data_sources=[data_source])])

        forest = build_tree(doc)

        assert 'item' not in node_ids(forest)
        assert all(node.kind is not NodeKind.PAGES_SECTION for node in all_nodes(forest))
