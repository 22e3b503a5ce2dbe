"""End-to-end tests of the command line entry point."""

import json
import logging
import os

import pytest

import map_workspace
from fetchers import NotionFetcher
from formatters import JsonFormatter, TreeFormatter
from logger import LOGGER_NAME
from notion_api import INVALID_TOKEN_MESSAGE, AuthError


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('NOTION_API_KEY', raising=False)
    yield
    logging.getLogger(LOGGER_NAME).handlers.clear()


@pytest.fixture
def snapshot(tmp_path, data_source_doc):
    path = tmp_path / 'snapshot.json'
    path.write_bytes(JsonFormatter().render_bytes(data_source_doc))
    return str(path)


class TestParser:
    def test_defaults(self):
        args = map_workspace.create_argument_parser().parse_args([])

        assert args.formats is None
        assert args.include_schema is None
        assert args.verbose == 0

    def test_repeated_formats_and_flags(self):
        args = map_workspace.create_argument_parser().parse_args([
            '-f', 'md', '-f', 'tree,pdf', '--no-include-schema', '--include-items',
            '--database-ids', 'db-1, db-2', '-vv',
        ])

        assert args.formats == ['md', 'tree,pdf']
        assert args.include_schema is False
        assert args.include_items is True
        assert args.database_ids == ['db-1', 'db-2']
        assert args.verbose == 2


class TestMain:
    def test_rerender_snapshot(self, tmp_path, snapshot):
        out = tmp_path / 'out'

        code = map_workspace.main([
            '--from-json', snapshot, '-f', 'tree,numbered-txt', '--include-items', '-o', str(out),
        ])

        assert code == 0
        names = sorted(os.listdir(out))
        assert names[0].startswith('Acme_Team_NWS_') and names[0].endswith('_numbered.txt')
        assert names[1].startswith('Acme_Team_NWS_') and names[1].endswith('_tree.txt')
        assert names[2] == 'generation_report.json'
        report = json.loads((out / 'generation_report.json').read_text(encoding='utf-8'))
        assert report['summary']['formats_succeeded'] == ['tree', 'numbered']

    def test_failed_format_exit_code(self, tmp_path, snapshot, monkeypatch):
        def explode(self, documentation):
            raise RuntimeError('boom')

        monkeypatch.setattr(TreeFormatter, 'render', explode)

        code = map_workspace.main(['--from-json', snapshot, '-f', 'tree,json', '-o', str(tmp_path / 'out')])

        assert code == 1

    def test_missing_token_is_a_configuration_error(self, capsys):
        assert map_workspace.main(['-f', 'json']) == 2
        assert 'notion.api_key' in capsys.readouterr().err

    def test_unknown_format_is_a_configuration_error(self, snapshot):
        assert map_workspace.main(['--from-json', snapshot, '-f', 'xml']) == 2

    def test_invalid_token_message(self, monkeypatch, capsys):
        def reject(self):
            raise AuthError()

        monkeypatch.setattr(NotionFetcher, 'test_connection', reject)

        code = map_workspace.main(['--api-key', 'ntn_wrong', '-f', 'json'])

        assert code == 2
        assert INVALID_TOKEN_MESSAGE in capsys.readouterr().err

    def test_connection_check_only(self, monkeypatch, capsys, tmp_path):
        monkeypatch.setattr(NotionFetcher, 'test_connection', lambda self: True)

        code = map_workspace.main(['--api-key', 'ntn_ok', '--test-connection'])

        assert code == 0
        assert 'Connection successful.' in capsys.readouterr().out
        assert not (tmp_path / 'output').exists()
