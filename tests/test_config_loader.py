"""Tests for configuration loading, validation and CLI merging."""

import argparse

import pytest

from config_loader import ConfigLoader, get_nested
from models import OutputFormat


def cli_args(**overrides):
    values = {
        'api_key': None, 'api_version': None, 'database_ids': None, 'from_json': None,
        'workspace_name': None, 'formats': None, 'include_schema': None,
        'include_items': None, 'output_dir': None, 'log_file': None, 'verbose': 0,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture(autouse=True)
def no_token_in_environment(monkeypatch):
    monkeypatch.delenv('NOTION_API_KEY', raising=False)


class TestLoad:
    def test_defaults_without_file(self):
        config = ConfigLoader.load()

        assert get_nested(config, 'notion.api_version') == '2025-09-03'
        assert get_nested(config, 'generation.include_schema') is True
        assert get_nested(config, 'export.marker') == 'NWS'

    def test_file_values_override_defaults(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text(
            'generation:\n'
            '  workspace_name: Research\n'
            '  formats: [tree, pdf]\n'
            'advanced:\n'
            '  max_workers: 8\n',
            encoding='utf-8',
        )

        config = ConfigLoader.load(str(path))

        assert get_nested(config, 'generation.workspace_name') == 'Research'
        assert get_nested(config, 'generation.include_items') is False
        assert get_nested(config, 'advanced.max_workers') == 8
        assert get_nested(config, 'advanced.page_size') == 100

    def test_environment_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv('MAPPER_OUTPUT', '/data/maps')
        path = tmp_path / 'config.yaml'
        path.write_text('export:\n  output_directory: ${MAPPER_OUTPUT}\n', encoding='utf-8')

        config = ConfigLoader.load(str(path))

        assert get_nested(config, 'export.output_directory') == '/data/maps'

    def test_token_falls_back_to_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv('NOTION_API_KEY', 'ntn_real_token')
        path = tmp_path / 'config.yaml'
        path.write_text('notion:\n  api_key: ${UNSET_TOKEN_VAR}\n', encoding='utf-8')

        config = ConfigLoader.load(str(path))

        assert get_nested(config, 'notion.api_key') == 'ntn_real_token'

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(str(tmp_path / 'missing.yaml'))

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text('- just\n- a list\n', encoding='utf-8')

        with pytest.raises(ValueError, match='dictionary'):
            ConfigLoader.load(str(path))


class TestValidate:
    def valid_config(self, config):
        config['notion']['api_key'] = 'ntn_real_token'
        return config

    def test_valid_config_passes(self, config):
        ConfigLoader.validate(self.valid_config(config))

    def test_missing_token(self, config):
        with pytest.raises(ValueError, match='notion.api_key'):
            ConfigLoader.validate(config)

    def test_placeholder_token(self, config):
        config['notion']['api_key'] = 'your_notion_api_key_here'
        with pytest.raises(ValueError, match='placeholder'):
            ConfigLoader.validate(config)

    def test_unsubstituted_token(self, config):
        config['notion']['api_key'] = '${NOTION_API_KEY}'
        with pytest.raises(ValueError, match='unsubstituted environment variable'):
            ConfigLoader.validate(config)

    def test_unknown_api_version(self, config):
        config = self.valid_config(config)
        config['notion']['api_version'] = '2021-05-13'
        with pytest.raises(ValueError, match='api_version'):
            ConfigLoader.validate(config)

    def test_data_sources_required_for_current_version(self, config):
        config = self.valid_config(config)
        config['notion']['include_data_sources'] = False
        with pytest.raises(ValueError, match='include_data_sources'):
            ConfigLoader.validate(config)

    def test_legacy_version_without_data_sources(self, config):
        config = self.valid_config(config)
        config['notion']['api_version'] = '2022-06-28'
        config['notion']['include_data_sources'] = False
        ConfigLoader.validate(config)

    def test_unknown_format(self, config):
        config = self.valid_config(config)
        config['generation']['formats'] = ['markdown', 'xml']
        with pytest.raises(ValueError, match='Unsupported format: xml'):
            ConfigLoader.validate(config)

    def test_non_boolean_flag(self, config):
        config = self.valid_config(config)
        config['generation']['include_items'] = 'yes'
        with pytest.raises(ValueError, match='generation.include_items must be a boolean'):
            ConfigLoader.validate(config)

    @pytest.mark.parametrize('field, value', [
        ('request_timeout', 0),
        ('max_workers', 0),
        ('page_size', 101),
        ('max_retries', -1),
    ])
    def test_advanced_limits(self, config, field, value):
        config = self.valid_config(config)
        config['advanced'][field] = value
        with pytest.raises(ValueError, match=field):
            ConfigLoader.validate(config)

    def test_snapshot_mode_needs_no_token(self, config, tmp_path):
        snapshot = tmp_path / 'export.json'
        snapshot.write_text('{}', encoding='utf-8')
        config['source'] = {'mode': 'snapshot', 'snapshot_path': str(snapshot)}

        ConfigLoader.validate(config)

    def test_snapshot_path_must_exist(self, config, tmp_path):
        config['source'] = {'mode': 'snapshot', 'snapshot_path': str(tmp_path / 'missing.json')}
        with pytest.raises(ValueError, match='is not a file'):
            ConfigLoader.validate(config)


class TestMergeWithArgs:
    def test_cli_wins(self, config):
        merged = ConfigLoader.merge_with_args(config, cli_args(
            api_key='ntn_cli',
            workspace_name='Ops',
            formats=['tree,pdf'],
            include_schema=False,
            output_dir='/tmp/maps',
            verbose=2,
        ))

        assert get_nested(merged, 'notion.api_key') == 'ntn_cli'
        assert get_nested(merged, 'generation.workspace_name') == 'Ops'
        assert get_nested(merged, 'generation.include_schema') is False
        assert get_nested(merged, 'export.output_directory') == '/tmp/maps'
        assert get_nested(merged, 'logging.level') == 'DEBUG'
        assert ConfigLoader.resolve_formats(merged) == [OutputFormat.TREE, OutputFormat.PDF]

    def test_unset_flags_keep_config_values(self, config):
        merged = ConfigLoader.merge_with_args(config, cli_args())

        assert merged == config
        assert merged is not config

    def test_from_json_switches_to_snapshot_mode(self, config):
        merged = ConfigLoader.merge_with_args(config, cli_args(from_json='old.json'))

        assert get_nested(merged, 'source.mode') == 'snapshot'
        assert get_nested(merged, 'source.snapshot_path') == 'old.json'
