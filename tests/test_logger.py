"""Tests for logging setup, progress tracking and config masking."""

import logging

import pytest

from logger import LOGGER_NAME, ProgressTracker, _sanitize_config, setup_logging


@pytest.fixture(autouse=True)
def reset_handlers():
    yield
    logging.getLogger(LOGGER_NAME).handlers.clear()


class TestSetupLogging:
    @pytest.mark.parametrize('verbosity, level', [(0, logging.WARNING), (1, logging.INFO), (3, logging.DEBUG)])
    def test_verbosity_levels(self, verbosity, level):
        assert setup_logging(verbosity=verbosity).level == level

    def test_explicit_level_wins(self):
        assert setup_logging(verbosity=0, level='debug').level == logging.DEBUG

    def test_invalid_level(self):
        with pytest.raises(ValueError, match='Invalid log level'):
            setup_logging(level='chatty')

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / 'mapper.log'

        logger = setup_logging(verbosity=1, log_file=str(log_file))
        logger.info('hello file')
        for handler in logger.handlers:
            handler.flush()

        assert 'hello file' in log_file.read_text(encoding='utf-8')
        assert len(logger.handlers) == 2


class TestProgressTracker:
    def test_counts(self):
        with ProgressTracker(3, 'formats') as tracker:
            tracker.increment(success=True)
            tracker.increment(success=False)
            tracker.increment(success=True)

        stats = tracker.get_stats()
        assert stats['successful'] == 2
        assert stats['failed'] == 1
        assert round(stats['success_rate'], 1) == 66.7


class TestSanitizeConfig:
    def test_secrets_are_masked(self):
        config = {'notion': {'api_key': 'ntn_secret', 'api_version': '2025-09-03'}}

        sanitized = _sanitize_config(config)

        assert sanitized['notion']['api_key'] == '***REDACTED***'
        assert sanitized['notion']['api_version'] == '2025-09-03'
        assert config['notion']['api_key'] == 'ntn_secret'
