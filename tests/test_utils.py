"""Tests for utility functions in models/utils.py"""

import pytest

from core.config import HueStatusConfig, save_config
from core.errors import (
    BridgeNotFound,
    ConfigNotFound,
    InvalidConfig,
    NetworkError,
    SetupFailed,
)
from models.utils import (
    CliOptions,
    error_suggestions,
    find_similar_strings,
    format_duration,
    load_effective_config,
    similarity_score,
)


class TestSimilarityScore:
    """Tests for similarity_score function."""

    def test_exact_match(self):
        """Exact matches ignore case."""
        assert similarity_score("Success", "success") == 100

    def test_prefix(self):
        """A prefix of a command scores 80."""
        assert similarity_score("disc", "discover") == 80

    def test_substring(self):
        """A substring anywhere scores 60."""
        assert similarity_score("scene", "test-scene") == 60

    def test_typo(self):
        """A dropped letter still scores as an in-order match."""
        assert similarity_score("sucess", "success") == 42

    def test_unrelated(self):
        """Unrelated words score 0."""
        assert similarity_score("xyz", "failure") == 0


class TestFindSimilarStrings:
    """Tests for find_similar_strings function."""

    def test_best_match_first(self):
        commands = ['success', 'failure', 'setup', 'status']
        assert find_similar_strings('sucess', commands)[0] == 'success'

    def test_limit(self):
        commands = ['status', 'stats', 'state', 'static']
        assert len(find_similar_strings('stat', commands, limit=2)) == 2

    def test_no_matches(self):
        assert find_similar_strings('zzz', ['success', 'failure']) == []


class TestFormatDuration:

    def test_milliseconds(self):
        assert format_duration(250) == "250ms"

    def test_seconds(self):
        assert format_duration(1500) == "1.5s"


class TestErrorSuggestions:
    """Tests for error_suggestions function."""

    def test_missing_config_suggests_setup(self):
        assert error_suggestions(ConfigNotFound()) == ["Run: huestatus setup"]

    def test_bridge_not_found(self):
        suggestions = error_suggestions(BridgeNotFound())
        assert "Run: huestatus setup --ip <bridge-ip>" in suggestions

    def test_network_error_mentions_timeout(self):
        assert any('--timeout' in s for s in error_suggestions(NetworkError('down')))

    def test_recoverable_config_error(self):
        assert error_suggestions(InvalidConfig('bad')) == ["Run: huestatus setup --force"]

    def test_no_suggestion(self):
        assert error_suggestions(SetupFailed('disk full')) == []


class TestLoadEffectiveConfig:
    """Tests for load_effective_config precedence."""

    @pytest.fixture
    def config_path(self, tmp_path, monkeypatch):
        for name in ('HUESTATUS_TIMEOUT', 'HUESTATUS_VERBOSE', 'HUESTATUS_BRIDGE_IP'):
            monkeypatch.delenv(name, raising=False)
        path = tmp_path / 'config.json'
        save_config(HueStatusConfig(bridge_ip='192.168.1.20', username='user123', timeout_seconds=8), path)
        return path

    def test_file_values(self, config_path):
        config = load_effective_config(CliOptions(config_path=config_path))
        assert config.timeout_seconds == 8
        assert config.retry_attempts == 3

    def test_env_overrides_file(self, config_path, monkeypatch):
        monkeypatch.setenv('HUESTATUS_TIMEOUT', '4')
        assert load_effective_config(CliOptions(config_path=config_path)).timeout_seconds == 4

    def test_command_line_overrides_env(self, config_path, monkeypatch):
        monkeypatch.setenv('HUESTATUS_TIMEOUT', '4')
        options = CliOptions(config_path=config_path, timeout=2, retry_attempts=1, retry_delay=0.5)

        config = load_effective_config(options)

        assert config.timeout_seconds == 2
        assert config.retry_attempts == 1
        assert config.retry_delay_seconds == 0.5

    def test_verbose_flag(self, config_path):
        assert load_effective_config(CliOptions(config_path=config_path, verbose=True)).verbose

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFound):
            load_effective_config(CliOptions(config_path=tmp_path / 'missing.json'))
