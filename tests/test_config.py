"""
Tests for global configuration loading.
"""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from ai_workflow.config import ConfigManager, GlobalConfig
from ai_workflow.exceptions import ConfigError
from ai_workflow.workflow.types import AgentConfig


class TestConfigManager:
    """Reading and writing ~/.ai-workflow/config.yml."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_dir = Path(self.temp_dir) / ".ai-workflow"
        self.manager = ConfigManager(self.config_dir)
        # Keep a stray .env in the test's cwd from leaking in
        self.dotenv_patcher = patch("ai_workflow.config.load_dotenv")
        self.dotenv_patcher.start()

    def teardown_method(self):
        self.dotenv_patcher.stop()

    def write_config(self, data):
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.manager.config_path, 'w') as f:
            if isinstance(data, str):
                f.write(data)
            else:
                yaml.safe_dump(data, f)

    def test_defaults_without_file(self):
        """Missing config file yields the default configuration."""
        config = self.manager.load()

        assert config.default_agent == AgentConfig(type='claude', model='claude-sonnet-4-5')
        assert config.log_level == 'info'
        assert config.log_dir == str(self.config_dir / 'logs')
        assert not self.manager.config_exists()

    def test_load_file(self):
        self.write_config({
            'default_agent': {'type': 'openai', 'model': 'gpt-4o', 'temperature': 0.3},
            'api_keys': {'openai': 'sk-file'},
            'log_level': 'debug',
            'log_dir': '/tmp/ai-logs',
        })

        config = self.manager.load()

        assert config.default_agent == AgentConfig(type='openai', model='gpt-4o', temperature=0.3)
        assert config.api_keys == {'openai': 'sk-file'}
        assert config.log_level == 'debug'
        assert self.manager.get_log_dir(config) == Path('/tmp/ai-logs')

    def test_env_references_substituted(self, monkeypatch):
        monkeypatch.setenv('MY_OPENAI_KEY', 'sk-from-env')
        self.write_config({'api_keys': {'openai': '${MY_OPENAI_KEY}'}})

        assert self.manager.load().api_keys['openai'] == 'sk-from-env'

    def test_unset_env_reference_left_as_written(self, monkeypatch):
        monkeypatch.delenv('UNSET_KEY_FOR_TEST', raising=False)
        self.write_config({'api_keys': {'openai': '${UNSET_KEY_FOR_TEST}'}})

        assert self.manager.load().api_keys['openai'] == '${UNSET_KEY_FOR_TEST}'

    def test_empty_file_uses_defaults(self):
        self.write_config("")

        assert self.manager.load().log_level == 'info'

    @pytest.mark.parametrize("data,message", [
        ("- just\n- a list\n", "must contain a mapping"),
        ({'log_level': 'loud'}, "log_level"),
        ({'default_agent': {'type': 'gemini'}}, "Unknown default_agent type"),
        ({'default_agent': {'type': 'claude', 'temperature': 2}}, "between 0 and 1"),
        ({'api_keys': ['sk']}, "must be a mapping"),
        ({'api_keys': {'mistral': 'k'}}, "Unknown api_keys"),
        ("key: [unclosed", "Failed to read"),
    ])
    def test_malformed_file(self, data, message):
        self.write_config(data)

        with pytest.raises(ConfigError, match=message):
            self.manager.load()

    def test_save_and_reload(self):
        config = GlobalConfig(
            default_agent=AgentConfig(type='claude', model='claude-opus-4-1'),
            api_keys={'anthropic': 'sk-ant'},
            log_level='warn',
        )

        self.manager.save(config)
        loaded = self.manager.load()

        assert loaded.default_agent == config.default_agent
        assert loaded.api_keys == {'anthropic': 'sk-ant'}
        assert loaded.log_level == 'warn'

    def test_initialize_creates_directories(self):
        config = self.manager.initialize()

        assert self.manager.config_exists()
        assert (self.config_dir / 'logs').is_dir()
        assert config.log_level == 'info'

    def test_initialize_keeps_existing_file(self):
        self.write_config({'log_level': 'error'})

        assert self.manager.initialize().log_level == 'error'


class TestGlobalConfig:
    """API key lookup."""

    def test_environment_wins_over_file(self, monkeypatch):
        monkeypatch.setenv('ANTHROPIC_API_KEY', 'sk-env')
        config = GlobalConfig(api_keys={'anthropic': 'sk-file'})

        assert config.get_api_key('anthropic') == 'sk-env'

    def test_file_key_used_without_environment(self, monkeypatch):
        monkeypatch.delenv('OPENAI_API_KEY', raising=False)
        config = GlobalConfig(api_keys={'openai': 'sk-file'})

        assert config.get_api_key('openai') == 'sk-file'

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv('OPENAI_API_KEY', raising=False)

        assert GlobalConfig().get_api_key('openai') is None
