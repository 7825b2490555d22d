"""Global configuration for ai-workflow.

Loads ~/.ai-workflow/config.yml (and a .env file, if present) into an explicit
GlobalConfig value that callers construct once and pass down.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigError
from .workflow.types import AgentConfig, AgentType

logger = logging.getLogger(__name__)

LOG_LEVELS = ('debug', 'info', 'warn', 'error')
API_KEY_ENV_VARS = {
    'anthropic': 'ANTHROPIC_API_KEY',
    'openai': 'OPENAI_API_KEY',
}
ENV_REFERENCE_PATTERN = re.compile(r'^\$\{([^}]+)\}$')


@dataclass
class GlobalConfig:
    """
    Process-wide settings.

    Attributes:
        default_agent: Agent used by agent steps that do not declare one
        api_keys: Provider API keys from the config file
        log_level: Log level name (debug/info/warn/error)
        log_dir: Directory for run logs
    """
    default_agent: Optional[AgentConfig] = None
    api_keys: Dict[str, str] = field(default_factory=dict)
    log_level: str = 'info'
    log_dir: Optional[str] = None

    def get_api_key(self, provider: str) -> Optional[str]:
        """API key for a provider; the environment wins over the file."""
        env_var = API_KEY_ENV_VARS.get(provider)
        if env_var and os.environ.get(env_var):
            return os.environ[env_var]
        return self.api_keys.get(provider)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for YAML serialization, omitting unset values."""
        result: Dict[str, Any] = {'log_level': self.log_level}
        if self.default_agent:
            agent = {'type': self.default_agent.type}
            if self.default_agent.model:
                agent['model'] = self.default_agent.model
            if self.default_agent.temperature is not None:
                agent['temperature'] = self.default_agent.temperature
            result['default_agent'] = agent
        if self.api_keys:
            result['api_keys'] = dict(self.api_keys)
        if self.log_dir:
            result['log_dir'] = self.log_dir
        return result


class ConfigManager:
    """Reads and writes the global configuration file."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize config manager.

        Args:
            config_dir: Configuration directory (default: ~/.ai-workflow)
        """
        self.config_dir = Path(config_dir) if config_dir else Path.home() / '.ai-workflow'
        self.config_path = self.config_dir / 'config.yml'

    def default_config(self) -> GlobalConfig:
        return GlobalConfig(
            default_agent=AgentConfig(type='claude', model='claude-sonnet-4-5'),
            log_level='info',
            log_dir=str(self.config_dir / 'logs'),
        )

    def load(self) -> GlobalConfig:
        """Load configuration, falling back to defaults when no file exists.

        Returns:
            Loaded GlobalConfig

        Raises:
            ConfigError: If the file exists but is malformed
        """
        load_dotenv()

        if not self.config_path.exists():
            logger.debug(f"No config file at {self.config_path}; using defaults")
            return self.default_config()

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {self.config_path}: {e}") from e

        if data is None:
            return self.default_config()
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self.config_path} must contain a mapping")

        return self._parse(self._process_env_variables(data))

    def save(self, config: GlobalConfig) -> None:
        """Write configuration to the config file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            yaml.safe_dump(config.to_dict(), f, sort_keys=False)

    def initialize(self) -> GlobalConfig:
        """Create the config and log directories and a default config file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        (self.config_dir / 'logs').mkdir(exist_ok=True)

        if not self.config_exists():
            self.save(self.default_config())
            logger.info(f"Created default config: {self.config_path}")

        return self.load()

    def config_exists(self) -> bool:
        return self.config_path.exists()

    def get_log_dir(self, config: Optional[GlobalConfig] = None) -> Path:
        config = config or self.load()
        return Path(config.log_dir).expanduser() if config.log_dir else self.config_dir / 'logs'

    def _parse(self, data: Dict[str, Any]) -> GlobalConfig:
        defaults = self.default_config()

        default_agent = defaults.default_agent
        if 'default_agent' in data:
            default_agent = self._parse_agent(data['default_agent'])

        api_keys = data.get('api_keys') or {}
        if not isinstance(api_keys, dict):
            raise ConfigError("'api_keys' must be a mapping")
        unknown = set(api_keys) - set(API_KEY_ENV_VARS)
        if unknown:
            raise ConfigError(f"Unknown api_keys entries: {sorted(unknown)}")

        log_level = data.get('log_level', defaults.log_level)
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"'log_level' must be one of {list(LOG_LEVELS)}, got '{log_level}'")

        log_dir = data.get('log_dir', defaults.log_dir)
        if log_dir is not None and not isinstance(log_dir, str):
            raise ConfigError("'log_dir' must be a string")

        return GlobalConfig(
            default_agent=default_agent,
            api_keys={k: str(v) for k, v in api_keys.items() if v is not None},
            log_level=log_level,
            log_dir=log_dir,
        )

    @staticmethod
    def _parse_agent(data: Any) -> AgentConfig:
        if not isinstance(data, dict):
            raise ConfigError("'default_agent' must be a mapping")

        agent_type = data.get('type')
        if agent_type not in {t.value for t in AgentType}:
            raise ConfigError(f"Unknown default_agent type '{agent_type}'")

        temperature = data.get('temperature')
        if temperature is not None:
            if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
                raise ConfigError("'default_agent.temperature' must be a number")
            if not 0 <= temperature <= 1:
                raise ConfigError("'default_agent.temperature' must be between 0 and 1")

        model = data.get('model')
        return AgentConfig(
            type=agent_type,
            model=str(model) if model is not None else None,
            temperature=float(temperature) if temperature is not None else None,
        )

    def _process_env_variables(self, value: Any) -> Any:
        """Replace whole-string ${VAR} values with environment values."""
        if isinstance(value, str):
            match = ENV_REFERENCE_PATTERN.match(value)
            if match:
                return os.environ.get(match.group(1)) or value
            return value
        elif isinstance(value, list):
            return [self._process_env_variables(item) for item in value]
        elif isinstance(value, dict):
            return {k: self._process_env_variables(v) for k, v in value.items()}
        return value
