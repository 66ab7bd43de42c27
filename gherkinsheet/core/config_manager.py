"""Configuration management"""
import copy
import os
import re
from pathlib import Path
from typing import Dict, Any

import yaml
from dotenv import load_dotenv

from gherkinsheet.utils.logger import setup_logger

logger = setup_logger(__name__)

ENV_VAR_RE = re.compile(r'\$\{([^}]+)\}')

DEFAULT_CONFIG: Dict[str, Any] = {
    'expander': {
        'inject_background': True,
    },
    'output': {
        'expand_dir': 'output-expanded',
        'xlsx_dir': 'output-testcase',
        'api_xlsx_dir': 'output-testcase-api',
        'table_dir': 'output-pipe-tables',
        'timestamp': True,
        'overwrite': False,
    },
    'pipe_table': {
        'indent': 4,
        'table_gap': 1,
    },
    'logging': {
        'level': 'INFO',
    },
}


class ConfigManager:
    """Manages configuration loading and merging"""

    def __init__(self, config_path: str, environment: str = None):
        self.config_path = Path(config_path)
        self.environment = environment
        self.config = {}

    def load_config(self) -> Dict[str, Any]:
        """Load defaults, the main config file and the environment overlay"""
        load_dotenv()
        self.config = copy.deepcopy(DEFAULT_CONFIG)

        # Load main config
        if self.config_path.exists():
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self.config = self._merge_configs(self.config, yaml.safe_load(f) or {})
        else:
            logger.debug(f"Config file not found, using defaults: {self.config_path}")

        # Load environment specific config
        if self.environment:
            env_config_path = self.config_path.parent / 'environments' / f'{self.environment}.yaml'
            if env_config_path.exists():
                with open(env_config_path, 'r', encoding='utf-8') as f:
                    env_config = yaml.safe_load(f) or {}

                    # Handle overrides section specially
                    if 'overrides' in env_config:
                        overrides = env_config.pop('overrides')
                        self._apply_overrides(self.config, overrides)

                    self.config = self._merge_configs(self.config, env_config)
            else:
                logger.warning(f"Environment config not found: {env_config_path}")

        # Process environment variables
        self.config = self._process_env_vars(self.config)

        logger.debug(f"Configuration loaded (environment: {self.environment or 'default'})")
        return self.config

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_overrides(self, base: Dict, overrides: Dict) -> None:
        """Apply overrides from environment config to base config"""
        for section, values in overrides.items():
            if section in base and isinstance(values, dict) and isinstance(base[section], dict):
                base[section].update(values)
            else:
                base[section] = values

    def _process_env_vars(self, config: Any) -> Any:
        """Replace ${VAR} with environment variables; unknown variables are kept"""
        if isinstance(config, dict):
            return {k: self._process_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._process_env_vars(item) for item in config]
        elif isinstance(config, str):
            return ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), config)
        else:
            return config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)"""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value
