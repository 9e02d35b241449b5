"""
Configuration Manager Module
Handles loading and accessing application configuration from YAML files and environment variables.
"""

import os
import re
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv


class ConfigManager:
    """Manages application configuration from YAML files and environment variables."""

    def __init__(self, data: Optional[Dict] = None):
        """
        Initialize configuration.

        Args:
            data: Optional configuration mapping. When omitted the
                configuration is loaded from config/config.yaml.
        """
        if data is not None:
            self._config = data
        else:
            self._load_configuration()

    def _load_configuration(self) -> None:
        """Load all configuration files."""
        # Load environment variables from .env file
        load_dotenv()

        config_dir = self._find_config_dir()
        if config_dir is None:
            self._config = {}
            return

        self._config = self._load_yaml_with_env(config_dir / 'config.yaml')

    def _find_config_dir(self) -> Optional[Path]:
        """Find the configuration directory."""
        env_config_dir = os.getenv('CONFIG_DIR')
        if env_config_dir:
            return Path(env_config_dir)

        possible_paths = [
            Path(__file__).parent.parent / 'config',  # Relative to the package
            Path.cwd() / 'config',
            Path('/app/config'),  # Docker container
        ]

        for path in possible_paths:
            if path.exists():
                return path

        return None

    def _load_yaml_with_env(self, file_path: Path) -> Dict:
        """
        Load YAML file with environment variable substitution.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.
        """
        if not file_path.exists():
            return {}

        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()

        content = self.substitute_env_vars(content)

        return yaml.safe_load(content) or {}

    def substitute_env_vars(self, content: str) -> str:
        """
        Substitute environment variables in string.

        Supports:
        - ${VAR_NAME} - Required variable
        - ${VAR_NAME:-default} - Variable with default value
        """
        pattern = r'\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}'

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2)

            value = os.getenv(var_name)
            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                return match.group(0)  # Return original if not found

        return re.sub(pattern, replacer, content)

    # ========================================
    # Configuration Getters
    # ========================================

    def get_database_config(self) -> Dict:
        """Get database configuration."""
        return self._config.get('database') or {}

    def get_auth_config(self) -> Dict:
        """Get authentication configuration."""
        return self._config.get('auth') or {}

    def get_jira_config(self) -> Dict:
        """Get Jira client configuration."""
        return self._config.get('jira') or {}

    def get_monitor_config(self) -> Dict:
        """Get tracker monitor configuration."""
        return self._config.get('monitor') or {}

    def get_logging_config(self) -> Dict:
        """Get logging configuration."""
        return self._config.get('logging') or {}

    def reload(self) -> None:
        """Reload configuration from files."""
        self._config = None
        self._load_configuration()


_config: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the shared configuration manager instance."""
    global _config
    if _config is None:
        _config = ConfigManager()
    return _config
