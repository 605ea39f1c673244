"""
Phantom Configuration

Loads the route folders, engine policy and logging settings from
config/phantom.yaml. A missing or unreadable file falls back to the built-in
defaults; a partial file only overrides the keys it names.
"""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

from .route_data import DEFAULT_TIME_SPACING, ROUTE_EXTENSION

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PHANTOM_CONFIG"

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    'routes': {
        # Searched recursively for route files. Should be as high up in the file system as possible
        'search_root': '/home',
        # Where NEW routes are saved. Older routes may live outside it
        'save_folder': '/home/lvuser/frc/routes',
        'extension': ROUTE_EXTENSION,
        'default_time_spacing_ms': DEFAULT_TIME_SPACING,
    },
    'engine': {
        'strict_transitions': True,
    },
    'logging': {
        'level': 'INFO',
        'log_file': None,
        'printouts': True,
    },
}


class PhantomConfig:
    """Settings for route discovery, storage and the joystick engine."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Args:
            config_path: Path to a YAML config. Defaults to $PHANTOM_CONFIG, then config/phantom.yaml
        """
        self.config_path = config_path or self._get_default_config_path()
        self.settings = self._load_settings()

        logger.debug(f"Phantom config loaded from {self.config_path}")

    @classmethod
    def from_dict(cls, settings: Dict[str, Any]) -> "PhantomConfig":
        """Build a config without a file, e.g. for tests or embedding."""
        config = cls.__new__(cls)
        config.config_path = None
        config.settings = _merge_settings(cls._get_default_settings(), settings)
        return config

    def _get_default_config_path(self) -> str:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return os.path.abspath(env_path)

        possible_paths = [
            os.path.join(os.getcwd(), "config", "phantom.yaml"),
            os.path.join(os.path.dirname(__file__), "..", "config", "phantom.yaml"),
        ]
        for path in possible_paths:
            abs_path = os.path.abspath(path)
            if os.path.exists(abs_path):
                return abs_path

        # Return first path as default even if it doesn't exist
        return os.path.abspath(possible_paths[0])

    def _load_settings(self) -> Dict[str, Any]:
        defaults = self._get_default_settings()
        if not os.path.exists(self.config_path):
            logger.warning(f"Config file not found: {self.config_path}, using defaults")
            return defaults

        try:
            with open(self.config_path, 'r') as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            return defaults

        if loaded is None:
            return defaults
        if not isinstance(loaded, dict):
            logger.error(f"Config {self.config_path} must be a mapping of sections, using defaults")
            return defaults
        return _merge_settings(defaults, loaded)

    @staticmethod
    def _get_default_settings() -> Dict[str, Any]:
        return copy.deepcopy(DEFAULT_SETTINGS)

    def set(self, section: str, key: str, value: Any):
        """Override one setting, e.g. from a command line flag."""
        self.settings.setdefault(section, {})[key] = value

    @property
    def search_root(self) -> str:
        return str(self.settings['routes']['search_root'])

    @property
    def save_folder(self) -> str:
        return str(self.settings['routes']['save_folder'])

    @property
    def extension(self) -> str:
        return str(self.settings['routes']['extension']).lstrip('.')

    @property
    def default_time_spacing(self) -> int:
        return int(self.settings['routes']['default_time_spacing_ms'])

    @property
    def strict_transitions(self) -> bool:
        return bool(self.settings['engine']['strict_transitions'])

    @property
    def logging_settings(self) -> Dict[str, Any]:
        return dict(self.settings['logging'])


def _merge_settings(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for section, values in overrides.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            logger.warning(f"Ignoring config section '{section}': expected a mapping")
    return merged
