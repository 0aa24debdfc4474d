"""Configuration management for the ppt-studio authoring pipeline."""

import copy
import yaml
import logging
from pathlib import Path
from typing import Dict, Any


# Built-in defaults; a config.yaml only needs to carry the keys it changes.
DEFAULT_CONFIG: Dict[str, Any] = {
    'paths': {
        'workspace': 'workspace',
    },
    'settings': {
        'logging': {
            'level': 'INFO',
        },
    },
    'script': {
        'bullet_min_length': 15,
        'bullet_max_length': 50,
        'max_bullets': 4,
        'language': 'zh',
    },
    'recommender': {
        'default_layout': 'bullet-list',
        'default_layout_score': 0.5,
        'max_alternatives': 2,
        'default_style': 'apple',
        'default_style_alternatives': ['tech', 'bold-editorial'],
    },
    'render': {
        'default_style': 'apple',
    },
    'deck': {
        'width_in': 10.0,
        'height_in': 5.625,
        'min_image_bytes': 30000,
        'output_name': 'recording.pptx',
    },
}


def load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """Load a YAML file and return its contents."""
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def merge_dicts(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries, overlay taking precedence."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


class Config:
    """Configuration manager that layers a YAML file over the built-in defaults."""

    def __init__(self, config_path: str | Path | None = None):
        """Initialize configuration.

        Args:
            config_path: Path to a YAML configuration file. When omitted only
                the built-in defaults are used.

        Raises:
            FileNotFoundError: If config_path is given but does not exist.
        """
        if config_path is None:
            self.config_path = None
            config_dir = Path.cwd()
            main_config: Dict[str, Any] = {}
        else:
            self.config_path = Path(config_path)
            config_dir = self.config_path.parent
            main_config = load_yaml_file(self.config_path)

        self._init_from(main_config, config_dir)
        self._setup_logging()

    @classmethod
    def from_dict(cls, main_config: Dict[str, Any], config_dir: Path | None = None) -> "Config":
        """Create a Config instance from an already loaded dictionary.

        Args:
            main_config: Configuration dictionary (overlaid on the defaults)
            config_dir: Directory used to resolve relative paths

        Returns:
            Configured Config instance
        """
        config = cls.__new__(cls)
        config.config_path = None
        config._init_from(main_config, config_dir or Path.cwd())
        config._setup_logging()
        return config

    def _init_from(self, main_config: Dict[str, Any], config_dir: Path) -> None:
        """Merge main_config over the defaults and set up path resolution."""
        self._config = merge_dicts(copy.deepcopy(DEFAULT_CONFIG), main_config)

        # Set up project_root from paths.project_root if present
        paths_config = self._config.get('paths', {})
        if 'project_root' in paths_config:
            self.project_root = (config_dir / paths_config['project_root']).resolve()
        else:
            self.project_root = Path(config_dir)

        self._paths = paths_config
        logging.debug(f"Loaded config from: {self.config_path or '<defaults>'}")

    def _resolve_path_value(self, value: str) -> Path:
        """Resolve a path value relative to project_root if not absolute.

        Args:
            value: Path string to resolve

        Returns:
            Resolved Path object
        """
        if not value:
            return Path()
        p = Path(value).expanduser()
        if not p.is_absolute():
            return self.project_root / p
        return p.resolve()

    def _setup_logging(self):
        """Setup logging based on configuration."""
        log_level = str(self.get('settings.logging.level', 'INFO'))
        numeric_level = getattr(logging, log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=numeric_level,
            format='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'deck.width_in')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_path(self, key: str) -> Path:
        """Get a path from configuration, resolved relative to project_root.

        Args:
            key: Path key in config (e.g., 'workspace')

        Returns:
            Resolved Path object
        """
        path_str = self._paths.get(key)
        if path_str is None:
            raise ValueError(f"Path '{key}' not found in configuration")
        return self._resolve_path_value(path_str)

    @property
    def workspace_dir(self) -> Path:
        """Get the directory that holds generated projects."""
        return self.get_path('workspace')
