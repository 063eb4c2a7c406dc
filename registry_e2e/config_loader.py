"""
Configuration Loader

Loads suite configuration from YAML files with per-environment overrides.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

# Repository-level config directory
CONFIG_DIR = Path(__file__).parent.parent / "config"


class ConfigLoader:
    """Resolve a named config section across base, profile and local files."""

    def __init__(self, config_dir: str = None, environment: str = "local"):
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self.environment = environment
        self._cache = {}

    def load(self, config_name: str) -> Dict[str, Any]:
        """
        Return the effective ``config_name`` section for this environment.

        ``base/<name>.yaml`` is the whole section. ``environments/<env>.yaml``
        and then ``local/overrides.yaml`` may each hold a ``<name>:`` key whose
        mapping is merged on top, nested keys included.

        Raises:
            ConfigError: base file missing or any file not a YAML mapping
        """
        cached = self._cache.get(config_name)
        if cached is not None:
            return cached

        base_file = self.config_dir / "base" / f"{config_name}.yaml"
        try:
            config = self._read_yaml(base_file)
        except FileNotFoundError as e:
            raise ConfigError(f"Base config not found: {base_file}") from e

        profile_file = self.config_dir / "environments" / f"{self.environment}.yaml"
        if profile_file.exists():
            section = self._read_yaml(profile_file).get(config_name) or {}
            config = self._merge_config(config, section)
        else:
            logger.debug(f"No environment profile at {profile_file}")

        overrides_file = self.config_dir / "local" / "overrides.yaml"
        if overrides_file.exists():
            section = self._read_yaml(overrides_file).get(config_name) or {}
            config = self._merge_config(config, section)
            logger.info(f"Applied local overrides from {overrides_file}")

        self._cache[config_name] = config
        return config

    def available_environments(self) -> List[str]:
        """List environment profile names found on disk."""
        env_dir = self.config_dir / "environments"
        if not env_dir.exists():
            return []
        return sorted(p.stem for p in env_dir.glob("*.yaml"))

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at top level of {path}")
        return data

    def _merge_config(self, base: Dict, override: Dict) -> Dict:
        """Nested mappings merge key by key; anything else replaces."""
        merged = dict(base)
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = self._merge_config(current, value)
            else:
                merged[key] = value
        return merged
