"""
Configuration for the analyzer's callers.

Settings come from built-in defaults, then an optional YAML or JSON file
found by walking up from the working directory, then environment variables,
then command-line flags. The scanner itself reads none of this.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml

from .errors import ConfigError

CONFIG_FILENAMES = [
    ".cavvy-analyzer.yml",
    ".cavvy-analyzer.yaml",
    "cavvy-analyzer.yml",
    "cavvy-analyzer.yaml",
    ".cavvy-analyzer.json",
]

OUTPUT_FORMATS = ("text", "json", "yaml")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


ENV_MAPPINGS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "CAVVY_ANALYZER_COMPILER_PATH": ("compiler.path", str),
    "CAVVY_ANALYZER_DIAGNOSTIC_DELAY": ("diagnostics.delay_ms", int),
    "CAVVY_ANALYZER_ENABLE_DIAGNOSTICS": ("diagnostics.enabled", _parse_bool),
    "CAVVY_ANALYZER_LOG_LEVEL": ("logging.level", str.upper),
}


class Config:
    """Configuration with dotted-key access over a nested dictionary."""

    DEFAULT_CONFIG = {
        "diagnostics": {
            "enabled": True,
            "delay_ms": 500,
            "disabled_rules": [],
        },
        "compiler": {
            "path": "",  # empty disables the external check
            "timeout_seconds": 30,
        },
        "paths": {
            "include": ["."],
            "exclude": ["build", "target", ".git"],
        },
        "output": {
            "format": "text",
            "color": True,
        },
        "logging": {
            "level": "WARNING",
            "file": False,
            "dir": "logs",
        },
    }

    def __init__(self, config_dict: Optional[Dict] = None, source: Optional[Path] = None):
        """Initialize with optional config dictionary."""
        self.config = self._merge_configs(self.DEFAULT_CONFIG, config_dict or {})
        self.source = source

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from a file."""
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix in [".yaml", ".yml"]:
                    data = yaml.safe_load(f) or {}
                elif path.suffix == ".json":
                    data = json.load(f)
                else:
                    raise ConfigError(f"Unsupported config format: {path.suffix}", path=str(path))
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not parse {path}: {e}", path=str(path)) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Top level of {path} must be a mapping", path=str(path))
        return cls(data, source=path)

    @classmethod
    def find_config_file(cls, start_path: Union[str, Path]) -> Optional[Path]:
        """Nearest config file at or above ``start_path``."""
        current = Path(start_path).resolve()
        if current.is_file():
            current = current.parent

        while True:
            for name in CONFIG_FILENAMES:
                config_path = current / name
                if config_path.exists():
                    return config_path
            if current == current.parent:
                return None
            current = current.parent

    @classmethod
    def find_and_load(cls, start_path: Union[str, Path]) -> "Config":
        """Find and load configuration from standard locations."""
        config_path = cls.find_config_file(start_path)
        if config_path is None:
            return cls()
        return cls.from_file(config_path)

    @classmethod
    def load(cls, config_file: Optional[Union[str, Path]] = None,
             start_path: Union[str, Path] = ".",
             environ: Optional[Dict[str, str]] = None) -> "Config":
        """File (explicit or discovered) plus environment overrides, validated."""
        if config_file is not None:
            if not Path(config_file).exists():
                raise ConfigError(f"Config file not found: {config_file}", path=str(config_file))
            config = cls.from_file(config_file)
        else:
            config = cls.find_and_load(start_path)
        config.apply_environment_overrides(environ)

        problems = config.validate()
        if problems:
            raise ConfigError(
                "Invalid configuration: " + "; ".join(problems),
                path=str(config.source) if config.source else None,
                details={"problems": problems},
            )
        return config

    @staticmethod
    def get_environment_overrides(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Get configuration overrides from environment variables."""
        environ = os.environ if environ is None else environ
        overrides = {}

        for env_var, (config_key, config_type) in ENV_MAPPINGS.items():
            env_value = environ.get(env_var)
            if env_value is not None:
                try:
                    overrides[config_key] = config_type(env_value)
                except ValueError as e:
                    raise ConfigError(
                        f"Invalid environment variable {env_var}={env_value}: {e}",
                        key=config_key,
                    ) from e

        return overrides

    def apply_environment_overrides(self, environ: Optional[Dict[str, str]] = None) -> "Config":
        for key, value in self.get_environment_overrides(environ).items():
            self.set(key, value)
        return self

    def validate(self) -> List[str]:
        """Problems with the current values; empty when valid."""
        problems = []

        if not isinstance(self.get("diagnostics.enabled"), bool):
            problems.append("diagnostics.enabled must be true or false")
        delay = self.get("diagnostics.delay_ms")
        if not isinstance(delay, int) or isinstance(delay, bool) or delay < 0:
            problems.append(f"diagnostics.delay_ms must be a non-negative integer, got {delay!r}")
        disabled = self.get("diagnostics.disabled_rules", [])
        if not isinstance(disabled, list) or not all(isinstance(r, str) for r in disabled):
            problems.append("diagnostics.disabled_rules must be a list of rule names or codes")

        if not isinstance(self.get("compiler.path", ""), str):
            problems.append("compiler.path must be a string")
        timeout = self.get("compiler.timeout_seconds")
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
            problems.append(f"compiler.timeout_seconds must be positive, got {timeout!r}")

        for key in ("paths.include", "paths.exclude"):
            if not isinstance(self.get(key, []), list):
                problems.append(f"{key} must be a list")

        output_format = self.get("output.format")
        if output_format not in OUTPUT_FORMATS:
            problems.append(
                f"output.format must be one of {', '.join(OUTPUT_FORMATS)}, got {output_format!r}"
            )

        level = self.get("logging.level")
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            problems.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}")

        return problems

    def get(self, key: str, default=None):
        """Get configuration value by dot-separated key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value):
        """Set configuration value by dot-separated key."""
        keys = key.split(".")
        config = self.config

        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    @property
    def disabled_rules(self) -> List[str]:
        return list(self.get("diagnostics.disabled_rules", []))

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return copy.deepcopy(self.config)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.config, sort_keys=False, default_flow_style=False)

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Recursively merge configuration dictionaries."""
        result = copy.deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result
