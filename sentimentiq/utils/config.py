"""
Configuration for SentimentIQ Pro.

Settings come from three layers, later layers winning:

1. built-in defaults (get_default_config)
2. config/config.yaml, with ${VAR} references resolved from the
   environment (a .env file is loaded first)
3. SENTIMENTIQ_* environment overrides for deployment knobs

The result is a plain dict checked against CONFIG_SCHEMA.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from sentimentiq.utils.errors import ConfigurationError

_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")

DEFAULT_CONFIG_PATHS = (
    Path("config/config.yaml"),
    Path("config.yaml"),
    Path(__file__).resolve().parent.parent.parent / "config" / "config.yaml",
)

# Environment variable -> (dotted key, type)
ENV_OVERRIDES: Dict[str, tuple] = {
    "SENTIMENTIQ_PROVIDER": ("provider.name", str),
    "SENTIMENTIQ_HISTORY_BACKEND": ("history.backend", str),
    "SENTIMENTIQ_HOST": ("server.host", str),
    "SENTIMENTIQ_PORT": ("server.port", int),
    "SENTIMENTIQ_LOG_LEVEL": ("logging.level", str),
    "SENTIMENTIQ_MAX_WORKERS": ("analysis.max_workers", int),
}


class ConfigManager:
    """
    Nested configuration dict with dotted-key access.

    Usage:
        config = ConfigManager.from_file(Path("config/config.yaml"))
        config.get("analysis.single_max_chars", default=5120)
        config.get_section("provider")
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict or {}

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Load a YAML file and resolve ${VAR} references.

        Raises:
            ConfigurationError: Missing file, invalid YAML, or a root that
                is not a mapping.
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}", config_key=str(file_path)
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}", config_key=str(file_path)
            ) from e

        if not isinstance(loaded, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping", config_key=str(file_path)
            )
        return cls(resolve_env_references(loaded))

    def get(self, key: str, default: Any = None, required: bool = False) -> Any:
        """
        Dotted-key lookup.

        Example:
            config.get("history.backend", default="memory")
            config.get("provider.name", required=True)
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}", config_key=key
                    )
                return default
            node = node[part]
        return node

    def get_section(self, key: str) -> Dict[str, Any]:
        """A whole section; empty dict if absent or not a mapping."""
        section = self.get(key, default={})
        return section if isinstance(section, dict) else {}

    def set(self, key: str, value: Any) -> None:
        *parents, leaf = key.split(".")
        node = self._config
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

    def merge_defaults(self, defaults: Dict[str, Any]) -> None:
        """Fill in keys the loaded file does not set."""
        self._config = _deep_merge(copy.deepcopy(defaults), self._config)

    def apply_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> None:
        """
        Apply SENTIMENTIQ_* variables.

        Raises:
            ConfigurationError: An override cannot be converted to its type.
        """
        environ = os.environ if environ is None else environ
        for var, (key, kind) in ENV_OVERRIDES.items():
            raw = environ.get(var)
            if raw is None or raw == "":
                continue
            try:
                self.set(key, kind(raw))
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {var}: {raw!r}", config_key=key
                ) from e

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Check types and required keys.

        Schema format:
            {"analysis.max_workers": {"type": int, "required": True}}

        Raises:
            ConfigurationError: First violation found.
        """
        for key, rules in schema.items():
            value = self.get(key)
            if value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Required configuration missing: {key}", config_key=key
                    )
                continue

            expected = rules.get("type")
            # bool is an int subclass
            if expected and (not isinstance(value, expected) or (
                expected is int and isinstance(value, bool)
            )):
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {expected.__name__}, "
                    f"got {type(value).__name__}",
                    config_key=key,
                )


CONFIG_SCHEMA: Dict[str, Any] = {
    "provider.name": {"type": str, "required": True},
    "analysis.comprehensive_max_chars": {"type": int, "required": True},
    "analysis.single_max_chars": {"type": int, "required": True},
    "analysis.summary_min_chars": {"type": int, "required": True},
    "analysis.max_workers": {"type": int},
    "features": {"type": dict},
    "history.backend": {"type": str},
    "monitoring.capacity": {"type": int},
    "server.port": {"type": int},
    "auth.algorithms": {"type": list},
}


def resolve_env_references(value: Any) -> Any:
    """
    Replace ${VAR} references in every string of a nested structure.

    A string that is only an unset reference becomes None so provider
    code can fall back to its own environment lookup. Unset references
    inside longer strings are left as written.
    """
    if isinstance(value, dict):
        return {k: resolve_env_references(v) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_env_references(v) for v in value]
    if not isinstance(value, str):
        return value

    whole = _ENV_REFERENCE.fullmatch(value)
    if whole and os.environ.get(whole.group(1)) is None:
        return None
    return _ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def find_config_file() -> Optional[Path]:
    for path in DEFAULT_CONFIG_PATHS:
        if path.exists():
            return path
    return None


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the effective configuration.

    Args:
        config_path: YAML file to load. If None, the first existing entry
            of DEFAULT_CONFIG_PATHS is used; with none found, defaults only.

    Returns:
        Dict[str, Any]: Validated configuration

    Raises:
        ConfigurationError: Unreadable file or a value of the wrong type.
    """
    load_dotenv()

    path = Path(config_path) if config_path else find_config_file()
    manager = ConfigManager.from_file(path) if path else ConfigManager()
    manager.merge_defaults(get_default_config())
    manager.apply_env_overrides()
    manager.validate(CONFIG_SCHEMA)
    return manager.to_dict()


def get_default_config() -> Dict[str, Any]:
    """
    Built-in defaults.

    Provider credentials are left unset here; each provider reads its own
    environment variables when the config does not name them.
    """
    return {
        "provider": {
            "name": "azure",
            "endpoint": None,
            "api_key": None,
            "api_version": "2023-04-01",
            "language": "en",
            "timeout": 30,
            "model": None,
            "temperature": 0.0,
            "max_tokens": 1000,
        },
        "analysis": {
            "comprehensive_max_chars": 10000,
            "single_max_chars": 5120,
            "summary_min_chars": 200,
            "max_workers": 5,
        },
        "features": {
            "sentiment": {"enabled": True},
            "keyPhrases": {"enabled": True},
            "entities": {"enabled": True},
            "summary": {"enabled": True},
            "language": {"enabled": True},
        },
        "history": {
            "backend": "memory",
            "url": None,
            "max_records_per_user": 500,
        },
        "monitoring": {
            "capacity": 1000,
        },
        "server": {
            "host": "127.0.0.1",
            "port": 3001,
            "cors_origins": ["http://localhost:5173", "http://127.0.0.1:5173"],
        },
        "admin": {
            "token": None,
        },
        "auth": {
            "jwt_secret": None,
            "algorithms": ["HS256"],
        },
        "logging": {
            "level": "INFO",
            "format": "json",
            "file": None,
        },
    }
