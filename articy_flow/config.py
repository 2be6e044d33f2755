"""
articy-flow Configuration

Settings for loading exports and running interpreter sessions. Values come
from defaults, a JSON/YAML file, or ARTICY_FLOW_* environment variables.
"""

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .core.errors import ConfigError

ENV_PREFIX = "ARTICY_FLOW_"

UNMATCHED_CHOICE_POLICIES = ("error", "advance")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(value: str) -> bool:
    return value.lower() in ["true", "1", "yes"]


@dataclass
class ArticyFlowConfig:
    """Main configuration class"""

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_renderer: str = "console"

    # Tracing
    enable_tracing: bool = True
    trace_limit: int = 1000

    # Traversal
    unmatched_choice: str = "error"  # "error" or "advance"
    seed_global_variables: bool = True

    # Loading
    check_references: bool = True


def get_default_config() -> ArticyFlowConfig:
    return ArticyFlowConfig()


def load_config_from_file(config_path: Union[str, Path]) -> ArticyFlowConfig:
    """
    Load configuration from a JSON or YAML file

    Raises:
        ConfigError: missing file, unsupported format, malformed content
            or unknown keys
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in (".yaml", ".yml", ".json"):
        raise ConfigError(f"Unsupported config file format: {config_path.suffix}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(
            f"Failed to parse configuration file {config_path}: {e}", {"path": str(config_path)}
        ) from e

    return _config_from_dict(data or {})


def load_config_from_env() -> ArticyFlowConfig:
    """
    Load configuration from environment variables

    For example: ARTICY_FLOW_LOG_LEVEL=DEBUG, ARTICY_FLOW_UNMATCHED_CHOICE=advance
    """
    config = ArticyFlowConfig()

    env_mappings = {
        "LOG_LEVEL": ("log_level", str),
        "LOG_FORMAT": ("log_format", str),
        "LOG_RENDERER": ("log_renderer", str),
        "ENABLE_TRACING": ("enable_tracing", _parse_bool),
        "TRACE_LIMIT": ("trace_limit", int),
        "UNMATCHED_CHOICE": ("unmatched_choice", str),
        "SEED_GLOBAL_VARIABLES": ("seed_global_variables", _parse_bool),
        "CHECK_REFERENCES": ("check_references", _parse_bool),
    }

    for suffix, (attr_name, converter) in env_mappings.items():
        env_var = ENV_PREFIX + suffix
        value = os.getenv(env_var)
        if value is not None:
            try:
                setattr(config, attr_name, converter(value))
            except (ValueError, TypeError) as e:
                raise ConfigError(f"Invalid value for {env_var}: {value}. Error: {e}")

    return config


def merge_configs(
    base_config: ArticyFlowConfig, override_config: Dict[str, Any]
) -> ArticyFlowConfig:
    """Return a copy of base_config with override_config applied"""
    merged = asdict(base_config)
    merged.update(override_config)
    return _config_from_dict(merged)


def validate_config(config: ArticyFlowConfig) -> List[str]:
    """
    Validate configuration and return list of issues

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    if not isinstance(config.log_level, str) or config.log_level.upper() not in LOG_LEVELS:
        issues.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

    if config.log_renderer not in ("console", "keyvalue", "json"):
        issues.append("log_renderer must be one of console, keyvalue, json")

    if not isinstance(config.trace_limit, int) or isinstance(config.trace_limit, bool):
        issues.append("trace_limit must be an integer")
    elif config.trace_limit < 0:
        issues.append("trace_limit must not be negative")

    if config.unmatched_choice not in UNMATCHED_CHOICE_POLICIES:
        issues.append(
            f"unmatched_choice must be one of {', '.join(UNMATCHED_CHOICE_POLICIES)}"
        )

    return issues


def ensure_valid(config: ArticyFlowConfig) -> ArticyFlowConfig:
    issues = validate_config(config)
    if issues:
        raise ConfigError(f"Invalid configuration: {'; '.join(issues)}", {"issues": issues})
    return config


def _config_from_dict(data: Dict[str, Any]) -> ArticyFlowConfig:
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    known = {f.name for f in fields(ArticyFlowConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    return ArticyFlowConfig(**data)
