"""Configuration management for cartographer."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cartographer.collector.chart import DEFAULT_RELEASE

CONFIG_FILENAME = ".cartographer.yaml"
OUTPUT_FORMATS = ("dot", "mermaid", "json", "png", "svg")
LOG_LEVELS = ("debug", "info", "warning", "error")


def default_paths() -> list[Path]:
    return [
        Path.cwd() / CONFIG_FILENAME,
        Path.home() / CONFIG_FILENAME,
        Path.home() / ".config" / "cartographer" / "config.yaml",
    ]


@dataclass
class Config:
    """Application configuration."""

    log_level: str = "warning"
    default_format: str = "dot"

    # Resources dropped before analysis
    exclude_kinds: list[str] = field(default_factory=list)
    exclude_names: list[str] = field(default_factory=list)

    # Cluster mode
    kubeconfig: str = ""
    context: str = ""

    # Chart mode
    release: str = DEFAULT_RELEASE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create config from a dictionary (e.g., parsed YAML)."""
        log = _section(data, "log")
        output = _section(data, "output")
        exclude = _section(data, "exclude")
        cluster = _section(data, "cluster")
        helm = _section(data, "helm")

        return cls(
            log_level=_validate_log_level(str(log.get("level", "warning"))),
            default_format=_validate_format(str(output.get("defaultFormat", "dot"))),
            exclude_kinds=_string_list(exclude, "exclude", "kinds"),
            exclude_names=_string_list(exclude, "exclude", "names"),
            kubeconfig=cluster.get("kubeconfig", "") or "",
            context=cluster.get("context", "") or "",
            release=helm.get("release", DEFAULT_RELEASE) or DEFAULT_RELEASE,
        )

    @classmethod
    def load(cls, path: str | None = None) -> Config:
        """Load config from file, with env var overrides."""
        config_data: dict[str, Any] = {}

        # Find config file
        if path:
            config_path = Path(path)
        else:
            config_path = None
            for p in default_paths():
                if p.exists():
                    config_path = p
                    break

        if config_path and config_path.exists():
            with open(config_path) as f:
                try:
                    config_data = yaml.safe_load(f) or {}
                except yaml.YAMLError as exc:
                    raise ValueError(f"{config_path} is not valid YAML: {exc}") from exc
            if not isinstance(config_data, dict):
                raise ValueError(f"{config_path} must contain a mapping at the top level")

        config = cls.from_dict(config_data)

        # Environment variable overrides
        if env_level := os.environ.get("CARTOGRAPHER_LOG_LEVEL"):
            config.log_level = _validate_log_level(env_level)

        if env_format := os.environ.get("CARTOGRAPHER_OUTPUT_FORMAT"):
            config.default_format = _validate_format(env_format)

        if env_context := os.environ.get("CARTOGRAPHER_CONTEXT"):
            config.context = env_context

        return config


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Invalid config section '{key}': expected a mapping, got {type(value).__name__}")
    return value


def _string_list(section: dict[str, Any], parent: str, key: str) -> list[str]:
    value = section.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"Invalid config value '{parent}.{key}': expected a list, got {type(value).__name__}")
    return [str(v) for v in value]


def _validate_format(value: str) -> str:
    if value.lower() not in OUTPUT_FORMATS:
        raise ValueError(f"Invalid output format: {value}. Must be one of {OUTPUT_FORMATS}")
    return value.lower()


def _validate_log_level(value: str) -> str:
    if value.lower() not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {value}. Must be one of {LOG_LEVELS}")
    return value.lower()


SAMPLE_CONFIG = """\
# cartographer configuration
# Place this file at .cartographer.yaml in your project or home directory.

log:
  level: warning  # debug, info, warning, error

output:
  defaultFormat: dot  # dot, mermaid, json, png, svg

# Resources dropped before the graph is built
exclude:
  kinds: []  # e.g. [Secret, ServiceAccount] (case-insensitive)
  names: []  # exact metadata.name matches

# Cluster mode (--cluster)
cluster:
  # kubeconfig: ~/.kube/config  # default: $KUBECONFIG, then ~/.kube/config
  # context: my-cluster

# Chart mode (--chart)
helm:
  release: cartographer-release
"""
