"""Configuration loading from environment variables and an optional YAML file."""

import os
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import yaml

from logdest.filter import FilterRule
from logdest.levels import DEFAULT_LEVEL_COLORS, DEFAULT_LEVEL_LABELS, Level, parse_level

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S.%L"


class ConfigError(Exception):
    """Raised when a config file exists but cannot be parsed."""


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class FormatConfig:
    detail_output: bool = True
    colored: bool = True
    date_format: str = DEFAULT_DATE_FORMAT
    level_labels: Mapping = field(default_factory=lambda: dict(DEFAULT_LEVEL_LABELS))
    level_colors: Mapping = field(default_factory=lambda: dict(DEFAULT_LEVEL_COLORS))

    def __post_init__(self):
        # read-only copies
        object.__setattr__(self, "level_labels", MappingProxyType(dict(self.level_labels)))
        object.__setattr__(self, "level_colors", MappingProxyType(dict(self.level_colors)))


@dataclass(frozen=True)
class DestinationConfig:
    min_level: Level = Level.VERBOSE
    format: FormatConfig = field(default_factory=FormatConfig)
    rules: tuple = ()


def load_yaml_config(path: str | None) -> dict:
    """Load destination settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")
    logger.info("Loaded YAML config from %s", path)
    return data


def _level_or_default(value, default: Level, source: str) -> Level:
    if value is None:
        return default
    level = parse_level(value)
    if level is None:
        logger.warning("Unknown level %r in %s, falling back to %s",
                       value, source, default.name)
        return default
    return level


def _level_table(overrides: dict | None, defaults: dict, source: str) -> dict:
    if overrides is None:
        return dict(defaults)
    if not isinstance(overrides, dict):
        raise ConfigError(f"{source} must be a mapping of level to value, got {overrides!r}")
    table = dict(defaults)
    for name, value in overrides.items():
        level = parse_level(name)
        if level is None:
            logger.warning("Ignoring unknown level %r in %s", name, source)
            continue
        table[level] = str(value)
    return table


def _parse_rules(entries: list | None) -> tuple:
    if entries is not None and not isinstance(entries, list):
        raise ConfigError(f"filters must be a list, got {entries!r}")
    rules = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed filter entry: %r", entry)
            continue
        level = parse_level(entry.get("level", Level.VERBOSE))
        if level is None:
            logger.warning("Skipping filter with unknown level: %r", entry)
            continue
        rules.append(FilterRule(
            min_level=level,
            path=str(entry.get("path") or ""),
            function=str(entry.get("function") or ""),
        ))
    return tuple(rules)


def load_config(yaml_data: dict | None = None) -> DestinationConfig:
    """Build DestinationConfig from YAML data, with env vars taking precedence."""
    yaml_data = yaml_data or {}

    min_level = _level_or_default(
        os.environ.get("LOGDEST_MIN_LEVEL", yaml_data.get("min_level")),
        Level.VERBOSE,
        "min_level",
    )
    detail_output = _parse_bool(
        os.environ.get("LOGDEST_DETAIL_OUTPUT", yaml_data.get("detail_output", True))
    )
    colored = _parse_bool(
        os.environ.get("LOGDEST_COLORED", yaml_data.get("colored", True))
    )
    date_format = os.environ.get(
        "LOGDEST_DATE_FORMAT", yaml_data.get("date_format", DEFAULT_DATE_FORMAT)
    )

    fmt = FormatConfig(
        detail_output=detail_output,
        colored=colored,
        date_format=date_format or "",
        level_labels=_level_table(yaml_data.get("level_labels"),
                                  DEFAULT_LEVEL_LABELS, "level_labels"),
        level_colors=_level_table(yaml_data.get("level_colors"),
                                  DEFAULT_LEVEL_COLORS, "level_colors"),
    )
    return DestinationConfig(
        min_level=min_level,
        format=fmt,
        rules=_parse_rules(yaml_data.get("filters")),
    )
