"""
Configuration Management Module
Typed settings, prioritized key resolution and source lists
"""
from .settings import Settings, get_settings
from .resolver import (
    ConfigSource,
    EnvConfigSource,
    JsonFileConfigSource,
    MappingConfigSource,
    SettingsConfigSource,
    PrioritizedConfigResolver,
    build_default_resolver,
)
from .sources import DEFAULT_SOURCES, group_by_kind, load_sources, parse_sources

__all__ = [
    "Settings",
    "get_settings",
    "ConfigSource",
    "EnvConfigSource",
    "JsonFileConfigSource",
    "MappingConfigSource",
    "SettingsConfigSource",
    "PrioritizedConfigResolver",
    "build_default_resolver",
    "DEFAULT_SOURCES",
    "group_by_kind",
    "load_sources",
    "parse_sources",
]
