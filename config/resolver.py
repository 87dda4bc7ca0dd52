"""Priority-ordered configuration lookup across pluggable sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic_settings import BaseSettings

from utils.exceptions import ConfigurationMissingError


logger = logging.getLogger(__name__)

_MISSING = object()


class ConfigSource(ABC):
    """One origin of configuration values. Lower ``priority`` wins."""

    priority: int = 100
    name: str = "source"

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the value for ``key`` or ``None`` when this source has none."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(priority={self.priority})"


class EnvConfigSource(ConfigSource):
    """Process environment, after loading an optional ``.env`` file. Values are raw strings."""

    name = "env"

    def __init__(self, priority: int = 100, env_file: Optional[Path] = None) -> None:
        self.priority = priority
        if env_file is not None and Path(env_file).exists():
            from dotenv import load_dotenv
            load_dotenv(env_file)

    async def get(self, key: str) -> Optional[Any]:
        return os.environ.get(key)


class MappingConfigSource(ConfigSource):
    """In-memory values; used for overrides and tests."""

    name = "mapping"

    def __init__(self, values: Optional[Mapping[str, Any]] = None, priority: int = 10) -> None:
        self.priority = priority
        self._values: Dict[str, Any] = dict(values or {})

    async def get(self, key: str) -> Optional[Any]:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class JsonFileConfigSource(ConfigSource):
    """Persisted key/value store kept as a flat JSON object on disk."""

    name = "json-file"

    def __init__(self, path: Path, priority: int = 50) -> None:
        self.priority = priority
        self.path = Path(path)
        self._values: Dict[str, Any] = {}
        self.reload()

    def reload(self) -> None:
        if not self.path.exists():
            logger.info("config file %s not found, source is empty", self.path)
            self._values = {}
            return
        with self.path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"config file {self.path} must contain a JSON object")
        self._values = data

    async def get(self, key: str) -> Optional[Any]:
        return self._values.get(key)


class SettingsConfigSource(ConfigSource):
    """
    Typed defaults from pydantic-settings groups.

    Every field of every group is exposed under its environment name,
    e.g. ``settings.deepseek.base_url`` answers ``DEEPSEEK_BASE_URL``.
    """

    name = "settings"

    def __init__(self, settings: BaseSettings, priority: int = 200) -> None:
        self.priority = priority
        self._values = self._flatten(settings)

    @staticmethod
    def _flatten(settings: BaseSettings) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for field_name in type(settings).model_fields:
            group = getattr(settings, field_name)
            if not isinstance(group, BaseSettings):
                continue
            prefix = str(type(group).model_config.get("env_prefix") or "")
            for key, value in group.model_dump().items():
                if value is not None:
                    values[f"{prefix}{key}".upper()] = value
        return values

    async def get(self, key: str) -> Optional[Any]:
        return self._values.get(key)


class PrioritizedConfigResolver:
    """Resolves a key against sources sorted by ascending priority."""

    def __init__(self, sources: Optional[List[ConfigSource]] = None) -> None:
        self._sources: List[ConfigSource] = []
        for source in sources or []:
            self.add_source(source)

    def add_source(self, source: ConfigSource) -> None:
        self._sources.append(source)
        # stable sort keeps registration order among equal priorities
        self._sources.sort(key=lambda s: s.priority)

    def sources(self) -> List[ConfigSource]:
        return list(self._sources)

    def clear_sources(self) -> None:
        self._sources = []

    async def get(self, key: str) -> Any:
        """First non-``None`` value; ``ConfigurationMissingError`` if none."""
        for source in self._sources:
            value = await source.get(key)
            if value is not None:
                return value
        raise ConfigurationMissingError(key, sources=[s.name for s in self._sources])

    async def get_or_default(self, key: str, default: Any = None) -> Any:
        try:
            return await self.get(key)
        except ConfigurationMissingError:
            return default


def build_default_resolver(
    settings: Optional[BaseSettings] = None,
    *,
    config_file: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> PrioritizedConfigResolver:
    """Overrides, then JSON store, then environment, then typed settings defaults."""
    from .settings import get_settings

    resolver = PrioritizedConfigResolver()
    if overrides:
        resolver.add_source(MappingConfigSource(overrides, priority=10))
    if config_file is not None:
        resolver.add_source(JsonFileConfigSource(config_file, priority=50))
    resolver.add_source(EnvConfigSource(priority=100))
    resolver.add_source(SettingsConfigSource(settings or get_settings(), priority=200))
    return resolver
