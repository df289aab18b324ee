# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Layered configuration: packaged defaults, YAML/TOML files, env overrides."""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PREFIX_ATTR = "__pysession_config_prefix__"

_ENV_PREFIX = "PYSESSION_"

_DEFAULTS_RESOURCE = "pysession-defaults.yaml"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass or pydantic model as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="pysession.session")
        class SessionProperties(BaseModel):
            cookie_name: str = "sessionId"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PREFIX_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Nested configuration mapping with dot-notation access.

    Lookup order (first hit wins):
    1. Environment variables (``PYSESSION_SESSION_COOKIE_NAME`` for
       ``pysession.session.cookie-name``)
    2. Loaded file / dict values
    3. The default passed to :meth:`get`
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Files that contributed to this config, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* on top of the packaged defaults.

        Profile overlays named ``<stem>-<profile><suffix>`` next to *path*
        are merged afterwards, later profiles winning.
        """
        path = Path(path)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append(f"{_DEFAULTS_RESOURCE} (defaults)")

        if path.is_file():
            data = cls._deep_merge(data, cls._load_config_data(path))
            sources.append(str(path))

            for profile in active_profiles or []:
                overlay = path.parent / f"{path.stem}-{profile}{path.suffix}"
                if overlay.is_file():
                    data = cls._deep_merge(data, cls._load_config_data(overlay))
                    sources.append(f"{overlay} (profile: {profile})")

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @staticmethod
    def _load_config_data(path: Path) -> dict[str, Any]:
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return tomllib.load(f) or {}
        with open(path) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _load_defaults() -> dict[str, Any]:
        resource = importlib.resources.files("pysession.resources").joinpath(_DEFAULTS_RESOURCE)
        return yaml.safe_load(resource.read_text()) or {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        merged = dict(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    @staticmethod
    def _env_key(key: str) -> str:
        base = key.removeprefix("pysession.")
        return _ENV_PREFIX + base.upper().replace(".", "_").replace("-", "_")

    def _walk(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at dot-notation *key*.

        String values may contain ``${NAME}``, ``${other.key}`` or
        ``${NAME:fallback}`` placeholders, resolved on read.
        """
        env_val = os.environ.get(self._env_key(key))
        if env_val is not None:
            return env_val

        value = self._walk(key)
        if value is None:
            return default
        if isinstance(value, str) and "${" in value:
            return self._resolve_placeholders(value)
        return value

    def _resolve_placeholders(self, value: str, _depth: int = 0) -> str:
        if _depth > 10:
            raise ValueError(f"Placeholder recursion too deep in '{value}'; check for circular references.")

        def _replace(match: re.Match[str]) -> str:
            ref_key, sep, fallback = match.group(1).partition(":")

            env_val = os.environ.get(ref_key)
            if env_val is not None:
                return env_val

            found = self._walk(ref_key)
            if found is not None:
                resolved = str(found)
                if "${" in resolved:
                    resolved = self._resolve_placeholders(resolved, _depth + 1)
                return resolved

            if sep:
                return cast(str, fallback)

            raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}'")

        return _PLACEHOLDER_RE.sub(_replace, value)

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Return the nested mapping under *prefix* (empty when absent), placeholders resolved."""
        section = self._walk(prefix)
        return self._resolve_tree(section) if isinstance(section, dict) else {}

    def _resolve_tree(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: self._resolve_tree(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._resolve_tree(v) for v in value]
        if isinstance(value, str) and "${" in value:
            return self._resolve_placeholders(value)
        return value

    def bind(self, config_cls: type[T]) -> T:
        """Build a ``@config_properties`` dataclass or pydantic model from its section."""
        prefix = getattr(config_cls, _CONFIG_PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = self.get_section(prefix)

        if isinstance(config_cls, type) and issubclass(config_cls, BaseModel):
            try:
                return config_cls.model_validate(section)
            except ValidationError as exc:
                raise ValueError(
                    f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}"
                ) from exc

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            if field.name not in section:
                continue
            value = section[field.name]
            expected = hints.get(field.name)
            if isinstance(value, str):
                if expected is int:
                    value = int(value)
                elif expected is float:
                    value = float(value)
                elif expected is bool:
                    value = value.lower() in ("true", "1", "yes")
            kwargs[field.name] = value

        return config_cls(**kwargs)
