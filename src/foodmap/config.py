"""Foodmap configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (FOODMAP_OUTPUT, FOODMAP_ORIGIN)
  3. Per-project foodmap.yaml
  4. Global ~/.foodmap/config.yaml
  5. Hardcoded defaults

All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from foodmap.offline.lifecycle import DEFAULT_PRECACHE, DEFAULT_RUNTIME_CACHE, DEFAULT_STATIC_CACHE
from foodmap.offline.policy import DEFAULT_PROVIDER_PATTERNS, DEFAULT_RUNTIME_PREFIX

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".foodmap"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
PROJECT_CONFIG_NAME: str = "foodmap.yaml"

_KNOWN_SECTIONS: frozenset[str] = frozenset(["ingest", "cache"])
_FORMATS: frozenset[str] = frozenset(["auto", "text", "yaml"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class IngestCfg:
    """Dataset ingestion (foodmap.yaml: ingest:).

    Attributes:
        source: Source document (line text or YAML).
        output: JSON artifact loaded by the map front-end.
        format: ``auto`` (from extension), ``text`` or ``yaml``.
    """

    source: str = "data/restaurants.yaml"
    output: str = "src/lib/restaurants.json"
    format: str = "auto"


@dataclass
class CacheCfg:
    """Offline cache (foodmap.yaml: cache:).

    Attributes:
        static_name: Generation tag of the precached app-shell cache.
        runtime_name: Generation tag of the runtime cache.
        precache: Paths fetched during install.
        runtime_prefix: Same-origin path prefix routed to the runtime cache.
        provider_patterns: Hostname regexes for tile/font providers.
        origin: Application origin.
        db: SQLite file used by ``foodmap cache`` commands.
    """

    static_name: str = DEFAULT_STATIC_CACHE
    runtime_name: str = DEFAULT_RUNTIME_CACHE
    precache: list[str] = field(default_factory=lambda: list(DEFAULT_PRECACHE))
    runtime_prefix: str = DEFAULT_RUNTIME_PREFIX
    provider_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_PROVIDER_PATTERNS))
    origin: str = "http://localhost:5173"
    db: str = ".foodmap-cache.db"


@dataclass
class FoodmapConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    ingest: IngestCfg = field(default_factory=IngestCfg)
    cache: CacheCfg = field(default_factory=CacheCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}', ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: FoodmapConfig) -> None:
    if cfg.ingest.format not in _FORMATS:
        raise ConfigError(
            f"ingest.format must be one of {sorted(_FORMATS)}, got '{cfg.ingest.format}'"
        )
    if cfg.cache.static_name == cfg.cache.runtime_name:
        raise ConfigError(
            f"cache.static_name and cache.runtime_name must differ "
            f"(both are '{cfg.cache.static_name}')"
        )
    if not cfg.cache.origin.startswith(("http://", "https://")):
        raise ConfigError(
            f"cache.origin must be an http(s) URL, got '{cfg.cache.origin}'\n"
            "  Example: cache.origin: https://foodmap.example.com"
        )
    for pattern in cfg.cache.provider_patterns:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ConfigError(f"cache.provider_patterns: invalid regex '{pattern}': {exc}")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _str_list(raw: Any, default: list[str]) -> list[str]:
    if raw is None:
        return list(default)
    if isinstance(raw, str):
        return [raw]
    return [str(item) for item in raw]


def _cfg_from_dict(data: dict[str, Any]) -> FoodmapConfig:
    """Build a *FoodmapConfig* from a merged raw YAML dict."""
    cfg = FoodmapConfig()

    if "ingest" in data:
        i = data["ingest"] or {}
        cfg.ingest = IngestCfg(
            source=str(i.get("source", cfg.ingest.source)),
            output=str(i.get("output", cfg.ingest.output)),
            format=str(i.get("format", cfg.ingest.format)),
        )

    if "cache" in data:
        c = data["cache"] or {}
        cfg.cache = CacheCfg(
            static_name=str(c.get("static_name", cfg.cache.static_name)),
            runtime_name=str(c.get("runtime_name", cfg.cache.runtime_name)),
            precache=_str_list(c.get("precache"), cfg.cache.precache),
            runtime_prefix=str(c.get("runtime_prefix", cfg.cache.runtime_prefix)),
            provider_patterns=_str_list(
                c.get("provider_patterns"), cfg.cache.provider_patterns
            ),
            origin=str(c.get("origin", cfg.cache.origin)),
            db=str(c.get("db", cfg.cache.db)),
        )

    return cfg


def _apply_env_overrides(cfg: FoodmapConfig) -> FoodmapConfig:
    """Apply FOODMAP_* environment variable overrides."""
    if output := os.environ.get("FOODMAP_OUTPUT"):
        cfg.ingest.output = output
    if origin := os.environ.get("FOODMAP_ORIGIN"):
        cfg.cache.origin = origin
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return data


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> FoodmapConfig:
    """Load and return a merged *FoodmapConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *foodmap.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *FoodmapConfig* with env var overrides applied.

    Raises:
        ConfigError: If a config file is malformed or holds an invalid value.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def default_project_yaml() -> str:
    """Return the commented foodmap.yaml written by ``foodmap init``."""
    cfg = FoodmapConfig()
    body = yaml.safe_dump(
        {
            "ingest": {
                "source": cfg.ingest.source,
                "output": cfg.ingest.output,
                "format": cfg.ingest.format,
            },
            "cache": {
                "origin": cfg.cache.origin,
                "static_name": cfg.cache.static_name,
                "runtime_name": cfg.cache.runtime_name,
                "precache": cfg.cache.precache,
                "runtime_prefix": cfg.cache.runtime_prefix,
                "db": cfg.cache.db,
            },
        },
        sort_keys=False,
    )
    return (
        "# Foodmap project configuration.\n"
        "# Bump cache.static_name (e.g. foodmap-v2) when the app shell changes;\n"
        "# activation then deletes the old generation.\n"
        "\n" + body
    )
