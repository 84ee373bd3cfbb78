from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Pattern, TypeAlias
import tomllib

from emitcheck.exceptions import ConfigError

DEFAULT_CONFIG_NAME = "emitcheck.toml"
CONFIG_SECTION = "emitcheck"

DEFAULT_CONSTANT_PREFIX = "Event"
DEFAULT_EMITTER_TYPE = "rabbit_events.EventEmitter"
DEFAULT_COMMENT_STRIP = r"^[ \t]*#+[ \t]*"
DEFAULT_UNKNOWN_TYPE = "types.UnknownEventType"
DEFAULT_MAX_DEPTH = 8
DEFAULT_WORKERS = 4
DEFAULT_EXCLUDE_DIRS = frozenset(
    {".git", ".hg", ".venv", "venv", "__pycache__", ".tox", ".mypy_cache", "build", "dist"}
)

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

_QUALIFIED_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\.[A-Za-z_][A-Za-z0-9_]*$")


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def emitcheck_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get(CONFIG_SECTION, {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def _as_positive_int(key: str, value: TomlValue, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(key, f"expected an integer, got {value!r}")
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(key, f"expected an integer, got {value!r}") from exc
    if parsed <= 0:
        raise ConfigError(key, f"must be positive, got {parsed}")
    return parsed


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


@dataclass(frozen=True)
class ExtractionConfig:
    constant_prefix: str = DEFAULT_CONSTANT_PREFIX
    emitter_type: str = DEFAULT_EMITTER_TYPE
    comment_strip: Pattern[str] = field(default_factory=lambda: re.compile(DEFAULT_COMMENT_STRIP))
    unknown_type: str = DEFAULT_UNKNOWN_TYPE
    exclude_dirs: frozenset[str] = DEFAULT_EXCLUDE_DIRS
    max_depth: int = DEFAULT_MAX_DEPTH
    workers: int = DEFAULT_WORKERS
    canonicalize_imports: bool = False

    def is_ignored_path(self, path: Path) -> bool:
        return any(part in self.exclude_dirs for part in path.parts)


def build_config(section: TomlTable | None = None) -> ExtractionConfig:
    """Validate a merged ``[emitcheck]`` table into an :class:`ExtractionConfig`."""
    section = section or {}
    prefix = section.get("constant_prefix", DEFAULT_CONSTANT_PREFIX)
    if not isinstance(prefix, str) or not prefix:
        raise ConfigError("constant_prefix", "must be a non-empty string")
    emitter_type = section.get("emitter_type", DEFAULT_EMITTER_TYPE)
    if not isinstance(emitter_type, str) or not _QUALIFIED_RE.match(emitter_type):
        raise ConfigError("emitter_type", f"expected 'module.Name', got {emitter_type!r}")
    raw_strip = section.get("comment_strip", DEFAULT_COMMENT_STRIP)
    if not isinstance(raw_strip, str):
        raise ConfigError("comment_strip", "must be a regular expression string")
    try:
        comment_strip = re.compile(raw_strip)
    except re.error as exc:
        raise ConfigError("comment_strip", str(exc)) from exc
    unknown_type = section.get("unknown_type", DEFAULT_UNKNOWN_TYPE)
    if not isinstance(unknown_type, str) or not unknown_type:
        raise ConfigError("unknown_type", "must be a non-empty string")
    exclude = section.get("exclude")
    exclude_dirs = (
        frozenset(_normalize_name_list(exclude)) if exclude is not None else DEFAULT_EXCLUDE_DIRS
    )
    return ExtractionConfig(
        constant_prefix=prefix,
        emitter_type=emitter_type,
        comment_strip=comment_strip,
        unknown_type=unknown_type,
        exclude_dirs=exclude_dirs,
        max_depth=_as_positive_int("max_depth", section.get("max_depth"), DEFAULT_MAX_DEPTH),
        workers=_as_positive_int("workers", section.get("workers"), DEFAULT_WORKERS),
        canonicalize_imports=_as_bool(section.get("canonicalize_imports")),
    )
