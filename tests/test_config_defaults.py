from __future__ import annotations

from pathlib import Path
import textwrap

import pytest

from emitcheck.config import (
    DEFAULT_EXCLUDE_DIRS,
    ExtractionConfig,
    build_config,
    emitcheck_defaults,
    merge_payload,
)
from emitcheck.exceptions import ConfigError


def test_emitcheck_defaults_reads_toml(tmp_path: Path) -> None:
    config_path = tmp_path / "emitcheck.toml"
    config_path.write_text(
        textwrap.dedent(
            """
            [emitcheck]
            constant_prefix = "Topic"
            emitter_type = "bus.Publisher"
            unknown_type = "bus.Unknown"
            exclude = ["vendor", "generated"]
            workers = 2
            canonicalize_imports = true
            """
        ).strip()
        + "\n"
    )
    defaults = emitcheck_defaults(root=tmp_path)
    config = build_config(defaults)
    assert config.constant_prefix == "Topic"
    assert config.emitter_type == "bus.Publisher"
    assert config.unknown_type == "bus.Unknown"
    assert config.exclude_dirs == frozenset({"vendor", "generated"})
    assert config.workers == 2
    assert config.canonicalize_imports is True


def test_missing_or_invalid_toml_yields_empty_defaults(tmp_path: Path) -> None:
    assert emitcheck_defaults(root=tmp_path) == {}
    broken = tmp_path / "broken.toml"
    broken.write_text("[emitcheck\nworkers = ", encoding="utf-8")
    assert emitcheck_defaults(config_path=broken) == {}
    other = tmp_path / "other.toml"
    other.write_text('emitcheck = "not a table"\n', encoding="utf-8")
    assert emitcheck_defaults(config_path=other) == {}


def test_build_config_defaults_match_dataclass() -> None:
    config = build_config({})
    default = ExtractionConfig()
    assert config.constant_prefix == default.constant_prefix == "Event"
    assert config.emitter_type == "rabbit_events.EventEmitter"
    assert config.unknown_type == "types.UnknownEventType"
    assert config.comment_strip.pattern == default.comment_strip.pattern
    assert config.exclude_dirs == DEFAULT_EXCLUDE_DIRS
    assert config.canonicalize_imports is False


def test_merge_payload_prefers_explicit_values() -> None:
    defaults = {"constant_prefix": "Topic", "workers": 8}
    payload = {"constant_prefix": None, "workers": 1}
    merged = merge_payload(payload, defaults)
    assert merged == {"constant_prefix": "Topic", "workers": 1}


def test_exclude_accepts_comma_separated_string() -> None:
    config = build_config({"exclude": "vendor, generated"})
    assert config.exclude_dirs == frozenset({"vendor", "generated"})


@pytest.mark.parametrize(
    ("section", "key"),
    [
        ({"comment_strip": "(["}, "comment_strip"),
        ({"workers": 0}, "workers"),
        ({"max_depth": "deep"}, "max_depth"),
        ({"max_depth": True}, "max_depth"),
        ({"emitter_type": "EventEmitter"}, "emitter_type"),
        ({"constant_prefix": ""}, "constant_prefix"),
        ({"unknown_type": 3}, "unknown_type"),
    ],
)
def test_build_config_rejects_invalid_values(section: dict, key: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        build_config(section)
    assert excinfo.value.key == key


def test_is_ignored_path_checks_every_component() -> None:
    config = ExtractionConfig(exclude_dirs=frozenset({"vendor"}))
    assert config.is_ignored_path(Path("src/vendor/lib.py"))
    assert not config.is_ignored_path(Path("src/vendored/lib.py"))
