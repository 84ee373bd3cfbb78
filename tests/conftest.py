from __future__ import annotations

import sys
import textwrap
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


import pytest

from emitcheck.config import ExtractionConfig


TYPES_MODULE = """
EventFoo = "foo.bar"  # pkg.FooPayload
EventBar = "bar.baz"  # pkg.BarPayload
EventBare = "bare"
NotAnEvent = "ignored"  # pkg.Ignored
"""

SERVICE_MODULE = """
import rabbit_events

from app import pkg
from app import types


class Service:
    notify: rabbit_events.EventEmitter

    def __init__(self, notify):
        self.notify = notify

    def publish(self, ctx, payload: {payload_type}):
        self.notify(ctx, payload)


def build(conn):
    return Service(notify=rabbit_events.new_emitter(types.EventFoo, conn))
"""


@pytest.fixture
def config() -> ExtractionConfig:
    return ExtractionConfig(workers=2)


@pytest.fixture
def write_tree():
    def _write(root: Path, files: dict[str, str]) -> Path:
        for rel, source in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return root

    return _write


@pytest.fixture
def scenario_project(tmp_path: Path, write_tree):
    def _make(payload_type: str = "pkg.FooPayload") -> Path:
        return write_tree(
            tmp_path,
            {
                "app/__init__.py": "",
                "app/types.py": TYPES_MODULE,
                "app/service.py": SERVICE_MODULE.replace("{payload_type}", payload_type),
            },
        )

    return _make
