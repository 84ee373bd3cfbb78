from __future__ import annotations

import ast
import io
import os
import tokenize
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from emitcheck.config import ExtractionConfig


@dataclass(frozen=True)
class ParseFailureWitness:
    path: Path
    stage: str
    error: str


@dataclass(frozen=True)
class PythonFileIngestCarrier:
    path: Path
    module_name: str
    is_package: bool
    tree: ast.Module
    comments: dict[int, str]


def iter_python_paths(paths: Iterable[str | Path], *, config: ExtractionConfig) -> list[Path]:
    """Expand input paths to python files, pruning ignored directories early."""
    out: list[Path] = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            for root, dirnames, filenames in os.walk(path, topdown=True):
                dirnames[:] = sorted(d for d in dirnames if d not in config.exclude_dirs)
                for filename in sorted(filenames):
                    if not filename.endswith(".py"):
                        continue
                    out.append(Path(root) / filename)
        else:
            if config.is_ignored_path(path):
                continue
            out.append(path)
    return sorted(set(out))


def module_name_for(path: Path, root: Path | None = None) -> tuple[str, bool]:
    """Dotted module name of ``path`` relative to ``root`` and whether it is a package."""
    relative = path.with_suffix("")
    if root is not None:
        try:
            relative = path.resolve().relative_to(root.resolve()).with_suffix("")
        except ValueError:
            relative = path.resolve().with_suffix("")
    parts = [part for part in relative.parts if part not in ("", ".", "..", relative.anchor)]
    is_package = bool(parts) and parts[-1] == "__init__"
    if is_package:
        parts = parts[:-1]
    if not parts:
        parts = [path.resolve().parent.name if is_package else path.stem]
    return ".".join(parts), is_package


def collect_comments(text: str) -> dict[int, str]:
    comments: dict[int, str] = {}
    for token in tokenize.generate_tokens(io.StringIO(text).readline):
        if token.type != tokenize.COMMENT:
            continue
        comments.setdefault(token.start[0], token.string)
    return comments


def ingest_python_file(path: Path, *, root: Path | None = None) -> PythonFileIngestCarrier:
    text = path.read_text(encoding="utf-8")
    tree = ast.parse(text, filename=str(path))
    module_name, is_package = module_name_for(path, root)
    return PythonFileIngestCarrier(
        path=path,
        module_name=module_name,
        is_package=is_package,
        tree=tree,
        comments=collect_comments(text),
    )
