from __future__ import annotations

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer

from emitcheck.config import build_config, emitcheck_defaults, merge_payload
from emitcheck.exceptions import ConfigError
from emitcheck.pipeline import AnalysisResult, run_analysis
from emitcheck.reporting import build_response, render_markdown, render_text

app = typer.Typer(add_completion=False, help="Check event emitter payload types.")

_STDOUT_ALIAS = "-"


class OutputFormat(str, Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    package_logger = logging.getLogger("emitcheck")
    package_logger.setLevel(level)
    package_logger.handlers = [handler]


def _write_text_to_target(target: Optional[Path], payload: str) -> None:
    if target is None or str(target) == _STDOUT_ALIAS:
        typer.echo(payload)
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    text = payload if payload.endswith("\n") else payload + "\n"
    target.write_text(text, encoding="utf-8")


def _run(
    *,
    paths: Optional[List[Path]],
    root: Path,
    config: Optional[Path],
    overrides: dict[str, object],
) -> AnalysisResult:
    defaults = emitcheck_defaults(root=root, config_path=config)
    merged = merge_payload(overrides, defaults)
    try:
        extraction = build_config(merged)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc
    targets = list(paths) if paths else [root]
    return run_analysis(targets, config=extraction, root=root)


@app.command("check")
def check(
    paths: List[Path] = typer.Argument(None),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    output_format: OutputFormat = typer.Option(OutputFormat.TEXT, "--format"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
    constant_prefix: Optional[str] = typer.Option(None, "--constant-prefix"),
    emitter_type: Optional[str] = typer.Option(None, "--emitter-type"),
    unknown_type: Optional[str] = typer.Option(None, "--unknown-type"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth"),
    workers: Optional[int] = typer.Option(None, "--workers"),
    canonicalize_imports: Optional[bool] = typer.Option(
        None, "--canonicalize-imports/--no-canonicalize-imports"
    ),
    include_facts: bool = typer.Option(False, "--include-facts/--no-include-facts"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True),
) -> None:
    """Report emitter call sites whose payload type differs from the event's declared type.

    Findings are advisory: the command exits 0 whether or not mismatches are found.
    """
    _configure_logging(verbose)
    result = _run(
        paths=paths,
        root=root,
        config=config,
        overrides={
            "constant_prefix": constant_prefix,
            "emitter_type": emitter_type,
            "unknown_type": unknown_type,
            "exclude": exclude or None,
            "max_depth": max_depth,
            "workers": workers,
            "canonicalize_imports": canonicalize_imports,
        },
    )
    if output_format is OutputFormat.JSON:
        response = build_response(result, root=root, include_facts=include_facts)
        payload = response.model_dump_json(indent=2)
    elif output_format is OutputFormat.MARKDOWN:
        payload = render_markdown(result, root=root)
    else:
        payload = render_text(result, root=root, include_facts=include_facts)
    if payload:
        _write_text_to_target(output, payload)


@app.command("facts")
def facts(
    paths: List[Path] = typer.Argument(None),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True),
) -> None:
    """Dump the extracted fact tables and mismatches as JSON."""
    _configure_logging(verbose)
    result = _run(paths=paths, root=root, config=config, overrides={})
    response = build_response(result, root=root, include_facts=True)
    _write_text_to_target(output, response.model_dump_json(indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
