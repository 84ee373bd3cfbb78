from __future__ import annotations

import concurrent.futures
import logging
import tokenize
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from emitcheck.analysis.correlation import correlate, merge_facts
from emitcheck.analysis.extractor import extract_file_facts
from emitcheck.analysis.facts import FileFacts, MergedFacts, MismatchRecord
from emitcheck.config import ExtractionConfig
from emitcheck.ingest.python_ingest import (
    ParseFailureWitness,
    ingest_python_file,
    iter_python_paths,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    facts: MergedFacts
    mismatches: list[MismatchRecord]
    parse_failures: list[ParseFailureWitness] = field(default_factory=list)
    file_count: int = 0


def extract_path(
    path: Path,
    *,
    config: ExtractionConfig,
    root: Path | None = None,
) -> FileFacts | ParseFailureWitness:
    """Load one file and extract its facts; read, parse and traversal failures become witnesses."""
    try:
        carrier = ingest_python_file(path, root=root)
    except (OSError, UnicodeDecodeError) as exc:
        return ParseFailureWitness(path=path, stage="read", error=str(exc))
    except (SyntaxError, ValueError, tokenize.TokenError, RecursionError, SystemError) as exc:
        # Deeply nested expressions overflow the parser as RecursionError or SystemError.
        return ParseFailureWitness(path=path, stage="parse", error=str(exc))
    try:
        return extract_file_facts(
            carrier.tree,
            path=path,
            module_name=carrier.module_name,
            comments=carrier.comments,
            config=config,
            is_package=carrier.is_package,
        )
    except RecursionError as exc:
        return ParseFailureWitness(path=path, stage="extract", error=str(exc))


def collect_facts(
    paths: Sequence[Path],
    *,
    config: ExtractionConfig,
    root: Path | None = None,
) -> tuple[list[FileFacts], list[ParseFailureWitness]]:
    batches: list[FileFacts] = []
    failures: list[ParseFailureWitness] = []
    if not paths:
        return batches, failures
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=min(config.workers, len(paths))
    ) as executor:
        futures = {
            executor.submit(extract_path, path, config=config, root=root): path
            for path in paths
        }
        done, _ = concurrent.futures.wait(
            futures, return_when=concurrent.futures.ALL_COMPLETED
        )
        for future in done:
            outcome = future.result()
            if isinstance(outcome, ParseFailureWitness):
                logger.warning(
                    "skipping %s: %s failed: %s", outcome.path, outcome.stage, outcome.error
                )
                failures.append(outcome)
            else:
                batches.append(outcome)
    failures.sort(key=lambda item: item.path.as_posix())
    return batches, failures


def run_analysis(
    paths: Iterable[str | Path],
    *,
    config: ExtractionConfig | None = None,
    root: Path | None = None,
) -> AnalysisResult:
    """Extract facts from every python file under ``paths`` and correlate them."""
    config = config or ExtractionConfig()
    files = iter_python_paths(paths, config=config)
    logger.info("extracting facts from %d file(s)", len(files))
    batches, failures = collect_facts(files, config=config, root=root)
    merged = merge_facts(batches)
    mismatches = correlate(merged)
    logger.info(
        "%d constant(s), %d binding(s), %d call site(s), %d mismatch(es)",
        len(merged.constants),
        len(merged.bindings),
        len(merged.call_sites),
        len(mismatches),
    )
    return AnalysisResult(
        facts=merged,
        mismatches=mismatches,
        parse_failures=failures,
        file_count=len(files),
    )
