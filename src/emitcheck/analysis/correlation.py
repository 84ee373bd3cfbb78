"""Reduce per-file fact batches and join them into payload mismatches.

``merge_facts`` is the single reduce step run after every extraction worker
has finished. Batches may arrive in any order; they are sorted by path and
every table is built in lexical source order, so the first declaration of a
constant and the first binding of a channel name win. A later binding of the
same name to a different constant is kept out of the join and reported as an
:class:`AmbiguousBinding`.
"""

from __future__ import annotations

import logging
from typing import Iterable

from emitcheck.analysis.facts import (
    AmbiguousBinding,
    FileFacts,
    MergedFacts,
    MismatchRecord,
)

logger = logging.getLogger(__name__)


def _batch_key(batch: FileFacts) -> str:
    return batch.path.as_posix()


def merge_facts(batches: Iterable[FileFacts]) -> MergedFacts:
    merged = MergedFacts()
    ordered = sorted(batches, key=_batch_key)
    constants = sorted(
        (constant for batch in ordered for constant in batch.constants),
        key=lambda item: (item.path.as_posix(), item.line),
    )
    for constant in constants:
        existing = merged.constants.get(constant.qualified_name)
        if existing is None:
            merged.constants[constant.qualified_name] = constant
            continue
        if existing.declared_type != constant.declared_type:
            logger.warning(
                "%s declared in %s:%d and %s:%d; keeping the first",
                constant.qualified_name,
                existing.path,
                existing.line,
                constant.path,
                constant.line,
            )
    bindings = sorted(
        (binding for batch in ordered for binding in batch.bindings),
        key=lambda item: item.position,
    )
    for binding in bindings:
        existing = merged.bindings.get(binding.local_name)
        if existing is None:
            merged.bindings[binding.local_name] = binding
            continue
        if existing.channel_constant == binding.channel_constant:
            continue
        logger.warning(
            "emitter %r bound to %s at %s:%d and to %s at %s:%d; keeping the first",
            binding.local_name,
            existing.channel_constant,
            existing.path,
            existing.line,
            binding.channel_constant,
            binding.path,
            binding.line,
        )
        merged.ambiguous_bindings.append(
            AmbiguousBinding(local_name=binding.local_name, chosen=existing, rejected=binding)
        )
    merged.call_sites = sorted(
        (call for batch in ordered for call in batch.call_sites),
        key=lambda item: (item.path.as_posix(), item.line, item.method_name),
    )
    merged.emitter_fields = sorted(
        (item for batch in ordered for item in batch.emitter_fields),
        key=lambda item: (item.path.as_posix(), item.line, item.name),
    )
    return merged


def correlate(merged: MergedFacts) -> list[MismatchRecord]:
    mismatches: list[MismatchRecord] = []
    for call in merged.call_sites:
        binding = merged.bindings.get(call.method_name)
        if binding is None:
            continue
        constant = merged.constants.get(binding.channel_constant)
        if constant is None:
            continue
        declared = constant.declared_type.qualified
        inferred = call.inferred_type.qualified
        if declared is None or inferred is None:
            continue
        if declared == inferred:
            continue
        mismatches.append(
            MismatchRecord(
                method_name=call.method_name,
                channel_constant=binding.channel_constant,
                declared_type=declared,
                inferred_type=inferred,
                path=call.path,
                line=call.line,
            )
        )
    return mismatches
