"""Render analysis results as line diagnostics, markdown, or DTOs."""

from __future__ import annotations

from pathlib import Path

from emitcheck.analysis.facts import EmitterBinding, MergedFacts
from emitcheck.pipeline import AnalysisResult
from emitcheck.schema import (
    AmbiguousBindingDTO,
    AnalysisResponse,
    AnalysisStatsDTO,
    CallSiteDTO,
    ConstantDTO,
    EmitterBindingDTO,
    EmitterFieldDTO,
    MismatchDTO,
    ParseFailureDTO,
)


def _display(path: Path, root: Path | None) -> str:
    if root is None:
        return path.as_posix()
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def _binding_dto(binding: EmitterBinding, root: Path | None) -> EmitterBindingDTO:
    return EmitterBindingDTO(
        local_name=binding.local_name,
        channel_constant=str(binding.channel_constant),
        path=_display(binding.path, root),
        line=binding.line,
    )


def build_response(
    result: AnalysisResult,
    *,
    root: Path | None = None,
    include_facts: bool = True,
) -> AnalysisResponse:
    facts = result.facts
    response = AnalysisResponse(
        mismatches=[
            MismatchDTO(
                method_name=item.method_name,
                channel_constant=str(item.channel_constant),
                declared_type=str(item.declared_type),
                inferred_type=str(item.inferred_type),
                path=_display(item.path, root),
                line=item.line,
            )
            for item in result.mismatches
        ],
        ambiguous_bindings=[
            AmbiguousBindingDTO(
                local_name=item.local_name,
                chosen=_binding_dto(item.chosen, root),
                rejected=_binding_dto(item.rejected, root),
            )
            for item in facts.ambiguous_bindings
        ],
        parse_failures=[
            ParseFailureDTO(path=_display(item.path, root), stage=item.stage, error=item.error)
            for item in result.parse_failures
        ],
        stats=AnalysisStatsDTO(
            files=result.file_count,
            constants=len(facts.constants),
            bindings=len(facts.bindings),
            call_sites=len(facts.call_sites),
            mismatches=len(result.mismatches),
        ),
    )
    if not include_facts:
        return response
    response.constants = [
        ConstantDTO(
            qualified_name=str(item.qualified_name),
            literal_value=item.literal_value,
            declared_type=str(item.declared_type),
            declared_type_resolved=item.declared_type.resolved,
            path=_display(item.path, root),
            line=item.line,
        )
        for item in sorted(facts.constants.values(), key=lambda item: item.qualified_name)
    ]
    response.bindings = [
        _binding_dto(item, root)
        for item in sorted(facts.bindings.values(), key=lambda item: item.local_name)
    ]
    response.call_sites = [
        CallSiteDTO(
            receiver_name=item.receiver_name,
            method_name=item.method_name,
            argument_name=item.argument_name,
            inferred_type=str(item.inferred_type),
            inferred_type_resolved=item.inferred_type.resolved,
            path=_display(item.path, root),
            line=item.line,
        )
        for item in facts.call_sites
    ]
    response.emitter_fields = [
        EmitterFieldDTO(
            name=item.name,
            type_name=str(item.type_name),
            path=_display(item.path, root),
            line=item.line,
        )
        for item in facts.emitter_fields
    ]
    return response


def render_fact_lines(facts: MergedFacts, *, root: Path | None = None) -> list[str]:
    lines: list[str] = []
    for constant in sorted(facts.constants.values(), key=lambda item: item.qualified_name):
        lines.append(
            f"const {constant.qualified_name} event={constant.literal_value!r} "
            f"type={constant.declared_type} ({_display(constant.path, root)}:{constant.line})"
        )
    for binding in sorted(facts.bindings.values(), key=lambda item: item.local_name):
        lines.append(
            f"emitter {binding.local_name} => {binding.channel_constant} "
            f"({_display(binding.path, root)}:{binding.line})"
        )
    for item in facts.emitter_fields:
        lines.append(
            f"field {item.name}: {item.type_name} ({_display(item.path, root)}:{item.line})"
        )
    for call in facts.call_sites:
        lines.append(
            f"call {call.receiver_name}.{call.method_name}({call.argument_name}) "
            f"=> {call.inferred_type} ({_display(call.path, root)}:{call.line})"
        )
    return lines


def render_text(
    result: AnalysisResult,
    *,
    root: Path | None = None,
    include_facts: bool = False,
) -> str:
    lines: list[str] = []
    if include_facts:
        lines.extend(render_fact_lines(result.facts, root=root))
    for item in result.facts.ambiguous_bindings:
        lines.append(
            f"{_display(item.rejected.path, root)}:{item.rejected.line}: ambiguous emitter "
            f"{item.local_name!r} => {item.rejected.channel_constant} ignored; using "
            f"{item.chosen.channel_constant} from "
            f"{_display(item.chosen.path, root)}:{item.chosen.line}"
        )
    for failure in result.parse_failures:
        lines.append(f"{_display(failure.path, root)}: {failure.stage} failed: {failure.error}")
    for mismatch in result.mismatches:
        lines.append(
            f"{_display(mismatch.path, root)}:{mismatch.line}: {mismatch.method_name} emits "
            f"{mismatch.channel_constant} expecting {mismatch.declared_type}, "
            f"got {mismatch.inferred_type}"
        )
    return "\n".join(lines)


def render_markdown(result: AnalysisResult, *, root: Path | None = None) -> str:
    facts = result.facts
    lines = [
        "# Emitter payload report",
        "",
        f"Files scanned: {result.file_count}",
        f"Constants: {len(facts.constants)}; bindings: {len(facts.bindings)}; "
        f"call sites: {len(facts.call_sites)}",
        "",
        "## Mismatches",
        "",
    ]
    if not result.mismatches:
        lines.append("No payload mismatches.")
    else:
        lines.append("| Location | Emitter | Event | Declared | Passed |")
        lines.append("| --- | --- | --- | --- | --- |")
        for item in result.mismatches:
            lines.append(
                f"| {_display(item.path, root)}:{item.line} | {item.method_name} | "
                f"{item.channel_constant} | {item.declared_type} | {item.inferred_type} |"
            )
    if facts.ambiguous_bindings:
        lines.extend(["", "## Ambiguous emitters", ""])
        for item in facts.ambiguous_bindings:
            lines.append(
                f"- `{item.local_name}`: using {item.chosen.channel_constant} "
                f"({_display(item.chosen.path, root)}:{item.chosen.line}), ignoring "
                f"{item.rejected.channel_constant} "
                f"({_display(item.rejected.path, root)}:{item.rejected.line})"
            )
    unresolved = [call for call in facts.call_sites if not call.inferred_type.resolved]
    if unresolved:
        lines.extend(["", "## Unresolved payloads", ""])
        for call in unresolved:
            lines.append(
                f"- {_display(call.path, root)}:{call.line} "
                f"`{call.receiver_name}.{call.method_name}({call.argument_name})`"
            )
    if result.parse_failures:
        lines.extend(["", "Parse failures:", "```"])
        lines.extend(
            f"{_display(item.path, root)}: {item.stage}: {item.error}"
            for item in result.parse_failures
        )
        lines.append("```")
    return "\n".join(lines) + "\n"
