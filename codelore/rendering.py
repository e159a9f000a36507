"""Markdown rendering of scan results into bounded knowledge documents."""

import logging
import re
from collections.abc import Iterable

from pydantic import BaseModel, Field

from codelore.canonical import BASIC_USAGE
from codelore.config import settings
from codelore.models import Example, ScanResult, Variant

logger = logging.getLogger(__name__)

TITLE_PREFIX = "[Bootstrap]"
CONTEXT_LINES = 3
GAP_MARKER = "    // ..."


def make_title(dimension: str, sub_topic: str) -> str:
    return f"{TITLE_PREFIX} {dimension}/{sub_topic}"


def part_sub_topic(sub_topic: str, part_index: int) -> str:
    """Sub-topic of the n-th (0-based) part; the first part keeps the plain name."""
    return sub_topic if part_index == 0 else f"{sub_topic}-p{part_index + 1}"


def build_candidate_doc(
    heading: str,
    one_liner: str = "",
    body_lines: Iterable[str] = (),
    *,
    basic_usage_blocks: Iterable[tuple[str, list[str]]] = (),
    code_blocks: Iterable[tuple[str, list[str]]] = (),
    agent_notes: Iterable[str] = (),
    relation_lines: Iterable[str] = (),
    lang: str = "",
) -> str:
    """Assemble a candidate's markdown document from its sections.

    ``basic_usage_blocks`` and ``code_blocks`` are ``(label, lines)`` pairs;
    empty sections are left out.
    """
    out = [f"# {heading}", ""]
    if one_liner:
        out += [f"> {one_liner}", ""]

    body = list(body_lines)
    if body:
        out += ["## Conventions", ""] + body + [""]

    basic = list(basic_usage_blocks)
    if basic:
        out += ["## Basic usage", ""]
        for label, code in basic:
            if label:
                out.append(f"{label}:")
            out += [f"```{lang}", *code, "```", ""]

    examples = list(code_blocks)
    if examples:
        out += ["## Project examples", ""]
        for source, code in examples:
            out += [f"```{lang}", f"// ── {source} ──", *code, "```", ""]

    notes = list(agent_notes)
    if notes:
        out += ["## Agent notes", ""] + [f"- {n}" for n in notes] + [""]

    relations = list(relation_lines)
    if relations:
        out += ["## Related knowledge", ""] + [f"- {r}" for r in relations] + [""]

    return "\n".join(out).rstrip() + "\n"


def trim_example_to_essence(block: list[str], matcher: re.Pattern | None, *, max_lines: int = 20) -> list[str]:
    """Keep only the lines that show the idiom, plus a little context.

    Short blocks and blocks without a matcher come back unchanged. Otherwise
    the first two lines, the last two lines and a window around every
    matching line survive; omitted runs of three or more lines collapse
    into one marker, shorter runs stay verbatim.
    """
    if not block or len(block) <= max_lines or matcher is None:
        return block

    keep = {0, 1}
    for i, line in enumerate(block):
        if matcher.search(line):
            keep.update(range(max(0, i - CONTEXT_LINES), min(len(block), i + CONTEXT_LINES + 1)))
    keep.update({len(block) - 1, len(block) - 2})

    if len(keep) > len(block) * 0.6:
        return block

    result: list[str] = []
    gap_start = -1
    for i, line in enumerate(block):
        if i in keep:
            if gap_start >= 0:
                result += block[gap_start:i] if i - gap_start <= 2 else [GAP_MARKER]
                gap_start = -1
            result.append(line)
        elif gap_start < 0:
            gap_start = i
    if gap_start >= 0:
        result += block[gap_start:] if len(block) - gap_start <= 2 else [GAP_MARKER]
    return result


def _pct(count: int, total: int) -> int:
    return round(count * 100 / total) if total > 0 else 0


def _example_lines(ex: Example, variant: Variant, scan: ScanResult, lang: str) -> list[str]:
    vdef = scan.variant_defs.get(variant.key)
    trimmed = trim_example_to_essence(ex.code_block, vdef.matcher if vdef else None)
    return [f"```{lang}", f"// ── {ex.file}:L{ex.line_number} ──", *trimmed, "```", ""]


def basic_usage_lines(lang: str, pattern_key: str, variant_key: str, project_prefix: str = "") -> list[str]:
    """Canonical snippet for a variant with ``{PREFIX}`` filled in, or [] when none exists."""
    snippet = BASIC_USAGE.get(f"{lang}:{pattern_key}:{variant_key}")
    if snippet is None:
        return []
    return [line.replace("{PREFIX}", project_prefix or "") for line in snippet.code]


def build_variant_body(
    scan: ScanResult,
    lang: str,
    *,
    pattern_key: str = "",
    project_prefix: str = "",
) -> list[str]:
    """Narrative body for one pattern: statistics, preferred style, secondary styles, footer."""
    primary = scan.primary
    if primary is None:
        return []

    total = scan.total_files
    other = scan.other_variant if scan.other_variant and scan.other_variant.file_count > 0 else None
    lines: list[str] = []

    if len(scan.variants) == 1 and other is None:
        lines += [f"{total} files use this; all use {primary.label}.", ""]
    else:
        styles = len(scan.variants) + (1 if other else 0)
        lines += [
            f"{total} files, {styles} styles; preferred **{primary.label}** "
            f"({primary.file_count} files, {_pct(primary.file_count, total)}%).",
            "",
        ]

    if pattern_key:
        basic = basic_usage_lines(lang, pattern_key, primary.key, project_prefix)
        if basic:
            lines += ["Basic usage:", "", f"```{lang}", *basic, "```", ""]

    for ex in primary.examples[:2]:
        lines += _example_lines(ex, primary, scan, lang)

    for v in scan.variants:
        if v is primary:
            continue
        sentence = f"Also {v.file_count} files ({_pct(v.file_count, total)}%) use {v.label}"
        if not v.boilerplate and v.examples:
            lines += [sentence + ":", ""]
            lines += _example_lines(v.examples[0], v, scan, lang)
        else:
            lines += [sentence + ".", ""]

    if other:
        lines += [
            f"Another {other.file_count} files ({_pct(other.file_count, total)}%) use other styles; "
            "not recommended for new code.",
            "",
        ]
    return lines


class CatalogEntry(BaseModel):
    """One catalog item rendered in full while budget remains, as its signature otherwise."""

    full: list[str]
    signature: str


class CatalogGroup(BaseModel):
    """Entries that belong together (typically one source file), kept in one part when they fit."""

    heading: str
    entries: list[CatalogEntry] = Field(default_factory=list)


def _size(lines: Iterable[str]) -> int:
    return sum(len(line) + 1 for line in lines)


def conventions_budget(
    heading: str,
    one_liner: str = "",
    *,
    agent_notes: Iterable[str] = (),
    relation_lines: Iterable[str] = (),
    lang: str = "",
    budget: int | None = None,
) -> int:
    """Characters left for the Conventions section of a ``build_candidate_doc`` document.

    ``document_body`` never exceeds ``budget`` as long as the body lines
    passed to ``build_candidate_doc`` fit in the returned size.
    """
    if budget is None:
        budget = settings.BODY_BUDGET_CHARS
    frame = build_candidate_doc(
        heading, one_liner, ["x"], agent_notes=agent_notes, relation_lines=relation_lines, lang=lang
    )
    return max(0, budget - (len(frame) - _size(["x"])))


def _render_group(group: CatalogGroup, used: int, budget: int) -> tuple[list[str], int]:
    lines = [f"### {group.heading}", ""]
    degraded = 0
    running = used + _size(lines)
    for entry in group.entries:
        full_size = _size(entry.full)
        if running + full_size <= budget:
            lines += entry.full
            running += full_size
        else:
            sig = f"- {entry.signature}"
            lines.append(sig)
            running += len(sig) + 1
            degraded += 1
    lines.append("")
    return lines, degraded


def _split_group(group: CatalogGroup, budget: int) -> list[list[str]]:
    """Spread a group too large for one part over several, each within ``budget``."""
    chunks: list[list[str]] = []
    lines = [f"### {group.heading}", ""]
    for entry in group.entries:
        sig = [f"- {entry.signature}"]
        # the closing blank line of each chunk counts against the budget
        if _size(lines) + _size(entry.full) + 1 <= budget:
            lines += entry.full
            continue
        if _size(lines) + _size(sig) + 1 <= budget:
            lines += sig
            continue
        chunks.append(lines + [""])
        lines = [f"### {group.heading} (cont.)", ""]
        if _size(lines) + _size(entry.full) + 1 <= budget:
            lines += entry.full
        else:
            room = max(0, budget - _size(lines) - 2)
            lines.append(sig[0][:room])
    chunks.append(lines + [""])
    return chunks


def render_catalog_parts(groups: Iterable[CatalogGroup], *, budget: int | None = None) -> list[list[str]]:
    """Lay catalog groups out into one or more parts, each within ``budget`` characters.

    Entries degrade to signature lines once the running size passes the
    budget. When a whole group no longer fits in the current part, that part
    is flushed and the group starts a new one. A group too large even on its
    own continues into further parts under a "(cont.)" heading, so every
    entry keeps at least its signature line.
    """
    if budget is None:
        budget = settings.BODY_BUDGET_CHARS

    parts: list[list[str]] = []
    current: list[str] = []
    used = 0

    for group in groups:
        if not group.entries:
            continue
        rendered, degraded = _render_group(group, used, budget)
        if current and used + _size(rendered) > budget:
            parts.append(current)
            current, used = [], 0
            rendered, degraded = _render_group(group, 0, budget)
        if degraded:
            logger.debug(f"{degraded} entries of '{group.heading}' rendered signature-only")

        if _size(rendered) > budget:
            chunks = _split_group(group, budget)
            logger.info(f"Catalog group '{group.heading}' spans {len(chunks)} parts")
            parts += chunks[:-1]
            current, used = chunks[-1], _size(chunks[-1])
            continue

        current += rendered
        used += _size(rendered)

    if current:
        parts.append(current)
    return parts
