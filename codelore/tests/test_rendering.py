"""Tests for document rendering: titles, trimming, variant bodies and budgeted catalogs."""

import re

from codelore.models import Example, ScanResult, Variant, VariantDefinition
from codelore.rendering import (
    GAP_MARKER,
    CatalogEntry,
    CatalogGroup,
    build_candidate_doc,
    build_variant_body,
    conventions_budget,
    make_title,
    part_sub_topic,
    render_catalog_parts,
    trim_example_to_essence,
)

MATCH = re.compile(r"MATCH")


def _size(lines):
    return sum(len(line) + 1 for line in lines)


class TestTitles:
    def test_make_title(self):
        assert make_title("deep-scan", "defines/XYConstants.h") == "[Bootstrap] deep-scan/defines/XYConstants.h"

    def test_part_sub_topic(self):
        assert part_sub_topic("defines/a.h", 0) == "defines/a.h"
        assert part_sub_topic("defines/a.h", 1) == "defines/a.h-p2"
        assert part_sub_topic("defines/a.h", 2) == "defines/a.h-p3"


class TestTrimExample:
    def test_short_block_unchanged(self):
        block = [f"line {i}" for i in range(10)]
        assert trim_example_to_essence(block, MATCH) == block

    def test_no_matcher_unchanged(self):
        block = [f"line {i}" for i in range(40)]
        assert trim_example_to_essence(block, None) == block

    def test_long_gaps_collapse(self):
        block = [f"line {i}" for i in range(40)]
        block[20] = "MATCH here"
        trimmed = trim_example_to_essence(block, MATCH)
        assert trimmed == block[0:2] + [GAP_MARKER] + block[17:24] + [GAP_MARKER] + block[38:40]

    def test_short_gaps_kept_verbatim(self):
        block = [f"line {i}" for i in range(22)]
        block[6] = "MATCH here"
        trimmed = trim_example_to_essence(block, MATCH)
        assert trimmed == block[0:10] + [GAP_MARKER] + block[20:22]
        assert "line 2" in trimmed


class TestCandidateDoc:
    def test_sections_in_order(self):
        doc = build_candidate_doc(
            "Heading",
            "one liner",
            ["body"],
            basic_usage_blocks=[("Basic", ["code()"])],
            code_blocks=[("a.m:L1", ["x"])],
            agent_notes=["note"],
            relation_lines=["EXTENDS: [t] — d"],
            lang="objectivec",
        )
        order = ["# Heading", "> one liner", "## Conventions", "## Basic usage", "## Project examples",
                 "## Agent notes", "## Related knowledge"]
        positions = [doc.index(s) for s in order]
        assert positions == sorted(positions)
        assert "```objectivec" in doc

    def test_empty_sections_omitted(self):
        doc = build_candidate_doc("Heading")
        assert doc == "# Heading\n"


class TestVariantBody:
    def _scan(self):
        defs = {
            "a": VariantDefinition(label="Style A", matcher=re.compile("A")),
            "b": VariantDefinition(label="Style B", matcher=re.compile("B")),
        }
        return ScanResult(
            total_files=10,
            variants=[
                Variant(key="a", label="Style A", file_count=6,
                        examples=[Example(file="x.m", line_number=3, code_block=["A();"])]),
                Variant(key="b", label="Style B", file_count=3,
                        examples=[Example(file="y.m", line_number=5, code_block=["B();"])]),
            ],
            other_variant=Variant(key="_other", label="Other styles", file_count=1),
            variant_defs=defs,
        )

    def test_statistics_and_footer(self):
        text = "\n".join(build_variant_body(self._scan(), "objectivec"))
        assert "10 files, 3 styles; preferred **Style A** (6 files, 60%)" in text
        assert "Also 3 files (30%) use Style B:" in text
        assert "// ── x.m:L3 ──" in text
        assert "not recommended for new code" in text

    def test_single_style(self):
        scan = self._scan()
        scan.variants = scan.variants[:1]
        scan.other_variant = None
        text = "\n".join(build_variant_body(scan, "objectivec"))
        assert "all use Style A" in text

    def test_empty_scan(self):
        assert build_variant_body(ScanResult(), "swift") == []


class TestCatalogParts:
    def _groups(self, n_groups=3, n_entries=4):
        return [
            CatalogGroup(
                heading=f"G{g}",
                entries=[
                    CatalogEntry(full=[f"item-{g}-{e} " + "x" * 90], signature=f"item-{g}-{e}")
                    for e in range(n_entries)
                ],
            )
            for g in range(n_groups)
        ]

    def test_single_part_when_small(self):
        parts = render_catalog_parts(self._groups(1, 2), budget=10_000)
        assert len(parts) == 1
        assert any(line.startswith("item-0-1 ") for line in parts[0])

    def test_budget_respected_and_split(self):
        parts = render_catalog_parts(self._groups(), budget=400)
        assert len(parts) >= 2
        assert all(_size(part) <= 400 for part in parts)

    def test_evidence_degraded_never_dropped(self):
        parts = render_catalog_parts(self._groups(), budget=400)
        everything = "\n".join(line for part in parts for line in part)
        for g in range(3):
            for e in range(4):
                assert f"item-{g}-{e}" in everything
        assert any(line.startswith("- item-") for part in parts for line in part)

    def test_oversized_group_continues_in_later_parts(self):
        group = CatalogGroup(
            heading="Huge",
            entries=[CatalogEntry(full=["y" * 200], signature=f"entry-{i:03d} signature") for i in range(100)],
        )
        parts = render_catalog_parts([group], budget=400)
        assert len(parts) > 1
        assert all(_size(part) <= 400 for part in parts)
        assert parts[0][0] == "### Huge"
        assert all(part[0] == "### Huge (cont.)" for part in parts[1:])
        everything = "\n".join(line for part in parts for line in part)
        for i in range(100):
            assert f"entry-{i:03d}" in everything
        assert "Truncated" not in everything

    def test_group_after_oversized_group_shares_last_part(self):
        huge = CatalogGroup(
            heading="Huge",
            entries=[CatalogEntry(full=["y" * 200], signature=f"entry-{i:03d}") for i in range(40)],
        )
        small = CatalogGroup(heading="Small", entries=[CatalogEntry(full=["tail"], signature="tail")])
        parts = render_catalog_parts([huge, small], budget=400)
        assert all(_size(part) <= 400 for part in parts)
        assert "### Small" in parts[-1]

    def test_empty_groups_skipped(self):
        assert render_catalog_parts([CatalogGroup(heading="Empty")], budget=400) == []

    def test_parts_fit_budget_once_wrapped_in_document(self):
        notes = ["Reuse these names instead of literals."]
        relations = ["RELATED: [[Bootstrap] code-standard/naming] — shared prefix"]
        room = conventions_budget(
            "Constants file: App/XYConstants.h (cont.)", "40 constants", agent_notes=notes,
            relation_lines=relations, budget=1200,
        )
        assert 0 < room < 1200
        parts = render_catalog_parts(self._groups(6, 6), budget=room)
        assert len(parts) > 1
        for part in parts:
            doc = build_candidate_doc(
                "Constants file: App/XYConstants.h (cont.)", "40 constants", part,
                agent_notes=notes, relation_lines=relations,
            )
            assert len(doc) <= 1200
