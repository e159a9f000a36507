"""Micro-level dimensions: code-pattern, best-practice, event-and-data-flow.

Each candidate shows how *this* project writes an idiom: variants grouped and
ranked by file count, real excerpts with file:line headers, and agent notes
naming the preferred style.
"""

import logging
import re

from codelore.canonical import CANONICAL_EXAMPLES, check_completeness
from codelore.models import AstSummary, Candidate, PatternDefinition, Relation, ScanResult, SourceFile
from codelore.pattern_tables import (
    BEST_PRACTICE_SUBTOPICS,
    LOGGING_VARIANTS,
    TEST_CONTENT_RE,
    TEST_FILE_RE,
    TEST_MAIN_RE,
    TESTING_VARIANTS,
    best_practice_patterns,
    call_chain_patterns,
    code_patterns,
    data_flow_patterns,
    event_flow_variants,
)
from codelore.rendering import build_candidate_doc, build_variant_body, make_title
from codelore.scanner import scan_variants
from codelore.source_utils import filter_third_party

logger = logging.getLogger(__name__)

MAX_SOURCES = 15


def _example_sources(scan: ScanResult, limit: int = MAX_SOURCES) -> list[str]:
    seen: dict[str, None] = {}
    for v in scan.variants:
        for ex in v.examples:
            seen.setdefault(ex.file, None)
    return list(seen)[:limit]


def _preferred(scan: ScanResult, fallback: str) -> tuple[str, int]:
    primary = scan.primary
    if primary is None:
        return fallback, 0
    return primary.label, primary.file_count


def _relation_lines(relations: list[Relation]) -> list[str]:
    return [f"{r.type}: [{r.target}] — {r.description}" for r in relations]


# ─── code-pattern ────────────────────────────────────────────

def _ast_addenda(pattern_name: str, ast: AstSummary | None) -> list[str]:
    if ast is None:
        return []
    lines: list[str] = []
    stats = ast.pattern_stats.get(pattern_name) or {}

    if pattern_name == "singleton" and stats.get("instances"):
        lines += ["### Singleton instances (AST)", ""]
        for inst in stats["instances"]:
            if isinstance(inst, dict):
                lines.append(f"- `{inst.get('class_name', '')}.{inst.get('method_name', '')}`")
            else:
                lines.append(f"- `{inst}`")
        lines.append("")

    if pattern_name == "protocol-delegate":
        total = int(ast.project_metrics.get("delegate_properties", 0) or 0)
        weak = int(ast.project_metrics.get("weak_delegate_properties", 0) or 0)
        if total > 0:
            lines += ["### Delegate properties (AST)", ""]
            lines.append(f"- {total} delegate properties (weak: {weak}, strong: {total - weak})")
            if weak < total:
                lines.append(f"- {total - weak} are not weak and risk a retain cycle")
            lines.append("")

    if pattern_name == "category" and ast.categories:
        lines += ["### Categories (AST)", ""]
        lines += [f"- `{c.base}({c.name})`" for c in ast.categories[:8]]
        lines.append("")
    return lines


def _inheritance_candidate(ast: AstSummary, lang: str) -> Candidate | None:
    inherits = [e for e in ast.inheritance_graph if e.type == "inherits"]
    conforms = [e for e in ast.inheritance_graph if e.type == "conforms"]
    if not inherits and not conforms:
        return None

    by_super: dict[str, list[str]] = {}
    for e in inherits:
        by_super.setdefault(e.target, []).append(e.source)

    tree: list[str] = []
    for superclass, subs in list(by_super.items())[:10]:
        tree.append(superclass)
        for sub in subs[:5]:
            protos = [e.target for e in conforms if e.source == sub]
            suffix = f" <{', '.join(protos)}>" if protos else ""
            tree.append(f"  └─ {sub}{suffix}")

    sources = list(dict.fromkeys(c.file for c in ast.classes[:10] if c.file))
    return Candidate(
        title=make_title("code-pattern", "inheritance"),
        sub_topic="inheritance",
        document_body=build_candidate_doc(
            "Class inheritance and protocol conformance (AST)",
            f"{len(inherits)} inheritance edges, {len(conforms)} conformances",
            [f"- **Inheritance edges**: {len(inherits)}", f"- **Conformance edges**: {len(conforms)}"],
            code_blocks=[("AST inheritance tree", tree)] if tree else [],
            agent_notes=[
                "Pick the project's existing base class and protocols when adding a type",
                "Keep hierarchies shallow; avoid deep inheritance chains",
            ],
            lang="text",
        ),
        language=lang,
        sources=sources,
        summary=f"code-pattern/inheritance: {len(inherits)} inheritance edges, {len(conforms)} conformances",
        knowledge_type="code-pattern",
        tags=["inheritance", "protocol-conformance"],
        dimension="code-pattern",
    )


def extract_code_pattern(
    files: list[SourceFile], lang: str, ast: AstSummary | None = None, project_prefix: str = ""
) -> list[Candidate]:
    """One candidate per design pattern the project uses at least ``min_count`` times."""
    results: list[Candidate] = []
    files = filter_third_party(files)

    for name, pdef in code_patterns(lang).items():
        stats = (ast.pattern_stats.get(name) if ast else None) or {}
        ast_count = int(stats.get("count", 0) or 0)
        matching = [f for f in files if pdef.main_matcher.search(f.content)]
        total = max(len(matching), ast_count)
        if total < pdef.min_count:
            logger.debug(f"Pattern {name}: {total} hits, below min count {pdef.min_count}")
            continue

        scan = scan_variants(files, pdef.main_matcher, pdef.variants, lang)
        body = build_variant_body(scan, lang, pattern_key=name, project_prefix=project_prefix)
        body += _ast_addenda(name, ast)

        preferred, preferred_count = _preferred(scan, pdef.label)
        notes = [
            f"Preferred style: {preferred} ({preferred_count} files)",
            f"New {pdef.label.lower()} code **must** follow the preferred style",
        ]
        if len(scan.variants) > 1:
            notes.append(f"{len(scan.variants)} styles exist; use the preferred one in new code")

        results.append(Candidate(
            title=make_title("code-pattern", name),
            sub_topic=name,
            document_body=build_candidate_doc(
                pdef.label,
                f"{total} files use {pdef.label.lower()}, {len(scan.variants)} styles (preferred: {preferred})",
                body,
                agent_notes=notes,
                lang=lang,
            ),
            language=lang,
            sources=_example_sources(scan),
            summary=f"code-pattern/{name} {pdef.label}: {total} files, {len(scan.variants)} styles (preferred {preferred})",
            knowledge_type="code-pattern",
            tags=[name],
            dimension="code-pattern",
        ))

    if ast is not None:
        inheritance = _inheritance_candidate(ast, lang)
        if inheritance is not None:
            results.append(inheritance)
    return results


# ─── best-practice ───────────────────────────────────────────

def _practice_candidate(
    sub_topic: str,
    heading: str,
    one_liner: str,
    summary: str,
    scan: ScanResult,
    lang: str,
    notes: list[str],
    *,
    pattern_key: str,
    project_prefix: str = "",
    relations: list[Relation] | None = None,
    source_limit: int = MAX_SOURCES,
) -> Candidate:
    relations = relations or []
    return Candidate(
        title=make_title("best-practice", sub_topic),
        sub_topic=sub_topic,
        document_body=build_candidate_doc(
            heading,
            one_liner,
            build_variant_body(scan, lang, pattern_key=pattern_key, project_prefix=project_prefix),
            agent_notes=notes,
            relation_lines=_relation_lines(relations),
            lang=lang,
        ),
        language=lang,
        sources=_example_sources(scan, source_limit),
        summary=summary,
        knowledge_type="best-practice",
        tags=[sub_topic],
        relations=relations,
        dimension="best-practice",
    )


def _extract_logging(files: list[SourceFile], lang: str) -> Candidate | None:
    variants = LOGGING_VARIANTS.get(lang)
    if not variants:
        return None
    main = re.compile("|".join(v.matcher.pattern for v in variants.values()))
    scan = scan_variants(files, main, variants, lang)
    if scan.total_files == 0:
        return None

    preferred, count = _preferred(scan, "unknown")
    return _practice_candidate(
        "logging",
        "Logging conventions",
        f"Mostly {preferred} ({count} files), {len(scan.variants)} logging styles",
        f"best-practice/logging: {len(scan.variants)} styles, preferred {preferred} ({count} files)",
        scan,
        lang,
        [
            f"Primary logging style: {preferred}; new code **must** use it",
            f"{len(scan.variants)} logging styles exist; converge on {preferred}"
            if len(scan.variants) > 1 else "Logging style is uniform across the project",
        ],
        pattern_key="logging",
        source_limit=10,
    )


def _extract_testing(files: list[SourceFile], lang: str) -> Candidate | None:
    test_files = [f for f in files if TEST_FILE_RE.search(f.name) or TEST_CONTENT_RE.search(f.content)]
    if not test_files:
        return None

    scan = scan_variants(test_files, TEST_MAIN_RE, TESTING_VARIANTS.get(lang, {}), lang)
    preferred, _ = _preferred(scan, "XCTest")
    return _practice_candidate(
        "testing",
        "Testing conventions",
        f"{len(test_files)} test files, {len(scan.variants)} frameworks/styles (preferred {preferred})",
        f"best-practice/testing: {len(test_files)} files, preferred {preferred}",
        scan,
        lang,
        [
            f"Preferred test framework: {preferred}",
            f"New tests **must** use {preferred} and follow the project examples above",
            "Test names should state the behaviour under test",
        ],
        pattern_key="testing",
        source_limit=10,
    )


def extract_best_practice(files: list[SourceFile], lang: str, project_prefix: str = "") -> list[Candidate]:
    """Error handling, concurrency, memory management, logging and testing practices."""
    results: list[Candidate] = []
    files = filter_third_party(files)

    for key, pdef in best_practice_patterns(lang).items():
        matching = [f for f in files if pdef.main_matcher.search(f.content)]
        if not matching:
            continue
        scan = scan_variants(files, pdef.main_matcher, pdef.variants, lang)
        sub_topic = BEST_PRACTICE_SUBTOPICS.get(key, key)
        preferred, count = _preferred(scan, pdef.label)
        notes = [
            f"Preferred {pdef.label.lower()} style: {preferred} ({count} files)",
            f"New code **must** follow the preferred {pdef.label.lower()} style",
        ]
        if len(scan.variants) > 1:
            notes.append(f"{len(scan.variants)} {pdef.label.lower()} styles exist; use the preferred one")

        results.append(_practice_candidate(
            sub_topic,
            f"{pdef.label} conventions",
            f"{len(matching)} files use {pdef.label.lower()}, {len(scan.variants)} styles (preferred: {preferred})",
            f"best-practice/{sub_topic} {pdef.label}: {len(matching)} files, "
            f"{len(scan.variants)} styles (preferred {preferred})",
            scan,
            lang,
            notes,
            pattern_key=key,
            project_prefix=project_prefix,
            relations=list(pdef.relations),
        ))

    for extra in (_extract_logging(files, lang), _extract_testing(files, lang)):
        if extra is not None:
            results.append(extra)
    return results


# ─── event-and-data-flow ─────────────────────────────────────

def _flow_candidate(
    key: str,
    pdef: PatternDefinition,
    category: str,
    knowledge_type: str,
    files: list[SourceFile],
    lang: str,
    project_prefix: str,
) -> Candidate | None:
    matching = [f for f in files if pdef.main_matcher.search(f.content)]
    if not matching:
        return None

    sub_topic = f"{category}-{key}"
    kind = "Event propagation" if category == "event" else "Data / state management"
    scan = scan_variants(files, pdef.main_matcher, event_flow_variants(key, lang), lang)

    body = [f"- **Type**: {kind}", f"- **Usage**: {len(matching)} files", ""]
    body += build_variant_body(scan, lang, pattern_key=key, project_prefix=project_prefix)

    canonical_blocks: list[tuple[str, list[str]]] = []
    missing = check_completeness(key, lang, matching)
    if missing:
        body += ["### Completeness warning", "", f"Project code may be missing: {', '.join(missing)}", ""]
        canonical = CANONICAL_EXAMPLES.get(f"{lang}:{key}")
        if canonical:
            body += [f"> A complete chain includes: {canonical.label}", ""]
            canonical_blocks.append((canonical.label, canonical.code))
    else:
        body += ["> Project code contains the complete chain", ""]

    preferred, _ = _preferred(scan, pdef.label)
    notes = [
        f"Preferred {pdef.label} style: {preferred}",
        f"Implementing {pdef.label} **must** follow the preferred style",
    ]
    if missing:
        notes.append(f"{pdef.label} must implement the full chain ({', '.join(missing)} cannot be skipped)")
    if len(scan.variants) > 1:
        notes.append(f"{len(scan.variants)} {pdef.label} styles exist; use the preferred one in new code")

    return Candidate(
        title=make_title("event-and-data-flow", sub_topic),
        sub_topic=sub_topic,
        document_body=build_candidate_doc(
            f"{kind}: {pdef.label}",
            f"{len(matching)} files use {pdef.label}, {len(scan.variants)} styles (preferred {preferred})",
            body,
            basic_usage_blocks=canonical_blocks,
            agent_notes=notes,
            lang=lang,
        ),
        language=lang,
        sources=_example_sources(scan),
        summary=f"event-and-data-flow/{sub_topic} {kind} · {pdef.label}: {len(matching)} files, preferred {preferred}",
        knowledge_type=knowledge_type,
        tags=[sub_topic],
        dimension="event-and-data-flow",
    )


def extract_event_and_data_flow(files: list[SourceFile], lang: str, project_prefix: str = "") -> list[Candidate]:
    """Event propagation and data/state idioms; delegates and singletons belong to code-pattern."""
    results: list[Candidate] = []
    seen: set[str] = set()
    files = filter_third_party(files)

    plan = [
        ("event", "call-chain", call_chain_patterns(lang), "delegate"),
        ("data", "data-flow", data_flow_patterns(lang), "singleton"),
    ]
    for category, knowledge_type, patterns, skip in plan:
        for key, pdef in patterns.items():
            sub_topic = f"{category}-{key}"
            if key == skip or sub_topic in seen:
                continue
            candidate = _flow_candidate(key, pdef, category, knowledge_type, files, lang, project_prefix)
            if candidate is not None:
                seen.add(sub_topic)
                results.append(candidate)
    return results
