"""Macro-level dimensions: code-standard, architecture, agent-guidelines."""

import logging
import re
from collections import Counter

from codelore.models import AstSummary, Candidate, DependencyEdge, Relation, SourceFile
from codelore.rendering import build_candidate_doc, make_title
from codelore.source_utils import (
    ROLE_LABELS,
    extract_enclosing_block,
    filter_third_party,
    infer_file_priority,
    infer_target_role,
    type_def_pattern,
)

logger = logging.getLogger(__name__)

MARK_RE = re.compile(r"//\s*MARK:\s*-|#pragma\s+mark\s+", re.MULTILINE)
DOC_COMMENT_RE = re.compile(r"///\s|/\*\*[\s\S]*?\*/")
CJK_RE = re.compile(r"[\u4e00-\u9fff]")


def _relation_lines(relations: list[Relation]) -> list[str]:
    return [f"{r.type}: [{r.target}] — {r.description}" for r in relations]


def compute_top_prefix(files: list[SourceFile], lang: str, ast: AstSummary | None = None) -> tuple[str, int] | None:
    """Most common 2- or 3-letter uppercase class-name prefix as ``(prefix, count)``.

    The 3-letter form wins when it extends the top 2-letter prefix, covers
    more than half of its uses and at most two 3-letter variants share it.
    """
    p2: Counter[str] = Counter()
    p3: Counter[str] = Counter()

    def collect(name: str) -> None:
        if not name or len(name) < 3:
            return
        if re.fullmatch(r"[A-Z]{2}", name[:2]):
            p2[name[:2]] += 1
        if re.fullmatch(r"[A-Z]{3}", name[:3]):
            p3[name[:3]] += 1

    if ast is not None and ast.classes:
        for cls in ast.classes:
            collect(cls.name)
    else:
        type_re = type_def_pattern(lang)
        for f in files[:100]:
            m = type_re.search(f.content)
            if m:
                collect(m.group(0).strip().split()[-1])

    top2 = p2.most_common(1)[0] if p2 else None
    top3 = p3.most_common(1)[0] if p3 else None
    if top2 and top3:
        varieties = sum(1 for k in p3 if k.startswith(top2[0]))
        if top3[0].startswith(top2[0]) and top3[1] > top2[1] * 0.5 and varieties <= 2:
            return top3
        return top2
    return top2 or top3


# ─── code-standard ───────────────────────────────────────────

OBJC_VERBS = ("init", "configure", "setup", "fetch", "load", "handle", "did", "will", "should", "set", "get",
              "update", "create", "delete", "remove", "add", "insert", "perform")
SWIFT_VERBS = ("configure", "setup", "fetch", "load", "handle", "did", "will", "should", "set", "get",
               "update", "create", "delete", "remove", "add", "insert", "perform", "make", "build")
_COMMENT_RE = re.compile(r"//\s*(.{4,})|/\*\*?\s*\*?\s*(.{4,})")


def _naming_candidate(files, samples, lang, ast, top_prefix) -> Candidate:
    type_re = type_def_pattern(lang)
    code_blocks = []
    sources = []
    for f in samples[:2]:
        lines = f.lines
        type_idx = next((i for i, line in enumerate(lines) if type_re.search(line)), -1)
        end = min(len(lines), type_idx + 20) if 0 <= type_idx < 80 else min(len(lines), 40)
        code_blocks.append((f"{f.relative_path}:1", lines[:end]))
        sources.append(f.relative_path)

    if top_prefix:
        prefix_note = f"Project uses the {top_prefix[0]} prefix ({top_prefix[1]} occurrences)"
        body = [f"- **Class prefix**: `{top_prefix[0]}` throughout"]
    else:
        prefix_note = "No common class prefix detected"
        body = ["- **Class prefix**: no common prefix detected"]
    body.append("- **Naming style**: follow the sampled code below")
    if ast is not None:
        body.append(f"- **Type declarations**: {len(ast.classes)} classes/structs, "
                    f"{len(ast.protocols)} protocols, {len(ast.categories)} categories")
        conforming = [c for c in ast.classes if c.protocols]
        if conforming:
            body.append(f"- **Protocol conformance**: {len(conforming)} classes declare conformances")

    relations = [Relation(type="ENFORCES", target=make_title("code-standard", "file-organization"),
                          description="File names match class names")]
    source_note = f"{len(ast.classes)} AST class declarations" if ast is not None else f"{len(samples)} core files"
    return Candidate(
        title=make_title("code-standard", "naming"),
        sub_topic="naming",
        document_body=build_candidate_doc(
            f"{'ObjC' if lang == 'objectivec' else lang} naming conventions",
            f"{prefix_note}, derived from {source_note}",
            body,
            code_blocks=code_blocks,
            agent_notes=[f"New classes **must** use the `{top_prefix[0]}` prefix" if top_prefix
                         else "Follow the existing naming style"],
            relation_lines=_relation_lines(relations),
            lang=lang,
        ),
        language=lang,
        sources=sources,
        summary=f"code-standard/naming: {prefix_note}",
        knowledge_type="code-standard",
        tags=["naming"],
        relations=relations,
        dimension="code-standard",
    )


def _file_organization_candidate(files, lang, mark_count, doc_count) -> Candidate:
    mark_sample = next((f for f in files if MARK_RE.search(f.content)), None)
    code_blocks = [(f"{mark_sample.relative_path}:1", mark_sample.lines[:50])] if mark_sample else []
    return Candidate(
        title=make_title("code-standard", "file-organization"),
        sub_topic="file-organization",
        document_body=build_candidate_doc(
            "File organization and sections",
            f"{mark_count} files use MARK sections, {doc_count} files use doc comments",
            [
                f"- **MARK sections**: {mark_count} files use MARK/pragma mark",
                f"- **Doc comments**: {doc_count} files use /// or /** */ comments",
            ],
            code_blocks=code_blocks,
            agent_notes=["Split new code into sections with `MARK: -`"] if mark_count else [],
            lang=lang,
        ),
        language=lang,
        sources=[mark_sample.relative_path] if mark_sample else [],
        summary=f"code-standard/file-organization: MARK sections in {mark_count} files, doc comments in {doc_count} files",
        knowledge_type="code-standard",
        tags=["file-organization"],
        dimension="code-standard",
    )


def _api_naming_candidate(files, lang) -> Candidate | None:
    if lang == "objectivec":
        name_re = re.compile(r"^[-+]\s*\([^)]+\)\s*(\w+)")
        verb_re = re.compile(rf"^({'|'.join(OBJC_VERBS)})")
    elif lang == "swift":
        name_re = re.compile(r"func\s+(\w+)\s*\(")
        verb_re = re.compile(rf"^({'|'.join(SWIFT_VERBS)})")
    else:
        return None

    verbs: Counter[str] = Counter()
    for f in files[:80]:
        for line in f.lines:
            m = name_re.search(line)
            if m:
                v = verb_re.match(m.group(1))
                if v:
                    verbs[v.group(1)] += 1
    ranked = verbs.most_common()
    if len(ranked) < 2:
        return None

    top_verb, top_count = ranked[0]
    sample_re = (re.compile(rf"^[-+]\s*\([^)]+\)\s*{top_verb}") if lang == "objectivec"
                 else re.compile(rf"func\s+{top_verb}\w*\s*\("))
    code_blocks = []
    sources = []
    for f in files:
        lines = f.lines
        idx = next((i for i, line in enumerate(lines) if sample_re.search(line)), -1)
        if idx >= 0:
            code_blocks.append((f"{f.relative_path}:{idx + 1}", extract_enclosing_block(lines, idx, lang, 25)))
            sources.append(f.relative_path)
            break

    relations = [Relation(type="EXTENDS", target=make_title("code-standard", "naming"),
                          description="Method naming extends the class naming conventions")]
    return Candidate(
        title=make_title("code-standard", "api-naming"),
        sub_topic="api-naming",
        document_body=build_candidate_doc(
            "Method signature naming",
            f"{len(ranked)} verb prefixes, most common `{top_verb}` ({top_count} times)",
            ["- **Verb prefix counts**:", *(f"  - `{v}...` — {n} times" for v, n in ranked[:8])],
            code_blocks=code_blocks,
            agent_notes=[f"Name new methods with the project's verb prefixes ({'/'.join(v for v, _ in ranked[:4])})"],
            relation_lines=_relation_lines(relations),
            lang=lang,
        ),
        language=lang,
        sources=sources,
        summary=f"code-standard/api-naming: {len(ranked)} verb prefixes, most common {top_verb}",
        knowledge_type="code-standard",
        tags=["api-naming", "method-naming"],
        relations=relations,
        dimension="code-standard",
    )


def _comment_style_candidate(files, lang, doc_count) -> Candidate | None:
    cjk = english = 0
    sources: list[str] = []
    for f in files[:60]:
        for line in f.lines:
            m = _COMMENT_RE.search(line)
            if not m:
                continue
            text = (m.group(1) or m.group(2) or "").strip()
            if len(text) < 4:
                continue
            if CJK_RE.search(text):
                cjk += 1
            elif re.match(r"[a-zA-Z]", text) and len(text) > 6:
                english += 1
        if (cjk or english) and f.relative_path not in sources:
            sources.append(f.relative_path)
        if len(sources) >= 6:
            break

    total = cjk + english
    if total <= 5:
        return None
    dominant = "Chinese" if cjk > english else "English"
    ratio = round(max(cjk, english) * 100 / total)
    return Candidate(
        title=make_title("code-standard", "comment-style"),
        sub_topic="comment-style",
        document_body=build_candidate_doc(
            "Comment language and style",
            f"Comments are mostly {dominant} ({ratio}%), {total} comments sampled",
            [
                f"- **Chinese comments**: {cjk}",
                f"- **English comments**: {english}",
                f"- **Dominant language**: {dominant} ({ratio}%)",
                f"- **Doc comments**: {doc_count} files use /// or /** */",
            ],
            agent_notes=[f"Write new comments in {dominant} to match the project"],
            lang=lang,
        ),
        language=lang,
        sources=sources[:5],
        summary=f"code-standard/comment-style: mostly {dominant} ({ratio}%), {total} comments sampled",
        knowledge_type="code-style",
        tags=["comment-style", "comment-language"],
        dimension="code-standard",
    )


def extract_code_standard(files: list[SourceFile], lang: str, ast: AstSummary | None = None) -> list[Candidate]:
    files = filter_third_party(files)
    results: list[Candidate] = []
    high = [f for f in files if infer_file_priority(f) == 2]
    samples = high[:6] if high else [f for f in files if infer_file_priority(f) == 1][:4]
    mark_count = sum(1 for f in files if MARK_RE.search(f.content))
    doc_count = sum(1 for f in files if DOC_COMMENT_RE.search(f.content))

    if samples:
        results.append(_naming_candidate(files, samples, lang, ast, compute_top_prefix(files, lang, ast)))
        results.append(_file_organization_candidate(files, lang, mark_count, doc_count))
    for extra in (_api_naming_candidate(files, lang), _comment_style_candidate(files, lang, doc_count)):
        if extra is not None:
            results.append(extra)
    return results


# ─── architecture ────────────────────────────────────────────

def _ast_metric_lines(ast: AstSummary) -> list[str]:
    m = ast.project_metrics
    lines = [f"- **AST types**: {len(ast.classes)} classes, {len(ast.protocols)} protocols, {len(ast.categories)} categories"]
    if m:
        lines.append(f"- **Methods**: {m.get('total_methods', 0)} methods, "
                     f"{float(m.get('avg_methods_per_class', 0) or 0):.1f} per class on average")
        lines.append(f"- **Max nesting depth**: {m.get('max_nesting_depth', 0)}")
        if m.get("complex_methods"):
            lines.append(f"- **Complex methods**: {len(m['complex_methods'])} (cyclomatic > 10)")
        if m.get("long_methods"):
            lines.append(f"- **Long methods**: {len(m['long_methods'])} (> 50 lines)")
    return lines


def extract_architecture(
    target_file_map: dict[str, list[str]],
    dep_edges: list[DependencyEdge],
    lang: str,
    ast: AstSummary | None = None,
) -> list[Candidate]:
    """Module roles, the inter-module dependency graph and the boundary rules it implies."""
    targets = list(target_file_map)
    if not targets:
        return []
    results: list[Candidate] = []

    roles: dict[str, list[str]] = {}
    for t in targets:
        roles.setdefault(infer_target_role(t), []).append(t)
    body = ["| Role | Module | Files |", "|------|--------|-------|"]
    for role, names in sorted(roles.items(), key=lambda kv: -len(kv[1])):
        body += [f"| {ROLE_LABELS.get(role, role)} | {t} | {len(target_file_map[t])} |" for t in names]
    if ast is not None:
        body += ["", *_ast_metric_lines(ast)]

    relations = [Relation(type="PREREQUISITE", target=make_title("project-profile", "overview"),
                          description="Read the project overview first")]
    results.append(Candidate(
        title=make_title("architecture", "layer-overview"),
        sub_topic="layer-overview",
        document_body=build_candidate_doc(
            "Layered architecture overview",
            f"{len(targets)} modules/targets in {len(roles)} roles",
            body,
            agent_notes=["State which layer a new module belongs to", "Follow the existing layering"],
            relation_lines=_relation_lines(relations),
        ),
        language="markdown",
        sources=targets[:10],
        summary=f"architecture/layer-overview: {len(targets)} modules grouped by role",
        knowledge_type="architecture",
        tags=["layer-overview"],
        relations=relations,
        dimension="architecture",
    ))

    if not dep_edges:
        return results

    dep_lines = [f"- `{e.source}` → `{e.target}`" for e in dep_edges[:30]]
    if len(dep_edges) > 30:
        dep_lines.append(f"- …and {len(dep_edges) - 30} more dependencies")
    relations = [Relation(type="RELATED", target=make_title("architecture", "layer-overview"),
                          description="The dependency graph backs the layer overview")]
    results.append(Candidate(
        title=make_title("architecture", "dependency-graph"),
        sub_topic="dependency-graph",
        document_body=build_candidate_doc(
            "Module dependencies",
            f"{len(dep_edges)} inter-module dependencies",
            dep_lines,
            agent_notes=["New inter-module dependencies must follow the existing direction; never add a reverse import"],
            relation_lines=_relation_lines(relations),
        ),
        language="markdown",
        sources=["module manifest"],
        summary=f"architecture/dependency-graph: {len(dep_edges)} inter-module dependencies",
        knowledge_type="module-dependency",
        tags=["dependency-graph"],
        relations=relations,
        dimension="architecture",
    ))

    if len(targets) < 2:
        return results
    imports: dict[str, list[str]] = {}
    imported_by: dict[str, list[str]] = {}
    for e in dep_edges:
        imports.setdefault(e.source, []).append(e.target)
        imported_by.setdefault(e.target, []).append(e.source)
    foundation = sorted(((k, v) for k, v in imported_by.items() if len(v) >= 3), key=lambda kv: -len(kv[1]))
    top_importers = sorted(((k, v) for k, v in imports.items() if len(v) >= 2), key=lambda kv: -len(kv[1]))

    body = []
    if foundation:
        body += ["### Foundation modules (widely imported)", ""]
        body += [f"- `{mod}` — imported by {len(users)} modules: {', '.join(users[:5])}" for mod, users in foundation[:5]]
        body.append("")
    if top_importers:
        body += ["### Aggregating modules (import many)", ""]
        body += [f"- `{mod}` — imports {len(deps)} modules: {', '.join(deps[:5])}" for mod, deps in top_importers[:5]]
        body.append("")
    if not body:
        return results

    notes = [
        "Foundation modules must never depend back on feature modules",
        "Check the dependency direction before adding a cross-module import",
    ]
    if foundation:
        notes.append(f"Foundation modules ({', '.join(n for n, _ in foundation[:3])}) must not import upper layers")
    relations = [
        Relation(type="ENFORCES", target=make_title("architecture", "dependency-graph"),
                 description="Constrains the direction of the dependency graph"),
        Relation(type="RELATED", target=make_title("architecture", "layer-overview"),
                 description="Constraints inferred from the layering"),
    ]
    results.append(Candidate(
        title=make_title("architecture", "boundary-rules"),
        sub_topic="boundary-rules",
        document_body=build_candidate_doc(
            "Module boundary rules",
            f"{len(foundation)} foundation modules, {len(top_importers)} aggregating modules",
            body,
            agent_notes=notes,
            relation_lines=_relation_lines(relations),
        ),
        language="markdown",
        sources=["module manifest", "dependency analysis"],
        summary=f"architecture/boundary-rules: {len(foundation)} foundation modules must not depend upward",
        knowledge_type="boundary-constraint",
        tags=["boundary-rules", "import-constraints"],
        relations=relations,
        dimension="architecture",
    ))
    return results


# ─── agent-guidelines ────────────────────────────────────────

_MARKER_RE = re.compile(r"//\s*(TODO|FIXME|WARNING|⚠️|IMPORTANT|HACK|XXX):\s*")
_HASH_MARKER_RE = re.compile(r"^#\s*(TODO|FIXME|HACK|XXX|WARNING|IMPORTANT):\s*")
_PRAGMA_RE = re.compile(r"^#pragma\s+mark\s+")
_CONSTRAINT_RE = re.compile(r"//\s*(DO\s*NOT|MUST\s*NOT|NEVER|禁止|不要|不允许|严禁|⛔|🚫)\s*", re.IGNORECASE)
_DEPRECATED_RES = {
    "objectivec": re.compile(r"__attribute__\(\(deprecated\)\)|DEPRECATED_MSG_ATTRIBUTE|DEPRECATED_ATTRIBUTE|API_DEPRECATED|__deprecated"),
    "swift": re.compile(r"@available\s*\(\s*\*\s*,\s*deprecated|@available\s*\(\s*iOS\s*,?\s*deprecated"
                        r"|@available\s*\(\s*\*\s*,\s*unavailable|#warning"),
    "python": re.compile(r"@deprecated|DeprecationWarning"),
    "javascript": re.compile(r"@deprecated"),
    "typescript": re.compile(r"@deprecated"),
}
TODO_TYPES = ("TODO", "FIXME", "HACK", "XXX")
WARNING_TYPES = ("WARNING", "⚠️", "IMPORTANT")
MAX_MARKERS_PER_TYPE = 4
MAX_FINDINGS = 10

CODING_PRINCIPLES = [
    "### Rigor",
    "",
    "- Every conclusion rests on the project's actual code; never guess or generalise",
    "- Prefix and style judgements need statistical backing across several files or classes",
    "- Name concrete classes, methods and file paths instead of vague references",
    "- Rules must be precise enough to serve as code review criteria",
    "",
    "### Depth",
    "",
    "- Go beyond file and method counts to the design decisions behind them",
    "- Explain why the project does something, not only what it does",
    "- Derive domain concepts from clusters of class and method names",
    "- For dependencies, state their responsibility and the risk of replacing them",
    "",
    "### Completeness",
    "",
    "- Code examples show the whole usage chain, never half of it",
    "  - KVO: register + observeValueForKeyPath callback + removal in dealloc",
    "  - Notification: register + handler + post + removal in dealloc",
    "  - Delegate: protocol declaration + weak property + conforming implementation",
    "  - Block/closure: typedef + weakSelf/strongSelf + callback handling",
    "- Where the project only shows part of a chain, add the standard complete form as reference",
    "- Setup code comes with its matching teardown",
    "- Every candidate must stand on its own",
]


def _collect_markers(files: list[SourceFile]) -> tuple[dict[str, list[tuple[str, int, list[str]]]], list[str]]:
    by_type: dict[str, list[tuple[str, int, list[str]]]] = {}
    sources: list[str] = []
    for f in files[:60]:
        lines = f.lines
        i = 0
        while i < len(lines):
            line = lines[i]
            m = _MARKER_RE.search(line) or _HASH_MARKER_RE.match(line)
            if not m and not _PRAGMA_RE.match(line):
                i += 1
                continue
            kind = m.group(1) if m else "MARK"
            bucket = by_type.setdefault(kind, [])
            if len(bucket) >= MAX_MARKERS_PER_TYPE:
                i += 1
                continue
            end = min(len(lines), i + 6)
            bucket.append((f.relative_path, i + 1, lines[max(0, i - 2):end]))
            if f.relative_path not in sources:
                sources.append(f.relative_path)
            i = end + 1
    return by_type, sources


def _find_lines(files: list[SourceFile], pattern: re.Pattern) -> list[tuple[str, int, str, list[str]]]:
    found = []
    for f in files[:80]:
        lines = f.lines
        for i, line in enumerate(lines):
            if pattern.search(line):
                found.append((f.relative_path, i + 1, line.strip(), lines[max(0, i - 1):i + 4]))
                if len(found) >= MAX_FINDINGS:
                    return found
    return found


def _marker_candidate(sub_topic, heading, kinds, by_type, sources, lang, limit, notes) -> Candidate | None:
    markers = [(kind, *m) for kind in kinds for m in by_type.get(kind, [])]
    if not markers:
        return None
    return Candidate(
        title=make_title("agent-guidelines", sub_topic),
        sub_topic=sub_topic,
        document_body=build_candidate_doc(
            heading,
            f"{len(markers)} {', '.join(kinds)} markers",
            [f"- **{k}**: {len(by_type[k])}" for k in kinds if by_type.get(k)],
            code_blocks=[(f"{path}:{line} [{kind}]", ctx) for kind, path, line, ctx in markers[:limit]],
            agent_notes=notes,
            lang=lang,
        ),
        language=lang,
        sources=sources[:15],
        summary=f"agent-guidelines/{sub_topic}: {len(markers)} markers in code comments",
        knowledge_type="boundary-constraint",
        tags=[sub_topic],
        dimension="agent-guidelines",
    )


def extract_agent_guidelines(files: list[SourceFile], lang: str) -> list[Candidate]:
    """Explicit rules the code states about itself, plus the fixed coding principles."""
    files = filter_third_party(files)
    results: list[Candidate] = []
    by_type, sources = _collect_markers(files)

    todo = _marker_candidate("todo-fixme", "Open work (TODO/FIXME)", TODO_TYPES, by_type, sources, lang, 6,
                             ["Deal with these TODO/FIXME notes when changing the surrounding code"])
    if todo is not None:
        results.append(todo)
    rules = _marker_candidate("mandatory-rules", "Mandatory rules (WARNING/IMPORTANT)", WARNING_TYPES, by_type,
                              sources, lang, 4, ["These markers are hard constraints and **must** be followed"])
    if rules is not None:
        results.append(rules)

    results.append(Candidate(
        title=make_title("agent-guidelines", "coding-principles"),
        sub_topic="coding-principles",
        document_body=build_candidate_doc(
            "Core coding principles (mandatory)",
            "Every output follows three principles: rigor, depth and completeness",
            CODING_PRINCIPLES,
            agent_notes=[
                "These principles are the quality floor; violating any of them needs a fix",
                "Rigor: every claim is backed by code evidence",
                "Depth: go from surface statistics to design intent",
                "Completeness: every code example is a complete, runnable chain",
            ],
            lang=lang,
        ),
        language=lang,
        sources=["codelore-principles"],
        summary="agent-guidelines/coding-principles: rigor, depth and completeness",
        knowledge_type="boundary-constraint",
        tags=["coding-principles", "quality-baseline"],
        dimension="agent-guidelines",
    ))

    deprecated_re = _DEPRECATED_RES.get(lang)
    deprecated = _find_lines(files, deprecated_re) if deprecated_re else []
    if deprecated:
        results.append(Candidate(
            title=make_title("agent-guidelines", "deprecated-api"),
            sub_topic="deprecated-api",
            document_body=build_candidate_doc(
                "Deprecated API markers",
                f"{len(deprecated)} deprecated API markers",
                [f"- **Found**: {len(deprecated)}", *(f"- {path}:{line}" for path, line, _, _ in deprecated[:6])],
                code_blocks=[(f"{path}:{line} [DEPRECATED]", ctx) for path, line, _, ctx in deprecated[:4]],
                agent_notes=["Never call deprecated APIs; use the recommended replacement",
                             "Migrate deprecated calls when touching the surrounding code"],
                lang=lang,
            ),
            language=lang,
            sources=list(dict.fromkeys(path for path, _, _, _ in deprecated)),
            summary=f"agent-guidelines/deprecated-api: {len(deprecated)} markers",
            knowledge_type="boundary-constraint",
            tags=["deprecated-api"],
            dimension="agent-guidelines",
        ))

    constraints = _find_lines(files, _CONSTRAINT_RE)
    if constraints:
        results.append(Candidate(
            title=make_title("agent-guidelines", "arch-constraints"),
            sub_topic="arch-constraints",
            document_body=build_candidate_doc(
                "Constraint comments",
                f"{len(constraints)} prohibiting comments",
                [f"- **Found**: {len(constraints)}", "",
                 *(f"- {path}:{line} — `{text[:80]}`" for path, line, text, _ in constraints[:6])],
                code_blocks=[(f"{path}:{line} [CONSTRAINT]", ctx) for path, line, _, ctx in constraints[:4]],
                agent_notes=["Prohibitions stated in code comments **must** be followed",
                             "Read the surrounding constraints before changing this code"],
                lang=lang,
            ),
            language=lang,
            sources=list(dict.fromkeys(path for path, _, _, _ in constraints)),
            summary=f"agent-guidelines/arch-constraints: {len(constraints)} prohibiting comments",
            knowledge_type="boundary-constraint",
            tags=["arch-constraints"],
            dimension="agent-guidelines",
        ))
    return results
