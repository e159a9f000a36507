"""Deep inventories: macros/constants, method swizzling, and categories/extensions.

These produce item-by-item catalogs with real usage counts, which makes them
the largest documents; all of them go through the budgeted part splitter.
The raw inventories are cached for the project-profile dimension.
"""

import logging
import re
from pathlib import PurePosixPath

from pydantic import BaseModel, Field

from codelore.cache import PipelineCache
from codelore.models import Candidate, ExtensionSummary, MacroDefinition, Relation, SourceFile, SwizzleHook, UsageEntry
from codelore.rendering import (
    CatalogEntry,
    CatalogGroup,
    build_candidate_doc,
    conventions_budget,
    make_title,
    part_sub_topic,
    render_catalog_parts,
)
from codelore.scanner import scan_usages
from codelore.source_utils import (
    classify_base,
    collect_multiline_macro,
    extract_enclosing_block,
    filter_third_party,
    infer_macro_category,
    is_const_file,
)

logger = logging.getLogger(__name__)

DEEP_SCAN = "deep-scan"
CATEGORY_SCAN = "category-scan"

MAX_DETAIL_ITEMS = 12
MAX_IMPL_LINES = 25
MAX_SCATTERED_ITEMS = 30

_GUARD_NAME_RE = re.compile(r"_H_?$|_h_?$|^__")
_EXTERN_RE = re.compile(
    r"(?:extern|FOUNDATION_EXPORT|UIKIT_EXTERN)\s+(?:(?:const\s+)?(?:NSString|NSInteger|CGFloat|NSNotificationName|NSErrorDomain)"
    r"\s+\*?\s*(?:const\s+)?|(?:NSInteger|CGFloat|NSTimeInterval|NSUInteger)\s+)(\w+)"
)
_STATIC_RE = re.compile(
    r"^static\s+(?:const\s+)?(?:NSString\s+\*\s*const|NSInteger|CGFloat|NSTimeInterval|NSUInteger|int|float|double|BOOL"
    r"|CGSize|CGRect|UIEdgeInsets)\s+(\w+)\s*=\s*(.+?);\s*$"
)
_FUNC_MACRO_RE = re.compile(r"^#define\s+(\w+)\(([^)]*)\)\s+(.+)")
_VALUE_MACRO_RE = re.compile(r"^#define\s+(\w+)\s+(.+)")
_BARE_MACRO_RE = re.compile(r"^#define\s+(\w+)\s*$")
_TYPEALIAS_RE = re.compile(r"(?:public\s+|internal\s+)?typealias\s+(\w+)\s*=\s*(.+)")
_NAMESPACE_RE = re.compile(r"^\s*(?:public\s+|internal\s+|private\s+)?(?:final\s+)?(enum|struct)\s+(\w+)\s*(?::\s*\w+)?\s*\{")
_SWIFT_CONST_RE = re.compile(r"^\s*(?:public\s+|internal\s+)?(?:static\s+)?(?:let|var)\s+(\w+)\s*(?::\s*[\w.<>\[\]?!]+)?\s*=\s*(.+)")


def _file_name(path: str) -> str:
    return PurePosixPath(path).name


# ─── defines-and-constants ───────────────────────────────────

def _collect_objc_defines(f: SourceFile) -> list[MacroDefinition]:
    defs: list[MacroDefinition] = []
    lines = f.lines
    for i, line in enumerate(lines):
        m = _EXTERN_RE.search(line)
        if m:
            defs.append(MacroDefinition(name=m.group(1), kind="extern", file=f.relative_path,
                                        category=infer_macro_category(m.group(1))))
            continue
        m = _STATIC_RE.match(line)
        if m:
            defs.append(MacroDefinition(name=m.group(1), kind="static", value=m.group(2).strip(),
                                        file=f.relative_path, category=infer_macro_category(m.group(1), m.group(2))))
            continue
        if not line.startswith(("#define ", "#define\t")):
            continue

        full = collect_multiline_macro(lines, i)
        bare = _BARE_MACRO_RE.match(full)
        if bare and _GUARD_NAME_RE.search(bare.group(1)):
            continue
        m = _FUNC_MACRO_RE.match(full)
        if m:
            defs.append(MacroDefinition(name=m.group(1), kind="function", params=m.group(2).strip(),
                                        value=m.group(3).strip()[:200], file=f.relative_path,
                                        category=infer_macro_category(m.group(1), m.group(3))))
            continue
        m = _VALUE_MACRO_RE.match(full)
        if m and not _GUARD_NAME_RE.search(m.group(1)):
            defs.append(MacroDefinition(name=m.group(1), kind="value", value=m.group(2).strip()[:200],
                                        file=f.relative_path, category=infer_macro_category(m.group(1), m.group(2))))
    return defs


def _collect_swift_defines(f: SourceFile) -> list[MacroDefinition]:
    defs: list[MacroDefinition] = []
    namespace: tuple[str, int] | None = None
    depth = 0
    for line in f.lines:
        for ch in line:
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if namespace and depth < namespace[1]:
                    namespace = None

        m = _TYPEALIAS_RE.search(line)
        if m:
            defs.append(MacroDefinition(name=m.group(1), kind="static", value=m.group(2).strip()[:100],
                                        file=f.relative_path, category="Type aliases"))
            continue
        m = _NAMESPACE_RE.match(line)
        if m:
            # depth already counts this line's opening brace
            namespace = (m.group(2), depth)
            continue
        if depth == 0 or (namespace and depth == namespace[1]):
            m = _SWIFT_CONST_RE.match(line)
            if m:
                prefix = f"{namespace[0]}." if namespace else ""
                value = m.group(2).strip()[:150]
                defs.append(MacroDefinition(name=prefix + m.group(1), kind="static", value=value,
                                            file=f.relative_path, category=infer_macro_category(m.group(1), value)))
    return defs


def collect_defines(files: list[SourceFile], lang: str) -> dict[str, list[MacroDefinition]]:
    """Macros and constants per file, in file order."""
    by_file: dict[str, list[MacroDefinition]] = {}
    for f in filter_third_party(files):
        if lang == "objectivec" and re.search(r"\.(h|m|mm|pch)$", f.name, re.IGNORECASE):
            defs = _collect_objc_defines(f)
        elif lang == "swift" and f.name.lower().endswith(".swift"):
            defs = _collect_swift_defines(f)
        else:
            continue
        if defs:
            by_file[f.relative_path] = defs
    return by_file


def _usage_name(d: MacroDefinition) -> str:
    # Namespaced Swift constants are referenced by their last component
    return d.name.rsplit(".", 1)[-1]


def _definition_lines(d: MacroDefinition, lang: str) -> list[str]:
    if d.kind == "function":
        return [f"#define {d.name}({d.params}) {d.value}"]
    if d.kind == "extern":
        return [f"extern ... {d.name}"]
    if lang == "swift":
        return [f"let {d.name} = {d.value}"]
    if d.kind == "static":
        return [f"static ... {d.name} = {d.value};"]
    return [f"#define {d.name} {d.value}"]


def _usage_block(entry: UsageEntry | None, lang: str, limit: int | None = None) -> list[str]:
    if entry is None or not entry.examples:
        return []
    lines = [f"```{lang}"]
    for ex in entry.examples[:limit]:
        lines += [f"// ── {ex.file}:L{ex.line_number} ──", ex.code]
    return lines + ["```", ""]


def _defines_file_candidates(
    path: str, defs: list[MacroDefinition], usages: dict[str, UsageEntry], lang: str
) -> list[Candidate]:
    counts = {d.name: usages[_usage_name(d)].count if _usage_name(d) in usages else 0 for d in defs}
    ranked = sorted(defs, key=lambda d: -counts[d.name])
    total_uses = sum(counts.values())

    by_category: dict[str, list[MacroDefinition]] = {}
    for d in ranked:
        by_category.setdefault(d.category, []).append(d)
    ordered = sorted(by_category.items(), key=lambda kv: -sum(counts[d.name] for d in kv[1]))

    detail = 0
    groups: list[CatalogGroup] = []
    for category, items in ordered:
        entries = []
        for d in items:
            n = counts[d.name]
            full = [f"#### `{d.name}` — {n} uses", "", "Definition:", f"```{lang}", *_definition_lines(d, lang), "```", ""]
            if detail < MAX_DETAIL_ITEMS:
                usage = _usage_block(usages.get(_usage_name(d)), lang)
                if usage:
                    full += ["**Project usage:**", "", *usage]
                    detail += 1
            value = f" = `{d.value[:40]}`" if d.value else ""
            entries.append(CatalogEntry(full=full, signature=f"`{d.name}`{value} — {n} uses"))
        uses = sum(counts[d.name] for d in items)
        groups.append(CatalogGroup(heading=f"{category} ({len(items)} items, {uses} uses)", entries=entries))

    name = _file_name(path)
    base_topic = f"defines/{name}"
    relations = [Relation(type="ENFORCES", target=make_title("project-profile", "base-classes"),
                          description="Detailed constant inventory")]
    heading = f"Constants file: {path}"
    one_liner = f"{len(defs)} constants/macros, referenced {total_uses} times across the project"
    notes = [
        "Every constant/macro in this file **must** be used; never hard-code an equal magic number or string",
        f"Add new constants of the same kind to {path} to keep them in one place",
        "Check the usage counts above before changing a constant; they show the blast radius",
    ]
    relation_lines = [f"{r.type}: [{r.target}] — {r.description}" for r in relations]
    budget = conventions_budget(
        heading + " (cont.)", one_liner, agent_notes=notes, relation_lines=relation_lines, lang=lang
    )
    results = []
    for i, part in enumerate(render_catalog_parts(groups, budget=budget)):
        sub_topic = part_sub_topic(base_topic, i)
        results.append(Candidate(
            title=make_title(DEEP_SCAN, sub_topic),
            sub_topic=sub_topic,
            document_body=build_candidate_doc(
                heading + (" (cont.)" if i else ""),
                one_liner,
                part,
                agent_notes=notes,
                relation_lines=relation_lines,
                lang=lang,
            ),
            language=lang,
            sources=[path],
            summary=f"deep-scan/{sub_topic} constants file: {len(defs)} macros/constants, {total_uses} uses",
            knowledge_type="code-standard",
            tags=["defines", "constants", "macros", PurePosixPath(name).stem],
            relations=relations,
            dimension=DEEP_SCAN,
        ))
    return results


def _scattered_candidate(
    scattered: dict[str, list[MacroDefinition]], usages: dict[str, UsageEntry], lang: str
) -> Candidate | None:
    items = [d for defs in scattered.values() for d in defs]
    if not items:
        return None
    count = {d.name: usages[_usage_name(d)].count if _usage_name(d) in usages else 0 for d in items}
    items.sort(key=lambda d: -count[d.name])
    total_uses = sum(count.values())

    body = [f"> These definitions are spread over {len(scattered)} non-dedicated files", ""]
    detail = 0
    for d in items[:MAX_SCATTERED_ITEMS]:
        n = count[d.name]
        if d.kind == "function":
            body.append(f"- `{d.name}({d.params})` → `{d.value[:80]}` — {n} uses ({d.file})")
        elif d.value:
            body.append(f"- `{d.name}` = `{d.value[:60]}` — {n} uses ({d.file})")
        else:
            body.append(f"- `{d.name}` — {n} uses ({d.file})")
        entry = usages.get(_usage_name(d))
        if entry and entry.examples and detail < 5:
            body += ["", *("  " + line for line in _usage_block(entry, lang, 3)[:-1]), ""]
            detail += 1
    if len(items) > MAX_SCATTERED_ITEMS:
        body += ["", f"*…and {len(items) - MAX_SCATTERED_ITEMS} more*"]

    return Candidate(
        title=make_title(DEEP_SCAN, "defines/scattered"),
        sub_topic="defines/scattered",
        document_body=build_candidate_doc(
            "Scattered constants and macros",
            f"{len(items)} definitions across {len(scattered)} files, referenced {total_uses} times",
            body,
            agent_notes=[
                "Scattered constants **must** be used too; never hard-code an equal value",
                "Consider moving frequently used scattered constants into a dedicated constants file",
            ],
            lang=lang,
        ),
        language=lang,
        sources=list(scattered)[:15],
        summary=f"deep-scan/defines/scattered: {len(items)} definitions, {total_uses} uses",
        knowledge_type="code-standard",
        tags=["defines", "constants", "scattered"],
        dimension=DEEP_SCAN,
    )


def extract_defines_and_constants(files: list[SourceFile], lang: str, cache: PipelineCache) -> list[Candidate]:
    """One candidate (or part series) per constants file plus one for scattered definitions."""
    by_file = collect_defines(files, lang)
    cache.cache_result(DEEP_SCAN, "file_defines", by_file)
    cache.cache_result(DEEP_SCAN, "defines", [d for defs in by_file.values() for d in defs])
    if not by_file:
        return []

    names = {_usage_name(d) for defs in by_file.values() for d in defs if len(_usage_name(d)) >= 3}
    usages = scan_usages(filter_third_party(files), names)

    results: list[Candidate] = []
    scattered: dict[str, list[MacroDefinition]] = {}
    for path, defs in by_file.items():
        if is_const_file(SourceFile(path=path)):
            results += _defines_file_candidates(path, defs, usages, lang)
        else:
            scattered[path] = defs

    extra = _scattered_candidate(scattered, usages, lang)
    if extra is not None:
        results.append(extra)
    return results


# ─── swizzle-hooks ───────────────────────────────────────────

_SWIZZLE_CALL_RE = re.compile(r"method_exchangeImplementations|class_replaceMethod|method_setImplementation", re.IGNORECASE)
_SWIZZLE_FILE_RE = re.compile(r"method_exchangeImplementations|class_replaceMethod|method_setImplementation|swizzl", re.IGNORECASE)
_SELECTOR_RE = re.compile(r"@selector\(([^)]+)\)")
_CLASS_GET_RE = re.compile(r"class_getInstanceMethod\s*\(\s*(?:\[?\s*(\w+)\s+class\]?|(\w+))\s*,\s*@selector\(([^)]+)\)\s*\)")
_IMPLEMENTATION_RE = re.compile(r"^@implementation\s+(\w+)")
_ASPECT_RE = re.compile(r"\[\s*(\w+)\s+aspect_hook(?:Selector)?:\s*@selector\(([^)]+)\)")
_JR_RE = re.compile(r"jr_swizzleMethod:\s*@selector\(([^)]+)\)\s+withMethod:\s*@selector\(([^)]+)\)")


def _swizzle_timing(block_text: str) -> str:
    if re.search(r"\+\s*(?:\(void\))?\s*load\b", block_text):
        return "+load"
    if re.search(r"\+\s*(?:\(void\))?\s*initialize\b", block_text):
        return "+initialize"
    if re.search(r"dispatch_once|didFinishLaunching|viewDidLoad|awakeFromNib", block_text):
        return "runtime"
    return "unknown"


def collect_swizzle_hooks(files: list[SourceFile], lang: str) -> list[SwizzleHook]:
    """Native method-exchange sites followed by Aspects/JRSwizzle hooks."""
    native: list[SwizzleHook] = []
    wrapped: list[SwizzleHook] = []
    impl_files = [f for f in filter_third_party(files) if re.search(r"\.(m|mm)$", f.name, re.IGNORECASE)]

    for f in impl_files:
        if not _SWIZZLE_FILE_RE.search(f.content):
            continue
        lines = f.lines
        for i, line in enumerate(lines):
            if not _SWIZZLE_CALL_RE.search(line):
                continue
            block = extract_enclosing_block(lines, i, lang, 50)
            text = "\n".join(block)

            selectors: list[str] = []
            classes: list[str] = []
            for m in _CLASS_GET_RE.finditer(text):
                classes += [c for c in (m.group(1), m.group(2)) if c]
                selectors.append(m.group(3))
            for m in _SELECTOR_RE.finditer(text):
                if m.group(1) not in selectors:
                    selectors.append(m.group(1))

            host = classes[0] if classes else None
            if host is None:
                for j in range(i, max(0, i - 100) - 1, -1):
                    m = _IMPLEMENTATION_RE.match(lines[j])
                    if m:
                        host = m.group(1)
                        break

            if any(h.file == f.relative_path and h.line == i + 1 for h in native):
                continue
            native.append(SwizzleHook(
                file=f.relative_path,
                line=i + 1,
                class_name=host or "unknown",
                original_selector=selectors[0] if selectors else "unknown",
                swizzled_selector=selectors[1] if len(selectors) > 1 else (selectors[0] if selectors else "unknown"),
                timing=_swizzle_timing(text),
                code_block=block[:33] + ["    // ... (more code omitted)", "}"] if len(block) > 35 else block,
            ))

    for f in impl_files:
        if not re.search(r"aspect_hook|jr_swizzle|rs_swizzle", f.content, re.IGNORECASE):
            continue
        lines = f.lines
        for i, line in enumerate(lines):
            m = _ASPECT_RE.search(line)
            if m:
                wrapped.append(SwizzleHook(
                    file=f.relative_path, line=i + 1, class_name=m.group(1),
                    original_selector=m.group(2), swizzled_selector=f"aspect_hook({m.group(2)})",
                    timing="runtime", framework="Aspects",
                    code_block=extract_enclosing_block(lines, i, lang, 30)[:30],
                ))
            m = _JR_RE.search(line)
            if m:
                wrapped.append(SwizzleHook(
                    file=f.relative_path, line=i + 1,
                    original_selector=m.group(1), swizzled_selector=m.group(2),
                    timing="runtime", framework="JRSwizzle",
                    code_block=lines[max(0, i - 3):i + 5],
                ))
    return native + wrapped


def extract_swizzle_hooks(files: list[SourceFile], lang: str, cache: PipelineCache) -> list[Candidate]:
    """The swizzle inventory: an overview table in the first part, implementations across parts."""
    hooks = collect_swizzle_hooks(files, lang)
    cache.cache_result(DEEP_SCAN, "swizzle", hooks)
    if not hooks:
        return []

    native = sum(1 for h in hooks if not h.framework)
    heading = "Method swizzling hooks"
    one_liner = f"{len(hooks)} swizzling hooks ({native} native, {len(hooks) - native} via wrapper libraries)"
    notes = [
        "Every swizzle changes runtime behaviour; when editing a hooked method you **must** check the replacement",
        "Never change the signature or behaviour of a hooked method without understanding the existing hook",
        "Check for an existing hook on the same method before adding a new one",
        "Swizzles in +load run before app launch finishes and cost startup time",
        "Guard swizzles with dispatch_once so a second exchange does not restore the original",
    ]
    relations = [
        Relation(type="RELATED", target=make_title("project-profile", "event-hooks"),
                 description="Hooks relate to lifecycle events"),
        Relation(type="PREREQUISITE", target=make_title("agent-guidelines", "coding-principles"),
                 description="Read before changing a hooked method"),
    ]
    relation_lines = [f"{r.type}: [{r.target}] — {r.description}" for r in relations]
    budget = conventions_budget(
        heading + " (cont.)", one_liner, agent_notes=notes, relation_lines=relation_lines, lang="objectivec"
    )

    # The overview takes at most half the room; every hook still gets an implementation entry
    overview = [
        f"> {len(hooks)} method swizzling hooks detected",
        "",
        "### Hook overview",
        "",
        "| Class | Original | Replacement | Timing | File |",
        "|-------|----------|-------------|--------|------|",
    ]
    shown = 0
    for h in hooks:
        fw = f" ({h.framework})" if h.framework else ""
        row = f"| `{h.class_name}` | `{h.original_selector}` | `{h.swizzled_selector}`{fw} | {h.timing} | {h.file}:L{h.line} |"
        if sum(len(line) + 1 for line in overview) + len(row) + 1 > budget // 2:
            break
        overview.append(row)
        shown += 1
    if shown < len(hooks):
        overview += ["", f"*…and {len(hooks) - shown} more, listed under Implementations*"]
    overview += ["", "### Implementations", ""]

    groups = [
        CatalogGroup(
            heading=f"{h.class_name} — `{h.original_selector}` → `{h.swizzled_selector}`"
                    + (f" [{h.framework}]" if h.framework else ""),
            entries=[CatalogEntry(
                full=[f"File: {h.file}:L{h.line}, timing: {h.timing}", "", "```objectivec", *h.code_block, "```", ""],
                signature=f"{h.file}:L{h.line}, timing: {h.timing} (code omitted, budget exhausted)",
            )],
        )
        for h in hooks
    ]
    overview_chars = sum(len(line) + 1 for line in overview)
    parts = render_catalog_parts(groups, budget=max(0, budget - overview_chars))

    results = []
    for i, part in enumerate(parts):
        sub_topic = part_sub_topic("swizzle-hooks", i)
        results.append(Candidate(
            title=make_title(DEEP_SCAN, sub_topic),
            sub_topic=sub_topic,
            document_body=build_candidate_doc(
                heading + (" (cont.)" if i else ""),
                one_liner,
                (overview if i == 0 else []) + part,
                agent_notes=notes,
                relation_lines=relation_lines,
                lang="objectivec",
            ),
            language="objectivec",
            sources=list(dict.fromkeys(h.file for h in hooks))[:20],
            summary=f"deep-scan/{sub_topic}: {len(hooks)} method swizzling hooks with implementations",
            knowledge_type="code-pattern",
            tags=["swizzle", "hook", "runtime", "method-exchange"],
            relations=relations,
            dimension=DEEP_SCAN,
        ))
    return results


def extract_deep_scan(files: list[SourceFile], lang: str, cache: PipelineCache) -> list[Candidate]:
    results = extract_defines_and_constants(files, lang, cache)
    if lang == "objectivec":
        results += extract_swizzle_hooks(files, lang, cache)
    return results


# ─── category-scan ───────────────────────────────────────────

class CategoryMethod(BaseModel):
    signature: str
    selector: str
    implementation: list[str] = Field(default_factory=list)
    file: str
    line: int
    usage_count: int = 0


class CategoryGroup(BaseModel):
    base: str
    name: str
    kind: str
    file: str
    methods: list[CategoryMethod] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.base}({self.name})"

    @property
    def total_calls(self) -> int:
        return sum(m.usage_count for m in self.methods)


_OBJC_CAT_IMPL_RE = re.compile(r"^@implementation\s+(\w+)\s*\(\s*(\w*)\s*\)")
_OBJC_CAT_DECL_RE = re.compile(r"^@interface\s+(\w+)\s*\(\s*(\w*)\s*\)")
_OBJC_METHOD_RE = re.compile(r"^([-+])\s*\(([^)]+)\)([^;{]*)")
_OBJC_METHOD_DECL_RE = re.compile(r"^([-+])\s*\(([^)]+)\)([^;]+);")
_SWIFT_EXT_RE = re.compile(r"^(?:public\s+|internal\s+|private\s+|fileprivate\s+)?extension\s+(\w+)")
_SWIFT_FUNC_RE = re.compile(
    r"^\s*(?:public\s+|internal\s+|private\s+|fileprivate\s+|open\s+|@objc\s+|static\s+|class\s+|@discardableResult\s+)*"
    r"func\s+(\w+)\s*\(([^)]*)\)"
)
_ASSOC_RE = re.compile(r"objc_setAssociatedObject|objc_getAssociatedObject")


def _brace_block(lines: list[str], start: int, limit: int) -> list[str]:
    block: list[str] = []
    depth = 0
    started = False
    for line in lines[start:start + limit]:
        for ch in line:
            if ch == "{":
                depth += 1
                started = True
            elif ch == "}":
                depth -= 1
        block.append(line)
        if started and depth <= 0:
            break
    if len(block) > MAX_IMPL_LINES:
        return block[:MAX_IMPL_LINES - 2] + ["    // ... (more implementation omitted)", "}"]
    return block


def _first_selector_part(selector: str) -> str:
    return re.sub(r"\s+", "", selector.split(":")[0])


def collect_objc_categories(files: list[SourceFile]) -> list[CategoryGroup]:
    categories: dict[str, CategoryGroup] = {}
    files = filter_third_party(files)

    for f in files:
        if not re.search(r"\.(m|mm)$", f.name, re.IGNORECASE):
            continue
        lines = f.lines
        current: CategoryGroup | None = None
        for i, line in enumerate(lines):
            m = _OBJC_CAT_IMPL_RE.match(line)
            if m:
                base, name = m.group(1), m.group(2) or "Anonymous"
                current = categories.setdefault(f"{base}({name})", CategoryGroup(
                    base=base, name=name, kind=classify_base(base), file=f.relative_path))
                continue
            if line.strip().startswith("@end"):
                current = None
                continue
            if current is None:
                continue
            m = _OBJC_METHOD_RE.match(line)
            if m:
                selector = m.group(3).strip()
                current.methods.append(CategoryMethod(
                    signature=f"{m.group(1)} ({m.group(2).strip()}){selector}",
                    selector=_first_selector_part(selector),
                    implementation=_brace_block(lines, i, 150),
                    file=f.relative_path,
                    line=i + 1,
                ))

    # Headers only add methods with no implementation found
    for f in files:
        if not f.name.lower().endswith(".h"):
            continue
        lines = f.lines
        current = None
        for i, line in enumerate(lines):
            m = _OBJC_CAT_DECL_RE.match(line)
            if m:
                base, name = m.group(1), m.group(2) or "Anonymous"
                current = categories.setdefault(f"{base}({name})", CategoryGroup(
                    base=base, name=name, kind=classify_base(base), file=f.relative_path))
                continue
            if line.strip().startswith("@end"):
                current = None
                continue
            if current is None:
                continue
            m = _OBJC_METHOD_DECL_RE.match(line)
            if m:
                selector = _first_selector_part(m.group(3).strip())
                if any(existing.selector == selector for existing in current.methods):
                    continue
                current.methods.append(CategoryMethod(
                    signature=f"{m.group(1)} ({m.group(2).strip()}){m.group(3).strip()}",
                    selector=selector,
                    file=f.relative_path,
                    line=i + 1,
                ))
    return list(categories.values())


def collect_swift_extensions(files: list[SourceFile]) -> list[CategoryGroup]:
    extensions: dict[str, CategoryGroup] = {}
    for f in filter_third_party(files):
        if not f.name.lower().endswith(".swift"):
            continue
        lines = f.lines
        for i, line in enumerate(lines):
            m = _SWIFT_EXT_RE.match(line)
            if not m:
                continue
            base = m.group(1)
            group = CategoryGroup(base=base, name=PurePosixPath(f.name).stem, kind=classify_base(base), file=f.relative_path)
            depth = 0
            started = False
            for j in range(i, min(len(lines), i + 500)):
                for ch in lines[j]:
                    if ch == "{":
                        depth += 1
                        started = True
                    elif ch == "}":
                        depth -= 1
                if depth == 1:
                    fm = _SWIFT_FUNC_RE.match(lines[j])
                    if fm:
                        group.methods.append(CategoryMethod(
                            signature=f"func {fm.group(1)}({fm.group(2).strip()})",
                            selector=fm.group(1),
                            implementation=_brace_block(lines, j, 100),
                            file=f.relative_path,
                            line=j + 1,
                        ))
                if started and depth <= 0:
                    break
            if group.methods:
                key = f"{base}+{f.relative_path}"
                if key in extensions:
                    extensions[key].methods += group.methods
                else:
                    extensions[key] = group
    return list(extensions.values())


def _ext_by_base(groups: list[CategoryGroup], lang: str) -> dict[str, list[ExtensionSummary]]:
    by_base: dict[str, list[ExtensionSummary]] = {}
    for g in groups:
        impl = "\n".join(line for m in g.methods for line in m.implementation)
        by_base.setdefault(g.base, []).append(ExtensionSummary(
            name=g.label if lang == "objectivec" else f"{g.base}+{g.name}",
            base=g.base,
            file=g.file,
            method_count=len(g.methods),
            kind=g.kind,
            has_associated_obj=bool(_ASSOC_RE.search(impl)),
            has_computed_prop=bool(re.search(r"\bvar\s+\w+\s*:", impl)),
        ))
    return by_base


def collect_extensions(files: list[SourceFile], lang: str) -> list[CategoryGroup]:
    if lang == "objectivec":
        return collect_objc_categories(files)
    if lang == "swift":
        return collect_swift_extensions(files)
    return []


def extension_inventory(files: list[SourceFile], lang: str) -> dict[str, list[ExtensionSummary]]:
    """Every category/extension grouped by base type, custom types included."""
    return _ext_by_base(collect_extensions(files, lang), lang)


def extract_category_scan(files: list[SourceFile], lang: str, cache: PipelineCache) -> list[Candidate]:
    """Foundation/UIKit categories and extensions with call counts, one part series per file."""
    groups = collect_extensions(files, lang)
    cache.cache_result(CATEGORY_SCAN, "ext_by_base", _ext_by_base(groups, lang))

    groups = [g for g in groups if g.kind != "custom"]
    if not groups:
        return []

    selectors = {m.selector for g in groups for m in g.methods if len(m.selector) >= 3}
    usages = scan_usages(filter_third_party(files), selectors)
    for g in groups:
        for m in g.methods:
            m.usage_count = usages[m.selector].count if m.selector in usages else 0
        m_sorted = sorted(g.methods, key=lambda m: -m.usage_count)
        g.methods = m_sorted

    dropped = [g.label for g in groups if g.total_calls == 0]
    if dropped:
        logger.debug(f"Dropping {len(dropped)} categories with no call sites: {', '.join(dropped[:5])}")
    groups = [g for g in groups if g.total_calls > 0]

    by_file: dict[str, list[CategoryGroup]] = {}
    for g in groups:
        by_file.setdefault(g.file, []).append(g)

    noun = "Category" if lang == "objectivec" else "Extension"
    results: list[Candidate] = []
    for path, cats in by_file.items():
        cats.sort(key=lambda g: -g.total_calls)
        file_name = _file_name(path)
        kind_label = "Foundation" if cats[0].kind == "foundation" else "UIKit"

        catalog = []
        for g in cats:
            entries = []
            for m in g.methods:
                full = [f"#### `{m.signature}` — {m.usage_count} calls", ""]
                if m.implementation:
                    full += ["Implementation:", f"```{lang}", *m.implementation, "```", ""]
                usage = _usage_block(usages.get(m.selector), lang)
                if usage:
                    full += ["Project call sites:", *usage]
                entries.append(CatalogEntry(full=full, signature=f"`{m.signature}` — {m.usage_count} calls"))
            catalog.append(CatalogGroup(heading=g.label, entries=entries))

        relations = [Relation(type="ENFORCES", target=make_title("project-profile", "base-extensions"),
                              description=f"{kind_label} {noun.lower()} methods are mandatory")]
        method_count = sum(len(g.methods) for g in cats)
        call_count = sum(g.total_calls for g in cats)
        base_topic = f"category/{file_name}"
        heading = f"{file_name} {noun} methods"
        one_liner = f"{file_name}: {method_count} methods, {call_count} calls"
        notes = [
            f"When equivalent behaviour is needed you **must** use these {kind_label} {noun.lower()} "
            "methods; never re-implement them",
            f"Check this list before adding a {kind_label} extension method to avoid duplicates",
            "Follow the call sites shown above as the standard usage",
            f"Prefix {noun.lower()} method names with the project prefix to avoid clashes",
        ]
        relation_lines = [f"{r.type}: [{r.target}] — {r.description}" for r in relations]
        budget = conventions_budget(
            heading + " (cont.)", one_liner, agent_notes=notes, relation_lines=relation_lines, lang=lang
        )
        for i, part in enumerate(render_catalog_parts(catalog, budget=budget)):
            sub_topic = part_sub_topic(base_topic, i)
            results.append(Candidate(
                title=make_title(CATEGORY_SCAN, sub_topic),
                sub_topic=sub_topic,
                document_body=build_candidate_doc(
                    heading + (" (cont.)" if i else ""),
                    one_liner,
                    part,
                    agent_notes=notes,
                    relation_lines=relation_lines,
                    lang=lang,
                ),
                language=lang,
                sources=[path],
                summary=f"category-scan/{sub_topic} {file_name}: {method_count} methods, {call_count} calls",
                knowledge_type="code-standard",
                tags=["category", cats[0].kind, lang],
                relations=relations,
                dimension=CATEGORY_SCAN,
            ))
    return results
