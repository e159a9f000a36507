"""project-profile dimension: a whole-project portrait in eight sub-topics.

The macro inventory, swizzle hooks and category/extension inventory come from
the pipeline cache, so deep-scan and category-scan are not rescanned when they
already ran in this extraction.
"""

import logging
import re
from collections import Counter

from codelore.cache import PipelineCache
from codelore.extractors_deep import (
    CATEGORY_SCAN,
    DEEP_SCAN,
    collect_defines,
    collect_swizzle_hooks,
    extension_inventory,
)
from codelore.extractors_macro import MARK_RE, CJK_RE, compute_top_prefix
from codelore.models import AstSummary, Candidate, DependencyEdge, ExtensionSummary, MacroDefinition, Relation, SourceFile, SwizzleHook
from codelore.rendering import build_candidate_doc, make_title
from codelore.source_utils import ROLE_LABELS, filter_third_party, infer_target_role, is_const_file

logger = logging.getLogger(__name__)

PROFILE = "project-profile"


def _relation_lines(relations: list[Relation]) -> list[str]:
    return [f"{r.type}: [{r.target}] — {r.description}" for r in relations]


def _profile_candidate(sub_topic, heading, one_liner, body, notes, relations, sources, summary, tags) -> Candidate:
    return Candidate(
        title=make_title(PROFILE, sub_topic),
        sub_topic=sub_topic,
        document_body=build_candidate_doc(
            heading, one_liner, body, agent_notes=notes, relation_lines=_relation_lines(relations)
        ),
        language="markdown",
        sources=sources[:15],
        summary=f"{PROFILE}/{sub_topic}: {summary}",
        knowledge_type="architecture",
        tags=tags,
        relations=relations,
        dimension=PROFILE,
    )


def _count_files(files: list[SourceFile], pattern: re.Pattern) -> int:
    return sum(1 for f in files if pattern.search(f.content))


# ─── overview ────────────────────────────────────────────────

def _overview(files, target_file_map, dep_edges, lang_stats, lang, ast) -> Candidate:
    total = len(files)
    targets = list(target_file_map)
    body = [
        "| Metric | Value |", "|--------|-------|",
        f"| Primary language | {lang} |",
        f"| Files scanned | {total} |",
        f"| Modules/targets | {len(targets)} |",
        f"| Module dependency edges | {len(dep_edges)} |",
    ]
    if ast is not None:
        m = ast.project_metrics
        body += [
            f"| Classes/structs (AST) | {len(ast.classes)} |",
            f"| Protocols (AST) | {len(ast.protocols)} |",
            f"| Categories/extensions (AST) | {len(ast.categories)} |",
            f"| Methods (AST) | {m.get('total_methods', 0)} |",
            f"| Methods per class (AST) | {float(m.get('avg_methods_per_class', 0) or 0):.1f} |",
        ]
        if ast.pattern_stats:
            body.append(f"| Design patterns (AST) | {', '.join(ast.pattern_stats)} |")

    ranked = sorted(lang_stats.items(), key=lambda kv: -kv[1])
    body += ["", "### Language distribution", "", "| Language | Files | Share |", "|----------|-------|-------|"]
    body += [f"| {name} | {n} | {n * 100 / total:.1f}% |" for name, n in ranked[:8] if total]
    body += ["", "### Modules", "", "| Module | Role | Files |", "|--------|------|-------|"]
    body += [f"| {t} | {ROLE_LABELS.get(infer_target_role(t), 'Other')} | {len(target_file_map[t])} |" for t in targets[:15]]
    if len(targets) > 15:
        body.append(f"| …and {len(targets) - 15} more | | |")

    top = f"{ranked[0][0]} ({ranked[0][1]})" if ranked else "unknown"
    return _profile_candidate(
        "overview", "Project overview",
        f"{lang} project, {total} files, {len(targets)} modules",
        body, ["Read this overview before applying the more specific knowledge"], [],
        ["module manifest", "file scan"],
        f"{lang} project, {total} files, {len(targets)} modules, top language {top}",
        ["overview"],
    )


# ─── tech-stack ──────────────────────────────────────────────

_UIKIT_RE = re.compile(r"\b(UIView|UIViewController|UITableView|UICollectionView|UILabel|UIButton"
                       r"|UINavigationController|UITabBarController|UIStoryboard|UIKit)\b")
_SWIFTUI_RE = re.compile(r"\b(SwiftUI|VStack|HStack|ZStack|NavigationView|NavigationStack)\b"
                         r"|@(State|Binding|Published|ObservedObject|StateObject|EnvironmentObject|Environment)\b")
_ARCH_NAME_RE = re.compile(r"\b\w+(ViewModel|Presenter|Interactor|Router|Coordinator|Controller|UseCase|Repository)\b")
NETWORK_LIBRARIES = [
    ("Alamofire", re.compile(r"\b(Alamofire|AF\.request|Session\.default)\b|\.responseJSON|\.responseDecodable")),
    ("Moya", re.compile(r"\b(Moya|TargetType|MoyaProvider)\b|\.rx\.request")),
    ("URLSession", re.compile(r"\b(URLSession|URLRequest|URLSessionDataTask)\b|dataTask\(with:")),
    ("NSURLSession/NSURLConnection", re.compile(r"\b(NSURLSession|NSURLConnection|NSMutableURLRequest)\b")),
]
_DOMAIN_RE = re.compile(r"^(\w{3,}?)(ViewController|Controller|ViewModel|View|Manager|Service|Handler|Provider"
                        r"|Store|Model|Entity|Cell|Router|Worker)$")


def _architecture_style(files: list[SourceFile]) -> tuple[str, Counter]:
    counts: Counter[str] = Counter()
    folders = Counter()
    for f in files[:200]:
        counts.update(m.group(1) for m in _ARCH_NAME_RE.finditer(f.content))
        path = f.relative_path.lower()
        if re.search(r"\bviewmodels?\b", path):
            folders["mvvm"] += 1
        if re.search(r"\b(presenters?|interactors?|routers?)\b", path):
            folders["viper"] += 1
        if re.search(r"\b(usecases?|repository|domain)\b", path):
            folders["clean"] += 1

    if counts["Interactor"] > 2 and counts["Presenter"] > 2 and counts["Router"] > 1:
        style = "VIPER"
    elif counts["ViewModel"] > 3 or folders["mvvm"] > 2:
        style = "MVVM"
    elif counts["UseCase"] > 2 or folders["clean"] > 2:
        style = "Clean Architecture"
    elif counts["Controller"] > 3:
        style = "MVC"
    else:
        style = "unclear"
    if counts["Coordinator"] > 2:
        style += " + Coordinator"
    return style, counts


def _tech_stack(files, lang, ast) -> Candidate:
    lines: list[str] = []
    notes: list[str] = []

    uikit, swiftui = _count_files(files, _UIKIT_RE), _count_files(files, _SWIFTUI_RE)
    if uikit and swiftui:
        ui = f"mixed (UIKit {uikit} files + SwiftUI {swiftui} files)"
        notes.append("The project mixes UIKit and SwiftUI; confirm the framework before writing new UI")
    elif uikit:
        ui = f"UIKit ({uikit} files)"
    elif swiftui:
        ui = f"SwiftUI ({swiftui} files)"
    else:
        ui = "no UI framework detected"
    lines.append(f"- **UI framework**: {ui}")

    style, suffixes = _architecture_style(files)
    lines.append(f"- **Architecture**: {style}")
    if suffixes:
        lines.append(f"  - Type suffix counts: {', '.join(f'{k}({v})' for k, v in suffixes.most_common())}")
    notes.append(f"New modules follow the {style} architecture")

    network = [f"{name}({n} files)" for name, pattern in NETWORK_LIBRARIES if (n := _count_files(files, pattern))]
    lines.append(f"- **Networking**: {', '.join(network) if network else 'no network layer detected'}")

    domains: Counter[str] = Counter()
    for cls in (ast.classes if ast is not None else []):
        m = _DOMAIN_RE.match(cls.name)
        if m:
            domain = re.sub(r"^[A-Z]{2,3}(?=[A-Z])", "", m.group(1))
            if len(domain) >= 2:
                domains[domain] += 1
    if domains:
        top = domains.most_common(10)
        lines.append(f"- **Core domains**: {', '.join(f'{k}({v})' for k, v in top)}")
        notes.append(f"Core domains: {', '.join(k for k, _ in top[:5])}; align new feature names with them")

    conventions = []
    prefix = compute_top_prefix(files, lang, ast)
    if prefix:
        conventions.append(f"class prefix `{prefix[0]}`")
    cjk = english = 0
    for f in files[:50]:
        for m in re.finditer(r"//\s*(.{4,40})$", f.content, re.MULTILINE):
            if CJK_RE.search(m.group(1)):
                cjk += 1
            elif re.fullmatch(r"[a-zA-Z\s,.\-:]+", m.group(1).strip()):
                english += 1
    if cjk or english:
        conventions.append("comments mostly Chinese" if cjk > english * 2
                           else "comments mostly English" if english > cjk * 2 else "mixed-language comments")
    mark_rate = _count_files(files, MARK_RE) * 100 / len(files) if files else 0
    if mark_rate > 20:
        conventions.append(f"MARK sections ({mark_rate:.0f}% of files)")
    if conventions:
        lines.append(f"- **Conventions**: {'; '.join(conventions)}")

    relations = [Relation(type="EXTENDS", target=make_title(PROFILE, "overview"), description="Adds technical detail")]
    return _profile_candidate(
        "tech-stack", "Tech stack and project traits", f"{style} architecture, {ui}",
        lines, notes, relations, ["file scan", "AST analysis"], f"{style}, {ui}",
        ["tech-stack", "architecture-pattern", "conventions"],
    )


# ─── third-party-deps ────────────────────────────────────────

DEP_CATEGORIES = [
    ("Networking", re.compile(r"alamofire|moya|urlsession|networking|http|api|grpc|socket")),
    ("UI", re.compile(r"snapkit|masonry|kingfisher|sdwebimage|lottie|hero|iglist|rx(cocoa|swift)|combine|swiftui")),
    ("Storage", re.compile(r"realm|coredata|grdb|fmdb|sqlite|keychain|userdefaults|cache")),
    ("Testing", re.compile(r"quick|nimble|xctest|snapshot|test|mock|stub|ohhttp")),
    ("Logging", re.compile(r"cocoalumberjack|swiftybeaver|log|logger|oslog")),
    ("Utility", re.compile(r"swifty|then|promise|rx|combine|crypto|zip|json|codable|objectmapper")),
]
_SWIFT_IMPORT_RE = re.compile(r"^\s*(?:@_exported\s+)?import\s+(\w+)")
_OBJC_IMPORT_RE = re.compile(r"^\s*(?:#import\s+<(\w+)/|@import\s+(\w+))")


def _third_party_deps(files, target_file_map, dep_edges) -> Candidate | None:
    local = {t.lower() for t in target_file_map}
    deps = [n for n in dict.fromkeys(x for e in dep_edges for x in (e.source, e.target)) if n.lower() not in local]
    if not deps:
        return None

    wanted = {d.lower() for d in deps}
    imports: Counter[str] = Counter()
    for f in files:
        if not re.search(r"\.(swift|m|mm|h)$", f.name, re.IGNORECASE):
            continue
        for line in f.lines:
            m = _SWIFT_IMPORT_RE.match(line) or _OBJC_IMPORT_RE.match(line)
            if m:
                module = next(g for g in m.groups() if g).lower()
                if module in wanted:
                    imports[module] += 1

    grouped: dict[str, list[str]] = {}
    for dep in deps:
        category = next((label for label, pattern in DEP_CATEGORIES if pattern.search(dep.lower())), "Other")
        grouped.setdefault(category, []).append(dep)

    body = [f"- **Third-party dependencies**: {len(deps)}", ""]
    for category, names in grouped.items():
        body += [f"### {category}", ""]
        for d in names:
            n = imports[d.lower()]
            body.append(f"- `{d}`" + (f" — imported by {n} files" if n else ""))
        body.append("")

    relations = [Relation(type="EXTENDS", target=make_title("architecture", "dependency-graph"),
                          description="Adds third-party dependency detail")]
    return _profile_candidate(
        "third-party-deps", "Third-party dependencies",
        f"{len(deps)} third-party dependencies in {len(grouped)} categories",
        body,
        [
            "Check for an overlapping dependency before adding a new one",
            "Prefer libraries the project already integrates",
            "Use third-party libraries through their public API only",
            "High import counts mark core dependencies; change them with care",
        ],
        relations, ["module manifest", "dependency analysis"],
        f"{len(deps)} dependencies, " + "/".join(f"{k}({len(v)})" for k, v in grouped.items()),
        ["third-party-deps", "dependencies"],
    )


# ─── base-extensions ─────────────────────────────────────────

def _base_extensions(ext_by_base: dict[str, list[ExtensionSummary]], lang: str) -> Candidate | None:
    everything = [e for exts in ext_by_base.values() for e in exts]
    if not everything:
        return None

    body = [f"- **Extensions/categories**: {len(everything)}", f"- **Extended types**: {len(ext_by_base)}", ""]
    kinds = {"foundation": "Foundation/standard library", "uikit": "UIKit/UI", "custom": "Project types"}
    per_kind: dict[str, int] = {}
    for kind, label in kinds.items():
        bases = {b: exts for b, exts in ext_by_base.items() if exts and exts[0].kind == kind}
        per_kind[kind] = len(bases)
        if not bases:
            continue
        body += [f"### {label} extensions ({sum(len(v) for v in bases.values())})", ""]
        for base, exts in sorted(bases.items(), key=lambda kv: -len(kv[1]))[:10]:
            body.append(f"- `{base}` — {len(exts)} extensions ({', '.join(e.file for e in exts)})")
        body.append("")

    assoc = [e for e in everything if e.has_associated_obj]
    if assoc:
        body += ["### Associated objects", ""] + [f"- `{e.name}` — {e.file}" for e in assoc[:5]] + [""]

    notes = [
        "Check for an existing extension of the same type before adding one, to avoid method name clashes",
        "Add methods to the existing extension files to keep them together",
    ]
    if assoc:
        notes.append("Choose the association policy (RETAIN_NONATOMIC vs COPY) deliberately for associated objects")
    if lang == "objectivec":
        notes.append("Prefix category method names (e.g. xx_methodName) to avoid clashes with system and library methods")

    relations = [
        Relation(type="EXTENDS", target=make_title(PROFILE, "overview"), description="Adds base-type extensions"),
        Relation(type="RELATED", target=make_title("code-pattern", "category"), description="Global view of extensions"),
    ]
    return _profile_candidate(
        "base-extensions", "Extension/category inventory",
        f"{len(everything)} extensions over {len(ext_by_base)} types (Foundation {per_kind['foundation']} / "
        f"UIKit {per_kind['uikit']} / project {per_kind['custom']})",
        body, notes, relations, list(dict.fromkeys(e.file for e in everything))[:10],
        f"{len(everything)} extensions over {len(ext_by_base)} types",
        ["base-extensions", "category", "extension"],
    )


# ─── base-classes ────────────────────────────────────────────

SYSTEM_BASE_CLASSES = frozenset({
    "NSObject", "UIViewController", "UIView", "UITableViewCell", "UICollectionViewCell",
    "UITableViewController", "UICollectionViewController", "UINavigationController",
    "UITabBarController", "UIControl", "UIResponder", "UIApplication",
    "NSManagedObject", "NSOperation", "NSThread", "XCTestCase",
    "ObservableObject", "Codable", "Hashable", "Equatable",
})
BASE_ROLE_RULES = [
    ("Abstract base", re.compile(r"Base|Abstract")),
    ("ViewModel base", re.compile(r"ViewModel")),
    ("Controller base", re.compile(r"Controller")),
    ("Service base", re.compile(r"Service")),
    ("Cell base", re.compile(r"Cell")),
    ("Model base", re.compile(r"Model")),
    ("View base", re.compile(r"View")),
]
_COND_MACRO_RE = re.compile(r"^#(?:if|ifdef|ifndef|elif)\s+(\w+)")


def _custom_bases(files, lang, ast) -> list[tuple[str, int]]:
    counts: Counter[str] = Counter()
    if ast is not None and ast.inheritance_graph:
        counts.update(e.target for e in ast.inheritance_graph if e.type == "inherits")
    else:
        inherit_re = {"objectivec": r"@interface\s+\w+\s*:\s*(\w+)", "swift": r"class\s+\w+\s*:\s*(\w+)"}.get(lang)
        if inherit_re:
            for f in files[:200]:
                counts.update(re.findall(inherit_re, f.content))
    return [(cls, n) for cls, n in counts.most_common() if n >= 2 and cls not in SYSTEM_BASE_CLASSES]


def _base_classes(files, lang, ast, defines: list[MacroDefinition]) -> Candidate | None:
    body: list[str] = []
    notes: list[str] = []
    sources: list[str] = []

    bases = _custom_bases(files, lang, ast)
    if bases:
        body += ["### Project base classes", "", "| Base class | Subclasses | Likely role |", "|-----------|-----------|-------------|"]
        for cls, n in bases[:15]:
            role = next((label for label, p in BASE_ROLE_RULES if p.search(cls)), "Custom base")
            body.append(f"| `{cls}` | {n} | {role} |")
        body.append("")
        notes.append(f"Inherit from the project base classes ({'/'.join(c for c, _ in bases[:3])}) when adding types")

    values = [d for d in defines if d.kind in ("value", "static")]
    functions = [d for d in defines if d.kind == "function"]
    externs = [d for d in defines if d.kind == "extern"]

    if values:
        const_files = list(dict.fromkeys(d.file for d in values if is_const_file(SourceFile(path=d.file))))
        body += [f"### Constants and value macros ({len(values)})", ""]
        if const_files:
            body += ["**Constants files** (listed in full):"] + [f"- {p}" for p in const_files] + [""]
        by_category: dict[str, list[MacroDefinition]] = {}
        for d in values:
            by_category.setdefault(d.category, []).append(d)
        for category, items in sorted(by_category.items(), key=lambda kv: -len(kv[1])):
            from_const = [d for d in items if d.file in const_files]
            shown = from_const + [d for d in items if d.file not in const_files][:max(0, 6 - len(from_const))]
            body.append(f"**{category} ({len(items)})**:")
            body += [f"- `{d.name}` = `{d.value}` — {d.file}" for d in shown]
            if len(items) > len(shown):
                body.append(f"- …and {len(items) - len(shown)} more")
            body.append("")
        notes.append("New code **must** use the project's constants (colors, fonts, sizes, URLs); never hard-code them")

    if functions:
        body += [f"### Function macros ({len(functions)})", ""]
        by_category = {}
        for d in functions:
            by_category.setdefault(d.category, []).append(d)
        for category, items in sorted(by_category.items(), key=lambda kv: -len(kv[1])):
            body.append(f"**{category} ({len(items)})**:")
            body += [f"- `{d.name}({d.params})` → `{d.value[:100]}` — {d.file}" for d in items[:8]]
            if len(items) > 8:
                body.append(f"- …and {len(items) - 8} more")
            body.append("")
        weak = [d.name for d in functions if re.search(r"weakify|strongify", d.name, re.IGNORECASE)]
        if weak:
            notes.append(f"Use the project's {'/'.join(weak)} macros for self references inside blocks")
        notes.append("Prefer existing function macros over defining new ones of the same kind")

    if externs:
        body += [f"### extern constants ({len(externs)})", ""]
        body += [f"- `{d.name}` — {d.file}" for d in externs[:15]]
        if len(externs) > 15:
            body.append(f"- …and {len(externs) - 15} more")
        body.append("")
        notes.append("Prefer `extern NSString *const` for string constants over #define")

    if lang == "objectivec":
        conditions = sorted({m.group(1) for f in files[:200] for line in f.lines
                             if (m := _COND_MACRO_RE.match(line)) and m.group(1) not in ("0", "1")})
        if conditions:
            body += [f"### Conditional compilation flags ({len(conditions)})", "", " ".join(f"`{c}`" for c in conditions), ""]
            if "DEBUG" in conditions:
                notes.append("Keep debug-only logic inside #ifdef DEBUG")
        for pch in [f for f in files if f.name.lower().endswith(".pch")][:2]:
            includes = [line.strip() for line in pch.lines if re.match(r"#import|#include|@import", line.strip())][:20]
            body += [f"**{pch.relative_path}** — {len(includes)} global imports:"] + [f"- `{i}`" for i in includes] + [""]
            sources.append(pch.relative_path)
            notes.append("Headers and macros in the PCH are global; do not re-import them per file")

    if not body:
        return None
    relations = [
        Relation(type="EXTENDS", target=make_title(PROFILE, "overview"), description="Adds base classes and global definitions"),
        Relation(type="RELATED", target=make_title("code-pattern", "inheritance"), description="Global view of inheritance"),
    ]
    return _profile_candidate(
        "base-classes", "Base classes and global definitions",
        f"{len(bases)} project base classes, {len(defines)} global definitions",
        body, notes, relations, sources or ["file scan", "AST analysis"],
        f"{len(bases)} project base classes, {len(defines)} macros/constants",
        ["base-classes", "global-definitions", "macros"],
    )


# ─── event-hooks ─────────────────────────────────────────────

APP_LIFECYCLE_HOOKS = {
    "objectivec": {
        "application:didFinishLaunchingWithOptions:": r"didFinishLaunchingWithOptions",
        "applicationWillTerminate:": r"applicationWillTerminate",
        "applicationDidBecomeActive:": r"applicationDidBecomeActive",
        "applicationWillResignActive:": r"applicationWillResignActive",
        "applicationDidEnterBackground:": r"applicationDidEnterBackground",
        "applicationWillEnterForeground:": r"applicationWillEnterForeground",
        "application:openURL:": r"application.*openURL|handleOpenURL",
        "application:didReceiveRemoteNotification:": r"didReceiveRemoteNotification",
        "application:continueUserActivity:": r"continueUserActivity",
    },
    "swift": {
        "application(_:didFinishLaunchingWithOptions:)": r"didFinishLaunchingWithOptions",
        "applicationWillTerminate(_:)": r"applicationWillTerminate",
        "sceneDidBecomeActive(_:)": r"sceneDidBecomeActive",
        "sceneWillResignActive(_:)": r"sceneWillResignActive",
        "sceneDidEnterBackground(_:)": r"sceneDidEnterBackground",
        "sceneWillEnterForeground(_:)": r"sceneWillEnterForeground",
        "scene(_:openURLContexts:)": r"openURLContexts",
        "application(_:didReceiveRemoteNotification:)": r"didReceiveRemoteNotification",
        "application(_:continue:)": r"func\s+application.*continue.*userActivity",
    },
}
VC_LIFECYCLE = ("viewDidLoad", "viewWillAppear", "viewDidAppear", "viewWillDisappear", "viewDidDisappear")
_NOTIFICATION_NAME_RES = {
    "objectivec": re.compile(r"(?:NSNotificationName|NSString\s*\*\s*const)\s+(\w+Notification\w*)"),
    "swift": re.compile(r"static\s+let\s+(\w+)\s*=\s*(?:NS)?Notification\.Name"),
}
_DEEP_LINK_RES = {
    "objectivec": re.compile(r"handleOpenURL|openURL.*options|universalLink|userActivity.*webpageURL"),
    "swift": re.compile(r"openURLContexts|open\s+url.*options|universalLink|userActivity.*webpageURL|onOpenURL"),
}


def _event_hooks(files, lang, hooks: list[SwizzleHook]) -> Candidate | None:
    body: list[str] = []
    notes: list[str] = []
    sources: list[str] = []

    app_hooks = []
    for hook, pattern in APP_LIFECYCLE_HOOKS.get(lang, {}).items():
        found = next((f for f in files if re.search(pattern, f.content)), None)
        if found:
            app_hooks.append((hook, found.relative_path))
            sources.append(found.relative_path)
    if app_hooks:
        body += ["### App lifecycle entry points", "", "| Hook | File |", "|------|------|"]
        body += [f"| `{h}` | {p} |" for h, p in app_hooks] + [""]
        notes.append("Mind the initialization order in didFinishLaunchingWithOptions when changing app start-up")

    vc_stats: dict[str, int] = {}
    if lang in ("objectivec", "swift"):
        for name in VC_LIFECYCLE:
            pattern = rf"- \(void\){name}" if lang == "objectivec" else rf"override\s+func\s+{name}"
            if n := _count_files(files, re.compile(pattern)):
                vc_stats[name] = n
        teardown = r"- \(void\)dealloc" if lang == "objectivec" else r"\bdeinit\s*\{"
        if n := _count_files(files, re.compile(teardown)):
            vc_stats["dealloc/deinit"] = n
    if vc_stats:
        body += ["### View controller lifecycle", "", "| Method | Files |", "|--------|-------|"]
        body += [f"| `{k}` | {v} |" for k, v in vc_stats.items()] + [""]
        loads, teardowns = vc_stats.get("viewDidLoad", 0), vc_stats.get("dealloc/deinit", 0)
        word = "dealloc" if lang == "objectivec" else "deinit"
        if loads and teardowns < loads * 0.3:
            notes.append(f"Only {teardowns}/{loads} view controllers implement {word}; "
                         "remember to remove notification and KVO registrations")

    if hooks:
        body += ["### Method swizzling", ""] + [f"- {p}" for p in list(dict.fromkeys(h.file for h in hooks))[:8]] + [""]
        notes.append(f"The project swizzles {len(hooks)} methods; check the replacement before changing a hooked method")

    name_re = _NOTIFICATION_NAME_RES.get(lang)
    if name_re:
        names = [(m.group(1), f.relative_path) for f in files[:150] for m in name_re.finditer(f.content)][:20]
        if names:
            body += ["### Custom notification names", ""] + [f"- `{n}` — {p}" for n, p in names[:12]]
            if len(names) > 12:
                body.append(f"- …and {len(names) - 12} more")
            body.append("")
            notes.append("Post notifications with the project's notification name constants, never raw strings")

    link_re = _DEEP_LINK_RES.get(lang)
    if link_re:
        linked = [f.relative_path for f in files if link_re.search(f.content)]
        if linked:
            body += ["### Deep link / URL scheme entry points", ""] + [f"- {p}" for p in linked[:5]] + [""]
            notes.append("Follow the existing deep link handling when adding a URL route")

    if lang == "objectivec":
        entries = []
        for f in files:
            kinds = [k for k in ("load", "initialize") if re.search(rf"\+\s*\(void\)\s*{k}\b", f.content)]
            if kinds:
                entries.append(f"- {f.relative_path} — {', '.join('+' + k for k in kinds)}")
        if entries:
            body += ["### +load / +initialize", ""] + entries[:10] + [""]
            notes.append("+load runs before main(); never rely on app state there. +initialize is lazy; keep it thread safe")
    elif lang == "swift":
        mains = [f.relative_path for f in files if re.search(r"@main\b", f.content)]
        if mains:
            body += ["### @main entry point", ""] + [f"- {p}" for p in mains] + [""]

    if not body:
        return None
    relations = [
        Relation(type="EXTENDS", target=make_title(PROFILE, "overview"), description="Adds event hook registration points"),
        Relation(type="RELATED", target=make_title("event-and-data-flow", "event-notification"),
                 description="Hooks are where event flows are registered"),
    ]
    swizzled = ", with swizzling" if hooks else ""
    return _profile_candidate(
        "event-hooks", "System event hooks and lifecycle entry points",
        f"{len(app_hooks)} app entry points, {len(vc_stats)} view controller lifecycle methods",
        body, notes, relations, sources or ["file scan"],
        f"{len(app_hooks)} app entry points, {len(vc_stats)} lifecycle methods{swizzled}",
        ["event-hooks", "lifecycle", "app-delegate", "swizzling"],
    )


# ─── infra-services ──────────────────────────────────────────

INFRA_SUFFIXES = ("Manager", "Service", "Provider", "Handler", "Store", "Engine", "Client", "Helper",
                  "Utility", "Adapter", "Gateway", "Proxy", "Factory", "Pool", "Cache")
INFRA_ROLES = [
    ("Network/API", re.compile(r"network|api|http|request|response|url|endpoint|rest|grpc|socket|download|upload|fetch", re.I)),
    ("Storage/database", re.compile(r"storage|database|db|cache|persist|realm|coredata|sqlite|userdefault|keychain|store|archive|file", re.I)),
    ("Auth/security", re.compile(r"auth|login|token|session|credential|security|encrypt|decrypt|oauth|sso|biometric", re.I)),
    ("Push/messaging", re.compile(r"push|notification|message|apns|firebase|fcm|remote", re.I)),
    ("Location/maps", re.compile(r"location|map|geo|gps|coordinate|region|beacon", re.I)),
    ("Media/camera", re.compile(r"media|camera|photo|video|audio|image|player|capture|record", re.I)),
    ("Analytics/tracking", re.compile(r"analytics|track|event|log|report|statistic|monitor|apm|crash|metric", re.I)),
    ("Configuration", re.compile(r"config|setting|preference|environment|feature.*flag", re.I)),
    ("UI tools", re.compile(r"theme|style|appearance|hud|toast|alert|loading|animation|font|color", re.I)),
    ("Routing/navigation", re.compile(r"router|navigator|coordinator|deeplink|route", re.I)),
]
_SINGLETON_RES = {
    "objectivec": re.compile(r"\bsharedInstance\b|shared\w+|dispatch_once"),
    "swift": re.compile(r"static\s+(let|var)\s+shared\b"),
}
_CLASS_NAME_RES = {
    "objectivec": re.compile(r"@interface\s+(\w+)\s*[:(]"),
    "swift": re.compile(r"(?:class|struct|enum|actor)\s+(\w+)"),
}
_SETUP_CALL_RE = re.compile(r"\b(setup|configure|register|init|start|launch)\w*\s*[(:]", re.IGNORECASE)


def _infra_role(name: str, head: str = "") -> str:
    return next((label for label, p in INFRA_ROLES if p.search(name) or (head and p.search(head))), "Other")


def _infra_services(files, lang, ast) -> Candidate | None:
    singleton_re = _SINGLETON_RES.get(lang, re.compile(r"\bgetInstance\b|\bshared\b"))
    class_re = _CLASS_NAME_RES.get(lang, re.compile(r"class\s+(\w+)"))
    infra: dict[str, dict] = {}
    for f in files:
        for name in class_re.findall(f.content):
            suffix = next((s for s in INFRA_SUFFIXES if name.endswith(s)), None)
            if suffix and name not in infra:
                infra[name] = {"file": f.relative_path, "suffix": suffix,
                               "singleton": bool(singleton_re.search(f.content)),
                               "role": _infra_role(name, f.content[:500])}
    for cls in (ast.classes if ast is not None else []):
        suffix = next((s for s in INFRA_SUFFIXES if cls.name.endswith(s)), None)
        if suffix and cls.name not in infra:
            infra[cls.name] = {"file": cls.file or "unknown", "suffix": suffix, "singleton": False,
                               "role": _infra_role(cls.name)}
    if not infra:
        return None

    by_role: dict[str, list[str]] = {}
    for name, info in infra.items():
        by_role.setdefault(info["role"], []).append(name)
    singletons = sum(1 for info in infra.values() if info["singleton"])
    body = [f"- **Infrastructure classes**: {len(infra)}", f"- **Singletons**: {singletons}", ""]
    for role, names in sorted(by_role.items(), key=lambda kv: -len(kv[1])):
        names.sort(key=lambda n: not infra[n]["singleton"])
        body += [f"### {role} ({len(names)})", "", "| Class | Kind | Singleton | File |", "|-------|------|-----------|------|"]
        for n in names[:8]:
            info = infra[n]
            body.append(f"| `{n}` | {info['suffix']} | {'yes' if info['singleton'] else '—'} | {info['file']} |")
        if len(names) > 8:
            body.append(f"| …and {len(names) - 8} more | | | |")
        body.append("")

    notes = [
        "Reuse existing infrastructure services before writing new ones",
        "Obtain service instances through their shared/singleton accessor",
    ]
    app_delegate = next((f for f in files if "appdelegate" in f.name.lower()), None)
    if app_delegate:
        calls = [(i + 1, line.strip()[:80]) for i, line in enumerate(app_delegate.lines) if _SETUP_CALL_RE.search(line)]
        if calls:
            body += ["### App start-up initialization order", "", f"From `{app_delegate.relative_path}`", ""]
            body += [f"{n}. `{call}`" for n, call in calls[:15]] + [""]
            notes.append("Insert new start-up initialization carefully; some services depend on others")

    relations = [
        Relation(type="EXTENDS", target=make_title(PROFILE, "overview"), description="Adds infrastructure services"),
        Relation(type="RELATED", target=make_title("architecture", "dependency-graph"), description="Service dependencies"),
    ]
    return _profile_candidate(
        "infra-services", "Infrastructure service registry",
        f"{len(infra)} infrastructure classes in {len(by_role)} areas",
        body, notes, relations, list(dict.fromkeys(info["file"] for info in infra.values()))[:10],
        f"{len(infra)} classes in {len(by_role)} areas",
        ["infra-services", "manager", "service", "singleton"],
    )


# ─── runtime-and-interop ─────────────────────────────────────

RUNTIME_APIS = (
    "objc_setAssociatedObject", "objc_getAssociatedObject", "method_exchangeImplementations", "class_addMethod",
    "class_replaceMethod", "objc_allocateClassPair", "object_setClass", "NSClassFromString",
    "NSSelectorFromString", "performSelector", "NSInvocation", "respondsToSelector", "objc_msgSend",
    "class_copyMethodList", "class_copyPropertyList", "class_copyIvarList",
)
INTEROP_MARKERS = [
    ("@objc", re.compile(r"@objc\b"), "@objc exposed to ObjC"),
    ("@objcMembers", re.compile(r"@objcMembers"), "@objcMembers exposes whole classes"),
    ("NS_SWIFT_NAME", re.compile(r"NS_SWIFT_NAME"), "NS_SWIFT_NAME renaming"),
    ("NS_REFINED_FOR_SWIFT", re.compile(r"NS_REFINED_FOR_SWIFT"), "NS_REFINED_FOR_SWIFT"),
    ("Bridging-Header", re.compile(r"Bridging-Header"), "Bridging header"),
    ("@convention(block)", re.compile(r"@convention\s*\(\s*block\s*\)"), "@convention(block) ObjC blocks"),
]
SWIFT_FEATURES = [
    ("Concurrency", [
        ("@MainActor", re.compile(r"@MainActor")),
        ("@Sendable", re.compile(r"@Sendable")),
        ("actor", re.compile(r"\bactor\s+\w+")),
        ("async/await", re.compile(r"\bawait\b")),
        ("Task {}", re.compile(r"\bTask\s*\{|\bTask\.detached")),
        ("TaskGroup", re.compile(r"\bwith(Throwing)?TaskGroup\b")),
    ]),
    ("Combine", [
        ("@Published", re.compile(r"@Published\b")),
        ("Publisher", re.compile(r"\b(AnyPublisher|PassthroughSubject|CurrentValueSubject)\b")),
    ]),
    ("SwiftUI", [
        ("some View", re.compile(r"\bsome\s+View\b")),
        ("@State/@Binding", re.compile(r"@(State|Binding|StateObject|ObservedObject)\b")),
    ]),
    ("Metaprogramming", [
        ("Mirror", re.compile(r"\bMirror\s*\(")),
        ("KeyPath", re.compile(r"\b(Writable)?KeyPath\b")),
        ("@dynamicMemberLookup", re.compile(r"@dynamicMemberLookup")),
    ]),
]
OBJC_ATTRIBUTES = [
    ("__attribute__((constructor))", re.compile(r"__attribute__\(\(constructor\)\)"), "runs before main"),
    ("__attribute__((cleanup))", re.compile(r"__attribute__\(\(cleanup"), "scope-exit cleanup"),
    ("NS_REQUIRES_SUPER", re.compile(r"objc_requires_super|NS_REQUIRES_SUPER"), "overrides must call super"),
    ("NS_ASSUME_NONNULL", re.compile(r"NS_ASSUME_NONNULL_BEGIN"), "nullability annotations"),
    ("NS_DESIGNATED_INITIALIZER", re.compile(r"NS_DESIGNATED_INITIALIZER"), "designated initializers"),
]


def _runtime_and_interop(files, lang) -> Candidate | None:
    if lang not in ("objectivec", "swift"):
        return None
    body: list[str] = []
    notes: list[str] = []
    sources: list[str] = []

    apis = {}
    for api in RUNTIME_APIS:
        users = [f.relative_path for f in files if api in f.content]
        if users:
            apis[api] = users
    if apis:
        body += ["### ObjC runtime APIs", "", "| API | Files | Example |", "|-----|-------|---------|"]
        body += [f"| `{api}` | {len(users)} | {users[0]} |" for api, users in apis.items()] + [""]
        sources += [users[0] for users in apis.values()]
        if "method_exchangeImplementations" in apis or "class_replaceMethod" in apis:
            notes.append("Swizzled methods have side effects; change them with care")
        if "objc_setAssociatedObject" in apis:
            notes.append("Associated objects need a deliberate memory policy to avoid retain cycles")
        if "performSelector" in apis:
            notes.append("performSelector can leak under ARC; prefer blocks or closures")

    interop = [(key, label, n) for key, pattern, label in INTEROP_MARKERS if (n := _count_files(files, pattern))]
    if interop:
        body += ["### Swift/ObjC interop", ""] + [f"- **{label}**: {n} files use `{key}`" for key, label, n in interop] + [""]
        if any(key in ("@objc", "@objcMembers") for key, _, _ in interop):
            notes.append("Add @objc only where ObjC calls in; avoid blanket @objcMembers")

    if lang == "swift":
        found = {}
        for group, features in SWIFT_FEATURES:
            hits = [(name, n) for name, pattern in features if (n := _count_files(files, pattern))]
            if hits:
                found[group] = hits
        if found:
            body += ["### Swift language features", ""]
            for group, hits in found.items():
                body += [f"**{group}**:"] + [f"- `{name}` ({n} files)" for name, n in hits] + [""]
            if "Concurrency" in found:
                notes.append("The project uses Swift concurrency; write new async code with async/await rather than GCD")
            if "Combine" in found:
                notes.append("Prefer Combine (@Published / publishers) for data binding")
    else:
        attrs = [(key, label, n) for key, pattern, label in OBJC_ATTRIBUTES if (n := _count_files(files, pattern))]
        if attrs:
            body += ["### Compiler attributes", ""] + [f"- `{key}` — {label} ({n} files)" for key, label, n in attrs] + [""]
            if any(key == "NS_ASSUME_NONNULL" for key, _, _ in attrs):
                notes.append("Wrap new headers in NS_ASSUME_NONNULL_BEGIN/END")

    if not body:
        return None
    relations = [
        Relation(type="EXTENDS", target=make_title(PROFILE, "tech-stack"), description="Adds runtime-level choices"),
        Relation(type="RELATED", target=make_title(PROFILE, "base-extensions"), description="Extensions often use runtime APIs"),
    ]
    return _profile_candidate(
        "runtime-and-interop", "Runtime and language interop",
        "Swift features and ObjC interop" if lang == "swift" else "ObjC runtime APIs and compiler attributes",
        body, notes or ["Check the project's runtime usage before introducing incompatible features"],
        relations, sources or ["file scan"],
        f"{len(apis)} runtime APIs, {len(interop)} interop markers",
        ["runtime", "interop", "objc-runtime", "swift-features"],
    )


def extract_project_profile(
    files: list[SourceFile],
    target_file_map: dict[str, list[str]],
    dep_edges: list[DependencyEdge],
    lang_stats: dict[str, int],
    lang: str,
    cache: PipelineCache,
    ast: AstSummary | None = None,
) -> list[Candidate]:
    files = filter_third_party(files)
    defines = cache.get_or_compute(
        DEEP_SCAN, "defines", lambda: [d for defs in collect_defines(files, lang).values() for d in defs]
    )
    hooks = cache.get_or_compute(
        DEEP_SCAN, "swizzle", lambda: collect_swizzle_hooks(files, lang) if lang == "objectivec" else []
    )
    ext_by_base = cache.get_or_compute(CATEGORY_SCAN, "ext_by_base", lambda: extension_inventory(files, lang))

    results = [
        _overview(files, target_file_map, dep_edges, lang_stats, lang, ast),
        _tech_stack(files, lang, ast),
    ]
    for extra in (
        _third_party_deps(files, target_file_map, dep_edges),
        _base_extensions(ext_by_base, lang),
        _base_classes(files, lang, ast, defines),
        _event_hooks(files, lang, hooks),
        _infra_services(files, lang, ast),
        _runtime_and_interop(files, lang),
    ):
        if extra is not None:
            results.append(extra)
    return results
