"""Shared helpers for heuristic source analysis: filters, type sets, block extraction."""

import re
from collections.abc import Iterable

from codelore.models import SourceFile

THIRD_PARTY_DIRS = ("Pods", "Carthage", "node_modules", "vendor", "ThirdParty", "third_party", ".build", "DerivedData")
_THIRD_PARTY_RE = re.compile(r"(?:^|/)(?:" + "|".join(re.escape(d) for d in THIRD_PARTY_DIRS) + r")(?:/|$)")

IMPL_EXT_RE = re.compile(r"\.(m|mm|swift)$", re.IGNORECASE)
HEADER_EXT_RE = re.compile(r"\.h$", re.IGNORECASE)

FOUNDATION_TYPES = frozenset({
    "NSObject", "NSString", "NSMutableString", "NSArray", "NSMutableArray",
    "NSDictionary", "NSMutableDictionary", "NSData", "NSMutableData",
    "NSDate", "NSURL", "NSNumber", "NSAttributedString", "NSMutableAttributedString",
    "NSError", "NSBundle", "NSNotification", "NSUserDefaults", "NSFileManager",
    "NSCache", "NSTimer", "NSThread", "NSLock", "NSCondition",
    "NSPredicate", "NSRegularExpression", "NSValue", "NSIndexPath", "NSSet",
    "NSMutableSet", "NSOrderedSet", "NSURLSession", "NSURLRequest",
    "String", "Array", "Dictionary", "Set", "Data", "Date", "URL",
    "Int", "Double", "Float", "Bool", "Optional", "Result",
    "Sequence", "Collection", "Comparable", "Hashable", "Codable",
    "Encodable", "Decodable", "Error", "CaseIterable",
})

UIKIT_TYPES = frozenset({
    "UIView", "UILabel", "UIButton", "UIImageView", "UITextField", "UITextView",
    "UITableView", "UITableViewCell", "UICollectionView", "UICollectionViewCell",
    "UIViewController", "UINavigationController", "UITabBarController",
    "UIScrollView", "UIStackView", "UIColor", "UIImage", "UIFont",
    "UIApplication", "UIWindow", "UIScreen", "UIDevice", "UIGestureRecognizer",
    "UIAlertController", "UIBarButtonItem", "UINavigationBar", "UITabBar",
    "UIControl", "UIResponder", "UIBezierPath", "CALayer",
    "NSView", "NSViewController", "NSColor", "NSImage", "NSFont",
    "UIEdgeInsets",
    "View", "Text", "Image", "Color", "Shape", "Path",
})


def is_third_party(f: SourceFile) -> bool:
    return bool(_THIRD_PARTY_RE.search(f.relative_path))


def filter_third_party(files: Iterable[SourceFile]) -> list[SourceFile]:
    """Drop vendored/dependency-manager files; they say nothing about house style."""
    return [f for f in files if not is_third_party(f)]


def classify_base(base_class: str) -> str:
    """Classify a base type as 'foundation', 'uikit' or 'custom'."""
    if base_class in FOUNDATION_TYPES:
        return "foundation"
    if base_class in UIKIT_TYPES:
        return "uikit"
    return "custom"


def collect_multiline_macro(file_lines: list[str], start_idx: int) -> str:
    """Join a ``#define`` continued with trailing backslashes into one line."""
    body = file_lines[start_idx]
    i = start_idx
    while body.endswith("\\") and i + 1 < len(file_lines):
        i += 1
        body = body[:-1] + " " + file_lines[i].strip()
    return body


# Ordered by priority: first rule whose pattern hits the name or value wins
MACRO_CATEGORY_RULES = [
    ("Colors", re.compile(r"color|colour|rgb|rgba|hex", re.IGNORECASE)),
    ("Fonts", re.compile(r"font|text.*size|fontSize", re.IGNORECASE)),
    ("Screen / sizes", re.compile(r"screen|width|height|size|margin|padding|spacing|inset|offset|scale|ratio", re.IGNORECASE)),
    ("URL / API", re.compile(r"url|api|host|base.*url|endpoint|domain|server|scheme|port", re.IGNORECASE)),
    ("Notification names", re.compile(r"notification|notif|kNotif", re.IGNORECASE)),
    ("UserDefaults keys", re.compile(r"key|userdefault|kUD|kSave|kStore", re.IGNORECASE)),
    ("Timing / animation", re.compile(r"duration|delay|interval|timeout|animation|animate", re.IGNORECASE)),
    ("Business constants", re.compile(r"max|min|limit|count|page|default|threshold|retry|capacity", re.IGNORECASE)),
    ("weakify / strongify", re.compile(r"weakify|strongify|weak_self|strong_self|WEAK|STRONG", re.IGNORECASE)),
]


def infer_macro_category(name: str, value: str = "") -> str:
    for category, pattern in MACRO_CATEGORY_RULES:
        if pattern.search(name) or pattern.search(value or ""):
            return category
    if re.match(r"k[A-Z]", name):
        return "Business constants"
    return "Other"


CONST_FILE_RE = re.compile(
    r"(?:const|constant|macro|define|config|theme|color|colour|font|size|dimension|style|key"
    r"|notification|url|api|endpoint|global|common|util|helper)",
    re.IGNORECASE,
)


def is_const_file(f: SourceFile) -> bool:
    """Heuristic: does the file name suggest a constants/macros file?"""
    return bool(CONST_FILE_RE.search(f.name) or CONST_FILE_RE.search(f.relative_path))


def type_def_pattern(lang: str) -> re.Pattern:
    """Regex matching a type definition line for the given language."""
    if lang == "objectivec":
        return re.compile(r"^\s*@(interface|implementation|protocol)\s+\w+", re.MULTILINE)
    if lang == "swift":
        return re.compile(
            r"^\s*(public |open |internal |private |fileprivate )?(final\s+)?(class|struct|protocol|enum)\s+\w+",
            re.MULTILINE,
        )
    if lang in ("javascript", "typescript"):
        return re.compile(
            r"^\s*(export\s+)?(default\s+)?(abstract\s+)?(class|interface|type|enum)\s+\w+", re.MULTILINE
        )
    if lang == "python":
        return re.compile(r"^\s*class\s+\w+", re.MULTILINE)
    if lang in ("java", "kotlin"):
        return re.compile(
            r"^\s*(public |private |protected )?(abstract |data |sealed |open )?(class|interface|enum|object)\s+\w+",
            re.MULTILINE,
        )
    if lang == "go":
        return re.compile(r"^\s*type\s+\w+\s+(struct|interface)\b", re.MULTILINE)
    if lang == "rust":
        return re.compile(r"^\s*(pub\s+)?(struct|enum|trait|impl)\s+\w+", re.MULTILINE)
    return re.compile(r"^\s*(class|struct|protocol|enum|interface|type)\s+\w+", re.MULTILINE)


def method_start_pattern(lang: str) -> re.Pattern:
    """Regex recognising the first line of a method/function in the given language."""
    if lang == "objectivec":
        return re.compile(r"^[-+]\s*\(|^@implementation\b|^@interface\b|^@protocol\b")
    if lang == "swift":
        return re.compile(
            r"^\s*(public |open |internal |private |fileprivate )?(override\s+)?(static |class )?"
            r"(func\s|init[?(]|deinit\b|subscript\s*[\[(]|var\s+\w+.*\{\s*$)"
        )
    if lang in ("javascript", "typescript"):
        return re.compile(
            r"^\s*(export\s+)?(default\s+)?(async\s+)?function\b"
            r"|^\s*(export\s+)?(default\s+)?class\b"
            r"|^\s*(public |private |protected |static |async |get |set |readonly )*[\w$]+\s*\("
            r"|^\s*(const|let|var)\s+\w+\s*="
        )
    if lang == "python":
        return re.compile(r"^\s*(async\s+)?def\s+|^\s*class\s+")
    if lang in ("java", "kotlin"):
        return re.compile(
            r"^\s*(public |private |protected |static |final |abstract |override |suspend |open )*"
            r"(fun |void |int |long |String |boolean |class |interface |Object |List |Map )"
        )
    if lang == "go":
        return re.compile(r"^\s*func\s")
    if lang == "rust":
        return re.compile(r"^\s*(pub\s+)?(fn|impl|struct|enum|trait)\s")
    return re.compile(r"^\s*(function|def|class|func|fn|pub fn|pub async fn|sub|proc)\b")


_PY_BLOCK_START_RE = re.compile(r"^\s*(def |class |async\s+def )")


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def extract_enclosing_block(lines: list[str], target_idx: int, lang: str, max_lines: int = 40) -> list[str]:
    """Return the method/function block containing ``lines[target_idx]``.

    Python blocks are delimited by indentation, everything else by brace
    balance. Blocks longer than ``max_lines`` are cut and end with a
    truncation marker.
    """
    if lang == "python":
        start_idx = target_idx
        for i in range(target_idx, max(0, target_idx - 50) - 1, -1):
            if _PY_BLOCK_START_RE.match(lines[i]):
                start_idx = i
                break
        base_indent = _indent_of(lines[start_idx])
        stop = min(len(lines), start_idx + max_lines)
        end_idx = start_idx
        for i in range(start_idx + 1, stop):
            if lines[i].strip() == "":
                end_idx = i
                continue
            if _indent_of(lines[i]) <= base_indent:
                break
            end_idx = i
        extracted = lines[start_idx:end_idx + 1]
        # the block runs past the window when the line after it is still indented
        if end_idx == stop - 1 and stop < len(lines) and _indent_of(lines[stop]) > base_indent:
            return extracted[:max_lines - 1] + [" " * (base_indent + 4) + "# ... (truncated)"]
        return extracted

    start_re = method_start_pattern(lang)
    start_idx = target_idx
    for i in range(target_idx, max(0, target_idx - 60) - 1, -1):
        if start_re.search(lines[i]):
            start_idx = i
            break

    brace_count = 0
    found_brace = False
    end_idx = start_idx
    for i in range(start_idx, min(len(lines), start_idx + max_lines + 20)):
        for ch in lines[i]:
            if ch == "{":
                brace_count += 1
                found_brace = True
            elif ch == "}":
                brace_count -= 1
        end_idx = i
        if found_brace and brace_count <= 0:
            break

    extracted = lines[start_idx:end_idx + 1]
    if len(extracted) > max_lines:
        return extracted[:max_lines - 1] + ["    // ... (truncated)"]
    return extracted


# Target/module naming heuristics, ordered: first matching role wins
TARGET_ROLE_RULES = [
    ("test", re.compile(r"tests?$|spec$|uitests?$", re.IGNORECASE)),
    ("app", re.compile(r"app$|application$|^main$|demo$|example$", re.IGNORECASE)),
    ("ui", re.compile(r"ui|view|widget|component|design|theme", re.IGNORECASE)),
    ("feature", re.compile(r"feature|module|business|scene|page|screen", re.IGNORECASE)),
    ("service", re.compile(r"service|manager|network|api|client|repository|storage|database|cache", re.IGNORECASE)),
    ("core", re.compile(r"core|foundation|base|common|shared|util|kit|extension|infra", re.IGNORECASE)),
    ("model", re.compile(r"model|entity|domain|dto", re.IGNORECASE)),
]

ROLE_LABELS = {
    "app": "Application entry",
    "ui": "UI layer",
    "feature": "Feature modules",
    "service": "Services / data access",
    "core": "Core / foundation",
    "model": "Models",
    "test": "Tests",
    "other": "Other",
}


def infer_target_role(target_name: str) -> str:
    """Guess a module's architectural role from its name."""
    for role, pattern in TARGET_ROLE_RULES:
        if pattern.search(target_name):
            return role
    return "other"


_HIGH_PRIORITY_RE = re.compile(r"(Manager|Service|Controller|ViewModel|Coordinator|Router|Provider|Store)\.", re.IGNORECASE)
_LOW_PRIORITY_RE = re.compile(r"(Test|Tests|Spec|Mock|Stub|Generated|\+)", re.IGNORECASE)


def infer_file_priority(f: SourceFile) -> int:
    """Rank files for sampling: 2 central types, 1 ordinary code, 0 tests/generated."""
    if _LOW_PRIORITY_RE.search(f.name):
        return 0
    if _HIGH_PRIORITY_RE.search(f.name):
        return 2
    return 1
