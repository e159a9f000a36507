"""Variant and usage-frequency scanners over an in-memory file set.

``scan_variants`` answers "which idioms does this project use for X, and how
often"; ``scan_usages`` answers "which of these identifiers are actually
called". Both are pure functions of their inputs.
"""

import logging
import re
from collections.abc import Iterable, Mapping

from codelore.config import settings
from codelore.models import Example, ScanResult, SourceFile, UsageEntry, UsageExample, Variant, VariantDefinition
from codelore.source_utils import HEADER_EXT_RE, IMPL_EXT_RE, extract_enclosing_block, filter_third_party

logger = logging.getLogger(__name__)

OTHER_KEY = "_other"
OTHER_LABEL = "Other styles"

# Line shapes that declare rather than use something
DECL_LINE_RE = re.compile(
    r"^\s*(@property\b|@interface\b|@protocol\b|@class\b|@synthesize\b|@dynamic\b|@end\b"
    r"|NS_ASSUME_NONNULL|#import\b|#include\b|#define\b)"
)
TYPE_DECL_RE = re.compile(r"^\s*\w[\w<>*\s]+[\s*]+_?\w+\s*;$")
STATIC_DECL_RE = re.compile(r"^\s*static\s+\w")
METHOD_DECL_RE = re.compile(r"^[-+]\s*\([^)]+\)\s*\w+[^{]*;\s*$")
MESSAGE_SEND_RE = re.compile(r"\[.*\w+.*\]")
CALL_RE = re.compile(r"\w+\s*\(")
BLOCK_LITERAL_RE = re.compile(r"\^\s*[{(]")

USAGE_FILE_RE = re.compile(r"\.(m|mm|swift|h|c|cpp)$", re.IGNORECASE)
COMMENT_LINE_RE = re.compile(r"^//|^\s*\*|^/\*")
USAGE_SKIP_RES = (
    re.compile(r"^#define\b"),
    re.compile(r"^(?:static|extern|FOUNDATION_EXPORT|UIKIT_EXTERN)\b"),
    re.compile(r"^@interface\b|^@implementation\b|^@end\b|^@protocol\b"),
    re.compile(r"^[-+]\s*\("),
    re.compile(r"^@property\b"),
)
# A Swift constant definition defines its own name and may still use others
SWIFT_DEF_RE = re.compile(
    r"^(?:(?:public|open|internal|private|fileprivate)\s+)?(?:static\s+)?(?:let|var|typealias)\s+(\w+)\s*[:=]"
)


def line_usage_score(line: str) -> int:
    """Score a matched line as example material.

    >= 2 real use (message send, call), 1 block literal, 0 plain code,
    < 0 declaration noise.
    """
    t = line.strip()
    if DECL_LINE_RE.match(t):
        return -2
    if TYPE_DECL_RE.match(t):
        return -1
    if STATIC_DECL_RE.match(t) and "(" not in t:
        return -1
    if METHOD_DECL_RE.match(t):
        return -1
    if MESSAGE_SEND_RE.search(t):
        return 2
    if CALL_RE.search(t):
        return 2
    if BLOCK_LITERAL_RE.search(t):
        return 1
    return 0


def find_best_match_line(lines: list[str], pattern: re.Pattern) -> int:
    """Index of the best-scoring line matching ``pattern``, or -1."""
    best_idx = -1
    best_score = None
    for i, line in enumerate(lines):
        if not pattern.search(line):
            continue
        score = line_usage_score(line)
        if best_score is None or score > best_score:
            best_score = score
            best_idx = i
            if score >= 2:
                break
    return best_idx


def _is_header(f: SourceFile) -> bool:
    return bool(HEADER_EXT_RE.search(f.name or f.relative_path))


def scan_variants(
    files: Iterable[SourceFile],
    main_matcher: re.Pattern,
    variant_defs: Mapping[str, VariantDefinition],
    lang: str,
    *,
    max_examples: int | None = None,
    max_block_lines: int | None = None,
) -> ScanResult:
    """Two-pass scan: classify matching files by first-matching variant, then pull examples.

    Pass 1 partitions every file whose content hits ``main_matcher`` into
    exactly one bucket: the first variant (in declaration order) that
    matches, the "other" bucket, or, for header files matching no variant,
    the declaration-only exclusion. Pass 2 extracts up to ``max_examples``
    enclosing blocks per bucket, implementation files first.
    """
    if max_examples is None:
        max_examples = settings.MAX_EXAMPLES_PER_VARIANT
    if max_block_lines is None:
        max_block_lines = settings.MAX_BLOCK_LINES

    filtered = filter_third_party(files)

    buckets: dict[str, set[str]] = {key: set() for key in variant_defs}
    buckets[OTHER_KEY] = set()
    total_files = 0
    declaration_only = 0

    for f in filtered:
        if not main_matcher.search(f.content):
            continue
        total_files += 1
        for key, vdef in variant_defs.items():
            if vdef.matcher.search(f.content):
                buckets[key].add(f.relative_path)
                break
        else:
            if _is_header(f):
                total_files -= 1
                declaration_only += 1
            else:
                buckets[OTHER_KEY].add(f.relative_path)

    results: list[Variant] = []
    for key, paths in buckets.items():
        if not paths:
            continue
        vdef = variant_defs.get(key)
        search_re = vdef.matcher if vdef else main_matcher

        impl_files = []
        header_files = []
        for f in filtered:
            if f.relative_path not in paths:
                continue
            if IMPL_EXT_RE.search(f.name or f.relative_path):
                impl_files.append(f)
            else:
                header_files.append(f)

        examples: list[Example] = []
        for f in impl_files + header_files:
            if len(examples) >= max_examples:
                break
            lines = f.lines
            idx = find_best_match_line(lines, search_re)
            if idx < 0:
                continue
            if _is_header(f) and line_usage_score(lines[idx]) < 0:
                logger.debug(f"Skipping declaration-only example in {f.relative_path}")
                continue
            block = extract_enclosing_block(lines, idx, lang, max_block_lines)
            examples.append(Example(file=f.relative_path, line_number=idx + 1, code_block=block))

        results.append(Variant(
            key=key,
            label=vdef.label if vdef else OTHER_LABEL,
            file_count=len(paths),
            examples=examples,
            boilerplate=vdef.boilerplate if vdef else False,
        ))

    # Non-boilerplate first, then by file count; sort is stable so ties keep table order
    results.sort(key=lambda v: (1 if v.boilerplate else 0, -v.file_count))

    other = None
    for i, v in enumerate(results):
        if v.key == OTHER_KEY:
            other = results.pop(i)
            break

    return ScanResult(
        total_files=total_files,
        variants=results,
        other_variant=other,
        declaration_only_count=declaration_only,
        variant_defs=dict(variant_defs),
    )


def scan_usages(
    files: Iterable[SourceFile],
    names: Iterable[str],
    *,
    max_examples: int | None = None,
) -> dict[str, UsageEntry]:
    """Count call sites (not definitions) of each identifier across the project.

    Blank lines, comments, macro definitions, extern/static declarations,
    type headers, method signatures and property declarations never count.
    """
    if max_examples is None:
        max_examples = settings.MAX_USAGE_EXAMPLES

    matchers = {name: re.compile(rf"\b{re.escape(name)}\b") for name in names if len(name) >= 2}
    usages: dict[str, UsageEntry] = {}
    if not matchers:
        return usages

    for f in files:
        if not USAGE_FILE_RE.search(f.name):
            continue
        for i, line in enumerate(f.lines):
            trimmed = line.strip()
            if not trimmed or COMMENT_LINE_RE.match(trimmed):
                continue
            if any(skip.match(trimmed) for skip in USAGE_SKIP_RES):
                continue
            defined = SWIFT_DEF_RE.match(trimmed)
            defined_name = defined.group(1) if defined else None

            for name, matcher in matchers.items():
                if name == defined_name or name not in line or not matcher.search(line):
                    continue
                entry = usages.setdefault(name, UsageEntry())
                entry.count += 1
                if len(entry.examples) < max_examples and all(e.code != trimmed for e in entry.examples):
                    entry.examples.append(UsageExample(file=f.relative_path, line_number=i + 1, code=trimmed))
    return usages
