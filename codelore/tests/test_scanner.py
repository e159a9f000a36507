"""Tests for the variant and usage-frequency scanners."""

import re

from conftest import make_file

from codelore.models import VariantDefinition
from codelore.pattern_tables import code_patterns
from codelore.scanner import line_usage_score, scan_usages, scan_variants

MAIN = re.compile(r"\bsharedInstance\b")
VARIANTS = {
    "dispatch_once": VariantDefinition(label="dispatch_once", matcher=re.compile(r"dispatch_once\s*\(")),
    "static_lazy": VariantDefinition(
        label="static lazy", matcher=re.compile(r"static\s+\w+\s*\*\s*_?\w*(instance|shared)\b", re.IGNORECASE)
    ),
}

DISPATCH_ONCE = """\
+ (instancetype)sharedInstance {
    static id manager = nil;
    static dispatch_once_t onceToken;
    dispatch_once(&onceToken, ^{
        manager = [[self alloc] init];
    });
    return manager;
}
"""

STATIC_LAZY = """\
+ (instancetype)sharedInstance {
    static Foo *_sharedInstance = nil;
    if (!_sharedInstance) {
        _sharedInstance = [[self alloc] init];
    }
    return _sharedInstance;
}
"""


def _hundred_files():
    files = [make_file(f"Src/Once{i}.m", DISPATCH_ONCE) for i in range(40)]
    files += [make_file(f"Src/Lazy{i}.m", STATIC_LAZY) for i in range(21)]
    files += [make_file(f"Src/Plain{i}.m", "- (void)run {\n    [self go];\n}\n") for i in range(39)]
    return files


class TestScanVariants:
    def test_singleton_scenario(self):
        result = scan_variants(_hundred_files(), MAIN, VARIANTS, "objectivec")
        assert result.total_files == 61
        assert [(v.key, v.file_count) for v in result.variants] == [("dispatch_once", 40), ("static_lazy", 21)]
        assert result.other_variant is None

    def test_partition_invariant(self):
        files = _hundred_files() + [
            make_file("Src/Other.m", "id x = [Foo sharedInstance];\n"),
            make_file("Src/Other2.m", "[[Bar sharedInstance] go];\n"),
            make_file("Src/Foo.h", "+ (instancetype)sharedInstance;\n"),
        ]
        matched = sum(1 for f in files if MAIN.search(f.content))
        result = scan_variants(files, MAIN, VARIANTS, "objectivec")

        other = result.other_variant.file_count if result.other_variant else 0
        assert sum(v.file_count for v in result.variants) + other + result.declaration_only_count == matched
        assert other == 2
        assert result.declaration_only_count == 1
        assert result.total_files == matched - 1

    def test_first_matching_variant_wins(self):
        both = make_file("Src/Both.m", DISPATCH_ONCE + STATIC_LAZY)
        result = scan_variants([both], MAIN, VARIANTS, "objectivec")
        assert [v.key for v in result.variants] == ["dispatch_once"]

    def test_deterministic_counts(self):
        files = _hundred_files()
        first = scan_variants(files, MAIN, VARIANTS, "objectivec")
        second = scan_variants(files, MAIN, VARIANTS, "objectivec")
        reversed_ = scan_variants(list(reversed(files)), MAIN, VARIANTS, "objectivec")
        assert first == second
        counts = [(v.key, v.file_count) for v in first.variants]
        assert counts == [(v.key, v.file_count) for v in reversed_.variants]
        assert first.total_files == reversed_.total_files

    def test_examples_are_enclosing_blocks(self):
        result = scan_variants(_hundred_files(), MAIN, VARIANTS, "objectivec", max_examples=2)
        primary = result.primary
        assert primary.key == "dispatch_once"
        assert len(primary.examples) == 2
        block = primary.examples[0].code_block
        assert block[0].startswith("+ (instancetype)sharedInstance")
        assert block[-1] == "}"
        assert primary.examples[0].line_number == 4

    def test_third_party_files_ignored(self):
        files = [make_file("Pods/Lib/Lib.m", DISPATCH_ONCE), make_file("Src/Mine.m", STATIC_LAZY)]
        result = scan_variants(files, MAIN, VARIANTS, "objectivec")
        assert result.total_files == 1
        assert [v.key for v in result.variants] == ["static_lazy"]

    def test_boilerplate_never_primary(self):
        table = {
            "once": VARIANTS["dispatch_once"],
            "noise": VariantDefinition(label="noise", matcher=re.compile(r"sharedInstance"), boilerplate=True),
        }
        files = [make_file(f"Src/N{i}.m", "[Foo sharedInstance];\n") for i in range(3)]
        files.append(make_file("Src/Once.m", DISPATCH_ONCE))
        result = scan_variants(files, MAIN, table, "objectivec")
        assert [(v.key, v.file_count) for v in result.variants] == [("once", 1), ("noise", 3)]
        assert result.primary.key == "once"

    def test_real_objc_singleton_table(self):
        pdef = code_patterns("objectivec")["singleton"]
        result = scan_variants(_hundred_files(), pdef.main_matcher, pdef.variants, "objectivec")
        assert result.total_files == 61
        assert result.primary.key == "dispatch_once"


class TestScanUsages:
    def test_definition_only_counts_zero(self):
        files = [make_file("Src/Consts.h", "#define kMargin 10\nstatic CGFloat const kPadding = 4;\n")]
        usages = scan_usages(files, {"kMargin", "kPadding"})
        assert usages.get("kMargin") is None
        assert usages.get("kPadding") is None

    def test_counts_call_sites(self):
        files = [
            make_file("Src/Consts.h", "#define kMargin 10\n"),
            make_file("Src/View.m", "view.x = kMargin;\n// kMargin in a comment\nview.y = kMargin * 2;\n"),
        ]
        usages = scan_usages(files, {"kMargin"})
        assert usages["kMargin"].count == 2
        assert [e.line_number for e in usages["kMargin"].examples] == [1, 3]

    def test_duplicate_lines_deduplicated(self):
        files = [make_file("Src/A.m", "x = kMargin;\nx = kMargin;\n")]
        usages = scan_usages(files, {"kMargin"})
        assert usages["kMargin"].count == 2
        assert len(usages["kMargin"].examples) == 1

    def test_example_cap(self):
        content = "\n".join(f"x{i} = kMargin;" for i in range(10))
        usages = scan_usages([make_file("Src/A.m", content)], {"kMargin"}, max_examples=3)
        assert usages["kMargin"].count == 10
        assert len(usages["kMargin"].examples) == 3

    def test_word_boundary(self):
        usages = scan_usages([make_file("Src/A.m", "x = kMarginLarge;\n")], {"kMargin"})
        assert "kMargin" not in usages

    def test_short_names_skipped(self):
        assert scan_usages([make_file("Src/A.m", "x = k;\n")], {"k"}) == {}

    def test_method_signature_not_a_use(self):
        files = [make_file("Src/A.m", "- (void)xy_trimmed;\n[name xy_trimmed];\n")]
        assert scan_usages(files, {"xy_trimmed"})["xy_trimmed"].count == 1

    def test_swift_definition_not_a_use(self):
        files = [
            make_file(
                "App/Constants.swift",
                'let kXYCornerRadius: CGFloat = 8\npublic let kXYBaseURL = "https://example.com"\n',
            ),
        ]
        assert scan_usages(files, {"kXYCornerRadius", "kXYBaseURL"}) == {}

    def test_swift_definition_still_uses_other_names(self):
        files = [
            make_file("App/Constants.swift", "let kXYCornerRadius: CGFloat = 8\n"),
            make_file("App/Card.swift", "let radius = kXYCornerRadius\nlayer.cornerRadius = kXYCornerRadius\n"),
        ]
        usages = scan_usages(files, {"kXYCornerRadius"})
        assert usages["kXYCornerRadius"].count == 2
        assert [e.file for e in usages["kXYCornerRadius"].examples] == ["App/Card.swift", "App/Card.swift"]


class TestLineUsageScore:
    def test_declarations_negative(self):
        assert line_usage_score("@property (nonatomic) id delegate;") < 0
        assert line_usage_score("- (void)doWork;") < 0

    def test_calls_positive(self):
        assert line_usage_score("[self doWork];") >= 2
        assert line_usage_score("doWork(1)") >= 2
