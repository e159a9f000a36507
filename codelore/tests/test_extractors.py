"""Tests for the per-dimension extractors."""

from conftest import make_file

from codelore.config import settings
from codelore.extractors_deep import (
    collect_defines,
    extension_inventory,
    extract_category_scan,
    extract_deep_scan,
)
from codelore.extractors_macro import (
    compute_top_prefix,
    extract_agent_guidelines,
    extract_architecture,
    extract_code_standard,
)
from codelore.extractors_micro import extract_event_and_data_flow
from codelore.models import DependencyEdge
from codelore.source_utils import filter_third_party


class TestDeepScan:
    def test_constants_file_candidate(self, objc_files, cache):
        candidates = extract_deep_scan(objc_files, "objectivec", cache)
        by_topic = {c.sub_topic: c for c in candidates}
        assert "defines/XYConstants.h" in by_topic
        c = by_topic["defines/XYConstants.h"]
        assert c.title == "[Bootstrap] deep-scan/defines/XYConstants.h"
        assert c.sources == ["App/XYConstants.h"]
        assert "`kXYCornerRadius`" in c.document_body
        assert "2 uses" in c.document_body
        assert c.dimension == "deep-scan"

    def test_inventories_cached(self, objc_files, cache):
        extract_deep_scan(objc_files, "objectivec", cache)
        names = {d.name for d in cache.get_cached_result("deep-scan", "defines")}
        assert {"kXYCornerRadius", "kXYMainColor", "XYWeakify", "XYUserDidLoginNotification"} <= names
        assert ("deep-scan", "swizzle") in cache
        assert "App/XYConstants.h" in cache.get_cached_result("deep-scan", "file_defines")

    def test_function_macro_params(self, objc_files):
        defs = {d.name: d for d in collect_defines(objc_files, "objectivec")["App/XYConstants.h"]}
        assert defs["XYWeakify"].kind == "function"
        assert defs["XYWeakify"].params == "o"
        assert defs["XYUserDidLoginNotification"].kind == "extern"

    def test_no_defines(self, cache):
        files = [make_file("App/Plain.m", "@implementation Plain\n@end\n")]
        assert extract_deep_scan(files, "objectivec", cache) == []
        assert cache.get_cached_result("deep-scan", "defines") == []

    def test_swift_constants(self, cache):
        files = [
            make_file("App/Constants.swift", "enum Layout {\n    static let cornerRadius: CGFloat = 8\n}\n"),
            make_file("App/Card.swift", "view.layer.cornerRadius = Layout.cornerRadius\n"),
        ]
        candidates = extract_deep_scan(files, "swift", cache)
        assert [c.sub_topic for c in candidates] == ["defines/Constants.swift"]

    def test_large_constants_file_stays_within_budget(self, cache, monkeypatch):
        monkeypatch.setattr(settings, "BODY_BUDGET_CHARS", 6000)
        header = "\n".join(f"#define kXYCategoryValue{i:04d} {i}" for i in range(300))
        caller = "\n".join(f"total += kXYCategoryValue{i:04d};" for i in range(300))
        files = [make_file("App/XYConstants.h", header), make_file("App/XYTotals.m", caller)]
        candidates = extract_deep_scan(files, "objectivec", cache)
        assert len(candidates) > 1
        assert candidates[1].sub_topic == "defines/XYConstants.h-p2"
        assert all(len(c.document_body) <= 6000 for c in candidates)
        everything = "\n".join(c.document_body for c in candidates)
        for i in range(300):
            assert f"kXYCategoryValue{i:04d}" in everything

    def test_swizzle_hooks_split_into_parts(self, cache, monkeypatch):
        monkeypatch.setattr(settings, "BODY_BUDGET_CHARS", 3000)
        files = [make_file(f"App/UIViewController+XYHook{i}.m", _swizzle_source(i)) for i in range(30)]
        candidates = extract_deep_scan(files, "objectivec", cache)
        assert [c.sub_topic for c in candidates][:2] == ["swizzle-hooks", "swizzle-hooks-p2"]
        assert all(len(c.document_body) <= 3000 for c in candidates)
        assert "### Hook overview" in candidates[0].document_body
        assert all("### Hook overview" not in c.document_body for c in candidates[1:])
        everything = "\n".join(c.document_body for c in candidates)
        for i in range(30):
            assert f"xy{i}_viewWillAppear:" in everything
        assert len(cache.get_cached_result("deep-scan", "swizzle")) == 30


class TestCategoryScan:
    def test_foundation_category_with_calls(self, objc_files, cache):
        candidates = extract_category_scan(objc_files, "objectivec", cache)
        assert [c.sub_topic for c in candidates] == ["category/NSString+XYTrim.m"]
        c = candidates[0]
        assert "1 calls" in c.summary
        assert "xy_trimmed" in c.document_body
        assert "foundation" in c.tags

    def test_inventory_cached(self, objc_files, cache):
        extract_category_scan(objc_files, "objectivec", cache)
        by_base = cache.get_cached_result("category-scan", "ext_by_base")
        assert [e.name for e in by_base["NSString"]] == ["NSString(XYTrim)"]
        assert by_base == extension_inventory(objc_files, "objectivec")

    def test_uncalled_category_dropped(self, cache):
        files = [make_file("App/NSString+Unused.m", OBJC_UNUSED_CATEGORY)]
        assert extract_category_scan(files, "objectivec", cache) == []
        assert "NSString" in cache.get_cached_result("category-scan", "ext_by_base")

    def test_custom_base_excluded(self, cache):
        files = [
            make_file("App/XYCell+Style.m", "@implementation XYCell (Style)\n- (void)xy_applyStyle {\n}\n@end\n"),
            make_file("App/List.m", "[cell xy_applyStyle];\n"),
        ]
        assert extract_category_scan(files, "objectivec", cache) == []


OBJC_UNUSED_CATEGORY = """\
@implementation NSString (Unused)

- (NSString *)xy_neverCalled {
    return self;
}

@end
"""


class TestMacroExtractors:
    def test_top_prefix(self, objc_files):
        assert compute_top_prefix(filter_third_party(objc_files), "objectivec") == ("XY", 2)

    def test_code_standard(self, objc_files):
        sub_topics = [c.sub_topic for c in extract_code_standard(objc_files, "objectivec")]
        assert "naming" in sub_topics
        assert "file-organization" in sub_topics

    def test_architecture(self):
        target_file_map = {"App": ["App/A.m", "App/B.m"], "Core": ["Core/C.m"]}
        edges = [DependencyEdge(source="App", target="Core")]
        candidates = extract_architecture(target_file_map, edges, "objectivec")
        sub_topics = [c.sub_topic for c in candidates]
        assert sub_topics[:2] == ["layer-overview", "dependency-graph"]
        assert "`App` → `Core`" in candidates[1].document_body

    def test_architecture_without_targets(self):
        assert extract_architecture({}, [], "swift") == []

    def test_agent_guidelines_markers(self, objc_files):
        candidates = extract_agent_guidelines(objc_files, "objectivec")
        sub_topics = [c.sub_topic for c in candidates]
        assert sub_topics[0] == "todo-fixme"
        assert "coding-principles" in sub_topics
        assert "refresh the token cache" in candidates[0].document_body

    def test_constraint_comments(self):
        files = [make_file("App/Api.m", "// DO NOT call this from the main thread\n- (void)sync {\n}\n")]
        sub_topics = [c.sub_topic for c in extract_agent_guidelines(files, "objectivec")]
        assert "arch-constraints" in sub_topics


class TestEventAndDataFlow:
    def test_complete_notification_chain(self, objc_files):
        candidates = extract_event_and_data_flow(objc_files, "objectivec", "XY")
        notification = next(c for c in candidates if c.sub_topic == "event-notification")
        assert "Project code contains the complete chain" in notification.document_body
        assert not any(s.startswith("Pods/") for s in notification.sources)

    def test_delegate_left_to_code_pattern(self, objc_files):
        files = objc_files + [make_file("App/XYListView.m", "self.tableView.delegate = self;\n")]
        sub_topics = [c.sub_topic for c in extract_event_and_data_flow(files, "objectivec")]
        assert "event-delegate" not in sub_topics


def _swizzle_source(i):
    return (
        f"@implementation UIViewController (XYHook{i})\n"
        "+ (void)load {\n"
        "    Method a = class_getInstanceMethod([UIViewController class], @selector(viewWillAppear:));\n"
        f"    Method b = class_getInstanceMethod([UIViewController class], @selector(xy{i}_viewWillAppear:));\n"
        "    method_exchangeImplementations(a, b);\n"
        "}\n"
        "@end\n"
    )
