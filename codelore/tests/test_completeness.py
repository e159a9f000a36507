"""Tests for the full-chain completeness checker and canonical snippets."""

from conftest import make_file

from codelore.canonical import BASIC_USAGE, CANONICAL_EXAMPLES, check_completeness
from codelore.rendering import basic_usage_lines

REGISTER = "[[NSNotificationCenter defaultCenter] addObserver:self selector:@selector(onLogin:) name:kLogin object:nil];"
HANDLER = "- (void)onLogin:(NSNotification *)note {\n}"
POST = "[[NSNotificationCenter defaultCenter] postNotificationName:kLogin object:nil];"
REMOVE = "[[NSNotificationCenter defaultCenter] removeObserver:self];"


class TestCheckCompleteness:
    def test_complete_chain(self):
        files = [make_file("A.m", "\n".join([REGISTER, HANDLER, POST, REMOVE]))]
        assert check_completeness("notification", "objectivec", files) is None

    def test_missing_teardown(self):
        files = [make_file("A.m", "\n".join([REGISTER, HANDLER, POST]))]
        assert check_completeness("notification", "objectivec", files) == ["remove observer"]

    def test_steps_across_files(self):
        files = [make_file("A.m", REGISTER + "\n" + HANDLER), make_file("B.m", POST + "\n" + REMOVE)]
        assert check_completeness("notification", "objectivec", files) is None

    def test_missing_steps_in_order(self):
        files = [make_file("A.m", POST)]
        assert check_completeness("notification", "objectivec", files) == [
            "register observer", "handler method", "remove observer",
        ]

    def test_file_limit(self):
        files = [make_file(f"F{i}.m", "x") for i in range(10)] + [make_file("Late.m", REMOVE)]
        missing = check_completeness("notification", "objectivec", files, file_limit=10)
        assert "remove observer" in missing

    def test_swift_deinit_counts_as_teardown(self):
        code = (
            "NotificationCenter.default.addObserver(self, selector: #selector(reload), name: .x, object: nil)\n"
            "NotificationCenter.default.post(name: .x, object: nil)\n"
            "deinit { }\n"
        )
        assert check_completeness("notification", "swift", [make_file("A.swift", code)]) is None

    def test_unknown_pattern(self):
        assert check_completeness("singleton", "objectivec", [make_file("A.m", "")]) is None


class TestCanonicalSnippets:
    def test_full_chain_examples_exist(self):
        assert "objectivec:notification" in CANONICAL_EXAMPLES
        assert "swift:notification" in CANONICAL_EXAMPLES

    def test_prefix_substituted(self):
        lines = basic_usage_lines("objectivec", "category", "named", "XY")
        assert lines
        assert not any("{PREFIX}" in line for line in lines)
        assert any("XYTrim" in line for line in lines)

    def test_unknown_variant_has_no_snippet(self):
        assert basic_usage_lines("objectivec", "singleton", "no-such-variant") == []

    def test_keys_are_lang_pattern_variant(self):
        assert all(key.count(":") == 2 for key in BASIC_USAGE)
