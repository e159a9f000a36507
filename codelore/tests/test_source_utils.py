"""Tests for block extraction and the small source heuristics."""

from codelore.source_utils import classify_base, extract_enclosing_block, infer_macro_category


def _long_python_function(body_lines):
    return ["class Feed:", "    def refresh(self):"] + [f"        step_{i}()" for i in range(body_lines)] + ["", "x = 1"]


class TestExtractEnclosingBlock:
    def test_python_block_by_indentation(self):
        lines = ["def load():", "    data = read()", "    return data", "", "def other():", "    pass"]
        block = extract_enclosing_block(lines, 1, "python")
        assert block[0] == "def load():"
        assert "def other():" not in block

    def test_long_python_block_marked_truncated(self):
        lines = _long_python_function(60)
        block = extract_enclosing_block(lines, 5, "python", max_lines=10)
        assert len(block) == 10
        assert block[0] == "    def refresh(self):"
        assert block[-1] == "        # ... (truncated)"

    def test_python_block_ending_at_window_not_marked(self):
        lines = _long_python_function(8)
        block = extract_enclosing_block(lines, 3, "python", max_lines=10)
        assert block[-1] != "        # ... (truncated)"
        assert "        step_7()" in block

    def test_long_brace_block_marked_truncated(self):
        lines = ["- (void)reload {"] + [f"    [self step{i}];" for i in range(60)] + ["}"]
        block = extract_enclosing_block(lines, 10, "objectivec", max_lines=10)
        assert len(block) == 10
        assert block[-1] == "    // ... (truncated)"


class TestHeuristics:
    def test_classify_base(self):
        assert classify_base("NSObject") == "foundation"
        assert classify_base("UIViewController") == "uikit"
        assert classify_base("XYBaseViewController") == "custom"

    def test_macro_category_by_name_then_value(self):
        assert infer_macro_category("kXYMainColor") == "Colors"
        assert infer_macro_category("XY_TIMEOUT_SECONDS") == "Timing / animation"
        assert infer_macro_category("kXYSomething") == "Business constants"
        assert infer_macro_category("XY_THING") == "Other"
