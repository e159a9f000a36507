"""Tests for the review drift guards."""

from codelore.drift_guard import (
    apply_drop_rate_guard,
    clamp_confidence,
    drop_rate,
    extract_match_count,
    is_flat_confidence,
    title_summary_overlap,
)
from codelore.models import Candidate, Round1Result


class TestExtractMatchCount:
    def test_files(self):
        assert extract_match_count("Singleton accessors in 42 files") == 42

    def test_uses(self):
        assert extract_match_count("7 uses across the app") == 7

    def test_cjk_unit(self):
        assert extract_match_count("共 12 处调用") == 12

    def test_unit_must_be_whole_word(self):
        assert extract_match_count("Seen by 3 users") == 0
        assert extract_match_count("3 filesystems, 12 files") == 12

    def test_absent(self):
        assert extract_match_count("no evidence") == 0
        assert extract_match_count("") == 0


class TestTitleSummaryOverlap:
    def test_unrelated_summary(self):
        assert title_summary_overlap("Notification Observer Cleanup", "一个通用工具函数") == 0.0

    def test_word_overlap(self):
        score = title_summary_overlap(
            "Notification Observer Cleanup",
            "Notification observers are removed in dealloc",
        )
        assert score >= 2 / 3

    def test_bracket_tag_ignored(self):
        score = title_summary_overlap("[Bootstrap] code-pattern/singleton", "Singleton accessors use dispatch_once")
        assert score == 1 / 3

    def test_cjk_bigrams(self):
        assert title_summary_overlap("网络请求封装", "统一的网络请求工具") == 0.6

    def test_short_title_containment(self):
        assert title_summary_overlap("KVO", "Observes keys with kvo helpers") == 1.0


class TestClampConfidence:
    def test_too_high(self):
        assert clamp_confidence(0.99) == 0.9

    def test_too_low(self):
        assert clamp_confidence(0.05) == 0.15

    def test_in_range_unchanged(self):
        assert clamp_confidence(0.95) == 0.95
        assert clamp_confidence(0.1) == 0.1
        assert clamp_confidence(0.6) == 0.6


class TestFlatConfidence:
    def test_identical_scores(self):
        assert is_flat_confidence([0.8] * 5) is True

    def test_too_few_samples(self):
        assert is_flat_confidence([0.8] * 4) is False

    def test_varied_scores(self):
        assert is_flat_confidence([0.2, 0.9, 0.5, 0.7, 0.3]) is False

    def test_custom_threshold(self):
        assert is_flat_confidence([0.5, 0.6, 0.5, 0.6, 0.5], threshold=0.01) is True


def _guard_candidates() -> list[Candidate]:
    cands = [Candidate(title=f"c{i}", summary=f"c{i}: 12 files") for i in range(10)]
    cands[0].summary = "no evidence found"
    cands[1].summary = "no evidence found"
    return cands


class TestDropRateGuard:
    def test_mass_drop_rolled_back(self):
        cands = _guard_candidates()
        result = Round1Result(
            kept=[8, 9],
            dropped=list(range(8)),
            drop_reasons={
                0: "False Positive: generic helper",
                1: "too generic",
                2: "false positive",
                **{i: "low value" for i in range(3, 8)},
            },
        )
        guarded = apply_drop_rate_guard(result, cands)
        assert guarded.drift_guard_triggered is True
        assert guarded.dropped == [0]
        assert guarded.kept == [1, 2, 3, 4, 5, 6, 7, 8, 9]
        assert guarded.drop_reasons == {0: "False Positive: generic helper"}

    def test_under_limit_untouched(self):
        cands = _guard_candidates()
        result = Round1Result(kept=[6, 7, 8, 9], dropped=[0, 1, 2, 3, 4, 5])
        assert drop_rate(result, len(cands)) == 0.6
        assert apply_drop_rate_guard(result, cands) is result

    def test_merges_preserved(self):
        cands = _guard_candidates()
        result = Round1Result(merged=[[8, 9]], dropped=list(range(8)))
        guarded = apply_drop_rate_guard(result, cands)
        assert guarded.merged == [[8, 9]]
        assert guarded.dropped == []

    def test_empty_input(self):
        assert drop_rate(Round1Result(), 0) == 0.0
