"""Tests for the per-run pipeline cache."""

from unittest.mock import MagicMock

from codelore.cache import PipelineCache


class TestPipelineCache:
    def test_get_or_compute_computes_once(self):
        cache = PipelineCache()
        compute = MagicMock(return_value=[1, 2, 3])
        assert cache.get_or_compute("deep-scan", "defines", compute) == [1, 2, 3]
        assert cache.get_or_compute("deep-scan", "defines", compute) == [1, 2, 3]
        compute.assert_called_once()

    def test_producer_value_reused(self):
        cache = PipelineCache()
        cache.cache_result("deep-scan", "defines", ["kMargin"])
        compute = MagicMock()
        assert cache.get_or_compute("deep-scan", "defines", compute) == ["kMargin"]
        compute.assert_not_called()

    def test_namespaces_are_separate(self):
        cache = PipelineCache()
        cache.cache_result("a", "key", 1)
        cache.cache_result("b", "key", 2)
        assert cache.get_cached_result("a", "key") == 1
        assert cache.get_cached_result("b", "key") == 2
        assert len(cache) == 2

    def test_missing_is_none(self):
        assert PipelineCache().get_cached_result("x", "y") is None

    def test_later_writer_overwrites(self):
        cache = PipelineCache()
        cache.cache_result("a", "k", 1)
        cache.cache_result("a", "k", 2)
        assert cache.get_cached_result("a", "k") == 2

    def test_contains(self):
        cache = PipelineCache()
        cache.cache_result("a", "k", None)
        assert ("a", "k") in cache
        assert ("a", "other") not in cache

    def test_runs_do_not_share_state(self):
        first, second = PipelineCache(), PipelineCache()
        first.cache_result("a", "k", 1)
        assert second.get_cached_result("a", "k") is None
