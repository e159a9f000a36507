"""Tests for extraction and review orchestration."""

import json
from unittest.mock import patch

from codelore.dimensions import DimensionId
from codelore.pipeline import run_extraction, run_review


async def _collect(events):
    return [e async for e in events]


class TestRunExtraction:
    async def test_event_sequence(self, objc_snapshot):
        events = await _collect(run_extraction(objc_snapshot, ["project-profile", "deep-scan"]))
        assert [(e.event_type, e.stage) for e in events] == [
            ("stage_change", "deep-scan"),
            ("progress", "deep-scan"),
            ("stage_change", "project-profile"),
            ("progress", "project-profile"),
            ("complete", "extraction"),
        ]
        final = events[-1].data
        assert final["count"] == len(final["candidates"])
        assert final["count"] == events[1].data["count"] + events[3].data["count"]

    async def test_all_dimensions_by_default(self, objc_snapshot):
        events = await _collect(run_extraction(objc_snapshot))
        stages = [e.stage for e in events if e.event_type == "stage_change"]
        assert len(stages) == len(DimensionId)
        assert stages.index("deep-scan") < stages.index("project-profile")
        assert stages.index("category-scan") < stages.index("project-profile")

    async def test_failing_dimension_reported(self, objc_snapshot):
        def fake_extract(dim, snapshot, cache):
            if dim == DimensionId.CODE_PATTERN:
                raise RuntimeError("regex exploded")
            return []

        with patch("codelore.pipeline.extract_dimension_candidates", side_effect=fake_extract):
            events = await _collect(run_extraction(objc_snapshot, ["code-standard", "code-pattern"]))

        errors = [e for e in events if e.event_type == "error"]
        assert len(errors) == 1
        assert errors[0].stage == "code-pattern"
        assert "regex exploded" in errors[0].message
        assert events[-1].event_type == "complete"
        assert events[-1].data["count"] == 0

    async def test_alias_deduplicated(self, objc_snapshot):
        events = await _collect(run_extraction(objc_snapshot, ["call-chain", "data-flow"]))
        stages = [e.stage for e in events if e.event_type == "stage_change"]
        assert stages == ["event-and-data-flow"]


class TestRunReview:
    async def test_event_sequence(self, fake_llm, candidates):
        async def fake_chat(prompt, temperature=0.3, agent=None):
            if agent == "eligibility-gate":
                return json.dumps({"decisions": [{"index": 0, "verdict": "drop", "reason": "false positive"}]})
            if agent == "content-refiner":
                return json.dumps({"refinements": []})
            return json.dumps({"duplicates": [{"dropId": "[Bootstrap] code-pattern/pattern-1"}], "relations": []})

        fake_llm.chat.side_effect = fake_chat
        events = await _collect(run_review(fake_llm, candidates, "demo"))
        types = [e.event_type for e in events]
        assert types == [
            "round1-started",
            "round1-completed",
            "round2-started",
            "round2-progress",
            "round2-progress",
            "round2-progress",
            "round2-progress",
            "round2-completed",
            "round3-started",
            "round3-completed",
            "complete",
        ]
        assert events[1].data["dropped"] == 1
        assert events[6].data == {"current": 4, "total": 4, "pct": 100}
        assert events[9].data["duplicates"] == 1

        final = events[-1].data["candidates"]
        titles = [c.title for c in final]
        assert len(final) == 10
        assert "[Bootstrap] code-pattern/pattern-0" not in titles
        assert "[Bootstrap] code-pattern/pattern-1" not in titles

    async def test_failing_llm_keeps_everything(self, fake_llm, candidates):
        fake_llm.chat.side_effect = ValueError("offline")
        events = await _collect(run_review(fake_llm, candidates))
        final = events[-1].data["candidates"]
        assert [c.title for c in final] == [c.title for c in candidates]
        assert not any(c.reviewed for c in final)
