"""Tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from codelore.models import (
    Candidate,
    DependencyEdge,
    ExtractionEvent,
    InheritanceEdge,
    ProjectSnapshot,
    Relation,
    SourceFile,
    language_for_path,
)


class TestSourceFile:
    def test_language_from_extension(self):
        assert SourceFile(path="a/B.m").language == "objectivec"
        assert SourceFile(path="a/B.swift").language == "swift"
        assert SourceFile(path="a/b.tsx").language == "typescript"
        assert SourceFile(path="a/b.unknown").language == ""

    def test_relative_path_defaults_to_path(self):
        f = SourceFile(path="Sources/App/Main.swift")
        assert f.relative_path == "Sources/App/Main.swift"
        assert f.name == "Main.swift"

    def test_lines(self):
        assert SourceFile(path="a.m", content="x\ny").lines == ["x", "y"]

    def test_language_for_path_case_insensitive(self):
        assert language_for_path("FOO.H") == "objectivec"


class TestProjectSnapshot:
    def test_lang_stats_and_primary(self):
        snap = ProjectSnapshot(files=[
            SourceFile(path="a.m"), SourceFile(path="b.m"), SourceFile(path="c.swift"),
        ])
        assert snap.lang_stats == {"objectivec": 2, "swift": 1}
        assert snap.primary_lang == "objectivec"

    def test_explicit_primary_kept(self):
        snap = ProjectSnapshot(files=[SourceFile(path="a.m")], primary_lang="swift")
        assert snap.primary_lang == "swift"

    def test_empty(self):
        snap = ProjectSnapshot()
        assert snap.primary_lang == ""
        assert snap.lang_stats == {}

    def test_edges_accept_from_to(self):
        edge = DependencyEdge.model_validate({"from": "App", "to": "Core"})
        assert (edge.source, edge.target) == ("App", "Core")
        assert InheritanceEdge.model_validate({"from": "A", "to": "B"}).type == "inherits"


class TestCandidate:
    def test_defaults(self):
        c = Candidate(title="t")
        assert c.reviewed is False
        assert c.confidence is None
        assert c.relations == []
        assert c.drift_flag is None

    def test_confidence_too_high(self):
        with pytest.raises(ValidationError):
            Candidate(title="t", confidence=1.1)

    def test_confidence_too_low(self):
        with pytest.raises(ValidationError):
            Candidate(title="t", confidence=-0.1)


class TestRelation:
    def test_default_type(self):
        assert Relation(target="x").type == "RELATED"

    def test_invalid_type(self):
        with pytest.raises(ValidationError):
            Relation(type="LIKES", target="x")


class TestExtractionEvent:
    def test_data_optional(self):
        event = ExtractionEvent(event_type="progress")
        assert event.data is None
        assert event.stage == ""
