"""Pydantic models for snapshots, scan results, candidates and pipeline events."""

import re
from pathlib import PurePosixPath
from typing import Any, Literal

from pydantic import BaseModel, Field

EXTENSION_LANGUAGES = {
    ".m": "objectivec",
    ".mm": "objectivec",
    ".h": "objectivec",
    ".swift": "swift",
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".kt": "kotlin",
    ".go": "go",
    ".rs": "rust",
    ".c": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
}

RelationType = Literal["DEPENDS_ON", "EXTENDS", "CONFLICTS", "ENFORCES", "PREREQUISITE", "RELATED"]


def language_for_path(path: str) -> str:
    """Map a file path to a language id by extension ('' when unknown)."""
    return EXTENSION_LANGUAGES.get(PurePosixPath(path).suffix.lower(), "")


class SourceFile(BaseModel):
    """One source file of the project snapshot."""

    path: str
    relative_path: str = ""
    content: str = ""
    language: str = ""

    def model_post_init(self, __context: object) -> None:
        if not self.relative_path:
            self.relative_path = self.path
        if not self.language:
            self.language = language_for_path(self.relative_path)

    @property
    def name(self) -> str:
        return PurePosixPath(self.relative_path).name

    @property
    def lines(self) -> list[str]:
        return self.content.split("\n")


class ClassInfo(BaseModel):
    name: str
    superclass: str = ""
    file: str = ""
    protocols: list[str] = Field(default_factory=list)


class CategoryInfo(BaseModel):
    base: str
    name: str = ""
    file: str = ""
    methods: list[str] = Field(default_factory=list)


class InheritanceEdge(BaseModel):
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    type: Literal["inherits", "conforms"] = "inherits"

    model_config = {"populate_by_name": True}


class AstSummary(BaseModel):
    """Optional precomputed structural summary of the project."""

    classes: list[ClassInfo] = Field(default_factory=list)
    protocols: list[str] = Field(default_factory=list)
    categories: list[CategoryInfo] = Field(default_factory=list)
    inheritance_graph: list[InheritanceEdge] = Field(default_factory=list)
    pattern_stats: dict[str, dict[str, Any]] = Field(default_factory=dict)
    project_metrics: dict[str, Any] = Field(default_factory=dict)


class DependencyEdge(BaseModel):
    source: str = Field(alias="from")
    target: str = Field(alias="to")

    model_config = {"populate_by_name": True}


class ProjectSnapshot(BaseModel):
    """In-memory project: files plus optional structural summaries."""

    name: str = ""
    files: list[SourceFile] = Field(default_factory=list)
    primary_lang: str = ""
    lang_stats: dict[str, int] = Field(default_factory=dict)
    ast: AstSummary | None = None
    target_file_map: dict[str, list[str]] = Field(default_factory=dict)
    dep_edges: list[DependencyEdge] = Field(default_factory=list)

    def model_post_init(self, __context: object) -> None:
        if not self.lang_stats:
            stats: dict[str, int] = {}
            for f in self.files:
                if f.language:
                    stats[f.language] = stats.get(f.language, 0) + 1
            self.lang_stats = stats
        if not self.primary_lang and self.lang_stats:
            self.primary_lang = max(self.lang_stats.items(), key=lambda kv: kv[1])[0]


class VariantDefinition(BaseModel):
    """One named implementation style of a pattern."""

    model_config = {"frozen": True}

    label: str
    matcher: re.Pattern
    boilerplate: bool = False


class PatternDefinition(BaseModel):
    """A pattern: coarse file filter plus ordered variant matchers (first match wins)."""

    model_config = {"frozen": True}

    name: str
    label: str
    main_matcher: re.Pattern
    min_count: int = 1
    variants: dict[str, VariantDefinition] = Field(default_factory=dict)
    relations: list["Relation"] = Field(default_factory=list)


class Example(BaseModel):
    file: str
    line_number: int
    code_block: list[str] = Field(default_factory=list)


class Variant(BaseModel):
    key: str
    label: str
    file_count: int = 0
    examples: list[Example] = Field(default_factory=list)
    boilerplate: bool = False


class ScanResult(BaseModel):
    """Outcome of a two-pass variant scan."""

    total_files: int = 0
    variants: list[Variant] = Field(default_factory=list)
    other_variant: Variant | None = None
    declaration_only_count: int = 0
    variant_defs: dict[str, VariantDefinition] = Field(default_factory=dict, exclude=True)

    @property
    def primary(self) -> Variant | None:
        for v in self.variants:
            if not v.boilerplate:
                return v
        return self.variants[0] if self.variants else None


class UsageExample(BaseModel):
    file: str
    line_number: int
    code: str


class UsageEntry(BaseModel):
    count: int = 0
    examples: list[UsageExample] = Field(default_factory=list)


class Relation(BaseModel):
    type: RelationType = "RELATED"
    target: str
    description: str = ""


class Candidate(BaseModel):
    """A self-contained knowledge document produced by an extractor."""

    title: str
    sub_topic: str = ""
    document_body: str = ""
    language: str = ""
    sources: list[str] = Field(default_factory=list)
    summary: str = ""
    knowledge_type: str = "code-pattern"
    tags: list[str] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)
    dimension: str = ""

    # Review-only fields
    reviewed: bool = False
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    trigger: str = ""
    insight: str = ""
    agent_notes: list[str] = Field(default_factory=list)
    stable_id: str = ""
    drop_reason: str = ""
    merged_from_titles: list[str] = Field(default_factory=list)
    drift_flag: str | None = None
    original_summary: str | None = None
    confidence_flat: bool = False


class Round1Result(BaseModel):
    """Eligibility verdicts expressed as indices into the reviewed candidate list."""

    kept: list[int] = Field(default_factory=list)
    merged: list[list[int]] = Field(default_factory=list)
    dropped: list[int] = Field(default_factory=list)
    drop_reasons: dict[int, str] = Field(default_factory=dict)
    drift_guard_triggered: bool = False


class MacroDefinition(BaseModel):
    """A macro or constant collected from source (value macro, function macro, extern or static)."""

    name: str
    kind: Literal["value", "function", "extern", "static"] = "value"
    value: str = ""
    params: str = ""
    file: str = ""
    category: str = "Other"


class ExtensionSummary(BaseModel):
    """One Objective-C category or Swift extension on a base type."""

    name: str
    base: str
    file: str
    method_count: int = 0
    kind: Literal["foundation", "uikit", "custom"] = "custom"
    has_associated_obj: bool = False
    has_computed_prop: bool = False


class SwizzleHook(BaseModel):
    """A runtime method exchange site."""

    file: str
    line: int
    class_name: str = "unknown"
    original_selector: str = "unknown"
    swizzled_selector: str = "unknown"
    timing: str = "unknown"
    framework: str = ""
    code_block: list[str] = Field(default_factory=list)


class ExtractionEvent(BaseModel):
    """Progress event emitted while extracting or reviewing."""

    event_type: str  # e.g. "stage_change", "progress", "round1-started", "complete", "error"
    stage: str = ""
    message: str = ""
    data: dict | None = None


PatternDefinition.model_rebuild()
