"""Dimension dispatcher: maps a dimension id to its extractor."""

import logging
from collections.abc import Callable
from enum import Enum

from codelore.cache import PipelineCache
from codelore.errors import UnknownDimensionError
from codelore.extractors_deep import extract_category_scan, extract_deep_scan
from codelore.extractors_macro import (
    compute_top_prefix,
    extract_agent_guidelines,
    extract_architecture,
    extract_code_standard,
)
from codelore.extractors_micro import extract_best_practice, extract_code_pattern, extract_event_and_data_flow
from codelore.extractors_profile import extract_project_profile
from codelore.models import Candidate, ProjectSnapshot
from codelore.source_utils import filter_third_party

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "swift"


class DimensionId(str, Enum):
    CODE_STANDARD = "code-standard"
    CODE_PATTERN = "code-pattern"
    ARCHITECTURE = "architecture"
    BEST_PRACTICE = "best-practice"
    EVENT_AND_DATA_FLOW = "event-and-data-flow"
    PROJECT_PROFILE = "project-profile"
    AGENT_GUIDELINES = "agent-guidelines"
    DEEP_SCAN = "deep-scan"
    CATEGORY_SCAN = "category-scan"


LEGACY_ALIASES = {
    "call-chain": DimensionId.EVENT_AND_DATA_FLOW,
    "data-flow": DimensionId.EVENT_AND_DATA_FLOW,
}

# Producers of cached inventories come before project-profile, which consumes them.
DEFAULT_ORDER = [
    DimensionId.CODE_STANDARD,
    DimensionId.CODE_PATTERN,
    DimensionId.ARCHITECTURE,
    DimensionId.BEST_PRACTICE,
    DimensionId.EVENT_AND_DATA_FLOW,
    DimensionId.DEEP_SCAN,
    DimensionId.CATEGORY_SCAN,
    DimensionId.PROJECT_PROFILE,
    DimensionId.AGENT_GUIDELINES,
]

Extractor = Callable[[ProjectSnapshot, str, PipelineCache], list[Candidate]]


def _project_prefix(snapshot: ProjectSnapshot, lang: str, cache: PipelineCache) -> str:
    top = cache.get_or_compute(
        "", "project_prefix",
        lambda: compute_top_prefix(filter_third_party(snapshot.files), lang, snapshot.ast),
    )
    return top[0] if top else ""


DISPATCH: dict[DimensionId, Extractor] = {
    DimensionId.CODE_STANDARD: lambda s, lang, cache: extract_code_standard(s.files, lang, s.ast),
    DimensionId.CODE_PATTERN: lambda s, lang, cache: extract_code_pattern(
        s.files, lang, s.ast, _project_prefix(s, lang, cache)
    ),
    DimensionId.ARCHITECTURE: lambda s, lang, cache: extract_architecture(s.target_file_map, s.dep_edges, lang, s.ast),
    DimensionId.BEST_PRACTICE: lambda s, lang, cache: extract_best_practice(s.files, lang, _project_prefix(s, lang, cache)),
    DimensionId.EVENT_AND_DATA_FLOW: lambda s, lang, cache: extract_event_and_data_flow(
        s.files, lang, _project_prefix(s, lang, cache)
    ),
    DimensionId.PROJECT_PROFILE: lambda s, lang, cache: extract_project_profile(
        s.files, s.target_file_map, s.dep_edges, s.lang_stats, lang, cache, s.ast
    ),
    DimensionId.AGENT_GUIDELINES: lambda s, lang, cache: extract_agent_guidelines(s.files, lang),
    DimensionId.DEEP_SCAN: lambda s, lang, cache: extract_deep_scan(s.files, lang, cache),
    DimensionId.CATEGORY_SCAN: lambda s, lang, cache: extract_category_scan(s.files, lang, cache),
}


def resolve_dimension(dimension: str | DimensionId) -> DimensionId:
    """Normalize a dimension id (or legacy alias) to a ``DimensionId``."""
    if isinstance(dimension, DimensionId):
        return dimension
    if dimension in LEGACY_ALIASES:
        return LEGACY_ALIASES[dimension]
    try:
        return DimensionId(dimension)
    except ValueError:
        raise UnknownDimensionError(dimension) from None


def extract_dimension_candidates(
    dimension: str | DimensionId,
    snapshot: ProjectSnapshot,
    cache: PipelineCache | None = None,
) -> list[Candidate]:
    """Run one dimension's extractor over the snapshot and return its candidates."""
    dim = resolve_dimension(dimension)
    cache = cache if cache is not None else PipelineCache()
    lang = snapshot.primary_lang or DEFAULT_LANGUAGE
    candidates = DISPATCH[dim](snapshot, lang, cache)
    for c in candidates:
        if not c.dimension:
            c.dimension = dim.value
    logger.info(f"Dimension {dim.value}: {len(candidates)} candidates")
    return candidates
