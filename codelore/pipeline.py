"""Extraction and review orchestration, streamed as ExtractionEvents."""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable

from codelore.cache import PipelineCache
from codelore.dimensions import DEFAULT_ORDER, DimensionId, extract_dimension_candidates, resolve_dimension
from codelore.llm import LLMClient
from codelore.models import Candidate, ExtractionEvent, ProjectSnapshot
from codelore.review import materialize_merges, round1_eligibility, round2_refine, round3_relations

logger = logging.getLogger(__name__)


def _ordered(dimensions: Iterable[str | DimensionId] | None) -> list[DimensionId]:
    if not dimensions:
        return list(DEFAULT_ORDER)
    requested = list(dict.fromkeys(resolve_dimension(d) for d in dimensions))
    # Cache producers first so project-profile reuses their inventories.
    return sorted(requested, key=DEFAULT_ORDER.index)


async def run_extraction(
    snapshot: ProjectSnapshot,
    dimensions: Iterable[str | DimensionId] | None = None,
    cache: PipelineCache | None = None,
) -> AsyncIterator[ExtractionEvent]:
    """Run each requested dimension over the snapshot.

    Yields a ``stage_change`` per dimension and a ``progress`` event with its
    candidate count. A failing extractor yields an ``error`` event and the run
    continues. The final ``complete`` event carries every candidate under
    ``data["candidates"]``.
    """
    cache = cache if cache is not None else PipelineCache()
    order = _ordered(dimensions)
    candidates: list[Candidate] = []

    for dim in order:
        yield ExtractionEvent(event_type="stage_change", stage=dim.value, message=f"Extracting {dim.value}...")
        try:
            found = extract_dimension_candidates(dim, snapshot, cache)
        except Exception as e:
            logger.exception(f"Dimension {dim.value} failed")
            yield ExtractionEvent(event_type="error", stage=dim.value, message=f"{dim.value} failed: {e}")
            continue
        candidates.extend(found)
        yield ExtractionEvent(
            event_type="progress",
            stage=dim.value,
            message=f"{dim.value}: {len(found)} candidates",
            data={"dimension": dim.value, "count": len(found), "total": len(candidates)},
        )

    yield ExtractionEvent(
        event_type="complete",
        stage="extraction",
        message=f"Extracted {len(candidates)} candidates from {len(order)} dimensions",
        data={"candidates": candidates, "count": len(candidates)},
    )


async def run_review(
    llm: LLMClient,
    candidates: list[Candidate],
    project_context: str = "",
) -> AsyncIterator[ExtractionEvent]:
    """Run the three review rounds; the ``complete`` event carries the reviewed candidates."""
    total = len(candidates)
    yield ExtractionEvent(event_type="round1-started", stage="round1", message=f"Eligibility gate for {total} candidates")
    r1 = await round1_eligibility(llm, candidates, project_context)
    survivors = materialize_merges(candidates, r1)
    yield ExtractionEvent(
        event_type="round1-completed",
        stage="round1",
        message=f"Kept {len(r1.kept)}, merged {len(r1.merged)} groups, dropped {len(r1.dropped)}",
        data={
            "kept": len(r1.kept),
            "merged": len(r1.merged),
            "dropped": len(r1.dropped),
            "drift_guard_triggered": r1.drift_guard_triggered,
        },
    )

    yield ExtractionEvent(event_type="round2-started", stage="round2", message=f"Refining {len(survivors)} candidates")
    queue: asyncio.Queue[ExtractionEvent] = asyncio.Queue()

    def _on_progress(current: int, batches: int) -> None:
        queue.put_nowait(ExtractionEvent(
            event_type="round2-progress",
            stage="round2",
            message=f"Refined batch {current}/{batches}",
            data={"current": current, "total": batches, "pct": round(current * 100 / batches) if batches else 100},
        ))

    task = asyncio.create_task(round2_refine(llm, survivors, project_context, on_progress=_on_progress))
    while not task.done():
        getter = asyncio.ensure_future(queue.get())
        done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
        if getter in done:
            yield getter.result()
        else:
            getter.cancel()
    while not queue.empty():
        yield queue.get_nowait()
    refined = task.result()
    yield ExtractionEvent(
        event_type="round2-completed",
        stage="round2",
        message=f"Refined {sum(1 for c in refined if c.reviewed)} candidates",
        data={
            "reviewed": sum(1 for c in refined if c.reviewed),
            "reverted": sum(1 for c in refined if c.drift_flag),
            "confidence_flat": any(c.confidence_flat for c in refined),
        },
    )

    yield ExtractionEvent(event_type="round3-started", stage="round3", message="Deduplicating and inferring relations")
    final = await round3_relations(llm, refined)
    yield ExtractionEvent(
        event_type="round3-completed",
        stage="round3",
        message=f"{len(refined) - len(final)} duplicates removed",
        data={"duplicates": len(refined) - len(final)},
    )

    yield ExtractionEvent(
        event_type="complete",
        stage="review",
        message=f"Review complete: {len(final)}/{total} candidates",
        data={"candidates": final, "count": len(final)},
    )
