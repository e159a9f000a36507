"""Three-round LLM review of extracted candidates.

Round 1 gates eligibility (keep/drop/merge), Round 2 refines wording and
scores confidence, Round 3 removes duplicates and infers relations. Every
round fails open: a batch whose call fails or whose answer cannot be parsed
leaves its candidates as they were.
"""

import asyncio
import json
import logging
import uuid
from collections.abc import Callable
from typing import Any

from codelore.agents import CONTENT_REFINER, ELIGIBILITY_GATE, RELATION_INFERER
from codelore.config import settings
from codelore.drift_guard import (
    apply_drop_rate_guard,
    clamp_confidence,
    extract_match_count,
    is_flat_confidence,
    title_summary_overlap,
)
from codelore.llm import LLMClient, chat_with_retry, extract_json
from codelore.models import Candidate, Relation, Round1Result

logger = logging.getLogger(__name__)

RELATION_TYPES = {"DEPENDS_ON", "EXTENDS", "CONFLICTS", "ENFORCES", "PREREQUISITE", "RELATED"}
MAX_SUMMARY_CHARS = 150
MAX_TRIGGER_CHARS = 100
MAX_BODY_CHARS_IN_PROMPT = 3000
MAX_SOURCES_AFTER_MERGE = 15

ProgressCallback = Callable[[int, int], None]


def _batches(items: list, size: int) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]


# ─── Round 1: eligibility gate ───────────────────────────────

def _round1_item(index: int, c: Candidate) -> dict[str, Any]:
    return {
        "index": index,
        "title": c.title,
        "subTopic": c.sub_topic,
        "summary": c.summary,
        "sources": c.sources[:3],
        "matchCount": extract_match_count(c.summary),
        "codeSamplePreview": c.document_body[:200],
    }


def _round1_prompt(items: list[dict[str, Any]], project_context: str) -> str:
    return (
        f"Project: {project_context or 'unknown'}\n\n"
        f"Decide keep/drop/merge for these {len(items)} candidates:\n\n"
        f"{json.dumps(items, ensure_ascii=False, indent=2)}\n\n"
        "Return JSON with a `decisions` list."
    )


async def round1_eligibility(
    llm: LLMClient,
    candidates: list[Candidate],
    project_context: str = "",
    *,
    batch_size: int | None = None,
    max_drop_rate: float | None = None,
) -> Round1Result:
    """Classify every candidate index as kept, merged or dropped.

    Batches run one at a time. Indices the model does not address stay kept.
    A candidate belongs to at most one merge group; the first group claiming
    it wins, and the lowest index of a group leads it.
    """
    batch_size = batch_size or settings.ROUND1_BATCH_SIZE
    n = len(candidates)
    kept: list[int] = []
    dropped: list[int] = []
    drop_reasons: dict[int, str] = {}
    groups: list[list[int]] = []
    merged: set[int] = set()

    def keep(idx: int) -> None:
        if idx not in merged and idx not in kept:
            kept.append(idx)

    for batch in _batches(list(range(n)), batch_size):
        in_batch = set(batch)
        items = [_round1_item(i, candidates[i]) for i in batch]
        try:
            text = await chat_with_retry(
                llm, _round1_prompt(items, project_context), temperature=0.1, agent=ELIGIBILITY_GATE
            )
            parsed = extract_json(text)
            decisions = parsed.get("decisions") if parsed else None
            if not isinstance(decisions, list):
                logger.warning(f"Round 1: unparseable response for batch at {batch[0]}, keeping all {len(batch)}")
                for i in batch:
                    keep(i)
                continue

            decided: set[int] = set()
            for d in decisions:
                if not isinstance(d, dict):
                    continue
                idx = d.get("index")
                if not isinstance(idx, int) or idx not in in_batch or idx in decided:
                    continue
                decided.add(idx)
                verdict = str(d.get("verdict", "keep")).lower()

                if verdict == "drop":
                    if idx not in merged:
                        dropped.append(idx)
                        drop_reasons[idx] = str(d.get("reason", ""))
                elif verdict == "merge":
                    peers = [
                        p for p in (d.get("mergeWith") or [])
                        if isinstance(p, int) and 0 <= p < n and p != idx
                    ]
                    if not peers:
                        keep(idx)
                        continue
                    members = [m for m in sorted({idx, *peers}) if m not in merged and m not in dropped]
                    if len(members) >= 2:
                        groups.append(members)
                        merged.update(members)
                    else:
                        keep(idx)
                else:
                    keep(idx)

            for i in batch:
                if i not in decided:
                    keep(i)
        except Exception as e:
            logger.warning(f"Round 1: batch at {batch[0]} failed ({e}), keeping all {len(batch)}")
            for i in batch:
                keep(i)

    result = Round1Result(
        kept=sorted(i for i in kept if i not in merged and i not in dropped),
        merged=groups,
        dropped=sorted(dropped),
        drop_reasons=drop_reasons,
    )
    guarded = apply_drop_rate_guard(result, candidates, max_drop_rate=max_drop_rate)
    if guarded.drift_guard_triggered:
        logger.warning(
            f"Round 1: {len(result.dropped)}/{n} dropped exceeds the drop-rate limit, "
            f"rolled back to {len(guarded.dropped)} explicit false positives"
        )
    logger.info(f"Round 1: kept {len(guarded.kept)}, merged {len(groups)} groups, dropped {len(guarded.dropped)}")
    return guarded


def materialize_merges(candidates: list[Candidate], result: Round1Result) -> list[Candidate]:
    """Apply a Round 1 result: leaders absorb their group, dropped candidates disappear."""
    leaders: dict[int, list[int]] = {group[0]: group[1:] for group in result.merged if group}
    survivors: list[Candidate] = []
    for idx in sorted(set(result.kept) | set(leaders)):
        c = candidates[idx].model_copy(deep=True)
        for other_idx in leaders.get(idx, []):
            other = candidates[other_idx]
            c.sources = list(dict.fromkeys(c.sources + other.sources))[:MAX_SOURCES_AFTER_MERGE]
            c.tags = list(dict.fromkeys(c.tags + other.tags))
            known = {(r.type, r.target) for r in c.relations}
            c.relations += [r for r in other.relations if (r.type, r.target) not in known]
            c.merged_from_titles.append(other.title)
        survivors.append(c)
    return survivors


# ─── Round 2: content refinement ─────────────────────────────

def _round2_prompt(batch: list[Candidate], sibling_titles: list[str], project_context: str) -> str:
    items = [
        {
            "title": c.title,
            "subTopic": c.sub_topic,
            "summary": c.summary,
            "evidence": c.document_body[:MAX_BODY_CHARS_IN_PROMPT],
        }
        for c in batch
    ]
    return (
        f"Project: {project_context or 'unknown'}\n"
        f"Other knowledge in this review (for context only): {', '.join(sibling_titles[:40])}\n\n"
        f"Refine these {len(batch)} candidates:\n\n"
        f"{json.dumps(items, ensure_ascii=False, indent=2)}\n\n"
        "Return JSON with a `refinements` list, one entry per candidate in order."
    )


def _pair_refinements(batch: list[Candidate], refinements: list) -> list[tuple[Candidate, dict]]:
    by_title = {c.title: c for c in batch}
    positional = len(refinements) == len(batch)
    pairs = []
    for i, ref in enumerate(refinements):
        if not isinstance(ref, dict):
            continue
        target = by_title.get(ref.get("title", ""))
        if target is None and positional:
            target = batch[i]
        if target is not None:
            pairs.append((target, ref))
    return pairs


def apply_refinement(c: Candidate, ref: dict) -> None:
    """Copy the valid fields of one refinement onto a candidate and mark it reviewed."""
    summary = ref.get("summary")
    if isinstance(summary, str) and summary.strip() and len(summary) <= MAX_SUMMARY_CHARS:
        c.summary = summary.strip()
    notes = ref.get("agentNotes")
    if isinstance(notes, list):
        notes = [n for n in notes if isinstance(n, str) and n.strip()]
        if 1 <= len(notes) <= 5:
            c.agent_notes = notes
    insight = ref.get("insight")
    if isinstance(insight, str) and insight.strip():
        c.insight = insight.strip()
    trigger = ref.get("trigger")
    if isinstance(trigger, str) and len(trigger) <= MAX_TRIGGER_CHARS:
        c.trigger = trigger
    confidence = ref.get("confidence")
    if isinstance(confidence, (int, float)) and not isinstance(confidence, bool) and 0 <= confidence <= 1:
        c.confidence = float(confidence)
    c.reviewed = True


def guard_refinement(c: Candidate, *, min_overlap: float | None = None) -> None:
    """Revert an off-topic summary and clamp extreme confidence."""
    min_overlap = settings.DRIFT_MIN_OVERLAP if min_overlap is None else min_overlap
    if c.original_summary is not None and c.summary != c.original_summary:
        overlap = title_summary_overlap(c.title, c.summary)
        if overlap < min_overlap:
            logger.warning(f"Round 2: summary of '{c.title}' drifted (overlap {overlap:.2f}), restoring original")
            c.summary = c.original_summary
            c.drift_flag = "summary"
    if c.confidence is not None:
        c.confidence = clamp_confidence(c.confidence)


async def round2_refine(
    llm: LLMClient,
    candidates: list[Candidate],
    project_context: str = "",
    *,
    batch_size: int | None = None,
    concurrency: int | None = None,
    on_progress: ProgressCallback | None = None,
) -> list[Candidate]:
    """Refine candidates in small batches with at most ``concurrency`` calls in flight."""
    batch_size = batch_size or settings.ROUND2_BATCH_SIZE
    concurrency = concurrency or settings.ROUND2_CONCURRENCY

    refined = [c.model_copy(deep=True) for c in candidates]
    for c in refined:
        c.original_summary = c.summary
    titles = [c.title for c in refined]
    batches = _batches(refined, batch_size)
    sem = asyncio.Semaphore(concurrency)
    done = 0

    async def _refine_batch(batch: list[Candidate]) -> None:
        nonlocal done
        async with sem:
            try:
                text = await chat_with_retry(
                    llm, _round2_prompt(batch, titles, project_context), temperature=0.2, agent=CONTENT_REFINER
                )
                parsed = extract_json(text)
                refinements = parsed.get("refinements") if parsed else None
                if not isinstance(refinements, list):
                    logger.warning(f"Round 2: unparseable response for {len(batch)} candidates, left unchanged")
                else:
                    for c, ref in _pair_refinements(batch, refinements):
                        apply_refinement(c, ref)
                        guard_refinement(c)
            except Exception as e:
                logger.warning(f"Round 2: batch failed ({e}), {len(batch)} candidates left unchanged")
            finally:
                done += 1
                if on_progress is not None:
                    on_progress(done, len(batches))

    await asyncio.gather(*[_refine_batch(b) for b in batches], return_exceptions=True)

    scores = [c.confidence for c in refined if c.reviewed and c.confidence is not None]
    if is_flat_confidence(scores):
        logger.warning(f"Round 2: {len(scores)} confidence scores are nearly identical, flagging as flat")
        for c in refined:
            if c.reviewed:
                c.confidence_flat = True
    logger.info(f"Round 2: refined {sum(1 for c in refined if c.reviewed)}/{len(refined)} candidates")
    return refined


# ─── Round 3: dedup and relations ────────────────────────────

def assign_stable_ids(candidates: list[Candidate]) -> None:
    """Give every candidate a unique id derived from its title."""
    seen: dict[str, int] = {}
    for c in candidates:
        base = c.title or f"untitled-{uuid.uuid4().hex[:6]}"
        seen[base] = seen.get(base, 0) + 1
        c.stable_id = base if seen[base] == 1 else f"{base} ({seen[base]})"


def _round3_prompt(batch: list[Candidate]) -> str:
    overview = [
        {"id": c.stable_id, "title": c.title, "subTopic": c.sub_topic, "summary": c.summary, "tags": c.tags}
        for c in batch
    ]
    return (
        f"Find duplicates and relations among these {len(batch)} knowledge candidates:\n\n"
        f"{json.dumps(overview, ensure_ascii=False, indent=2)}\n\n"
        "Return JSON with `duplicates` and `relations` lists, using the ids above."
    )


async def round3_relations(
    llm: LLMClient,
    candidates: list[Candidate],
    *,
    batch_size: int | None = None,
) -> list[Candidate]:
    """Drop duplicates and attach inferred relations, referring to candidates by stable id."""
    batch_size = batch_size or settings.ROUND3_BATCH_SIZE
    result = [c.model_copy(deep=True) for c in candidates]
    if len(result) <= 1:
        return result

    assign_stable_ids(result)
    by_id = {c.stable_id: c for c in result}
    drop_ids: set[str] = set()
    pending: list[tuple[str, str, Relation]] = []

    for batch in _batches(result, batch_size):
        try:
            text = await chat_with_retry(llm, _round3_prompt(batch), temperature=0.1, agent=RELATION_INFERER)
            parsed = extract_json(text)
            if not parsed:
                logger.warning(f"Round 3: unparseable response for {len(batch)} candidates, skipped")
                continue
            for dup in parsed.get("duplicates") or []:
                if not isinstance(dup, dict):
                    continue
                drop_id = dup.get("dropId") or dup.get("drop")
                if drop_id in by_id:
                    drop_ids.add(drop_id)
            for rel in parsed.get("relations") or []:
                if not isinstance(rel, dict):
                    continue
                src = rel.get("fromId") or rel.get("from")
                dst = rel.get("toId") or rel.get("to")
                if src not in by_id or dst not in by_id or src == dst:
                    continue
                rel_type = str(rel.get("type", "RELATED")).upper()
                if rel_type not in RELATION_TYPES:
                    rel_type = "RELATED"
                pending.append((src, dst, Relation(
                    type=rel_type, target=by_id[dst].title, description=str(rel.get("description", ""))
                )))
        except Exception as e:
            logger.warning(f"Round 3: batch failed ({e}), continuing")

    for src, dst, relation in pending:
        if src in drop_ids or dst in drop_ids:
            continue
        owner = by_id[src]
        if all((r.type, r.target) != (relation.type, relation.target) for r in owner.relations):
            owner.relations.append(relation)

    survivors = [c for c in result if c.stable_id not in drop_ids]
    logger.info(f"Round 3: dropped {len(drop_ids)} duplicates, {len(survivors)} candidates remain")
    return survivors
