"""Statistical drift detectors for the review rounds.

Pure functions over plain strings and numbers; nothing here knows about the
LLM client, so every guard can be tested without a model.
"""

import re
from statistics import pvariance

from codelore.config import settings
from codelore.models import Candidate, Round1Result

MATCH_COUNT_RE = re.compile(r"(\d+)\s*(?:(?:files?|uses?|occurrences?)\b|处|个文件|条)", re.IGNORECASE)
WORD_SPLIT_RE = re.compile(r"[\s\-_/:：·,，]+")
CJK_CHAR_RE = re.compile(r"[\u4e00-\u9fff]")
TITLE_TAG_RE = re.compile(r"^\s*\[[^\]]*\]\s*")
FALSE_POSITIVE = "false positive"

CONFIDENCE_CEILING = 0.95
CONFIDENCE_CAP = 0.9
CONFIDENCE_FLOOR = 0.1
CONFIDENCE_RAISED = 0.15


def extract_match_count(text: str) -> int:
    """Evidence count stated in a summary ("42 files", "7 uses"), 0 when absent."""
    m = MATCH_COUNT_RE.search(text or "")
    return int(m.group(1)) if m else 0


def drop_rate(result: Round1Result, total: int) -> float:
    return len(result.dropped) / total if total else 0.0


def apply_drop_rate_guard(
    result: Round1Result,
    candidates: list[Candidate],
    *,
    max_drop_rate: float | None = None,
) -> Round1Result:
    """Roll back an over-eager Round 1.

    When more than ``max_drop_rate`` of all candidates were dropped, only
    candidates with zero evidence whose reason says "false positive" stay
    dropped; every other drop reverts to kept.
    """
    max_drop_rate = settings.DRIFT_MAX_DROP_RATE if max_drop_rate is None else max_drop_rate
    if drop_rate(result, len(candidates)) <= max_drop_rate:
        return result

    still_dropped: list[int] = []
    restored: list[int] = []
    for idx in result.dropped:
        reason = result.drop_reasons.get(idx, "")
        if extract_match_count(candidates[idx].summary) == 0 and FALSE_POSITIVE in reason.lower():
            still_dropped.append(idx)
        else:
            restored.append(idx)

    return Round1Result(
        kept=sorted(result.kept + restored),
        merged=result.merged,
        dropped=still_dropped,
        drop_reasons={i: result.drop_reasons[i] for i in still_dropped if i in result.drop_reasons},
        drift_guard_triggered=True,
    )


def _strip_title(title: str) -> str:
    return TITLE_TAG_RE.sub("", title or "")


def _word_overlap(title: str, summary: str) -> float:
    words = [w.lower() for w in WORD_SPLIT_RE.split(title) if len(w) >= 2]
    if len(words) < 2:
        return 0.0
    lowered = summary.lower()
    return sum(1 for w in words if w in lowered) / len(words)


def _bigram_overlap(title: str, summary: str) -> float:
    chars = CJK_CHAR_RE.findall(title)
    if len(chars) < 2:
        return 0.0
    bigrams = {chars[i] + chars[i + 1] for i in range(len(chars) - 1)}
    return sum(1 for b in bigrams if b in summary) / len(bigrams)


def _containment(title: str, summary: str) -> float:
    t = title.strip()
    if 2 <= len(t) <= 6:
        return 1.0 if t.lower() in summary.lower() else 0.0
    return 0.0


def title_summary_overlap(title: str, summary: str) -> float:
    """How much a summary still talks about its title, in [0, 1].

    The maximum of word overlap, CJK bigram overlap and direct containment,
    so titles in scripts without word boundaries are scored fairly.
    """
    title = _strip_title(title)
    summary = summary or ""
    return max(_word_overlap(title, summary), _bigram_overlap(title, summary), _containment(title, summary))


def clamp_confidence(value: float) -> float:
    if value > CONFIDENCE_CEILING:
        return CONFIDENCE_CAP
    if value < CONFIDENCE_FLOOR:
        return CONFIDENCE_RAISED
    return value


def is_flat_confidence(
    values: list[float],
    *,
    threshold: float | None = None,
    min_samples: int | None = None,
) -> bool:
    """True when enough scores exist and they barely vary."""
    threshold = settings.DRIFT_FLAT_VARIANCE if threshold is None else threshold
    min_samples = settings.DRIFT_FLAT_MIN_SAMPLES if min_samples is None else min_samples
    if len(values) < min_samples:
        return False
    return pvariance(values) < threshold
