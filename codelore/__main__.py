"""CLI entry point: codelore PATH

Scans a local project, extracts convention knowledge candidates and
optionally runs the LLM review before printing them.

Usage:
    codelore path/to/project                          # All dimensions, markdown to stdout
    codelore path/to/project -d code-pattern -d deep-scan
    codelore path/to/project --review                 # Three-round LLM review (needs ANTHROPIC_API_KEY)
    codelore path/to/project --json -o knowledge.json
"""

import os
os.environ.pop("CLAUDECODE", None)  # Allow nested Claude SDK calls

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from codelore.config import settings
from codelore.dimensions import DimensionId, LEGACY_ALIASES
from codelore.errors import CodeloreError
from codelore.models import Candidate


def _progress(msg: str) -> None:
    """Print a progress message to stderr (keeps stdout clean for output)."""
    print(f"\033[90m  → {msg}\033[0m", file=sys.stderr)


def _error(msg: str) -> None:
    print(f"\033[31m  ✗ {msg}\033[0m", file=sys.stderr)


def _success(msg: str) -> None:
    print(f"\033[32m  ✓ {msg}\033[0m", file=sys.stderr)


def _render_markdown(candidates: list[Candidate]) -> str:
    parts = []
    for c in candidates:
        header = [f"<!-- {c.title} | {c.knowledge_type} | sources: {', '.join(c.sources[:5])} -->"]
        if c.confidence is not None:
            header.append(f"<!-- confidence: {c.confidence:.2f}{' (flat)' if c.confidence_flat else ''} -->")
        parts.append("\n".join(header) + "\n\n" + c.document_body.strip())
    return ("\n\n" + "-" * 60 + "\n\n").join(parts) + "\n"


def _render_json(project: str, candidates: list[Candidate]) -> str:
    return json.dumps(
        {"project": project, "candidates": [c.model_dump(exclude_none=True) for c in candidates]},
        indent=2,
        ensure_ascii=False,
    )


async def main() -> int:
    dimension_choices = [d.value for d in DimensionId] + list(LEGACY_ALIASES)
    parser = argparse.ArgumentParser(
        prog="codelore",
        description="Extract coding-convention knowledge from a local project",
    )
    parser.add_argument("path", help="Project root directory")
    parser.add_argument(
        "--dimension", "-d",
        action="append",
        choices=dimension_choices,
        default=None,
        help="Dimension to extract (repeatable; default: all)",
    )
    parser.add_argument(
        "--review",
        action="store_true",
        help="Run the three-round LLM review on the extracted candidates",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write output to a file instead of stdout",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON (useful for programmatic consumption)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.review and not settings.ANTHROPIC_API_KEY and not os.environ.get("ANTHROPIC_API_KEY", ""):
        _error("ANTHROPIC_API_KEY not set. Export it or add to .env file.")
        _error("Hint: drop --review to extract without the LLM")
        return 1

    # Lazy import: the review pipeline requires claude-agent-sdk
    from codelore.pipeline import run_extraction, run_review
    from codelore.snapshot import load_snapshot

    try:
        snapshot = load_snapshot(args.path)
    except (OSError, CodeloreError) as e:
        _error(str(e))
        return 1
    _progress(f"Loaded {len(snapshot.files)} files ({snapshot.primary_lang or 'unknown'} primary)")

    candidates: list[Candidate] = []
    async for event in run_extraction(snapshot, args.dimension):
        if event.event_type == "stage_change":
            _progress(event.message)
        elif event.event_type == "error":
            _error(event.message)
        elif event.event_type == "complete":
            candidates = event.data.get("candidates", []) if event.data else []
            _success(event.message)

    if args.review and candidates:
        from codelore.llm import ClaudeAgentClient

        llm = ClaudeAgentClient()
        context = f"{snapshot.name} ({snapshot.primary_lang}, {len(snapshot.files)} files)"
        async for event in run_review(llm, candidates, context):
            if event.event_type == "complete":
                candidates = event.data.get("candidates", []) if event.data else candidates
                _success(event.message)
            else:
                _progress(event.message)

    if not candidates:
        _error("No candidates extracted.")
        return 1

    output = _render_json(snapshot.name, candidates) if args.json_output else _render_markdown(candidates)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        _success(f"Output written to {args.output}")
    else:
        print(output)
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
