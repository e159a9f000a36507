"""Reviewer agent definitions using Claude Agent SDK AgentDefinition."""

from pathlib import Path

from claude_agent_sdk import AgentDefinition

from codelore.config import settings

PROMPTS_DIR = Path(__file__).parent / "prompts"

ELIGIBILITY_GATE = "eligibility-gate"
CONTENT_REFINER = "content-refiner"
RELATION_INFERER = "relation-inferer"


def _load_prompt(filename: str) -> str:
    """Load a prompt file from the prompts directory."""
    return (PROMPTS_DIR / filename).read_text(encoding="utf-8")


def get_agent_definitions() -> dict[str, AgentDefinition]:
    """Return the agent definitions for the three review rounds."""
    return {
        ELIGIBILITY_GATE: AgentDefinition(
            description="Round 1: decides keep/drop/merge for each extracted candidate",
            prompt=_load_prompt("eligibility_gate.md"),
            model=settings.LLM_MODEL,
            tools=[],
        ),
        CONTENT_REFINER: AgentDefinition(
            description="Round 2: rewrites summaries and agent notes, scores confidence",
            prompt=_load_prompt("content_refiner.md"),
            model=settings.LLM_MODEL,
            tools=[],
        ),
        RELATION_INFERER: AgentDefinition(
            description="Round 3: finds duplicates and typed relations between candidates",
            prompt=_load_prompt("relation_inferer.md"),
            model=settings.LLM_MODEL,
            tools=[],
        ),
    }
