"""Exception taxonomy for extraction and review."""


class CodeloreError(Exception):
    """Base class for all codelore errors."""


class UnknownDimensionError(CodeloreError, ValueError):
    """Requested dimension id is not in the dispatch table."""

    def __init__(self, dimension: str):
        self.dimension = dimension
        super().__init__(f"Unknown dimension: {dimension}")


class LLMError(CodeloreError):
    """An LLM call failed."""


class LLMTimeoutError(LLMError):
    """An LLM call did not answer within the configured timeout."""


class RateLimitError(LLMError):
    """The LLM backend asked us to slow down (429/503)."""
