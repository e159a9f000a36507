"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Extraction and review tunables loaded from environment variables and .env file."""

    ANTHROPIC_API_KEY: str = ""
    LLM_MODEL: str = "sonnet"
    LOG_LEVEL: str = "INFO"

    # Rendering / scanning
    BODY_BUDGET_CHARS: int = 42 * 1024
    MAX_EXAMPLES_PER_VARIANT: int = 2
    MAX_BLOCK_LINES: int = 20
    MAX_USAGE_EXAMPLES: int = 6
    COMPLETENESS_FILE_LIMIT: int = 10

    # Review batching
    ROUND1_BATCH_SIZE: int = 12
    ROUND2_BATCH_SIZE: int = 3
    ROUND2_CONCURRENCY: int = 2
    ROUND3_BATCH_SIZE: int = 20

    # LLM call wrapper
    LLM_TIMEOUT_SECONDS: float = 90.0
    LLM_MAX_RETRIES: int = 2
    LLM_RETRY_BASE_SECONDS: float = 2.0

    # Drift guards
    DRIFT_MAX_DROP_RATE: float = 0.6
    DRIFT_MIN_OVERLAP: float = 0.15
    DRIFT_FLAT_VARIANCE: float = 0.005
    DRIFT_FLAT_MIN_SAMPLES: int = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
