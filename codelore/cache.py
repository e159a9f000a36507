"""Per-run key/value cache shared between dimension extractors."""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class PipelineCache:
    """Cross-dimension result cache keyed by ``(namespace, key)``.

    One instance lives for one extraction run and is passed into every
    extractor. Producers (deep-scan, category-scan) run before consumers
    (project-profile), so a consumer usually finds the value already computed.
    """

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], Any] = {}

    def get_cached_result(self, namespace: str, key: str) -> Any | None:
        return self._store.get((namespace, key))

    def cache_result(self, namespace: str, key: str, value: Any) -> None:
        if (namespace, key) in self._store:
            logger.debug(f"Overwriting cached result {namespace}/{key}")
        self._store[(namespace, key)] = value

    def get_or_compute(self, namespace: str, key: str, compute: Callable[[], Any]) -> Any:
        """Return the cached value, computing and storing it on first request."""
        if (namespace, key) in self._store:
            return self._store[(namespace, key)]
        value = compute()
        self._store[(namespace, key)] = value
        return value

    def __contains__(self, item: tuple[str, str]) -> bool:
        return item in self._store

    def __len__(self) -> int:
        return len(self._store)
