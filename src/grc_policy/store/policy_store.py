"""Policy store - load, parse and cache policy documents by name.

The store is the engine's only stateful, I/O-performing component:
- load(name): cache hit returns immediately; a miss reads from the source,
  parses, caches and returns the document
- get_cached(name): cache lookup without touching the source
- invalidate(name): drop an entry so the next load re-reads and re-parses

Failures never escape load(): a missing document is logged as a warning,
read and parse failures as errors, and all of them return None.

Thread-safety:
- The cache dict is guarded by a threading.Lock (held only for dict access)
- Parsing happens outside the lock; only complete, frozen documents are
  inserted. Concurrent misses for the same name may parse twice; the last
  write wins and every caller sees a complete document.
- invalidate() may race with in-flight evaluations; those finish with the
  document they already hold (eventual consistency).
"""

from __future__ import annotations

__all__ = ["PolicyStore"]

import logging
import threading

from grc_policy.exceptions import PolicyNotFoundError, PolicyParseError
from grc_policy.pdp.policy import PolicyDocument
from grc_policy.store.sources import PolicySource
from grc_policy.utils.policy import parse_policy_document, policy_name_from_path

logger = logging.getLogger(__name__)


class PolicyStore:
    """Caching loader for policy documents.

    Create one per process and share it between enforcers.
    """

    def __init__(self, source: PolicySource) -> None:
        """Initialize the store.

        Args:
            source: Backing source for raw documents.
        """
        self._source = source
        self._cache: dict[str, PolicyDocument] = {}
        self._lock = threading.Lock()

    @property
    def source(self) -> PolicySource:
        """Backing source for raw documents."""
        return self._source

    async def load(self, name: str) -> PolicyDocument | None:
        """Load a policy document, using the cache when possible.

        Args:
            name: Policy name or path (e.g., "grc-baseline.yml").

        Returns:
            Parsed PolicyDocument, or None if it is missing or invalid.
        """
        key = policy_name_from_path(name)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            policy = await self._fetch(name)
        except PolicyNotFoundError as e:
            logger.warning("%s", e)
            return None
        except PolicyParseError as e:
            logger.error("Failed to load policy %s: %s", name, e)
            return None
        except OSError as e:
            logger.error("Failed to read policy %s: %s", name, e)
            return None

        with self._lock:
            self._cache[key] = policy

        logger.info("Loaded policy: %s (version %s)", key, policy.version)
        return policy

    async def _fetch(self, name: str) -> PolicyDocument:
        """Read and parse a document from the source, bypassing the cache.

        Raises:
            PolicyNotFoundError: If the source has no document for the name.
            PolicyParseError: If the document is malformed.
            OSError: If the source fails.
        """
        raw = await self._source.read(name)
        if raw is None:
            raise PolicyNotFoundError(name)
        return parse_policy_document(raw.content, fmt=raw.fmt, source=raw.location)

    def get_cached(self, name: str) -> PolicyDocument | None:
        """Get a cached policy without reading the source.

        Args:
            name: Policy name or path.

        Returns:
            Cached PolicyDocument, or None if not cached.
        """
        with self._lock:
            return self._cache.get(policy_name_from_path(name))

    def invalidate(self, name: str) -> None:
        """Drop a cached policy so the next load re-reads it.

        Args:
            name: Policy name or path.
        """
        key = policy_name_from_path(name)
        with self._lock:
            self._cache.pop(key, None)
        logger.info("Invalidated cache for policy: %s", key)

    def clear(self) -> None:
        """Drop every cached policy."""
        with self._lock:
            self._cache.clear()
        logger.info("Invalidated all cached policies")

    def cached_names(self) -> list[str]:
        """Get the names of cached policies, sorted."""
        with self._lock:
            return sorted(self._cache)
