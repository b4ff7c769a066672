"""Backing sources for the policy store.

A source answers one question: "what is the raw document for this name?"
It returns None when there is no such document and raises OSError when the
backing storage itself fails. Parsing is the store's job.

Sources:
    FilePolicySource     - YAML/JSON files under a base directory
    InMemoryPolicySource - raw text or decoded mappings held in memory
"""

from __future__ import annotations

__all__ = [
    "FilePolicySource",
    "InMemoryPolicySource",
    "PolicySource",
    "RawPolicy",
]

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from grc_policy.constants import POLICY_FILE_SUFFIXES
from grc_policy.utils.policy import format_for_path


@dataclass(frozen=True, slots=True)
class RawPolicy:
    """Undecoded policy content and where it came from.

    Attributes:
        content: YAML/JSON text, undecoded file bytes, or an already decoded mapping.
        fmt: "yaml" or "json" (ignored for mappings).
        location: Human-readable origin for log and error messages.
    """

    content: str | bytes | Mapping[str, Any]
    fmt: str = "yaml"
    location: str = "<memory>"


@runtime_checkable
class PolicySource(Protocol):
    """Protocol for named-policy lookups.

    Implementations may block on I/O; read() is awaited by the store so
    callers can apply their usual timeout and cancellation.
    """

    async def read(self, name: str) -> RawPolicy | None:
        """Read the raw document for a policy name.

        Args:
            name: Policy name or path as given to PolicyStore.load().

        Returns:
            Raw document, or None if no document exists for the name.

        Raises:
            OSError: If the backing storage fails.
        """
        ...


class FilePolicySource:
    """Reads policy files from a base directory.

    Relative names resolve under the base directory, absolute paths are used
    as-is. Names without a suffix are tried as .yml, .yaml, then .json.
    """

    def __init__(self, base_dir: Path | str) -> None:
        """Initialize the source.

        Args:
            base_dir: Directory holding policy files.
        """
        self._base_dir = Path(base_dir).expanduser()

    @property
    def base_dir(self) -> Path:
        """Directory holding policy files."""
        return self._base_dir

    def candidates(self, name: str) -> list[Path]:
        """Get the file paths tried for a policy name, in order."""
        path = Path(name)
        if not path.is_absolute():
            path = self._base_dir / path
        if path.suffix.lower() in POLICY_FILE_SUFFIXES:
            return [path]
        return [path.with_name(path.name + suffix) for suffix in POLICY_FILE_SUFFIXES]

    def _read_sync(self, name: str) -> RawPolicy | None:
        for path in self.candidates(name):
            if path.is_file():
                # Decoded by the parser; bad encodings become PolicyParseError
                content = path.read_bytes()
                return RawPolicy(content=content, fmt=format_for_path(path), location=str(path))
        return None

    async def read(self, name: str) -> RawPolicy | None:
        """Read a policy file in a worker thread."""
        return await asyncio.to_thread(self._read_sync, name)


class InMemoryPolicySource:
    """Serves policies from an in-process mapping.

    Values may be YAML text or decoded mappings. Useful for tests and for
    embedders that fetch documents from their own storage.
    """

    def __init__(self, documents: Mapping[str, str | Mapping[str, Any]] | None = None) -> None:
        self._documents: dict[str, str | Mapping[str, Any]] = dict(documents or {})

    def put(self, name: str, content: str | Mapping[str, Any]) -> None:
        """Add or replace a document (callers must invalidate the store)."""
        self._documents[name] = content

    def remove(self, name: str) -> None:
        """Remove a document if present."""
        self._documents.pop(name, None)

    async def read(self, name: str) -> RawPolicy | None:
        """Look up a document by name."""
        content = self._documents.get(name)
        if content is None:
            return None
        return RawPolicy(content=content, location=f"memory:{name}")
