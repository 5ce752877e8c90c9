"""Content sources: the existence-check and fetch seam used by the resolver.

A fragment's `source` is an ordered list of locators. The resolver asks a
`ContentSource` whether each locator exists and fetches the first one that
does. Two implementations are provided: local files and an in-memory mapping.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from urllib.parse import unquote, urlparse

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)


@runtime_checkable
class ContentSource(Protocol):
    """Existence check and fetch over one or more content locations."""

    def exists(self, locator: str) -> bool:
        """Return True if `locator` can be fetched."""
        ...

    def fetch(self, locator: str) -> bytes:
        """Return the bytes stored at `locator`."""
        ...


class FilesystemContentSource:
    """Resolves locators against the local filesystem.

    Accepted locators are absolute paths, `file://` URIs, and relative paths,
    which are taken relative to `root` (or the current directory). Locators
    with any other scheme never exist here.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        """Initialize with an optional base directory for relative locators."""
        self.root = Path(root) if root is not None else None

    def path_for(self, locator: str) -> Path | None:
        """Map a locator to a local path, or None if it is not local."""
        parsed = urlparse(locator)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        # Single letters are Windows drive letters, not schemes
        if parsed.scheme and len(parsed.scheme) > 1:
            return None
        path = Path(locator)
        if path.is_absolute() or self.root is None:
            return path
        return self.root / path

    def exists(self, locator: str) -> bool:
        path = self.path_for(locator)
        if path is None:
            log.debug("Unsupported locator scheme: %s", locator)
            return False
        return path.is_file()

    def fetch(self, locator: str) -> bytes:
        path = self.path_for(locator)
        if path is None:
            raise FileNotFoundError(f"Unsupported locator: {locator}")
        return path.read_bytes()


class MappingContentSource:
    """In-memory content source keyed by locator.

    Records every `exists` and `fetch` call, which makes it handy for
    asserting short-circuit behavior.
    """

    def __init__(self, contents: Mapping[str, bytes | str] | None = None) -> None:
        """Initialize from a mapping of locator to bytes or text."""
        self._contents: dict[str, bytes] = {
            key: value.encode("utf-8") if isinstance(value, str) else value
            for key, value in (contents or {}).items()
        }
        self.exists_calls: list[str] = []
        self.fetch_calls: list[str] = []

    def exists(self, locator: str) -> bool:
        self.exists_calls.append(locator)
        return locator in self._contents

    def fetch(self, locator: str) -> bytes:
        self.fetch_calls.append(locator)
        try:
            return self._contents[locator]
        except KeyError:
            raise FileNotFoundError(f"No content stored for {locator}") from None
