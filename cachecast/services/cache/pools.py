"""
In-memory caches owned by each worker process.

CachePool holds computed values, TemplatePool holds compiled Jinja2
templates. Neither is shared between workers; sibling workers are kept in
step through the inter-process cache manager.

Both use re-entrant locks: the IPCM listener may clear a pool from a signal
handler running on the same thread that is in the middle of filling it.
"""

import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, Template

from cachecast.core.logging import get_logger

logger = get_logger(__name__)

_MISSING = object()


def key_matches(key: Hashable, pattern: Any) -> bool:
    """A pattern matches a key it equals, or a string key it prefixes."""
    if key == pattern:
        return True
    return isinstance(key, str) and isinstance(pattern, str) and key.startswith(pattern)


class CachePool:
    """Thread-safe key/value cache for computed values."""

    def __init__(self):
        self._data: Dict[Hashable, Any] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._data

    def get(self, key: Hashable, default: Any = None) -> Any:
        return self._data.get(key, default)

    def fetch(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, computing it once if missing."""
        value = self._data.get(key, _MISSING)
        if value is not _MISSING:
            return value
        with self._lock:
            value = self._data.get(key, _MISSING)
            if value is _MISSING:
                value = factory()
                self._data[key] = value
            return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
        logger.debug("Value cache cleared")

    def clear_matching(self, *patterns: Any) -> int:
        """Drop every key matched by one of ``patterns``. Returns how many."""
        with self._lock:
            # Matching can run user __eq__, which may clear the pool under us
            doomed = [
                k for k in list(self._data) if any(key_matches(k, p) for p in patterns)
            ]
            dropped = sum(
                1 for k in doomed if self._data.pop(k, _MISSING) is not _MISSING
            )
        logger.debug("Value cache: dropped %d key(s) matching %r", dropped, patterns)
        return dropped


class TemplatePool:
    """
    Compiled templates keyed by ``(key, path)``.

    The key is the caller's handle for a group of templates; clearing by key
    drops every template compiled under it, whatever its path.
    """

    def __init__(self, directory: str, environment: Optional[Environment] = None):
        self.environment = environment or Environment(
            loader=FileSystemLoader(directory), autoescape=True
        )
        self._compiled: Dict[Tuple[Hashable, str], Template] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._compiled)

    def __contains__(self, item: Tuple[Hashable, str]) -> bool:
        return item in self._compiled

    def compile(self, key: Hashable, path: str) -> Template:
        with self._lock:
            template = self._compiled.get((key, path))
            if template is None:
                template = self.environment.get_template(path)
                self._compiled[(key, path)] = template
                logger.debug("Compiled template %s under %r", path, key)
            return template

    def render(self, key: Hashable, path: str, **context: Any) -> str:
        return self.compile(key, path).render(**context)

    def clear(self) -> None:
        with self._lock:
            self._compiled.clear()
            # Jinja keeps its own cache of loaded templates
            if self.environment.cache is not None:
                self.environment.cache.clear()
        logger.debug("Compiled templates cleared")

    def clear_matching(self, *keys: Hashable) -> int:
        """Drop every template compiled under one of ``keys``. Returns how many."""
        with self._lock:
            doomed = [item for item in list(self._compiled) if item[0] in keys]
            dropped = sum(
                1 for item in doomed if self._compiled.pop(item, None) is not None
            )
            if dropped and self.environment.cache is not None:
                self.environment.cache.clear()
        logger.debug("Compiled templates: dropped %d matching %r", dropped, keys)
        return dropped
