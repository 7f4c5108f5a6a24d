"""
Cache host - the cache-clearing operations of one worker process.

The four ``clear_*`` methods are what the IPCM listener calls when a sibling
asks for invalidation. ``invalidate_cache`` / ``invalidate_templates`` are
what application code calls: they clear locally, then broadcast the same
operation to every sibling.
"""

from typing import TYPE_CHECKING, Any, Callable, Hashable, Optional

from cachecast.core.logging import get_logger
from cachecast.services.cache.pools import CachePool, TemplatePool
from cachecast.services.ipcm.commands import Operation
from cachecast.services.ipcm.results import BroadcastOutcome, BroadcastReport

if TYPE_CHECKING:
    from cachecast.services.ipcm.manager import InterProcessCacheManager

logger = get_logger(__name__)


class CacheHost:
    def __init__(self, values: CachePool, templates: TemplatePool):
        self.values = values
        self.templates = templates
        self._manager: Optional["InterProcessCacheManager"] = None

    def attach(self, manager: "InterProcessCacheManager") -> None:
        self._manager = manager

    # -- operations applied on behalf of sibling workers ----------------------

    def clear_all_cache(self, *_: Any) -> None:
        self.values.clear()

    def clear_cache_matching(self, *patterns: Any) -> None:
        if not patterns:
            self.values.clear()
            return
        self.values.clear_matching(*patterns)

    def clear_all_compiled_templates(self, *_: Any) -> None:
        self.templates.clear()

    def clear_compiled_templates_matching(self, *keys: Any) -> None:
        if not keys:
            self.templates.clear()
            return
        self.templates.clear_matching(*keys)

    # -- application entry points ---------------------------------------------

    def cache(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        return self.values.fetch(key, factory)

    def apply(self, operation: Operation, *arguments: Any) -> None:
        """Run ``operation`` on this worker only."""
        getattr(self, operation.value)(*arguments)

    def propagate(self, operation: Operation, *arguments: Any) -> BroadcastReport:
        """Run ``operation`` here, then ask every sibling to run it too."""
        self.apply(operation, *arguments)
        if self._manager is None:
            return BroadcastReport(BroadcastOutcome.DISABLED)
        return self._manager.trigger(operation, *arguments)

    def invalidate_cache(self, *keys: Any) -> BroadcastReport:
        """Drop ``keys`` (or everything) from the value cache on every worker."""
        if keys:
            return self.propagate(Operation.CLEAR_CACHE_MATCHING, *keys)
        return self.propagate(Operation.CLEAR_ALL_CACHE)

    def invalidate_templates(self, *keys: Any) -> BroadcastReport:
        """Drop templates compiled under ``keys`` (or all) on every worker."""
        if keys:
            return self.propagate(Operation.CLEAR_COMPILED_TEMPLATES_MATCHING, *keys)
        return self.propagate(Operation.CLEAR_ALL_COMPILED_TEMPLATES)
