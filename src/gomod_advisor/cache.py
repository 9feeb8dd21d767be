"""Cached, concurrent resolution of module versions."""

from __future__ import annotations

import logging
import time
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from threading import Event, Lock
from typing import TYPE_CHECKING, Generic, Protocol, Self, TypeVar

from tqdm import tqdm

from .models import VersionUpdate
from .versions import is_newer, sort_newest_first

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from .sources import VersionSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL = 5 * 60.0


class Requirement(Protocol):
    """Anything with a module path and a declared version."""

    path: str
    version: str


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A resolved value and the time at which it was fetched."""

    value: T
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def is_expired(self, ttl: float, now: float) -> bool:
        return self.age(now) > ttl


class VersionResolutionCache:
    """Resolves the latest and available versions of modules.

    Sources are queried in order; the first one with a usable answer wins.
    "No answer from any source" is cached like any other result so that
    repeated misses do not hit the network within the TTL.

    The cache maps are guarded by an internal lock, so the resolver can be
    shared between threads without external locking.
    """

    def __init__(
        self,
        sources: Iterable[VersionSource],
        ttl: float = DEFAULT_TTL,
        max_workers: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        progress: bool = False,  # noqa: FBT001, FBT002
    ) -> None:
        """Initialize the resolver.

        Args:
            sources: Version sources, in fallback order
            ttl: Seconds a resolved value stays valid
            max_workers: Size of the worker pool used by :meth:`check_updates`
            clock: Monotonic time function (injectable for testing)
            progress: Show a progress bar during bulk checks

        """
        self.sources: tuple[VersionSource, ...] = tuple(sources)
        self.ttl = ttl
        self.max_workers = max_workers
        self.clock = clock
        self.progress = progress
        self._latest: dict[str, CacheEntry[str | None]] = {}
        self._versions: dict[str, CacheEntry[tuple[str, ...]]] = {}
        self._lock = Lock()
        self._cancelled = Event()
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: object) -> None:
        """Exit context manager."""
        self.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._latest) + len(self._versions)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _lookup(self, table: dict[str, CacheEntry[T]], key: str) -> CacheEntry[T] | None:
        with self._lock:
            entry = table.get(key)
        if entry is None or entry.is_expired(self.ttl, self.clock()):
            return None
        return entry

    def _store(self, table: dict[str, CacheEntry[T]], key: str, value: T) -> None:
        if self.cancelled:
            return
        entry = CacheEntry(value=value, fetched_at=self.clock())
        with self._lock:
            table[key] = entry

    def _query(self, module_path: str, what: str, ask: Callable[[VersionSource], T | None]) -> T | None:
        for source in self.sources:
            if self.cancelled:
                raise CancelledError
            if not source.applies_to(module_path):
                continue
            try:
                result = ask(source)
            except Exception as e:  # noqa: BLE001
                logger.debug("%s failed to resolve the %s of %s: %s", source.name, what, module_path, e)
                continue
            if result:
                logger.debug("Resolved the %s of %s using %s", what, module_path, source.name)
                return result
        logger.debug("No source could resolve the %s of %s", what, module_path)
        return None

    def resolve_latest(self, module_path: str) -> str | None:
        """Return the latest version of ``module_path``, or None if no source knows it."""
        cached = self._lookup(self._latest, module_path)
        if cached is not None:
            return cached.value
        latest = self._query(module_path, "latest version", lambda source: source.latest_version(module_path))
        self._store(self._latest, module_path, latest)
        return latest

    def resolve_all_versions(self, module_path: str) -> list[str]:
        """Return every known version of ``module_path``, newest first."""
        cached = self._lookup(self._versions, module_path)
        if cached is not None:
            return list(cached.value)
        versions = self._query(module_path, "versions", lambda source: source.versions(module_path))
        ordered = tuple(sort_newest_first(versions or ()))
        self._store(self._versions, module_path, ordered)
        return list(ordered)

    def check_update(self, dependency: Requirement) -> VersionUpdate:
        latest = self.resolve_latest(dependency.path)
        return VersionUpdate(
            path=dependency.path,
            current_version=dependency.version,
            latest_version=latest,
            has_update=latest is not None and is_newer(latest, dependency.version),
        )

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="gomod-advisor")
            return self._executor

    def check_updates(self, dependencies: Sequence[Requirement]) -> list[VersionUpdate]:
        """Check every dependency concurrently.

        The result is in the same order as ``dependencies`` regardless of the
        order in which the individual checks complete.
        """
        if not dependencies:
            return []
        if self.cancelled:
            raise CancelledError
        executor = self._pool()
        futures: list[Future[VersionUpdate]] = [executor.submit(self.check_update, dep) for dep in dependencies]
        with tqdm(
            total=len(futures),
            desc="Checking for updates",
            leave=False,
            unit=" modules",
            disable=not self.progress,
        ) as t:
            for _ in as_completed(futures):
                t.update(1)
        return [future.result() for future in futures]

    def clear(self) -> None:
        """Drop every cached entry."""
        with self._lock:
            self._latest.clear()
            self._versions.clear()

    def sweep(self) -> int:
        """Remove entries older than the TTL and return how many were removed."""
        now = self.clock()
        removed = 0
        with self._lock:
            for table in (self._latest, self._versions):
                for key in [k for k, entry in table.items() if entry.is_expired(self.ttl, now)]:
                    del table[key]
                    removed += 1
        if removed:
            logger.debug("Swept %d expired version cache entries", removed)
        return removed

    def cancel(self) -> None:
        """Abandon all in-flight and pending resolutions.

        Pending tasks are cancelled; running tasks finish their current
        request but do not write their result to the cache. A cancelled
        resolver stays cancelled.
        """
        self._cancelled.set()
        with self._lock:
            executor = self._executor
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    def close(self) -> None:
        """Cancel outstanding work and release the sources' resources."""
        self.cancel()
        for source in self.sources:
            source.close()
