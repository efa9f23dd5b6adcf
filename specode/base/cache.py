import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional

from .. import config
from .errors import CompilationError

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    compilations: int = 0


class CompilationCache:
    """Thread-safe store of compiled entry points keyed by strategy key.

    ``get_or_compile`` runs ``build`` at most once per key. Concurrent
    callers asking for a key that is being compiled wait for the in-flight
    result instead of compiling it again. Failed builds are not cached.
    ``warn_threshold`` defaults to
    ``specode.config.FULL_SPECIALIZATION_WARN_THRESHOLD``.
    """

    def __init__(self, name: str, warn_threshold: Optional[int] = None):
        self.name = name
        self.warn_threshold = warn_threshold
        self.stats = CacheStats()
        self._units: Dict[Hashable, Any] = {}
        self._inflight: Dict[Hashable, Future] = {}
        self._lock = threading.Lock()
        self._warned = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._units)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._units

    def keys(self) -> List[Hashable]:
        with self._lock:
            return list(self._units)

    def clear(self) -> None:
        with self._lock:
            self._units.clear()
            self.stats = CacheStats()
            self._warned = False

    def get_or_compile(self, key: Hashable, build: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._units:
                self.stats.hits += 1
                return self._units[key]
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future
                self.stats.misses += 1
            else:
                self.stats.hits += 1

        if not owner:
            return future.result()

        try:
            logger.debug("[%s] compiling entry point for %r", self.name, key)
            unit = build()
        except Exception as exc:
            err = CompilationError(
                f"[{self.name}] failed to compile entry point for {key!r}: {exc}"
            )
            err.__cause__ = exc
            self._abandon(key, future, err)
            raise err
        except BaseException as exc:
            err = CompilationError(
                f"[{self.name}] compilation of {key!r} was interrupted"
            )
            err.__cause__ = exc
            self._abandon(key, future, err)
            raise

        with self._lock:
            self._units[key] = unit
            del self._inflight[key]
            self.stats.compilations += 1
            n_specialized = sum(
                1
                for k in self._units
                if isinstance(k, tuple) and k[:1] == ("specialized",)
            )
            threshold = self.warn_threshold
            if threshold is None:
                threshold = config.FULL_SPECIALIZATION_WARN_THRESHOLD
            warn = (
                threshold > 0
                and not self._warned
                and n_specialized > threshold
            )
            if warn:
                self._warned = True
        future.set_result(unit)

        if warn:
            logger.warning(
                "[%s] %d fully specialized entry points compiled. Constructing "
                "problems with new callbacks under policy 'full' recompiles the "
                "solver each time; use 'auto' or 'none' unless one callback is "
                "reused across many solves.",
                self.name,
                n_specialized,
            )
        return unit

    def _abandon(self, key: Hashable, future: Future, err: BaseException) -> None:
        # Waiters get the error; the next caller compiles again.
        with self._lock:
            del self._inflight[key]
        future.set_exception(err)


__all__ = [
    "CacheStats",
    "CompilationCache",
]
