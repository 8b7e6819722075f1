"""Content-addressed memoization of synthesized chunks."""

import threading
from dataclasses import dataclass
from typing import Callable

import structlog

from .chunks import VoxelGrid, grid_to_bytes
from .exceptions import GenerationError
from .terrain.params import GenerationParams
from .terrain.generator import synthesize
from .terrain.seeding import hash32

logger = structlog.get_logger()


@dataclass
class CacheStats:
    """Hit/miss counters for a ChunkCache."""

    hits: int = 0
    misses: int = 0

    @property
    def total_lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.total_lookups == 0:
            return 0.0
        return (self.hits / self.total_lookups) * 100.0

    def __repr__(self) -> str:
        return f"{self.hits} hits, {self.misses} misses ({self.hit_rate:.1f}% hit rate)"


def make_etag(params: GenerationParams) -> str:
    """Validator for a chunk: short hash of the canonical key plus the size."""
    return f'W/"{hash32(params.canonical_key()):x}-{params.size}"'


class ChunkCache:
    """Memoizes chunk bytes by canonical parameter key.

    Keys are derived from every generation input and outputs are immutable,
    so entries never go stale; purge() exists only to reclaim memory.
    """

    def __init__(self, generate: Callable[[GenerationParams], VoxelGrid] = synthesize) -> None:
        self._generate = generate
        self._entries: dict[str, bytes] = {}
        self._lock = threading.Lock()
        self.stats = CacheStats()

    def get(self, params: GenerationParams) -> bytes:
        """Return the chunk bytes for params, synthesizing on first request.

        Raises:
            GenerationError: If synthesis raises.
        """
        key = params.canonical_key()
        with self._lock:
            data = self._entries.get(key)
            if data is not None:
                self.stats.hits += 1
                return data
            self.stats.misses += 1

        try:
            data = grid_to_bytes(self._generate(params))
        except Exception as e:
            logger.error("chunk_generation_failed", key=key, error=str(e))
            raise GenerationError(str(e)) from e

        with self._lock:
            # Another thread may have produced the same (identical) bytes first
            data = self._entries.setdefault(key, data)
        logger.debug("chunk_cached", key=key, size=params.size, bytes=len(data))
        return data

    def etag(self, params: GenerationParams) -> str:
        """Validator for params, computable without generating the chunk."""
        return make_etag(params)

    def purge(self) -> None:
        """Drop every cached entry and reset stats."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self.stats = CacheStats()
        logger.info("chunk_cache_purged", entries=count)

    def __contains__(self, params: object) -> bool:
        if not isinstance(params, GenerationParams):
            return False
        return params.canonical_key() in self._entries

    def __len__(self) -> int:
        return len(self._entries)
