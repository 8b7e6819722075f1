"""Async HTTP transport for acquiring chunks from the chunk endpoint."""

from collections import OrderedDict

import httpx
import structlog

from .exceptions import ChunkFetchError
from .terrain.params import GenerationParams, format_number

logger = structlog.get_logger()

CHUNK_PATH = "/api/chunk"

FORCE_CACHE = "force-cache"
NO_CACHE = "no-cache"

DEFAULT_MAX_CACHED = 1024


def build_query(params: GenerationParams) -> dict[str, str]:
    """Query arguments understood by the chunk endpoint."""
    return {
        "size": str(params.size),
        "seed": params.seed,
        "base": str(int(params.base_block)),
        "cx": str(params.cx),
        "cy": str(params.cy),
        "cz": str(params.cz),
        "surfaceScale": format_number(params.surface_scale),
        "cavesScale": format_number(params.caves_scale),
        "cavesThreshold": format_number(params.caves_threshold),
        "grassDepth": str(params.grass_depth),
        "dirtDepth": str(params.dirt_depth),
    }


class ChunkClient:
    """Fetches chunk bytes over HTTP.

    In force-cache mode a body fetched once is returned for the same query
    without touching the network. Both modes send If-None-Match when an
    ETag is known and reuse the stored body on 304. At most `max_cached`
    bodies are kept; the least recently used one is evicted first.

    Timeouts and connection errors surface as ChunkFetchError like any
    non-success status.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 5.0,
        cache_mode: str = FORCE_CACHE,
        transport: httpx.AsyncBaseTransport | None = None,
        max_cached: int = DEFAULT_MAX_CACHED,
    ):
        if cache_mode not in (FORCE_CACHE, NO_CACHE):
            raise ValueError(f"Unknown cache mode: {cache_mode!r}")
        if max_cached <= 0:
            raise ValueError("max_cached must be a positive integer.")
        self.base_url = base_url
        self.cache_mode = cache_mode
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            transport=transport,
        )
        self.max_cached = max_cached
        # query -> (body, etag), oldest first
        self._entries: OrderedDict[str, tuple[bytes, str | None]] = OrderedDict()
        self.requests_sent = 0

    async def fetch(self, params: GenerationParams) -> bytes:
        """Acquire the grid bytes for params.

        Raises:
            ChunkFetchError: On transport failure, non-success status or a
                body whose length is not size**3.
        """
        query = build_query(params)
        cache_key = str(httpx.QueryParams(query))

        cached = self._entries.get(cache_key)
        if cached is not None:
            self._entries.move_to_end(cache_key)
            if self.cache_mode == FORCE_CACHE:
                return cached[0]

        headers = {}
        if cached is not None and cached[1] is not None:
            headers["If-None-Match"] = cached[1]

        self.requests_sent += 1
        try:
            response = await self._client.get(CHUNK_PATH, params=query, headers=headers)
        except httpx.HTTPError as e:
            raise ChunkFetchError(f"Chunk request failed: {e}") from e

        if response.status_code == 304 and cached is not None:
            return cached[0]
        if not response.is_success:
            raise ChunkFetchError(f"HTTP {response.status_code}", status=response.status_code)

        body = response.content
        expected = params.size ** 3
        if len(body) != expected:
            raise ChunkFetchError(
                f"Chunk body has {len(body)} bytes, expected {expected}",
                status=response.status_code,
            )

        self._store(cache_key, body, response.headers.get("ETag"))
        logger.debug("chunk_fetched", cx=params.cx, cz=params.cz, bytes=len(body))
        return body

    def _store(self, cache_key: str, body: bytes, etag: str | None) -> None:
        self._entries[cache_key] = (body, etag)
        self._entries.move_to_end(cache_key)
        while len(self._entries) > self.max_cached:
            self._entries.popitem(last=False)

    @property
    def cached_count(self) -> int:
        """Number of chunk bodies currently held."""
        return len(self._entries)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ChunkClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
