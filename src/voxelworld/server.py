"""HTTP chunk endpoint.

GET /api/chunk returns the raw voxel grid for a parameter set, with
long-lived cache headers and ETag-based conditional requests.
"""

import math
from collections.abc import Mapping

import structlog
from flask import Flask, Response, jsonify, request

from .blocks import Block
from .cache import ChunkCache
from .terrain.params import GenerationParams

logger = structlog.get_logger()

# Default ports
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

ONE_YEAR = 31536000
CACHE_CONTROL = f"public, max-age={ONE_YEAR}, s-maxage={ONE_YEAR}, immutable"

_DEFAULTS = GenerationParams()


def _int_arg(args: Mapping[str, str], name: str, default: int) -> int:
    raw = args.get(name)
    if raw is None:
        return default
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return default
    # Wrap to signed 32 bits so huge coordinates stay in range
    return ((value + 2 ** 31) % 2 ** 32) - 2 ** 31


def _float_arg(args: Mapping[str, str], name: str, default: float) -> float:
    raw = args.get(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    return value


def parse_params(args: Mapping[str, str]) -> GenerationParams:
    """Build generation params from query arguments.

    Missing, unparseable or non-finite values take their defaults; integers
    wrap to signed 32 bits and out-of-range size and block ids are clamped.
    Never raises for bad input.
    """
    return GenerationParams(
        size=_int_arg(args, "size", _DEFAULTS.size),
        seed=str(args.get("seed", _DEFAULTS.seed)),
        base_block=_int_arg(args, "base", int(Block.STONE)),
        cx=_int_arg(args, "cx", 0),
        cy=_int_arg(args, "cy", 0),
        cz=_int_arg(args, "cz", 0),
        surface_scale=_float_arg(args, "surfaceScale", _DEFAULTS.surface_scale),
        caves_scale=_float_arg(args, "cavesScale", _DEFAULTS.caves_scale),
        caves_threshold=_float_arg(args, "cavesThreshold", _DEFAULTS.caves_threshold),
        grass_depth=_int_arg(args, "grassDepth", _DEFAULTS.grass_depth),
        dirt_depth=_int_arg(args, "dirtDepth", _DEFAULTS.dirt_depth),
    )


def create_app(cache: ChunkCache | None = None) -> Flask:
    """Create the Flask app serving /api/chunk from a ChunkCache."""
    app = Flask(__name__)
    chunk_cache = cache if cache is not None else ChunkCache()
    app.extensions["chunk_cache"] = chunk_cache

    @app.get("/api/chunk")
    def get_chunk() -> Response | tuple[Response, int]:
        try:
            params = parse_params(request.args)
            etag = chunk_cache.etag(params)

            if request.headers.get("If-None-Match") == etag:
                logger.debug("chunk_not_modified", etag=etag)
                return Response(
                    status=304,
                    headers={"Cache-Control": CACHE_CONTROL, "ETag": etag},
                )

            data = chunk_cache.get(params)
            logger.debug(
                "chunk_served",
                cx=params.cx,
                cy=params.cy,
                cz=params.cz,
                size=params.size,
                stats=str(chunk_cache.stats),
            )
            return Response(
                data,
                status=200,
                headers={
                    "Content-Type": "application/octet-stream",
                    "Cache-Control": CACHE_CONTROL,
                    "ETag": etag,
                    "X-Chunk-Size": str(params.size),
                },
            )
        except Exception as e:
            logger.exception("chunk_request_failed", error=str(e))
            return jsonify({"error": str(e) or "error"}), 500

    return app


def run_server(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    cache: ChunkCache | None = None,
) -> None:
    """Serve the chunk endpoint until interrupted."""
    app = create_app(cache)
    logger.info("chunk_server_starting", host=host, port=port)
    app.run(host=host, port=port, threaded=True)
