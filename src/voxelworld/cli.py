"""Command-line interface: serve chunks, generate one chunk, or stream a walk."""

import argparse
import asyncio
import logging
import time
from pathlib import Path

import structlog

from .config import Config, find_config, load_config


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    # Terrain generation logs through stdlib logging
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def _load(args: argparse.Namespace) -> Config:
    logger = structlog.get_logger()
    if not args.config:
        return Config()
    try:
        config_path = find_config(args.config)
    except FileNotFoundError:
        logger.error("config_not_found", path=args.config)
        raise SystemExit(1)
    config = load_config(config_path)
    logger.info("config_loaded", path=str(config_path))
    return config


def _cmd_serve(args: argparse.Namespace, config: Config) -> None:
    from .server import run_server

    host = args.host or config.server.host
    port = args.port or config.server.port
    run_server(host=host, port=port)


def _cmd_generate(args: argparse.Namespace, config: Config) -> None:
    from .cache import make_etag
    from .chunks import grid_to_bytes
    from .instancing import count_blocks
    from .terrain import synthesize

    template = config.generation_template()
    overrides = {
        "size": args.size,
        "seed": args.seed,
        "cx": args.cx,
        "cy": args.cy,
        "cz": args.cz,
        "grass_depth": args.grass_depth,
        "dirt_depth": args.dirt_depth,
    }
    data = template.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    params = type(template).model_validate(data)

    start_time = time.time()
    grid = synthesize(params)
    gen_time = time.time() - start_time

    print(f"Chunk ({params.cx},{params.cy},{params.cz}) size {params.size} seed {params.seed!r}")
    print(f"ETag: {make_etag(params)}")
    for block, count in count_blocks(grid, params.size).items():
        if count:
            print(f"  {block.name.lower():<14} {count}")
    print(f"Generated in {gen_time * 1000:.1f} ms")

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(grid_to_bytes(grid))
        print(f"Saved to {output_path}")


async def _explore(args: argparse.Namespace, config: Config) -> None:
    from .blocks import create_default_registry
    from .client import ChunkClient
    from .lifecycle import ChunkLifecycleManager

    logger = structlog.get_logger()
    client = None
    if not args.offline:
        client = ChunkClient(
            args.server or config.client.base_url,
            timeout_s=config.client.timeout_s,
            cache_mode=config.client.cache_mode,
            max_cached=config.client.max_cached,
        )

    manager = ChunkLifecycleManager(
        config.generation_template(),
        create_default_registry(),
        acquire=client.fetch if client else None,
        view_radius=config.world.view_radius,
    )

    x, _, z = config.world.initial_position
    try:
        for step in range(args.steps):
            if manager.update_anchor(x, z):
                logger.info(
                    "anchor_changed",
                    step=step,
                    anchor=manager.anchor,
                    loaded=len(manager.store.loaded()),
                    in_flight=len(manager.store.in_flight()),
                )
            x += args.speed
            z -= args.speed / 2
            await asyncio.sleep(0)
        await manager.wait_idle()
        if manager.anchor is not None:
            manager.prune(*manager.anchor)
        logger.info(
            "explore_finished",
            loaded=len(manager.world),
            instances=manager.world.total_instances,
            fallbacks=sum(1 for d in manager.world.children.values() if d.fallback),
            acquisitions=manager.acquisitions,
        )
    finally:
        await manager.close()
        if client is not None:
            await client.aclose()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="voxelworld",
        description="Procedural voxel terrain: chunk server and streaming tools",
    )
    parser.add_argument("--config", type=str, help="Path or name of TOML config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP chunk endpoint")
    serve.add_argument("--host", type=str, default=None, help="Bind address (overrides config)")
    serve.add_argument("--port", type=int, default=None, help="Port (overrides config)")

    generate = sub.add_parser("generate", help="Synthesize one chunk and print block counts")
    generate.add_argument("--size", type=int, default=None, help="Chunk size (4-128)")
    generate.add_argument("--seed", type=str, default=None, help="World seed")
    generate.add_argument("--cx", type=int, default=None)
    generate.add_argument("--cy", type=int, default=None)
    generate.add_argument("--cz", type=int, default=None)
    generate.add_argument("--grass-depth", type=int, default=None)
    generate.add_argument("--dirt-depth", type=int, default=None)
    generate.add_argument("--output", "-o", type=str, default=None, help="Write raw grid bytes here")

    explore = sub.add_parser("explore", help="Stream chunks along a headless walk")
    explore.add_argument("--server", type=str, default=None, help="Chunk server URL (overrides config)")
    explore.add_argument("--offline", action="store_true", help="Synthesize locally, no server")
    explore.add_argument("--steps", type=int, default=200, help="Number of movement steps")
    explore.add_argument("--speed", type=float, default=2.0, help="World units moved per step")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    config = _load(args)

    if args.command == "serve":
        _cmd_serve(args, config)
    elif args.command == "generate":
        _cmd_generate(args, config)
    elif args.command == "explore":
        asyncio.run(_explore(args, config))
    else:  # pragma: no cover
        parser.error(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
