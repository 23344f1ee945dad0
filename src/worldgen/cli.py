"""Command-line interface for world generation diagnostics."""

import argparse
import logging
import time
from collections import Counter
from pathlib import Path

import structlog
from pydantic import ValidationError


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog console output."""
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a procedural biome world and print a summary"
    )
    parser.add_argument(
        "--width", type=int, default=256, help="World width (default: 256)"
    )
    parser.add_argument(
        "--height", type=int, default=256, help="World height (default: 256)"
    )
    parser.add_argument(
        "--seed", type=int, default=42, help="Random seed (default: 42)"
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Path to a TOML config file"
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Worker threads (overrides config)"
    )
    parser.add_argument(
        "--min-area",
        type=int,
        default=None,
        help="Minimum region size (overrides config)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for world generation."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from .biomes import Biome
    from .config import GenerationConfig, load_config
    from .exceptions import WorldGenError
    from .generator import WorldGenerator

    try:
        if args.config:
            config_path = Path(args.config)
            if not config_path.exists():
                logger.error("config_not_found", path=args.config)
                return 1
            config = load_config(config_path)
            logger.info("config_loaded", path=str(config_path))
        else:
            config = GenerationConfig()

        # Rebuild so command-line overrides are validated like file values
        data = config.model_dump()
        if args.workers is not None:
            data["workers"] = args.workers
        if args.min_area is not None:
            data["regions"]["min_area"] = args.min_area
        config = GenerationConfig.model_validate(data)
    except ValidationError as e:
        logger.error("invalid_config", error=str(e))
        return 1

    start_time = time.time()
    try:
        world = WorldGenerator(args.width, args.height, args.seed, config)
    except WorldGenError as e:
        logger.error("generation_failed", error=str(e))
        return 1
    gen_time = time.time() - start_time

    print(f"Generated {world.width}x{world.height} world with seed {world.seed}")
    print(f"Generation complete in {gen_time:.1f}s")
    print()

    total = world.width * world.height
    counts = Counter(int(code) for code in world.biome_map.ravel())
    region_counts = Counter(region.biome for region in world.regions)
    print(f"{'biome':<18} {'cells':>8} {'share':>7} {'regions':>8}")
    for biome in Biome:
        cells = counts.get(int(biome), 0)
        if not cells:
            continue
        print(
            f"{biome.name.lower():<18} {cells:>8,} {cells / total:>7.1%} "
            f"{region_counts.get(biome, 0):>8}"
        )
    print()
    print(f"Rivers traced: {len(world.rivers)}")
    print(f"Regions: {len(world.regions)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
