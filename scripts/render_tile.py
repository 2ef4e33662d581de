#!/usr/bin/env python3
"""Render heatmap tiles from an activities file to PNG.

Usage:
    # One tile
    python scripts/render_tile.py --activities activities.yaml --tile 12/2048/1361 --output tile.png

    # Several tiles, output path templated by address
    python scripts/render_tile.py --activities activities.yaml \
        --tile 12/2048/1361 --tile 12/2049/1361 \
        --output tiles/{z}/{x}/{y}.png

    # Custom options, only runs in 2024
    python scripts/render_tile.py --activities activities.yaml --tile 5/16/10 \
        --config configs/rendering.v1.yaml \
        --start-date 2024-01-01 --end-date 2024-12-31 --sport-type Run \
        --output run_2024.png

Exit codes:
    0: all tiles written
    1: a tile failed (bad address, invalid config, malformed paths)
    2: bad command line
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Tuple

from src.heatmap.producer import HeatmapProducer
from src.heatmap.sources import InMemoryPathSource, PathFilter
from src.utils import fs, logging_config, profiler, validators
from src.utils.errors import HeatmapError

logger = logging.getLogger(__name__)


def parse_tile(value: str) -> Tuple[int, int, int]:
    """Parse "Z/X/Y" into (x, y, z)."""
    parts = value.split('/')
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"Tile must be Z/X/Y, got '{value}'")
    try:
        z, x, y = (int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Tile must be Z/X/Y integers, got '{value}'")
    return x, y, z


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Date must be YYYY-MM-DD, got '{value}'")


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render heatmap tiles from GPS activities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--activities',
        type=str,
        required=True,
        help='Path to activities.v1 YAML file'
    )
    parser.add_argument(
        '--tile',
        type=parse_tile,
        action='append',
        required=True,
        help='Tile address Z/X/Y (repeatable)'
    )
    parser.add_argument(
        '--output',
        type=str,
        required=True,
        help='Output PNG path; may contain {z}, {x}, {y} placeholders'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Rendering config (rendering.v1 YAML), default: built-in options'
    )

    # Filter
    parser.add_argument('--start-date', type=parse_date, default=None, help='First day included (YYYY-MM-DD)')
    parser.add_argument('--end-date', type=parse_date, default=None, help='Last day included (YYYY-MM-DD)')
    parser.add_argument(
        '--sport-type',
        type=str,
        action='append',
        default=None,
        help='Only activities of this sport type (repeatable)'
    )

    # Logging
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')
    parser.add_argument('--log-json', action='store_true', help='Log JSON lines instead of text')

    return parser.parse_args(argv)


def output_path_for(template: str, x: int, y: int, z: int) -> Path:
    return Path(template.format(z=z, x=x, y=y))


async def render_all(
    producer: HeatmapProducer,
    tiles: List[Tuple[int, int, int]],
    template: str,
    options: validators.RenderingOptions,
    path_filter: PathFilter,
    timings: profiler.TimerAccumulator
) -> None:
    for x, y, z in tiles:
        with logging_config.log_context(tile=f"{z}/{x}/{y}"):
            with profiler.timer("tile", sink=timings.add):
                bitmap = await producer.render_tile_array(x, y, z, options, path_filter)
            path = output_path_for(template, x, y, z)
            fs.atomic_save_image(bitmap, path)
            logger.info(f"Saved tile: {path} ({int((bitmap[..., 3] > 0).sum())} visible pixels)")


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    log_level = "DEBUG" if args.verbose else "INFO"
    logging_config.setup_logging(
        log_level=log_level,
        json=args.log_json,
        quiet_libs=["PIL"],
        context={"app": "render_tile"}
    )
    logging_config.install_excepthook()

    if len(args.tile) > 1 and args.output == args.output.format(z=0, x=0, y=0):
        logger.error("Several tiles need an --output template with {z}, {x} and {y}")
        return 2

    try:
        if args.config:
            logger.info(f"Loading rendering config from: {args.config}")
            options = validators.load_rendering_config(args.config)
        else:
            options = validators.resolve_rendering_options(None)

        source = InMemoryPathSource.from_yaml(args.activities)
        path_filter = PathFilter(
            start_date=args.start_date,
            end_date=args.end_date,
            sport_types=tuple(args.sport_type) if args.sport_type else None,
        )

        timings = profiler.TimerAccumulator()
        producer = HeatmapProducer(source)
        asyncio.run(render_all(producer, args.tile, args.output, options, path_filter, timings))
    except (HeatmapError, FileNotFoundError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    summary = timings.summary().get('tile')
    if summary:
        logger.info(
            f"Rendered {summary['count']} tile(s) in {summary['total']:.3f}s "
            f"(mean {summary['mean']:.3f}s)"
        )
    return 0


if __name__ == '__main__':
    sys.exit(main())
