"""
Command line entry point for rendering scenes.
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .bvh import BVHConstructionError, BVHNode
from .renderer import MAX_DEPTH, Renderer, RenderSettings, save_image
from .scene_parser import SceneParseError, SceneParser
from .scenes import SCENES, build_world, load_demo_scene

logger = logging.getLogger('lumenforge')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='lumenforge',
        description='lumenforge - a Monte-Carlo path tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  lumenforge --scene cornell_box --samples 100 > cornell.ppm
  lumenforge --scene random --width 400 --height 225 --output random.png
  lumenforge --scene-file scene.yaml --seed 7 --output scene.png
        '''
    )

    parser.add_argument('--scene', type=str, default='final', choices=sorted(SCENES),
                        help='Demo scene to render (default: final)')
    parser.add_argument('--scene-file', type=Path, default=None,
                        help='JSON or YAML scene description; overrides --scene')
    parser.add_argument('--width', type=int, default=None, help='Image width (default: 500)')
    parser.add_argument('--height', type=int, default=None, help='Image height (default: 500)')
    parser.add_argument('--samples', type=int, default=None,
                        help='Samples per pixel (default: 200)')
    parser.add_argument('--depth', type=int, default=None,
                        help=f'Max bounce depth (default: {MAX_DEPTH})')
    parser.add_argument('--threads', type=int, default=None, help='Number of threads (0=auto)')
    parser.add_argument('--tile-size', type=int, default=None, help='Tile edge in pixels (default: 32)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for scene generation and sampling (default: OS entropy)')
    parser.add_argument('--background', action=argparse.BooleanOptionalAction, default=None,
                        help="Sky gradient behind the scene (default: the scene's choice)")
    parser.add_argument('--output', type=str, default='-',
                        help="Output file, .ppm/.png/.jpg; '-' writes PPM to stdout (default)")
    parser.add_argument('--earth-image', type=Path, default=None,
                        help='Image for the textured sphere of the final scene')
    parser.add_argument('--list-scenes', action='store_true', help='List demo scenes and exit')

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Warnings and errors only')

    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr
    )


def _render_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Command line values that replace scene or default render settings."""
    flags = {
        'width': args.width,
        'height': args.height,
        'samples': args.samples,
        'max_depth': args.depth,
        'threads': args.threads,
        'tile_size': args.tile_size,
        'seed': args.seed,
        'background': args.background,
    }
    return {key: value for key, value in flags.items() if value is not None}


def _progress_printer():
    last_progress = [0]

    def progress_callback(progress: float) -> None:
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '#' * filled + '-' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', file=sys.stderr, flush=True)
            if pct >= 100:
                print(file=sys.stderr)

    return progress_callback


def _load(args: argparse.Namespace, rng: np.random.Generator):
    """Build (world, camera, settings) from a scene file or a demo scene."""
    overrides = _render_overrides(args)

    if args.scene_file is not None:
        parser = SceneParser(rng)
        objects, camera, settings = parser.parse_file(args.scene_file, overrides)
        world = BVHNode(objects.objects, settings.time0, settings.time1, rng)
        return world, camera, settings

    scene = load_demo_scene(args.scene, rng, args.earth_image)
    settings = RenderSettings(
        width=overrides.get('width', 500),
        height=overrides.get('height', 500),
        samples_per_pixel=overrides.get('samples', 200),
        max_depth=overrides.get('max_depth', MAX_DEPTH),
        tile_size=overrides.get('tile_size', 32),
        num_threads=overrides.get('threads', 0),
        background=overrides.get('background', scene.background),
        seed=args.seed
    )
    camera = scene.camera(settings.aspect_ratio, settings.time0, settings.time1)
    world = build_world(scene, settings, rng)
    return world, camera, settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    _configure_logging(args)

    if args.list_scenes:
        for name in sorted(SCENES):
            print(name)
        return 0

    rng = np.random.default_rng(args.seed)

    try:
        world, camera, settings = _load(args, rng)
    except (SceneParseError, BVHConstructionError, FileNotFoundError, ValueError) as e:
        logger.error("Could not build scene: %s", e)
        return 1

    logger.info(
        "Scene %s: %dx%d, %d spp, max depth %d",
        args.scene_file or args.scene, settings.width, settings.height,
        settings.samples_per_pixel, settings.max_depth
    )

    renderer = Renderer(settings)
    if not args.quiet:
        renderer.set_progress_callback(_progress_printer())

    image = renderer.render(world, camera)

    try:
        if args.output != '-':
            Path(args.output).parent.mkdir(parents=True, exist_ok=True)
        save_image(image, args.output)
    except (ValueError, OSError) as e:
        logger.error("Could not save image: %s", e)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
