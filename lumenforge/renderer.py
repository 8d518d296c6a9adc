"""
Renderer module - the heart of the ray tracer.

Implements:
- The recursive radiance estimator (``color_world``)
- Multi-threaded tile-based rendering with per-tile generators
- LDR conversion and PPM / Pillow image output
"""

from __future__ import annotations
import logging
import math
import os
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TextIO, Tuple, Union

import numpy as np

from .vec3 import Color
from .ray import Ray
from .camera import Camera
from .shapes import Hittable

logger = logging.getLogger(__name__)

MAX_DEPTH = 60
T_MIN = 0.001

BLACK = Color(0, 0, 0)
SKY_WHITE = Color(1.0, 1.0, 1.0)
SKY_BLUE = Color(0.5, 0.7, 1.0)

PILLOW_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff'}


def sky_color(ray: Ray) -> Color:
    """Vertical white-to-blue gradient used as the background.

    Args:
        ray: The escaping ray; only its direction matters

    Returns:
        Sky color at this direction
    """
    unit_direction = ray.direction.normalize()
    t = 0.5 * (unit_direction.y + 1.0)
    return SKY_WHITE * (1.0 - t) + SKY_BLUE * t


def color_world(
    ray: Ray,
    world: Hittable,
    depth: int,
    background: bool,
    rng: Optional[np.random.Generator] = None,
    max_depth: int = MAX_DEPTH
) -> Color:
    """Estimate the radiance arriving along ``ray``.

    Each bounce contributes ``emitted + attenuation * color_world(next)``.
    At ``depth >= max_depth`` only the emitted term is returned.

    Args:
        ray: The ray to trace
        world: Root of the scene
        depth: Number of bounces already taken
        background: Whether escaping rays see the sky gradient (else black)
        rng: Generator for scattering and media sampling
        max_depth: Bounce limit

    Returns:
        The estimated color for this ray
    """
    if rng is None:
        rng = np.random.default_rng()

    record = world.hit(ray, T_MIN, math.inf, rng)

    if record is None:
        return sky_color(ray) if background else BLACK

    material = record.material
    emitted = material.emitted(record.u, record.v, record.point)
    if depth >= max_depth:
        return emitted

    result = material.scatter(ray, record, rng)
    if result is None:
        return emitted

    return emitted + result.attenuation * color_world(
        result.scattered_ray, world, depth + 1, background, rng, max_depth
    )


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 500
    height: int = 500
    samples_per_pixel: int = 200
    max_depth: int = MAX_DEPTH
    tile_size: int = 32
    num_threads: int = 0  # 0 = auto-detect
    background: bool = False
    time0: float = 0.0
    time1: float = 1.0
    seed: Optional[int] = None

    def __post_init__(self):
        for name in ('width', 'height', 'samples_per_pixel', 'tile_size'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.num_threads < 0:
            raise ValueError(f"num_threads must be non-negative, got {self.num_threads}")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


Tile = Tuple[int, int, int, int]


class Renderer:
    """Tile-based Monte-Carlo renderer with multi-threading support."""

    def __init__(self, settings: Optional[RenderSettings] = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[Callable[[float], None]] = None
        self._cancel_event = threading.Event()

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def cancel(self) -> None:
        """Stop an in-flight render after the current pixel of each tile."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def render(self, world: Hittable, camera: Camera) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Args:
            world: The scene to render (any Hittable)
            camera: The camera to render from

        Returns:
            Linear image as numpy array of shape (height, width, 3), row 0
            at the top
        """
        settings = self.settings
        self._cancel_event.clear()

        image = np.zeros((settings.height, settings.width, 3), dtype=np.float64)

        tiles = self.generate_tiles(settings.width, settings.height)
        seeds = np.random.SeedSequence(settings.seed).spawn(len(tiles))
        total_tiles = len(tiles)
        completed = 0
        lock = threading.Lock()

        def render_tile(tile: Tile, seed: np.random.SeedSequence) -> None:
            nonlocal completed
            rng = np.random.default_rng(seed)
            self._render_tile(world, camera, tile, image, rng)

            with lock:
                completed += 1
                done = completed
            logger.debug("Tile %s done (%d/%d)", tile, done, total_tiles)
            if self._progress_callback:
                self._progress_callback(done / total_tiles)

        logger.info(
            "Rendering %dx%d, %d spp, %d tiles on %d thread(s)",
            settings.width, settings.height, settings.samples_per_pixel,
            total_tiles, settings.num_threads
        )
        start = time.perf_counter()

        if settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=settings.num_threads) as executor:
                # list() re-raises worker exceptions
                list(executor.map(render_tile, tiles, seeds))
        else:
            for tile, seed in zip(tiles, seeds):
                render_tile(tile, seed)

        elapsed = time.perf_counter() - start
        primary_rays = settings.width * settings.height * settings.samples_per_pixel
        logger.info(
            "Render %s in %.2fs (%.0f primary rays/s)",
            "cancelled" if self.cancelled else "finished",
            elapsed, primary_rays / elapsed if elapsed > 0 else 0.0
        )

        return image

    def _render_tile(
        self,
        world: Hittable,
        camera: Camera,
        tile: Tile,
        image: np.ndarray,
        rng: np.random.Generator
    ) -> None:
        """Render one tile into its own slice of ``image``."""
        settings = self.settings
        width, height = settings.width, settings.height
        samples = settings.samples_per_pixel
        x0, y0, x1, y1 = tile

        for y in range(y0, y1):
            # Image rows run top to bottom, t runs bottom to top
            j = height - 1 - y
            for i in range(x0, x1):
                if self._cancel_event.is_set():
                    return

                pixel_color = BLACK
                for _ in range(samples):
                    s = (i + rng.random()) / width
                    t = (j + rng.random()) / height
                    ray = camera.get_ray(s, t, rng)
                    pixel_color = pixel_color + color_world(
                        ray, world, 0, settings.background, rng, settings.max_depth
                    )

                image[y, i] = pixel_color.to_array() / samples

    def generate_tiles(self, width: int, height: int) -> list[Tile]:
        """Generate tiles for parallel rendering.

        Args:
            width: Image width
            height: Image height

        Returns:
            List of tiles as (x0, y0, x1, y1) tuples
        """
        tile_size = self.settings.tile_size
        tiles = []

        for y in range(0, height, tile_size):
            for x in range(0, width, tile_size):
                x1 = min(x + tile_size, width)
                y1 = min(y + tile_size, height)
                tiles.append((x, y, x1, y1))

        return tiles


def to_ldr(image: np.ndarray) -> np.ndarray:
    """Convert a linear image to 8-bit with square-root gamma.

    Args:
        image: Linear image array (float)

    Returns:
        LDR image as uint8 array
    """
    linear = np.nan_to_num(np.clip(image, 0, None), nan=0.0, posinf=1.0)
    corrected = np.sqrt(linear) * 255.99
    return np.clip(corrected, 0, 255).astype(np.uint8)


def write_ppm(image: np.ndarray, stream: TextIO) -> None:
    """Write an image as a plain-text (P3) PPM.

    Args:
        image: Linear image of shape (height, width, 3), row 0 at the top
        stream: Text stream to write to
    """
    ldr = to_ldr(image)
    height, width = ldr.shape[:2]

    stream.write(f"P3\n{width}\n{height}\n255\n")
    for row in ldr:
        stream.write(''.join(f"{r} {g} {b}\n" for r, g, b in row))


def save_image(image: np.ndarray, filename: Union[str, Path]) -> None:
    """Save image to file.

    Args:
        image: Linear image array
        filename: Output path; ``-`` writes PPM to stdout, ``.ppm`` writes
            PPM, other raster extensions go through Pillow

    Raises:
        ValueError: If the extension is not supported
    """
    if str(filename) == '-':
        write_ppm(image, sys.stdout)
        sys.stdout.flush()
        return

    path = Path(filename)
    suffix = path.suffix.lower()

    if suffix == '.ppm':
        with open(path, 'w', encoding='ascii') as f:
            write_ppm(image, f)
    elif suffix in PILLOW_EXTENSIONS:
        from PIL import Image as PILImage

        PILImage.fromarray(to_ldr(image), 'RGB').save(path)
    else:
        raise ValueError(f"Unsupported image format: {suffix or path.name}")

    logger.info("Saved %s", path)
