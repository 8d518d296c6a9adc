"""
Texture system for the renderer.

Implements:
- Solid color textures
- Image textures (from files)
- Procedural textures (3D sine checker, Perlin-noise marble)

Textures are pure functions of (u, v, point) once constructed.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union
import logging
import math

import numpy as np
from PIL import Image

from .vec3 import Vec3, Color, Point3

logger = logging.getLogger(__name__)


class Texture(ABC):
    """Abstract base class for textures."""

    @abstractmethod
    def value(self, u: float, v: float, point: Point3) -> Color:
        """Get the texture color at the given surface coordinates.

        Args:
            u: Horizontal texture coordinate [0, 1]
            v: Vertical texture coordinate [0, 1]
            point: 3D point in world space (for procedural textures)

        Returns:
            Color at this location
        """


class SolidColor(Texture):
    """A solid color texture."""

    def __init__(self, color: Color):
        self.color = color

    @classmethod
    def from_rgb(cls, r: float, g: float, b: float) -> SolidColor:
        return cls(Color(r, g, b))

    def value(self, u: float, v: float, point: Point3) -> Color:
        return self.color

    def __repr__(self) -> str:
        return f"SolidColor({self.color})"


def as_texture(albedo: Union[Texture, Color]) -> Texture:
    """Wrap a plain color in a SolidColor; pass textures through."""
    if isinstance(albedo, Texture):
        return albedo
    return SolidColor(albedo)


class CheckerTexture(Texture):
    """A 3D checker pattern from the sign of a product of sines."""

    def __init__(self, even: Texture, odd: Texture, frequency: float = 10.0):
        """Create a checker texture.

        Args:
            even: Texture where sin(fx)·sin(fy)·sin(fz) >= 0
            odd: Texture where the product is negative
            frequency: Spatial frequency f of the sines
        """
        self.even = even
        self.odd = odd
        self.frequency = frequency

    @classmethod
    def from_colors(cls, c1: Color, c2: Color, frequency: float = 10.0) -> CheckerTexture:
        return cls(SolidColor(c1), SolidColor(c2), frequency)

    def value(self, u: float, v: float, point: Point3) -> Color:
        f = self.frequency
        sines = math.sin(f * point.x) * math.sin(f * point.y) * math.sin(f * point.z)
        if sines < 0:
            return self.odd.value(u, v, point)
        return self.even.value(u, v, point)


class Perlin:
    """Gradient noise over a 256-cell lattice.

    Each lattice corner gets one of 256 random unit vectors, selected by
    xor-ing three independent permutation tables.
    """

    POINT_COUNT = 256

    def __init__(self, rng: Optional[np.random.Generator] = None):
        if rng is None:
            rng = np.random.default_rng()

        vectors = rng.uniform(-1.0, 1.0, (self.POINT_COUNT, 3))
        vectors /= np.linalg.norm(vectors, axis=1, keepdims=True)
        self.random_vectors = [tuple(float(c) for c in row) for row in vectors]
        self.perm_x = [int(i) for i in rng.permutation(self.POINT_COUNT)]
        self.perm_y = [int(i) for i in rng.permutation(self.POINT_COUNT)]
        self.perm_z = [int(i) for i in rng.permutation(self.POINT_COUNT)]

    def noise(self, p: Point3) -> float:
        """Absolute value of the noise at ``p``."""
        x, y, z = p.to_tuple()
        fx, fy, fz = math.floor(x), math.floor(y), math.floor(z)
        u, v, w = x - fx, y - fy, z - fz
        i, j, k = int(fx), int(fy), int(fz)

        # Hermite smoothing of the interpolation weights
        uu = u * u * (3 - 2 * u)
        vv = v * v * (3 - 2 * v)
        ww = w * w * (3 - 2 * w)

        accum = 0.0
        for di in (0, 1):
            wx = uu if di else 1 - uu
            px = self.perm_x[(i + di) & 255]
            for dj in (0, 1):
                wy = vv if dj else 1 - vv
                py = self.perm_y[(j + dj) & 255]
                for dk in (0, 1):
                    wz = ww if dk else 1 - ww
                    gx, gy, gz = self.random_vectors[px ^ py ^ self.perm_z[(k + dk) & 255]]
                    accum += wx * wy * wz * (gx * (u - di) + gy * (v - dj) + gz * (w - dk))

        return abs(accum)

    def turbulence(self, p: Point3, depth: int = 7) -> float:
        """Sum of ``depth`` octaves of noise, each at double frequency and half weight."""
        accum = 0.0
        weight = 1.0
        temp_p = p

        for _ in range(depth):
            accum += weight * self.noise(temp_p)
            weight *= 0.5
            temp_p = temp_p * 2

        return abs(accum)


class NoiseTexture(Texture):
    """Marble-like procedural texture: a sine wave phase-shifted by turbulence."""

    def __init__(self, scale: float = 1.0, rng: Optional[np.random.Generator] = None):
        self.scale = scale
        self.noise = Perlin(rng)

    def value(self, u: float, v: float, point: Point3) -> Color:
        t = 0.5 * (1 + math.sin(self.scale * point.z + 5 * self.noise.turbulence(point * self.scale)))
        return Color(t, t, t)


class ImageTexture(Texture):
    """A texture loaded from an image file."""

    def __init__(self, filename: Union[str, Path]):
        """Load a texture from an image file.

        Args:
            filename: Path to the image file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        self.filename = str(filename)
        path = Path(filename)
        if not path.exists():
            raise FileNotFoundError(f"Texture file not found: {self.filename}")

        with Image.open(path) as img:
            self._data = np.array(img.convert('RGB'), dtype=np.uint8)
        self._height, self._width = self._data.shape[:2]
        logger.debug("Loaded texture %s (%dx%d)", self.filename, self._width, self._height)

    def value(self, u: float, v: float, point: Point3) -> Color:
        nx, ny = self._width, self._height
        i = min(max(int(u * nx), 0), nx - 1)
        # Image rows run top to bottom, v runs bottom to top
        j = min(max(int((1 - v) * ny - 0.001), 0), ny - 1)

        pixel = self._data[j, i] / 255.0
        return Color.from_array(pixel)
