"""
Volumetric effects for the ray tracer.

Implements constant density volumes (fog, smoke) scattered through an
isotropic phase function.
"""

from __future__ import annotations
from typing import Optional, Union
import math

import numpy as np

from .vec3 import Vec3, Color
from .ray import Ray
from .aabb import AABB
from .shapes import Hittable, HitRecord
from .materials import Isotropic
from .textures import Texture

# Offset past the entry hit when looking for the exit
BOUNDARY_EPSILON = 0.0001


class ConstantMedium(Hittable):
    """A constant density participating medium.

    Can be used for fog, smoke, clouds, etc.
    The medium is defined by a boundary shape and a density. A hit is a
    sampled scattering event inside the boundary, not a surface: its
    normal is a placeholder.
    """

    def __init__(
        self,
        boundary: Hittable,
        density: float,
        albedo: Union[Texture, Color]
    ):
        """Create a constant density medium.

        Args:
            boundary: The shape that defines the medium's boundary
            density: The density of the medium (higher = more opaque)
            albedo: Texture or color of the medium
        """
        self.boundary = boundary
        self.density = density
        self.neg_inv_density = -1.0 / density
        self.phase_function = Isotropic(albedo)

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        """Sample a free-path distance through the medium."""
        if rng is None:
            rng = np.random.default_rng()

        # Find entry and exit points
        hit1 = self.boundary.hit(ray, -math.inf, math.inf, rng)
        if hit1 is None:
            return None

        hit2 = self.boundary.hit(ray, hit1.t + BOUNDARY_EPSILON, math.inf, rng)
        if hit2 is None:
            return None

        # Clamp to ray bounds
        t_enter = max(hit1.t, t_min)
        t_exit = min(hit2.t, t_max)

        if t_enter >= t_exit:
            return None

        if t_enter < 0:
            t_enter = 0.0

        # Sample distance using exponential distribution, U in (0, 1]
        ray_length = ray.direction.length()
        distance_inside_boundary = (t_exit - t_enter) * ray_length
        hit_distance = self.neg_inv_density * math.log(1.0 - rng.random())

        if hit_distance >= distance_inside_boundary:
            return None

        t = t_enter + hit_distance / ray_length

        return HitRecord(
            t=t,
            u=0.0,
            v=0.0,
            point=ray.at(t),
            normal=Vec3(1, 0, 0),  # Arbitrary, not used for volumes
            material=self.phase_function
        )

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        return self.boundary.bounding_box(time0, time1)

    def __repr__(self) -> str:
        return f"ConstantMedium({self.boundary!r}, density={self.density})"


def create_fog(
    boundary: Hittable,
    density: float = 0.01,
    color: Color = Color(1, 1, 1)
) -> ConstantMedium:
    """Create a fog volume.

    Args:
        boundary: The shape defining the fog region
        density: Fog density (higher = more opaque)
        color: Fog color

    Returns:
        A ConstantMedium configured as fog
    """
    return ConstantMedium(boundary, density, color)


def create_smoke(
    boundary: Hittable,
    density: float = 0.01,
    color: Color = Color(0, 0, 0)
) -> ConstantMedium:
    """Create a smoke volume.

    Args:
        boundary: The shape defining the smoke region
        density: Smoke density
        color: Smoke color (dark for realistic smoke)

    Returns:
        A ConstantMedium configured as smoke
    """
    return ConstantMedium(boundary, density, color)
