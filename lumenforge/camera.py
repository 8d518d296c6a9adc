"""
Camera module for generating primary rays.

Supports:
- Perspective projection
- Depth of field (thin lens)
- Arbitrary positioning via look-at
- Motion blur (shutter time range)
"""

from __future__ import annotations
from typing import Optional
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray


class Camera:
    """A camera with perspective projection, depth of field, and motion blur."""

    def __init__(
        self,
        look_from: Point3,
        look_at: Point3,
        vup: Vec3 = Vec3(0, 1, 0),
        vfov: float = 90.0,
        aspect_ratio: float = 1.0,
        aperture: float = 0.0,
        focus_dist: float = 1.0,
        time0: float = 0.0,
        time1: float = 1.0
    ):
        """Create a camera.

        Args:
            look_from: Camera position in world space
            look_at: Point the camera is looking at
            vup: World up vector (usually (0, 1, 0))
            vfov: Vertical field of view in degrees
            aspect_ratio: Width / Height ratio
            aperture: Lens diameter for depth of field (0 = pinhole)
            focus_dist: Distance to the focus plane
            time0: Time when the shutter opens
            time1: Time when the shutter closes
        """
        theta = math.radians(vfov)
        half_height = math.tan(theta / 2)
        half_width = aspect_ratio * half_height

        # Orthonormal camera basis; w points backward from the camera
        self.w = (look_from - look_at).normalize()
        self.u = vup.cross(self.w).normalize()
        self.v = self.w.cross(self.u)

        self.origin = look_from
        self.horizontal = self.u * (2 * half_width * focus_dist)
        self.vertical = self.v * (2 * half_height * focus_dist)
        self.lower_left_corner = (
            self.origin
            - self.u * (half_width * focus_dist)
            - self.v * (half_height * focus_dist)
            - self.w * focus_dist
        )

        self.lens_radius = aperture / 2
        self.time0 = time0
        self.time1 = time1

    def get_ray(self, s: float, t: float, rng: Optional[np.random.Generator] = None) -> Ray:
        """Generate a ray for the given coordinates on the image plane.

        The direction is left unnormalized.

        Args:
            s: Horizontal coordinate [0, 1] (0 = left, 1 = right)
            t: Vertical coordinate [0, 1] (0 = bottom, 1 = top)
            rng: Generator for the lens sample and shutter time

        Returns:
            A ray from the camera through the specified pixel
        """
        if rng is None:
            rng = np.random.default_rng()

        if self.lens_radius > 0:
            rd = Vec3.random_in_unit_disk(rng) * self.lens_radius
            offset = self.u * rd.x + self.v * rd.y
        else:
            offset = Vec3(0, 0, 0)

        direction = (
            self.lower_left_corner
            + self.horizontal * s
            + self.vertical * t
            - self.origin
            - offset
        )

        time = self.time0 + rng.random() * (self.time1 - self.time0)

        return Ray(self.origin + offset, direction, time)

    def __repr__(self) -> str:
        return f"Camera(origin={self.origin}, lens_radius={self.lens_radius})"
