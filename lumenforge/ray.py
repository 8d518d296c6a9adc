"""
Ray class for representing rays in 3D space.

A ray is defined by an origin point and a direction vector.
Ray(t) = origin + t * direction
"""

from __future__ import annotations
import numpy as np

from .vec3 import Vec3, Point3


class Ray:
    """An immutable ray with origin, direction and a time sample.

    The parametric form is: P(t) = origin + t * direction.

    The componentwise inverse direction and its per-axis sign are cached
    at construction for the bounding box slab test. A zero direction
    component gives an infinite inverse rather than an error.
    """

    __slots__ = ('origin', 'direction', 'time', 'inv_direction', 'sign')

    def __init__(self, origin: Point3, direction: Vec3, time: float = 0.0):
        """Create a ray with given origin and direction.

        Args:
            origin: The starting point of the ray
            direction: The direction vector (not required to be unit length)
            time: Time value for motion blur (default 0)
        """
        self.origin = origin
        self.direction = direction
        self.time = time

        with np.errstate(divide='ignore'):
            inv = 1.0 / direction.to_array()
        self.inv_direction = Vec3.from_array(inv)
        # 1 where the ray travels towards -axis, so box[sign] is the near plane
        self.sign = (int(inv[0] < 0), int(inv[1] < 0), int(inv[2] < 0))

    def at(self, t: float) -> Point3:
        """Get the point along the ray at parameter t.

        Args:
            t: The parameter value (distance if direction is normalized)

        Returns:
            The point at origin + t * direction
        """
        return self.origin + self.direction * t

    def __repr__(self) -> str:
        return f"Ray(origin={self.origin}, direction={self.direction}, time={self.time})"
