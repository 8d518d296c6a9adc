"""
Geometry decorators.

Each decorator wraps exactly one child Hittable, moves the incoming ray
into the child's space, and maps the child's HitRecord back to world
space as a new record.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional
import math

from .vec3 import Vec3, Point3
from .ray import Ray
from .aabb import AABB
from .shapes import Hittable, HitRecord


class Translate(Hittable):
    """Moves a child object by a fixed offset."""

    def __init__(self, child: Hittable, offset: Vec3):
        self.child = child
        self.offset = offset

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        moved_ray = Ray(ray.origin - self.offset, ray.direction, ray.time)
        record = self.child.hit(moved_ray, t_min, t_max, rng)
        if record is None:
            return None
        return replace(record, point=record.point + self.offset)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        bbox = self.child.bounding_box(time0, time1)
        if bbox is None:
            return None
        return AABB(bbox.minimum + self.offset, bbox.maximum + self.offset)

    def __repr__(self) -> str:
        return f"Translate({self.child!r}, offset={self.offset})"


class RotateY(Hittable):
    """Rotates a child object about the Y axis.

    The world-space bounding box is computed once, from the eight rotated
    corners of the child's box over [time0, time1].
    """

    def __init__(self, child: Hittable, angle: float, time0: float = 0.0, time1: float = 1.0):
        """Create a rotation.

        Args:
            child: The object to rotate
            angle: Rotation angle in degrees
            time0, time1: Interval the child's bounding box is taken over
        """
        self.child = child
        self.angle = angle
        radians = math.radians(angle)
        self.sin_theta = math.sin(radians)
        self.cos_theta = math.cos(radians)
        self.bbox = self._rotated_box(child.bounding_box(time0, time1))

    def _rotated_box(self, child_box: Optional[AABB]) -> Optional[AABB]:
        if child_box is None:
            return None

        low = [math.inf, math.inf, math.inf]
        high = [-math.inf, -math.inf, -math.inf]
        for corner in child_box.corners():
            rotated = self._to_world(corner)
            for c in range(3):
                low[c] = min(low[c], rotated[c])
                high[c] = max(high[c], rotated[c])

        return AABB(Point3(*low), Point3(*high))

    def _to_object(self, v: Vec3) -> Vec3:
        """Rotate by -angle."""
        return Vec3(
            self.cos_theta * v.x - self.sin_theta * v.z,
            v.y,
            self.sin_theta * v.x + self.cos_theta * v.z
        )

    def _to_world(self, v: Vec3) -> Vec3:
        """Rotate by +angle."""
        return Vec3(
            self.cos_theta * v.x + self.sin_theta * v.z,
            v.y,
            -self.sin_theta * v.x + self.cos_theta * v.z
        )

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        rotated_ray = Ray(self._to_object(ray.origin), self._to_object(ray.direction), ray.time)
        record = self.child.hit(rotated_ray, t_min, t_max, rng)
        if record is None:
            return None
        return replace(
            record,
            point=self._to_world(record.point),
            normal=self._to_world(record.normal)
        )

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        return self.bbox

    def __repr__(self) -> str:
        return f"RotateY({self.child!r}, angle={self.angle})"


class FlipNormals(Hittable):
    """Reverses the normal reported by a child object."""

    def __init__(self, child: Hittable):
        self.child = child

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        record = self.child.hit(ray, t_min, t_max, rng)
        if record is None:
            return None
        return replace(record, normal=-record.normal)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        return self.child.bounding_box(time0, time1)

    def __repr__(self) -> str:
        return f"FlipNormals({self.child!r})"
