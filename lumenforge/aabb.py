"""
Axis-aligned bounding boxes for the acceleration structures.
"""

from __future__ import annotations
from itertools import product

from .vec3 import Point3
from .ray import Ray


class AABB:
    """Axis-Aligned Bounding Box.

    ``box[0]`` is the minimum corner and ``box[1]`` the maximum corner,
    which lets the slab test pick the near plane of each axis straight
    from the ray's cached sign.
    """

    __slots__ = ('minimum', 'maximum', '_bounds')

    def __init__(self, minimum: Point3, maximum: Point3):
        """Create an AABB from corner points.

        Args:
            minimum: Corner with smallest x, y, z values
            maximum: Corner with largest x, y, z values
        """
        self.minimum = minimum
        self.maximum = maximum
        self._bounds = (minimum.to_tuple(), maximum.to_tuple())

    def __getitem__(self, index: int) -> Point3:
        if index == 0:
            return self.minimum
        if index == 1:
            return self.maximum
        raise IndexError(f"AABB index out of range: {index}")

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        """Test if ray intersects this AABB using the sign-indexed slab method.

        Zero direction components are covered by the infinities in the
        ray's inverse direction; a NaN from 0 * inf compares false and
        the box conservatively misses.
        """
        bounds = self._bounds
        sx, sy, sz = ray.sign
        ox, oy, oz = ray.origin.to_tuple()
        ix, iy, iz = ray.inv_direction.to_tuple()

        t0 = (bounds[sx][0] - ox) * ix
        t1 = (bounds[1 - sx][0] - ox) * ix
        ty0 = (bounds[sy][1] - oy) * iy
        ty1 = (bounds[1 - sy][1] - oy) * iy
        if t0 > ty1 or ty0 > t1:
            return False
        if ty0 > t0:
            t0 = ty0
        if ty1 < t1:
            t1 = ty1

        tz0 = (bounds[sz][2] - oz) * iz
        tz1 = (bounds[1 - sz][2] - oz) * iz
        if t0 > tz1 or tz0 > t1:
            return False
        if tz0 > t0:
            t0 = tz0
        if tz1 < t1:
            t1 = tz1

        return t0 < t_max and t1 > t_min

    def hit_reference(self, ray: Ray, t_min: float, t_max: float) -> bool:
        """Slab test with an explicit per-axis swap.

        Slower than ``hit``; kept to cross-check it.
        """
        for i in range(3):
            inv_d = ray.inv_direction[i]
            t0 = (self._bounds[0][i] - ray.origin[i]) * inv_d
            t1 = (self._bounds[1][i] - ray.origin[i]) * inv_d

            if inv_d < 0:
                t0, t1 = t1, t0

            t_min = t0 if t0 > t_min else t_min
            t_max = t1 if t1 < t_max else t_max

            if t_max <= t_min:
                return False

        return True

    def corners(self) -> list[Point3]:
        """Return the eight corner points of the box."""
        return [
            Point3(x, y, z)
            for x, y, z in product(*zip(self._bounds[0], self._bounds[1]))
        ]

    def contains(self, other: AABB) -> bool:
        """Check whether ``other`` lies entirely inside this box."""
        return all(
            self._bounds[0][i] <= other._bounds[0][i] and other._bounds[1][i] <= self._bounds[1][i]
            for i in range(3)
        )

    @staticmethod
    def surrounding_box(box0: AABB, box1: AABB) -> AABB:
        """Return the AABB that contains both input boxes."""
        small = Point3(
            min(box0.minimum.x, box1.minimum.x),
            min(box0.minimum.y, box1.minimum.y),
            min(box0.minimum.z, box1.minimum.z)
        )
        big = Point3(
            max(box0.maximum.x, box1.maximum.x),
            max(box0.maximum.y, box1.maximum.y),
            max(box0.maximum.z, box1.maximum.z)
        )
        return AABB(small, big)

    def __repr__(self) -> str:
        return f"AABB(min={self.minimum}, max={self.maximum})"
