"""
Geometric shapes for the renderer.

Each shape implements the Hittable interface: ``hit`` reports the nearest
intersection inside a parametric interval and ``bounding_box`` reports a
box valid over a time interval.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray
from .aabb import AABB

if TYPE_CHECKING:
    from .materials import Material

RECT_THICKNESS = 0.0001


@dataclass(frozen=True)
class HitRecord:
    """Stores information about a ray-object intersection.

    Records are never modified; decorators derive new ones with
    ``dataclasses.replace``.

    Attributes:
        t: The ray parameter at intersection
        u, v: Surface coordinates at the hit point
        point: The intersection point in world space
        normal: Unit surface normal, outward from the primitive's solid
        material: The material governing scattering at the hit point
    """
    t: float
    u: float
    v: float
    point: Point3
    normal: Vec3
    material: Material


class Hittable(ABC):
    """Abstract base class for all objects that can be hit by rays."""

    @abstractmethod
    def hit(
        self,
        ray: Ray,
        t_min: float,
        t_max: float,
        rng: Optional[np.random.Generator] = None
    ) -> Optional[HitRecord]:
        """Test if ray intersects this object.

        Args:
            ray: The ray to test
            t_min: Minimum t value to consider (avoid self-intersection)
            t_max: Maximum t value to consider
            rng: Random generator for stochastic geometry such as media

        Returns:
            HitRecord for the nearest intersection, None otherwise
        """

    @abstractmethod
    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        """Get a bounding box containing this object over [time0, time1].

        Returns:
            AABB if the object is bounded, None otherwise
        """


def sphere_uv(p: Vec3) -> tuple[float, float]:
    """Spherical (u, v) for a point on the unit sphere.

    u runs with the angle around the Y axis, v from the south to the
    north pole.
    """
    phi = math.atan2(p.z, p.x)
    theta = math.asin(max(-1.0, min(1.0, p.y)))
    u = 1.0 - (phi + math.pi) / (2 * math.pi)
    v = (theta + math.pi / 2) / math.pi
    return u, v


def _hit_sphere(
    center: Point3,
    radius: float,
    material: Material,
    ray: Ray,
    t_min: float,
    t_max: float
) -> Optional[HitRecord]:
    """Shared ray-sphere intersection for static and moving spheres.

    (P-C)·(P-C) = r² with P = ray.at(t) gives a·t² + 2b·t + c = 0 with
    a = d·d, b = oc·d, c = oc·oc - r².
    """
    oc = ray.origin - center
    a = ray.direction.length_squared()
    b = oc.dot(ray.direction)
    c = oc.length_squared() - radius * radius

    discriminant = b * b - a * c
    if discriminant <= 0:
        return None

    sqrtd = math.sqrt(discriminant)

    # Nearest root in range first, then the far one
    root = (-b - sqrtd) / a
    if not t_min < root < t_max:
        root = (-b + sqrtd) / a
        if not t_min < root < t_max:
            return None

    point = ray.at(root)
    outward_normal = (point - center) / radius
    u, v = sphere_uv(outward_normal)

    return HitRecord(
        t=root,
        u=u,
        v=v,
        point=point,
        normal=outward_normal,
        material=material
    )


class Sphere(Hittable):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point3, radius: float, material: Material):
        """Create a sphere.

        Args:
            center: Center point of the sphere
            radius: Radius of the sphere (negative flips the normals inward)
            material: Material for shading
        """
        self.center = center
        self.radius = radius
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        return _hit_sphere(self.center, self.radius, self.material, ray, t_min, t_max)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        r = abs(self.radius)
        r_vec = Vec3(r, r, r)
        return AABB(self.center - r_vec, self.center + r_vec)

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class MovingSphere(Hittable):
    """A sphere that moves linearly between two positions over time.

    Used for motion blur effects.
    """

    def __init__(
        self,
        center0: Point3,
        center1: Point3,
        time0: float,
        time1: float,
        radius: float,
        material: Material
    ):
        """Create a moving sphere.

        Args:
            center0: Center position at time0
            center1: Center position at time1
            time0: Start time
            time1: End time
            radius: Radius of the sphere
            material: Material for shading
        """
        self.center0 = center0
        self.center1 = center1
        self.time0 = time0
        self.time1 = time1
        self.radius = radius
        self.material = material

    def center(self, time: float) -> Point3:
        """Get the center position at a given time."""
        if self.time1 == self.time0:
            return self.center0
        t = (time - self.time0) / (self.time1 - self.time0)
        return self.center0 + (self.center1 - self.center0) * t

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        """Test ray-sphere intersection at the ray's time."""
        return _hit_sphere(self.center(ray.time), self.radius, self.material, ray, t_min, t_max)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        """Return an AABB that contains the sphere at all times in [time0, time1]."""
        r = abs(self.radius)
        r_vec = Vec3(r, r, r)
        c0 = self.center(time0)
        c1 = self.center(time1)
        box0 = AABB(c0 - r_vec, c0 + r_vec)
        box1 = AABB(c1 - r_vec, c1 + r_vec)
        return AABB.surrounding_box(box0, box1)

    def __repr__(self) -> str:
        return f"MovingSphere(center0={self.center0}, center1={self.center1}, radius={self.radius})"


class HittableList(Hittable):
    """A collection of hittable objects tested linearly."""

    def __init__(self, objects: Optional[list[Hittable]] = None):
        self.objects: list[Hittable] = objects if objects is not None else []

    def add(self, obj: Hittable) -> None:
        """Add an object to the list."""
        self.objects.append(obj)

    def clear(self) -> None:
        """Remove all objects."""
        self.objects.clear()

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        """Find the closest intersection among all objects."""
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for obj in self.objects:
            hit_record = obj.hit(ray, t_min, closest_t, rng)
            if hit_record is not None:
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        """Return the AABB containing all objects, None if any is unbounded."""
        if not self.objects:
            return None

        output_box: Optional[AABB] = None

        for obj in self.objects:
            box = obj.bounding_box(time0, time1)
            if box is None:
                return None
            output_box = box if output_box is None else AABB.surrounding_box(output_box, box)

        return output_box

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)


class AxisAlignedRect(Hittable):
    """A rectangle lying in a plane of constant coordinate along one axis.

    ``a_axis`` and ``b_axis`` are the in-plane axes, ``k_axis`` the axis
    the plane is perpendicular to. Subclasses fix the three axes.
    """

    a_axis = 0
    b_axis = 1
    k_axis = 2

    def __init__(
        self,
        a0: float,
        a1: float,
        b0: float,
        b1: float,
        k: float,
        material: Material
    ):
        self.a0 = a0
        self.a1 = a1
        self.b0 = b0
        self.b1 = b1
        self.k = k
        self.material = material

        normal = [0.0, 0.0, 0.0]
        normal[self.k_axis] = 1.0
        self.normal = Vec3(*normal)

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        origin = ray.origin
        direction = ray.direction
        # Parallel rays give inf or nan here and fail the range checks
        t = (self.k - origin[self.k_axis]) * ray.inv_direction[self.k_axis]
        if not t_min <= t <= t_max:
            return None

        a = origin[self.a_axis] + t * direction[self.a_axis]
        b = origin[self.b_axis] + t * direction[self.b_axis]
        if not (self.a0 <= a <= self.a1 and self.b0 <= b <= self.b1):
            return None

        return HitRecord(
            t=t,
            u=(a - self.a0) / (self.a1 - self.a0),
            v=(b - self.b0) / (self.b1 - self.b0),
            point=ray.at(t),
            normal=self.normal,
            material=self.material
        )

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        """Return the rectangle padded along its flat axis."""
        low = [0.0, 0.0, 0.0]
        high = [0.0, 0.0, 0.0]
        low[self.a_axis], high[self.a_axis] = self.a0, self.a1
        low[self.b_axis], high[self.b_axis] = self.b0, self.b1
        low[self.k_axis] = self.k - RECT_THICKNESS
        high[self.k_axis] = self.k + RECT_THICKNESS
        return AABB(Point3(*low), Point3(*high))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.a0}, {self.a1}, {self.b0}, {self.b1}, k={self.k})"
        )


class XYRect(AxisAlignedRect):
    """Rectangle in the plane z = k, normal +Z."""

    a_axis, b_axis, k_axis = 0, 1, 2

    def __init__(self, x0: float, x1: float, y0: float, y1: float, k: float,
                 material: Material):
        super().__init__(x0, x1, y0, y1, k, material)


class XZRect(AxisAlignedRect):
    """Rectangle in the plane y = k, normal +Y."""

    a_axis, b_axis, k_axis = 0, 2, 1

    def __init__(self, x0: float, x1: float, z0: float, z1: float, k: float,
                 material: Material):
        super().__init__(x0, x1, z0, z1, k, material)


class YZRect(AxisAlignedRect):
    """Rectangle in the plane x = k, normal +X."""

    a_axis, b_axis, k_axis = 1, 2, 0

    def __init__(self, y0: float, y1: float, z0: float, z1: float, k: float,
                 material: Material):
        super().__init__(y0, y1, z0, z1, k, material)


class Cuboid(Hittable):
    """An axis-aligned box built from six rectangles.

    The faces on the minimum side of each axis are wrapped in FlipNormals
    so every normal points out of the box. The faces are kept in a small
    BVH of their own.
    """

    def __init__(
        self,
        p0: Point3,
        p1: Point3,
        material: Material,
        rng: Optional[np.random.Generator] = None
    ):
        """Create a box from two opposite corners.

        Args:
            p0: Minimum corner of the box
            p1: Maximum corner of the box
            material: Material shared by all six faces
            rng: Generator used for the split axes of the face BVH
        """
        from .bvh import BVHNode
        from .transforms import FlipNormals

        self.p_min = p0
        self.p_max = p1
        self.material = material

        faces: list[Hittable] = [
            XYRect(p0.x, p1.x, p0.y, p1.y, p1.z, material),
            FlipNormals(XYRect(p0.x, p1.x, p0.y, p1.y, p0.z, material)),
            XZRect(p0.x, p1.x, p0.z, p1.z, p1.y, material),
            FlipNormals(XZRect(p0.x, p1.x, p0.z, p1.z, p0.y, material)),
            YZRect(p0.y, p1.y, p0.z, p1.z, p1.x, material),
            FlipNormals(YZRect(p0.y, p1.y, p0.z, p1.z, p0.x, material)),
        ]
        self.faces = BVHNode(faces, 0.0, 1.0, rng)

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        return self.faces.hit(ray, t_min, t_max, rng)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        return AABB(self.p_min, self.p_max)

    def __repr__(self) -> str:
        return f"Cuboid(min={self.p_min}, max={self.p_max})"
