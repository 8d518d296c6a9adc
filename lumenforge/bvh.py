"""
Bounding Volume Hierarchy (BVH) for accelerating ray-object intersection.

The BVH is a binary tree where each node holds a box around its two
children. Leaves are the scene's own Hittables; a one-object partition
references the same object from both sides.

Construction picks a random axis per node, sorts by the minimum corner of
each child's box along it and splits at the median index. The tree is
immutable once built.
"""

from __future__ import annotations
import logging
from typing import Iterable, Optional

import numpy as np

from .ray import Ray
from .aabb import AABB
from .shapes import Hittable, HitRecord, HittableList

logger = logging.getLogger(__name__)


class BVHConstructionError(ValueError):
    """A BVH was built from objects it cannot bound.

    This is a scene-assembly bug: every object placed in a BVH must
    report a bounding box.
    """


def _require_box(obj: Hittable, time0: float, time1: float) -> AABB:
    box = obj.bounding_box(time0, time1)
    if box is None:
        raise BVHConstructionError(f"no bounding box for {obj!r} in BVH node constructor")
    return box


class BVHNode(Hittable):
    """A node in the Bounding Volume Hierarchy tree."""

    def __init__(
        self,
        objects: list[Hittable],
        time0: float = 0.0,
        time1: float = 1.0,
        rng: Optional[np.random.Generator] = None
    ):
        """Build a BVH subtree from a list of objects.

        Args:
            objects: Hittables to partition (the list itself is not modified)
            time0, time1: Interval the bounding boxes must cover
            rng: Generator for the split axes

        Raises:
            BVHConstructionError: If the list is empty or an object has
                no bounding box
        """
        if rng is None:
            rng = np.random.default_rng()

        n = len(objects)
        if n == 0:
            raise BVHConstructionError("cannot build a BVH node from an empty list")

        if n == 1:
            self.left = self.right = objects[0]
        elif n == 2:
            self.left, self.right = objects[0], objects[1]
        else:
            axis = int(rng.integers(0, 3))
            boxes = {id(obj): _require_box(obj, time0, time1) for obj in objects}
            ordered = sorted(objects, key=lambda obj: boxes[id(obj)].minimum[axis])

            mid = n // 2
            self.left = BVHNode(ordered[:mid], time0, time1, rng)
            self.right = BVHNode(ordered[mid:], time0, time1, rng)

        self.bbox = AABB.surrounding_box(
            _require_box(self.left, time0, time1),
            _require_box(self.right, time0, time1)
        )

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        """Return the closer of the two children's hits.

        Both children are always queried once the node's box is hit; the
        left child wins ties.
        """
        if not self.bbox.hit(ray, t_min, t_max):
            return None

        hit_left = self.left.hit(ray, t_min, t_max, rng)
        hit_right = self.right.hit(ray, t_min, t_max, rng)

        if hit_left is not None and hit_right is not None:
            return hit_left if hit_left.t <= hit_right.t else hit_right
        return hit_left if hit_left is not None else hit_right

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        return self.bbox

    def depth(self) -> int:
        """Number of BVHNode levels below and including this one."""
        child_depths = [
            child.depth() for child in (self.left, self.right) if isinstance(child, BVHNode)
        ]
        return 1 + max(child_depths, default=0)

    def __repr__(self) -> str:
        return f"BVHNode(bbox={self.bbox})"


class BVH(Hittable):
    """Bounding Volume Hierarchy over a whole scene.

    Wraps a BVHNode root, and tolerates an empty scene (no root, never
    hit), which a bare BVHNode does not.
    """

    def __init__(
        self,
        objects: Iterable[Hittable],
        time0: float = 0.0,
        time1: float = 1.0,
        rng: Optional[np.random.Generator] = None
    ):
        self.objects = list(objects)

        if not self.objects:
            self.root: Optional[BVHNode] = None
        else:
            self.root = BVHNode(self.objects, time0, time1, rng)
            logger.debug(
                "Built BVH over %d objects (depth %d)", len(self.objects), self.root.depth()
            )

    def hit(self, ray: Ray, t_min: float, t_max: float, rng=None) -> Optional[HitRecord]:
        if self.root is None:
            return None
        return self.root.hit(ray, t_min, t_max, rng)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[AABB]:
        if self.root is None:
            return None
        return self.root.bounding_box(time0, time1)

    def __len__(self) -> int:
        return len(self.objects)


def build_bvh(
    scene: Iterable[Hittable],
    time0: float = 0.0,
    time1: float = 1.0,
    rng: Optional[np.random.Generator] = None
) -> BVH:
    """Convenience function to build a BVH from a HittableList or any iterable.

    Args:
        scene: The scene objects
        time0, time1: Shutter interval the boxes must cover
        rng: Generator for the split axes

    Returns:
        A BVH acceleration structure
    """
    if isinstance(scene, HittableList):
        scene = scene.objects
    return BVH(scene, time0, time1, rng)
