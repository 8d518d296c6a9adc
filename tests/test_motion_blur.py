"""Tests for motion blur functionality."""

import math

import numpy as np
import pytest
from lumenforge.vec3 import Vec3, Point3, Color
from lumenforge.ray import Ray
from lumenforge.shapes import MovingSphere, Sphere, HittableList
from lumenforge.bvh import BVHNode
from lumenforge.camera import Camera
from lumenforge.materials import Lambertian
from lumenforge.renderer import Renderer, RenderSettings

GRAY = Lambertian(Color(0.5, 0.5, 0.5))


@pytest.fixture
def sliding_sphere():
    return MovingSphere(
        center0=Point3(0, 0, 0),
        center1=Point3(2, 0, 0),
        time0=0.0,
        time1=1.0,
        radius=0.5,
        material=GRAY
    )


class TestMovingSphereMotion:
    """Test MovingSphere hits across the shutter interval."""

    def test_hit_at_time0(self, sliding_sphere):
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1), time=0.0)
        hit = sliding_sphere.hit(ray, 0.001, math.inf)
        assert hit is not None
        assert abs(hit.t - 4.5) < 1e-6

    def test_hit_at_intermediate_time(self, sliding_sphere):
        ray = Ray(Point3(1, 0, -5), Vec3(0, 0, 1), time=0.5)
        hit = sliding_sphere.hit(ray, 0.001, math.inf)
        assert hit is not None
        assert hit.normal == Vec3(0, 0, -1)

    def test_miss_wrong_time(self, sliding_sphere):
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1), time=1.0)
        assert sliding_sphere.hit(ray, 0.001, math.inf) is None

    def test_time_outside_range_extrapolates(self, sliding_sphere):
        assert sliding_sphere.center(2.0) == Point3(4, 0, 0)
        assert sliding_sphere.center(-1.0) == Point3(-2, 0, 0)

    def test_bounding_box_contains_both_positions(self, sliding_sphere):
        bbox = sliding_sphere.bounding_box(0.0, 1.0)
        assert bbox.minimum == Point3(-0.5, -0.5, -0.5)
        assert bbox.maximum == Point3(2.5, 0.5, 0.5)

    def test_bounding_box_subinterval(self, sliding_sphere):
        bbox = sliding_sphere.bounding_box(0.5, 0.5)
        assert bbox.minimum == Point3(0.5, -0.5, -0.5)
        assert bbox.maximum == Point3(1.5, 0.5, 0.5)

    def test_with_material(self):
        mat = Lambertian(Color(1, 0, 0))
        sphere = MovingSphere(Point3(0, 0, 0), Point3(0, 1, 0), 0.0, 1.0, 0.5, mat)
        hit = sphere.hit(Ray(Point3(0, 0, -5), Vec3(0, 0, 1), 0.0), 0.001, math.inf)
        assert hit.material is mat


class TestMotionBlurInScene:
    """Test moving objects inside a BVH and a render."""

    def test_bvh_finds_moving_sphere_at_both_ends(self, sliding_sphere):
        world = BVHNode([sliding_sphere, Sphere(Point3(10, 0, 0), 0.5, GRAY)], 0.0, 1.0)

        start = Ray(Point3(0, 0, -5), Vec3(0, 0, 1), time=0.0)
        end = Ray(Point3(2, 0, -5), Vec3(0, 0, 1), time=1.0)
        assert world.hit(start, 0.001, math.inf) is not None
        assert world.hit(end, 0.001, math.inf) is not None

    def test_static_and_moving_spheres(self, sliding_sphere):
        static = Sphere(Point3(0, 0, 3), 0.5, GRAY)
        world = HittableList([sliding_sphere, static])

        # At time 1 the moving sphere is gone and the ray reaches the static one
        hit = world.hit(Ray(Point3(0, 0, -5), Vec3(0, 0, 1), 1.0), 0.001, math.inf)
        assert abs(hit.t - 7.5) < 1e-6

    def test_blur_softens_edges(self):
        # A white emitter sliding across a pixel column covers it for part of the shutter
        from lumenforge.materials import DiffuseLight

        light = DiffuseLight(Color(1, 1, 1))
        sphere = MovingSphere(Point3(-1, 0, -3), Point3(1, 0, -3), 0.0, 1.0, 0.6, light)
        world = BVHNode([sphere], 0.0, 1.0)
        camera = Camera(Point3(0, 0, 0), Point3(0, 0, -1), vfov=10.0, time0=0.0, time1=1.0)
        settings = RenderSettings(width=1, height=1, samples_per_pixel=400, num_threads=1, seed=3)

        pixel = Renderer(settings).render(world, camera)[0, 0, 0]
        # Covered while |center.x| < 0.6, i.e. 60% of the shutter
        assert pixel == pytest.approx(0.6, abs=0.1)
