"""Tests for Camera class."""

import math

import numpy as np
import pytest
from lumenforge.vec3 import Vec3, Point3
from lumenforge.camera import Camera


@pytest.fixture
def rng():
    return np.random.default_rng(77)


@pytest.fixture
def pinhole():
    return Camera(Point3(0, 0, 0), Point3(0, 0, -1), Vec3(0, 1, 0), vfov=90.0)


class TestCameraBasis:
    """Test the camera frame."""

    def test_basis_vectors(self, pinhole):
        assert pinhole.w == Vec3(0, 0, 1)
        assert pinhole.u == Vec3(1, 0, 0)
        assert pinhole.v == Vec3(0, 1, 0)

    def test_image_plane(self, pinhole):
        assert pinhole.horizontal == Vec3(2, 0, 0)
        assert pinhole.vertical == Vec3(0, 2, 0)
        assert pinhole.lower_left_corner == Point3(-1, -1, -1)

    def test_aspect_ratio_widens_plane(self):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, -1), vfov=90.0, aspect_ratio=2.0)
        assert cam.horizontal == Vec3(4, 0, 0)
        assert cam.vertical == Vec3(0, 2, 0)

    def test_looking_down(self):
        cam = Camera(Point3(0, 10, 0), Point3(0, 0, 0), Vec3(0, 0, -1), vfov=60.0)
        center = cam.get_ray(0.5, 0.5, np.random.default_rng(0))
        assert center.direction.normalize() == Vec3(0, -1, 0)


class TestGetRay:
    """Test primary ray generation."""

    def test_center_ray(self, pinhole, rng):
        ray = pinhole.get_ray(0.5, 0.5, rng)
        assert ray.origin == Point3(0, 0, 0)
        assert ray.direction == Vec3(0, 0, -1)

    def test_corner_rays(self, pinhole, rng):
        assert pinhole.get_ray(0.0, 0.0, rng).direction == Vec3(-1, -1, -1)
        assert pinhole.get_ray(1.0, 1.0, rng).direction == Vec3(1, 1, -1)
        assert pinhole.get_ray(1.0, 0.0, rng).direction == Vec3(1, -1, -1)

    def test_direction_not_normalized(self, rng):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, -1), vfov=90.0, focus_dist=2.0)
        assert cam.get_ray(0.5, 0.5, rng).direction == Vec3(0, 0, -2)

    def test_narrow_fov(self, rng):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, -1), vfov=20.0)
        corner = cam.get_ray(1.0, 0.5, rng).direction.normalize()
        assert math.degrees(math.atan2(corner.x, -corner.z)) == pytest.approx(10.0)

    def test_no_dof_fixed_origin(self, rng):
        cam = Camera(Point3(1, 2, 3), Point3(0, 0, 0), aperture=0.0)
        for _ in range(20):
            assert cam.get_ray(rng.random(), rng.random(), rng).origin == Point3(1, 2, 3)

    def test_dof_origin_within_lens(self, rng):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, -1), aperture=0.5, focus_dist=4.0)
        origins = set()
        for _ in range(50):
            ray = cam.get_ray(0.5, 0.5, rng)
            assert ray.origin.z == 0.0
            assert ray.origin.length() < 0.25
            origins.add(ray.origin.to_tuple())
        assert len(origins) > 1

    def test_dof_rays_converge_on_focus_plane(self, rng):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, -1), aperture=1.0, focus_dist=4.0)
        for _ in range(50):
            ray = cam.get_ray(0.5, 0.5, rng)
            assert ray.at(1.0) == Point3(0, 0, -4)


class TestShutter:
    """Test ray time sampling."""

    def test_default_interval(self, pinhole, rng):
        for _ in range(50):
            assert 0.0 <= pinhole.get_ray(0.5, 0.5, rng).time < 1.0

    def test_time_in_shutter_range(self, rng):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, -1), time0=0.25, time1=0.75)
        times = [cam.get_ray(0.5, 0.5, rng).time for _ in range(200)]
        assert all(0.25 <= t < 0.75 for t in times)
        assert max(times) - min(times) > 0.3

    def test_fixed_shutter(self, rng):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, -1), time0=0.5, time1=0.5)
        assert all(cam.get_ray(0.5, 0.5, rng).time == 0.5 for _ in range(10))


class TestCameraRepr:
    """Test Camera string representation."""

    def test_repr(self, pinhole):
        assert "Camera" in repr(pinhole)
