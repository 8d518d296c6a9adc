"""Tests for Ray class."""

import math

import pytest
from lumenforge.vec3 import Vec3, Point3
from lumenforge.ray import Ray


class TestRayCreation:
    """Test Ray construction."""

    def test_default_time(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))
        assert ray.time == 0.0

    def test_with_time(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0), 0.5)
        assert ray.time == 0.5

    def test_stores_origin_and_direction(self):
        ray = Ray(Point3(1, 2, 3), Vec3(1, 2, 3))
        assert ray.origin == Point3(1, 2, 3)
        assert ray.direction == Vec3(1, 2, 3)

    def test_direction_not_normalized(self):
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -4))
        assert ray.direction.length() == 4.0


class TestRayCachedFields:
    """Test the cached inverse direction and sign."""

    def test_inverse_direction(self):
        ray = Ray(Point3(0, 0, 0), Vec3(2, -4, 0.5))
        assert ray.inv_direction.to_tuple() == (0.5, -0.25, 2.0)

    def test_sign(self):
        ray = Ray(Point3(0, 0, 0), Vec3(2, -4, 0.5))
        assert ray.sign == (0, 1, 0)

    def test_zero_component_gives_infinity(self):
        ray = Ray(Point3(0, 0, 0), Vec3(0, 1, 0))
        assert ray.inv_direction.x == math.inf
        assert ray.sign[0] == 0

    def test_negative_zero_component(self):
        ray = Ray(Point3(0, 0, 0), Vec3(-0.0, 1, 0))
        assert ray.inv_direction.x == -math.inf
        assert ray.sign[0] == 1


class TestRayAt:
    """Test Ray.at() method."""

    def test_at_zero(self):
        ray = Ray(Point3(1, 2, 3), Vec3(1, 0, 0))
        assert ray.at(0) == Point3(1, 2, 3)

    def test_at_positive(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))
        assert ray.at(5).to_tuple() == (5, 0, 0)

    def test_at_negative(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))
        assert ray.at(-5).x == -5

    def test_at_with_diagonal(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 1, 1))
        assert ray.at(2).to_tuple() == (2, 2, 2)


class TestRayRepr:
    """Test Ray string representation."""

    def test_repr(self):
        ray = Ray(Point3(1, 2, 3), Vec3(0, 1, 0))
        assert "Ray" in repr(ray)
