"""Tests for participating media."""

import math

import numpy as np
import pytest
from lumenforge.vec3 import Vec3, Point3, Color
from lumenforge.ray import Ray
from lumenforge.shapes import Sphere, Cuboid
from lumenforge.materials import Lambertian, Isotropic
from lumenforge.volumes import ConstantMedium, create_fog, create_smoke

GRAY = Lambertian(Color(0.5, 0.5, 0.5))


@pytest.fixture
def rng():
    return np.random.default_rng(2024)


def unit_sphere_medium(density):
    return ConstantMedium(Sphere(Point3(0, 0, 0), 1.0, GRAY), density, Color(0.8, 0.8, 0.8))


class TestConstantMedium:
    """Test ConstantMedium class."""

    def test_dense_medium_hits_inside_boundary(self, rng):
        medium = unit_sphere_medium(100.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))

        for _ in range(100):
            hit = medium.hit(ray, 0.001, math.inf, rng)
            assert hit is not None
            assert 4.0 <= hit.t < 6.0
            assert hit.point == ray.at(hit.t)

    def test_placeholder_record(self, rng):
        medium = unit_sphere_medium(100.0)
        hit = medium.hit(Ray(Point3(0, 0, -5), Vec3(0, 0, 1)), 0.001, math.inf, rng)

        assert hit.normal == Vec3(1, 0, 0)
        assert (hit.u, hit.v) == (0.0, 0.0)
        assert hit.material is medium.phase_function
        assert isinstance(medium.phase_function, Isotropic)

    def test_thin_medium_hit_rate(self, rng):
        medium = unit_sphere_medium(0.01)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))

        trials = 5000
        hits = sum(1 for _ in range(trials) if medium.hit(ray, 0.001, math.inf, rng) is not None)

        # 1 - exp(-density * 2) of the rays scatter
        expected = trials * (1 - math.exp(-0.02))
        assert abs(hits - expected) < 50

    def test_mean_free_path(self, rng):
        medium = ConstantMedium(Sphere(Point3(0, 0, 0), 100.0, GRAY), 1.0, Color(1, 1, 1))
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))

        distances = [medium.hit(ray, 0.001, math.inf, rng).t - 0.001 for _ in range(4000)]
        assert np.mean(distances) == pytest.approx(1.0, abs=0.08)

    def test_unnormalized_direction(self, rng):
        medium = unit_sphere_medium(100.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 2))

        for _ in range(50):
            hit = medium.hit(ray, 0.001, math.inf, rng)
            assert 2.0 <= hit.t < 3.0

    def test_miss_boundary(self, rng):
        medium = unit_sphere_medium(100.0)
        assert medium.hit(Ray(Point3(0, 5, -5), Vec3(0, 0, 1)), 0.001, math.inf, rng) is None

    def test_medium_behind_ray(self, rng):
        medium = unit_sphere_medium(100.0)
        assert medium.hit(Ray(Point3(0, 0, 5), Vec3(0, 0, 1)), 0.001, math.inf, rng) is None

    def test_t_max_before_medium(self, rng):
        medium = unit_sphere_medium(100.0)
        assert medium.hit(Ray(Point3(0, 0, -5), Vec3(0, 0, 1)), 0.001, 3.0, rng) is None

    def test_reproducible_with_seed(self):
        medium = unit_sphere_medium(1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))

        a = [medium.hit(ray, 0.001, math.inf, np.random.default_rng(5)) for _ in range(3)]
        b = [medium.hit(ray, 0.001, math.inf, np.random.default_rng(5)) for _ in range(3)]
        assert [h and h.t for h in a] == [h and h.t for h in b]

    def test_cuboid_boundary(self, rng):
        box = Cuboid(Point3(0, 0, 0), Point3(1, 1, 1), GRAY, rng=np.random.default_rng(0))
        medium = ConstantMedium(box, 100.0, Color(1, 1, 1))
        hit = medium.hit(Ray(Point3(0.5, 0.5, -5), Vec3(0, 0, 1)), 0.001, math.inf, rng)
        assert 5.0 <= hit.t < 6.0

    def test_bounding_box_passthrough(self):
        boundary = Sphere(Point3(1, 2, 3), 2.0, GRAY)
        bbox = ConstantMedium(boundary, 0.5, Color(1, 1, 1)).bounding_box()
        assert bbox.minimum == Point3(-1, 0, 1)
        assert bbox.maximum == Point3(3, 4, 5)


class TestFactories:
    """Test fog and smoke helpers."""

    def test_fog(self):
        fog = create_fog(Sphere(Point3(0, 0, 0), 1.0, GRAY))
        assert fog.density == 0.01
        assert fog.phase_function.albedo.value(0, 0, Point3(0, 0, 0)) == Color(1, 1, 1)

    def test_smoke(self):
        smoke = create_smoke(Sphere(Point3(0, 0, 0), 1.0, GRAY), density=0.2)
        assert smoke.density == 0.2
        assert smoke.phase_function.albedo.value(0, 0, Point3(0, 0, 0)) == Color(0, 0, 0)
