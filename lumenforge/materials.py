"""
Materials system.

Implements the closed set of scattering behaviors:
- Lambertian diffuse
- Metal (mirror reflection with fuzz)
- Dielectric (glass, water - with refraction)
- DiffuseLight (emitter)
- Isotropic (phase function for participating media)

Materials hold only parameter data. Randomness comes from the generator
passed to ``scatter``.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union, TYPE_CHECKING
import math

import numpy as np

from .vec3 import Vec3, Color, Point3
from .ray import Ray
from .textures import Texture, as_texture

if TYPE_CHECKING:
    from .shapes import HitRecord

BLACK = Color(0, 0, 0)
WHITE = Color(1, 1, 1)


@dataclass
class ScatterResult:
    """Result of a material scatter operation."""
    attenuation: Color
    scattered_ray: Ray


def reflect(v: Vec3, n: Vec3) -> Vec3:
    """Mirror ``v`` about the normal ``n``."""
    return v - n * (2 * v.dot(n))


def refract(v: Vec3, n: Vec3, ni_over_nt: float) -> Optional[Vec3]:
    """Refract ``v`` through a surface with outward normal ``n`` by Snell's law.

    Returns None on total internal reflection.
    """
    uv = v.normalize()
    dt = uv.dot(n)
    discriminant = 1.0 - ni_over_nt * ni_over_nt * (1.0 - dt * dt)
    if discriminant > 0:
        return (uv - n * dt) * ni_over_nt - n * math.sqrt(discriminant)
    return None


def schlick(cosine: float, ref_idx: float) -> float:
    """Schlick's approximation for reflectance."""
    r0 = (1 - ref_idx) / (1 + ref_idx)
    r0 = r0 * r0
    return r0 + (1 - r0) * pow(1 - cosine, 5)


class Material(ABC):
    """Abstract base class for materials."""

    @abstractmethod
    def scatter(
        self,
        ray_in: Ray,
        record: HitRecord,
        rng: Optional[np.random.Generator] = None
    ) -> Optional[ScatterResult]:
        """Compute the scattered ray and attenuation.

        Args:
            ray_in: The incoming ray
            record: The intersection being shaded
            rng: Random generator for stochastic scattering

        Returns:
            ScatterResult if the ray scatters, None if it is absorbed
        """

    def emitted(self, u: float, v: float, point: Point3) -> Color:
        """Return emitted light color. Default is no emission."""
        return BLACK


class Lambertian(Material):
    """Diffuse material with Lambertian (ideal matte) scattering."""

    def __init__(self, albedo: Union[Texture, Color]):
        """Create a Lambertian material.

        Args:
            albedo: A texture, or a plain color used as a solid texture
        """
        self.albedo = as_texture(albedo)

    def scatter(self, ray_in: Ray, record: HitRecord, rng=None) -> Optional[ScatterResult]:
        if rng is None:
            rng = np.random.default_rng()

        target = record.point + record.normal + Vec3.random_in_unit_sphere(rng)
        return ScatterResult(
            attenuation=self.albedo.value(record.u, record.v, record.point),
            scattered_ray=Ray(record.point, target - record.point, ray_in.time)
        )


class Metal(Material):
    """Metallic material with specular reflection."""

    def __init__(self, albedo: Color, fuzz: float = 0.0):
        """Create a metal material.

        Args:
            albedo: The reflection color
            fuzz: Perturbation radius (0 = mirror), clamped to [0, 1]
        """
        self.albedo = albedo
        self.fuzz = max(0.0, min(fuzz, 1.0))

    def scatter(self, ray_in: Ray, record: HitRecord, rng=None) -> Optional[ScatterResult]:
        reflected = reflect(ray_in.direction.normalize(), record.normal)

        if self.fuzz > 0:
            if rng is None:
                rng = np.random.default_rng()
            reflected = reflected + Vec3.random_in_unit_sphere(rng) * self.fuzz

        # Only scatter if reflection is in the correct hemisphere
        if reflected.dot(record.normal) > 0:
            return ScatterResult(
                attenuation=self.albedo,
                scattered_ray=Ray(record.point, reflected, ray_in.time)
            )
        return None


class Dielectric(Material):
    """Dielectric (glass-like) material with refraction.

    Entering versus exiting is decided by the sign of dot(direction, normal).
    For a ray leaving the solid the Fresnel cosine is scaled by the
    refractive index instead of being recomputed for the transmitted
    side.
    """

    def __init__(self, ref_idx: float = 1.5):
        """Create a dielectric material.

        Args:
            ref_idx: Index of refraction (1.0 = air, 1.5 = glass, 2.4 = diamond)
        """
        self.ref_idx = ref_idx

    def scatter(self, ray_in: Ray, record: HitRecord, rng=None) -> Optional[ScatterResult]:
        direction = ray_in.direction
        normal = record.normal
        reflected = reflect(direction, normal)

        d_dot_n = direction.dot(normal)
        if d_dot_n > 0:
            outward_normal = -normal
            ni_over_nt = self.ref_idx
            cosine = self.ref_idx * d_dot_n / direction.length()
        else:
            outward_normal = normal
            ni_over_nt = 1.0 / self.ref_idx
            cosine = -d_dot_n / direction.length()

        refracted = refract(direction, outward_normal, ni_over_nt)
        if refracted is None:
            out_direction = reflected
        else:
            if rng is None:
                rng = np.random.default_rng()
            if rng.random() < schlick(cosine, self.ref_idx):
                out_direction = reflected
            else:
                out_direction = refracted

        return ScatterResult(
            attenuation=WHITE,
            scattered_ray=Ray(record.point, out_direction, ray_in.time)
        )


class DiffuseLight(Material):
    """Light-emitting material. Never scatters."""

    def __init__(self, emit: Union[Texture, Color]):
        self.emit = as_texture(emit)

    def scatter(self, ray_in: Ray, record: HitRecord, rng=None) -> Optional[ScatterResult]:
        return None

    def emitted(self, u: float, v: float, point: Point3) -> Color:
        return self.emit.value(u, v, point)


class Isotropic(Material):
    """Scatters uniformly in all directions; the phase function of ConstantMedium."""

    def __init__(self, albedo: Union[Texture, Color]):
        self.albedo = as_texture(albedo)

    def scatter(self, ray_in: Ray, record: HitRecord, rng=None) -> Optional[ScatterResult]:
        if rng is None:
            rng = np.random.default_rng()

        return ScatterResult(
            attenuation=self.albedo.value(record.u, record.v, record.point),
            scattered_ray=Ray(record.point, Vec3.random_in_unit_sphere(rng), ray_in.time)
        )
