"""
Built-in demo scenes.

Each builder takes a numpy Generator and returns a Scene: the object list,
a camera factory and whether escaping rays see the sky.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from .vec3 import Vec3, Color, Point3
from .camera import Camera
from .shapes import Hittable, Sphere, MovingSphere, XYRect, XZRect, YZRect, Cuboid
from .transforms import Translate, RotateY, FlipNormals
from .volumes import ConstantMedium
from .bvh import BVHNode
from .materials import Lambertian, Metal, Dielectric, DiffuseLight
from .textures import CheckerTexture, NoiseTexture, ImageTexture

logger = logging.getLogger(__name__)

CameraFactory = Callable[..., Camera]


@dataclass
class Scene:
    """A demo scene ready to be wrapped in a BVH."""
    name: str
    objects: list[Hittable]
    camera_factory: CameraFactory
    background: bool = False

    def camera(self, aspect_ratio: float, time0: float = 0.0, time1: float = 1.0) -> Camera:
        return self.camera_factory(aspect_ratio, time0, time1)


def _look_at(look_from: Point3, look_at: Point3, vfov: float,
             aperture: float = 0.0, focus_dist: float = 10.0) -> CameraFactory:
    def factory(aspect_ratio: float, time0: float = 0.0, time1: float = 1.0) -> Camera:
        return Camera(
            look_from=look_from,
            look_at=look_at,
            vup=Vec3(0, 1, 0),
            vfov=vfov,
            aspect_ratio=aspect_ratio,
            aperture=aperture,
            focus_dist=focus_dist,
            time0=time0,
            time1=time1
        )
    return factory


OUTDOOR_CAMERA = _look_at(Point3(13, 2, 3), Point3(0, 0, 0), vfov=20)
CORNELL_CAMERA = _look_at(Point3(278, 278, -800), Point3(278, 278, 0), vfov=40)


def _ground_checker() -> CheckerTexture:
    return CheckerTexture.from_colors(Color(0.2, 0.3, 0.1), Color(0.9, 0.9, 0.9))


def random_scene(rng: np.random.Generator) -> Scene:
    """Ground, three large spheres and a grid of small random ones."""
    objects: list[Hittable] = [
        Sphere(Point3(0, -1000, 0), 1000, Lambertian(_ground_checker()))
    ]

    for a in range(-10, 10):
        for b in range(-10, 10):
            choose_material = rng.random()
            center = Point3(a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())
            if (center - Point3(4, 0.2, 0)).length() <= 0.9:
                continue

            if choose_material < 0.8:
                albedo = Color(*(rng.random(3) * rng.random(3)))
                objects.append(MovingSphere(
                    center, center + Vec3(0, 0.5 * rng.random(), 0), 0.0, 1.0, 0.2,
                    Lambertian(albedo)
                ))
            elif choose_material < 0.95:
                albedo = Color(*(0.5 * (1 + rng.random(3))))
                objects.append(Sphere(center, 0.2, Metal(albedo, 0.5 * rng.random())))
            else:
                objects.append(Sphere(center, 0.2, Dielectric(1.5)))

    objects.append(Sphere(Point3(0, 1, 0), 1.0, Dielectric(1.5)))
    objects.append(Sphere(Point3(-4, 1, 0), 1.0, Lambertian(Color(0.4, 0.2, 0.1))))
    objects.append(Sphere(Point3(4, 1, 0), 1.0, Metal(Color(0.7, 0.6, 0.5), 0.0)))

    camera = _look_at(Point3(13, 2, 3), Point3(0, 0, 0), vfov=20, aperture=0.1)
    return Scene('random', objects, camera, background=True)


def two_spheres(rng: np.random.Generator) -> Scene:
    checker = _ground_checker()
    objects: list[Hittable] = [
        Sphere(Point3(0, -10, 0), 10, Lambertian(checker)),
        Sphere(Point3(0, 10, 0), 10, Lambertian(checker)),
    ]
    return Scene('two_spheres', objects, OUTDOOR_CAMERA, background=True)


def two_perlin_spheres(rng: np.random.Generator) -> Scene:
    marble = NoiseTexture(5.0, rng)
    objects: list[Hittable] = [
        Sphere(Point3(0, -1000, 0), 1000, Lambertian(marble)),
        Sphere(Point3(0, 2, 0), 2, Lambertian(marble)),
    ]
    return Scene('two_perlin_spheres', objects, OUTDOOR_CAMERA, background=True)


def simple_light(rng: np.random.Generator) -> Scene:
    """Marble spheres lit by a spherical and a rectangular light."""
    marble = NoiseTexture(4.0, rng)
    light = DiffuseLight(Color(4, 4, 4))
    objects: list[Hittable] = [
        Sphere(Point3(0, -1000, 0), 1000, Lambertian(marble)),
        Sphere(Point3(0, 2, 0), 2, Lambertian(marble)),
        Sphere(Point3(0, 7, 0), 2, light),
        XYRect(3, 5, 1, 3, -2, light),
    ]
    camera = _look_at(Point3(26, 3, 6), Point3(0, 2, 0), vfov=20)
    return Scene('simple_light', objects, camera)


def _cornell_room(light_rect: tuple[float, float, float, float]) -> tuple[list[Hittable], Lambertian]:
    """Five walls of the 555-unit box plus a ceiling light; returns the white material too."""
    red = Lambertian(Color(0.65, 0.05, 0.05))
    white = Lambertian(Color(0.73, 0.73, 0.73))
    green = Lambertian(Color(0.12, 0.45, 0.15))
    light = DiffuseLight(Color(15, 15, 15))
    x0, x1, z0, z1 = light_rect

    walls: list[Hittable] = [
        FlipNormals(YZRect(0, 555, 0, 555, 555, green)),
        YZRect(0, 555, 0, 555, 0, red),
        XZRect(x0, x1, z0, z1, 554, light),
        FlipNormals(XZRect(0, 555, 0, 555, 555, white)),
        XZRect(0, 555, 0, 555, 0, white),
        FlipNormals(XYRect(0, 555, 0, 555, 555, white)),
    ]
    return walls, white


def _cornell_blocks(white: Lambertian, rng: np.random.Generator) -> tuple[Hittable, Hittable]:
    short_block = Translate(
        RotateY(Cuboid(Point3(0, 0, 0), Point3(165, 165, 165), white, rng), -18),
        Vec3(130, 0, 65)
    )
    tall_block = Translate(
        RotateY(Cuboid(Point3(0, 0, 0), Point3(165, 330, 165), white, rng), 15),
        Vec3(265, 0, 295)
    )
    return short_block, tall_block


def cornell_box(rng: np.random.Generator) -> Scene:
    objects, _ = _cornell_room((213, 343, 227, 332))
    return Scene('cornell_box', objects, CORNELL_CAMERA)


def cornell_box_cuboids(rng: np.random.Generator) -> Scene:
    objects, white = _cornell_room((213, 343, 227, 332))
    objects.extend(_cornell_blocks(white, rng))
    return Scene('cornell_box_cuboids', objects, CORNELL_CAMERA)


def cornell_smoke(rng: np.random.Generator) -> Scene:
    """Cornell box with the two blocks replaced by white and black smoke."""
    objects, white = _cornell_room((113, 443, 127, 432))
    short_block, tall_block = _cornell_blocks(white, rng)
    objects.append(ConstantMedium(short_block, 0.01, Color(1, 1, 1)))
    objects.append(ConstantMedium(tall_block, 0.01, Color(0, 0, 0)))
    return Scene('cornell_smoke', objects, CORNELL_CAMERA)


def final_scene(
    rng: np.random.Generator,
    earth_image: Optional[Union[str, Path]] = None
) -> Scene:
    """Every primitive, material and texture in one scene.

    Args:
        rng: Generator for the random geometry, split axes and noise
        earth_image: Image for the textured sphere; a flat color is used
            when omitted
    """
    white = Lambertian(Color(0.73, 0.73, 0.73))
    ground = Lambertian(Color(0.43, 0.83, 0.53))

    boxes: list[Hittable] = []
    boxes_per_side = 20
    w = 100.0
    for i in range(boxes_per_side):
        for j in range(boxes_per_side):
            x0, z0 = -1000.0 + i * w, -1000.0 + j * w
            y1 = 100.0 * (rng.random() + 0.01)
            boxes.append(Cuboid(Point3(x0, 0, z0), Point3(x0 + w, y1, z0 + w), ground, rng))

    objects: list[Hittable] = [BVHNode(boxes, 0.0, 1.0, rng)]

    objects.append(XZRect(123, 423, 147, 412, 554, DiffuseLight(Color(7, 7, 7))))

    center = Point3(400, 400, 200)
    objects.append(MovingSphere(
        center, center + Vec3(30, 0, 0), 0.0, 1.0, 50, Lambertian(Color(0.7, 0.3, 0.1))
    ))
    objects.append(Sphere(Point3(260, 150, 45), 50, Dielectric(1.5)))
    objects.append(Sphere(Point3(0, 150, 145), 50, Metal(Color(0.8, 0.8, 0.9), 10.0)))

    boundary = Sphere(Point3(360, 150, 145), 70, Dielectric(1.5))
    objects.append(boundary)
    objects.append(ConstantMedium(boundary, 0.2, Color(0.2, 0.4, 0.9)))

    mist = Sphere(Point3(0, 0, 0), 5000, Dielectric(1.5))
    objects.append(ConstantMedium(mist, 0.0001, Color(1, 1, 1)))

    if earth_image is not None:
        earth = Lambertian(ImageTexture(earth_image))
    else:
        logger.info("No earth image given, using a flat color for the textured sphere")
        earth = Lambertian(Color(0.2, 0.35, 0.6))
    objects.append(Sphere(Point3(400, 200, 400), 100, earth))

    objects.append(Sphere(Point3(220, 280, 300), 80, Lambertian(NoiseTexture(0.1, rng))))

    cluster: list[Hittable] = [
        Sphere(Point3(*(165 * rng.random(3))), 10, white) for _ in range(1000)
    ]
    objects.append(Translate(
        RotateY(BVHNode(cluster, 0.0, 1.0, rng), 15),
        Vec3(-100, 270, 395)
    ))

    camera = _look_at(Point3(478, 278, -600), Point3(278, 278, 0), vfov=40)
    return Scene('final', objects, camera)


SCENES: dict[str, Callable[..., Scene]] = {
    'random': random_scene,
    'two_spheres': two_spheres,
    'two_perlin_spheres': two_perlin_spheres,
    'simple_light': simple_light,
    'cornell_box': cornell_box,
    'cornell_box_cuboids': cornell_box_cuboids,
    'cornell_smoke': cornell_smoke,
    'final': final_scene,
}


def load_demo_scene(
    name: str,
    rng: Optional[np.random.Generator] = None,
    earth_image: Optional[Union[str, Path]] = None
) -> Scene:
    """Build a registered demo scene by name.

    Raises:
        KeyError: If no scene has that name
    """
    if name not in SCENES:
        raise KeyError(f"Unknown scene {name!r}; choose from {', '.join(sorted(SCENES))}")

    if rng is None:
        rng = np.random.default_rng()

    if name == 'final':
        scene = final_scene(rng, earth_image)
    else:
        scene = SCENES[name](rng)
    logger.debug("Built scene %s with %d top-level objects", name, len(scene.objects))
    return scene


def build_world(scene: Scene, settings, rng: Optional[np.random.Generator] = None) -> BVHNode:
    """Wrap a scene's objects in a BVH over the settings' shutter interval."""
    return BVHNode(scene.objects, settings.time0, settings.time1, rng)
