"""
lumenforge - A Python Monte-Carlo Path Tracer

A BVH-accelerated offline renderer with support for:
- Spheres, moving spheres, axis-aligned rectangles and boxes
- Translate / rotate-Y / flip-normals decorators
- Participating media (constant density fog and smoke)
- Lambertian, metal, dielectric, emissive and isotropic materials
- Solid, checker, Perlin-noise and image textures
- Multi-threaded tile rendering with PPM and Pillow output
"""

__version__ = "0.1.0"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .aabb import AABB
from .shapes import (
    Hittable, HitRecord, HittableList, Sphere, MovingSphere,
    XYRect, XZRect, YZRect, Cuboid
)
from .transforms import Translate, RotateY, FlipNormals
from .volumes import ConstantMedium, create_fog, create_smoke
from .bvh import BVH, BVHNode, BVHConstructionError, build_bvh
from .textures import Texture, SolidColor, CheckerTexture, NoiseTexture, ImageTexture, Perlin
from .materials import (
    Material, ScatterResult, Lambertian, Metal, Dielectric, DiffuseLight, Isotropic
)
from .camera import Camera
from .renderer import (
    MAX_DEPTH, Renderer, RenderSettings, color_world, sky_color,
    to_ldr, write_ppm, save_image
)
from .scenes import Scene, SCENES, load_demo_scene, build_world
from .scene_parser import SceneParser, SceneParseError, load_scene, parse_scene
