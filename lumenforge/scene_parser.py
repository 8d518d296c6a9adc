"""
Scene description language parser.

Supports a JSON or YAML scene description format with:
- Camera configuration
- Render settings
- Textures library
- Materials library
- Objects (shapes, media and nested BVHs, with optional transforms)

Example scene file:
```yaml
camera:
  look_from: [278, 278, -800]
  look_at: [278, 278, 0]
  vfov: 40

render:
  width: 300
  height: 300
  samples: 100
  background: false

textures:
  marble:
    type: noise
    scale: 4

materials:
  white:
    type: lambertian
    albedo: [0.73, 0.73, 0.73]
  light:
    type: diffuse_light
    emit: [15, 15, 15]

objects:
  - type: xz_rect
    x0: 213
    x1: 343
    z0: 227
    z1: 332
    k: 554
    material: light

  - type: cuboid
    min: [0, 0, 0]
    max: [165, 330, 165]
    material: white
    rotate_y: 15
    translate: [265, 0, 295]
```
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union
import json
import logging

import numpy as np
import yaml

from .vec3 import Vec3, Color
from .camera import Camera
from .shapes import Hittable, HittableList, Sphere, MovingSphere, XYRect, XZRect, YZRect, Cuboid
from .transforms import Translate, RotateY, FlipNormals
from .volumes import ConstantMedium
from .bvh import BVHNode
from .materials import Material, Lambertian, Metal, Dielectric, DiffuseLight, Isotropic
from .textures import Texture, SolidColor, CheckerTexture, NoiseTexture, ImageTexture
from .renderer import RenderSettings

logger = logging.getLogger(__name__)


class SceneParseError(Exception):
    """Error during scene parsing."""


SceneTuple = Tuple[HittableList, Camera, RenderSettings]


def _require(data: Dict[str, Any], key: str, context: str) -> Any:
    if key not in data:
        raise SceneParseError(f"{context} is missing required field '{key}'")
    return data[key]


def _section(data: Dict[str, Any], key: str, kind: type) -> Any:
    """A top-level section, empty when absent; ``kind`` is dict or list."""
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        expected = 'a mapping' if kind is dict else 'a list'
        raise SceneParseError(f"'{key}' must be {expected}, got {type(value).__name__}")
    return value


def _entry(value: Any, context: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SceneParseError(f"{context} must be a mapping, got {value!r}")
    return value


class SceneParser:
    """Parser for scene description files."""

    def __init__(self, rng: Optional[np.random.Generator] = None, base_dir: Optional[Path] = None):
        """Create a parser.

        Args:
            rng: Generator for noise textures and BVH split axes
            base_dir: Directory relative image paths are resolved against
        """
        self.rng = rng if rng is not None else np.random.default_rng()
        self.base_dir = base_dir
        self.textures: Dict[str, Texture] = {}
        self.materials: Dict[str, Material] = {}
        self.objects: HittableList = HittableList()
        self.camera: Optional[Camera] = None
        self.settings: Optional[RenderSettings] = None

        self._object_parsers: Dict[str, Callable[[Dict[str, Any]], Hittable]] = {
            'sphere': self._parse_sphere,
            'moving_sphere': self._parse_moving_sphere,
            'xy_rect': self._parse_rect,
            'xz_rect': self._parse_rect,
            'yz_rect': self._parse_rect,
            'cuboid': self._parse_cuboid,
            'bvh': self._parse_bvh,
            'constant_medium': self._parse_constant_medium,
        }

    def parse_file(
        self,
        filepath: Union[str, Path],
        render_overrides: Optional[Dict[str, Any]] = None
    ) -> SceneTuple:
        """Parse a scene file.

        Args:
            filepath: Path to the scene file (``.json``; anything else is read as YAML)
            render_overrides: Keys replacing those of the ``render`` section

        Returns:
            Tuple of (objects, camera, settings)
        """
        path = Path(filepath)
        if not path.exists():
            raise SceneParseError(f"Scene file not found: {filepath}")

        content = path.read_text()
        if self.base_dir is None:
            self.base_dir = path.parent

        try:
            if path.suffix == '.json':
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SceneParseError(f"Malformed scene file {filepath}: {e}") from e

        logger.debug("Parsing scene file %s", path)
        return self.parse_dict(data, render_overrides)

    def parse_dict(
        self,
        data: Dict[str, Any],
        render_overrides: Optional[Dict[str, Any]] = None
    ) -> SceneTuple:
        """Parse a scene from a dictionary.

        Args:
            data: Scene description dictionary
            render_overrides: Keys replacing those of the ``render`` section

        Returns:
            Tuple of (objects, camera, settings)
        """
        if not isinstance(data, dict):
            raise SceneParseError(f"Scene must be a mapping, got {type(data).__name__}")

        # Settings first: the camera takes its aspect ratio and shutter from them
        render_data = dict(_section(data, 'render', dict))
        render_data.update(render_overrides or {})
        self._parse_settings(render_data)

        # Textures before materials, materials before objects
        for name, tex_data in _section(data, 'textures', dict).items():
            self.textures[name] = self._parse_texture(_entry(tex_data, f"texture '{name}'"))

        for name, mat_data in _section(data, 'materials', dict).items():
            self.materials[name] = self._parse_material(_entry(mat_data, f"material '{name}'"))

        for obj_data in _section(data, 'objects', list):
            self.objects.add(self._parse_object(obj_data))

        self._parse_camera(_section(data, 'camera', dict))

        logger.info(
            "Parsed scene: %d objects, %d materials, %d textures",
            len(self.objects), len(self.materials), len(self.textures)
        )
        return self.objects, self.camera, self.settings

    def _parse_vec3(self, data: Any) -> Vec3:
        """Parse a Vec3 from various formats."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Vec3 must have 3 components, got {len(data)}")
            return Vec3(float(data[0]), float(data[1]), float(data[2]))
        elif isinstance(data, dict):
            return Vec3(
                float(data.get('x', 0)),
                float(data.get('y', 0)),
                float(data.get('z', 0))
            )
        else:
            raise SceneParseError(f"Cannot parse Vec3 from: {data}")

    def _parse_color(self, data: Any) -> Color:
        """Parse a Color from various formats."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Color must have 3 components, got {len(data)}")
            return Color(float(data[0]), float(data[1]), float(data[2]))
        elif isinstance(data, dict):
            return Color(
                float(data.get('r', 0)),
                float(data.get('g', 0)),
                float(data.get('b', 0))
            )
        elif isinstance(data, str) and data.startswith('#') and len(data) == 7:
            try:
                r, g, b = (int(data[i:i + 2], 16) / 255.0 for i in (1, 3, 5))
            except ValueError as e:
                raise SceneParseError(f"Cannot parse color from string: {data}") from e
            return Color(r, g, b)
        else:
            raise SceneParseError(f"Cannot parse Color from: {data}")

    def _parse_texture(self, tex_data: Dict[str, Any]) -> Texture:
        """Parse one texture definition."""
        tex_type = str(tex_data.get('type', 'solid')).lower()

        if tex_type == 'solid':
            return SolidColor(self._parse_color(_require(tex_data, 'color', 'solid texture')))

        elif tex_type == 'checker':
            return CheckerTexture(
                self._get_texture(_require(tex_data, 'even', 'checker texture')),
                self._get_texture(_require(tex_data, 'odd', 'checker texture')),
                float(tex_data.get('frequency', 10.0))
            )

        elif tex_type == 'noise':
            return NoiseTexture(float(tex_data.get('scale', 1.0)), self.rng)

        elif tex_type == 'image':
            image_path = Path(_require(tex_data, 'path', 'image texture'))
            if not image_path.is_absolute() and self.base_dir is not None:
                image_path = self.base_dir / image_path
            try:
                return ImageTexture(image_path)
            except FileNotFoundError as e:
                raise SceneParseError(str(e)) from e

        else:
            raise SceneParseError(f"Unknown texture type: {tex_type}")

    def _get_texture(self, tex_ref: Any) -> Texture:
        """Get a texture by name, inline definition or plain color."""
        if isinstance(tex_ref, str) and not tex_ref.startswith('#'):
            if tex_ref not in self.textures:
                raise SceneParseError(f"Unknown texture: {tex_ref}")
            return self.textures[tex_ref]
        if isinstance(tex_ref, dict) and 'type' in tex_ref:
            return self._parse_texture(tex_ref)
        return SolidColor(self._parse_color(tex_ref))

    def _albedo(self, mat_data: Dict[str, Any], key: str, default: list) -> Texture:
        """A material's texture from ``texture`` if given, else the color under ``key``."""
        if 'texture' in mat_data:
            return self._get_texture(mat_data['texture'])
        return self._get_texture(mat_data.get(key, default))

    def _parse_material(self, mat_data: Dict[str, Any]) -> Material:
        """Parse one material definition."""
        mat_type = str(mat_data.get('type', 'lambertian')).lower()

        if mat_type == 'lambertian':
            return Lambertian(self._albedo(mat_data, 'albedo', [0.5, 0.5, 0.5]))

        elif mat_type == 'metal':
            albedo = self._parse_color(mat_data.get('albedo', [0.8, 0.8, 0.8]))
            return Metal(albedo, float(mat_data.get('fuzz', 0.0)))

        elif mat_type == 'dielectric':
            return Dielectric(float(mat_data.get('ior', 1.5)))

        elif mat_type == 'diffuse_light':
            return DiffuseLight(self._albedo(mat_data, 'emit', [1, 1, 1]))

        elif mat_type == 'isotropic':
            return Isotropic(self._albedo(mat_data, 'albedo', [1, 1, 1]))

        else:
            raise SceneParseError(f"Unknown material type: {mat_type}")

    def _get_material(self, mat_ref: Any) -> Material:
        """Get a material by name or inline definition."""
        if isinstance(mat_ref, str):
            if mat_ref not in self.materials:
                raise SceneParseError(f"Unknown material: {mat_ref}")
            return self.materials[mat_ref]
        elif isinstance(mat_ref, dict):
            return self._parse_material(mat_ref)
        else:
            raise SceneParseError(f"Invalid material reference: {mat_ref}")

    def _object_material(self, obj_data: Dict[str, Any]) -> Material:
        obj_type = str(obj_data.get('type', 'sphere')).lower()
        return self._get_material(_require(obj_data, 'material', obj_type))

    def _parse_object(self, obj_data: Dict[str, Any]) -> Hittable:
        """Parse one object and wrap it in its transforms.

        Transforms apply in a fixed order: flip_normals, rotate_y, translate.
        """
        if not isinstance(obj_data, dict):
            raise SceneParseError(f"Object must be a mapping, got {obj_data!r}")

        obj_type = str(obj_data.get('type', 'sphere')).lower()
        parser = self._object_parsers.get(obj_type)
        if parser is None:
            raise SceneParseError(f"Unknown object type: {obj_type}")

        obj = parser(obj_data)

        if obj_data.get('flip_normals', False):
            obj = FlipNormals(obj)
        if 'rotate_y' in obj_data:
            obj = RotateY(obj, float(obj_data['rotate_y']), self.settings.time0, self.settings.time1)
        if 'translate' in obj_data:
            obj = Translate(obj, self._parse_vec3(obj_data['translate']))

        return obj

    def _parse_sphere(self, obj_data: Dict[str, Any]) -> Hittable:
        return Sphere(
            self._parse_vec3(obj_data.get('center', [0, 0, 0])),
            float(obj_data.get('radius', 1.0)),
            self._object_material(obj_data)
        )

    def _parse_moving_sphere(self, obj_data: Dict[str, Any]) -> Hittable:
        return MovingSphere(
            self._parse_vec3(_require(obj_data, 'center0', 'moving_sphere')),
            self._parse_vec3(_require(obj_data, 'center1', 'moving_sphere')),
            float(obj_data.get('time0', 0.0)),
            float(obj_data.get('time1', 1.0)),
            float(obj_data.get('radius', 1.0)),
            self._object_material(obj_data)
        )

    def _parse_rect(self, obj_data: Dict[str, Any]) -> Hittable:
        obj_type = obj_data['type'].lower()
        rect_class, a, b = {
            'xy_rect': (XYRect, 'x', 'y'),
            'xz_rect': (XZRect, 'x', 'z'),
            'yz_rect': (YZRect, 'y', 'z'),
        }[obj_type]
        bounds = [
            float(_require(obj_data, key, obj_type))
            for key in (f'{a}0', f'{a}1', f'{b}0', f'{b}1', 'k')
        ]
        return rect_class(*bounds, self._object_material(obj_data))

    def _parse_cuboid(self, obj_data: Dict[str, Any]) -> Hittable:
        return Cuboid(
            self._parse_vec3(_require(obj_data, 'min', 'cuboid')),
            self._parse_vec3(_require(obj_data, 'max', 'cuboid')),
            self._object_material(obj_data),
            self.rng
        )

    def _parse_bvh(self, obj_data: Dict[str, Any]) -> Hittable:
        children = [self._parse_object(child) for child in _require(obj_data, 'objects', 'bvh')]
        if not children:
            raise SceneParseError("bvh needs at least one object")
        return BVHNode(children, self.settings.time0, self.settings.time1, self.rng)

    def _parse_constant_medium(self, obj_data: Dict[str, Any]) -> Hittable:
        boundary = self._parse_object(_require(obj_data, 'boundary', 'constant_medium'))
        density = float(_require(obj_data, 'density', 'constant_medium'))
        if density <= 0:
            raise SceneParseError(f"constant_medium density must be positive, got {density}")
        return ConstantMedium(boundary, density, self._albedo(obj_data, 'albedo', [1, 1, 1]))

    def _parse_camera(self, camera_data: Dict[str, Any]) -> None:
        """Parse camera section."""
        settings = self.settings
        self.camera = Camera(
            look_from=self._parse_vec3(camera_data.get('look_from', [0, 0, 5])),
            look_at=self._parse_vec3(camera_data.get('look_at', [0, 0, 0])),
            vup=self._parse_vec3(camera_data.get('vup', [0, 1, 0])),
            vfov=float(camera_data.get('vfov', 60)),
            aspect_ratio=float(camera_data.get('aspect_ratio', settings.aspect_ratio)),
            aperture=float(camera_data.get('aperture', 0.0)),
            focus_dist=float(camera_data.get('focus_dist', 10.0)),
            time0=settings.time0,
            time1=settings.time1
        )

    def _parse_settings(self, settings_data: Dict[str, Any]) -> None:
        """Parse render settings section."""
        defaults = RenderSettings()
        seed = settings_data.get('seed')
        try:
            self.settings = RenderSettings(
                width=int(settings_data.get('width', defaults.width)),
                height=int(settings_data.get('height', defaults.height)),
                samples_per_pixel=int(settings_data.get('samples', defaults.samples_per_pixel)),
                max_depth=int(settings_data.get('max_depth', defaults.max_depth)),
                tile_size=int(settings_data.get('tile_size', defaults.tile_size)),
                num_threads=int(settings_data.get('threads', 0)),
                background=bool(settings_data.get('background', defaults.background)),
                time0=float(settings_data.get('time0', defaults.time0)),
                time1=float(settings_data.get('time1', defaults.time1)),
                seed=int(seed) if seed is not None else None
            )
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Invalid render settings: {e}") from e


def load_scene(
    filepath: Union[str, Path],
    rng: Optional[np.random.Generator] = None
) -> SceneTuple:
    """Convenience function to load a scene file.

    Args:
        filepath: Path to the scene file
        rng: Generator for the scene's random elements

    Returns:
        Tuple of (objects, camera, settings)
    """
    parser = SceneParser(rng)
    return parser.parse_file(filepath)


def parse_scene(
    data: Dict[str, Any],
    rng: Optional[np.random.Generator] = None
) -> SceneTuple:
    """Convenience function to parse a scene from a dictionary.

    Args:
        data: Scene description dictionary

    Returns:
        Tuple of (objects, camera, settings)
    """
    parser = SceneParser(rng)
    return parser.parse_dict(data)
