"""
Vector3 class for 3D math operations.

This is the fundamental building block of the renderer, used for:
- Points in 3D space
- Direction vectors
- RGB color values

Vectors are immutable values. Arithmetic follows IEEE-754 semantics
throughout: nothing here special-cases zero lengths or zero components.
"""

from __future__ import annotations
from typing import Union
import numpy as np


class Vec3:
    """An immutable 3D vector.

    Uses numpy internally for efficient computation while providing
    a clean, Pythonic API.
    """

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Create Vec3 from numpy array."""
        v = cls.__new__(cls)
        v._data = np.asarray(arr, dtype=np.float64)
        return v

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # Aliases for color operations
    @property
    def r(self) -> float:
        return self.x

    @property
    def g(self) -> float:
        return self.y

    @property
    def b(self) -> float:
        return self.z

    def __repr__(self) -> str:
        return f"Vec3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return np.allclose(self._data, other._data)

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data + other._data)
        return Vec3.from_array(self._data + other)

    def __radd__(self, other: float) -> Vec3:
        return Vec3.from_array(other + self._data)

    def __sub__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data - other._data)
        return Vec3.from_array(self._data - other)

    def __rsub__(self, other: float) -> Vec3:
        return Vec3.from_array(other - self._data)

    def __mul__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data * other._data)
        return Vec3.from_array(self._data * other)

    def __rmul__(self, other: float) -> Vec3:
        return Vec3.from_array(other * self._data)

    def __truediv__(self, other: Union[Vec3, float]) -> Vec3:
        with np.errstate(divide='ignore', invalid='ignore'):
            if isinstance(other, Vec3):
                return Vec3.from_array(self._data / other._data)
            return Vec3.from_array(self._data / np.float64(other))

    def __getitem__(self, index: int) -> float:
        """Component access; indices outside -3..2 raise IndexError."""
        return float(self._data[index])

    def __iter__(self):
        return iter(self.to_tuple())

    def length(self) -> float:
        """Return the magnitude (length) of the vector."""
        return float(np.sqrt(np.dot(self._data, self._data)))

    def length_squared(self) -> float:
        """Return the squared magnitude (avoids sqrt for comparisons)."""
        return float(np.dot(self._data, self._data))

    def normalize(self) -> Vec3:
        """Return a unit vector in the same direction.

        A zero vector is not special-cased: its normalization has NaN
        components, which propagate through later arithmetic.
        """
        return self / np.float64(self.length())

    def dot(self, other: Vec3) -> float:
        """Compute dot product with another vector."""
        return float(np.dot(self._data, other._data))

    def cross(self, other: Vec3) -> Vec3:
        """Compute cross product with another vector."""
        return Vec3.from_array(np.cross(self._data, other._data))

    def near_zero(self, epsilon: float = 1e-8) -> bool:
        """Check if vector is close to zero in all dimensions."""
        return bool(np.all(np.abs(self._data) < epsilon))

    def to_array(self) -> np.ndarray:
        """Return the underlying numpy array (copy)."""
        return self._data.copy()

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def sqrt(self) -> Vec3:
        """Component-wise square root (gamma 2 correction for colors)."""
        with np.errstate(invalid='ignore'):
            return Vec3.from_array(np.sqrt(self._data))

    @staticmethod
    def random(rng: np.random.Generator, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        """Generate a random vector with components in [min_val, max_val)."""
        return Vec3.from_array(rng.uniform(min_val, max_val, 3))

    @staticmethod
    def random_in_unit_sphere(rng: np.random.Generator) -> Vec3:
        """Generate a random point inside the unit sphere by rejection."""
        while True:
            p = rng.uniform(-1.0, 1.0, 3)
            if np.dot(p, p) < 1.0:
                return Vec3.from_array(p)

    @staticmethod
    def random_in_unit_disk(rng: np.random.Generator) -> Vec3:
        """Generate a random point inside the unit disk (z=0)."""
        while True:
            x, y = rng.uniform(-1.0, 1.0, 2)
            if x * x + y * y < 1.0:
                return Vec3(x, y, 0.0)


# Convenience type aliases
Point3 = Vec3
Color = Vec3
