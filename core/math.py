import math
from dataclasses import dataclass
import numpy as np

# Hits closer than this are treated as self-intersections
T_MIN = 1e-6
# Offset applied to secondary ray origins along the surface normal
ORIGIN_BIAS = 1e-4
# Directional components below this count as parallel to a slab
PARALLEL_EPSILON = 1e-12


class Vec3:
    __slots__ = ("x", "y", "z")

    def __init__(self, x=0.0, y=0.0, z=0.0):
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)

    def __add__(self, other):
        return Vec3(self.x + other.x,
                    self.y + other.y,
                    self.z + other.z)

    def __sub__(self, other):
        return Vec3(self.x - other.x,
                    self.y - other.y,
                    self.z - other.z)

    def __mul__(self, t):
        # scalar or component-wise (Hadamard) product
        if isinstance(t, Vec3):
            return Vec3(self.x * t.x,
                        self.y * t.y,
                        self.z * t.z)
        return Vec3(self.x * t, self.y * t, self.z * t)

    __rmul__ = __mul__

    def __truediv__(self, t):
        return Vec3(self.x / t, self.y / t, self.z / t)

    def __neg__(self):
        return Vec3(-self.x, -self.y, -self.z)

    def __getitem__(self, axis: int) -> float:
        if axis == 0:
            return self.x
        if axis == 1:
            return self.y
        if axis == 2:
            return self.z
        raise IndexError(f"Vec3 axis out of range: {axis}")

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    def __eq__(self, other):
        if not isinstance(other, Vec3):
            return NotImplemented
        return self.x == other.x and self.y == other.y and self.z == other.z

    def __hash__(self):
        return hash((self.x, self.y, self.z))

    def dot(self, other):
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other):
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )

    def length(self):
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self):
        l = self.length()
        if l == 0:
            return Vec3(0, 0, 0)
        return self / l

    def lerp(self, other, t: float):
        return self + (other - self) * t

    def reflect(self, normal):
        # r = v - 2 * dot(v, n) * n
        return self - normal * (2 * self.dot(normal))

    def refract(self, normal, ni_over_nt):
        """Snell refraction about a normal that opposes this vector.

        Returns (False, None) past the critical angle.
        """
        uv = self.normalize()
        dt = uv.dot(normal)
        discr = 1.0 - ni_over_nt * ni_over_nt * (1 - dt * dt)
        if discr > 0:
            refracted = (uv - normal * dt) * ni_over_nt - normal * math.sqrt(discr)
            return True, refracted
        else:
            return False, None

    def to_np(self):
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @staticmethod
    def from_np(arr):
        return Vec3(arr[0], arr[1], arr[2])

    def __repr__(self):
        return f"Vec3({self.x:.3f}, {self.y:.3f}, {self.z:.3f})"


@dataclass(frozen=True)
class Ray:
    origin: Vec3
    direction: Vec3

    def __post_init__(self):
        object.__setattr__(self, "direction", self.direction.normalize())

    def point_at_parameter(self, t):
        return self.origin + self.direction * t


def offset_origin(point: Vec3, normal: Vec3, direction: Vec3) -> Vec3:
    """Push a secondary ray origin off the surface, on the side it leaves towards."""
    offset = normal * ORIGIN_BIAS
    if direction.dot(normal) < 0.0:
        return point - offset
    return point + offset


class AABB:
    def __init__(self, min_pt: Vec3, max_pt: Vec3):
        self.min = min_pt
        self.max = max_pt

    @staticmethod
    def surrounding_box(box0, box1):
        small = Vec3(
            min(box0.min.x, box1.min.x),
            min(box0.min.y, box1.min.y),
            min(box0.min.z, box1.min.z)
        )
        big = Vec3(
            max(box0.max.x, box1.max.x),
            max(box0.max.y, box1.max.y),
            max(box0.max.z, box1.max.z)
        )
        return AABB(small, big)

    def extent(self) -> Vec3:
        return self.max - self.min

    def contains(self, p: Vec3, eps: float = 0.0) -> bool:
        return all(self.min[a] - eps <= p[a] <= self.max[a] + eps for a in range(3))

    def slab(self, ray: Ray):
        """Intersect the three slabs of the box.

        Returns (t_near, near_axis, t_far, far_axis), or None when the
        intervals do not overlap. Axes parallel to the ray are skipped
        when the origin lies inside their slab.
        """
        t_near, t_far = -math.inf, math.inf
        near_axis = far_axis = -1
        for a in range(3):
            o = ray.origin[a]
            d = ray.direction[a]
            lo = self.min[a]
            hi = self.max[a]
            if abs(d) < PARALLEL_EPSILON:
                if o < lo or o > hi:
                    return None
                continue
            inv_d = 1.0 / d
            t0 = (lo - o) * inv_d
            t1 = (hi - o) * inv_d
            if t0 > t1:
                t0, t1 = t1, t0
            if t0 > t_near:
                t_near, near_axis = t0, a
            if t1 < t_far:
                t_far, far_axis = t1, a
            if t_near > t_far:
                return None
        return t_near, near_axis, t_far, far_axis

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        bounds = self.slab(ray)
        if bounds is None:
            return False
        t_near, _, t_far, _ = bounds
        return max(t_near, t_min) <= min(t_far, t_max)
