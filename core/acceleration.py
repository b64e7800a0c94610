"""Packed cube arrays with numba slab kernels.

Cube bounds are stored as one contiguous ``(N, 6)`` float64 array
``[min_x, min_y, min_z, max_x, max_y, max_z]`` so the nearest-hit and
any-hit loops run compiled, with the GIL released. The kernels repeat the
slab arithmetic of ``AABB.slab`` operation for operation, so the index they
pick is the cube the Python path would pick.
"""
import logging
import math
from typing import Sequence
import numpy as np
from numba import njit

from core.math import Vec3, Ray, AABB, T_MIN, PARALLEL_EPSILON
from core.material import HitRecord
from core.geometry import Hittable, Cube, nearest_hit

logger = logging.getLogger(__name__)


@njit(cache=True, nogil=True)
def _slab_distance(bounds, i, ox, oy, oz, dx, dy, dz, t_min, eps):
    """Hit distance of box i, or inf on a miss."""
    t_near = -np.inf
    t_far = np.inf
    for a in range(3):
        if a == 0:
            o = ox
            d = dx
        elif a == 1:
            o = oy
            d = dy
        else:
            o = oz
            d = dz
        lo = bounds[i, a]
        hi = bounds[i, a + 3]
        if abs(d) < eps:
            if o < lo or o > hi:
                return np.inf
            continue
        inv_d = 1.0 / d
        t0 = (lo - o) * inv_d
        t1 = (hi - o) * inv_d
        if t0 > t1:
            t0, t1 = t1, t0
        if t0 > t_near:
            t_near = t0
        if t1 < t_far:
            t_far = t1
        if t_near > t_far:
            return np.inf
    if t_far < t_min:
        return np.inf
    if t_near > t_min:
        return t_near
    return t_far


@njit(cache=True, nogil=True)
def _nearest_box(bounds, ox, oy, oz, dx, dy, dz, t_min, t_max, eps):
    best = t_max
    best_index = -1
    for i in range(bounds.shape[0]):
        t = _slab_distance(bounds, i, ox, oy, oz, dx, dy, dz, t_min, eps)
        # ties go to the later box, as in the linear scan
        if t <= best and t < np.inf:
            best = t
            best_index = i
    return best_index


@njit(cache=True, nogil=True)
def _any_box(bounds, ox, oy, oz, dx, dy, dz, t_min, t_max, eps):
    for i in range(bounds.shape[0]):
        t = _slab_distance(bounds, i, ox, oy, oz, dx, dy, dz, t_min, eps)
        if t <= t_max and t < np.inf:
            return True
    return False


class CubeArray(Hittable):
    def __init__(self, cubes: Sequence[Cube]):
        self.cubes = tuple(cubes)
        self.bounds = np.ascontiguousarray(
            [[c.min.x, c.min.y, c.min.z, c.max.x, c.max.y, c.max.z] for c in self.cubes],
            dtype=np.float64,
        ).reshape(-1, 6)
        if self.cubes:
            self.box = self.cubes[0].bounding_box()
            for c in self.cubes[1:]:
                self.box = AABB.surrounding_box(self.box, c.bounding_box())
        else:
            self.box = AABB(Vec3(), Vec3())
        logger.debug("packed %d cubes", len(self.cubes))

    def __len__(self):
        return len(self.cubes)

    def nearest(self, ray: Ray, t_min: float = T_MIN, t_max: float = math.inf) -> int:
        """Index of the closest cube hit, -1 on a miss."""
        o, d = ray.origin, ray.direction
        return int(_nearest_box(self.bounds, o.x, o.y, o.z, d.x, d.y, d.z,
                                float(t_min), float(t_max), PARALLEL_EPSILON))

    def occluded(self, ray: Ray, t_min: float = T_MIN, t_max: float = math.inf) -> bool:
        o, d = ray.origin, ray.direction
        return bool(_any_box(self.bounds, o.x, o.y, o.z, d.x, d.y, d.z,
                             float(t_min), float(t_max), PARALLEL_EPSILON))

    def hit(self, ray: Ray, t_min: float, t_max: float, rec: HitRecord) -> bool:
        index = self.nearest(ray, t_min, t_max)
        if index < 0:
            return False
        if self.cubes[index].hit(ray, t_min, t_max, rec):
            return True
        # borderline distance the kernel accepted and the record builder did not
        return nearest_hit(self.cubes, ray, rec, t_min, t_max)

    def bounding_box(self) -> AABB:
        return self.box
