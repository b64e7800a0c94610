from abc import ABC, abstractmethod
from typing import Optional, Sequence
from core.math import Vec3, Ray, AABB, T_MIN
from core.material import Material, HitRecord

# Face index = 2 * axis + (0 for the max side, 1 for the min side)
FACE_POS_X, FACE_NEG_X, FACE_POS_Y, FACE_NEG_Y, FACE_POS_Z, FACE_NEG_Z = range(6)
FACE_NAMES = ("+x", "-x", "+y", "-y", "+z", "-z")

_AXES = (Vec3(1, 0, 0), Vec3(0, 1, 0), Vec3(0, 0, 1))

# (u axis, flip u, v axis, flip v) per face, chosen so the image reads
# upright and unmirrored when the face is viewed from outside
_FACE_UV = (
    (2, True, 1, False),   # +x
    (2, False, 1, False),  # -x
    (0, False, 2, True),   # +y
    (0, False, 2, False),  # -y
    (0, False, 1, False),  # +z
    (0, True, 1, False),   # -z
)


def face_index(axis: int, positive: bool) -> int:
    return 2 * axis + (0 if positive else 1)


class Hittable(ABC):
    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float, rec: HitRecord) -> bool:
        pass

    @abstractmethod
    def bounding_box(self) -> AABB:
        pass


class Cube(Hittable):
    def __init__(self,
                 min_pt: Vec3,
                 max_pt: Vec3,
                 material: Optional[Material] = None,
                 face_materials: Optional[Sequence[Optional[Material]]] = None):
        """
        min_pt, max_pt: opposite corners of the axis-aligned box
        material: used on every face without an override
        face_materials: six optional overrides ordered +x, -x, +y, -y, +z, -z
        """
        for a in range(3):
            if not max_pt[a] - min_pt[a] > 0.0:
                raise ValueError(f"cube has no extent along axis {a}: min={min_pt}, max={max_pt}")

        if face_materials is None:
            face_materials = (None,) * 6
        face_materials = tuple(face_materials)
        if len(face_materials) != 6:
            raise ValueError(f"face_materials needs 6 entries, got {len(face_materials)}")
        resolved = tuple(m if m is not None else material for m in face_materials)
        missing = [FACE_NAMES[i] for i, m in enumerate(resolved) if m is None]
        if missing:
            raise ValueError(f"cube faces without material: {', '.join(missing)}")

        self.min = min_pt
        self.max = max_pt
        self.material = material
        self.face_materials = resolved
        self.box = AABB(min_pt, max_pt)
        self._extent = max_pt - min_pt

    @classmethod
    def from_center(cls, center: Vec3, half_extents: Vec3, material: Optional[Material] = None,
                    face_materials: Optional[Sequence[Optional[Material]]] = None) -> "Cube":
        return cls(center - half_extents, center + half_extents, material, face_materials)

    @property
    def center(self) -> Vec3:
        return (self.min + self.max) * 0.5

    def material_for(self, face: int) -> Material:
        return self.face_materials[face]

    def hit(self, ray: Ray, t_min: float, t_max: float, rec: HitRecord) -> bool:
        bounds = self.box.slab(ray)
        if bounds is None:
            return False
        t_near, near_axis, t_far, far_axis = bounds
        if t_far < t_min:
            return False

        if t_near > t_min:
            t, axis, entering = t_near, near_axis, True
        else:
            # origin inside the box, leave through the far plane
            t, axis, entering = t_far, far_axis, False
        if t > t_max or axis < 0:
            return False

        d = ray.direction[axis]
        # the entry plane faces against d, the exit plane along it
        positive = (d < 0.0) if entering else (d > 0.0)
        face = face_index(axis, positive)
        outward = _AXES[axis] if positive else -_AXES[axis]

        point = ray.point_at_parameter(t)
        rec.t = t
        rec.point = point
        rec.outward_normal = outward
        rec.front_face = entering
        rec.normal = outward if entering else -outward
        rec.face = face
        rec.material = self.face_materials[face]
        rec.u, rec.v = self.face_uv(face, point)
        return True

    def face_uv(self, face: int, point: Vec3):
        u_axis, flip_u, v_axis, flip_v = _FACE_UV[face]
        u = (point[u_axis] - self.min[u_axis]) / self._extent[u_axis]
        v = (point[v_axis] - self.min[v_axis]) / self._extent[v_axis]
        u = min(max(u, 0.0), 1.0)
        v = min(max(v, 0.0), 1.0)
        if flip_u:
            u = 1.0 - u
        if flip_v:
            v = 1.0 - v
        return u, v

    def bounding_box(self) -> AABB:
        return self.box

    def __repr__(self):
        return f"Cube(min={self.min!r}, max={self.max!r})"


def nearest_hit(objects: Sequence[Hittable], ray: Ray, rec: HitRecord,
                t_min: float = T_MIN, t_max: float = float('inf')) -> bool:
    """Closest hit over a list of objects; list order carries no priority."""
    temp_rec = HitRecord()
    hit_anything = False
    closest_so_far = t_max
    for obj in objects:
        if obj.hit(ray, t_min, closest_so_far, temp_rec):
            hit_anything = True
            closest_so_far = temp_rec.t
            rec.__dict__.update(temp_rec.__dict__)
    return hit_anything
