import math

import numpy as np
import pytest

from core.math import Vec3, Ray, T_MIN
from core.color import Color
from core.material import Material, HitRecord
from core.geometry import (Cube, nearest_hit, face_index, FACE_POS_X, FACE_NEG_X,
                           FACE_POS_Y, FACE_POS_Z, FACE_NEG_Z)
from core.acceleration import CubeArray
from conftest import vec

LO = Vec3(-1.0, -2.0, -0.5)
HI = Vec3(2.0, 1.0, 1.5)


@pytest.fixture
def box(matte):
    return Cube(LO, HI, matte)


def random_rays_at(cube, n, seed=0, distance=10.0):
    """Rays from a sphere around the cube aimed at random interior points."""
    rng = np.random.default_rng(seed)
    lo, hi = vec(cube.min), vec(cube.max)
    center = (lo + hi) / 2
    rays = []
    for _ in range(n):
        d = rng.normal(size=3)
        origin = center + distance * d / np.linalg.norm(d)
        target = rng.uniform(lo, hi)
        rays.append(Ray(Vec3(*origin), Vec3(*(target - origin))))
    return rays


def test_face_index_layout():
    assert face_index(0, True) == FACE_POS_X
    assert face_index(0, False) == FACE_NEG_X
    assert face_index(1, True) == FACE_POS_Y
    assert face_index(2, False) == FACE_NEG_Z


def test_rays_at_interior_points_hit_the_surface(box):
    for ray in random_rays_at(box, 300):
        rec = HitRecord()
        assert box.hit(ray, T_MIN, math.inf, rec)
        assert rec.t > 0
        np.testing.assert_allclose(vec(rec.point), vec(ray.point_at_parameter(rec.t)))

        # the point lies on the plane of the reported face, within the other two slabs
        axis = rec.face // 2
        plane = HI[axis] if rec.face % 2 == 0 else LO[axis]
        assert rec.point[axis] == pytest.approx(plane, abs=1e-9)
        assert box.bounding_box().contains(rec.point, eps=1e-9)

        # unit axis normal, facing the incoming ray
        assert rec.normal.length() == pytest.approx(1.0)
        assert abs(rec.normal[axis]) == 1.0
        assert rec.normal.dot(ray.direction) < 0
        assert rec.front_face
        assert rec.normal == rec.outward_normal
        assert 0.0 <= rec.u <= 1.0 and 0.0 <= rec.v <= 1.0


def test_rays_pointing_away_miss(box):
    rng = np.random.default_rng(1)
    center = vec(box.center)
    for _ in range(200):
        d = rng.normal(size=3)
        d /= np.linalg.norm(d)
        origin = center + 10.0 * d
        direction = d + rng.uniform(-0.3, 0.3, 3)
        assert not box.hit(Ray(Vec3(*origin), Vec3(*direction)), T_MIN, math.inf, HitRecord())


def test_axis_parallel_rays(box):
    rec = HitRecord()
    # beside the box, parallel to x
    assert not box.hit(Ray(Vec3(-5, 5, 0), Vec3(1, 0, 0)), T_MIN, math.inf, rec)
    # through it, parallel to x
    assert box.hit(Ray(Vec3(-5, 0, 0), Vec3(1, 0, 0)), T_MIN, math.inf, rec)
    assert rec.t == pytest.approx(4.0)
    assert rec.face == FACE_NEG_X
    np.testing.assert_allclose(vec(rec.normal), [-1, 0, 0])


def test_origin_inside_leaves_through_far_face(box):
    rec = HitRecord()
    origin = box.center
    assert box.hit(Ray(origin, Vec3(1, 0, 0)), T_MIN, math.inf, rec)
    assert rec.t == pytest.approx(HI.x - origin.x)
    assert rec.face == FACE_POS_X
    assert not rec.front_face
    np.testing.assert_allclose(vec(rec.outward_normal), [1, 0, 0])
    np.testing.assert_allclose(vec(rec.normal), [-1, 0, 0])


def test_hit_respects_t_max(box):
    ray = Ray(Vec3(-5, 0, 0), Vec3(1, 0, 0))
    assert not box.hit(ray, T_MIN, 3.9, HitRecord())
    assert box.hit(ray, T_MIN, 4.1, HitRecord())


def test_box_behind_the_ray_is_missed(box):
    assert not box.hit(Ray(Vec3(5, 0, 0), Vec3(1, 0, 0)), T_MIN, math.inf, HitRecord())


def test_per_face_material(matte):
    film = Material(color=Color(0.5, 0, 0.5), ambient=0.3, diffuse=0.7)
    cube = Cube(Vec3(-1, -1, -1), Vec3(1, 1, 1), matte, face_materials=(None, None, None, None, film, film))
    rec = HitRecord()
    assert cube.hit(Ray(Vec3(0, 0, 5), Vec3(0, 0, -1)), T_MIN, math.inf, rec)
    assert rec.face == FACE_POS_Z
    assert rec.material is film
    assert cube.hit(Ray(Vec3(5, 0, 0), Vec3(-1, 0, 0)), T_MIN, math.inf, rec)
    assert rec.material is matte
    assert cube.material_for(FACE_NEG_Z) is film


def test_face_uv_orientation(box):
    rec = HitRecord()
    # +z face: u along +x, v along +y
    assert box.hit(Ray(Vec3(-0.25, 0.25, 5), Vec3(0, 0, -1)), T_MIN, math.inf, rec)
    assert rec.face == FACE_POS_Z
    assert rec.u == pytest.approx((-0.25 - LO.x) / 3.0)
    assert rec.v == pytest.approx((0.25 - LO.y) / 3.0)

    # +x face seen from outside: u runs towards -z
    assert box.hit(Ray(Vec3(5, 0, 1.0), Vec3(-1, 0, 0)), T_MIN, math.inf, rec)
    assert rec.face == FACE_POS_X
    assert rec.u == pytest.approx(1.0 - (1.0 - LO.z) / 2.0)

    # -z face seen from outside: u runs towards -x
    assert box.hit(Ray(Vec3(1.5, 0, -5), Vec3(0, 0, 1)), T_MIN, math.inf, rec)
    assert rec.face == FACE_NEG_Z
    assert rec.u == pytest.approx(1.0 - (1.5 - LO.x) / 3.0)


@pytest.mark.parametrize("lo, hi", [
    (Vec3(0, 0, 0), Vec3(0, 1, 1)),
    (Vec3(0, 0, 0), Vec3(1, -1, 1)),
    (Vec3(0, 0, 0), Vec3(1, 1, 0)),
])
def test_degenerate_cube_rejected(matte, lo, hi):
    with pytest.raises(ValueError):
        Cube(lo, hi, matte)


def test_faces_need_a_material(matte):
    with pytest.raises(ValueError):
        Cube(Vec3(0, 0, 0), Vec3(1, 1, 1))
    with pytest.raises(ValueError):
        Cube(Vec3(0, 0, 0), Vec3(1, 1, 1), matte, face_materials=(None,) * 5)
    Cube(Vec3(0, 0, 0), Vec3(1, 1, 1), face_materials=(matte,) * 6)


def test_nearest_hit_picks_the_closest(matte):
    near = Cube(Vec3(-1, -1, 0), Vec3(1, 1, 1), matte)
    far = Cube(Vec3(-1, -1, -5), Vec3(1, 1, -4), matte)
    rec = HitRecord()
    assert nearest_hit([far, near], Ray(Vec3(0, 0, 5), Vec3(0, 0, -1)), rec)
    assert rec.t == pytest.approx(4.0)
    assert not nearest_hit([far, near], Ray(Vec3(0, 0, 5), Vec3(0, 0, 1)), HitRecord())


def random_cubes(material, n, seed):
    rng = np.random.default_rng(seed)
    cubes = []
    for _ in range(n):
        lo = rng.uniform(-4, 4, 3)
        size = rng.uniform(0.2, 2.0, 3)
        cubes.append(Cube(Vec3(*lo), Vec3(*(lo + size)), material))
    return cubes


def test_cube_array_agrees_with_linear_scan(matte):
    cubes = random_cubes(matte, 25, seed=3)
    accel = CubeArray(cubes)
    rng = np.random.default_rng(4)
    hits = 0
    for _ in range(400):
        origin = Vec3(*rng.uniform(-8, 8, 3))
        direction = Vec3(*rng.normal(size=3))
        ray = Ray(origin, direction)

        expected = HitRecord()
        found = nearest_hit(cubes, ray, expected)
        actual = HitRecord()
        assert accel.hit(ray, T_MIN, math.inf, actual) == found
        assert accel.occluded(ray) == found
        if found:
            hits += 1
            assert actual.t == pytest.approx(expected.t)
            assert actual.face == expected.face
    assert hits > 0


def test_cube_array_occlusion_limited_by_distance(matte):
    accel = CubeArray([Cube(Vec3(-1, -1, -1), Vec3(1, 1, 1), matte)])
    ray = Ray(Vec3(0, 0, 5), Vec3(0, 0, -1))
    assert accel.occluded(ray, T_MIN, 10.0)
    assert not accel.occluded(ray, T_MIN, 3.0)
    assert accel.nearest(ray) == 0
    assert accel.nearest(Ray(Vec3(0, 0, 5), Vec3(0, 0, 1))) == -1


def test_cube_array_bounding_box(matte):
    cubes = [Cube(Vec3(-1, 0, 0), Vec3(0, 1, 1), matte), Cube(Vec3(2, -3, 0), Vec3(3, 0, 4), matte)]
    box = CubeArray(cubes).bounding_box()
    np.testing.assert_allclose(vec(box.min), [-1, -3, 0])
    np.testing.assert_allclose(vec(box.max), [3, 1, 4])
