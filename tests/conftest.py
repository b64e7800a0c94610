"""
Shared fixtures for the portal ray tracer tests.
"""

import numpy as np
import pytest

from core.math import Vec3
from core.color import Color
from core.material import Material
from core.geometry import Cube
from core.lighting import DayNightCycle
from core.camera import OrbitCamera
from core.scene import Scene, RenderSettings
from renderers.cpu_renderer import CPURenderer

NOON = 12.0
MIDNIGHT = 0.0


@pytest.fixture
def matte():
    """Opaque, non-reflective, non-transparent material."""
    return Material(color=Color(0.8, 0.6, 0.4), ambient=0.2, diffuse=0.8)


@pytest.fixture
def overhead_cycle():
    """Day/night model whose noon sun stands straight overhead, hard shadows."""
    return DayNightCycle(tilt=0.0, softness=0.0, samples=1)


@pytest.fixture
def renderer():
    return CPURenderer(RenderSettings(width=8, height=8, max_depth=3, workers=1))


def make_scene(cubes, day_night=None, time=NOON, accel=True, camera=None):
    scene = Scene(camera=camera or OrbitCamera(), day_night=day_night or DayNightCycle(tilt=0.0), time=time)
    for cube in cubes:
        scene.add_object(cube)
    if accel:
        scene.build_accel()
    return scene


def unit_cube(material, center=Vec3(0, 0, 0), half=1.0):
    return Cube.from_center(center, Vec3(half, half, half), material)


def vec(v):
    return np.array([v.x, v.y, v.z])


def rgb(c):
    return np.array([c.r, c.g, c.b])


def assert_color_close(actual, expected, atol=1e-9, err_msg=""):
    np.testing.assert_allclose(rgb(actual), np.asarray(expected, dtype=float), atol=atol,
                               err_msg=f"Color mismatch: {err_msg}")


def assert_color_in_range(color, err_msg=""):
    values = rgb(color)
    assert np.all(values >= 0.0) and np.all(values <= 1.0), f"Color out of range: {values} - {err_msg}"
