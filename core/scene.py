import math
from typing import List, Optional, Tuple
from dataclasses import dataclass
from core.math import Ray, T_MIN
from core.material import HitRecord
from core.geometry import Cube, nearest_hit
from core.acceleration import CubeArray
from core.camera import OrbitCamera, CameraView
from core.lighting import DayNightCycle, LightingState, Light

POOL_KINDS = ("thread", "process")


@dataclass
class RenderSettings:
    width: int = 800
    height: int = 600
    max_depth: int = 3
    shadow_samples: Optional[int] = None  # overrides every light; None keeps each light's own count
    workers: int = 4
    pool: str = "thread"
    chunk_rows: int = 8

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"frame size must be positive, got {self.width}x{self.height}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.shadow_samples is not None and self.shadow_samples < 1:
            raise ValueError(f"shadow_samples must be >= 1, got {self.shadow_samples}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.pool not in POOL_KINDS:
            raise ValueError(f"pool must be one of {POOL_KINDS}, got {self.pool!r}")
        if self.chunk_rows < 1:
            raise ValueError(f"chunk_rows must be >= 1, got {self.chunk_rows}")

    @property
    def aspect(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class SceneSnapshot:
    """Read-only view of the scene shared by every worker during one frame."""
    cubes: Tuple[Cube, ...]
    accel: Optional[CubeArray]
    lighting: LightingState
    lights: Tuple[Light, ...]
    camera: CameraView
    time: float

    def hit(self, ray: Ray, t_min: float, t_max: float, rec: HitRecord) -> bool:
        if self.accel is not None:
            return self.accel.hit(ray, t_min, t_max, rec)
        return nearest_hit(self.cubes, ray, rec, t_min, t_max)

    def occluded(self, ray: Ray, max_distance: float = math.inf) -> bool:
        if self.accel is not None:
            return self.accel.occluded(ray, T_MIN, max_distance)
        rec = HitRecord()
        return any(c.hit(ray, T_MIN, max_distance, rec) for c in self.cubes)


class Scene:
    def __init__(self,
                 camera: Optional[OrbitCamera] = None,
                 day_night: Optional[DayNightCycle] = None,
                 time: float = 0.0):
        self.objects: List[Cube] = []
        self.lights: List[Light] = []
        self.camera = camera if camera is not None else OrbitCamera()
        self.day_night = day_night if day_night is not None else DayNightCycle()
        self.time = self.day_night.wrap(time)
        self.accel: Optional[CubeArray] = None

    def add_object(self, obj: Cube):
        self.objects.append(obj)
        self.accel = None

    def add_light(self, light: Light):
        self.lights.append(light)

    def build_accel(self):
        if len(self.objects) > 0:
            self.accel = CubeArray(self.objects)

    def advance_time(self, delta: float):
        self.time = self.day_night.wrap(self.time + delta)

    def orbit_camera(self, azimuth_delta: float = 0.0, elevation_delta: float = 0.0, radius_delta: float = 0.0):
        self.camera.orbit(azimuth_delta, elevation_delta, radius_delta)

    def lighting(self) -> LightingState:
        return self.day_night.lighting_at(self.time)

    def snapshot(self, shadow_samples: Optional[int] = None) -> SceneSnapshot:
        lighting = self.lighting()
        sun = self.day_night.sun_light(lighting, samples=shadow_samples)
        lights = tuple(self.lights)
        if shadow_samples is not None:
            lights = tuple(light.with_samples(shadow_samples) for light in lights)
        return SceneSnapshot(
            cubes=tuple(self.objects),
            accel=self.accel,
            lighting=lighting,
            lights=(sun,) + lights,
            camera=self.camera.view(),
            time=self.time,
        )
