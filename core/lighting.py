"""Lights and the day/night model.

``DayNightCycle.lighting_at(t)`` is a pure function of the simulated time:
the same ``t`` always gives the same sun, sky and ambient values, and values
one cycle apart are identical.
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple
import numpy as np

from core.math import Vec3
from core.color import Color

DEFAULT_SHADOW_SAMPLES = 12
DEFAULT_SUN_SOFTNESS = 0.04  # angular radius of the sun disc (rad)
_GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


def _orthonormal_basis(w: Vec3) -> Tuple[Vec3, Vec3]:
    helper = Vec3(0, 1, 0) if abs(w.y) < 0.9 else Vec3(1, 0, 0)
    u = helper.cross(w).normalize()
    v = w.cross(u)
    return u, v


def disc_pattern(samples: int, seed: int = 0) -> np.ndarray:
    """Jittered sunflower points in the unit disc, (samples, 2).

    The pattern is fixed per (samples, seed) so every worker and every
    frame shades with the same offsets.
    """
    if samples == 1:
        return np.zeros((1, 2))
    rng = np.random.default_rng(seed)
    jitter = rng.random((samples, 2))
    k = np.arange(samples, dtype=np.float64)
    r = np.sqrt((k + jitter[:, 0]) / samples)
    theta = k * _GOLDEN_ANGLE + (jitter[:, 1] - 0.5) * (2.0 * math.pi / samples)
    return np.stack([r * np.cos(theta), r * np.sin(theta)], axis=1)


class Light(ABC):
    def __init__(self, color: Color, intensity: float, samples: int, seed: int):
        if not intensity >= 0.0:
            raise ValueError(f"light intensity must be >= 0, got {intensity}")
        if int(samples) < 1:
            raise ValueError(f"light needs at least one shadow sample, got {samples}")
        self.color = color
        self.intensity = float(intensity)
        self.samples = int(samples)
        self.seed = seed
        self.radiance = color.to_vec3() * self.intensity
        self._pattern = disc_pattern(self.samples, seed)

    @abstractmethod
    def direction_from(self, point: Vec3) -> Tuple[Vec3, float]:
        """Unit direction from point towards the light centre and its distance."""
        pass

    @abstractmethod
    def shadow_samples(self, point: Vec3) -> List[Tuple[Vec3, float]]:
        """(direction, max distance) pairs for the soft shadow test."""
        pass

    @abstractmethod
    def with_samples(self, samples: int) -> "Light":
        """Same light with a different shadow sample count."""
        pass


class DirectionalLight(Light):
    def __init__(self, direction: Vec3, color: Color = Color(1, 1, 1), intensity: float = 1.0,
                 softness: float = 0.0, samples: int = 1, seed: int = 0):
        """
        direction: the way the light travels (from the light into the scene)
        softness: angular radius (rad) of the source used for soft shadows
        """
        if direction.length() == 0.0:
            raise ValueError("directional light needs a non-zero direction")
        if not softness >= 0.0:
            raise ValueError(f"light softness must be >= 0, got {softness}")
        super().__init__(color, intensity, samples if softness > 0.0 else 1, seed)
        self.direction = direction.normalize()
        self.softness = float(softness)
        self.to_light = -self.direction

        spread = math.tan(self.softness)
        u, v = _orthonormal_basis(self.to_light)
        self._sample_dirs = [
            (self.to_light + u * (spread * dx) + v * (spread * dy)).normalize()
            for dx, dy in self._pattern
        ]

    def direction_from(self, point: Vec3) -> Tuple[Vec3, float]:
        return self.to_light, math.inf

    def shadow_samples(self, point: Vec3) -> List[Tuple[Vec3, float]]:
        return [(d, math.inf) for d in self._sample_dirs]

    def with_samples(self, samples: int) -> "DirectionalLight":
        return DirectionalLight(self.direction, self.color, self.intensity, self.softness, samples, self.seed)


class PointLight(Light):
    def __init__(self, position: Vec3, color: Color = Color(1, 1, 1), intensity: float = 1.0,
                 radius: float = 0.0, samples: int = 1, seed: int = 0):
        """radius: size of the emitting disc used for soft shadows"""
        if not radius >= 0.0:
            raise ValueError(f"light radius must be >= 0, got {radius}")
        super().__init__(color, intensity, samples if radius > 0.0 else 1, seed)
        self.position = position
        self.radius = float(radius)

    def direction_from(self, point: Vec3) -> Tuple[Vec3, float]:
        delta = self.position - point
        return delta.normalize(), delta.length()

    def shadow_samples(self, point: Vec3) -> List[Tuple[Vec3, float]]:
        to_light, _ = self.direction_from(point)
        if self.samples == 1:
            delta = self.position - point
            return [(to_light, delta.length())]
        # disc facing the shaded point
        u, v = _orthonormal_basis(to_light)
        out = []
        for dx, dy in self._pattern:
            target = self.position + u * (self.radius * dx) + v * (self.radius * dy)
            delta = target - point
            out.append((delta.normalize(), delta.length()))
        return out

    def with_samples(self, samples: int) -> "PointLight":
        return PointLight(self.position, self.color, self.intensity, self.radius, samples, self.seed)


@dataclass(frozen=True)
class LightingState:
    elevation: float         # sin of the sun angle, 1 at noon and -1 at midnight
    to_sun: Vec3
    sun_color: Color
    sun_intensity: float
    ambient_color: Color
    ambient_intensity: float
    sky_color: Color

    @property
    def is_night(self) -> bool:
        return self.elevation <= 0.0

    @property
    def ambient_light(self) -> Vec3:
        return self.ambient_color.to_vec3() * self.ambient_intensity


@dataclass(frozen=True)
class Keyframe:
    elevation: float
    sky: Color
    sun: Color
    sun_intensity: float
    ambient: Color
    ambient_intensity: float


# Sorted by elevation. Intensities never decrease with elevation and stay above 0.
DEFAULT_KEYFRAMES = (
    Keyframe(-1.0, Color(0.01, 0.02, 0.07), Color(0.35, 0.40, 0.60), 0.05,
             Color(0.30, 0.35, 0.60), 0.06),
    Keyframe(0.0, Color(0.55, 0.32, 0.36), Color(1.00, 0.45, 0.20), 0.05,
             Color(0.80, 0.55, 0.50), 0.10),
    Keyframe(0.2, Color(0.90, 0.55, 0.35), Color(1.00, 0.70, 0.45), 0.55,
             Color(0.95, 0.80, 0.70), 0.15),
    Keyframe(1.0, Color.from_rgb8(68, 142, 228), Color(1.00, 0.97, 0.90), 1.0,
             Color(1.00, 1.00, 1.00), 0.20),
)


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


class DayNightCycle:
    def __init__(self,
                 cycle_length: float = 24.0,
                 tilt: float = 0.3,
                 softness: float = DEFAULT_SUN_SOFTNESS,
                 samples: int = DEFAULT_SHADOW_SAMPLES,
                 keyframes=DEFAULT_KEYFRAMES):
        """
        cycle_length: simulated time of one full day
        tilt: z component of the sun direction before normalisation, leans
              the sun's path towards +z
        softness, samples: soft shadow parameters of the sun light
        keyframes: sorted by elevation, spanning [-1, 1]
        """
        if not cycle_length > 0.0:
            raise ValueError(f"cycle length must be > 0, got {cycle_length}")
        if not keyframes:
            raise ValueError("day/night model needs keyframes")
        elevations = [k.elevation for k in keyframes]
        if elevations != sorted(elevations):
            raise ValueError("keyframes must be sorted by elevation")
        self.cycle_length = float(cycle_length)
        self.tilt = float(tilt)
        self.softness = float(softness)
        self.samples = int(samples)
        self.keyframes = tuple(keyframes)

    def wrap(self, t: float) -> float:
        return t % self.cycle_length

    def phase(self, t: float) -> float:
        """0 = midnight, 0.25 = sunrise, 0.5 = noon, 0.75 = sunset"""
        return self.wrap(t) / self.cycle_length

    def sun_angle(self, t: float) -> float:
        return 2.0 * math.pi * (self.phase(t) - 0.25)

    def _interpolate(self, elevation: float):
        frames = self.keyframes
        if elevation <= frames[0].elevation:
            return frames[0], frames[0], 0.0
        for lo, hi in zip(frames, frames[1:]):
            if elevation <= hi.elevation:
                span = hi.elevation - lo.elevation
                return lo, hi, (elevation - lo.elevation) / span if span > 0 else 0.0
        return frames[-1], frames[-1], 0.0

    def lighting_at(self, t: float) -> LightingState:
        theta = self.sun_angle(t)
        elevation = math.sin(theta)
        to_sun = Vec3(math.cos(theta), elevation, self.tilt).normalize()
        lo, hi, k = self._interpolate(elevation)
        return LightingState(
            elevation=elevation,
            to_sun=to_sun,
            sun_color=lo.sun.blend(hi.sun, k),
            sun_intensity=_lerp(lo.sun_intensity, hi.sun_intensity, k),
            ambient_color=lo.ambient.blend(hi.ambient, k),
            ambient_intensity=_lerp(lo.ambient_intensity, hi.ambient_intensity, k),
            sky_color=lo.sky.blend(hi.sky, k),
        )

    def sun_light(self, state: LightingState, samples: int = None) -> DirectionalLight:
        return DirectionalLight(
            direction=-state.to_sun,
            color=state.sun_color,
            intensity=state.sun_intensity,
            softness=self.softness,
            samples=self.samples if samples is None else samples,
        )
