import logging
import os
from typing import Dict, Optional
import numpy as np

from core.math import Vec3
from core.color import Color
from core.material import Material, Texture
from core.geometry import Cube
from core.lighting import DayNightCycle, PointLight, DEFAULT_SHADOW_SAMPLES
from core.camera import OrbitCamera
from core.scene import Scene

logger = logging.getLogger(__name__)

TEXTURE_NAMES = ("grass", "rock", "lava")


def noise_texture(base: Color, variation: float, size: int = 32, block: int = 1, seed: int = 0) -> Texture:
    """Blocky value-noise texture around a base colour."""
    rng = np.random.default_rng(seed)
    cells = max(size // block, 1)
    noise = rng.uniform(-1.0, 1.0, (cells, cells, 1))
    noise = np.kron(noise, np.ones((block, block, 1)))[:size, :size]
    rgb = np.array([base.r, base.g, base.b])[None, None, :]
    return Texture(np.clip(rgb * (1.0 + variation * noise), 0.0, 1.0))


class PortalSceneBuilder:
    """Cube diorama: grass base, lava corner posts, stepped rock pyramid and an obsidian portal."""

    def __init__(self, texture_dir: Optional[str] = None,
                 shadow_samples: int = DEFAULT_SHADOW_SAMPLES,
                 cycle_length: float = 24.0):
        self.texture_dir = texture_dir
        self.shadow_samples = shadow_samples
        self.cycle_length = cycle_length

        # portal frame offset (up, towards the camera)
        self.portal_dy = 1.5
        self.portal_dz = 1.0

    def build_scene(self, start_time: float = 12.0) -> Scene:
        day_night = DayNightCycle(cycle_length=self.cycle_length, samples=self.shadow_samples)
        scene = Scene(camera=self.create_camera(), day_night=day_night, time=start_time)

        materials = self._create_materials()
        self._create_base(scene, materials)
        self._create_steps(scene, materials)
        self._create_portal(scene, materials)
        self._create_lighting(scene)

        scene.build_accel()
        logger.info("portal scene: %d cubes, %d static lights", len(scene.objects), len(scene.lights))
        return scene

    def create_camera(self) -> OrbitCamera:
        return OrbitCamera(target=Vec3(0, 0, 0), radius=6.5, azimuth=0.0, elevation=0.0, vfov=60.0,
                           min_radius=1.0, max_radius=10.0)

    def _load_textures(self) -> Dict[str, Texture]:
        textures = {
            'grass': noise_texture(Color(0.1, 0.75, 0.15), 0.25, size=32, block=2, seed=1),
            'rock': noise_texture(Color.from_rgb8(169, 169, 169), 0.2, size=32, block=4, seed=2),
            'lava': noise_texture(Color.from_rgb8(255, 69, 0), 0.35, size=16, block=2, seed=3),
        }
        if self.texture_dir:
            for name in TEXTURE_NAMES:
                path = os.path.join(self.texture_dir, f"{name}.png")
                if os.path.exists(path):
                    textures[name] = Texture.from_file(path)
                    logger.info("loaded texture %s", path)
        return textures

    def _create_materials(self) -> Dict[str, Material]:
        textures = self._load_textures()
        return {
            'grass': Material.with_texture(
                textures['grass'], ambient=0.1, diffuse=0.72, specular=0.18, shininess=50.0
            ),
            'obsidian': Material(
                color=Color(0.05, 0.03, 0.08), ambient=0.05, diffuse=0.09, specular=0.77,
                reflective=0.09, shininess=100.0
            ),
            # portal interior: glossy and mirror-like
            'purple': Material(
                color=Color.from_rgb8(128, 0, 128), ambient=0.1, diffuse=0.257, specular=0.386,
                reflective=0.257, shininess=100.0, refractive_index=2.0
            ),
            'rock': Material.with_texture(
                textures['rock'], ambient=0.1, diffuse=0.3, specular=0.3, reflective=0.3, shininess=50.0
            ),
            # molten and half see-through
            'lava': Material.with_texture(
                textures['lava'], ambient=0.1, diffuse=0.5, specular=0.15, transparency=0.25,
                shininess=100.0, refractive_index=1.2
            ),
        }

    def _create_base(self, scene: Scene, materials: dict):
        scene.add_object(Cube(Vec3(-3.0, -0.5, -3.0), Vec3(3.0, -0.2, 3.0), materials['grass']))

        # lava posts on the four corners
        for x in (-3.0, 3.0):
            for z in (-3.0, 3.0):
                scene.add_object(Cube(Vec3(x - 0.2, -0.5, z - 0.2), Vec3(x + 0.2, 0.0, z + 0.2),
                                      materials['lava']))

    def _create_steps(self, scene: Scene, materials: dict):
        """Eight 0.2-high rock steps, each inset 0.1 on x and the back side."""
        fronts = (3.1, 2.9, 2.7, 2.5, 2.3, 2.1, 2.0, 1.8)
        rock = materials['rock']
        for i, front in enumerate(fronts):
            half = 2.4 - 0.1 * i
            y0 = -0.3 + 0.2 * i
            scene.add_object(Cube(Vec3(-half, y0, -half), Vec3(half, y0 + 0.2, front), rock))

    def _create_portal(self, scene: Scene, materials: dict):
        dy, dz = self.portal_dy, self.portal_dz
        obsidian = materials['obsidian']
        z0, z1 = -1.5 + dz, -0.5 + dz

        # uprights
        scene.add_object(Cube(Vec3(-1.0, 0.2 + dy, z0), Vec3(-0.5, 2.5 + dy, z1), obsidian))
        scene.add_object(Cube(Vec3(0.5, 0.2 + dy, z0), Vec3(1.0, 2.5 + dy, z1), obsidian))
        # lintel and sill
        scene.add_object(Cube(Vec3(-1.0, 2.5 + dy, z0), Vec3(1.0, 3.0 + dy, z1), obsidian))
        scene.add_object(Cube(Vec3(-1.0, -0.2 + dy, z0), Vec3(1.0, 0.2 + dy, z1), obsidian))

        # interior: the two broad faces carry the purple film, the thin sides stay obsidian
        film = materials['purple']
        scene.add_object(Cube(Vec3(-0.5, 0.2 + dy, z0), Vec3(0.5, 2.5 + dy, z1),
                              obsidian, face_materials=(None, None, None, None, film, film)))

    def _create_lighting(self, scene: Scene):
        # warm glow beside the portal, on at every hour
        scene.add_light(PointLight(
            position=Vec3(2.8, 1.0, -3.0),
            color=Color.from_rgb8(255, 165, 0),
            intensity=0.6,
            radius=0.2,
            samples=max(1, self.shadow_samples // 2),
            seed=7,
        ))
