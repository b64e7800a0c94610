import logging
import math
import time
from typing import List
import numpy as np

from core.math import Vec3, Ray, T_MIN, offset_origin
from core.color import Color
from core.material import HitRecord, Material
from core.lighting import Light
from core.scene import Scene, SceneSnapshot, RenderSettings
from core.framebuffer import FrameBuffer
from renderers.base_renderer import BaseRenderer, RendererFactory

logger = logging.getLogger(__name__)


class CPURenderer(BaseRenderer):
    """Single-threaded Whitted ray tracer; also the per-pixel engine of the parallel renderer."""

    def __init__(self, settings: RenderSettings = None):
        super().__init__("cpu_raytracer")
        self.settings = settings if settings is not None else RenderSettings(workers=1)

    def get_capabilities(self) -> List[str]:
        return [
            "ray_tracing",
            "soft_shadows",
            "reflection",
            "refraction",
            "textures",
            "day_night",
        ]

    def render(self, scene: Scene, buffer: FrameBuffer) -> FrameBuffer:
        start_time = time.time()
        snapshot = scene.snapshot(self.settings.shadow_samples)
        buffer.begin_frame()
        block = self.render_rows(snapshot, buffer.width, buffer.height, 0, buffer.height)
        buffer.write_rows(0, block)
        logger.debug("cpu frame %dx%d at t=%.3f in %.3fs",
                     buffer.width, buffer.height, snapshot.time, time.time() - start_time)
        return buffer

    def render_rows(self, snapshot: SceneSnapshot, width: int, height: int, y0: int, y1: int) -> np.ndarray:
        """Colours of rows y0..y1-1 as a (y1 - y0, width, 3) block."""
        block = np.empty((y1 - y0, width, 3), dtype=np.float64)
        camera = snapshot.camera
        for j in range(y0, y1):
            for i in range(width):
                ray = camera.get_ray(i, j, width, height)
                col = self.cast_ray(ray, snapshot, 0)
                block[j - y0, i] = (col.r, col.g, col.b)
        return block

    def cast_ray(self, ray: Ray, snapshot: SceneSnapshot, depth: int = 0) -> Color:
        rec = HitRecord()
        if not snapshot.hit(ray, T_MIN, math.inf, rec):
            return snapshot.lighting.sky_color

        mat = rec.material
        base_color = mat.base_color(rec.u, rec.v)

        # 1) ambient + direct light
        color = self._local_color(ray, rec, mat, base_color, snapshot)

        if depth >= self.settings.max_depth:
            return Color.from_vec3(color)

        # 2) reflection
        if mat.reflective > 0:
            reflected_dir = ray.direction.reflect(rec.normal)
            reflected_ray = Ray(offset_origin(rec.point, rec.normal, reflected_dir), reflected_dir)
            reflected_color = self.cast_ray(reflected_ray, snapshot, depth + 1)
            color += reflected_color.to_vec3() * mat.reflective

        # 3) refraction
        if mat.transparency > 0:
            refracted_dir = self._refract(ray.direction, rec, mat.refractive_index)
            refracted_ray = Ray(offset_origin(rec.point, rec.normal, refracted_dir), refracted_dir)
            refracted_color = self.cast_ray(refracted_ray, snapshot, depth + 1)
            color += refracted_color.to_vec3() * mat.transparency

        return Color.from_vec3(color)

    def _local_color(self, ray: Ray, rec: HitRecord, mat: Material, base_color: Vec3,
                     snapshot: SceneSnapshot) -> Vec3:
        color = base_color * snapshot.lighting.ambient_light * mat.ambient
        if mat.diffuse == 0.0 and mat.specular == 0.0:
            return color

        view_dir = -ray.direction
        for light in snapshot.lights:
            to_light, _ = light.direction_from(rec.point)
            n_dot_l = rec.normal.dot(to_light)
            if n_dot_l <= 0.0:
                continue

            # Lambert
            lit = base_color * light.radiance * (mat.diffuse * n_dot_l)

            # Phong
            if mat.specular > 0.0:
                reflect_dir = (-to_light).reflect(rec.normal)
                spec = max(view_dir.dot(reflect_dir), 0.0)
                lit += light.radiance * (mat.specular * spec ** mat.shininess)

            visible = self.light_visibility(rec, light, snapshot)
            if visible > 0.0:
                color += lit * visible
        return color

    def light_visibility(self, rec: HitRecord, light: Light, snapshot: SceneSnapshot) -> float:
        """Fraction of the light's shadow samples that reach the hit point."""
        samples = light.shadow_samples(rec.point)
        unblocked = 0
        for direction, distance in samples:
            shadow_ray = Ray(offset_origin(rec.point, rec.normal, direction), direction)
            if not snapshot.occluded(shadow_ray, distance):
                unblocked += 1
        return unblocked / len(samples)

    @staticmethod
    def _refract(incident: Vec3, rec: HitRecord, ior: float) -> Vec3:
        if incident.dot(rec.outward_normal) < 0.0:
            # entering the object
            normal, ni_over_nt = rec.outward_normal, 1.0 / ior
        else:
            # leaving it
            normal, ni_over_nt = -rec.outward_normal, ior
        did_refract, refracted_dir = incident.refract(normal, ni_over_nt)
        if not did_refract:
            # total internal reflection
            return incident.reflect(normal)
        return refracted_dir.normalize()


RendererFactory.register("cpu_raytracer", CPURenderer)
