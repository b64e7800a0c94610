import math
from dataclasses import dataclass
from core.math import Vec3, Ray

UP_TOLERANCE = 1e-9


@dataclass(frozen=True)
class CameraView:
    """Frozen camera basis for one frame."""
    eye: Vec3
    right: Vec3
    up: Vec3
    forward: Vec3
    scale: float  # tan(vfov / 2)

    def basis_change(self, v: Vec3) -> Vec3:
        # camera space looks down -z
        return self.right * v.x + self.up * v.y - self.forward * v.z

    def get_ray(self, x: float, y: float, width: int, height: int) -> Ray:
        """Ray through the centre of pixel (x, y); row 0 is the top of the image."""
        aspect = width / height
        screen_x = (2.0 * (x + 0.5) / width - 1.0) * aspect * self.scale
        screen_y = (1.0 - 2.0 * (y + 0.5) / height) * self.scale
        direction = self.basis_change(Vec3(screen_x, screen_y, -1.0))
        return Ray(self.eye, direction)


class OrbitCamera:
    def __init__(self,
                 target: Vec3 = Vec3(0, 0, 0),
                 radius: float = 6.5,
                 azimuth: float = 0.0,
                 elevation: float = 0.0,
                 vfov: float = 60.0,         # vertical FOV (deg)
                 up: Vec3 = Vec3(0, 1, 0),
                 min_radius: float = 1.0,
                 max_radius: float = 10.0,
                 max_elevation: float = math.radians(85.0)):
        if not 0.0 < vfov < 180.0:
            raise ValueError(f"vertical fov must be in (0, 180) degrees, got {vfov}")
        if not 0.0 < min_radius <= max_radius:
            raise ValueError(f"radius bounds must satisfy 0 < min <= max, got [{min_radius}, {max_radius}]")
        if not 0.0 < max_elevation < math.pi / 2:
            raise ValueError(f"max elevation must be in (0, pi/2), got {max_elevation}")
        if up.length() == 0.0:
            raise ValueError("camera up hint must be non-zero")
        # the orbit turns about y; any other hint lines up with the view axis somewhere on the orbit
        if abs(up.normalize().y) < 1.0 - UP_TOLERANCE:
            raise ValueError(f"camera up hint must lie along the orbit axis (0, +-1, 0), got {up}")

        self.target = target
        self.up_hint = up.normalize()
        self.vfov = float(vfov)
        self.min_radius = float(min_radius)
        self.max_radius = float(max_radius)
        self.max_elevation = float(max_elevation)

        self.azimuth = float(azimuth)
        self.elevation = min(max(float(elevation), -self.max_elevation), self.max_elevation)
        self.radius = min(max(float(radius), self.min_radius), self.max_radius)
        self._update_basis()

    def _update_basis(self):
        cos_el = math.cos(self.elevation)
        offset = Vec3(cos_el * math.sin(self.azimuth),
                      math.sin(self.elevation),
                      cos_el * math.cos(self.azimuth))
        self.eye = self.target + offset * self.radius
        self.forward = (self.target - self.eye).normalize()
        self.right = self.forward.cross(self.up_hint).normalize()
        self.up = self.right.cross(self.forward)

    def orbit(self, azimuth_delta: float = 0.0, elevation_delta: float = 0.0, radius_delta: float = 0.0):
        """Apply one frame of host input; elevation and radius are clamped."""
        self.azimuth = (self.azimuth + azimuth_delta) % (2.0 * math.pi)
        self.elevation = min(max(self.elevation + elevation_delta, -self.max_elevation), self.max_elevation)
        self.radius = min(max(self.radius + radius_delta, self.min_radius), self.max_radius)
        self._update_basis()

    def view(self) -> CameraView:
        return CameraView(
            eye=self.eye,
            right=self.right,
            up=self.up,
            forward=self.forward,
            scale=math.tan(math.radians(self.vfov) * 0.5),
        )

    def get_ray(self, x: float, y: float, width: int, height: int) -> Ray:
        return self.view().get_ray(x, y, width, height)
