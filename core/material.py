import math
import numpy as np
from PIL import Image
from core.math import Vec3
from core.color import Color

# Returned when a texture lookup cannot produce a sample
DEFAULT_TEXTURE_COLOR = Color(0.5, 0.5, 0.5)
WEIGHT_TOLERANCE = 1e-9


class Texture:
    def __init__(self, pixels: np.ndarray, wrap: bool = True,
                 fallback: Color = DEFAULT_TEXTURE_COLOR):
        """
        pixels: decoded image, (height, width), (height, width, 3) or
                (height, width, 4). uint8 data is rescaled to [0, 1];
                float data is taken as linear [0, 1] values.
        wrap: tile coordinates outside [0, 1] (True) or clamp them (False)
        fallback: colour used for non-finite coordinates
        """
        arr = np.asarray(pixels)
        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"texture must be (h, w), (h, w, 3) or (h, w, 4), got shape {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise ValueError("texture has no pixels")
        arr = arr[:, :, :3]
        if np.issubdtype(arr.dtype, np.integer):
            arr = arr.astype(np.float64) / 255.0
        else:
            arr = np.clip(arr.astype(np.float64), 0.0, 1.0)

        self.pixels = arr
        self.height, self.width = arr.shape[0], arr.shape[1]
        self.wrap = wrap
        self.fallback = fallback

    @classmethod
    def from_file(cls, path: str, wrap: bool = True) -> "Texture":
        img = Image.open(path).convert("RGB")
        return cls(np.array(img), wrap=wrap)

    def sample(self, u: float, v: float) -> Color:
        """
        u, v in [0, 1], (0, 0) is the bottom-left of the image.
        Image rows run top to bottom, so v is flipped before indexing.
        """
        if not (math.isfinite(u) and math.isfinite(v)):
            return self.fallback
        if self.wrap:
            u = u % 1.0
            v = v % 1.0
        else:
            u = min(max(u, 0.0), 1.0)
            v = min(max(v, 0.0), 1.0)
        x = min(max(int(u * self.width), 0), self.width - 1)
        y = min(max(int((1.0 - v) * self.height), 0), self.height - 1)
        r, g, b = self.pixels[y, x]
        return Color(r, g, b)


class Material:
    def __init__(self,
                 color: Color = Color(1.0, 1.0, 1.0),
                 ambient=0.1,
                 diffuse=0.9,
                 specular=0.0,
                 reflective=0.0,
                 transparency=0.0,
                 shininess=32.0,
                 refractive_index=1.0,
                 texture: Texture = None):
        """
        color: base colour when there is no texture
        ambient, diffuse, specular, reflective, transparency: blend weights,
            each >= 0 and together <= 1
        shininess: Phong exponent
        refractive_index: index of refraction, 1.0 does not bend rays
        texture: sampled with the hit's (u, v) instead of color
        """
        if isinstance(color, Vec3):
            color = Color.from_vec3(color)
        weights = {
            "ambient": ambient,
            "diffuse": diffuse,
            "specular": specular,
            "reflective": reflective,
            "transparency": transparency,
        }
        for name, w in weights.items():
            if not w >= 0.0:
                raise ValueError(f"{name} weight must be >= 0, got {w}")
        total = sum(weights.values())
        if total > 1.0 + WEIGHT_TOLERANCE:
            raise ValueError(f"material weights sum to {total:.4f}, must not exceed 1")
        if not shininess >= 0.0:
            raise ValueError(f"shininess must be >= 0, got {shininess}")
        if not refractive_index > 0.0:
            raise ValueError(f"refractive index must be > 0, got {refractive_index}")

        self.color = color
        self.ambient = float(ambient)
        self.diffuse = float(diffuse)
        self.specular = float(specular)
        self.reflective = float(reflective)
        self.transparency = float(transparency)
        self.shininess = float(shininess)
        self.refractive_index = float(refractive_index)
        self.texture = texture
        self._base = color.to_vec3()

    @staticmethod
    def black() -> "Material":
        return Material(color=Color.black(), ambient=0.0, diffuse=0.0, shininess=0.0)

    @staticmethod
    def with_texture(texture: Texture, **kwargs) -> "Material":
        return Material(color=Color.white(), texture=texture, **kwargs)

    @property
    def weight_sum(self) -> float:
        return self.ambient + self.diffuse + self.specular + self.reflective + self.transparency

    def is_diffuse(self) -> bool:
        return self.specular == 0.0 and self.reflective == 0.0

    def is_reflective(self) -> bool:
        return self.reflective > 0.0

    def is_transparent(self) -> bool:
        return self.transparency > 0.0

    def base_color(self, u: float, v: float) -> Vec3:
        if self.texture is not None:
            return self.texture.sample(u, v).to_vec3()
        return self._base

    def __repr__(self):
        return (f"Material(color={self.color!r}, ambient={self.ambient}, diffuse={self.diffuse}, "
                f"specular={self.specular}, reflective={self.reflective}, "
                f"transparency={self.transparency}, ior={self.refractive_index})")


class HitRecord:
    def __init__(self):
        self.t = float('inf')
        self.point = None
        self.normal = None          # faces the incoming ray
        self.outward_normal = None  # geometric face normal
        self.front_face = True
        self.face = -1
        self.material = None
        self.u = 0.0
        self.v = 0.0
