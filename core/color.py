from core.math import Vec3


def _clamp01(c: float) -> float:
    # NaN collapses to 0 so a bad sample never poisons the frame
    if not c > 0.0:
        return 0.0
    if c > 1.0:
        return 1.0
    return float(c)


class Color:
    """Clamped linear RGB, every channel in [0, 1]."""

    __slots__ = ("r", "g", "b")

    def __init__(self, r=0.0, g=0.0, b=0.0):
        object.__setattr__(self, "r", _clamp01(r))
        object.__setattr__(self, "g", _clamp01(g))
        object.__setattr__(self, "b", _clamp01(b))

    def __setattr__(self, name, value):
        raise AttributeError("Color is immutable")

    def __reduce__(self):
        return (Color, (self.r, self.g, self.b))

    @staticmethod
    def from_rgb8(r: int, g: int, b: int) -> "Color":
        return Color(r / 255.0, g / 255.0, b / 255.0)

    @staticmethod
    def from_vec3(v: Vec3) -> "Color":
        return Color(v.x, v.y, v.z)

    @staticmethod
    def black() -> "Color":
        return Color(0.0, 0.0, 0.0)

    @staticmethod
    def white() -> "Color":
        return Color(1.0, 1.0, 1.0)

    def to_vec3(self) -> Vec3:
        return Vec3(self.r, self.g, self.b)

    def to_rgb8(self):
        return (int(round(self.r * 255)), int(round(self.g * 255)), int(round(self.b * 255)))

    def to_hex(self) -> int:
        r, g, b = self.to_rgb8()
        return (r << 16) | (g << 8) | b

    def scale(self, k: float) -> "Color":
        return Color(self.r * k, self.g * k, self.b * k)

    def add(self, other: "Color") -> "Color":
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def blend(self, other: "Color", t: float) -> "Color":
        """Linear mix, t=0 gives self and t=1 gives other."""
        return Color(self.r + (other.r - self.r) * t,
                     self.g + (other.g - self.g) * t,
                     self.b + (other.b - self.b) * t)

    def __add__(self, other):
        return self.add(other)

    def __mul__(self, k):
        if isinstance(k, Color):
            return Color(self.r * k.r, self.g * k.g, self.b * k.b)
        return self.scale(k)

    __rmul__ = __mul__

    def __eq__(self, other):
        if not isinstance(other, Color):
            return NotImplemented
        return (self.r, self.g, self.b) == (other.r, other.g, other.b)

    def __hash__(self):
        return hash((self.r, self.g, self.b))

    def __iter__(self):
        yield self.r
        yield self.g
        yield self.b

    def __repr__(self):
        return f"Color({self.r:.3f}, {self.g:.3f}, {self.b:.3f})"
