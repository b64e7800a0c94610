import numpy as np
from PIL import Image
from core.color import Color


class FrameBuffer:
    """height x width x 3 linear colours; every pixel is written once per frame."""

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError(f"frame buffer size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 3), dtype=np.float64)
        self.written = np.zeros((height, width), dtype=bool)

    def begin_frame(self):
        self.written[:] = False

    def write_rows(self, y0: int, block: np.ndarray):
        y1 = y0 + block.shape[0]
        if block.shape[1:] != (self.width, 3) or y0 < 0 or y1 > self.height:
            raise ValueError(f"row block {block.shape} at y={y0} does not fit a {self.width}x{self.height} buffer")
        if self.written[y0:y1].any():
            raise RuntimeError(f"rows {y0}..{y1 - 1} already written this frame")
        self.pixels[y0:y1] = block
        self.written[y0:y1] = True

    def set_pixel(self, x: int, y: int, color: Color):
        if self.written[y, x]:
            raise RuntimeError(f"pixel ({x}, {y}) already written this frame")
        self.pixels[y, x] = (color.r, color.g, color.b)
        self.written[y, x] = True

    def get_pixel(self, x: int, y: int) -> Color:
        r, g, b = self.pixels[y, x]
        return Color(r, g, b)

    @property
    def complete(self) -> bool:
        return bool(self.written.all())

    def to_rgb8(self) -> np.ndarray:
        return (np.clip(self.pixels, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.to_rgb8())
