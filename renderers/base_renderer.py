from abc import ABC, abstractmethod
from typing import List
from core.scene import Scene
from core.framebuffer import FrameBuffer


class BaseRenderer(ABC):
    """Base class every renderer implements."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def render(self, scene: Scene, buffer: FrameBuffer) -> FrameBuffer:
        """Fill every pixel of buffer with the current frame of scene."""
        pass

    @abstractmethod
    def get_capabilities(self) -> List[str]:
        pass

    def get_name(self) -> str:
        return self.name

    def supports(self, feature: str) -> bool:
        return feature in self.get_capabilities()

    def close(self):
        """Release worker resources; renderers without any keep the default."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class RendererFactory:
    _renderers = {}

    @classmethod
    def register(cls, name: str, renderer_class):
        cls._renderers[name] = renderer_class

    @classmethod
    def create(cls, name: str, **kwargs) -> BaseRenderer:
        if name not in cls._renderers:
            raise ValueError(f"Unknown renderer: {name}")
        return cls._renderers[name](**kwargs)

    @classmethod
    def list_available(cls) -> List[str]:
        return list(cls._renderers.keys())
