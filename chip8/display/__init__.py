"""Display subsystem for the CHIP-8 interpreter."""

from .framebuffer import OFF_COLOR, ON_COLOR, Framebuffer

__all__ = [
    "Framebuffer",
    "OFF_COLOR",
    "ON_COLOR",
]
