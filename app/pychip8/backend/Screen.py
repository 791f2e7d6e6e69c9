from typing import Final, Tuple

import numpy as np
import pygame
from numpy.typing import NDArray

from pychip8.logger import log as _log


def parse_color(value: str) -> Tuple[int, int, int]:
    """'#RRGGBB' / pygame color names -> RGB tuple."""
    color = pygame.Color(value)
    return color.r, color.g, color.b


class Screen:
    """Presents the monochrome framebuffer in a scaled pygame window."""

    CAPTION: Final[str] = "PyChip8"

    def __init__(
        self,
        width: int,
        height: int,
        scale: int = 20,
        fg_color: str = "#FFFFFF",
        bg_color: str = "#000000",
        pixel_outlines: bool = True,
    ) -> None:
        self.width = width
        self.height = height
        self.scale = scale
        self.fg: NDArray[np.uint8] = np.array(parse_color(fg_color), dtype=np.uint8)
        self.bg: NDArray[np.uint8] = np.array(parse_color(bg_color), dtype=np.uint8)
        self.pixel_outlines = pixel_outlines
        self.surface: pygame.Surface = pygame.display.set_mode((width * scale, height * scale))
        self.set_caption()
        _log.info(f"Window {width * scale}x{height * scale} ({width}x{height} @ {scale}x)")

    def set_caption(self, rom_name: str = "", paused: bool = False) -> None:
        title = self.CAPTION
        if rom_name:
            title += f" - {rom_name}"
        if paused:
            title += " [PAUSED]"
        pygame.display.set_caption(title)

    def to_rgb(self, frame: NDArray[np.bool_]) -> NDArray[np.uint8]:
        """(height, width) bool frame -> (height, width, 3) RGB image."""
        return np.where(frame[..., None], self.fg, self.bg).astype(np.uint8)

    def clear(self) -> None:
        self.surface.fill(tuple(int(c) for c in self.bg))
        pygame.display.flip()

    def draw(self, frame: NDArray[np.bool_]) -> None:
        rgb = self.to_rgb(frame)
        surf = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
        surf = pygame.transform.scale(surf, (self.width * self.scale, self.height * self.scale))
        self.surface.blit(surf, (0, 0))

        if self.pixel_outlines and self.scale > 2:
            outline = tuple(int(c) for c in self.bg)
            for y, x in np.argwhere(frame):
                rect = pygame.Rect(int(x) * self.scale, int(y) * self.scale, self.scale, self.scale)
                pygame.draw.rect(self.surface, outline, rect, 1)

        pygame.display.flip()
