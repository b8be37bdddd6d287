# oled_router/surfaces.py
import logging
import math
from typing import Dict, Optional, Tuple

import pygame

logger = logging.getLogger(__name__)

# ---- panel defaults (SSD1306 128x64, monochrome) ----
DEFAULT_SIZE = (128, 64)
BG = (0, 0, 0)
FG = (255, 255, 255)
FONT_SIZES = {
    "small": 12,   # roughly a 6x12 bitmap font
    "tiny": 8,     # roughly 4x6, used by the logo
}


def _px(value: float, limit: int) -> int:
    """Pixel coordinate clamped to [-limit, limit]; NaN becomes 0."""
    v = float(value)
    if math.isnan(v):
        return 0
    return int(max(-limit, min(limit, v)))


class Surface:
    """
    Drawing capability a display target exposes to the router.

    Coordinates are pixels from the top-left corner; `y` is the top of the
    text line. Implementations clamp to their own bounds, callers never do.
    """
    width: int = 0
    height: int = 0

    def clear(self) -> None:
        raise NotImplementedError

    def draw_text(self, x: float, y: float, text: str, font: Optional[str] = None) -> None:
        raise NotImplementedError

    def draw_box(self, x: float, y: float, w: float, h: float) -> None:
        raise NotImplementedError

    def draw_frame(self, x: float, y: float, w: float, h: float) -> None:
        raise NotImplementedError

    def present(self) -> None:
        raise NotImplementedError


class PygameSurface(Surface):
    """
    Off-screen monochrome frame buffer.

    Drawing goes to a back buffer; present() copies it to the front frame,
    which is what a panel (or the preview window) shows.
    """

    def __init__(self, size: Tuple[int, int] = DEFAULT_SIZE, name: str = "display"):
        if not pygame.font.get_init():
            pygame.font.init()
        self.name = name
        self.width, self.height = int(size[0]), int(size[1])
        # any coordinate past this is off-panel either way
        self._limit = 4 * max(self.width, self.height)
        self._back = pygame.Surface((self.width, self.height))
        self._front = pygame.Surface((self.width, self.height))
        self._back.fill(BG)
        self._front.fill(BG)
        self._fonts: Dict[str, pygame.font.Font] = {}
        self.frame_count = 0

    @property
    def frame(self) -> pygame.Surface:
        return self._front

    def _font(self, name: Optional[str]) -> pygame.font.Font:
        key = name or "small"
        font = self._fonts.get(key)
        if font is None:
            font = pygame.font.Font(None, FONT_SIZES.get(key, FONT_SIZES["small"]))
            self._fonts[key] = font
        return font

    def clear(self) -> None:
        self._back.fill(BG)

    def draw_text(self, x, y, text, font=None) -> None:
        if not text:
            return
        rendered = self._font(font).render(str(text), False, FG, BG)
        self._back.blit(rendered, (_px(x, self._limit), _px(y, self._limit)))

    def _rect(self, x, y, w, h) -> pygame.Rect:
        lim = self._limit
        x0, y0 = _px(x, lim), _px(y, lim)
        x1, y1 = _px(x + w, lim), _px(y + h, lim)
        rect = pygame.Rect(x0, y0, x1 - x0, y1 - y0)
        rect.normalize()
        return rect

    def draw_box(self, x, y, w, h) -> None:
        rect = self._rect(x, y, w, h)
        if rect.width and rect.height:
            pygame.draw.rect(self._back, FG, rect)

    def draw_frame(self, x, y, w, h) -> None:
        rect = self._rect(x, y, w, h)
        if rect.width and rect.height:
            pygame.draw.rect(self._back, FG, rect, width=1)

    def present(self) -> None:
        self._front.blit(self._back, (0, 0))
        self.frame_count += 1
        logger.debug("[%s] frame %d presented", self.name, self.frame_count)

    def lit_pixels(self, presented: bool = True) -> int:
        """Number of foreground pixels in the front (or back) buffer."""
        src = self._front if presented else self._back
        return pygame.mask.from_threshold(src, FG, (1, 1, 1, 255)).count()
