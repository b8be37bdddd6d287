# oled_router/preview.py
import asyncio
import logging
from typing import List, Tuple

import pygame

from .targets import TargetRegistry

logger = logging.getLogger(__name__)

# ---- styling knobs ----
MARGIN = 16
LABEL_H = 18
BEZEL = (28, 28, 28)
WINDOW_BG = (18, 18, 18)
LABEL_FG = (200, 200, 200)
ACTIVE_FG = (60, 200, 120)


class DisplayPreview:
    """
    Development window: every display's presented frame side by side,
    scaled up, with the active target's label highlighted.
    """
    def __init__(self, registry: TargetRegistry, title: str = "OLED Router", fps: int = 30, scale: int = 4):
        self.registry = registry
        self.title = title
        self.fps = max(1, int(fps))
        self.scale = max(1, int(scale))

        self._screen = None
        self._font = None
        self._running = False

    # ---------- layout ----------

    def _positions_and_window(self) -> Tuple[List[Tuple[int, int]], Tuple[int, int]]:
        x = MARGIN
        positions = []
        tallest = 0
        for target in self.registry:
            positions.append((x, MARGIN + LABEL_H))
            x += target.surface.width * self.scale + MARGIN
            tallest = max(tallest, target.surface.height * self.scale)
        return positions, (max(x, 320), MARGIN + LABEL_H + tallest + MARGIN)

    # ---------- main drawing ----------

    def _draw(self):
        self._screen.fill(WINDOW_BG)
        positions, size = self._positions_and_window()
        if self._screen.get_size() != size:
            self._screen = pygame.display.set_mode(size)
            self._screen.fill(WINDOW_BG)

        active = self.registry.active_index
        for target, (x, y) in zip(self.registry, positions):
            w = target.surface.width * self.scale
            h = target.surface.height * self.scale
            pygame.draw.rect(self._screen, BEZEL, (x - 4, y - 4, w + 8, h + 8), border_radius=6)
            frame = getattr(target.surface, "frame", None)
            if frame is not None:
                self._screen.blit(pygame.transform.scale(frame, (w, h)), (x, y))
            label = f"target {target.index}" + (f" (mux {target.mux_channel})" if target.muxed else "")
            color = ACTIVE_FG if target.index == active else LABEL_FG
            self._screen.blit(self._font.render(label, True, color), (x, y - LABEL_H))

    # ---------- loop ----------

    async def run(self):
        pygame.init()
        try:
            _, size = self._positions_and_window()
            self._screen = pygame.display.set_mode(size)
            pygame.display.set_caption(self.title)
            self._font = pygame.font.SysFont(None, 18)
            self._running = True
            logger.info("DisplayPreview started (fps=%s, scale=%s)", self.fps, self.scale)

            interval = 1.0 / self.fps
            while self._running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self._running = False
                    elif event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_q):
                        self._running = False
                self._draw()
                pygame.display.flip()
                await asyncio.sleep(interval)
        finally:
            pygame.display.quit()
            logger.info("DisplayPreview stopped")

    def stop(self):
        self._running = False
