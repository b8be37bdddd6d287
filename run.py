# run.py

import asyncio
import logging
import sys

from oled_router.config import DEFAULT_CONFIG, build_registry, build_router, load_yaml
from oled_router.osc_bus import OSCBus
from oled_router.outcome import ConfigError
from oled_router.preview import DisplayPreview

SPLASH_PATTERN = "/desel_oled"


class App:
    def __init__(self, cfg: dict):
        self.cfg = cfg

        # Displays + routing
        self.registry = build_registry(cfg)
        self.router = build_router(cfg, self.registry)

        osc_cfg = cfg.get("osc", {}) or {}
        self.osc = OSCBus(
            rx_host=osc_cfg.get("rx_host", "0.0.0.0"),
            rx_port=int(osc_cfg.get("rx_port", 7562)),
            router=self.router,
        )

        self.ui = None
        ui_cfg = cfg.get("ui", {}) or {}
        if ui_cfg.get("enable", False):
            self.ui = DisplayPreview(self.registry, fps=ui_cfg.get("fps", 30), scale=ui_cfg.get("scale", 4))

    def show_splash(self):
        """Logo on every display, plus its target ID when there is more than one."""
        splash_cfg = self.cfg.get("splash", {}) or {}
        if not splash_cfg.get("enable", True):
            return
        entry = self.router.patterns.get(splash_cfg.get("pattern", SPLASH_PATTERN))
        many = self.registry.count > 1
        for target in self.registry:
            self.registry.select_target(target.index)
            surface = target.surface
            surface.clear()
            if entry is not None:
                entry.render(surface, [])
            if many:
                surface.draw_text(0, 50, f"Target ID: {target.index}", "tiny")
            surface.present()
        self.registry.select_target(0)

    async def run(self):
        loop = asyncio.get_running_loop()
        await self.osc.start_server(loop)
        logging.info("OSC server started on %s:%s", self.osc.rx_host, self.osc.rx_port)

        try:
            if self.ui:
                await self.ui.run()
            else:
                while True:
                    await asyncio.sleep(3600)
        finally:
            if self.ui:
                self.ui.stop()
            await self.osc.stop_server()
            logging.info("OSC summary: %s", self.osc.summary())


def main() -> int:
    # Logging setup
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    logging.info("Booting OLED router")

    cfg_path = sys.argv[1] if len(sys.argv) > 1 else "config.yml"
    cfg = load_yaml(cfg_path, DEFAULT_CONFIG)

    try:
        app = App(cfg)
    except ConfigError as e:
        logging.error("Configuration error: %s", e)
        return 1

    app.show_splash()
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        logging.info("Shutting down (KeyboardInterrupt)")
    except Exception as e:
        logging.exception("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
