# oled_router/config.py
import logging
import os
from typing import Any, Dict, Optional

import yaml

from .bus_mux import BusMultiplexer, LoggingMultiplexer, NO_CHANNEL
from .outcome import ConfigError
from .pattern_table import PatternTable
from .router import Router
from .surfaces import DEFAULT_SIZE, PygameSurface
from .targets import AddressingMode, TargetRegistry

logger = logging.getLogger(__name__)


def load_yaml(path: Optional[str], default_text: Optional[str] = None) -> dict:
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    if default_text is not None:
        return yaml.safe_load(default_text)
    return {}


DEFAULT_CONFIG = """
osc:
  rx_host: "0.0.0.0"
  rx_port: 7562

routing:
  mode: single                 # single | per_message | stateful (or 0 | 1 | 2)
  target_address: "/target"
  mode_address: "/targetMode"

# one entry per panel, in target index order.
# mux: -1 when the panel is not behind the multiplexer, else its channel 0..7
displays:
  - { width: 128, height: 64, mux: -1 }

mux:
  enabled: false
  address: 0x70

splash:
  enable: true

ui:
  enable: false
  fps: 30
  scale: 4

effects:
  scanner: &scanner { title: SCANNER_VIBRATO, title_x: 0.1015, label1: d/w, label2: fx1, label3: rate, label4: dpth }
  delay_1: &delay_1 { title: TAPE_DELAY, title_x: 0.225, label1: d/w, label2: fx2, label3: time, label4: fbck }
  delay_2: &delay_2 { title: TAPE_DELAY, title_x: 0.225, label1: d/w, label2: fx2, label3: ramp, label4: roll }
  reverb: &reverb { title: FREEVERB, title_x: 0.265, label1: d/w, label2: fx3, label3: time, label4: damp }

templates:
  # four labelled values, e.g. dry/wet, slot, and two effect parameters
  quad:
    args: [int, int, int, int]
    font: small
    actions:
      - { kind: text, x: "{title_x}", y: 0.0, text: "[{title}]" }
      - { kind: text, x: 0.1, y: 0.25, text: "[{label1}]" }
      - { kind: text, x: 0.1, y: 0.45, text: "[   ]" }
      - { kind: value, x: 0.15, y: 0.45, arg: 0 }
      - { kind: text, x: 0.66, y: 0.25, text: "[{label2}]" }
      - { kind: text, x: 0.66, y: 0.45, text: "[   ]" }
      - { kind: value, x: 0.71, y: 0.45, arg: 1 }
      - { kind: text, x: 0.1, y: 0.65, text: "[{label3}]" }
      - { kind: text, x: 0.1, y: 0.85, text: "[    ]" }
      - { kind: value, x: 0.15, y: 0.85, arg: 2 }
      - { kind: text, x: 0.61, y: 0.65, text: "[{label4}]" }
      - { kind: text, x: 0.61, y: 0.85, text: "[    ]" }
      - { kind: value, x: 0.66, y: 0.85, arg: 3 }

  logo:
    args: []
    font: tiny
    units: px
    actions:
      - { kind: text, x: 0, y: 0,  text: " ____  _____ _        _" }
      - { kind: text, x: 0, y: 7,  text: "| __ )| ____| |      / \\\\" }
      - { kind: text, x: 0, y: 14, text: "|  _ \\\\|  _| | |     / _ \\\\" }
      - { kind: text, x: 0, y: 21, text: "| |_) | |___| |___ / ___ \\\\" }
      - { kind: text, x: 0, y: 28, text: "|____/|_____|_____/_/   \\\\_\\\\" }

patterns:
  - { address: /scanner_vibrato, template: quad, params: *scanner }
  - { address: /tape_delay_1, template: quad, params: *delay_1 }
  - { address: /tape_delay_2, template: quad, params: *delay_2 }
  - { address: /freeverb, template: quad, params: *reverb }

  # expression pedal assigned: that slot shows "exp" instead of its value
  - { address: /d/w_scn_exp, template: quad, params: *scanner, fixed: { 1: exp } }
  - { address: /scanner_exp, template: quad, params: *scanner, fixed: { 2: exp } }
  - { address: /rate_exp, template: quad, params: *scanner, fixed: { 3: exp } }
  - { address: /depth_exp, template: quad, params: *scanner, fixed: { 4: exp } }
  - { address: /d/w_del_exp, template: quad, params: *delay_1, fixed: { 1: exp } }
  - { address: /delay_exp, template: quad, params: *delay_1, fixed: { 2: exp } }
  - { address: /deltime_exp, template: quad, params: *delay_1, fixed: { 3: exp } }
  - { address: /feedback_exp, template: quad, params: *delay_1, fixed: { 4: exp } }
  - { address: /d/w_del_2_exp, template: quad, params: *delay_2, fixed: { 1: exp } }
  - { address: /delay_2_exp, template: quad, params: *delay_2, fixed: { 2: exp } }
  - { address: /ramptime_exp, template: quad, params: *delay_2, fixed: { 3: exp } }
  - { address: /rolloff_exp, template: quad, params: *delay_2, fixed: { 4: exp } }
  - { address: /d/w_rev_exp, template: quad, params: *reverb, fixed: { 1: exp } }
  - { address: /reverb_exp, template: quad, params: *reverb, fixed: { 2: exp } }
  - { address: /revtime_exp, template: quad, params: *reverb, fixed: { 3: exp } }
  - { address: /damping_exp, template: quad, params: *reverb, fixed: { 4: exp } }

  - address: /looper
    args: [int]
    actions:
      - { kind: text, x: 0.31, y: 0.0, text: "[LOOPER]" }
      - { kind: text, x: 0.33, y: 0.40, text: "[     ]" }
      - { kind: value, x: 0.41, y: 0.40, arg: 0 }
      - { kind: text, x: 0.33, y: 0.60, text: "[level]" }

  - { address: /desel_oled, template: logo }

  - address: /osc-test
    actions:
      - { kind: text, x: 0.0, y: 0.4, text: "OSC TEST SUCCESS!" }

  - address: /number
    args: [float]
    actions:
      - { kind: value, x: 0.1, y: 0.4, arg: 0, fmt: "{:g}" }

  - address: /display-text
    args: [string]
    actions:
      - { kind: value, x: 0.0, y: 0.4, arg: 0 }

  # three 0..1 parameters as horizontal bars
  - address: /parameters
    args: [float, float, float]
    actions:
      - { kind: text, x: 0.0, y: 0.05, text: "p1" }
      - { kind: box, x: 0.15, y: 0.05, w: 0.8, h: 0.2, arg: 0 }
      - { kind: text, x: 0.0, y: 0.4, text: "p2" }
      - { kind: box, x: 0.15, y: 0.4, w: 0.8, h: 0.2, arg: 1 }
      - { kind: text, x: 0.0, y: 0.75, text: "p3" }
      - { kind: box, x: 0.15, y: 0.75, w: 0.8, h: 0.2, arg: 2 }

  # any number of 0..1 values, one bar each across the full panel
  - address: /waveform
    variadic: float
    actions:
      - { kind: bars, x: 0.0, y: 0.0, w: 1.0, h: 1.0, arg: 0 }
"""


def _displays(cfg: Dict[str, Any]) -> list:
    displays = cfg.get("displays") or []
    if not displays:
        raise ConfigError("No displays configured")
    return displays


def build_registry(cfg: Dict[str, Any], mux: Optional[BusMultiplexer] = None) -> TargetRegistry:
    """
    Create one PygameSurface per configured display.

    A display behind the multiplexer while muxing is disabled is a
    configuration fault, as is an empty display list.
    """
    routing = cfg.get("routing", {}) or {}
    mode = AddressingMode.parse(routing.get("mode", "single"))
    if mode is None:
        raise ConfigError(f"unknown routing mode: {routing.get('mode')!r}")

    mux_cfg = cfg.get("mux", {}) or {}
    if mux is None and mux_cfg.get("enabled", False):
        mux = LoggingMultiplexer(int(mux_cfg.get("address", 0x70)))

    registry = TargetRegistry(mode=mode, select_bus_channel=mux.select if mux else None)
    for n, d in enumerate(_displays(cfg)):
        d = d or {}
        channel = int(d.get("mux", NO_CHANNEL))
        if channel != NO_CHANNEL and mux is None:
            raise ConfigError(f"Display {n} requires mux {channel} but muxing is disabled")
        if mux is not None and channel != NO_CHANNEL and not 0 <= channel < mux.channels:
            raise ConfigError(f"Display {n}: mux channel {channel} outside 0..{mux.channels - 1}")
        size = (int(d.get("width", DEFAULT_SIZE[0])), int(d.get("height", DEFAULT_SIZE[1])))
        registry.add(PygameSurface(size, name=f"display{n}"), mux_channel=channel)

    logger.info("Registry: %d display(s), mode=%s, muxing=%s",
                registry.count, registry.mode.name.lower(), registry.has_muxing)
    return registry


def build_router(cfg: Dict[str, Any], registry: TargetRegistry) -> Router:
    routing = cfg.get("routing", {}) or {}
    return Router(
        registry,
        PatternTable.from_config(cfg),
        target_address=routing.get("target_address", "/target"),
        mode_address=routing.get("mode_address", "/targetMode"),
    )
