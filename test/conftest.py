"""
Pytest configuration and fixtures for oled_router tests.
"""

import os
import sys

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from oled_router.pattern_table import DrawAction, PatternEntry, PatternTable
from oled_router.router import Router
from oled_router.surfaces import Surface
from oled_router.targets import AddressingMode, TargetRegistry


class RecordingSurface(Surface):
    """Surface that records every backend call as a tuple."""

    def __init__(self, width=128, height=64):
        self.width = width
        self.height = height
        self.calls = []

    def clear(self):
        self.calls.append(("clear",))

    def draw_text(self, x, y, text, font=None):
        self.calls.append(("text", x, y, text))

    def draw_box(self, x, y, w, h):
        self.calls.append(("box", x, y, w, h))

    def draw_frame(self, x, y, w, h):
        self.calls.append(("frame", x, y, w, h))

    def present(self):
        self.calls.append(("present",))

    @property
    def texts(self):
        return [c[3] for c in self.calls if c[0] == "text"]


def make_registry(count, mode=AddressingMode.SINGLE, select_bus_channel=None, muxes=None):
    registry = TargetRegistry(mode=mode, select_bus_channel=select_bus_channel)
    for i in range(count):
        registry.add(RecordingSurface(), mux_channel=(muxes[i] if muxes else -1))
    return registry


def surfaces(registry):
    return [t.surface for t in registry]


@pytest.fixture
def show_value_table():
    """show-value (one int), pair (two ints), blank (no args)."""
    return PatternTable([
        PatternEntry(
            address="show-value",
            arg_kinds=("int",),
            actions=(DrawAction(kind="text", x=0.0, y=0.0, text="value"),
                     DrawAction(kind="value", x=0.5, y=0.5, arg=0)),
        ),
        PatternEntry(
            address="pair",
            arg_kinds=("int", "int"),
            actions=(DrawAction(kind="value", arg=0), DrawAction(kind="value", x=0.5, arg=1)),
        ),
        PatternEntry(address="blank"),
    ])


@pytest.fixture
def router_factory(show_value_table):
    def _make(count=1, mode=AddressingMode.SINGLE, **kwargs):
        registry = make_registry(count, mode, **kwargs)
        return Router(registry, show_value_table), registry
    return _make
