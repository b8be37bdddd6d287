# oled_router/targets.py
import logging
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, List, Optional, Union

from .bus_mux import NO_CHANNEL
from .outcome import DispatchOutcome, RegistryError
from .surfaces import Surface

logger = logging.getLogger(__name__)


class AddressingMode(IntEnum):
    """How a display message finds its target. Values are the wire ordinals."""
    SINGLE = 0       # one display, no addressing argument
    PER_MESSAGE = 1  # first argument of every display message is the target index
    STATEFUL = 2     # a target-select message picks the display for what follows

    @classmethod
    def parse(cls, value: Union["AddressingMode", int, str]) -> Optional["AddressingMode"]:
        """Return the mode for an ordinal or a name, or None when unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                return None
        if isinstance(value, bool):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class Target:
    index: int
    surface: Surface
    mux_channel: int = NO_CHANNEL  # -1: not behind the multiplexer

    @property
    def muxed(self) -> bool:
        return self.mux_channel != NO_CHANNEL


class TargetRegistry:
    """
    - Ordered displays; insertion order is the target index
    - Holds the active target index and the addressing mode
    - Optional bus multiplexing: `select_bus_channel` is called only when the
      next target's mux channel differs from the last one selected
    """

    def __init__(
        self,
        mode: AddressingMode = AddressingMode.SINGLE,
        select_bus_channel: Optional[Callable[[int], None]] = None,
    ):
        self._targets: List[Target] = []
        self._active_index = 0
        self._mode = AddressingMode(mode)
        self._select_bus_channel = select_bus_channel
        self._last_mux: Optional[int] = None
        self._lock = threading.RLock()

    # Population (startup only)
    def add(self, surface: Surface, mux_channel: int = NO_CHANNEL) -> Target:
        with self._lock:
            target = Target(index=len(self._targets), surface=surface, mux_channel=int(mux_channel))
            self._targets.append(target)
            return target

    # Introspection
    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def has_muxing(self) -> bool:
        return self._select_bus_channel is not None

    @property
    def count(self) -> int:
        return len(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self):
        return iter(list(self._targets))

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def mode(self) -> AddressingMode:
        return self._mode

    @property
    def last_mux_channel(self) -> Optional[int]:
        return self._last_mux

    # Selection
    def in_range(self, index: int) -> bool:
        return 0 <= index < len(self._targets)

    def has_valid_active(self) -> bool:
        return self.in_range(self._active_index)

    def resolve(self, index: int) -> Optional[Target]:
        """Validate an index without making it active."""
        if not self.in_range(index):
            return None
        return self._targets[index]

    def select_target(self, index: int) -> DispatchOutcome:
        with self._lock:
            target = self.resolve(index)
            if target is None:
                logger.warning("[targets] target %s out of range. Only %d displays are available",
                               index, len(self._targets))
                return DispatchOutcome.OUT_OF_RANGE
            self._apply_mux(target)
            if index != self._active_index:
                logger.debug("[targets] active target %d -> %d", self._active_index, index)
            self._active_index = index
            return DispatchOutcome.OK

    def current_target(self) -> Target:
        with self._lock:
            if not self.has_valid_active():
                raise RegistryError(
                    f"active target {self._active_index} invalid for {len(self._targets)} display(s)"
                )
            return self._targets[self._active_index]

    def set_mode(self, mode: Union[AddressingMode, int, str]) -> DispatchOutcome:
        parsed = AddressingMode.parse(mode)
        if parsed is None:
            logger.warning("[targets] rejecting unknown target mode %r", mode)
            return DispatchOutcome.INVALID_MODE
        with self._lock:
            if parsed != self._mode:
                logger.info("[targets] target mode: %s (%d)", parsed.name.lower(), int(parsed))
            self._mode = parsed
        return DispatchOutcome.OK

    def _apply_mux(self, target: Target) -> None:
        if not self.has_muxing:
            return
        if self._last_mux == target.mux_channel:
            return
        self._select_bus_channel(target.mux_channel)
        self._last_mux = target.mux_channel
