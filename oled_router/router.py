# oled_router/router.py
import logging
from typing import Any, Sequence

from .arg_reader import ArgumentReader
from .outcome import DispatchOutcome
from .pattern_table import PatternTable
from .targets import AddressingMode, TargetRegistry

logger = logging.getLogger(__name__)

TARGET_ADDRESS = "select-target"
MODE_ADDRESS = "select-mode"


class Router:
    """
    Validate one message, resolve its display, draw it.

    - State messages (target select, mode select) only change the registry;
      they never clear, draw or present.
    - Display messages draw all of their pattern's actions or none of them:
      every argument is validated before the surface is cleared.
    - dispatch() returns exactly one DispatchOutcome and never raises for a
      bad message; reporting it is the caller's job.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        patterns: PatternTable,
        *,
        target_address: str = TARGET_ADDRESS,
        mode_address: str = MODE_ADDRESS,
    ):
        self.registry = registry
        self.patterns = patterns
        self.target_address = target_address
        self.mode_address = mode_address
        for reserved in (target_address, mode_address):
            if reserved in patterns:
                logger.warning("[router] pattern %s is shadowed by the state message of the same address", reserved)

    def is_state_message(self, address: str) -> bool:
        return address in (self.target_address, self.mode_address)

    # ---------- main entry ----------

    def dispatch(self, address: str, args: Sequence[Any] = ()) -> DispatchOutcome:
        logger.debug("[router] message %s %s", address, tuple(args))
        with self.registry.lock:
            outcome = self._dispatch(address, ArgumentReader(args))
        if not outcome.ok:
            logger.warning("[router] error with message to %s: %s", address, outcome.description)
        return outcome

    def _dispatch(self, address: str, reader: ArgumentReader) -> DispatchOutcome:
        registry = self.registry
        if not registry.count:
            logger.error("[router] no displays registered; dropping %s", address)
            return DispatchOutcome.OUT_OF_RANGE

        if address == self.target_address:
            return self._on_target(reader)
        if address == self.mode_address:
            return self._on_mode(reader)

        if not registry.has_valid_active():
            logger.error("[router] target %d out of range. Only %d displays are available",
                         registry.active_index, registry.count)
            return DispatchOutcome.OUT_OF_RANGE

        index = registry.active_index
        if registry.mode == AddressingMode.PER_MESSAGE:
            # peel off the leading target index before the pattern sees the arguments
            value, ok = reader.pop_number()
            if not ok:
                logger.warning("[router] target mode is per-message; first argument of %s must be "
                               "a number selecting the display", address)
                return DispatchOutcome.WRONG_ARGUMENTS
            if registry.resolve(value) is None:
                return DispatchOutcome.OUT_OF_RANGE
            index = value

        entry = self.patterns.get(address)
        if entry is None:
            return DispatchOutcome.UNMATCHED_PATTERN

        values = entry.bind(reader)
        if values is None:
            return DispatchOutcome.WRONG_ARGUMENTS

        # commit: selection, then one whole frame
        outcome = registry.select_target(index)
        if not outcome.ok:
            return outcome
        surface = registry.current_target().surface
        surface.clear()
        entry.render(surface, values)
        surface.present()
        logger.debug("[router] %s drawn on target %d", address, index)
        return DispatchOutcome.OK

    # ---------- state messages ----------

    def _on_target(self, reader: ArgumentReader) -> DispatchOutcome:
        if self.registry.mode != AddressingMode.STATEFUL:
            logger.warning("[router] target mode is not stateful, so %s messages are ignored",
                           self.target_address)
            return DispatchOutcome.INVALID_MODE
        index, _ = reader.pop_number()
        if not reader.is_ok_no_more_args():
            logger.warning("[router] argument to %s should be numeric (int or float)", self.target_address)
            return DispatchOutcome.WRONG_ARGUMENTS
        outcome = self.registry.select_target(index)
        if outcome.ok:
            logger.info("[router] selecting target %d", index)
        return outcome

    def _on_mode(self, reader: ArgumentReader) -> DispatchOutcome:
        mode, _ = reader.pop_number()
        if not reader.is_ok_no_more_args():
            return DispatchOutcome.WRONG_ARGUMENTS
        return self.registry.set_mode(mode)
