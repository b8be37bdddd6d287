# oled_router/bus_mux.py
import logging
from typing import List

logger = logging.getLogger(__name__)

NO_CHANNEL = -1


class BusMultiplexer:
    """
    Selects which downstream channel of a shared display bus is live.

    Channels 0..7 enable one branch; -1 disables every branch, which is what
    an un-muxed display needs when it shares the bus with muxed ones.
    """
    channels = 8

    def select(self, channel: int) -> None:
        raise NotImplementedError


class LoggingMultiplexer(BusMultiplexer):
    """Multiplexer for hosts without the hardware: records and logs selections."""

    def __init__(self, address: int = 0x70):
        self.address = address
        self.history: List[int] = []

    def select(self, channel: int) -> None:
        channel = int(channel)
        if channel != NO_CHANNEL and not 0 <= channel < self.channels:
            raise ValueError(f"mux channel {channel} outside 0..{self.channels - 1}")
        self.history.append(channel)
        logger.debug("[mux 0x%02x] select channel %d", self.address, channel)
