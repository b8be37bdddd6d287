# oled_router/osc_bus.py
import asyncio
import logging
from collections import Counter
from typing import Optional

from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_server import AsyncIOOSCUDPServer

from .outcome import DispatchOutcome
from .router import Router

logger = logging.getLogger(__name__)


class OSCBus:
    """
    - RX only: every datagram goes to Router.dispatch
    - The asyncio loop delivers one message at a time, so dispatch is serialized
    - Keeps per-outcome counters for the operator
    """
    def __init__(self, rx_host: str, rx_port: int, router: Router):
        self.rx_host = rx_host
        self.rx_port = rx_port
        self.router = router
        self.counts: Counter = Counter()

        self.dispatcher = Dispatcher()
        self.dispatcher.set_default_handler(self._on_any)

        self._server: Optional[AsyncIOOSCUDPServer] = None
        self._transport = None

    # Incoming
    def _on_any(self, addr: str, *args) -> Optional[DispatchOutcome]:
        try:
            outcome = self.router.dispatch(addr, args)
        except Exception:
            # backend or bus failure: keep serving the next message
            logger.exception("[osc] failed to handle %s %s", addr, args)
            self.counts["exception"] += 1
            return None
        self.counts[outcome.name] += 1
        if not outcome.ok:
            logger.info("[osc] %s -> %s (%s)", addr, outcome.name, outcome.description)
        return outcome

    async def start_server(self, loop: asyncio.AbstractEventLoop):
        self._server = AsyncIOOSCUDPServer((self.rx_host, self.rx_port), self.dispatcher, loop)
        transport, protocol = await self._server.create_serve_endpoint()
        self._transport = transport

    async def stop_server(self):
        if self._transport:
            self._transport.close()
            self._transport = None

    def summary(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in sorted(self.counts.items())) or "no messages"
