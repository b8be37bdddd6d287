"""Replay the test patch's OSC messages at a running router.

This script creates a :class:`~pythonosc.udp_client.SimpleUDPClient` and
walks through the display patterns, the target-mode switch and a few
malformed messages, one per second. Watch the router's log (or its preview
window) to check each outcome. Usage::

    python test_stuff/osc_test_sender.py [host] [port]
"""

import math
import sys
import time

from pythonosc.udp_client import SimpleUDPClient

SEQUENCE = [
    ("/osc-test", []),
    ("/number", [3.25]),
    ("/display-text", ["hello bela"]),
    ("/scanner_vibrato", [10, 20, 30, 40]),
    ("/rate_exp", [10, 20, 30, 40]),
    ("/looper", [75]),
    ("/parameters", [0.2, 0.5, 0.9]),
    ("/waveform", [0.5 + 0.5 * math.sin(i / 8.0) for i in range(128)]),
    # malformed on purpose: router should report and keep serving
    ("/freeverb", [1, 2, 3]),
    ("/no-such-pattern", []),
    ("/target", [1]),
    # stateful mode, second display
    ("/targetMode", [2]),
    ("/target", [0]),
    ("/desel_oled", []),
    ("/targetMode", [0]),
]


def main() -> None:
    """Send the sequence once."""
    ip = sys.argv[1] if len(sys.argv) > 1 else "127.0.0.1"
    port = int(sys.argv[2]) if len(sys.argv) > 2 else 7562
    client = SimpleUDPClient(ip, port)
    print(f"Sending test messages to {ip}:{port}…")

    for address, args in SEQUENCE:
        client.send_message(address, args)
        print(f"Sent {address} {args[:6]}{' …' if len(args) > 6 else ''}")
        time.sleep(1)


if __name__ == "__main__":
    main()
