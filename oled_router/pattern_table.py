# oled_router/pattern_table.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .arg_reader import ArgumentReader
from .layout_templates import expand_templates
from .outcome import ConfigError
from .surfaces import Surface

logger = logging.getLogger(__name__)

ARG_KINDS = ("int", "float", "string")
ACTION_KINDS = ("text", "value", "box", "frame", "bars")
UNITS = ("relative", "px")


@dataclass(frozen=True)
class DrawAction:
    """
    One drawing primitive of a pattern's layout.

    kind:
      text  - literal `text` at (x, y)
      value - bound argument `arg` rendered as text (optional `fmt`)
      box   - filled rect; with `arg` set, the width is `w * value`
      frame - outlined rect
      bars  - one vertical bar per value from `arg` onward, scaled 0..1 to `h`
    """
    kind: str
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0
    text: str = ""
    arg: Optional[int] = None
    fmt: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DrawAction":
        kind = d.get("kind")
        if kind not in ACTION_KINDS:
            raise ConfigError(f"unknown draw action kind: {kind!r}")
        arg = d.get("arg")
        try:
            return cls(
                kind=kind,
                x=float(d.get("x", 0.0)),
                y=float(d.get("y", 0.0)),
                w=float(d.get("w", 0.0)),
                h=float(d.get("h", 0.0)),
                text=str(d.get("text", "")),
                arg=None if arg is None else int(arg),
                fmt=d.get("fmt"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"bad {kind} action {d!r}: {e}") from e


@dataclass(frozen=True)
class PatternEntry:
    """
    Address -> expected arguments + layout.

    `arg_kinds` are popped in order; `variadic` (if set) is the kind of every
    trailing argument, at least one of which must be present.
    """
    address: str
    arg_kinds: Tuple[str, ...] = ()
    actions: Tuple[DrawAction, ...] = ()
    font: str = "small"
    units: str = "relative"
    variadic: Optional[str] = None

    def __post_init__(self):
        for kind in self.arg_kinds + ((self.variadic,) if self.variadic else ()):
            if kind not in ARG_KINDS:
                raise ConfigError(f"{self.address}: unknown argument kind {kind!r}")
        if self.units not in UNITS:
            raise ConfigError(f"{self.address}: units must be one of {UNITS}")
        for action in self.actions:
            if action.kind in ("value", "bars") and action.arg is None:
                raise ConfigError(f"{self.address}: {action.kind} action needs an arg index")
            if action.arg is not None and not 0 <= action.arg < self._guaranteed_args(action):
                raise ConfigError(f"{self.address}: action arg {action.arg} outside {len(self.arg_kinds)} argument(s)")
            if action.kind in ("box", "bars") and action.arg is not None and self._kind_of(action.arg) == "string":
                raise ConfigError(f"{self.address}: {action.kind} action needs a numeric argument")

    def _guaranteed_args(self, action: DrawAction) -> int:
        """How many bound values `action.arg` may index into."""
        if not self.variadic:
            return len(self.arg_kinds)
        if action.kind == "bars":
            # draws from arg to the end, an empty run draws nothing
            return action.arg + 1
        # a variadic tail holds at least one value
        return len(self.arg_kinds) + 1

    def _kind_of(self, index: int) -> Optional[str]:
        if index < len(self.arg_kinds):
            return self.arg_kinds[index]
        return self.variadic

    @property
    def arity(self) -> int:
        return len(self.arg_kinds)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PatternEntry":
        return cls(
            address=str(d["address"]),
            arg_kinds=tuple(d.get("args", []) or []),
            actions=tuple(DrawAction.from_dict(a) for a in (d.get("actions", []) or [])),
            font=str(d.get("font", "small")),
            units=str(d.get("units", "relative")),
            variadic=d.get("variadic"),
        )

    # ---------- arguments ----------

    def bind(self, reader: ArgumentReader) -> Optional[List[Any]]:
        """Pop every declared argument; None unless all matched with nothing left over."""
        values = [reader.pop(kind)[0] for kind in self.arg_kinds]
        if self.variadic:
            if reader.at_end():
                return None
            while not reader.at_end() and not reader.failed:
                values.append(reader.pop(self.variadic)[0])
        if not reader.is_ok_no_more_args():
            return None
        return values

    # ---------- drawing ----------

    def render(self, surface: Surface, values: Sequence[Any]) -> None:
        if self.units == "relative":
            sx, sy = surface.width, surface.height
        else:
            sx, sy = 1, 1

        for a in self.actions:
            x, y, w, h = a.x * sx, a.y * sy, a.w * sx, a.h * sy
            if a.kind == "text":
                surface.draw_text(x, y, a.text, self.font)
            elif a.kind == "value":
                v = values[a.arg]
                surface.draw_text(x, y, a.fmt.format(v) if a.fmt else str(v), self.font)
            elif a.kind == "box":
                if a.arg is not None:
                    w = w * float(values[a.arg])
                surface.draw_box(x, y, w, h)
            elif a.kind == "frame":
                surface.draw_frame(x, y, w, h)
            elif a.kind == "bars":
                bars = values[a.arg:]
                if not bars:
                    continue
                bar_w = max(1.0, w / len(bars))
                for i, v in enumerate(bars):
                    bh = h * float(v)
                    surface.draw_box(x + i * (w / len(bars)), y + h - bh, bar_w, bh)


class PatternTable:
    """Exact-match mapping from address to PatternEntry. Static once built."""

    def __init__(self, entries: Sequence[PatternEntry] = ()):
        self._entries: Dict[str, PatternEntry] = {}
        for entry in entries:
            self.register(entry)

    def register(self, entry: PatternEntry) -> None:
        if entry.address in self._entries:
            raise ConfigError(f"duplicate pattern address: {entry.address}")
        self._entries[entry.address] = entry

    def get(self, address: str) -> Optional[PatternEntry]:
        return self._entries.get(address)

    def __contains__(self, address: str) -> bool:
        return address in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PatternEntry]:
        return iter(self._entries.values())

    @property
    def addresses(self) -> List[str]:
        return list(self._entries)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "PatternTable":
        expanded = expand_templates(cfg)
        try:
            table = cls(PatternEntry.from_dict(d) for d in expanded)
        except KeyError as e:
            raise ConfigError(f"pattern is missing {e}") from e
        logger.debug("Built pattern table with %d entries", len(table))
        return table
