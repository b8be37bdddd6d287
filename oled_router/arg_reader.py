# oled_router/arg_reader.py
import math
from typing import Any, Optional, Sequence, Tuple


def _is_number(value: Any) -> bool:
    # OSC True/False arrive as bool, which is an int subclass
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ArgumentReader:
    """
    Ordered, type-checked extraction over one message's arguments.

    Pops can be chained; the first failing pop puts the reader in a sticky
    failed state and every later pop fails too, so a handler checks once:

        reader = ArgumentReader(args)
        a, _ = reader.pop_number()
        b, _ = reader.pop_number()
        if reader.is_ok_no_more_args():
            ...

    The cursor only moves on a successful pop.
    """

    def __init__(self, args: Sequence[Any]):
        self._args = tuple(args)
        self._pos = 0
        self._failed = False

    @property
    def position(self) -> int:
        return self._pos

    @property
    def failed(self) -> bool:
        return self._failed

    def at_end(self) -> bool:
        return self._pos >= len(self._args)

    def remaining(self) -> Tuple[Any, ...]:
        return self._args[self._pos:]

    def _fail(self) -> Tuple[None, bool]:
        self._failed = True
        return None, False

    def pop_number(self, kind: str = "int") -> Tuple[Optional[float], bool]:
        """
        Pop the next argument as a number.

        Integer and floating wire values are both accepted; the value is
        coerced to `kind` ("int" truncates toward zero, "float" keeps the
        fraction).
        """
        if self._failed or self.at_end():
            return self._fail()
        raw = self._args[self._pos]
        if not _is_number(raw):
            return self._fail()
        if kind == "float":
            value = float(raw)
        else:
            if isinstance(raw, float) and not math.isfinite(raw):
                return self._fail()
            value = int(raw)
        self._pos += 1
        return value, True

    def pop_float(self) -> Tuple[Optional[float], bool]:
        return self.pop_number("float")

    def pop_string(self) -> Tuple[Optional[str], bool]:
        if self._failed or self.at_end():
            return self._fail()
        raw = self._args[self._pos]
        if not isinstance(raw, str):
            return self._fail()
        self._pos += 1
        return raw, True

    def pop(self, kind: str) -> Tuple[Any, bool]:
        """Pop one argument of a declared pattern kind: int, float or string."""
        if kind == "string":
            return self.pop_string()
        if kind in ("int", "float"):
            return self.pop_number(kind)
        raise ValueError(f"unknown argument kind: {kind!r}")

    def is_ok_no_more_args(self) -> bool:
        return not self._failed and self.at_end()
