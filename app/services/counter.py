"""In-memory counter behind the /total endpoint."""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Optional, Union

logger = logging.getLogger("coin_dashboard.counter")

Number = Union[int, float]


class InvalidValueError(ValueError):
    def __init__(self, value: Any) -> None:
        super().__init__(f"value must be a number, got {value!r}")
        self.value = value


def _normalize(number: Number) -> Number:
    if isinstance(number, int):
        return number
    return int(number) if number.is_integer() else number


def parse_value(value: Any) -> Optional[Number]:
    """
    Parse a mutation value the way `Number(value)` would.

    Returns None when the value is not numeric. Empty strings and null
    count as 0, booleans as 1/0.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        # ints past float range are not numbers to JavaScript either
        try:
            float(value)
        except OverflowError:
            return None
        return value
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return _normalize(number)


def coerce_value(value: Any, strict: bool = False) -> Number:
    """Non-numeric values become 0, or raise InvalidValueError when strict."""
    number = parse_value(value)
    if number is None:
        if strict:
            raise InvalidValueError(value)
        return 0
    return number


class CounterStore:
    """Process-lifetime total; all mutation goes through one lock."""

    def __init__(self, initial: Number = 0) -> None:
        self._total: Number = initial
        self._lock = threading.Lock()

    @property
    def total(self) -> Number:
        with self._lock:
            return self._total

    def add(self, value: Number) -> Number:
        """Add `value` to the total. Raises InvalidValueError if the sum is not finite."""
        with self._lock:
            try:
                total = _normalize(self._total + value)
            except OverflowError:
                raise InvalidValueError(value) from None
            if isinstance(total, float) and not math.isfinite(total):
                raise InvalidValueError(value)
            self._total = total
        logger.debug("counter add | value=%s | total=%s", value, total)
        return total

    def reset(self) -> Number:
        with self._lock:
            self._total = 0
        logger.info("counter reset")
        return 0
