"""Process-unique identifiers for passengers and other simulation objects."""

import itertools
import threading

_ID_DIGITS = 8

_sequence = itertools.count()
_sequence_lock = threading.Lock()


def get_id(prefix: str = "") -> str:
    """Next identifier from a process-wide counter.

    The counter is rendered as lowercase hex, zero-padded to eight digits
    (longer once it outgrows them), e.g. ``get_id("passenger")`` gives
    ``"passenger_0000002a"``. Identifiers are never reused, even across
    simulation resets.
    """
    with _sequence_lock:
        value = next(_sequence)
    hex_id = format(value, f"0{_ID_DIGITS}x")
    return f"{prefix}_{hex_id}" if prefix else hex_id
