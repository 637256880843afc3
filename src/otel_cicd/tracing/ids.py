"""Trace and span identifier generation."""

from __future__ import annotations
import math
from collections.abc import Callable
from opentelemetry.sdk.trace.id_generator import IdGenerator, RandomIdGenerator


_HEX_ALPHABET = "0123456789abcdef"
_UINT32_MASK = 0xFFFFFFFF
_MULTIPLIER = 1597334677
_TRACE_ID_LENGTH = 32
_SPAN_ID_LENGTH = 16


def _reverse_bytes(value: int) -> int:
    return (
        (value >> 24)
        | ((value >> 8) & 0x0000FF00)
        | ((value << 8) & 0x00FF0000)
        | ((value << 24) & 0xFF000000)
    )


def seeded_random_int(seed: int) -> Callable[[int], int]:
    """Return an xorshift32amx draw function seeded with ``seed``.

    Each call returns an integer in ``[0, upper)``. The state ``a`` is advanced
    with the xorshift32 triple ``(13, 17, 5)`` and mixed with a byte-reversed
    multiplicative hash of the state *before* the shift, all modulo 2**32.
    """
    state = seed & _UINT32_MASK

    def draw(upper: int) -> int:
        nonlocal state
        mixed = _reverse_bytes((state * _MULTIPLIER) & _UINT32_MASK)
        state ^= (state << 13) & _UINT32_MASK
        state ^= state >> 17
        state ^= (state << 5) & _UINT32_MASK
        fraction = ((state + mixed) & _UINT32_MASK) / 4294967296
        return math.floor(fraction * upper)

    return draw


class DeterministicIdGenerator(IdGenerator):
    """Reproducible id generator for golden-output tests and replays.

    The recorded sequences draw a root span's id before its trace id, while
    the SDK asks for the trace id first. :meth:`generate_trace_id` therefore
    draws the span id up front and holds it for the next
    :meth:`generate_span_id` call.
    """

    def __init__(self, seed: int) -> None:
        """Initialise the generator with a 32-bit seed."""
        self._draw = seeded_random_int(seed)
        self._pending_span_id: int | None = None

    def next_trace_id(self) -> str:
        """Return the next trace id as 32 lowercase hex digits."""
        return self._generate_id(_TRACE_ID_LENGTH)

    def next_span_id(self) -> str:
        """Return the next span id as 16 lowercase hex digits."""
        return self._generate_id(_SPAN_ID_LENGTH)

    def generate_trace_id(self) -> int:
        self._pending_span_id = int(self.next_span_id(), 16)
        return int(self.next_trace_id(), 16)

    def generate_span_id(self) -> int:
        if self._pending_span_id is not None:
            span_id, self._pending_span_id = self._pending_span_id, None
            return span_id
        return int(self.next_span_id(), 16)

    def _generate_id(self, length: int) -> str:
        return "".join(
            _HEX_ALPHABET[self._draw(len(_HEX_ALPHABET))] for _ in range(length)
        )


def build_id_generator(seed: int | None = None) -> IdGenerator:
    """Return a seeded generator when ``seed`` is set, else the SDK default."""
    if not seed:
        return RandomIdGenerator()
    return DeterministicIdGenerator(seed)


__all__ = ["DeterministicIdGenerator", "build_id_generator", "seeded_random_int"]
