"""Capacity check for publish batches.

try_add() is a pure function over an immutable PackState, so the packing
loop can be exercised without a real transport. Stream batches wrap it.
"""

from dataclasses import dataclass

# Framing cost charged per event on top of its body
EVENT_OVERHEAD_BYTES = 32


def event_size(body: bytes) -> int:
    """Bytes an event occupies in a batch."""
    return len(body) + EVENT_OVERHEAD_BYTES


@dataclass(frozen=True)
class PackState:
    """Events accepted so far and the byte budget they consume."""

    max_bytes: int
    events: tuple[bytes, ...] = ()
    size_bytes: int = 0

    @property
    def count(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class Accepted:
    state: PackState


@dataclass(frozen=True)
class Rejected:
    reason: str


PackResult = Accepted | Rejected


def try_add(state: PackState, event: bytes) -> PackResult:
    """Return the state with event appended, or Rejected if it would not fit."""
    size = state.size_bytes + event_size(event)
    if size > state.max_bytes:
        return Rejected(
            f"event of {event_size(event)} bytes exceeds remaining "
            f"{state.max_bytes - state.size_bytes} of {state.max_bytes} bytes"
        )
    return Accepted(PackState(max_bytes=state.max_bytes, events=state.events + (event,), size_bytes=size))
