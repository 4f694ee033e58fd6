"""Narrative stepper: maps Previous/Next clicks onto a record in the selection.

The default ``"reset"`` policy wraps only once in each direction:
- stepping back from the first record lands on the last one
- stepping forward past the last record jumps back to the first one
- anything still out of range after that single wrap resets to the first record

``"modulo"`` is the full wraparound alternative.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

WrapPolicy = Literal["reset", "modulo"]
WRAP_POLICIES = ("reset", "modulo")
DEFAULT_WRAP: WrapPolicy = "reset"


class InvalidSizeError(ValueError):
    """Raised when the selection size handed to the stepper is negative."""


def resolve_index(position: int, size: int, *, wrap: WrapPolicy = DEFAULT_WRAP) -> Optional[int]:
    """Resolve a signed net position into a 1-based index, or None for an empty selection."""
    if size < 0:
        raise InvalidSizeError(f"selection size must be >= 0, got {size}")
    if size == 0:
        return None
    if wrap == "modulo":
        return (position % size) + 1
    if wrap != "reset":
        raise ValueError(f"unknown wrap policy: {wrap!r}")

    raw = int(position)
    if raw < 0:
        raw = size + raw
    if raw < 0 or raw >= size:
        raw = 0
    return raw + 1


def narrative_index(
    forward_count: int,
    backward_count: int,
    size: int,
    *,
    wrap: WrapPolicy = DEFAULT_WRAP,
) -> Optional[int]:
    return resolve_index(int(forward_count) - int(backward_count), size, wrap=wrap)


@dataclass
class NarrativeStepper:
    """Per-session Previous/Next state.

    ``position`` is the signed net number of steps. The click counters are kept
    alongside it so the UI can show them.
    """

    position: int = 0
    forward_count: int = 0
    backward_count: int = 0

    def next(self) -> None:
        self.forward_count += 1
        self.position += 1

    def previous(self) -> None:
        self.backward_count += 1
        self.position -= 1

    def reset(self) -> None:
        self.position = 0
        self.forward_count = 0
        self.backward_count = 0

    def index(self, size: int, *, wrap: WrapPolicy = DEFAULT_WRAP) -> Optional[int]:
        return resolve_index(self.position, size, wrap=wrap)
