"""
Two-sample state and the delta computations over it.

Kernel counters only ever grow within a boot, so a metric over an interval is
the difference between the newest snapshot and the one before it. Every
difference uses saturating subtraction: a counter that went backwards (reset
or 64-bit wraparound) yields zero for that interval.
"""

from collections.abc import Callable
from dataclasses import dataclass
from operator import attrgetter
from typing import Generic, TypeVar

from serverstatus.numeric import sanitized_ratio, saturating_mul, saturating_sub

S = TypeVar("S")
T = TypeVar("T")


@dataclass(slots=True)
class SourceState(Generic[S]):
    """
    The two most recent snapshots of one counter source.

    ``None`` means no data yet. ``new`` is always the latest sample and
    ``old`` the one taken immediately before it.
    """

    old: S | None = None
    new: S | None = None

    def shift(self) -> None:
        """Move ``new`` into ``old``, dropping the previous ``old``."""
        self.old = self.new
        self.new = None

    def advance(self, snapshot: S) -> None:
        """Shift and store ``snapshot`` as the latest sample."""
        self.shift()
        self.new = snapshot


def delta_ratio(
    state: SourceState[S],
    numerator: Callable[[S], int],
    denominator: Callable[[S], int],
) -> float | None:
    """
    Fraction of the ``denominator`` counter's growth accounted for by the
    ``numerator`` counter's growth between the last two samples.

    Returns None until two samples exist, or when the denominator did not grow.
    """
    if state.old is None or state.new is None:
        return None
    delta_numerator = saturating_sub(numerator(state.new), numerator(state.old))
    delta_denominator = saturating_sub(
        denominator(state.new), denominator(state.old)
    )
    return sanitized_ratio(delta_numerator, delta_denominator)


def delta_rate(
    state: SourceState[S],
    counter: Callable[[S], int],
    timestamp: Callable[[S], int] = attrgetter("unix_millis"),
) -> int | None:
    """
    Per-second growth of ``counter`` between the last two samples.

    ``timestamp`` gives each snapshot's capture time in milliseconds. Returns
    None until two samples exist, or when no time elapsed between them.
    """
    if state.old is None or state.new is None:
        return None
    delta = saturating_sub(counter(state.new), counter(state.old))
    millis = saturating_sub(timestamp(state.new), timestamp(state.old))
    if millis == 0:
        return None
    return saturating_mul(delta, 1000) // millis


def current_ratio(
    state: SourceState[S],
    numerator: Callable[[S], int],
    denominator: Callable[[S], int],
) -> float | None:
    """Point-in-time fraction computed from the latest sample only."""
    if state.new is None:
        return None
    return sanitized_ratio(numerator(state.new), denominator(state.new))


def current_value(state: SourceState[S], accessor: Callable[[S], T]) -> T | None:
    """Value read from the latest sample, or None without one."""
    if state.new is None:
        return None
    return accessor(state.new)
