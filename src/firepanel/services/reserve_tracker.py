"""
Resource Reserve Tracker

Tracks water/foam reserves in liters against a fixed capacity; percent
remaining is derived for display.
Only the suppression state machine mutates it.
"""

from typing import Optional, Union

from ..domain.enums import ReserveError, ResourceKind
from ..domain.models import (
    DrainOutcome,
    InvariantViolation,
    ReserveLevel,
    ReserveSnapshot,
)


class ReserveTracker:
    """Consumable reserves keyed by resource kind."""

    def __init__(self, capacities: dict[ResourceKind, float]):
        self._levels: dict[ResourceKind, ReserveLevel] = {}
        for kind, capacity in capacities.items():
            if capacity <= 0:
                raise ValueError(f"Capacity for {kind.value} must be positive")
            self._levels[kind] = ReserveLevel(kind=kind, capacity_liters=capacity)

    def _get(self, kind: ResourceKind) -> ReserveLevel:
        level = self._levels.get(kind)
        if level is None:
            raise KeyError(f"No reserve configured for {kind.value}")
        return level

    def level_of(self, kind: ResourceKind) -> float:
        """Percent remaining for kind."""
        return self._get(kind).percent_remaining

    def capacity_of(self, kind: ResourceKind) -> float:
        return self._get(kind).capacity_liters

    def can_drain(self, kind: ResourceKind) -> bool:
        """Draining is refused only when the reserve is already empty."""
        return not self._get(kind).is_exhausted

    def drain(
        self,
        kind: ResourceKind,
        liters: float,
    ) -> Union[DrainOutcome, ReserveError]:
        """Drain liters from a reserve.

        Returns ReserveError.EXHAUSTED if the reserve is already at 0.
        A drain larger than what remains clamps to exactly 0 and succeeds.
        """
        if liters < 0:
            raise ValueError(f"Cannot drain a negative volume ({liters}L)")

        level = self._get(kind)
        if level.is_exhausted:
            return ReserveError.EXHAUSTED

        before = level.percent_remaining
        self._set(level, max(0.0, level.liters_remaining - liters))

        return DrainOutcome(
            kind=kind,
            liters=liters,
            percent_before=before,
            percent_remaining=level.percent_remaining,
        )

    def refill(self, kind: ResourceKind) -> float:
        """Restore a reserve to full. Returns the previous percent."""
        level = self._get(kind)
        before = level.percent_remaining
        self._set(level, level.capacity_liters)
        return before

    def levels(self) -> list[ReserveSnapshot]:
        return [
            ReserveSnapshot(
                kind=level.kind,
                capacity_liters=level.capacity_liters,
                percent_remaining=level.percent_remaining,
                liters_remaining=level.liters_remaining,
            )
            for level in self._levels.values()
        ]

    def snapshot(self, kind: Optional[ResourceKind] = None) -> dict[str, float]:
        """Percent remaining by kind value."""
        return {
            level.kind.value: level.percent_remaining
            for level in self._levels.values()
            if kind is None or level.kind == kind
        }

    @staticmethod
    def _set(level: ReserveLevel, liters: float) -> None:
        if not 0.0 <= liters <= level.capacity_liters:
            raise InvariantViolation(
                f"{level.kind.value} reserve would hold {liters}L "
                f"(outside [0, {level.capacity_liters:g}])"
            )
        level.liters_remaining = liters
