# src/stakepool/ledger/rate_model.py
from __future__ import annotations

"""Pool-wide reward rate curve.

The rate is a pure function of the pool's total locked value:

  rate(0) == initial_rate
  a <= b  =>  rate(a) >= rate(b)
  rate(x) >= minimum_rate, with equality for every x >= floor_threshold()

Two curve shapes are supported, both evaluated in integer arithmetic with
truncation toward zero:

  linear:      initial - (total_locked // step) * bps_per_step
  hyperbolic:  initial * half_point // (half_point + total_locked)

A hyperbolic curve only approaches zero asymptotically, but the clamp at
minimum_rate makes the floor reachable at a finite total.
"""

from dataclasses import dataclass

from stakepool.ledger.constants import (
    DEFAULT_DECAY_BPS_PER_STEP,
    DEFAULT_DECAY_STEP,
    DEFAULT_INITIAL_RATE,
    DEFAULT_MINIMUM_RATE,
    RATE_DENOMINATOR,
)

_ALLOWED_KINDS = {"linear", "hyperbolic"}


@dataclass(frozen=True, slots=True)
class RateDecay:
    kind: str = "linear"
    # linear: one decrement of bps_per_step per full `step` of locked value
    step: int = DEFAULT_DECAY_STEP
    bps_per_step: int = DEFAULT_DECAY_BPS_PER_STEP
    # hyperbolic: locked value at which the raw rate halves
    half_point: int = DEFAULT_DECAY_STEP * 1_000


@dataclass(frozen=True, slots=True)
class RateModel:
    initial_rate: int = DEFAULT_INITIAL_RATE
    minimum_rate: int = DEFAULT_MINIMUM_RATE
    decay: RateDecay = RateDecay()

    def __post_init__(self) -> None:
        if int(self.minimum_rate) < 0:
            raise ValueError(f"minimum_rate must be >= 0; got: {self.minimum_rate}")
        if int(self.initial_rate) < int(self.minimum_rate):
            raise ValueError(
                f"initial_rate must be >= minimum_rate; got: {self.initial_rate} < {self.minimum_rate}"
            )
        if int(self.initial_rate) > RATE_DENOMINATOR:
            raise ValueError(f"initial_rate must be <= {RATE_DENOMINATOR} bps; got: {self.initial_rate}")
        kind = str(self.decay.kind or "").strip().lower()
        if kind not in _ALLOWED_KINDS:
            raise ValueError(f"decay.kind must be one of {_ALLOWED_KINDS}; got: {self.decay.kind!r}")
        if kind == "linear":
            if int(self.decay.step) <= 0:
                raise ValueError(f"decay.step must be > 0; got: {self.decay.step}")
            if int(self.decay.bps_per_step) <= 0:
                raise ValueError(f"decay.bps_per_step must be > 0; got: {self.decay.bps_per_step}")
        elif int(self.decay.half_point) <= 0:
            raise ValueError(f"decay.half_point must be > 0; got: {self.decay.half_point}")

    @property
    def kind(self) -> str:
        return str(self.decay.kind).strip().lower()

    def _raw(self, total_locked: int) -> int:
        x = int(total_locked)
        initial = int(self.initial_rate)
        if self.kind == "linear":
            steps = x // int(self.decay.step)
            return initial - steps * int(self.decay.bps_per_step)
        h = int(self.decay.half_point)
        return (initial * h) // (h + x)

    def rate(self, total_locked: int) -> int:
        """Return the pool-wide rate (bps/year) for a given total locked value."""
        x = int(total_locked)
        if x <= 0:
            return int(self.initial_rate)
        return max(self._raw(x), int(self.minimum_rate))

    def floor_threshold(self) -> int:
        """Smallest total locked value at which rate() equals minimum_rate."""
        initial = int(self.initial_rate)
        floor = int(self.minimum_rate)
        if initial <= floor:
            return 0
        if self.kind == "linear":
            bps = int(self.decay.bps_per_step)
            steps = -(-(initial - floor) // bps)
            return steps * int(self.decay.step)
        h = int(self.decay.half_point)
        # initial*h // (h + x) <= floor  <=>  h + x > initial*h // (floor + 1)
        return max(0, (initial * h) // (floor + 1) + 1 - h)

    def at_floor(self, total_locked: int) -> bool:
        return self.rate(total_locked) == int(self.minimum_rate)


__all__ = ["RateDecay", "RateModel"]
