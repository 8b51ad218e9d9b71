"""Scalar intervals for hit-parameter bounds and colour clamping.

An Interval is a plain [min, max] pair. The renderer uses it two ways:

    - as an open interval restricting valid hit parameters, so a ray leaving
      a surface does not immediately re-hit it (interval_surrounds)
    - as a closed interval clamping a value into range (interval_clamp)

Example:
    >>> # Within a Taichi kernel:
    >>> # ray_t = Interval(min=0.001, max=tm.inf)
    >>> # if interval_surrounds(ray_t, t): ...
"""

import taichi as ti


@ti.dataclass
class Interval:
    """A scalar range [min, max].

    Attributes:
        min: Lower bound.
        max: Upper bound. Expected to be >= min except for the empty interval.
    """

    min: ti.f32
    max: ti.f32


@ti.func
def make_interval(lo: ti.f32, hi: ti.f32) -> Interval:
    """Create an interval from its bounds."""
    return Interval(min=lo, max=hi)


@ti.func
def interval_size(interval: Interval) -> ti.f32:
    """Return max - min."""
    return interval.max - interval.min


@ti.func
def interval_contains(interval: Interval, x: ti.f32) -> ti.i32:
    """Closed-interval membership: min <= x <= max."""
    return interval.min <= x and x <= interval.max


@ti.func
def interval_surrounds(interval: Interval, x: ti.f32) -> ti.i32:
    """Open-interval membership: min < x < max."""
    return interval.min < x and x < interval.max


@ti.func
def interval_clamp(interval: Interval, x: ti.f32) -> ti.f32:
    """Saturate x to [min, max]."""
    result = x
    if x < interval.min:
        result = interval.min
    elif x > interval.max:
        result = interval.max
    return result
