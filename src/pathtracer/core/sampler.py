"""Explicit per-worker random number generation.

Every random draw in the renderer goes through a sampler handle: an index into
a table of xorshift32 states stored in a Taichi field. Render workers use their
worker index as the handle, so no two workers ever share generator state and a
render is reproducible for a given seed and worker count.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.sampler import seed_samplers, random_float
    >>> seed_samplers(1234)
    >>> # Within a Taichi kernel:
    >>> # u = random_float(0)  # uniform in [0, 1) from sampler 0
"""

import numpy as np
import taichi as ti

# Maximum number of independent samplers (one per render worker)
MAX_SAMPLERS = 1024

# 2^-24: maps the top 24 bits of a state to [0, 1)
_INV_2_24 = 1.0 / 16777216.0

_sampler_states = ti.field(dtype=ti.u32, shape=MAX_SAMPLERS)


def seed_samplers(seed: int | None = None) -> None:
    """Seed every sampler from a single integer seed.

    States are drawn with NumPy's default generator and are never zero
    (zero is a fixed point of xorshift).

    Args:
        seed: The seed. None draws fresh OS entropy.
    """
    rng = np.random.default_rng(seed)
    states = rng.integers(1, 2**32, size=MAX_SAMPLERS, dtype=np.uint64)
    _sampler_states.from_numpy(states.astype(np.uint32))


def get_sampler_states() -> np.ndarray:
    """Get a copy of all sampler states (for debugging and tests)."""
    return _sampler_states.to_numpy()


@ti.func
def next_u32(sampler: ti.i32) -> ti.u32:
    """Advance a sampler and return its new 32-bit state.

    Args:
        sampler: The sampler handle. Must not be shared between threads.

    Returns:
        The next xorshift32 value.
    """
    x = _sampler_states[sampler]
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    _sampler_states[sampler] = x
    return x


@ti.func
def random_float(sampler: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1).

    Args:
        sampler: The sampler handle.

    Returns:
        A uniform random value in [0, 1).
    """
    return ti.cast(next_u32(sampler) >> ti.u32(8), ti.f32) * _INV_2_24


@ti.func
def random_range(sampler: ti.i32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Draw a uniform float in [lo, hi)."""
    return lo + (hi - lo) * random_float(sampler)
