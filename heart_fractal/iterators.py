"""
Escape-time evaluator for the heart fractal.

The map works in polar form. For a state z = r * e^(i*phi):

    p(phi)    = A*phi^2 + B*phi + C
    T(r, phi) = r^D * e^(i*p(phi))
    z_next    = T(|z|, arg z) + c

D is negative, so the radial term shrinks as |z| grows and explodes near the
origin. The parabola in phi is what bends the boundary into a heart.

Orbits near the boundary are chaotic over thousands of steps, so the
recurrence runs on Python floats with the `math` functions (libm pow, hypot,
atan2, cos, sin). numpy's SIMD kernels for these differ from libm in the last
bit, and that difference is enough to flip escape times.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class HeartConfig:
    # angle parabola and radial exponent
    a: float = -1.00
    b: float = 0.16
    c: float = 1.97
    d: float = -2.31

    # canvas
    width: int = 1980
    height: int = 1080
    plane_width: float = 4.0
    plane_height: float = 4.0
    supersample: int = 2  # n x n sub-pixel grid

    # escape test
    max_iter: int = 2000
    escape_radius: float = 4.0

    # guardrail: |z| is clamped here before r**d
    min_radius: float = 1e-12

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Canvas must be at least 1x1, got {self.width}x{self.height}")
        if self.plane_width <= 0 or self.plane_height <= 0:
            raise ValueError("Plane extent must be positive")
        if self.supersample < 1:
            raise ValueError(f"supersample must be >= 1, got {self.supersample}")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.escape_radius <= 0:
            raise ValueError(f"escape_radius must be positive, got {self.escape_radius}")
        if self.min_radius <= 0:
            raise ValueError(f"min_radius must be positive, got {self.min_radius}")


DEFAULT_CONFIG = HeartConfig()


def angle_term(phi, cfg: HeartConfig = DEFAULT_CONFIG):
    """The downward parabola p(phi) = A*phi^2 + B*phi + C."""
    return cfg.a * phi * phi + cfg.b * phi + cfg.c


def heart_map(r: float, phi: float, cfg: HeartConfig = DEFAULT_CONFIG) -> complex:
    """
    T(r, phi) = r^D * exp(i * p(phi)).

    r is clamped to cfg.min_radius so r = 0 gives a huge finite magnitude
    instead of inf.
    """
    mag = math.pow(max(r, cfg.min_radius), cfg.d)
    p = angle_term(phi, cfg)
    return complex(mag * math.cos(p), mag * math.sin(p))


def step(z: complex, c: complex, cfg: HeartConfig = DEFAULT_CONFIG) -> complex:
    """One iteration z -> T(|z|, arg z) + c."""
    return heart_map(abs(z), math.atan2(z.imag, z.real), cfg) + c


def escape_time(c: complex, cfg: HeartConfig = DEFAULT_CONFIG) -> int:
    """
    Escape time of a single sample point, in [0, max_iter].

    Start at z = c and apply the step; if |z| > escape_radius after step n
    (0-based) the result is n. A non-finite iterate counts as escaped. Points
    that survive all max_iter steps get max_iter.
    """
    c = complex(c)
    a, b, k, d = cfg.a, cfg.b, cfg.c, cfg.d
    min_radius = cfg.min_radius
    radius = cfg.escape_radius
    pow_, cos, sin, atan2, isfinite = math.pow, math.cos, math.sin, math.atan2, math.isfinite

    # same arithmetic as step(), inlined for the hot loop
    z = c
    for n in range(cfg.max_iter):
        phi = atan2(z.imag, z.real)
        mag = pow_(max(abs(z), min_radius), d)
        p = a * phi * phi + b * phi + k
        z = complex(mag * cos(p), mag * sin(p)) + c

        az = abs(z)
        if az > radius or not isfinite(az):
            return n

    return cfg.max_iter


def escape_time_array(cs, cfg: HeartConfig = DEFAULT_CONFIG) -> np.ndarray:
    """escape_time applied to every element of `cs`; keeps the input shape."""
    cs = np.asarray(cs, dtype=np.complex128)
    iters = np.fromiter((escape_time(c, cfg) for c in cs.ravel()), dtype=np.int32, count=cs.size)
    return iters.reshape(cs.shape)


def iterate_orbit(c: complex, cfg: HeartConfig = DEFAULT_CONFIG, max_iter: int | None = None) -> np.ndarray:
    """
    Orbit of c under the heart map, stopping after the escaping iterate.

    traj[0] is the first iterate (z0 = c itself is not stored), so for an
    escaping point len(traj) == escape_time(c) + 1.
    """
    if max_iter is None:
        max_iter = cfg.max_iter

    c = complex(c)
    z = c
    traj = []

    for _ in range(max_iter):
        z = step(z, c, cfg)
        traj.append(z)

        az = abs(z)
        if az > cfg.escape_radius or not math.isfinite(az):
            break

    return np.array(traj, dtype=np.complex128)
