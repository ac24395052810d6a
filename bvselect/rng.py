from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import NumericDegeneracyError


def gamma_rate(*, shape: float | np.ndarray, rate: float | np.ndarray, rng: np.random.Generator) -> np.ndarray:
    shp = np.asarray(shape, dtype=float)
    rte = np.asarray(rate, dtype=float)

    if np.any(~np.isfinite(shp)) or np.any(shp <= 0):
        raise ValueError("shape must be finite and > 0")
    if np.any(~np.isfinite(rte)) or np.any(rte <= 0):
        raise NumericDegeneracyError("rate must be finite and > 0")

    return rng.gamma(shape=shp, scale=1.0 / rte)


def inverse_gamma(*, shape: float | np.ndarray, rate: float | np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Draw from InvGamma(shape, rate) as the reciprocal of a Gamma(shape, rate) draw."""
    g = np.asarray(gamma_rate(shape=shape, rate=rate, rng=rng), dtype=float)
    if np.any(g <= 0):
        raise NumericDegeneracyError("gamma draw underflowed to 0; inverse is not finite")
    return 1.0 / g


def inverse_gaussian(*, mu: float | np.ndarray, lam: float | np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Draw from InvGaussian(mu, lam) (Michael-Schucany-Haas).

    Parameters are used as given; a non-finite or non-positive ``mu`` or ``lam``, or
    a draw that is not finite and positive, raises :class:`NumericDegeneracyError`.
    """
    m = np.asarray(mu, dtype=float)
    l = np.asarray(lam, dtype=float)

    if np.any(~np.isfinite(m)) or np.any(m <= 0):
        raise NumericDegeneracyError("mu must be finite and > 0")
    if np.any(~np.isfinite(l)) or np.any(l <= 0):
        raise NumericDegeneracyError("lam must be finite and > 0")

    v = rng.standard_normal(size=np.broadcast(m, l).shape) ** 2

    m_b = np.broadcast_to(m, v.shape)
    l_b = np.broadcast_to(l, v.shape)

    # smaller root of the MSH quadratic, written without cancellation for large mu
    mv = m_b * v
    y = m_b * (4.0 * m_b * l_b * v) / (np.sqrt(4.0 * m_b * l_b * v + mv * mv) + mv) ** 2

    u = rng.uniform(size=v.shape)
    with np.errstate(divide="ignore", over="ignore"):
        out = np.where(u <= (m_b / (m_b + y)), y, (m_b * m_b) / y)

    if np.any(~np.isfinite(out)) or np.any(out <= 0):
        raise NumericDegeneracyError("inverse Gaussian draw must be finite and > 0")
    return out


def spawn_generators(seed: int | None, names: Sequence[str]) -> dict[str, np.random.Generator]:
    """Create one independent generator per name from a single seed.

    Streams are derived with :meth:`numpy.random.SeedSequence.spawn`, so each sampler
    owns its own generator and results for one sampler do not depend on whether the
    others ran.
    """
    names_l = list(names)
    if len(set(names_l)) != len(names_l):
        raise ValueError("names must be unique")

    children = np.random.SeedSequence(seed).spawn(len(names_l))
    return {name: np.random.default_rng(child) for name, child in zip(names_l, children, strict=True)}
