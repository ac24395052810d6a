from __future__ import annotations

import numpy as np
import scipy.linalg

from .errors import DegeneratePosteriorError

_MIN_RCOND = 1e-14


def symmetrize(a: np.ndarray) -> np.ndarray:
    x = np.asarray(a, dtype=float)
    if x.ndim != 2 or x.shape[0] != x.shape[1]:
        raise ValueError("a must be a square 2D array")
    return 0.5 * (x + x.T)


def posterior_precision(
    *,
    xtx: np.ndarray,
    noise_precision: float,
    prior_precision: np.ndarray,
    jitter: float = 0.0,
) -> np.ndarray:
    g = np.asarray(xtx, dtype=float)
    if g.ndim != 2 or g.shape[0] != g.shape[1]:
        raise ValueError("xtx must be a square 2D array")
    p = g.shape[0]

    d = np.asarray(prior_precision, dtype=float).reshape(-1)
    if d.shape != (p,):
        raise ValueError("prior_precision must have shape (p,)")
    if jitter < 0 or not np.isfinite(jitter):
        raise ValueError("jitter must be finite and >= 0")

    s = float(noise_precision)
    if not np.isfinite(s) or s <= 0:
        raise DegeneratePosteriorError("noise precision must be finite and > 0")
    if np.any(~np.isfinite(d)) or np.any(d < 0):
        raise DegeneratePosteriorError("prior precision must be finite and >= 0")

    prec = s * g + np.diag(d)
    if jitter > 0:
        prec = prec + jitter * np.eye(p, dtype=float)
    return symmetrize(prec)


def cholesky_checked(a: np.ndarray) -> np.ndarray:
    """Lower Cholesky factor of a symmetric positive definite matrix.

    Raises
    ------
    DegeneratePosteriorError
        If ``a`` has non-finite entries, is not positive definite, or its
        reciprocal condition estimate (from the factor diagonal) is below ``1e-14``.
    """
    x = np.asarray(a, dtype=float)
    if np.any(~np.isfinite(x)):
        raise DegeneratePosteriorError("precision matrix has non-finite entries")

    try:
        l = np.linalg.cholesky(x)
    except np.linalg.LinAlgError as e:
        raise DegeneratePosteriorError("precision matrix is not positive definite") from e

    diag = np.diag(l)
    rcond = float((np.min(diag) / np.max(diag)) ** 2)
    if not np.isfinite(rcond) or rcond < _MIN_RCOND:
        raise DegeneratePosteriorError(f"precision matrix is near-singular (rcond~{rcond:.3g})")
    return l


def conditional_moments(
    *,
    xtx: np.ndarray,
    xty: np.ndarray,
    noise_precision: float,
    prior_precision: np.ndarray,
    jitter: float = 0.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Mean and covariance of the Gaussian full conditional of the coefficients.

    ``cov = (X'X * noise_precision + diag(prior_precision))^{-1}`` and
    ``mean = cov @ X'y * noise_precision``.
    """
    prec = posterior_precision(
        xtx=xtx, noise_precision=noise_precision, prior_precision=prior_precision, jitter=jitter
    )
    p = prec.shape[0]
    b = np.asarray(xty, dtype=float).reshape(-1)
    if b.shape != (p,):
        raise ValueError("xty must have shape (p,)")

    l = cholesky_checked(prec)
    cov = scipy.linalg.cho_solve((l, True), np.eye(p, dtype=float), check_finite=False)
    mean = scipy.linalg.cho_solve((l, True), float(noise_precision) * b, check_finite=False)
    return mean, symmetrize(cov)


def sample_conditional_gaussian(
    *,
    xtx: np.ndarray,
    xty: np.ndarray,
    noise_precision: float,
    prior_precision: np.ndarray,
    rng: np.random.Generator,
    jitter: float = 0.0,
) -> np.ndarray:
    """Draw coefficients from their Gaussian full conditional.

    The precision matrix is factorized fresh on every call. With ``L L' = Q`` the
    draw is ``mean + L'^{-1} z`` for standard normal ``z``, which has covariance
    ``Q^{-1}``.

    Parameters
    ----------
    xtx:
        Gram matrix ``X'X`` with shape ``(p, p)``.
    xty:
        Cross product ``X'y`` with shape ``(p,)``.
    noise_precision:
        Residual precision (reciprocal noise variance).
    prior_precision:
        Diagonal of the prior precision, shape ``(p,)``.
    rng:
        NumPy RNG.
    jitter:
        Optional ridge added to the diagonal. The kernel never adds one on its own.

    Returns
    -------
    np.ndarray
        Draw of shape ``(p,)``.
    """
    prec = posterior_precision(
        xtx=xtx, noise_precision=noise_precision, prior_precision=prior_precision, jitter=jitter
    )
    p = prec.shape[0]
    b = np.asarray(xty, dtype=float).reshape(-1)
    if b.shape != (p,):
        raise ValueError("xty must have shape (p,)")

    l = cholesky_checked(prec)
    mean = scipy.linalg.cho_solve((l, True), float(noise_precision) * b, check_finite=False)
    z = rng.standard_normal(p)
    draw = mean + scipy.linalg.solve_triangular(l.T, z, lower=False, check_finite=False)
    if np.any(~np.isfinite(draw)):
        raise DegeneratePosteriorError("coefficient draw is not finite")
    return draw
