from __future__ import annotations

from typing import Any, Callable

import numpy as np

from .data.dataset import RegressionData
from .errors import NumericDegeneracyError
from .linalg import sample_conditional_gaussian
from .results import FitResult
from .rng import gamma_rate, inverse_gamma
from .spec import HorseshoeSpec, PriorSpec, SamplerConfig


def _check_positive(x: float | np.ndarray, name: str) -> None:
    v = np.asarray(x, dtype=float)
    if np.any(~np.isfinite(v)) or np.any(v <= 0):
        raise NumericDegeneracyError(f"{name} draw must be finite and > 0")


def _horseshoe_update_tau_sq(
    *,
    resid: np.ndarray,
    shape0: float,
    rate0: float,
    rng: np.random.Generator,
) -> float:
    # InvGamma(a + n/2, b + SSR/2)
    n = int(resid.shape[0])
    ssr = float(resid @ resid)
    tau_sq = float(inverse_gamma(shape=shape0 + 0.5 * n, rate=rate0 + 0.5 * ssr, rng=rng))
    _check_positive(tau_sq, "tau_sq")
    return tau_sq


def _horseshoe_update_scales(
    *,
    beta: np.ndarray,
    gamma: np.ndarray,
    spec: HorseshoeSpec,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """Draw the local precisions ``lambda**2`` and then the global scales ``gamma``.

    ``gamma`` is drawn after, and conditional on, the fresh ``lambda``.
    """
    b = np.asarray(beta, dtype=float).reshape(-1)
    g = np.asarray(gamma, dtype=float).reshape(-1)
    if b.shape != g.shape:
        raise ValueError("beta and gamma must have the same shape")

    nu = float(spec.nu)
    lam_sq = np.asarray(
        gamma_rate(shape=0.5 * (nu + 1.0), rate=0.5 * nu / g + 0.5 * b * b, rng=rng),
        dtype=float,
    )
    _check_positive(lam_sq, "lambda")

    gamma_new = np.asarray(
        inverse_gamma(shape=spec.gamma_shape + 0.5 * nu, rate=spec.gamma_rate + 0.5 * nu * lam_sq, rng=rng),
        dtype=float,
    )
    _check_positive(gamma_new, "gamma")
    return np.sqrt(lam_sq), gamma_new


def _fit_horseshoe(
    *,
    data: RegressionData,
    prior: PriorSpec,
    sampler: SamplerConfig,
    rng: np.random.Generator,
    progress: Callable[[str, dict[str, Any]], None] | None = None,
) -> FitResult:
    spec = prior.horseshoe
    if spec is None:
        raise ValueError("prior.family='horseshoe' requires prior.horseshoe")

    x, y = data.x, data.y
    p = data.p
    xtx = x.T @ x
    xty = x.T @ y

    d = sampler.n_keep
    beta_keep = np.empty((d, p), dtype=float)
    tau_sq_keep = np.empty(d, dtype=float)
    lambda_keep = np.empty((d, p), dtype=float)
    gamma_keep = np.empty((d, p), dtype=float)

    lam = np.full(p, float(spec.lambda_init), dtype=float)
    gamma = np.full(p, float(spec.gamma_init), dtype=float)
    tau_sq = 1.0

    kept = 0
    completed = 0
    error: NumericDegeneracyError | None = None
    for it in range(sampler.n_iter):
        try:
            beta = sample_conditional_gaussian(
                xtx=xtx,
                xty=xty,
                noise_precision=1.0 / tau_sq,
                prior_precision=lam * lam,
                rng=rng,
            )
            tau_sq = _horseshoe_update_tau_sq(resid=y - x @ beta, shape0=spec.tau_shape, rate0=spec.tau_rate, rng=rng)
            lam, gamma = _horseshoe_update_scales(beta=beta, gamma=gamma, spec=spec, rng=rng)
        except NumericDegeneracyError as e:
            error = e
            break

        completed = it + 1
        if it >= sampler.burn_in:
            beta_keep[kept] = beta
            tau_sq_keep[kept] = tau_sq
            lambda_keep[kept] = lam
            gamma_keep[kept] = gamma
            kept += 1

        if progress is not None and completed % sampler.progress_every == 0:
            progress(
                "sampler_progress",
                {"family": "horseshoe", "iteration": completed, "n_iter": sampler.n_iter, "beta": beta.copy()},
            )

    return FitResult(
        data=data,
        prior=prior,
        sampler=sampler,
        beta_draws=beta_keep[:kept],
        tau_sq_draws=tau_sq_keep[:kept],
        lambda_draws=lambda_keep[:kept],
        gamma_draws=gamma_keep[:kept],
        completed_iterations=completed,
        error=error,
    )
