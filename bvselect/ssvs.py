from __future__ import annotations

from typing import Any, Callable

import numpy as np

from .data.dataset import RegressionData
from .errors import NumericDegeneracyError
from .linalg import sample_conditional_gaussian
from .results import FitResult
from .rng import gamma_rate
from .spec import PriorSpec, SamplerConfig, SSVSSpec


def inclusion_log_odds(
    *,
    partial_resid: np.ndarray,
    xj: np.ndarray,
    alpha_j: float,
    tau_e: float,
    log_prior_odds: float,
    max_log_odds: float = 10.0,
) -> float:
    """Clipped log-odds that predictor ``j`` is included.

    Compares the Gaussian log-likelihood of the partial residual (all other
    predictors accounted for) with predictor ``j`` excluded against the same
    residual with ``xj * alpha_j`` removed.

    Parameters
    ----------
    partial_resid:
        Residual with predictor ``j``'s current contribution added back, shape ``(n,)``.
    xj:
        Column ``j`` of the design matrix.
    alpha_j:
        Current slab value for predictor ``j``.
    tau_e:
        Noise precision.
    log_prior_odds:
        ``log(pi / (1 - pi))`` for the prior inclusion probability ``pi``.
    max_log_odds:
        Clip bound on the magnitude of the result.
    """
    r = np.asarray(partial_resid, dtype=float)
    r_in = r - np.asarray(xj, dtype=float) * float(alpha_j)
    logit = log_prior_odds + 0.5 * tau_e * float(r @ r) - 0.5 * tau_e * float(r_in @ r_in)
    return float(np.clip(logit, -max_log_odds, max_log_odds))


def sample_delta_sweep(
    *,
    x: np.ndarray,
    resid: np.ndarray,
    alpha: np.ndarray,
    beta: np.ndarray,
    delta: np.ndarray,
    tau_e: float,
    inclusion_prob: float,
    rng: np.random.Generator,
    max_log_odds: float = 10.0,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """One sequential single-site sweep over the inclusion indicators.

    Predictors are visited in column order. Each decision sees the residual net of
    every other predictor, including those already updated earlier in this sweep.

    Parameters
    ----------
    x:
        Design matrix of shape ``(n, p)``.
    resid:
        Current residual ``y - intercept - x @ beta`` of shape ``(n,)``.
    alpha:
        Slab values of shape ``(p,)``.
    beta, delta:
        Current coefficients and indicators of shape ``(p,)``.
    tau_e:
        Noise precision.
    inclusion_prob:
        Prior inclusion probability.
    rng:
        NumPy RNG.
    max_log_odds:
        Clip bound for the inclusion log-odds.

    Returns
    -------
    (delta, beta, resid)
        Updated indicators (int8, exactly 0/1), coefficients and residual.
    """
    xa = np.asarray(x, dtype=float)
    n, p = xa.shape
    a = np.asarray(alpha, dtype=float).reshape(-1)
    if a.shape != (p,):
        raise ValueError("alpha must have shape (p,)")
    r = np.array(resid, dtype=float).reshape(-1)
    if r.shape != (n,):
        raise ValueError("resid must have shape (n,)")
    if not (0.0 < inclusion_prob < 1.0):
        raise ValueError("inclusion_prob must be in (0, 1)")

    b = np.array(beta, dtype=float).reshape(-1)
    dl = np.array(delta, dtype=np.int8).reshape(-1)
    if b.shape != (p,) or dl.shape != (p,):
        raise ValueError("beta and delta must have shape (p,)")

    log_prior_odds = float(np.log(inclusion_prob) - np.log(1.0 - inclusion_prob))

    for j in range(p):
        xj = xa[:, j]
        r_j = r + xj * b[j]
        logit = inclusion_log_odds(
            partial_resid=r_j,
            xj=xj,
            alpha_j=a[j],
            tau_e=tau_e,
            log_prior_odds=log_prior_odds,
            max_log_odds=max_log_odds,
        )
        p1 = 1.0 / (1.0 + np.exp(-logit))
        dl[j] = 1 if rng.uniform() < p1 else 0
        b[j] = float(dl[j]) * a[j]
        r = r_j - xj * b[j]

    return dl, b, r


def _ssvs_update_tau_e(*, resid: np.ndarray, a1: float, b1: float, rng: np.random.Generator) -> float:
    n = int(resid.shape[0])
    tau_e = float(gamma_rate(shape=a1 + 0.5 * n, rate=b1 + 0.5 * float(resid @ resid), rng=rng))
    if not np.isfinite(tau_e) or tau_e <= 0:
        raise NumericDegeneracyError("tau_e draw must be finite and > 0")
    return tau_e


def _ssvs_update_intercept(
    *,
    y_minus_fit: np.ndarray,
    tau_e: float,
    prior_precision: float,
    rng: np.random.Generator,
) -> float:
    n = int(y_minus_fit.shape[0])
    post_prec = n * tau_e + prior_precision
    mean = tau_e * float(np.sum(y_minus_fit)) / post_prec
    return float(mean + rng.standard_normal() / np.sqrt(post_prec))


def _fit_ssvs(
    *,
    data: RegressionData,
    prior: PriorSpec,
    sampler: SamplerConfig,
    rng: np.random.Generator,
    progress: Callable[[str, dict[str, Any]], None] | None = None,
) -> FitResult:
    spec: SSVSSpec | None = prior.ssvs
    if spec is None:
        raise ValueError("prior.family='ssvs' requires prior.ssvs")

    x, y = data.x, data.y
    p = data.p
    xtx = x.T @ x
    slab_precision = np.full(p, float(spec.prior_precision), dtype=float)

    d = sampler.n_keep
    beta_keep = np.empty((d, p), dtype=float)
    intercept_keep = np.empty(d, dtype=float)
    tau_e_keep = np.empty(d, dtype=float)
    delta_keep = np.empty((d, p), dtype=np.int8)

    beta = np.zeros(p, dtype=float)
    delta = np.ones(p, dtype=np.int8)
    intercept = 0.0
    delta_sum = np.zeros(p, dtype=float)

    kept = 0
    completed = 0
    error: NumericDegeneracyError | None = None
    for it in range(sampler.n_iter):
        try:
            fit_x = x @ beta
            tau_e = _ssvs_update_tau_e(resid=y - intercept - fit_x, a1=spec.a1, b1=spec.b1, rng=rng)
            intercept = _ssvs_update_intercept(
                y_minus_fit=y - fit_x,
                tau_e=tau_e,
                prior_precision=spec.intercept_precision,
                rng=rng,
            )

            # Gram matrix and cross product of the masked design x @ diag(delta)
            mask = delta.astype(float)
            alpha = sample_conditional_gaussian(
                xtx=xtx * np.outer(mask, mask),
                xty=mask * (x.T @ (y - intercept)),
                noise_precision=tau_e,
                prior_precision=slab_precision,
                rng=rng,
            )
            beta = alpha * mask

            delta, beta, _resid = sample_delta_sweep(
                x=x,
                resid=y - intercept - x @ beta,
                alpha=alpha,
                beta=beta,
                delta=delta,
                tau_e=tau_e,
                inclusion_prob=spec.inclusion_prob,
                rng=rng,
                max_log_odds=spec.max_log_odds,
            )
        except NumericDegeneracyError as e:
            error = e
            break

        completed = it + 1
        if it >= sampler.burn_in:
            beta_keep[kept] = beta
            intercept_keep[kept] = intercept
            tau_e_keep[kept] = tau_e
            delta_keep[kept] = delta
            delta_sum += delta
            kept += 1

        if progress is not None and completed % sampler.progress_every == 0:
            progress(
                "sampler_progress",
                {
                    "family": "ssvs",
                    "iteration": completed,
                    "n_iter": sampler.n_iter,
                    "beta": beta.copy(),
                    "inclusion": delta_sum / kept if kept > 0 else delta.astype(float),
                },
            )

    return FitResult(
        data=data,
        prior=prior,
        sampler=sampler,
        beta_draws=beta_keep[:kept],
        intercept_draws=intercept_keep[:kept],
        tau_e_draws=tau_e_keep[:kept],
        delta_draws=delta_keep[:kept],
        completed_iterations=completed,
        error=error,
    )
