from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping
import warnings

import numpy as np
import pandas as pd
import scipy.special
import scipy.stats

from .results import FitResult


@dataclass(frozen=True, slots=True)
class WAICResult:
    """Widely applicable information criterion and its components.

    Attributes
    ----------
    waic:
        ``-2 * (lppd - p_waic)``.
    lppd:
        Log pointwise predictive density.
    p_waic:
        Effective number of parameters (sum of per-observation variances of the
        log-likelihood across draws).
    n_draws:
        Number of draws (rows) used after dropping non-finite ones.
    """
    waic: float
    lppd: float
    p_waic: float
    n_draws: int


def _finite(values: np.ndarray) -> np.ndarray:
    v = np.asarray(values, dtype=float).reshape(-1)
    return v[np.isfinite(v)]


def dic(log_posterior: np.ndarray, effective_params: float) -> float:
    """Deviance information criterion ``-2 * mean(log_posterior) + 2 * effective_params``.

    Non-finite entries of ``log_posterior`` are dropped before averaging.
    """
    v = _finite(log_posterior)
    if v.size < 1:
        raise ValueError("log_posterior has no finite entries")
    return float(-2.0 * float(np.mean(v)) + 2.0 * float(effective_params))


def waic(log_lik: np.ndarray) -> WAICResult:
    """WAIC from a pointwise log-likelihood matrix of shape ``(D, n)``.

    ``lppd = sum_i log(mean_s exp(log_lik[s, i]))`` is computed with log-sum-exp;
    ``p_waic = sum_i var_s(log_lik[s, i])`` uses the sample variance (``ddof=1``) and is
    0 for a single draw. Draws containing any non-finite value are dropped.
    """
    ll = np.asarray(log_lik, dtype=float)
    if ll.ndim == 1:
        ll = ll.reshape(-1, 1)
    if ll.ndim != 2:
        raise ValueError("log_lik must be 2D (draws, observations)")

    ll = ll[np.all(np.isfinite(ll), axis=1)]
    s = int(ll.shape[0])
    if s < 1:
        raise ValueError("log_lik has no finite draws")

    lppd = float(np.sum(scipy.special.logsumexp(ll, axis=0) - np.log(s)))
    if s > 1:
        # centred on the first draw so identical draws give exactly zero variance
        p_waic = float(np.sum(np.var(ll - ll[:1], axis=0, ddof=1)))
    else:
        p_waic = 0.0
    return WAICResult(waic=-2.0 * (lppd - p_waic), lppd=lppd, p_waic=p_waic, n_draws=s)


def log_bayes_factor(logpost_a: np.ndarray, logpost_b: np.ndarray) -> float:
    """``sum(logpost_a) - sum(logpost_b)`` over finite entries."""
    a = _finite(logpost_a)
    b = _finite(logpost_b)
    if a.size < 1 or b.size < 1:
        raise ValueError("log-posterior vectors must contain finite entries")
    if a.size != b.size:
        warnings.warn(
            f"log-posterior vectors have different finite counts ({a.size} vs {b.size}); "
            "the Bayes factor compares sums over unequal numbers of draws",
            RuntimeWarning,
            stacklevel=2,
        )
    return float(np.sum(a) - np.sum(b))


def bayes_factor(logpost_a: np.ndarray, logpost_b: np.ndarray) -> float:
    """Bayes factor ``exp(sum(logpost_a) - sum(logpost_b))`` of model A over model B.

    Non-finite entries are dropped silently before summing. The result overflows to
    ``inf`` (or underflows to 0) for large log differences; use
    :func:`log_bayes_factor` when the magnitude matters.
    """
    with np.errstate(over="ignore"):
        return float(np.exp(log_bayes_factor(logpost_a, logpost_b)))


def _fitted_means(x: np.ndarray, beta_draws: np.ndarray, intercept_draws: np.ndarray | None) -> np.ndarray:
    xa = np.asarray(x, dtype=float)
    b = np.asarray(beta_draws, dtype=float)
    if b.ndim == 1:
        b = b.reshape(-1, 1)
    if xa.ndim != 2 or b.ndim != 2 or b.shape[1] != xa.shape[1]:
        raise ValueError("beta_draws must have shape (D, p) matching x (n, p)")
    mu = b @ xa.T
    if intercept_draws is not None:
        c = np.asarray(intercept_draws, dtype=float).reshape(-1)
        if c.shape != (b.shape[0],):
            raise ValueError("intercept_draws must have shape (D,)")
        mu = mu + c[:, None]
    return mu


def log_likelihood_matrix(
    x: np.ndarray,
    y: np.ndarray,
    beta_draws: np.ndarray,
    precision_draws: np.ndarray,
    intercept_draws: np.ndarray | None = None,
) -> np.ndarray:
    """Pointwise Gaussian log-likelihood, shape ``(D, n)``.

    Observation ``i`` under draw ``s`` has density
    ``N(y_i; x_i @ beta_s (+ intercept_s), sd=1/sqrt(precision_s))``.
    """
    mu = _fitted_means(x, beta_draws, intercept_draws)
    prec = np.asarray(precision_draws, dtype=float).reshape(-1)
    if prec.shape != (mu.shape[0],):
        raise ValueError("precision_draws must have shape (D,)")
    ya = np.asarray(y, dtype=float).reshape(-1)
    if ya.shape != (mu.shape[1],):
        raise ValueError("y must have shape (n,)")

    with np.errstate(divide="ignore", invalid="ignore"):
        sd = 1.0 / np.sqrt(prec)
        return scipy.stats.norm.logpdf(ya[None, :], loc=mu, scale=sd[:, None])


def log_posterior_samples(
    x: np.ndarray,
    y: np.ndarray,
    beta_draws: np.ndarray,
    precision_draws: np.ndarray,
    *,
    prior_sd: float = 10.0,
    intercept_draws: np.ndarray | None = None,
) -> np.ndarray:
    """Unnormalized log posterior per draw, shape ``(D,)``.

    Sum of the Gaussian log-likelihood over observations plus
    ``sum_j log N(beta_j; 0, prior_sd)``. Draws with a non-positive precision give
    non-finite values, which the comparators drop.
    """
    if not np.isfinite(prior_sd) or prior_sd <= 0:
        raise ValueError("prior_sd must be finite and > 0")
    ll = log_likelihood_matrix(x, y, beta_draws, precision_draws, intercept_draws)
    b = np.asarray(beta_draws, dtype=float).reshape(ll.shape[0], -1)
    lp = scipy.stats.norm.logpdf(b, loc=0.0, scale=float(prior_sd))
    return np.sum(ll, axis=1) + np.sum(lp, axis=1)


def effective_parameters(fit: FitResult) -> float:
    """Parameter count used for DIC: ``p``, or ``1 + sum(inclusion probabilities)`` for SSVS."""
    if fit.delta_draws is not None:
        return float(1.0 + np.sum(np.mean(fit.delta_draws, axis=0)))
    return float(fit.data.p)


def _fit_log_terms(fit: FitResult, *, prior_sd: float) -> tuple[np.ndarray, np.ndarray]:
    if fit.n_kept < 1:
        raise ValueError(f"fit for family '{fit.family}' has no kept draws")
    prec = fit.precision_draws()
    ll = log_likelihood_matrix(fit.data.x, fit.data.y, fit.beta_draws, prec, fit.intercept_draws)
    lp = log_posterior_samples(
        fit.data.x,
        fit.data.y,
        fit.beta_draws,
        prec,
        prior_sd=prior_sd,
        intercept_draws=fit.intercept_draws,
    )
    return ll, lp


def compare_models(fits: Mapping[str, FitResult], *, prior_sd: float = 10.0) -> pd.DataFrame:
    """Information criteria for several fitted models.

    Returns
    -------
    pandas.DataFrame
        Indexed by model name with columns ``dic``, ``waic``, ``lppd``, ``p_waic``,
        ``effective_params``, ``mean_log_posterior`` and ``complete``.
    """
    if not fits:
        raise ValueError("fits must be non-empty")

    rows: dict[str, dict[str, float | bool]] = {}
    for name, fit_res in fits.items():
        ll, lp = _fit_log_terms(fit_res, prior_sd=prior_sd)
        k = effective_parameters(fit_res)
        w = waic(ll)
        rows[str(name)] = {
            "dic": dic(lp, k),
            "waic": w.waic,
            "lppd": w.lppd,
            "p_waic": w.p_waic,
            "effective_params": k,
            "mean_log_posterior": float(np.mean(_finite(lp))),
            "complete": bool(fit_res.complete),
        }
    out = pd.DataFrame.from_dict(rows, orient="index")
    out.index.name = "model"
    return out


def bayes_factor_table(fits: Mapping[str, FitResult], *, prior_sd: float = 10.0) -> pd.DataFrame:
    """Pairwise log Bayes factors; entry ``[a, b]`` is ``log BF`` of model a over model b.

    Each unordered pair is evaluated once, so a pair whose finite draw counts differ
    (for example an incomplete chain against a complete one) raises exactly one
    ``RuntimeWarning``.
    """
    names = [str(k) for k in fits]
    logpost = {str(k): _fit_log_terms(v, prior_sd=prior_sd)[1] for k, v in fits.items()}
    out = pd.DataFrame(index=pd.Index(names, name="model"), columns=names, dtype=float)
    for i, a in enumerate(names):
        out.loc[a, a] = 0.0
        for b in names[i + 1:]:
            v = log_bayes_factor(logpost[a], logpost[b])
            out.loc[a, b] = v
            out.loc[b, a] = -v
    return out


def rmse(errors: np.ndarray, *, axis: int = 0) -> np.ndarray:
    e = np.asarray(errors, dtype=float)
    return np.sqrt(np.nanmean(e**2, axis=axis))


def mae(errors: np.ndarray, *, axis: int = 0) -> np.ndarray:
    e = np.asarray(errors, dtype=float)
    return np.nanmean(np.abs(e), axis=axis)
