from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from .errors import ConfigError
from .results import FitResult


def _as_draw_matrix(draws: np.ndarray) -> np.ndarray:
    d = np.asarray(draws, dtype=float)
    if d.ndim == 1:
        d = d.reshape(-1, 1)
    if d.ndim != 2:
        raise ConfigError("draws must be 1D or 2D (iterations, p)")
    if d.shape[0] < 1:
        raise ConfigError("draws must contain at least one iteration")
    return d


def summarize_draws(
    draws: np.ndarray,
    *,
    names: Sequence[str] | None = None,
    lower_q: float = 0.025,
    upper_q: float = 0.975,
) -> pd.DataFrame:
    """Per-column posterior summary of a sample trace.

    Parameters
    ----------
    draws:
        Trace of shape ``(D, p)``; a 1D trace is treated as a single column.
    names:
        Optional column names of length ``p``. Defaults to ``x1..xp``.
    lower_q, upper_q:
        Credible interval levels, e.g. ``0.025/0.975`` or ``0.05/0.95``.

    Returns
    -------
    pandas.DataFrame
        Indexed by name with columns ``mean``, ``median``, ``lower``, ``upper`` and
        ``significant``. A coefficient is significant when zero lies strictly
        outside ``[lower, upper]``.
    """
    d = _as_draw_matrix(draws)
    p = d.shape[1]

    lq = float(lower_q)
    uq = float(upper_q)
    if not (0.0 < lq < uq < 1.0):
        raise ConfigError("quantile levels must satisfy 0 < lower_q < upper_q < 1")

    if names is None:
        idx = [f"x{j + 1}" for j in range(p)]
    else:
        idx = [str(v) for v in names]
        if len(idx) != p:
            raise ConfigError(f"len(names)={len(idx)} does not match the number of columns p={p}")

    lower = np.quantile(d, q=lq, axis=0)
    upper = np.quantile(d, q=uq, axis=0)
    return pd.DataFrame(
        {
            "mean": d.mean(axis=0),
            "median": np.median(d, axis=0),
            "lower": lower,
            "upper": upper,
            "significant": (lower > 0.0) | (upper < 0.0),
        },
        index=pd.Index(idx, name="predictor"),
    )


def summarize_fit(fit: FitResult, *, lower_q: float = 0.025, upper_q: float = 0.975) -> pd.DataFrame:
    """Coefficient summary for a fitted model, labelled with the predictor names.

    For SSVS fits an ``inclusion_prob`` column is appended.
    """
    table = summarize_draws(fit.beta_draws, names=fit.data.predictors, lower_q=lower_q, upper_q=upper_q)
    if fit.delta_draws is not None:
        table["inclusion_prob"] = inclusion_probabilities(fit.delta_draws, names=fit.data.predictors).to_numpy()
    return table


def inclusion_probabilities(delta_draws: np.ndarray, *, names: Sequence[str] | None = None) -> pd.Series:
    """Posterior inclusion probability (mean indicator) per predictor."""
    d = _as_draw_matrix(delta_draws)
    p = d.shape[1]
    if names is None:
        idx = [f"x{j + 1}" for j in range(p)]
    else:
        idx = [str(v) for v in names]
        if len(idx) != p:
            raise ConfigError(f"len(names)={len(idx)} does not match the number of columns p={p}")
    return pd.Series(d.mean(axis=0), index=pd.Index(idx, name="predictor"), name="inclusion_prob")
