from __future__ import annotations

from typing import Mapping
import warnings

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression
from sklearn.model_selection import KFold

from .api import fit
from .data.dataset import RegressionData
from .errors import NumericDegeneracyError
from .metrics import rmse
from .results import FitResult
from .spec import PriorSpec, SamplerConfig


def _folds(data: RegressionData, *, n_splits: int, seed: int | None) -> list[tuple[np.ndarray, np.ndarray]]:
    if n_splits < 2:
        raise ValueError("n_splits must be >= 2")
    if n_splits > data.n:
        raise ValueError("n_splits must not exceed the number of observations")
    kf = KFold(n_splits=n_splits, shuffle=True, random_state=seed)
    return [(train, test) for train, test in kf.split(data.x)]


def predict_posterior_mean(fit_res: FitResult, x: np.ndarray) -> np.ndarray:
    """Predict with the posterior mean coefficients (and intercept, when sampled)."""
    if fit_res.n_kept < 1:
        raise ValueError("fit has no kept draws")
    xa = np.asarray(x, dtype=float)
    pred = xa @ fit_res.beta_draws.mean(axis=0)
    if fit_res.intercept_draws is not None:
        pred = pred + float(np.mean(fit_res.intercept_draws))
    return pred


def cross_validate_rmse(
    data: RegressionData,
    prior: PriorSpec,
    sampler: SamplerConfig,
    *,
    n_splits: int = 10,
    seed: int | None = None,
) -> np.ndarray:
    """Per-fold held-out RMSE of a Bayesian model, shape ``(n_splits,)``.

    Each fold runs a fresh chain on the training rows with its own RNG stream and
    predicts the held-out rows with the posterior mean.
    """
    folds = _folds(data, n_splits=n_splits, seed=seed)
    streams = np.random.SeedSequence(seed).spawn(len(folds))

    out = np.empty(len(folds), dtype=float)
    for i, ((train, test), ss) in enumerate(zip(folds, streams, strict=True)):
        fit_res = fit(data.subset(train), prior, sampler, rng=np.random.default_rng(ss))
        fit_res.raise_for_incomplete()
        e = predict_posterior_mean(fit_res, data.x[test]) - data.y[test]
        out[i] = float(rmse(e, axis=0))
    return out


def baseline_rmse(data: RegressionData, *, n_splits: int = 10, seed: int | None = None) -> np.ndarray:
    """Per-fold held-out RMSE of ordinary least squares (with intercept)."""
    folds = _folds(data, n_splits=n_splits, seed=seed)
    out = np.empty(len(folds), dtype=float)
    for i, (train, test) in enumerate(folds):
        model = LinearRegression().fit(data.x[train], data.y[train])
        e = model.predict(data.x[test]) - data.y[test]
        out[i] = float(rmse(e, axis=0))
    return out


def compare_cv_rmse(
    data: RegressionData,
    priors: Mapping[str, PriorSpec],
    sampler: SamplerConfig,
    *,
    n_splits: int = 10,
    seed: int | None = None,
) -> pd.DataFrame:
    """Per-fold RMSE for each prior plus the ``ols`` baseline, all on the same folds.

    A prior whose chain degenerates on any fold gets an all-NaN column and a
    ``RuntimeWarning``; the other columns are still computed.
    """
    cols: dict[str, np.ndarray] = {}
    for name, prior in priors.items():
        try:
            cols[str(name)] = cross_validate_rmse(data, prior, sampler, n_splits=n_splits, seed=seed)
        except NumericDegeneracyError as e:
            warnings.warn(f"cross-validation for '{name}' stopped: {e}", RuntimeWarning, stacklevel=2)
            cols[str(name)] = np.full(n_splits, np.nan)
    cols["ols"] = baseline_rmse(data, n_splits=n_splits, seed=seed)
    out = pd.DataFrame(cols, index=pd.RangeIndex(1, n_splits + 1, name="fold"))
    return out
