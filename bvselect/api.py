from __future__ import annotations

from typing import Any, Callable

import numpy as np

from .data.dataset import RegressionData
from .results import FitResult
from .samplers import _fit_blasso, _fit_horseshoe, _fit_ssvs
from .spec import PRIOR_FAMILIES, PriorSpec, SamplerConfig

_FITTERS = {
    "horseshoe": _fit_horseshoe,
    "blasso": _fit_blasso,
    "ssvs": _fit_ssvs,
}


def fit(
    data: RegressionData,
    prior: PriorSpec,
    sampler: SamplerConfig,
    *,
    rng: np.random.Generator | None = None,
    progress: Callable[[str, dict[str, Any]], None] | None = None,
) -> FitResult:
    """Run one Gibbs sampler and return its posterior draws.

    This is the primary user-facing entry point for estimation.

    Supported configurations
    ------------------------
    - Bayesian ridge with a horseshoe-style hierarchical prior (``prior.family='horseshoe'``)
    - Bayesian lasso (``prior.family='blasso'``)
    - Stochastic search variable selection with an intercept (``prior.family='ssvs'``)

    Parameters
    ----------
    data:
        Regression data. Predictors and response are expected to be standardized
        (see :meth:`RegressionData.standardize`).
    prior:
        Prior configuration. The sampler is selected by ``prior.family``.
    sampler:
        MCMC configuration (iterations, burn-in).
    rng:
        Optional NumPy RNG owned by this run. Use
        :func:`bvselect.rng.spawn_generators` to give several samplers independent
        streams from one seed.
    progress:
        Optional callback receiving ``("sampler_progress", payload)`` every
        ``sampler.progress_every`` iterations. The payload holds a snapshot of the
        chain state; it must not block.

    Returns
    -------
    FitResult
        Kept draws after burn-in.

    Notes
    -----
    Configuration problems (missing values, ``burn_in >= n_iter``, bad
    hyperparameters) raise :class:`~bvselect.errors.ConfigError` before any
    iteration runs; they are caught when ``data``, ``prior`` and ``sampler`` are
    constructed.

    A numeric degeneracy mid-run stops the chain. The returned result then holds the
    draws kept so far with ``complete=False`` and ``error`` set; call
    :meth:`FitResult.raise_for_incomplete` to turn it into an exception.
    """
    family = prior.family.lower()
    if family not in PRIOR_FAMILIES:
        raise ValueError(f"only prior.family in {set(PRIOR_FAMILIES)} is supported")

    if rng is None:
        rng = np.random.default_rng()

    return _FITTERS[family](data=data, prior=prior, sampler=sampler, rng=rng, progress=progress)
