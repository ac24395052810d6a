from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .data.dataset import RegressionData
from .spec import PriorSpec, SamplerConfig


@dataclass(frozen=True, slots=True)
class FitResult:
    """Output of :func:`bvselect.api.fit`.

    Which traces are populated depends on ``prior.family``:

    - ``horseshoe``: ``beta_draws``, ``tau_sq_draws``, ``lambda_draws``, ``gamma_draws``
    - ``blasso``: ``beta_draws``, ``lambda_sq_draws``
    - ``ssvs``: ``beta_draws``, ``intercept_draws``, ``tau_e_draws``, ``delta_draws``

    Attributes
    ----------
    data:
        Data the chain was run on.
    prior, sampler:
        Specifications used for estimation.
    beta_draws:
        Coefficient draws with shape ``(D, p)``.
    tau_sq_draws:
        Noise variance draws ``(D,)`` (horseshoe).
    lambda_draws, gamma_draws:
        Local shrinkage and global scale draws ``(D, p)`` (horseshoe).
    lambda_sq_draws:
        Local variance draws ``(D, p)`` (blasso).
    intercept_draws, tau_e_draws:
        Intercept and noise precision draws ``(D,)`` (ssvs).
    delta_draws:
        Inclusion indicator draws ``(D, p)`` with values exactly 0 or 1 (ssvs).
    completed_iterations:
        Number of iterations that finished, including burn-in.
    error:
        The numeric degeneracy that stopped the chain early, or None.

    Notes
    -----
    When ``error`` is set the traces contain only the kept draws accumulated before
    the failure; ``D < sampler.n_iter - sampler.burn_in``.
    """
    data: RegressionData
    prior: PriorSpec
    sampler: SamplerConfig
    beta_draws: np.ndarray  # (D, p)
    tau_sq_draws: np.ndarray | None = None  # (D,)
    lambda_draws: np.ndarray | None = None  # (D, p)
    gamma_draws: np.ndarray | None = None  # (D, p)
    lambda_sq_draws: np.ndarray | None = None  # (D, p)
    intercept_draws: np.ndarray | None = None  # (D,)
    tau_e_draws: np.ndarray | None = None  # (D,)
    delta_draws: np.ndarray | None = None  # (D, p)
    completed_iterations: int = 0
    error: Exception | None = None

    @property
    def complete(self) -> bool:
        return self.error is None and self.completed_iterations == self.sampler.n_iter

    @property
    def n_kept(self) -> int:
        return int(self.beta_draws.shape[0])

    @property
    def family(self) -> str:
        return self.prior.family.lower()

    def precision_draws(self) -> np.ndarray:
        """Noise precision for each kept draw, shape ``(D,)``.

        The horseshoe sampler tracks the noise *variance*, so its precision is
        ``1 / tau_sq``; the Bayesian lasso fixes the precision at 1; SSVS samples the
        precision ``tau_e`` directly.
        """
        if self.tau_sq_draws is not None:
            return 1.0 / self.tau_sq_draws
        if self.tau_e_draws is not None:
            return np.asarray(self.tau_e_draws, dtype=float)
        return np.ones(self.n_kept, dtype=float)

    def raise_for_incomplete(self) -> None:
        if self.error is not None:
            raise self.error
