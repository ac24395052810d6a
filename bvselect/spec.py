from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import ConfigError

PRIOR_FAMILIES = ("horseshoe", "blasso", "ssvs")


def _require_positive(value: float, name: str) -> None:
    if not np.isfinite(value) or value <= 0:
        raise ConfigError(f"{name} must be finite and > 0")


@dataclass(frozen=True, slots=True)
class HorseshoeSpec:
    """Hyperparameters for Bayesian ridge regression with a horseshoe-style prior.

    The coefficient prior is written in precision form,
    ``beta_j | lambda_j ~ N(0, 1 / lambda_j**2)``, with
    ``lambda_j**2 | gamma_j ~ Gamma(nu / 2, rate=nu / (2 * gamma_j))`` and
    ``1 / gamma_j ~ Gamma(gamma_shape, gamma_rate)``. The noise variance has an
    inverse-gamma prior ``tau_sq ~ InvGamma(tau_shape, tau_rate)``.

    Parameters
    ----------
    nu:
        Degrees of freedom of the local shrinkage layer.
    lambda_init:
        Starting value for every local shrinkage parameter ``lambda_j``.
    gamma_init:
        Starting value for every global scale ``gamma_j``.
    tau_shape, tau_rate:
        Inverse-gamma prior on the noise variance.
    gamma_shape, gamma_rate:
        Gamma prior on ``1 / gamma_j``.
    """
    nu: float = 1.0
    lambda_init: float = 1.0
    gamma_init: float = 1.0
    tau_shape: float = 1.0
    tau_rate: float = 1.0
    gamma_shape: float = 0.5
    gamma_rate: float = 1.0

    def __post_init__(self) -> None:
        for name in ["nu", "lambda_init", "gamma_init", "tau_shape", "tau_rate", "gamma_shape", "gamma_rate"]:
            _require_positive(float(getattr(self, name)), name)


@dataclass(frozen=True, slots=True)
class BLassoSpec:
    """Hyperparameters for the Bayesian lasso.

    The noise precision is fixed at 1 (standardized response). Each coefficient has
    prior variance ``scale * lambda_sq_j``.

    Parameters
    ----------
    lambda_init:
        Starting value for every ``lambda_sq_j``.
    scale:
        Multiplier on the prior variances. Very small values shrink every coefficient
        toward zero.
    eps:
        Floor applied to ``|beta_j|`` before it is used as a gamma rate, and added to
        ``beta_j**2`` in the inverse-Gaussian mean. With ``eps=0`` an exactly-zero
        coefficient is a numeric degeneracy under either update; no other clipping
        is applied.
    update:
        ``"gamma"`` draws ``lambda_sq_j ~ Gamma(1, rate=|beta_j|)``;
        ``"inverse_gaussian"`` uses the Park-Casella conditional
        ``1 / lambda_sq_j ~ InvGaussian(sqrt(penalty**2 / beta_j**2), penalty**2)``.
    penalty:
        Lasso penalty used by the ``"inverse_gaussian"`` update.
    """
    lambda_init: float = 1.0
    scale: float = 1.0
    eps: float = 1e-10
    update: str = "gamma"
    penalty: float = 1.0

    def __post_init__(self) -> None:
        _require_positive(float(self.lambda_init), "lambda_init")
        _require_positive(float(self.scale), "scale")
        _require_positive(float(self.penalty), "penalty")
        if not np.isfinite(self.eps) or self.eps < 0:
            raise ConfigError("eps must be finite and >= 0")
        if self.update not in {"gamma", "inverse_gaussian"}:
            raise ConfigError("update must be one of: gamma, inverse_gaussian")


@dataclass(frozen=True, slots=True)
class SSVSSpec:
    """Hyperparameters for stochastic search variable selection (SSVS).

    The implementation uses a Kuo-Mallick spike-and-slab: every predictor carries a
    continuous slab value ``alpha_j`` and a binary indicator ``delta_j`` with
    ``beta_j = delta_j * alpha_j``.

    Parameters
    ----------
    inclusion_prob:
        Prior inclusion probability for each predictor.
    a1, b1:
        Gamma prior (shape, rate) on the noise precision ``tau_e``.
    prior_precision:
        Prior precision of each slab value ``alpha_j``.
    intercept_precision:
        Prior precision of the intercept (mean zero).
    max_log_odds:
        Inclusion log-odds are clipped to ``[-max_log_odds, max_log_odds]`` before the
        logistic transform.
    """
    inclusion_prob: float = 0.5
    a1: float = 0.01
    b1: float = 0.01
    prior_precision: float = 1.0
    intercept_precision: float = 1e-6
    max_log_odds: float = 10.0

    def __post_init__(self) -> None:
        if not (0.0 < self.inclusion_prob < 1.0):
            raise ConfigError("inclusion_prob must be in (0, 1)")
        for name in ["a1", "b1", "prior_precision", "intercept_precision", "max_log_odds"]:
            _require_positive(float(getattr(self, name)), name)


@dataclass(frozen=True, slots=True)
class PriorSpec:
    """Prior specification wrapper.

    ``family`` selects the sampler; the matching parameter block must be present.

    Parameters
    ----------
    family:
        One of ``"horseshoe"``, ``"blasso"``, ``"ssvs"``.
    horseshoe, blasso, ssvs:
        Hyperparameter blocks.
    """
    family: str
    horseshoe: HorseshoeSpec | None = None
    blasso: BLassoSpec | None = None
    ssvs: SSVSSpec | None = None

    def __post_init__(self) -> None:
        family = self.family.lower()
        if family not in PRIOR_FAMILIES:
            raise ConfigError(f"family must be one of: {', '.join(PRIOR_FAMILIES)}")
        if getattr(self, family) is None:
            raise ConfigError(f"prior.family='{family}' requires prior.{family}")

    @staticmethod
    def from_horseshoe(**kwargs: float) -> "PriorSpec":
        """Construct a horseshoe/ridge prior; keyword arguments go to :class:`HorseshoeSpec`."""
        return PriorSpec(family="horseshoe", horseshoe=HorseshoeSpec(**kwargs))

    @staticmethod
    def from_blasso(
        *,
        lambda_init: float = 1.0,
        scale: float = 1.0,
        eps: float = 1e-10,
        update: str = "gamma",
        penalty: float = 1.0,
    ) -> "PriorSpec":
        spec = BLassoSpec(
            lambda_init=float(lambda_init),
            scale=float(scale),
            eps=float(eps),
            update=str(update).lower(),
            penalty=float(penalty),
        )
        return PriorSpec(family="blasso", blasso=spec)

    @staticmethod
    def from_ssvs(**kwargs: float) -> "PriorSpec":
        """Construct an SSVS prior; keyword arguments go to :class:`SSVSSpec`."""
        return PriorSpec(family="ssvs", ssvs=SSVSSpec(**kwargs))


@dataclass(frozen=True, slots=True)
class SamplerConfig:
    """MCMC configuration for the Gibbs samplers.

    Parameters
    ----------
    n_iter:
        Total number of iterations to run.
    burn_in:
        Number of initial iterations to discard. Must be smaller than ``n_iter`` so
        that at least one draw is kept.
    progress_every:
        Emit a ``sampler_progress`` event every this many iterations (when a progress
        callback is supplied).

    Notes
    -----
    Burn-in is applied online: discarded iterations still advance the chain, and
    every returned trace has ``n_iter - burn_in`` rows.
    """
    n_iter: int = 2000
    burn_in: int = 500
    progress_every: int = 1000

    def __post_init__(self) -> None:
        if self.n_iter < 1:
            raise ConfigError("n_iter must be >= 1")
        if self.burn_in < 0:
            raise ConfigError("burn_in must be >= 0")
        if self.burn_in >= self.n_iter:
            raise ConfigError("burn_in must be < n_iter")
        if self.progress_every < 1:
            raise ConfigError("progress_every must be >= 1")

    @property
    def n_keep(self) -> int:
        return int(self.n_iter - self.burn_in)
