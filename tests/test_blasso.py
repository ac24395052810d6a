import numpy as np
import pytest

import bvselect.samplers_blasso as samplers_blasso
from bvselect.api import fit
from bvselect.data.dataset import RegressionData
from bvselect.errors import NumericDegeneracyError
from bvselect.samplers import _blasso_update_lambda_sq
from bvselect.spec import BLassoSpec, PriorSpec, SamplerConfig


def _toy_data(*, n: int = 100, p: int = 3, seed: int = 0) -> RegressionData:
    rng = np.random.default_rng(seed)
    x = rng.standard_normal((n, p))
    y = 2.0 * x[:, 0] + 0.1 * rng.standard_normal(n)
    return RegressionData.from_arrays(x=x, y=y).standardize()


def test_blasso_trace_shapes() -> None:
    data = _toy_data(n=60, seed=1)
    res = fit(data, PriorSpec.from_blasso(), SamplerConfig(n_iter=80, burn_in=20), rng=np.random.default_rng(3))

    assert res.complete
    assert res.beta_draws.shape == (60, 3)
    assert res.lambda_sq_draws is not None
    assert res.lambda_sq_draws.shape == (60, 3)
    assert np.all(res.lambda_sq_draws > 0)
    assert res.tau_sq_draws is None
    assert np.array_equal(res.precision_draws(), np.ones(60))


def test_blasso_tiny_scale_shrinks_toward_zero() -> None:
    data = _toy_data(seed=2)
    ols, *_ = np.linalg.lstsq(data.x, data.y, rcond=None)

    res = fit(
        data,
        PriorSpec.from_blasso(scale=1e-6),
        SamplerConfig(n_iter=1500, burn_in=500),
        rng=np.random.default_rng(8),
    )
    post = res.beta_draws.mean(axis=0)

    assert float(np.sum(np.abs(post))) < float(np.sum(np.abs(ols)))
    assert abs(post[0]) < 0.5 * abs(ols[0])


def test_blasso_inverse_gaussian_update_runs() -> None:
    data = _toy_data(n=60, seed=4)
    res = fit(
        data,
        PriorSpec.from_blasso(update="inverse_gaussian", penalty=1.0),
        SamplerConfig(n_iter=120, burn_in=20),
        rng=np.random.default_rng(6),
    )
    assert res.complete
    assert np.all(np.isfinite(res.beta_draws))
    assert np.all(res.lambda_sq_draws > 0)


def test_lambda_sq_gamma_update_mean() -> None:
    rng = np.random.default_rng(0)
    beta = np.concatenate([np.full(40_000, 0.5), np.full(40_000, 2.0)])
    lam_sq = _blasso_update_lambda_sq(beta=beta, spec=BLassoSpec(), rng=rng)
    # Gamma(1, rate=|beta|) has mean 1 / |beta|
    assert abs(float(np.mean(lam_sq[:40_000])) - 2.0) < 0.05
    assert abs(float(np.mean(lam_sq[40_000:])) - 0.5) < 0.02


def test_zero_coefficient_without_floor_is_degenerate() -> None:
    with pytest.raises(NumericDegeneracyError):
        _blasso_update_lambda_sq(beta=np.array([0.0, 1.0]), spec=BLassoSpec(eps=0.0), rng=np.random.default_rng(0))


def test_zero_coefficient_with_floor_is_finite() -> None:
    lam_sq = _blasso_update_lambda_sq(beta=np.array([0.0, 1.0]), spec=BLassoSpec(eps=1e-10), rng=np.random.default_rng(0))
    assert np.all(np.isfinite(lam_sq))
    assert np.all(lam_sq > 0)


def test_degeneracy_mid_run_returns_partial_trace(monkeypatch) -> None:
    real = samplers_blasso.sample_conditional_gaussian
    calls = {"n": 0}

    def flaky(**kwargs):
        calls["n"] += 1
        if calls["n"] > 30:
            return np.zeros(kwargs["xty"].shape[0])
        return real(**kwargs)

    monkeypatch.setattr(samplers_blasso, "sample_conditional_gaussian", flaky)

    data = _toy_data(n=50, seed=5)
    res = fit(data, PriorSpec.from_blasso(eps=0.0), SamplerConfig(n_iter=100, burn_in=10), rng=np.random.default_rng(1))

    assert not res.complete
    assert isinstance(res.error, NumericDegeneracyError)
    assert res.completed_iterations == 30
    assert res.n_kept == 20
    assert res.lambda_sq_draws.shape == (20, 3)
    with pytest.raises(NumericDegeneracyError):
        res.raise_for_incomplete()
