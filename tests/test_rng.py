import numpy as np
import pytest

from bvselect.errors import NumericDegeneracyError
from bvselect.rng import gamma_rate, inverse_gamma, inverse_gaussian, spawn_generators


def test_gamma_rate_mean() -> None:
    rng = np.random.default_rng(0)
    draws = gamma_rate(shape=np.full(50_000, 3.0), rate=2.0, rng=rng)
    assert abs(float(np.mean(draws)) - 1.5) < 0.03


def test_gamma_rate_invalid_shape_raises_value_error() -> None:
    with pytest.raises(ValueError):
        gamma_rate(shape=0.0, rate=1.0, rng=np.random.default_rng(0))


def test_gamma_rate_zero_rate_is_degenerate() -> None:
    with pytest.raises(NumericDegeneracyError):
        gamma_rate(shape=1.0, rate=np.array([1.0, 0.0]), rng=np.random.default_rng(0))


def test_inverse_gamma_mean() -> None:
    rng = np.random.default_rng(1)
    draws = inverse_gamma(shape=np.full(50_000, 5.0), rate=4.0, rng=rng)
    assert np.all(draws > 0)
    assert abs(float(np.mean(draws)) - 1.0) < 0.03


def test_inverse_gaussian_positive_and_finite() -> None:
    rng = np.random.default_rng(123)
    x = inverse_gaussian(mu=1.5, lam=2.0, rng=rng)
    assert np.isfinite(x)
    assert x > 0


def test_inverse_gaussian_mean_approx_mu() -> None:
    rng = np.random.default_rng(123)
    mu = 1.2
    lam = 3.0
    draws = inverse_gaussian(mu=np.full(50_000, mu), lam=np.full(50_000, lam), rng=rng)
    m = float(np.mean(draws))
    assert np.isfinite(m)
    assert abs(m - mu) < 0.05


def test_inverse_gaussian_infinite_mu_raises() -> None:
    with pytest.raises(NumericDegeneracyError):
        inverse_gaussian(mu=np.inf, lam=1.0, rng=np.random.default_rng(0))


def test_spawn_generators_reproducible() -> None:
    a = spawn_generators(42, ["horseshoe", "ssvs"])
    b = spawn_generators(42, ["horseshoe", "ssvs"])
    assert np.array_equal(a["ssvs"].standard_normal(5), b["ssvs"].standard_normal(5))


def test_spawn_generators_streams_differ() -> None:
    g = spawn_generators(42, ["horseshoe", "blasso", "ssvs"])
    x = g["horseshoe"].standard_normal(8)
    y = g["blasso"].standard_normal(8)
    assert not np.allclose(x, y)


def test_spawn_generators_stream_does_not_depend_on_later_names() -> None:
    alone = spawn_generators(3, ["horseshoe"])["horseshoe"].standard_normal(4)
    together = spawn_generators(3, ["horseshoe", "ssvs"])["horseshoe"].standard_normal(4)
    assert np.array_equal(alone, together)


def test_spawn_generators_duplicate_names_raise() -> None:
    with pytest.raises(ValueError):
        spawn_generators(0, ["ssvs", "ssvs"])


@pytest.mark.parametrize("mu, lam", [(0.0, 1.0), (1.0, 0.0), (-2.0, 1.0)])
def test_inverse_gaussian_non_positive_parameters_raise(mu: float, lam: float) -> None:
    with pytest.raises(NumericDegeneracyError):
        inverse_gaussian(mu=mu, lam=lam, rng=np.random.default_rng(0))


def test_inverse_gaussian_extreme_mu_is_not_clipped() -> None:
    rng = np.random.default_rng(7)
    small = inverse_gaussian(mu=np.full(20_000, 1e-8), lam=1.0, rng=rng)
    assert abs(float(np.mean(small)) / 1e-8 - 1.0) < 0.01

    # near-zero coefficients in the lasso update give a very large mean
    large = inverse_gaussian(mu=np.full(20_000, 1e7), lam=1.0, rng=rng)
    assert np.all(np.isfinite(large))
    assert np.all(large > 0)
    assert float(np.max(large)) > 1e6
