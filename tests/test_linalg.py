import numpy as np
import pytest

from bvselect.errors import DegeneratePosteriorError
from bvselect.linalg import (
    cholesky_checked,
    conditional_moments,
    posterior_precision,
    sample_conditional_gaussian,
    symmetrize,
)


def test_symmetrize() -> None:
    a = np.array([[1.0, 2.0], [0.0, 3.0]])
    s = symmetrize(a)
    assert np.allclose(s, np.array([[1.0, 1.0], [1.0, 3.0]]))


def test_symmetrize_non_square_raises() -> None:
    with pytest.raises(ValueError):
        symmetrize(np.zeros((2, 3)))


def test_conditional_moments_match_direct_inverse() -> None:
    xtx = np.array([[2.0, 0.2], [0.2, 1.0]])
    xty = np.array([1.0, 2.0])
    s = 2.0
    d = np.array([1.0, 0.5])

    mean, cov = conditional_moments(xtx=xtx, xty=xty, noise_precision=s, prior_precision=d)

    prec = s * xtx + np.diag(d)
    cov_direct = np.linalg.inv(prec)
    assert np.allclose(cov, cov_direct)
    assert np.allclose(mean, cov_direct @ (s * xty))


def test_conditional_moments_single_predictor() -> None:
    mean, cov = conditional_moments(
        xtx=np.array([[4.0]]),
        xty=np.array([2.0]),
        noise_precision=1.0,
        prior_precision=np.array([1.0]),
    )
    assert mean.shape == (1,)
    assert cov.shape == (1, 1)
    assert mean[0] == pytest.approx(0.4)
    assert cov[0, 0] == pytest.approx(0.2)


def test_sample_conditional_gaussian_moments() -> None:
    rng = np.random.default_rng(7)
    xtx = np.array([[3.0, 1.0], [1.0, 2.0]])
    xty = np.array([1.0, -1.0])
    d = np.array([1.0, 1.0])

    mean, cov = conditional_moments(xtx=xtx, xty=xty, noise_precision=1.0, prior_precision=d)
    draws = np.stack(
        [
            sample_conditional_gaussian(xtx=xtx, xty=xty, noise_precision=1.0, prior_precision=d, rng=rng)
            for _ in range(20_000)
        ]
    )

    assert np.allclose(draws.mean(axis=0), mean, atol=0.02)
    assert np.allclose(np.cov(draws, rowvar=False), cov, atol=0.02)


def test_zero_gram_uses_prior_only() -> None:
    # a fully masked design leaves only the prior precision
    rng = np.random.default_rng(0)
    draw = sample_conditional_gaussian(
        xtx=np.zeros((3, 3)),
        xty=np.zeros(3),
        noise_precision=1.0,
        prior_precision=np.ones(3),
        rng=rng,
    )
    assert draw.shape == (3,)
    assert np.all(np.isfinite(draw))


def test_cholesky_checked_singular_raises() -> None:
    with pytest.raises(DegeneratePosteriorError):
        cholesky_checked(np.array([[1.0, 1.0], [1.0, 1.0]]))


def test_cholesky_checked_non_finite_raises() -> None:
    with pytest.raises(DegeneratePosteriorError):
        cholesky_checked(np.array([[1.0, np.nan], [np.nan, 1.0]]))


def test_non_positive_noise_precision_raises() -> None:
    with pytest.raises(DegeneratePosteriorError):
        posterior_precision(xtx=np.eye(2), noise_precision=0.0, prior_precision=np.ones(2))


def test_prior_precision_shape_mismatch_raises() -> None:
    with pytest.raises(ValueError):
        posterior_precision(xtx=np.eye(2), noise_precision=1.0, prior_precision=np.ones(3))
