import pytest

from bvselect.errors import ConfigError
from bvselect.spec import BLassoSpec, HorseshoeSpec, PriorSpec, SamplerConfig, SSVSSpec


def test_config_error_is_value_error() -> None:
    assert issubclass(ConfigError, ValueError)


def test_sampler_config_n_keep() -> None:
    s = SamplerConfig(n_iter=120, burn_in=20)
    assert s.n_keep == 100


@pytest.mark.parametrize("burn_in", [120, 500])
def test_sampler_config_burn_in_not_below_n_iter_raises(burn_in: int) -> None:
    with pytest.raises(ConfigError):
        SamplerConfig(n_iter=120, burn_in=burn_in)


def test_sampler_config_rejects_non_positive_values() -> None:
    with pytest.raises(ConfigError):
        SamplerConfig(n_iter=0, burn_in=0)
    with pytest.raises(ConfigError):
        SamplerConfig(n_iter=10, burn_in=-1)
    with pytest.raises(ConfigError):
        SamplerConfig(n_iter=10, burn_in=0, progress_every=0)


def test_prior_spec_constructors() -> None:
    hs = PriorSpec.from_horseshoe(nu=2.0)
    assert hs.family == "horseshoe"
    assert hs.horseshoe == HorseshoeSpec(nu=2.0)

    bl = PriorSpec.from_blasso(scale=0.5, update="Inverse_Gaussian")
    assert bl.blasso is not None
    assert bl.blasso.scale == 0.5
    assert bl.blasso.update == "inverse_gaussian"

    ss = PriorSpec.from_ssvs(inclusion_prob=0.2)
    assert ss.ssvs == SSVSSpec(inclusion_prob=0.2)


def test_prior_spec_unknown_family_raises() -> None:
    with pytest.raises(ConfigError):
        PriorSpec(family="ridge")


def test_prior_spec_missing_block_raises() -> None:
    with pytest.raises(ConfigError):
        PriorSpec(family="ssvs")


def test_blasso_spec_validation() -> None:
    with pytest.raises(ConfigError):
        BLassoSpec(update="laplace")
    with pytest.raises(ConfigError):
        BLassoSpec(eps=-1.0)
    with pytest.raises(ConfigError):
        BLassoSpec(scale=0.0)
    assert BLassoSpec(eps=0.0).eps == 0.0


@pytest.mark.parametrize("pi", [0.0, 1.0, 1.5])
def test_ssvs_spec_inclusion_prob_bounds(pi: float) -> None:
    with pytest.raises(ConfigError):
        SSVSSpec(inclusion_prob=pi)


def test_horseshoe_spec_rejects_non_positive() -> None:
    with pytest.raises(ConfigError):
        HorseshoeSpec(nu=0.0)
