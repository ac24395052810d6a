import numpy as np
import pytest

from bvselect.data.dataset import RegressionData
from bvselect.errors import ConfigError
from bvselect.results import FitResult
from bvselect.spec import PriorSpec, SamplerConfig
from bvselect.summary import inclusion_probabilities, summarize_draws, summarize_fit


def test_summarize_draws_columns_and_significance() -> None:
    rng = np.random.default_rng(0)
    draws = np.column_stack(
        [
            2.0 + 0.1 * rng.standard_normal(1000),
            rng.standard_normal(1000),
            -3.0 + 0.1 * rng.standard_normal(1000),
        ]
    )
    table = summarize_draws(draws, names=["a", "b", "c"])

    assert list(table.columns) == ["mean", "median", "lower", "upper", "significant"]
    assert table.index.name == "predictor"
    assert table["significant"].tolist() == [True, False, True]
    assert table.loc["a", "mean"] == pytest.approx(2.0, abs=0.02)


def test_interval_touching_zero_is_not_significant() -> None:
    table = summarize_draws(np.zeros((100, 1)))
    assert table.loc["x1", "lower"] == 0.0
    assert not bool(table.loc["x1", "significant"])


def test_interval_levels_are_configurable() -> None:
    draws = np.linspace(-1.0, 1.0, 201).reshape(-1, 1)
    wide = summarize_draws(draws, lower_q=0.025, upper_q=0.975)
    narrow = summarize_draws(draws, lower_q=0.25, upper_q=0.75)
    assert narrow.loc["x1", "lower"] > wide.loc["x1", "lower"]
    assert narrow.loc["x1", "upper"] < wide.loc["x1", "upper"]


def test_one_dimensional_trace_is_single_column() -> None:
    table = summarize_draws(np.arange(10, dtype=float))
    assert table.shape[0] == 1
    assert table.loc["x1", "median"] == pytest.approx(4.5)


@pytest.mark.parametrize("lower_q,upper_q", [(0.5, 0.5), (0.9, 0.1), (0.0, 0.9), (0.1, 1.0)])
def test_bad_quantiles_raise(lower_q: float, upper_q: float) -> None:
    with pytest.raises(ConfigError):
        summarize_draws(np.zeros((5, 1)), lower_q=lower_q, upper_q=upper_q)


def test_names_length_mismatch_raises() -> None:
    with pytest.raises(ConfigError):
        summarize_draws(np.zeros((5, 2)), names=["only_one"])


def test_summarize_fit_adds_inclusion_for_ssvs() -> None:
    data = RegressionData.from_arrays(x=np.arange(8, dtype=float).reshape(4, 2), y=np.arange(4, dtype=float), predictors=["a", "b"])
    delta = np.array([[1, 0], [1, 0], [1, 1], [0, 0]], dtype=np.int8)
    beta = delta * np.array([[1.0, 2.0]])
    res = FitResult(
        data=data,
        prior=PriorSpec.from_ssvs(),
        sampler=SamplerConfig(n_iter=4, burn_in=0),
        beta_draws=beta,
        intercept_draws=np.zeros(4),
        tau_e_draws=np.ones(4),
        delta_draws=delta,
        completed_iterations=4,
    )

    table = summarize_fit(res)
    assert list(table.index) == ["a", "b"]
    assert table["inclusion_prob"].tolist() == [0.75, 0.25]


def test_inclusion_probabilities_series() -> None:
    s = inclusion_probabilities(np.array([[1, 1], [0, 1]]), names=["u", "v"])
    assert s.name == "inclusion_prob"
    assert s.to_dict() == {"u": 0.5, "v": 1.0}
