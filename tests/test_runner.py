from dataclasses import replace
import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

import bvselect.crossval as crossval
from bvselect.errors import ConfigError, NumericDegeneracyError
import bvselect.runner as runner
from bvselect.runner import (
    build_crossval_config,
    build_priors,
    build_sampler,
    build_summary_config,
    load_dataset_from_csv,
    run_from_config,
)
from bvselect.spec import SamplerConfig


def _write_csv(path: Path, *, n: int = 60, seed: int = 0) -> Path:
    rng = np.random.default_rng(seed)
    frame = pd.DataFrame({f"x{j + 1}": rng.standard_normal(n) for j in range(3)})
    frame["target"] = 1.5 * frame["x1"] + 0.3 * rng.standard_normal(n)
    frame.to_csv(path, index=False)
    return path


def _write_config(path: Path, cfg: dict) -> Path:
    yaml = pytest.importorskip("yaml")
    path.write_text(yaml.safe_dump(cfg, sort_keys=False), encoding="utf-8")
    return path


def _base_config(csv_path: Path, out_dir: Path) -> dict:
    return {
        "data": {"csv_path": str(csv_path), "response": "target", "standardize": True},
        "sampler": {"n_iter": 120, "burn_in": 20, "seed": 7, "progress_every": 50},
        "methods": {"horseshoe": {}, "blasso": {"scale": 0.5}, "ssvs": {"inclusion_prob": 0.4}},
        "crossval": {"enabled": True, "n_splits": 3, "n_iter": 60, "burn_in": 20},
        "output": {"out_dir": str(out_dir), "save_traces": True, "save_plots": False},
    }


def test_build_priors_parses_each_family() -> None:
    priors = build_priors(
        {
            "methods": {
                "horseshoe": {"nu": 2},
                "BLasso": {"scale": 0.1, "update": "inverse_gaussian"},
                "ssvs": None,
            }
        }
    )
    assert list(priors) == ["horseshoe", "blasso", "ssvs"]
    assert priors["horseshoe"].horseshoe is not None
    assert priors["horseshoe"].horseshoe.nu == 2.0
    assert priors["blasso"].blasso is not None
    assert priors["blasso"].blasso.scale == 0.1
    assert priors["blasso"].blasso.update == "inverse_gaussian"
    assert priors["ssvs"].ssvs is not None
    assert priors["ssvs"].ssvs.inclusion_prob == 0.5


def test_build_priors_defaults_to_all_families() -> None:
    assert list(build_priors({})) == ["horseshoe", "blasso", "ssvs"]


@pytest.mark.parametrize(
    "methods",
    [
        {"ridge": {}},
        {"ssvs": {"pi": 0.5}},
        {"ssvs": {"inclusion_prob": 1.5}},
        {"horseshoe": {"nu": True}},
        {"blasso": {"update": 3}},
        {"horseshoe": [1, 2]},
        {},
    ],
)
def test_build_priors_rejects_bad_methods(methods: dict) -> None:
    with pytest.raises(ConfigError):
        build_priors({"methods": methods})


def test_build_sampler() -> None:
    sampler, seed = build_sampler({"sampler": {"n_iter": 300, "burn_in": 100, "seed": 3}})
    assert sampler == SamplerConfig(n_iter=300, burn_in=100, progress_every=1000)
    assert seed == 3

    with pytest.raises(ConfigError):
        build_sampler({"sampler": {"n_iter": 100, "burn_in": 100}})
    with pytest.raises(ConfigError):
        build_sampler({"sampler": {"n_iter": 1.5}})
    with pytest.raises(ConfigError):
        build_sampler({})


def test_build_summary_config_validates_levels() -> None:
    assert build_summary_config({}) == {"lower_q": 0.025, "upper_q": 0.975}
    assert build_summary_config({"summary": {"lower_q": 0.05, "upper_q": 0.95}})["lower_q"] == 0.05
    with pytest.raises(ConfigError):
        build_summary_config({"summary": {"lower_q": 0.9, "upper_q": 0.1}})


def test_build_crossval_config() -> None:
    sampler = SamplerConfig(n_iter=200, burn_in=50)
    assert build_crossval_config({}, sampler=sampler, seed=1) is None
    assert build_crossval_config({"crossval": {"enabled": False}}, sampler=sampler, seed=1) is None

    cv = build_crossval_config({"crossval": {"n_splits": 4}}, sampler=sampler, seed=9)
    assert cv is not None
    assert cv["n_splits"] == 4
    assert cv["seed"] == 9
    assert cv["sampler"] == sampler

    with pytest.raises(ConfigError):
        build_crossval_config({"crossval": {"n_splits": 1}}, sampler=sampler, seed=None)


def test_load_dataset_from_csv(tmp_path: Path) -> None:
    csv = _write_csv(tmp_path / "data.csv")
    data = load_dataset_from_csv({"data": {"csv_path": str(csv), "response": "target", "predictors": ["x1", "x3"]}})
    assert data.predictors == ["x1", "x3"]
    assert data.n == 60
    assert abs(float(data.y.mean())) < 1e-12

    with pytest.raises(ConfigError):
        load_dataset_from_csv({"data": {"csv_path": str(tmp_path / "missing.csv"), "response": "target"}})
    with pytest.raises(ConfigError):
        load_dataset_from_csv({"data": {"csv_path": str(csv), "response": "nope"}})


def test_load_dataset_resolves_relative_to_config_dir(tmp_path: Path) -> None:
    (tmp_path / "data").mkdir()
    _write_csv(tmp_path / "data" / "d.csv")
    data = load_dataset_from_csv(
        {"data": {"csv_path": "data/d.csv", "response": "target", "standardize": False}},
        base_dir=tmp_path,
    )
    assert data.p == 3


def test_validate_only_writes_nothing(tmp_path: Path) -> None:
    csv = _write_csv(tmp_path / "data.csv")
    out = tmp_path / "out"
    cfg = _write_config(tmp_path / "config.yml", _base_config(csv, out))

    events: list[str] = []
    res = run_from_config(cfg, validate_only=True, progress=lambda e, _p: events.append(e))

    assert res is None
    assert not out.exists()
    assert events[-1] == "validate_end"


def test_run_from_config_writes_artifacts(tmp_path: Path) -> None:
    csv = _write_csv(tmp_path / "data.csv")
    out = tmp_path / "out"
    cfg = _write_config(tmp_path / "config.yml", _base_config(csv, out))

    events: list[tuple[str, dict]] = []
    res = run_from_config(cfg, progress=lambda e, p: events.append((e, p)))

    assert res is not None
    assert set(res.fits) == {"horseshoe", "blasso", "ssvs"}
    for name in ["config.yml", "comparison.csv", "bayes_factors.csv", "cv_rmse.csv", "run_summary.json"]:
        assert (out / name).exists()
    for family in ["horseshoe", "blasso", "ssvs"]:
        assert (out / f"summary_{family}.csv").exists()
        assert (out / f"traces_{family}.npz").exists()

    summary = pd.read_csv(out / "summary_ssvs.csv", index_col="predictor")
    assert list(summary.index) == ["x1", "x2", "x3"]
    assert "inclusion_prob" in summary.columns

    cv = pd.read_csv(out / "cv_rmse.csv", index_col="fold")
    assert list(cv.columns) == ["horseshoe", "blasso", "ssvs", "ols"]
    assert len(cv) == 3

    with np.load(out / "traces_horseshoe.npz", allow_pickle=True) as z:
        assert z["beta_draws"].shape == (100, 3)
        assert list(z["predictors"]) == ["x1", "x2", "x3"]

    meta = json.loads((out / "run_summary.json").read_text(encoding="utf-8"))
    assert meta["seed"] == 7
    assert meta["complete"] == {"horseshoe": True, "blasso": True, "ssvs": True}

    names = [e for e, _ in events]
    assert names[-1] == "run_end"
    assert "sampler_progress" in names
    assert sum(1 for e, p in events if e == "artifact") >= 11


def test_run_from_config_is_reproducible(tmp_path: Path) -> None:
    csv = _write_csv(tmp_path / "data.csv")
    cfg_dict = _base_config(csv, tmp_path / "a")
    cfg_dict.pop("crossval")
    cfg = _write_config(tmp_path / "config.yml", cfg_dict)

    a = run_from_config(cfg, out_dir=tmp_path / "a")
    b = run_from_config(cfg, out_dir=tmp_path / "b")
    assert a is not None and b is not None
    assert b.cv_rmse is None
    for family in a.fits:
        assert np.array_equal(a.fits[family].beta_draws, b.fits[family].beta_draws)


def test_run_from_config_with_plots(tmp_path: Path) -> None:
    matplotlib = pytest.importorskip("matplotlib")
    matplotlib.use("Agg")

    csv = _write_csv(tmp_path / "data.csv")
    out = tmp_path / "out"
    cfg_dict = _base_config(csv, out)
    cfg_dict["methods"] = {"ssvs": {}}
    cfg_dict.pop("crossval")
    cfg_dict["output"].update({"save_plots": True, "progress_plots": True})
    cfg = _write_config(tmp_path / "config.yml", cfg_dict)

    run_from_config(cfg)

    assert (out / "coefficient_intervals.png").exists()
    assert (out / "trace_ssvs.png").exists()
    assert (out / "histogram_ssvs.png").exists()
    assert (out / "inclusion_ssvs.png").exists()
    assert (out / "ssvs_progress_000050.png").exists()
    assert (out / "ssvs_progress_000100.png").exists()


def test_degenerate_cv_fold_still_writes_artifacts(tmp_path: Path, monkeypatch) -> None:
    real = crossval.fit

    def flaky(data, prior, sampler, **kwargs):
        res = real(data, prior, sampler, **kwargs)
        if prior.family == "ssvs":
            return replace(res, error=NumericDegeneracyError("posterior precision is not positive definite"))
        return res

    monkeypatch.setattr(crossval, "fit", flaky)

    csv = _write_csv(tmp_path / "data.csv")
    out = tmp_path / "out"
    cfg = _write_config(tmp_path / "config.yml", _base_config(csv, out))

    with pytest.warns(RuntimeWarning, match="ssvs"):
        res = run_from_config(cfg)

    assert res is not None
    for name in ["comparison.csv", "bayes_factors.csv", "cv_rmse.csv", "summary_ssvs.csv"]:
        assert (out / name).exists()
    cv = pd.read_csv(out / "cv_rmse.csv", index_col="fold")
    assert cv["ssvs"].isna().all()
    assert np.all(np.isfinite(cv[["horseshoe", "blasso", "ols"]].to_numpy(dtype=float)))


def test_all_chains_failing_raises_the_sampler_error(tmp_path: Path, monkeypatch) -> None:
    real = runner.fit

    def broken(data, prior, sampler, **kwargs):
        res = real(data, prior, sampler, **kwargs)
        return replace(res, beta_draws=res.beta_draws[:0], error=NumericDegeneracyError("tau_sq must be finite and > 0"))

    monkeypatch.setattr(runner, "fit", broken)

    csv = _write_csv(tmp_path / "data.csv")
    cfg_dict = _base_config(csv, tmp_path / "out")
    cfg_dict.pop("crossval")
    cfg = _write_config(tmp_path / "config.yml", cfg_dict)

    with pytest.warns(RuntimeWarning):
        with pytest.raises(NumericDegeneracyError, match="tau_sq"):
            run_from_config(cfg)
    assert not (tmp_path / "out").exists()
