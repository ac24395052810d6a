from __future__ import annotations

from dataclasses import dataclass, fields
import json
from pathlib import Path
from typing import Any, Callable
import time
import warnings

import numpy as np
import pandas as pd

from .api import fit
from .crossval import compare_cv_rmse
from .data.dataset import RegressionData
from .errors import ConfigError, NumericDegeneracyError
from .metrics import bayes_factor_table, compare_models
from .results import FitResult
from .rng import spawn_generators
from .spec import PRIOR_FAMILIES, BLassoSpec, HorseshoeSpec, PriorSpec, SamplerConfig, SSVSSpec
from .summary import summarize_fit

_HYPERPARAMS: dict[str, tuple[str, ...]] = {
    "horseshoe": tuple(f.name for f in fields(HorseshoeSpec)),
    "blasso": tuple(f.name for f in fields(BLassoSpec)),
    "ssvs": tuple(f.name for f in fields(SSVSSpec)),
}


@dataclass(frozen=True, slots=True)
class RunArtifacts:
    fits: dict[str, FitResult]
    summaries: dict[str, pd.DataFrame]
    comparison: pd.DataFrame
    bayes_factors: pd.DataFrame
    cv_rmse: pd.DataFrame | None


def _require_pyyaml() -> Any:
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "PyYAML is required for the config-driven CLI. Install with 'bvselect-toolkit[cli]'."
        ) from e
    return yaml


def load_config(path: str | Path) -> dict[str, Any]:
    yaml = _require_pyyaml()
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"config file not found: {p}")
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")
    return raw


def _get(cfg: dict[str, Any], key: str, *, default: Any = None, required: bool = False) -> Any:
    if key in cfg:
        return cfg[key]
    if required:
        raise ConfigError(f"missing required key: {key}")
    return default


def _as_mapping(x: Any, *, key: str) -> dict[str, Any]:
    if not isinstance(x, dict):
        raise ConfigError(f"{key} must be a mapping")
    return x


def _as_bool(x: Any, *, key: str) -> bool:
    if isinstance(x, bool):
        return x
    raise ConfigError(f"{key} must be a boolean")


def _as_int(x: Any, *, key: str, min_value: int | None = None) -> int:
    if not isinstance(x, (int, np.integer)) or isinstance(x, bool):
        raise ConfigError(f"{key} must be an integer")
    v = int(x)
    if min_value is not None and v < min_value:
        raise ConfigError(f"{key} must be >= {min_value}")
    return v


def _as_float(x: Any, *, key: str) -> float:
    if not isinstance(x, (float, int, np.floating, np.integer)) or isinstance(x, bool):
        raise ConfigError(f"{key} must be a number")
    return float(x)


def _as_str_list(x: Any, *, key: str) -> list[str]:
    if not isinstance(x, list) or not all(isinstance(v, str) for v in x):
        raise ConfigError(f"{key} must be a list[str]")
    return list(x)


def load_dataset_from_csv(cfg: dict[str, Any], *, base_dir: Path | None = None) -> RegressionData:
    data_cfg = _as_mapping(_get(cfg, "data", required=True), key="data")

    csv_path = Path(_get(data_cfg, "csv_path", required=True))
    if not csv_path.is_absolute() and base_dir is not None and not csv_path.exists():
        csv_path = base_dir / csv_path
    if not csv_path.exists():
        raise ConfigError(f"data.csv_path not found: {csv_path}")

    response = _get(data_cfg, "response", required=True)
    if not isinstance(response, str) or not response:
        raise ConfigError("data.response must be a non-empty string")

    predictors_raw = _get(data_cfg, "predictors", default=None)
    predictors = None if predictors_raw is None else _as_str_list(predictors_raw, key="data.predictors")

    dropna = _as_bool(_get(data_cfg, "dropna", default=True), key="data.dropna")
    standardize = _as_bool(_get(data_cfg, "standardize", default=True), key="data.standardize")

    df = pd.read_csv(csv_path)
    data = RegressionData.from_frame(df, response=response, predictors=predictors, dropna=dropna)
    return data.standardize() if standardize else data


def build_sampler(cfg: dict[str, Any]) -> tuple[SamplerConfig, int | None]:
    sampler_cfg = _as_mapping(_get(cfg, "sampler", required=True), key="sampler")

    n_iter = _as_int(_get(sampler_cfg, "n_iter", default=2000), key="sampler.n_iter", min_value=1)
    burn_in = _as_int(_get(sampler_cfg, "burn_in", default=500), key="sampler.burn_in", min_value=0)
    progress_every = _as_int(
        _get(sampler_cfg, "progress_every", default=1000), key="sampler.progress_every", min_value=1
    )

    seed = _get(sampler_cfg, "seed", default=None)
    seed_i = None if seed is None else _as_int(seed, key="sampler.seed", min_value=0)

    return SamplerConfig(n_iter=n_iter, burn_in=burn_in, progress_every=progress_every), seed_i


def build_prior(family: str, hyp: Any) -> PriorSpec:
    family_l = family.lower()
    if family_l not in PRIOR_FAMILIES:
        raise ConfigError(f"methods keys must be among: {', '.join(PRIOR_FAMILIES)} (got {family!r})")

    if hyp is None:
        hyp = {}
    hyp = _as_mapping(hyp, key=f"methods.{family_l}")

    unknown = [k for k in hyp if k not in _HYPERPARAMS[family_l]]
    if unknown:
        raise ConfigError(f"unknown hyperparameters for methods.{family_l}: {unknown}")

    kwargs: dict[str, Any] = {}
    for name, value in hyp.items():
        if name == "update":
            if not isinstance(value, str):
                raise ConfigError(f"methods.{family_l}.update must be a string")
            kwargs[name] = value
        else:
            kwargs[name] = _as_float(value, key=f"methods.{family_l}.{name}")

    if family_l == "horseshoe":
        return PriorSpec.from_horseshoe(**kwargs)
    if family_l == "blasso":
        return PriorSpec.from_blasso(**kwargs)
    return PriorSpec.from_ssvs(**kwargs)


def build_priors(cfg: dict[str, Any]) -> dict[str, PriorSpec]:
    methods = _get(cfg, "methods", default=None)
    if methods is None:
        return {family: build_prior(family, {}) for family in PRIOR_FAMILIES}
    methods = _as_mapping(methods, key="methods")
    if not methods:
        raise ConfigError("methods must name at least one prior family")
    return {str(family).lower(): build_prior(str(family), hyp) for family, hyp in methods.items()}


def build_summary_config(cfg: dict[str, Any]) -> dict[str, float]:
    sm_cfg = _as_mapping(_get(cfg, "summary", default={}), key="summary")
    lower_q = _as_float(_get(sm_cfg, "lower_q", default=0.025), key="summary.lower_q")
    upper_q = _as_float(_get(sm_cfg, "upper_q", default=0.975), key="summary.upper_q")
    if not (0.0 < lower_q < upper_q < 1.0):
        raise ConfigError("summary quantiles must satisfy 0 < lower_q < upper_q < 1")
    return {"lower_q": lower_q, "upper_q": upper_q}


def build_comparison_config(cfg: dict[str, Any]) -> dict[str, float]:
    cmp_cfg = _as_mapping(_get(cfg, "comparison", default={}), key="comparison")
    prior_sd = _as_float(_get(cmp_cfg, "prior_sd", default=10.0), key="comparison.prior_sd")
    if prior_sd <= 0:
        raise ConfigError("comparison.prior_sd must be > 0")
    return {"prior_sd": prior_sd}


def build_crossval_config(
    cfg: dict[str, Any], *, sampler: SamplerConfig, seed: int | None
) -> dict[str, Any] | None:
    cv_cfg = _get(cfg, "crossval", default=None)
    if cv_cfg is None:
        return None
    cv_cfg = _as_mapping(cv_cfg, key="crossval")

    enabled = _as_bool(_get(cv_cfg, "enabled", default=True), key="crossval.enabled")
    if not enabled:
        return None

    n_splits = _as_int(_get(cv_cfg, "n_splits", default=10), key="crossval.n_splits", min_value=2)
    cv_seed = _get(cv_cfg, "seed", default=seed)
    cv_seed_i = None if cv_seed is None else _as_int(cv_seed, key="crossval.seed", min_value=0)

    n_iter = _as_int(_get(cv_cfg, "n_iter", default=sampler.n_iter), key="crossval.n_iter", min_value=1)
    burn_in = _as_int(_get(cv_cfg, "burn_in", default=min(sampler.burn_in, n_iter - 1)), key="crossval.burn_in", min_value=0)
    cv_sampler = SamplerConfig(n_iter=n_iter, burn_in=burn_in, progress_every=sampler.progress_every)

    return {"n_splits": n_splits, "seed": cv_seed_i, "sampler": cv_sampler}


def build_output_config(cfg: dict[str, Any]) -> dict[str, Any]:
    output_cfg = _as_mapping(_get(cfg, "output", default={}), key="output")
    return {
        "out_dir": str(_get(output_cfg, "out_dir", default="outputs")),
        "save_traces": _as_bool(_get(output_cfg, "save_traces", default=True), key="output.save_traces"),
        "save_plots": _as_bool(_get(output_cfg, "save_plots", default=False), key="output.save_plots"),
        "progress_plots": _as_bool(_get(output_cfg, "progress_plots", default=False), key="output.progress_plots"),
    }


def _prepare_from_config(
    cfg: dict[str, Any],
    *,
    base_dir: Path | None = None,
    emit: Callable[[str, dict[str, Any]], None] | None = None,
) -> tuple[RegressionData, dict[str, PriorSpec], SamplerConfig, int | None, dict[str, Any]]:
    data = load_dataset_from_csv(cfg, base_dir=base_dir)
    if emit is not None:
        emit(
            "summary",
            {
                "kind": "dataset",
                "n": data.n,
                "p": data.p,
                "response": data.response,
                "predictors": list(data.predictors),
            },
        )

    priors = build_priors(cfg)
    if emit is not None:
        emit("summary", {"kind": "methods", "families": list(priors)})

    sampler, seed = build_sampler(cfg)
    if emit is not None:
        emit(
            "summary",
            {"kind": "sampler", "n_iter": sampler.n_iter, "burn_in": sampler.burn_in, "seed": seed},
        )

    settings = {
        "summary": build_summary_config(cfg),
        "comparison": build_comparison_config(cfg),
        "crossval": build_crossval_config(cfg, sampler=sampler, seed=seed),
        "output": build_output_config(cfg),
    }
    if emit is not None and settings["crossval"] is not None:
        cv = settings["crossval"]
        emit(
            "summary",
            {"kind": "crossval", "n_splits": cv["n_splits"], "n_iter": cv["sampler"].n_iter, "seed": cv["seed"]},
        )
    return data, priors, sampler, seed, settings


def validate_config(cfg: dict[str, Any], *, base_dir: Path | None = None) -> None:
    _prepare_from_config(cfg, base_dir=base_dir, emit=None)


def _save_fit_npz(path: Path, fit_res: FitResult) -> None:
    arrays = {
        name: getattr(fit_res, name)
        for name in [
            "beta_draws",
            "tau_sq_draws",
            "lambda_draws",
            "gamma_draws",
            "lambda_sq_draws",
            "intercept_draws",
            "tau_e_draws",
            "delta_draws",
        ]
        if getattr(fit_res, name) is not None
    }
    np.savez_compressed(
        path,
        predictors=np.asarray(fit_res.data.predictors, dtype=object),
        family=np.asarray(fit_res.family),
        completed_iterations=np.asarray(fit_res.completed_iterations),
        **arrays,
    )


def run_from_config(
    config_path: str | Path,
    *,
    out_dir: str | Path | None = None,
    validate_only: bool = False,
    progress: Callable[[str, dict[str, Any]], None] | None = None,
) -> RunArtifacts | None:
    t0_total = time.perf_counter()

    def emit(event: str, payload: dict[str, Any]) -> None:
        if progress is not None:
            progress(event, payload)

    emit("stage_start", {"name": "load_config"})
    t0 = time.perf_counter()
    cfg = load_config(config_path)
    base_dir = Path(config_path).resolve().parent
    emit("stage_end", {"name": "load_config", "elapsed_s": time.perf_counter() - t0})

    emit("stage_start", {"name": "validate_config"})
    t0 = time.perf_counter()
    data, priors, sampler, seed, settings = _prepare_from_config(cfg, base_dir=base_dir, emit=emit)
    emit("stage_end", {"name": "validate_config", "elapsed_s": time.perf_counter() - t0})
    if validate_only:
        emit("validate_end", {"elapsed_s": time.perf_counter() - t0_total})
        return None

    output_cfg = settings["output"]
    snapshots: list[dict[str, Any]] = []

    def on_progress(event: str, payload: dict[str, Any]) -> None:
        if output_cfg["progress_plots"] and payload.get("family") == "ssvs" and "inclusion" in payload:
            snapshots.append(payload)
        emit(event, payload)

    rngs = spawn_generators(seed, list(priors))
    fits: dict[str, FitResult] = {}
    for family, prior in priors.items():
        emit("stage_start", {"name": f"fit:{family}"})
        t0 = time.perf_counter()
        fit_res = fit(data, prior, sampler, rng=rngs[family], progress=on_progress)
        if not fit_res.complete:
            warnings.warn(
                f"{family} chain stopped after {fit_res.completed_iterations} iterations: {fit_res.error}",
                RuntimeWarning,
                stacklevel=2,
            )
        fits[family] = fit_res
        emit("stage_end", {"name": f"fit:{family}", "elapsed_s": time.perf_counter() - t0})

    emit("stage_start", {"name": "summarize"})
    t0 = time.perf_counter()
    summaries = {family: summarize_fit(f, **settings["summary"]) for family, f in fits.items() if f.n_kept > 0}
    usable = {family: f for family, f in fits.items() if f.n_kept > 0}
    if not usable:
        errors = [f.error for f in fits.values() if f.error is not None]
        if errors:
            raise errors[0]
        raise NumericDegeneracyError("no sampler produced any kept draws")
    comparison = compare_models(usable, **settings["comparison"])
    bayes_factors = bayes_factor_table(usable, **settings["comparison"])
    emit("stage_end", {"name": "summarize", "elapsed_s": time.perf_counter() - t0})

    cv_table: pd.DataFrame | None = None
    cv_cfg = settings["crossval"]
    if cv_cfg is not None:
        emit("stage_start", {"name": "crossval"})
        t0 = time.perf_counter()
        cv_table = compare_cv_rmse(
            data,
            priors,
            cv_cfg["sampler"],
            n_splits=cv_cfg["n_splits"],
            seed=cv_cfg["seed"],
        )
        emit("stage_end", {"name": "crossval", "elapsed_s": time.perf_counter() - t0})

    emit("stage_start", {"name": "prepare_output"})
    t0 = time.perf_counter()
    out = Path(out_dir) if out_dir is not None else Path(output_cfg["out_dir"])
    out.mkdir(parents=True, exist_ok=True)
    emit(
        "summary",
        {
            "kind": "output",
            "out_dir": str(out),
            "save_traces": output_cfg["save_traces"],
            "save_plots": output_cfg["save_plots"],
        },
    )
    emit("stage_end", {"name": "prepare_output", "elapsed_s": time.perf_counter() - t0})

    emit("stage_start", {"name": "write_artifacts"})
    t0_write = time.perf_counter()

    def artifact(path: Path, kind: str) -> None:
        emit("artifact", {"path": str(path), "bytes": int(path.stat().st_size), "kind": kind})

    cfg_out = out / "config.yml"
    cfg_out.write_text(Path(config_path).read_text(encoding="utf-8"), encoding="utf-8")
    artifact(cfg_out, "config")

    for family, table in summaries.items():
        p_sum = out / f"summary_{family}.csv"
        table.to_csv(p_sum)
        artifact(p_sum, "table")

    p_cmp = out / "comparison.csv"
    comparison.to_csv(p_cmp)
    artifact(p_cmp, "table")

    p_bf = out / "bayes_factors.csv"
    bayes_factors.to_csv(p_bf)
    artifact(p_bf, "table")

    if cv_table is not None:
        p_cv = out / "cv_rmse.csv"
        cv_table.to_csv(p_cv)
        artifact(p_cv, "table")

    if output_cfg["save_traces"]:
        for family, fit_res in fits.items():
            p_tr = out / f"traces_{family}.npz"
            _save_fit_npz(p_tr, fit_res)
            artifact(p_tr, "fit")

    meta = {
        "n": data.n,
        "p": data.p,
        "seed": seed,
        "n_iter": sampler.n_iter,
        "burn_in": sampler.burn_in,
        "complete": {family: bool(f.complete) for family, f in fits.items()},
        "elapsed_s": float(time.perf_counter() - t0_total),
    }
    p_meta = out / "run_summary.json"
    p_meta.write_text(json.dumps(meta, indent=2, sort_keys=True), encoding="utf-8")
    artifact(p_meta, "meta")

    if output_cfg["save_plots"] or snapshots:
        from .plotting import (
            _require_matplotlib,
            plot_coefficient_intervals,
            plot_coefficient_traces,
            plot_inclusion_probabilities,
            plot_posterior_histograms,
            plot_ssvs_progress,
        )

        plt = _require_matplotlib()
        if output_cfg["save_plots"]:
            fig, _ax = plot_coefficient_intervals(summaries)
            p_int = out / "coefficient_intervals.png"
            fig.savefig(p_int, dpi=200, bbox_inches="tight")
            artifact(p_int, "plot")

            for family, fit_res in usable.items():
                fig, _axes = plot_coefficient_traces(fit_res)
                p_trace = out / f"trace_{family}.png"
                fig.savefig(p_trace, dpi=200, bbox_inches="tight")
                artifact(p_trace, "plot")

                fig, _axes = plot_posterior_histograms(fit_res)
                p_hist = out / f"histogram_{family}.png"
                fig.savefig(p_hist, dpi=200, bbox_inches="tight")
                artifact(p_hist, "plot")

                if fit_res.delta_draws is not None:
                    fig, _ax = plot_inclusion_probabilities(fit_res)
                    p_inc = out / f"inclusion_{family}.png"
                    fig.savefig(p_inc, dpi=200, bbox_inches="tight")
                    artifact(p_inc, "plot")

        for snap in snapshots:
            fig, _ax = plot_ssvs_progress(snap, predictors=data.predictors)
            p_snap = out / f"ssvs_progress_{int(snap['iteration']):06d}.png"
            fig.savefig(p_snap, dpi=200, bbox_inches="tight")
            artifact(p_snap, "plot")

        plt.close("all")

    emit("stage_end", {"name": "write_artifacts", "elapsed_s": time.perf_counter() - t0_write})
    emit("run_end", {"elapsed_s": time.perf_counter() - t0_total})
    return RunArtifacts(
        fits=fits,
        summaries=summaries,
        comparison=comparison,
        bayes_factors=bayes_factors,
        cv_rmse=cv_table,
    )
