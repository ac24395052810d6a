from __future__ import annotations

from typing import Any, Mapping, Sequence

import numpy as np
import pandas as pd

from .results import FitResult
from .theme import (
    DEFAULT_THEME,
    Theme,
    bvselect_style,
    get_alpha,
    get_color,
    get_figsize,
    get_linewidth,
)


def _require_matplotlib() -> Any:
    try:
        import matplotlib.pyplot as plt  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("matplotlib is required; install with 'bvselect-toolkit[plot]'") from e
    return plt


def plot_trace(
    draws: np.ndarray,
    *,
    ax: Any | None = None,
    label: str | None = None,
    theme: Theme | None = None,
) -> tuple[Any, Any]:
    """Plot a simple MCMC trace for a 1D parameter draw sequence.

    Parameters
    ----------
    draws:
        1D array of MCMC draws.
    ax:
        Optional Matplotlib axis.
    label:
        Optional title for the plot.
    theme:
        Optional theme for styling. If None, uses DEFAULT_THEME.

    Returns
    -------
    (fig, ax)
        Matplotlib figure and axis.
    """
    if theme is None:
        theme = DEFAULT_THEME

    with bvselect_style(theme):
        plt = _require_matplotlib()

        x = np.asarray(draws, dtype=float)
        if x.ndim != 1:
            raise ValueError("draws must be 1D")

        if ax is None:
            fig, ax = plt.subplots(figsize=get_figsize("single", theme))
        else:
            fig = ax.figure

        ax.plot(np.arange(x.size, dtype=int), x, color=get_color("trace", theme), lw=get_linewidth("data", theme))
        if label is not None:
            ax.set_title(label)
        fig.tight_layout(pad=theme.layout.tight_layout_pad)
        return fig, ax


def plot_coefficient_traces(fit: FitResult, *, theme: Theme | None = None) -> tuple[Any, Any]:
    """One trace panel per coefficient of a fitted model."""
    if theme is None:
        theme = DEFAULT_THEME

    with bvselect_style(theme):
        plt = _require_matplotlib()

        p = fit.data.p
        ncols = min(3, p)
        nrows = int(np.ceil(p / ncols))
        fig, axes = plt.subplots(nrows, ncols, figsize=(4.0 * ncols, 2.2 * nrows), squeeze=False)
        for j, ax in enumerate(axes.reshape(-1)):
            if j >= p:
                ax.set_visible(False)
                continue
            plot_trace(fit.beta_draws[:, j], ax=ax, label=fit.data.predictors[j], theme=theme)
        fig.suptitle(f"{fit.family} coefficient traces")
        fig.tight_layout(pad=theme.layout.tight_layout_pad)
        return fig, axes


def plot_posterior_histograms(
    fit: FitResult,
    *,
    bins: int = 40,
    theme: Theme | None = None,
) -> tuple[Any, Any]:
    """Histogram of the kept coefficient draws, one panel per predictor."""
    if theme is None:
        theme = DEFAULT_THEME

    with bvselect_style(theme):
        plt = _require_matplotlib()

        p = fit.data.p
        ncols = min(4, p)
        nrows = int(np.ceil(p / ncols))
        fig, axes = plt.subplots(nrows, ncols, figsize=(3.0 * ncols, 2.4 * nrows), squeeze=False)
        for j, ax in enumerate(axes.reshape(-1)):
            if j >= p:
                ax.set_visible(False)
                continue
            ax.hist(
                fit.beta_draws[:, j],
                bins=bins,
                color=get_color("histogram", theme),
                alpha=get_alpha("bar", theme),
            )
            ax.axvline(0.0, color=get_color("reference", theme), lw=get_linewidth("reference", theme))
            ax.set_title(fit.data.predictors[j])
        fig.tight_layout(pad=theme.layout.tight_layout_pad)
        return fig, axes


def plot_coefficient_intervals(
    summaries: Mapping[str, pd.DataFrame],
    *,
    ax: Any | None = None,
    theme: Theme | None = None,
) -> tuple[Any, Any]:
    """Posterior means with credible intervals for one or more models.

    Parameters
    ----------
    summaries:
        Mapping from model name to a table produced by
        :func:`bvselect.summary.summarize_draws`. All tables must share the same index.
    ax:
        Optional Matplotlib axis.
    theme:
        Optional theme for styling.
    """
    if not summaries:
        raise ValueError("summaries must be non-empty")
    if theme is None:
        theme = DEFAULT_THEME

    with bvselect_style(theme):
        plt = _require_matplotlib()

        names = list(next(iter(summaries.values())).index)
        k = len(names)
        m = len(summaries)

        if ax is None:
            fig, ax = plt.subplots(figsize=(8.0, max(3.0, 0.35 * k * max(m, 1))))
        else:
            fig = ax.figure

        y = np.arange(k, dtype=float)
        offsets = np.linspace(-0.25, 0.25, m) if m > 1 else np.zeros(1)
        for i, (off, (model, table)) in enumerate(zip(offsets, summaries.items(), strict=True)):
            t = table.loc[names]
            if hasattr(theme.palette, model):
                color = get_color(model, theme)
            else:
                color = theme.palette.sequential[i % len(theme.palette.sequential)]
            ax.hlines(y + off, t["lower"], t["upper"], color=color, lw=get_linewidth("median", theme))
            ax.plot(t["mean"], y + off, "o", color=color, label=model)
            sig = t["significant"].to_numpy(dtype=bool)
            if np.any(sig):
                ax.plot(
                    t["mean"].to_numpy()[sig],
                    (y + off)[sig],
                    "o",
                    mfc="none",
                    mec=get_color("significant", theme),
                    ms=2.0 * theme.layout.marker_size,
                )

        ax.axvline(0.0, color=get_color("reference", theme), lw=get_linewidth("reference", theme))
        ax.set_yticks(y)
        ax.set_yticklabels(names)
        ax.invert_yaxis()
        ax.legend()
        ax.set_title("Posterior means and credible intervals")
        fig.tight_layout(pad=theme.layout.tight_layout_pad)
        return fig, ax


def plot_inclusion_probabilities(
    fit: FitResult,
    *,
    ax: Any | None = None,
    theme: Theme | None = None,
) -> tuple[Any, Any]:
    """Plot posterior inclusion probabilities for SSVS.

    Parameters
    ----------
    fit:
        Output from :func:`bvselect.api.fit` with ``prior.family='ssvs'``.
    ax:
        Optional Matplotlib axis.
    theme:
        Optional theme for styling. If None, uses DEFAULT_THEME.

    Returns
    -------
    (fig, ax)
        Matplotlib figure and axis.
    """
    if fit.delta_draws is None:
        raise ValueError("fit.delta_draws is required (fit must be run with prior.family='ssvs')")
    return _inclusion_bars(fit.delta_draws.mean(axis=0), fit.data.predictors, ax=ax, theme=theme)


def plot_ssvs_progress(
    snapshot: Mapping[str, Any],
    *,
    predictors: Sequence[str],
    ax: Any | None = None,
    theme: Theme | None = None,
) -> tuple[Any, Any]:
    """Running inclusion probabilities from a ``sampler_progress`` snapshot."""
    probs = np.asarray(snapshot["inclusion"], dtype=float)
    fig, ax = _inclusion_bars(probs, predictors, ax=ax, theme=theme)
    ax.set_title(f"SSVS inclusion probabilities (iteration {int(snapshot['iteration'])})")
    return fig, ax


def _inclusion_bars(
    probs: np.ndarray,
    names: Sequence[str],
    *,
    ax: Any | None,
    theme: Theme | None,
) -> tuple[Any, Any]:
    if theme is None:
        theme = DEFAULT_THEME

    with bvselect_style(theme):
        plt = _require_matplotlib()

        k = probs.shape[0]
        labels = list(names) if len(names) == k else [f"x{i + 1}" for i in range(k)]

        if ax is None:
            fig, ax = plt.subplots(figsize=(8, max(3, 0.3 * k)))
        else:
            fig = ax.figure

        y = np.arange(k, dtype=int)
        ax.barh(y, probs, color=get_color("inclusion", theme), alpha=get_alpha("bar", theme))
        ax.axvline(0.5, color=get_color("reference", theme), lw=get_linewidth("reference", theme), ls="--")
        ax.set_yticks(y)
        ax.set_yticklabels(labels)
        ax.set_xlim(0.0, 1.0)
        ax.invert_yaxis()

        ax.set_title("SSVS inclusion probabilities")
        fig.tight_layout(pad=theme.layout.tight_layout_pad)
        return fig, ax
