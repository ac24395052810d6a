from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..errors import ConfigError


@dataclass(frozen=True, slots=True)
class RegressionData:
    """A lightweight container for a single-response regression problem.

    The design matrix ``x`` has shape ``(n, p)`` where:

    - ``n`` is the number of observations
    - ``p`` is the number of predictors

    and the response ``y`` has shape ``(n,)``.

    Parameters
    ----------
    x:
        Numeric design matrix of shape ``(n, p)``. No intercept column; the samplers
        expect standardized predictors.
    y:
        Numeric response of shape ``(n,)``.
    predictors:
        Predictor names of length ``p``.
    response:
        Response name.

    Notes
    -----
    The class is immutable (``frozen=True``) and performs validation in
    :meth:`~RegressionData.__post_init__`. Missing values are rejected with
    :class:`~bvselect.errors.ConfigError`.
    """
    x: np.ndarray
    y: np.ndarray
    predictors: list[str]
    response: str = "y"

    @staticmethod
    def from_arrays(
        *,
        x: np.ndarray,
        y: np.ndarray,
        predictors: Sequence[str] | None = None,
        response: str = "y",
    ) -> "RegressionData":
        """Construct a :class:`RegressionData` from array-like inputs.

        Parameters
        ----------
        x:
            Array of shape ``(n, p)``. A 1D array is treated as a single predictor.
        y:
            Array of shape ``(n,)`` or ``(n, 1)``.
        predictors:
            Optional predictor names. Defaults to ``x1..xp``.
        response:
            Response name.

        Raises
        ------
        ConfigError
            If shapes are inconsistent or inputs contain missing values.
        """
        xa = np.asarray(x, dtype=float)
        if xa.ndim == 1:
            xa = xa.reshape(-1, 1)
        ya = np.asarray(y, dtype=float)
        if ya.ndim == 2 and ya.shape[1] == 1:
            ya = ya[:, 0]

        if predictors is None:
            names = [f"x{j + 1}" for j in range(xa.shape[1] if xa.ndim == 2 else 0)]
        else:
            names = [str(v) for v in predictors]

        return RegressionData(x=xa, y=ya, predictors=names, response=str(response))

    @staticmethod
    def from_frame(
        frame: pd.DataFrame,
        *,
        response: str,
        predictors: Sequence[str] | None = None,
        dropna: bool = False,
    ) -> "RegressionData":
        """Construct a :class:`RegressionData` from a :class:`pandas.DataFrame`.

        Parameters
        ----------
        frame:
            Source data.
        response:
            Column holding the response.
        predictors:
            Predictor columns. Defaults to every column except ``response``.
        dropna:
            Drop rows with any missing value in the selected columns. When False,
            missing values raise :class:`~bvselect.errors.ConfigError`.
        """
        if response not in frame.columns:
            raise ConfigError(f"response column not found: {response}")

        if predictors is None:
            cols = [str(c) for c in frame.columns if c != response]
        else:
            cols = list(predictors)
        missing = [c for c in cols if c not in frame.columns]
        if missing:
            raise ConfigError(f"predictor columns not found: {missing}")
        if response in cols:
            raise ConfigError("response must not also be listed as a predictor")

        sub = frame.loc[:, cols + [response]]
        if dropna:
            sub = sub.dropna(axis=0, how="any")

        try:
            x = sub.loc[:, cols].to_numpy(dtype=float, copy=True)
            y = sub.loc[:, response].to_numpy(dtype=float, copy=True)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"non-numeric data in selected columns: {e}") from e

        return RegressionData(x=x, y=y, predictors=cols, response=str(response))

    def __post_init__(self) -> None:
        x = np.asarray(self.x, dtype=float)
        y = np.asarray(self.y, dtype=float)
        if x.ndim != 2:
            raise ConfigError("x must be a 2D array of shape (n, p)")
        if y.ndim != 1:
            raise ConfigError("y must be a 1D array of shape (n,)")
        if x.shape[0] != y.shape[0]:
            raise ConfigError("x and y must have the same number of rows")
        if x.shape[0] < 2 or x.shape[1] < 1:
            raise ConfigError("need at least 2 observations and 1 predictor")

        if len(self.predictors) != x.shape[1]:
            raise ConfigError("len(predictors) must equal x.shape[1]")
        if len(set(self.predictors)) != len(self.predictors):
            raise ConfigError("predictor names must be unique")

        if np.any(np.isnan(x)):
            bad = [self.predictors[j] for j in np.flatnonzero(np.any(np.isnan(x), axis=0))]
            raise ConfigError(f"predictors contain missing values: {bad}")
        if np.any(np.isnan(y)):
            raise ConfigError("response contains missing values")
        if np.any(~np.isfinite(x)) or np.any(~np.isfinite(y)):
            raise ConfigError("inputs must be finite")

        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)
        object.__setattr__(self, "predictors", list(self.predictors))

    @property
    def n(self) -> int:
        """Number of observations (rows)."""
        return int(self.x.shape[0])

    @property
    def p(self) -> int:
        """Number of predictors (columns)."""
        return int(self.x.shape[1])

    def standardize(self) -> "RegressionData":
        """Return a copy with every predictor and the response z-scored.

        Uses the sample standard deviation (``ddof=1``). Constant columns cannot be
        scaled and raise :class:`~bvselect.errors.ConfigError`.
        """
        sd_x = self.x.std(axis=0, ddof=1)
        if np.any(sd_x <= 0):
            bad = [self.predictors[j] for j in np.flatnonzero(sd_x <= 0)]
            raise ConfigError(f"cannot standardize constant predictors: {bad}")
        sd_y = float(self.y.std(ddof=1))
        if sd_y <= 0:
            raise ConfigError("cannot standardize a constant response")

        x = (self.x - self.x.mean(axis=0)) / sd_x
        y = (self.y - float(self.y.mean())) / sd_y
        return RegressionData(x=x, y=y, predictors=list(self.predictors), response=self.response)

    def subset(self, rows: np.ndarray) -> "RegressionData":
        """Return the observations at ``rows`` (integer or boolean index)."""
        idx = np.asarray(rows)
        return RegressionData(x=self.x[idx], y=self.y[idx], predictors=list(self.predictors), response=self.response)
