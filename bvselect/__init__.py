from .data.dataset import RegressionData
from .api import fit
from .errors import ConfigError, DegeneratePosteriorError, NumericDegeneracyError
from .metrics import bayes_factor, compare_models, dic, waic
from .results import FitResult
from .rng import spawn_generators
from .spec import BLassoSpec, HorseshoeSpec, PriorSpec, SamplerConfig, SSVSSpec
from .summary import inclusion_probabilities, summarize_draws, summarize_fit
from .theme import (
    COLORBLIND_THEME,
    DEFAULT_THEME,
    Layout,
    Palette,
    Theme,
    Typography,
    bvselect_style,
    get_alpha,
    get_color,
    get_figsize,
    get_linewidth,
)

__all__ = [
    # Core API
    "RegressionData",
    "PriorSpec",
    "HorseshoeSpec",
    "BLassoSpec",
    "SSVSSpec",
    "SamplerConfig",
    "FitResult",
    "fit",
    "spawn_generators",
    # Summaries and model comparison
    "summarize_draws",
    "summarize_fit",
    "inclusion_probabilities",
    "dic",
    "waic",
    "bayes_factor",
    "compare_models",
    # Errors
    "ConfigError",
    "NumericDegeneracyError",
    "DegeneratePosteriorError",
    # Theme system
    "COLORBLIND_THEME",
    "DEFAULT_THEME",
    "Layout",
    "Palette",
    "Theme",
    "Typography",
    "bvselect_style",
    "get_alpha",
    "get_color",
    "get_figsize",
    "get_linewidth",
    # Metadata
    "__version__",
]

__version__ = "0.1.0"
