"""Plot styling for bvselect.

Semantic colour names keep trace, interval and inclusion plots consistent across
the three samplers.

Usage
-----
>>> from bvselect.theme import bvselect_style, get_color
>>> with bvselect_style():
...     fig, ax = plt.subplots()
...     ax.plot(draws, color=get_color("trace"))
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator


@dataclass(frozen=True, slots=True)
class Palette:
    """Colour palette.

    Attributes
    ----------
    horseshoe, blasso, ssvs : str
        One colour per sampler, used when models are drawn side by side.
    trace : str
        MCMC trace lines.
    histogram : str
        Posterior histogram bars.
    interval : str
        Credible interval segments.
    significant : str
        Markers for coefficients whose interval excludes zero.
    inclusion : str
        SSVS inclusion probability bars.
    reference : str
        Reference lines (zero, thresholds).
    grid, spine, text : str
        Axes furniture.
    """

    horseshoe: str = "#2E86AB"
    blasso: str = "#F18F01"
    ssvs: str = "#A23B72"

    trace: str = "#2E86AB"
    histogram: str = "#2E86AB"
    interval: str = "#555555"
    significant: str = "#C73E1D"
    inclusion: str = "#6B4226"

    reference: str = "#888888"

    grid: str = "#E0E0E0"
    spine: str = "#333333"
    text: str = "#1A1A1A"

    @property
    def sequential(self) -> list[str]:
        return [self.horseshoe, self.blasso, self.ssvs, self.significant, self.inclusion]


@dataclass(frozen=True, slots=True)
class Typography:
    family: str = "sans-serif"
    title_size: float = 11.0
    label_size: float = 9.0
    tick_size: float = 8.0
    legend_size: float = 8.0
    title_weight: str = "semibold"
    label_weight: str = "normal"


@dataclass(frozen=True, slots=True)
class Layout:
    """Figure sizes, line widths and transparency levels."""

    figure_single: tuple[float, float] = (7.0, 3.5)
    figure_wide: tuple[float, float] = (10.0, 4.0)
    figure_panel: tuple[float, float] = (10.0, 8.0)

    line_data: float = 0.8
    line_median: float = 2.0
    line_reference: float = 1.0
    line_grid: float = 0.5

    marker_size: float = 4.0

    band_alpha: float = 0.2
    bar_alpha: float = 0.75

    legend_frameon: bool = False
    tight_layout_pad: float = 0.5

    dpi_display: int = 150
    dpi_save: int = 200


@dataclass(frozen=True, slots=True)
class Theme:
    """Palette, typography and layout bundled together.

    Examples
    --------
    >>> custom = Theme(palette=Palette(trace="#000000"))
    >>> with bvselect_style(custom):
    ...     fig, ax = plt.subplots()
    """

    palette: Palette = field(default_factory=Palette)
    typography: Typography = field(default_factory=Typography)
    layout: Layout = field(default_factory=Layout)
    name: str = "default"

    def to_rcparams(self) -> dict[str, Any]:
        """Convert theme to a matplotlib rcParams dictionary."""
        rc: dict[str, Any] = {
            "figure.figsize": self.layout.figure_single,
            "figure.dpi": self.layout.dpi_display,
            "figure.facecolor": "white",
            "axes.facecolor": "white",
            "axes.edgecolor": self.palette.spine,
            "axes.linewidth": 0.8,
            "axes.grid": True,
            "axes.axisbelow": True,
            "axes.titlesize": self.typography.title_size,
            "axes.titleweight": self.typography.title_weight,
            "axes.labelsize": self.typography.label_size,
            "axes.labelweight": self.typography.label_weight,
            "grid.color": self.palette.grid,
            "grid.linewidth": self.layout.line_grid,
            "xtick.labelsize": self.typography.tick_size,
            "ytick.labelsize": self.typography.tick_size,
            "legend.fontsize": self.typography.legend_size,
            "legend.frameon": self.layout.legend_frameon,
            "lines.linewidth": self.layout.line_data,
            "lines.markersize": self.layout.marker_size,
            "font.family": self.typography.family,
            "font.size": self.typography.label_size,
            "savefig.dpi": self.layout.dpi_save,
            "savefig.bbox": "tight",
            "savefig.facecolor": "white",
        }

        prop_cycle = self._prop_cycle()
        if prop_cycle is not None:
            rc["axes.prop_cycle"] = prop_cycle
        return rc

    def _prop_cycle(self) -> Any:
        try:
            from cycler import cycler

            return cycler(color=self.palette.sequential)
        except ImportError:
            return None


DEFAULT_THEME = Theme()

# IBM Design Language colours
COLORBLIND_THEME = Theme(
    palette=Palette(
        horseshoe="#648FFF",
        blasso="#FE6100",
        ssvs="#DC267F",
        trace="#648FFF",
        histogram="#648FFF",
        interval="#555555",
        significant="#785EF0",
        inclusion="#FFB000",
    ),
    name="colorblind",
)


@contextmanager
def bvselect_style(theme: Theme | None = None) -> Generator[Theme, None, None]:
    """Apply the theme to matplotlib for the duration of the block."""
    try:
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError("matplotlib is required; install with 'bvselect-toolkit[plot]'") from e

    if theme is None:
        theme = DEFAULT_THEME

    original = plt.rcParams.copy()
    try:
        plt.rcParams.update(theme.to_rcparams())
        yield theme
    finally:
        plt.rcParams.update(original)


def get_color(name: str, theme: Theme | None = None) -> str:
    """Semantic colour by name, e.g. ``get_color("ssvs")``."""
    if theme is None:
        theme = DEFAULT_THEME
    return str(getattr(theme.palette, name))


def get_figsize(name: str = "single", theme: Theme | None = None) -> tuple[float, float]:
    if theme is None:
        theme = DEFAULT_THEME
    return tuple(getattr(theme.layout, f"figure_{name}"))


def get_alpha(name: str = "band", theme: Theme | None = None) -> float:
    if theme is None:
        theme = DEFAULT_THEME
    return float(getattr(theme.layout, f"{name}_alpha"))


def get_linewidth(name: str = "data", theme: Theme | None = None) -> float:
    if theme is None:
        theme = DEFAULT_THEME
    return float(getattr(theme.layout, f"line_{name}"))
