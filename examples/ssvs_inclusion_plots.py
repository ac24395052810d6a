from pathlib import Path

import numpy as np

from bvselect.api import fit
from bvselect.data.dataset import RegressionData
from bvselect.plotting import plot_coefficient_traces, plot_inclusion_probabilities
from bvselect.spec import PriorSpec, SamplerConfig


def main() -> None:
    rng = np.random.default_rng(1)

    n, p = 150, 6
    x = rng.standard_normal((n, p))
    y = 1.0 + 1.5 * x[:, 0] - 0.7 * x[:, 3] + 0.4 * rng.standard_normal(n)
    data = RegressionData.from_arrays(x=x, y=y, predictors=[f"x{j + 1}" for j in range(p)], response="y")

    res = fit(data, PriorSpec.from_ssvs(), SamplerConfig(n_iter=4000, burn_in=1000), rng=rng)

    out = Path("outputs") / "ssvs_example"
    out.mkdir(parents=True, exist_ok=True)

    fig, _ax = plot_inclusion_probabilities(res)
    fig.savefig(out / "inclusion.png", dpi=150, bbox_inches="tight")

    fig, _axes = plot_coefficient_traces(res)
    fig.savefig(out / "traces.png", dpi=150, bbox_inches="tight")

    print("Inclusion probabilities:", np.round(res.delta_draws.mean(axis=0), 3))
    print("Wrote plots to", out)


if __name__ == "__main__":
    main()
