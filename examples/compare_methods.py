import numpy as np

from bvselect.api import fit
from bvselect.data.dataset import RegressionData
from bvselect.metrics import bayes_factor_table, compare_models
from bvselect.rng import spawn_generators
from bvselect.spec import PriorSpec, SamplerConfig
from bvselect.summary import summarize_fit


def main() -> None:
    rng = np.random.default_rng(0)

    n, p = 200, 8
    x = rng.standard_normal((n, p))
    beta_true = np.array([2.0, -1.5, 0.0, 0.0, 0.8, 0.0, 0.0, 0.0])
    y = x @ beta_true + 0.5 * rng.standard_normal(n)

    data = RegressionData.from_arrays(x=x, y=y, response="y").standardize()
    sampler = SamplerConfig(n_iter=3000, burn_in=1000)

    priors = {
        "horseshoe": PriorSpec.from_horseshoe(),
        "blasso": PriorSpec.from_blasso(scale=0.1),
        "ssvs": PriorSpec.from_ssvs(inclusion_prob=0.5),
    }
    rngs = spawn_generators(123, list(priors))
    fits = {name: fit(data, prior, sampler, rng=rngs[name]) for name, prior in priors.items()}

    for name, res in fits.items():
        print(f"\n{name}")
        print(summarize_fit(res).round(3))

    print("\nModel comparison")
    print(compare_models(fits).round(2))
    print("\nlog Bayes factors (row over column)")
    print(bayes_factor_table(fits).round(1))


if __name__ == "__main__":
    main()
