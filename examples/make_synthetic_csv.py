from pathlib import Path

import numpy as np
import pandas as pd


def main() -> None:
    rng = np.random.default_rng(2024)

    n = 250
    frame = pd.DataFrame({f"x{j + 1}": rng.standard_normal(n) for j in range(10)})
    frame["y"] = 3.0 * frame["x1"] - 2.0 * frame["x2"] + 0.5 * frame["x7"] + rng.standard_normal(n)

    out = Path(__file__).resolve().parent / "data" / "synthetic.csv"
    out.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(out, index=False)
    print("Wrote", out)


if __name__ == "__main__":
    main()
