from __future__ import annotations

import argparse
from pathlib import Path
import shutil
import sys
from typing import Any

from .errors import ConfigError
from .runner import run_from_config

from . import __version__


def _human_bytes(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    f = float(n)
    for u in ["KiB", "MiB", "GiB"]:
        f /= 1024.0
        if f < 1024.0:
            return f"{f:.1f} {u}"
    return f"{f:.1f} TiB"


def _supports_color(no_color: bool) -> bool:
    if no_color:
        return False
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


class _Reporter:
    def __init__(self, *, color: bool, verbose: bool) -> None:
        self._color = color
        self._verbose = verbose
        self._out_dir: Path | None = None
        self._artifacts: list[dict[str, Any]] = []

    def _c(self, code: str, s: str) -> str:
        if not self._color:
            return s
        return f"\x1b[{code}m{s}\x1b[0m"

    def _b(self, s: str) -> str:
        return self._c("1", s)

    def _dim(self, s: str) -> str:
        return self._c("2", s)

    def _ok(self, s: str) -> str:
        return self._c("32", s)

    def _info(self, s: str) -> str:
        return self._c("36", s)

    def _warn(self, s: str) -> str:
        return self._c("33", s)

    def _rule(self, ch: str) -> str:
        width = shutil.get_terminal_size(fallback=(88, 24)).columns
        return self._dim(ch * min(width, 88))

    def header(self, *, command: str, config: str) -> None:
        print(self._b(f"bvselect-toolkit {__version__}"))
        print(self._rule("="))
        print(f"{self._b('Command')}: {command}")
        print(f"{self._b('Config')}:   {config}")
        print(self._rule("="))

    def _print_artifacts(self) -> None:
        print(self._b("Artifacts:"))
        out_dir_res = self._out_dir.resolve() if self._out_dir is not None else None
        rows: list[tuple[str, str, str]] = []
        for a in self._artifacts:
            path_s = str(a.get("path", ""))
            display = path_s
            if out_dir_res is not None:
                try:
                    display = str(Path(path_s).resolve().relative_to(out_dir_res))
                except ValueError:
                    display = Path(path_s).name
            rows.append((str(a.get("kind", "")), display, _human_bytes(int(a.get("bytes", 0)))))

        w_kind = max(4, *(len(r[0]) for r in rows))
        w_file = min(max(4, *(len(r[1]) for r in rows)), 64)
        w_size = max(4, *(len(r[2]) for r in rows))

        print(f"  {'KIND'.ljust(w_kind)}  {'FILE'.ljust(w_file)}  {'SIZE'.rjust(w_size)}")
        for kind, file_s, size_s in rows:
            if len(file_s) > w_file:
                file_s = "…" + file_s[-(w_file - 1) :]
            print(f"  {kind.ljust(w_kind)}  {file_s.ljust(w_file)}  {size_s.rjust(w_size)}")

    def __call__(self, event: str, payload: dict[str, Any]) -> None:
        if event == "stage_start":
            print(f"{self._info('[..]')} {self._b(str(payload.get('name')))}")
            return

        if event == "sampler_progress":
            if self._verbose:
                it = int(payload.get("iteration", 0))
                n_iter = int(payload.get("n_iter", 0))
                print(f"{self._dim('  ->')} {payload.get('family')}: iteration {it}/{n_iter}")
            return

        if event == "stage_end":
            name = str(payload.get("name"))
            elapsed_s = float(payload.get("elapsed_s", 0.0))
            print(f"{self._ok('[OK]')} {self._b(name)} {self._dim(f'({elapsed_s:.3f}s)')}")
            return

        if event == "summary":
            kind = str(payload.get("kind"))

            if kind == "dataset":
                preds = ",".join(str(v) for v in payload.get("predictors", []))
                print(
                    f"{self._b('  dataset')}: n={payload.get('n')}  p={payload.get('p')}  "
                    f"response={payload.get('response')}  predictors=[{preds}]"
                )
                return

            if kind == "methods":
                fams = ",".join(str(v) for v in payload.get("families", []))
                print(f"{self._b('  methods')}: [{fams}]")
                return

            if kind == "sampler":
                print(
                    f"{self._b('  sampler')}: n_iter={payload.get('n_iter')}  burn_in={payload.get('burn_in')}  seed={payload.get('seed')}"
                )
                return

            if kind == "crossval":
                print(
                    f"{self._b('  crossval')}: n_splits={payload.get('n_splits')}  n_iter={payload.get('n_iter')}  seed={payload.get('seed')}"
                )
                return

            if kind == "output":
                out_dir = payload.get("out_dir")
                if isinstance(out_dir, str):
                    self._out_dir = Path(out_dir)
                print(
                    f"{self._b('  output')}:  dir={out_dir}  save_traces={payload.get('save_traces')}  save_plots={payload.get('save_plots')}"
                )
                return

            if self._verbose:
                print(f"{self._warn('  summary')}: {kind}={payload}")
            return

        if event == "artifact":
            self._artifacts.append(payload)
            if self._verbose:
                p = str(payload.get("path"))
                b = int(payload.get("bytes", 0))
                print(f"{self._dim('  ->')} {payload.get('kind')}: {p} {self._dim(_human_bytes(b))}")
            return

        if event == "run_end":
            elapsed_s = float(payload.get("elapsed_s", 0.0))
            print(self._rule("-"))
            print(f"{self._ok('Run complete')} {self._dim(f'({elapsed_s:.3f}s total)')}")
            if self._out_dir is not None:
                print(f"{self._b('Outputs')}: {self._out_dir.resolve()}")
            if self._artifacts:
                self._print_artifacts()
            return

        if event == "validate_end":
            elapsed_s = float(payload.get("elapsed_s", 0.0))
            print(self._rule("-"))
            print(f"{self._ok('Validation complete')} {self._dim(f'({elapsed_s:.3f}s total)')}")
            return


def _add_console_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--quiet", action="store_true", help="Suppress console output")
    p.add_argument("--no-color", action="store_true", help="Disable ANSI colors in console output")
    p.add_argument("--verbose", action="store_true", help="Show sampler progress and written files")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bvselect")
    parser.add_argument("--version", action="version", version=f"bvselect {__version__}")

    sub = parser.add_subparsers(dest="command")

    validate_p = sub.add_parser("validate", help="Validate a YAML config file")
    validate_p.add_argument("config", type=str, help="Path to config.yml")
    _add_console_flags(validate_p)

    run_p = sub.add_parser("run", help="Fit, summarize and compare the configured priors")
    run_p.add_argument("config", type=str, help="Path to config.yml")
    run_p.add_argument(
        "--out",
        type=str,
        default=None,
        help="Override output directory (also copies config.yml there)",
    )
    _add_console_flags(run_p)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    reporter = None
    if not args.quiet:
        reporter = _Reporter(color=_supports_color(bool(args.no_color)), verbose=bool(args.verbose))
        reporter.header(command=f"bvselect {args.command}", config=str(args.config))

    try:
        if args.command == "validate":
            run_from_config(args.config, validate_only=True, progress=reporter)
            if reporter is not None:
                print(f"{reporter._ok('Config OK')}: {args.config}")
            return 0
        if args.command == "run":
            run_from_config(args.config, out_dir=args.out, validate_only=False, progress=reporter)
            return 0
        raise ValueError(f"unknown command: {args.command}")
    except ConfigError as e:
        parser.error(str(e))
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
