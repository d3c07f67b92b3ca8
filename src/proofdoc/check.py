"""Syntax check: parse every .math file under one or more roots.

Usage:
    proofdoc-check
    proofdoc-check docs/ book/
    proofdoc-check --jobs 4 -v
"""

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .config import CheckConfig, ConfigError, find_config, load_config
from .errors import ParseError
from .parser import Dialect, detect_dialect, parse_file

logger = logging.getLogger(__name__)


def dialect_for(path: Path, config: CheckConfig) -> Dialect:
    return detect_dialect(path, config.manifest_name, config.bibliography_name)


def collect_files(root: Path, config: CheckConfig) -> list[Path]:
    """All source files under root, minus excluded ones, in sorted order."""
    if root.is_file():
        return [root]
    files = sorted(root.rglob(f"*{config.extension}"))
    return [f for f in files if not config.is_excluded(f, root)]


def check_file(path: Path, config: CheckConfig) -> str | None:
    """Parse one file. Returns the error message, or None if it parses."""
    try:
        parse_file(path, dialect_for(path, config))
    except ParseError as e:
        return str(e)
    except (OSError, UnicodeDecodeError) as e:
        return f"cannot read: {e}"
    return None


@dataclass
class RootReport:
    """Outcome of checking one root: parse failures, or found=False when missing."""

    root: Path
    ok: int = 0
    errors: list[tuple[Path, str]] = field(default_factory=list)
    found: bool = True

    @property
    def total(self) -> int:
        return self.ok + len(self.errors)

    def lines(self, verbose: bool = False) -> list[str]:
        if not self.found:
            return [f"  SKIP  {self.root} (not found)"]
        status = "FAIL" if self.errors else "OK"
        lines = [f"  {status:4s}  {self.root}: {self.ok}/{self.total} files parse"]
        if verbose:
            lines += [f"        {f}: {e}" for f, e in self.errors]
        return lines


def check_root(root: Path, config: CheckConfig) -> RootReport:
    """Check all files under root on a pool of config.jobs threads."""
    if not root.exists():
        return RootReport(root, found=False)
    files = collect_files(root, config)
    logger.debug("%s: %d files, %d workers", root, len(files), config.jobs)
    # One buffer per worker; parsers share no state.
    with ThreadPoolExecutor(max_workers=config.jobs) as executor:
        results = list(executor.map(lambda f: check_file(f, config), files))
    errors = [(f, e) for f, e in zip(files, results) if e is not None]
    return RootReport(root, ok=len(files) - len(errors), errors=errors)


def summarize(reports: list[RootReport]) -> list[str]:
    """Grand total across roots, followed by every failure."""
    ok = sum(r.ok for r in reports)
    errors = [error for r in reports for error in r.errors]
    lines = ["", f"  Total: {ok}/{ok + len(errors)} files parse"]
    if errors:
        lines += ["", "  Errors:"] + [f"    {f}: {e}" for f, e in errors]
    else:
        lines.append("  All clear.")
    return lines


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Check that .math files parse")
    parser.add_argument(
        "roots",
        nargs="*",
        type=Path,
        default=[Path.cwd()],
        help="Files or directories to check (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: nearest proofdoc.yaml above the current directory)",
    )
    parser.add_argument("--extension", default=None, help="Source file extension")
    parser.add_argument("--exclude", action="append", default=None, help="Glob to skip (repeatable)")
    parser.add_argument("--jobs", "-j", type=int, default=None, help="Worker threads")
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        config = load_config(args.config or find_config(Path.cwd()))
    except ConfigError as e:
        print(f"  config error: {e}")
        sys.exit(2)

    overrides = {}
    if args.extension is not None:
        overrides["extension"] = args.extension
    if args.exclude is not None:
        overrides["exclude"] = config.exclude + args.exclude
    if args.jobs is not None:
        if args.jobs < 1:
            parser.error("--jobs must be at least 1")
        overrides["jobs"] = args.jobs
    config = config.model_copy(update=overrides)

    reports = []
    for root in args.roots:
        report = check_root(root, config)
        reports.append(report)
        print("\n".join(report.lines(args.verbose)))

    print("\n".join(summarize(reports)))
    if any(r.errors for r in reports):
        sys.exit(1)


if __name__ == "__main__":
    main()
