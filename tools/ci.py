#!/usr/bin/env python3
# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the local checks before pushing: format, lint, tests with coverage, and build."""

import subprocess
import sys
import time
from pathlib import Path

from yachalk import chalk

# ###############
# Public Interface
# ###############

STEPS: list[tuple[str, list[str]]] = [
    ("Format check", ["ruff", "format", "--check", "src/", "tests/"]),
    ("Lint", ["ruff", "check", "src/", "tests/"]),
    ("Tests", [sys.executable, "-m", "pytest", "--cov=actiontags", "--cov-report=term-missing"]),
    ("Build", [sys.executable, "-m", "build"]),
]


def main() -> int:
    """Run every step, print a colored summary, and return the exit code."""
    results: list[tuple[str, bool, float]] = []

    for name, cmd in STEPS:
        sep = chalk.blue("-" * 60)
        print(f"\n{sep}\n{chalk.blue(name)}: {' '.join(cmd)}")
        start = time.monotonic()
        returncode = subprocess.run(cmd, cwd=Path(__file__).resolve().parent.parent).returncode
        results.append((name, returncode == 0, time.monotonic() - start))

    print()
    failed = [name for name, passed, _ in results if not passed]
    for name, passed, elapsed in results:
        status = chalk.green("PASS") if passed else chalk.red("FAIL")
        print(f"  {status}  {name} ({elapsed:.1f}s)")

    if failed:
        print(chalk.red(f"\n{len(failed)} step(s) failed: {', '.join(failed)}"))
        return 1
    print(chalk.green("\nAll checks passed."))
    return 0


if __name__ == "__main__":
    sys.exit(main())
