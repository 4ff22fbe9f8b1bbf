#!/usr/bin/env python3
"""Run the CommerceRec code quality checks.

Sorts imports with isort, formats with black and runs the test suite.

Usage:
    python scripts/check.py [--check] [--skip-tests]

Options:
    --check: Report formatting differences without rewriting files
    --skip-tests: Do not run pytest
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import List

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

SOURCE_DIRS = ["commercerec", "tests", "scripts"]


def run_step(name: str, cmd: List[str]) -> bool:
    """Run one check and report whether it exited with status 0."""
    print(f"\n--- {name}: {' '.join(cmd)}")
    try:
        returncode = subprocess.run(cmd, cwd=PROJECT_ROOT, check=False).returncode
    except FileNotFoundError:
        print(f"{cmd[0]} is not installed (pip install -e '.[dev,test]')")
        return False

    print(f"{name}: {'ok' if returncode == 0 else f'failed ({returncode})'}")
    return returncode == 0


def build_steps(check_only: bool, skip_tests: bool) -> List[tuple]:
    isort_cmd = ["isort", *SOURCE_DIRS]
    black_cmd = ["black", *SOURCE_DIRS]
    if check_only:
        isort_cmd += ["--check-only", "--diff"]
        black_cmd += ["--check", "--diff"]

    steps = [("isort", isort_cmd), ("black", black_cmd)]
    if not skip_tests:
        steps.append(("pytest", ["pytest", "tests/", "-q"]))
    return steps


def main() -> int:
    parser = argparse.ArgumentParser(description="Run formatting checks and tests")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only report formatting differences",
    )
    parser.add_argument(
        "--skip-tests",
        action="store_true",
        help="Skip running pytest",
    )
    args = parser.parse_args()

    failed = [
        name
        for name, cmd in build_steps(args.check, args.skip_tests)
        if not run_step(name, cmd)
    ]

    if failed:
        print(f"\nFailed checks: {', '.join(failed)}")
        return 1
    print("\nAll checks passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
