#!/usr/bin/env python3
"""Run the cropper test suite with Qt in offscreen mode.

Usage:
  python scripts/run_tests_offscreen.py [--timeout SECONDS] [--] [pytest args...]

Examples:
  python scripts/run_tests_offscreen.py tests/test_ui_canvas.py::test_wheel_event_zooms_at_cursor
  python scripts/run_tests_offscreen.py -- -k transform -q
"""

from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys


def main() -> int:
    p = argparse.ArgumentParser(description="Run pytest with Qt offscreen mode")
    p.add_argument("--timeout", type=int, default=300, help="Maximum seconds to allow the whole pytest run")
    p.add_argument("--verbose", action="store_true", help="Don't use -q (quiet)")
    p.add_argument("pytest_args", nargs=argparse.REMAINDER, help="Additional pytest args")
    args = p.parse_args()

    env = os.environ.copy()
    # Offscreen keeps the canvas tests from opening real windows.
    env.setdefault("QT_QPA_PLATFORM", "offscreen")

    base_cmd = [sys.executable, "-m", "pytest"]
    flags = [] if args.verbose else ["-q", "-x", "--maxfail=1"]
    # Per-test timeout via pytest-timeout; explicit pytest args can override it.
    timeout_flag = [f"--timeout={min(300, args.timeout)}"]
    user_args = [a for a in args.pytest_args if a != "--"]
    cmd = base_cmd + flags + timeout_flag + user_args

    print("Running:", " ".join(shlex.quote(c) for c in cmd))
    try:
        completed = subprocess.run(cmd, env=env, check=False, timeout=args.timeout)
        return completed.returncode
    except subprocess.TimeoutExpired:
        print(f"pytest run timed out after {args.timeout} seconds", file=sys.stderr)
        return 124


if __name__ == "__main__":
    raise SystemExit(main())
