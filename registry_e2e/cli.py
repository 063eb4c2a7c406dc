#!/usr/bin/env python3
"""
Vehicle Registry E2E Runner

Script aliases that forward to pytest with the suite's preset flags.

Usage:
    registry-e2e all [--env staging] [--workers 4] [--retries 2]
    registry-e2e browser firefox [--device "iPhone 13"]
    registry-e2e suite vehicles
    registry-e2e report
    registry-e2e suite auth --dry-run -- -k logout

Arguments after ``--`` are passed to pytest unchanged.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from .exceptions import RegistryE2EError
from .settings import SUPPORTED_BROWSERS, Settings, load_settings

logger = logging.getLogger(__name__)

E2E_TESTS_DIR = Path(__file__).parent.parent / "tests" / "e2e"

# Suite name -> pytest marker expression
SUITES = {
    "auth": "auth",
    "profile": "profile",
    "vehicles": "vehicles",
    "negative": "negative",
    "smoke": "smoke",
}


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _workers(value: str):
    if value == "auto":
        return value
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1 or 'auto', got {number}")
    return number


def build_pytest_args(
    settings: Settings,
    browsers: Sequence[str],
    marker: Optional[str] = None,
    device: Optional[str] = None,
    headed: bool = False,
    workers=None,
    retries: Optional[int] = None,
    html_report: bool = False,
    tests_dir: Path = None,
    extra: Sequence[str] = (),
) -> List[str]:
    """
    Translate a runner invocation into a pytest argument list.

    CLI values win over settings; settings fill everything else.
    """
    args = [str(tests_dir or E2E_TESTS_DIR)]

    if marker:
        args += ["-m", marker]

    for browser in browsers:
        args += ["--browser", browser]

    device = device or settings.device
    if device:
        args += ["--device", device]

    if headed or not settings.headless:
        args.append("--headed")
    if settings.slow_mo:
        args += ["--slowmo", str(settings.slow_mo)]

    args += ["--base-url", settings.base_url]

    workers = settings.workers if workers is None else workers
    if workers != 1:
        args += ["-n", str(workers)]

    retries = settings.retries if retries is None else retries
    if retries:
        args += ["--reruns", str(retries)]
        if settings.retry_delay:
            args += ["--reruns-delay", str(settings.retry_delay)]

    args += [
        "--output",
        str(settings.playwright_output_dir),
        "--screenshot",
        settings.screenshot,
        "--video",
        settings.video,
        "--tracing",
        settings.tracing,
        f"--junitxml={settings.report_junit}",
    ]

    if html_report:
        args += [
            f"--html={settings.report_html}",
            "--self-contained-html",
            "--json-report",
            f"--json-report-file={settings.report_json}",
        ]

    args += list(extra)
    return args


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="registry-e2e",
        description="Run the vehicle registry end-to-end suite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--env", help="Environment profile (default: $E2E_ENV or local)")
    common.add_argument("--headed", action="store_true", help="Show the browser window")
    common.add_argument("--workers", type=_workers, help="Parallel workers (int or 'auto')")
    common.add_argument("--retries", type=_positive_int, help="Reruns for failing tests")
    common.add_argument(
        "--dry-run", action="store_true", help="Print the pytest command instead of running it"
    )
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")
    subparsers.required = True

    subparsers.add_parser("all", parents=[common], help="Run every test on the browser matrix")

    browser_parser = subparsers.add_parser("browser", parents=[common], help="Run on one browser")
    browser_parser.add_argument("name", choices=SUPPORTED_BROWSERS)
    browser_parser.add_argument("--device", help='Playwright device profile, e.g. "iPhone 13"')

    suite_parser = subparsers.add_parser("suite", parents=[common], help="Run one feature area")
    suite_parser.add_argument("name", choices=sorted(SUITES))

    subparsers.add_parser(
        "report", parents=[common], help="Run every test and write HTML and JUnit reports"
    )

    return parser


def split_passthrough(argv: Sequence[str]):
    """Split ``argv`` at the first ``--`` into (runner args, pytest args)."""
    argv = list(argv)
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1 :]
    return argv, []


def main(argv: Sequence[str] = None) -> int:
    runner_argv, extra = split_passthrough(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(runner_argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        settings = load_settings(args.env)
    except RegistryE2EError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if args.env:
        # Picked up again by conftest in this process and in xdist workers
        os.environ["E2E_ENV"] = args.env

    browsers = list(settings.browsers)
    marker = None
    device = None
    if args.command == "browser":
        browsers = [args.name]
        device = args.device
    elif args.command == "suite":
        marker = SUITES[args.name]

    pytest_args = build_pytest_args(
        settings,
        browsers=browsers,
        marker=marker,
        device=device,
        headed=args.headed,
        workers=args.workers,
        retries=args.retries,
        html_report=args.command == "report",
        extra=extra,
    )

    if args.dry_run:
        print("pytest " + " ".join(pytest_args))
        return 0

    settings.artifacts_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Running {args.command} against {settings.base_url} ({settings.environment})")
    exit_code = int(pytest.main(pytest_args))

    if args.command == "report":
        logger.info(f"HTML report: {settings.report_html}")
        logger.info(f"JUnit report: {settings.report_junit}")
        logger.info(f"JSON report: {settings.report_json}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
