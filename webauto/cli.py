# webauto/cli.py
"""
@file cli.py
@brief Command-line interface for webauto locator maps and timing presets.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional, Tuple

from .actionlogger import ACTION_LOGGER
from .config import TimeConfig, available_presets
from .exceptions import ConfigError
from .repository import Repository
from .timinglogger import TIMING_LOGGER

_TRUTHY = {"1", "true", "yes", "on"}


def _configure_action_logger_from_env() -> None:
    """Configure action logging from environment variables."""
    if os.getenv("WEBAUTO_ACTION_LOGGING", "").lower() not in _TRUTHY:
        ACTION_LOGGER.disable()
        return

    ACTION_LOGGER.configure(
        console=True,
        file_path=os.getenv("WEBAUTO_ACTION_LOG_FILE"),
        level=os.getenv("WEBAUTO_ACTION_LOG_LEVEL", "INFO"),
        format=os.getenv("WEBAUTO_ACTION_LOG_FORMAT", "line"),
        max_traceback_chars=int(os.getenv("WEBAUTO_ACTION_LOG_MAX_TRACEBACK", "4000")),
        sample_retry_events=int(os.getenv("WEBAUTO_ACTION_LOG_SAMPLE_RETRY", "1")),
    )
    ACTION_LOGGER.enable()


def _configure_timing_logger_from_env() -> None:
    """Configure timing logging from environment variables."""
    if os.getenv("WEBAUTO_TIMING_LOGGING", "").lower() not in _TRUTHY:
        TIMING_LOGGER.disable()
        return

    TIMING_LOGGER.configure(
        console=True,
        file_path=os.getenv("WEBAUTO_TIMING_LOG_FILE"),
        level=os.getenv("WEBAUTO_TIMING_LOG_LEVEL", "INFO"),
    )
    TIMING_LOGGER.enable()


def _print_validation_summary(results: List[Tuple[str, Optional[str]]]) -> None:
    print("\nValidation Summary")
    print("-" * 80)
    print(f"{'#':<4} {'Status':<8} Locator map")
    for idx, (path, error) in enumerate(results, start=1):
        status = "OK" if error is None else "INVALID"
        print(f"{idx:<4} {status:<8} {path}")
    print("-" * 80)
    invalid = sum(1 for _, error in results if error is not None)
    print(f"Total: {len(results)}  Valid: {len(results) - invalid}  Invalid: {invalid}")


def _cmd_validate(args: argparse.Namespace) -> int:
    results: List[Tuple[str, Optional[str]]] = []
    for path in args.maps:
        try:
            repo = Repository(path)
            for name in repo.list_elements():
                repo.get(name)
            results.append((path, None))
        except ConfigError as e:
            results.append((path, str(e)))
            print(f"x {path}\n{e}", file=sys.stderr)

    if len(results) > 1 or args.verbose:
        _print_validation_summary(results)
    elif results[0][1] is None:
        print(f"+ Locator map is valid: {results[0][0]}")
    return 0 if all(error is None for _, error in results) else 2


def _cmd_presets(args: argparse.Namespace) -> int:
    if args.elements:
        try:
            config = Repository(args.elements).time_config()
        except ConfigError as e:
            print(f"Error loading locator map: {e}", file=sys.stderr)
            return 2
        print(json.dumps(config.to_dict(), indent=2))
        return 0

    names = [args.name] if args.name else sorted(available_presets())
    resolved = {}
    for name in names:
        try:
            resolved[name] = TimeConfig.build_from(preset=name).to_dict()
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
    print(json.dumps(resolved if not args.name else resolved[args.name], indent=2))
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    try:
        repo = Repository(args.elements)
        names = [args.name] if args.name else repo.list_elements()
        rows = [(name, repo.get(name)) for name in names]
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    for name, locators in rows:
        print(f"{name} [{locators.stability}]")
        for idx, locator in enumerate(locators, start=1):
            print(f"  {idx}. {locator.strategy}: {locator.query}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    argv = argv if argv is not None else sys.argv[1:]
    _configure_action_logger_from_env()
    _configure_timing_logger_from_env()

    p = argparse.ArgumentParser(
        prog="webauto",
        description="webauto - browser synchronization and resilient interaction toolkit",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    valp = sub.add_parser("validate", help="Validate locator map YAML files")
    valp.add_argument("maps", nargs="+", help="Locator map YAML file(s)")
    valp.add_argument("--verbose", action="store_true", help="Always print the summary table")

    prep = sub.add_parser("presets", help="Print resolved timing presets as JSON")
    prep.add_argument("--name", default=None, help="Only this preset (default, fast, slow, ci)")
    prep.add_argument("--elements", "-e", default=None, help="Print the effective timings of a locator map instead")

    showp = sub.add_parser("show", help="List elements of a locator map with their fallback locators")
    showp.add_argument("elements", help="Locator map YAML file")
    showp.add_argument("--name", default=None, help="Only this element")

    args = p.parse_args(argv)

    if args.cmd == "validate":
        return _cmd_validate(args)
    if args.cmd == "presets":
        return _cmd_presets(args)
    if args.cmd == "show":
        return _cmd_show(args)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
