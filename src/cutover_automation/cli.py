from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from packaging.version import InvalidVersion

from .cluster import load_cluster
from .config import DEFAULT_CONFIG, load_config
from .connections import connect
from .errors import HostError, flatten
from .executors import LocalExecutor
from .hub import update_conf_files, update_internal_auto_conf_on_mirrors
from .patch import SedSubstituter
from .plan import parse_version
from .types import HostConfig


class Ansi:
    GREEN = "\033[92m"
    RED = "\033[91m"
    RESET = "\033[0m"


def colorize(text: str, color: Optional[str]) -> str:
    if not color:
        return text
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        return text
    return f"{color}{text}{Ansi.RESET}"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rewrite cluster configuration files for an upgrade cutover")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Path to cutover config file (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument("--intermediate", type=Path, help="Intermediate cluster snapshot (TOML)")
    parser.add_argument("--target", type=Path, help="Target cluster snapshot (TOML)")
    parser.add_argument("--version", dest="target_version", help="Target cluster version, e.g. 7.1.0")
    parser.add_argument(
        "--mirrors-dbid",
        action="store_true",
        help="Only rewrite gp_dbid in internal.auto.conf on mirror hosts",
    )
    parser.add_argument("--dry-run", action="store_true", help="Build the directives without editing files")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s %(name)s - %(message)s",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        cfg = load_config(args.config)
        intermediate_path = args.intermediate or cfg.intermediate
        target_path = args.target or cfg.target
        if not intermediate_path or not target_path:
            raise ValueError("both --intermediate and --target snapshots are required")
        intermediate = load_cluster(intermediate_path)
        target = load_cluster(target_path)
        raw_version = args.target_version or cfg.version
        if not raw_version and not args.mirrors_dbid:
            raise ValueError("--version is required")
        version = parse_version(raw_version) if raw_version else None
        hostnames = (intermediate if args.mirrors_dbid else target).hostnames()
        connections = connect(
            cfg.hosts,
            hostnames,
            default_connection=cfg.default_connection,
            dry_run=args.dry_run,
            sed=cfg.sed,
            timeout=cfg.timeout,
            max_workers=cfg.max_workers,
        )
    except (OSError, ValueError, InvalidVersion) as exc:
        print(colorize(f"Invalid input: {exc}", Ansi.RED), file=sys.stderr)
        return 1

    try:
        if args.mirrors_dbid:
            update_internal_auto_conf_on_mirrors(connections, intermediate)
        else:
            coordinator = LocalExecutor(HostConfig(name="localhost"), dry_run=args.dry_run)
            update_conf_files(
                connections,
                version,
                intermediate,
                target,
                substituter=SedSubstituter(coordinator, sed=cfg.sed, timeout=cfg.timeout),
            )
    except Exception as exc:  # noqa: BLE001
        if logging.getLogger().isEnabledFor(logging.DEBUG):
            raise
        failures = flatten(exc)
        for failure in failures:
            print(colorize(f"failed - {failure}", Ansi.RED), file=sys.stderr)
        failed_hosts = sum(1 for failure in failures if isinstance(failure, HostError))
        print(colorize(render_summary(len(connections), failed_hosts, len(failures)), Ansi.RED))
        return 1

    print(colorize(render_summary(len(connections), 0, 0), Ansi.GREEN))
    return 0


def render_summary(hosts: int, failed_hosts: int, failures: int) -> str:
    return f"Hosts: {hosts} | Failed hosts: {failed_hosts} | Failures: {failures}"


if __name__ == "__main__":
    raise SystemExit(main())
