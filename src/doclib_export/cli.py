"""Command-line entry point: ``doclib-export``.

Usage:
    doclib-export -s s3://bucket/sites/hr ./out "Shared Documents" Policies --recurse
    doclib-export -s /mnt/libraries ./out Docs --on-existing confirm -v
    doclib-export --config export.toml ./out Docs
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import signal
import sys
import tomllib
from typing import TYPE_CHECKING

from doclib_export import __version__
from doclib_export._cancel import CancellationToken
from doclib_export._config import AppConfig, ExistingOutputPolicy, ExportConfig
from doclib_export._errors import ExportCancelled, ExportError
from doclib_export._export import Exporter
from doclib_export._registry import open_site

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doclib-export",
        description="Export document libraries from a remote site to local disk.",
    )
    parser.add_argument("output", help="existing local directory to export into")
    parser.add_argument("containers", nargs="+", metavar="container", help="library (top-level folder) to export")
    parser.add_argument("-s", "--site", help="site address: local path, file://, s3://bucket/prefix or sftp://host/path")
    parser.add_argument("-c", "--config", help="TOML file with [site] and [export] tables")
    parser.add_argument(
        "-o",
        "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="backend option, e.g. endpoint_url=http://localhost:9000 or anon=true; values are read as TOML "
        "when they parse, else as text (repeatable)",
    )
    parser.add_argument("-r", "--recurse", action="store_true", default=None, help="descend into subfolders")
    parser.add_argument(
        "--on-existing",
        choices=[p.value for p in ExistingOutputPolicy],
        help="what to do when a library's output directory already exists (default: abort)",
    )
    parser.add_argument(
        "--no-overwrite-files",
        dest="overwrite_files",
        action="store_false",
        default=None,
        help="fail instead of replacing an existing local file",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="NAME",
        help="additional folder name to skip at every depth (repeatable)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="count", default=0, help="more log output (-vv for debug)")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="only log errors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _parse_value(value: str) -> object:
    """Read an option value the way the config file would type it.

    ``false`` becomes a bool, ``22`` an int and ``{ connect_timeout = 5 }``
    a table; anything that is not a TOML value stays a plain string.
    """
    try:
        return tomllib.loads(f"value = {value}")["value"]
    except tomllib.TOMLDecodeError:
        return value


def _parse_options(pairs: Sequence[str]) -> dict[str, object]:
    options: dict[str, object] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Backend option must be KEY=VALUE, got {pair!r}")
        options[key.strip()] = _parse_value(value.strip())
    return options


def _merge_config(args: argparse.Namespace) -> tuple[str, dict[str, object], ExportConfig]:
    """Combine the config file with command-line overrides."""
    app = AppConfig.load(args.config) if args.config else AppConfig()
    address = args.site or app.site.address
    if not address:
        raise ValueError("No site address given (use --site or [site] address in the config file)")
    options = {**app.site.options, **_parse_options(args.option)}

    export_config = app.export
    overrides: dict[str, object] = {}
    if args.recurse is not None:
        overrides["recurse"] = args.recurse
    if args.on_existing is not None:
        overrides["on_existing"] = ExistingOutputPolicy(args.on_existing)
    if args.overwrite_files is not None:
        overrides["overwrite_files"] = args.overwrite_files
    if args.exclude:
        overrides["excluded_folders"] = export_config.excluded_folders | frozenset(args.exclude)
    if overrides:
        export_config = dataclasses.replace(export_config, **overrides)  # type: ignore[arg-type]
    export_config.validate()
    return address, options, export_config


def _prompt(container: str, directory: Path) -> bool:
    try:
        answer = input(f"Output directory {directory} already exists. Export {container!r} into it? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)

    try:
        address, options, export_config = _merge_config(args)
    except (OSError, TypeError, ValueError) as exc:
        print(f"doclib-export: error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    log.debug("Exporting %s from %s with %s", args.containers, address, export_config)
    cancel = CancellationToken()
    previous_handler = signal.signal(signal.SIGTERM, lambda signum, frame: cancel.cancel())
    exporter: Exporter | None = None
    try:
        with open_site(address, options) as site:
            exporter = Exporter(site, args.output, config=export_config, confirm=_prompt, cancel=cancel)
            exporter.run(args.containers)
            for result in exporter.results:
                if result.skipped:
                    print(f"{result.container}: skipped")
                else:
                    print(f"{result.container}: {len(result.records)} file(s) -> {result.manifest_path}")
            return EXIT_OK
    except ValueError as exc:
        print(f"doclib-export: error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except ExportError as exc:
        print(f"doclib-export: {type(exc).__name__}: {exc}", file=sys.stderr)
        if exporter is not None and exporter.results:
            done = ", ".join(repr(r.container) for r in exporter.results if not r.skipped)
            if done:
                print(f"doclib-export: already exported and left in place: {done}", file=sys.stderr)
        print("doclib-export: files written before the failure were not removed", file=sys.stderr)
        return EXIT_CANCELLED if isinstance(exc, ExportCancelled) else EXIT_FAILED
    finally:
        signal.signal(signal.SIGTERM, previous_handler)


if __name__ == "__main__":
    sys.exit(main())
