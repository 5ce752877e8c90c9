"""Command line interface.

Usage:
    concat-file [-v] render MANIFEST [--profile NAME] [--target PATH] [--json]
    concat-file config [--profile NAME] [--json]
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from concat_file.catalog import CompileReport
from concat_file.config import resolve_config, summarize_origins
from concat_file.core.exceptions import ConcatFileError
from concat_file.core.sources import FilesystemContentSource
from concat_file.executor import create_executor
from concat_file.manifest import load_manifest
from concat_file.telemetry import MemoryReporter

# ruff: noqa: T201


def _render(args: argparse.Namespace) -> int:
    # -vv also times the pipeline stages
    overrides = {"telemetry": True} if args.verbose >= 2 else None
    resolved = resolve_config(overrides, profile=args.profile)
    manifest = load_manifest(args.manifest)
    root = resolved.source_root or manifest.base_dir
    reporter = MemoryReporter()
    executor = create_executor(
        resolved.to_frozen(), FilesystemContentSource(root), reporters=(reporter,)
    )
    catalog = manifest.build_catalog()
    report = asyncio.run(catalog.compile(executor))
    if resolved.telemetry:
        print(reporter.get_report(), file=sys.stderr)

    selected = _select(report, args.target)
    if args.json:
        print(json.dumps(selected, indent=2, default=str))
    else:
        for path, entry in selected.items():
            if "error" in entry:
                print(f"==> {path} (failed)\n{entry['error']}", file=sys.stderr)
                continue
            print(f"==> {path} ({entry['ensure']})")
            print(entry.get("content", ""), end="")
    failed = [p for p, e in selected.items() if "error" in e]
    return 1 if failed else 0


def _select(report: CompileReport, target: str | None) -> dict[str, dict[str, Any]]:
    entries: dict[str, dict[str, Any]] = {
        path: resource.to_dict() for path, resource in report.synced.items()
    }
    for path, error in report.failed.items():
        entries[path] = {"error": str(error), "state": report.states[path].name}
    if target is not None:
        if target not in entries:
            raise ConcatFileError(f"No target declared for {target}")
        return {target: entries[target]}
    return entries


def _config(args: argparse.Namespace) -> int:
    resolved = resolve_config(profile=args.profile)
    if args.json:
        values = resolved._asdict()
        origin = dict(values.pop("origin"))
        info = {
            "values": values,
            "origin": origin,
            "summary": summarize_origins(origin),
        }
        print(json.dumps(info, indent=2, default=str))
    else:
        print("=== Effective Configuration ===")
        print(resolved.audit())
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the `concat-file` command."""
    parser = argparse.ArgumentParser(
        prog="concat-file",
        description="Assemble files from ordered fragments",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity"
    )
    parser.add_argument("--profile", help="Configuration profile to use")

    # Accepted after the subcommand too; SUPPRESS keeps a top-level value
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--profile", default=argparse.SUPPRESS, help="Configuration profile to use"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser(
        "render", parents=[common], help="Compile a manifest and show the results"
    )
    render.add_argument("manifest", help="YAML or TOML manifest file")
    render.add_argument("--target", help="Only show the target with this path")
    render.add_argument("--json", action="store_true", help="Output JSON descriptors")
    render.set_defaults(func=_render)

    config = sub.add_parser(
        "config", parents=[common], help="Show the effective configuration"
    )
    config.add_argument("--json", action="store_true", help="Output as JSON")
    config.set_defaults(func=_config)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    try:
        return args.func(args)
    except ConcatFileError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
