"""Command line interface for gltfgraph."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import load_asset, summarize_asset
from .config import LoaderConfig, load_config
from .errors import GltfError
from .extensions import flags_from_names
from .logging import configure_logging, step
from .options import Category, Options, category_from_name, combine
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    Reporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)


def _loader_config(args: argparse.Namespace) -> LoaderConfig:
    """Merge the optional config file with command line flags."""
    config = load_config(args.config) if args.config else LoaderConfig()
    if args.extension:
        config.extensions |= flags_from_names(args.extension)
    if args.category:
        config.categories = combine(
            (category_from_name(n) for n in args.category), Category.NONE
        )
    if args.decompose:
        config.options |= Options.DECOMPOSE_NODE_MATRICES
    if args.allow_double:
        config.options |= Options.ALLOW_DOUBLE
    if args.no_asset_check:
        config.options |= Options.DONT_REQUIRE_VALID_ASSET_MEMBER
    return config


def _load(args: argparse.Namespace, validate: bool):
    try:
        config = _loader_config(args)
    except (OSError, ValueError) as e:
        get_reporter().error(f"Invalid configuration: {e}")
        return None
    try:
        return load_asset(
            args.file,
            extensions=config.extensions,
            options=config.options,
            categories=config.categories,
            validate=validate or config.validate,
        )
    except GltfError as e:
        get_reporter().error(f"{args.file}: {e.code.value}: {e.message}")
        return None


def _inspect_cmd(args: argparse.Namespace) -> int:
    step(f"inspecting {args.file}")
    asset = _load(args, validate=False)
    if asset is None:
        return 1
    summary = summarize_asset(asset)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        rep.section("Asset")
        for key, count in summary["counts"].items():
            if count:
                rep.status(f"{key}: {count}")
        if summary["default_scene"] is not None:
            rep.status(f"default scene: {summary['default_scene']}")
    return 0


def _validate_cmd(args: argparse.Namespace) -> int:
    step(f"validating {args.file}")
    asset = _load(args, validate=True)
    if asset is None:
        return 1
    get_reporter().status(f"{args.file}: valid")
    return 0


def _add_loader_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", type=Path)
    p.add_argument(
        "--config", type=Path, help="Loader configuration file (YAML or JSON)"
    )
    p.add_argument(
        "--extension",
        action="append",
        default=[],
        metavar="NAME",
        help="Enable a glTF extension by name (repeatable)",
    )
    p.add_argument(
        "--category",
        action="append",
        default=[],
        metavar="NAME",
        help="Parse only this category and its dependencies (repeatable)",
    )
    p.add_argument(
        "--decompose",
        action="store_true",
        help="Decompose node matrices into translation/rotation/scale",
    )
    p.add_argument(
        "--allow-double",
        dest="allow_double",
        action="store_true",
        help="Accept accessors with double precision components",
    )
    p.add_argument(
        "--no-asset-check",
        dest="no_asset_check",
        action="store_true",
        help="Do not require a valid 'asset' member",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gltfgraph", description="glTF 2.0 loader and validator"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    i = sub.add_parser("inspect", help="Load a glTF/GLB file and summarize it")
    _add_loader_args(i)
    i.add_argument("--json", action="store_true", help="Emit JSON summary")
    i.set_defaults(func=_inspect_cmd)

    v = sub.add_parser("validate", help="Parse and validate a glTF/GLB file")
    _add_loader_args(v)
    v.set_defaults(func=_validate_cmd)

    return p


def _make_reporter(name: str) -> Reporter:
    if name == "json":
        return JsonLinesReporter()
    if name == "silent":
        return SilentReporter()
    if name == "rich" and sys.stderr.isatty():
        return RichReporter()
    # rich falls back to plain without a TTY
    return PlainReporter()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    set_reporter(_make_reporter(args.reporter))
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
