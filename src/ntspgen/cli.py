"""Command line interface for ntspgen."""

from __future__ import annotations

import argparse
import json
import struct
import sys
from pathlib import Path

from .logging import configure_logging, get_logger, step
from .reporting import (
    set_reporter,
    get_reporter,
    PlainReporter,
    JsonLinesReporter,
    SilentReporter,
    RichReporter,
    set_verbosity,
)
from .api import (
    BuildOptions,
    build_package,
    inspect_info,
    inspect_package,
    plan_dry_run,
    validate_package,
)
from .packing.constants import INFO_SIGNATURE
from .packing.errors import NtspError
from .utils.paths import collect_inputs

EXIT_OK = 0
EXIT_FAILURE = -1


def _collect(args: argparse.Namespace, need_package: bool):
    inputs = collect_inputs(args.inputs)
    rep = get_reporter()
    for p in inputs.ignored:
        rep.verbose(f"Ignoring {p} (not .dds / .ntsp)")
    if not inputs.textures:
        rep.error("No .dds textures given")
        return None
    if need_package and inputs.package is None:
        rep.error("No .ntsp package path given")
        return None
    return inputs


def _build_cmd(args: argparse.Namespace) -> int:
    inputs = _collect(args, need_package=True)
    if inputs is None:
        return EXIT_FAILURE
    step(f"packing {len(inputs.textures)} texture file(s) into {inputs.package}")
    build_package(
        BuildOptions(
            texture_paths=inputs.textures,
            package_path=inputs.package,
            info_dir=args.info_dir,
        )
    )
    return EXIT_OK


def _plan_cmd(args: argparse.Namespace) -> int:
    inputs = _collect(args, need_package=False)
    if inputs is None:
        return EXIT_FAILURE
    plan, plan_dict = plan_dry_run(inputs.textures)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(plan_dict, indent=2, sort_keys=True))
    else:
        rep.status(
            "Plan summary: "
            + f"entries={plan.entry_count} blobs={plan.blob_count} "
            + f"header_size={plan.header_size} file_size={plan.file_size}"
        )
    return EXIT_OK


def _is_info_file(path: Path) -> bool:
    with path.open("rb") as f:
        head = f.read(4)
    return len(head) == 4 and struct.unpack("<I", head)[0] == INFO_SIGNATURE


def _inspect_cmd(args: argparse.Namespace) -> int:
    path: Path = args.file
    if _is_info_file(path):
        info = inspect_info(path)
        info["descriptor"] = info["descriptor"].hex()
    else:
        info = inspect_package(path)
    print(json.dumps(info, indent=2, sort_keys=True))
    return EXIT_OK


def _validate_cmd(args: argparse.Namespace) -> int:
    rep = get_reporter()
    issues = validate_package(args.package)
    for issue in issues:
        rep.error(issue)
    rep.status(
        f"Validate summary: file={args.package.name} issues={len(issues)}"
    )
    return EXIT_FAILURE if issues else EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ntspgen",
        description="Pack DDS textures into an NTSP stream package",
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

    b = sub.add_parser(
        "build",
        help="Build a package plus one info sidecar per texture",
    )
    b.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help=".dds files, directories of .dds files, and the output .ntsp path",
    )
    b.add_argument(
        "--info-dir",
        dest="info_dir",
        type=Path,
        help="Write sidecars here instead of over the source .dds files",
    )
    b.set_defaults(func=_build_cmd)

    pl = sub.add_parser("plan", help="Compute package layout (dry run, no write)")
    pl.add_argument("inputs", nargs="+", type=Path)
    pl.add_argument("--json", action="store_true", help="Emit JSON plan")
    pl.set_defaults(func=_plan_cmd)

    i = sub.add_parser("inspect", help="Dump a package or info sidecar as JSON")
    i.add_argument("file", type=Path)
    i.set_defaults(func=_inspect_cmd)

    v = sub.add_parser("validate", help="Check package layout invariants")
    v.add_argument("package", type=Path)
    v.set_defaults(func=_validate_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    requested = args.reporter
    if requested == "json":
        # stdout belongs to the JSON document when a command prints one
        to_stderr = getattr(args, "json", False) or args.cmd == "inspect"
        set_reporter(JsonLinesReporter(stream=sys.stderr if to_stderr else None))
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        # plain, or rich without a TTY
        set_reporter(PlainReporter())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except (NtspError, OSError, ValueError) as exc:
        get_reporter().flush()
        get_logger().error("%s", exc)
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
