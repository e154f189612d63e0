"""Command-line interface for texture index files."""

import argparse
import json
import logging
import os
import sys

import yaml

from .config import BuildConfig, PAA_EXTENSION
from .core import (
    File, read_file, write_file, collect_file_issues, setup_logging,
)
from .core.errors import TexHeadersError

logger = logging.getLogger("texheaders")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID = 2


def _dump(file: File, fmt: str) -> str:
    data = file.to_dict()
    if fmt == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    return json.dumps(data, indent=2)


def _load_dump(path: str) -> File:
    with open(path, "r", encoding="utf-8") as f:
        try:
            if os.path.splitext(path)[1].lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ValueError(f"Failed to parse dump '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{path}: dump must contain a mapping, got {type(data).__name__}")
    try:
        return File.from_dict(data)
    except ValueError as exc:
        raise ValueError(f"{path}: {exc}") from exc


def collect_inputs(paths):
    """Expand directories to the .paa files below them; keep files as given."""
    inputs = []
    for path in paths:
        if os.path.isdir(path):
            found = []
            for root, dirs, files in os.walk(path):
                dirs.sort()
                for name in sorted(files):
                    if os.path.splitext(name)[1].lower() == PAA_EXTENSION:
                        found.append(os.path.join(root, name))
            logger.info("Found %d source texture(s) under %s", len(found), path)
            inputs.extend(found)
        else:
            inputs.append(path)
    return inputs


def cmd_inspect(args) -> int:
    """Print a decoded index as JSON or YAML."""
    file = read_file(args.file)
    print(_dump(file, args.format), end="" if args.format == "yaml" else "\n")
    return EXIT_OK


def cmd_validate(args) -> int:
    """Decode an index and report every invariant violation."""
    file = read_file(args.file)
    issues = collect_file_issues(file)
    if issues:
        print(f"{args.file}: {len(issues)} issue(s)")
        for issue in issues:
            print(f"  - {issue}")
        return EXIT_INVALID
    print(f"{args.file}: OK ({len(file.textures)} texture entries)")
    return EXIT_OK


def cmd_build(args) -> int:
    """Build an index from source textures."""
    from .builder import Builder

    if args.config:
        if not os.path.exists(args.config):
            logger.error("Config file not found: %s", args.config)
            print(f"Error: Config file not found: {args.config}")
            return EXIT_ERROR
        config = BuildConfig.from_yaml(args.config)
        if not args.log_level:
            # Handlers are already attached by main(); only the level changes.
            logger.setLevel(config.log_level.upper())
    else:
        config = BuildConfig()

    # CLI overrides
    if args.base_dir is not None:
        config.base_dir = args.base_dir
    if args.workers is not None:
        config.workers = args.workers
    if args.skip_invalid:
        config.skip_invalid = True
    if args.forward_slashes:
        config.backslash_paths = False
    if args.keep_case:
        config.lowercase_paths = False
    if args.progress:
        config.show_progress = True
    config.validate()

    inputs = collect_inputs(args.inputs)
    if not inputs:
        print("Error: No source textures found")
        logger.error("No source textures found in %s", args.inputs)
        return EXIT_ERROR

    builder = Builder(config)
    builder.append_many(*inputs)
    size = builder.write_file(args.output)
    for issue in builder.issues:
        print(f"Skipped {issue.path}: {issue.error}")
    print(f"Wrote {args.output} ({size} bytes, {len(inputs) - len(builder.issues)} entries)")
    return EXIT_OK


def cmd_pack(args) -> int:
    """Encode a JSON/YAML dump back into a binary index."""
    file = _load_dump(args.dump)
    size = write_file(args.output, file)
    print(f"Wrote {args.output} ({size} bytes)")
    return EXIT_OK


def cmd_generate_config(args) -> int:
    """Write a default build config."""
    dest = args.path or "texheaders.yaml"
    if os.path.isdir(dest):
        dest = os.path.join(dest, "texheaders.yaml")
    BuildConfig().to_yaml(dest)
    logger.info("Generated default %s", dest)
    print(f"Generated default {dest}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="texheaders",
        description="Inspect, validate, and build texHeaders.bin texture indexes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  texheaders inspect texHeaders.bin --format yaml
  texheaders validate texHeaders.bin
  texheaders build ./data -o texHeaders.bin --workers -1
  texheaders pack dump.json -o texHeaders.bin
  texheaders generate-config texheaders.yaml
        """
    )
    parser.add_argument("--log-level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--log-file", help="Also write logs to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("inspect", help="Dump a decoded index")
    p.add_argument("file")
    p.add_argument("--format", "-f", choices=["json", "yaml"], default="json")
    p.set_defaults(func=cmd_inspect)

    p = sub.add_parser("validate", help="Check index invariants")
    p.add_argument("file")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("build", help="Build an index from .paa textures")
    p.add_argument("inputs", nargs="+", help="Source files or directories")
    p.add_argument("--output", "-o", required=True, help="Output index path")
    p.add_argument("--config", "-c", help="Path to config YAML")
    p.add_argument("--base-dir", help="Store entry paths relative to this directory")
    p.add_argument("--workers", "-w", type=int, help="Worker count (-1 = auto)")
    p.add_argument("--skip-invalid", action="store_true",
                   help="Skip failing inputs instead of aborting")
    p.add_argument("--forward-slashes", action="store_true",
                   help="Keep '/' separators in stored paths")
    p.add_argument("--keep-case", action="store_true",
                   help="Do not lowercase stored paths")
    p.add_argument("--progress", action="store_true", help="Show a progress bar")
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("pack", help="Encode a JSON/YAML dump to binary")
    p.add_argument("dump")
    p.add_argument("--output", "-o", required=True)
    p.set_defaults(func=cmd_pack)

    p = sub.add_parser("generate-config", help="Write a default config YAML")
    p.add_argument("path", nargs="?")
    p.set_defaults(func=cmd_generate_config)
    return parser


def main(argv=None):
    """Parse CLI arguments, run one subcommand, and exit with its status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level or "INFO", args.log_file)

    try:
        code = args.func(args)
    except (TexHeadersError, OSError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}")
        code = EXIT_ERROR
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
