"""
Command-line interface for sdlgen.

Usage:
    python -m sdlgen <command> [options]

Commands:
    generate        Generate the Rust module and metadata trees
    check           Parse and render everything without writing
    list-modules    List the modules a run would produce
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import GeneratorConfig
from .errors import SdlGenError
from .parser import HeaderParser
from .pipeline import Pipeline

logger = logging.getLogger("sdlgen")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


def report_error(error: SdlGenError) -> None:
    """Print an error to stderr, with colour when attached to a terminal."""
    if sys.stderr.isatty():
        print(error.format(color=True), file=sys.stderr)
    else:
        print(error.compact(), file=sys.stderr)


def apply_overrides(config: GeneratorConfig, args: argparse.Namespace) -> None:
    """Apply CLI path overrides; relative paths are taken from the cwd."""
    if getattr(args, "headers", None):
        config.paths.headers_dir = args.headers.resolve()
    if getattr(args, "output", None):
        config.paths.output_dir = args.output.resolve()
    if getattr(args, "metadata_output", None):
        config.paths.metadata_dir = args.metadata_output.resolve()
    if getattr(args, "no_metadata", False):
        config.generation.metadata = False


def cmd_generate(config: GeneratorConfig, write: bool = True) -> int:
    if not config.headers_dir_abs.is_dir():
        print(f"Header directory not found: {config.headers_dir_abs}", file=sys.stderr)
        return 1

    pipeline = Pipeline(config)
    header_paths = pipeline.parser.find_headers()
    if not header_paths:
        print("No header files found.")
        return 1

    result = pipeline.run(header_paths, write=write)

    if write:
        print(f"Generated {result.file_count} files from {len(result.headers)} headers")
    else:
        print(f"Checked {len(result.headers)} headers ({result.file_count} files would be written)")
    return 0


def cmd_list_modules(config: GeneratorConfig) -> int:
    parser = HeaderParser(config)
    if not config.headers_dir_abs.is_dir():
        print(f"Header directory not found: {config.headers_dir_abs}", file=sys.stderr)
        return 1
    for path in parser.find_headers():
        print(f"{parser.module_name(path):<24} {path.name}")
    return 0


def _add_path_args(sub: argparse.ArgumentParser, outputs: bool = True) -> None:
    sub.add_argument(
        "--headers", "-i",
        type=Path,
        help="Directory containing the SDL headers",
    )
    if not outputs:
        return
    sub.add_argument(
        "--output", "-o",
        type=Path,
        help="Output directory for the Rust modules",
    )
    sub.add_argument(
        "--metadata-output",
        type=Path,
        help="Output directory for the metadata modules",
    )
    sub.add_argument(
        "--no-metadata",
        action="store_true",
        help="Don't generate the metadata tree",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sdlgen",
        description="SDL3 Rust Binding Generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate bindings using sdlgen.toml
  python -m sdlgen generate

  # Generate from a header checkout into a crate
  python -m sdlgen generate -i SDL/include/SDL3 -o src/generated

  # Validate headers without writing anything
  python -m sdlgen check

  # Use custom config file
  python -m sdlgen --config sdlgen.toml list-modules
""",
    )

    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file (sdlgen.toml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate the Rust module and metadata trees",
    )
    _add_path_args(gen_parser)

    check_parser = subparsers.add_parser(
        "check",
        help="Parse and render everything without writing",
    )
    _add_path_args(check_parser)

    list_parser = subparsers.add_parser(
        "list-modules",
        help="List the modules a run would produce",
    )
    _add_path_args(list_parser, outputs=False)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = GeneratorConfig.load(args.config)
        apply_overrides(config, args)

        if args.command == "generate":
            return cmd_generate(config)
        elif args.command == "check":
            return cmd_generate(config, write=False)
        elif args.command == "list-modules":
            return cmd_list_modules(config)
    except SdlGenError as e:
        report_error(e)
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
