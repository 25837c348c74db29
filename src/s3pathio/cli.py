"""CLI entry point for s3pathio: list, read, copy and remove S3 objects."""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path

from s3pathio import fs, metrics
from s3pathio.buffers import ReadBuffer
from s3pathio.config import Settings, load_settings, settings_from_env
from s3pathio.context import StoreConfig, set_default_config
from s3pathio.errors import S3PathError
from s3pathio.listing import list_dir
from s3pathio.logging_config import configure_logging
from s3pathio.path import S3Path

logger = logging.getLogger("s3pathio")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="s3pathio",
        description="s3pathio - filesystem-style access to S3 objects",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: $S3PATHIO_CONFIG or built-in defaults)",
    )
    parser.add_argument(
        "--endpoint-url",
        type=str,
        default=None,
        help="S3-compatible endpoint URL (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ls_parser = subparsers.add_parser("ls", help="List a directory")
    ls_parser.add_argument("path", help="s3://bucket/prefix/ to list")
    ls_parser.add_argument(
        "--long", "-l", action="store_true", default=False,
        help="Show object sizes",
    )

    cat_parser = subparsers.add_parser("cat", help="Write an object to stdout")
    cat_parser.add_argument("path", help="s3://bucket/key to read")

    cp_parser = subparsers.add_parser("cp", help="Copy between S3 and/or local files")
    cp_parser.add_argument("src", help="Source: s3://bucket/key or a local path")
    cp_parser.add_argument("dst", help="Destination: s3://bucket/key or a local path")

    rm_parser = subparsers.add_parser("rm", help="Delete an object")
    rm_parser.add_argument("path", help="s3://bucket/key to delete")

    mkdir_parser = subparsers.add_parser("mkdir", help="Create a directory marker")
    mkdir_parser.add_argument("path", help="s3://bucket/prefix/ to create")

    stat_parser = subparsers.add_parser("stat", help="Show object metadata")
    stat_parser.add_argument("path", help="s3://bucket/key to inspect")

    return parser.parse_args(argv)


def _resolve_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config) if args.config else settings_from_env()

    if args.endpoint_url is not None:
        settings.client.endpoint_url = args.endpoint_url
    if args.log_level is not None:
        settings.logging.level = args.log_level
    if args.log_format is not None:
        settings.logging.format = args.log_format
    return settings


def _ls(path: S3Path, long: bool, out) -> None:
    for child in list_dir(path, join=True):
        if not long:
            print(child.key[len(path.key) :], file=out)
        elif child.is_dir_key:
            print(f"{'PRE':>12}  {child.key[len(path.key):]}", file=out)
        else:
            print(f"{child.stat().size:>12}  {child.key[len(path.key):]}", file=out)


def _stat(path: S3Path, out) -> None:
    head = fs.stat(path)
    print(f"path: {path}", file=out)
    print(f"size: {head.size}", file=out)
    print(f"etag: {head.etag or ''}", file=out)
    print(f"content_type: {head.content_type or ''}", file=out)


def run(args: argparse.Namespace, config: StoreConfig) -> None:
    """Execute one parsed subcommand against ``config``."""
    out = sys.stdout

    if args.command == "ls":
        _ls(S3Path.parse(args.path, config), args.long, out)

    elif args.command == "cat":
        with ReadBuffer(S3Path.parse(args.path, config)) as reader:
            shutil.copyfileobj(reader, out.buffer)
        out.flush()

    elif args.command == "cp":
        src = S3Path.parse(args.src, config) if args.src.startswith("s3://") else args.src
        dst = S3Path.parse(args.dst, config) if args.dst.startswith("s3://") else args.dst
        fs.copy(src, dst)

    elif args.command == "rm":
        fs.remove(S3Path.parse(args.path, config))

    elif args.command == "mkdir":
        fs.mkpath(S3Path.parse(args.path, config))

    elif args.command == "stat":
        _stat(S3Path.parse(args.path, config), out)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the s3pathio CLI.

    Loads configuration, applies CLI overrides, configures logging and
    runs the subcommand. Returns the process exit code.
    """
    args = parse_args(argv)

    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    try:
        settings = _resolve_settings(args)
    except FileNotFoundError:
        logger.error("Config file not found: %s", args.config)
        return 1
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        return 1

    configure_logging(level=settings.logging.level, fmt=settings.logging.format)
    if settings.metrics.enabled:
        metrics.init_metrics()

    config = StoreConfig(settings)
    set_default_config(config)

    try:
        run(args, config)
    except S3PathError as exc:
        logger.error("%s failed: %s", args.command, exc.message)
        return 1
    except FileNotFoundError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1

    return 0


def entry_point() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    entry_point()
