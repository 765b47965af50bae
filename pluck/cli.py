"""Command-line interface for pluck."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pluck import __version__


def _load_dotenv_files() -> None:
    """Load ``.env`` from the working directory without overriding the environment."""
    from dotenv import load_dotenv

    load_dotenv(Path.cwd() / ".env", override=False)


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--jobs-root",
        type=Path,
        required=True,
        help="Directory holding exported projects and their builds",
    )
    parser.add_argument(
        "--project",
        required=True,
        help="Project to pick from; may end in /NAME=value,... to filter by parameters",
    )
    parser.add_argument(
        "--selector",
        help='Build selector spec, e.g. \'{"type": "status", "status": "successful"}\' '
        "or '<Specific buildNumber=2>' (default: last stable build)",
    )
    parser.add_argument(
        "--filter",
        help="Build filter spec applied to every proposed build",
    )
    parser.add_argument(
        "--copier-project",
        help="Project of the build performing the copy",
    )
    parser.add_argument(
        "--copier-build",
        type=int,
        help="Number of the build performing the copy",
    )
    parser.add_argument(
        "--env",
        action="append",
        metavar="NAME=VALUE",
        help="Run-time variable (repeatable)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pluck",
        description="Pick a historical build and copy its artifacts",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"pluck {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Settings path (default: ~/.config/pluck/settings.json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log selection decisions",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    pick_parser = subparsers.add_parser(
        "pick",
        help="Show which build a selector picks",
    )
    _add_selection_arguments(pick_parser)

    copy_parser = subparsers.add_parser(
        "copy",
        help="Copy artifacts of the picked build",
    )
    _add_selection_arguments(copy_parser)
    copy_parser.add_argument(
        "--target",
        type=Path,
        required=True,
        help="Destination directory",
    )
    copy_parser.add_argument(
        "--includes",
        default="",
        help="Comma-separated include patterns (default: **)",
    )
    copy_parser.add_argument(
        "--excludes",
        default="",
        help="Comma-separated exclude patterns",
    )
    copy_parser.add_argument(
        "--src-base-dir",
        help="Directory inside the artifacts to copy from",
    )
    copy_parser.add_argument(
        "--flatten",
        action="store_true",
        help="Drop directory structure of copied files",
    )
    copy_parser.add_argument(
        "--optional",
        action="store_true",
        help="Succeed when no build or no file is found",
    )
    copy_parser.add_argument(
        "--no-fingerprint",
        action="store_true",
        help="Skip computing digests of copied files",
    )
    copy_parser.add_argument(
        "--registry-db",
        type=Path,
        help="Fingerprint registry DB path",
    )

    fingerprints_parser = subparsers.add_parser(
        "fingerprints",
        help="List builds that produced or consumed a digest",
    )
    fingerprints_parser.add_argument(
        "--registry-db",
        type=Path,
        required=True,
        help="Fingerprint registry DB path",
    )
    fingerprints_parser.add_argument(
        "--digest",
        required=True,
        help="Hex digest to look up",
    )
    fingerprints_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        _load_dotenv_files()
        # Import here to avoid slow startup
        from .settings import default_config_path, load_settings

        settings = load_settings(args.config or default_config_path())

        if args.command == "pick":
            from .infrastructure.project_store import FileProjectStore
            from .commands.pick import run_pick
            store = FileProjectStore(args.jobs_root)
            return run_pick(args, store=store, settings=settings)
        elif args.command == "copy":
            from .infrastructure.project_store import FileProjectStore
            from .infrastructure.fingerprint_registry import FingerprintRegistry
            from .commands.copy import run_copy
            store = FileProjectStore(args.jobs_root)
            registry = FingerprintRegistry(args.registry_db) if args.registry_db else None
            try:
                return run_copy(args, store=store, settings=settings, registry=registry)
            finally:
                if registry is not None:
                    registry.close()
        elif args.command == "fingerprints":
            from .infrastructure.fingerprint_registry import FingerprintRegistry
            from .commands.fingerprints import run_fingerprints
            registry = FingerprintRegistry(args.registry_db)
            try:
                return run_fingerprints(args, registry=registry)
            finally:
                registry.close()
        else:
            parser.print_help()
            return 1
    except Exception as exc:  # pragma: no cover - exercised in CLI tests
        from .errors import exit_code_for_exception

        print(str(exc), file=sys.stderr)
        return exit_code_for_exception(exc)


if __name__ == "__main__":
    sys.exit(main())
