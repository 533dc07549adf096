"""
CLI to use the tool in the command line.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from flowkeeper import __version__
from flowkeeper.config import load_settings
from flowkeeper.core.sync import FlowSync
from flowkeeper.exceptions import FlowkeeperError
from flowkeeper.schemas.base import SyncResult
from flowkeeper.sources import list_sources


def build_parser():
    parser = argparse.ArgumentParser(
        prog="flowkeeper",
        description="Edit workflow definitions locally without exposing their secrets",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--store",
        type=Path,
        help="Mapping store file (default: ~/.flowkeeper/secrets.json)",
    )
    parser.add_argument(
        "--source",
        choices=list_sources(),
        help="Definition source (default: http)",
    )
    parser.add_argument(
        "--source-root",
        type=Path,
        help="Directory of <flow_id>.json files for the file source",
    )
    parser.add_argument(
        "--backup-dir",
        type=Path,
        help="Where remote definitions are saved before a push",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    pull_parser = subparsers.add_parser(
        "pull", help="Fetch a flow and write its redacted definition"
    )
    pull_parser.add_argument("flow_id", help="Flow identifier at the source")
    pull_parser.add_argument("file", type=Path, help="Local file to write")

    push_parser = subparsers.add_parser(
        "push", help="Restore hidden values and upload an edited definition"
    )
    push_parser.add_argument("flow_id", help="Flow identifier at the source")
    push_parser.add_argument("file", type=Path, help="Edited local file")
    push_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run checks and rehydration without uploading",
    )

    extract_parser = subparsers.add_parser(
        "extract", help="Redact a local definition file"
    )
    extract_parser.add_argument("input", type=Path, help="Definition with real values")
    extract_parser.add_argument("output", type=Path, help="Redacted file to write")

    rehydrate_parser = subparsers.add_parser(
        "rehydrate", help="Restore hidden values of a local file"
    )
    rehydrate_parser.add_argument("file", type=Path, help="Redacted local file")
    rehydrate_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        required=True,
        help="File to write the value-complete definition to",
    )

    check_parser = subparsers.add_parser(
        "check", help="Run the pre-push checks on an edited file"
    )
    check_parser.add_argument("file", type=Path, help="Edited local file")

    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def print_result(result: SyncResult) -> None:
    print(json.dumps(result.to_summary(), indent=2, default=str))


def main(argv=None):
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(
            store_path=args.store,
            source=args.source,
            source_root=args.source_root,
            backup_dir=args.backup_dir,
        )
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    needs_source = args.command in ("pull", "push") and not getattr(args, "dry_run", False)
    try:
        sync = FlowSync.from_settings(settings, with_source=needs_source)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "check":
            try:
                checks = sync.check_file(args.file)
            except FileNotFoundError:
                print(f"Error: File not found: {args.file}", file=sys.stderr)
                sys.exit(1)
            except UnicodeDecodeError as e:
                print(f"Error: {args.file} is not UTF-8 text: {e}", file=sys.stderr)
                sys.exit(1)
            except OSError as e:
                print(f"Error: Cannot read {args.file}: {e}", file=sys.stderr)
                sys.exit(1)
            except FlowkeeperError as e:
                print(f"Error: {e}", file=sys.stderr)
                sys.exit(1)
            print(checks.model_dump_json(indent=2))
            sys.exit(0 if checks.is_valid else 1)

        if args.command == "pull":
            result = sync.pull(args.flow_id, args.file)
        elif args.command == "push":
            result = sync.push(args.flow_id, args.file, dry_run=args.dry_run)
        elif args.command == "extract":
            result = sync.extract_file(args.input, args.output)
        else:
            result = sync.rehydrate_file(args.file, output_path=args.output)
    finally:
        sync.close()

    print_result(result)
    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
