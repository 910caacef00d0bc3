"""
cli_entry.py - CLI Entry Point

editren [options] [dir]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..core import EditrenError, RenameOptions, Session, SessionOutcome
from .cli_interactive import confirm_plan, print_failure, wait_for_retry

# Exit codes
EXIT_OK = 0
EXIT_NO_CHANGES = 1     # Failed before anything on disk was touched
EXIT_USAGE = 2          # argparse
EXIT_PARTIAL = 3        # Failed after some changes were applied
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser"""
    parser = argparse.ArgumentParser(
        prog="editren",
        description="Rename (and delete) directory entries by editing their names in your editor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
The editor is taken from $VISUAL, then $EDITOR, then vi.
Each line holds one name; change a line to rename that entry. With
--delete, removing or blanking a line deletes the entry.

Exit status:
  0  success
  1  error, nothing was changed
  3  error after some changes were applied

Examples:
  editren                 # edit the current directory
  editren -d ~/Downloads  # rename and delete
  editren -n -r photos    # confirm before applying, re-edit on errors
"""
    )

    parser.add_argument("directory", nargs="?", default=None,
                        help="Directory to edit (default: current directory)")
    parser.add_argument("-d", "--delete", action="store_true",
                        help="Delete entries whose lines were removed or blanked")
    parser.add_argument("-r", "--retry", action="store_true",
                        help="Re-open the editor after an error instead of aborting")
    parser.add_argument("-n", "--dry-run", action="store_true",
                        help="Show the planned operations and ask for confirmation")
    parser.add_argument("-t", "--trash", action="store_true",
                        help="Move deleted entries to the trash")
    parser.add_argument("-a", "--all", action="store_true",
                        help="Include hidden entries")
    parser.add_argument("--log-dir", type=str, default=None,
                        help="Write JSON reports of the plan and its result to this directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s" if not verbose else "%(name)s %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def options_from_args(args: argparse.Namespace) -> RenameOptions:
    return RenameOptions(
        delete_enabled=args.delete,
        include_hidden=args.all,
        trash=args.trash,
        dry_run=args.dry_run,
        retry=args.retry,
        log_dir=Path(args.log_dir) if args.log_dir else None,
    )


def report_outcome(outcome: SessionOutcome, reported: bool = False) -> int:
    """Print how the session ended and pick the exit code"""
    if outcome.ok:
        if outcome.snapshot is not None and not outcome.snapshot.entries:
            print("No entries to edit.")
        elif not outcome.applied:
            print("No changes.")
        else:
            print(f"Done: {len(outcome.applied)} operations applied.")
        return EXIT_OK

    if not reported:
        print_failure(outcome.error if outcome.error is not None else outcome.result)

    if outcome.changed:
        print("Some changes were applied before the error.", file=sys.stderr)
        return EXIT_PARTIAL
    print("Nothing was changed.", file=sys.stderr)
    return EXIT_NO_CHANGES


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    directory = Path(args.directory).expanduser() if args.directory else Path.cwd()
    options = options_from_args(args)

    session = Session(
        directory,
        options,
        confirm=confirm_plan,
        wait_for_retry=wait_for_retry,
    )

    try:
        outcome = session.run()
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        result = session.outcome.result
        if result is not None and result.interrupted:
            print_failure(result)
        if session.outcome.changed:
            print("Some changes were applied before the interruption.", file=sys.stderr)
            return EXIT_PARTIAL
        return EXIT_INTERRUPTED
    except EditrenError as e:
        # Listing failed: there is nothing to edit or retry
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_NO_CHANGES

    return report_outcome(outcome, reported=outcome.retry_declined)


if __name__ == "__main__":
    sys.exit(main())
