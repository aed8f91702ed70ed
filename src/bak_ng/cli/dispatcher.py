"""CLI dispatcher: argument parsing and routing to command handlers."""

import argparse
import sys
from typing import Callable

from .add import COMPRESSION_CHOICES
from .common import add_verbosity_args


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="bak-ng",
        description="Declarative file and folder backups from a JSON configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )

    # create command
    create_parser = subparsers.add_parser(
        "create",
        help="Create a new backup configuration",
        description="Write an empty configuration pointing at a backup directory",
    )
    create_parser.add_argument("config", metavar="CONFIG", help="Configuration file")
    create_parser.add_argument(
        "-d",
        "--destination",
        metavar="DIR",
        help="Directory where backups are made (asked for when omitted)",
    )

    # add command
    add_parser = subparsers.add_parser(
        "add",
        help="Add a file or folder to a configuration",
        description="Append a new entry; unset options are asked for interactively",
    )
    add_parser.add_argument("path", metavar="PATH", help="File or folder to back up")
    add_parser.add_argument("config", metavar="CONFIG", help="Configuration file")
    add_parser.add_argument("--name", help="Display name")
    add_parser.add_argument("--description", help="Description")
    add_parser.add_argument(
        "--compression",
        choices=COMPRESSION_CHOICES,
        help="Archive type (default: none)",
    )
    add_parser.add_argument("--subfolder", help="Subfolder below the backup directory")
    add_parser.add_argument(
        "--match",
        metavar="WILDCARD",
        help="Only back up folder contents matching WILDCARD (*, ?, ; separated)",
    )
    add_parser.add_argument(
        "--rename",
        metavar="TEMPLATE",
        help="Output name template (/s /d /t /o /n /b)",
    )
    add_parser.add_argument(
        "--keep",
        type=int,
        metavar="N",
        help="Keep only the N newest outputs (requires --rename)",
    )
    add_parser.add_argument(
        "--inactive",
        action="store_true",
        help="Add the entry disabled",
    )
    add_parser.add_argument(
        "--no-input",
        action="store_true",
        help="Don't ask for unset options",
    )

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Execute all configured backups",
        description="Copy or archive every active entry, then prune old outputs",
    )
    run_parser.add_argument("config", metavar="CONFIG", help="Configuration file")
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )
    run_parser.add_argument(
        "--archiver",
        metavar="PATH",
        help="7z binary used for solid archives (default: search PATH)",
    )

    # prune command
    prune_parser = subparsers.add_parser(
        "prune",
        help="Apply retention only",
        description="Delete old outputs beyond each entry's keep count",
    )
    prune_parser.add_argument("config", metavar="CONFIG", help="Configuration file")
    prune_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be deleted without making changes",
    )

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="Show configured entries",
        description="Print the entries of a configuration",
    )
    list_parser.add_argument("config", metavar="CONFIG", help="Configuration file")

    return parser


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __version__

    if args.version:
        print(f"bak-ng {__version__}")
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    # Route to appropriate command handler
    handlers: dict[str, Callable] = {
        "create": cmd_create,
        "add": cmd_add,
        "run": cmd_run,
        "prune": cmd_prune,
        "list": cmd_list,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


def cmd_create(args: argparse.Namespace) -> int:
    """Execute create command."""
    from .create import execute_create

    return execute_create(args)


def cmd_add(args: argparse.Namespace) -> int:
    """Execute add command."""
    from .add import execute_add

    return execute_add(args)


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command."""
    from .run import execute_run

    return execute_run(args)


def cmd_prune(args: argparse.Namespace) -> int:
    """Execute prune command."""
    from .prune import execute_prune

    return execute_prune(args)


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command."""
    from .list_cmd import execute_list

    return execute_list(args)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the bak-ng CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)
