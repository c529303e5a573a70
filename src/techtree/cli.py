"""
techtree.cli - Command-line interface.

Main entry point for the techtree CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from techtree import __version__
from techtree.commands import (
    config_cmd,
    edit,
    format_cmd,
    init,
    query,
    serve,
    validate,
)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="techtree",
        description="Dependency graphs of work items, with undo/redo editing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  techtree validate tree.json               # Check a tree file
  techtree format tree.json --in-place      # Rewrite in canonical order
  techtree roots tree.json                  # Nodes nothing depends on
  techtree show tree.json --root rocket     # One root and its dependencies
  techtree edit tree.json add --title "Fuel" --under rocket
  techtree edit tree.json depend rocket fuel
  techtree serve tree.json                  # REST API for a local editor

Configuration:
  techtree init                 # Create .techtree.toml in current directory
  techtree config path          # Show config file location
  techtree config show          # View all settings

For detailed command help: techtree <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"techtree {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output (show tracebacks)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a tree file",
    )
    validate_parser.add_argument("file", type=Path, help="Tree JSON file")
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat dependency cycles as errors",
    )
    validate_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output the result as JSON",
    )

    # format command
    format_parser = subparsers.add_parser(
        "format",
        help="Write a tree in canonical (sorted) form",
    )
    format_parser.add_argument("file", type=Path, help="Tree JSON file")
    format_target = format_parser.add_mutually_exclusive_group()
    format_target.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write to PATH instead of stdout",
        metavar="PATH",
    )
    format_target.add_argument(
        "--in-place",
        action="store_true",
        help="Rewrite the input file",
    )
    format_parser.add_argument(
        "--with-reverse",
        action="store_true",
        help="Also emit each node's dependedOnBy list",
    )

    # roots command
    roots_parser = subparsers.add_parser(
        "roots",
        help="List nodes nothing depends on",
    )
    roots_parser.add_argument("file", type=Path, help="Tree JSON file")
    roots_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="List nodes and their dependencies",
    )
    show_parser.add_argument("file", type=Path, help="Tree JSON file")
    show_parser.add_argument(
        "--root",
        help="Only show this node and what it depends on",
        metavar="ID",
    )
    show_parser.add_argument(
        "--search",
        help="Only show nodes whose title or description contains TERM",
        metavar="TERM",
    )
    show_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")

    # root-of command
    root_of_parser = subparsers.add_parser(
        "root-of",
        help="Find a root that depends on a node",
    )
    root_of_parser.add_argument("file", type=Path, help="Tree JSON file")
    root_of_parser.add_argument("node_id", help="Node ID")

    # edit command
    edit_parser = subparsers.add_parser(
        "edit",
        help="Apply one edit to a tree file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  techtree edit tree.json add --title "Launch pad" --under rocket
  techtree edit tree.json retitle launch-pad "Launch Site"
  techtree edit tree.json describe launch-site "Needs a permit"
  techtree edit tree.json depend rocket launch-site
  techtree edit tree.json undepend rocket launch-site
  techtree edit tree.json delete launch-site
""",
    )
    edit_parser.add_argument("file", type=Path, help="Tree JSON file")
    edit_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check the edit without writing the file",
    )
    edit_subparsers = edit_parser.add_subparsers(dest="edit_action")

    edit_add = edit_subparsers.add_parser("add", help="Add a node")
    edit_add.add_argument("--title", help="Title (default: generated)")
    edit_add.add_argument(
        "--under",
        help="Make this existing node depend on the new one",
        metavar="ID",
    )

    edit_retitle = edit_subparsers.add_parser("retitle", help="Change a title (and its id)")
    edit_retitle.add_argument("node_id", help="Node ID")
    edit_retitle.add_argument("title", help="New title")

    edit_rename = edit_subparsers.add_parser("rename", help="Change a node id")
    edit_rename.add_argument("node_id", help="Node ID")
    edit_rename.add_argument("new_id", help="New node ID")

    edit_describe = edit_subparsers.add_parser("describe", help="Set a description")
    edit_describe.add_argument("node_id", help="Node ID")
    edit_describe.add_argument("text", help="Description text")

    edit_depend = edit_subparsers.add_parser("depend", help="Add a dependency")
    edit_depend.add_argument("node_id", help="Node that gains the dependency")
    edit_depend.add_argument("dependency_id", help="Node it will depend on")

    edit_undepend = edit_subparsers.add_parser("undepend", help="Remove a dependency")
    edit_undepend.add_argument("node_id", help="Node that loses the dependency")
    edit_undepend.add_argument("dependency_id", help="Node it no longer depends on")

    edit_delete = edit_subparsers.add_parser("delete", help="Delete a node")
    edit_delete.add_argument("node_id", help="Node ID")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve a tree over a REST API",
    )
    serve_parser.add_argument("file", type=Path, help="Tree JSON file (created on save)")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Create .techtree.toml configuration",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing configuration",
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="View configuration",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_action")
    config_subparsers.add_parser("show", help="Show merged configuration")
    config_subparsers.add_parser("path", help="Show config file location")

    # completion command
    completion_parser = subparsers.add_parser(
        "completion",
        help="Generate shell completion scripts",
    )
    completion_parser.add_argument(
        "--shell",
        choices=["bash", "zsh", "fish", "tcsh"],
        help="Generate script for a specific shell",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install techtree[completion]
    # Then activate: eval "$(register-python-argcomplete techtree)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        # Dispatch to command handlers
        if args.command == "validate":
            return validate.run(args)
        elif args.command == "format":
            return format_cmd.run(args)
        elif args.command in ("roots", "show", "root-of"):
            return query.run(args)
        elif args.command == "edit":
            return edit.run(args)
        elif args.command == "serve":
            return serve.run(args)
        elif args.command == "init":
            return init.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        elif args.command == "completion":
            return completion_command(args)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def completion_command(args: argparse.Namespace) -> int:
    """Handle completion command - generate shell completion scripts."""
    try:
        import argcomplete  # noqa: F401
    except ImportError:
        print("Error: argcomplete not installed.", file=sys.stderr)
        print("Install with: pip install techtree[completion]", file=sys.stderr)
        return 1

    shell = args.shell

    if shell:
        import subprocess

        cmd = ["register-python-argcomplete"]
        if shell in ("fish", "tcsh"):
            cmd.append(f"--shell={shell}")
        cmd.append("techtree")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            print("Error: register-python-argcomplete not found.", file=sys.stderr)
            print("Make sure argcomplete is properly installed.", file=sys.stderr)
            return 1
        if result.returncode != 0:
            print(f"Error generating completion script: {result.stderr}", file=sys.stderr)
            return 1
        print(result.stdout)
    else:
        print("""
Shell Completion Setup for techtree
===================================

Bash (add to ~/.bashrc):
  eval "$(register-python-argcomplete techtree)"

Zsh (add to ~/.zshrc):
  autoload -U bashcompinit
  bashcompinit
  eval "$(register-python-argcomplete techtree)"

Fish (add to ~/.config/fish/config.fish):
  register-python-argcomplete --shell fish techtree | source

Generate script for a specific shell:
  techtree completion --shell bash
""")

    return 0


def version_command(args: argparse.Namespace) -> int:
    """Handle version command."""
    print(f"techtree {__version__}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
