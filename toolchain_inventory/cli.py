"""
Command line interface.

Usage:
    toolchain-inventory parse [FILE]          # Parse a pasted transcript (stdin by default)
    toolchain-inventory scan                  # Run probes and parse their output
    toolchain-inventory list                  # Show the saved inventory
    toolchain-inventory packages [FILE]       # Parse `pip list` output
    toolchain-inventory remove ID             # Drop a record from the inventory
    toolchain-inventory command uninstall ID  # Print (never run) an action command
    toolchain-inventory install TYPE          # Show install commands for a family
    toolchain-inventory env set KEY VALUE     # Print an environment variable command
    toolchain-inventory add TYPE VERSION      # Record an installation by hand
    toolchain-inventory pip uninstall NAME    # Print a pip maintenance command
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .commands import (
    CommandPlan,
    install_command,
    install_options,
    pip_mirror_command,
    pip_uninstall_command,
    set_env_var_command,
    set_global_command,
    uninstall_command,
    unset_env_var_command,
)
from .config import Config, load_config, validate_config
from .environment import resolve_platform
from .inventory import Inventory
from .logging_config import get_logger, setup_logging
from .models import Platform, ToolRecord
from .parser import parse_environment_transcript, parse_package_listing
from .render import print_summary, render_packages, render_records
from .scanner import scan_environment
from .snapshot import get_snapshot_path, load_inventory, write_snapshot


def _read_input(path: str | None) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8", errors="replace")


def _platform(args: argparse.Namespace, config: Config) -> Platform:
    return resolve_platform(args.platform or config.platform, verbose=args.verbose)


def _snapshot_path(args: argparse.Namespace, config: Config) -> Path:
    if args.snapshot:
        return Path(args.snapshot)
    return get_snapshot_path(config.snapshot_file)


def _emit_records(args: argparse.Namespace, records: list[ToolRecord]) -> None:
    if args.json:
        print(json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False))
        return
    render_records(records)
    print_summary(records)


def _emit_plan(args: argparse.Namespace, plan: CommandPlan) -> None:
    if args.json:
        print(json.dumps(plan.to_dict(), indent=2, ensure_ascii=False))
        return
    warning = "  [destructive]" if plan.destructive else ""
    print(f"# {plan.title}{warning}", file=sys.stderr)
    print(f"# {plan.description}", file=sys.stderr)
    print(plan.command)


def _import_and_save(args: argparse.Namespace, config: Config, records: list[ToolRecord]) -> None:
    if args.no_save:
        return
    path = _snapshot_path(args, config)
    inventory = load_inventory(path)
    added = inventory.import_records(records)
    write_snapshot(inventory.records, path)
    get_logger().info(f"Saved {len(added)} new installation(s) to {path} ({len(inventory)} total)")


def cmd_parse(args: argparse.Namespace, config: Config) -> int:
    """Parse a transcript from a file or stdin."""
    text = _read_input(args.file)
    if not text.strip():
        print("No input to parse", file=sys.stderr)
        return 1

    platform = _platform(args, config)
    records = parse_environment_transcript(text, platform, config.path_templates(platform))
    if not records:
        print(
            "No tools detected in the text. Try pasting output from 'brew list --versions' or 'java -version'.",
            file=sys.stderr,
        )
        return 1

    _emit_records(args, records)
    _import_and_save(args, config, records)
    return 0


def cmd_scan(args: argparse.Namespace, config: Config) -> int:
    """Run probe commands and parse their combined output."""
    platform = _platform(args, config)
    transcript = scan_environment(
        platform,
        timeout=config.scan.timeout_seconds,
        max_workers=config.scan.max_workers,
        verbose=args.verbose,
    )
    if args.show_transcript:
        print(transcript, file=sys.stderr)

    records = parse_environment_transcript(transcript, platform, config.path_templates(platform))
    if not records:
        print("Scan finished but found no recognizable versions.", file=sys.stderr)
        return 1

    _emit_records(args, records)
    _import_and_save(args, config, records)
    return 0


def cmd_list(args: argparse.Namespace, config: Config) -> int:
    """Show the saved inventory."""
    inventory = load_inventory(_snapshot_path(args, config))
    if not len(inventory):
        print("# Inventory is empty - run 'toolchain-inventory scan' or 'parse' first", file=sys.stderr)
        return 1
    _emit_records(args, inventory.records)
    return 0


def cmd_packages(args: argparse.Namespace, config: Config) -> int:
    """Parse a pip package listing."""
    packages = parse_package_listing(_read_input(args.file))
    if args.json:
        print(json.dumps([p.to_dict() for p in packages], indent=2, ensure_ascii=False))
    else:
        render_packages(packages)
    return 0


def cmd_remove(args: argparse.Namespace, config: Config) -> int:
    """Remove a record from the saved inventory."""
    path = _snapshot_path(args, config)
    inventory = load_inventory(path)
    removed = inventory.remove(args.id)
    if removed is None:
        print(f"No installation with id {args.id}", file=sys.stderr)
        return 1
    write_snapshot(inventory.records, path)
    get_logger().info(f"Removed {removed.display_name} {removed.version}")
    return 0


def cmd_command(args: argparse.Namespace, config: Config) -> int:
    """Print the command for an action on an inventory record."""
    inventory = load_inventory(_snapshot_path(args, config))
    record = inventory.get(args.id)
    if record is None:
        print(f"No installation with id {args.id}", file=sys.stderr)
        return 1

    platform = _platform(args, config)
    try:
        if args.action == "uninstall":
            plan = uninstall_command(record, platform)
        else:
            plan = set_global_command(record, platform)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    _emit_plan(args, plan)
    return 0


def cmd_install(args: argparse.Namespace, config: Config) -> int:
    """List install commands for a tool family."""
    try:
        options = install_options(args.type)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([install_command(o).to_dict() for o in options], indent=2, ensure_ascii=False))
        return 0
    for option in options:
        print(f"{option.label:<20} {option.command:<32} # {option.description}")
    return 0


def cmd_add(args: argparse.Namespace, config: Config) -> int:
    """Add a manually entered installation to the saved inventory."""
    path = _snapshot_path(args, config)
    inventory = load_inventory(path)
    try:
        record = inventory.add_manual(args.type, args.version, args.path or "", args.name)
    except ValueError:
        print(f"Unknown tool type: {args.type}", file=sys.stderr)
        return 1
    write_snapshot(inventory.records, path)

    if args.json:
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(record.identifier)
    return 0


def cmd_pip(args: argparse.Namespace, config: Config) -> int:
    """Print a pip maintenance command."""
    if args.pip_action == "uninstall":
        plan = pip_uninstall_command(args.name)
    else:
        plan = pip_mirror_command(args.url)
    _emit_plan(args, plan)
    return 0


def cmd_env(args: argparse.Namespace, config: Config) -> int:
    """Print a command setting or unsetting an environment variable."""
    platform = _platform(args, config)
    try:
        if args.env_action == "set":
            plan = set_env_var_command(args.key, args.value, platform)
        else:
            plan = unset_env_var_command(args.key, platform)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    _emit_plan(args, plan)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toolchain-inventory",
        description="Developer toolchain inventory (Java, Python, Node.js, Go)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument(
        "--platform",
        choices=("auto", "posix", "windows"),
        help="Platform hint for path conventions (default: from config, else auto)",
    )
    parser.add_argument("--json", action="store_true", help="JSON output")
    parser.add_argument("--snapshot", help="Inventory snapshot file")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Parse a pasted transcript")
    p.add_argument("file", nargs="?", help="Transcript file (default: stdin)")
    p.add_argument("--no-save", action="store_true", help="Do not import into the snapshot")
    p.set_defaults(func=cmd_parse)

    p = sub.add_parser("scan", help="Run probe commands and parse their output")
    p.add_argument("--no-save", action="store_true", help="Do not import into the snapshot")
    p.add_argument("--show-transcript", action="store_true", help="Print the collected transcript")
    p.set_defaults(func=cmd_scan)

    p = sub.add_parser("list", help="Show the saved inventory")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("packages", help="Parse `pip list` output")
    p.add_argument("file", nargs="?", help="Listing file (default: stdin)")
    p.set_defaults(func=cmd_packages)

    p = sub.add_parser("remove", help="Remove an installation from the inventory")
    p.add_argument("id", help="Installation id")
    p.set_defaults(func=cmd_remove)

    p = sub.add_parser("command", help="Print the command for an action on an installation")
    p.add_argument("action", choices=("uninstall", "set-global"))
    p.add_argument("id", help="Installation id")
    p.set_defaults(func=cmd_command)

    p = sub.add_parser("install", help="Show install commands for a tool family")
    p.add_argument("type", help="Tool family (java, python, go, node)")
    p.set_defaults(func=cmd_install)

    p = sub.add_parser("env", help="Print environment variable commands")
    env_sub = p.add_subparsers(dest="env_action", required=True)
    e = env_sub.add_parser("set")
    e.add_argument("key")
    e.add_argument("value")
    e = env_sub.add_parser("unset")
    e.add_argument("key")
    p.set_defaults(func=cmd_env)

    p = sub.add_parser("add", help="Add an installation manually")
    p.add_argument("type", help="Tool family (java, python, go, node)")
    p.add_argument("version")
    p.add_argument("--path", help="Install path")
    p.add_argument("--name", help="Display name")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("pip", help="Print pip maintenance commands")
    pip_sub = p.add_subparsers(dest="pip_action", required=True)
    e = pip_sub.add_parser("uninstall")
    e.add_argument("name")
    e = pip_sub.add_parser("mirror")
    e.add_argument("url")
    p.set_defaults(func=cmd_pip)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config, verbose=args.verbose)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    setup_logging(level=config.log_level, log_file=config.log_file, verbose=args.verbose)
    for warning in validate_config(config):
        get_logger().warning(warning)

    return args.func(args, config)


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
