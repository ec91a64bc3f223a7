"""
CLI for inspecting hub descriptors

Usage:
    python -m hive_proxy list servers.json                   # Tool names per server
    python -m hive_proxy check servers.json                  # Compile every tool
    python -m hive_proxy check servers.json --tool X         # One tool in detail
    python -m hive_proxy check servers.json --strict         # Exit 1 on unchecked input
    python -m hive_proxy validate servers.json X '{"a": 1}'  # Validate call arguments
    python -m hive_proxy validate servers.json X @args.json  # ...read from a file
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from .descriptors import DescriptorError, ServerDescriptor, load_server_descriptors
from .registry import ToolRegistry
from .reporter import (
    format_json_report,
    generate_summary_report,
    generate_tool_report,
    generate_validation_report,
    print_summary_report,
    print_terminal_report,
    print_validation_report,
)
from .utils import configure_logging


def _load(path: str) -> Optional[list[ServerDescriptor]]:
    try:
        return load_server_descriptors(path)
    except OSError as e:
        print(f"Error: cannot read {path}: {e.strerror or e}", file=sys.stderr)
    except DescriptorError as e:
        print(f"Error: {e}", file=sys.stderr)
    return None


def _build_registry(servers: list[ServerDescriptor]) -> ToolRegistry:
    registry = ToolRegistry()
    for server in servers:
        registry.register_server(server)
    return registry


def _tool_not_found(name: str, registry: ToolRegistry) -> int:
    print(f"Error: Tool '{name}' not found", file=sys.stderr)
    print(f"Available tools: {', '.join(sorted(registry.names()))}", file=sys.stderr)
    return 1


def _read_arguments(text: str) -> Any:
    if text.startswith("@"):
        text = Path(text[1:]).read_text(encoding="utf-8")
    return json.loads(text)


def cmd_list(args: argparse.Namespace) -> int:
    """List the tools of every server in the descriptor file."""
    servers = _load(args.file)
    if servers is None:
        return 1

    if args.json:
        print(format_json_report({server.server: server.tool_names() for server in servers}))
    else:
        for server in servers:
            print(f"\n📋 {server.server} ({len(server.tools)} tools):\n")
            for name in server.tool_names():
                print(f"   - {name}")
        print()
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Compile every tool and report its argument signature."""
    servers = _load(args.file)
    if servers is None:
        return 1
    registry = _build_registry(servers)

    if args.tool:
        if args.tool not in registry:
            return _tool_not_found(args.tool, registry)
        entries = [registry.get(args.tool)]
    else:
        entries = sorted(registry, key=lambda entry: entry.name)

    reports = [generate_tool_report(entry) for entry in entries]

    if args.json:
        print(format_json_report(generate_summary_report(reports)))
    else:
        use_color = not args.no_color
        if len(reports) != 1:
            print_summary_report(generate_summary_report(reports), use_color=use_color)
        for report in reports:
            print_terminal_report(report, use_color=use_color)

    if args.strict and any(r["status"] == "PERMISSIVE" for r in reports):
        return 1
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate one set of call arguments against a tool."""
    servers = _load(args.file)
    if servers is None:
        return 1
    registry = _build_registry(servers)

    if args.tool not in registry:
        return _tool_not_found(args.tool, registry)

    try:
        arguments = _read_arguments(args.arguments)
    except OSError as e:
        print(f"Error: cannot read arguments: {e.strerror or e}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: arguments are not valid JSON: {e}", file=sys.stderr)
        return 1

    result = registry.get(args.tool).validator.check(arguments)
    report = generate_validation_report(args.tool, result)

    if args.json:
        print(format_json_report(report))
    else:
        print_validation_report(report, use_color=not args.no_color)
    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="hive_proxy",
        description="Inspect MCP hub tool descriptors and validate call arguments",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging on stderr (shows compiler fallbacks)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List tool names per server",
    )
    list_parser.add_argument("file", help="Server descriptor JSON file")
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON",
    )
    list_parser.set_defaults(func=cmd_list)

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Compile tools and show their argument signatures",
    )
    check_parser.add_argument("file", help="Server descriptor JSON file")
    check_parser.add_argument(
        "--tool",
        help="Check specific tool only",
    )
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON report",
    )
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit 1 if any tool accepts unchecked input",
    )
    check_parser.set_defaults(func=cmd_check)

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate call arguments against a tool",
    )
    validate_parser.add_argument("file", help="Server descriptor JSON file")
    validate_parser.add_argument("tool", help="Tool name")
    validate_parser.add_argument(
        "arguments",
        help="Arguments as JSON text, or @path to a JSON file",
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON report",
    )
    validate_parser.set_defaults(func=cmd_validate)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
