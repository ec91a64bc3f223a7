"""
Reporter

Turns compiled tools and validation outcomes into:
- JSON reports for programmatic consumption
- terminal output for humans
"""

import json
from datetime import datetime, timezone
from typing import Any

from .registry import RegisteredTool
from .validators import CheckResult, OptionalValidator, UnknownValidator


def _colors(use_color: bool) -> dict[str, str]:
    if use_color:
        return {
            "RED": "\033[91m",
            "GREEN": "\033[92m",
            "YELLOW": "\033[93m",
            "BLUE": "\033[94m",
            "BOLD": "\033[1m",
            "RESET": "\033[0m",
        }
    return dict.fromkeys(("RED", "GREEN", "YELLOW", "BLUE", "BOLD", "RESET"), "")


def generate_tool_report(entry: RegisteredTool) -> dict:
    """
    Generate JSON report for a single compiled tool.

    Status is STRICT when every part of the arguments is checked, and
    PERMISSIVE when the compiler had to accept some part unchecked.
    """
    fields = []
    fallbacks = []
    for name, validator in entry.validator.fields.items():
        fields.append({
            "name": name,
            "required": not isinstance(validator, OptionalValidator),
            "type": validator.describe(),
            "description": validator.description,
        })
        for nested in validator.walk():
            if isinstance(nested, UnknownValidator) and nested.reason:
                fallbacks.append({"field": name, "reason": nested.reason})

    return {
        "tool": entry.name,
        "server": entry.server,
        "status": "PERMISSIVE" if fallbacks else "STRICT",
        "signature": entry.validator.describe(),
        "fields": fields,
        "fallbacks": fallbacks,
    }


def generate_summary_report(tool_reports: list[dict]) -> dict:
    strict = sum(1 for r in tool_reports if r["status"] == "STRICT")
    return {
        "summary": {
            "total_tools": len(tool_reports),
            "strict": strict,
            "permissive": len(tool_reports) - strict,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        "tools": tool_reports,
    }


def generate_validation_report(tool_name: str, result: CheckResult) -> dict:
    report: dict[str, Any] = {"tool": tool_name, "valid": result.ok}
    if result.ok:
        report["arguments"] = result.value
    else:
        report["violations"] = [v.to_dict() for v in result.violations]
    return report


def print_terminal_report(report: dict, use_color: bool = True) -> None:
    """
    Pretty-print one tool report.

    Args:
        report: Report dict from generate_tool_report()
        use_color: Whether to use ANSI color codes
    """
    c = _colors(use_color)

    print(f"\n{c['BOLD']}{'═' * 68}{c['RESET']}")
    server = f" ({report['server']})" if report.get("server") else ""
    print(f"{c['BOLD']}🔍 TOOL: {report['tool']}{server}{c['RESET']}")
    print(f"{'═' * 68}")

    if report["status"] == "STRICT":
        print(f"{c['GREEN']}✅ STATUS: STRICT{c['RESET']}")
    else:
        print(f"{c['YELLOW']}⚠️  STATUS: PERMISSIVE{c['RESET']}")

    if report["fields"]:
        print(f"\n{c['BLUE']}ARGUMENTS:{c['RESET']}")
        for f in report["fields"]:
            marker = "" if f["required"] else "?"
            print(f"   {f['name']}{marker}: {f['type']}")
            if f["description"]:
                print(f"       {f['description']}")
    else:
        print("\n   (no arguments)")

    if report["fallbacks"]:
        print(f"\n{c['YELLOW']}UNCHECKED INPUT:{c['RESET']}")
        for fallback in report["fallbacks"]:
            print(f"   - {fallback['field']}: {fallback['reason']}")

    print()


def print_summary_report(summary_report: dict, use_color: bool = True) -> None:
    c = _colors(use_color)
    summary = summary_report["summary"]

    print(f"\n{c['BOLD']}{'═' * 68}{c['RESET']}")
    print(f"{c['BOLD']}📊 TOOL SCHEMA SUMMARY{c['RESET']}")
    print(f"{'═' * 68}")
    print(f"Total tools: {summary['total_tools']}")
    print(f"{c['GREEN']}Strict: {summary['strict']}{c['RESET']}")
    print(f"{c['YELLOW']}Permissive: {summary['permissive']}{c['RESET']}")
    print(f"Timestamp: {summary['timestamp']}")
    print(f"{'═' * 68}\n")

    permissive = [r["tool"] for r in summary_report["tools"] if r["status"] == "PERMISSIVE"]
    if permissive:
        print(f"{c['YELLOW']}⚠️  Tools accepting unchecked input:{c['RESET']}")
        for tool in permissive:
            print(f"   - {tool}")
        print()


def print_validation_report(report: dict, use_color: bool = True) -> None:
    c = _colors(use_color)

    if report["valid"]:
        print(f"{c['GREEN']}✅ Arguments for '{report['tool']}' are valid{c['RESET']}")
        print(json.dumps(report["arguments"], indent=2, default=str))
        return

    violations = report["violations"]
    print(f"{c['RED']}❌ Arguments for '{report['tool']}' rejected ({len(violations)} violation(s)){c['RESET']}")
    for i, v in enumerate(violations, 1):
        print(f"   [{i}] {c['RED']}{v['path']}{c['RESET']}")
        print(f"       Code: {v['code']}")
        print(f"       Message: {v['message']}")


def format_json_report(report: Any, indent: int = 2) -> str:
    return json.dumps(report, indent=indent, default=str)
