"""``routelint parse`` — show how a single template is parsed."""

import argparse
import sys

from routelint.pattern import LiteralNode, ReplacementNode, RouteParameter, RouteTree, parse_template


def _describe_parameter(param: RouteParameter) -> str:
    flags = []
    if param.is_catch_all:
        flags.append("catch-all")
    if param.is_optional:
        flags.append("optional")
    if param.default_value is not None:
        flags.append(f"default={param.default_value!r}")
    if param.policies:
        flags.append("policies=" + "".join(param.policies))
    suffix = f" ({', '.join(flags)})" if flags else ""
    return f"parameter {param.name!r}{suffix}"


def format_tree(tree: RouteTree) -> str:
    lines = [f"template {tree.text!r}"]
    for index, segment in enumerate(tree.segments):
        lines.append(f"  segment {index} [{segment.span.start}:{segment.span.end}]")
        for part in segment.parts:
            match part:
                case LiteralNode():
                    lines.append(f"    literal {part.value!r}")
                case ReplacementNode():
                    lines.append(f"    replacement {part.token!r}")
                case RouteParameter():
                    lines.append(f"    {_describe_parameter(part)}")
    for diagnostic in tree.diagnostics:
        caret = " " * diagnostic.span.start + "^" * max(diagnostic.span.length, 1)
        lines.append("")
        lines.append(f"  {tree.text}")
        lines.append(f"  {caret}")
        lines.append(f"  {diagnostic.message}")
    return "\n".join(lines) + "\n"


def run_parse(args: argparse.Namespace) -> None:
    """Print the parsed template; exit 1 if it has syntax errors."""
    tree = parse_template(args.template, allow_token_replacement=args.attribute)
    sys.stdout.write(format_tree(tree))
    if tree.diagnostics:
        raise SystemExit(1)
