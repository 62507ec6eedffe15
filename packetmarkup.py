#!/usr/bin/env python3
"""packetmarkup.

Usage:
  packetmarkup tokens  [<notation>] [--format=<option>]
                       [--max-length=<n> --max-depth=<n> --verbose]
  packetmarkup diagram [<notation>] [--max-length=<n> --max-depth=<n> --verbose]
  packetmarkup tree    [<notation>] [--max-length=<n> --max-depth=<n> --verbose]
  packetmarkup check   [<notation>] [--max-length=<n> --max-depth=<n> --verbose]
  packetmarkup -h | --help
  packetmarkup --version

The notation is read from stdin when <notation> is omitted.

Options:
  -h --help                 Show this screen.
  --version                 Show version.
  --format=<option>         Token stream format [default: colored].
                                Options: colored, porcelain, json.
                                porcelain: one KIND<TAB>text line per token, no colors.
                                json: structured JSON output with source offsets.
  --max-length=<n>          Reject notations longer than n characters [default: 65536].
  --max-depth=<n>           Reject flag groups nested deeper than n [default: 4].
  --verbose                 Print token and field counts to stderr.

"""

__version__ = "0.1.0"

import sys
from docopt import docopt
from treelib import Tree
from lexer import Limits, lex
from builder import build
from renderer import render_diagram, array_indices
from markup_errors import MarkupError
from markup_ast import Packet, Field, SimpleField, ArrayField, FlagGroup, byte_footprint
import highlight


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def describe_field(f: Field) -> str:
    """One-line description of a field for the tree view."""
    if isinstance(f, SimpleField):
        text = f"{f.name} ({_plural(f.size, f.unit.value)})"
        if isinstance(f.literal, str):
            text += f' = "{f.literal}"'
        elif isinstance(f.literal, int):
            text += f" = 0x{f.literal:X}"
        return text
    if isinstance(f, ArrayField):
        return f"{f.name}[{f.length}] ({_plural(f.size, 'byte')})"
    if isinstance(f, FlagGroup):
        return f"{f.name} ({_plural(f.size, 'bit')}, {_plural(f.byte_size, 'byte')})"
    raise TypeError(f"Unknown field type: {type(f).__name__}")


def field_tree(packet: Packet, root_name: str = "packet") -> Tree:
    """Build a treelib Tree mirroring the packet's field hierarchy."""
    tree = Tree()
    tree.create_node(f"{root_name} ({_plural(packet.total_size, 'byte')})", "root")

    def add_subtree(f: Field, parent_id: str, node_id: str):
        tree.create_node(describe_field(f), node_id, parent=parent_id)
        if isinstance(f, ArrayField):
            for index, child in zip(array_indices(f), f.children):
                tree.create_node(f"[{index}] {describe_field(child)}", f"{node_id}.{index}", parent=node_id)
        elif isinstance(f, FlagGroup):
            for i, child in enumerate(f.children):
                add_subtree(child, node_id, f"{node_id}.{i}")

    for i, f in enumerate(packet.fields):
        add_subtree(f, "root", f"root.{i}")
    return tree


def check_summary(packet: Packet) -> str:
    lines = [f"OK: {_plural(len(packet.fields), 'field')}, {_plural(packet.total_size, 'byte')}"]
    for f in packet.fields:
        lines.append(f"  {f.name}: {_plural(byte_footprint(f), 'byte')}")
    for annotation in packet.annotations:
        owner = annotation.owner if annotation.owner is not None else "-"
        lines.append(f"  literal {annotation.text!r} at offset {annotation.offset} ({owner})")
    return "\n".join(lines)


def _read_limits(args) -> Limits:
    return Limits(max_length=int(args["--max-length"]), max_depth=int(args["--max-depth"]))


def cli_main(argv=None) -> int:
    args = docopt(__doc__, argv=argv, version=f"packetmarkup {__version__}")

    try:
        limits = _read_limits(args)
    except ValueError as e:
        print(f"Error: Invalid limit: {e}", file=sys.stderr)
        return 1

    text = args["<notation>"]
    if text is None:
        text = sys.stdin.read()

    formatter = None
    if args["tokens"]:
        formatter = highlight.get_formatter(args["--format"])
        if formatter is None:
            options = ", ".join(highlight.list_formatters())
            print(f"Error: Unknown format '{args['--format']}'. Options: {options}", file=sys.stderr)
            return 1

    try:
        tokens = lex(text, limits)
        packet = None if args["tokens"] else build(tokens)
    except MarkupError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(e.get_context(text), file=sys.stderr, end="")
        return 1

    if args["--verbose"]:
        print(_plural(len(tokens), "token"), file=sys.stderr)
        if packet is not None:
            print(_plural(sum(1 for _ in packet.walk()), "field"), file=sys.stderr)

    if args["tokens"]:
        print(formatter(tokens))
    elif args["diagram"]:
        highlight.emit_lines(render_diagram(packet), lambda kind, line: print(line))
    elif args["tree"]:
        print(field_tree(packet).show(stdout=False, sorting=False), end="")
    elif args["check"]:
        print(check_summary(packet))

    sys.stdout.flush()
    return 0


def main():
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
