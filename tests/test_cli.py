#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Tests for the packetmarkup command line."""

from __future__ import annotations

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

import highlight
from builder import parse_notation
from packetmarkup import check_summary, cli_main, describe_field, field_tree
from sample_notations import SAMPLE_NOTATIONS


def run_cli(*argv: str) -> tuple[int, str, str]:
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        code = cli_main(list(argv))
    return code, out.getvalue(), err.getvalue()


class CliTest(unittest.TestCase):
    """Commands and their exit codes."""

    def test_diagram(self) -> None:
        code, out, _ = run_cli("diagram", "OpCode A[2]")
        self.assertEqual(code, 0)
        self.assertEqual(out, "|  OpCode \n| | A[1] = byte | A[0] = byte \n")

    def test_diagram_goes_through_line_sink(self) -> None:
        """Diagram lines are emitted as LINE events."""
        with mock.patch.object(highlight, "emit_lines", wraps=highlight.emit_lines) as emit:
            code, out, _ = run_cli("diagram", "+0")
        self.assertEqual(code, 0)
        self.assertEqual(out, "|  pad \n")
        emit.assert_called_once()

    def test_tokens_porcelain(self) -> None:
        code, out, _ = run_cli("tokens", 'ID:"SLLCPv"+0', "--format=porcelain")
        self.assertEqual(code, 0)
        self.assertEqual(out, "NAME\tID\nSTRING\tSLLCPv\nPADDING\t0x0\n")

    def test_tokens_ignore_build_errors(self) -> None:
        """Highlighting only needs the lexer, so '+5' is still shown."""
        code, out, _ = run_cli("tokens", "+5", "--format=porcelain")
        self.assertEqual(code, 0)
        self.assertEqual(out, "PADDING\t0x5\n")

    def test_unknown_format(self) -> None:
        code, _, err = run_cli("tokens", "A", "--format=xml")
        self.assertEqual(code, 1)
        self.assertIn("Unknown format 'xml'", err)

    def test_check(self) -> None:
        code, out, _ = run_cli("check", SAMPLE_NOTATIONS["flags"]["notation"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "OK: 1 field, 1 byte\n  Flags: 1 byte\n")

    def test_error_reports_offset(self) -> None:
        code, out, err = run_cli("check", 'A "x')
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Error: offset 2: Missing closing '\"'", err)
        self.assertIn('A "x\n  ^', err)

    def test_max_depth_option(self) -> None:
        code, _, err = run_cli("check", "{A{B}}", "--max-depth=1")
        self.assertEqual(code, 1)
        self.assertIn("nested deeper than 1", err)

    def test_invalid_limit(self) -> None:
        code, _, err = run_cli("check", "A", "--max-length=many")
        self.assertEqual(code, 1)
        self.assertIn("Invalid limit", err)

    def test_verbose(self) -> None:
        code, _, err = run_cli("check", "A[2]", "--verbose")
        self.assertEqual(code, 0)
        self.assertEqual(err, "2 tokens\n3 fields\n")

    def test_tree(self) -> None:
        code, out, _ = run_cli("tree", SAMPLE_NOTATIONS["flags"]["notation"])
        self.assertEqual(code, 0)
        self.assertIn("packet (1 byte)", out)
        self.assertIn("Flags (8 bits, 1 byte)", out)
        self.assertIn("Re (2 bits)", out)
        self.assertLess(out.index("Re (2 bits)"), out.index("DC (2 bits)"))


class TreeViewTest(unittest.TestCase):
    """The treelib view of a packet."""

    def test_field_tree_nodes(self) -> None:
        tree = field_tree(parse_notation("A[2] F:{X Y}"))
        self.assertEqual(len(tree), 7)
        self.assertEqual(tree.get_node("root.0").tag, "A[2] (2 bytes)")
        self.assertEqual(tree.get_node("root.0.1").tag, "[1] byte (1 byte)")
        self.assertEqual(tree.get_node("root.1.0").tag, "X (1 bit)")

    def test_describe_literals(self) -> None:
        packet = parse_notation('ID:"SLLCPv" OpCode 10')
        self.assertEqual(describe_field(packet.fields[0]), 'ID (0 bytes) = "SLLCPv"')
        self.assertEqual(describe_field(packet.fields[1]), "OpCode (1 byte) = 0xA")

    def test_check_summary_lists_literals(self) -> None:
        summary = check_summary(parse_notation('"magic" +0'))
        self.assertEqual(
            summary,
            "OK: 1 field, 1 byte\n  pad: 1 byte\n  literal 'magic' at offset 1 (-)",
        )


if __name__ == "__main__":
    unittest.main()
