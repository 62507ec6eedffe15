#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Unit tests for the ASCII diagram renderer."""

from __future__ import annotations

import copy
import unittest

from builder import parse_notation
from markup_ast import ArrayField, SimpleField
from renderer import array_indices, cell_width, center_label, render_diagram, render_field
from sample_notations import SAMPLE_NOTATIONS


class CenterLabelTest(unittest.TestCase):
    """Fill arithmetic of a single cell."""

    def test_wide_cell(self) -> None:
        """(32 - 7) / 2 - 2 = 10 dots on each side."""
        self.assertEqual(center_label("Version", 32), "." * 10 + " Version " + "." * 10)

    def test_fill_is_truncated(self) -> None:
        """(16 - 3) / 2 - 2 truncates to 4."""
        self.assertEqual(center_label("pad", 16), "...." + " pad " + "....")

    def test_label_wider_than_cell(self) -> None:
        """Fill is clamped at zero and the label is kept whole."""
        self.assertEqual(center_label("OpCode", 8), " OpCode ")
        self.assertEqual(center_label("Manufacturer[12] = byte", 8), " Manufacturer[12] = byte ")


class RenderFieldTest(unittest.TestCase):
    """Strips for each field variant."""

    def test_simple(self) -> None:
        self.assertEqual(render_field(SimpleField("OpCode", 1)), "|  OpCode ")
        self.assertEqual(render_field(SimpleField("Length", 4)), "| " + "." * 11 + " Length " + "." * 11)

    def test_padding_cell(self) -> None:
        """A '+0' pad is one 8-column cell."""
        pad = parse_notation("+0").fields[0]
        self.assertEqual(cell_width(pad), 8)
        self.assertEqual(render_field(pad), "|  pad ")

    def test_marker(self) -> None:
        """A zero-length signature marker still shows its name."""
        marker = parse_notation('ID:"SLLCPv"').fields[0]
        self.assertEqual(render_field(marker), "|  ID ")

    def test_array(self) -> None:
        array = parse_notation("A[2]").fields[0]
        self.assertEqual(render_field(array), "| | A[1] = byte | A[0] = byte ")

    def test_flag_group(self) -> None:
        group = parse_notation(SAMPLE_NOTATIONS["flags"]["notation"]).fields[0]
        self.assertEqual(render_field(group), "| Re DL HW HE DC ")

    def test_nested_group(self) -> None:
        group = parse_notation("O:{A I{B C}}").fields[0]
        self.assertEqual(render_field(group), "| A I{B C} ")


class ArrayIndicesTest(unittest.TestCase):
    """Indices count down from the most significant element."""

    def test_byte_elements(self) -> None:
        array = parse_notation("A[4]").fields[0]
        self.assertEqual(list(array_indices(array)), [3, 2, 1, 0])

    def test_wider_elements(self) -> None:
        """With element size s the first index is N*s - 1, stepping by s."""
        array = ArrayField("Words", element_size=2)
        for _ in range(3):
            array.add_child(SimpleField("word", 2))

        indices = list(array_indices(array))

        self.assertEqual(indices, [5, 3, 1])
        self.assertEqual(indices[0], array.length * array.element_size - 1)
        self.assertEqual(render_field(array), "| | Words[5] = word | Words[3] = word | Words[1] = word ")


class RenderDiagramTest(unittest.TestCase):
    """Whole packets."""

    def test_one_line_per_field(self) -> None:
        packet = parse_notation(SAMPLE_NOTATIONS["sllcp_header"]["notation"])
        lines = render_diagram(packet)
        self.assertEqual(len(lines), len(packet.fields))
        self.assertTrue(all(line.startswith("| ") for line in lines))

    def test_rendering_is_pure(self) -> None:
        """Rendering twice gives the same text and leaves the tree as it was."""
        packet = parse_notation(SAMPLE_NOTATIONS["sllcp_header"]["notation"])
        before = copy.deepcopy(packet)

        first = render_diagram(packet)
        second = render_diagram(packet)

        self.assertEqual(first, second)
        self.assertEqual(packet, before)


if __name__ == "__main__":
    unittest.main()
