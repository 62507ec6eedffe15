"""
ASCII diagram renderer for packet field trees.

Each top-level field becomes one strip of fixed-width cells, one column per
bit, with its label centered between '.' fills:

    |  OpCode
    | | Manufacturer[1] = byte | Manufacturer[0] = byte
    | Re DL HW HE DC
"""

from typing import Iterator
from markup_ast import Packet, Field, SimpleField, ArrayField, FlagGroup, Unit

CELL_BORDER = "| "
SUBCELL_BORDER = "|"
FILL = "."


def center_label(text: str, width: int) -> str:
    """Center `text` in a cell of `width` columns.

    The fill on each side is (width - len(text)) / 2 - 2, truncated and
    clamped at 0, so labels wider than the cell are never cut.
    """
    padding = max(0, (width - len(text)) // 2 - 2)
    return FILL * padding + " " + text + " " + FILL * padding


def cell_width(f: Field) -> int:
    if f.unit is Unit.BIT:
        return f.size
    return f.size * 8


def array_indices(array: ArrayField) -> Iterator[int]:
    """Element indices in render order, most significant first."""
    i = array.size - 1
    for child in array.children:
        yield i
        i -= child.size


def _flag_label(f: Field) -> str:
    if isinstance(f, FlagGroup):
        return f.name + "{" + " ".join(_flag_label(c) for c in f.children) + "}"
    return f.name


def render_field(f: Field) -> str:
    """Render one field as a single strip of cells."""
    if isinstance(f, SimpleField):
        return CELL_BORDER + center_label(f.name, cell_width(f))

    if isinstance(f, ArrayField):
        strip = CELL_BORDER
        for index, child in zip(array_indices(f), f.children):
            label = f"{f.name}[{index}] = {child.name}"
            strip += SUBCELL_BORDER + center_label(label, cell_width(child))
        return strip

    if isinstance(f, FlagGroup):
        return CELL_BORDER + "".join(_flag_label(child) + " " for child in f.children)

    raise TypeError(f"Unknown field type: {type(f).__name__}")


def render_diagram(packet: Packet) -> list[str]:
    """Render every top-level field, one line each."""
    return [render_field(f) for f in packet.fields]
