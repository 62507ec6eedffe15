"""
Field tree definitions for the packet markup notation.

These dataclasses represent the parsed layout of a packet: an ordered
sequence of top-level fields, some of which own children.
"""

from dataclasses import dataclass, field
from enum import Enum


class Unit(Enum):
    BYTE = "byte"
    BIT = "bit"


# Array elements are never declared in the notation (`Manufacturer[13]`),
# each one is an implicit one-byte cell.
IMPLICIT_ELEMENT_NAME = "byte"
DEFAULT_ELEMENT_SIZE = 1

DEFAULT_FIELD_SIZE = 1  # bytes, or bits inside a flag group
PADDING_NAME = "pad"
RESERVED_NAME = "reserved"
DEFAULT_GROUP_NAME = "flags"


# === Fields ===

@dataclass
class SimpleField:
    """A leaf field: `OpCode`, a padding byte or a flag inside a group"""
    name: str
    size: int = DEFAULT_FIELD_SIZE
    unit: Unit = Unit.BYTE
    literal: str | int | None = None  # str for "magic" strings, int for fixed values
    offset: int | None = None  # position of the name in the notation

    @property
    def is_marker(self) -> bool:
        """True for zero-length fields that only document a literal."""
        return self.size == 0 and isinstance(self.literal, str)


@dataclass
class ArrayField:
    """A fixed number of same-sized elements: Manufacturer[13]"""
    name: str
    element_size: int = DEFAULT_ELEMENT_SIZE
    children: list["Field"] = field(default_factory=list)
    offset: int | None = None

    unit = Unit.BYTE

    @classmethod
    def with_implicit_elements(cls, name: str, count: int, offset: int | None = None) -> "ArrayField":
        array = cls(name=name, element_size=DEFAULT_ELEMENT_SIZE, offset=offset)
        for _ in range(count):
            array.add_child(SimpleField(IMPLICIT_ELEMENT_NAME, DEFAULT_ELEMENT_SIZE))
        return array

    @property
    def size(self) -> int:
        return sum(child.size for child in self.children)

    @property
    def length(self) -> int:
        return len(self.children)

    def add_child(self, child: "Field") -> None:
        self.children.append(child)


@dataclass
class FlagGroup:
    """Sub-byte flags packed together: Flags:{Re[2] DL[2] HW HE DC[2]}

    Children sizes are bit widths. The group occupies whole bytes in the
    packet, rounded up from the sum of its children.
    """
    name: str
    children: list["Field"] = field(default_factory=list)
    offset: int | None = None

    unit = Unit.BIT

    @property
    def size(self) -> int:
        return sum(child.size for child in self.children)

    @property
    def byte_size(self) -> int:
        bits = self.size
        return bits // 8 + (1 if bits % 8 else 0)

    def add_child(self, child: "Field") -> None:
        self.children.append(child)

    def flag_names(self) -> list[str]:
        return [child.name for child in self.children]


# Union of all field variants
Field = SimpleField | ArrayField | FlagGroup


def byte_footprint(f: Field) -> int:
    """Number of whole bytes a top-level field occupies in the packet."""
    if isinstance(f, FlagGroup):
        return f.byte_size
    if isinstance(f, (SimpleField, ArrayField)):
        return f.size
    raise TypeError(f"Unknown field type: {type(f).__name__}")


# === Packet ===

@dataclass
class Annotation:
    """A literal that documents the layout without occupying space"""
    text: str | int
    offset: int
    owner: str | None = None  # name of the field it documents, if any


@dataclass
class Packet:
    """Root of the field tree built from one notation string"""
    fields: list[Field] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)

    @property
    def total_size(self) -> int:
        return sum(byte_footprint(f) for f in self.fields)

    def get_field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def walk(self):
        """Yield (depth, field) for every node, parents before children."""
        stack = [(0, f) for f in reversed(self.fields)]
        while stack:
            depth, f = stack.pop()
            yield depth, f
            if isinstance(f, (ArrayField, FlagGroup)):
                stack.extend((depth + 1, child) for child in reversed(f.children))
