"""
Packet Markup Tree Builder

Assembles the token stream produced by the lexer into a Packet: an ordered
sequence of SimpleField, ArrayField and FlagGroup nodes.
"""

from dataclasses import dataclass
from typing import Iterable
from lark import Token
from lexer import TokenKind, Limits, tokenize
from markup_errors import MarkupError, UnsupportedAppendValue, UnterminatedGroup, MismatchedGroupClose
from markup_ast import (
    Packet, Annotation, Field, SimpleField, ArrayField, FlagGroup, Unit,
    PADDING_NAME, RESERVED_NAME, DEFAULT_GROUP_NAME, DEFAULT_FIELD_SIZE,
)


class TreeBuilder:
    """Consume tokens and build the field tree.

    Keeps a stack of open flag groups. The last field added to the current
    scope is the pending one: a following length, literal or '{' refines it.
    """

    def __init__(self):
        self.packet = Packet()
        self._stack: list[FlagGroup] = []
        self._pending: Field | None = None

    @property
    def _scope(self) -> list[Field]:
        if self._stack:
            return self._stack[-1].children
        return self.packet.fields

    def _add(self, f: Field) -> None:
        self._scope.append(f)
        self._pending = f

    def _replace_pending(self, f: Field) -> None:
        self._scope[-1] = f
        self._pending = f

    def _pending_plain(self) -> SimpleField | None:
        """The pending field if it is a plain leaf that can still be refined."""
        f = self._pending
        if isinstance(f, SimpleField) and f.literal is None:
            return f
        return None

    # === Token handlers ===

    def _name(self, token: Token) -> None:
        self._add(SimpleField(str(token), DEFAULT_FIELD_SIZE, Unit.BYTE, offset=token.start_pos))

    def _flag_name(self, token: Token) -> None:
        self._add(SimpleField(str(token), DEFAULT_FIELD_SIZE, Unit.BIT, offset=token.start_pos))

    def _length(self, token: Token) -> None:
        length = int(token)
        pending = self._pending_plain()

        if self._stack:
            if pending is not None and pending.unit is Unit.BIT:
                pending.size = length
            else:
                self._add(SimpleField(RESERVED_NAME, length, Unit.BIT, offset=token.start_pos))
            self._pending = None
            return

        if pending is not None:
            self._replace_pending(ArrayField.with_implicit_elements(pending.name, length, pending.offset))
        else:
            self._add(SimpleField(RESERVED_NAME, length, Unit.BYTE, offset=token.start_pos))
        self._pending = None

    def _group_open(self, token: Token) -> None:
        pending = self._pending_plain()
        if pending is not None:
            group = FlagGroup(pending.name, offset=pending.offset)
            self._replace_pending(group)
        else:
            group = FlagGroup(DEFAULT_GROUP_NAME, offset=token.start_pos)
            self._add(group)
        self._stack.append(group)
        self._pending = None

    def _group_close(self, token: Token) -> None:
        if not self._stack:
            raise MismatchedGroupClose("'}' without a matching '{'", token.start_pos)
        self._pending = self._stack.pop()

    def _literal(self, token: Token, value: str | int) -> None:
        pending = self._pending_plain()
        if pending is not None and pending.unit is Unit.BYTE:
            pending.literal = value
            if isinstance(value, str):
                # Documents a fixed signature, occupies no cells of its own
                pending.size = 0
            self.packet.annotations.append(Annotation(value, token.start_pos, pending.name))
        else:
            self.packet.annotations.append(Annotation(value, token.start_pos))
        self._pending = None

    def _padding(self, token: Token) -> None:
        value = int(token)
        if value != 0:
            raise UnsupportedAppendValue(f"Only '+0' padding is supported, got '+{value}'", token.start_pos)
        self._add(SimpleField(PADDING_NAME, 1, Unit.BYTE, offset=token.start_pos))
        # Padding is never refined by a following length or literal
        self._pending = None

    def feed(self, token: Token) -> None:
        kind = token.type
        if kind == TokenKind.NAME:
            self._name(token)
        elif kind == TokenKind.FLAG_NAME:
            self._flag_name(token)
        elif kind == TokenKind.LENGTH:
            self._length(token)
        elif kind == TokenKind.GROUP_OPEN:
            self._group_open(token)
        elif kind == TokenKind.GROUP_CLOSE:
            self._group_close(token)
        elif kind == TokenKind.STRING:
            self._literal(token, str(token))
        elif kind == TokenKind.NUMBER:
            self._literal(token, int(token))
        elif kind == TokenKind.PADDING:
            self._padding(token)
        elif kind == TokenKind.APPEND:
            # '+Name' only joins fields
            pass
        else:
            raise MarkupError(f"Unknown token type {kind}", token.start_pos)

    def finish(self) -> Packet:
        if self._stack:
            raise UnterminatedGroup("Missing closing '}'", self._stack[-1].offset)
        return self.packet


def build(tokens: Iterable[Token]) -> Packet:
    """Build a Packet from a token stream."""
    builder = TreeBuilder()
    for token in tokens:
        builder.feed(token)
    return builder.finish()


def parse_notation(text: str, limits: Limits | None = None) -> Packet:
    """Parse a notation string into a Packet.

    Raises:
        MarkupError: If the notation is malformed
    """
    return build(tokenize(text, limits))


@dataclass
class ParseResult:
    """Outcome of try_parse: either a packet or the error that stopped it

    error_offset counts characters of the notation, error_byte_offset counts
    bytes of its UTF-8 encoding.
    """
    packet: Packet | None = None
    error: MarkupError | None = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_offset(self) -> int | None:
        return self.error.offset if self.error is not None else None

    @property
    def error_byte_offset(self) -> int | None:
        offset = self.error_offset
        if offset is None:
            return None
        return len(self.text[:offset].encode("utf-8"))


def try_parse(text: str, limits: Limits | None = None) -> ParseResult:
    """Parse without raising; MarkupErrors are returned in the result."""
    try:
        return ParseResult(packet=parse_notation(text, limits), text=text)
    except MarkupError as e:
        return ParseResult(error=e, text=text)
