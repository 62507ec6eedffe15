"""
Packet Markup Lexer

Character-level state machine for the packet markup notation:

    ID:"SLLCPv"+Version+0 OpCode Manufacturer[13]+0 Flags:{Re[2] DL[2] HW HE DC[2]}

The machine is a pure transition function `step(state, char)` over an
immutable LexerState. `tokenize` folds it over the input and flushes any
pending token at end of input. Tokens are lark Tokens, so each one keeps
its source span (start_pos/end_pos).
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator
from lark import Token
from markup_errors import (
    MarkupError, UnterminatedString, UnterminatedGroup, MismatchedGroupClose,
    InvalidNumber, EmptyArrayDeclaration, UnterminatedLength, UnexpectedCharacter,
    InputTooLong, NestingTooDeep,
)


class TokenKind(str, Enum):
    NAME = "NAME"
    FLAG_NAME = "FLAG_NAME"
    STRING = "STRING"
    NUMBER = "NUMBER"
    LENGTH = "LENGTH"
    PADDING = "PADDING"
    GROUP_OPEN = "GROUP_OPEN"
    GROUP_CLOSE = "GROUP_CLOSE"
    APPEND = "APPEND"


class State(Enum):
    READY = "ready"
    GROUP_READY = "group_ready"
    READ_NAME = "read_name"
    READ_STRING = "read_string"
    READ_NUMBER = "read_number"
    READ_FLAG_NAME = "read_flag_name"
    READ_LENGTH = "read_length"
    APPEND = "append"


MAX_NUMBER = 2**32 - 1
SEPARATORS = ":,"


@dataclass(frozen=True)
class Limits:
    """Bounds on the input accepted by the lexer"""
    max_length: int = 65536
    max_depth: int = 4


@dataclass(frozen=True)
class LexerState:
    """Everything the machine knows between two characters."""
    state: State = State.READY
    buffer: str = ""
    start: int = 0  # offset where the pending token (or '[' / '+' / '"') started
    end: int = 0  # offset after the last digit read inside [...]
    pos: int = 0  # offset of the next character
    groups: tuple[int, ...] = ()  # offsets of the open '{'
    padding: bool = False  # reading the digits of a '+N'
    max_depth: int = Limits.max_depth

    @property
    def in_group(self) -> bool:
        return len(self.groups) > 0

    @property
    def ready_state(self) -> State:
        return State.GROUP_READY if self.in_group else State.READY


def _token(kind: TokenKind, value: str, start: int, end: int) -> Token:
    return Token(kind.value, value, start_pos=start, end_pos=end)


def _parse_number(text: str, offset: int) -> int:
    try:
        value = int(text)
    except ValueError:
        raise InvalidNumber(f"Invalid number '{text}'", offset) from None
    if value > MAX_NUMBER:
        raise InvalidNumber(f"Number {value} exceeds {MAX_NUMBER}", offset)
    return value


def _close_word(lexer: LexerState) -> Token:
    kind = TokenKind.NAME if lexer.state is State.READ_NAME else TokenKind.FLAG_NAME
    return _token(kind, lexer.buffer, lexer.start, lexer.pos)


def _close_number(lexer: LexerState) -> Token:
    digits_start = lexer.pos - len(lexer.buffer)
    value = _parse_number(lexer.buffer, digits_start)
    kind = TokenKind.PADDING if lexer.padding else TokenKind.NUMBER
    return _token(kind, str(value), lexer.start, lexer.pos)


def _close_length(lexer: LexerState) -> Token:
    if not lexer.buffer:
        raise EmptyArrayDeclaration("Array length '[]' has no digits", lexer.start)
    digits_start = lexer.end - len(lexer.buffer)
    value = _parse_number(lexer.buffer, digits_start)
    return _token(TokenKind.LENGTH, str(value), digits_start, lexer.end)


def _dispatch(lexer: LexerState, ch: str) -> tuple[LexerState, tuple[Token, ...]]:
    """Handle `ch` from READY or GROUP_READY."""
    pos = lexer.pos
    in_group = lexer.state is State.GROUP_READY

    if ch.isalpha():
        state = State.READ_FLAG_NAME if in_group else State.READ_NAME
        return replace(lexer, state=state, buffer=ch, start=pos), ()

    if ch.isdigit() and not in_group:
        return replace(lexer, state=State.READ_NUMBER, buffer=ch, start=pos, padding=False), ()

    if ch == "{":
        if len(lexer.groups) >= lexer.max_depth:
            raise NestingTooDeep(f"Groups nested deeper than {lexer.max_depth}", pos)
        opened = replace(lexer, state=State.GROUP_READY, groups=lexer.groups + (pos,))
        return opened, (_token(TokenKind.GROUP_OPEN, ch, pos, pos + 1),)

    if ch == "}":
        if not in_group:
            raise MismatchedGroupClose("'}' without a matching '{'", pos)
        closed = replace(lexer, groups=lexer.groups[:-1])
        closed = replace(closed, state=closed.ready_state)
        return closed, (_token(TokenKind.GROUP_CLOSE, ch, pos, pos + 1),)

    if ch == "[":
        return replace(lexer, state=State.READ_LENGTH, buffer="", start=pos, end=pos + 1), ()

    if ch == '"' and not in_group:
        return replace(lexer, state=State.READ_STRING, buffer="", start=pos + 1), ()

    if ch == "+" and not in_group:
        return replace(lexer, state=State.APPEND, buffer="", start=pos), ()

    if ch.isspace() or ch in SEPARATORS:
        return lexer, ()

    where = "inside a group" if in_group else "here"
    raise UnexpectedCharacter(f"Unexpected character {ch!r} {where}", pos)


def _consume(lexer: LexerState, ch: str) -> tuple[LexerState, tuple[Token, ...]]:
    state = lexer.state

    if state in (State.READY, State.GROUP_READY):
        return _dispatch(lexer, ch)

    if state in (State.READ_NAME, State.READ_FLAG_NAME):
        if ch.isalpha():
            return replace(lexer, buffer=lexer.buffer + ch), ()
        word = _close_word(lexer)
        if ch == "[":
            return replace(lexer, state=State.READ_LENGTH, buffer="", start=lexer.pos, end=lexer.pos + 1), (word,)
        # The terminator starts whatever comes next
        rest, tokens = _dispatch(replace(lexer, state=lexer.ready_state, buffer=""), ch)
        return rest, (word,) + tokens

    if state is State.READ_STRING:
        if ch != '"':
            return replace(lexer, buffer=lexer.buffer + ch), ()
        string = _token(TokenKind.STRING, lexer.buffer, lexer.start, lexer.pos)
        return replace(lexer, state=lexer.ready_state, buffer=""), (string,)

    if state is State.READ_NUMBER:
        if ch.isdigit():
            return replace(lexer, buffer=lexer.buffer + ch), ()
        number = _close_number(lexer)
        rest, tokens = _dispatch(replace(lexer, state=State.READY, buffer="", padding=False), ch)
        return rest, (number,) + tokens

    if state is State.READ_LENGTH:
        if ch.isdigit():
            if lexer.buffer and lexer.end != lexer.pos:
                raise UnexpectedCharacter("Whitespace inside an array length", lexer.end)
            return replace(lexer, buffer=lexer.buffer + ch, end=lexer.pos + 1), ()
        if ch.isspace():
            return lexer, ()
        if ch == "]":
            length = _close_length(lexer)
            return replace(lexer, state=lexer.ready_state, buffer=""), (length,)
        raise UnexpectedCharacter(f"Expected a digit or ']' in array length, got {ch!r}", lexer.pos)

    if state is State.APPEND:
        if ch.isdigit():
            return replace(lexer, state=State.READ_NUMBER, buffer=ch, padding=True), ()
        if ch.isspace():
            return lexer, ()
        append = _token(TokenKind.APPEND, "+", lexer.start, lexer.start + 1)
        rest, tokens = _dispatch(replace(lexer, state=State.READY), ch)
        return rest, (append,) + tokens

    raise MarkupError(f"Unknown lexer state {state}", lexer.pos)


def step(lexer: LexerState, ch: str) -> tuple[LexerState, tuple[Token, ...]]:
    """Feed one character. Returns the next state and the tokens it completed."""
    following, tokens = _consume(lexer, ch)
    return replace(following, pos=lexer.pos + 1), tokens


def finish(lexer: LexerState) -> tuple[Token, ...]:
    """Flush the token under accumulation at end of input.

    Raises:
        UnterminatedString, UnterminatedLength, UnterminatedGroup
    """
    state = lexer.state
    tokens: tuple[Token, ...] = ()

    if state is State.READ_STRING:
        raise UnterminatedString("Missing closing '\"'", lexer.start - 1)
    if state is State.READ_LENGTH:
        raise UnterminatedLength("Missing closing ']'", lexer.start)
    if state in (State.READ_NAME, State.READ_FLAG_NAME):
        tokens = (_close_word(lexer),)
    elif state is State.READ_NUMBER:
        tokens = (_close_number(lexer),)
    elif state is State.APPEND:
        tokens = (_token(TokenKind.APPEND, "+", lexer.start, lexer.start + 1),)

    if lexer.in_group:
        raise UnterminatedGroup("Missing closing '}'", lexer.groups[-1])
    return tokens


def tokenize(text: str, limits: Limits | None = None) -> Iterator[Token]:
    """Lazily tokenize a notation string.

    Args:
        text: The notation
        limits: Input bounds (defaults to Limits())

    Yields:
        lark Tokens whose type is a TokenKind value

    Raises:
        MarkupError: On the first malformed character
    """
    if limits is None:
        limits = Limits()
    if len(text) > limits.max_length:
        raise InputTooLong(f"Notation is {len(text)} characters long, limit is {limits.max_length}", limits.max_length)

    lexer = LexerState(max_depth=limits.max_depth)
    for ch in text:
        lexer, tokens = step(lexer, ch)
        yield from tokens
    yield from finish(lexer)


def lex(text: str, limits: Limits | None = None) -> list[Token]:
    """Tokenize eagerly."""
    return list(tokenize(text, limits))
