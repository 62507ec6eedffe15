"""
Packet Markup Highlighting

Turns tokens and diagram lines into (kind, text) events for a sink and keeps
a registry of token stream formatters.

Built-in formatters:
- colored: tokens separated by spaces, ANSI colored by kind
- porcelain: one "KIND<TAB>text" line per token, no colors
- json: list of {"kind", "text", "start", "end"} objects
"""

import json
from typing import Callable, Iterable
from lark import Token
from lexer import TokenKind


class AnsiColors:
    CYAN = '\033[96m'
    DARK_CYAN = '\033[36m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    WHITE = '\033[97m'
    PURPLE = '\033[95m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


TOKEN_COLORS = {
    TokenKind.NAME: AnsiColors.CYAN,
    TokenKind.STRING: AnsiColors.GREEN,
    TokenKind.NUMBER: AnsiColors.YELLOW,
    TokenKind.PADDING: AnsiColors.YELLOW,
    TokenKind.FLAG_NAME: AnsiColors.DARK_CYAN,
    TokenKind.LENGTH: AnsiColors.WHITE,
    TokenKind.GROUP_OPEN: AnsiColors.PURPLE,
    TokenKind.GROUP_CLOSE: AnsiColors.PURPLE,
    TokenKind.APPEND: AnsiColors.PURPLE,
}

LINE_KIND = "LINE"

# Sink for structured events: (kind, text) -> None
Sink = Callable[[str, str], None]

# Type for formatter functions: tokens -> printable string
FormatterFunc = Callable[[list[Token]], str]

# Registry of formatters
_formatters: dict[str, FormatterFunc] = {}


def display_text(token: Token) -> str:
    """Text shown for a token; numeric values are shown in hex."""
    if token.type in (TokenKind.NUMBER, TokenKind.PADDING):
        return f"0x{int(token):X}"
    return str(token)


def emit_tokens(tokens: Iterable[Token], sink: Sink) -> None:
    for token in tokens:
        sink(token.type, display_text(token))


def emit_lines(lines: Iterable[str], sink: Sink) -> None:
    for line in lines:
        sink(LINE_KIND, line)


def register(name: str):
    """Decorator to register a formatter."""
    def decorator(func: FormatterFunc) -> FormatterFunc:
        _formatters[name] = func
        return func
    return decorator


def get_formatter(name: str) -> FormatterFunc | None:
    """Get a formatter by name."""
    return _formatters.get(name)


def list_formatters() -> list[str]:
    """List all registered formatter names."""
    return list(_formatters.keys())


# === Built-in Formatters ===

@register("colored")
def format_colored(tokens: list[Token]) -> str:
    parts = []

    def sink(kind: str, text: str) -> None:
        parts.append(TOKEN_COLORS.get(TokenKind(kind), "") + text + AnsiColors.ENDC)

    emit_tokens(tokens, sink)
    return " ".join(parts)


@register("porcelain")
def format_porcelain(tokens: list[Token]) -> str:
    lines = []
    emit_tokens(tokens, lambda kind, text: lines.append(f"{kind}\t{text}"))
    return "\n".join(lines)


@register("json")
def format_json(tokens: list[Token]) -> str:
    return json.dumps(
        [
            {"kind": token.type, "text": str(token), "start": token.start_pos, "end": token.end_pos}
            for token in tokens
        ],
        indent=2,
    )
