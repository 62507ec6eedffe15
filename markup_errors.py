"""
Errors raised while reading packet markup notation.

Every error carries the character offset of the offending input so the
caller can point at it.
"""


class MarkupError(Exception):
    """Exception raised for notation errors with offset info."""
    def __init__(self, message: str, offset: int = None):
        self.offset = offset
        super().__init__(message)

    def __str__(self):
        if self.offset is not None:
            return f"offset {self.offset}: {self.args[0]}"
        return self.args[0]

    def get_context(self, text: str, span: int = 40) -> str:
        """Return the offending line of `text` with a caret under the offset.

        Modeled on lark's UnexpectedInput.get_context.
        """
        if self.offset is None:
            return ""
        pos = min(self.offset, len(text))
        start = max(pos - span, 0)
        end = pos + span
        line_start = text.rfind("\n", start, pos) + 1
        line_end = text.find("\n", pos, end)
        if line_end < 0:
            line_end = min(end, len(text))
        before = text[line_start:pos]
        after = text[pos:line_end]
        return before + after + "\n" + " " * len(before.expandtabs()) + "^\n"


class UnterminatedString(MarkupError):
    """End of input reached inside a "string" literal"""


class UnterminatedGroup(MarkupError):
    """End of input reached with an unclosed {"""


class MismatchedGroupClose(MarkupError):
    """} found outside of any group"""


class InvalidNumber(MarkupError):
    """A digit run that is not a valid unsigned integer"""


class UnsupportedAppendValue(MarkupError):
    """+N with N other than 0"""


class EmptyArrayDeclaration(MarkupError):
    """[] or [ ] without digits"""


class UnterminatedLength(MarkupError):
    """End of input reached inside [...]"""


class UnexpectedCharacter(MarkupError):
    """A character that cannot start or continue any token here"""


class InputTooLong(MarkupError):
    """Notation longer than the configured limit"""


class NestingTooDeep(MarkupError):
    """Groups nested deeper than the configured limit"""
