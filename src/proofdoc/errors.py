"""Syntax errors raised by the proofdoc parsers."""

from bisect import bisect_right

from .ast import Span


class SourceMap:
    """Maps character offsets to 1-based (line, column) pairs."""

    def __init__(self, source: str):
        self.source = source
        self._line_starts = [0]
        for i, ch in enumerate(source):
            if ch == "\n":
                self._line_starts.append(i + 1)

    def location(self, offset: int) -> tuple[int, int]:
        offset = max(0, min(offset, len(self.source)))
        line = bisect_right(self._line_starts, offset)
        col = offset - self._line_starts[line - 1] + 1
        return line, col

    def line_text(self, line: int) -> str:
        start = self._line_starts[line - 1]
        end = self.source.find("\n", start)
        return self.source[start:] if end == -1 else self.source[start:end]


class ParseError(Exception):
    """Base class for all syntax errors. Carries a source position and span."""

    def __init__(self, msg: str, line: int, col: int, offset: int = 0, span: Span | None = None):
        super().__init__(f"line {line}, col {col}: {msg}")
        self.msg = msg
        self.line = line
        self.col = col
        self.offset = offset
        self.span = span if span is not None else Span(start=offset, end=offset)


class UnexpectedToken(ParseError):
    """No alternative matched at the furthest position the parser reached."""

    def __init__(self, expected: list[str], found: str, line: int, col: int, offset: int = 0):
        self.expected = expected
        self.found = found
        if expected:
            msg = f"expected {_describe(expected)}, found {found}"
        else:
            msg = f"unexpected {found}"
        super().__init__(msg, line, col, offset)


class UnterminatedConstruct(ParseError):
    """A required closing token was missing before end of input."""

    def __init__(self, closer: str, line: int, col: int, offset: int = 0):
        self.closer = closer
        super().__init__(f"unterminated construct: expected {closer!r} before end of input", line, col, offset)


class MalformedAtomicToken(ParseError):
    """An atomic token (tag, url, variable, ...) matched no characters."""

    def __init__(self, token: str, line: int, col: int, offset: int = 0):
        self.token = token
        super().__init__(f"malformed {token}", line, col, offset)


def _describe(expected: list[str]) -> str:
    if len(expected) == 1:
        return expected[0]
    return "one of " + ", ".join(expected)


class NestingTooDeep(ParseError):
    """Parentheses, groups or blocks nested past the parser's depth limit."""

    def __init__(self, limit: int, line: int, col: int, offset: int = 0):
        self.limit = limit
        super().__init__(f"nesting deeper than {limit} levels", line, col, offset)
