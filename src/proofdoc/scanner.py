"""Scanner primitives shared by every proofdoc dialect.

The parsers are scannerless PEG parsers: each rule works directly on the
source string and a cursor. Three whitespace disciplines are used:

    atomic           no whitespace skipping, one token (ident, integer, word)
    compound-atomic  no whitespace skipping, but builds sub-nodes (var, tag)
    normal           whitespace is skipped between terms via skip()

A rule that does not match raises Backtrack. The combinators (choice,
optional, many) rewind the cursor to the pre-attempt mark, so a failed
alternative never leaves partial progress behind. The furthest failure seen
across all attempts is what gets reported when the whole parse fails.
"""

import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from . import ast
from .errors import (
    MalformedAtomicToken,
    NestingTooDeep,
    ParseError,
    SourceMap,
    UnexpectedToken,
    UnterminatedConstruct,
)

T = TypeVar("T")

# Deepest nesting of parentheses and math groups
MAX_NESTING = 64

IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
INTEGER_RE = re.compile(r"[0-9]+")
TAG_RE = re.compile(r"[A-Za-z0-9_\-]+")
WS_RE = re.compile(r"[ \t\r\n]*")
HSPACE_RE = re.compile(r"[ \t]*")

# Closing tokens whose absence at end of input means an unterminated construct
CLOSERS = {"}", "]", ")", '"', "</ref>", "</a>", "\\)", "\\]"}


def is_ident_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


class Backtrack(Exception):
    """Internal signal: the current rule did not match."""


class Scanner:
    """Cursor over one source buffer plus furthest-failure bookkeeping."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self._fail_pos = -1
        self._expected: set[str] = set()
        self._closers: set[str] = set()
        self._malformed: str | None = None
        self._depth = 0

    # Cursor

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, text: str) -> bool:
        """Lookahead without consuming or recording a failure."""
        return self.source.startswith(text, self.pos)

    def span(self, start: int) -> ast.Span:
        return ast.Span(start=start, end=self.pos)

    # Failure bookkeeping

    def expected(self, what: str, closer: str | None = None, pos: int | None = None) -> None:
        pos = self.pos if pos is None else pos
        if pos > self._fail_pos:
            self._fail_pos = pos
            self._expected = set()
            self._closers = set()
            self._malformed = None
        if pos == self._fail_pos:
            self._expected.add(what)
            if closer is not None:
                self._closers.add(closer)

    def fail(self, what: str) -> Backtrack:
        """Record an expected literal at the cursor and return the signal to raise."""
        closer = what if what in CLOSERS else None
        self.expected(f'"{what}"', closer)
        return Backtrack()

    def malformed(self, token: str) -> Backtrack:
        self.expected(token)
        if self.pos == self._fail_pos:
            self._malformed = token
        return Backtrack()

    def error(self) -> ParseError:
        """Build the single terminal error from the furthest failure."""
        source_map = SourceMap(self.source)
        offset = max(self._fail_pos, 0)
        line, col = source_map.location(offset)
        if self._malformed is not None:
            return MalformedAtomicToken(self._malformed, line, col, offset)
        if offset >= len(self.source) and self._closers:
            return UnterminatedConstruct(sorted(self._closers)[0], line, col, offset)
        if offset >= len(self.source):
            found = "end of input"
        else:
            found = repr(self.source[offset])
        return UnexpectedToken(sorted(self._expected), found, line, col, offset)

    def too_deep(self) -> NestingTooDeep:
        line, col = SourceMap(self.source).location(self.pos)
        return NestingTooDeep(MAX_NESTING, line, col, self.pos)

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Count one level of bracket nesting; past MAX_NESTING the parse fails."""
        if self._depth >= MAX_NESTING:
            raise self.too_deep()
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    # Combinators

    def choice(self, *alternatives: Callable[[], T]) -> T:
        """Ordered choice: the first alternative that matches wins."""
        start = self.pos
        for alternative in alternatives:
            try:
                return alternative()
            except Backtrack:
                self.pos = start
        raise Backtrack()

    def optional(self, rule: Callable[[], T]) -> T | None:
        start = self.pos
        try:
            return rule()
        except Backtrack:
            self.pos = start
            return None

    def many(self, rule: Callable[[], T]) -> list[T]:
        results = []
        while True:
            start = self.pos
            try:
                result = rule()
            except Backtrack:
                self.pos = start
                return results
            if self.pos == start:
                return results
            results.append(result)

    def skipping(self, rule: Callable[[], T]) -> Callable[[], T]:
        """Wrap rule so that leading whitespace is skipped first."""

        def attempt() -> T:
            self.skip()
            return rule()

        return attempt

    def run(self, rule: Callable[[], T]) -> T:
        """Apply rule to the whole buffer, raising ParseError on failure."""
        try:
            result = rule()
            self.skip()
            if not self.at_end():
                self.expected("end of input")
                raise Backtrack()
        except Backtrack:
            raise self.error() from None
        except RecursionError:
            raise self.too_deep() from None
        return result

    # Whitespace

    def skip(self) -> None:
        """Normal-rule whitespace skipping (the grammar has no comments)."""
        self.pos = WS_RE.match(self.source, self.pos).end()

    def hspace(self) -> None:
        self.pos = HSPACE_RE.match(self.source, self.pos).end()

    def require_hspace(self) -> None:
        end = HSPACE_RE.match(self.source, self.pos).end()
        if end == self.pos:
            self.expected("whitespace")
            raise Backtrack()
        self.pos = end

    # Literals

    def expect(self, text: str) -> str:
        if self.source.startswith(text, self.pos):
            self.pos += len(text)
            return text
        raise self.fail(text)

    def token(self, text: str) -> str:
        """Normal rule: skip whitespace, then match text."""
        self.skip()
        return self.expect(text)

    def keyword(self, word: str) -> str:
        """Match word as a whole word (not followed by an identifier char)."""
        end = self.pos + len(word)
        if self.source.startswith(word, self.pos) and not (
            end < len(self.source) and is_ident_char(self.source[end])
        ):
            self.pos = end
            return word
        raise self.fail(word)

    def regex(self, pattern: re.Pattern, name: str) -> str:
        m = pattern.match(self.source, self.pos)
        if not m or m.end() == self.pos:
            self.expected(name)
            raise Backtrack()
        self.pos = m.end()
        return m.group(0)

    # Atomic tokens

    def ident(self) -> str:
        return self.regex(IDENT_RE, "identifier")

    def integer(self) -> str:
        return self.regex(INTEGER_RE, "integer")

    def string(self) -> str:
        """Compound-atomic string; contents are returned verbatim (escapes kept)."""
        self.expect('"')
        i = self.pos
        n = len(self.source)
        while i < n and self.source[i] != '"':
            i += 2 if self.source[i] == "\\" else 1
        if i >= n:
            self.pos = n
            raise self.fail('"')
        value = self.source[self.pos : i]
        self.pos = i + 1
        return value

    def variable_name(self) -> str:
        """'ident with no whitespace after the quote."""
        self.expect("'")
        m = IDENT_RE.match(self.source, self.pos)
        if not m:
            raise self.malformed("variable")
        self.pos = m.end()
        return m.group(0)

    def tag(self) -> ast.Tag:
        start = self.pos
        self.expect("#")
        m = TAG_RE.match(self.source, self.pos)
        if not m:
            raise self.malformed("tag")
        self.pos = m.end()
        return ast.Tag(name=m.group(0), span=self.span(start))
