"""Markup engine: paragraphs, inline elements, text blocks and prose blocks."""

import re
from typing import Any

from . import ast
from .formula import FormulaParser
from .scanner import HSPACE_RE, WS_RE, Backtrack

# Characters that never belong to a word
SPECIAL = frozenset(" \t\r\n\\{}[]|&'`")
# A '<' starting one of these is markup, not text
TAG_STARTS = (
    "<ref ",
    "<ref\t",
    "</ref>",
    "<cite ",
    "<cite\t",
    "<em>",
    "</em>",
    "<mark>",
    "</mark>",
    '<a href="',
    "</a>",
)

PUNCTUATION: tuple[tuple[str, ast.PunctuationKind], ...] = (
    ("``", ast.PunctuationKind.LEFT_DOUBLE_QUOTE),
    ("''", ast.PunctuationKind.RIGHT_DOUBLE_QUOTE),
    ("`", ast.PunctuationKind.LEFT_SINGLE_QUOTE),
    ("...", ast.PunctuationKind.ELLIPSIS),
    ("&", ast.PunctuationKind.AMPERSAND),
)

MARKERS: tuple[tuple[str, ast.MarkerKind], ...] = (
    ("<em>", ast.MarkerKind.EMPHASIS_BEGIN),
    ("</em>", ast.MarkerKind.EMPHASIS_END),
    ("<mark>", ast.MarkerKind.HIGHLIGHT_BEGIN),
    ("</mark>", ast.MarkerKind.HIGHLIGHT_END),
)

CITATION_FIELDS = ("authors", "title", "container")
CONTAINER_FIELDS = (
    "container_title",
    "other_contributors",
    "version",
    "number",
    "publisher",
    "publication_date",
    "location",
)

URL_RE = re.compile(r'[^"\s]+')
END_PUNCTUATION_RE = re.compile(r"[.,;:!?]*")
NEWLINE_RE = re.compile(r"\r?\n")


class MarkupParser(FormulaParser):
    """Prose rules. Inline math is delegated to the formula engine."""

    # Unformatted elements

    def _word(self) -> ast.Word:
        src = self.source
        start = i = self.pos
        while i < len(src):
            ch = src[i]
            if ch in SPECIAL:
                break
            if ch == "." and src.startswith("...", i):
                break
            if ch == "<" and src.startswith(TAG_STARTS, i):
                break
            i += 1
        if i == start:
            self.expected("word")
            raise Backtrack()
        self.pos = i
        return ast.Word(text=src[start:i], span=self.span(start))

    def _punctuation(self) -> ast.Punctuation:
        start = self.pos
        for text, kind in PUNCTUATION:
            if self.peek(text):
                self.pos += len(text)
                return ast.Punctuation(kind=kind, text=text, span=self.span(start))
        if self.peek("'"):
            self.pos += 1
            if not self.at_end() and self.source[self.pos].isalnum():
                kind = ast.PunctuationKind.APOSTROPHE
            else:
                kind = ast.PunctuationKind.RIGHT_SINGLE_QUOTE
            return ast.Punctuation(kind=kind, text="'", span=self.span(start))
        self.expected("punctuation")
        raise Backtrack()

    def _bracket(self) -> ast.Punctuation:
        start = self.pos
        if self.peek("["):
            kind = ast.PunctuationKind.OPEN_BRACKET
        elif self.peek("]"):
            kind = ast.PunctuationKind.CLOSE_BRACKET
        else:
            self.expected("bracket")
            raise Backtrack()
        self.pos += 1
        return ast.Punctuation(kind=kind, text=self.source[start], span=self.span(start))

    def _whitespace(self) -> ast.Whitespace:
        start = self.pos
        self.skip()
        if self.pos == start:
            self.expected("whitespace")
            raise Backtrack()
        return ast.Whitespace(span=self.span(start))

    def hyperlink(self) -> ast.Hyperlink:
        start = self.pos
        self.expect('<a href="')
        m = URL_RE.match(self.source, self.pos)
        if not m:
            raise self.malformed("url")
        url = m.group(0)
        self.pos = m.end()
        self.expect('">')
        contents = self.many(lambda: self.choice(self._whitespace, self._punctuation, self._word))
        self.expect("</a>")
        return ast.Hyperlink(url=url, contents=tuple(contents), span=self.span(start))

    def _unformatted_element(self) -> ast.UnformattedElement:
        return self.choice(self.hyperlink, self._bracket, self._punctuation, self._word)

    def unformatted(self, multiline: bool = True) -> ast.Unformatted:
        """Text run with whitespace kept as single Whitespace elements.

        Leading and trailing whitespace is not part of the run.
        """
        gap = WS_RE if multiline else HSPACE_RE
        start = self.pos
        elements: list[Any] = []
        while True:
            mark = self.pos
            self.pos = gap.match(self.source, mark).end()
            gap_end = self.pos
            element = self.optional(self._unformatted_element)
            if element is None:
                self.pos = mark
                break
            if elements and gap_end > mark:
                elements.append(ast.Whitespace(span=ast.Span(start=mark, end=gap_end)))
            elements.append(element)
        if elements:
            start = elements[0].span.start
        return ast.Unformatted(elements=tuple(elements), span=self.span(start))

    # Inline elements

    def _reference_target(self) -> ast.ReferenceTarget:
        return self.choice(self.tag, self._fqid, self._identifier)

    def _fqid(self) -> ast.FullyQualifiedId:
        start = self.pos
        parent = self.ident()
        self.expect(".")
        child = self.ident()
        return ast.FullyQualifiedId(parent=parent, child=child, span=self.span(start))

    def _identifier(self) -> ast.Identifier:
        start = self.pos
        name = self.ident()
        return ast.Identifier(id=name, span=self.span(start))

    def reference(self) -> ast.Reference:
        start = self.pos
        self.expect("<ref")
        self.require_hspace()
        target = self._reference_target()
        self.hspace()

        def void() -> None:
            self.expect("/>")

        def full() -> str:
            self.expect(">")
            end = self.source.find("</ref>", self.pos)
            if end == -1:
                self.pos = len(self.source)
                raise self.fail("</ref>")
            body = self.source[self.pos : end]
            self.pos = end + len("</ref>")
            return body

        body = self.choice(void, full)
        return ast.Reference(target=target, body=body, span=self.span(start))

    def inline_math(self) -> ast.InlineMath:
        start = self.pos
        self.expect("\\(")
        row = self.math_row()
        self.token("\\)")
        return ast.InlineMath(math=row, span=self.span(start))

    def citation(self) -> ast.Citation:
        start = self.pos
        self.expect("<cite")
        self.require_hspace()
        name = self.ident()
        self.hspace()
        self.expect("/>")
        return ast.Citation(id=name, span=self.span(start))

    def marker(self) -> ast.Marker:
        start = self.pos
        for text, kind in MARKERS:
            if self.peek(text):
                self.pos += len(text)
                return ast.Marker(kind=kind, span=self.span(start))
        self.expected("marker")
        raise Backtrack()

    def _inline(self, brackets: bool = True) -> ast.TextElement:
        alternatives = [
            self.reference,
            self.inline_math,
            self.citation,
            self.marker,
            self.hyperlink,
            self._punctuation,
        ]
        # One-line text stops at "[" so manifests can open their child lists
        if brackets:
            alternatives.append(self._bracket)
        alternatives.append(self._word)
        return self.choice(*alternatives)

    def _gap(self, oneline: bool) -> bool:
        """Classify and consume the whitespace run between two inline elements.

        Returns False, consuming nothing, when the run holds two or more
        newlines: that is a paragraph break.
        """
        if oneline:
            self.hspace()
            return True
        m = WS_RE.match(self.source, self.pos)
        if m.group(0).count("\n") >= 2:
            return False
        self.pos = m.end()
        return True

    def paragraph(self, oneline: bool = False) -> ast.Paragraph:
        start = self.pos
        elements = [self._inline(not oneline)]
        while True:
            mark = self.pos
            if not self._gap(oneline):
                break
            element = self.optional(lambda: self._inline(not oneline))
            if element is None:
                self.pos = mark
                break
            elements.append(element)
        return ast.Paragraph(elements=tuple(elements), span=self.span(start))

    def oneline(self) -> ast.Paragraph:
        return self.paragraph(oneline=True)

    # Text blocks

    def text_block(self) -> ast.TextBlock:
        return self.choice(self.raw_citation, self.sublist, self.display_math, self.paragraph)

    def text_blocks(self) -> tuple[ast.TextBlock, ...]:
        return tuple(self.many(self.skipping(self.text_block)))

    def citation_fields(self, names: tuple[str, ...]) -> dict[str, Any]:
        """Fields in any order, each at most once."""
        found: dict[str, Any] = {}
        while True:
            remaining = [name for name in names if name not in found]
            if not remaining:
                break
            self.skip()
            result = self.optional(
                lambda: self.choice(*(lambda n=n: self._citation_field(n) for n in remaining))
            )
            if result is None:
                break
            name, value = result
            found[name] = value
        return found

    def _citation_field(self, name: str) -> tuple[str, Any]:
        start = self.pos
        self.keyword(name)
        self.token("{")
        if name == "container":
            fields = self.citation_fields(CONTAINER_FIELDS)
            self.token("}")
            return name, ast.MlaContainer(**fields, span=self.span(start))
        self.skip()
        value = self.unformatted()
        self.token("}")
        return name, value

    def raw_citation(self) -> ast.RawCitation:
        start = self.pos
        self.keyword("\\Cite")
        self.token("{")
        fields = self.citation_fields(CITATION_FIELDS)
        self.token("}")
        return ast.RawCitation(**fields, span=self.span(start))

    def _sublist_item(self) -> ast.SublistItem:
        self.skip()
        start = self.pos
        var = self.variable_name()
        self.hspace()
        self.expect(">>>")
        row = self.math_row()
        self.token(";")
        return ast.SublistItem(var=var, row=row, span=self.span(start))

    def sublist(self) -> ast.Sublist:
        start = self.pos
        self.keyword("\\Sublist")
        self.token("{")
        items = [self._sublist_item()]
        items += self.many(self._sublist_item)
        self.token("}")
        return ast.Sublist(items=tuple(items), span=self.span(start))

    def display_math(self) -> ast.DisplayMath:
        start = self.pos
        self.expect("\\[")
        row = self.math_row()
        self.token("\\]")
        end = END_PUNCTUATION_RE.match(self.source, self.pos).group(0)
        self.pos += len(end)
        return ast.DisplayMath(math=row, end=end, span=self.span(start))

    # Prose blocks (document level)

    def _end_of_line(self) -> None:
        self.hspace()
        if not (self.at_end() or NEWLINE_RE.match(self.source, self.pos)):
            self.expected("end of line")
            raise Backtrack()

    def _next_line(self, rule):
        def attempt():
            self.hspace()
            self.regex(NEWLINE_RE, "newline")
            self.hspace()
            return rule()

        return attempt

    def _list_item(self, marker) -> ast.ListItem:
        start = self.pos
        text = marker()
        self.require_hspace()
        content = self.oneline()
        self._end_of_line()
        return ast.ListItem(marker=text, content=content, span=ast.Span(start=start, end=content.span.end))

    def _bullet(self) -> str:
        return self.expect("-")

    def _number(self) -> str:
        number = self.integer()
        self.expect(".")
        return number

    def _lines(self, rule) -> list:
        first = rule()
        return [first] + self.many(self._next_line(rule))

    def unordered_list(self) -> ast.UnorderedList:
        start = self.pos
        items = self._lines(lambda: self._list_item(self._bullet))
        return ast.UnorderedList(items=tuple(items), span=ast.Span(start=start, end=items[-1].span.end))

    def ordered_list(self) -> ast.OrderedList:
        start = self.pos
        items = self._lines(lambda: self._list_item(self._number))
        return ast.OrderedList(items=tuple(items), span=ast.Span(start=start, end=items[-1].span.end))

    def _subheading(self) -> ast.Subheading:
        start = self.pos
        marks = self.choice(lambda: self.expect("###"), lambda: self.expect("##"), lambda: self.expect("#"))
        self.require_hspace()
        contents = self.unformatted(multiline=False)
        if not contents.elements:
            self.expected("heading text")
            raise Backtrack()
        self._end_of_line()
        return ast.Subheading(level=len(marks), contents=contents, span=ast.Span(start=start, end=contents.span.end))

    def heading_block(self) -> ast.HeadingBlock:
        start = self.pos
        subheadings = self._lines(self._subheading)
        return ast.HeadingBlock(
            subheadings=tuple(subheadings), span=ast.Span(start=start, end=subheadings[-1].span.end)
        )

    def _table_row(self) -> ast.TableRow:
        self.skip()
        start = self.pos
        self.keyword("row")
        self.token("{")
        self.skip()
        cells = [self.oneline()]

        def next_cell() -> ast.Paragraph:
            self.token("|")
            self.skip()
            return self.oneline()

        cells += self.many(next_cell)
        self.token("}")
        return ast.TableRow(cells=tuple(cells), span=self.span(start))

    def _table_section(self, name: str) -> tuple[ast.TableRow, ...]:
        self.skip()
        self.keyword(name)
        self.token("{")
        rows = self.many(self._table_row)
        self.token("}")
        return tuple(rows)

    def _table_caption(self) -> ast.Paragraph:
        self.skip()
        self.keyword("caption")
        self.token("{")
        self.skip()
        caption = self.oneline()
        self.token("}")
        return caption

    def table_block(self) -> ast.TableBlock:
        start = self.pos
        self.keyword("\\Table")
        self.token("{")
        head = self.optional(lambda: self._table_section("head"))
        body = self.optional(lambda: self._table_section("body"))
        foot = self.optional(lambda: self._table_section("foot"))
        caption = self.optional(self._table_caption)
        self.token("}")
        return ast.TableBlock(head=head, body=body, foot=foot, caption=caption, span=self.span(start))

    def _braced_unformatted(self, name: str) -> ast.Unformatted:
        self.skip()
        self.keyword(name)
        self.token("{")
        self.skip()
        value = self.unformatted()
        self.token("}")
        return value

    def quote_block(self) -> ast.QuoteBlock:
        start = self.pos
        self.keyword("\\Quote")
        self.token("{")
        original = self.optional(lambda: self._braced_unformatted("original"))
        value = self._braced_unformatted("value")
        self.token("}")
        return ast.QuoteBlock(original=original, value=value, span=self.span(start))

    def todo_block(self) -> ast.TodoBlock:
        start = self.pos
        self.keyword("\\Todo")
        self.token("{")
        elements = self.text_blocks()
        self.token("}")
        return ast.TodoBlock(elements=elements, span=self.span(start))
