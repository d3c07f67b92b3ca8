"""Tests for paragraphs, inline elements and text blocks."""

import pytest

from proofdoc import ParseError, parse_document
from proofdoc.ast import (
    Citation,
    DisplayMath,
    FullyQualifiedId,
    Hyperlink,
    Identifier,
    InlineMath,
    Marker,
    MarkerKind,
    Paragraph,
    Punctuation,
    PunctuationKind,
    RawCitation,
    Reference,
    Sublist,
    Tag,
    Whitespace,
    Word,
)


def only_paragraph(source: str) -> Paragraph:
    doc = parse_document(source)
    assert len(doc.blocks) == 1
    paragraph = doc.blocks[0]
    assert isinstance(paragraph, Paragraph)
    return paragraph


class TestParagraphBreaks:
    def test_single_newline_joins(self):
        paragraph = only_paragraph("foo\nbar")
        assert [e.text for e in paragraph.elements] == ["foo", "bar"]

    def test_blank_line_splits(self):
        doc = parse_document("foo\n\nbar")
        assert len(doc.blocks) == 2
        assert all(isinstance(b, Paragraph) for b in doc.blocks)
        assert doc.blocks[1].elements[0].text == "bar"

    def test_blank_line_with_spaces_splits(self):
        doc = parse_document("foo\n   \n  bar")
        assert len(doc.blocks) == 2

    def test_whitespace_is_not_an_element(self):
        paragraph = only_paragraph("one two  three")
        assert all(isinstance(e, Word) for e in paragraph.elements)
        assert len(paragraph.elements) == 3


class TestInlineText:
    def test_words_keep_trailing_punctuation(self):
        paragraph = only_paragraph("Hello, world.")
        assert [e.text for e in paragraph.elements] == ["Hello,", "world."]

    def test_quotes_and_apostrophe(self):
        paragraph = only_paragraph("It's ``fine''")
        kinds = [getattr(e, "kind", None) for e in paragraph.elements]
        assert kinds == [
            None,
            PunctuationKind.APOSTROPHE,
            None,
            PunctuationKind.LEFT_DOUBLE_QUOTE,
            None,
            PunctuationKind.RIGHT_DOUBLE_QUOTE,
        ]

    def test_single_quotes(self):
        paragraph = only_paragraph("`so'")
        assert paragraph.elements[0].kind == PunctuationKind.LEFT_SINGLE_QUOTE
        assert paragraph.elements[2].kind == PunctuationKind.RIGHT_SINGLE_QUOTE

    def test_ellipsis_and_ampersand(self):
        paragraph = only_paragraph("wait... A & B")
        assert paragraph.elements[0].text == "wait"
        assert paragraph.elements[1].kind == PunctuationKind.ELLIPSIS
        assert paragraph.elements[3].kind == PunctuationKind.AMPERSAND

    def test_word_span_round_trips(self):
        source = "alpha beta-gamma"
        paragraph = only_paragraph(source)
        assert [e.span.text(source) for e in paragraph.elements] == ["alpha", "beta-gamma"]


class TestReferences:
    def test_void_tag_reference(self):
        source = "See <ref #lem-1/>."
        paragraph = only_paragraph(source)
        ref = paragraph.elements[1]
        assert isinstance(ref, Reference)
        assert ref.is_void
        assert isinstance(ref.target, Tag)
        assert ref.target.name == "lem-1"
        assert ref.target.span.text(source) == "#lem-1"
        assert paragraph.elements[2].text == "."

    def test_full_reference_keeps_body_verbatim(self):
        paragraph = only_paragraph("by <ref logic.mp>modus  ponens</ref>")
        ref = paragraph.elements[1]
        assert isinstance(ref.target, FullyQualifiedId)
        assert (ref.target.parent, ref.target.child) == ("logic", "mp")
        assert ref.body == "modus  ponens"
        assert not ref.is_void

    def test_identifier_target(self):
        paragraph = only_paragraph("<ref excluded_middle/>")
        assert isinstance(paragraph.elements[0].target, Identifier)

    def test_unterminated_full_reference(self):
        with pytest.raises(ParseError):
            parse_document("<ref a>never closed")


class TestInlineForms:
    def test_inline_math(self):
        paragraph = only_paragraph("Let \\(x + 1\\) be")
        math = paragraph.elements[1]
        assert isinstance(math, InlineMath)
        assert len(math.math.items) == 3
        assert paragraph.elements[2].text == "be"

    def test_citation(self):
        paragraph = only_paragraph("As shown <cite knuth84/>.")
        cite = paragraph.elements[2]
        assert isinstance(cite, Citation)
        assert cite.id == "knuth84"

    def test_markers_are_not_balanced(self):
        paragraph = only_paragraph("<em>bold</em> and <mark>open")
        markers = [e.kind for e in paragraph.elements if isinstance(e, Marker)]
        assert markers == [
            MarkerKind.EMPHASIS_BEGIN,
            MarkerKind.EMPHASIS_END,
            MarkerKind.HIGHLIGHT_BEGIN,
        ]

    def test_hyperlink(self):
        paragraph = only_paragraph('Visit <a href="https://example.org/x">the site</a> now')
        link = paragraph.elements[1]
        assert isinstance(link, Hyperlink)
        assert link.url == "https://example.org/x"
        assert [type(e) for e in link.contents] == [Word, Whitespace, Word]
        assert paragraph.elements[2].text == "now"

    def test_less_than_in_prose_is_a_word(self):
        paragraph = only_paragraph("a <b")
        assert [e.text for e in paragraph.elements] == ["a", "<b"]


class TestTextBlocks:
    def test_display_math_end_punctuation(self):
        doc = parse_document("\\[ x = y \\].")
        block = doc.blocks[0]
        assert isinstance(block, DisplayMath)
        assert block.end == "."
        assert len(block.math.items) == 3

    def test_sublist(self):
        doc = parse_document("\\Sublist{ 'x >>> a + b; 'y >>> c; }")
        block = doc.blocks[0]
        assert isinstance(block, Sublist)
        assert [item.var for item in block.items] == ["x", "y"]
        assert len(block.items[0].row.items) == 3

    def test_empty_sublist_fails(self):
        with pytest.raises(ParseError):
            parse_document("\\Sublist{ }")

    def test_raw_citation(self):
        doc = parse_document("\\Cite{ title { Principia Mathematica } }")
        block = doc.blocks[0]
        assert isinstance(block, RawCitation)
        assert block.authors is None
        assert [e.text for e in block.title.elements if isinstance(e, Word)] == [
            "Principia",
            "Mathematica",
        ]

    def test_brackets_in_unformatted_text(self):
        doc = parse_document("\\Cite{ title { Vol. [2] } }")
        kinds = [getattr(e, "kind", None) for e in doc.blocks[0].title.elements]
        assert PunctuationKind.OPEN_BRACKET in kinds
        assert PunctuationKind.CLOSE_BRACKET in kinds
        assert isinstance(doc.blocks[0].title.elements[-1], Punctuation)


class TestParagraphBrackets:
    def test_bracketed_number_in_prose(self):
        paragraph = only_paragraph("See [1] for details.")
        assert [e.text for e in paragraph.elements] == ["See", "[", "1", "]", "for", "details."]
        assert paragraph.elements[1].kind == PunctuationKind.OPEN_BRACKET
        assert paragraph.elements[3].kind == PunctuationKind.CLOSE_BRACKET

    def test_brackets_in_description(self):
        doc = parse_document("\\System logic {\n  description { Proved in [Church, 1936]. }\n}")
        paragraph = doc.blocks[0].entry("description").blocks[0]
        assert isinstance(paragraph, Paragraph)
        brackets = [e for e in paragraph.elements if isinstance(e, Punctuation)]
        assert [b.kind for b in brackets] == [
            PunctuationKind.OPEN_BRACKET,
            PunctuationKind.CLOSE_BRACKET,
        ]

    def test_brackets_not_allowed_in_one_line_text(self):
        with pytest.raises(ParseError):
            parse_document("\\System logic {\n  tagline { See [1] }\n}")
