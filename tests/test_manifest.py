"""Tests for the manifest dialect."""

import pytest

from proofdoc import ParseError, UnterminatedConstruct, parse_manifest

MANIFEST = """
logic : "Logic" { An introduction to logic. [
  props : "Propositions" { The basics. [
    intro : "Introduction",
    rules : "Inference Rules",
  ] }
] }

algebra : "Algebra" { Groups and rings. [
  groups : "Groups" { Definitions first. [
    defs : "Definitions",
    examples : "Examples",
  ] }
] }
"""


class TestManifest:
    def test_nesting_shape(self):
        manifest = parse_manifest(MANIFEST)
        assert [book.id for book in manifest.books] == ["logic", "algebra"]
        assert [len(book.chapters) for book in manifest.books] == [1, 1]
        assert [len(book.chapters[0].pages) for book in manifest.books] == [2, 2]

    def test_page_order_and_titles(self):
        manifest = parse_manifest(MANIFEST)
        pages = manifest.books[1].chapters[0].pages
        assert [(p.id, p.title) for p in pages] == [("defs", "Definitions"), ("examples", "Examples")]

    def test_descriptions_are_oneline(self):
        manifest = parse_manifest(MANIFEST)
        book = manifest.books[0]
        assert book.title == "Logic"
        assert [e.text for e in book.description.elements] == ["An", "introduction", "to", "logic."]
        assert book.chapters[0].description.elements[0].text == "The"

    def test_empty_chapter_list(self):
        manifest = parse_manifest('solo : "Solo" { Nothing yet. [ ] }')
        assert manifest.books[0].chapters == ()

    def test_needs_at_least_one_book(self):
        with pytest.raises(ParseError):
            parse_manifest("  \n")

    def test_page_needs_comma(self):
        with pytest.raises(ParseError):
            parse_manifest('b : "B" { d. [ c : "C" { d. [ p : "P" ] } ] }')

    def test_unterminated(self):
        with pytest.raises(UnterminatedConstruct):
            parse_manifest('b : "B" { d. [ c : "C" { d. [ p : "P",')
