"""Tests for tree traversal, spans and serialization."""

import pytest
from pydantic import ValidationError

from proofdoc import NodeVisitor, ProofStep, parse_document, walk
from proofdoc.ast import Paragraph, Reference, Span, Word

SOURCE = r"""\Proof t : logic {
  By <ref #key/> we get:
  | 1 | 'a ;
  | #key, 1 | 'a -> 'b ;
}

A closing remark."""


class WordCounter(NodeVisitor):
    def __init__(self):
        self.words = []

    def visit_Word(self, node):
        self.words.append(node.text)


class TestTraversal:
    def test_walk_finds_nested_nodes(self):
        doc = parse_document(SOURCE)
        steps = [n for n in walk(doc) if isinstance(n, ProofStep)]
        assert len(steps) == 2

    def test_walk_is_source_ordered(self):
        doc = parse_document(SOURCE)
        starts = [n.span.start for n in walk(doc) if isinstance(n, Word)]
        assert starts == sorted(starts)

    def test_visitor_dispatch(self):
        counter = WordCounter()
        counter.visit(parse_document(SOURCE))
        assert counter.words == ["By", "we", "get:", "A", "closing", "remark."]

    def test_children_of_leaf(self):
        doc = parse_document("word")
        assert list(doc.blocks[0].elements[0].children()) == []


class TestSpans:
    def test_block_spans(self):
        doc = parse_document(SOURCE)
        proof, remark = doc.blocks
        assert proof.span.text(SOURCE).startswith("\\Proof")
        assert proof.span.text(SOURCE).endswith("}")
        assert remark.span.text(SOURCE) == "A closing remark."

    def test_reference_span(self):
        doc = parse_document(SOURCE)
        ref = next(n for n in walk(doc) if isinstance(n, Reference))
        assert ref.span.text(SOURCE) == "<ref #key/>"

    def test_span_text(self):
        assert Span(start=2, end=5).text("abcdefg") == "cde"


class TestModels:
    def test_nodes_are_frozen(self):
        paragraph = parse_document("hello").blocks[0]
        assert isinstance(paragraph, Paragraph)
        with pytest.raises(ValidationError):
            paragraph.elements = ()

    def test_model_dump(self):
        data = parse_document('\\Axiom a : s { name = "X"; }').model_dump()
        block = data["blocks"][0]
        assert block["type"] == "axiom"
        assert block["entries"][0] == {
            "span": {"start": 15, "end": 26},
            "kind": "name",
            "value": "X",
        }

    def test_json_round_trip(self):
        doc = parse_document(SOURCE)
        restored = type(doc).model_validate_json(doc.model_dump_json())
        assert restored == doc
