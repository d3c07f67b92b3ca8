"""Document driver: a document is an ordered sequence of blocks."""

from . import ast
from .blocks import BlockParser


class DocumentParser(BlockParser):
    """Top-level rule for `.math` documents.

    Block kinds are tried in a fixed order. Declarations come first since
    they open with a keyword, then the line-oriented prose blocks, and the
    text blocks last because a paragraph accepts almost anything.
    """

    def block(self) -> ast.DocumentBlock:
        return self.choice(
            self.system_block,
            self.type_block,
            self.symbol_block,
            self.definition_block,
            self.axiom_block,
            self.theorem_block,
            self.proof_block,
            self.unordered_list,
            self.ordered_list,
            self.table_block,
            self.quote_block,
            self.heading_block,
            self.todo_block,
            self.text_block,
        )

    def document(self) -> ast.Document:
        self.skip()
        start = self.pos
        blocks = self.many(self.skipping(self.block))
        end = blocks[-1].span.end if blocks else start
        return ast.Document(blocks=tuple(blocks), span=ast.Span(start=start, end=end))

    def parse(self) -> ast.Document:
        return self.run(self.document)
