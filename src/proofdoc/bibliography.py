"""Bibliography dialect: MLA-style entries keyed by citation id.

    entry = ident "{" mla_field* "}"

Fields may come in any order; each may appear at most once.
"""

from . import ast
from .markup import CITATION_FIELDS, MarkupParser


class BibliographyParser(MarkupParser):
    def entry(self) -> ast.BibEntry:
        self.skip()
        start = self.pos
        entry_id = self.ident()
        self.token("{")
        fields = self.citation_fields(CITATION_FIELDS)
        self.token("}")
        return ast.BibEntry(id=entry_id, **fields, span=self.span(start))

    def bibliography(self) -> ast.Bibliography:
        self.skip()
        start = self.pos
        entries = self.many(self.entry)
        end = entries[-1].span.end if entries else start
        return ast.Bibliography(entries=tuple(entries), span=ast.Span(start=start, end=end))

    def parse(self) -> ast.Bibliography:
        return self.run(self.bibliography)
