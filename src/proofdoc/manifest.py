"""Manifest dialect: the book / chapter / page table of contents.

    book    = ident ":" string "{" oneline "[" chapter* "]" "}"
    chapter = ident ":" string "{" oneline "[" page* "]" "}"
    page    = ident ":" string ","
"""

from . import ast
from .markup import MarkupParser


class ManifestParser(MarkupParser):
    def _heading(self) -> tuple[str, str]:
        self.skip()
        node_id = self.ident()
        self.token(":")
        self.skip()
        title = self.string()
        return node_id, title

    def _section(self, children):
        """'{' oneline '[' children* ']' '}' shared by books and chapters."""
        self.token("{")
        self.skip()
        description = self.oneline()
        self.token("[")
        items = self.many(children)
        self.token("]")
        self.token("}")
        return description, tuple(items)

    def page(self) -> ast.Page:
        self.skip()
        start = self.pos
        page_id, title = self._heading()
        self.token(",")
        return ast.Page(id=page_id, title=title, span=self.span(start))

    def chapter(self) -> ast.Chapter:
        self.skip()
        start = self.pos
        chapter_id, title = self._heading()
        description, pages = self._section(self.page)
        return ast.Chapter(
            id=chapter_id, title=title, description=description, pages=pages, span=self.span(start)
        )

    def book(self) -> ast.Book:
        self.skip()
        start = self.pos
        book_id, title = self._heading()
        description, chapters = self._section(self.chapter)
        return ast.Book(
            id=book_id, title=title, description=description, chapters=chapters, span=self.span(start)
        )

    def manifest(self) -> ast.Manifest:
        self.skip()
        start = self.pos
        books = [self.book()]
        books += self.many(self.book)
        return ast.Manifest(books=tuple(books), span=self.span(start))

    def parse(self) -> ast.Manifest:
        return self.run(self.manifest)
