"""Entry points for the three proofdoc dialects.

    document      ordinary .math files: declarations, proofs and prose
    manifest      manifest.math, the book / chapter / page table of contents
    bibliography  bib.math, MLA-style citation entries

Each call parses one buffer with a fresh parser and either returns the whole
tree or raises a single ParseError.
"""

import logging
from enum import Enum
from pathlib import Path

from . import ast
from .bibliography import BibliographyParser
from .document import DocumentParser
from .manifest import ManifestParser
from .scanner import Backtrack

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.math"
BIBLIOGRAPHY_NAME = "bib.math"


class Dialect(str, Enum):
    DOCUMENT = "document"
    MANIFEST = "manifest"
    BIBLIOGRAPHY = "bibliography"


def parse_document(source: str) -> ast.Document:
    """Parse a document into its ordered blocks."""
    return DocumentParser(source).parse()


def parse_manifest(source: str) -> ast.Manifest:
    """Parse a manifest: one or more books."""
    return ManifestParser(source).parse()


def parse_bibliography(source: str) -> ast.Bibliography:
    """Parse a bibliography: zero or more entries."""
    return BibliographyParser(source).parse()


def parse_formula(source: str, pos: int = 0) -> tuple[ast.Formula, int]:
    """Parse one formula starting at pos.

    Returns the formula and the number of characters consumed. Trailing input
    is left alone; raises ParseError when no formula starts at pos.
    """
    parser = DocumentParser(source)
    parser.pos = pos
    try:
        formula = parser.formula()
    except Backtrack:
        raise parser.error() from None
    except RecursionError:
        raise parser.too_deep() from None
    return formula, parser.pos - pos


def parse_math_row(source: str) -> ast.MathRow:
    """Parse a whole buffer as one typeset math row."""
    parser = DocumentParser(source)
    return parser.run(parser.math_row)


def detect_dialect(
    path: str | Path,
    manifest_name: str = MANIFEST_NAME,
    bibliography_name: str = BIBLIOGRAPHY_NAME,
) -> Dialect:
    """Pick a dialect from the file name."""
    name = Path(path).name
    if name == manifest_name:
        return Dialect.MANIFEST
    if name == bibliography_name:
        return Dialect.BIBLIOGRAPHY
    return Dialect.DOCUMENT


PARSERS = {
    Dialect.DOCUMENT: parse_document,
    Dialect.MANIFEST: parse_manifest,
    Dialect.BIBLIOGRAPHY: parse_bibliography,
}


def parse(source: str, dialect: Dialect | str = Dialect.DOCUMENT):
    """Parse source in the given dialect."""
    return PARSERS[Dialect(dialect)](source)


def parse_file(filepath: str | Path, dialect: Dialect | str | None = None):
    """Parse a .math file, detecting the dialect from its name when not given."""
    filepath = Path(filepath)
    if dialect is None:
        dialect = detect_dialect(filepath)
    dialect = Dialect(dialect)
    logger.debug("parsing %s as %s", filepath, dialect.value)
    source = filepath.read_text(encoding="utf-8")
    return parse(source, dialect)
