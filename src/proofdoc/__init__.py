"""proofdoc: parse formal-mathematics documents into typed syntax trees.

Three dialects share one markup engine: documents (declarations, proofs and
prose), manifests (book / chapter / page contents) and bibliographies.

Example:
    from proofdoc import parse_document, walk, ProofStep

    doc = parse_document(open("logic.math").read())
    steps = [n for n in walk(doc) if isinstance(n, ProofStep)]
"""

__version__ = "0.1.0"

from .ast import (
    AxiomBlock,
    BibEntry,
    Bibliography,
    Book,
    Chapter,
    Declaration,
    DefinitionBlock,
    Document,
    Formula,
    Manifest,
    MathRow,
    Node,
    NodeVisitor,
    OperatorChain,
    OperatorKind,
    Page,
    Paragraph,
    ProofBlock,
    ProofStep,
    Span,
    SymbolBlock,
    SystemBlock,
    TheoremBlock,
    TypeBlock,
    walk,
)
from .errors import (
    MalformedAtomicToken,
    NestingTooDeep,
    ParseError,
    SourceMap,
    UnexpectedToken,
    UnterminatedConstruct,
)
from .parser import (
    Dialect,
    parse,
    parse_bibliography,
    parse_document,
    parse_file,
    parse_formula,
    parse_manifest,
    parse_math_row,
)

__all__ = [
    # Parse
    "parse",
    "parse_document",
    "parse_manifest",
    "parse_bibliography",
    "parse_formula",
    "parse_math_row",
    "parse_file",
    "Dialect",
    # Errors
    "ParseError",
    "UnexpectedToken",
    "UnterminatedConstruct",
    "MalformedAtomicToken",
    "NestingTooDeep",
    "SourceMap",
    # Tree
    "Node",
    "Span",
    "walk",
    "NodeVisitor",
    "Document",
    "Declaration",
    "SystemBlock",
    "TypeBlock",
    "SymbolBlock",
    "DefinitionBlock",
    "AxiomBlock",
    "TheoremBlock",
    "ProofBlock",
    "ProofStep",
    "Formula",
    "OperatorChain",
    "OperatorKind",
    "MathRow",
    "Paragraph",
    "Manifest",
    "Book",
    "Chapter",
    "Page",
    "Bibliography",
    "BibEntry",
]
