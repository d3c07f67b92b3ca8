"""AST nodes for proofdoc documents, manifests and bibliographies."""

from collections.abc import Iterator
from enum import Enum
from typing import Annotated, Any
from typing import Literal as TypingLiteral

from pydantic import BaseModel, ConfigDict, Field


class Span(BaseModel):
    """Half-open character range [start, end) into the parsed source."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    def text(self, source: str) -> str:
        return source[self.start : self.end]


class Node(BaseModel):
    """Base class for every tree node. Nodes are immutable once built."""

    model_config = ConfigDict(frozen=True)

    span: Span

    def children(self) -> Iterator["Node"]:
        """Yield direct child nodes in field order."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, tuple):
                for item in value:
                    if isinstance(item, Node):
                        yield item


def walk(node: Node) -> Iterator[Node]:
    """Yield node and all of its descendants, depth first, in source order."""
    yield node
    for child in node.children():
        yield from walk(child)


class NodeVisitor:
    """Dispatches on node class name: visit_Paragraph, visit_ProofStep, ...

    Unhandled node types fall through to generic_visit, which visits children.
    """

    def visit(self, node: Node) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: Node) -> None:
        for child in node.children():
            self.visit(child)


# Formulas


class OperatorKind(str, Enum):
    NEGATION = "negation"
    EQUIVALENCE = "equivalence"
    IMPLICATION = "implication"
    AND = "and"
    OR = "or"
    PLUS = "plus"
    MINUS = "minus"
    ASTERISK = "asterisk"
    SLASH = "slash"
    LESS_THAN = "less_than"
    EQUAL = "equal"
    GREATER_THAN = "greater_than"
    TWIDDLE = "twiddle"


class Operator(Node):
    type: TypingLiteral["operator"] = "operator"
    kind: OperatorKind
    symbol: str


class Symbol(Node):
    """Identifier used as a formula operand (e.g. 'true' or 'zero')."""

    type: TypingLiteral["symbol"] = "symbol"
    id: str


class Variable(Node):
    """Variable reference written as 'x."""

    type: TypingLiteral["variable"] = "variable"
    id: str


class Parenthesized(Node):
    type: TypingLiteral["paren"] = "paren"
    formula: "Formula"


Primary = Annotated[Symbol | Variable | Parenthesized, Field(discriminator="type")]


class ChainLink(Node):
    """One (operator, prefix run, operand) step of an operator chain."""

    operator: Operator
    prefix: tuple[Operator, ...] = ()
    operand: Primary


class OperatorChain(Node):
    """Flat operand/operator sequence in source order.

    Precedence and associativity are left to a later pass, so the chain is
    never folded into a tree here; parentheses are the only grouping.
    """

    type: TypingLiteral["chain"] = "chain"
    prefix: tuple[Operator, ...] = ()
    head: Primary
    links: tuple[ChainLink, ...] = ()

    def operators(self) -> list[Operator]:
        return [link.operator for link in self.links]


Formula = Annotated[
    Symbol | Variable | Parenthesized | OperatorChain,
    Field(discriminator="type"),
]


# Typeset math


class MathSymbol(Node):
    type: TypingLiteral["math_symbol"] = "math_symbol"
    id: str


class MathVariable(Node):
    type: TypingLiteral["math_variable"] = "math_variable"
    id: str


class MathNumber(Node):
    type: TypingLiteral["math_number"] = "math_number"
    value: str  # digits exactly as written


class MathPunctuation(Node):
    type: TypingLiteral["math_punctuation"] = "math_punctuation"
    kind: TypingLiteral["ellipsis", "separator"]


class MathGroup(Node):
    type: TypingLiteral["math_group"] = "math_group"
    row: "MathRow"


class BigOperator(Node):
    """\\sqrt{...} or \\pow{...} applied to one or more argument rows."""

    type: TypingLiteral["big_operator"] = "big_operator"
    name: TypingLiteral["sqrt", "pow"]
    args: tuple["MathRow", ...]


MathItem = Annotated[
    MathSymbol | MathVariable | MathNumber | MathPunctuation | MathGroup | BigOperator | Operator,
    Field(discriminator="type"),
]


class MathRow(Node):
    type: TypingLiteral["math_row"] = "math_row"
    items: tuple[MathItem, ...] = ()


# Inline text


class PunctuationKind(str, Enum):
    OPEN_BRACKET = "open_bracket"
    CLOSE_BRACKET = "close_bracket"
    AMPERSAND = "ampersand"
    APOSTROPHE = "apostrophe"
    LEFT_DOUBLE_QUOTE = "left_double_quote"
    RIGHT_DOUBLE_QUOTE = "right_double_quote"
    LEFT_SINGLE_QUOTE = "left_single_quote"
    RIGHT_SINGLE_QUOTE = "right_single_quote"
    ELLIPSIS = "ellipsis"


class MarkerKind(str, Enum):
    EMPHASIS_BEGIN = "emphasis_begin"
    EMPHASIS_END = "emphasis_end"
    HIGHLIGHT_BEGIN = "highlight_begin"
    HIGHLIGHT_END = "highlight_end"


class Word(Node):
    type: TypingLiteral["word"] = "word"
    text: str


class Punctuation(Node):
    type: TypingLiteral["punctuation"] = "punctuation"
    kind: PunctuationKind
    text: str  # source spelling, e.g. "``"


class Whitespace(Node):
    type: TypingLiteral["whitespace"] = "whitespace"


BareElement = Annotated[Word | Punctuation | Whitespace, Field(discriminator="type")]


class Hyperlink(Node):
    type: TypingLiteral["hyperlink"] = "hyperlink"
    url: str
    contents: tuple[BareElement, ...] = ()


UnformattedElement = Annotated[
    Word | Punctuation | Whitespace | Hyperlink,
    Field(discriminator="type"),
]


class Unformatted(Node):
    """Markup-free text run: words, punctuation, whitespace and hyperlinks."""

    type: TypingLiteral["unformatted"] = "unformatted"
    elements: tuple[UnformattedElement, ...] = ()


class Tag(Node):
    type: TypingLiteral["tag"] = "tag"
    name: str


class FullyQualifiedId(Node):
    type: TypingLiteral["fqid"] = "fqid"
    parent: str
    child: str


class Identifier(Node):
    type: TypingLiteral["identifier"] = "identifier"
    id: str


ReferenceTarget = Annotated[Tag | FullyQualifiedId | Identifier, Field(discriminator="type")]


class Reference(Node):
    """<ref target/> (void) or <ref target>body</ref> (full).

    The target is stored symbolically; nothing here checks that it exists.
    """

    type: TypingLiteral["reference"] = "reference"
    target: ReferenceTarget
    body: str | None = None  # verbatim source text of a full reference

    @property
    def is_void(self) -> bool:
        return self.body is None


class InlineMath(Node):
    type: TypingLiteral["inline_math"] = "inline_math"
    math: MathRow


class Citation(Node):
    type: TypingLiteral["citation"] = "citation"
    id: str


class Marker(Node):
    """Emphasis/highlight begin or end marker. Balance is not checked."""

    type: TypingLiteral["marker"] = "marker"
    kind: MarkerKind


TextElement = Annotated[
    Reference | InlineMath | Citation | Marker | Hyperlink | Punctuation | Word,
    Field(discriminator="type"),
]


class Paragraph(Node):
    type: TypingLiteral["paragraph"] = "paragraph"
    elements: tuple[TextElement, ...]


# Citation records


class MlaContainer(Node):
    container_title: Unformatted | None = None
    other_contributors: Unformatted | None = None
    version: Unformatted | None = None
    number: Unformatted | None = None
    publisher: Unformatted | None = None
    publication_date: Unformatted | None = None
    location: Unformatted | None = None


class MlaFields(Node):
    authors: Unformatted | None = None
    title: Unformatted | None = None
    container: MlaContainer | None = None


class RawCitation(MlaFields):
    """Citation record inserted inline as a text block (\\Cite { ... })."""

    type: TypingLiteral["raw_citation"] = "raw_citation"


class BibEntry(MlaFields):
    id: str


class Bibliography(Node):
    entries: tuple[BibEntry, ...] = ()

    def get(self, entry_id: str) -> BibEntry | None:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None


# Text blocks


class SublistItem(Node):
    var: str
    row: MathRow


class Sublist(Node):
    type: TypingLiteral["sublist"] = "sublist"
    items: tuple[SublistItem, ...]


class DisplayMath(Node):
    type: TypingLiteral["display_math"] = "display_math"
    math: MathRow
    end: str = ""  # trailing punctuation, e.g. "." or ","


TextBlock = Annotated[
    RawCitation | Sublist | DisplayMath | Paragraph,
    Field(discriminator="type"),
]


class ListItem(Node):
    marker: str  # "-" or the number as written
    content: Paragraph


class UnorderedList(Node):
    type: TypingLiteral["unordered_list"] = "unordered_list"
    items: tuple[ListItem, ...]


class OrderedList(Node):
    type: TypingLiteral["ordered_list"] = "ordered_list"
    items: tuple[ListItem, ...]


class TableRow(Node):
    cells: tuple[Paragraph, ...]


class TableBlock(Node):
    type: TypingLiteral["table"] = "table"
    head: tuple[TableRow, ...] | None = None
    body: tuple[TableRow, ...] | None = None
    foot: tuple[TableRow, ...] | None = None
    caption: Paragraph | None = None


class QuoteBlock(Node):
    type: TypingLiteral["quote"] = "quote"
    original: Unformatted | None = None
    value: Unformatted


class Subheading(Node):
    level: int  # 1-3
    contents: Unformatted


class HeadingBlock(Node):
    type: TypingLiteral["heading"] = "heading"
    subheadings: tuple[Subheading, ...]


class TodoBlock(Node):
    type: TypingLiteral["todo"] = "todo"
    elements: tuple[TextBlock, ...] = ()


# Declaration entries


class TypeSignature(Node):
    """Either a bare type name or (inputs) -> output."""

    inputs: tuple["TypeSignature", ...] = ()
    output: str
    variable: bool = False  # input marked with ' (takes a variable)


class VarDeclaration(Node):
    id: str
    signature: TypeSignature


class ReadStyle(str, Enum):
    PREFIX = "prefix"
    INFIX = "infix"


class DisplayStyle(str, Enum):
    PREFIX = "prefix"
    INFIX = "infix"
    SUFFIX = "suffix"
    STANDARD = "standard"


class Flag(str, Enum):
    REFLEXIVE = "reflexive"
    SYMMETRIC = "symmetric"
    TRANSITIVE = "transitive"
    FUNCTION = "function"


class NameEntry(Node):
    kind: TypingLiteral["name"] = "name"
    value: str  # string contents without quotes, escapes kept


class TaglineEntry(Node):
    kind: TypingLiteral["tagline"] = "tagline"
    value: Paragraph


class DescriptionEntry(Node):
    kind: TypingLiteral["description"] = "description"
    blocks: tuple[TextBlock, ...] = ()


class TypeEntry(Node):
    kind: TypingLiteral["type"] = "type"
    signature: TypeSignature


class ReadEntry(Node):
    kind: TypingLiteral["read"] = "read"
    style: ReadStyle
    operator: Operator


class DisplayEntry(Node):
    kind: TypingLiteral["display"] = "display"
    style: DisplayStyle
    glyph: str


class InputsEntry(Node):
    kind: TypingLiteral["inputs"] = "inputs"
    declarations: tuple[VarDeclaration, VarDeclaration]


class ExpandedEntry(Node):
    kind: TypingLiteral["expanded"] = "expanded"
    formula: Formula


class FlagsEntry(Node):
    kind: TypingLiteral["flags"] = "flags"
    flags: tuple[Flag, ...] = ()


class VarsEntry(Node):
    kind: TypingLiteral["vars"] = "vars"
    declarations: tuple[VarDeclaration, ...] = ()


class PremiseEntry(Node):
    kind: TypingLiteral["premise"] = "premise"
    formulas: tuple[Formula, ...] = ()


class AssertionEntry(Node):
    kind: TypingLiteral["assertion"] = "assertion"
    formula: Formula


Entry = Annotated[
    NameEntry
    | TaglineEntry
    | DescriptionEntry
    | TypeEntry
    | ReadEntry
    | DisplayEntry
    | InputsEntry
    | ExpandedEntry
    | FlagsEntry
    | VarsEntry
    | PremiseEntry
    | AssertionEntry,
    Field(discriminator="kind"),
]


# Declaration blocks


class Declaration(Node):
    """Shared shape of \\Keyword id [: parent] { entry* }.

    Entries keep source order; repeats are preserved and left to semantic
    validation.
    """

    id: str
    parent_id: str | None = None
    entries: tuple[Entry, ...] = ()

    def entry(self, kind: str) -> Any:
        """First entry of the given kind, or None."""
        for entry in self.entries:
            if entry.kind == kind:
                return entry
        return None

    def entries_by_kind(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for entry in self.entries:
            result.setdefault(entry.kind, entry)
        return result


class SystemBlock(Declaration):
    type: TypingLiteral["system"] = "system"


class TypeBlock(Declaration):
    type: TypingLiteral["type"] = "type"


class SymbolBlock(Declaration):
    type: TypingLiteral["symbol_block"] = "symbol_block"


class DefinitionBlock(Declaration):
    type: TypingLiteral["definition"] = "definition"


class AxiomBlock(Declaration):
    type: TypingLiteral["axiom"] = "axiom"


class TheoremKind(str, Enum):
    THEOREM = "theorem"
    LEMMA = "lemma"
    EXAMPLE = "example"


class TheoremBlock(Declaration):
    type: TypingLiteral["theorem"] = "theorem"
    kind: TheoremKind = TheoremKind.THEOREM


# Proofs


class MacroKind(str, Enum):
    BY_DEFINITION = "by_definition"
    BY_FUNCTION_APPLICATION = "by_function_application"
    BY_SUBSTITUTION = "by_substitution"


class MacroJustification(Node):
    type: TypingLiteral["macro"] = "macro"
    kind: MacroKind


class NamedJustification(Node):
    type: TypingLiteral["named"] = "named"
    id: str


class StepReference(Node):
    """Integer reference to an earlier proof line."""

    type: TypingLiteral["step_ref"] = "step_ref"
    step: int


MetaItem = Annotated[
    MacroJustification | NamedJustification | StepReference | Tag,
    Field(discriminator="type"),
]


class ProofStep(Node):
    type: TypingLiteral["proof_step"] = "proof_step"
    meta: tuple[MetaItem, ...] = ()
    formula: Formula
    end: str = ""  # punctuation after the terminating ';'


ProofElement = Annotated[
    ProofStep | RawCitation | Sublist | DisplayMath | Paragraph,
    Field(discriminator="type"),
]


class ProofBlock(Node):
    type: TypingLiteral["proof"] = "proof"
    id: str
    parent_id: str
    elements: tuple[ProofElement, ...] = ()

    def steps(self) -> list[ProofStep]:
        return [element for element in self.elements if isinstance(element, ProofStep)]


# Documents

DocumentBlock = Annotated[
    SystemBlock
    | TypeBlock
    | SymbolBlock
    | DefinitionBlock
    | AxiomBlock
    | TheoremBlock
    | ProofBlock
    | UnorderedList
    | OrderedList
    | TableBlock
    | QuoteBlock
    | HeadingBlock
    | TodoBlock
    | RawCitation
    | Sublist
    | DisplayMath
    | Paragraph,
    Field(discriminator="type"),
]


class Document(Node):
    blocks: tuple[DocumentBlock, ...] = ()


# Manifests


class Page(Node):
    id: str
    title: str


class Chapter(Node):
    id: str
    title: str
    description: Paragraph
    pages: tuple[Page, ...] = ()


class Book(Node):
    id: str
    title: str
    description: Paragraph
    chapters: tuple[Chapter, ...] = ()


class Manifest(Node):
    books: tuple[Book, ...]


# Rebuild models for forward references
Parenthesized.model_rebuild()
ChainLink.model_rebuild()
OperatorChain.model_rebuild()
MathGroup.model_rebuild()
BigOperator.model_rebuild()
MathRow.model_rebuild()
TypeSignature.model_rebuild()
