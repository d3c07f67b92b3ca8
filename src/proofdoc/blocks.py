"""Block engine: declaration blocks, their entries, and proofs.

Each declaration has the shape

    \\Keyword id [: parent] { entry* }

and the keyword decides which entries are legal. Entries are matched by
ordered choice over that set and kept in source order; which entries are
required, and whether one may repeat, is left to semantic validation.
"""

from collections.abc import Callable

from . import ast
from .markup import MarkupParser
from .scanner import Backtrack

MACRO_JUSTIFICATIONS: tuple[tuple[str, ast.MacroKind], ...] = (
    ("!def", ast.MacroKind.BY_DEFINITION),
    ("!fun", ast.MacroKind.BY_FUNCTION_APPLICATION),
    ("!sub", ast.MacroKind.BY_SUBSTITUTION),
)

THEOREM_KEYWORDS: tuple[tuple[str, ast.TheoremKind], ...] = (
    ("\\Theorem", ast.TheoremKind.THEOREM),
    ("\\Lemma", ast.TheoremKind.LEMMA),
    ("\\Example", ast.TheoremKind.EXAMPLE),
)


class BlockParser(MarkupParser):
    """Declaration and proof rules on top of the markup engine."""

    # Entry sets, in the order they are tried
    SYSTEM_ENTRIES = ("name", "tagline", "description")
    TYPE_ENTRIES = ("name", "tagline", "description")
    SYMBOL_ENTRIES = ("name", "tagline", "description", "type", "read", "display")
    DEFINITION_ENTRIES = (
        "name",
        "tagline",
        "description",
        "inputs",
        "type",
        "read",
        "display",
        "expanded",
    )
    DEDUCTION_ENTRIES = ("name", "tagline", "description", "flags", "vars", "premise", "assertion")

    def _header(self, keyword: str, parent: bool = True) -> tuple[str, str | None]:
        self.keyword(keyword)
        self.skip()
        block_id = self.ident()
        parent_id = None
        if parent:
            self.token(":")
            self.skip()
            parent_id = self.ident()
        self.token("{")
        return block_id, parent_id

    def _entries(self, kinds: tuple[str, ...]) -> tuple[ast.Entry, ...]:
        rules = [getattr(self, f"_{kind}_entry") for kind in kinds]
        entries = self.many(self.skipping(lambda: self.choice(*rules)))
        self.token("}")
        return tuple(entries)

    def system_block(self) -> ast.SystemBlock:
        start = self.pos
        block_id, _ = self._header("\\System", parent=False)
        entries = self._entries(self.SYSTEM_ENTRIES)
        return ast.SystemBlock(id=block_id, entries=entries, span=self.span(start))

    def type_block(self) -> ast.TypeBlock:
        start = self.pos
        block_id, parent_id = self._header("\\Type")
        entries = self._entries(self.TYPE_ENTRIES)
        return ast.TypeBlock(id=block_id, parent_id=parent_id, entries=entries, span=self.span(start))

    def symbol_block(self) -> ast.SymbolBlock:
        start = self.pos
        block_id, parent_id = self._header("\\Symbol")
        entries = self._entries(self.SYMBOL_ENTRIES)
        return ast.SymbolBlock(id=block_id, parent_id=parent_id, entries=entries, span=self.span(start))

    def definition_block(self) -> ast.DefinitionBlock:
        start = self.pos
        block_id, parent_id = self._header("\\Definition")
        entries = self._entries(self.DEFINITION_ENTRIES)
        return ast.DefinitionBlock(id=block_id, parent_id=parent_id, entries=entries, span=self.span(start))

    def axiom_block(self) -> ast.AxiomBlock:
        start = self.pos
        block_id, parent_id = self._header("\\Axiom")
        entries = self._entries(self.DEDUCTION_ENTRIES)
        return ast.AxiomBlock(id=block_id, parent_id=parent_id, entries=entries, span=self.span(start))

    def theorem_block(self) -> ast.TheoremBlock:
        """\\Theorem, \\Lemma and \\Example share one shape; only the kind differs."""
        start = self.pos

        def headed(keyword: str, kind: ast.TheoremKind):
            return kind, self._header(keyword)

        kind, (block_id, parent_id) = self.choice(
            *(lambda k=k, v=v: headed(k, v) for k, v in THEOREM_KEYWORDS)
        )
        entries = self._entries(self.DEDUCTION_ENTRIES)
        return ast.TheoremBlock(
            kind=kind, id=block_id, parent_id=parent_id, entries=entries, span=self.span(start)
        )

    # Entries

    def _name_entry(self) -> ast.NameEntry:
        start = self.pos
        self.keyword("name")
        self.token("=")
        self.skip()
        value = self.string()
        self.token(";")
        return ast.NameEntry(value=value, span=self.span(start))

    def _tagline_entry(self) -> ast.TaglineEntry:
        start = self.pos
        self.keyword("tagline")
        self.token("{")
        self.skip()
        value = self.oneline()
        self.token("}")
        return ast.TaglineEntry(value=value, span=self.span(start))

    def _description_entry(self) -> ast.DescriptionEntry:
        start = self.pos
        self.keyword("description")
        self.token("{")
        blocks = self.text_blocks()
        self.token("}")
        return ast.DescriptionEntry(blocks=blocks, span=self.span(start))

    def _type_entry(self) -> ast.TypeEntry:
        start = self.pos
        self.keyword("type")
        self.token("=")
        signature = self.type_signature()
        self.token(";")
        return ast.TypeEntry(signature=signature, span=self.span(start))

    def _read_entry(self) -> ast.ReadEntry:
        start = self.pos
        self.keyword("read")
        self.token("=")
        self.skip()
        style = self._style(ast.ReadStyle)
        self.skip()
        operator = self.operator()
        self.token(";")
        return ast.ReadEntry(style=style, operator=operator, span=self.span(start))

    def _display_entry(self) -> ast.DisplayEntry:
        start = self.pos
        self.keyword("display")
        self.token("=")
        self.skip()
        style = self._style(ast.DisplayStyle)
        self.skip()
        glyph = self.string()
        self.token(";")
        return ast.DisplayEntry(style=style, glyph=glyph, span=self.span(start))

    def _inputs_entry(self) -> ast.InputsEntry:
        # Exactly two declarations, matching the language as it stands.
        start = self.pos
        self.keyword("inputs")
        self.token("=")
        self.token("[")
        first = self.var_declaration()
        self.token(",")
        second = self.var_declaration()
        self.optional(lambda: self.token(","))
        self.token("]")
        self.token(";")
        return ast.InputsEntry(declarations=(first, second), span=self.span(start))

    def _expanded_entry(self) -> ast.ExpandedEntry:
        start = self.pos
        self.keyword("expanded")
        self.token("=")
        formula = self.formula()
        self.token(";")
        return ast.ExpandedEntry(formula=formula, span=self.span(start))

    def _flags_entry(self) -> ast.FlagsEntry:
        start = self.pos
        self.keyword("flags")
        self.token("=")
        flags = self._bracketed_list(lambda: self._style(ast.Flag))
        self.token(";")
        return ast.FlagsEntry(flags=tuple(flags), span=self.span(start))

    def _vars_entry(self) -> ast.VarsEntry:
        start = self.pos
        self.keyword("vars")
        self.token("=")
        declarations = self._bracketed_list(self.var_declaration)
        self.token(";")
        return ast.VarsEntry(declarations=tuple(declarations), span=self.span(start))

    def _premise_entry(self) -> ast.PremiseEntry:
        start = self.pos
        self.keyword("premise")
        self.token("=")
        self.token("[")

        def terminated() -> ast.Formula:
            formula = self.formula()
            self.token(";")
            return formula

        formulas = self.many(terminated)
        self.token("]")
        self.token(";")
        return ast.PremiseEntry(formulas=tuple(formulas), span=self.span(start))

    def _assertion_entry(self) -> ast.AssertionEntry:
        start = self.pos
        self.keyword("assertion")
        self.token("=")
        formula = self.formula()
        self.token(";")
        return ast.AssertionEntry(formula=formula, span=self.span(start))

    # Entry helpers

    def _style(self, enum):
        """Match one member of a str enum by its value, as a whole word."""
        return self.choice(*(lambda m=m: enum(self.keyword(m.value)) for m in enum))

    def _bracketed_list(self, item: Callable) -> list:
        """"[" (item ("," item)* ","?)? "]" """
        self.token("[")
        self.skip()
        items = []
        first = self.optional(item)
        if first is not None:
            items.append(first)

            def next_item():
                self.token(",")
                self.skip()
                return item()

            items += self.many(next_item)
            self.optional(lambda: self.token(","))
        self.token("]")
        return items

    def var_declaration(self) -> ast.VarDeclaration:
        self.skip()
        start = self.pos
        name = self.ident()
        self.token(":")
        signature = self.type_signature()
        return ast.VarDeclaration(id=name, signature=signature, span=self.span(start))

    def type_signature(self, variable: bool = False) -> ast.TypeSignature:
        self.skip()
        start = self.pos

        def mapping() -> ast.TypeSignature:
            self.expect("(")
            inputs = [self._signature_input()]

            def next_input() -> ast.TypeSignature:
                self.token(",")
                return self._signature_input()

            inputs += self.many(next_input)
            self.optional(lambda: self.token(","))
            self.token(")")
            self.token("->")
            self.skip()
            output = self.ident()
            return ast.TypeSignature(
                inputs=tuple(inputs), output=output, variable=variable, span=self.span(start)
            )

        def plain() -> ast.TypeSignature:
            output = self.ident()
            return ast.TypeSignature(output=output, variable=variable, span=self.span(start))

        return self.choice(mapping, plain)

    def _signature_input(self) -> ast.TypeSignature:
        self.skip()

        def variable_input() -> ast.TypeSignature:
            self.expect("'")
            return self.type_signature(variable=True)

        return self.choice(variable_input, self.type_signature)

    # Proofs

    def proof_block(self) -> ast.ProofBlock:
        start = self.pos
        theorem_id, system_id = self._header("\\Proof")
        elements = self.many(self.skipping(lambda: self.choice(self.proof_step, self.text_block)))
        self.token("}")
        return ast.ProofBlock(
            id=theorem_id, parent_id=system_id, elements=tuple(elements), span=self.span(start)
        )

    def proof_step(self) -> ast.ProofStep:
        start = self.pos
        self.expect("|")
        meta = self._proof_meta()
        self.token("|")
        formula = self.formula()
        self.token(";")
        end = self._trailing_punctuation()
        return ast.ProofStep(meta=tuple(meta), formula=formula, end=end, span=self.span(start))

    def _trailing_punctuation(self) -> str:
        begin = self.pos
        while not self.at_end() and self.source[self.pos] in ".,:!?":
            self.pos += 1
        return self.source[begin : self.pos]

    def _proof_meta(self) -> list[ast.MetaItem]:
        self.skip()
        first = self.optional(self._meta_item)
        if first is None:
            return []

        def next_item() -> ast.MetaItem:
            self.token(",")
            self.skip()
            return self._meta_item()

        return [first] + self.many(next_item)

    def _meta_item(self) -> ast.MetaItem:
        return self.choice(self._macro_justification, self._step_reference, self.tag, self._named_justification)

    def _macro_justification(self) -> ast.MacroJustification:
        start = self.pos
        for text, kind in MACRO_JUSTIFICATIONS:
            if self.optional(lambda text=text: self.keyword(text)) is not None:
                return ast.MacroJustification(kind=kind, span=self.span(start))
        raise Backtrack()

    def _step_reference(self) -> ast.StepReference:
        start = self.pos
        digits = self.integer()
        return ast.StepReference(step=int(digits), span=self.span(start))

    def _named_justification(self) -> ast.NamedJustification:
        start = self.pos
        name = self.ident()
        return ast.NamedJustification(id=name, span=self.span(start))
