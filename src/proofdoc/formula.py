"""Formula engine: flat operator chains and typeset math rows.

Grammar:
    formula   = prefix* primary (operator prefix* primary)*
    primary   = var | ident | "(" formula ")"
    math_row  = math_item*
    math_item = "(" math_row ")" | big_op | operator | "..." | "," | var | ident | integer
    big_op    = ("\\sqrt" | "\\pow") "{" math_row ("," math_row)* ","? "}"
"""

from . import ast
from .scanner import Backtrack, Scanner

OK = ast.OperatorKind

# Tried in this order; the first spelling that matches wins. Longer spellings
# must precede the shorter ones they start with ("<->" before "<", "->"
# before "-", "/\" before "/").
OPERATORS: tuple[tuple[ast.OperatorKind, str], ...] = (
    (OK.NEGATION, "!"),
    (OK.EQUIVALENCE, "<->"),
    (OK.IMPLICATION, "->"),
    (OK.AND, "/\\"),
    (OK.OR, "\\/"),
    (OK.PLUS, "+"),
    (OK.MINUS, "-"),
    (OK.ASTERISK, "*"),
    (OK.SLASH, "/"),
    (OK.LESS_THAN, "<"),
    (OK.EQUAL, "="),
    (OK.GREATER_THAN, ">"),
    (OK.TWIDDLE, "~"),
)

BIG_OPERATORS = ("sqrt", "pow")


class FormulaParser(Scanner):
    """Formula and math-row rules."""

    def operator(self) -> ast.Operator:
        """Atomic operator token, by ordered choice over OPERATORS."""
        start = self.pos
        for kind, symbol in OPERATORS:
            if self.source.startswith(symbol, self.pos):
                self.pos += len(symbol)
                return ast.Operator(kind=kind, symbol=symbol, span=self.span(start))
        self.expected("operator")
        raise Backtrack()

    def _prefix_run(self) -> list[ast.Operator]:
        def prefix() -> ast.Operator:
            self.skip()
            return self.operator()

        return self.many(prefix)

    def _primary(self) -> ast.Symbol | ast.Variable | ast.Parenthesized:
        self.skip()
        return self.choice(self._variable, self._symbol, self._parenthesized)

    def _variable(self) -> ast.Variable:
        start = self.pos
        name = self.variable_name()
        return ast.Variable(id=name, span=self.span(start))

    def _symbol(self) -> ast.Symbol:
        start = self.pos
        name = self.ident()
        return ast.Symbol(id=name, span=self.span(start))

    def _parenthesized(self) -> ast.Parenthesized:
        start = self.pos
        self.expect("(")
        with self.nested():
            inner = self.formula()
        self.token(")")
        return ast.Parenthesized(formula=inner, span=self.span(start))

    def _chain_link(self) -> ast.ChainLink:
        self.skip()
        start = self.pos
        op = self.operator()
        prefix = self._prefix_run()
        operand = self._primary()
        return ast.ChainLink(operator=op, prefix=tuple(prefix), operand=operand, span=self.span(start))

    def formula(self) -> ast.Formula:
        self.skip()
        start = self.pos
        prefix = self._prefix_run()
        head = self._primary()
        links = self.many(self._chain_link)
        if not prefix and not links:
            return head
        return ast.OperatorChain(
            prefix=tuple(prefix),
            head=head,
            links=tuple(links),
            span=self.span(start),
        )

    # Math rows

    def math_row(self, separators: bool = True) -> ast.MathRow:
        self.skip()
        start = self.pos
        items = self.many(lambda: self._math_item(separators))
        return ast.MathRow(items=tuple(items), span=self.span(start))

    def _math_item(self, separators: bool) -> ast.MathItem:
        self.skip()
        alternatives = [
            self._math_group,
            self._big_operator,
            self.operator,
            self._math_ellipsis,
        ]
        if separators:
            alternatives.append(self._math_separator)
        alternatives += [self._math_variable, self._math_symbol, self._math_number]
        return self.choice(*alternatives)

    def _math_group(self) -> ast.MathGroup:
        start = self.pos
        self.expect("(")
        with self.nested():
            row = self.math_row()
        self.token(")")
        return ast.MathGroup(row=row, span=self.span(start))

    def _big_operator(self) -> ast.BigOperator:
        start = self.pos
        name = self.choice(*(lambda n=n: self.keyword("\\" + n)[1:] for n in BIG_OPERATORS))
        self.token("{")
        with self.nested():
            args = [self.math_row(separators=False)]
            while True:
                self.skip()
                if not self.peek(","):
                    break
                self.expect(",")
                self.skip()
                if self.peek("}"):
                    break
                args.append(self.math_row(separators=False))
        self.token("}")
        return ast.BigOperator(name=name, args=tuple(args), span=self.span(start))

    def _math_ellipsis(self) -> ast.MathPunctuation:
        start = self.pos
        self.expect("...")
        return ast.MathPunctuation(kind="ellipsis", span=self.span(start))

    def _math_separator(self) -> ast.MathPunctuation:
        start = self.pos
        self.expect(",")
        return ast.MathPunctuation(kind="separator", span=self.span(start))

    def _math_variable(self) -> ast.MathVariable:
        start = self.pos
        name = self.variable_name()
        return ast.MathVariable(id=name, span=self.span(start))

    def _math_symbol(self) -> ast.MathSymbol:
        start = self.pos
        name = self.ident()
        return ast.MathSymbol(id=name, span=self.span(start))

    def _math_number(self) -> ast.MathNumber:
        start = self.pos
        digits = self.integer()
        return ast.MathNumber(value=digits, span=self.span(start))
