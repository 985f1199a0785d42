"""Parser for rule expressions.

Grammar, loosest binding first::

    expr       := conjunct ("or" conjunct)*
    conjunct   := negation ("and" negation)*
    negation   := "not" negation | comparison
    comparison := operand (cmp_op operand)?
    operand    := literal | list | name | name "(" args ")" | "(" expr ")"
"""

from .ast import BinaryOp, FunctionCall, ListLiteral, Literal, Node, UnaryOp, Variable
from .exceptions import RuleSyntaxError
from .lexer import Lexer, Token, TokenType

# Logical levels in increasing binding strength
LOGICAL_LEVELS = (TokenType.OR, TokenType.AND)

COMPARISONS = {
    TokenType.EQ: "==",
    TokenType.NEQ: "!=",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LTE: "<=",
    TokenType.GTE: ">=",
    TokenType.IN: "in",
}

VALUE_TOKENS = frozenset(
    {TokenType.INTEGER, TokenType.FLOAT, TokenType.STRING, TokenType.BOOLEAN, TokenType.NULL}
)


class Parser:
    """Builds an AST from the token stream of one expression."""

    def __init__(self, lexer: Lexer):
        self.tokens: list[Token] = list(lexer.tokenize())
        self.index = 0

    @property
    def token(self) -> Token:
        return self.tokens[self.index]

    def _fail(self, message: str) -> RuleSyntaxError:
        return RuleSyntaxError(message, self.token.position)

    def _advance(self) -> Token:
        token = self.token
        if token.type != TokenType.EOF:
            self.index += 1
        return token

    def _expect(self, token_type: TokenType) -> Token:
        if self.token.type != token_type:
            raise self._fail(f"Expected {token_type.name}, found {self.token.type.name}")
        return self._advance()

    def parse(self) -> Node:
        """Parse the whole expression.

        Raises:
            RuleSyntaxError: If the expression is empty, incomplete or has
                trailing tokens.
        """
        if self.token.type == TokenType.EOF:
            raise self._fail("Empty expression")
        node = self._logical(0)
        if self.token.type != TokenType.EOF:
            raise self._fail("Unexpected token after expression")
        return node

    def _logical(self, level: int) -> Node:
        if level == len(LOGICAL_LEVELS):
            return self._negation()

        connective = LOGICAL_LEVELS[level]
        node = self._logical(level + 1)
        while self.token.type == connective:
            operator = self._advance().value
            node = BinaryOp(node, operator, self._logical(level + 1))
        return node

    def _negation(self) -> Node:
        if self.token.type == TokenType.NOT:
            self._advance()
            return UnaryOp("not", self._negation())
        return self._comparison()

    def _comparison(self) -> Node:
        left = self._operand()
        operator = COMPARISONS.get(self.token.type)
        if operator is None:
            return left
        self._advance()
        return BinaryOp(left, operator, self._operand())

    def _operand(self) -> Node:
        token = self.token

        if token.type in VALUE_TOKENS:
            self._advance()
            return Literal(token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            inner = self._logical(0)
            self._expect(TokenType.RPAREN)
            return inner

        if token.type == TokenType.LBRACKET:
            self._advance()
            return ListLiteral(self._items(TokenType.RBRACKET))

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self.token.type == TokenType.LPAREN:
                self._advance()
                return FunctionCall(token.value, self._items(TokenType.RPAREN))
            return Variable(token.value)

        raise self._fail(f"Unexpected token: {token.type.name}")

    def _items(self, closing: TokenType) -> list[Node]:
        items: list[Node] = []
        while self.token.type != closing:
            if items:
                self._expect(TokenType.COMMA)
            items.append(self._logical(0))
        self._expect(closing)
        return items
