"""Lexer for rule expressions.

Accepts both word and symbol forms of the logical operators, so
``a and b`` and ``a && b`` produce the same tokens.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from .exceptions import RuleSyntaxError


class TokenType(Enum):
    """Types of tokens in rule expressions."""

    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    BOOLEAN = auto()
    NULL = auto()
    IDENTIFIER = auto()

    EQ = auto()
    NEQ = auto()
    LT = auto()
    GT = auto()
    LTE = auto()
    GTE = auto()

    AND = auto()
    OR = auto()
    NOT = auto()
    IN = auto()

    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()

    EOF = auto()


KEYWORDS = {
    "true": (TokenType.BOOLEAN, True),
    "false": (TokenType.BOOLEAN, False),
    "null": (TokenType.NULL, None),
    "and": (TokenType.AND, "and"),
    "or": (TokenType.OR, "or"),
    "not": (TokenType.NOT, "not"),
    "in": (TokenType.IN, "in"),
}

# Longest match first
SYMBOLS = {
    "==": (TokenType.EQ, "=="),
    "!=": (TokenType.NEQ, "!="),
    "<=": (TokenType.LTE, "<="),
    ">=": (TokenType.GTE, ">="),
    "&&": (TokenType.AND, "and"),
    "||": (TokenType.OR, "or"),
    "<": (TokenType.LT, "<"),
    ">": (TokenType.GT, ">"),
    "!": (TokenType.NOT, "not"),
    "(": (TokenType.LPAREN, "("),
    ")": (TokenType.RPAREN, ")"),
    "[": (TokenType.LBRACKET, "["),
    "]": (TokenType.RBRACKET, "]"),
    ",": (TokenType.COMMA, ","),
}

QUOTES = ("'", '"')


@dataclass
class Token:
    """A single token in the rule expression."""

    type: TokenType
    value: str | int | float | bool | None
    position: int


class Lexer:
    """Tokenizes rule strings."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    @property
    def current_char(self) -> str | None:
        return self.text[self.pos] if self.pos < len(self.text) else None

    def error(self, message: str) -> None:
        """Raise a syntax error at the current position."""
        raise RuleSyntaxError(message, self.pos)

    def _take_while(self, predicate) -> str:
        start = self.pos
        while self.pos < len(self.text) and predicate(self.text[self.pos]):
            self.pos += 1
        return self.text[start : self.pos]

    def _number(self) -> Token:
        start = self.pos
        digits = self._take_while(str.isdigit)
        # A dot only continues the number when a digit follows
        if self.text[self.pos : self.pos + 1] == "." and self.text[self.pos + 1 : self.pos + 2].isdigit():
            self.pos += 1
            fraction = self._take_while(str.isdigit)
            return Token(TokenType.FLOAT, float(f"{digits}.{fraction}"), start)
        return Token(TokenType.INTEGER, int(digits), start)

    def _string(self) -> Token:
        start = self.pos
        quote = self.text[self.pos]
        self.pos += 1
        chars: list[str] = []

        while self.current_char is not None and self.current_char != quote:
            if self.current_char == "\\" and self.pos + 1 < len(self.text):
                self.pos += 1
            chars.append(self.text[self.pos])
            self.pos += 1

        if self.current_char is None:
            self.pos = start
            self.error("Unterminated string literal")

        self.pos += 1
        return Token(TokenType.STRING, "".join(chars), start)

    def _word(self) -> Token:
        start = self.pos
        # Dots join variable paths (record.teamId)
        word = self._take_while(lambda char: char.isalnum() or char in "_.")
        if word in KEYWORDS:
            token_type, value = KEYWORDS[word]
            return Token(token_type, value, start)
        return Token(TokenType.IDENTIFIER, word, start)

    def get_next_token(self) -> Token:
        """Get the next token from input."""
        self._take_while(str.isspace)
        char = self.current_char

        if char is None:
            return Token(TokenType.EOF, None, self.pos)
        if char.isdigit():
            return self._number()
        if char in QUOTES:
            return self._string()
        if char.isalpha() or char == "_":
            return self._word()

        for symbol, (token_type, value) in SYMBOLS.items():
            if self.text.startswith(symbol, self.pos):
                token = Token(token_type, value, self.pos)
                self.pos += len(symbol)
                return token

        if char == "=":
            self.error("Unexpected character '='. Did you mean '=='?")
        self.error(f"Invalid character '{char}'")

    def tokenize(self) -> Iterator[Token]:
        """Yield all tokens, ending with EOF."""
        while True:
            token = self.get_next_token()
            yield token
            if token.type == TokenType.EOF:
                break
