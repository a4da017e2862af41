from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional

class TokenType(Enum):
    # Single-character tokens
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    COMMA = auto()
    DOT = auto()
    MINUS = auto()
    PLUS = auto()
    SEMICOLON = auto()
    SLASH = auto()
    STAR = auto()
    PERCENT = auto()
    EQUAL = auto()
    GREATER = auto()
    LESS = auto()

    # One or two character tokens
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL_EQUAL = auto()
    AND_AND = auto()
    OR_OR = auto()

    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    INT_NUMBER = auto()
    FLOAT_NUMBER = auto()

    # Keywords
    TYPE = auto()
    READ = auto()
    WRITE = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    TRUE = auto()
    FALSE = auto()

    EOF = auto()

KEYWORDS = {
    "int": TokenType.TYPE,
    "float": TokenType.TYPE,
    "bool": TokenType.TYPE,
    "string": TokenType.TYPE,
    "read": TokenType.READ,
    "write": TokenType.WRITE,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "for": TokenType.FOR,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}

# Tokens that may start a statement; the parser resynchronizes on these.
STATEMENT_STARTS = {
    TokenType.TYPE,
    TokenType.READ,
    TokenType.WRITE,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.FOR,
    TokenType.LEFT_BRACE,
}

@dataclass
class Token:
    type: TokenType
    lexeme: str
    line: int
    col: int
    literal: Optional[object] = None

    def __repr__(self) -> str:
        lit = f" {self.literal!r}" if self.literal is not None else ""
        return f"{self.type.name} '{self.lexeme}'{lit} (@{self.line}:{self.col})"
