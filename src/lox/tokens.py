"""
Token types for the Lox scanner.

Token type categories follow the diagnostic code ranges:
- E0xx: Lexical errors
- E1xx: Syntax errors
- E3xx: Resolution errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the scanner."""

    # --- Single-character punctuation ---
    LEFT_PAREN = auto()         # (
    RIGHT_PAREN = auto()        # )
    LEFT_BRACE = auto()         # {
    RIGHT_BRACE = auto()        # }
    COMMA = auto()              # ,
    DOT = auto()                # .
    SEMICOLON = auto()          # ;

    # --- Arithmetic operators ---
    MINUS = auto()              # -
    PLUS = auto()               # +
    SLASH = auto()              # /
    STAR = auto()               # *

    # --- Comparison / equality operators ---
    BANG = auto()               # !
    BANG_EQUAL = auto()         # !=
    EQUAL = auto()              # =
    EQUAL_EQUAL = auto()        # ==
    GREATER = auto()            # >
    GREATER_EQUAL = auto()      # >=
    LESS = auto()               # <
    LESS_EQUAL = auto()         # <=

    # --- Ternary and declaration shorthand ---
    TERN_THEN = auto()          # ?
    TERN_ELSE = auto()          # :
    COLON_EQUAL = auto()        # :=

    # --- Literals ---
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # --- Keywords ---
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FOR = auto()
    FUN = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()
    BREAK = auto()
    CONTINUE = auto()
    STATIC = auto()

    # --- Special ---
    EOF = auto()                # end of input


@dataclass(frozen=True)
class Token:
    """A single token from the scanner."""
    type: TokenType
    lexeme: str             # The original source text
    literal: Any            # float for NUMBER, str for STRING, else None
    line: int               # 1-indexed source line

    def __str__(self) -> str:
        literal = "" if self.literal is None else self.literal
        return f"{self.type.name} {self.lexeme} {literal}".rstrip()


# Keyword mapping - matched against the lowercased lexeme
KEYWORDS: dict[str, TokenType] = {
    "and": TokenType.AND,
    "class": TokenType.CLASS,
    "else": TokenType.ELSE,
    "false": TokenType.FALSE,
    "for": TokenType.FOR,
    "fun": TokenType.FUN,
    "if": TokenType.IF,
    "nil": TokenType.NIL,
    "or": TokenType.OR,
    "print": TokenType.PRINT,
    "return": TokenType.RETURN,
    "super": TokenType.SUPER,
    "this": TokenType.THIS,
    "true": TokenType.TRUE,
    "var": TokenType.VAR,
    "while": TokenType.WHILE,
    "break": TokenType.BREAK,
    "continue": TokenType.CONTINUE,
    "static": TokenType.STATIC,
}


# Tokens that begin a statement; the parser resynchronizes on these
STATEMENT_KEYWORDS: set[TokenType] = {
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
    TokenType.BREAK,
    TokenType.CONTINUE,
}


def keyword_type(text: str) -> Optional[TokenType]:
    """Look up a keyword case-insensitively; None for plain identifiers."""
    return KEYWORDS.get(text.lower())
