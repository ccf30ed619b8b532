"""
Scanner for Lox.

Converts source text into a stream of tokens for the parser.
Supports:
- Single and two-character operators (maximal munch)
- Line comments (//) and block comments (/* */, not nested)
- String literals (no escape processing, may span lines)
- Number literals (integer or decimal, stored as float)
- Case-insensitive keywords

Lexical errors are reported to the diagnostic collector and scanning
continues with the next character.
"""

from typing import List, Optional, Iterator

from .tokens import Token, TokenType, keyword_type
from .errors import (
    DiagnosticCollector,
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_comment,
)


# Characters that always form a token on their own
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
    '?': TokenType.TERN_THEN,
}

# Characters that may be followed by '=' to form a two-character operator
# maps: first char -> (one-char type, two-char type)
EQUALS_OPERATORS: dict[str, tuple[TokenType, TokenType]] = {
    '!': (TokenType.BANG, TokenType.BANG_EQUAL),
    '=': (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
    '<': (TokenType.LESS, TokenType.LESS_EQUAL),
    '>': (TokenType.GREATER, TokenType.GREATER_EQUAL),
    ':': (TokenType.TERN_ELSE, TokenType.COLON_EQUAL),
}


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def _is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch == '_'


def _is_identifier_part(ch: str) -> bool:
    return _is_identifier_start(ch) or _is_digit(ch)


class Scanner:
    """
    Tokenizer for Lox source text.

    Usage:
        scanner = Scanner(source)
        tokens = scanner.scan_tokens()

    Or for streaming:
        for token in Scanner(source):
            process(token)
    """

    def __init__(self, source: str, diagnostics: Optional[DiagnosticCollector] = None):
        self.source = source
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        self.start = 0          # Start of the lexeme being scanned
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)

    @property
    def had_error(self) -> bool:
        return self.diagnostics.has_errors

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected and not self._is_at_end():
            self._advance()
            return True
        return False

    def _make_token(self, token_type: TokenType, literal=None, line: Optional[int] = None) -> Token:
        """Create a token for the current lexeme."""
        lexeme = self.source[self.start:self.pos]
        return Token(token_type, lexeme, literal, self.line if line is None else line)

    def _skip_line_comment(self) -> None:
        """Skip a // comment (up to, not including, the newline)."""
        while self._peek() != '\n' and not self._is_at_end():
            self._advance()

    def _skip_block_comment(self) -> None:
        """Skip the body of a /* ... */ comment; the opener is already consumed."""
        start_line = self.line
        while not self._is_at_end():
            if self._peek() == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                return
            self._advance()
        self.diagnostics.add(error_unterminated_comment(start_line))

    def _scan_string(self) -> Optional[Token]:
        """Scan a string literal; the opening quote is already consumed."""
        start_line = self.line
        while self._peek() != '"' and not self._is_at_end():
            self._advance()

        if self._is_at_end():
            self.diagnostics.add(error_unterminated_string(self.line))
            return None

        self._advance()  # consume closing quote
        value = self.source[self.start + 1:self.pos - 1]
        return self._make_token(TokenType.STRING, value, line=start_line)

    def _scan_number(self) -> Token:
        """Scan a numeric literal (integer or decimal)."""
        while _is_digit(self._peek()):
            self._advance()

        # A fractional part needs at least one digit after the '.'
        if self._peek() == '.' and _is_digit(self._peek(1)):
            self._advance()  # consume '.'
            while _is_digit(self._peek()):
                self._advance()

        lexeme = self.source[self.start:self.pos]
        return self._make_token(TokenType.NUMBER, float(lexeme))

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        while _is_identifier_part(self._peek()):
            self._advance()

        lexeme = self.source[self.start:self.pos]
        token_type = keyword_type(lexeme) or TokenType.IDENTIFIER
        return self._make_token(token_type)

    def _scan_token(self) -> Optional[Token]:
        """Scan the next lexeme; returns None for skipped input."""
        ch = self._advance()

        if ch in ' \r\t\n':
            return None

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch])

        if ch in EQUALS_OPERATORS:
            one_char, two_char = EQUALS_OPERATORS[ch]
            return self._make_token(two_char if self._match('=') else one_char)

        if ch == '/':
            if self._match('/'):
                self._skip_line_comment()
                return None
            if self._match('*'):
                self._skip_block_comment()
                return None
            return self._make_token(TokenType.SLASH)

        if ch == '"':
            return self._scan_string()

        if _is_digit(ch):
            return self._scan_number()

        if _is_identifier_start(ch):
            return self._scan_identifier_or_keyword()

        self.diagnostics.add(error_unexpected_character(ch, self.line))
        return None

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens, ending with EOF."""
        while not self._is_at_end():
            self.start = self.pos
            token = self._scan_token()
            if token is not None:
                yield token
        yield Token(TokenType.EOF, "", None, self.line)

    def scan_tokens(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)


def scan(source: str, diagnostics: Optional[DiagnosticCollector] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        diagnostics: Optional collector receiving lexical errors

    Returns:
        List of tokens, always terminated by an EOF token
    """
    return Scanner(source, diagnostics).scan_tokens()
