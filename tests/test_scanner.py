"""
Unit tests for the Lox scanner.
"""

import pytest
from lox import scan, Scanner, Token, TokenType, DiagnosticCollector


def scan_types(source: str):
    """Helper returning just the token types for source."""
    return [t.type for t in scan(source)]


def scan_with_errors(source: str):
    """Helper returning (tokens, diagnostics) for source."""
    diagnostics = DiagnosticCollector()
    tokens = scan(source, diagnostics)
    return tokens, diagnostics


class TestScannerBasics:
    """Test basic scanner functionality."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        tokens = scan("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_only(self):
        """Whitespace-only source produces only EOF."""
        assert scan_types("  \t\r\n  ") == [TokenType.EOF]

    def test_simple_var_statement(self):
        """Basic var statement tokenization."""
        assert scan_types("var x = 42;") == [
            TokenType.VAR,
            TokenType.IDENTIFIER,
            TokenType.EQUAL,
            TokenType.NUMBER,
            TokenType.SEMICOLON,
            TokenType.EOF,
        ]

    def test_iterator_matches_list(self):
        """Iterating a Scanner yields the same tokens as scan_tokens()."""
        source = "print 1 + 2;"
        assert list(Scanner(source)) == Scanner(source).scan_tokens()

    def test_eof_carries_last_line(self):
        """The EOF token is on the last line of input."""
        tokens = scan("print 1;\n\nprint 2;\n")
        assert tokens[-1].type == TokenType.EOF
        assert tokens[-1].line == 4


class TestOperators:
    """Test punctuation and operator scanning."""

    def test_single_character_tokens(self):
        """Each single-character token scans on its own."""
        assert scan_types("(){},.-+;*/?") == [
            TokenType.LEFT_PAREN,
            TokenType.RIGHT_PAREN,
            TokenType.LEFT_BRACE,
            TokenType.RIGHT_BRACE,
            TokenType.COMMA,
            TokenType.DOT,
            TokenType.MINUS,
            TokenType.PLUS,
            TokenType.SEMICOLON,
            TokenType.STAR,
            TokenType.SLASH,
            TokenType.TERN_THEN,
            TokenType.EOF,
        ]

    def test_two_character_operators(self):
        """Operators followed by '=' use maximal munch."""
        assert scan_types("! != = == < <= > >= : :=") == [
            TokenType.BANG,
            TokenType.BANG_EQUAL,
            TokenType.EQUAL,
            TokenType.EQUAL_EQUAL,
            TokenType.LESS,
            TokenType.LESS_EQUAL,
            TokenType.GREATER,
            TokenType.GREATER_EQUAL,
            TokenType.TERN_ELSE,
            TokenType.COLON_EQUAL,
            TokenType.EOF,
        ]

    def test_adjacent_equals(self):
        """'===' is '==' followed by '='."""
        assert scan_types("===") == [TokenType.EQUAL_EQUAL, TokenType.EQUAL, TokenType.EOF]

    def test_ternary_tokens(self):
        """'?' and ':' each consume exactly one character."""
        tokens = scan("a ?b:c")
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER,
            TokenType.TERN_THEN,
            TokenType.IDENTIFIER,
            TokenType.TERN_ELSE,
            TokenType.IDENTIFIER,
            TokenType.EOF,
        ]
        assert tokens[2].lexeme == "b"
        assert tokens[4].lexeme == "c"

    def test_shorthand_declaration(self):
        """':=' is a single token."""
        tokens = scan("x := 1;")
        assert tokens[1].type == TokenType.COLON_EQUAL
        assert tokens[1].lexeme == ":="


class TestLiterals:
    """Test number and string literals."""

    def test_integer(self):
        """Integers are stored as floats."""
        token = scan("123")[0]
        assert token.type == TokenType.NUMBER
        assert token.literal == 123.0
        assert isinstance(token.literal, float)

    def test_decimal(self):
        """Decimal numbers keep their fraction."""
        token = scan("3.25")[0]
        assert token.literal == 3.25
        assert token.lexeme == "3.25"

    def test_trailing_dot_is_not_fraction(self):
        """A '.' without a following digit is a separate token."""
        assert scan_types("1.") == [TokenType.NUMBER, TokenType.DOT, TokenType.EOF]

    def test_method_call_on_number(self):
        """'1.foo' scans as number, dot, identifier."""
        assert scan_types("1.foo") == [
            TokenType.NUMBER, TokenType.DOT, TokenType.IDENTIFIER, TokenType.EOF,
        ]

    def test_string(self):
        """String literal value excludes the quotes."""
        token = scan('"hello"')[0]
        assert token.type == TokenType.STRING
        assert token.literal == "hello"
        assert token.lexeme == '"hello"'

    def test_no_escape_processing(self):
        """Backslashes are kept as-is."""
        token = scan(r'"a\nb"')[0]
        assert token.literal == "a\\nb"

    def test_multiline_string(self):
        """Strings may span lines; the line counter keeps advancing."""
        tokens = scan('"a\nb" x')
        assert tokens[0].literal == "a\nb"
        assert tokens[0].line == 1
        assert tokens[1].line == 2

    def test_unterminated_string(self):
        """Unterminated string is reported and produces no token."""
        tokens, diagnostics = scan_with_errors('"abc')
        assert [t.type for t in tokens] == [TokenType.EOF]
        assert diagnostics.codes() == ["E002"]
        assert diagnostics.diagnostics[0].message == "Unterminated string."

    def test_unterminated_string_reports_current_line(self):
        """The unterminated-string error carries the line where input ended."""
        _, diagnostics = scan_with_errors('"abc\n\n')
        assert diagnostics.diagnostics[0].line == 3


class TestIdentifiersAndKeywords:
    """Test identifier and keyword scanning."""

    def test_identifier(self):
        """Identifiers may contain underscores and digits."""
        token = scan("_foo_bar123")[0]
        assert token.type == TokenType.IDENTIFIER
        assert token.lexeme == "_foo_bar123"

    def test_all_keywords(self):
        """Every keyword scans to its own token type."""
        source = ("and class else false for fun if nil or print return "
                  "super this true var while break continue static")
        types = scan_types(source)[:-1]
        assert TokenType.IDENTIFIER not in types
        assert len(types) == 19

    def test_keywords_case_insensitive(self):
        """Keywords match regardless of case; the lexeme is preserved."""
        tokens = scan("CLASS Fun wHiLe")
        assert [t.type for t in tokens[:3]] == [TokenType.CLASS, TokenType.FUN, TokenType.WHILE]
        assert tokens[1].lexeme == "Fun"

    def test_keyword_prefix_is_identifier(self):
        """Identifiers that start with a keyword are not keywords."""
        assert scan_types("classy orchid") == [
            TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EOF,
        ]


class TestComments:
    """Test comment skipping."""

    def test_line_comment(self):
        """Line comments run to end of line."""
        tokens = scan("// comment\nprint")
        assert tokens[0].type == TokenType.PRINT
        assert tokens[0].line == 2

    def test_slash_is_division(self):
        """A single slash is the division operator."""
        assert scan_types("a / b") == [
            TokenType.IDENTIFIER, TokenType.SLASH, TokenType.IDENTIFIER, TokenType.EOF,
        ]

    def test_block_comment(self):
        """Block comments are skipped and count their newlines."""
        tokens = scan("/* one\ntwo */ print")
        assert tokens[0].type == TokenType.PRINT
        assert tokens[0].line == 2

    def test_block_comment_does_not_nest(self):
        """The first '*/' closes the comment."""
        assert scan_types("/* a /* b */ c */") == [
            TokenType.IDENTIFIER, TokenType.STAR, TokenType.SLASH, TokenType.EOF,
        ]

    def test_empty_block_comment(self):
        """'/**/' is a complete comment."""
        assert scan_types("/**/") == [TokenType.EOF]
        assert scan_types("1/**/2") == [TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF]

    def test_block_comment_extra_star_before_close(self):
        """A run of stars closes at the final '*/'."""
        tokens = scan("/* a **/ print")
        assert [t.type for t in tokens] == [TokenType.PRINT, TokenType.EOF]

    def test_opener_slash_does_not_close(self):
        """The '/' of the opener cannot double as the closer."""
        assert scan_types("/*/ print */ x") == [TokenType.IDENTIFIER, TokenType.EOF]

    def test_trailing_star_at_end_of_input(self):
        """A lone '*' at end of input leaves the comment unterminated."""
        tokens, diagnostics = scan_with_errors("/* a *")
        assert [t.type for t in tokens] == [TokenType.EOF]
        assert diagnostics.codes() == ["E003"]
        assert diagnostics.diagnostics[0].message == "Unterminated block comment."

    def test_unterminated_block_comment(self):
        """Unterminated block comment is reported; scanning still ends with EOF."""
        tokens, diagnostics = scan_with_errors("print /* never closed")
        assert [t.type for t in tokens] == [TokenType.PRINT, TokenType.EOF]
        assert diagnostics.codes() == ["E003"]


class TestScannerErrors:
    """Test lexical error reporting."""

    def test_unexpected_character(self):
        """Unknown characters are reported with their line."""
        _, diagnostics = scan_with_errors("\n@")
        diag = diagnostics.diagnostics[0]
        assert diag.code == "E001"
        assert diag.line == 2
        assert diag.format() == "[line 2 Error: Unexpected character '@'.]"

    def test_scanning_continues_after_error(self):
        """Scanning resumes after an unexpected character."""
        tokens, diagnostics = scan_with_errors("1 @ # 2")
        assert [t.type for t in tokens] == [TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF]
        assert diagnostics.codes() == ["E001", "E001"]

    def test_had_error(self):
        """Scanner.had_error reflects reported errors."""
        scanner = Scanner("@")
        scanner.scan_tokens()
        assert scanner.had_error


class TestTokenFormatting:
    """Test the token dump format."""

    def test_token_with_literal(self):
        """Number tokens show their literal value."""
        assert str(Token(TokenType.NUMBER, "1", 1.0, 1)) == "NUMBER 1 1.0"

    def test_token_without_literal(self):
        """Other tokens show type and lexeme only."""
        assert str(Token(TokenType.SEMICOLON, ";", None, 1)) == "SEMICOLON ;"

    def test_eof(self):
        """EOF prints as its type name."""
        assert str(scan("")[0]) == "EOF"
