"""
Lox diagnostics, exceptions and error handling.

Error code ranges:
- E0xx: Lexical errors
- E1xx: Syntax errors
- E3xx: Resolution errors
- E4xx: Runtime errors
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, TextIO

from .tokens import Token, TokenType


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    line: int
    where: str = ""                 # "", " at end" or " at '<lexeme>'"

    def format(self) -> str:
        """Format the diagnostic for display."""
        return f"[line {self.line} Error{self.where}: {self.message}]"

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "line": self.line,
            "where": self.where,
        }


def location_of(token: Optional[Token]) -> str:
    """Describe where a token sits for the diagnostic header."""
    if token is None:
        return ""
    if token.type == TokenType.EOF:
        return " at end"
    return f" at '{token.lexeme}'"


def _at_token(code: str, message: str, token: Token) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        line=token.line,
        where=location_of(token),
    )


class LoxError(Exception):
    """Base exception for Lox errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()


class ParseError(LoxError):
    """Syntax error raised to unwind to the nearest declaration (E1xx)."""
    pass


class LoxRuntimeError(LoxError):
    """Error during evaluation (E400); carries the offending token."""

    def __init__(self, token: Token, message: str):
        self.token = token
        super().__init__(Diagnostic(
            code="E400",
            message=message,
            severity=ErrorSeverity.ERROR,
            line=token.line,
        ))


# --- Lexical error codes ---

def error_unexpected_character(char: str, line: int) -> Diagnostic:
    """E001: Unexpected character."""
    return Diagnostic(
        code="E001",
        message=f"Unexpected character '{char}'.",
        severity=ErrorSeverity.ERROR,
        line=line,
    )


def error_unterminated_string(line: int) -> Diagnostic:
    """E002: Unterminated string literal."""
    return Diagnostic(
        code="E002",
        message="Unterminated string.",
        severity=ErrorSeverity.ERROR,
        line=line,
    )


def error_unterminated_comment(line: int) -> Diagnostic:
    """E003: Unterminated block comment."""
    return Diagnostic(
        code="E003",
        message="Unterminated block comment.",
        severity=ErrorSeverity.ERROR,
        line=line,
    )


# --- Syntax error codes ---

def error_expected(message: str, token: Token) -> ParseError:
    """E101: Missing expected token or expression."""
    return ParseError(_at_token("E101", message, token))


def error_invalid_assignment_target(token: Token) -> Diagnostic:
    """E102: Left-hand side is not a variable or property."""
    return _at_token("E102", "Invalid assignment target.", token)


def error_too_many_arguments(limit: int, token: Token) -> Diagnostic:
    """E103: Call has more arguments than allowed."""
    return _at_token("E103", f"Can't have more than {limit} arguments.", token)


def error_too_many_parameters(limit: int, token: Token) -> Diagnostic:
    """E104: Function declares more parameters than allowed."""
    return _at_token("E104", f"Can't have more than {limit} parameters.", token)


def error_loop_control_outside_loop(token: Token) -> Diagnostic:
    """E105: break/continue outside of a loop body."""
    return _at_token("E105", f"Cannot use '{token.lexeme}' outside of a loop.", token)


def error_nesting_too_deep(token: Token) -> Diagnostic:
    """E106: Expressions or blocks nested beyond what the parser can follow."""
    return _at_token("E106", "Too much nesting.", token)


# --- Resolution error codes ---

def error_already_declared(token: Token) -> Diagnostic:
    """E301: Name declared twice in one scope."""
    return _at_token(
        "E301", f"Variable named '{token.lexeme}' already declared in this scope.", token
    )


def error_read_in_own_initializer(token: Token) -> Diagnostic:
    """E302: Local variable read inside its own initializer."""
    return _at_token("E302", "Cannot read local variable in its own initializer.", token)


def error_top_level_return(token: Token) -> Diagnostic:
    """E303: return outside of any function."""
    return _at_token("E303", "Cannot return from top-level code.", token)


def error_initializer_return_value(token: Token) -> Diagnostic:
    """E304: Returning a value from init."""
    return _at_token("E304", "Cannot return a value from an initializer.", token)


def error_this_outside_class(token: Token) -> Diagnostic:
    """E305: this outside of a class body."""
    return _at_token("E305", "Cannot use 'this' outside of a class.", token)


def error_super_outside_class(token: Token) -> Diagnostic:
    """E306: super outside of a class body."""
    return _at_token("E306", "Cannot use 'super' outside of a class.", token)


def error_super_without_superclass(token: Token) -> Diagnostic:
    """E307: super in a class that does not inherit."""
    return _at_token("E307", "Cannot use 'super' in a class with no superclass.", token)


def error_static_initializer(token: Token) -> Diagnostic:
    """E308: init declared static."""
    return _at_token("E308", "Cannot declare init as static.", token)


class DiagnosticCollector:
    """Collects diagnostics during one pipeline run."""

    def __init__(self, max_errors: int = 20, stream: Optional[TextIO] = None):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self.stream = stream
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic, echoing it to the stream if one is attached."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1
        if self.stream is not None:
            self.stream.write(diagnostic.format() + "\n")

    def add_error(self, error: LoxError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def codes(self) -> List[str]:
        """Codes of all collected diagnostics, in report order."""
        return [d.code for d in self.diagnostics]

    def format_all(self) -> str:
        """Format all diagnostics for display, one per line."""
        return "\n".join(d.format() for d in self.diagnostics)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
        }
