"""
Lox - a tree-walking interpreter for the Lox scripting language.

This module provides:
- Scanner: Tokenizes Lox source code
- Parser: Builds an AST from tokens
- Resolver: Computes scope distances and reports scope errors
- Interpreter: Executes the resolved program

Usage:
    from lox import run_source

    result = run_source('''
    class Greeter {
      init(name) { this.name = name; }
      greet() { print "Hello, " + this.name; }
    }
    Greeter("Lox").greet();
    ''')

    # Or drive the stages by hand
    from lox import scan, parse, resolve, Interpreter, DiagnosticCollector

    diagnostics = DiagnosticCollector()
    statements = parse(scan(source, diagnostics), diagnostics)
    interpreter = Interpreter(diagnostics=diagnostics)
    resolve(statements, interpreter, diagnostics)
    if not diagnostics.has_errors:
        interpreter.interpret(statements)
"""

from .tokens import (
    Token,
    TokenType,
    KEYWORDS,
)

from .errors import (
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
    LoxError,
    ParseError,
    LoxRuntimeError,
)

from .scanner import (
    Scanner,
    scan,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    format_ast,
    print_ast,
)

from .resolver import (
    Resolver,
    resolve,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    check_source,
    run_source,
)

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'KEYWORDS',

    # Errors
    'Diagnostic',
    'DiagnosticCollector',
    'ErrorSeverity',
    'LoxError',
    'ParseError',
    'LoxRuntimeError',

    # Scanner
    'Scanner',
    'scan',

    # Parser
    'Parser',
    'parse',

    # AST
    'format_ast',
    'print_ast',

    # Resolver
    'Resolver',
    'resolve',

    # Runtime
    'Interpreter',
    'ExecutionResult',
    'check_source',
    'run_source',
]

__version__ = "0.1.0"
