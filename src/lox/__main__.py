#!/usr/bin/env python3
"""
CLI for the Lox interpreter.

Usage:
    python -m lox run FILE.lox
    python -m lox check FILE.lox [--json]
    python -m lox tokens FILE.lox
    python -m lox ast FILE.lox

Global options:
    --max-errors N      Stop parsing after N errors (default: $LOX_MAX_ERRORS or 20)

Exit status:
    0   success
    64  usage error
    65  lexical, syntax or resolution errors
    66  input file cannot be read
    70  runtime error

Examples:
    # Run a script
    python -m lox run examples/fib.lox

    # Report static errors as JSON for an editor integration
    python -m lox check examples/fib.lox --json

    # Inspect what the scanner and parser produce
    python -m lox tokens examples/fib.lox
    python -m lox ast examples/fib.lox
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATA_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_SOFTWARE = 70


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with the usage status on bad arguments."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def read_source(path_str: str) -> Optional[str]:
    """Read a source file, reporting failures to stderr."""
    source_path = Path(path_str)
    try:
        return source_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {source_path}", file=sys.stderr)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read {source_path}: {e}", file=sys.stderr)
    return None


def cmd_run(args) -> int:
    """Run a Lox script."""
    from . import run_source

    source = read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    result = run_source(source, stdout=sys.stdout, stderr=sys.stderr,
                        max_errors=args.max_errors)
    return result.exit_code


def cmd_check(args) -> int:
    """Check a Lox script for lexical, syntax and resolution errors."""
    from . import DiagnosticCollector, check_source

    source = read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    stream = None if args.json else sys.stderr
    diagnostics = DiagnosticCollector(max_errors=args.max_errors, stream=stream)
    statements = check_source(source, diagnostics)

    if args.json:
        print(json.dumps(diagnostics.to_json(), indent=2))
    elif statements is not None:
        print(f"OK: {Path(args.file).name} - {len(statements)} statement(s), no errors")

    return EXIT_DATA_ERROR if statements is None else EXIT_OK


def cmd_tokens(args) -> int:
    """Print the token stream of a Lox script, one token per line."""
    from . import DiagnosticCollector, scan

    source = read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    diagnostics = DiagnosticCollector(max_errors=args.max_errors, stream=sys.stderr)
    for token in scan(source, diagnostics):
        print(token)

    return EXIT_DATA_ERROR if diagnostics.has_errors else EXIT_OK


def cmd_ast(args) -> int:
    """Print each parsed statement of a Lox script as a parenthesized tree."""
    from . import DiagnosticCollector, scan, parse, format_ast

    source = read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    diagnostics = DiagnosticCollector(max_errors=args.max_errors, stream=sys.stderr)
    tokens = scan(source, diagnostics)
    if diagnostics.has_errors:
        return EXIT_DATA_ERROR

    for statement in parse(tokens, diagnostics):
        print(format_ast(statement))

    return EXIT_DATA_ERROR if diagnostics.has_errors else EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='lox',
        description='Lox tree-walking interpreter',
    )
    # argparse applies `type` to string defaults, so a bad LOX_MAX_ERRORS is a usage error
    parser.add_argument('--max-errors', type=int, metavar='N',
                        default=os.environ.get('LOX_MAX_ERRORS', '20'),
                        help='Maximum errors before parsing stops (default: $LOX_MAX_ERRORS or 20)')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', help='Run a Lox script')
    run_parser.add_argument('file', help='Lox source file')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a Lox script for errors')
    check_parser.add_argument('file', help='Lox source file')
    check_parser.add_argument('--json', action='store_true',
                              help='Print diagnostics as JSON')

    # tokens command
    tokens_parser = subparsers.add_parser('tokens', help='Print the token stream')
    tokens_parser.add_argument('file', help='Lox source file')

    # ast command
    ast_parser = subparsers.add_parser('ast', help='Print the parsed syntax tree')
    ast_parser.add_argument('file', help='Lox source file')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'check':
        return cmd_check(args)
    elif args.action == 'tokens':
        return cmd_tokens(args)
    elif args.action == 'ast':
        return cmd_ast(args)
    else:
        parser.print_help()
        return EXIT_USAGE


if __name__ == '__main__':
    sys.exit(main())
