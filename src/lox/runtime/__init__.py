"""
Lox Runtime - Tree-walking interpreter for resolved Lox programs.

This module provides:
- Interpreter: Executes statements against a global environment
- Values: Functions, classes, instances and value semantics
- ExecutionContext: Environments and control-flow completions
- BuiltinRegistry: Native functions seeded into every global scope
"""

from .context import (
    Environment,
    ExecutionContext,
    Signal,
    Completion,
    create_context,
)

from .values import (
    LoxCallable,
    PropertyHolder,
    LoxFunction,
    NativeFunction,
    LoxClass,
    LoxInstance,
    is_truthy,
    is_equal,
    stringify,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    check_source,
    run_source,
)

__all__ = [
    # Context
    'Environment',
    'ExecutionContext',
    'Signal',
    'Completion',
    'create_context',

    # Values
    'LoxCallable',
    'PropertyHolder',
    'LoxFunction',
    'NativeFunction',
    'LoxClass',
    'LoxInstance',
    'is_truthy',
    'is_equal',
    'stringify',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',

    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'check_source',
    'run_source',
]
