"""
Execution context for the Lox interpreter.

Holds variable environments, the control-flow completion record passed back
up the statement executor, and the run-scoped state of one interpretation.
"""

import sys
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional, TextIO

from ..errors import DiagnosticCollector, LoxRuntimeError
from ..tokens import Token


@dataclass(eq=False)
class Environment:
    """
    A single scope containing variable bindings.

    Environments form a chain via the `enclosing` field for lexical scoping.
    Closures keep their defining environment alive by holding a reference.
    """
    values: Dict[str, Any] = field(default_factory=dict)
    enclosing: Optional["Environment"] = None

    def define(self, name: str, value: Any) -> None:
        """Bind a name in this scope, replacing any existing binding here."""
        self.values[name] = value

    def get(self, name: Token) -> Any:
        """Look up a variable in this scope or enclosing scopes."""
        env: Optional[Environment] = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Any) -> None:
        """Update an existing variable wherever it is bound in the chain."""
        env: Optional[Environment] = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int) -> "Environment":
        """Walk exactly `distance` enclosing links."""
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Any:
        """Read a binding from the scope `distance` hops out, without searching."""
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Any) -> None:
        """Write a binding in the scope `distance` hops out, without searching."""
        self.ancestor(distance).values[name.lexeme] = value


class Signal(Enum):
    """How a statement finished."""
    NORMAL = auto()
    BREAK = auto()
    CONTINUE = auto()
    RETURN = auto()


@dataclass(frozen=True)
class Completion:
    """
    Result of executing a statement.

    Blocks propagate anything but NORMAL; loops absorb BREAK and CONTINUE;
    function calls absorb RETURN and take its value.
    """
    signal: Signal = Signal.NORMAL
    value: Any = None

    @property
    def is_normal(self) -> bool:
        return self.signal is Signal.NORMAL


NORMAL = Completion()
BREAK = Completion(Signal.BREAK)
CONTINUE = Completion(Signal.CONTINUE)


def return_with(value: Any) -> Completion:
    return Completion(Signal.RETURN, value)


@dataclass
class ExecutionContext:
    """
    Run-scoped state for one interpretation.

    Nothing here is shared between runs: each interpreter owns a fresh
    context with its own globals, diagnostics and output stream.
    """
    globals: Environment = field(default_factory=Environment)
    diagnostics: DiagnosticCollector = field(default_factory=DiagnosticCollector)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)

    def write_line(self, text: str) -> None:
        """Write one line of program output."""
        self.stdout.write(text + "\n")

    def report(self, error: LoxRuntimeError) -> None:
        """Record a runtime error."""
        self.diagnostics.add_error(error)

    @property
    def had_runtime_error(self) -> bool:
        return any(d.code == "E400" for d in self.diagnostics.diagnostics)


def create_context(stdout: Optional[TextIO] = None,
                   diagnostics: Optional[DiagnosticCollector] = None) -> ExecutionContext:
    """
    Create a new execution context.

    Args:
        stdout: Stream receiving 'print' output (default sys.stdout)
        diagnostics: Collector receiving runtime errors

    Returns:
        ExecutionContext with an empty global environment
    """
    return ExecutionContext(
        globals=Environment(),
        diagnostics=diagnostics if diagnostics is not None else DiagnosticCollector(),
        stdout=stdout if stdout is not None else sys.stdout,
    )
