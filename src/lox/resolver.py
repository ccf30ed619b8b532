"""
Static resolver for Lox.

Walks the parsed program once before execution and:
- computes, for every local variable / this / super reference, how many
  scopes separate it from its binding, handing the distance to the
  interpreter (globals get no entry and are looked up directly at runtime)
- reports scope errors: duplicate declarations, a local read in its own
  initializer, misplaced return / this / super, and static init

Nothing is evaluated here; every finding is a static diagnostic.
"""

from contextlib import contextmanager
from enum import Enum, auto
from typing import Dict, List, Optional, TYPE_CHECKING

from .tokens import Token
from .ast import (
    # Expressions
    Expression, Literal, Variable, Assignment, Logical, ConditionalExpr,
    BinaryOp, UnaryOp, Grouping, FunctionCall, LambdaExpr, MemberAccess,
    MemberAssignment, ThisExpr, SuperExpr,
    # Statements
    Statement, ExpressionStatement, PrintStatement, Block, VarDecl,
    IfStatement, WhileStatement, LoopControlStatement, FunctionDef,
    ReturnStatement, ClassDef,
)
from .errors import (
    DiagnosticCollector,
    error_already_declared,
    error_read_in_own_initializer,
    error_top_level_return,
    error_initializer_return_value,
    error_this_outside_class,
    error_super_outside_class,
    error_super_without_superclass,
    error_static_initializer,
)

if TYPE_CHECKING:
    from .runtime.interpreter import Interpreter


class FunctionType(Enum):
    """Kind of function body currently being resolved."""
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    STATIC = auto()
    INITIALIZER = auto()


class ClassType(Enum):
    """Kind of class body currently being resolved."""
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class Resolver:
    """
    Scope resolver for Lox programs.

    Each scope maps a name to False while its initializer is being resolved
    and True once the name is fully defined.
    """

    def __init__(self, interpreter: "Interpreter", diagnostics: Optional[DiagnosticCollector] = None):
        self.interpreter = interpreter
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        self.scopes: List[Dict[str, bool]] = []
        self._current_function = FunctionType.NONE
        self._current_class = ClassType.NONE

    def resolve(self, statements: List[Statement]) -> None:
        """Resolve a list of statements in the current scope."""
        for statement in statements:
            self._resolve_statement(statement)

    # =========================================================================
    # Scope Handling
    # =========================================================================

    @contextmanager
    def _new_scope(self):
        """Push a scope for the duration of the block."""
        self.scopes.append({})
        try:
            yield self.scopes[-1]
        finally:
            self.scopes.pop()

    def _declare(self, name: Token) -> None:
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.diagnostics.add(error_already_declared(name))
        scope[name.lexeme] = False

    def _define(self, name: Token) -> None:
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def _resolve_local(self, expr: Expression, name: str) -> None:
        """Record the distance to the innermost scope binding name, if any."""
        for depth, scope in enumerate(reversed(self.scopes)):
            if name in scope:
                self.interpreter.resolve(expr, depth)
                return

    # =========================================================================
    # Statements
    # =========================================================================

    def _resolve_statement(self, stmt: Statement) -> None:
        """Resolve a statement."""
        if isinstance(stmt, Block):
            with self._new_scope():
                self.resolve(stmt.statements)
        elif isinstance(stmt, VarDecl):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expression(stmt.initializer)
            self._define(stmt.name)
        elif isinstance(stmt, FunctionDef):
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt.parameters, stmt.body, FunctionType.FUNCTION)
        elif isinstance(stmt, ClassDef):
            self._resolve_class(stmt)
        elif isinstance(stmt, ExpressionStatement):
            self._resolve_expression(stmt.expression)
        elif isinstance(stmt, PrintStatement):
            self._resolve_expression(stmt.expression)
        elif isinstance(stmt, IfStatement):
            self._resolve_expression(stmt.condition)
            self._resolve_statement(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_statement(stmt.else_branch)
        elif isinstance(stmt, WhileStatement):
            self._resolve_expression(stmt.condition)
            self._resolve_statement(stmt.body)
            if stmt.increment is not None:
                self._resolve_expression(stmt.increment)
        elif isinstance(stmt, ReturnStatement):
            self._resolve_return(stmt)
        elif isinstance(stmt, LoopControlStatement):
            pass  # placement was checked by the parser
        else:
            raise NotImplementedError(f"Cannot resolve {type(stmt).__name__}")

    def _resolve_return(self, stmt: ReturnStatement) -> None:
        if self._current_function == FunctionType.NONE:
            self.diagnostics.add(error_top_level_return(stmt.keyword))
        if stmt.value is not None:
            if self._current_function == FunctionType.INITIALIZER:
                self.diagnostics.add(error_initializer_return_value(stmt.keyword))
            self._resolve_expression(stmt.value)

    def _resolve_function(self, parameters: List[Token], body: List[Statement],
                          kind: FunctionType) -> None:
        enclosing_function = self._current_function
        self._current_function = kind
        try:
            with self._new_scope():
                for param in parameters:
                    self._declare(param)
                    self._define(param)
                self.resolve(body)
        finally:
            self._current_function = enclosing_function

    def _resolve_class(self, stmt: ClassDef) -> None:
        """Resolve a class body: a 'super' scope (if inheriting) around a 'this' scope."""
        enclosing_class = self._current_class
        self._current_class = ClassType.CLASS

        self._declare(stmt.name)
        self._define(stmt.name)

        try:
            if stmt.superclass is not None:
                self._current_class = ClassType.SUBCLASS
                self._resolve_expression(stmt.superclass)
                self.scopes.append({"super": True})

            with self._new_scope() as scope:
                scope["this"] = True

                for method in stmt.methods:
                    kind = FunctionType.METHOD
                    if method.name.lexeme == "init":
                        kind = FunctionType.INITIALIZER
                    self._resolve_function(method.parameters, method.body, kind)

                for method in stmt.static_methods:
                    if method.name.lexeme == "init":
                        self.diagnostics.add(error_static_initializer(method.name))
                    self._resolve_function(method.parameters, method.body, FunctionType.STATIC)

            if stmt.superclass is not None:
                self.scopes.pop()
        finally:
            self._current_class = enclosing_class

    # =========================================================================
    # Expressions
    # =========================================================================

    def _resolve_expression(self, expr: Expression) -> None:
        """Resolve an expression."""
        if isinstance(expr, Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.diagnostics.add(error_read_in_own_initializer(expr.name))
            self._resolve_local(expr, expr.name.lexeme)
        elif isinstance(expr, Assignment):
            self._resolve_expression(expr.value)
            self._resolve_local(expr, expr.name.lexeme)
        elif isinstance(expr, Literal):
            pass
        elif isinstance(expr, (BinaryOp, Logical)):
            self._resolve_expression(expr.left)
            self._resolve_expression(expr.right)
        elif isinstance(expr, UnaryOp):
            self._resolve_expression(expr.operand)
        elif isinstance(expr, Grouping):
            self._resolve_expression(expr.expression)
        elif isinstance(expr, ConditionalExpr):
            self._resolve_expression(expr.condition)
            self._resolve_expression(expr.then_branch)
            self._resolve_expression(expr.else_branch)
        elif isinstance(expr, FunctionCall):
            self._resolve_expression(expr.callee)
            for argument in expr.arguments:
                self._resolve_expression(argument)
        elif isinstance(expr, LambdaExpr):
            self._resolve_function(expr.parameters, expr.body, FunctionType.FUNCTION)
        elif isinstance(expr, MemberAccess):
            self._resolve_expression(expr.object)
        elif isinstance(expr, MemberAssignment):
            self._resolve_expression(expr.value)
            self._resolve_expression(expr.object)
        elif isinstance(expr, ThisExpr):
            if self._current_class == ClassType.NONE:
                self.diagnostics.add(error_this_outside_class(expr.keyword))
                return
            self._resolve_local(expr, "this")
        elif isinstance(expr, SuperExpr):
            if self._current_class == ClassType.NONE:
                self.diagnostics.add(error_super_outside_class(expr.keyword))
                return
            if self._current_class != ClassType.SUBCLASS:
                self.diagnostics.add(error_super_without_superclass(expr.keyword))
                return
            self._resolve_local(expr, "super")
        else:
            raise NotImplementedError(f"Cannot resolve {type(expr).__name__}")


def resolve(statements: List[Statement], interpreter: "Interpreter",
            diagnostics: Optional[DiagnosticCollector] = None) -> None:
    """
    Convenience function to resolve a program against an interpreter.

    Args:
        statements: Parsed program
        interpreter: Interpreter receiving the resolved distances
        diagnostics: Optional collector receiving resolution errors
    """
    Resolver(interpreter, diagnostics).resolve(statements)
