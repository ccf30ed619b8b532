"""
Tree-walking interpreter for Lox.

Executes resolved statements against a run-scoped global environment.
Statements report how they finished through a Completion so that return,
break and continue unwind to the right place without exceptions; runtime
errors are LoxRuntimeError exceptions caught once per top-level statement.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TextIO

from .context import (
    Environment, ExecutionContext, Completion, Signal,
    NORMAL, BREAK, CONTINUE, return_with, create_context,
)
from .values import (
    LoxCallable, LoxFunction, LoxClass, LoxInstance, PropertyHolder,
    is_truthy, is_equal, stringify,
)
from .builtins import get_builtin_registry

from ..ast import (
    # Expressions
    Expression, Literal, Variable, Assignment, Logical, ConditionalExpr,
    BinaryOp, UnaryOp, Grouping, FunctionCall, LambdaExpr, MemberAccess,
    MemberAssignment, ThisExpr, SuperExpr,
    # Statements
    Statement, ExpressionStatement, PrintStatement, Block, VarDecl,
    IfStatement, WhileStatement, LoopControlStatement, FunctionDef,
    ReturnStatement, ClassDef,
)
from ..errors import Diagnostic, DiagnosticCollector, LoxRuntimeError
from ..parser import ensure_recursion_limit
from ..tokens import Token, TokenType


# Deepest chain of nested Lox calls before "Stack overflow."
MAX_CALL_DEPTH = 1000


@dataclass
class ExecutionResult:
    """Result of running a Lox program."""
    success: bool
    had_static_error: bool = False
    had_runtime_error: bool = False
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        """Process exit status for this result."""
        if self.had_static_error:
            return 65
        if self.had_runtime_error:
            return 70
        return 0


class Interpreter:
    """
    Tree-walking interpreter for Lox.

    Usage:
        interpreter = Interpreter()
        resolve(statements, interpreter)
        interpreter.interpret(statements)

    The resolver fills `locals` with scope distances before execution;
    references with no entry are globals.
    """

    def __init__(self, stdout: Optional[TextIO] = None,
                 diagnostics: Optional[DiagnosticCollector] = None):
        self.ctx: ExecutionContext = create_context(stdout, diagnostics)
        self.globals: Environment = self.ctx.globals
        self.environment: Environment = self.globals
        self.locals: Dict[Expression, int] = {}
        self._call_depth = 0
        ensure_recursion_limit()

        for name, native in get_builtin_registry().natives().items():
            self.globals.define(name, native)

    @property
    def diagnostics(self) -> DiagnosticCollector:
        return self.ctx.diagnostics

    @property
    def had_runtime_error(self) -> bool:
        return self.ctx.had_runtime_error

    def resolve(self, expr: Expression, depth: int) -> None:
        """Record the scope distance of a resolved reference."""
        self.locals[expr] = depth

    def interpret(self, statements: List[Statement]) -> None:
        """
        Execute a program.

        A runtime error abandons the top-level statement it occurred in;
        it is reported and execution continues with the next one.
        """
        for stmt in statements:
            try:
                self._execute_statement(stmt)
            except LoxRuntimeError as error:
                self.ctx.report(error)

    # =========================================================================
    # Statements
    # =========================================================================

    @contextmanager
    def _scope(self, environment: Environment):
        """Make environment current, restoring the previous one on every exit."""
        previous = self.environment
        self.environment = environment
        try:
            yield environment
        finally:
            self.environment = previous

    def execute_block(self, statements: List[Statement], environment: Environment) -> Completion:
        """Execute statements in the given environment."""
        with self._scope(environment):
            for stmt in statements:
                completion = self._execute_statement(stmt)
                if not completion.is_normal:
                    return completion
        return NORMAL

    def _execute_statement(self, stmt: Statement) -> Completion:
        """Execute a statement."""
        if isinstance(stmt, ExpressionStatement):
            self._evaluate(stmt.expression)
            return NORMAL
        elif isinstance(stmt, PrintStatement):
            self.ctx.write_line(stringify(self._evaluate(stmt.expression)))
            return NORMAL
        elif isinstance(stmt, VarDecl):
            value = None
            if stmt.initializer is not None:
                value = self._evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
            return NORMAL
        elif isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(enclosing=self.environment))
        elif isinstance(stmt, IfStatement):
            if is_truthy(self._evaluate(stmt.condition)):
                return self._execute_statement(stmt.then_branch)
            if stmt.else_branch is not None:
                return self._execute_statement(stmt.else_branch)
            return NORMAL
        elif isinstance(stmt, WhileStatement):
            return self._execute_while(stmt)
        elif isinstance(stmt, LoopControlStatement):
            return BREAK if stmt.is_break else CONTINUE
        elif isinstance(stmt, FunctionDef):
            function = LoxFunction(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function)
            return NORMAL
        elif isinstance(stmt, ReturnStatement):
            value = None
            if stmt.value is not None:
                value = self._evaluate(stmt.value)
            return return_with(value)
        elif isinstance(stmt, ClassDef):
            self._execute_class(stmt)
            return NORMAL
        else:
            raise NotImplementedError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_while(self, stmt: WhileStatement) -> Completion:
        """Execute a while loop, absorbing break and continue."""
        while is_truthy(self._evaluate(stmt.condition)):
            completion = self._execute_statement(stmt.body)
            if completion.signal is Signal.BREAK:
                break
            if completion.signal is Signal.RETURN:
                return completion
            if stmt.increment is not None:
                self._evaluate(stmt.increment)
        return NORMAL

    def _execute_class(self, stmt: ClassDef) -> None:
        """Define a class; the name is bound (to nil) before the class exists."""
        superclass = None
        if stmt.superclass is not None:
            superclass = self._evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass) or superclass.is_metaclass:
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

        self.environment.define(stmt.name.lexeme, None)

        closure = self.environment
        if superclass is not None:
            closure = Environment(enclosing=self.environment)
            closure.define("super", superclass)

        methods = {
            method.name.lexeme: LoxFunction(method, closure, method.name.lexeme == "init")
            for method in stmt.methods
        }
        static_methods = {
            method.name.lexeme: LoxFunction(method, closure)
            for method in stmt.static_methods
        }

        klass = LoxClass(stmt.name.lexeme, superclass, methods, static_methods)
        self.environment.assign(stmt.name, klass)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression) -> Any:
        """Evaluate an expression to produce a value."""
        if isinstance(expr, Literal):
            return expr.value
        elif isinstance(expr, Grouping):
            return self._evaluate(expr.expression)
        elif isinstance(expr, Variable):
            return self._look_up(expr, expr.name)
        elif isinstance(expr, Assignment):
            return self._eval_assignment(expr)
        elif isinstance(expr, Logical):
            return self._eval_logical(expr)
        elif isinstance(expr, ConditionalExpr):
            if is_truthy(self._evaluate(expr.condition)):
                return self._evaluate(expr.then_branch)
            return self._evaluate(expr.else_branch)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr)
        elif isinstance(expr, FunctionCall):
            return self._eval_function_call(expr)
        elif isinstance(expr, LambdaExpr):
            return LoxFunction(expr, self.environment)
        elif isinstance(expr, MemberAccess):
            return self._eval_member_access(expr)
        elif isinstance(expr, MemberAssignment):
            return self._eval_member_assignment(expr)
        elif isinstance(expr, ThisExpr):
            return self._look_up(expr, expr.keyword, "this")
        elif isinstance(expr, SuperExpr):
            return self._eval_super(expr)
        else:
            raise NotImplementedError(f"Unknown expression type: {type(expr).__name__}")

    def _look_up(self, expr: Expression, token: Token, name: Optional[str] = None) -> Any:
        """Read a variable at its resolved distance, or from globals."""
        distance = self.locals.get(expr)
        if distance is None:
            return self.globals.get(token)
        return self.environment.get_at(distance, name if name is not None else token.lexeme)

    def _eval_assignment(self, expr: Assignment) -> Any:
        value = self._evaluate(expr.value)
        distance = self.locals.get(expr)
        if distance is None:
            self.globals.assign(expr.name, value)
        else:
            self.environment.assign_at(distance, expr.name, value)
        return value

    def _eval_logical(self, expr: Logical) -> Any:
        """Short-circuit: return the left operand when it decides the result."""
        left = self._evaluate(expr.left)
        if expr.operator.type == TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left
        return self._evaluate(expr.right)

    def _eval_binary_op(self, expr: BinaryOp) -> Any:
        """Evaluate a binary operation."""
        left = self._evaluate(expr.left)
        right = self._evaluate(expr.right)
        operator = expr.operator
        op = operator.type

        if op == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        elif op == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if op == TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError(operator, "Operands must be two numbers or two strings.")

        _check_number_operands(operator, left, right)

        if op == TokenType.MINUS:
            return left - right
        elif op == TokenType.STAR:
            return left * right
        elif op == TokenType.SLASH:
            if right == 0:
                raise LoxRuntimeError(operator, "Division by zero.")
            return left / right
        elif op == TokenType.GREATER:
            return left > right
        elif op == TokenType.GREATER_EQUAL:
            return left >= right
        elif op == TokenType.LESS:
            return left < right
        elif op == TokenType.LESS_EQUAL:
            return left <= right
        else:
            raise NotImplementedError(f"Unknown binary operator: {operator.lexeme}")

    def _eval_unary_op(self, expr: UnaryOp) -> Any:
        """Evaluate a unary operation."""
        operand = self._evaluate(expr.operand)

        if expr.operator.type == TokenType.MINUS:
            if not isinstance(operand, float):
                raise LoxRuntimeError(expr.operator, "Operand must be a number.")
            return -operand
        elif expr.operator.type == TokenType.BANG:
            return not is_truthy(operand)
        else:
            raise NotImplementedError(f"Unknown unary operator: {expr.operator.lexeme}")

    def _eval_function_call(self, expr: FunctionCall) -> Any:
        """Evaluate a call to a function, method or class."""
        callee = self._evaluate(expr.callee)
        arguments = [self._evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")

        if len(arguments) != callee.arity():
            raise LoxRuntimeError(
                expr.paren,
                f"Expected {callee.arity()} arguments but got {len(arguments)}."
            )

        if self._call_depth >= MAX_CALL_DEPTH:
            raise LoxRuntimeError(expr.paren, "Stack overflow.")

        self._call_depth += 1
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None
        finally:
            self._call_depth -= 1

    def _eval_member_access(self, expr: MemberAccess) -> Any:
        obj = self._evaluate(expr.object)
        if isinstance(obj, PropertyHolder):
            return obj.get(expr.name)
        raise LoxRuntimeError(expr.name, "Only instances have properties.")

    def _eval_member_assignment(self, expr: MemberAssignment) -> Any:
        obj = self._evaluate(expr.object)
        if not isinstance(obj, PropertyHolder):
            raise LoxRuntimeError(expr.name, "Only instances have fields.")
        value = self._evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def _eval_super(self, expr: SuperExpr) -> Any:
        """Look a method up on the superclass and bind it to the current receiver."""
        distance = self.locals[expr]
        superclass: LoxClass = self.environment.get_at(distance, "super")
        # 'this' is always bound one scope inside 'super'
        receiver = self.environment.get_at(distance - 1, "this")

        if isinstance(receiver, LoxInstance) and receiver.klass.is_metaclass:
            method = superclass.find_static_method(expr.method.lexeme)
        else:
            method = superclass.find_method(expr.method.lexeme)

        if method is None:
            raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
        return method.bind(receiver)


def _check_number_operands(operator: Token, left: Any, right: Any) -> None:
    if isinstance(left, float) and isinstance(right, float):
        return
    raise LoxRuntimeError(operator, "Operands must be numbers.")


def check_source(source: str, diagnostics: DiagnosticCollector,
                 interpreter: Optional[Interpreter] = None) -> Optional[List[Statement]]:
    """
    Scan, parse and resolve source text.

    Returns the resolved statements, or None if any stage reported an error.
    Scanning errors stop the pipeline before parsing; parse errors stop it
    before resolution.
    """
    from ..scanner import scan
    from ..parser import parse
    from ..resolver import resolve

    tokens = scan(source, diagnostics)
    if diagnostics.has_errors:
        return None

    statements = parse(tokens, diagnostics)
    if diagnostics.has_errors:
        return None

    if interpreter is None:
        interpreter = Interpreter(diagnostics=diagnostics)
    resolve(statements, interpreter, diagnostics)
    if diagnostics.has_errors:
        return None

    return statements


def run_source(
    source: str,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    max_errors: int = 20,
) -> ExecutionResult:
    """
    High-level API to run Lox source code in one call.

        from lox import run_source

        result = run_source('print "hello";')
        if not result.success:
            print(result.exit_code)

    Args:
        source: Lox source code as a string
        stdout: Stream receiving 'print' output (default sys.stdout)
        stderr: Stream receiving diagnostics as they are reported (default: not echoed)
        max_errors: Maximum static errors before parsing stops

    Returns:
        ExecutionResult with status flags and all diagnostics
    """
    diagnostics = DiagnosticCollector(max_errors=max_errors, stream=stderr)
    interpreter = Interpreter(stdout=stdout, diagnostics=diagnostics)

    statements = check_source(source, diagnostics, interpreter)
    if statements is None:
        return ExecutionResult(
            success=False,
            had_static_error=True,
            diagnostics=diagnostics.diagnostics,
        )

    interpreter.interpret(statements)
    had_runtime_error = interpreter.had_runtime_error
    return ExecutionResult(
        success=not had_runtime_error,
        had_runtime_error=had_runtime_error,
        diagnostics=diagnostics.diagnostics,
    )
