"""
Abstract Syntax Tree (AST) node definitions for Lox.

The AST represents the structure of a parsed program, which is then
resolved and interpreted. Nodes are plain dataclasses compared by identity
(``eq=False``) so the resolver can key its distance table on the node itself;
two textually identical references are still distinct keys.

Expression and statement sets are closed: the resolver and interpreter
dispatch over them with isinstance chains.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from .tokens import Token


# =============================================================================
# Base Classes
# =============================================================================

@dataclass(eq=False)
class AstNode:
    """Base class for all AST nodes."""


@dataclass(eq=False)
class Expression(AstNode):
    """Base class for all expressions."""


@dataclass(eq=False)
class Statement(AstNode):
    """Base class for all statements."""


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(eq=False)
class Literal(Expression):
    """A literal value (number, string, true/false, nil)."""
    value: Union[float, str, bool, None]


@dataclass(eq=False)
class Variable(Expression):
    """A variable reference."""
    name: Token


@dataclass(eq=False)
class Assignment(Expression):
    """Assignment to a variable (e.g., x = 1)."""
    name: Token
    value: Expression


@dataclass(eq=False)
class Logical(Expression):
    """Short-circuiting 'and' / 'or'."""
    left: Expression
    operator: Token
    right: Expression


@dataclass(eq=False)
class ConditionalExpr(Expression):
    """A ternary conditional expression (cond ? a : b)."""
    condition: Expression
    then_branch: Expression
    else_branch: Expression


@dataclass(eq=False)
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, x < y)."""
    left: Expression
    operator: Token
    right: Expression


@dataclass(eq=False)
class UnaryOp(Expression):
    """A unary operation (e.g., !x, -n)."""
    operator: Token
    operand: Expression


@dataclass(eq=False)
class Grouping(Expression):
    """A parenthesized expression."""
    expression: Expression


@dataclass(eq=False)
class FunctionCall(Expression):
    """A call (e.g., f(1, 2)); paren is kept for error reporting."""
    callee: Expression
    paren: Token
    arguments: List[Expression] = field(default_factory=list)


@dataclass(eq=False)
class LambdaExpr(Expression):
    """An anonymous function (e.g., fun (a, b) { return a + b; })."""
    keyword: Token
    parameters: List[Token]
    body: List[Statement]


@dataclass(eq=False)
class MemberAccess(Expression):
    """Property read (e.g., point.x)."""
    object: Expression
    name: Token


@dataclass(eq=False)
class MemberAssignment(Expression):
    """Property write (e.g., point.x = 1)."""
    object: Expression
    name: Token
    value: Expression


@dataclass(eq=False)
class ThisExpr(Expression):
    """The receiver inside a method body."""
    keyword: Token


@dataclass(eq=False)
class SuperExpr(Expression):
    """A superclass method reference (e.g., super.init)."""
    keyword: Token
    method: Token


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(eq=False)
class ExpressionStatement(Statement):
    """An expression evaluated for its side effects."""
    expression: Expression


@dataclass(eq=False)
class PrintStatement(Statement):
    """print <expression>;"""
    expression: Expression


@dataclass(eq=False)
class Block(Statement):
    """A braced list of statements with its own scope."""
    statements: List[Statement] = field(default_factory=list)


@dataclass(eq=False)
class VarDecl(Statement):
    """A variable declaration.

    Both surface forms produce this node:
        var name = initializer;
        name := initializer;
    """
    name: Token
    initializer: Optional[Expression] = None


@dataclass(eq=False)
class IfStatement(Statement):
    """if (condition) then_branch [else else_branch]"""
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass(eq=False)
class WhileStatement(Statement):
    """A while loop.

    ``increment`` is only set for loops desugared from ``for``; it runs
    after each iteration, including iterations cut short by ``continue``.
    """
    condition: Expression
    body: Statement
    increment: Optional[Expression] = None


@dataclass(eq=False)
class LoopControlStatement(Statement):
    """break; or continue;"""
    keyword: Token

    @property
    def is_break(self) -> bool:
        return self.keyword.lexeme.lower() == "break"


@dataclass(eq=False)
class FunctionDef(Statement):
    """A named function or method declaration."""
    name: Token
    parameters: List[Token]
    body: List[Statement]


@dataclass(eq=False)
class ReturnStatement(Statement):
    """return [value];"""
    keyword: Token
    value: Optional[Expression] = None


@dataclass(eq=False)
class ClassDef(Statement):
    """A class declaration with optional superclass and static methods."""
    name: Token
    superclass: Optional[Variable]
    methods: List[FunctionDef] = field(default_factory=list)
    static_methods: List[FunctionDef] = field(default_factory=list)


# =============================================================================
# Printing Helpers
# =============================================================================

def format_number(value: float) -> str:
    """Render a number without a trailing '.0' for integral values."""
    text = repr(value)
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_literal(value: Any) -> str:
    """Render a primitive value the way 'print' shows it."""
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def _parenthesize(name: str, *parts: Any) -> str:
    pieces = [name]
    for part in parts:
        if isinstance(part, AstNode):
            pieces.append(format_ast(part))
        elif isinstance(part, Token):
            pieces.append(part.lexeme)
        else:
            pieces.append(str(part))
    return "(" + " ".join(pieces) + ")"


def _format_function(keyword: str, name: Optional[Token], parameters: List[Token],
                     body: List[Statement]) -> str:
    params = "(" + " ".join(p.lexeme for p in parameters) + ")"
    head = [keyword] if name is None else [keyword, name.lexeme]
    return _parenthesize(" ".join(head), params, *body)


def format_ast(node: AstNode) -> str:
    """Render an AST node as a parenthesized string for diagnostics."""
    if isinstance(node, Literal):
        if isinstance(node.value, str):
            return f'"{node.value}"'
        return format_literal(node.value)
    elif isinstance(node, Variable):
        return node.name.lexeme
    elif isinstance(node, Assignment):
        return _parenthesize("=", node.name, node.value)
    elif isinstance(node, Logical):
        return _parenthesize(node.operator.lexeme, node.left, node.right)
    elif isinstance(node, ConditionalExpr):
        return _parenthesize("conditional", node.condition, node.then_branch, node.else_branch)
    elif isinstance(node, BinaryOp):
        return _parenthesize(node.operator.lexeme, node.left, node.right)
    elif isinstance(node, UnaryOp):
        return _parenthesize(node.operator.lexeme, node.operand)
    elif isinstance(node, Grouping):
        return _parenthesize("group", node.expression)
    elif isinstance(node, FunctionCall):
        return _parenthesize("call", node.callee, *node.arguments)
    elif isinstance(node, LambdaExpr):
        return _format_function("fun", None, node.parameters, node.body)
    elif isinstance(node, MemberAccess):
        return _parenthesize(".", node.object, node.name)
    elif isinstance(node, MemberAssignment):
        return _parenthesize("=", _parenthesize(".", node.object, node.name), node.value)
    elif isinstance(node, ThisExpr):
        return "this"
    elif isinstance(node, SuperExpr):
        return _parenthesize("super", node.method)
    elif isinstance(node, ExpressionStatement):
        return _parenthesize(";", node.expression)
    elif isinstance(node, PrintStatement):
        return _parenthesize("print", node.expression)
    elif isinstance(node, Block):
        return _parenthesize("block", *node.statements)
    elif isinstance(node, VarDecl):
        if node.initializer is None:
            return _parenthesize("var", node.name)
        return _parenthesize("var", node.name, "=", node.initializer)
    elif isinstance(node, IfStatement):
        if node.else_branch is None:
            return _parenthesize("if", node.condition, node.then_branch)
        return _parenthesize("if-else", node.condition, node.then_branch, node.else_branch)
    elif isinstance(node, WhileStatement):
        if node.increment is None:
            return _parenthesize("while", node.condition, node.body)
        return _parenthesize("while", node.condition, node.body, node.increment)
    elif isinstance(node, LoopControlStatement):
        return "(" + node.keyword.lexeme + ")"
    elif isinstance(node, FunctionDef):
        return _format_function("fun", node.name, node.parameters, node.body)
    elif isinstance(node, ReturnStatement):
        if node.value is None:
            return "(return)"
        return _parenthesize("return", node.value)
    elif isinstance(node, ClassDef):
        head = f"class {node.name.lexeme}"
        if node.superclass is not None:
            head += f" < {node.superclass.name.lexeme}"
        statics = [_format_function("static", m.name, m.parameters, m.body)
                   for m in node.static_methods]
        return _parenthesize(head, *node.methods, *statics)
    else:
        raise NotImplementedError(f"No printer for {node.__class__.__name__}")


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(format_ast(node))
