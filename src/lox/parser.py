"""
Recursive descent parser for Lox.

Converts a token stream into a list of statements. Syntax errors are
reported to the diagnostic collector; the parser then discards tokens up to
the next statement boundary and keeps going, so one pass can surface several
independent errors.
"""

import sys
from typing import List, Optional

from .tokens import Token, TokenType, STATEMENT_KEYWORDS
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
    ParseError,
    DiagnosticCollector,
    error_expected,
    error_invalid_assignment_target,
    error_too_many_arguments,
    error_too_many_parameters,
    error_loop_control_outside_loop,
    error_nesting_too_deep,
)


# Upper bound on call arguments and declared parameters
MAX_ARGUMENTS = 8

# Python frames available to the recursive parser, resolver and interpreter
RECURSION_LIMIT = 10000


def ensure_recursion_limit() -> None:
    """Raise the interpreter recursion limit to RECURSION_LIMIT if it is lower."""
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)


class Parser:
    """
    Recursive descent parser for Lox.

    Usage:
        parser = Parser(tokens)
        statements = parser.parse()

    Expression precedence, lowest to highest:
        Lowest:  assignment (right-associative)
                 or
                 and
                 ?: (conditional)
                 == !=
                 < > <= >=
                 + -
                 * /
                 unary (! -)
        Highest: call / property access
    """

    # Binary operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.EQUAL_EQUAL: 1,
        TokenType.BANG_EQUAL: 1,
        TokenType.LESS: 2,
        TokenType.LESS_EQUAL: 2,
        TokenType.GREATER: 2,
        TokenType.GREATER_EQUAL: 2,
        TokenType.PLUS: 3,
        TokenType.MINUS: 3,
        TokenType.STAR: 4,
        TokenType.SLASH: 4,
    }

    def __init__(self, tokens: List[Token], diagnostics: Optional[DiagnosticCollector] = None):
        self.tokens = tokens
        self.pos = 0
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        self._loop_depth = 0

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _check_ahead(self, token_type: TokenType, offset: int = 1) -> bool:
        """Check if token at current position + offset is of given type."""
        return self._peek(offset).type == token_type

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, message: str) -> Token:
        """Consume token of expected type, or raise a parse error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(message)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _error(self, message: str, token: Optional[Token] = None) -> ParseError:
        """Report a syntax error and return the exception for the caller to raise."""
        error = error_expected(message, token if token is not None else self._current())
        self.diagnostics.add_error(error)
        return error

    def _synchronize(self) -> None:
        """Discard tokens until the start of the next statement."""
        self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._current().type in STATEMENT_KEYWORDS:
                return
            self._advance()

    # =========================================================================
    # Declarations
    # =========================================================================

    def _parse_declaration(self) -> Optional[Statement]:
        """Parse a declaration, recovering from syntax errors."""
        try:
            if self._check(TokenType.IDENTIFIER) and self._check_ahead(TokenType.COLON_EQUAL):
                return self._parse_shorthand_var_decl()
            if self._match(TokenType.VAR):
                return self._parse_var_decl()
            if self._check(TokenType.FUN) and self._check_ahead(TokenType.IDENTIFIER):
                self._advance()  # consume 'fun'
                return self._parse_function_def("function")
            if self._match(TokenType.CLASS):
                return self._parse_class_def()
            return self._parse_statement()
        except ParseError:
            self._synchronize()
            return None
        except RecursionError:
            self.diagnostics.add(error_nesting_too_deep(self._current()))
            self._synchronize()
            return None

    def _parse_shorthand_var_decl(self) -> VarDecl:
        """Parse: name := initializer;"""
        name = self._advance()
        self._advance()  # consume ':='
        initializer = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return VarDecl(name=name, initializer=initializer)

    def _parse_var_decl(self) -> VarDecl:
        """Parse: var name [= initializer];"""
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return VarDecl(name=name, initializer=initializer)

    def _parse_parameters(self) -> List[Token]:
        """Parse a parenthesized parameter list; the '(' is already consumed."""
        parameters: List[Token] = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(parameters) >= MAX_ARGUMENTS:
                    self.diagnostics.add(error_too_many_parameters(MAX_ARGUMENTS, self._current()))
                parameters.append(self._consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        return parameters

    def _parse_function_body(self, kind: str) -> List[Statement]:
        """Parse a function body; loop control never crosses a function boundary."""
        self._consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        enclosing_depth = self._loop_depth
        self._loop_depth = 0
        try:
            return self._parse_block_statements()
        finally:
            self._loop_depth = enclosing_depth

    def _parse_function_def(self, kind: str) -> FunctionDef:
        """Parse a named function or method; 'fun' (if any) is already consumed."""
        name = self._consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self._consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        parameters = self._parse_parameters()
        body = self._parse_function_body(kind)
        return FunctionDef(name=name, parameters=parameters, body=body)

    def _parse_class_def(self) -> ClassDef:
        """Parse: class Name [< Superclass] { methods }"""
        name = self._consume(TokenType.IDENTIFIER, "Expect class name.")

        superclass = None
        if self._match(TokenType.LESS):
            superclass = Variable(self._consume(TokenType.IDENTIFIER, "Expect superclass name."))

        self._consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")

        methods: List[FunctionDef] = []
        static_methods: List[FunctionDef] = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            if self._match(TokenType.STATIC):
                static_methods.append(self._parse_function_def("method"))
            else:
                methods.append(self._parse_function_def("method"))

        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return ClassDef(name=name, superclass=superclass, methods=methods,
                        static_methods=static_methods)

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement."""
        if self._match(TokenType.FOR):
            return self._parse_for_statement()
        if self._match(TokenType.IF):
            return self._parse_if_statement()
        if self._match(TokenType.PRINT):
            return self._parse_print_statement()
        if self._check(TokenType.RETURN):
            return self._parse_return_statement()
        if self._match(TokenType.WHILE):
            return self._parse_while_statement()
        if self._check(TokenType.BREAK) or self._check(TokenType.CONTINUE):
            return self._parse_loop_control()
        if self._match(TokenType.LEFT_BRACE):
            return Block(self._parse_block_statements())
        return self._parse_expression_statement()

    def _parse_loop_body(self) -> Statement:
        self._loop_depth += 1
        try:
            return self._parse_statement()
        finally:
            self._loop_depth -= 1

    def _parse_for_statement(self) -> Statement:
        """Parse a for loop, desugaring it into a block around a while loop."""
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._check(TokenType.IDENTIFIER) and self._check_ahead(TokenType.COLON_EQUAL):
            initializer = self._parse_shorthand_var_decl()
        elif self._match(TokenType.VAR):
            initializer = self._parse_var_decl()
        else:
            initializer = self._parse_expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._parse_loop_body()

        if condition is None:
            condition = Literal(True)
        loop: Statement = WhileStatement(condition=condition, body=body, increment=increment)

        if initializer is not None:
            loop = Block([initializer, loop])
        return loop

    def _parse_if_statement(self) -> IfStatement:
        """Parse: if (condition) statement [else statement]"""
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self._parse_statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_statement()
        return IfStatement(condition=condition, then_branch=then_branch, else_branch=else_branch)

    def _parse_print_statement(self) -> PrintStatement:
        value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return PrintStatement(value)

    def _parse_return_statement(self) -> ReturnStatement:
        keyword = self._advance()
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ReturnStatement(keyword=keyword, value=value)

    def _parse_while_statement(self) -> WhileStatement:
        """Parse: while (condition) statement"""
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body = self._parse_loop_body()
        return WhileStatement(condition=condition, body=body)

    def _parse_loop_control(self) -> LoopControlStatement:
        """Parse break; or continue; (only legal inside a loop body)."""
        keyword = self._advance()
        if self._loop_depth == 0:
            self.diagnostics.add(error_loop_control_outside_loop(keyword))
        self._consume(TokenType.SEMICOLON, f"Expect ';' after '{keyword.lexeme}'.")
        return LoopControlStatement(keyword)

    def _parse_block_statements(self) -> List[Statement]:
        """Parse statements up to the closing brace; '{' is already consumed."""
        statements: List[Statement] = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            statement = self._parse_declaration()
            if statement is not None:
                statements.append(statement)
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def _parse_expression_statement(self) -> ExpressionStatement:
        expression = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ExpressionStatement(expression)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression."""
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """Parse assignment (right-associative) to a variable or property."""
        expr = self._parse_or()

        equals = self._match(TokenType.EQUAL)
        if equals is None:
            return expr

        value = self._parse_assignment()

        if isinstance(expr, Variable):
            return Assignment(name=expr.name, value=value)
        if isinstance(expr, MemberAccess):
            return MemberAssignment(object=expr.object, name=expr.name, value=value)

        # Reported but not thrown: the parser is not confused about where it is
        self.diagnostics.add(error_invalid_assignment_target(equals))
        return expr

    def _parse_or(self) -> Expression:
        expr = self._parse_and()
        while True:
            operator = self._match(TokenType.OR)
            if operator is None:
                return expr
            expr = Logical(left=expr, operator=operator, right=self._parse_and())

    def _parse_and(self) -> Expression:
        expr = self._parse_conditional_expr()
        while True:
            operator = self._match(TokenType.AND)
            if operator is None:
                return expr
            expr = Logical(left=expr, operator=operator, right=self._parse_conditional_expr())

    def _parse_conditional_expr(self) -> Expression:
        """Parse a conditional expression.

        Syntax: condition ? expression : conditional

        The then-branch is a full expression; the else-branch nests to the
        right, so a ? b : c ? d : e reads as a ? b : (c ? d : e).
        """
        condition = self._parse_binary_expr(1)

        if not self._match(TokenType.TERN_THEN):
            return condition

        then_branch = self._parse_expression()
        self._consume(TokenType.TERN_ELSE, "Expect ':' after then branch of conditional expression.")
        else_branch = self._parse_conditional_expr()

        return ConditionalExpr(condition=condition, then_branch=then_branch, else_branch=else_branch)

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse left-associative binary expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator
            right = self._parse_binary_expr(precedence + 1)
            left = BinaryOp(left=left, operator=op_token, right=right)

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (! -)."""
        operator = self._match(TokenType.BANG, TokenType.MINUS)
        if operator is not None:
            return UnaryOp(operator=operator, operand=self._parse_unary_expr())
        return self._parse_postfix_expr()

    def _parse_postfix_expr(self) -> Expression:
        """Parse postfix expressions (calls and property access)."""
        expr = self._parse_primary_expr()

        while True:
            if self._match(TokenType.LEFT_PAREN):
                expr = self._parse_call(expr)
            elif self._match(TokenType.DOT):
                name = self._consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = MemberAccess(object=expr, name=name)
            else:
                return expr

    def _parse_call(self, callee: Expression) -> FunctionCall:
        """Parse call arguments; the '(' is already consumed."""
        arguments: List[Expression] = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self.diagnostics.add(error_too_many_arguments(MAX_ARGUMENTS, self._current()))
                arguments.append(self._parse_expression())
                if not self._match(TokenType.COMMA):
                    break
        paren = self._consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return FunctionCall(callee=callee, paren=paren, arguments=arguments)

    def _parse_primary_expr(self) -> Expression:
        """Parse primary expressions."""
        token = self._current()

        if self._match(TokenType.FALSE):
            return Literal(False)
        if self._match(TokenType.TRUE):
            return Literal(True)
        if self._match(TokenType.NIL):
            return Literal(None)
        if self._match(TokenType.NUMBER, TokenType.STRING):
            return Literal(token.literal)

        if self._match(TokenType.SUPER):
            self._consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self._consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return SuperExpr(keyword=token, method=method)

        if self._match(TokenType.THIS):
            return ThisExpr(token)

        if self._match(TokenType.IDENTIFIER):
            return Variable(token)

        if self._match(TokenType.FUN):
            return self._parse_lambda(token)

        if self._match(TokenType.LEFT_PAREN):
            expr = self._parse_expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise self._error("Expect expression.")

    def _parse_lambda(self, keyword: Token) -> LambdaExpr:
        """Parse: fun (params) { body }; 'fun' is already consumed."""
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'fun'.")
        parameters = self._parse_parameters()
        body = self._parse_function_body("function")
        return LambdaExpr(keyword=keyword, parameters=parameters, body=body)

    # =========================================================================
    # Program
    # =========================================================================

    def parse(self) -> List[Statement]:
        """Parse the whole token stream into a list of statements."""
        ensure_recursion_limit()
        statements: List[Statement] = []
        while not self._is_at_end() and not self.diagnostics.should_stop:
            statement = self._parse_declaration()
            if statement is not None:
                statements.append(statement)
        return statements


def parse(tokens: List[Token], diagnostics: Optional[DiagnosticCollector] = None) -> List[Statement]:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the scanner
        diagnostics: Optional collector receiving syntax errors

    Returns:
        The statements that parsed cleanly; statements with syntax errors
        are dropped after being reported
    """
    return Parser(tokens, diagnostics).parse()
