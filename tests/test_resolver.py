"""
Unit tests for the Lox resolver.
"""

import pytest
import textwrap
from lox import scan, parse, resolve, Interpreter, DiagnosticCollector
from lox.ast import Variable, Assignment, ThisExpr, SuperExpr


def resolve_source(source: str):
    """Helper to scan, parse and resolve source.

    Returns (statements, interpreter, diagnostics); the source must be free
    of syntax errors.
    """
    diagnostics = DiagnosticCollector()
    statements = parse(scan(textwrap.dedent(source), diagnostics), diagnostics)
    assert not diagnostics.has_errors, diagnostics.format_all()
    interpreter = Interpreter(diagnostics=diagnostics)
    resolve(statements, interpreter, diagnostics)
    return statements, interpreter, diagnostics


def resolution_codes(source: str):
    _, _, diagnostics = resolve_source(source)
    return diagnostics.codes()


class TestDistances:
    """Test scope distances recorded for references."""

    def test_globals_have_no_entry(self):
        """References to globals are left for global lookup."""
        _, interpreter, diagnostics = resolve_source("var a = 1; print a; a = 2;")
        assert not diagnostics.has_errors
        assert interpreter.locals == {}

    def test_local_in_same_block(self):
        """A local read in its own block has distance 0."""
        statements, interpreter, _ = resolve_source("{ var a = 1; print a; }")
        ref = statements[0].statements[1].expression
        assert isinstance(ref, Variable)
        assert interpreter.locals[ref] == 0

    def test_local_in_enclosing_block(self):
        """Each nested block adds one hop."""
        statements, interpreter, _ = resolve_source("{ var a = 1; { { print a; } } }")
        inner = statements[0].statements[1].statements[0].statements[0]
        assert interpreter.locals[inner.expression] == 2

    def test_shadowing_picks_innermost(self):
        """The innermost declaration wins."""
        statements, interpreter, _ = resolve_source("{ var a = 1; { var a = 2; print a; } }")
        inner_print = statements[0].statements[1].statements[1]
        assert interpreter.locals[inner_print.expression] == 0

    def test_assignment_distance(self):
        """Assignments record a distance like reads do."""
        statements, interpreter, _ = resolve_source("{ var a = 1; { a = 2; } }")
        assign = statements[0].statements[1].statements[0].expression
        assert isinstance(assign, Assignment)
        assert interpreter.locals[assign] == 1

    def test_closure_distance(self):
        """A captured variable is one hop out of the inner function."""
        statements, interpreter, _ = resolve_source("""
            fun outer() {
                var a = 1;
                fun inner() { return a; }
            }
        """)
        inner = statements[0].body[1]
        ref = inner.body[0].value
        assert interpreter.locals[ref] == 1

    def test_parameters_are_local(self):
        """Parameters live in the function's scope."""
        statements, interpreter, _ = resolve_source("fun f(x) { return x; }")
        ref = statements[0].body[0].value
        assert interpreter.locals[ref] == 0

    def test_identical_references_are_distinct(self):
        """Two references to the same name get their own entries."""
        statements, interpreter, _ = resolve_source("{ var a = 1; print a; { print a; } }")
        first = statements[0].statements[1].expression
        second = statements[0].statements[2].statements[0].expression
        assert interpreter.locals[first] == 0
        assert interpreter.locals[second] == 1

    def test_this_distance(self):
        """'this' is one hop outside the method's own scope."""
        statements, interpreter, _ = resolve_source("class A { f() { return this; } }")
        ref = statements[0].methods[0].body[0].value
        assert isinstance(ref, ThisExpr)
        assert interpreter.locals[ref] == 1

    def test_super_distance(self):
        """'super' is one hop outside 'this'."""
        statements, interpreter, _ = resolve_source("""
            class A {}
            class B < A { f() { return super.f; } }
        """)
        ref = statements[1].methods[0].body[0].value
        assert isinstance(ref, SuperExpr)
        assert interpreter.locals[ref] == 2

    def test_for_increment_uses_loop_scope(self):
        """The for increment resolves in the scope holding the loop variable."""
        statements, interpreter, _ = resolve_source("for (var i = 0; i < 2; i = i + 1) print i;")
        loop = statements[0].statements[1]
        assert interpreter.locals[loop.condition.left] == 0
        assert interpreter.locals[loop.increment] == 0
        assert interpreter.locals[loop.body.expression] == 0


class TestScopeErrors:
    """Test declaration and initializer errors."""

    def test_duplicate_local(self):
        """Redeclaring a local in the same scope is an error."""
        _, _, diagnostics = resolve_source("{ var a = 1; var a = 2; }")
        assert diagnostics.codes() == ["E301"]
        assert diagnostics.diagnostics[0].format() == (
            "[line 1 Error at 'a': Variable named 'a' already declared in this scope.]"
        )

    def test_duplicate_global_allowed(self):
        """Globals may be redeclared."""
        assert resolution_codes("var a = 1; var a = 2;") == []

    def test_shadowing_allowed(self):
        """A nested scope may shadow an outer name."""
        assert resolution_codes("{ var a = 1; { var a = 2; } }") == []

    def test_duplicate_parameter(self):
        """Parameters share one scope."""
        assert resolution_codes("fun f(a, a) {}") == ["E301"]

    def test_read_in_own_initializer(self):
        """A local may not read itself in its initializer."""
        assert resolution_codes("{ var a = a; }") == ["E302"]

    def test_global_self_reference_not_static_error(self):
        """At global scope the check is left to runtime."""
        assert resolution_codes("var a = a;") == []


class TestPlacementErrors:
    """Test return / this / super / static placement rules."""

    def test_top_level_return(self):
        """return outside any function."""
        assert resolution_codes("return 1;") == ["E303"]

    def test_return_in_function(self):
        """return inside a function is fine."""
        assert resolution_codes("fun f() { return 1; }") == []

    def test_initializer_returns_value(self):
        """init may not return a value."""
        assert resolution_codes("class A { init() { return 1; } }") == ["E304"]

    def test_initializer_bare_return(self):
        """A bare return in init is allowed."""
        assert resolution_codes("class A { init() { return; } }") == []

    def test_this_outside_class(self):
        """'this' at top level or in a plain function."""
        assert resolution_codes("print this;") == ["E305"]
        assert resolution_codes("fun f() { return this; }") == ["E305"]

    def test_this_in_nested_function(self):
        """A function nested in a method may use 'this'."""
        assert resolution_codes("class A { m() { fun g() { return this; } } }") == []

    def test_super_outside_class(self):
        """'super' at top level."""
        assert resolution_codes("super.x;") == ["E306"]

    def test_super_without_superclass(self):
        """'super' in a class that does not inherit."""
        assert resolution_codes("class A { f() { super.f(); } }") == ["E307"]

    def test_static_init(self):
        """init may not be static."""
        _, _, diagnostics = resolve_source("class A { static init() {} }")
        assert diagnostics.codes() == ["E308"]
        assert diagnostics.diagnostics[0].message == "Cannot declare init as static."

    def test_static_method_may_use_this(self):
        """Static methods have a receiver (the class object)."""
        assert resolution_codes("class A { static f() { return this; } }") == []

    def test_class_context_restored(self):
        """Leaving a class body restores the outer context."""
        assert resolution_codes("class A {} print this;") == ["E305"]

    def test_resolution_continues_after_error(self):
        """All independent findings are reported."""
        assert resolution_codes("return 1; print this; super.x;") == ["E303", "E305", "E306"]
