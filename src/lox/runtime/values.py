"""
Runtime values for the Lox interpreter.

Primitive Lox values map directly onto Python objects:
    nil -> None, booleans -> bool, numbers -> float, strings -> str

Everything else is one of the classes below: callables (user functions,
native functions, classes) and instances. Classes and instances share the
PropertyHolder capability so that `obj.name` works on both.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Union, TYPE_CHECKING

from ..ast import FunctionDef, LambdaExpr, format_literal
from ..errors import LoxRuntimeError
from ..tokens import Token
from .context import Environment, Signal

if TYPE_CHECKING:
    from .interpreter import Interpreter


class LoxCallable(ABC):
    """Anything that can appear before '(' in a call expression."""

    @abstractmethod
    def arity(self) -> int:
        """Number of arguments the callable expects."""

    @abstractmethod
    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        """Invoke with already-evaluated arguments."""


class PropertyHolder(ABC):
    """Values that support property get/set (instances and classes)."""

    @abstractmethod
    def get(self, name: Token) -> Any:
        ...

    @abstractmethod
    def set(self, name: Token, value: Any) -> None:
        ...


class LoxFunction(LoxCallable):
    """
    A user-defined function, method or lambda.

    Holds the declaration and the environment it was defined in; calls run
    the body in a fresh scope enclosed by that environment.
    """

    def __init__(self, declaration: Union[FunctionDef, LambdaExpr],
                 closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> Optional[str]:
        if isinstance(self.declaration, FunctionDef):
            return self.declaration.name.lexeme
        return None

    def arity(self) -> int:
        return len(self.declaration.parameters)

    def bind(self, instance: "LoxInstance") -> "LoxFunction":
        """Return a copy of this function with 'this' bound to instance."""
        environment = Environment(enclosing=self.closure)
        environment.define("this", instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        environment = Environment(enclosing=self.closure)
        for param, argument in zip(self.declaration.parameters, arguments):
            environment.define(param.lexeme, argument)

        completion = interpreter.execute_block(self.declaration.body, environment)

        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if completion.signal is Signal.RETURN:
            return completion.value
        return None

    def __str__(self) -> str:
        if self.name is None:
            return "<fn anonymous>"
        return f"<fn {self.name}>"


class NativeFunction(LoxCallable):
    """A callable implemented in Python."""

    def __init__(self, name: str, arity: int, implementation: Callable[..., Any]):
        self.name = name
        self._arity = arity
        self.implementation = implementation

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        return self.implementation(*arguments)

    def __str__(self) -> str:
        return "<native fn>"


class LoxInstance(PropertyHolder):
    """An object created by calling a class."""

    def __init__(self, klass: "LoxClass"):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        """Fields shadow methods; methods are bound afresh on every access."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any) -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"


class LoxClass(LoxCallable, PropertyHolder):
    """
    A class: callable as a constructor and usable as an object itself.

    Static methods live on a metaclass whose single instance stands in for
    the class when it is used as an object, so static members are looked up
    flat on that singleton and `this` inside a static method refers to it.
    A class built without a static-method table (a metaclass) has no
    singleton and no properties of its own.
    """

    def __init__(self, name: str, superclass: Optional["LoxClass"],
                 methods: Dict[str, LoxFunction],
                 static_methods: Optional[Dict[str, LoxFunction]] = None):
        self.name = name
        self.superclass = superclass
        self.methods = methods
        self.owner: Optional[LoxClass] = None       # set on metaclasses
        self.metaclass: Optional[LoxClass] = None
        self.singleton: Optional[LoxInstance] = None
        if static_methods is not None:
            self.metaclass = LoxClass(f"{name} metaclass", None, static_methods)
            self.metaclass.owner = self
            self.singleton = LoxInstance(self.metaclass)

    @property
    def is_metaclass(self) -> bool:
        return self.owner is not None

    def find_method(self, name: str) -> Optional[LoxFunction]:
        """Look up a method on this class, then up the superclass chain."""
        klass: Optional[LoxClass] = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def find_static_method(self, name: str) -> Optional[LoxFunction]:
        if self.metaclass is None:
            return None
        return self.metaclass.find_method(name)

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def get(self, name: Token) -> Any:
        if self.singleton is None:
            raise LoxRuntimeError(name, "Only instances have properties.")
        return self.singleton.get(name)

    def set(self, name: Token, value: Any) -> None:
        if self.singleton is None:
            raise LoxRuntimeError(name, "Only instances have fields.")
        self.singleton.set(name, value)

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Value Semantics
# =============================================================================

def is_truthy(value: Any) -> bool:
    """nil and false are falsy; everything else (including 0 and "") is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left: Any, right: Any) -> bool:
    """Lox equality: values of different kinds are never equal."""
    if left is None and right is None:
        return True
    if left is None or right is None:
        return False
    # bool is an int subclass in Python, so compare kinds before values
    if type(left) is not type(right):
        return False
    return left == right


def stringify(value: Any) -> str:
    """Convert a runtime value to the text 'print' shows."""
    if value is None or isinstance(value, (bool, float)):
        return format_literal(value)
    return str(value)
