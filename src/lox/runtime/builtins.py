"""
Built-in function registry for the Lox interpreter.

Every interpreter seeds its global environment from the registry, wrapping
each entry as a NativeFunction.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .values import NativeFunction


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and arity.
    """
    name: str
    arity: int
    implementation: Callable[..., Any]

    def to_native(self) -> NativeFunction:
        return NativeFunction(self.name, self.arity, self.implementation)


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and can be looked up for execution.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def natives(self) -> Dict[str, NativeFunction]:
        """Fresh native function values, keyed by global name."""
        return {name: func.to_native() for name, func in self._functions.items()}

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_time_functions()

    # --- Time Functions ---

    def _register_time_functions(self) -> None:
        """Register clock()."""

        def _clock() -> float:
            return time.time() * 1000.0

        # milliseconds since the epoch
        self.register(BuiltinFunction("clock", 0, _clock))


# Global registry instance
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global builtin registry (lazily initialized)."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry
