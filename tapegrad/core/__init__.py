# tapegrad/core/__init__.py

"""
Core public API for the tapegrad package.

Exports:
    Arena            : Bump-allocated node storage plus the creation-ordered registry.
    ArenaConfig      : Block size, alignment and capacity settings for an Arena.
    Value            : Handle to one scalar node on an arena.
    get_instance     : The default arena, created on first use.
    destroy_instance : Tear down the default arena.
    use_arena        : Context manager to temporarily switch the default arena.
    create           : Create a leaf node.
    backward         : Run a single reverse pass from an output node.
    zero_grad        : Reset all gradients on an arena to zero.
    grad, grads      : Convenience: gradients of a function at a point.
"""

from .config import ArenaConfig
from .node import BackwardRule
from .arena import (
    Arena, ArenaError, StaleValueError, ArenaDestroyedError,
    get_instance, destroy_instance, use_arena,
)
from .value import (
    Value, create, constant,
    get_data, get_grad, get_name, requires_grad,
    set_data, set_grad, set_name,
)
from .engine import backward, zero_grad
from .seeds import value, grad, grads, grads_list

__all__ = [
    "ArenaConfig", "BackwardRule",
    "Arena", "ArenaError", "StaleValueError", "ArenaDestroyedError",
    "get_instance", "destroy_instance", "use_arena",
    "Value", "create", "constant",
    "get_data", "get_grad", "get_name", "requires_grad",
    "set_data", "set_grad", "set_name",
    "backward", "zero_grad",
    "value", "grad", "grads", "grads_list",
]
