# tapegrad/__init__.py
# Reverse-mode automatic differentiation on an arena-backed tape

from .core.config import ArenaConfig
from .core.node import BackwardRule
from .core.arena import (
    Arena, ArenaError, StaleValueError, ArenaDestroyedError,
    get_instance, destroy_instance, use_arena,
)
from .core.value import (
    Value, create, constant,
    get_data, get_grad, get_name, requires_grad,
    set_data, set_grad, set_name,
)
from .core.engine import backward, zero_grad
from .core.seeds import value, grad, grads, grads_list
from .ops import (
    add, sub, mul, div,
    scalar_add, scalar_sub, scalar_mul, scalar_div,
)

# Diagnostics
from .core import graph_utils
from .core.graph_utils import get_graph_stats, print_stats, to_dot, export_graphviz

__version__ = "0.1.0"

__all__ = [
    # Arena
    'Arena',
    'ArenaConfig',
    'ArenaError',
    'StaleValueError',
    'ArenaDestroyedError',
    'get_instance',
    'destroy_instance',
    'use_arena',
    # Nodes
    'Value',
    'BackwardRule',
    'create',
    'constant',
    'get_data',
    'get_grad',
    'get_name',
    'requires_grad',
    'set_data',
    'set_grad',
    'set_name',
    # Operators
    'add',
    'sub',
    'mul',
    'div',
    'scalar_add',
    'scalar_sub',
    'scalar_mul',
    'scalar_div',
    # Engine
    'backward',
    'zero_grad',
    'value',
    'grad',
    'grads',
    'grads_list',
    # Diagnostics
    'graph_utils',
    'get_graph_stats',
    'print_stats',
    'to_dot',
    'export_graphviz',
]
