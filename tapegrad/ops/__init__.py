# tapegrad/ops/__init__.py

# Convenience re-exports so users can do: from tapegrad.ops import mul, ...
from .arithmetic import (
    add, sub, mul, div,
    scalar_add, scalar_sub, scalar_mul, scalar_div,
)

__all__ = [
    "add", "sub", "mul", "div",
    "scalar_add", "scalar_sub", "scalar_mul", "scalar_div",
]
