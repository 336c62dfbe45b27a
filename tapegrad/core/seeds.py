# tapegrad/core/seeds.py

#-----------------------------------------------------------------------------
# We "plant" a seed (dy/dy = 1) at the scalar output and let gradients grow
# backwards through the tape. Each helper runs in a fresh arena that is
# destroyed on return, so only plain floats come back.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List

from .value import Value, create
from .arena import use_arena
from .engine import backward


def value(x: Any) -> Any:
    """Return the numeric value of a Value; pass through plain numbers unchanged."""
    return x.data if isinstance(x, Value) else x


def _run(f, arg, what: str) -> Value:
    y = f(arg)
    if y is None:
        raise ValueError(f"{what}: function returned no graph node")
    if not isinstance(y, Value):
        raise TypeError(f"{what}: expected a Value output, got {type(y)}")
    backward(y)
    return y


# ----------------------------- single-input grad ----------------------------- #
def grad(f: Callable[[Value], Value], x0: float) -> float:
    """
    Derivative of a scalar function y=f(x) at x0.
    Runs one reverse pass within a fresh, isolated arena.
    """
    with use_arena() as arena:
        x = create(x0, name="x", arena=arena)
        _run(f, x, "grad(f, x0)")
        return x.grad


# ----------------------------- multi-input grads ----------------------------- #
def grads(f: Callable[[Dict[str, Value]], Value],
          inputs: Dict[str, float]) -> Dict[str, float]:
    """
    Gradient of y=f(vars) w.r.t. ALL inputs (dict form), from ONE reverse pass.

    Parameters
    ----------
    f       : function taking a dict {name: Value} and returning a Value
    inputs  : dict {name: number}

    Returns
    -------
    dict {name: float}  # in the same key order as `inputs`
    """
    with use_arena() as arena:
        xs = {k: create(v, name=k, arena=arena) for k, v in inputs.items()}
        _run(f, xs, "grads(f, inputs)")
        return {k: xs[k].grad for k in inputs.keys()}


def grads_list(f: Callable[[List[Value]], Value],
               x0_list: Iterable[float]) -> List[float]:
    """
    Same as grads(), but the inputs are provided as a list and the result is a
    list of partials in the same order.

    Example
    -------
    f = lambda xs: xs[0]*xs[0] + 3*xs[1]
    grads_list(f, [2.0, 4.0]) -> [4.0, 3.0]
    """
    with use_arena() as arena:
        xs = [create(v, name=f"x{i}", arena=arena) for i, v in enumerate(x0_list)]
        _run(f, xs, "grads_list(f, x0_list)")
        return [x.grad for x in xs]
