# tapegrad/ops/arithmetic.py
import numpy as np

from ..core.node import BackwardRule, OP_TAGS
from ..core.value import constant, new_node


def _binary(a, b, f, rule, cache=None):
    """
    Generic binary primitive:
      - returns None if either operand is absent
      - computes out.data = f(a.data, b.data) in float32
      - out.requires_grad = a.requires_grad or b.requires_grad
      - if out requires grad, attaches `rule` and the scalars it needs,
        snapshotted now so later set_data() calls do not change them
    """
    if a is None or b is None:
        return None
    if a.arena is not b.arena:
        raise ValueError("operands belong to different arenas")

    av = np.float32(a.data)
    bv = np.float32(b.data)
    out_rg = a.requires_grad or b.requires_grad

    # IEEE semantics: x/0 gives inf or nan, not an error
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        out_val = f(av, bv)
        cached_a, cached_b = cache(av, bv) if (out_rg and cache) else (0.0, 0.0)

    return new_node(
        a.arena, out_val,
        op=OP_TAGS[rule],
        requires_grad=out_rg,
        rule=rule if out_rg else BackwardRule.NONE,
        children=(a, b),
        cached_a=cached_a, cached_b=cached_b,
    )


def add(a, b): return _binary(a, b, lambda x, y: x + y, BackwardRule.ADD)
def sub(a, b): return _binary(a, b, lambda x, y: x - y, BackwardRule.SUB)
def mul(a, b): return _binary(a, b, lambda x, y: x * y, BackwardRule.MUL,
                              lambda x, y: (y, x))
def div(a, b): return _binary(a, b, lambda x, y: x / y, BackwardRule.DIV,
                              lambda x, y: (np.float32(1.0) / y, -x / (y * y)))


def _scalar_left(op, s, v):
    """
    `s op v` for a plain number `s`. The number becomes a constant leaf in
    v's arena, so only `v` can accumulate gradient.
    """
    if v is None:
        return None
    left = constant(s, arena=v.arena)
    if left is None:
        return None
    return op(left, v)


def scalar_add(s, v): return _scalar_left(add, s, v)
def scalar_sub(s, v): return _scalar_left(sub, s, v)
def scalar_mul(s, v): return _scalar_left(mul, s, v)
def scalar_div(s, v): return _scalar_left(div, s, v)


__all__ = [
    "add", "sub", "mul", "div",
    "scalar_add", "scalar_sub", "scalar_mul", "scalar_div",
]
