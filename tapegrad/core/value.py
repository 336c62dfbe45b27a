# tapegrad/core/value.py
from __future__ import annotations
import numbers
from typing import Optional, Tuple

import numpy as np

from .node import (
    NODE_DTYPE, NODE_SIZE, NAME_LENGTH, OP_LENGTH,
    BackwardRule, encode_label, decode_label,
)
from . import arena as arena_mod  # module access so use_arena() swaps are seen


class Value:
    """
    Handle to one scalar node on an arena.

    The node itself lives in the arena's block storage; a Value only carries
    the owning arena, the registry index and the arena generation it was
    created in. Accessing a handle after its arena was cleared raises
    StaleValueError.

    Attributes (read through the arena)
    ----------
    data : float
        Forward value, stored as float32.
    grad : float
        Accumulated derivative of the last seeded output w.r.t. this node.
    requires_grad : bool
        If False the node is a gradient sink: it is never written by backward.
    name, op : str
        Diagnostic labels; `op` is empty for leaves.
    """
    __slots__ = ("arena", "index", "generation")

    # make numpy scalars defer to Value's reflected operators
    __array_priority__ = 1000
    __array_ufunc__ = None

    def __init__(self, arena, index: int, generation: int):
        self.arena = arena
        self.index = index
        self.generation = generation

    def _record(self) -> np.ndarray:
        return self.arena.record(self.index, self.generation)

    def __repr__(self):
        rec = self._record()
        rg = "req" if rec["requires_grad"][0] else "const"
        return (f"Value({float(rec['data'][0])!r}, grad={float(rec['grad'][0])!r}, "
                f"{rg}, name={decode_label(rec['name'][0])!r})")

    # ---- fields ----
    @property
    def data(self) -> float:
        return float(self._record()["data"][0])

    @data.setter
    def data(self, value):
        self._record()["data"] = value

    @property
    def grad(self) -> float:
        return float(self._record()["grad"][0])

    @grad.setter
    def grad(self, value):
        self._record()["grad"] = value

    @property
    def name(self) -> str:
        return decode_label(self._record()["name"][0])

    @name.setter
    def name(self, text):
        self._record()["name"] = encode_label(text, NAME_LENGTH)

    @property
    def op(self) -> str:
        return decode_label(self._record()["op"][0])

    @property
    def requires_grad(self) -> bool:
        return bool(self._record()["requires_grad"][0])

    @property
    def rule(self) -> BackwardRule:
        return BackwardRule(int(self._record()["rule"][0]))

    @property
    def cached_a(self) -> float:
        return float(self._record()["cached_a"][0])

    @property
    def cached_b(self) -> float:
        return float(self._record()["cached_b"][0])

    @property
    def num_children(self) -> int:
        return int(self._record()["num_children"][0])

    @property
    def children(self) -> Tuple["Value", ...]:
        rec = self._record()
        n = int(rec["num_children"][0])
        return tuple(Value(self.arena, int(c), self.generation)
                     for c in rec["children"][0][:n])

    @property
    def is_leaf(self) -> bool:
        return self.num_children == 0

    def backward(self):
        from .engine import backward
        backward(self)

    # Operator overloading for arithmetic operations
    def __add__(self, other):
        from ..ops.arithmetic import add
        return _apply(add, self, other)

    def __radd__(self, other):
        from ..ops.arithmetic import scalar_add
        return _apply_scalar(scalar_add, other, self)

    def __sub__(self, other):
        from ..ops.arithmetic import sub
        return _apply(sub, self, other)

    def __rsub__(self, other):
        from ..ops.arithmetic import scalar_sub
        return _apply_scalar(scalar_sub, other, self)

    def __mul__(self, other):
        from ..ops.arithmetic import mul
        return _apply(mul, self, other)

    def __rmul__(self, other):
        from ..ops.arithmetic import scalar_mul
        return _apply_scalar(scalar_mul, other, self)

    def __truediv__(self, other):
        from ..ops.arithmetic import div
        return _apply(div, self, other)

    def __rtruediv__(self, other):
        from ..ops.arithmetic import scalar_div
        return _apply_scalar(scalar_div, other, self)


def _apply(op, value, other):
    if other is None or isinstance(other, Value):
        return op(value, other)
    if isinstance(other, numbers.Real):
        right = constant(other, arena=value.arena)
        if right is None:
            return None
        return op(value, right)
    return NotImplemented


def _apply_scalar(op, scalar, value):
    if isinstance(scalar, numbers.Real):
        return op(scalar, value)
    return NotImplemented


def _check_scalar(value):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError(
            f"Value only accepts real scalars (int, float, numpy scalar), "
            f"but got {type(value)}"
        )


def new_node(arena, data, *, name=None, op="", requires_grad=False,
             rule=BackwardRule.NONE, children=(), cached_a=0.0, cached_b=0.0) -> Optional[Value]:
    """
    Allocate and register one node record.

    Returns None if the arena cannot provide storage; nothing is registered
    in that case.
    """
    raw = arena.allocate(NODE_SIZE)
    if raw is None:
        return None
    rec = raw.view(NODE_DTYPE)

    rec["data"] = data
    rec["grad"] = 0.0
    rec["requires_grad"] = 1 if requires_grad else 0
    rec["rule"] = int(rule)
    rec["cached_a"] = cached_a
    rec["cached_b"] = cached_b
    rec["name"] = encode_label(name, NAME_LENGTH)
    rec["op"] = encode_label(op, OP_LENGTH)

    slots = [-1, -1]
    for i, child in enumerate(children):
        slots[i] = child.index
    rec["children"] = slots
    rec["num_children"] = len(children)

    index = arena.register_node(rec)
    return Value(arena, index, arena.generation)


def create(value, name: Optional[str] = None, requires_grad: bool = True,
           arena=None) -> Optional[Value]:
    """
    Create a leaf node (no children, no backward rule, zero gradient).

    Uses `arena` if given, otherwise the current default arena.
    """
    _check_scalar(value)
    arena = arena if arena is not None else arena_mod.get_instance()
    return new_node(arena, value, name=name, requires_grad=requires_grad)


def constant(value, arena=None) -> Optional[Value]:
    """Leaf that never requires a gradient (used to wrap plain numbers)."""
    return create(value, requires_grad=False, arena=arena)


# ---- null-tolerant accessors ----
def get_data(v: Optional[Value]) -> float:
    return v.data if v is not None else 0.0


def get_grad(v: Optional[Value]) -> float:
    return v.grad if v is not None else 0.0


def get_name(v: Optional[Value]) -> str:
    return v.name if v is not None else ""


def requires_grad(v: Optional[Value]) -> bool:
    return v.requires_grad if v is not None else False


def set_data(v: Optional[Value], data):
    if v is not None:
        v.data = data


def set_grad(v: Optional[Value], grad):
    if v is not None:
        v.grad = grad


def set_name(v: Optional[Value], name):
    if v is not None and name is not None:
        v.name = name
