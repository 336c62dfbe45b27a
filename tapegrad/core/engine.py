# tapegrad/core/engine.py
from __future__ import annotations
from typing import Optional

from .node import BackwardRule
from . import arena as arena_mod
from .value import Value

_NONE = int(BackwardRule.NONE)
_ADD = int(BackwardRule.ADD)
_SUB = int(BackwardRule.SUB)
_MUL = int(BackwardRule.MUL)
_DIV = int(BackwardRule.DIV)


def zero_grad(arena=None):
    """
    Set the gradient of every node registered on `arena` (default: the
    current default arena) to zero.
    """
    arena = arena if arena is not None else arena_mod.get_instance()
    for rec in arena.records():
        rec["grad"] = 0.0


def backward(output: Optional[Value]):
    """
    Run a single reverse pass from `output`.

    Seeds output.grad = 1 and walks the arena registry from the most recent
    node to the oldest. Registry order is creation order, so each node's
    gradient is final by the time it is visited.

    Notes:
        - For each node with a rule we accumulate: child.grad += local * grad.
        - Children that do not require grad are never written.
        - Gradients are never reset here; call zero_grad() between passes
          unless accumulation is wanted.
    """
    if output is None:
        return
    records = output.arena.records()
    output._record()["grad"] = 1.0

    # Backward sweep
    for rec in reversed(records):
        rule = rec["rule"][0]
        if rule == _NONE:
            continue
        g = rec["grad"][0]
        if g == 0:
            continue  # nothing to propagate
        i0, i1 = rec["children"][0]
        c0 = records[i0]
        c1 = records[i1]

        if rule == _ADD:
            d0, d1 = g, g
        elif rule == _SUB:
            d0, d1 = g, -g
        elif rule == _MUL or rule == _DIV:
            d0 = rec["cached_a"][0] * g
            d1 = rec["cached_b"][0] * g
        else:
            raise ValueError(f"unknown backward rule {rule}")

        # c0 and c1 may be the same record (e.g. a + a); both add
        if c0["requires_grad"][0]:
            c0["grad"] += d0
        if c1["requires_grad"][0]:
            c1["grad"] += d1
