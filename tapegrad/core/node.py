# tapegrad/core/node.py
from enum import IntEnum
import numpy as np

NAME_LENGTH = 32
OP_LENGTH = 8


class BackwardRule(IntEnum):
    """
    Derivative rule stored inline in a node record.

    The backward driver dispatches on this tag; the scalars each rule needs
    live in the record's `cached_a` / `cached_b` fields.
    """
    NONE = 0
    ADD = 1
    SUB = 2
    MUL = 3
    DIV = 4


# Diagnostic op tag written into the record for each rule
OP_TAGS = {
    BackwardRule.ADD: "+",
    BackwardRule.SUB: "-",
    BackwardRule.MUL: "*",
    BackwardRule.DIV: "/",
}

# One node on the tape.
#
# Fields
# ------
# data          : float32 value of the node
# grad          : float32 accumulated derivative, zero at creation
# cached_a/b    : operand values snapshotted at creation for the backward rule
# requires_grad : 0/1; 0 makes the node a gradient sink
# rule          : BackwardRule tag (NONE for leaves and no-grad results)
# num_children  : 0, 1 or 2
# children      : registry indices of the operands, -1 when unused
# name, op      : bounded-length diagnostic labels
NODE_DTYPE = np.dtype(
    [
        ("data", np.float32),
        ("grad", np.float32),
        ("cached_a", np.float32),
        ("cached_b", np.float32),
        ("requires_grad", np.uint8),
        ("rule", np.uint8),
        ("num_children", np.uint8),
        ("children", np.int64, (2,)),
        ("name", f"S{NAME_LENGTH}"),
        ("op", f"S{OP_LENGTH}"),
    ],
    align=True,
)

NODE_SIZE = NODE_DTYPE.itemsize


def encode_label(text, length: int) -> bytes:
    """Encode a label as UTF-8 and truncate it to `length` bytes."""
    if not text:
        return b""
    return str(text).encode("utf-8")[:length]


def decode_label(raw: bytes) -> str:
    # truncation may split a multi-byte character
    return raw.decode("utf-8", errors="ignore")
