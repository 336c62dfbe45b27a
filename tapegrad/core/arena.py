# tapegrad/core/arena.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

import numpy as np

from .config import ArenaConfig

logger = logging.getLogger(__name__)


class ArenaError(RuntimeError):
    """Base class for arena misuse."""


class StaleValueError(ArenaError):
    """A handle from an earlier arena generation was dereferenced."""


class ArenaDestroyedError(ArenaError):
    """The arena was used after destroy()."""


class Block:
    """
    A fixed-capacity byte buffer with a bump cursor.

    `offset` marks the first free byte; allocations only ever move it forward
    until the owning arena is cleared.
    """
    __slots__ = ("buffer", "offset")

    def __init__(self, size: int):
        self.buffer = np.zeros(size, dtype=np.uint8)
        self.offset = 0

    @property
    def capacity(self) -> int:
        return self.buffer.size

    def fits(self, size: int) -> bool:
        return self.offset + size <= self.capacity

    def take(self, size: int) -> np.ndarray:
        start = self.offset
        self.offset += size
        return self.buffer[start:self.offset]


class Arena:
    """
    Tape of the computation graph: bump-allocated node storage plus a
    creation-ordered registry of every node allocated into it.

    A node can only reference children that already exist, so registry order
    is a valid reverse-topological order and the backward pass is a single
    reverse sweep.

    `clear()` resets the arena for the next graph without releasing block
    memory. Each clear bumps `generation`; handles created before it are
    rejected on access instead of reading recycled storage.
    """

    def __init__(self, config: Optional[ArenaConfig] = None):
        self.config = config or ArenaConfig()
        cfg = self.config

        self._blocks: List[Optional[Block]] = [None] * cfg.initial_blocks_capacity
        self._num_blocks = 0
        self._active = -1  # index of the block currently being bumped

        self._nodes: List[Optional[np.ndarray]] = [None] * cfg.initial_nodes_capacity
        self._num_nodes = 0

        self.generation = 0
        self.destroyed = False

    @classmethod
    def create(cls, config: Optional[ArenaConfig] = None) -> "Arena":
        return cls(config)

    def __repr__(self):
        state = "destroyed" if self.destroyed else f"gen={self.generation}"
        return (f"Arena(nodes={self._num_nodes}, blocks={self._num_blocks}, "
                f"bytes={self.bytes_used()}, {state})")

    def __len__(self):
        return self._num_nodes

    # ------------------------------------------------------------------ #
    # Allocation
    # ------------------------------------------------------------------ #
    def allocate(self, size: int) -> Optional[np.ndarray]:
        """
        Return a writable view of `size` bytes (rounded up to the alignment)
        inside the active block, moving to another block first if the active
        one cannot hold the request.

        Returns None when the arena is not allowed to grow any further.
        Raises ValueError for requests larger than one block.
        """
        self._check_alive()
        if size <= 0:
            raise ValueError(f"allocation size must be positive, got {size}")
        size = self.config.align(size)
        if size > self.config.block_size:
            raise ValueError(
                f"allocation of {size} bytes exceeds the block size "
                f"({self.config.block_size} bytes)"
            )

        block = self._blocks[self._active] if self._active >= 0 else None
        if block is None or not block.fits(size):
            block = self._next_block()
            if block is None:
                return None
        return block.take(size)

    def _next_block(self) -> Optional[Block]:
        # Blocks retained across clear() are reused before new ones are opened
        if self._active + 1 < self._num_blocks:
            self._active += 1
            return self._blocks[self._active]

        cfg = self.config
        if cfg.max_blocks is not None and self._num_blocks >= cfg.max_blocks:
            logger.warning("arena exhausted: %d blocks in use (max_blocks=%d)",
                           self._num_blocks, cfg.max_blocks)
            return None

        if self._num_blocks >= len(self._blocks):
            new_capacity = len(self._blocks) * 2
            self._blocks.extend([None] * (new_capacity - len(self._blocks)))
            logger.debug("block list grown to capacity %d", new_capacity)

        block = Block(cfg.block_size)
        self._blocks[self._num_blocks] = block
        self._active = self._num_blocks
        self._num_blocks += 1
        logger.debug("opened block %d (%d bytes)", self._active, cfg.block_size)
        return block

    # ------------------------------------------------------------------ #
    # Registry
    # ------------------------------------------------------------------ #
    def register_node(self, record: np.ndarray) -> int:
        """Append a node record to the registry and return its index."""
        self._check_alive()
        if self._num_nodes >= len(self._nodes):
            new_capacity = len(self._nodes) * 2
            self._nodes.extend([None] * (new_capacity - len(self._nodes)))
            logger.debug("node registry grown to capacity %d", new_capacity)
        index = self._num_nodes
        self._nodes[index] = record
        self._num_nodes += 1
        return index

    def record(self, index: int, generation: int) -> np.ndarray:
        """Resolve a (index, generation) handle to its node record."""
        self._check_alive()
        if generation != self.generation:
            raise StaleValueError(
                f"node {index} belongs to generation {generation}; "
                f"arena is at generation {self.generation}"
            )
        if not 0 <= index < self._num_nodes:
            raise StaleValueError(f"node index {index} out of range")
        return self._nodes[index]

    def records(self) -> List[np.ndarray]:
        """Registered node records, in registration order."""
        self._check_alive()
        return self._nodes[:self._num_nodes]

    def nodes(self) -> Iterator:
        """Iterate Value handles for every registered node, oldest first."""
        from .value import Value  # local import to avoid cycles
        self._check_alive()
        generation = self.generation
        for i in range(self._num_nodes):
            yield Value(self, i, generation)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def clear(self):
        """
        Reset every block cursor and empty the registry, keeping the block
        memory for the next graph. All existing handles become stale.
        """
        self._check_alive()
        for i in range(self._num_blocks):
            self._blocks[i].offset = 0
        for i in range(self._num_nodes):
            self._nodes[i] = None
        self._num_nodes = 0
        self._active = -1
        self.generation += 1
        logger.debug("arena cleared (generation %d, %d blocks retained)",
                     self.generation, self._num_blocks)

    def destroy(self):
        """Release all blocks and the registry. Safe to call twice."""
        if self.destroyed:
            return
        self._blocks = []
        self._nodes = []
        self._num_blocks = 0
        self._num_nodes = 0
        self._active = -1
        self.generation += 1
        self.destroyed = True
        logger.debug("arena destroyed")

    def _check_alive(self):
        if self.destroyed:
            raise ArenaDestroyedError("arena has been destroyed")

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    def num_nodes(self) -> int:
        return self._num_nodes

    def num_blocks(self) -> int:
        return self._num_blocks

    def bytes_used(self) -> int:
        return sum(self._blocks[i].offset for i in range(self._num_blocks))

    @property
    def blocks_capacity(self) -> int:
        return len(self._blocks)

    @property
    def nodes_capacity(self) -> int:
        return len(self._nodes)


# Process default arena, created on first use
_default_arena: Optional[Arena] = None


def get_instance() -> Arena:
    """Return the default arena, creating it if needed."""
    global _default_arena
    if _default_arena is None or _default_arena.destroyed:
        _default_arena = Arena()
    return _default_arena


def destroy_instance():
    """Destroy the default arena; the next get_instance() makes a new one."""
    global _default_arena
    if _default_arena is not None:
        _default_arena.destroy()
        _default_arena = None


@contextmanager
def use_arena(arena: Optional[Arena] = None):
    """
    Context manager to temporarily install `arena` as the default:
        with use_arena() as arena:
            ... build computation ...
            backward(y)

    Without an argument a fresh arena is created and destroyed on exit.
    """
    global _default_arena
    prev = _default_arena
    owned = arena is None
    current = Arena() if owned else arena
    try:
        _default_arena = current
        yield current
    finally:
        _default_arena = prev
        if owned:
            current.destroy()
