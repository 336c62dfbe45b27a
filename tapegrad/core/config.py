# tapegrad/core/config.py
"""
Arena configuration.

The defaults reproduce the classic layout: 4 KB blocks, 8-byte alignment,
room for 8 blocks and 64 registered nodes before the first doubling.
"""

from dataclasses import dataclass
from typing import Optional

from .node import NODE_SIZE


@dataclass
class ArenaConfig:
    """Configuration for an Arena."""
    # Block layout
    block_size: int = 4096   # bytes per block
    alignment: int = 8       # every allocation is rounded up to this

    # Initial capacities (both double on overflow)
    initial_blocks_capacity: int = 8
    initial_nodes_capacity: int = 64

    # Growth limit; None means the arena may grow until memory runs out
    max_blocks: Optional[int] = None

    def __post_init__(self):
        if self.block_size <= 0:
            raise ValueError(f"block_size must be positive, got {self.block_size}")
        if self.alignment <= 0 or (self.alignment & (self.alignment - 1)):
            raise ValueError(f"alignment must be a power of two, got {self.alignment}")
        if self.block_size < NODE_SIZE:
            raise ValueError(
                f"block_size ({self.block_size}) cannot hold a single node "
                f"record ({NODE_SIZE} bytes)"
            )
        if self.initial_blocks_capacity < 1 or self.initial_nodes_capacity < 1:
            raise ValueError("initial capacities must be >= 1")
        if self.max_blocks is not None and self.max_blocks < 1:
            raise ValueError(f"max_blocks must be >= 1, got {self.max_blocks}")

    def align(self, size: int) -> int:
        """Round `size` up to the configured alignment."""
        return (size + self.alignment - 1) & ~(self.alignment - 1)
