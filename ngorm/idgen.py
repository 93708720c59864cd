"""
Snowflake identifier generation for vertex identities.

Identifiers are 63-bit positive integers laid out as
``timestamp(41) | node(10) | sequence(12)``, so ids from different nodes
never collide and ids from one node increase monotonically.
"""

import threading
import time
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)

# Twitter snowflake epoch (Nov 04 2010 01:42:54 UTC), in milliseconds
DEFAULT_EPOCH_MS = 1288834974657

NODE_BITS = 10
SEQUENCE_BITS = 12
MAX_NODE = (1 << NODE_BITS) - 1
SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1
TIME_SHIFT = NODE_BITS + SEQUENCE_BITS


class SnowflakeNode:
    """A single id-generating node."""

    def __init__(self, node_id: int = 0, epoch_ms: int = DEFAULT_EPOCH_MS):
        if not 0 <= node_id <= MAX_NODE:
            raise ValueError(f"Node id must be between 0 and {MAX_NODE}, got {node_id}")

        self.node_id = node_id
        self.epoch_ms = epoch_ms
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def _now_ms(self) -> int:
        return time.time_ns() // 1_000_000 - self.epoch_ms

    def generate(self) -> int:
        """Return the next unique identifier."""
        with self._lock:
            now = self._now_ms()

            if now < self._last_ms:
                # Clock moved backwards; keep issuing from the last timestamp
                now = self._last_ms

            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & SEQUENCE_MASK
                if self._sequence == 0:
                    # Sequence exhausted for this millisecond
                    while now <= self._last_ms:
                        now = self._now_ms()
            else:
                self._sequence = 0

            self._last_ms = now
            return (now << TIME_SHIFT) | (self.node_id << SEQUENCE_BITS) | self._sequence


_default_node: Optional[SnowflakeNode] = None


def set_default_node(node_id: int) -> SnowflakeNode:
    """Replace the process-wide node used by ``Tag.gen_id``."""
    global _default_node
    _default_node = SnowflakeNode(node_id)
    logger.debug("Default snowflake node set to %d", node_id)
    return _default_node


def get_default_node() -> SnowflakeNode:
    """Get the process-wide node, creating node 0 on first use."""
    global _default_node
    if _default_node is None:
        _default_node = SnowflakeNode()
    return _default_node


def generate() -> int:
    """Generate an identifier from the default node."""
    return get_default_node().generate()
