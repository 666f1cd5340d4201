"""
Course Board Storage Module.

Provides the durable ordered map that every registry persists into.
"""

__all__ = [
    "MEMORY",
    "DurableOrderedMap",
    "DurableStore",
]

from course_board.storage.ordered_map import MEMORY, DurableOrderedMap, DurableStore
