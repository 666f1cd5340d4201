"""
Course Board - persisted entity registries for learning courses.

Users, outcomes, courses and sessions kept in durable ordered maps, with
uniqueness and cross-registry reference checks on every write.
"""

__version__ = "0.1.0"

__all__ = ["CourseBoard", "BoardSettings", "__version__"]

from course_board.config import BoardSettings
from course_board.service import CourseBoard
