"""
Course Board Registry Module.

Provides the generic persistent entity registry and its four
instantiations: users, outcomes, courses and sessions.
"""

__all__ = [
    "EntityRegistry",
    "ReferenceRule",
    "check_references",
    "UserRegistry",
    "OutcomeRegistry",
    "CourseRegistry",
    "SessionRegistry",
    # Models
    "EntityRecord",
    "User",
    "UserPayload",
    "Outcome",
    "OutcomePayload",
    "OutcomeType",
    "Course",
    "CoursePayload",
    "Session",
    "SessionPayload",
]

from course_board.registry.base import EntityRegistry
from course_board.registry.courses import CourseRegistry
from course_board.registry.models import (
    Course,
    CoursePayload,
    EntityRecord,
    Outcome,
    OutcomePayload,
    OutcomeType,
    Session,
    SessionPayload,
    User,
    UserPayload,
)
from course_board.registry.outcomes import OutcomeRegistry
from course_board.registry.references import ReferenceRule, check_references
from course_board.registry.sessions import SessionRegistry
from course_board.registry.users import UserRegistry
