"""
Session registry.

A session schedules a course (course id) run by an owner (user id).
``time`` is the start as minutes after midnight, ``length`` the duration
in minutes. Sessions have no unique field.
"""

from typing import Any

from course_board.core.models import Clock, IdFactory
from course_board.registry.base import EntityRegistry
from course_board.registry.models import Session, SessionPayload
from course_board.registry.references import ExistenceCheck, ReferenceRule
from course_board.storage.ordered_map import DurableStore

MINUTES_PER_DAY = 24 * 60


class SessionRegistry(EntityRegistry[Session, SessionPayload]):
    entity_type = "session"
    map_name = "sessions"
    record_model = Session
    payload_model = SessionPayload
    required_fields = (
        "course",
        "owner",
        "place",
        "date",
        "time",
        "length",
        "learner_capacity",
    )
    text_fields = ("course", "owner", "place")

    def __init__(
        self,
        store: DurableStore,
        *,
        course_exists: ExistenceCheck,
        user_exists: ExistenceCheck,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ):
        references = (
            ReferenceRule("course", "course", course_exists),
            ReferenceRule("owner", "user", user_exists),
        )
        super().__init__(
            store, references=references, clock=clock, id_factory=id_factory
        )

    def _field_problems(self, fields: dict[str, Any]) -> list[str]:
        problems = []
        if "time" in fields and not 0 <= fields["time"] < MINUTES_PER_DAY:
            problems.append(f"time: must be between 0 and {MINUTES_PER_DAY - 1}")
        if "length" in fields and fields["length"] <= 0:
            problems.append("length: must be positive")
        if "learner_capacity" in fields and fields["learner_capacity"] <= 0:
            problems.append("learnerCapacity: must be positive")
        return problems
