"""
Course registry.

A course names its creator (a user id) and an ordered list of outcome
ids. Both are checked for existence at write time only.
"""

from typing import Any

from course_board.core.models import Clock, IdFactory
from course_board.registry.base import EntityRegistry
from course_board.registry.models import Course, CoursePayload
from course_board.registry.references import ExistenceCheck, ReferenceRule
from course_board.storage.ordered_map import DurableStore


class CourseRegistry(EntityRegistry[Course, CoursePayload]):
    entity_type = "course"
    map_name = "courses"
    record_model = Course
    payload_model = CoursePayload
    required_fields = ("title", "creator_id")
    text_fields = ("title", "creator_id")
    unique_field = "title"

    def __init__(
        self,
        store: DurableStore,
        *,
        user_exists: ExistenceCheck,
        outcome_exists: ExistenceCheck,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ):
        references = (
            ReferenceRule("creator_id", "user", user_exists, label="creatorId"),
            ReferenceRule("outcomes", "outcome", outcome_exists, many=True),
        )
        super().__init__(
            store, references=references, clock=clock, id_factory=id_factory
        )

    def _field_problems(self, fields: dict[str, Any]) -> list[str]:
        return [
            f"outcomes.{index}: must not be blank"
            for index, outcome_id in enumerate(fields.get("outcomes", []))
            if not outcome_id.strip()
        ]
