"""Outcome registry: the skills and certifications a course leads to."""

from course_board.registry.base import EntityRegistry
from course_board.registry.models import Outcome, OutcomePayload


class OutcomeRegistry(EntityRegistry[Outcome, OutcomePayload]):
    entity_type = "outcome"
    map_name = "outcomes"
    record_model = Outcome
    payload_model = OutcomePayload
    required_fields = ("title", "type")
    text_fields = ("title",)
    unique_field = "title"
