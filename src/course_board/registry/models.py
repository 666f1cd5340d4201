"""
Record and payload models for the four entity kinds.

Attributes are snake_case; every model reads and writes the camelCase
external names (createdAt, avatarURL, creatorId, learnerCapacity) too.
Payload fields are all optional so the same model serves full ``add``
payloads and partial ``update`` payloads; which fields are required is
decided by the registry.
"""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class BoardModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PayloadModel(BoardModel):
    """Base payload model. Unknown keys are rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )


class EntityRecord(BoardModel):
    """Fields shared by every stored record."""

    id: str
    created_at: dt.datetime
    updated_at: dt.datetime | None = None


class OutcomeType(str, Enum):
    """What a course leads to."""

    SKILL = "SKILL"
    CERTIFICATION = "CERTIFICATION"
    CERTIFIED_SKILL = "CERTIFIED_SKILL"


class User(EntityRecord):
    name: str
    pseudo: str
    avatar_url: str = Field(alias="avatarURL")


class UserPayload(PayloadModel):
    name: str | None = None
    pseudo: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarURL")


class Outcome(EntityRecord):
    title: str
    type: OutcomeType


class OutcomePayload(PayloadModel):
    title: str | None = None
    type: OutcomeType | None = None


class Course(EntityRecord):
    title: str
    outcomes: list[str] = Field(default_factory=list, description="Outcome ids, ordered")
    creator_id: str


class CoursePayload(PayloadModel):
    title: str | None = None
    outcomes: list[str] | None = None
    creator_id: str | None = None


class Session(EntityRecord):
    """A scheduled run of a course. ``time`` is minutes after midnight."""

    course: str
    owner: str
    place: str
    date: dt.date
    time: int
    length: int = Field(description="Duration in minutes")
    learner_capacity: int


class SessionPayload(PayloadModel):
    course: str | None = None
    owner: str | None = None
    place: str | None = None
    date: dt.date | None = None
    time: StrictInt | None = None
    length: StrictInt | None = None
    learner_capacity: StrictInt | None = None
