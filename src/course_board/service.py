"""
Course Board service - the boundary operations over all four registries.

``CourseBoard`` builds the registries on one store and wires the
cross-registry validators:

- courses check ``creatorId`` against users and ``outcomes`` against outcomes
- sessions check ``course`` against courses and ``owner`` against users

Deleting a referenced record is neither blocked nor cascaded, so stored
references may dangle after a removal.
"""

import logging
from pathlib import Path
from typing import Any, Mapping

from course_board.config import BoardSettings
from course_board.core.models import Clock, IdFactory, RegistryResult
from course_board.registry.courses import CourseRegistry
from course_board.registry.models import (
    Course,
    CoursePayload,
    Outcome,
    OutcomePayload,
    Session,
    SessionPayload,
    User,
    UserPayload,
)
from course_board.registry.outcomes import OutcomeRegistry
from course_board.registry.sessions import SessionRegistry
from course_board.registry.users import UserRegistry
from course_board.storage.ordered_map import DurableStore

logger = logging.getLogger(__name__)


class CourseBoard:
    """
    All registries of one store.

    Use ``CourseBoard.open()`` to get a board that owns its store and
    closes it on ``close()`` or when leaving a ``with`` block. A board
    built directly around a store leaves closing the store to the caller.
    """

    def __init__(
        self,
        store: DurableStore,
        *,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
        owns_store: bool = False,
    ):
        self._store = store
        self._owns_store = owns_store
        self.users = UserRegistry(store, clock=clock, id_factory=id_factory)
        self.outcomes = OutcomeRegistry(store, clock=clock, id_factory=id_factory)
        self.courses = CourseRegistry(
            store,
            user_exists=self.users.exists_by_id,
            outcome_exists=self.outcomes.exists_by_id,
            clock=clock,
            id_factory=id_factory,
        )
        self.sessions = SessionRegistry(
            store,
            course_exists=self.courses.exists_by_id,
            user_exists=self.users.exists_by_id,
            clock=clock,
            id_factory=id_factory,
        )

    @classmethod
    def open(
        cls,
        settings: BoardSettings | None = None,
        *,
        store_path: Path | str | None = None,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> "CourseBoard":
        """Open the configured store and build a board that owns it."""
        settings = settings or BoardSettings.from_env()
        path = store_path if store_path is not None else settings.store_path
        store = DurableStore(path)
        logger.info(f"Opened course board at {store.path}")
        return cls(store, clock=clock, id_factory=id_factory, owns_store=True)

    @property
    def store(self) -> DurableStore:
        return self._store

    def close(self) -> None:
        if self._owns_store:
            self._store.close()

    def __enter__(self) -> "CourseBoard":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Users

    def list_users(self) -> list[User]:
        return self.users.list()

    def get_user(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    def add_user(self, payload: UserPayload | Mapping[str, Any]) -> RegistryResult[User]:
        return self.users.add(payload)

    def update_user(
        self, user_id: str, payload: UserPayload | Mapping[str, Any]
    ) -> RegistryResult[User]:
        return self.users.update(user_id, payload)

    def remove_user(self, user_id: str) -> RegistryResult[User]:
        return self.users.remove(user_id)

    def check_user_id(self, user_id: str) -> bool:
        return self.users.exists_by_id(user_id)

    def check_pseudo(self, pseudo: str) -> bool:
        return self.users.exists_by_unique_field(pseudo)

    def get_id_from_pseudo(self, pseudo: str) -> str | None:
        """Return the id of the user holding pseudo, or None."""
        return self.users.find_id_by_unique_field(pseudo)

    # Outcomes

    def list_outcomes(self) -> list[Outcome]:
        return self.outcomes.list()

    def get_outcome(self, outcome_id: str) -> Outcome | None:
        return self.outcomes.get(outcome_id)

    def add_outcome(
        self, payload: OutcomePayload | Mapping[str, Any]
    ) -> RegistryResult[Outcome]:
        return self.outcomes.add(payload)

    def update_outcome(
        self, outcome_id: str, payload: OutcomePayload | Mapping[str, Any]
    ) -> RegistryResult[Outcome]:
        return self.outcomes.update(outcome_id, payload)

    def remove_outcome(self, outcome_id: str) -> RegistryResult[Outcome]:
        return self.outcomes.remove(outcome_id)

    def check_outcome_id(self, outcome_id: str) -> bool:
        return self.outcomes.exists_by_id(outcome_id)

    def check_outcome_title(self, title: str) -> bool:
        return self.outcomes.exists_by_unique_field(title)

    # Courses

    def list_courses(self) -> list[Course]:
        return self.courses.list()

    def get_course(self, course_id: str) -> Course | None:
        return self.courses.get(course_id)

    def add_course(
        self, payload: CoursePayload | Mapping[str, Any]
    ) -> RegistryResult[Course]:
        return self.courses.add(payload)

    def update_course(
        self, course_id: str, payload: CoursePayload | Mapping[str, Any]
    ) -> RegistryResult[Course]:
        return self.courses.update(course_id, payload)

    def remove_course(self, course_id: str) -> RegistryResult[Course]:
        return self.courses.remove(course_id)

    def check_course_id(self, course_id: str) -> bool:
        return self.courses.exists_by_id(course_id)

    def check_course_title(self, title: str) -> bool:
        return self.courses.exists_by_unique_field(title)

    # Sessions

    def list_sessions(self) -> list[Session]:
        return self.sessions.list()

    def get_session(self, session_id: str) -> Session | None:
        return self.sessions.get(session_id)

    def add_session(
        self, payload: SessionPayload | Mapping[str, Any]
    ) -> RegistryResult[Session]:
        return self.sessions.add(payload)

    def update_session(
        self, session_id: str, payload: SessionPayload | Mapping[str, Any]
    ) -> RegistryResult[Session]:
        return self.sessions.update(session_id, payload)

    def remove_session(self, session_id: str) -> RegistryResult[Session]:
        return self.sessions.remove(session_id)

    def check_session_id(self, session_id: str) -> bool:
        return self.sessions.exists_by_id(session_id)
