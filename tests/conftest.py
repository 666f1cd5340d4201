"""Pytest configuration and fixtures."""

import itertools
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from course_board.registry.models import Course, Outcome, User
from course_board.service import CourseBoard
from course_board.storage.ordered_map import DurableStore


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CB_* settings from the outer environment out of tests."""
    for name in ("CB_DATA_DIR", "CB_STORE_FILE", "CB_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store() -> Generator[DurableStore, None, None]:
    """Provide a fresh in-memory store."""
    with DurableStore() as s:
        yield s


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Sequential ids: id-0001, id-0002, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter):04d}"


@pytest.fixture
def board(
    store: DurableStore, clock: FrozenClock, id_factory: Callable[[], str]
) -> CourseBoard:
    return CourseBoard(store, clock=clock, id_factory=id_factory)


@pytest.fixture
def ada(board: CourseBoard) -> User:
    return board.add_user({"name": "Ada", "pseudo": "ada99", "avatarURL": "x"}).unwrap()


@pytest.fixture
def bea(board: CourseBoard) -> User:
    return board.add_user({"name": "Bea", "pseudo": "bea", "avatarURL": "y"}).unwrap()


@pytest.fixture
def skill(board: CourseBoard) -> Outcome:
    return board.add_outcome({"title": "Python basics", "type": "SKILL"}).unwrap()


@pytest.fixture
def course(board: CourseBoard, ada: User, skill: Outcome) -> Course:
    return board.add_course(
        {"title": "Intro", "outcomes": [skill.id], "creatorId": ada.id}
    ).unwrap()


@pytest.fixture
def session_payload(course: Course, ada: User) -> dict[str, Any]:
    return {
        "course": course.id,
        "owner": ada.id,
        "place": "Room 101",
        "date": "2024-03-01",
        "time": 540,
        "length": 90,
        "learnerCapacity": 12,
    }
