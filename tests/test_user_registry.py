"""Tests for the user registry: CRUD, merge, uniqueness and validation."""

from typing import Any

import pytest

from course_board.core.exceptions import StorageError
from course_board.core.models import ErrorKind
from course_board.registry.models import User, UserPayload
from course_board.registry.users import UserRegistry
from course_board.service import CourseBoard
from course_board.storage.ordered_map import DurableStore


class TestAddUser:
    """Tests for adding users."""

    def test_add_user(self, board: CourseBoard, clock: Any) -> None:
        """A valid payload creates a record with a fresh id and createdAt."""
        result = board.add_user({"name": "Ada", "pseudo": "ada99", "avatarURL": "x"})

        assert result.is_success()
        user = result.record
        assert user.id == "id-0001"
        assert user.name == "Ada"
        assert user.pseudo == "ada99"
        assert user.avatar_url == "x"
        assert user.created_at == clock.now
        assert user.updated_at is None
        assert result.entity_id == user.id

    def test_add_with_payload_model(self, board: CourseBoard) -> None:
        """Payload models are accepted as well as mappings."""
        payload = UserPayload(name="Ada", pseudo="ada99", avatar_url="x")
        user = board.add_user(payload).unwrap()
        assert board.get_user(user.id).pseudo == "ada99"

    def test_get_after_add(self, board: CourseBoard, ada: User) -> None:
        """get returns exactly the created record."""
        assert board.get_user(ada.id).model_dump() == ada.model_dump()

    def test_duplicate_pseudo(self, board: CourseBoard, ada: User) -> None:
        """A second user with the same pseudo is rejected."""
        result = board.add_user({"name": "Bea", "pseudo": "ada99", "avatarURL": "y"})

        assert not result.is_success()
        assert result.error_kind is ErrorKind.DUPLICATE_VALUE
        assert result.failure.field == "pseudo"
        assert len(board.list_users()) == 1

    def test_duplicate_pseudo_after_trim(self, board: CourseBoard, ada: User) -> None:
        """Pseudos are compared after trimming."""
        result = board.add_user({"name": "Bea", "pseudo": "  ada99 ", "avatarURL": "y"})
        assert result.error_kind is ErrorKind.DUPLICATE_VALUE

    def test_pseudo_is_case_sensitive(self, board: CourseBoard, ada: User) -> None:
        """Pseudos differing only in case are distinct."""
        result = board.add_user({"name": "Bea", "pseudo": "ADA99", "avatarURL": "y"})
        assert result.is_success()

    def test_blank_name(self, board: CourseBoard) -> None:
        """Blank required strings are invalid."""
        result = board.add_user({"name": "   ", "pseudo": "ada99", "avatarURL": "x"})

        assert result.error_kind is ErrorKind.INVALID_PAYLOAD
        assert "name: must not be blank" in result.failure.errors
        assert board.list_users() == []

    def test_missing_field(self, board: CourseBoard) -> None:
        """All user fields are required on add."""
        result = board.add_user({"name": "Ada", "pseudo": "ada99"})

        assert result.error_kind is ErrorKind.INVALID_PAYLOAD
        assert "avatarURL: field required" in result.failure.errors

    def test_wrong_type(self, board: CourseBoard) -> None:
        """Type errors are returned, not raised."""
        result = board.add_user({"name": 5, "pseudo": "ada99", "avatarURL": "x"})
        assert result.error_kind is ErrorKind.INVALID_PAYLOAD

    def test_unknown_field(self, board: CourseBoard) -> None:
        """Unknown payload keys are rejected."""
        result = board.add_user(
            {"name": "Ada", "pseudo": "ada99", "avatarURL": "x", "id": "forced"}
        )
        assert result.error_kind is ErrorKind.INVALID_PAYLOAD

    def test_not_a_mapping(self, board: CourseBoard) -> None:
        """A payload that is not a mapping is invalid."""
        result = board.add_user(None)
        assert result.error_kind is ErrorKind.INVALID_PAYLOAD

    def test_shape_checked_before_uniqueness(self, board: CourseBoard, ada: User) -> None:
        """With several problems, the payload error is reported first."""
        result = board.add_user({"name": "", "pseudo": "ada99", "avatarURL": "x"})
        assert result.error_kind is ErrorKind.INVALID_PAYLOAD

    def test_list_returns_all(self, board: CourseBoard) -> None:
        """list returns exactly the added records."""
        for index in range(5):
            board.add_user(
                {"name": f"User {index}", "pseudo": f"p{index}", "avatarURL": "a"}
            ).unwrap()

        users = board.list_users()
        assert len(users) == 5
        assert {u.pseudo for u in users} == {f"p{i}" for i in range(5)}


class TestUpdateUser:
    """Tests for updating users."""

    def test_partial_update_merges(
        self, board: CourseBoard, ada: User, clock: Any
    ) -> None:
        """Fields not in the payload keep their values."""
        later = clock.advance(minutes=5)
        result = board.update_user(ada.id, {"name": "Ada Lovelace"})

        assert result.is_success()
        updated = result.record
        assert updated.name == "Ada Lovelace"
        assert updated.pseudo == "ada99"
        assert updated.avatar_url == "x"
        assert updated.id == ada.id
        assert updated.created_at == ada.created_at
        assert updated.updated_at == later
        assert result.before_state["name"] == "Ada"
        assert board.get_user(ada.id).name == "Ada Lovelace"

    def test_updated_at_moves_on_each_update(
        self, board: CourseBoard, ada: User, clock: Any
    ) -> None:
        """Every update stamps the current time."""
        board.update_user(ada.id, {"name": "A"}).unwrap()
        last = clock.advance(hours=1)
        user = board.update_user(ada.id, {"name": "B"}).unwrap()
        assert user.updated_at == last

    def test_keep_own_pseudo(self, board: CourseBoard, ada: User) -> None:
        """A user may resubmit its own pseudo."""
        result = board.update_user(ada.id, {"pseudo": "ada99", "name": "Ada L"})
        assert result.is_success()

    def test_take_other_pseudo(self, board: CourseBoard, ada: User, bea: User) -> None:
        """Updating to another user's pseudo is rejected."""
        result = board.update_user(bea.id, {"pseudo": " ada99"})

        assert result.error_kind is ErrorKind.DUPLICATE_VALUE
        assert board.get_user(bea.id).pseudo == "bea"

    def test_change_pseudo(self, board: CourseBoard, ada: User) -> None:
        """The old pseudo is free again after a change."""
        board.update_user(ada.id, {"pseudo": "lovelace"}).unwrap()

        assert not board.check_pseudo("ada99")
        assert board.check_pseudo("lovelace")

    def test_update_missing(self, board: CourseBoard) -> None:
        """Updating an unknown id fails with NOT_FOUND."""
        result = board.update_user("nope", {"name": "X"})

        assert result.error_kind is ErrorKind.NOT_FOUND
        assert result.entity_id == "nope"

    def test_not_found_checked_first(self, board: CourseBoard) -> None:
        """NOT_FOUND wins over an invalid payload."""
        result = board.update_user("nope", {"name": ""})
        assert result.error_kind is ErrorKind.NOT_FOUND

    def test_null_field(self, board: CourseBoard, ada: User) -> None:
        """Explicit nulls are invalid in updates."""
        result = board.update_user(ada.id, {"name": None})

        assert result.error_kind is ErrorKind.INVALID_PAYLOAD
        assert "name: must not be null" in result.failure.errors

    def test_blank_update(self, board: CourseBoard, ada: User) -> None:
        """Blank strings are invalid in updates too."""
        result = board.update_user(ada.id, {"pseudo": "  "})

        assert result.error_kind is ErrorKind.INVALID_PAYLOAD
        assert board.get_user(ada.id).updated_at is None


class TestRemoveUser:
    """Tests for removing users."""

    def test_remove(self, board: CourseBoard, ada: User) -> None:
        """remove returns the record and get no longer finds it."""
        result = board.remove_user(ada.id)

        assert result.is_success()
        assert result.record.id == ada.id
        assert board.get_user(ada.id) is None
        assert not board.check_user_id(ada.id)

    def test_remove_missing(self, board: CourseBoard, ada: User) -> None:
        """Removing twice fails with NOT_FOUND the second time."""
        board.remove_user(ada.id).unwrap()
        result = board.remove_user(ada.id)
        assert result.error_kind is ErrorKind.NOT_FOUND

    def test_pseudo_free_after_remove(self, board: CourseBoard, ada: User) -> None:
        """A removed user's pseudo can be reused."""
        board.remove_user(ada.id).unwrap()
        result = board.add_user({"name": "Ada 2", "pseudo": "ada99", "avatarURL": "x"})
        assert result.is_success()
        assert result.record.id != ada.id


class TestUserLookups:
    """Tests for existence and pseudo lookups."""

    def test_check_user_id(self, board: CourseBoard, ada: User) -> None:
        assert board.check_user_id(ada.id)
        assert not board.check_user_id("unknown")

    def test_check_pseudo(self, board: CourseBoard, ada: User) -> None:
        assert board.check_pseudo("ada99")
        assert board.check_pseudo(" ada99 ")
        assert not board.check_pseudo("bea")

    def test_get_id_from_pseudo(self, board: CourseBoard, ada: User) -> None:
        assert board.get_id_from_pseudo("ada99") == ada.id
        assert board.get_id_from_pseudo("nobody") is None


class TestIdGeneration:
    """Tests for id assignment."""

    def test_live_id_not_reused(self, store: DurableStore, clock: Any) -> None:
        """An id already held by a live record is skipped."""
        ids = iter(["dup", "dup", "fresh"])
        users = UserRegistry(store, clock=clock, id_factory=lambda: next(ids))

        first = users.add({"name": "A", "pseudo": "a", "avatarURL": "x"}).unwrap()
        second = users.add({"name": "B", "pseudo": "b", "avatarURL": "x"}).unwrap()

        assert first.id == "dup"
        assert second.id == "fresh"

    def test_stuck_generator(self, store: DurableStore) -> None:
        """A generator that only returns live ids raises StorageError."""
        users = UserRegistry(store, id_factory=lambda: "same")
        users.add({"name": "A", "pseudo": "a", "avatarURL": "x"}).unwrap()

        with pytest.raises(StorageError, match="live ids"):
            users.add({"name": "B", "pseudo": "b", "avatarURL": "x"})

    def test_default_ids_are_uuids(self, store: DurableStore) -> None:
        """Without an injected generator ids are uuid strings."""
        users = UserRegistry(store)
        user = users.add({"name": "A", "pseudo": "a", "avatarURL": "x"}).unwrap()
        assert len(user.id) == 36
        assert user.created_at.tzinfo is not None
