"""
Entity Registry - validated CRUD over a durable ordered map.

Every entity kind is an ``EntityRegistry`` subclass that declares its
models, required and text fields, its unique field and its cross-registry
references. Operations validate in a fixed order and return a
``RegistryResult`` instead of raising:

    add:    payload shape -> references -> uniqueness
    update: not found -> payload shape -> references -> uniqueness

Writes happen only after every check has passed.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Generic, Mapping, TypeVar

from pydantic import ValidationError

from course_board.core.exceptions import StorageError
from course_board.core.models import (
    Clock,
    EntityOperation,
    ErrorKind,
    IdFactory,
    RegistryFailure,
    RegistryResult,
    new_id,
    utc_now,
)
from course_board.registry.models import EntityRecord, PayloadModel
from course_board.registry.references import ReferenceRule, check_references
from course_board.storage.ordered_map import DurableStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=EntityRecord)
PayloadT = TypeVar("PayloadT", bound=PayloadModel)

MAX_ID_ATTEMPTS = 5


class EntityRegistry(Generic[RecordT, PayloadT]):
    """
    Generic persistent registry for one entity kind.

    The registry exclusively owns one map in the given store. Mutations
    run inside an immediate store transaction, so the checks and the write
    form one atomic step for every registry and process sharing the store.
    """

    entity_type: ClassVar[str]
    map_name: ClassVar[str]
    record_model: ClassVar[type[EntityRecord]]
    payload_model: ClassVar[type[PayloadModel]]
    required_fields: ClassVar[tuple[str, ...]] = ()
    text_fields: ClassVar[tuple[str, ...]] = ()
    unique_field: ClassVar[str | None] = None

    def __init__(
        self,
        store: DurableStore,
        *,
        references: tuple[ReferenceRule, ...] = (),
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ):
        """
        Initialize the registry.

        Args:
            store: Store holding this registry's map
            references: Cross-registry existence checks for foreign fields
            clock: Timestamp source (defaults to UTC now)
            id_factory: Identifier generator (defaults to uuid4)
        """
        self._map = store.open_map(self.map_name, self.record_model)
        self._references = references
        self._clock = clock or utc_now
        self._id_factory = id_factory or new_id
        self._store = store

    @property
    def references(self) -> tuple[ReferenceRule, ...]:
        return self._references

    # Read operations

    def list(self) -> list[RecordT]:
        """Return all live records in key order."""
        return self._map.values()

    def get(self, entity_id: str) -> RecordT | None:
        return self._map.get(entity_id)

    def count(self) -> int:
        """Number of live records."""
        return len(self._map)

    def exists_by_id(self, entity_id: str) -> bool:
        """Membership probe consumed by other registries' validators."""
        return self._map.contains_key(entity_id)

    def exists_by_unique_field(self, value: str, *, exclude_id: str | None = None) -> bool:
        """
        Return True if a live record's unique field equals value after trimming.

        Registries without a unique field always return False.
        """
        return self.find_id_by_unique_field(value, exclude_id=exclude_id) is not None

    def find_id_by_unique_field(
        self, value: str, *, exclude_id: str | None = None
    ) -> str | None:
        """Return the id of the record holding value in its unique field."""
        if self.unique_field is None:
            return None
        target = value.strip()
        for record in self._map.values():
            if record.id == exclude_id:
                continue
            if getattr(record, self.unique_field).strip() == target:
                return record.id
        return None

    # Write operations

    def add(self, payload: PayloadT | Mapping[str, Any]) -> RegistryResult[RecordT]:
        """Validate payload and store a new record."""
        operation = EntityOperation.ADD
        with self._store.transaction(immediate=True):
            fields, failure = self._coerce_payload(payload)
            failure = (
                failure
                or self._check_fields(fields, partial=False)
                or check_references(self._references, fields)
                or self._check_unique(fields)
            )
            if failure:
                return self._reject(operation, failure)

            record = self.record_model.model_validate(
                {
                    **fields,
                    "id": self._next_id(),
                    "created_at": self._clock(),
                    "updated_at": None,
                }
            )
            self._map.insert(record.id, record)

        logger.info(f"Added {self.entity_type} {record.id}")
        return RegistryResult.success(
            operation, self.entity_type, record, entity_id=record.id
        )

    def update(
        self, entity_id: str, payload: PayloadT | Mapping[str, Any]
    ) -> RegistryResult[RecordT]:
        """
        Merge payload onto an existing record.

        Fields present in payload overwrite; absent fields keep their
        prior value. ``updated_at`` is stamped on every update.
        """
        operation = EntityOperation.UPDATE
        with self._store.transaction(immediate=True):
            current = self._map.get(entity_id)
            if current is None:
                return self._reject(operation, self._not_found(entity_id), entity_id)

            fields, failure = self._coerce_payload(payload)
            failure = (
                failure
                or self._check_fields(fields, partial=True)
                or check_references(self._references, fields)
                or self._check_unique(fields, current=current)
            )
            if failure:
                return self._reject(operation, failure, entity_id)

            before_state = current.model_dump(mode="json", by_alias=True)
            updated = current.model_copy(
                update={**fields, "updated_at": self._clock()}
            )
            self._map.insert(entity_id, updated)

        logger.info(f"Updated {self.entity_type} {entity_id}: {sorted(fields)}")
        return RegistryResult.success(
            operation,
            self.entity_type,
            updated,
            entity_id=entity_id,
            before_state=before_state,
        )

    def remove(self, entity_id: str) -> RegistryResult[RecordT]:
        """Delete a record and return it. References to it are left as-is."""
        operation = EntityOperation.REMOVE
        with self._store.transaction(immediate=True):
            removed = self._map.remove(entity_id)
        if removed is None:
            return self._reject(operation, self._not_found(entity_id), entity_id)

        logger.info(f"Removed {self.entity_type} {entity_id}")
        return RegistryResult.success(
            operation,
            self.entity_type,
            removed,
            entity_id=entity_id,
            before_state=removed.model_dump(mode="json", by_alias=True),
        )

    # Validation

    def _coerce_payload(
        self, payload: PayloadT | Mapping[str, Any]
    ) -> tuple[dict[str, Any], RegistryFailure | None]:
        """Turn payload into a dict of the fields the caller set."""
        if isinstance(payload, self.payload_model):
            model = payload
        else:
            try:
                model = self.payload_model.model_validate(payload)
            except ValidationError as e:
                errors = tuple(
                    f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
                    for err in e.errors()
                )
                return {}, RegistryFailure(
                    kind=ErrorKind.INVALID_PAYLOAD,
                    message=f"Invalid {self.entity_type} payload: {'; '.join(errors)}",
                    errors=errors,
                )
        return model.model_dump(exclude_unset=True), None

    def _check_fields(
        self, fields: dict[str, Any], *, partial: bool
    ) -> RegistryFailure | None:
        problems = []
        if not partial:
            for name in self.required_fields:
                if name not in fields:
                    problems.append(f"{self._label(name)}: field required")

        for name, value in fields.items():
            if value is None:
                problems.append(f"{self._label(name)}: must not be null")
            elif name in self.text_fields and not value.strip():
                problems.append(f"{self._label(name)}: must not be blank")

        problems.extend(
            self._field_problems({k: v for k, v in fields.items() if v is not None})
        )
        if not problems:
            return None
        return RegistryFailure(
            kind=ErrorKind.INVALID_PAYLOAD,
            message=f"Invalid {self.entity_type} payload: {'; '.join(problems)}",
            errors=tuple(problems),
        )

    def _field_problems(self, fields: dict[str, Any]) -> list[str]:
        """Kind-specific checks on the non-null fields. Override as needed."""
        return []

    def _check_unique(
        self, fields: dict[str, Any], *, current: RecordT | None = None
    ) -> RegistryFailure | None:
        if self.unique_field is None or self.unique_field not in fields:
            return None

        value = fields[self.unique_field]
        exclude_id = None
        if current is not None:
            # keeping its own value is not a collision
            if value.strip() == getattr(current, self.unique_field).strip():
                return None
            exclude_id = current.id

        if not self.exists_by_unique_field(value, exclude_id=exclude_id):
            return None
        label = self._label(self.unique_field)
        return RegistryFailure(
            kind=ErrorKind.DUPLICATE_VALUE,
            message=f"{self.entity_type} {label} '{value}' already exists",
            field=label,
            value=value,
        )

    # Helpers

    def _label(self, name: str) -> str:
        """External (alias) name of a payload field."""
        info = self.payload_model.model_fields.get(name)
        return (info.alias if info and info.alias else None) or name

    def _not_found(self, entity_id: str) -> RegistryFailure:
        return RegistryFailure(
            kind=ErrorKind.NOT_FOUND,
            message=f"No {self.entity_type} found with id={entity_id}",
            field="id",
            value=entity_id,
        )

    def _next_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            entity_id = self._id_factory()
            if not self._map.contains_key(entity_id):
                return entity_id
            logger.warning(f"Generated {self.entity_type} id {entity_id} is already live")
        raise StorageError(
            "Id generator kept returning live ids",
            map_name=self.map_name,
            details={"attempts": MAX_ID_ATTEMPTS},
        )

    def _reject(
        self,
        operation: EntityOperation,
        failure: RegistryFailure,
        entity_id: str | None = None,
    ) -> RegistryResult[RecordT]:
        logger.debug(
            f"Rejected {operation.value} on {self.entity_type}: "
            f"{failure.kind.value} ({failure.field})"
        )
        return RegistryResult.failed(
            operation, self.entity_type, failure, entity_id=entity_id
        )
