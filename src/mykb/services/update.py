"""PartialUpdateEngine: read-mutate-write helpers over collection documents.

Every mutation is one :func:`~mykb.infrastructure.store.compare_and_swap`
on one document: read the current JSON and its revision, change it in
memory, write it back guarded by that revision.

Patch semantics: only fields present in the assignments are touched. A
field mapped to :data:`UNSET` is skipped; ``None`` is a real assignment
that stores JSON ``null``. Applying the same patch twice leaves the same
stored content as applying it once.

Moves are two independent writes (remove from the source document, then
merge into the target document). There is no cross-document transaction:
if the second write fails, the record is in neither collection and
:class:`PartialMoveError` is raised carrying the record. The engine does
not attempt to put it back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Final

from mykb.domain.errors import (
    DuplicateError,
    KbError,
    MalformedError,
    NotFoundError,
    PartialMoveError,
    ValidationGapError,
)
from mykb.domain.records import Collection, decode_record, encode_record, validate_record
from mykb.infrastructure.store import DocumentStore, compare_and_swap
from mykb.services._helpers import generate_id

logger = logging.getLogger(__name__)


class _Unset:
    """Sentinel type for "leave this field alone"."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


def sparse(assignments: Mapping[str, Any]) -> dict[str, Any]:
    """Drop :data:`UNSET` entries, keeping explicit ``None`` values."""
    return {key: value for key, value in assignments.items() if value is not UNSET}


# ---------------------------------------------------------------------------
# Container navigation
# ---------------------------------------------------------------------------


def _initial_document(collection: Collection) -> Any:
    return {} if collection.container else collection.empty_container()


def _container(doc: Any, collection: Collection, *, create: bool) -> Any:
    """Walk *collection.container* inside *doc*.

    Returns None when a key is missing and *create* is False.
    """
    node = doc
    keys = collection.container
    for depth, key in enumerate(keys):
        if not isinstance(node, dict):
            msg = f"Expected an object at {'.'.join(keys[:depth]) or '<root>'}"
            raise MalformedError(msg, path=collection.path)
        child = node.get(key)
        if child is None:
            if not create:
                return None
            last = depth == len(keys) - 1
            child = collection.empty_container() if last else {}
            node[key] = child
        node = child

    expected = list if collection.keying == "list" else dict
    if not isinstance(node, expected):
        where = ".".join(keys) or "<root>"
        msg = f"Expected a {collection.keying} collection at {where}"
        raise MalformedError(msg, path=collection.path)
    return node


def _index_of(items: list[Any], collection: Collection, identifier: str) -> int | None:
    for i, item in enumerate(items):
        if isinstance(item, dict) and item.get(collection.id_field) == identifier:
            return i
    return None


def _contains(container: Any, collection: Collection, identifier: str) -> bool:
    if collection.keying == "map":
        return identifier in container
    return _index_of(container, collection, identifier) is not None


def _pop(container: Any, collection: Collection, identifier: str) -> Any:
    if collection.keying == "map":
        if identifier not in container:
            raise _gap(collection, identifier)
        return container.pop(identifier)
    idx = _index_of(container, collection, identifier)
    if idx is None:
        raise _gap(collection, identifier)
    return container.pop(idx)


def _gap(collection: Collection, identifier: str) -> ValidationGapError:
    msg = f"{identifier!r} not found in {collection.path}"
    return ValidationGapError(msg, path=collection.path)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class PartialUpdateEngine:
    """Collection-level add / patch / remove / move on a DocumentStore.

    Args:
        store: Backend to read and write through.
        retries: Extra attempts after a revision conflict (0 = none).
    """

    def __init__(self, store: DocumentStore, *, retries: int = 0) -> None:
        self._store = store
        self._retries = retries

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_document(self, path: str) -> Any:
        """Decode the JSON document at *path*. Raises :class:`NotFoundError`."""
        return decode_record(self._store.read(path), path=path)

    def read_mapping(self, path: str) -> dict[str, Any]:
        """Like :meth:`read_document`, but the root must be a JSON object."""
        doc = self.read_document(path)
        if not isinstance(doc, dict):
            msg = f"Expected an object at <root>, got {type(doc).__name__}"
            raise MalformedError(msg, path=path)
        return doc

    def read_container(self, collection: Collection) -> Any:
        """The collection's map or list; empty when the document or key is missing."""
        try:
            doc = self.read_document(collection.path)
        except NotFoundError:
            return collection.empty_container()
        container = _container(doc, collection, create=False)
        return collection.empty_container() if container is None else container

    def get(self, collection: Collection, identifier: str) -> Any:
        """One record by identifier. Raises :class:`ValidationGapError`."""
        container = self.read_container(collection)
        if collection.keying == "map":
            if identifier not in container:
                raise _gap(collection, identifier)
            return container[identifier]
        idx = _index_of(container, collection, identifier)
        if idx is None:
            raise _gap(collection, identifier)
        return container[idx]

    # ------------------------------------------------------------------
    # Single-document mutations
    # ------------------------------------------------------------------

    def mutate(
        self,
        path: str,
        fn: Callable[[Any], Any],
        *,
        message: str,
        create_missing: bool = False,
        initial: Callable[[], Any] = dict,
    ) -> Any:
        """Apply *fn* to the decoded document at *path* and write it back.

        *fn* mutates the document in place and returns a value, which this
        method returns. Raising inside *fn* aborts before any write.
        """
        outcome: list[Any] = []

        def _apply(content: bytes | None) -> bytes:
            doc = initial() if content is None else decode_record(content, path=path)
            outcome.clear()
            outcome.append(fn(doc))
            return encode_record(doc)

        compare_and_swap(
            self._store,
            path,
            _apply,
            retries=self._retries,
            message=message,
            create_missing=create_missing,
        )
        return outcome[0]

    def add(
        self,
        collection: Collection,
        identifier: str,
        record: Any,
        *,
        message: str | None = None,
    ) -> Any:
        """Insert into a map-keyed collection. Raises :class:`DuplicateError`."""
        if collection.keying != "map":
            msg = "add() requires a map-keyed collection; use append()"
            raise TypeError(msg)
        validate_record(collection.record_type, record)

        def _insert(doc: Any) -> Any:
            container = _container(doc, collection, create=True)
            if identifier in container:
                msg = f"{identifier!r} already exists in {collection.path}"
                raise DuplicateError(msg, path=collection.path)
            container[identifier] = record
            return record

        result = self.mutate(
            collection.path,
            _insert,
            message=message or f"Add {identifier} to {collection.path}",
            create_missing=True,
            initial=lambda: _initial_document(collection),
        )
        logger.info("Added %s to %s", identifier, collection.path)
        return result

    def append(
        self,
        collection: Collection,
        record: Mapping[str, Any],
        *,
        message: str | None = None,
    ) -> dict[str, Any]:
        """Append to a list-keyed collection with a generated identifier."""
        if collection.keying != "list":
            msg = "append() requires a list-keyed collection; use add()"
            raise TypeError(msg)
        new_id = generate_id(collection.id_prefix or "rec")
        entry = {collection.id_field: new_id, **record}
        validate_record(collection.record_type, entry)

        def _append(doc: Any) -> dict[str, Any]:
            _container(doc, collection, create=True).append(entry)
            return entry

        result: dict[str, Any] = self.mutate(
            collection.path,
            _append,
            message=message or f"Add {new_id} to {collection.path}",
            create_missing=True,
            initial=lambda: _initial_document(collection),
        )
        logger.info("Appended %s to %s", new_id, collection.path)
        return result

    def patch(
        self,
        collection: Collection,
        identifier: str,
        assignments: Mapping[str, Any],
        *,
        message: str | None = None,
    ) -> dict[str, Any]:
        """Apply a sparse field patch to one record and return the merged record.

        Raises :class:`ValidationGapError` when *identifier* is unknown.
        """
        changes = sparse(assignments)
        if collection.keying == "list" and collection.id_field in changes:
            if changes[collection.id_field] != identifier:
                msg = f"Cannot change identifier field {collection.id_field!r}"
                raise ValueError(msg)

        def _patch(doc: Any) -> dict[str, Any]:
            container = _container(doc, collection, create=False)
            if container is None:
                raise _gap(collection, identifier)
            if collection.keying == "map":
                if identifier not in container:
                    raise _gap(collection, identifier)
                current = container[identifier]
            else:
                idx = _index_of(container, collection, identifier)
                if idx is None:
                    raise _gap(collection, identifier)
                current = container[idx]
            if not isinstance(current, dict):
                msg = f"Record {identifier!r} is not an object"
                raise MalformedError(msg, path=collection.path)

            merged = {**current, **changes}
            validate_record(collection.record_type, merged)
            current.clear()
            current.update(merged)
            return dict(current)

        try:
            result: dict[str, Any] = self.mutate(
                collection.path,
                _patch,
                message=message or f"Update {identifier} in {collection.path}",
            )
        except NotFoundError:
            raise _gap(collection, identifier) from None
        logger.info("Patched %s in %s: %s", identifier, collection.path, sorted(changes))
        return result

    def replace(
        self,
        collection: Collection,
        identifier: str,
        value: Any,
        *,
        message: str | None = None,
    ) -> Any:
        """Overwrite an existing map entry. Raises :class:`ValidationGapError`."""
        if collection.keying != "map":
            msg = "replace() requires a map-keyed collection"
            raise TypeError(msg)
        validate_record(collection.record_type, value)

        def _replace(doc: Any) -> Any:
            container = _container(doc, collection, create=False)
            if container is None or identifier not in container:
                raise _gap(collection, identifier)
            container[identifier] = value
            return value

        try:
            return self.mutate(
                collection.path,
                _replace,
                message=message or f"Update {identifier} in {collection.path}",
            )
        except NotFoundError:
            raise _gap(collection, identifier) from None

    def remove(
        self,
        collection: Collection,
        identifier: str,
        *,
        message: str | None = None,
    ) -> Any:
        """Delete one record and return it. Raises :class:`ValidationGapError`."""

        def _remove(doc: Any) -> Any:
            container = _container(doc, collection, create=False)
            if container is None:
                raise _gap(collection, identifier)
            return _pop(container, collection, identifier)

        try:
            result = self.mutate(
                collection.path,
                _remove,
                message=message or f"Remove {identifier} from {collection.path}",
            )
        except NotFoundError:
            raise _gap(collection, identifier) from None
        logger.info("Removed %s from %s", identifier, collection.path)
        return result

    # ------------------------------------------------------------------
    # Cross-document move
    # ------------------------------------------------------------------

    def move(
        self,
        source: Collection,
        target: Collection,
        identifier: str,
        *,
        transform: Callable[[dict[str, Any]], Any] | None = None,
        message: str | None = None,
    ) -> Any:
        """Move one record from *source* to *target*.

        Step 1 rewrites the source document without the record; step 2
        merges the (optionally transformed) record into the target
        document. The two writes are independent. A failure in step 2
        raises :class:`PartialMoveError`; the record is then in neither
        collection.

        The record is checked and transformed before the source document
        is written, so a record that is not an object (:class:`MalformedError`)
        or fails the target schema (pydantic ``ValidationError``) leaves
        both documents untouched. :class:`DuplicateError` is raised before
        touching anything when the target already holds *identifier*.
        """
        if source.path == target.path and source.container == target.container:
            msg = "Source and target collections are the same"
            raise ValueError(msg)
        if source.keying != target.keying:
            msg = "Cannot move between map-keyed and list-keyed collections"
            raise ValueError(msg)

        if _contains(self.read_container(target), target, identifier):
            msg = f"{identifier!r} already exists in {target.path}"
            raise DuplicateError(msg, path=target.path)

        description = message or f"Move {identifier} from {source.path} to {target.path}"

        def _take(doc: Any) -> Any:
            container = _container(doc, source, create=False)
            if container is None:
                raise _gap(source, identifier)
            record = _pop(container, source, identifier)
            if not isinstance(record, dict):
                msg = f"Record {identifier!r} is not an object"
                raise MalformedError(msg, path=source.path)
            moved = transform(dict(record)) if transform is not None else record
            validate_record(target.record_type, moved)
            return moved

        try:
            moved = self.mutate(source.path, _take, message=description)
        except NotFoundError:
            raise _gap(source, identifier) from None
        logger.info("Removed %s from %s", identifier, source.path)

        try:
            if target.keying == "map":
                self._place_map(target, identifier, moved, description)
            else:
                self._place_list(target, moved, description)
        except Exception as exc:
            reason = exc.message if isinstance(exc, KbError) else str(exc)
            logger.error(
                "Move of %s interrupted: removed from %s but not written to %s (%s)",
                identifier,
                source.path,
                target.path,
                reason,
            )
            msg = (
                f"{identifier!r} was removed from {source.path} but could not be "
                f"written to {target.path}: {reason}"
            )
            raise PartialMoveError(
                msg,
                source=source.path,
                target=target.path,
                identifier=identifier,
                record=moved,
            ) from exc

        logger.info("Moved %s from %s to %s", identifier, source.path, target.path)
        return moved

    def _place_map(self, target: Collection, identifier: str, record: Any, message: str) -> None:
        def _merge(doc: Any) -> None:
            container = _container(doc, target, create=True)
            if identifier in container:
                msg = f"{identifier!r} already exists in {target.path}"
                raise DuplicateError(msg, path=target.path)
            container[identifier] = record

        self.mutate(
            target.path,
            _merge,
            message=message,
            create_missing=True,
            initial=lambda: _initial_document(target),
        )

    def _place_list(self, target: Collection, record: Any, message: str) -> None:
        def _merge(doc: Any) -> None:
            container = _container(doc, target, create=True)
            container.append(record)

        self.mutate(
            target.path,
            _merge,
            message=message,
            create_missing=True,
            initial=lambda: _initial_document(target),
        )
