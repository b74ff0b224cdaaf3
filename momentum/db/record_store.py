"""
Transactional record store.

Owns the engine, the four collections and their secondary indexes. Every
read and write runs inside `RecordStore.transaction`, which hands the unit
of work a `TransactionHandle` restricted to the collections it declared.
All mutations made through one handle commit together or not at all, and
transactions are serialized by a store-wide lock so no caller observes
another's partial writes.

Records cross this boundary as Pydantic snapshots: mutating a returned
record changes nothing until it is submitted again through `put`.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from momentum.config import StoreSettings
from momentum.db.collections import Collection, IndexSpec, get_collection
from momentum.db.database import build_engine, create_schema, make_session_factory
from momentum.errors import ConstraintViolation, InvalidArgument, NotFound, StorageUnavailable, require_id

logger = logging.getLogger(__name__)

T = TypeVar("T")
Work = Callable[["TransactionHandle"], Awaitable[T]]


@contextmanager
def translate_errors(action: str):
    """Re-raise SQLAlchemy failures as the store's typed errors."""
    try:
        yield
    except IntegrityError as e:
        raise ConstraintViolation(f"{action} violated a constraint: {e.orig}") from e
    except SQLAlchemyError as e:
        logger.error(f"Storage failure during {action}: {e}")
        raise StorageUnavailable(f"{action} failed: {e}") from e


def _replacement_value(column, row):
    # Full replace: absent fields fall back to their scalar default, generated
    # values (timestamps) keep what is stored.
    default = column.default
    if default is None:
        return None
    if default.is_scalar:
        return default.arg
    return getattr(row, column.name)


class TransactionHandle:
    """Operations available to one unit of work."""

    def __init__(self, session: Session, scope: Dict[str, Collection], *, readonly: bool = False):
        self._session = session
        self._scope = scope
        self.readonly = readonly
        self._active = True

    def close(self) -> None:
        self._active = False

    # helpers
    def _collection(self, name: str) -> Collection:
        if not self._active:
            raise InvalidArgument("transaction handle is no longer active")
        collection = get_collection(name)
        if name not in self._scope:
            raise InvalidArgument(
                f"collection '{name}' is outside this transaction's scope {sorted(self._scope)}"
            )
        return collection

    def _writable(self, name: str) -> Collection:
        collection = self._collection(name)
        if self.readonly:
            raise InvalidArgument(f"cannot write to '{name}' inside a read-only transaction")
        return collection

    @staticmethod
    def _values(collection: Collection, record: Any) -> Dict[str, Any]:
        if isinstance(record, BaseModel):
            data = record.model_dump()
        elif isinstance(record, Mapping):
            data = dict(record)
        else:
            raise InvalidArgument(f"cannot store {type(record).__name__} in '{collection.name}'")
        columns = collection.columns
        return {k: v for k, v in data.items() if k in columns}

    def _query_index(self, collection: Collection, spec: IndexSpec, key: Any):
        model = collection.model
        column = getattr(model, spec.column)
        q = self._session.query(model)
        q = q.filter(column.is_(None)) if key is None else q.filter(column == key)
        return q.order_by(model.id).all()

    def _check_unique(self, collection: Collection, values: Dict[str, Any], record_id: Optional[int]) -> None:
        model = collection.model
        for name, spec in collection.unique_indexes():
            value = values.get(spec.column)
            if value is None:
                continue
            q = self._session.query(model).filter(getattr(model, spec.column) == value)
            if record_id is not None:
                q = q.filter(model.id != record_id)
            other = q.first()
            if other is not None:
                raise ConstraintViolation(
                    f"{collection.name}.{name} {value!r} already belongs to record {other.id}"
                )

    def _snapshot(self, collection: Collection, row):
        return collection.schema.model_validate(row)

    # reads
    async def get(self, collection: str, record_id: int):
        coll = self._collection(collection)
        require_id(record_id)
        with translate_errors(f"get {collection}"):
            # Reload so callers see stored values, not pending attribute state
            row = self._session.get(coll.model, record_id, populate_existing=True)
        if row is None:
            raise NotFound(collection, record_id)
        return self._snapshot(coll, row)

    async def find(self, collection: str, record_id: int):
        """Like `get` but returns None for an absent record."""
        try:
            return await self.get(collection, record_id)
        except NotFound:
            return None

    async def get_by_index(self, collection: str, index: str, key: Any):
        coll = self._collection(collection)
        spec = coll.index(index)
        with translate_errors(f"lookup {collection}.{index}"):
            rows = self._query_index(coll, spec, key)
        if spec.unique:
            if not rows:
                raise NotFound(collection, key, index=index)
            return self._snapshot(coll, rows[0])
        return [self._snapshot(coll, row) for row in rows]

    async def scan_by_index(self, collection: str, index: str, key: Any) -> List[Any]:
        coll = self._collection(collection)
        spec = coll.index(index)
        with translate_errors(f"scan {collection}.{index}"):
            rows = self._query_index(coll, spec, key)
        return [self._snapshot(coll, row) for row in rows]

    async def get_all(self, collection: str) -> List[Any]:
        coll = self._collection(collection)
        with translate_errors(f"list {collection}"):
            rows = self._session.query(coll.model).order_by(coll.model.id).all()
        return [self._snapshot(coll, row) for row in rows]

    async def count(self, collection: str) -> int:
        coll = self._collection(collection)
        with translate_errors(f"count {collection}"):
            return self._session.query(coll.model).count()

    # writes
    async def put(self, collection: str, record: Any) -> int:
        coll = self._writable(collection)
        if coll.singleton:
            raise InvalidArgument(f"'{collection}' holds a single value; use set_slot")
        values = self._values(coll, record)
        record_id = values.pop("id", None)
        if record_id is not None:
            require_id(record_id)

        with translate_errors(f"put {collection}"):
            self._check_unique(coll, values, record_id)
            row = self._session.get(coll.model, record_id) if record_id is not None else None
            if row is None:
                row = coll.model(**values)
                if record_id is not None:
                    row.id = record_id
                self._session.add(row)
            else:
                for column in coll.model.__table__.columns:
                    if column.primary_key:
                        continue
                    if column.name in values:
                        setattr(row, column.name, values[column.name])
                    else:
                        setattr(row, column.name, _replacement_value(column, row))
            self._session.flush()
            return row.id

    async def delete(self, collection: str, record_id: int) -> bool:
        """Delete a record; returns False when it was already absent."""
        coll = self._writable(collection)
        require_id(record_id)
        with translate_errors(f"delete {collection}"):
            row = self._session.get(coll.model, record_id)
            if row is None:
                return False
            self._session.delete(row)
            self._session.flush()
        return True

    async def clear(self, collection: str) -> int:
        coll = self._writable(collection)
        with translate_errors(f"clear {collection}"):
            removed = self._session.query(coll.model).delete(synchronize_session=False)
            self._session.flush()
        self._session.expunge_all()
        return removed

    # singleton slots
    def _slot_collection(self, name: str, *, write: bool = False) -> Collection:
        coll = self._writable(name) if write else self._collection(name)
        if not coll.singleton:
            raise InvalidArgument(f"'{name}' is not a single-value collection")
        return coll

    async def get_slot(self, collection: str):
        coll = self._slot_collection(collection)
        with translate_errors(f"read {collection}"):
            row = self._session.query(coll.model).first()
        return None if row is None else self._snapshot(coll, row)

    async def set_slot(self, collection: str, record: Any) -> None:
        """Replace whatever the slot holds with ``record``."""
        coll = self._slot_collection(collection, write=True)
        values = self._values(coll, record)
        values.pop("id", None)
        await self.clear_slot(collection)
        with translate_errors(f"write {collection}"):
            self._session.add(coll.model(**values))
            self._session.flush()

    async def clear_slot(self, collection: str) -> bool:
        """Empty the slot; returns False when it was already empty."""
        self._slot_collection(collection, write=True)
        return await self.clear(collection) > 0


class RecordStore:
    """Explicitly owned store instance with an open/close lifecycle."""

    def __init__(self, settings: StoreSettings | str | None = None):
        if settings is None:
            settings = StoreSettings.from_env()
        elif isinstance(settings, str):
            settings = StoreSettings(database_url=settings)
        self.settings = settings
        self._engine = None
        self._session_factory = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "RecordStore":
        if self._engine is not None:
            return self
        try:
            engine = build_engine(self.settings)
            if self.settings.auto_create_schema:
                create_schema(engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to open record store at {self.settings.database_url}: {e}")
            raise StorageUnavailable(f"cannot open {self.settings.database_url}: {e}") from e
        self._engine = engine
        self._session_factory = make_session_factory(engine)
        logger.info(f"Record store opened at {self.settings.database_url}")
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info(f"Record store at {self.settings.database_url} closed")

    async def __aenter__(self) -> "RecordStore":
        return self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self):
        if self._session_factory is None:
            raise StorageUnavailable("record store is not open")
        return self._session_factory

    @staticmethod
    def _resolve_scope(collections: Iterable[str] | str) -> Dict[str, Collection]:
        names = [collections] if isinstance(collections, str) else list(collections)
        if not names:
            raise InvalidArgument("a transaction must declare at least one collection")
        return {name: get_collection(name) for name in names}

    async def transaction(self, collections: Iterable[str] | str, work: Work, *, readonly: bool = False) -> T:
        """Run ``work(handle)`` atomically over ``collections``.

        The handle only reaches the declared collections. Any exception
        raised by ``work`` (cancellation included) discards every mutation
        made through the handle and propagates to the caller.
        """
        scope = self._resolve_scope(collections)
        session_factory = self._require_open()
        async with self._lock:
            session = session_factory()
            handle = TransactionHandle(session, scope, readonly=readonly)
            try:
                with translate_errors(f"transaction over {sorted(scope)}"):
                    result = await work(handle)
                    handle.close()
                    session.commit()
                return result
            except BaseException as e:
                logger.warning(f"Rolled back transaction over {sorted(scope)}: {e!r}")
                try:
                    session.rollback()
                except SQLAlchemyError as rollback_error:
                    logger.error(f"Rollback failed: {rollback_error}")
                raise
            finally:
                handle.close()
                session.close()

    # single-operation conveniences, each its own transaction
    async def put(self, collection: str, record: Any) -> int:
        return await self.transaction([collection], lambda tx: tx.put(collection, record))

    async def get(self, collection: str, record_id: int):
        return await self.transaction([collection], lambda tx: tx.get(collection, record_id), readonly=True)

    async def get_by_index(self, collection: str, index: str, key: Any):
        return await self.transaction(
            [collection], lambda tx: tx.get_by_index(collection, index, key), readonly=True
        )

    async def scan_by_index(self, collection: str, index: str, key: Any) -> List[Any]:
        return await self.transaction(
            [collection], lambda tx: tx.scan_by_index(collection, index, key), readonly=True
        )

    async def get_all(self, collection: str) -> List[Any]:
        return await self.transaction([collection], lambda tx: tx.get_all(collection), readonly=True)

    async def count(self, collection: str) -> int:
        return await self.transaction([collection], lambda tx: tx.count(collection), readonly=True)

    async def delete(self, collection: str, record_id: int) -> bool:
        return await self.transaction([collection], lambda tx: tx.delete(collection, record_id))
