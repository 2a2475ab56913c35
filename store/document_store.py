"""
Document-store adapter over SQLModel.

Exposes the small query surface the sync layer needs: create / get / query /
update / delete keyed by collection name, plus live subscriptions that
re-deliver the full matching result list after every committed write to the
subscribed collection.
"""
from typing import Any, Callable, Dict, List, Mapping, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select
from helpers.callbacks import call_maybe_async
from helpers.errors import StoreError, RecordNotFound
from models.boards import Board, Task
from models.goals import Goal
from models.helper import id_generator
from models.market import MarketSnapshot
from models.notes import Note
from models.reminders import Reminder
from settings import logger

COLLECTIONS: Dict[str, type] = {
    "boards": Board,
    "tasks": Task,
    "reminders": Reminder,
    "notes": Note,
    "goals": Goal,
    "market_snapshots": MarketSnapshot,
}

Predicate = Callable[[Any], bool]

_subscription_id = id_generator('sub', 8)


class Subscription:
    """Handle for one standing query; `unsubscribe()` stops all further callbacks."""

    def __init__(
        self,
        store: "DocumentStore",
        collection: str,
        on_snapshot: Callable[[List[Any]], Any],
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        predicate: Optional[Predicate] = None,
        on_error: Optional[Callable[[StoreError], Any]] = None,
    ):
        self.id = _subscription_id()
        self.collection = collection
        self.where = dict(where or {})
        self.order_by = order_by
        self.descending = descending
        self.predicate = predicate
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.active = True
        self._store = store

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._store._detach(self)


class DocumentStore:
    """Collection-oriented facade over a SQLModel engine."""

    def __init__(self, engine):
        self.engine = engine
        self._subscriptions: Dict[str, List[Subscription]] = {}

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def model_for(collection: str) -> type:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}")

    @staticmethod
    def _check_fields(model: type, fields: Mapping[str, Any]) -> None:
        unknown = set(fields) - set(model.model_fields)
        if unknown:
            raise ValueError(f"Unknown fields for {model.__name__}: {sorted(unknown)}")

    def _statement(self, model, where, order_by, descending):
        statement = select(model)
        for field_name, value in (where or {}).items():
            statement = statement.where(getattr(model, field_name) == value)
        if order_by:
            column = getattr(model, order_by)
            statement = statement.order_by(column.desc() if descending else column.asc())
        return statement

    def _run_query(self, collection, where=None, order_by=None, descending=False, limit=None, predicate=None) -> List[Any]:
        model = self.model_for(collection)
        self._check_fields(model, where or {})
        if order_by:
            self._check_fields(model, {order_by: None})
        statement = self._statement(model, where, order_by, descending)
        try:
            with Session(self.engine) as session:
                records = list(session.exec(statement).all())
        except SQLAlchemyError as e:
            raise StoreError(f"Query on {collection} failed: {e}") from e
        if predicate is not None:
            records = [record for record in records if predicate(record)]
        if limit is not None:
            records = records[:limit]
        return records

    # -- reads -------------------------------------------------------------

    async def get(self, collection: str, record_id: str) -> Optional[Any]:
        model = self.model_for(collection)
        try:
            with Session(self.engine) as session:
                return session.get(model, record_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Read of {collection}/{record_id} failed: {e}") from e

    async def query(
        self,
        collection: str,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        predicate: Optional[Predicate] = None,
    ) -> List[Any]:
        return self._run_query(collection, where, order_by, descending, limit, predicate)

    # -- writes ------------------------------------------------------------

    async def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        model = self.model_for(collection)
        self._check_fields(model, fields)
        record = model(**fields)
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                session.add(record)
                session.commit()
        except SQLAlchemyError as e:
            logger.error("Document create failed", extra={
                "collection": collection,
                "error": str(e)
            })
            raise StoreError(f"Create in {collection} failed: {e}") from e

        logger.debug("Document created", extra={"collection": collection, "record_id": record.id})
        await self._notify(collection)
        return record.id

    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        model = self.model_for(collection)
        changes = {key: value for key, value in fields.items() if key != "id"}
        self._check_fields(model, changes)
        try:
            with Session(self.engine) as session:
                record = session.get(model, record_id)
                if record is None:
                    raise RecordNotFound(collection, record_id)
                for key, value in changes.items():
                    setattr(record, key, value)
                session.add(record)
                session.commit()
        except SQLAlchemyError as e:
            logger.error("Document update failed", extra={
                "collection": collection,
                "record_id": record_id,
                "error": str(e)
            })
            raise StoreError(f"Update of {collection}/{record_id} failed: {e}") from e

        logger.debug("Document updated", extra={
            "collection": collection,
            "record_id": record_id,
            "fields": sorted(changes)
        })
        await self._notify(collection)

    async def delete(self, collection: str, record_id: str) -> bool:
        """Delete one record. Deleting a missing record is a no-op returning False."""
        model = self.model_for(collection)
        try:
            with Session(self.engine) as session:
                record = session.get(model, record_id)
                if record is None:
                    return False
                session.delete(record)
                session.commit()
        except SQLAlchemyError as e:
            logger.error("Document delete failed", extra={
                "collection": collection,
                "record_id": record_id,
                "error": str(e)
            })
            raise StoreError(f"Delete of {collection}/{record_id} failed: {e}") from e

        await self._notify(collection)
        return True

    async def delete_where(self, collection: str, where: Mapping[str, Any]) -> int:
        model = self.model_for(collection)
        self._check_fields(model, where)
        statement = self._statement(model, where, None, False)
        try:
            with Session(self.engine) as session:
                records = session.exec(statement).all()
                for record in records:
                    session.delete(record)
                session.commit()
                deleted = len(records)
        except SQLAlchemyError as e:
            raise StoreError(f"Bulk delete in {collection} failed: {e}") from e

        if deleted:
            await self._notify(collection)
        return deleted

    # -- subscriptions -----------------------------------------------------

    async def subscribe(
        self,
        collection: str,
        on_snapshot: Callable[[List[Any]], Any],
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        predicate: Optional[Predicate] = None,
        on_error: Optional[Callable[[StoreError], Any]] = None,
    ) -> Subscription:
        """Open a live query. The current result list is delivered before returning."""
        model = self.model_for(collection)
        self._check_fields(model, where or {})
        subscription = Subscription(
            self, collection, on_snapshot,
            where=where, order_by=order_by, descending=descending,
            predicate=predicate, on_error=on_error
        )
        self._subscriptions.setdefault(collection, []).append(subscription)
        logger.debug("Subscription opened", extra={
            "collection": collection,
            "subscription_id": subscription.id,
            "where": subscription.where
        })
        await self._deliver(subscription)
        return subscription

    def subscription_count(self, collection: Optional[str] = None) -> int:
        if collection is not None:
            return len(self._subscriptions.get(collection, []))
        return sum(len(subs) for subs in self._subscriptions.values())

    def _detach(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.collection, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)
            logger.debug("Subscription closed", extra={
                "collection": subscription.collection,
                "subscription_id": subscription.id
            })

    async def _notify(self, collection: str) -> None:
        # Copy: callbacks may subscribe or unsubscribe while we iterate
        for subscription in list(self._subscriptions.get(collection, [])):
            await self._deliver(subscription)

    async def _deliver(self, subscription: Subscription) -> None:
        if not subscription.active:
            return
        try:
            records = self._run_query(
                subscription.collection,
                where=subscription.where,
                order_by=subscription.order_by,
                descending=subscription.descending,
                predicate=subscription.predicate,
            )
        except StoreError as e:
            logger.warning("Subscription query failed; listener detached", extra={
                "collection": subscription.collection,
                "subscription_id": subscription.id,
                "error": str(e)
            })
            subscription.unsubscribe()
            if subscription.on_error is not None:
                await call_maybe_async(subscription.on_error, e)
            return

        # The listener may have been cancelled while the query ran
        if not subscription.active:
            return
        try:
            await call_maybe_async(subscription.on_snapshot, records)
        except Exception as e:
            logger.warning("Subscription listener raised", extra={
                "collection": subscription.collection,
                "subscription_id": subscription.id,
                "error": str(e)
            })
