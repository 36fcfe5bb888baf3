"""
Snapshot subscriptions for keeping remote views in step with the store.

Subscribers never receive diffs: every event carries the full current
snapshot of one collection. A subscription starts with the latest snapshot,
so dropping and re-subscribing is always safe.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from app.repositories.base import Repositories
from app.schemas.contact import ContactRecord, ContactRollup
from app.schemas.invoice import InvoiceRecord
from app.schemas.product import ProductRecord
from app.services import rollup_service

logger = logging.getLogger(__name__)


class SnapshotEvent(BaseModel):
    business_id: str
    collection: str
    version: int
    documents: List[dict]


@dataclass
class _Subscriber:
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue


@dataclass
class _Channel:
    version: int = 0
    latest: Optional[SnapshotEvent] = None
    subscribers: List[_Subscriber] = field(default_factory=list)


class SnapshotHub:
    """
    Fan-out of full-collection snapshots per (business, collection).

    publish() may be called from worker threads (sync FastAPI routes);
    delivery is handed to each subscriber's own event loop.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._channels: Dict[Tuple[str, str], _Channel] = {}

    def _channel(self, business_id: str, collection: str) -> _Channel:
        return self._channels.setdefault((business_id, collection), _Channel())

    def has_subscribers(self, business_id: str, collection: str) -> bool:
        with self._lock:
            channel = self._channels.get((business_id, collection))
            return bool(channel and channel.subscribers)

    def latest(self, business_id: str, collection: str) -> Optional[SnapshotEvent]:
        with self._lock:
            channel = self._channels.get((business_id, collection))
            return channel.latest if channel else None

    def begin_publish(self, business_id: str, collection: str) -> Optional[int]:
        """
        Reserve the version for a change that has just been committed.

        Returns None when nobody is subscribed; the cached snapshot is then
        dropped so the next subscriber starts from a fresh read. Documents
        must be read after this call, so a higher version never carries
        older data.
        """
        with self._lock:
            channel = self._channel(business_id, collection)
            channel.version += 1
            if not channel.subscribers:
                channel.latest = None
                return None
            return channel.version

    def publish(
        self,
        business_id: str,
        collection: str,
        documents: List[dict],
        version: Optional[int] = None,
    ) -> SnapshotEvent:
        with self._lock:
            channel = self._channel(business_id, collection)
            if version is None:
                channel.version += 1
                version = channel.version
            event = SnapshotEvent(
                business_id=business_id,
                collection=collection,
                version=version,
                documents=documents,
            )
            if channel.latest is None or channel.latest.version < version:
                channel.latest = event
            subscribers = list(channel.subscribers)

        for subscriber in subscribers:
            try:
                subscriber.loop.call_soon_threadsafe(subscriber.queue.put_nowait, event)
            except RuntimeError:
                # Subscriber's loop already closed; it is removed when its generator exits
                logger.debug(f"Dropped snapshot for closed subscriber on {collection}")
        logger.debug(f"Published {collection} v{event.version} for {business_id} to {len(subscribers)} subscriber(s)")
        return event

    async def subscribe(
        self,
        business_id: str,
        collection: str,
        load: Optional[Callable[[], List[dict]]] = None,
    ) -> AsyncIterator[SnapshotEvent]:
        """
        Yield the current snapshot, then a new snapshot after every change.

        load reads the collection when nothing is cached. It runs in the
        default executor after the subscriber is registered, so any change
        committed while it reads is still delivered afterwards.
        """
        loop = asyncio.get_running_loop()
        subscriber = _Subscriber(loop=loop, queue=asyncio.Queue())
        with self._lock:
            channel = self._channel(business_id, collection)
            channel.subscribers.append(subscriber)
            first = channel.latest
            registered_version = channel.version
        try:
            if first is None and load is not None:
                documents = await loop.run_in_executor(None, load)
                first = SnapshotEvent(
                    business_id=business_id,
                    collection=collection,
                    version=registered_version,
                    documents=documents,
                )
            last_version = -1
            if first is not None:
                last_version = first.version
                yield first
            while True:
                event = await subscriber.queue.get()
                # Snapshots replace each other, so anything older than what was delivered is skipped
                if event.version <= last_version:
                    continue
                last_version = event.version
                yield event
        finally:
            with self._lock:
                channel.subscribers.remove(subscriber)


snapshot_hub = SnapshotHub()


def collection_documents(repos: Repositories, business_id: str, collection: str) -> List[dict]:
    if collection == "products":
        records = repos.products.list(business_id)
    elif collection == "customers":
        records = repos.contacts.list(business_id)
    elif collection == "invoices":
        records = repos.invoices.list(business_id)
    else:
        raise ValueError(f"Unknown collection: {collection}")
    return [r.model_dump(mode="json") for r in records]


def publish_collection(repos: Repositories, business_id: str, collection: str) -> None:
    """Broadcast the committed state of a collection, if anyone is listening"""
    version = snapshot_hub.begin_publish(business_id, collection)
    if version is not None:
        documents = collection_documents(repos, business_id, collection)
        snapshot_hub.publish(business_id, collection, documents, version=version)


class LedgerCache:
    """
    Local view rebuilt purely from the latest snapshots.

    Each applied event replaces its whole collection; derived aggregates are
    recomputed from scratch on demand.
    """

    def __init__(self):
        self.products: List[ProductRecord] = []
        self.contacts: List[ContactRecord] = []
        self.invoices: List[InvoiceRecord] = []
        self.versions: Dict[str, int] = {}

    def apply(self, event: SnapshotEvent) -> bool:
        """Replace a collection with the event's snapshot. Stale events are ignored."""
        if event.version < self.versions.get(event.collection, -1):
            return False
        if event.collection == "products":
            self.products = [ProductRecord.model_validate(d) for d in event.documents]
        elif event.collection == "customers":
            self.contacts = [ContactRecord.model_validate(d) for d in event.documents]
        elif event.collection == "invoices":
            self.invoices = [InvoiceRecord.model_validate(d) for d in event.documents]
        else:
            raise ValueError(f"Unknown collection: {event.collection}")
        self.versions[event.collection] = event.version
        return True

    def rollups(self) -> Dict[str, ContactRollup]:
        payments = [p for inv in self.invoices for p in inv.payments]
        return rollup_service.rollups_by_contact(self.contacts, self.invoices, payments)

    def pending_payments(self) -> float:
        return sum((inv.total - inv.paid for inv in self.invoices if inv.status != "paid"), 0.0)

    def low_stock(self) -> List[ProductRecord]:
        return [p for p in self.products if p.stock <= p.min_stock]
