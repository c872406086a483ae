"""In-process change feed.

The store publishes one notification per committed write; subscribers
register per collection with an event mask. Delivery is synchronous, in the
publishing thread, and carries only the collection, the kind of change and
the record id. Subscribers must not rely on it for diffs.
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Flag
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

COLLECTIONS = ('session', 'teams', 'categories', 'questions')


class Change(Flag):
    INSERT = 1
    UPDATE = 2
    DELETE = 4
    ALL = INSERT | UPDATE | DELETE


@dataclass(frozen=True)
class Notification:
    collection: str
    change: Change
    record_id: Optional[int] = None

    def to_dict(self):
        return {
            'collection': self.collection,
            'event': self.change.name,
            'id': self.record_id,
        }


Handler = Callable[[Notification], None]


class ChangeFeed:

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subs: Dict[int, tuple] = {}

    def subscribe(self, collection: str, event_mask: Change, handler: Handler) -> int:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection!r}")
        with self._lock:
            handle = next(self._ids)
            self._subs[handle] = (collection, event_mask, handler)
        logger.debug(f"[feed-subscribe] handle={handle} collection={collection} mask={event_mask}")
        return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            self._subs.pop(handle, None)

    def publish(self, collection: str, change: Change, record_id: Optional[int] = None) -> None:
        note = Notification(collection, change, record_id)
        with self._lock:
            targets = [h for (c, mask, h) in self._subs.values() if c == collection and change & mask]
        for handler in targets:
            try:
                handler(note)
            except Exception:
                # One broken subscriber must not fail the write that triggered it
                logger.exception(f"[feed-handler-error] collection={collection} event={change.name}")
