"""Composite game view, rebuilt from the store on every change.

The aggregator never patches its view incrementally: each notification
triggers a full re-read, so duplicated or reordered notifications settle on
whatever the store holds last. Resyncs that arrive while one is running are
folded into a single follow-up pass.
"""

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from gameshow.errors import NotFoundError, StoreError
from gameshow.services.feed import COLLECTIONS, Change, ChangeFeed
from .rules import phase_of, points_for_round

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = 'Unknown'


@dataclass
class GameView:
    session: dict
    teams: List[dict] = field(default_factory=list)
    categories: List[dict] = field(default_factory=list)
    current_question: Optional[dict] = None
    current_category_name: Optional[str] = None
    points: int = 0

    @property
    def phase(self):
        return phase_of(self.session)

    @property
    def active_teams(self) -> List[dict]:
        return [t for t in self.teams if t.get('is_active', True)]

    @property
    def leaderboard(self) -> List[dict]:
        return sorted(self.teams, key=lambda t: (-t['score'], t['id']))

    def to_dict(self):
        return {
            'session': self.session,
            'teams': self.teams,
            'leaderboard': self.leaderboard,
            'categories': self.categories,
            'current_question': self.current_question,
            'current_category_name': self.current_category_name,
            'phase': self.phase.value,
            'points': self.points,
        }


Listener = Callable[[GameView], None]


class StateAggregator:

    def __init__(self, store, feed: ChangeFeed, points_table: str = 'classic'):
        self.store = store
        self.feed = feed
        self.points_table = points_table
        self._view: Optional[GameView] = None
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._running = False
        self._owner = None
        self._dirty = False
        self._ids = itertools.count(1)
        self._listeners: Dict[int, Listener] = {}
        self._feed_handles: List[int] = []

    def start(self) -> None:
        """Watch every collection; any insert, update or delete triggers a resync."""
        if self._feed_handles:
            return
        for collection in COLLECTIONS:
            self._feed_handles.append(self.feed.subscribe(collection, Change.ALL, self._on_change))

    def stop(self) -> None:
        for handle in self._feed_handles:
            self.feed.unsubscribe(handle)
        self._feed_handles = []

    def subscribe(self, listener: Listener) -> int:
        with self._lock:
            handle = next(self._ids)
            self._listeners[handle] = listener
        return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            self._listeners.pop(handle, None)

    def snapshot(self) -> Optional[GameView]:
        return self._view

    def _on_change(self, note) -> None:
        logger.debug(f"[aggregator-notify] collection={note.collection} event={note.change.name}")
        self.resync()

    def resync(self) -> Optional[GameView]:
        """Re-read everything and publish the result to listeners.

        Returns the latest view, which may be the previous one when the
        session could not be read. A caller from another thread that arrives
        before any view exists waits for the running pass instead.
        """
        with self._lock:
            if self._running:
                self._dirty = True
                if self._view is None and self._owner != threading.get_ident():
                    self._idle.wait_for(lambda: not self._running)
                return self._view
            self._running = True
            self._owner = threading.get_ident()
        try:
            while True:
                with self._lock:
                    self._dirty = False
                view = self._read()
                if view is not None:
                    self._view = view
                    self._publish(view)
                with self._lock:
                    if not self._dirty:
                        break
        finally:
            with self._lock:
                self._running = False
                self._owner = None
                self._idle.notify_all()
        return self._view

    def _publish(self, view: GameView) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(view)
            except Exception:
                logger.exception("[aggregator-listener-error]")

    def _read(self) -> Optional[GameView]:
        try:
            session = self.store.get_session()
        except (StoreError, NotFoundError) as exc:
            # Without the session the join is meaningless; wait for the next notification
            logger.warning(f"[resync-abort] session unreadable: {exc}")
            return None

        try:
            teams = self.store.get('teams')
        except StoreError as exc:
            logger.warning(f"[resync-degraded] teams unreadable: {exc}")
            teams = []
        try:
            categories = self.store.get('categories')
        except StoreError as exc:
            logger.warning(f"[resync-degraded] categories unreadable: {exc}")
            categories = []
        names = {c['id']: c['name'] for c in categories}

        category_name = None
        if session.get('current_category_id') is not None:
            category_name = names.get(session['current_category_id'], UNKNOWN_CATEGORY)

        question = None
        if session.get('current_question_id') is not None:
            try:
                question = self.store.get_one('questions', session['current_question_id'])
            except StoreError as exc:
                logger.warning(f"[resync-degraded] question unreadable: {exc}")
            if question is not None:
                question = dict(question, category_name=names.get(question['category_id'], ''))

        return GameView(
            session=session,
            teams=teams,
            categories=categories,
            current_question=question,
            current_category_name=category_name,
            points=points_for_round(session['current_round'], self.points_table),
        )
