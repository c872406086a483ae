"""Record store over Flask-SQLAlchemy.

Reads and writes plain dicts keyed by collection name so the game services
never hold ORM instances across commits. Every committed write publishes a
change notification; writes made inside ``atomic()`` are committed together
and published once the transaction succeeds.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from gameshow import db
from gameshow.errors import NotFoundError, StoreError, ValidationError
from gameshow.models import Category, GameSession, Question, Team
from gameshow.services.game.rules import Round
from .feed import Change, ChangeFeed

logger = logging.getLogger(__name__)

MODELS = {
    'session': GameSession,
    'teams': Team,
    'categories': Category,
    'questions': Question,
}

SESSION_DEFAULTS = {
    'current_round': Round.EASY.value,
    'current_team_id': None,
    'current_category_id': None,
    'current_question_id': None,
    'show_answer': False,
    'is_spinning': False,
}


def _model(collection: str):
    try:
        return MODELS[collection]
    except KeyError:
        raise ValidationError(f"Unknown collection: {collection!r}")


class GameStore:

    def __init__(self, feed: ChangeFeed, session_id: int = 1):
        self.feed = feed
        self.session_id = session_id
        # Transaction nesting is per request thread, like db.session
        self._local = threading.local()

    @property
    def _depth(self) -> int:
        return getattr(self._local, 'depth', 0)

    @_depth.setter
    def _depth(self, value: int) -> None:
        self._local.depth = value

    @property
    def _pending(self) -> List[tuple]:
        if not hasattr(self._local, 'pending'):
            self._local.pending = []
        return self._local.pending

    @_pending.setter
    def _pending(self, value: List[tuple]) -> None:
        self._local.pending = value

    # ---- reads ----

    def get(self, collection: str, order_by: Optional[str] = None, **filters) -> List[Dict[str, Any]]:
        model = _model(collection)
        try:
            query = model.query.filter_by(**filters)
            query = query.order_by(getattr(model, order_by or 'id'))
            return [row.to_dict() for row in query.all()]
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Read failed on {collection}: {exc}") from exc

    def get_one(self, collection: str, record_id) -> Optional[Dict[str, Any]]:
        if record_id is None:
            return None
        model = _model(collection)
        try:
            row = db.session.get(model, record_id)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Read failed on {collection}/{record_id}: {exc}") from exc
        return row.to_dict() if row else None

    def get_session(self) -> Dict[str, Any]:
        session = self.get_one('session', self.session_id)
        if session is None:
            raise NotFoundError('Game session has not been initialised')
        return session

    # ---- writes ----

    def insert(self, collection: str, record: Dict[str, Any]) -> int:
        model = _model(collection)
        try:
            row = model(**record)
            db.session.add(row)
            db.session.flush()
            record_id = row.id
        except (SQLAlchemyError, TypeError) as exc:
            db.session.rollback()
            raise StoreError(f"Insert failed on {collection}: {exc}") from exc
        self._commit(collection, Change.INSERT, record_id)
        return record_id

    def update(self, collection: str, record_id, fields: Dict[str, Any]) -> None:
        model = _model(collection)
        try:
            count = model.query.filter_by(id=record_id).update(fields, synchronize_session='fetch')
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Update failed on {collection}/{record_id}: {exc}") from exc
        if not count:
            if not self._depth:
                db.session.rollback()
            raise NotFoundError(f"{collection}/{record_id} not found")
        self._commit(collection, Change.UPDATE, record_id)

    def update_many(self, collection: str, fields: Dict[str, Any], **filters) -> int:
        model = _model(collection)
        try:
            count = model.query.filter_by(**filters).update(fields, synchronize_session='fetch')
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Bulk update failed on {collection}: {exc}") from exc
        self._commit(collection, Change.UPDATE)
        return count

    def increment(self, collection: str, record_id, field: str, amount: int) -> None:
        """Add ``amount`` to a numeric column in SQL, not read-modify-write."""
        model = _model(collection)
        column = getattr(model, field)
        self.update(collection, record_id, {column: column + amount})

    def delete(self, collection: str, record_id) -> None:
        model = _model(collection)
        try:
            count = model.query.filter_by(id=record_id).delete(synchronize_session='fetch')
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Delete failed on {collection}/{record_id}: {exc}") from exc
        if not count:
            if not self._depth:
                db.session.rollback()
            raise NotFoundError(f"{collection}/{record_id} not found")
        self._commit(collection, Change.DELETE, record_id)

    def ensure_session(self) -> Dict[str, Any]:
        """Create the singleton game_state row if it does not exist yet."""
        existing = self.get_one('session', self.session_id)
        if existing is not None:
            return existing
        self.insert('session', dict(SESSION_DEFAULTS, id=self.session_id))
        logger.info(f"[session-created] id={self.session_id}")
        return self.get_session()

    @contextmanager
    def atomic(self):
        """Commit every write in the block together, or none of them."""
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if not self._depth:
                db.session.rollback()
                self._pending = []
            raise
        self._depth -= 1
        if self._depth:
            return
        pending, self._pending = self._pending, []
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Commit failed: {exc}") from exc
        for collection, change, record_id in pending:
            self.feed.publish(collection, change, record_id)

    def _commit(self, collection: str, change: Change, record_id=None) -> None:
        if self._depth:
            self._pending.append((collection, change, record_id))
            return
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Commit failed on {collection}: {exc}") from exc
        self.feed.publish(collection, change, record_id)
