from dataclasses import dataclass
from typing import Any, Optional

from flask import current_app

from .feed import ChangeFeed
from .game.aggregator import StateAggregator
from .game.engine import TurnEngine
from .game.rules import POINTS_TABLES
from .store import GameStore


@dataclass
class GameServices:
    feed: ChangeFeed
    store: GameStore
    aggregator: StateAggregator
    engine: TurnEngine
    # Shared projector view, attached with the Socket.IO handlers
    display: Optional[Any] = None


def init_services(app) -> GameServices:
    """Build the per-app store, feed, aggregator and engine."""
    table = app.config.get('POINTS_TABLE', 'classic')
    if table not in POINTS_TABLES:
        raise ValueError(f"POINTS_TABLE must be one of {sorted(POINTS_TABLES)}, got {table!r}")

    feed = ChangeFeed()
    store = GameStore(feed, session_id=int(app.config.get('SESSION_ID', 1)))
    aggregator = StateAggregator(store, feed, points_table=table)
    engine = TurnEngine(
        store,
        points_table=table,
        sync_delay_ms=int(app.config.get('SYNC_DELAY_MS', 0)),
    )
    aggregator.start()
    services = GameServices(feed=feed, store=store, aggregator=aggregator, engine=engine)
    app.extensions['gameshow'] = services
    return services


def get_services() -> GameServices:
    return current_app.extensions['gameshow']
