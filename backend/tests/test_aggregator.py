import threading
import time

from gameshow.errors import StoreError
from gameshow.services.feed import Change, ChangeFeed
from gameshow.services.game.aggregator import StateAggregator
from gameshow.services.store import GameStore


def test_resync_joins_session_and_records(store, aggregator, make_team, make_category, make_question):
    a = make_team('A', score=50)
    b = make_team('B', score=200)
    x = make_category('Science')
    q = make_question(x, 'Easy', text='What planet is red?')
    store.update('session', store.session_id, {
        'current_team_id': a, 'current_category_id': x, 'current_question_id': q,
    })

    view = aggregator.resync()
    assert [t['id'] for t in view.teams] == [a, b]
    assert [t['id'] for t in view.leaderboard] == [b, a]
    assert view.current_category_name == 'Science'
    assert view.current_question['id'] == q
    assert view.current_question['category_name'] == 'Science'
    assert view.points == 100
    assert view.phase.value == 'question_revealed'


def test_every_write_pushes_a_fresh_view(store, aggregator, make_team):
    seen = []
    aggregator.subscribe(seen.append)
    a = make_team('A')
    store.update('session', store.session_id, {'current_team_id': a})
    assert seen
    assert seen[-1].session['current_team_id'] == a
    assert aggregator.snapshot() is seen[-1]


def test_dangling_references_degrade(store, aggregator, make_category, make_question):
    x = make_category('X')
    q = make_question(x, 'Easy')
    store.update('session', store.session_id, {'current_category_id': x, 'current_question_id': q})
    store.delete('questions', q)
    store.delete('categories', x)

    view = aggregator.resync()
    assert view.current_category_name == 'Unknown'
    assert view.current_question is None


def test_question_from_deleted_category_gets_empty_name(store, aggregator, make_category, make_question):
    x = make_category('X')
    y = make_category('Y')
    q = make_question(x, 'Easy')
    store.update('session', store.session_id, {'current_category_id': y, 'current_question_id': q})
    store.delete('categories', x)

    view = aggregator.resync()
    assert view.current_category_name == 'Y'
    assert view.current_question['category_name'] == ''


def test_no_category_means_no_name(aggregator):
    view = aggregator.resync()
    assert view.current_category_name is None
    assert view.current_question is None


def test_session_read_failure_keeps_previous_view(store, aggregator, monkeypatch):
    before = aggregator.resync()

    def broken():
        raise StoreError('connection lost')

    monkeypatch.setattr(store, 'get_session', broken)
    assert aggregator.resync() is before


def test_missing_session_aborts_resync(flask_app, store):
    feed = ChangeFeed()
    other = StateAggregator(GameStore(feed, session_id=99), feed)
    assert other.resync() is None


def test_team_read_failure_substitutes_empty(store, aggregator, monkeypatch, make_team):
    make_team('A')
    original = store.get

    def flaky(collection, **kwargs):
        if collection == 'teams':
            raise StoreError('timeout')
        return original(collection, **kwargs)

    monkeypatch.setattr(store, 'get', flaky)
    view = aggregator.resync()
    assert view.teams == []
    assert view.session['id'] == store.session_id


def test_overlapping_resyncs_are_coalesced(store, aggregator, make_team):
    make_team('A')
    calls = []
    original = store.get_session

    def counting():
        calls.append(1)
        if len(calls) == 1:
            # Notifications arriving mid-resync
            aggregator.resync()
            aggregator.resync()
            aggregator.resync()
        return original()

    store.get_session = counting
    try:
        aggregator.resync()
    finally:
        del store.get_session
    # One pass plus a single follow-up for everything that came in during it
    assert len(calls) == 2


def test_duplicate_notifications_are_idempotent(store, aggregator, make_team):
    make_team('A')
    first = aggregator.resync().to_dict()
    store.feed.publish('teams', Change.UPDATE)
    store.feed.publish('teams', Change.UPDATE)
    second = aggregator.snapshot().to_dict()
    assert first == second


def test_stop_unsubscribes_from_feed(store, aggregator, make_team):
    seen = []
    aggregator.subscribe(seen.append)
    aggregator.stop()
    make_team('A')
    assert seen == []
    aggregator.start()
    make_team('B')
    assert seen


class SlowSessionStore:
    """Blocks the first session read until released."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()

    def get_session(self):
        self.entered.set()
        self.release.wait(5)
        return {
            'id': 1, 'current_round': 'Easy', 'current_team_id': None, 'current_category_id': None,
            'current_question_id': None, 'show_answer': False, 'is_spinning': False,
        }

    def get(self, collection, **filters):
        return []

    def get_one(self, collection, record_id):
        return None


def test_concurrent_first_resync_waits_for_a_view():
    slow = SlowSessionStore()
    aggregator = StateAggregator(slow, ChangeFeed())
    first = threading.Thread(target=aggregator.resync)
    first.start()
    assert slow.entered.wait(5)

    results = []
    second = threading.Thread(target=lambda: results.append(aggregator.resync()))
    second.start()
    for _ in range(100):
        if aggregator._dirty:
            break
        time.sleep(0.01)

    slow.release.set()
    first.join(5)
    second.join(5)
    assert results and results[0] is not None
    assert results[0].session['id'] == 1
