from flask import current_app
from flask_socketio import join_room, leave_room, emit
from gameshow import socketio
from gameshow.services.feed import COLLECTIONS, Change
from gameshow.services.registry import get_services
from gameshow.viewer import DisplayViewer

NAMESPACE = '/ws'
GAME_ROOM = 'game'
# Projector screens get the display render, countdown included
DISPLAY_ROOM = 'display'


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    current_app.logger.debug("[ws-disconnect]")


def handle_join_game(data=None):
    """Join the game room; a (re)joining viewer gets a full resync right away."""
    role = (data or {}).get('role') or 'display'
    room = DISPLAY_ROOM if role == 'display' else GAME_ROOM
    join_room(room)
    emit('joined', {'room': room, 'role': role})
    services = get_services()
    view = services.aggregator.resync()
    if view is None:
        emit('error', {'message': 'Game session is not available yet'})
    elif room == DISPLAY_ROOM:
        emit('game_state', services.display.render())
    else:
        emit('game_state', view.to_dict())


def handle_leave_game(data=None):
    leave_room(GAME_ROOM)
    leave_room(DISPLAY_ROOM)
    emit('left', {'room': GAME_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def _relay_change(note):
    # Use socketio.emit since this runs from whichever request made the write
    for room in (GAME_ROOM, DISPLAY_ROOM):
        socketio.emit('state_update', note.to_dict(), to=room, namespace=NAMESPACE)


def _push_view(view):
    socketio.emit('game_state', view.to_dict(), to=GAME_ROOM, namespace=NAMESPACE)


def _push_display(payload):
    socketio.emit('game_state', payload, to=DISPLAY_ROOM, namespace=NAMESPACE)


def register_socketio_handlers(services, question_seconds: int = 30, testing: bool = False) -> None:
    """Register Socket.IO event handlers and bridge the game services to them.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('disconnect', handle_disconnect, namespace=ns)
        socketio.on_event('join_game', handle_join_game, namespace=ns)
        socketio.on_event('leave_game', handle_leave_game, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)

    # Raw change notifications for clients that resync themselves,
    # composite snapshots for clients that just render
    for collection in COLLECTIONS:
        services.feed.subscribe(collection, Change.ALL, _relay_change)
    services.aggregator.subscribe(_push_view)

    # One countdown for every projector, restarted on each new question
    services.display = DisplayViewer(services.aggregator, question_seconds=question_seconds, on_render=_push_display)
    services.display.start(resync=False)
