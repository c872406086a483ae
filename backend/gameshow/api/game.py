from flask import Blueprint, jsonify, request, current_app
from gameshow.errors import GameError, ValidationError
from gameshow.services.registry import get_services

game = Blueprint('game', __name__)


@game.errorhandler(GameError)
def handle_game_error(exc):
    current_app.logger.info(f"[game-error] {exc.__class__.__name__}: {exc.message}")
    return jsonify(exc.to_dict()), exc.status_code


def _state_payload():
    view = get_services().aggregator.resync()
    if view is None:
        return None
    return view.to_dict()


def _require(data, key):
    value = data.get(key)
    if value is None or value == '':
        raise ValidationError(f"{key} is required")
    return value


def _team_id(value):
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError('team_id must be an integer')


@game.route('/state', methods=['GET'])
def get_state():
    """Composite game view, freshly re-read from the database."""
    payload = _state_payload()
    if payload is None:
        return jsonify({'error': 'Game session is not available'}), 503
    return jsonify(payload)


@game.route('/team', methods=['POST'])
def select_team():
    data = request.get_json(silent=True) or {}
    team_id = _team_id(_require(data, 'team_id'))
    team = get_services().engine.select_team(team_id)
    if team is None:
        return jsonify({'error': 'Team not found', 'state': _state_payload()}), 404
    return jsonify({'team': team, 'state': _state_payload()})


@game.route('/round', methods=['POST'])
def select_round():
    data = request.get_json(silent=True) or {}
    get_services().engine.select_round(_require(data, 'round'))
    return jsonify({'state': _state_payload()})


@game.route('/draw-category', methods=['POST'])
def draw_category():
    data = request.get_json(silent=True) or {}
    services = get_services()
    session = services.store.get_session()
    round_ = data.get('round') or session['current_round']
    team_id = _team_id(data.get('team_id', session['current_team_id']))
    category = services.engine.draw_category(round_, team_id)
    return jsonify({'category': category, 'state': _state_payload()})


@game.route('/reveal', methods=['POST'])
def reveal_question():
    data = request.get_json(silent=True) or {}
    services = get_services()
    round_ = data.get('round') or services.store.get_session()['current_round']
    question = services.engine.reveal_question(round_)
    return jsonify({'question': question, 'state': _state_payload()})


@game.route('/score', methods=['POST'])
def score_answer():
    """Operator judges the answer; used for free-text questions."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get('is_correct'), bool):
        raise ValidationError('is_correct must be true or false')
    services = get_services()
    session = services.store.get_session()
    round_ = data.get('round') or session['current_round']
    team_id = _team_id(data.get('team_id', session['current_team_id']))
    if team_id is None:
        raise ValidationError('Select a Team first!')
    points = services.engine.score_answer(round_, team_id, data['is_correct'])
    return jsonify({'points': points, 'state': _state_payload()})


@game.route('/answer', methods=['POST'])
def answer_option():
    data = request.get_json(silent=True) or {}
    result = get_services().engine.answer_option(_require(data, 'option'))
    result['state'] = _state_payload()
    return jsonify(result)


@game.route('/next-turn', methods=['POST'])
def next_turn():
    data = request.get_json(silent=True) or {}
    services = get_services()
    session = services.store.get_session()
    active = services.store.get('teams', is_active=True)
    advance = services.engine.next_turn(
        active,
        session['current_team_id'],
        session['current_round'],
        force=bool(data.get('force')),
    )
    payload = advance.to_dict()
    if advance.game_over:
        payload['message'] = 'Game Over! All rounds completed!'
    payload['state'] = _state_payload()
    return jsonify(payload)


@game.route('/reset', methods=['POST'])
def reset_game():
    get_services().engine.reset_game()
    current_app.logger.info("[reset] game reset from API")
    return jsonify({'message': 'Game Reset Successfully!', 'state': _state_payload()})
