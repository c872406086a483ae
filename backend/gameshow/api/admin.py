from flask import Blueprint, jsonify, request
from gameshow.errors import GameError, ValidationError
from gameshow.models import OPTION_KEYS
from gameshow.services.game.rules import Round
from gameshow.services.registry import get_services

admin = Blueprint('admin', __name__)

ADMIN_COLLECTIONS = ('teams', 'categories', 'questions')


@admin.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


def _text(data, key):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Please enter a {key.replace('_', ' ')}")
    return value.strip()


@admin.route('/<string:collection>', methods=['GET'])
def list_records(collection):
    if collection not in ADMIN_COLLECTIONS:
        return jsonify({'error': 'Unknown collection'}), 404
    return jsonify(get_services().store.get(collection))


@admin.route('/teams', methods=['POST'])
def add_team():
    data = request.get_json(silent=True) or {}
    store = get_services().store
    team_id = store.insert('teams', {'name': _text(data, 'name'), 'score': 0, 'is_active': True})
    return jsonify(store.get_one('teams', team_id)), 201


@admin.route('/teams/<int:team_id>', methods=['PATCH'])
def update_team(team_id):
    data = request.get_json(silent=True) or {}
    fields = {}
    if 'name' in data:
        fields['name'] = _text(data, 'name')
    if 'is_active' in data:
        if not isinstance(data['is_active'], bool):
            raise ValidationError('is_active must be true or false')
        fields['is_active'] = data['is_active']
    if not fields:
        raise ValidationError('Nothing to update')
    store = get_services().store
    store.update('teams', team_id, fields)
    return jsonify(store.get_one('teams', team_id))


@admin.route('/categories', methods=['POST'])
def add_category():
    data = request.get_json(silent=True) or {}
    store = get_services().store
    category_id = store.insert('categories', {'name': _text(data, 'name')})
    return jsonify(store.get_one('categories', category_id)), 201


@admin.route('/questions', methods=['POST'])
def add_question():
    data = request.get_json(silent=True) or {}
    store = get_services().store
    try:
        category_id = int(data.get('category_id'))
    except (TypeError, ValueError):
        raise ValidationError('Please select a Category!')
    if store.get_one('categories', category_id) is None:
        raise ValidationError(f"Category {category_id} does not exist")

    record = {
        'category_id': category_id,
        'difficulty': Round.parse(data.get('difficulty') or Round.EASY.value).value,
        'question_text': _text(data, 'question_text'),
        'answer_text': (data.get('answer_text') or '').strip() or None,
    }
    for key in OPTION_KEYS:
        record[f'option_{key.lower()}'] = (data.get(f'option_{key.lower()}') or '').strip() or None
    correct = (data.get('correct_option') or '').strip().upper() or None
    if correct is not None:
        if correct not in OPTION_KEYS or not record[f'option_{correct.lower()}']:
            raise ValidationError('correct_option must name a filled-in option')
        record['correct_option'] = correct
    if not record['answer_text'] and not correct:
        raise ValidationError('Please fill in an answer or the correct option!')

    question_id = store.insert('questions', record)
    return jsonify(store.get_one('questions', question_id)), 201


@admin.route('/<string:collection>/<int:record_id>', methods=['DELETE'])
def delete_record(collection, record_id):
    """Deleting may leave the game session pointing at a missing record."""
    if collection not in ADMIN_COLLECTIONS:
        return jsonify({'error': 'Unknown collection'}), 404
    get_services().store.delete(collection, record_id)
    return jsonify({'message': 'Deleted'}), 200
