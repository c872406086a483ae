import json

import click
from flask.cli import AppGroup

from gameshow import db
from gameshow.errors import GameError
from gameshow.services.registry import get_services
from gameshow.viewer import OperatorConsole

game_cli = AppGroup('game', help='Set up and drive the game from the command line.')

DEMO_TEAMS = ['Red Rockets', 'Blue Whales', 'Green Giants']
DEMO_QUESTIONS = [
    ('Science', 'Easy', 'What planet is known as the Red Planet?',
     {'option_a': 'Venus', 'option_b': 'Mars', 'option_c': 'Jupiter', 'option_d': 'Saturn', 'correct_option': 'B'}),
    ('Science', 'Moderate', 'What is the chemical symbol for gold?', {'answer_text': 'Au'}),
    ('History', 'Easy', 'Who was the first President of the United States?', {'answer_text': 'George Washington'}),
    ('History', 'Hard', 'In which year did the Berlin Wall fall?',
     {'option_a': '1987', 'option_b': '1989', 'option_c': '1991', 'option_d': '1993', 'correct_option': 'B'}),
    ('Geography', 'Moderate', 'What is the longest river in Africa?', {'answer_text': 'The Nile'}),
    ('Geography', 'Star Reveal', 'Which country has the most time zones?', {'answer_text': 'France'}),
]


def _console():
    services = get_services()
    console = OperatorConsole(services.aggregator, services.engine, auto_select_team=False)
    console.start()
    return console


def _echo_state(console):
    click.echo(json.dumps(console.render(), indent=2))


def _run(action):
    try:
        return action()
    except GameError as exc:
        raise click.ClickException(exc.message)


@game_cli.command('init-db')
@click.option('--drop', is_flag=True, help='Drop existing tables first.')
def init_db_command(drop):
    """Create tables and the game session row."""
    if drop:
        db.drop_all()
    db.create_all()
    get_services().store.ensure_session()
    click.echo('Database is ready.')


@game_cli.command('seed-demo')
def seed_demo_command():
    """Add a few teams, categories and questions."""
    store = get_services().store
    store.ensure_session()
    for name in DEMO_TEAMS:
        store.insert('teams', {'name': name, 'score': 0, 'is_active': True})
    category_ids = {}
    for category, difficulty, text, answer in DEMO_QUESTIONS:
        if category not in category_ids:
            category_ids[category] = store.insert('categories', {'name': category})
        store.insert('questions', dict(answer, category_id=category_ids[category], difficulty=difficulty, question_text=text))
    click.echo(f'Seeded {len(DEMO_TEAMS)} teams and {len(DEMO_QUESTIONS)} questions.')


@game_cli.command('state')
def state_command():
    """Print the composite game view."""
    _echo_state(_console())


@game_cli.command('select-team')
@click.argument('team_id', type=int)
def select_team_command(team_id):
    console = _console()
    if console.select_team(team_id) is None:
        raise click.ClickException(f'Team {team_id} not found')
    _echo_state(console)


@game_cli.command('select-round')
@click.argument('round_name')
def select_round_command(round_name):
    console = _console()
    _run(lambda: console.select_round(round_name))
    _echo_state(console)


@game_cli.command('draw-category')
def draw_category_command():
    console = _console()
    category = _run(console.draw_category)
    click.echo(f"Category: {category['name']}")


@game_cli.command('reveal')
def reveal_command():
    console = _console()
    question = _run(console.reveal_question)
    click.echo(question['question_text'])
    for key in 'ABCD':
        text = question.get(f'option_{key.lower()}')
        if text:
            click.echo(f'  {key}) {text}')


@game_cli.command('score')
@click.option('--correct/--wrong', default=True)
@click.option('--option', 'option_key', default=None, help='Multiple-choice pick (A-D) to check instead.')
def score_command(correct, option_key):
    console = _console()
    if option_key:
        result = _run(lambda: console.answer_option(option_key))
        verdict = 'Correct!' if result['is_correct'] else 'Wrong!'
        click.echo(f"{verdict} +{result['points']}")
        return
    points = _run(lambda: console.score_answer(correct))
    click.echo(f'+{points}')


@game_cli.command('next-turn')
@click.option('--force', is_flag=True, help='Skip the current team before the answer is shown.')
def next_turn_command(force):
    console = _console()
    advance = _run(lambda: console.next_turn(force=force))
    if advance.game_over:
        click.echo('Game Over! All rounds completed!')
        return
    click.echo(f'Next team: {advance.next_team_id} ({advance.round.value})')


@game_cli.command('reset')
@click.confirmation_option(prompt='Reset scores, questions and the session?')
def reset_command():
    console = _console()
    _run(console.reset_game)
    click.echo('Game Reset Successfully!')
