from gameshow.viewer import DisplayViewer, OperatorConsole, Viewer


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _setup(make_team, make_category, make_question):
    a = make_team('A')
    b = make_team('B')
    x = make_category('Science')
    make_question(x, 'Easy', option_a='Venus', option_b='Mars', correct_option='B')
    return a, b, x


def test_console_auto_selects_first_active_team(store, services, make_team):
    make_team('Benched', is_active=False)
    first = make_team('A')
    console = OperatorConsole(services.aggregator, services.engine)
    console.start()
    assert store.get_session()['current_team_id'] == first
    assert console.team_id == first


def test_console_and_display_stay_in_step(store, services, make_team, make_category, make_question):
    a, b, x = _setup(make_team, make_category, make_question)
    renders = []
    display = DisplayViewer(services.aggregator, on_render=renders.append)
    console = OperatorConsole(services.aggregator, services.engine)
    display.start()
    console.start()

    category = console.draw_category()
    assert category['id'] == x
    assert console.render()['current_category_name'] == 'Science'
    assert display.render()['current_category_name'] == 'Science'

    question = console.reveal_question()
    assert console.render()['current_question']['id'] == question['id']
    assert display.render()['current_question']['id'] == question['id']
    assert not console.render()['pending']

    result = console.answer_option('B')
    assert result['is_correct']
    assert display.render()['session']['show_answer'] is True

    advance = console.next_turn()
    assert advance.next_team_id == b
    for payload in (console.render(), display.render()):
        assert payload['current_category_id'] is None
        assert payload['current_question'] is None
        assert payload['session']['current_team_id'] == b
    assert renders


def test_pending_category_shown_before_snapshot(services, make_team, make_category, make_question):
    _setup(make_team, make_category, make_question)
    console = OperatorConsole(services.aggregator, services.engine)
    console.start()
    # Simulate a write whose notification has not arrived yet
    services.aggregator.stop()
    category = console.draw_category()
    payload = console.render()
    assert payload['current_category_id'] == category['id']
    assert payload['pending'] is True
    assert payload['session']['current_category_id'] is None

    services.aggregator.start()
    services.aggregator.resync()
    assert console.render()['pending'] is False
    assert console.render()['current_category_id'] == category['id']


def test_display_countdown_resets_per_question(store, services, make_team, make_category, make_question):
    a, b, x = _setup(make_team, make_category, make_question)
    make_question(x, 'Easy', answer_text='Au')
    clock = FakeClock()
    display = DisplayViewer(services.aggregator, question_seconds=30, clock=clock)
    console = OperatorConsole(services.aggregator, services.engine)
    display.start()
    console.start()
    assert display.remaining() is None

    console.draw_category()
    console.reveal_question()
    assert display.remaining() == 30
    clock.now += 12
    assert display.render()['time_remaining'] == 18

    console.score_answer(False)
    clock.now += 5
    # Same question still on screen: keep counting
    assert display.remaining() == 13

    console.next_turn()
    assert display.remaining() is None


def test_viewer_stop_unsubscribes(store, services, make_team):
    viewer = Viewer(services.aggregator)
    viewer.start()
    viewer.stop()
    team = make_team('A')
    store.update('session', store.session_id, {'current_team_id': team})
    assert viewer.view.session['current_team_id'] is None
