"""Viewer-side state: what one console or display shows.

A viewer subscribes to the aggregator, keeps its own ``ViewerState`` of
optimistic values, and renders the merge of both. The operator console is a
viewer that also drives the turn engine.
"""

import logging
import time
from typing import Callable, Optional

from gameshow.services.game.aggregator import GameView
from gameshow.services.game.reconcile import ViewerState
from gameshow.services.game.rules import TurnAdvance

logger = logging.getLogger(__name__)


class Viewer:

    def __init__(self, aggregator, on_render: Optional[Callable[[dict], None]] = None):
        self.aggregator = aggregator
        self.on_render = on_render
        self.state = ViewerState()
        self.view: Optional[GameView] = None
        self._pending_question = None
        self._handle = None

    def start(self, resync: bool = True) -> Optional[dict]:
        """Subscribe and do a full resync, as after any (re)connect.

        With ``resync=False`` the viewer only waits for the next snapshot.
        """
        if self._handle is None:
            self._handle = self.aggregator.subscribe(self._on_snapshot)
        if not resync:
            return self.render()
        view = self.aggregator.resync()
        if view is not None and self.view is not view:
            self._on_snapshot(view)
        return self.render()

    def stop(self) -> None:
        if self._handle is not None:
            self.aggregator.unsubscribe(self._handle)
            self._handle = None

    def _on_snapshot(self, view: GameView) -> None:
        self.view = view
        self.state = self.state.apply(view.session)
        self._emit()

    def _emit(self) -> None:
        if self.on_render is not None:
            self.on_render(self.render())

    def _category(self, category_id):
        if category_id is None or self.view is None:
            return None
        for c in self.view.categories:
            if c['id'] == category_id:
                return c
        return {'id': category_id, 'name': 'Unknown'}

    def _question(self, question_id):
        if question_id is None or self.view is None:
            return None
        current = self.view.current_question
        if current is not None and current['id'] == question_id:
            return current
        pending = self._pending_question
        if pending is not None and pending['id'] == question_id:
            return pending
        return None

    def render(self) -> Optional[dict]:
        """The authoritative view with this viewer's optimistic values on top."""
        if self.view is None:
            return None
        payload = self.view.to_dict()
        category = self._category(self.state.category_id)
        payload['current_category_id'] = self.state.category_id
        payload['current_category_name'] = category['name'] if category else None
        payload['current_question'] = self._question(self.state.question_id)
        payload['pending'] = self.state.has_pending
        return payload


class DisplayViewer(Viewer):
    """Read-only projector view with a cosmetic per-question countdown."""

    def __init__(self, aggregator, question_seconds: int = 30, clock=time.monotonic, on_render=None):
        super().__init__(aggregator, on_render=on_render)
        self.question_seconds = question_seconds
        self.clock = clock
        self._timer_question_id = None
        self._deadline = None

    def _on_snapshot(self, view: GameView) -> None:
        question = view.current_question
        question_id = question['id'] if question else None
        if question_id != self._timer_question_id:
            self._timer_question_id = question_id
            self._deadline = self.clock() + self.question_seconds if question_id is not None else None
        super()._on_snapshot(view)

    def remaining(self) -> Optional[int]:
        if self._deadline is None:
            return None
        return max(0, int(round(self._deadline - self.clock())))

    def render(self) -> Optional[dict]:
        payload = super().render()
        if payload is not None:
            payload['question_seconds'] = self.question_seconds
            payload['time_remaining'] = self.remaining()
        return payload


class OperatorConsole(Viewer):
    """Operator controls: every action goes through the turn engine.

    Drawn categories and questions show up here immediately as pending
    values; ``next_turn`` and ``reset_game`` drop them unconditionally.
    """

    def __init__(self, aggregator, engine, on_render=None, auto_select_team: bool = True):
        super().__init__(aggregator, on_render=on_render)
        self.engine = engine
        self.auto_select_team = auto_select_team

    def _on_snapshot(self, view: GameView) -> None:
        super()._on_snapshot(view)
        if self.auto_select_team and view.session.get('current_team_id') is None and view.active_teams:
            first = view.active_teams[0]
            logger.info(f"[console-auto-team] team={first['id']}")
            self.engine.select_team(first['id'])

    @property
    def round(self):
        return self.view.session['current_round'] if self.view else None

    @property
    def team_id(self):
        return self.view.session.get('current_team_id') if self.view else None

    def select_team(self, team_id):
        return self.engine.select_team(team_id)

    def select_round(self, round_):
        self.state = self.state.cleared()
        return self.engine.select_round(round_)

    def draw_category(self) -> dict:
        category = self.engine.draw_category(self.round, self.team_id)
        self.state = self.state.propose_category(category['id'])
        self._emit()
        return category

    def reveal_question(self) -> dict:
        question = self.engine.reveal_question(self.round)
        self._pending_question = question
        self.state = self.state.propose_question(question['id'])
        self._emit()
        return question

    def score_answer(self, is_correct: bool) -> int:
        return self.engine.score_answer(self.round, self.team_id, is_correct)

    def answer_option(self, option_key: str) -> dict:
        return self.engine.answer_option(option_key)

    def next_turn(self, force: bool = False) -> TurnAdvance:
        self.state = self.state.cleared()
        self._pending_question = None
        active = self.view.active_teams if self.view else []
        return self.engine.next_turn(active, self.team_id, self.round, force=force)

    def reset_game(self) -> dict:
        self.state = self.state.cleared()
        self._pending_question = None
        return self.engine.reset_game()
