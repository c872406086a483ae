"""Turn engine: every write that changes the state of the game.

Each operation reads the authoritative session first, rejects anything out
of turn order before writing, and returns what it decided. The per-turn
flow is NoCategory -> CategorySelected -> QuestionRevealed -> AnswerShown,
and next_turn goes back to NoCategory (or reports game over).
"""

import logging
import random
import time
from typing import Iterable, Optional

from gameshow.errors import (
    InvalidTransition,
    NoCategoriesAvailable,
    NoQuestionsAvailable,
    NotFoundError,
    ValidationError,
)
from gameshow.services.store import SESSION_DEFAULTS, GameStore
from .rules import OPTION_KEYS, Phase, Round, TurnAdvance, compute_next_turn, phase_of, points_for_round

logger = logging.getLogger(__name__)

TURN_CLEARED = {
    'current_category_id': None,
    'current_question_id': None,
    'show_answer': False,
}


class TurnEngine:

    def __init__(self, store: GameStore, points_table: str = 'classic', sync_delay_ms: int = 0, rng=None):
        self.store = store
        self.points_table = points_table
        self.sync_delay_ms = sync_delay_ms
        self.rng = rng or random.Random()

    # ---- helpers ----

    def _session(self) -> dict:
        return self.store.get_session()

    def _require_phase(self, session: dict, *allowed: Phase) -> Phase:
        phase = phase_of(session)
        if phase not in allowed:
            raise InvalidTransition(f"Not allowed while the turn is at '{phase.value}'")
        return phase

    def _require_round(self, session: dict, round_) -> Round:
        round_ = Round.parse(round_)
        if session['current_round'] != round_.value:
            raise ValidationError(
                f"Round {round_.value} requested but the game is in {session['current_round']}"
            )
        return round_

    def _settle(self) -> None:
        if self.sync_delay_ms > 0:
            time.sleep(self.sync_delay_ms / 1000.0)

    def points_for(self, round_) -> int:
        return points_for_round(round_, self.points_table)

    # ---- operations ----

    def select_team(self, team_id) -> Optional[dict]:
        """Point the session at ``team_id``; no-op when the team does not exist."""
        team = self.store.get_one('teams', team_id)
        if team is None:
            logger.info(f"[select-team-skip] team={team_id} not found")
            return None
        self.store.update('session', self.store.session_id, {'current_team_id': team['id']})
        logger.info(f"[select-team] team={team['id']}")
        return team

    def select_round(self, round_) -> dict:
        round_ = Round.parse(round_)
        session = self._session()
        self._require_phase(session, Phase.NO_CATEGORY, Phase.CATEGORY_SELECTED)
        fields = dict(TURN_CLEARED, current_round=round_.value)
        self.store.update('session', self.store.session_id, fields)
        logger.info(f"[select-round] {session['current_round']} -> {round_.value}")
        return dict(session, **fields)

    def draw_category(self, round_, team_id) -> dict:
        """Randomly pick a category that still has unused questions at ``round_``."""
        if team_id is None:
            raise ValidationError('Select a Team first!')
        if self.store.get_one('teams', team_id) is None:
            raise ValidationError(f"Team {team_id} does not exist")
        session = self._session()
        round_ = self._require_round(session, round_)
        self._require_phase(session, Phase.NO_CATEGORY, Phase.CATEGORY_SELECTED)

        unused = self.store.get('questions', difficulty=round_.value, is_used=False)
        with_questions = {q['category_id'] for q in unused}
        eligible = [c for c in self.store.get('categories') if c['id'] in with_questions]
        if not eligible:
            raise NoCategoriesAvailable()

        category = self.rng.choice(eligible)
        self.store.update('session', self.store.session_id, dict(TURN_CLEARED, current_category_id=category['id']))
        logger.info(
            f"[draw-category] round={round_.value} team={team_id} category={category['id']} eligible={len(eligible)}"
        )
        return category

    def reveal_question(self, round_) -> dict:
        """Draw an unused question from the selected category and mark it used.

        On an empty pool the category selection is cleared so the operator
        can draw again.
        """
        session = self._session()
        round_ = self._require_round(session, round_)
        if session.get('current_category_id') is None:
            raise ValidationError('No category selected! Pick a category first.')
        self._require_phase(session, Phase.CATEGORY_SELECTED)
        category_id = session['current_category_id']

        pool = self.store.get('questions', category_id=category_id, difficulty=round_.value, is_used=False)
        if not pool:
            self.store.update('session', self.store.session_id, TURN_CLEARED)
            logger.info(f"[reveal-exhausted] round={round_.value} category={category_id}")
            raise NoQuestionsAvailable()

        question = self.rng.choice(pool)
        with self.store.atomic():
            self.store.update('session', self.store.session_id, {
                'current_question_id': question['id'],
                'show_answer': False,
            })
            self.store.update('questions', question['id'], {'is_used': True})
        logger.info(f"[reveal-question] round={round_.value} category={category_id} question={question['id']}")
        self._settle()
        return dict(question, is_used=True)

    def score_answer(self, round_, team_id, is_correct: bool) -> int:
        """Award the round's points when correct and reveal the answer.

        The score increment and the reveal flag are separate commits.
        Returns the points awarded.
        """
        session = self._session()
        round_ = self._require_round(session, round_)
        self._require_phase(session, Phase.QUESTION_REVEALED)
        if self.store.get_one('teams', team_id) is None:
            raise NotFoundError(f"Team {team_id} not found")

        points = self.points_for(round_) if is_correct else 0
        if points:
            self.store.increment('teams', team_id, 'score', points)
        self.store.update('session', self.store.session_id, {'show_answer': True})
        logger.info(f"[score] round={round_.value} team={team_id} correct={bool(is_correct)} points={points}")
        return points

    def answer_option(self, option_key: str) -> dict:
        """Check a multiple-choice pick for the current question and score it."""
        key = (option_key or '').strip().upper()
        if key not in OPTION_KEYS:
            raise ValidationError(f"Option must be one of {', '.join(OPTION_KEYS)}")
        session = self._session()
        self._require_phase(session, Phase.QUESTION_REVEALED)
        question = self.store.get_one('questions', session['current_question_id'])
        if question is None:
            raise NotFoundError('The current question no longer exists')
        if not question.get('correct_option'):
            raise ValidationError('The current question has no options; score it manually')
        if session.get('current_team_id') is None:
            raise ValidationError('Select a Team first!')

        is_correct = key == question['correct_option'].upper()
        points = self.score_answer(session['current_round'], session['current_team_id'], is_correct)
        return {
            'selected_option': key,
            'correct_option': question['correct_option'].upper(),
            'is_correct': is_correct,
            'points': points,
        }

    def next_turn(self, active_teams: Iterable, current_team_id, current_round, force: bool = False) -> TurnAdvance:
        """Hand the turn to the next active team, advancing the round on wrap.

        ``active_teams`` are team dicts or ids. Without ``force`` the answer
        must have been shown first. Game over performs no writes.
        """
        ids = sorted(t['id'] if isinstance(t, dict) else t for t in active_teams)
        session = self._session()
        self._require_round(session, current_round)
        if not force:
            self._require_phase(session, Phase.ANSWER_SHOWN)

        advance = compute_next_turn(ids, current_team_id, current_round)
        if advance.game_over:
            logger.info(f"[game-over] round={advance.round.value} team={current_team_id}")
            return advance

        fields = dict(TURN_CLEARED, current_team_id=advance.next_team_id, current_round=advance.round.value)
        self.store.update('session', self.store.session_id, fields)
        logger.info(
            f"[next-turn] team={current_team_id} -> {advance.next_team_id} round={advance.round.value} advanced={advance.round_advanced}"
        )
        return advance

    def reset_game(self) -> dict:
        """Zero all scores, return every question to the pool, reset the session."""
        with self.store.atomic():
            self.store.update_many('teams', {'score': 0})
            self.store.update_many('questions', {'is_used': False})
            self.store.update('session', self.store.session_id, dict(SESSION_DEFAULTS))
        logger.info("[reset] scores zeroed, questions unused, session reset")
        return self._session()
