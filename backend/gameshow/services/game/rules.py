"""Pure game rules: rounds, scoring tables, turn phases and team rotation.

Nothing here touches the database; the engine feeds these functions the
records it read and writes back whatever they decide.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from gameshow.errors import NoActiveTeams, ValidationError


class Round(str, Enum):
    EASY = 'Easy'
    MODERATE = 'Moderate'
    HARD = 'Hard'
    STAR_REVEAL = 'Star Reveal'

    @classmethod
    def parse(cls, value) -> 'Round':
        if isinstance(value, cls):
            return value
        key = str(value).replace('_', '').replace(' ', '').lower()
        for r in cls:
            if key == r.value.replace(' ', '').lower():
                return r
        raise ValidationError(f"Unknown round: {value!r}")


OPTION_KEYS = ('A', 'B', 'C', 'D')

ROUND_ORDER: List[Round] = [Round.EASY, Round.MODERATE, Round.HARD, Round.STAR_REVEAL]

POINTS_TABLES: Dict[str, Dict[Round, int]] = {
    'classic': {
        Round.EASY: 100,
        Round.MODERATE: 150,
        Round.HARD: 200,
        Round.STAR_REVEAL: 300,
    },
    'high_stakes': {
        Round.EASY: 100,
        Round.MODERATE: 250,
        Round.HARD: 500,
        Round.STAR_REVEAL: 1000,
    },
}


def points_for_round(round_, table: str = 'classic') -> int:
    try:
        points = POINTS_TABLES[table]
    except KeyError:
        raise ValidationError(f"Unknown points table: {table!r}")
    return points[Round.parse(round_)]


def next_round(round_) -> Optional[Round]:
    """Round after ``round_``, or None once Star Reveal is done."""
    idx = ROUND_ORDER.index(Round.parse(round_))
    return ROUND_ORDER[idx + 1] if idx + 1 < len(ROUND_ORDER) else None


class Phase(str, Enum):
    NO_CATEGORY = 'no_category'
    CATEGORY_SELECTED = 'category_selected'
    QUESTION_REVEALED = 'question_revealed'
    ANSWER_SHOWN = 'answer_shown'


def phase_of(session: dict) -> Phase:
    if session.get('current_question_id') is not None:
        return Phase.ANSWER_SHOWN if session.get('show_answer') else Phase.QUESTION_REVEALED
    if session.get('current_category_id') is not None:
        return Phase.CATEGORY_SELECTED
    return Phase.NO_CATEGORY


@dataclass(frozen=True)
class TurnAdvance:
    next_team_id: Optional[int]
    round: Round
    round_advanced: bool = False
    game_over: bool = False

    def to_dict(self):
        return {
            'next_team_id': self.next_team_id,
            'round': self.round.value,
            'round_advanced': self.round_advanced,
            'game_over': self.game_over,
        }


def compute_next_turn(active_team_ids: Sequence[int], current_team_id: Optional[int], current_round) -> TurnAdvance:
    """Rotate to the next active team, advancing the round on wrap-around.

    ``active_team_ids`` must already be in stable (id) order. With no current
    team the rotation starts at the first active team without counting as a
    wrap. A current team that has since been deactivated keeps its place: the
    turn goes to the next active id after it.
    """
    current_round = Round.parse(current_round)
    order = list(active_team_ids)
    if not order:
        raise NoActiveTeams()

    if current_team_id is None:
        return TurnAdvance(next_team_id=order[0], round=current_round)

    later = [team_id for team_id in order if team_id > current_team_id]
    if later:
        return TurnAdvance(next_team_id=later[0], round=current_round)

    upcoming = next_round(current_round)
    if upcoming is None:
        return TurnAdvance(next_team_id=None, round=current_round, game_over=True)
    return TurnAdvance(next_team_id=order[0], round=upcoming, round_advanced=True)
