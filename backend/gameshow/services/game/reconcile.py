"""Optimistic values held by one viewer until the store catches up.

A ``Slot`` pairs the value this viewer just wrote (``pending``) with the
last value seen in a snapshot (``authoritative``). ``merge`` is the only
rule for combining them:

- nothing pending: show the snapshot;
- snapshot equals the pending value: the write landed, drop it;
- snapshot moved to some other value: someone else superseded it, drop it;
- snapshot unchanged: the write is still in flight, keep showing it.

Pending values never outlive the turn they were made in.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Slot:
    pending: Any = None
    authoritative: Any = None

    @property
    def value(self):
        return self.pending if self.pending is not None else self.authoritative

    @property
    def is_pending(self) -> bool:
        return self.pending is not None


def propose(slot: Slot, value) -> Slot:
    if value == slot.authoritative:
        return Slot(None, value)
    return replace(slot, pending=value)


def merge(slot: Slot, incoming) -> Slot:
    if slot.pending is None:
        return Slot(None, incoming)
    if incoming == slot.pending or incoming != slot.authoritative:
        return Slot(None, incoming)
    return Slot(slot.pending, incoming)


@dataclass(frozen=True)
class ViewerState:
    """Category and question slots for one viewer, scoped to one turn."""
    category: Slot = Slot()
    question: Slot = Slot()
    turn: Optional[Tuple[Any, Any]] = None

    def propose_category(self, category_id) -> 'ViewerState':
        # A new category means any question on screen is stale
        return replace(self, category=propose(self.category, category_id), question=Slot(None, self.question.authoritative))

    def propose_question(self, question_id) -> 'ViewerState':
        return replace(self, question=propose(self.question, question_id))

    def apply(self, session: dict) -> 'ViewerState':
        turn = (session.get('current_team_id'), session.get('current_round'))
        category_id = session.get('current_category_id')
        question_id = session.get('current_question_id')
        if self.turn is not None and turn != self.turn:
            return ViewerState(Slot(None, category_id), Slot(None, question_id), turn)
        return ViewerState(merge(self.category, category_id), merge(self.question, question_id), turn)

    def cleared(self) -> 'ViewerState':
        return ViewerState(turn=None)

    @property
    def category_id(self):
        return self.category.value

    @property
    def question_id(self):
        return self.question.value

    @property
    def has_pending(self) -> bool:
        return self.category.is_pending or self.question.is_pending
