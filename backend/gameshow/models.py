from gameshow import db
from gameshow.services.game.rules import OPTION_KEYS, Round


class GameSession(db.Model):
    __tablename__ = 'game_state'
    id = db.Column(db.Integer, primary_key=True)
    current_round = db.Column(db.String(32), nullable=False, default=Round.EASY.value)
    # Plain integer ids, no FK: deleted teams/categories/questions may stay referenced
    current_team_id = db.Column(db.Integer, nullable=True)
    current_category_id = db.Column(db.Integer, nullable=True)
    current_question_id = db.Column(db.Integer, nullable=True)
    show_answer = db.Column(db.Boolean, default=False, nullable=False)
    is_spinning = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'current_round': self.current_round,
            'current_team_id': self.current_team_id,
            'current_category_id': self.current_category_id,
            'current_question_id': self.current_question_id,
            'show_answer': bool(self.show_answer),
            'is_spinning': bool(self.is_spinning),
        }


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'is_active': bool(self.is_active),
        }


class Category(db.Model):
    __tablename__ = 'category'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, nullable=False, index=True)
    difficulty = db.Column(db.String(32), nullable=False, default=Round.EASY.value, index=True)
    question_text = db.Column(db.Text, nullable=False)
    answer_text = db.Column(db.Text, nullable=True)
    option_a = db.Column(db.Text, nullable=True)
    option_b = db.Column(db.Text, nullable=True)
    option_c = db.Column(db.Text, nullable=True)
    option_d = db.Column(db.Text, nullable=True)
    correct_option = db.Column(db.String(1), nullable=True)
    is_used = db.Column(db.Boolean, default=False, nullable=False, index=True)

    @property
    def options(self):
        return {k: getattr(self, f'option_{k.lower()}') for k in OPTION_KEYS}

    @property
    def canonical_answer(self):
        """Free-text answer, else the text of the correct option."""
        if self.answer_text:
            return self.answer_text
        if self.correct_option:
            return self.options.get(self.correct_option.upper())
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'category_id': self.category_id,
            'difficulty': self.difficulty,
            'question_text': self.question_text,
            'answer_text': self.answer_text,
            'option_a': self.option_a,
            'option_b': self.option_b,
            'option_c': self.option_c,
            'option_d': self.option_d,
            'correct_option': self.correct_option,
            'canonical_answer': self.canonical_answer,
            'is_used': bool(self.is_used),
        }
