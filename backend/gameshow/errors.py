"""Error types raised by the game services.

Every error carries the HTTP status the API layer answers with, so routes
and socket handlers can report failures without knowing which service
raised them. None of these are fatal: the game stays usable for the next
operator action.
"""


class GameError(Exception):
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {'error': self.message, 'type': self.__class__.__name__}


class ValidationError(GameError):
    """Invalid input or game state; nothing was written."""
    status_code = 400


class InvalidTransition(ValidationError):
    """That action is not allowed at this point of the turn."""


class NoActiveTeams(ValidationError):
    """No active teams!"""


class NotFoundError(GameError):
    """Record not found."""
    status_code = 404


class ExhaustedPoolError(GameError):
    """Nothing left to draw."""
    status_code = 409


class NoCategoriesAvailable(ExhaustedPoolError):
    """No questions left in this round!"""


class NoQuestionsAvailable(ExhaustedPoolError):
    """No unused questions left for this category and round."""


class StoreError(GameError):
    """Database error."""
    status_code = 500
