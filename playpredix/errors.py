"""
Domain errors for PlayPredix.

Every error is recoverable at the calling boundary. The API blueprints turn
them into JSON responses through the handler registered in create_app().
"""


class PlayPredixError(Exception):
    """Base class for all domain errors"""

    status_code = 400
    code = "error"

    def __init__(self, message=None, **details):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__
        self.details = details

    def to_dict(self):
        data = {"error": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


class NotFound(PlayPredixError):
    """Referenced record does not exist"""

    status_code = 404
    code = "not_found"


class InvalidScope(PlayPredixError):
    """League does not belong to the requested competition"""

    status_code = 422
    code = "invalid_scope"


class PickLocked(PlayPredixError):
    """Picks can no longer be made for this game or question"""

    status_code = 409
    code = "pick_locked"


class ValidationError(PlayPredixError):
    """Invalid or missing input"""

    status_code = 400
    code = "validation_error"
