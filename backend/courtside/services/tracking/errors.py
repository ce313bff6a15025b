"""Errors raised by the tracking core.

All of them are recoverable by the caller: the request is rejected as a
whole and nothing is written.
"""


class TrackingError(Exception):
    status_code = 400

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message, 'kind': type(self).__name__}
        if self.details:
            payload['details'] = self.details
        return payload


class MalformedEvent(TrackingError):
    """Event fields do not fit the shape required by its event type."""
    status_code = 400


class InvalidGameSetup(TrackingError):
    """Team names, roster or initial possession are not usable."""
    status_code = 400


class InvalidTransition(TrackingError):
    """Well-formed event that cannot follow the current possession state."""
    status_code = 409


class UnknownPlayerOrGame(TrackingError):
    status_code = 404


class GameNotActive(TrackingError):
    status_code = 409
