from typing import List, Optional


class TournamentError(Exception):
    """Base class for errors raised by tournament commands."""


class ScoreValidationError(TournamentError):
    """A submitted score pair is not a legal completed match."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class SetupError(TournamentError):
    """Setup was rejected: bad mode, target, player count or missing names."""

    def __init__(self, message: str, missing: Optional[List[int]] = None):
        super().__init__(message)
        self.message = message
        self.missing = missing or []


class StructuralInconsistency(TournamentError):
    """A command was issued in a state that does not allow it."""


class UnknownReference(TournamentError):
    """A group, round or match reference does not exist."""
