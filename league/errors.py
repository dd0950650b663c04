"""
Error taxonomy for league operations.

Every rejected mutation raises one of these with a message that can be
shown to the operator as-is. main.py maps them onto HTTP status codes.
"""
from typing import Optional


class LeagueError(Exception):
    """Base class for all league errors."""
    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON response."""
        result = {"detail": self.message}
        if self.field:
            result["field"] = self.field
        return result


class ValidationError(LeagueError):
    """Guard or invariant violation. Recoverable, state is untouched."""
    status_code = 400


class NotFoundError(LeagueError):
    """Referenced match, team, player or season does not exist."""
    status_code = 404


class ConflictError(LeagueError):
    """Mutation not possible in the current state (terminal match, stale version)."""
    status_code = 409


class EmptyLedgerError(ConflictError):
    """Undo requested on a match without events."""

    def __init__(self, message: str = "No events to undo"):
        super().__init__(message, field="events")


class PersistenceError(LeagueError):
    """Storage unreachable or a write failed."""
    status_code = 503
