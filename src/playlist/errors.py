"""
Playlist engine exceptions.

The engine prefers silent no-ops for navigation misuse (out-of-range
go_to_index, reading past completion). These exceptions cover the cases
that would otherwise corrupt the cursor or the playlist.
"""


class PlaylistError(Exception):
    """Base class for playlist engine errors."""
    pass


class InvalidDecisionError(PlaylistError):
    """Raised when a decision cannot be applied to the current session state."""

    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(f"Invalid decision for current state ({action}): {reason}")


class CorruptSessionError(PlaylistError):
    """Raised when a persisted session fails validation on restore."""
    pass
