"""
Error taxonomy for the check-in service.
Routers catch PresenceError and turn it into {"success": false, "message": ...}.
"""


class PresenceError(Exception):
    """Base class; str(exc) is the message shown to the scanner app."""

    message = "Request failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)


class MemberNotFound(PresenceError):
    message = "User not found"


class InvalidInput(PresenceError):
    message = "Invalid parameters"


class ActionConflict(PresenceError):
    message = "Requested action does not match the member's current state"


class StoreUnavailable(PresenceError):
    message = "Store unavailable"
