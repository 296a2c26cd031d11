"""
Error taxonomy for route handlers.

Every error carries an HTTP status and a German user-facing message. Handlers
raise these; the exception handlers registered in marvin.main turn them into
the response envelope {"success": false, "error": ...}.
"""


class MarvinError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    default_message: str = "Interner Serverfehler"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(MarvinError):
    """Missing, invalid or expired session token."""

    status_code = 401
    default_message = "Nicht authentifiziert"


class ForbiddenError(MarvinError):
    """Authenticated, but not allowed (admin endpoints)."""

    status_code = 403
    default_message = "Keine Berechtigung"


class NotFoundError(MarvinError):
    """Resource absent or not owned by the caller."""

    status_code = 404
    default_message = "Nicht gefunden"


class ValidationError(MarvinError):
    """Required field missing or malformed input."""

    status_code = 400
    default_message = "Ungültige Anfrage"


class UpstreamError(MarvinError):
    """The database, storage or model API failed."""

    status_code = 500
    default_message = "Externer Dienst nicht erreichbar"


class InternalError(MarvinError):
    """Uncaught failure inside a handler."""

    status_code = 500
    default_message = "Interner Serverfehler"
