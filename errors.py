"""
errors.py

Error types surfaced by the HTTP API.

Each error carries the HTTP status code it maps to; `app.py` renders them as
`{"ok": false, "error": <message>}`.
"""


class WebhookAppError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(WebhookAppError):
    """Missing or malformed request fields."""

    status_code = 400


class NotFound(WebhookAppError):
    """Referenced config does not exist."""

    status_code = 404


class UpstreamError(WebhookAppError):
    """Outbound relay failed at the network / transport level."""

    status_code = 502
