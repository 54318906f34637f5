class UploadRelayError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(UploadRelayError):
    """Malformed or missing request parts; the caller can fix these."""

    status_code = 400


class FileTooLargeError(ValidationError):
    status_code = 413


class AuthError(UploadRelayError):
    status_code = 401


class UploadError(UploadRelayError):
    """The external provider produced no result."""

    status_code = 500


class NotificationError(UploadRelayError):
    """The webhook post failed. Logged by callers, never returned to clients."""


class RouteNotFoundError(UploadRelayError):
    status_code = 404
