class ResumeZapError(Exception):
    """Base error. `message` is safe to show to the end user."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(ResumeZapError):
    status_code = 400


class AuthenticationError(ResumeZapError):
    status_code = 401


class UsageLimitError(ResumeZapError):
    status_code = 402


class NotFoundError(ResumeZapError):
    status_code = 404


class FileParseError(ResumeZapError):
    status_code = 422


class ConfigurationError(ResumeZapError):
    status_code = 500


class AIResponseError(ResumeZapError):
    status_code = 500


class AIServiceError(ResumeZapError):
    # upstream provider failures surface as "unavailable"
    status_code = 503
