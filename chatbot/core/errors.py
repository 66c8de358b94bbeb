"""Error taxonomy shared by the store, the orchestrator and the routes.

Every error carries a ``code`` of the form ``<type>:<surface>`` which is
what the client sees, and the HTTP status the route layer answers with.
"""


class ChatbotError(Exception):
    error_type = "bad_request"
    status_code = 400

    def __init__(self, message: str, surface: str = "api"):
        super().__init__(message)
        self.message = message
        self.surface = surface

    @property
    def code(self) -> str:
        return f"{self.error_type}:{self.surface}"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class BadRequestError(ChatbotError):
    error_type = "bad_request"
    status_code = 400


class NotFoundError(ChatbotError):
    error_type = "not_found"
    status_code = 404


class RateLimitError(ChatbotError):
    error_type = "rate_limit"
    status_code = 429


class DatabaseError(ChatbotError):
    """Wraps any storage failure. The original cause is not kept."""

    error_type = "bad_request"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, surface="database")


class UpstreamModelError(ChatbotError):
    error_type = "offline"
    status_code = 503

    def __init__(self, message: str = "The model provider is unavailable"):
        super().__init__(message, surface="chat")
