"""Error taxonomy shared by services and the HTTP layer."""


class PromptCritError(Exception):
    """Base error carrying a stable machine-readable kind."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(PromptCritError):
    """Missing, malformed, or rejected credential."""

    kind = "unauthenticated"
    status_code = 401


class Forbidden(PromptCritError):
    """Caller lacks the relationship the action requires."""

    kind = "forbidden"
    status_code = 403


class InvalidArgument(PromptCritError):
    """Malformed or out-of-bounds input."""

    kind = "invalid_argument"
    status_code = 400


class NotFound(PromptCritError):
    """Unknown session or resource."""

    kind = "not_found"
    status_code = 404


class InvalidTransition(PromptCritError):
    """Phase guard failure."""

    kind = "invalid_transition"
    status_code = 400


class Conflict(PromptCritError):
    """A concurrent write changed the record first."""

    kind = "conflict"
    status_code = 409


class UpstreamUnavailable(PromptCritError):
    """External dialogue or storage service failure."""

    kind = "upstream_unavailable"
    status_code = 503
