"""Application exceptions.

Each exception carries the HTTP status and the stable ``code`` string the API
returns, so services and CRUD helpers can raise them without knowing about
FastAPI. The handlers that render them live in ``sprintboard.main``.
"""


class SprintboardError(Exception):
    """Base exception for all Sprintboard errors."""

    status_code = 500
    code = "error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class Unauthenticated(SprintboardError):
    """No credential, or one that does not verify."""

    status_code = 401
    code = "unauthenticated"

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(detail)


class Forbidden(SprintboardError):
    """Valid identity without the role the operation needs."""

    status_code = 403
    code = "forbidden"


class ValidationError(SprintboardError):
    """Malformed or out-of-rule input."""

    status_code = 400
    code = "validation_error"


class DurationOutOfRange(ValidationError):
    code = "duration_out_of_range"


class DailyCapExceeded(ValidationError):
    """Raised when a user already has the maximum runs for the day."""

    code = "daily_cap_exceeded"

    def __init__(self, username: str, day_key: str, cap: int):
        self.username = username
        self.day_key = day_key
        self.cap = cap
        super().__init__(f"Daily cap reached: {username} already has {cap} runs on {day_key}")


class NotEnoughPlayers(ValidationError):
    code = "not_enough_players"


class NotFound(SprintboardError):
    status_code = 404
    code = "not_found"


class UpstreamFailure(SprintboardError):
    """The store could not be reached or did not answer in time.

    Clients may retry by hand; the server never retries on its own.
    """

    status_code = 503
    code = "upstream_failure"

    def __init__(self, detail: str = "Storage temporarily unavailable, please retry"):
        super().__init__(detail)
