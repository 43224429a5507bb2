"""Error taxonomy for the assessment session.

None of these errors is fatal to a running session. `ValidationError` is
resolved with documented defaults, `FetchError` leaves the session in its
loading state and `SubmissionError` only affects durability. The
transition errors signal a caller driving the state machine out of order.
"""


class BarQuestError(Exception):
    """Base class for all session errors."""


class ValidationError(BarQuestError):
    """A raw session parameter could not be parsed."""

    def __init__(self, field: str, raw, default):
        self.field = field
        self.raw = raw
        self.default = default
        super().__init__(f"invalid {field}: {raw!r}; using {default!r}")


class FetchError(BarQuestError):
    """Question retrieval failed or returned a malformed payload."""


class SubmissionError(BarQuestError):
    """An answer or test-history write failed."""


class InvalidTransitionError(BarQuestError):
    """The requested action is not allowed in the current session phase."""


class SessionAbandonedError(InvalidTransitionError):
    """The session was abandoned and accepts no further actions."""
