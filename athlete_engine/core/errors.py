"""Error types for the athlete engine.

Only identity and duration problems are errors. Everything else (unknown zone
labels, out-of-range RPE or heart-rate reserve, missing profile fields) is
absorbed and reported in the result's audit fields.
"""


class EngineError(Exception):
    """Base exception for athlete engine errors."""

    pass


class InvalidActivity(EngineError):
    """Raised when identity fields required for hashing or matching are missing.

    Attributes:
        missing_fields: Names of the missing fields, in declaration order
        activity_id: Caller's id for the offending record (if any)
    """

    def __init__(self, missing_fields: list[str], activity_id: str | None = None) -> None:
        self.missing_fields = missing_fields
        self.activity_id = activity_id
        label = f" (activity_id={activity_id})" if activity_id else ""
        super().__init__(f"Missing required fields for activity identity{label}: {', '.join(missing_fields)}")


class InsufficientData(EngineError):
    """Raised when an activity has no usable duration for load computation."""

    pass
