"""Application errors with stable codes for API responses."""


class MealTrackerError(Exception):
    """Base error carrying a user-readable message and an error code."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MealNotFoundError(MealTrackerError):
    """Meal lookup missed for the given id and owner."""

    code = "MEAL_NOT_FOUND"
    status_code = 404

    def __init__(self, meal_id: int) -> None:
        super().__init__("Meal not found")
        self.meal_id = meal_id


class QuotaExceededError(MealTrackerError):
    """Daily AI analysis limit reached for the user's plan."""

    code = "QUOTA_EXCEEDED"
    status_code = 429

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Daily AI analysis limit reached ({limit}). "
            "Upgrade your subscription for more analyses."
        )
        self.limit = limit


class InvalidPeriodError(MealTrackerError):
    """Statistics period bounds are missing or inconsistent."""

    code = "INVALID_PERIOD"
    status_code = 400


class UpstreamError(MealTrackerError):
    """Store or gateway call failed."""

    code = "UPSTREAM_FAILURE"
    status_code = 502


class StatisticsError(MealTrackerError):
    """Statistics could not be generated."""

    code = "STATISTICS_FAILED"
    status_code = 500


class InvalidImageError(MealTrackerError):
    """Uploaded image payload could not be decoded."""

    code = "INVALID_IMAGE"
    status_code = 400
