"""Domain exception hierarchy.

Engines and services raise these; ``main.py`` renders them into JSON error
responses through a single exception handler, using ``status_code`` and
``error_code`` from the class.
"""


class FitPlanError(Exception):
    """Base class for every error the service reports to a caller."""

    status_code: int = 400
    error_code: str = "fitplan_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FitPlanError):
    """An input falls outside its allowed range or shape.

    Attributes:
        field: Name of the offending input field, when known.
    """

    status_code = 422
    error_code = "validation_error"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(FitPlanError):
    status_code = 404
    error_code = "not_found"


class PermissionDeniedError(FitPlanError):
    """The caller does not own the addressed resource."""

    status_code = 403
    error_code = "permission_denied"


class StateError(FitPlanError):
    """The operation conflicts with the current state of a resource."""

    status_code = 409
    error_code = "invalid_state"


class PlanningError(FitPlanError):
    """The pantry cannot support meal-plan generation."""

    status_code = 422
    error_code = "planning_error"


class InsufficientDataError(FitPlanError):
    status_code = 422
    error_code = "insufficient_data"


class ExternalFailure(FitPlanError):
    """An external collaborator (AI model, storage) failed or returned garbage."""

    status_code = 502
    error_code = "external_failure"


def require_range(
    field: str,
    value: float,
    low: float,
    high: float,
    label: str | None = None,
    unit: str = "",
) -> None:
    """Raise ``ValidationError`` unless ``low <= value <= high``.

    Args:
        field: Field name reported on the error.
        value: Value to check.
        low: Inclusive lower bound.
        high: Inclusive upper bound.
        label: Human-readable name used in the message (defaults to ``field``).
        unit: Optional unit appended to the range, e.g. ``" kg"``.

    Raises:
        ValidationError: If the value is outside the inclusive range.
    """
    if low <= value <= high:
        return
    name = label or field
    raise ValidationError(
        f"{name} must be between {_fmt(low)} and {_fmt(high)}{unit}",
        field=field,
    )


def _fmt(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)
