from enum import Enum


class ErrorKind(str, Enum):
    MISSING_INPUT = 'missing_input'
    SEARCH_FAILED = 'search_failed'
    CALCULATION_TOO_LONG = 'calculation_too_long'


class AnnuityError(Exception):
    """Base class for errors raised by the annuity engine."""
    kind: ErrorKind

    def to_dict(self):
        return {'kind': self.kind.value, 'fields': []}


class MissingInput(AnnuityError):
    """
    A field required by the selected calculation was not supplied.
    This is a caller error; nothing is computed.
    """
    kind = ErrorKind.MISSING_INPUT

    def __init__(self, fields):
        self.fields = list(fields)
        super().__init__(f"Missing required input(s): {', '.join(self.fields)}")

    def to_dict(self):
        return {'kind': self.kind.value, 'fields': self.fields}


class SearchFailed(AnnuityError):
    """The solver found no acceptable (non-negative) value for the inputs."""
    kind = ErrorKind.SEARCH_FAILED

    def __init__(self, message="No parameter value satisfies the inputs"):
        super().__init__(message)


class CalculationTooLong(AnnuityError):
    """An open-ended simulation ran past the year ceiling."""
    kind = ErrorKind.CALCULATION_TOO_LONG

    def __init__(self, limit_years):
        self.limit_years = limit_years
        super().__init__(f"Annuity lasts longer than {limit_years} years")
