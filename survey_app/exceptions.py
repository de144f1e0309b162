"""Project-wide custom exception types."""


class ReportError(RuntimeError):
    """Base class for failures inside the report pipeline."""


class NotFoundError(ReportError):
    """Raised when the response export to analyse does not exist."""


class EmptyInputError(ReportError):
    """Raised when the response export contains no data rows."""


class InvalidInputError(ReportError):
    """Raised when the response export lacks a required column."""


class RenderError(ReportError):
    """Raised when a chart cannot be rendered.

    The document assembler replaces the chart with placeholder text; this error
    never leaves the pipeline.
    """


class AssemblyError(ReportError):
    """Raised when the PDF document cannot be written."""


class ValidationError(ValueError):
    """Raised when a survey or response payload is malformed."""


class AlreadySubmittedError(RuntimeError):
    """Raised when a participant attempts to submit a survey more than once."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
