"""
FILE: core/exceptions.py
-------------------------
Domain exceptions for the data quality report.

Hierarchy:
    DataQualityError (base)
    ├── ConfigError           → missing threshold / item reference, bad YAML
    ├── EmptyInputError       → zero rows, completeness undefined
    ├── UnsupportedTypeError  → summary requested on the wrong field type
    ├── DataLoadError         → input table missing, empty or malformed
    └── ReportRenderError     → template or pandoc failure

Engines raise these; the completeness aggregator and the report pipeline
catch them at the field / section boundary so one failure never aborts
the rest of the report.
"""


class DataQualityError(Exception):
    """
    Base exception for all report errors.

    Attributes:
        message: Human-readable error description
        context: Additional key/value details (field, site, path, ...)
    """

    def __init__(self, message: str, context: dict | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


class ConfigError(DataQualityError):
    """
    Configuration is missing or invalid.

    Raised when a requested field has no acceptance threshold, a short name
    is absent from the item reference, or a YAML file cannot be read.
    Fatal to the item being computed.
    """


class EmptyInputError(DataQualityError):
    """The dataset has zero rows. Callers degrade this to a "no data" marker."""


class UnsupportedTypeError(DataQualityError):
    """
    A summary was requested on a field of the wrong type, e.g. a table one
    breakdown of a numeric item. Fatal to that item only.
    """

    def __init__(self, field: str, field_type: str, expected: str):
        self.field = field
        self.field_type = field_type
        self.expected = expected
        super().__init__(
            f"'{field}' is not a {expected} variable",
            context={"field": field, "field_type": field_type},
        )


class DataLoadError(DataQualityError):
    """An input table could not be loaded or lacks required columns."""


class ReportRenderError(DataQualityError):
    """The markdown template or the pandoc PDF conversion failed."""
