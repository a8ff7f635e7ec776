"""Typed failures raised by the generator core.

Every failure carries an HTTP status hint for the API layer.
The core never retries.
"""


class GenError(Exception):
    status_code = 500


class NotFound(GenError):
    """Requested table or record is absent."""
    status_code = 404


class Conflict(GenError):
    """Duplicate import or a concurrent write on the same record."""
    status_code = 409


class ValidationFailure(GenError):
    """Empty or malformed input."""
    status_code = 400


class InvalidState(ValidationFailure):
    """Stored metadata cannot support the requested operation."""


class TransactionFailure(GenError):
    """A multi-step write failed and was rolled back."""
    status_code = 500


class RenderFailure(GenError):
    """A template is missing, malformed or references an undefined variable."""
    status_code = 500

    def __init__(self, template_id: str, reason: str):
        super().__init__(f"Failed to render '{template_id}': {reason}")
        self.template_id = template_id


class CatalogError(GenError):
    """Live schema introspection failed."""
    status_code = 502
