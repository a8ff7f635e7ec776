from core.errors import GenError, NotFound, Conflict, ValidationFailure, RenderFailure, CatalogError  # noqa: F401
from core.column_classifier import classify_column, parse_column_type  # noqa: F401
