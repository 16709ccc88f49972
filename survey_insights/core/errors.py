from typing import Any, Dict, Optional


class SurveyInsightsError(Exception):
    """
    Base class for every domain error raised by the service.

    Attributes:
        code (str): stable error identifier, e.g. 'NOT_FOUND'
        message (str): human readable message
        details (Optional[Dict[str, Any]]): extra debugging data
    """
    code = "ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(f"[{self.code}] {message}")


class ConfigurationError(SurveyInsightsError):
    """Environment configuration is missing or invalid."""
    code = "CONFIG_ERROR"


class NotFound(SurveyInsightsError):
    """No row matched."""
    code = "NOT_FOUND"


class NotFoundOrForbidden(SurveyInsightsError):
    """The row does not exist or does not belong to the caller; deliberately not told apart."""
    code = "NOT_FOUND_OR_FORBIDDEN"


class AmbiguousState(SurveyInsightsError):
    """A uniqueness invariant is violated in the store."""
    code = "AMBIGUOUS_STATE"


class QueryError(SurveyInsightsError):
    """The store could not be reached or the query failed."""
    code = "QUERY_ERROR"


class ValidationError(SurveyInsightsError):
    """Malformed input."""
    code = "VALIDATION_ERROR"
