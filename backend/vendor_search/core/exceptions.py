"""
Domain-specific exceptions for the vendor search backend.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when request validation fails before any store access."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


# Search-specific exceptions


class LocationRequiredException(ValidationException):
    """Raised when a search carries no usable location input."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message=message or "A location (coordinates, area id or city) is required",
            code="LOCATION_REQUIRED",
        )


class InvalidBudgetRangeException(ValidationException):
    """Raised when budget.min is greater than budget.max."""

    def __init__(self, budget_min: float, budget_max: float):
        super().__init__(
            message="Budget minimum cannot exceed budget maximum",
            code="INVALID_BUDGET_RANGE",
            details={"min": budget_min, "max": budget_max},
        )


class LocationNotResolvableException(NotFoundException):
    """Raised when a location input cannot be turned into coordinates."""


class CityNotFoundException(LocationNotResolvableException):
    def __init__(self, city_name: str):
        super().__init__(
            message=f"City '{city_name}' not found",
            code="CITY_NOT_FOUND",
            details={"city": city_name},
        )


class AreaNotFoundException(LocationNotResolvableException):
    def __init__(self, area_id: str):
        super().__init__(
            message=f"Area '{area_id}' not found",
            code="AREA_NOT_FOUND",
            details={"area_id": area_id},
        )


class NoLocationContextException(BusinessRuleException):
    """Raised when ranking is attempted without a resolved location."""

    def __init__(self) -> None:
        super().__init__(
            message="Vendor ranking requires a resolved location",
            code="NO_LOCATION_CONTEXT",
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues or query failures.
    """
