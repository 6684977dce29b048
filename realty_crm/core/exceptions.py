"""
Custom exceptions for the Realty CRM API.
Provides consistent error handling across the application.
"""
from fastapi import HTTPException, status


class CRMException(Exception):
    """Base exception for Realty CRM"""
    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(CRMException):
    """Resource not found"""
    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class AlreadyExistsError(CRMException):
    """Resource already exists"""
    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class UnauthorizedError(CRMException):
    """Authentication failed"""
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class ForbiddenError(CRMException):
    """Access denied"""
    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class ValidationError(CRMException):
    """Validation failed"""
    def __init__(self, message: str = "Validation failed", field: str = None):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        super().__init__(message)


class StorageError(CRMException):
    """File storage operation failed"""
    def __init__(self, bucket: str, path: str, message: str = None):
        msg = f"Storage write to '{bucket}/{path}' failed"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


# HTTP Exception helpers
def raise_not_found(resource: str = "Resource", resource_id: str = None):
    """Raise 404 HTTPException"""
    err = NotFoundError(resource, resource_id)
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=err.message)


def raise_already_exists(resource: str = "Resource", field: str = None, value: str = None):
    """Raise 400 HTTPException for duplicate"""
    err = AlreadyExistsError(resource, field, value)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=err.message)


def raise_unauthorized(message: str = "Could not validate credentials"):
    """Raise 401 HTTPException"""
    err = UnauthorizedError(message)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=err.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def raise_forbidden(message: str = "You don't have permission to access this resource"):
    """Raise 403 HTTPException"""
    err = ForbiddenError(message)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=err.message)


def raise_validation_error(message: str = "Validation failed", field: str = None):
    """Raise 422 HTTPException"""
    err = ValidationError(message, field)
    raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=err.message)


def raise_bad_request(message: str):
    """Raise 400 HTTPException"""
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
