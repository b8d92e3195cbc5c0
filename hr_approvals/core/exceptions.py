"""
Custom Exceptions for the HR Approvals engine

This module defines the exception classes raised by the workflow engine.
Every error is raised to the immediate caller; nothing is retried inside
the engine.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Authorization
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Workflow errors
    APPROVAL_REQUEST_NOT_FOUND = "APPROVAL_REQUEST_NOT_FOUND"
    WORKFLOW_DEFINITION_NOT_FOUND = "WORKFLOW_DEFINITION_NOT_FOUND"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    DEFINITION_LOCKED = "DEFINITION_LOCKED"
    SYNCHRONIZATION_FAILED = "SYNCHRONIZATION_FAILED"
    UNMAPPED_TRANSITION = "UNMAPPED_TRANSITION"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when data validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, error_code, details, 404)


class ConflictError(BaseAppException):
    """Exception raised when the operation conflicts with the current state"""

    def __init__(
        self,
        message: str = "Operation conflicts with current state",
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.CONFLICT
    ):
        super().__init__(message, error_code, details, 409)


class RepositoryError(BaseAppException):
    """Exception raised when database operations fail"""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        table: Optional[str] = None
    ):
        details = {
            "operation": operation,
            "table": table
        }
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


class DuplicateEntryError(ConflictError):
    """Exception raised when trying to create a duplicate entry"""

    def __init__(
        self,
        message: str = "Duplicate entry",
        table: Optional[str] = None
    ):
        super().__init__(message, {"table": table})


# ========================================
# Workflow Exceptions
# ========================================

class RequestNotFoundError(ResourceNotFoundError):
    """Exception raised when an approval request does not exist"""

    def __init__(
        self,
        request_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        super().__init__(
            "Approval request",
            request_id,
            message,
            ErrorCode.APPROVAL_REQUEST_NOT_FOUND,
        )


class DefinitionNotFoundError(ResourceNotFoundError):
    """Exception raised when a workflow definition does not exist"""

    def __init__(self, definition_id: Optional[str] = None):
        super().__init__(
            "Workflow definition",
            definition_id,
            error_code=ErrorCode.WORKFLOW_DEFINITION_NOT_FOUND,
        )


class AlreadyProcessedError(ConflictError):
    """
    Exception raised when a decision or cancellation targets a request
    that is no longer pending.

    Usually indicates two approvers racing or a stale screen.
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        status: Optional[str] = None,
        message: str = "This request has already been processed"
    ):
        details = {
            "request_id": request_id,
            "status": status
        }
        super().__init__(message, details, ErrorCode.ALREADY_PROCESSED)


class ApprovalPermissionError(ValidationError):
    """Exception raised when the acting principal may not act on the request"""

    def __init__(
        self,
        message: str = "You are not authorized to act on this request",
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
        required_role: Optional[str] = None
    ):
        super().__init__(message, error_code=ErrorCode.AUTHORIZATION_FAILED, status_code=403)
        self.details.update({
            "request_id": request_id,
            "user_id": user_id,
            "required_role": required_role,
        })


class DefinitionLockedError(ConflictError):
    """Exception raised when editing a definition already referenced by requests"""

    def __init__(self, definition_id: Optional[str] = None, referenced_by: int = 0):
        super().__init__(
            "Workflow definition is referenced by approval requests and cannot be edited",
            {"definition_id": definition_id, "referenced_by": referenced_by},
            ErrorCode.DEFINITION_LOCKED,
        )


class SynchronizationFailure(BaseAppException):
    """
    Exception raised when the originating entity's status could not be
    written. The surrounding transaction is rolled back before this
    reaches the caller, so workflow and entity stay consistent.
    """

    def __init__(
        self,
        message: str = "Failed to synchronize entity status",
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        rolled_back: bool = True,
        error_code: ErrorCode = ErrorCode.SYNCHRONIZATION_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        payload = {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "rolled_back": rolled_back,
        }
        if details:
            payload.update(details)
        super().__init__(message, error_code, payload, 500)


class UnmappedTransitionError(SynchronizationFailure):
    """Exception raised when a status policy has no entry for a transition"""

    def __init__(
        self,
        entity_type: str,
        step: int,
        outcome: Optional[str],
        resulting_status: str,
        chain: Optional[List[str]] = None
    ):
        super().__init__(
            f"No {entity_type} status is defined for step {step} "
            f"(outcome={outcome}, resulting status={resulting_status})",
            entity_type=entity_type,
            error_code=ErrorCode.UNMAPPED_TRANSITION,
            details={
                "step": step,
                "outcome": outcome,
                "resulting_status": resulting_status,
                "chain": chain,
            },
        )
