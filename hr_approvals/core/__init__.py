from hr_approvals.core.exceptions import (
    AlreadyProcessedError,
    ApprovalPermissionError,
    BaseAppException,
    ConflictError,
    DefinitionLockedError,
    DefinitionNotFoundError,
    DuplicateEntryError,
    ErrorCode,
    RepositoryError,
    RequestNotFoundError,
    ResourceNotFoundError,
    SynchronizationFailure,
    UnmappedTransitionError,
    ValidationError,
)

__all__ = [
    "AlreadyProcessedError",
    "ApprovalPermissionError",
    "BaseAppException",
    "ConflictError",
    "DefinitionLockedError",
    "DefinitionNotFoundError",
    "DuplicateEntryError",
    "ErrorCode",
    "RepositoryError",
    "RequestNotFoundError",
    "ResourceNotFoundError",
    "SynchronizationFailure",
    "UnmappedTransitionError",
    "ValidationError",
]
