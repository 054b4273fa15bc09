"""
Domain exceptions for resource scheduling.

Each error carries a machine-readable ``error_type`` and a ``details`` dict
so the HTTP layer can render it without knowing the concrete class.
``ResourceUnavailableError`` is an expected business outcome, not a crash.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorType(str, Enum):
    """Error type enumeration for API responses."""

    NOT_FOUND = "not_found"
    INVALID_INTERVAL = "invalid_interval"
    INVARIANT_VIOLATION = "invariant_violation"
    RESOURCE_UNAVAILABLE = "resource_unavailable"
    RESOURCE_IN_USE = "resource_in_use"
    STORE = "store"
    PARTIAL_FAILURE = "partial_failure"


class DomainError(Exception):
    """Base class for all scheduling errors."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(DomainError):
    """Raised when a resource or allocation id does not exist."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} {entity_id} not found",
            ErrorType.NOT_FOUND,
            {"entity": entity, "entity_id": entity_id},
        )


class InvalidIntervalError(DomainError, ValueError):
    """Raised when an interval starts after it ends."""

    def __init__(self, start: datetime, end: datetime) -> None:
        self.start = start
        self.end = end
        super().__init__(
            f"Interval start {start.isoformat()} is after end {end.isoformat()}",
            ErrorType.INVALID_INTERVAL,
            {"start_date": start.isoformat(), "end_date": end.isoformat()},
        )


class InvariantViolationError(DomainError, ValueError):
    """Raised when a write would break a data-model invariant."""

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        self.field_name = field_name
        super().__init__(message, ErrorType.INVARIANT_VIOLATION, {"field": field_name})


class ResourceUnavailableError(DomainError):
    """Raised when an availability check fails on create or update."""

    def __init__(
        self,
        resource_id: int,
        start_date: datetime,
        end_date: datetime,
        conflicting_allocation_ids: List[int],
        conflict_start_date: Optional[datetime] = None,
        conflict_end_date: Optional[datetime] = None,
    ) -> None:
        self.resource_id = resource_id
        self.start_date = start_date
        self.end_date = end_date
        self.conflicting_allocation_ids = conflicting_allocation_ids
        self.conflict_start_date = conflict_start_date
        self.conflict_end_date = conflict_end_date
        super().__init__(
            f"Resource {resource_id} is not available for the requested time period",
            ErrorType.RESOURCE_UNAVAILABLE,
            {
                "resource_id": resource_id,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "conflicting_allocation_ids": conflicting_allocation_ids,
                "conflict_start_date": conflict_start_date.isoformat() if conflict_start_date else None,
                "conflict_end_date": conflict_end_date.isoformat() if conflict_end_date else None,
            },
        )


class ResourceInUseError(DomainError):
    """Raised when deleting a resource that allocations still reference."""

    def __init__(self, resource_id: int, allocation_ids: List[int]) -> None:
        self.resource_id = resource_id
        self.allocation_ids = allocation_ids
        super().__init__(
            f"Resource {resource_id} is referenced by {len(allocation_ids)} allocation(s)",
            ErrorType.RESOURCE_IN_USE,
            {"resource_id": resource_id, "allocation_ids": allocation_ids},
        )


class StoreError(DomainError):
    """Opaque failure from the underlying store, with operation context."""

    def __init__(self, operation: str, entity_id: Any = None, original: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.entity_id = entity_id
        self.original = original
        reason = str(original) if original is not None else "unknown error"
        super().__init__(
            f"Store operation '{operation}' failed for {entity_id}: {reason}",
            ErrorType.STORE,
            {"operation": operation, "entity_id": entity_id},
        )


class PartialFailureError(DomainError):
    """Raised when the primary write committed but a follow-up step failed."""

    def __init__(self, allocation_id: int, completed_step: str, failed_step: str, original: Optional[BaseException] = None) -> None:
        self.allocation_id = allocation_id
        self.completed_step = completed_step
        self.failed_step = failed_step
        self.original = original
        super().__init__(
            f"Allocation {allocation_id}: '{completed_step}' succeeded but '{failed_step}' failed",
            ErrorType.PARTIAL_FAILURE,
            {
                "allocation_id": allocation_id,
                "completed_step": completed_step,
                "failed_step": failed_step,
            },
        )
